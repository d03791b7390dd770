"""Breed feeds: The Dog API over HTTP and local CSV seed files."""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd
import requests

from src.data.schemas import BreedSourceRecord
from src.errors import ExternalUnavailable

logger = logging.getLogger(__name__)

DOG_API_URL = "https://api.thedogapi.com/v1"

SEED_COLUMNS = (
    "id",
    "name",
    "temperament",
    "breed_group",
    "life_span",
    "origin",
    "bred_for",
    "weight",
    "height",
    "image_url",
    "reference_image_id",
)


class DogApiClient:
    """Minimal client for The Dog API.

    Args:
        base_url: API root, without trailing slash.
        api_key: Optional key sent as ``x-api-key``.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        base_url: str = DOG_API_URL,
        api_key: str | None = None,
        timeout: int = 30,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    def _get(self, endpoint: str) -> object:
        headers = {}
        if self.api_key:
            headers["x-api-key"] = self.api_key
        url = f"{self.base_url}{endpoint}"
        try:
            response = requests.get(url, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            # requests.JSONDecodeError is a RequestException too
            return response.json()
        except requests.RequestException as err:
            raise ExternalUnavailable(
                f"Dog API request to {url} failed: {err}", stage="breed-feed"
            ) from err

    def fetch_breeds(self) -> list[BreedSourceRecord]:
        """Fetch every breed from the ``/breeds`` endpoint.

        Records that fail validation are logged and dropped.

        Raises:
            ExternalUnavailable: If the API cannot be reached.
        """
        payload = self._get("/breeds")
        if not isinstance(payload, list):
            raise ExternalUnavailable(
                "Dog API returned an unexpected breeds payload", stage="breed-feed"
            )

        records = []
        for item in payload:
            try:
                records.append(BreedSourceRecord.model_validate(item))
            except ValueError as exc:
                logger.warning("Skipping invalid Dog API breed record: %s", exc)
        logger.info("Fetched %d breeds from The Dog API", len(records))
        return records

    def get_image_url(self, image_id: str) -> str:
        """Resolve a reference image id to its URL.

        Returns:
            The image URL, or an empty string if the lookup fails.
        """
        try:
            image = self._get(f"/images/{image_id}")
        except ExternalUnavailable as exc:
            logger.warning("Failed to fetch image %s: %s", image_id, exc)
            return ""
        if isinstance(image, dict):
            return image.get("url") or ""
        return ""


def load_breed_file(path: Path) -> list[BreedSourceRecord]:
    """Load breed records from a CSV seed file.

    The file uses the Dog API field names as columns (``name`` is
    required; ``weight``/``height`` hold the metric strings). Empty cells
    become None.

    Args:
        path: Path to the CSV file.

    Returns:
        List of BreedSourceRecord objects, in file order.
    """
    logger.info("Loading breed seed file %s", path)
    df = pd.read_csv(path, dtype=str)

    missing = {"name"} - set(df.columns)
    if missing:
        raise ValueError(f"Seed file {path} lacks required columns: {sorted(missing)}")

    columns = [c for c in SEED_COLUMNS if c in df.columns]
    df = df[columns].astype(object).where(df[columns].notna(), None)

    records = []
    for line, row in enumerate(df.to_dict(orient="records"), start=2):
        if not (row.get("name") or "").strip():
            logger.warning("Seed file %s line %d has no breed name, skipping", path, line)
            continue
        try:
            records.append(BreedSourceRecord.model_validate(row))
        except ValueError as exc:
            logger.warning("Skipping invalid seed row at line %d: %s", line, exc)

    logger.info("Seed file: produced %d records", len(records))
    return records
