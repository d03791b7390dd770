"""Turn raw breed feed records into stored BreedProfile records."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable

from tqdm import tqdm

from src.data.ranges import parse_range
from src.data.schemas import BreedProfile, BreedSourceRecord, SyncReport
from src.data.traits import normalize_traits
from src.storage.repository import BreedRepository, name_key

logger = logging.getLogger(__name__)

MAX_ID_ATTEMPTS = 20


def breed_slug(name: str) -> str:
    """URL-safe id derived from the lower-cased breed name.

    >>> breed_slug("Jack Russell Terrier")
    'jack-russell-terrier'
    """
    slug = re.sub(r"[^a-z0-9]+", "-", name_key(name)).strip("-")
    return slug or name_key(name)


def build_breed_profile(
    record: BreedSourceRecord,
    image_url: str | None = None,
    breed_id: str | None = None,
) -> BreedProfile:
    """Normalize one feed record into a canonical BreedProfile.

    Args:
        record: Raw record from a breed feed.
        image_url: Resolved image URL, overriding the record's own.
        breed_id: Id to store the breed under; defaults to the name slug.

    Returns:
        BreedProfile with parsed ranges, trait scores and flags. Narrative
        fields are left empty for the enrichment step.
    """
    return BreedProfile(
        breed_id=breed_id or breed_slug(record.name),
        name=record.name,
        external_id=record.external_id,
        description=record.bred_for or None,
        temperament=record.temperament or None,
        origin=record.origin or None,
        life_span=record.life_span or None,
        breed_group=record.breed_group or None,
        image_url=image_url or record.image_url or None,
        weight_range=parse_range(record.weight),
        height_range=parse_range(record.height),
        **normalize_traits(record.temperament, record.breed_group),
    )


def _store_new_breed(
    record: BreedSourceRecord,
    repository: BreedRepository,
    image_url: str | None,
) -> bool:
    """Insert *record* under the first free id derived from its name.

    Different names can share a slug ("Chow Chow", "Chow-Chow"); later ones
    get a numeric suffix. Returns False only when the name itself is
    already stored, e.g. by a concurrent run.
    """
    base = breed_slug(record.name)
    for attempt in range(1, MAX_ID_ATTEMPTS + 1):
        breed_id = base if attempt == 1 else f"{base}-{attempt}"
        if repository.get_by_id(breed_id) is not None:
            continue
        if repository.create(build_breed_profile(record, image_url=image_url, breed_id=breed_id)):
            return True
        if repository.get_by_name(record.name) is not None:
            return False
    raise ValueError(f"No free breed id for {record.name!r} after {MAX_ID_ATTEMPTS} attempts")


def sync_breeds(
    records: Iterable[BreedSourceRecord],
    repository: BreedRepository,
    resolve_image: Callable[[str], str] | None = None,
    show_progress: bool = False,
) -> SyncReport:
    """Ingest feed records into the catalog, one at a time.

    Names already in the catalog are skipped untouched. A record that fails
    to build or store is logged and counted, and the run continues.

    Args:
        records: Feed records, e.g. from DogApiClient.fetch_breeds().
        repository: Breed storage.
        resolve_image: Optional lookup for ``reference_image_id`` values.
        show_progress: Display a progress bar (CLI use).

    Returns:
        SyncReport with created / skipped / failed counts.
    """
    report = SyncReport()

    for record in tqdm(records, desc="Syncing breeds", unit="breed", disable=not show_progress):
        try:
            if repository.get_by_name(record.name) is not None:
                logger.debug("Breed %s already exists, skipping", record.name)
                report.skipped += 1
                continue

            image_url = None
            if resolve_image and record.reference_image_id and not record.image_url:
                image_url = resolve_image(record.reference_image_id) or None

            if _store_new_breed(record, repository, image_url):
                logger.info("Created breed %s", record.name)
                report.created += 1
            else:
                report.skipped += 1
        except Exception:
            logger.exception("Error processing breed %s", record.name)
            report.failed += 1

    logger.info(
        "Breed sync finished: %d created, %d skipped, %d failed",
        report.created,
        report.skipped,
        report.failed,
    )
    return report
