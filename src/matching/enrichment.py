"""Back-fill generated narrative fields on stored breeds."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from src.data.schemas import BreedProfile, ProsAndCons
from src.errors import BreedNotFound, ExternalResponseMalformed
from src.matching.narrative import NarrativeClient
from src.matching.prompts import build_pros_cons_prompt, build_summary_prompt
from src.storage.repository import BreedRepository

logger = logging.getLogger(__name__)


class BreedEnricher:
    """Generate ``ai_summary`` and ``pros_and_cons`` for a breed."""

    def __init__(self, breeds: BreedRepository, narrative: NarrativeClient) -> None:
        self.breeds = breeds
        self.narrative = narrative

    def enrich(self, breed_id: str) -> BreedProfile:
        """Generate and store narrative fields for one breed.

        The profile is only updated once both texts have been generated
        and validated.

        Raises:
            BreedNotFound: If *breed_id* is unknown.
            ExternalUnavailable: If the narrative collaborator fails.
            ExternalResponseMalformed: If the pros/cons payload is invalid.
        """
        breed = self.breeds.get_by_id(breed_id)
        if breed is None:
            raise BreedNotFound(f"Breed '{breed_id}' not found")

        summary = self.narrative.complete_text(build_summary_prompt(breed))
        payload = self.narrative.complete_json(build_pros_cons_prompt(breed), max_tokens=600)
        try:
            pros_and_cons = ProsAndCons.model_validate(payload)
        except ValidationError as err:
            raise ExternalResponseMalformed(
                f"Pros and cons for {breed.name} are invalid: {err.errors(include_url=False)}"
            ) from err

        logger.info("Enriched breed %s", breed.name)
        return self.breeds.update(breed_id, ai_summary=summary, pros_and_cons=pros_and_cons)
