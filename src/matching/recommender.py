"""Quiz submission: validation, ranking, contract enforcement, persistence."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from typing import Any, Protocol

from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from src.data.schemas import (
    QUESTION_IDS,
    BreedProfile,
    MatchResult,
    QuizAnswer,
    QuizSubmission,
)
from src.errors import (
    ExternalResponseMalformed,
    InvalidIdentity,
    InvalidQuizAnswer,
)
from src.matching.narrative import NarrativeClient
from src.matching.prompts import build_recommendation_prompt
from src.storage.repository import BreedRepository, QuizRepository, name_key

logger = logging.getLogger(__name__)

# Wire key (snake_case or camelCase) -> question id
_QUESTION_KEYS = {**{q: q for q in QUESTION_IDS}, **{to_camel(q): q for q in QUESTION_IDS}}


class Ranker(Protocol):
    def rank(
        self, answers: QuizAnswer, catalog: list[BreedProfile], count: int = 5
    ) -> list[MatchResult]: ...


def parse_quiz_answers(responses: Mapping[str, Any] | None) -> QuizAnswer:
    """Validate raw quiz responses.

    Keys may be snake_case or camelCase. Blank values count as missing.

    Raises:
        InvalidQuizAnswer: Listing every missing and every invalid question.
    """
    cleaned = {
        key: value
        for key, value in (responses or {}).items()
        if value is not None and str(value).strip()
    }
    try:
        return QuizAnswer.model_validate(cleaned)
    except ValidationError as err:
        missing, invalid = [], []
        for error in err.errors():
            key = str(error["loc"][0]) if error["loc"] else ""
            question = _QUESTION_KEYS.get(key)
            if question is None:
                continue
            (missing if error["type"] == "missing" else invalid).append(question)
        raise InvalidQuizAnswer(missing=missing, invalid=invalid) from err


def parse_matches(payload: Any, count: int) -> list[MatchResult]:
    """Validate a narrative ranking response.

    Accepts a bare JSON array or an object with a ``matches`` array.
    Percentages outside [60, 98] are rejected, not clamped.

    Raises:
        ExternalResponseMalformed: On any shape or bounds violation.
    """
    entries = payload.get("matches") if isinstance(payload, dict) else payload
    if not isinstance(entries, list):
        raise ExternalResponseMalformed("Narrative response has no list of matches")
    if len(entries) != count:
        raise ExternalResponseMalformed(
            f"Expected exactly {count} matches, narrative returned {len(entries)}"
        )

    matches = []
    for position, entry in enumerate(entries):
        try:
            matches.append(MatchResult.model_validate(entry))
        except ValidationError as err:
            raise ExternalResponseMalformed(
                f"Match {position} is invalid: {err.errors(include_url=False)}"
            ) from err

    names = [name_key(m.breed_name) for m in matches]
    if len(set(names)) != len(names):
        raise ExternalResponseMalformed("Narrative response repeats a breed")
    return matches


def order_matches(matches: list[MatchResult], catalog: list[BreedProfile]) -> list[MatchResult]:
    """Sort by percentage, descending, and link each match to its profile.

    Equal percentages keep catalog order; names missing from the catalog
    follow catalog names, in their incoming order.
    """
    positions = {name_key(b.name): (index, b.breed_id) for index, b in enumerate(catalog)}
    unknown = (len(catalog), None)

    linked = []
    for match in matches:
        index, breed_id = positions.get(name_key(match.breed_name), unknown)
        if breed_id is None:
            logger.warning("Matched breed %r is not in the catalog", match.breed_name)
        linked.append((index, match.model_copy(update={"breed_id": breed_id})))

    linked.sort(key=lambda item: (-item[1].match_percentage, item[0]))
    return [match for _, match in linked]


class NarrativeRanker:
    """Rank the catalog through the narrative collaborator."""

    def __init__(self, narrative: NarrativeClient) -> None:
        self.narrative = narrative

    def rank(
        self, answers: QuizAnswer, catalog: list[BreedProfile], count: int = 5
    ) -> list[MatchResult]:
        prompt = build_recommendation_prompt(answers, catalog, count)
        payload = self.narrative.complete_json(prompt)
        return parse_matches(payload, count)


class BreedRecommender:
    """Turn quiz submissions into stored, validated breed recommendations.

    Args:
        breeds: Catalog storage.
        submissions: Quiz submission storage.
        ranker: NarrativeRanker or LocalRanker.
        match_count: Number of matches every result set holds.
    """

    def __init__(
        self,
        breeds: BreedRepository,
        submissions: QuizRepository,
        ranker: Ranker,
        match_count: int = 5,
    ) -> None:
        self.breeds = breeds
        self.submissions = submissions
        self.ranker = ranker
        self.match_count = match_count

    def recommend(
        self,
        responses: Mapping[str, Any] | None,
        user_id: str | None = None,
        session_id: str | None = None,
    ) -> QuizSubmission:
        """Score a quiz submission and persist it.

        Nothing is persisted unless every step succeeds.

        Raises:
            InvalidQuizAnswer: Before any external call.
            InvalidIdentity: Unless exactly one of user_id / session_id is set.
            ExternalUnavailable: The narrative collaborator failed.
            ExternalResponseMalformed: Its output broke the match contract.
        """
        answers = parse_quiz_answers(responses)
        if bool(user_id) == bool(session_id):
            raise InvalidIdentity("Provide exactly one of user id or session id")

        catalog = self.breeds.list_breeds(limit=None)
        logger.info("Ranking %d catalog breeds for quiz submission", len(catalog))

        matches = self.ranker.rank(answers, catalog, self.match_count)
        if len(matches) != self.match_count:
            raise ExternalResponseMalformed(
                f"Expected {self.match_count} matches, ranker produced {len(matches)}",
                stage="scoring",
            )

        submission = QuizSubmission(
            submission_id=uuid.uuid4().hex,
            user_id=user_id or None,
            session_id=session_id or None,
            responses=answers,
            results=order_matches(matches, catalog),
        )
        self.submissions.create(submission)
        logger.info(
            "Stored quiz submission %s (top match: %s)",
            submission.submission_id,
            submission.results[0].breed_name,
        )
        return submission

    def results_for(
        self, user_id: str | None = None, session_id: str | None = None
    ) -> list[QuizSubmission]:
        """Past submissions for a user or session, newest first."""
        return self.submissions.list_submissions(user_id=user_id, session_id=session_id)
