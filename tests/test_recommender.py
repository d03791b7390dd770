"""Tests for src/matching/recommender.py."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from src.data.schemas import BreedProfile, MatchResult
from src.errors import (
    ExternalResponseMalformed,
    ExternalUnavailable,
    InvalidIdentity,
    InvalidQuizAnswer,
)
from src.matching.recommender import (
    BreedRecommender,
    NarrativeRanker,
    order_matches,
    parse_matches,
    parse_quiz_answers,
)
from src.matching.scorer import LocalRanker
from src.storage.repository import BreedRepository, QuizRepository


def narrative_matches(names: list[str], percentages: list[int]) -> list[dict]:
    return [
        {
            "breedName": name,
            "matchPercentage": pct,
            "reasoning": f"The {name} fits this home.",
            "pros": ["Affectionate", "Adaptable", "Easy to train"],
            "cons": ["Sheds", "Needs walks"],
        }
        for name, pct in zip(names, percentages, strict=True)
    ]


@pytest.fixture
def recommender(
    seeded_repo: BreedRepository, quiz_repo: QuizRepository, mock_narrative: MagicMock
) -> BreedRecommender:
    return BreedRecommender(seeded_repo, quiz_repo, NarrativeRanker(mock_narrative))


class TestParseQuizAnswers:
    """Tests for answer validation."""

    def test_snake_case_keys(self, valid_answers: dict[str, str]) -> None:
        snake = {
            "living_situation": "farm_rural",
            "exercise_time": "very_active",
            "experience": "experienced",
            "family_situation": "teenagers",
            "grooming_preference": "high",
            "size_preference": "large",
            "energy_preference": "high",
            "trainability_importance": "somewhat",
        }
        assert parse_quiz_answers(snake).size_preference.value == "large"

    def test_missing_and_invalid_listed(self, valid_answers: dict[str, str]) -> None:
        answers = dict(valid_answers)
        del answers["sizePreference"]
        answers["livingSituation"] = "castle"
        answers["experience"] = "  "

        with pytest.raises(InvalidQuizAnswer) as exc_info:
            parse_quiz_answers(answers)

        assert exc_info.value.missing == ["experience", "size_preference"]
        assert exc_info.value.invalid == ["living_situation"]
        assert exc_info.value.stage == "validation"

    def test_empty(self) -> None:
        with pytest.raises(InvalidQuizAnswer) as exc_info:
            parse_quiz_answers(None)
        assert len(exc_info.value.missing) == 8


class TestParseMatches:
    """Tests for narrative contract enforcement."""

    NAMES = ["Beagle", "Border Collie", "Chihuahua", "Golden Retriever", "Shih Tzu"]

    def test_object_or_list(self) -> None:
        entries = narrative_matches(self.NAMES, [90, 85, 80, 75, 70])
        assert len(parse_matches({"matches": entries}, 5)) == 5
        assert len(parse_matches(entries, 5)) == 5

    @pytest.mark.parametrize("count", [4, 6])
    def test_wrong_count(self, count: int) -> None:
        names = [f"Breed {i}" for i in range(count)]
        with pytest.raises(ExternalResponseMalformed):
            parse_matches({"matches": narrative_matches(names, [80] * count)}, 5)

    @pytest.mark.parametrize("pct", [150, 59, 99, -1])
    def test_out_of_band_percentage(self, pct: int) -> None:
        entries = narrative_matches(self.NAMES, [90, 85, 80, 75, pct])
        with pytest.raises(ExternalResponseMalformed):
            parse_matches(entries, 5)

    def test_empty_pros(self) -> None:
        entries = narrative_matches(self.NAMES, [90, 85, 80, 75, 70])
        entries[2]["pros"] = []
        with pytest.raises(ExternalResponseMalformed):
            parse_matches(entries, 5)

    def test_duplicate_breed(self) -> None:
        names = ["Beagle", "beagle", "Chihuahua", "Golden Retriever", "Shih Tzu"]
        with pytest.raises(ExternalResponseMalformed):
            parse_matches(narrative_matches(names, [90, 85, 80, 75, 70]), 5)

    @pytest.mark.parametrize("payload", [None, "matches", {"results": []}, {"matches": "x"}])
    def test_not_a_list(self, payload: object) -> None:
        with pytest.raises(ExternalResponseMalformed):
            parse_matches(payload, 5)


class TestOrderMatches:
    """Tests for result ordering and catalog linking."""

    def _matches(self, names: list[str], percentages: list[int]) -> list[MatchResult]:
        return [MatchResult.model_validate(e) for e in narrative_matches(names, percentages)]

    def test_descending(self, sample_catalog: list[BreedProfile]) -> None:
        matches = self._matches(
            ["Beagle", "Shih Tzu", "Chihuahua", "Golden Retriever", "Border Collie"],
            [70, 95, 80, 88, 61],
        )
        ordered = order_matches(matches, sample_catalog)
        assert [m.match_percentage for m in ordered] == [95, 88, 80, 70, 61]
        assert ordered[0].breed_id == "shih-tzu"

    def test_ties_follow_catalog_order(self, sample_catalog: list[BreedProfile]) -> None:
        matches = self._matches(
            ["Shih Tzu", "Beagle", "Golden Retriever", "Chihuahua", "Border Collie"],
            [80, 80, 90, 70, 70],
        )
        ordered = [m.breed_name for m in order_matches(matches, sample_catalog)]
        assert ordered == ["Golden Retriever", "Beagle", "Shih Tzu", "Border Collie", "Chihuahua"]

    def test_unknown_breed_unlinked_after_known(self, sample_catalog: list[BreedProfile]) -> None:
        matches = self._matches(
            ["Dingo", "Beagle", "Chihuahua", "Golden Retriever", "Border Collie"],
            [80, 80, 75, 70, 65],
        )
        ordered = order_matches(matches, sample_catalog)
        assert [m.breed_name for m in ordered][:2] == ["Beagle", "Dingo"]
        assert ordered[1].breed_id is None


class TestBreedRecommender:
    """Tests for the quiz submission flow."""

    def test_recommend(
        self,
        recommender: BreedRecommender,
        valid_answers: dict[str, str],
        mock_narrative: MagicMock,
    ) -> None:
        submission = recommender.recommend(valid_answers, session_id="sess-1")

        assert len(submission.results) == 5
        percentages = [r.match_percentage for r in submission.results]
        assert percentages == sorted(percentages, reverse=True)
        assert all(60 <= p <= 98 for p in percentages)
        assert submission.results[0].breed_id == "golden-retriever"
        mock_narrative.complete_json.assert_called_once()

    def test_persisted(self, recommender: BreedRecommender, valid_answers: dict[str, str]) -> None:
        submission = recommender.recommend(valid_answers, user_id="alice")
        stored = recommender.results_for(user_id="alice")
        assert [s.submission_id for s in stored] == [submission.submission_id]
        assert stored[0].results == submission.results

    def test_prompt_sees_whole_catalog(
        self,
        recommender: BreedRecommender,
        valid_answers: dict[str, str],
        mock_narrative: MagicMock,
        sample_catalog: list[BreedProfile],
    ) -> None:
        recommender.recommend(valid_answers, session_id="sess-1")
        prompt = mock_narrative.complete_json.call_args[0][0]
        for breed in sample_catalog:
            assert breed.name in prompt

    def test_large_catalog_not_truncated(
        self,
        recommender: BreedRecommender,
        seeded_repo: BreedRepository,
        valid_answers: dict[str, str],
        mock_narrative: MagicMock,
        breed_factory,
    ) -> None:
        """Catalogs of any size reach the ranker in full."""
        for i in range(600):
            seeded_repo.create(breed_factory(f"Zz Breed {i:03d}"))

        recommender.recommend(valid_answers, session_id="sess-1")

        prompt = mock_narrative.complete_json.call_args[0][0]
        assert "Zz Breed 599" in prompt
        assert "Beagle" in prompt

    def test_invalid_answers_no_external_call(
        self,
        recommender: BreedRecommender,
        valid_answers: dict[str, str],
        mock_narrative: MagicMock,
    ) -> None:
        del valid_answers["energyPreference"]
        with pytest.raises(InvalidQuizAnswer):
            recommender.recommend(valid_answers, session_id="sess-1")
        mock_narrative.complete_json.assert_not_called()
        assert recommender.results_for(session_id="sess-1") == []

    @pytest.mark.parametrize(
        "identity",
        [{}, {"user_id": "alice", "session_id": "sess-1"}, {"user_id": "", "session_id": ""}],
    )
    def test_identity_required(
        self,
        recommender: BreedRecommender,
        valid_answers: dict[str, str],
        mock_narrative: MagicMock,
        identity: dict[str, str],
    ) -> None:
        with pytest.raises(InvalidIdentity):
            recommender.recommend(valid_answers, **identity)
        mock_narrative.complete_json.assert_not_called()

    def test_short_response_nothing_persisted(
        self,
        recommender: BreedRecommender,
        valid_answers: dict[str, str],
        mock_narrative: MagicMock,
    ) -> None:
        mock_narrative.complete_json.return_value = {
            "matches": narrative_matches(
                ["Beagle", "Chihuahua", "Golden Retriever", "Shih Tzu"], [90, 85, 80, 75]
            )
        }
        with pytest.raises(ExternalResponseMalformed):
            recommender.recommend(valid_answers, session_id="sess-1")
        assert recommender.results_for(session_id="sess-1") == []

    def test_out_of_band_nothing_persisted(
        self,
        recommender: BreedRecommender,
        valid_answers: dict[str, str],
        mock_narrative: MagicMock,
    ) -> None:
        payload = mock_narrative.complete_json.return_value
        payload["matches"][0]["matchPercentage"] = 150
        with pytest.raises(ExternalResponseMalformed):
            recommender.recommend(valid_answers, session_id="sess-1")
        assert recommender.results_for(session_id="sess-1") == []

    def test_unavailable_propagates(
        self,
        recommender: BreedRecommender,
        valid_answers: dict[str, str],
        mock_narrative: MagicMock,
    ) -> None:
        mock_narrative.complete_json.side_effect = ExternalUnavailable("timed out")
        with pytest.raises(ExternalUnavailable):
            recommender.recommend(valid_answers, session_id="sess-1")
        assert recommender.results_for(session_id="sess-1") == []

    def test_local_ranker(
        self,
        seeded_repo: BreedRepository,
        quiz_repo: QuizRepository,
        valid_answers: dict[str, str],
    ) -> None:
        recommender = BreedRecommender(seeded_repo, quiz_repo, LocalRanker())
        submission = recommender.recommend(valid_answers, session_id="sess-1")
        assert len(submission.results) == 5
        assert all(r.breed_id for r in submission.results)

    def test_ranker_wrong_count(
        self,
        seeded_repo: BreedRepository,
        quiz_repo: QuizRepository,
        valid_answers: dict[str, str],
    ) -> None:
        ranker = MagicMock()
        ranker.rank.return_value = []
        recommender = BreedRecommender(seeded_repo, quiz_repo, ranker)
        with pytest.raises(ExternalResponseMalformed):
            recommender.recommend(valid_answers, session_id="sess-1")
