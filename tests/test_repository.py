"""Tests for src/storage/repository.py."""

from __future__ import annotations

import pytest

from src.data.schemas import BreedProfile, MatchResult, NumericRange, QuizAnswer, QuizSubmission
from src.errors import BreedNotFound, ComparisonNotFound
from src.storage.repository import BreedRepository, ComparisonRepository, QuizRepository


class TestBreedRepository:
    """Tests for breed storage."""

    def test_round_trip(self, breed_repo: BreedRepository, breed_factory) -> None:
        breed = breed_factory("Pug", height_range=NumericRange(min=25, max=30))
        assert breed_repo.create(breed) is True

        stored = breed_repo.get_by_id("pug")

        assert stored.name == "Pug"
        assert stored.weight_range == NumericRange(min=20, max=30)
        assert stored.height_range == NumericRange(min=25, max=30)
        assert stored.good_with_cats is False

    def test_duplicate_name_not_stored(self, breed_repo: BreedRepository, breed_factory) -> None:
        breed_repo.create(breed_factory("Pug", energy_level=2))
        assert breed_repo.create(breed_factory("pug", breed_id="pug-2", energy_level=5)) is False
        assert breed_repo.get_by_id("pug").energy_level == 2
        assert breed_repo.get_by_id("pug-2") is None

    def test_get_by_name_case_insensitive(self, seeded_repo: BreedRepository) -> None:
        assert seeded_repo.get_by_name("golden retriever").breed_id == "golden-retriever"
        assert seeded_repo.get_by_name("Poodle") is None

    def test_list_in_name_order(self, seeded_repo: BreedRepository) -> None:
        names = [b.name for b in seeded_repo.list_breeds()]
        assert names == sorted(names, key=str.lower)
        assert len(seeded_repo.list_breeds(limit=2, offset=1)) == 2
        assert seeded_repo.list_breeds(limit=2, offset=1)[0].name == "Border Collie"

    def test_list_without_limit(self, breed_repo: BreedRepository, breed_factory) -> None:
        for i in range(60):
            breed_repo.create(breed_factory(f"Breed {i:02d}"))
        assert len(breed_repo.list_breeds()) == 50
        assert len(breed_repo.list_breeds(limit=None)) == 60

    def test_search(self, seeded_repo: BreedRepository) -> None:
        names = [b.name for b in seeded_repo.search("RETRIEVER")]
        assert names == ["Golden Retriever", "Labrador Retriever"]

    def test_search_escapes_wildcards(self, seeded_repo: BreedRepository) -> None:
        assert seeded_repo.search("%") == []

    def test_update_backfills(self, seeded_repo: BreedRepository) -> None:
        updated = seeded_repo.update(
            "beagle",
            ai_summary="A merry scent hound.",
            pros_and_cons={"pros": ["Cheerful"], "cons": ["Howls"]},
        )
        assert updated.ai_summary == "A merry scent hound."
        assert seeded_repo.get_by_id("beagle").pros_and_cons.cons == ["Howls"]

    def test_update_range(self, seeded_repo: BreedRepository) -> None:
        seeded_repo.update("beagle", weight_range={"min": 8, "max": 14})
        assert seeded_repo.get_by_id("beagle").weight_range == NumericRange(min=8, max=14)

    def test_update_identity_rejected(self, seeded_repo: BreedRepository) -> None:
        with pytest.raises(ValueError):
            seeded_repo.update("beagle", name="Harrier")

    def test_update_unknown_field_rejected(self, seeded_repo: BreedRepository) -> None:
        with pytest.raises(ValueError):
            seeded_repo.update("beagle", colour="tricolour")

    def test_update_invalid_score_not_stored(self, seeded_repo: BreedRepository) -> None:
        with pytest.raises(ValueError):
            seeded_repo.update("beagle", energy_level=9)
        assert seeded_repo.get_by_id("beagle").energy_level == 4

    def test_update_unknown_breed(self, breed_repo: BreedRepository) -> None:
        with pytest.raises(BreedNotFound):
            breed_repo.update("nope", ai_summary="x")


class TestQuizRepository:
    """Tests for quiz submission storage."""

    def _submission(
        self, valid_answers: dict[str, str], submission_id: str, **identity: str
    ) -> QuizSubmission:
        result = MatchResult(
            breed_name="Beagle",
            breed_id="beagle",
            match_percentage=85,
            reasoning="Merry and small.",
            pros=["Cheerful"],
            cons=["Noisy"],
        )
        return QuizSubmission(
            submission_id=submission_id,
            responses=QuizAnswer.model_validate(valid_answers),
            results=[result],
            **identity,
        )

    def test_round_trip(self, quiz_repo: QuizRepository, valid_answers: dict[str, str]) -> None:
        submission = self._submission(valid_answers, "s1", session_id="sess-1")
        quiz_repo.create(submission)

        stored = quiz_repo.list_submissions(session_id="sess-1")

        assert len(stored) == 1
        assert stored[0].responses == submission.responses
        assert stored[0].results == submission.results

    def test_filters_by_identity(
        self, quiz_repo: QuizRepository, valid_answers: dict[str, str]
    ) -> None:
        quiz_repo.create(self._submission(valid_answers, "s1", user_id="alice"))
        quiz_repo.create(self._submission(valid_answers, "s2", user_id="bob"))
        assert [s.submission_id for s in quiz_repo.list_submissions(user_id="alice")] == ["s1"]

    def test_newest_first(self, quiz_repo: QuizRepository, valid_answers: dict[str, str]) -> None:
        quiz_repo.create(self._submission(valid_answers, "s1", user_id="alice"))
        quiz_repo.create(self._submission(valid_answers, "s2", user_id="alice"))
        assert [s.submission_id for s in quiz_repo.list_submissions(user_id="alice")] == [
            "s2",
            "s1",
        ]


class TestComparisonRepository:
    """Tests for saved comparison storage."""

    def test_round_trip(self, comparison_repo: ComparisonRepository) -> None:
        saved = comparison_repo.create("alice", "Family dogs", ["beagle", "pug"], is_public=True)

        loaded = comparison_repo.get(saved.comparison_id)

        assert loaded.user_id == "alice"
        assert loaded.name == "Family dogs"
        assert loaded.breed_ids == ["beagle", "pug"]
        assert loaded.is_public is True

    def test_get_missing(self, comparison_repo: ComparisonRepository) -> None:
        assert comparison_repo.get(999) is None

    def test_filters(self, comparison_repo: ComparisonRepository) -> None:
        comparison_repo.create("alice", "Mine", ["beagle"])
        comparison_repo.create("alice", "Shared", ["pug"], is_public=True)
        comparison_repo.create("bob", "Bob's", ["pug"], is_public=True)

        assert {c.name for c in comparison_repo.list_comparisons(user_id="alice")} == {
            "Mine",
            "Shared",
        }
        assert {c.name for c in comparison_repo.list_comparisons(is_public=True)} == {
            "Shared",
            "Bob's",
        }
        assert [c.name for c in comparison_repo.list_comparisons("alice", is_public=False)] == [
            "Mine"
        ]
        assert len(comparison_repo.list_comparisons()) == 3

    def test_update(self, comparison_repo: ComparisonRepository) -> None:
        saved = comparison_repo.create("alice", "Draft", ["beagle"])
        updated = comparison_repo.update(saved.comparison_id, name="Final", breed_ids=["pug"])
        assert updated.name == "Final"
        assert comparison_repo.get(saved.comparison_id).breed_ids == ["pug"]

    def test_update_owner_rejected(self, comparison_repo: ComparisonRepository) -> None:
        saved = comparison_repo.create("alice", "Draft", ["beagle"])
        with pytest.raises(ValueError, match="user_id"):
            comparison_repo.update(saved.comparison_id, user_id="bob")
        assert comparison_repo.get(saved.comparison_id).user_id == "alice"

    def test_update_missing(self, comparison_repo: ComparisonRepository) -> None:
        with pytest.raises(ComparisonNotFound):
            comparison_repo.update(999, name="x")

    def test_delete(self, comparison_repo: ComparisonRepository) -> None:
        saved = comparison_repo.create("alice", "Draft", ["beagle"])
        assert comparison_repo.delete(saved.comparison_id) is True
        assert comparison_repo.get(saved.comparison_id) is None
        assert comparison_repo.delete(saved.comparison_id) is False


def test_profiles_are_pydantic_models(seeded_repo: BreedRepository) -> None:
    assert all(isinstance(b, BreedProfile) for b in seeded_repo.list_breeds())
