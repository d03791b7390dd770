"""Side-by-side breed comparison."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from src.data.schemas import (
    COMPARABLE_TRAITS,
    BreedProfile,
    ComparisonResult,
    SavedComparison,
    SavedComparisonRequest,
    SavedComparisonUpdate,
)
from src.errors import AccessDenied, BreedNotFound, ComparisonNotFound, TooManyBreeds
from src.storage.repository import BreedRepository, ComparisonRepository

logger = logging.getLogger(__name__)


def trait_winner(breeds: Sequence[BreedProfile], trait: str) -> str | None:
    """Id of the breed with the strictly highest known *trait* value.

    Returns None when every value is unknown or the maximum is shared.
    """
    known = [(b.breed_id, getattr(b, trait)) for b in breeds if getattr(b, trait) is not None]
    if not known:
        return None
    top = max(value for _, value in known)
    leaders = [breed_id for breed_id, value in known if value == top]
    return leaders[0] if len(leaders) == 1 else None


def compare_breeds(breeds: Sequence[BreedProfile], max_breeds: int) -> ComparisonResult:
    """Per-trait winners for a comparison set.

    Sets smaller than two are accepted; they simply have no winners.

    Raises:
        TooManyBreeds: If more than *max_breeds* breeds are given.
    """
    if len(breeds) > max_breeds:
        raise TooManyBreeds(
            f"Can compare at most {max_breeds} breeds, got {len(breeds)}"
        )

    if len(breeds) < 2:
        winners = {trait: None for trait in COMPARABLE_TRAITS}
    else:
        winners = {trait: trait_winner(breeds, trait) for trait in COMPARABLE_TRAITS}

    return ComparisonResult(breeds=[b.breed_id for b in breeds], winners=winners)


class SavedComparisons:
    """Named comparison sets that users save and share.

    Every stored set respects the same size cap as an ad-hoc comparison
    and only names breeds that exist. Only the owner may change or delete
    a set.

    Args:
        breeds: Catalog storage, used to check breed ids.
        comparisons: Saved comparison storage.
        max_breeds: Largest allowed comparison set.
    """

    def __init__(
        self,
        breeds: BreedRepository,
        comparisons: ComparisonRepository,
        max_breeds: int,
    ) -> None:
        self.breeds = breeds
        self.comparisons = comparisons
        self.max_breeds = max_breeds

    def _load_breeds(self, breed_ids: Sequence[str]) -> list[BreedProfile]:
        if len(breed_ids) > self.max_breeds:
            raise TooManyBreeds(
                f"Can compare at most {self.max_breeds} breeds, got {len(breed_ids)}"
            )
        breeds = []
        for breed_id in breed_ids:
            breed = self.breeds.get_by_id(breed_id)
            if breed is None:
                raise BreedNotFound(f"Breed '{breed_id}' not found")
            breeds.append(breed)
        return breeds

    def _owned(self, comparison_id: int, user_id: str | None) -> SavedComparison:
        comparison = self.get(comparison_id)
        if not user_id or comparison.user_id != user_id:
            raise AccessDenied(f"Comparison {comparison_id} belongs to another user")
        return comparison

    def list_comparisons(
        self, user_id: str | None = None, is_public: bool | None = None
    ) -> list[SavedComparison]:
        return self.comparisons.list_comparisons(user_id=user_id, is_public=is_public)

    def get(self, comparison_id: int) -> SavedComparison:
        comparison = self.comparisons.get(comparison_id)
        if comparison is None:
            raise ComparisonNotFound(f"Comparison {comparison_id} not found")
        return comparison

    def create(self, request: SavedComparisonRequest) -> SavedComparison:
        """Save a new comparison set owned by ``request.user_id``.

        Raises:
            TooManyBreeds: More than ``max_breeds`` breed ids.
            BreedNotFound: A breed id is not in the catalog.
        """
        self._load_breeds(request.breed_ids)
        comparison = self.comparisons.create(
            user_id=request.user_id,
            name=request.name,
            breed_ids=request.breed_ids,
            is_public=request.is_public,
        )
        logger.info(
            "Saved comparison %d for %s (%d breeds)",
            comparison.comparison_id,
            comparison.user_id,
            len(comparison.breed_ids),
        )
        return comparison

    def update(
        self, comparison_id: int, user_id: str | None, changes: SavedComparisonUpdate
    ) -> SavedComparison:
        """Apply the fields set in *changes* to a comparison *user_id* owns.

        Raises:
            ComparisonNotFound: No comparison has this id.
            AccessDenied: *user_id* is not the owner.
            TooManyBreeds: The new breed ids exceed ``max_breeds``.
            BreedNotFound: A new breed id is not in the catalog.
        """
        self._owned(comparison_id, user_id)
        fields = changes.model_dump(exclude_unset=True, exclude_none=True)
        if "breed_ids" in fields:
            self._load_breeds(fields["breed_ids"])
        if not fields:
            return self.get(comparison_id)
        return self.comparisons.update(comparison_id, **fields)

    def delete(self, comparison_id: int, user_id: str | None) -> None:
        """Delete a comparison *user_id* owns.

        Raises:
            ComparisonNotFound: No comparison has this id.
            AccessDenied: *user_id* is not the owner.
        """
        self._owned(comparison_id, user_id)
        self.comparisons.delete(comparison_id)
        logger.info("Deleted comparison %d", comparison_id)

    def result(self, comparison_id: int) -> ComparisonResult:
        """Per-trait winners of a saved set, against the current catalog."""
        comparison = self.get(comparison_id)
        return compare_breeds(self._load_breeds(comparison.breed_ids), self.max_breeds)
