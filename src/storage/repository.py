"""Breed catalog and quiz submission storage."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from src.data.schemas import (
    FLAG_FIELDS,
    TRAIT_FIELDS,
    BreedProfile,
    NumericRange,
    ProsAndCons,
    QuizSubmission,
    SavedComparison,
)
from src.errors import BreedNotFound, ComparisonNotFound
from src.storage.database import BreedRow, ComparisonRow, QuizResponseRow

logger = logging.getLogger(__name__)

_SCALAR_FIELDS = (
    "breed_id",
    "name",
    "external_id",
    "description",
    "temperament",
    "origin",
    "life_span",
    "breed_group",
    "image_url",
    "ai_summary",
    *TRAIT_FIELDS,
    *FLAG_FIELDS,
)

# Identity fields cannot be changed once a breed is stored.
_IMMUTABLE_FIELDS = {"breed_id", "name", "created_at", "updated_at"}


def name_key(name: str) -> str:
    """Case-insensitive identity of a breed name."""
    return name.strip().lower()


def _range_columns(prefix: str, value: NumericRange | dict | None) -> dict[str, int | None]:
    if value is None:
        return {f"{prefix}_min": None, f"{prefix}_max": None}
    rng = NumericRange.model_validate(value)
    return {f"{prefix}_min": rng.min, f"{prefix}_max": rng.max}


def _range_from_row(low: int | None, high: int | None) -> NumericRange | None:
    if low is None or high is None:
        return None
    return NumericRange(min=low, max=high)


def _profile_to_columns(profile: BreedProfile) -> dict[str, Any]:
    columns = {field: getattr(profile, field) for field in _SCALAR_FIELDS}
    columns.update(_range_columns("weight", profile.weight_range))
    columns.update(_range_columns("height", profile.height_range))
    columns["pros_and_cons"] = (
        profile.pros_and_cons.model_dump() if profile.pros_and_cons else None
    )
    columns["name_key"] = name_key(profile.name)
    columns["created_at"] = profile.created_at
    columns["updated_at"] = profile.updated_at
    return columns


def _row_to_profile(row: BreedRow) -> BreedProfile:
    data = {field: getattr(row, field) for field in _SCALAR_FIELDS}
    data["weight_range"] = _range_from_row(row.weight_min, row.weight_max)
    data["height_range"] = _range_from_row(row.height_min, row.height_max)
    data["pros_and_cons"] = row.pros_and_cons
    data["created_at"] = row.created_at
    data["updated_at"] = row.updated_at
    return BreedProfile.model_validate(data)


class BreedRepository:
    """Read and write BreedProfile records.

    Args:
        session_factory: SQLAlchemy session factory.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        self.session_factory = session_factory

    def get_by_id(self, breed_id: str) -> BreedProfile | None:
        with self.session_factory() as session:
            row = session.scalar(select(BreedRow).where(BreedRow.breed_id == breed_id))
            return _row_to_profile(row) if row else None

    def get_by_name(self, name: str) -> BreedProfile | None:
        """Look up a breed by name, ignoring case and surrounding spaces."""
        with self.session_factory() as session:
            row = session.scalar(
                select(BreedRow).where(BreedRow.name_key == name_key(name))
            )
            return _row_to_profile(row) if row else None

    def search(self, query: str, limit: int = 20) -> list[BreedProfile]:
        """Breeds whose name contains *query*, case-insensitively."""
        stmt = (
            select(BreedRow)
            .where(BreedRow.name_key.contains(name_key(query), autoescape=True))
            .order_by(BreedRow.name_key)
            .limit(limit)
        )
        with self.session_factory() as session:
            return [_row_to_profile(row) for row in session.scalars(stmt)]

    def list_breeds(self, limit: int | None = 50, offset: int = 0) -> list[BreedProfile]:
        """Breeds in case-insensitive name order; ``limit=None`` returns all."""
        stmt = select(BreedRow).order_by(BreedRow.name_key).limit(limit).offset(offset)
        with self.session_factory() as session:
            return [_row_to_profile(row) for row in session.scalars(stmt)]

    def create(self, profile: BreedProfile) -> bool:
        """Insert a new breed.

        Returns:
            True if stored, False if a breed with the same name or id
            already exists. Existing rows are never modified.
        """
        with self.session_factory() as session:
            session.add(BreedRow(**_profile_to_columns(profile)))
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                logger.info("Breed %s already stored, not overwriting", profile.name)
                return False
        return True

    def update(self, breed_id: str, **fields: Any) -> BreedProfile:
        """Back-fill fields of an existing breed.

        Raises:
            BreedNotFound: If no breed has this id.
            ValueError: If an identity field or unknown field is given.
        """
        blocked = _IMMUTABLE_FIELDS & fields.keys()
        if blocked:
            raise ValueError(f"Cannot update identity fields: {sorted(blocked)}")

        with self.session_factory() as session:
            row = session.scalar(select(BreedRow).where(BreedRow.breed_id == breed_id))
            if row is None:
                raise BreedNotFound(f"Breed '{breed_id}' not found")

            for field, value in fields.items():
                if field in ("weight_range", "height_range"):
                    for column, bound in _range_columns(field.split("_")[0], value).items():
                        setattr(row, column, bound)
                elif field == "pros_and_cons":
                    row.pros_and_cons = (
                        ProsAndCons.model_validate(value).model_dump()
                        if value is not None
                        else None
                    )
                elif field in _SCALAR_FIELDS:
                    setattr(row, field, value)
                else:
                    raise ValueError(f"Unknown breed field: {field}")

            # Validate before committing so bad scores never reach storage.
            profile = _row_to_profile(row)
            session.commit()
            return profile


class QuizRepository:
    """Store and list quiz submissions."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self.session_factory = session_factory

    def create(self, submission: QuizSubmission) -> QuizSubmission:
        with self.session_factory() as session:
            session.add(
                QuizResponseRow(
                    submission_id=submission.submission_id,
                    user_id=submission.user_id,
                    session_id=submission.session_id,
                    responses=submission.responses.model_dump(mode="json"),
                    results=[r.model_dump(mode="json") for r in submission.results],
                    created_at=submission.created_at,
                )
            )
            session.commit()
        return submission

    def list_submissions(
        self, user_id: str | None = None, session_id: str | None = None
    ) -> list[QuizSubmission]:
        """Submissions for a user and/or session, newest first."""
        stmt = select(QuizResponseRow)
        if user_id:
            stmt = stmt.where(QuizResponseRow.user_id == user_id)
        if session_id:
            stmt = stmt.where(QuizResponseRow.session_id == session_id)
        stmt = stmt.order_by(QuizResponseRow.created_at.desc(), QuizResponseRow.id.desc())

        with self.session_factory() as session:
            return [
                QuizSubmission(
                    submission_id=row.submission_id,
                    user_id=row.user_id,
                    session_id=row.session_id,
                    responses=row.responses,
                    results=row.results,
                    created_at=row.created_at,
                )
                for row in session.scalars(stmt)
            ]


def _row_to_comparison(row: ComparisonRow) -> SavedComparison:
    return SavedComparison(
        comparison_id=row.id,
        user_id=row.user_id,
        name=row.name,
        breed_ids=row.breed_ids,
        is_public=bool(row.is_public),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class ComparisonRepository:
    """Store, list and edit saved comparison sets.

    Ownership is not checked here; see SavedComparisons.
    """

    _EDITABLE_FIELDS = {"name", "breed_ids", "is_public"}

    def __init__(self, session_factory: sessionmaker) -> None:
        self.session_factory = session_factory

    def list_comparisons(
        self, user_id: str | None = None, is_public: bool | None = None
    ) -> list[SavedComparison]:
        """Saved comparisons, newest first, optionally filtered by owner and visibility."""
        stmt = select(ComparisonRow)
        if user_id:
            stmt = stmt.where(ComparisonRow.user_id == user_id)
        if is_public is not None:
            stmt = stmt.where(ComparisonRow.is_public == is_public)
        stmt = stmt.order_by(ComparisonRow.created_at.desc(), ComparisonRow.id.desc())

        with self.session_factory() as session:
            return [_row_to_comparison(row) for row in session.scalars(stmt)]

    def get(self, comparison_id: int) -> SavedComparison | None:
        with self.session_factory() as session:
            row = session.get(ComparisonRow, comparison_id)
            return _row_to_comparison(row) if row else None

    def create(
        self, user_id: str, name: str, breed_ids: list[str], is_public: bool = False
    ) -> SavedComparison:
        with self.session_factory() as session:
            row = ComparisonRow(
                user_id=user_id, name=name, breed_ids=list(breed_ids), is_public=is_public
            )
            session.add(row)
            session.commit()
            return _row_to_comparison(row)

    def update(self, comparison_id: int, **fields: Any) -> SavedComparison:
        """Change the name, breed ids or visibility of a saved comparison.

        Raises:
            ComparisonNotFound: If no comparison has this id.
            ValueError: If a field other than name / breed_ids / is_public is given.
        """
        unknown = fields.keys() - self._EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update comparison fields: {sorted(unknown)}")

        with self.session_factory() as session:
            row = session.get(ComparisonRow, comparison_id)
            if row is None:
                raise ComparisonNotFound(f"Comparison {comparison_id} not found")
            for field, value in fields.items():
                setattr(row, field, list(value) if field == "breed_ids" else value)
            session.commit()
            return _row_to_comparison(row)

    def delete(self, comparison_id: int) -> bool:
        """Remove a saved comparison; False if it did not exist."""
        with self.session_factory() as session:
            row = session.get(ComparisonRow, comparison_id)
            if row is None:
                return False
            session.delete(row)
            session.commit()
        return True
