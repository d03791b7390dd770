"""Pydantic models for data validation and serialization."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any

from pydantic import (
    AliasGenerator,
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
TraitScore = Annotated[int, Field(ge=1, le=5)]

TRAIT_FIELDS: tuple[str, ...] = (
    "energy_level",
    "friendliness",
    "grooming_needs",
    "trainability",
    "health_issues",
    "exercise_needs",
    "shedding_level",
    "barking_level",
)

FLAG_FIELDS: tuple[str, ...] = (
    "good_with_children",
    "good_with_other_dogs",
    "good_with_cats",
    "apartment_friendly",
)

# Higher health_issues is worse, so it never "wins" a comparison.
COMPARABLE_TRAITS: tuple[str, ...] = (
    "energy_level",
    "friendliness",
    "trainability",
    "grooming_needs",
    "exercise_needs",
    "shedding_level",
    "barking_level",
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _CamelInput(BaseModel):
    """Accepts camelCase keys on input, serializes with field names."""

    model_config = ConfigDict(
        alias_generator=AliasGenerator(validation_alias=to_camel),
        populate_by_name=True,
    )


class NumericRange(BaseModel):
    """An inclusive measurement range, in source order."""

    min: int
    max: int


class ProsAndCons(BaseModel):
    """Generated advantages and challenges of owning a breed."""

    pros: list[NonEmptyStr] = Field(min_length=1)
    cons: list[NonEmptyStr] = Field(min_length=1)


class BreedSourceRecord(BaseModel):
    """Raw breed record as yielded by a breed feed.

    Accepts The Dog API payload shape: ``weight``/``height`` may be an
    ``{"imperial", "metric"}`` object and the image may be nested.
    """

    external_id: str | None = Field(default=None, validation_alias="id")
    name: NonEmptyStr
    temperament: str | None = None
    breed_group: str | None = None
    life_span: str | None = None
    origin: str | None = None
    bred_for: str | None = None
    weight: str | None = None
    height: str | None = None
    image_url: str | None = None
    reference_image_id: str | None = None

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _flatten_image(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("image"), dict):
            data = {**data, "image_url": data.get("image_url") or data["image"].get("url")}
        return data

    @field_validator("external_id", mode="before")
    @classmethod
    def _id_to_str(cls, value: Any) -> str | None:
        if value is None:
            return None
        return str(value)

    @field_validator("weight", "height", mode="before")
    @classmethod
    def _metric_measurement(cls, value: Any) -> str | None:
        if isinstance(value, dict):
            return value.get("metric")
        return value


class BreedProfile(BaseModel):
    """Canonical representation of one dog breed."""

    breed_id: str = Field(description="Slug of the lower-cased breed name")
    name: NonEmptyStr
    external_id: str | None = None
    description: str | None = None
    temperament: str | None = None
    origin: str | None = None
    life_span: str | None = None
    breed_group: str | None = None
    image_url: str | None = None

    weight_range: NumericRange | None = Field(default=None, description="Metric, kg")
    height_range: NumericRange | None = Field(default=None, description="Metric, cm")

    energy_level: TraitScore | None = None
    friendliness: TraitScore | None = None
    grooming_needs: TraitScore | None = None
    trainability: TraitScore | None = None
    health_issues: TraitScore | None = None
    exercise_needs: TraitScore | None = None
    shedding_level: TraitScore | None = None
    barking_level: TraitScore | None = None

    good_with_children: bool | None = None
    good_with_other_dogs: bool | None = None
    good_with_cats: bool | None = None
    apartment_friendly: bool | None = None

    ai_summary: str | None = None
    pros_and_cons: ProsAndCons | None = None

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class LivingSituation(str, Enum):
    APARTMENT = "apartment"
    HOUSE_SMALL_YARD = "house_small_yard"
    HOUSE_LARGE_YARD = "house_large_yard"
    FARM_RURAL = "farm_rural"


class ExerciseTime(str, Enum):
    MINIMAL = "minimal"
    MODERATE = "moderate"
    ACTIVE = "active"
    VERY_ACTIVE = "very_active"


class Experience(str, Enum):
    FIRST_TIME = "first_time"
    SOME_EXPERIENCE = "some_experience"
    EXPERIENCED = "experienced"


class FamilySituation(str, Enum):
    NO_CHILDREN = "no_children"
    YOUNG_CHILDREN = "young_children"
    SCHOOL_AGE = "school_age"
    TEENAGERS = "teenagers"


class GroomingPreference(str, Enum):
    MINIMAL = "minimal"
    MODERATE = "moderate"
    HIGH = "high"


class SizePreference(str, Enum):
    TOY = "toy"
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class EnergyPreference(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class TrainabilityImportance(str, Enum):
    NOT_IMPORTANT = "not_important"
    SOMEWHAT = "somewhat"
    VERY_IMPORTANT = "very_important"


class QuizAnswer(_CamelInput):
    """One selected option for each of the eight quiz questions."""

    living_situation: LivingSituation
    exercise_time: ExerciseTime
    experience: Experience
    family_situation: FamilySituation
    grooming_preference: GroomingPreference
    size_preference: SizePreference
    energy_preference: EnergyPreference
    trainability_importance: TrainabilityImportance


QUESTION_IDS: tuple[str, ...] = tuple(QuizAnswer.model_fields)


class MatchResult(_CamelInput):
    """One ranked breed recommendation.

    Accepts the camelCase keys (``breedName``, ``matchPercentage``) used in
    narrative collaborator responses.
    """

    breed_name: NonEmptyStr
    breed_id: str | None = Field(default=None, description="Linked BreedProfile, if any")
    match_percentage: int = Field(ge=60, le=98)
    reasoning: NonEmptyStr
    pros: list[NonEmptyStr] = Field(min_length=1)
    cons: list[NonEmptyStr] = Field(min_length=1)


class QuizSubmission(BaseModel):
    """Stored quiz answers with their validated match results."""

    submission_id: str
    user_id: str | None = None
    session_id: str | None = None
    responses: QuizAnswer
    results: list[MatchResult]
    created_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def _exactly_one_identity(self) -> QuizSubmission:
        if bool(self.user_id) == bool(self.session_id):
            raise ValueError("exactly one of user_id or session_id is required")
        return self


class QuizSubmitRequest(_CamelInput):
    """Body of a quiz submission; answers are validated by the recommender."""

    responses: dict[str, Any] = Field(default_factory=dict)
    user_id: str | None = None
    session_id: str | None = None


class ComparisonResult(BaseModel):
    """Per-trait winners of a side-by-side breed comparison."""

    breeds: list[str] = Field(description="Compared breed ids, in input order")
    winners: dict[str, str | None] = Field(
        description="Trait name to winning breed id, or None when no single winner"
    )


class SyncReport(BaseModel):
    """Outcome of one breed ingestion run."""

    created: int = 0
    skipped: int = 0
    failed: int = 0


ComparisonName = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)
]


class SavedComparison(BaseModel):
    """A named comparison set stored for its owner."""

    comparison_id: int
    user_id: str
    name: str
    breed_ids: list[str] = Field(description="Breed ids, in the order they were saved")
    is_public: bool = False
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class SavedComparisonRequest(_CamelInput):
    """Body of a request that saves a new comparison set."""

    user_id: NonEmptyStr
    name: ComparisonName
    breed_ids: list[NonEmptyStr] = Field(default_factory=list)
    is_public: bool = False


class SavedComparisonUpdate(_CamelInput):
    """Partial update of a saved comparison; unset fields are kept."""

    name: ComparisonName | None = None
    breed_ids: list[NonEmptyStr] | None = None
    is_public: bool | None = None
