"""Deterministic local breed scorer.

Quiz answers become per-factor targets and weights. Each breed gets a
0..1 score per factor, the weighted mean is its fit, and the fit maps
linearly onto the [60, 98] match percentage band. Unknown trait scores
count as the neutral baseline and unknown flags score halfway.

This ranker is only used when selected by configuration; it is never a
silent stand-in for a failed narrative call.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.data.schemas import BreedProfile, MatchResult, QuizAnswer
from src.data.traits import BASELINE_SCORE
from src.errors import CatalogTooSmall

MIN_PERCENTAGE = 60
MAX_PERCENTAGE = 98

ENERGY_TARGET = {"low": 1, "moderate": 3, "high": 5}
EXERCISE_AVAILABLE = {"minimal": 1, "moderate": 3, "active": 4, "very_active": 5}
GROOMING_TOLERANCE = {"minimal": 1, "moderate": 3, "high": 5}
TRAINABILITY_WEIGHT = {"not_important": 0.5, "somewhat": 1.0, "very_important": 2.0}
CHILDREN_WEIGHT = {"no_children": 0.0, "young_children": 2.0, "school_age": 1.5, "teenagers": 1.0}
APARTMENT_WEIGHT = {
    "apartment": 2.0,
    "house_small_yard": 0.5,
    "house_large_yard": 0.0,
    "farm_rural": 0.0,
}

# Upper bound (kg) of each size band, smallest first; "large" is open-ended.
SIZE_BANDS: tuple[tuple[str, float], ...] = (
    ("toy", 5),
    ("small", 11),
    ("medium", 27),
    ("large", float("inf")),
)


@dataclass(frozen=True)
class Factor:
    """One weighted aspect of how well a breed suits the owner."""

    name: str
    score: float
    weight: float
    pro: str
    con: str


def _trait(breed: BreedProfile, field: str) -> int:
    value = getattr(breed, field)
    return BASELINE_SCORE if value is None else value


def _flag(value: bool | None) -> float:
    if value is None:
        return 0.5
    return 1.0 if value else 0.0


def _size_band(weight_kg: float) -> int:
    for index, (_, upper) in enumerate(SIZE_BANDS):
        if weight_kg <= upper:
            return index
    return len(SIZE_BANDS) - 1


def score_factors(answers: QuizAnswer, breed: BreedProfile) -> list[Factor]:
    """Per-factor scores of *breed* for *answers*; zero-weight factors omitted."""
    energy = _trait(breed, "energy_level")
    exercise = _trait(breed, "exercise_needs")
    grooming = _trait(breed, "grooming_needs")
    trainability = _trait(breed, "trainability")
    friendliness = _trait(breed, "friendliness")
    barking = _trait(breed, "barking_level")
    health = _trait(breed, "health_issues")

    first_time = answers.experience.value == "first_time"
    energy_pref = answers.energy_preference.value
    exercise_time = answers.exercise_time.value
    grooming_pref = answers.grooming_preference.value
    size_pref = answers.size_preference.value
    family = answers.family_situation.value
    living = answers.living_situation.value

    factors = []

    energy_gap = abs(ENERGY_TARGET[energy_pref] - energy)
    factors.append(Factor(
        "energy",
        1 - energy_gap / 4,
        1.5,
        f"Energy level of {energy}/5 suits your wish for a {energy_pref}-energy dog",
        f"Energy level of {energy}/5 differs from the {energy_pref} energy you prefer",
    ))

    # Spare time is fine; shortfall costs twice as much as surplus.
    shortfall = exercise - EXERCISE_AVAILABLE[exercise_time]
    exercise_score = 1 - (shortfall / 4 if shortfall > 0 else -shortfall / 8)
    factors.append(Factor(
        "exercise",
        exercise_score,
        1.5,
        f"Exercise needs ({exercise}/5) fit the time you have each day",
        f"Needs more exercise ({exercise}/5) than your schedule comfortably allows",
    ))

    over_grooming = max(0, grooming - GROOMING_TOLERANCE[grooming_pref])
    factors.append(Factor(
        "grooming",
        1 - over_grooming / 4,
        1.0,
        f"Grooming needs ({grooming}/5) are within what you are happy to do",
        f"Coat care ({grooming}/5) is more than you said you want to take on",
    ))

    factors.append(Factor(
        "trainability",
        (trainability - 1) / 4,
        TRAINABILITY_WEIGHT[answers.trainability_importance.value] + (1.0 if first_time else 0.0),
        f"Trainability of {trainability}/5 makes everyday training manageable",
        f"Trainability of {trainability}/5 means training takes patience and consistency",
    ))

    factors.append(Factor(
        "friendliness",
        (friendliness - 1) / 4,
        1.0,
        f"Friendly nature ({friendliness}/5) with people and visitors",
        f"Friendliness of {friendliness}/5 can read as reserved with strangers",
    ))

    if breed.weight_range is None:
        size_score = 0.5
    else:
        midpoint = (breed.weight_range.min + breed.weight_range.max) / 2
        wanted = [name for name, _ in SIZE_BANDS].index(size_pref)
        size_score = max(0.0, 1 - 0.5 * abs(_size_band(midpoint) - wanted))
    factors.append(Factor(
        "size",
        size_score,
        1.5,
        f"Size lines up with your preference for a {size_pref} dog",
        f"Size may not match your preference for a {size_pref} dog",
    ))

    factors.append(Factor(
        "health",
        (5 - health) / 4,
        0.5,
        "Generally robust health for its type",
        f"Health concerns are above average for its type ({health}/5)",
    ))

    children_weight = CHILDREN_WEIGHT[family]
    if children_weight:
        factors.append(Factor(
            "children",
            _flag(breed.good_with_children),
            children_weight,
            "Known to be good with children",
            "Not known for being good with children; supervise closely",
        ))

    apartment_weight = APARTMENT_WEIGHT[living]
    if apartment_weight:
        factors.append(Factor(
            "apartment",
            _flag(breed.apartment_friendly),
            apartment_weight,
            "Adapts well to smaller living spaces",
            "May struggle in a smaller living space",
        ))
        factors.append(Factor(
            "barking",
            (5 - barking) / 4,
            apartment_weight / 2,
            f"Relatively quiet ({barking}/5 barking) for close neighbours",
            f"Tendency to bark ({barking}/5) can bother close neighbours",
        ))

    return factors


def fit_score(factors: list[Factor]) -> float:
    """Weighted mean of factor scores, in [0, 1]."""
    total_weight = sum(f.weight for f in factors)
    if not total_weight:
        return 0.0
    return sum(f.score * f.weight for f in factors) / total_weight


def to_percentage(fit: float) -> int:
    span = MAX_PERCENTAGE - MIN_PERCENTAGE
    return max(MIN_PERCENTAGE, min(MAX_PERCENTAGE, MIN_PERCENTAGE + round(fit * span)))


def explain(breed: BreedProfile, factors: list[Factor], percentage: int) -> MatchResult:
    """Build the MatchResult text for a scored breed."""
    ranked = sorted(factors, key=lambda f: (f.score, f.weight), reverse=True)
    best = ranked[:4] if len(ranked) > 6 and ranked[3].score >= 0.75 else ranked[:3]
    worst = ranked[::-1][:3] if ranked[-3].score < 0.5 else ranked[::-1][:2]

    reasoning = (
        f"The {breed.name} is a {percentage}% match for your answers. "
        f"Its strongest points for you are {best[0].name} and {best[1].name}. "
        f"The main thing to weigh up is {worst[0].name}."
    )
    return MatchResult(
        breed_name=breed.name,
        breed_id=breed.breed_id,
        match_percentage=percentage,
        reasoning=reasoning,
        pros=[f.pro for f in best],
        cons=[f.con for f in worst],
    )


class LocalRanker:
    """Rank the catalog with the deterministic scorer."""

    def rank(
        self, answers: QuizAnswer, catalog: list[BreedProfile], count: int = 5
    ) -> list[MatchResult]:
        """Top *count* breeds; equal percentages keep catalog order.

        Raises:
            CatalogTooSmall: If the catalog holds fewer than *count* breeds.
        """
        if len(catalog) < count:
            raise CatalogTooSmall(
                f"Need at least {count} breeds to rank, catalog has {len(catalog)}"
            )

        scored = []
        for breed in catalog:
            factors = score_factors(answers, breed)
            scored.append((breed, factors, to_percentage(fit_score(factors))))

        scored.sort(key=lambda item: item[2], reverse=True)
        return [explain(breed, factors, pct) for breed, factors, pct in scored[:count]]
