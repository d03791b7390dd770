"""Derive trait scores and compatibility flags from free-text breed data.

Scores start at a neutral baseline of 3. Each positive keyword found in the
temperament adds one point and each negative keyword removes one; the net
result is clamped to [1, 5]. Matching is a case-insensitive substring test,
so every keyword counts on its own ("energetic, active" adds 2).
"""

from __future__ import annotations

from src.data.schemas import FLAG_FIELDS, TRAIT_FIELDS

BASELINE_SCORE = 3
MIN_SCORE = 1
MAX_SCORE = 5

# trait -> (positive keywords, negative keywords)
TRAIT_KEYWORDS: dict[str, tuple[tuple[str, ...], tuple[str, ...]]] = {
    "energy_level": (
        ("energetic", "active", "lively", "playful", "spirited", "boisterous"),
        ("calm", "gentle", "lazy", "docile", "placid"),
    ),
    "friendliness": (
        ("friendly", "outgoing", "social", "affectionate", "loving", "cheerful"),
        ("aloof", "reserved", "aggressive", "suspicious", "wary"),
    ),
    "grooming_needs": (
        ("long", "coat", "fluffy", "silky", "profuse"),
        ("short", "smooth", "sleek"),
    ),
    "trainability": (
        ("intelligent", "obedient", "eager", "trainable", "responsive", "clever"),
        ("stubborn", "independent", "willful", "headstrong"),
    ),
    "exercise_needs": (
        ("active", "energetic", "working", "athletic", "agile", "tireless"),
        ("calm", "gentle", "docile"),
    ),
    "shedding_level": (
        ("double coat", "long", "heavy"),
        ("short", "wire", "hairless"),
    ),
    "barking_level": (
        ("alert", "watchful", "vigilant", "vocal"),
        ("quiet", "calm", "silent"),
    ),
}

# health_issues is scored from the breed group alone, see score_health_issues.
HEALTH_BY_GROUP: tuple[tuple[str, int], ...] = (
    ("toy", 4),
    ("working", 2),
)


def _clamp(score: int) -> int:
    return max(MIN_SCORE, min(MAX_SCORE, score))


def score_keywords(
    text: str,
    positive: tuple[str, ...],
    negative: tuple[str, ...],
) -> int:
    """Score *text* against keyword lists, starting from the baseline."""
    lowered = text.lower()
    score = BASELINE_SCORE
    score += sum(1 for keyword in positive if keyword in lowered)
    score -= sum(1 for keyword in negative if keyword in lowered)
    return _clamp(score)


def score_health_issues(breed_group: str | None) -> int:
    """Coarse health-concern score from the breed group label."""
    group = (breed_group or "").lower()
    for label, score in HEALTH_BY_GROUP:
        if label in group:
            return score
    return BASELINE_SCORE


def score_traits(temperament: str | None, breed_group: str | None) -> dict[str, int]:
    """Compute all eight trait scores for a breed.

    Args:
        temperament: Comma separated temperament words from the feed.
        breed_group: Breed group label, e.g. ``"Toy"`` or ``"Working"``.

    Returns:
        Mapping of trait field name to an integer score in [1, 5].
    """
    text = temperament or ""
    scores = {
        trait: score_keywords(text, positive, negative)
        for trait, (positive, negative) in TRAIT_KEYWORDS.items()
    }
    scores["health_issues"] = score_health_issues(breed_group)
    return {trait: scores[trait] for trait in TRAIT_FIELDS}


def derive_flags(
    temperament: str | None, breed_group: str | None
) -> dict[str, bool | None]:
    """Compute the four compatibility flags for a breed.

    Each flag is an independent predicate. With neither temperament nor
    group to go on, every flag is unknown (None).
    """
    traits = (temperament or "").lower()
    group = (breed_group or "").lower()
    if not traits.strip() and not group.strip():
        return {flag: None for flag in FLAG_FIELDS}

    def has(*words: str) -> bool:
        return any(word in traits for word in words)

    return {
        "good_with_children": has("gentle", "patient", "friendly", "loving"),
        "good_with_other_dogs": has("social", "friendly", "sociable")
        or "aggressive" not in traits,
        "good_with_cats": has("gentle") or "toy" in group or "non-sporting" in group,
        "apartment_friendly": "toy" in group or "non-sporting" in group or has("calm"),
    }


def normalize_traits(
    temperament: str | None, breed_group: str | None
) -> dict[str, int | bool | None]:
    """Trait scores and flags together, keyed by BreedProfile field name."""
    return {**score_traits(temperament, breed_group), **derive_flags(temperament, breed_group)}
