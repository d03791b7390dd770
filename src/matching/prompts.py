"""Deterministic prompt construction for the narrative collaborator."""

from __future__ import annotations

import json

from src.data.schemas import FLAG_FIELDS, TRAIT_FIELDS, BreedProfile, QuizAnswer

QUESTION_LABELS: dict[str, str] = {
    "living_situation": "Living situation",
    "exercise_time": "Daily exercise time available",
    "experience": "Dog ownership experience",
    "family_situation": "Family situation",
    "grooming_preference": "Grooming preference",
    "size_preference": "Size preference",
    "energy_preference": "Energy level preference",
    "trainability_importance": "Importance of trainability",
}


def project_breed(breed: BreedProfile) -> dict:
    """Every field of *breed* that matters for matching, in a fixed order."""
    data: dict = {"name": breed.name, "temperament": breed.temperament}
    for field in TRAIT_FIELDS:
        data[field] = getattr(breed, field)
    for field in FLAG_FIELDS:
        data[field] = getattr(breed, field)
    data["weight_min_kg"] = breed.weight_range.min if breed.weight_range else None
    data["weight_max_kg"] = breed.weight_range.max if breed.weight_range else None
    return data


def project_catalog(catalog: list[BreedProfile]) -> list[dict]:
    """Catalog projection in catalog order; nothing is dropped."""
    return [project_breed(breed) for breed in catalog]


def build_recommendation_prompt(
    answers: QuizAnswer, catalog: list[BreedProfile], count: int = 5
) -> str:
    """Prompt asking for the *count* best breeds for *answers*.

    The same answers and catalog always produce the same prompt.
    """
    answer_lines = "\n".join(
        f"- {label}: {getattr(answers, question).value}"
        for question, label in QUESTION_LABELS.items()
    )
    catalog_json = json.dumps(project_catalog(catalog), indent=2, ensure_ascii=False)

    return f"""A prospective dog owner answered a breed-matching quiz. Recommend the {count} breeds from the catalog below that suit them best.

Quiz answers:
{answer_lines}

Breed catalog (trait scores are 1-5; health_issues is higher when the breed has more health concerns; flags may be null when unknown):
{catalog_json}

Weigh living space, exercise needs against available time, experience required, family compatibility, grooming, size, energy and trainability.

Respond with a JSON object of the form {{"matches": [...]}} where "matches" holds exactly {count} entries, best match first. Each entry must have:
- "breedName": the exact name from the catalog
- "matchPercentage": an integer from 60 to 98
- "reasoning": two or three sentences on why the breed fits
- "pros": three or four short strings on what suits this owner
- "cons": two or three short strings on challenges to consider
"""


def build_summary_prompt(breed: BreedProfile) -> str:
    """Prompt for a multi-paragraph breed overview."""
    weight = (
        f"{breed.weight_range.min}-{breed.weight_range.max} kg"
        if breed.weight_range
        else "Unknown"
    )
    height = (
        f"{breed.height_range.min}-{breed.height_range.max} cm"
        if breed.height_range
        else "Unknown"
    )
    return f"""Write an engaging, accurate overview of the {breed.name} for people considering this breed.

Breed data:
- Temperament: {breed.temperament or "Not specified"}
- Origin: {breed.origin or "Unknown"}
- Life span: {breed.life_span or "Unknown"}
- Weight: {weight}
- Height: {height}
- Energy level: {breed.energy_level}/5
- Friendliness: {breed.friendliness}/5
- Trainability: {breed.trainability}/5
- Exercise needs: {breed.exercise_needs}/5

Use three or four paragraphs covering history and origin, personality, physical traits and care, and the ideal owner and home.
"""


def build_pros_cons_prompt(breed: BreedProfile) -> str:
    """Prompt for a balanced pros/cons list as JSON."""
    return f"""Give a balanced list of pros and cons of owning a {breed.name}.

Breed data:
- Temperament: {breed.temperament or "Not specified"}
- Energy level: {breed.energy_level}/5
- Friendliness: {breed.friendliness}/5
- Grooming needs: {breed.grooming_needs}/5
- Trainability: {breed.trainability}/5
- Health issues: {breed.health_issues}/5
- Exercise needs: {breed.exercise_needs}/5
- Good with children: {breed.good_with_children}
- Good with other dogs: {breed.good_with_other_dogs}
- Apartment friendly: {breed.apartment_friendly}

Respond with a JSON object {{"pros": [...], "cons": [...]}} holding four or five specific pros and three or four specific cons.
"""
