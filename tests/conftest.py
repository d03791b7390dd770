"""Shared test fixtures for the Breed Match test suite."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from sqlalchemy.orm import sessionmaker

from src.data.schemas import BreedProfile, NumericRange
from src.matching.narrative import NarrativeClient
from src.storage.database import create_db_engine, create_session_factory
from src.storage.repository import BreedRepository, ComparisonRepository, QuizRepository


def make_breed(name: str, **fields: object) -> BreedProfile:
    """Build a BreedProfile with neutral traits, overridable per test."""
    defaults: dict = {
        "breed_id": name.lower().replace(" ", "-"),
        "name": name,
        "temperament": "Friendly, Intelligent",
        "breed_group": "Sporting",
        "weight_range": NumericRange(min=20, max=30),
        "energy_level": 3,
        "friendliness": 3,
        "grooming_needs": 3,
        "trainability": 3,
        "health_issues": 3,
        "exercise_needs": 3,
        "shedding_level": 3,
        "barking_level": 3,
        "good_with_children": True,
        "good_with_other_dogs": True,
        "good_with_cats": False,
        "apartment_friendly": False,
    }
    defaults.update(fields)
    return BreedProfile(**defaults)


@pytest.fixture
def sample_catalog() -> list[BreedProfile]:
    """Six breeds in name order, as the repository returns them."""
    return [
        make_breed("Beagle", energy_level=4, barking_level=5, weight_range=NumericRange(min=9, max=11)),
        make_breed("Border Collie", energy_level=5, exercise_needs=5, trainability=5),
        make_breed(
            "Chihuahua",
            breed_group="Toy",
            weight_range=NumericRange(min=1, max=3),
            apartment_friendly=True,
            health_issues=4,
        ),
        make_breed("Golden Retriever", friendliness=5, trainability=5, grooming_needs=4),
        make_breed("Labrador Retriever", friendliness=5, energy_level=4),
        make_breed(
            "Shih Tzu",
            breed_group="Toy",
            energy_level=2,
            exercise_needs=1,
            weight_range=NumericRange(min=4, max=7),
            apartment_friendly=True,
        ),
    ]


@pytest.fixture
def valid_answers() -> dict[str, str]:
    """A complete quiz submission using camelCase wire keys."""
    return {
        "livingSituation": "apartment",
        "exerciseTime": "moderate",
        "experience": "first_time",
        "familySituation": "young_children",
        "groomingPreference": "moderate",
        "sizePreference": "small",
        "energyPreference": "moderate",
        "trainabilityImportance": "very_important",
    }


def narrative_matches(names: list[str], percentages: list[int]) -> list[dict]:
    """Well-formed narrative match entries."""
    return [
        {
            "breedName": name,
            "matchPercentage": pct,
            "reasoning": f"The {name} suits a calm home. It is easy to live with.",
            "pros": ["Affectionate", "Easy to train", "Adaptable"],
            "cons": ["Sheds seasonally", "Needs daily walks"],
        }
        for name, pct in zip(names, percentages, strict=True)
    ]


@pytest.fixture
def mock_narrative() -> MagicMock:
    """A NarrativeClient mock that returns five valid matches."""
    mock = MagicMock(spec=NarrativeClient)
    mock.configured = True
    mock.complete_json.return_value = {
        "matches": narrative_matches(
            ["Golden Retriever", "Labrador Retriever", "Beagle", "Shih Tzu", "Border Collie"],
            [92, 88, 81, 75, 70],
        )
    }
    return mock


@pytest.fixture
def session_factory() -> sessionmaker:
    """Session factory over a fresh in-memory SQLite database."""
    engine = create_db_engine("sqlite://")
    yield create_session_factory(engine)
    engine.dispose()


@pytest.fixture
def breed_repo(session_factory: sessionmaker) -> BreedRepository:
    return BreedRepository(session_factory)


@pytest.fixture
def quiz_repo(session_factory: sessionmaker) -> QuizRepository:
    return QuizRepository(session_factory)


@pytest.fixture
def comparison_repo(session_factory: sessionmaker) -> ComparisonRepository:
    return ComparisonRepository(session_factory)


@pytest.fixture
def seeded_repo(
    breed_repo: BreedRepository, sample_catalog: list[BreedProfile]
) -> BreedRepository:
    """Breed repository pre-loaded with the sample catalog."""
    for breed in sample_catalog:
        breed_repo.create(breed)
    return breed_repo


@pytest.fixture
def tmp_data_dir(tmp_path: Path) -> Path:
    """Create a temporary data directory structure."""
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    return data_dir


@pytest.fixture
def breed_factory():
    """Factory building BreedProfile objects with neutral defaults."""
    return make_breed
