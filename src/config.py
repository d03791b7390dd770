"""Central application configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


def _dog_api_key() -> str | None:
    return os.getenv("DOG_API_KEY") or os.getenv("THE_DOG_API_KEY")


@dataclass(frozen=True)
class Config:
    """Central application configuration.

    Reads from environment variables with sensible defaults.
    All paths are resolved relative to project root.
    """

    # Paths
    data_dir: Path = field(default_factory=lambda: Path(os.getenv("DATA_DIR", "data")))
    breed_seed_file: str | None = field(
        default_factory=lambda: os.getenv("BREED_SEED_FILE")
    )

    # Storage
    database_url: str = field(
        default_factory=lambda: os.getenv("DATABASE_URL", "sqlite:///data/breeds.db")
    )

    # Breed feed
    dog_api_url: str = field(
        default_factory=lambda: os.getenv("DOG_API_URL", "https://api.thedogapi.com/v1")
    )
    dog_api_key: str | None = field(default_factory=_dog_api_key)
    dog_api_timeout: int = 30

    # Narrative collaborator
    openai_api_key: str | None = field(default_factory=lambda: os.getenv("OPENAI_API_KEY"))
    openai_model: str = field(default_factory=lambda: os.getenv("OPENAI_MODEL", "gpt-4o"))
    llm_timeout_seconds: float = field(
        default_factory=lambda: float(os.getenv("LLM_TIMEOUT_SECONDS", "30"))
    )
    llm_max_retries: int = field(
        default_factory=lambda: int(os.getenv("LLM_MAX_RETRIES", "0"))
    )
    llm_temperature: float = field(
        default_factory=lambda: float(os.getenv("LLM_TEMPERATURE", "0.7"))
    )

    # Matching
    scorer_backend: str = field(
        default_factory=lambda: os.getenv("SCORER_BACKEND", "narrative")
    )
    match_count: int = 5
    max_compare: int = 4
    search_limit: int = 20

    # Server
    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))


def get_config() -> Config:
    """Get application configuration.

    Returns:
        Config instance with values from environment or defaults.
    """
    return Config()
