"""FastAPI application factory with lifespan management."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.config import Config, get_config
from src.data.breed_source import DogApiClient
from src.errors import (
    AccessDenied,
    BreedMatchError,
    BreedNotFound,
    CatalogTooSmall,
    ComparisonNotFound,
    ExternalResponseMalformed,
    ExternalUnavailable,
    InvalidIdentity,
    InvalidQuizAnswer,
    TooManyBreeds,
)
from src.matching.comparison import SavedComparisons
from src.matching.enrichment import BreedEnricher
from src.matching.narrative import NarrativeClient
from src.matching.recommender import BreedRecommender, NarrativeRanker
from src.matching.scorer import LocalRanker
from src.storage.database import create_db_engine, create_session_factory
from src.storage.repository import BreedRepository, ComparisonRepository, QuizRepository

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[BreedMatchError], int] = {
    InvalidQuizAnswer: 422,
    InvalidIdentity: 422,
    TooManyBreeds: 400,
    BreedNotFound: 404,
    ComparisonNotFound: 404,
    AccessDenied: 403,
    CatalogTooSmall: 409,
    ExternalResponseMalformed: 502,
    ExternalUnavailable: 503,
}


async def handle_breed_match_error(request: Request, exc: BreedMatchError) -> JSONResponse:
    """Render a core error as JSON with its stage and retry hint."""
    status = next(
        (code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)), 500
    )
    if status >= 500:
        logger.error("%s at stage %s: %s", type(exc).__name__, exc.stage, exc.message)
    return JSONResponse(
        status_code=status,
        content={
            "error": type(exc).__name__,
            "message": exc.message,
            "stage": exc.stage,
            "retryable": exc.retryable,
        },
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BreedMatchError, handle_breed_match_error)


def init_state(app: FastAPI, config: Config) -> None:
    """Create the shared services used by every request."""
    engine = create_db_engine(config.database_url)
    session_factory = create_session_factory(engine)

    breeds = BreedRepository(session_factory)
    narrative = NarrativeClient.from_config(config)
    if config.scorer_backend == "local":
        ranker = LocalRanker()
    else:
        ranker = NarrativeRanker(narrative)
        if not narrative.configured:
            logger.warning("OPENAI_API_KEY is not set; quiz submissions will fail")
    logger.info("Using %s breed ranker", type(ranker).__name__)

    app.state.config = config
    app.state.engine = engine
    app.state.breeds = breeds
    app.state.dog_api = DogApiClient(
        config.dog_api_url, config.dog_api_key, timeout=config.dog_api_timeout
    )
    app.state.recommender = BreedRecommender(
        breeds,
        QuizRepository(session_factory),
        ranker,
        match_count=config.match_count,
    )
    app.state.enricher = BreedEnricher(breeds, narrative)
    app.state.comparisons = SavedComparisons(
        breeds, ComparisonRepository(session_factory), max_breeds=config.max_compare
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Initialize shared resources on startup, clean up on shutdown."""
    init_state(app, get_config())

    yield

    app.state.engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title="Breed Match",
        description="Dog breed catalog, comparison and quiz-based breed matching",
        version="0.1.0",
        lifespan=lifespan,
    )
    register_error_handlers(app)

    from src.api.routes import router

    app.include_router(router)

    return app
