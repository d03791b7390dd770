"""FastAPI routes for the breed catalog, comparisons, quiz and health check."""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import APIRouter, Query, Request, Response
from starlette.concurrency import run_in_threadpool

from src.data.breed_source import load_breed_file
from src.data.processor import sync_breeds
from src.data.schemas import (
    BreedProfile,
    ComparisonResult,
    QuizSubmission,
    QuizSubmitRequest,
    SavedComparison,
    SavedComparisonRequest,
    SavedComparisonUpdate,
    SyncReport,
)
from src.errors import BreedNotFound, InvalidIdentity, TooManyBreeds
from src.matching.comparison import compare_breeds
from src.storage.database import ping

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(request: Request) -> dict:
    """Health check endpoint for monitoring.

    Returns:
        Dict with system health status.
    """
    db_healthy = ping(request.app.state.engine)
    return {
        "status": "healthy" if db_healthy else "degraded",
        "database": "connected" if db_healthy else "disconnected",
    }


@router.get("/api/breeds", response_model=list[BreedProfile])
async def list_breeds(
    request: Request,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    search: str | None = None,
) -> list[BreedProfile]:
    """List catalog breeds by name, or search them by name substring."""
    breeds = request.app.state.breeds
    if search and search.strip():
        return breeds.search(search.strip(), limit=request.app.state.config.search_limit)
    return breeds.list_breeds(limit=limit, offset=offset)


@router.get("/api/breeds/{breed_id}", response_model=BreedProfile)
async def get_breed(request: Request, breed_id: str) -> BreedProfile:
    breed = request.app.state.breeds.get_by_id(breed_id)
    if breed is None:
        raise BreedNotFound(f"Breed '{breed_id}' not found")
    return breed


@router.post("/api/breeds/sync", response_model=SyncReport)
async def sync_catalog(request: Request) -> SyncReport:
    """Ingest breeds from the configured seed file or The Dog API.

    Existing breeds are left untouched.
    """
    config = request.app.state.config
    dog_api = request.app.state.dog_api

    if config.breed_seed_file:
        records = await run_in_threadpool(load_breed_file, Path(config.breed_seed_file))
    else:
        records = await run_in_threadpool(dog_api.fetch_breeds)

    return await run_in_threadpool(
        sync_breeds, records, request.app.state.breeds, dog_api.get_image_url
    )


@router.post("/api/breeds/{breed_id}/enrich", response_model=BreedProfile)
async def enrich_breed(request: Request, breed_id: str) -> BreedProfile:
    """Generate the summary and pros/cons of one breed."""
    return await run_in_threadpool(request.app.state.enricher.enrich, breed_id)


@router.get("/api/compare", response_model=ComparisonResult)
async def compare(
    request: Request,
    ids: list[str] | None = Query(None),  # noqa: B008
) -> ComparisonResult:
    """Per-trait winners across up to four breeds.

    Args:
        request: FastAPI request object.
        ids: Breed ids, repeated (``?ids=a&ids=b``).

    Returns:
        ComparisonResult as JSON.
    """
    ids = ids or []
    max_compare = request.app.state.config.max_compare
    if len(ids) > max_compare:
        raise TooManyBreeds(f"Can compare at most {max_compare} breeds, got {len(ids)}")

    breeds = []
    for breed_id in ids:
        breed = request.app.state.breeds.get_by_id(breed_id)
        if breed is None:
            raise BreedNotFound(f"Breed '{breed_id}' not found")
        breeds.append(breed)
    return compare_breeds(breeds, max_breeds=max_compare)


@router.get("/api/comparisons", response_model=list[SavedComparison])
async def list_comparisons(
    request: Request,
    user_id: str | None = Query(None, alias="userId"),
    is_public: bool | None = Query(None, alias="isPublic"),
) -> list[SavedComparison]:
    """Saved comparisons, newest first, filtered by owner and/or visibility."""
    return request.app.state.comparisons.list_comparisons(user_id=user_id, is_public=is_public)


@router.get("/api/comparisons/{comparison_id}", response_model=SavedComparison)
async def get_comparison(request: Request, comparison_id: int) -> SavedComparison:
    return request.app.state.comparisons.get(comparison_id)


@router.get("/api/comparisons/{comparison_id}/result", response_model=ComparisonResult)
async def comparison_result(request: Request, comparison_id: int) -> ComparisonResult:
    """Per-trait winners of a saved comparison set."""
    return request.app.state.comparisons.result(comparison_id)


@router.post("/api/comparisons", response_model=SavedComparison, status_code=201)
async def create_comparison(request: Request, body: SavedComparisonRequest) -> SavedComparison:
    """Save a named comparison set of up to four breeds.

    Args:
        request: FastAPI request object.
        body: Owner userId, name, breedIds and isPublic.

    Returns:
        The stored SavedComparison.
    """
    return request.app.state.comparisons.create(body)


@router.put("/api/comparisons/{comparison_id}", response_model=SavedComparison)
async def update_comparison(
    request: Request,
    comparison_id: int,
    body: SavedComparisonUpdate,
    user_id: str | None = Query(None, alias="userId"),
) -> SavedComparison:
    """Rename, re-pick or re-share a comparison; owner only."""
    return request.app.state.comparisons.update(comparison_id, user_id, body)


@router.delete("/api/comparisons/{comparison_id}", status_code=204)
async def delete_comparison(
    request: Request,
    comparison_id: int,
    user_id: str | None = Query(None, alias="userId"),
) -> Response:
    request.app.state.comparisons.delete(comparison_id, user_id)
    return Response(status_code=204)


@router.post("/api/quiz/submit", response_model=QuizSubmission, status_code=201)
async def submit_quiz(request: Request, body: QuizSubmitRequest) -> QuizSubmission:
    """Score quiz answers and store the five best breed matches.

    Args:
        request: FastAPI request object.
        body: Quiz responses plus exactly one of userId / sessionId.

    Returns:
        The stored QuizSubmission.
    """
    recommender = request.app.state.recommender
    return await run_in_threadpool(
        recommender.recommend,
        body.responses,
        user_id=body.user_id,
        session_id=body.session_id,
    )


@router.get("/api/quiz/results", response_model=list[QuizSubmission])
async def quiz_results(
    request: Request,
    user_id: str | None = Query(None, alias="userId"),
    session_id: str | None = Query(None, alias="sessionId"),
) -> list[QuizSubmission]:
    """Stored quiz submissions for a user or session, newest first."""
    if not user_id and not session_id:
        raise InvalidIdentity("Provide a userId or sessionId")
    return request.app.state.recommender.results_for(user_id=user_id, session_id=session_id)
