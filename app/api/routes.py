"""API routes for the movie quote service."""

import asyncio
import logging
import time

from fastapi import APIRouter, BackgroundTasks

from app.api.dependencies import MetricsDep, PipelineDep, SemanticCacheDep
from app.api.schemas import (
    ActorSearchRequest,
    CacheStatsResponse,
    ErrorResponse,
    MovieQuoteRequest,
    MovieSearchRequest,
    QuoteResponse,
    ServiceInfoResponse,
)
from app.services.metrics import Metrics
from app.services.semantic_cache import CacheState, CacheWriteBack, SemanticCache

logger = logging.getLogger(__name__)

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid request"},
    404: {"model": ErrorResponse, "description": "No matching data"},
    500: {"model": ErrorResponse, "description": "Internal server error"},
    503: {"model": ErrorResponse, "description": "Upstream service unavailable"},
}


def save_to_cache(
    semantic_cache: SemanticCache,
    write_back: CacheWriteBack,
    metrics: Metrics,
) -> None:
    """Background task run after the response has been sent."""
    entry_id = semantic_cache.save(write_back)
    metrics.record_write_back(entry_id is not None)


def _record_cache_outcome(metrics: Metrics, state: CacheState) -> None:
    if state == CacheState.HIT:
        metrics.record_cache_hit()
    elif state == CacheState.MISS:
        metrics.record_cache_miss()
    else:
        metrics.record_cache_skip()


@router.post(
    "/movie-quotes",
    response_model=QuoteResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
)
async def movie_quotes(
    request: MovieQuoteRequest,
    background_tasks: BackgroundTasks,
    pipeline: PipelineDep,
    semantic_cache: SemanticCacheDep,
    metrics: MetricsDep,
) -> QuoteResponse:
    """
    Recommend movie quotes for a described situation.

    Returns a stored recommendation if a near-identical query with the same
    mood was answered before; otherwise searches, scores and synthesizes a
    new one and caches it after the response is sent.
    """
    start_time = time.time()
    result = await pipeline.run_situation(request.naturalLanguageQuery, request.mood)
    _record_cache_outcome(metrics, result.cache_state)

    if result.write_back is not None:
        background_tasks.add_task(save_to_cache, semantic_cache, result.write_back, metrics)
    if result.savings is not None:
        background_tasks.add_task(semantic_cache.record_savings, result.savings)

    metrics.record_request("movie-quotes", (time.time() - start_time) * 1000)
    return QuoteResponse(**result.response)


@router.post(
    "/search-by-actor",
    response_model=QuoteResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
)
async def search_by_actor(
    request: ActorSearchRequest,
    pipeline: PipelineDep,
    metrics: MetricsDep,
) -> QuoteResponse:
    """Recommend an actor's best-known quotable lines."""
    start_time = time.time()
    response = await pipeline.run_actor(request.actorName)
    metrics.record_request("search-by-actor", (time.time() - start_time) * 1000)
    return QuoteResponse(**response)


@router.post(
    "/search-by-movie",
    response_model=QuoteResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
)
async def search_by_movie(
    request: MovieSearchRequest,
    pipeline: PipelineDep,
    metrics: MetricsDep,
) -> QuoteResponse:
    """Recommend quotable lines from one movie in the quote index."""
    start_time = time.time()
    response = await pipeline.run_movie(request.movieTitle)
    metrics.record_request("search-by-movie", (time.time() - start_time) * 1000)
    return QuoteResponse(**response)


@router.get(
    "/cache-stats",
    response_model=CacheStatsResponse,
    responses={503: {"model": ErrorResponse, "description": "Cache not available"}},
)
async def cache_stats(
    semantic_cache: SemanticCacheDep,
    metrics: MetricsDep,
) -> CacheStatsResponse:
    """Actual vs potential savings from the semantic cache."""
    stats = await asyncio.to_thread(semantic_cache.collect_stats)
    logger.info(
        f"Cache stats: {stats['totalCachedQueries']} cached queries, "
        f"${stats['actualSavings']:.6f} actual savings from {stats['cacheHitsCount']} cache hits"
    )
    return CacheStatsResponse(cacheStats=stats, session=metrics.get_stats())


@router.get("/health", response_model=ServiceInfoResponse)
async def api_health() -> ServiceInfoResponse:
    """Describe the API and its endpoints."""
    return ServiceInfoResponse(
        service="Movie Quotes API",
        status="healthy",
        endpoints=[
            "POST /api/movie-quotes - Get movie quote recommendations",
            "POST /api/search-by-actor - Search quotes by actor name",
            "POST /api/search-by-movie - Search quotes by movie title",
            "GET /api/cache-stats - Get cache statistics and cost savings",
            "GET /api/health - Health check",
        ],
    )
