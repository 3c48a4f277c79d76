"""Semantic response cache stored in its own vector index."""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

import numpy as np

from app.config import settings
from app.core.errors import QuoteServiceError, VectorStoreUnavailableError
from app.core.models import QuoteRecord, deserialize_quotes, serialize_quotes
from app.services.embedding import EmbeddingService
from app.services.vector_store import VectorMatch, VectorRecord, VectorStore

logger = logging.getLogger(__name__)

CACHED_RESPONSE = "cached_response"
ACTUAL_SAVINGS = "actual_savings"

STATS_SCAN_TOP_K = 10000
STATS_SCAN_VALUE = 0.01


class CacheState(str, Enum):
    """Outcome of a cache lookup."""

    NO_QUERY = "no_query"
    TOO_SHORT = "too_short"
    CACHE_UNAVAILABLE = "cache_unavailable"
    HIT = "hit"
    MISS = "miss"
    ERROR = "error"


@dataclass(frozen=True)
class CacheHit:
    """A stored response that can be replayed for the current query."""

    entry_id: str
    original_query: str
    recommendation: str
    mood: str
    similarity: float
    cached_at: int
    estimated_cost: float = 0.0
    quotes: list[QuoteRecord] = field(default_factory=list)
    quote_count: int = 0


@dataclass(frozen=True)
class CacheLookup:
    """Result of checking the cache for one request."""

    state: CacheState
    query: str = ""
    mood: str = ""
    embedding: np.ndarray | None = None
    hit: CacheHit | None = None


@dataclass(frozen=True)
class CacheWriteBack:
    """Everything needed to store a freshly synthesized response."""

    query: str
    mood: str
    embedding: np.ndarray
    recommendation: str
    quotes: list[QuoteRecord]
    estimated_cost: float


def _now_ms() -> int:
    return int(time.time() * 1000)


def _new_id(prefix: str) -> str:
    return f"{prefix}_{_now_ms()}_{uuid.uuid4().hex[:9]}"


def aggregate_cache_stats(matches: list[VectorMatch], total_entries: int) -> dict:
    """
    Tally savings events against cached responses.

    Savings events record money actually saved by a cache hit; cached
    responses record what each stored answer cost to produce and so what a
    future hit could save.
    """
    potential_savings = 0.0
    actual_savings = 0.0
    total_cached_queries = 0
    savings_events = 0

    for match in matches:
        metadata = match.metadata
        if metadata.get("type") == ACTUAL_SAVINGS:
            actual_savings += float(metadata.get("costSaved") or 0.0)
            savings_events += 1
        elif metadata.get("type") == CACHED_RESPONSE or metadata.get("estimatedCost"):
            potential_savings += float(metadata.get("estimatedCost") or 0.0)
            total_cached_queries += 1

    return {
        "totalEntries": total_entries,
        "totalCachedQueries": total_cached_queries,
        "potentialSavings": potential_savings,
        "actualSavings": actual_savings,
        "cacheHitsCount": savings_events,
        "averageSavingsPerHit": actual_savings / savings_events if savings_events else 0.0,
        "efficiencyRatio": (
            actual_savings / potential_savings * 100 if potential_savings > 0 else 0.0
        ),
        "lastUpdated": datetime.now(timezone.utc).isoformat(),
    }


class SemanticCache:
    """
    Replays stored recommendations for near-identical situation queries.

    A hit needs both a similarity at or above the threshold and an exact
    mood match, so "funny" and "dramatic" answers for the same situation
    never replace each other.
    """

    def __init__(
        self,
        store: VectorStore | None,
        embedding_service: EmbeddingService,
        namespace: str | None = None,
        threshold: float | None = None,
        min_query_length: int | None = None,
        top_k: int | None = None,
        enabled: bool | None = None,
    ):
        self.store = store
        self.embedding_service = embedding_service
        self.namespace = namespace or settings.cache_namespace
        self.threshold = threshold if threshold is not None else settings.cache_similarity_threshold
        self.min_query_length = (
            min_query_length if min_query_length is not None else settings.cache_min_query_length
        )
        self.top_k = top_k or settings.cache_lookup_top_k
        self.enabled = enabled if enabled is not None else settings.cache_enabled

    def is_available(self) -> bool:
        return self.enabled and self.store is not None and self.store.is_connected()

    @staticmethod
    def cache_text(query: str, mood: str) -> str:
        """Text embedded for cache keys; the mood suffix separates tones of one situation."""
        return f"{query} [mood: {mood}]"

    async def lookup(self, query: str | None, mood: str) -> CacheLookup:
        """Check for a reusable response. Never raises."""
        if not query or not query.strip():
            return CacheLookup(state=CacheState.NO_QUERY, mood=mood)

        query = query.strip()
        if len(query) < self.min_query_length:
            logger.info("Query too short for cache, skipping")
            return CacheLookup(state=CacheState.TOO_SHORT, query=query, mood=mood)

        if not self.is_available():
            logger.info("Cache not available, skipping to normal flow")
            return CacheLookup(state=CacheState.CACHE_UNAVAILABLE, query=query, mood=mood)

        try:
            embedding = await self.embedding_service.embed(self.cache_text(query, mood))
            candidates = await asyncio.to_thread(
                self.store.query,  # type: ignore[union-attr]
                embedding,
                top_k=self.top_k,
                filter={"type": CACHED_RESPONSE},
                namespace=self.namespace,
            )
        except QuoteServiceError as e:
            logger.error(f"Cache lookup error, continuing without cache: {e.log}")
            return CacheLookup(state=CacheState.ERROR, query=query, mood=mood)

        for candidate in candidates:
            metadata = candidate.metadata
            if candidate.score < self.threshold:
                continue
            if metadata.get("mood") != mood:
                logger.debug(
                    f"Cache candidate {candidate.id} skipped: mood "
                    f"{metadata.get('mood')!r} != {mood!r}"
                )
                continue

            try:
                quotes = deserialize_quotes(metadata.get("quotes"))
                hit = CacheHit(
                    entry_id=candidate.id,
                    original_query=str(metadata.get("originalQuery", "")),
                    recommendation=str(metadata.get("llmResponse", "")),
                    mood=mood,
                    similarity=candidate.score,
                    cached_at=int(metadata.get("timestamp") or 0),
                    estimated_cost=float(metadata.get("estimatedCost") or 0.0),
                    quotes=quotes,
                    quote_count=int(metadata.get("quoteCount") or len(quotes)),
                )
            except (TypeError, ValueError) as e:
                logger.error(f"Corrupt cache entry {candidate.id}, continuing without cache: {e}")
                return CacheLookup(state=CacheState.ERROR, query=query, mood=mood)

            logger.info(f"Cache hit (similarity: {candidate.score:.4f}): {query[:50]}...")
            return CacheLookup(
                state=CacheState.HIT,
                query=query,
                mood=mood,
                embedding=embedding,
                hit=hit,
            )

        best = f"{candidates[0].score:.4f}" if candidates else "none"
        logger.info(f"Cache miss (best similarity: {best}): {query[:50]}...")
        return CacheLookup(state=CacheState.MISS, query=query, mood=mood, embedding=embedding)

    def save(self, write_back: CacheWriteBack) -> str | None:
        """Store a synthesized response. Failures are logged, never raised."""
        if not write_back.recommendation:
            logger.info("Empty LLM response, not caching")
            return None
        if not self.is_available():
            logger.info("Cache not available, skipping save")
            return None

        entry_id = _new_id("cache")
        record = VectorRecord(
            id=entry_id,
            values=write_back.embedding,
            metadata={
                "type": CACHED_RESPONSE,
                "originalQuery": write_back.query,
                "llmResponse": write_back.recommendation,
                "mood": write_back.mood,
                "quoteCount": len(write_back.quotes),
                "quotes": serialize_quotes(write_back.quotes),
                "timestamp": _now_ms(),
                "queryLength": len(write_back.query),
                "estimatedCost": write_back.estimated_cost,
            },
        )

        try:
            self.store.upsert([record], namespace=self.namespace)  # type: ignore[union-attr]
        except QuoteServiceError as e:
            logger.error(f"Error saving to cache: {e.log}")
            return None

        logger.info(f"Response saved to semantic cache: {write_back.query[:50]}...")
        return entry_id

    def record_savings(self, lookup: CacheLookup) -> str | None:
        """Log the cost a cache hit avoided. Failures are logged, never raised."""
        hit = lookup.hit
        if hit is None or lookup.embedding is None or not self.is_available():
            return None

        event_id = _new_id("savings")
        record = VectorRecord(
            id=event_id,
            values=lookup.embedding,
            metadata={
                "type": ACTUAL_SAVINGS,
                "cacheEntryId": hit.entry_id,
                "originalQuery": lookup.query,
                "matchedQuery": hit.original_query,
                "similarity": hit.similarity,
                "costSaved": hit.estimated_cost,
                "mood": hit.mood,
                "timestamp": _now_ms(),
            },
        )

        try:
            self.store.upsert([record], namespace=self.namespace)  # type: ignore[union-attr]
        except QuoteServiceError as e:
            logger.error(f"Error recording cache savings: {e.log}")
            return None
        return event_id

    def collect_stats(self) -> dict:
        """
        Scan the cache namespace and aggregate savings figures.

        Raises:
            VectorStoreUnavailableError: Cache disabled or not connected
            VectorStoreError: Redis failure during the scan
        """
        if not self.is_available():
            raise VectorStoreUnavailableError(
                "Cache statistics requested but cache is not available",
                "Cache not available",
            )

        dimension = self.store.dimension  # type: ignore[union-attr]
        matches = self.store.query(  # type: ignore[union-attr]
            [STATS_SCAN_VALUE] * dimension,
            top_k=STATS_SCAN_TOP_K,
            namespace=self.namespace,
        )
        total_entries = self.store.describe_stats()["total_vector_count"]  # type: ignore[union-attr]
        return aggregate_cache_stats(matches, total_entries)
