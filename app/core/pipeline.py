"""Quote pipeline - orchestrates classification, caching, search, scoring and synthesis."""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

from app.config import settings
from app.core.errors import InvalidRequestError, NotFoundError
from app.core.models import QuoteRecord, quote_from_metadata
from app.services.classifier import QueryContext, classify
from app.services.cost import estimate_request_cost
from app.services.embedding import EmbeddingService
from app.services.prompts import build_no_results_message
from app.services.scorer import rank_quotes
from app.services.semantic_cache import CacheLookup, CacheState, CacheWriteBack, SemanticCache
from app.services.synthesizer import ResponseSynthesizer, Synthesis
from app.services.vector_store import VectorStore

logger = logging.getLogger(__name__)

NOT_APPLICABLE = "N/A"


@dataclass(frozen=True)
class SituationContext:
    """Request-scoped state threaded through the situation stages."""

    query: str
    requested_mood: str | None = None
    query_context: QueryContext | None = None
    cache: CacheLookup | None = None
    quotes: list[QuoteRecord] = field(default_factory=list)
    synthesis: Synthesis | None = None

    @property
    def cache_hit(self) -> bool:
        return self.cache is not None and self.cache.state == CacheState.HIT


@dataclass(frozen=True)
class SituationResult:
    """The response body plus the follow-up cache work for after it is sent."""

    response: dict
    cache_state: CacheState
    write_back: CacheWriteBack | None = None
    savings: CacheLookup | None = None


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def format_quote(quote: QuoteRecord, score: str | None = None) -> dict:
    """Shape a QuoteRecord for the availableQuotes list."""
    item = {
        "quote": quote.quote,
        "actor": quote.actor,
        "character": quote.character,
        "movie": quote.movie,
        "year": quote.year,
        "score": score if score is not None else f"{quote.score:.2f}",
    }
    return {key: value for key, value in item.items() if value is not None}


class QuotePipeline:
    """
    Runs the three request chains.

    Situation flow:
    1. Parse and classify the query (situation tags, mood)
    2. Check the semantic cache; a hit turns every later stage into a no-op
    3. Embed the query and search the quote index
    4. Re-score, filter and truncate candidates
    5. Synthesize the recommendation
    6. Hand back the response and, on a miss, the cache write-back
    """

    def __init__(
        self,
        embedding_service: EmbeddingService,
        quote_store: VectorStore,
        semantic_cache: SemanticCache,
        synthesizer: ResponseSynthesizer,
        quote_namespace: str | None = None,
        search_top_k: int | None = None,
        min_relevance_score: float | None = None,
        max_quotes: int | None = None,
    ):
        self.embedding_service = embedding_service
        self.quote_store = quote_store
        self.semantic_cache = semantic_cache
        self.synthesizer = synthesizer
        self.quote_namespace = quote_namespace or settings.quote_namespace
        self.search_top_k = search_top_k or settings.search_top_k
        self.min_relevance_score = (
            min_relevance_score
            if min_relevance_score is not None
            else settings.min_relevance_score
        )
        self.max_quotes = max_quotes or settings.max_quotes

    # Situation stages

    def parse_request(self, ctx: SituationContext) -> SituationContext:
        if not ctx.query or not ctx.query.strip():
            raise InvalidRequestError(
                "Movie quote situation not provided",
                "Please describe the situation where you need a movie quote",
            )

        query_context = classify(ctx.query, ctx.requested_mood)
        logger.info(
            f"Detected situations: {query_context.situation_types}, "
            f"mood: {query_context.mood}"
        )
        return replace(ctx, query_context=query_context)

    async def check_cache(self, ctx: SituationContext) -> SituationContext:
        lookup = await self.semantic_cache.lookup(
            ctx.query_context.original_query,
            ctx.query_context.mood,
        )
        return replace(ctx, cache=lookup)

    async def search_quotes(self, ctx: SituationContext) -> SituationContext:
        if ctx.cache_hit:
            return ctx

        embedding = await self.embedding_service.embed(ctx.query_context.original_query)
        matches = await asyncio.to_thread(
            self.quote_store.query,
            embedding,
            top_k=self.search_top_k,
            namespace=self.quote_namespace,
        )
        candidates = [
            quote
            for quote in (quote_from_metadata(m.metadata, m.score) for m in matches)
            if quote is not None
        ]
        logger.info(f"Found {len(candidates)} candidate quotes")
        return replace(ctx, quotes=candidates)

    async def score_quotes(self, ctx: SituationContext) -> SituationContext:
        if ctx.cache_hit:
            return ctx

        ranked = rank_quotes(
            ctx.quotes,
            ctx.query_context,
            min_score=self.min_relevance_score,
            limit=self.max_quotes,
        )
        logger.info(f"Kept {len(ranked)} quotes after scoring")
        return replace(ctx, quotes=ranked)

    async def generate_response(self, ctx: SituationContext) -> SituationContext:
        if ctx.cache_hit:
            return ctx

        synthesis = await self.synthesizer.recommend_for_situation(
            ctx.query_context.original_query,
            ctx.query_context.mood,
            ctx.quotes,
        )
        return replace(ctx, synthesis=synthesis)

    def build_response(self, ctx: SituationContext) -> dict:
        if ctx.cache_hit:
            hit = ctx.cache.hit
            return {
                "success": True,
                "recommendation": hit.recommendation,
                "situation": ctx.query_context.original_query,
                "mood": ctx.query_context.mood,
                "quotesFound": hit.quote_count,
                "availableQuotes": [format_quote(q) for q in hit.quotes],
                "cached": True,
                "cacheMatch": {
                    "originalQuery": hit.original_query,
                    "similarity": hit.similarity,
                    "cachedAt": hit.cached_at,
                    "costSaved": hit.estimated_cost,
                },
                "timestamp": _timestamp(),
            }

        return {
            "success": True,
            "recommendation": ctx.synthesis.text,
            "situation": ctx.query_context.original_query,
            "mood": ctx.query_context.mood,
            "quotesFound": len(ctx.quotes),
            "availableQuotes": [format_quote(q) for q in ctx.quotes],
            "cached": False,
            "timestamp": _timestamp(),
        }

    def build_write_back(self, ctx: SituationContext) -> CacheWriteBack | None:
        lookup = ctx.cache
        if ctx.cache_hit or lookup is None or lookup.state != CacheState.MISS:
            return None
        if lookup.embedding is None or not ctx.synthesis or not ctx.synthesis.text:
            return None

        return CacheWriteBack(
            query=lookup.query,
            mood=lookup.mood,
            embedding=lookup.embedding,
            recommendation=ctx.synthesis.text,
            quotes=ctx.quotes,
            estimated_cost=estimate_request_cost(
                lookup.query,
                ctx.synthesis.prompt,
                ctx.synthesis.text,
                chat_model=self.synthesizer.llm_service.model,
                embedding_model=self.embedding_service.model,
            ),
        )

    async def run_situation(self, query: str | None, mood: str | None = None) -> SituationResult:
        """Run the situation chain for one request."""
        ctx = self.parse_request(SituationContext(query=query or "", requested_mood=mood))
        for stage in (
            self.check_cache,
            self.search_quotes,
            self.score_quotes,
            self.generate_response,
        ):
            ctx = await stage(ctx)

        return SituationResult(
            response=self.build_response(ctx),
            cache_state=ctx.cache.state,
            write_back=self.build_write_back(ctx),
            savings=ctx.cache if ctx.cache_hit else None,
        )

    # Actor and movie chains

    async def run_actor(self, actor_name: str | None) -> dict:
        """Recommend an actor's best-known lines; quotes come from the model, not the index."""
        if not actor_name or not actor_name.strip():
            raise InvalidRequestError(
                "Actor name not provided",
                "Please tell us which actor you want quotes from",
            )
        actor_name = actor_name.strip()

        synthesis = await self.synthesizer.recommend_for_actor(actor_name)
        if not synthesis.text:
            raise NotFoundError(
                f"Model returned no text for actor {actor_name!r}",
                f"Couldn't find quotes for {actor_name}",
            )

        quotes = await self.synthesizer.attribute_actor_quotes(actor_name, synthesis.text)
        logger.info(f"Attributed {len(quotes)} quotes to {actor_name}")

        return {
            "success": True,
            "recommendation": synthesis.text,
            "situation": f"Quotes by {actor_name}",
            "mood": NOT_APPLICABLE,
            "quotesFound": len(quotes),
            "availableQuotes": [format_quote(q, score=NOT_APPLICABLE) for q in quotes],
            "timestamp": _timestamp(),
        }

    async def run_movie(self, movie_title: str | None) -> dict:
        """Recommend lines from one movie using the quotes stored for it."""
        if not movie_title or not movie_title.strip():
            raise InvalidRequestError(
                "Movie title not provided",
                "Please tell us which movie you want quotes from",
            )
        movie_title = movie_title.strip()

        embedding = await self.embedding_service.embed(movie_title)
        matches = await asyncio.to_thread(
            self.quote_store.query,
            embedding,
            top_k=self.search_top_k,
            filter={"movie": movie_title},
            namespace=self.quote_namespace,
        )
        quotes = [
            quote
            for quote in (quote_from_metadata(m.metadata, m.score) for m in matches)
            if quote is not None
        ][: self.max_quotes]

        if not quotes:
            logger.info(f"No indexed quotes for movie {movie_title!r}")
            return {
                "success": True,
                "recommendation": build_no_results_message(movie_title),
                "situation": f"Quotes from {movie_title}",
                "mood": NOT_APPLICABLE,
                "quotesFound": 0,
                "availableQuotes": [],
                "timestamp": _timestamp(),
            }

        synthesis = await self.synthesizer.recommend_for_movie(movie_title, quotes)
        quotes = await self.synthesizer.attribute_movie_quotes(movie_title, quotes)

        return {
            "success": True,
            "recommendation": synthesis.text,
            "situation": f"Quotes from {movie_title}",
            "mood": NOT_APPLICABLE,
            "quotesFound": len(quotes),
            "availableQuotes": [format_quote(q) for q in quotes],
            "timestamp": _timestamp(),
        }
