"""FastAPI application entry point with lifespan management."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.errors import setup_exception_handlers
from app.api.routes import router
from app.api.schemas import HealthResponse
from app.config import Settings, settings
from app.core.pipeline import QuotePipeline
from app.services.embedding import EmbeddingService
from app.services.llm import LLMService
from app.services.metrics import Metrics
from app.services.semantic_cache import SemanticCache
from app.services.synthesizer import ResponseSynthesizer
from app.services.vector_store import VectorStore

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def connect_services(app: FastAPI, config: Settings) -> None:
    """Create the clients and pipeline and attach them to app.state."""
    embedding_service = EmbeddingService(
        api_key=config.openai_api_key,
        model=config.embedding_model,
        dimension=config.embedding_dimension,
    )
    embedding_service.initialize()

    llm_service = LLMService(api_key=config.openai_api_key, model=config.chat_model)
    llm_service.initialize()
    logger.info("OpenAI services initialized")

    quote_store = VectorStore(
        config.quote_index_name,
        redis_url=config.redis_url,
        dimension=config.embedding_dimension,
    )
    try:
        quote_store.connect()
        logger.info(f"Connected to quote index '{config.quote_index_name}'")
    except Exception as e:
        logger.error(f"Failed to connect to quote index: {e}")
        raise

    cache_store = None
    if config.cache_enabled:
        cache_store = VectorStore(
            config.cache_index_name,
            redis_url=config.redis_url,
            dimension=config.embedding_dimension,
        )
        try:
            cache_store.connect()
            logger.info(f"Connected to cache index '{config.cache_index_name}'")
        except Exception as e:
            # Requests still work without the cache
            logger.error(f"Could not connect to cache index, caching disabled: {e}")
            cache_store = None

    semantic_cache = SemanticCache(
        cache_store,
        embedding_service,
        namespace=config.cache_namespace,
        threshold=config.cache_similarity_threshold,
        min_query_length=config.cache_min_query_length,
        top_k=config.cache_lookup_top_k,
        enabled=config.cache_enabled,
    )

    app.state.quote_store = quote_store
    app.state.cache_store = cache_store
    app.state.semantic_cache = semantic_cache
    app.state.metrics = Metrics()
    app.state.pipeline = QuotePipeline(
        embedding_service=embedding_service,
        quote_store=quote_store,
        semantic_cache=semantic_cache,
        synthesizer=ResponseSynthesizer(llm_service),
        quote_namespace=config.quote_namespace,
        search_top_k=config.search_top_k,
        min_relevance_score=config.min_relevance_score,
        max_quotes=config.max_quotes,
    )


def close_services(app: FastAPI) -> None:
    """Close vector store connections opened by connect_services."""
    for name in ("cache_store", "quote_store"):
        store = getattr(app.state, name, None)
        if store is not None:
            store.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application startup and shutdown."""
    logger.info("Starting movie quote service...")
    connect_services(app, settings)
    logger.info("Movie quote service started successfully")

    yield

    logger.info("Shutting down movie quote service...")
    close_services(app)
    logger.info("Movie quote service stopped")


app = FastAPI(
    title="Movie Quotes API",
    description="Movie quote recommendations with semantic caching",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,  # type: ignore[arg-type]
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_exception_handlers(app)

# Include API routes
app.include_router(router, prefix="/api")


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness probe."""
    return HealthResponse(status="ok")
