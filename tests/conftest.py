"""Pytest fixtures for movie quote service tests."""

import json
from unittest.mock import AsyncMock, MagicMock

import numpy as np
import pytest
from httpx import ASGITransport, AsyncClient

from app.services.vector_store import VectorMatch

RECOMMENDATION = (
    '**Perfect Quote for Your Situation:**\n"You talking to me?" - Travis Bickle from Taxi Driver\n\n'
    "**Why this works:** It turns the roast right back around.\n"
    "**How to use it:** Deadpan, with a long pause first."
)


def quote_match(quote_id: str, score: float, **metadata) -> VectorMatch:
    return VectorMatch(id=quote_id, score=score, metadata=metadata)


def cache_match(
    score: float = 0.97,
    mood: str = "funny",
    response: str = "Cached recommendation",
    estimated_cost: float = 0.004,
) -> VectorMatch:
    return VectorMatch(
        id="cache_1700000000000_abc123def",
        score=score,
        metadata={
            "type": "cached_response",
            "originalQuery": "My friend roasted me and I need a comeback",
            "llmResponse": response,
            "mood": mood,
            "quoteCount": 1,
            "quotes": json.dumps(
                [
                    {
                        "quote": "You talking to me?",
                        "movie": "Taxi Driver",
                        "actor": "Robert De Niro",
                        "character": "Travis Bickle",
                        "year": 1976,
                        "score": 0.91,
                    }
                ]
            ),
            "timestamp": 1700000000000,
            "estimatedCost": estimated_cost,
        },
    )


@pytest.fixture
def sample_quote_matches():
    """Quote index results for a comeback query."""
    return [
        quote_match(
            "quote-1",
            0.82,
            text="You talking to me?",
            movie="Taxi Driver",
            year="1976",
            actor="Robert De Niro",
            character="Travis Bickle",
        ),
        quote_match(
            "quote-2",
            0.61,
            text="Frankly, my dear, I don't give a damn.",
            movie="Gone with the Wind",
            year="1939",
        ),
        quote_match(
            "quote-3",
            0.12,
            text="I'll be back.",
            movie="The Terminator",
            year="1984",
        ),
    ]


@pytest.fixture
def mock_embedding_service():
    """Mock embedding service to avoid real API calls."""
    mock = MagicMock()
    mock.model = "text-embedding-3-small"
    mock.embed = AsyncMock(side_effect=lambda text: np.random.rand(1536).astype(np.float32))
    return mock


@pytest.fixture
def mock_llm_service():
    """Mock LLM service to avoid real API calls."""
    mock = MagicMock()
    mock.model = "gpt-4o"
    mock.generate = AsyncMock(return_value=RECOMMENDATION)
    return mock


@pytest.fixture
def mock_quote_store(sample_quote_matches):
    """Mock quote index returning the sample matches."""
    mock = MagicMock()
    mock.dimension = 1536
    mock.is_connected.return_value = True
    mock.query.return_value = sample_quote_matches
    return mock


@pytest.fixture
def mock_cache_store():
    """Mock cache index; defaults to an empty cache."""
    mock = MagicMock()
    mock.dimension = 1536
    mock.is_connected.return_value = True
    mock.query.return_value = []
    mock.upsert.return_value = None
    mock.describe_stats.return_value = {"total_vector_count": 0, "dimension": 1536}
    return mock


@pytest.fixture
def semantic_cache(mock_cache_store, mock_embedding_service):
    from app.services.semantic_cache import SemanticCache

    return SemanticCache(
        mock_cache_store,
        mock_embedding_service,
        namespace="cache",
        threshold=0.95,
        min_query_length=10,
        top_k=3,
        enabled=True,
    )


@pytest.fixture
def pipeline(mock_embedding_service, mock_quote_store, semantic_cache, mock_llm_service):
    from app.core.pipeline import QuotePipeline
    from app.services.synthesizer import ResponseSynthesizer

    return QuotePipeline(
        embedding_service=mock_embedding_service,
        quote_store=mock_quote_store,
        semantic_cache=semantic_cache,
        synthesizer=ResponseSynthesizer(mock_llm_service),
        quote_namespace="default",
        search_top_k=20,
        min_relevance_score=0.3,
        max_quotes=8,
    )


@pytest.fixture
async def client(pipeline, semantic_cache):
    """Async HTTP client with mocked services on app.state."""
    from app.main import app
    from app.services.metrics import Metrics

    # ASGITransport does not run the lifespan, so state is wired here
    app.state.pipeline = pipeline
    app.state.semantic_cache = semantic_cache
    app.state.metrics = Metrics()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    del app.state.pipeline
    del app.state.semantic_cache
    del app.state.metrics
