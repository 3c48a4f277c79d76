"""Integration tests that hit real services (Redis Stack, OpenAI).

Run with: pytest tests/test_integration.py -v

Prerequisites:
- Redis Stack running (docker compose up redis)
- OPENAI_API_KEY set in environment or .env file
"""

import uuid

import numpy as np
import pytest
from httpx import ASGITransport, AsyncClient

from app.config import Settings, settings
from app.services.embedding import EmbeddingService
from app.services.llm import LLMService
from app.services.vector_store import VectorRecord, VectorStore

pytestmark = pytest.mark.integration

QUOTES_CSV = (
    "quote,movie,year,actor,character,situations,mood\n"
    "You talking to me?,Taxi Driver,1976,Robert De Niro,Travis Bickle,comeback,cool\n"
    "I'll be back.,The Terminator,1984,Arnold Schwarzenegger,The Terminator,goodbye,cool\n"
    "Here's looking at you kid.,Casablanca,1942,Humphrey Bogart,Rick Blaine,romantic;goodbye,dramatic\n"
    "Frankly my dear I don't give a damn.,Gone with the Wind,1939,Clark Gable,Rhett Butler,rejection,sassy\n"
)


def get_redis_url() -> str:
    """Get Redis URL, preferring localhost for local testing."""
    return "redis://localhost:6379"


def has_redis() -> bool:
    """Check if Redis is reachable."""
    try:
        import redis

        r = redis.from_url(get_redis_url(), socket_connect_timeout=1)
        r.ping()
        r.close()
        return True
    except Exception:
        return False


skip_no_openai = pytest.mark.skipif(
    not settings.openai_api_key,
    reason="OPENAI_API_KEY not set",
)

skip_no_redis = pytest.mark.skipif(
    not has_redis(),
    reason="Redis not reachable",
)


def _drop(store: VectorStore) -> None:
    store.redis_client.ft(store.index_name).dropindex(delete_documents=True)
    store.close()


@pytest.fixture
def store_factory():
    """Create throwaway indexes and drop them afterwards."""
    stores = []

    def make(dimension: int = 4) -> VectorStore:
        store = VectorStore(
            f"test_quotes_{uuid.uuid4().hex[:8]}",
            redis_url=get_redis_url(),
            dimension=dimension,
        )
        store.connect()
        stores.append(store)
        return store

    yield make

    for store in stores:
        _drop(store)


@skip_no_redis
class TestVectorStoreIntegration:
    """Test the vector index against a real Redis Stack."""

    def test_upsert_and_query(self, store_factory):
        """Test that the closest record comes back first with a score near 1."""
        store = store_factory()
        store.upsert(
            [
                VectorRecord(id="a", values=[1.0, 0.0, 0.0, 0.0], metadata={"text": "A", "movie": "Jaws"}),
                VectorRecord(id="b", values=[0.0, 1.0, 0.0, 0.0], metadata={"text": "B", "movie": "Heat"}),
            ]
        )

        matches = store.query(np.array([1.0, 0.1, 0.0, 0.0]), top_k=2)

        assert [m.id for m in matches] == ["a", "b"]
        assert matches[0].score > 0.99
        assert matches[0].metadata["movie"] == "Jaws"

    def test_filter_and_namespace(self, store_factory):
        """Test that filters and namespaces restrict results."""
        store = store_factory()
        vector = [1.0, 0.0, 0.0, 0.0]
        store.upsert(
            [
                VectorRecord(id="a", values=vector, metadata={"text": "A", "movie": "The Terminator"}),
                VectorRecord(id="b", values=vector, metadata={"text": "B", "movie": "Heat"}),
                VectorRecord(
                    id="d",
                    values=vector,
                    metadata={"text": "D", "movie": "The Good, the Bad and the Ugly"},
                ),
            ]
        )
        store.upsert([VectorRecord(id="c", values=vector, metadata={"text": "C"})], namespace="cache")

        filtered = store.query(vector, top_k=5, filter={"movie": "The Terminator"})
        comma_title = store.query(vector, top_k=5, filter={"movie": "The Good, the Bad and the Ugly"})
        title_part = store.query(vector, top_k=5, filter={"movie": "the Bad and the Ugly"})
        cached = store.query(vector, top_k=5, namespace="cache")

        assert [m.id for m in filtered] == ["a"]
        assert [m.id for m in comma_title] == ["d"]
        assert title_part == []
        assert [m.id for m in cached] == ["c"]

    def test_fetch_and_stats(self, store_factory):
        store = store_factory()
        store.upsert([VectorRecord(id="a", values=[0.0, 0.0, 1.0, 0.0], metadata={"text": "A"})])

        assert store.fetch(["a", "missing"]) == {"a": {"text": "A"}}
        assert store.describe_stats()["total_vector_count"] == 1


@skip_no_openai
class TestOpenAIIntegration:
    """Test the OpenAI wrappers with the real API."""

    @pytest.mark.asyncio
    async def test_real_embedding_generation(self):
        """Test that real embeddings have the configured dimension."""
        service = EmbeddingService(api_key=settings.openai_api_key)
        service.initialize()

        embedding = await service.embed("My friend just roasted me and I need a comeback")

        assert embedding.shape == (settings.embedding_dimension,)
        assert embedding.dtype == np.float32

    @pytest.mark.asyncio
    async def test_real_semantic_similarity(self):
        """Test that paraphrased situations are closer than unrelated ones."""
        service = EmbeddingService(api_key=settings.openai_api_key)
        service.initialize()

        first, paraphrase, unrelated = await service.embed_many(
            [
                "I need a comeback after being roasted by a friend",
                "My friend roasted me, what's a good comeback?",
                "Saying goodbye to coworkers on my last day",
            ]
        )

        def similarity(a, b):
            return float(np.dot(a, b) / (np.linalg.norm(a) * np.linalg.norm(b)))

        assert similarity(first, paraphrase) > similarity(first, unrelated)

    @pytest.mark.asyncio
    async def test_real_llm_generation(self):
        """Test actual chat completion."""
        service = LLMService(api_key=settings.openai_api_key)
        service.initialize()

        response = await service.generate("Name the movie with the line 'I'll be back.'", max_tokens=50)

        assert "Terminator" in response


@skip_no_openai
@skip_no_redis
class TestEndToEndIntegration:
    """Full end-to-end integration tests."""

    @pytest.fixture
    async def client(self, tmp_path):
        """Wire the real services against throwaway indexes loaded with a few quotes."""
        from app.ingest import ingest
        from app.main import app, close_services, connect_services

        suffix = uuid.uuid4().hex[:8]
        config = Settings(
            redis_url=get_redis_url(),
            quote_index_name=f"test_quotes_{suffix}",
            cache_index_name=f"test_cache_{suffix}",
        )
        connect_services(app, config)

        csv_path = tmp_path / "movie_quotes.csv"
        csv_path.write_text(QUOTES_CSV, encoding="utf-8")
        await ingest(
            csv_path,
            app.state.pipeline.embedding_service,
            app.state.quote_store,
            namespace=config.quote_namespace,
        )

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test", timeout=60) as c:
            yield c

        quote_store, cache_store = app.state.quote_store, app.state.cache_store
        for store in (quote_store, cache_store):
            store.redis_client.ft(store.index_name).dropindex(delete_documents=True)
        close_services(app)

    @pytest.mark.asyncio
    async def test_repeated_query_hits_cache(self, client):
        """Test that the second identical query is served from the cache."""
        query = f"My friend roasted me and I need a comeback ({uuid.uuid4().hex[:6]})"

        first = await client.post("/api/movie-quotes", json={"naturalLanguageQuery": query})
        assert first.status_code == 200
        assert first.json()["cached"] is False

        second = await client.post("/api/movie-quotes", json={"naturalLanguageQuery": query})
        assert second.status_code == 200
        data = second.json()
        assert data["cached"] is True
        assert data["recommendation"] == first.json()["recommendation"]

        stats = (await client.get("/api/cache-stats")).json()["cacheStats"]
        assert stats["totalCachedQueries"] == 1
        assert stats["cacheHitsCount"] == 1

    @pytest.mark.asyncio
    async def test_movie_search(self, client):
        """Test that movie search only returns quotes from that movie."""
        response = await client.post("/api/search-by-movie", json={"movieTitle": "Casablanca"})

        assert response.status_code == 200
        data = response.json()
        assert data["quotesFound"] == 1
        assert data["availableQuotes"][0]["movie"] == "Casablanca"
