"""Redis vector index with namespaces, metadata filters and KNN search."""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import redis
from redis.commands.search.field import TagField, TextField, VectorField
from redis.commands.search.indexDefinition import IndexDefinition, IndexType
from redis.commands.search.query import Query

from app.config import settings
from app.core.errors import VectorStoreError, VectorStoreUnavailableError

logger = logging.getLogger(__name__)

# Metadata keys copied into tag fields so they can be used as equality filters
FILTERABLE_FIELDS = ("movie", "actor", "mood", "type")

# Tag field separator; must not be "," since titles contain commas
TAG_SEPARATOR = "|"

_TAG_SPECIAL_CHARS = re.compile(r"([^A-Za-z0-9_])")


@dataclass(frozen=True)
class VectorMatch:
    """A single nearest-neighbour result."""

    id: str
    score: float
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class VectorRecord:
    """A vector and its metadata, ready to upsert."""

    id: str
    values: np.ndarray | list[float]
    metadata: dict[str, Any] = field(default_factory=dict)


def _tag_value(value: Any) -> str:
    return str(value).replace(TAG_SEPARATOR, " ")


def _escape_tag(value: Any) -> str:
    """Escape a tag value for a RediSearch query."""
    return _TAG_SPECIAL_CHARS.sub(r"\\\1", _tag_value(value))


def _decode(value: Any) -> Any:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


class VectorStore:
    """Redis-backed vector index.

    Records live in hashes under ``{key_prefix}{namespace}:{id}``. Every record
    carries its namespace as a tag, so one index serves several logical
    collections. Similarity scores are ``1 - cosine distance``.
    """

    def __init__(
        self,
        index_name: str,
        redis_url: str | None = None,
        dimension: int | None = None,
    ):
        self.index_name = index_name
        self.key_prefix = f"{index_name}:"
        self.redis_url = redis_url or settings.redis_url
        self.dimension = dimension or settings.embedding_dimension
        self.redis_client: redis.Redis | None = None

    def connect(self) -> None:
        """Connect to Redis and ensure the index exists."""
        self.redis_client = redis.from_url(self.redis_url, decode_responses=False)
        self._ensure_index()

    def is_connected(self) -> bool:
        return self.redis_client is not None

    def _require_client(self) -> redis.Redis:
        if self.redis_client is None:
            raise VectorStoreUnavailableError(
                f"Vector index '{self.index_name}' is not connected"
            )
        return self.redis_client

    def _ensure_index(self) -> None:
        """Create the RediSearch index if it doesn't exist."""
        if self.redis_client is None:
            logger.warning("Redis client not connected, cannot ensure index")
            return

        try:
            self.redis_client.ft(self.index_name).info()
            logger.info(f"Redis index '{self.index_name}' already exists")
        except redis.ResponseError:
            logger.info(f"Creating Redis index '{self.index_name}'")
            schema = [
                TagField("namespace", separator=TAG_SEPARATOR),
                *(TagField(name, separator=TAG_SEPARATOR) for name in FILTERABLE_FIELDS),
                TextField("metadata"),
                VectorField(
                    "embedding",
                    "FLAT",
                    {
                        "TYPE": "FLOAT32",
                        "DIM": self.dimension,
                        "DISTANCE_METRIC": "COSINE",
                    },
                ),
            ]
            definition = IndexDefinition(
                prefix=[self.key_prefix],
                index_type=IndexType.HASH,
            )
            self.redis_client.ft(self.index_name).create_index(
                schema,
                definition=definition,
            )
            logger.info(f"Redis index '{self.index_name}' created successfully")

    def _key(self, namespace: str, record_id: str) -> str:
        return f"{self.key_prefix}{namespace}:{record_id}"

    def _record_id(self, namespace: str, key: Any) -> str:
        key = _decode(key)
        return key.removeprefix(self._key(namespace, ""))

    def query(
        self,
        vector: np.ndarray | list[float],
        top_k: int,
        filter: dict[str, str] | None = None,
        namespace: str = "default",
    ) -> list[VectorMatch]:
        """
        Return up to ``top_k`` nearest records, best match first.

        Args:
            vector: Query embedding
            top_k: Maximum number of results
            filter: Equality filter on metadata fields in FILTERABLE_FIELDS
            namespace: Logical collection to search

        Raises:
            VectorStoreUnavailableError: Not connected or Redis unreachable
            VectorStoreError: Any other Redis failure
        """
        client = self._require_client()

        clauses = [f"@namespace:{{{_escape_tag(namespace)}}}"]
        for name, value in (filter or {}).items():
            if name not in FILTERABLE_FIELDS:
                raise VectorStoreError(f"Metadata field '{name}' is not filterable")
            clauses.append(f"@{name}:{{{_escape_tag(value)}}}")

        query_str = f"({' '.join(clauses)})=>[KNN {top_k} @embedding $vec AS distance]"
        q = (
            Query(query_str)
            .return_fields("metadata", "distance")
            .sort_by("distance")
            .paging(0, top_k)
            .dialect(2)
        )
        query_vector = np.asarray(vector, dtype=np.float32).tobytes()

        try:
            results = client.ft(self.index_name).search(q, {"vec": query_vector})
        except redis.ConnectionError as e:
            logger.error(f"Redis unreachable during search: {e}")
            raise VectorStoreUnavailableError(f"Vector search unavailable: {e}")
        except redis.RedisError as e:
            logger.error(f"Redis search error: {e}")
            raise VectorStoreError(f"Vector search failed: {e}")

        matches = []
        for doc in results.docs:
            raw_metadata = _decode(getattr(doc, "metadata", None)) or "{}"
            try:
                metadata = json.loads(raw_metadata)
            except json.JSONDecodeError:
                logger.warning(f"Skipping record with malformed metadata: {doc.id}")
                continue
            if not isinstance(metadata, dict):
                logger.warning(f"Skipping record with non-object metadata: {doc.id}")
                continue
            matches.append(
                VectorMatch(
                    id=self._record_id(namespace, doc.id),
                    score=1.0 - float(_decode(doc.distance)),
                    metadata=metadata,
                )
            )

        matches.sort(key=lambda m: m.score, reverse=True)
        return matches

    def upsert(self, records: list[VectorRecord], namespace: str = "default") -> None:
        """Insert or overwrite records in a namespace."""
        client = self._require_client()

        try:
            pipe = client.pipeline(transaction=False)
            for record in records:
                mapping: dict[str, Any] = {
                    "namespace": namespace.encode("utf-8"),
                    "metadata": json.dumps(record.metadata).encode("utf-8"),
                    "embedding": np.asarray(record.values, dtype=np.float32).tobytes(),
                }
                for name in FILTERABLE_FIELDS:
                    value = record.metadata.get(name)
                    if value is not None and value != "":
                        mapping[name] = _tag_value(value).encode("utf-8")
                pipe.hset(self._key(namespace, record.id), mapping=mapping)
            pipe.execute()
            logger.debug(f"Upserted {len(records)} records into '{self.index_name}/{namespace}'")
        except redis.ConnectionError as e:
            logger.error(f"Redis unreachable during upsert: {e}")
            raise VectorStoreUnavailableError(f"Vector upsert unavailable: {e}")
        except redis.RedisError as e:
            logger.error(f"Redis upsert error: {e}")
            raise VectorStoreError(f"Vector upsert failed: {e}")

    def fetch(self, ids: list[str], namespace: str = "default") -> dict[str, dict[str, Any]]:
        """Fetch metadata for records by id; missing ids are omitted."""
        client = self._require_client()

        records = {}
        try:
            for record_id in ids:
                raw = client.hget(self._key(namespace, record_id), "metadata")
                if raw is not None:
                    records[record_id] = json.loads(_decode(raw))
        except redis.ConnectionError as e:
            raise VectorStoreUnavailableError(f"Vector fetch unavailable: {e}")
        except redis.RedisError as e:
            raise VectorStoreError(f"Vector fetch failed: {e}")
        return records

    def describe_stats(self) -> dict[str, int]:
        """Return record count and dimension for the whole index."""
        client = self._require_client()

        try:
            info = client.ft(self.index_name).info()
        except redis.ConnectionError as e:
            raise VectorStoreUnavailableError(f"Vector stats unavailable: {e}")
        except redis.RedisError as e:
            raise VectorStoreError(f"Vector stats failed: {e}")

        return {
            "total_vector_count": int(_decode(info.get("num_docs", 0)) or 0),
            "dimension": self.dimension,
        }

    def close(self) -> None:
        """Close Redis connection."""
        if self.redis_client:
            self.redis_client.close()
            self.redis_client = None
