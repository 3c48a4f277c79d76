"""Embedding service using the OpenAI embeddings API."""

import logging

import numpy as np
import openai
from openai import AsyncOpenAI

from app.config import settings
from app.core.errors import EmbeddingError, EmbeddingUnavailableError

logger = logging.getLogger(__name__)


class EmbeddingService:
    """Async OpenAI client wrapper that turns text into fixed-size vectors."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        dimension: int | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.openai_api_key
        self.model = model or settings.embedding_model
        self.dimension = dimension or settings.embedding_dimension
        self.client: AsyncOpenAI | None = None

    def initialize(self) -> None:
        """Initialize the OpenAI client."""
        if self.api_key:
            self.client = AsyncOpenAI(api_key=self.api_key)
        else:
            logger.warning("No OpenAI API key configured, embeddings disabled")

    async def embed(self, text: str) -> np.ndarray:
        """Generate a float32 embedding for a single piece of text."""
        return (await self.embed_many([text]))[0]

    async def embed_many(self, texts: list[str]) -> list[np.ndarray]:
        """
        Generate embeddings for a batch of texts, preserving order.

        Raises:
            EmbeddingError: Empty input, API error or malformed response
            EmbeddingUnavailableError: Client missing, unreachable or rate limited
        """
        cleaned = [text.strip() for text in texts]
        if not cleaned or not all(cleaned):
            raise EmbeddingError("Refusing to embed empty text")

        if self.client is None:
            raise EmbeddingUnavailableError(
                "Embedding client not initialized. Check OPENAI_API_KEY."
            )

        try:
            response = await self.client.embeddings.create(
                model=self.model,
                input=cleaned,
            )
        except (openai.APIConnectionError, openai.AuthenticationError) as e:
            logger.error(f"OpenAI embeddings unreachable: {e}")
            raise EmbeddingUnavailableError(f"Embedding service unavailable: {e}")
        except openai.RateLimitError as e:
            logger.error(f"OpenAI embeddings rate limit error: {e}")
            raise EmbeddingUnavailableError(f"Embedding rate limit exceeded: {e}")
        except openai.APIError as e:
            logger.error(f"OpenAI embeddings API error: {e}")
            raise EmbeddingError(f"Embedding request failed: {e}")

        data = sorted(response.data or [], key=lambda item: item.index)
        if len(data) != len(cleaned):
            raise EmbeddingError(
                f"Expected {len(cleaned)} embeddings, got {len(data)}"
            )

        vectors = [np.asarray(item.embedding, dtype=np.float32) for item in data]
        for vector in vectors:
            if vector.shape != (self.dimension,):
                raise EmbeddingError(
                    f"Expected {self.dimension}-dim embedding, got shape {vector.shape}"
                )
        return vectors
