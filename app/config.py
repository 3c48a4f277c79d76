"""Application configuration using Pydantic Settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    openai_api_key: str = ""
    redis_url: str = "redis://localhost:6379"

    # OpenAI models
    embedding_model: str = "text-embedding-3-small"
    embedding_dimension: int = Field(default=1536, gt=0)
    chat_model: str = "gpt-4o"

    # Vector indexes
    quote_index_name: str = "movie_quotes"
    quote_namespace: str = "default"
    cache_index_name: str = "movie_quotes_cache"
    cache_namespace: str = "cache"

    # Semantic cache
    cache_enabled: bool = True
    cache_similarity_threshold: float = Field(default=0.95, ge=0.0, le=1.0)
    cache_min_query_length: int = Field(default=10, ge=0)
    cache_lookup_top_k: int = Field(default=3, gt=0)

    # Quote search and ranking
    search_top_k: int = Field(default=20, gt=0)
    min_relevance_score: float = Field(default=0.3, ge=0.0, le=1.0)
    max_quotes: int = Field(default=8, gt=0)

    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:8080", "http://localhost:3000"]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )


settings = Settings()
