"""Pydantic models for API request/response validation."""

from typing import Literal

from pydantic import BaseModel, Field

Mood = Literal["funny", "cool", "dramatic", "sassy"]


class MovieQuoteRequest(BaseModel):
    """Request body for the situation endpoint."""

    naturalLanguageQuery: str | None = Field(
        default=None,
        description="Description of the situation the quote is for",
    )
    mood: Mood | None = Field(
        default=None,
        description="Preferred tone; detected from the query when omitted",
    )


class ActorSearchRequest(BaseModel):
    """Request body for the actor endpoint."""

    actorName: str | None = Field(default=None, description="Actor to find quotes for")


class MovieSearchRequest(BaseModel):
    """Request body for the movie endpoint."""

    movieTitle: str | None = Field(default=None, description="Movie to find quotes from")


class QuoteItem(BaseModel):
    """A single quote in a response."""

    quote: str
    actor: str | None = None
    character: str | None = None
    movie: str
    year: int | None = None
    score: str = Field(..., description='Relevance score with two decimals, or "N/A"')


class CacheMatch(BaseModel):
    """Details of the cache entry a response was replayed from."""

    originalQuery: str
    similarity: float
    cachedAt: int = Field(..., description="Epoch milliseconds when the entry was stored")
    costSaved: float = 0.0


class QuoteResponse(BaseModel):
    """Response body shared by the three search endpoints."""

    success: bool = True
    recommendation: str
    situation: str
    mood: str
    quotesFound: int
    availableQuotes: list[QuoteItem]
    cached: bool | None = None
    cacheMatch: CacheMatch | None = None
    timestamp: str


class ErrorMessage(BaseModel):
    err: str


class ErrorResponse(BaseModel):
    """Error response body."""

    success: bool = False
    message: ErrorMessage


class CacheStats(BaseModel):
    """Savings figures aggregated from the cache store."""

    totalEntries: int
    totalCachedQueries: int
    potentialSavings: float
    actualSavings: float
    cacheHitsCount: int
    averageSavingsPerHit: float
    efficiencyRatio: float = Field(..., description="Percent of potential savings realized")
    lastUpdated: str


class CacheStatsResponse(BaseModel):
    """Response body for the cache statistics endpoint."""

    success: bool = True
    cacheStats: CacheStats
    session: dict = Field(default_factory=dict, description="In-process request metrics")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(default="ok")


class ServiceInfoResponse(BaseModel):
    """Service description for the API router health check."""

    service: str
    status: str
    endpoints: list[str]
