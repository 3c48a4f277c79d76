"""Internal data types shared between the services and the pipeline."""

import json
import logging
from dataclasses import asdict, dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuoteRecord:
    """A quote retrieved from the vector index, with its relevance score."""

    quote: str
    movie: str = "Unknown"
    actor: str | None = None
    character: str | None = None
    year: int | None = None
    situations: list[str] = field(default_factory=list)
    mood: str | None = None
    score: float = 0.0


def _parse_year(value: Any) -> int | None:
    try:
        return int(str(value).strip()[:4])
    except (TypeError, ValueError):
        return None


def _parse_situations(value: Any) -> list[str]:
    if isinstance(value, list):
        return [str(item) for item in value]
    if isinstance(value, str) and value:
        return [part.strip() for part in value.split(";") if part.strip()]
    return []


def quote_from_metadata(metadata: dict[str, Any], score: float = 0.0) -> QuoteRecord | None:
    """Build a QuoteRecord from index metadata; returns None when there is no quote text."""
    text = metadata.get("quote") or metadata.get("text")
    if not text:
        return None

    return QuoteRecord(
        quote=str(text),
        movie=str(metadata.get("movie") or "Unknown"),
        actor=metadata.get("actor") or None,
        character=metadata.get("character") or None,
        year=_parse_year(metadata.get("year")),
        situations=_parse_situations(metadata.get("situations")),
        mood=metadata.get("mood") or None,
        score=score,
    )


def serialize_quotes(quotes: list[QuoteRecord]) -> str:
    return json.dumps([asdict(quote) for quote in quotes])


def deserialize_quotes(raw: str | None) -> list[QuoteRecord]:
    """Inverse of serialize_quotes; malformed input yields an empty list."""
    if not raw:
        return []
    try:
        items = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Cached quote list is not valid JSON, ignoring it")
        return []

    quotes = []
    for item in items if isinstance(items, list) else []:
        if isinstance(item, dict):
            quote = quote_from_metadata(item, score=float(item.get("score") or 0.0))
            if quote is not None:
                quotes.append(quote)
    return quotes
