"""Best-effort parsing of quote attributions from free-form model output.

Models are asked for a bare JSON array but often wrap it in prose or code
fences. Nothing here raises: when the array cannot be recovered the callers
get "Unknown" placeholders instead.
"""

import json
import logging
import re
from dataclasses import replace
from typing import Any

from app.core.models import QuoteRecord

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"

_DECODER = json.JSONDecoder()
_QUOTED_TEXT_PATTERN = re.compile(r"[\"“]([^\"“”\n]{4,})[\"”]")


def extract_json_array(text: str | None) -> list[Any] | None:
    """Return the first bracketed JSON array in ``text``, or None if there is none.

    Each ``[`` is tried in turn. An array of objects (or an empty array) wins
    over a plain list such as a ``[1]`` footnote reference.
    """
    if not text:
        return None

    first_list = None
    start = text.find("[")
    while start != -1:
        try:
            parsed, _ = _DECODER.raw_decode(text, start)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            if not parsed or any(isinstance(item, dict) for item in parsed):
                return parsed
            if first_list is None:
                first_list = parsed
        start = text.find("[", start + 1)

    if first_list is None:
        logger.debug("No JSON array found in model output")
    return first_list


def _field(item: dict[str, Any], name: str) -> str:
    value = item.get(name)
    if value is None or not str(value).strip():
        return UNKNOWN
    return str(value).strip()


def _year(item: dict[str, Any]) -> int | None:
    try:
        return int(item.get("year"))
    except (TypeError, ValueError):
        return None


def scrape_quoted_lines(text: str) -> list[str]:
    """Pull double-quoted lines out of formatted recommendation text, in order."""
    seen: list[str] = []
    for line in _QUOTED_TEXT_PATTERN.findall(text or ""):
        line = line.strip()
        if line and line not in seen:
            seen.append(line)
    return seen


def parse_actor_quotes(
    model_output: str | None,
    actor_name: str,
    recommendation: str = "",
    limit: int = 8,
) -> list[QuoteRecord]:
    """
    Turn the actor attribution reply into QuoteRecords.

    Falls back to the quoted lines found in the recommendation text, with
    movie and character set to "Unknown", when the reply has no usable array.
    """
    items = extract_json_array(model_output)

    quotes: list[QuoteRecord] = []
    if items is not None:
        for item in items:
            if not isinstance(item, dict) or not item.get("quote"):
                continue
            quotes.append(
                QuoteRecord(
                    quote=str(item["quote"]).strip(),
                    movie=_field(item, "movie"),
                    actor=actor_name,
                    character=_field(item, "character"),
                    year=_year(item),
                )
            )
    else:
        logger.warning(f"Could not parse attribution for {actor_name}, scraping text")
        quotes = [
            QuoteRecord(quote=line, movie=UNKNOWN, actor=actor_name, character=UNKNOWN)
            for line in scrape_quoted_lines(recommendation)
        ]

    return quotes[:limit]


def apply_movie_attributions(
    model_output: str | None,
    quotes: list[QuoteRecord],
) -> list[QuoteRecord]:
    """
    Fill in character and actor for indexed movie quotes.

    Attributions are matched by quote text first and by position second.
    Quotes without a usable attribution keep their stored values, or
    "Unknown" if they had none.
    """
    items = [item for item in extract_json_array(model_output) or [] if isinstance(item, dict)]
    by_text = {
        str(item.get("quote", "")).strip().lower(): item
        for item in items
        if item.get("quote")
    }

    attributed = []
    for i, quote in enumerate(quotes):
        item = by_text.get(quote.quote.strip().lower())
        if item is None and i < len(items):
            item = items[i]
        item = item or {}

        character = quote.character or _field(item, "character")
        actor = quote.actor or _field(item, "actor")
        attributed.append(replace(quote, character=character, actor=actor))
    return attributed
