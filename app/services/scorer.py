"""Keyword-based re-ranking of vector search candidates."""

from dataclasses import replace

from app.core.models import QuoteRecord
from app.services.classifier import QueryContext

MOOD_BOOST = 0.05
SITUATION_BOOST = 0.03
MIN_SCORE = 0.0
MAX_SCORE = 1.0

MOOD_KEYWORDS: dict[str, list[str]] = {
    "funny": ["laugh", "joke", "funny", "stupid", "idiot", "crazy", "ridiculous", "silly"],
    "cool": ["cool", "calm", "style", "boss", "smooth", "never", "always", "deal"],
    "dramatic": ["life", "death", "never", "fight", "destiny", "power", "fear", "world"],
    "sassy": ["really", "honey", "please", "whatever", "obviously", "darling", "excuse"],
}

SITUATION_KEYWORDS: dict[str, list[str]] = {
    "comeback": ["you", "your", "idiot", "stupid", "talk", "mouth", "shut"],
    "goodbye": ["goodbye", "bye", "leave", "back", "later", "go", "farewell"],
    "greeting": ["hello", "name", "meet", "welcome", "hi", "nice"],
    "rejection": ["no", "not", "never", "nothing", "nobody", "interested"],
    "awkward": ["sorry", "weird", "strange", "um", "well", "awkward"],
    "confident": ["i'm", "best", "king", "win", "never", "boss", "power"],
    "romantic": ["love", "heart", "kiss", "beautiful", "darling", "together"],
    "work": ["job", "work", "business", "money", "office", "deal"],
    "party": ["party", "drink", "dance", "fun", "night", "celebrate"],
    "argument": ["fight", "wrong", "right", "war", "truth", "dare"],
}


def count_keyword_matches(text: str, keywords: list[str]) -> int:
    """Count how many keywords occur in the text, ignoring case."""
    lowered = text.lower()
    return sum(1 for keyword in keywords if keyword in lowered)


def adjust_score(
    base_score: float,
    text: str,
    situation_types: list[str],
    mood: str,
) -> float:
    """Boost a similarity score by mood and situation keyword hits, clamped to [0, 1]."""
    score = base_score
    score += count_keyword_matches(text, MOOD_KEYWORDS.get(mood, [])) * MOOD_BOOST
    for situation in situation_types:
        matches = count_keyword_matches(text, SITUATION_KEYWORDS.get(situation, []))
        score += matches * SITUATION_BOOST
    return max(MIN_SCORE, min(MAX_SCORE, score))


def rank_quotes(
    candidates: list[QuoteRecord],
    context: QueryContext,
    min_score: float = 0.3,
    limit: int = 8,
) -> list[QuoteRecord]:
    """Re-score candidates, drop weak ones and keep the best ``limit``."""
    scored = [
        replace(
            candidate,
            score=adjust_score(
                candidate.score,
                candidate.quote,
                context.situation_types,
                context.mood,
            ),
        )
        for candidate in candidates
    ]
    kept = [quote for quote in scored if quote.score > min_score]
    kept.sort(key=lambda quote: quote.score, reverse=True)
    return kept[:limit]
