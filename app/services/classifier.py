"""Query classifier for situation detection and mood selection."""

import re
from dataclasses import dataclass, field

SITUATION_PATTERNS: dict[str, str] = {
    "comeback": r"\b(comeback|witty response|roast|burn|insult|clever reply)\b",
    "goodbye": r"\b(leaving|goodbye|farewell|see you later|departing|exit)\b",
    "greeting": r"\b(hello|hi|meeting|introduction|first time|new person)\b",
    "rejection": r"\b(reject|turn down|not interested|no thanks|decline)\b",
    "awkward": r"\b(awkward|uncomfortable|weird|strange|embarrassing|cringe)\b",
    "confident": r"\b(confident|boss|badass|cool|swagger|attitude)\b",
    "romantic": r"\b(flirting|date|romantic|love|asking out|valentine)\b",
    "work": r"\b(work|office|boss|meeting|colleague|professional)\b",
    "party": r"\b(party|celebration|drinks|social|friends|gathering)\b",
    "argument": r"\b(argument|fight|disagreement|debate|confrontation)\b",
}

# Checked in order; the first mood whose pattern matches wins.
MOOD_PATTERNS: list[tuple[str, str]] = [
    ("funny", r"\b(funny|hilarious|joke|laugh|comedy|humor)\b"),
    ("cool", r"\b(cool|badass|smooth|suave|confident)\b"),
    ("dramatic", r"\b(dramatic|serious|intense|powerful|epic)\b"),
    ("sassy", r"\b(sassy|sarcastic|witty|clever|smart)\b"),
]

MOODS = tuple(mood for mood, _ in MOOD_PATTERNS)
DEFAULT_MOOD = "funny"


@dataclass(frozen=True)
class QueryContext:
    """Classification result for a situation query."""

    original_query: str
    mood: str = DEFAULT_MOOD
    situation_types: list[str] = field(default_factory=list)


def detect_situation_types(query: str) -> list[str]:
    """Return every situation tag whose pattern appears in the query."""
    return [
        situation
        for situation, pattern in SITUATION_PATTERNS.items()
        if re.search(pattern, query, re.IGNORECASE)
    ]


def detect_mood(query: str) -> str:
    """Pick the mood of the first matching pattern, defaulting to funny."""
    for mood, pattern in MOOD_PATTERNS:
        if re.search(pattern, query, re.IGNORECASE):
            return mood
    # Most conversational quotes land as humor
    return DEFAULT_MOOD


def classify(query: str, mood: str | None = None) -> QueryContext:
    """Classify a situation query; an explicit known mood overrides detection."""
    cleaned = query.strip()
    resolved_mood = mood if mood in MOODS else detect_mood(cleaned)

    return QueryContext(
        original_query=cleaned,
        mood=resolved_mood,
        situation_types=detect_situation_types(cleaned),
    )
