"""Prompt templates for recommendation and attribution calls."""

from app.core.models import QuoteRecord

SITUATION_SYSTEM_PROMPT = (
    "You are a fun movie quote expert who helps people find perfect quotes for "
    "their conversations. Be casual, helpful, and enthusiastic!"
)

FACT_SYSTEM_PROMPT = (
    "You are a film historian who knows famous movie lines and who said them. "
    "Only cite quotes you are confident are real; never invent dialogue."
)

ATTRIBUTION_SYSTEM_PROMPT = (
    "You attribute movie quotes to the actors and characters who delivered them. "
    "Reply with a JSON array only, no prose."
)

NO_QUOTES_CONTEXT = "No specific movie quotes found in database."


def _speaker(quote: QuoteRecord) -> str:
    return quote.character or quote.actor or "Unknown"


def build_quote_context(quotes: list[QuoteRecord]) -> str:
    """Numbered list of candidate quotes for the recommendation prompt."""
    if not quotes:
        return NO_QUOTES_CONTEXT

    parts = ["MATCHING MOVIE QUOTES:"]
    for i, quote in enumerate(quotes, start=1):
        year = f" ({quote.year})" if quote.year else ""
        parts.append(f'\n{i}. "{quote.quote}"')
        parts.append(f"   - {_speaker(quote)} from {quote.movie}{year}")
        if quote.situations:
            parts.append(f"   - Best for: {', '.join(quote.situations)}")
        if quote.mood:
            parts.append(f"   - Mood: {quote.mood}")
    return "\n".join(parts)


def build_situation_prompt(situation: str, mood: str, quotes: list[QuoteRecord]) -> str:
    return f"""
You are a movie quote expert helping someone find the perfect quote for their situation.

THEIR SITUATION: {situation}
PREFERRED MOOD: {mood}

{build_quote_context(quotes)}

INSTRUCTIONS:
1. Pick the 1-3 BEST quotes from the provided options that fit their situation
2. Explain WHY each quote works perfectly for their situation
3. Give a quick tip on HOW to deliver it (timing, tone, etc.)
4. Keep it conversational and fun - this is about using quotes in real conversations!

FORMAT:
**Perfect Quote for Your Situation:**
"[Quote]" - [Character] from [Movie]

**Why this works:** [Brief explanation of why it fits]
**How to use it:** [Quick delivery tip]

[If there are more good options, repeat the format]

Keep it short, practical, and fun!"""


def build_actor_prompt(actor_name: str, limit: int) -> str:
    return f"""
List up to {limit} of the most famous, quotable movie lines delivered by {actor_name}.

FORMAT each one as:
**"[Quote]"** - [Character] in [Movie] ([Year])
[One sentence on when to use it in real life]

If you do not recognise {actor_name} as a film actor, say so in one sentence and list nothing."""


def build_actor_attribution_prompt(actor_name: str, recommendation: str) -> str:
    return f"""
From the text below, extract every movie quote attributed to {actor_name}.

Return a JSON array where each element is
{{"quote": "...", "movie": "...", "character": "...", "year": 1999}}
Use null for any field you do not know. Return [] if there are no quotes.

TEXT:
{recommendation}"""


def build_movie_prompt(movie_title: str, quotes: list[QuoteRecord]) -> str:
    return f"""
Someone wants to use lines from the movie "{movie_title}" in real conversations.

{build_quote_context(quotes)}

INSTRUCTIONS:
1. Pick the 3 most quotable lines above
2. For each, say briefly what situation it fits
3. Do not add quotes that are not listed above

FORMAT:
**"[Quote]"** - [Character]
[When to use it]"""


def build_movie_attribution_prompt(movie_title: str, quotes: list[QuoteRecord]) -> str:
    numbered = "\n".join(f'{i}. "{quote.quote}"' for i, quote in enumerate(quotes, start=1))
    return f"""
For each numbered quote from the movie "{movie_title}", name the character who says it
and the actor who played that character.

{numbered}

Return a JSON array in the same order, one element per quote:
{{"quote": "...", "character": "...", "actor": "..."}}
Use "Unknown" when you are not sure."""


def build_no_results_message(movie_title: str) -> str:
    return (
        f'We don\'t have any quotes from "{movie_title}" in our collection yet. '
        "Check the spelling of the title, try the movie's original release title, "
        "or describe the situation you need a quote for and we'll find lines from "
        "other movies that fit."
    )
