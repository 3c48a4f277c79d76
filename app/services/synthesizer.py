"""Response synthesis: prompt construction plus chat completion calls."""

import logging
from dataclasses import dataclass

from app.core.errors import QuoteServiceError
from app.core.models import QuoteRecord
from app.services import prompts
from app.services.attribution import apply_movie_attributions, parse_actor_quotes
from app.services.llm import LLMService

logger = logging.getLogger(__name__)

# Recommendations can be a little creative; fact lookups should not be.
SITUATION_TEMPERATURE = 0.6
FACT_TEMPERATURE = 0.3
ATTRIBUTION_TEMPERATURE = 0.2

SITUATION_MAX_TOKENS = 500
FACT_MAX_TOKENS = 700
ATTRIBUTION_MAX_TOKENS = 800

ACTOR_QUOTE_LIMIT = 8


@dataclass(frozen=True)
class Synthesis:
    """Generated text together with the prompt that produced it."""

    text: str
    prompt: str


class ResponseSynthesizer:
    """Builds prompts and turns model output into display text and quote lists."""

    def __init__(self, llm_service: LLMService):
        self.llm_service = llm_service

    async def recommend_for_situation(
        self,
        situation: str,
        mood: str,
        quotes: list[QuoteRecord],
    ) -> Synthesis:
        prompt = prompts.build_situation_prompt(situation, mood, quotes)
        text = await self.llm_service.generate(
            prompt,
            system=prompts.SITUATION_SYSTEM_PROMPT,
            temperature=SITUATION_TEMPERATURE,
            max_tokens=SITUATION_MAX_TOKENS,
        )
        return Synthesis(text=text, prompt=prompt)

    async def recommend_for_actor(self, actor_name: str) -> Synthesis:
        prompt = prompts.build_actor_prompt(actor_name, ACTOR_QUOTE_LIMIT)
        text = await self.llm_service.generate(
            prompt,
            system=prompts.FACT_SYSTEM_PROMPT,
            temperature=FACT_TEMPERATURE,
            max_tokens=FACT_MAX_TOKENS,
        )
        return Synthesis(text=text, prompt=prompt)

    async def recommend_for_movie(
        self,
        movie_title: str,
        quotes: list[QuoteRecord],
    ) -> Synthesis:
        prompt = prompts.build_movie_prompt(movie_title, quotes)
        text = await self.llm_service.generate(
            prompt,
            system=prompts.FACT_SYSTEM_PROMPT,
            temperature=FACT_TEMPERATURE,
            max_tokens=FACT_MAX_TOKENS,
        )
        return Synthesis(text=text, prompt=prompt)

    async def attribute_actor_quotes(
        self,
        actor_name: str,
        recommendation: str,
    ) -> list[QuoteRecord]:
        """Second pass for actor search; never raises."""
        output = None
        try:
            output = await self.llm_service.generate(
                prompts.build_actor_attribution_prompt(actor_name, recommendation),
                system=prompts.ATTRIBUTION_SYSTEM_PROMPT,
                temperature=ATTRIBUTION_TEMPERATURE,
                max_tokens=ATTRIBUTION_MAX_TOKENS,
            )
        except QuoteServiceError as e:
            logger.warning(f"Actor attribution call failed, using fallback: {e.log}")

        return parse_actor_quotes(
            output,
            actor_name,
            recommendation=recommendation,
            limit=ACTOR_QUOTE_LIMIT,
        )

    async def attribute_movie_quotes(
        self,
        movie_title: str,
        quotes: list[QuoteRecord],
    ) -> list[QuoteRecord]:
        """Second pass for movie search; never raises."""
        if not quotes:
            return []

        output = None
        try:
            output = await self.llm_service.generate(
                prompts.build_movie_attribution_prompt(movie_title, quotes),
                system=prompts.ATTRIBUTION_SYSTEM_PROMPT,
                temperature=ATTRIBUTION_TEMPERATURE,
                max_tokens=ATTRIBUTION_MAX_TOKENS,
            )
        except QuoteServiceError as e:
            logger.warning(f"Movie attribution call failed, using fallback: {e.log}")

        return apply_movie_attributions(output, quotes)
