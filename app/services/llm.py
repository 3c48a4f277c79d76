"""LLM service wrapper for the OpenAI chat completions API."""

import logging

import openai
from openai import AsyncOpenAI

from app.config import settings
from app.core.errors import (
    LLMRateLimitError,
    LLMServiceError,
    LLMServiceUnavailableError,
)

logger = logging.getLogger(__name__)


class LLMService:
    """Async OpenAI client wrapper for chat completions."""

    def __init__(self, api_key: str | None = None, model: str | None = None):
        self.api_key = api_key if api_key is not None else settings.openai_api_key
        self.model = model or settings.chat_model
        self.client: AsyncOpenAI | None = None

    def initialize(self) -> None:
        """Initialize the OpenAI client."""
        if self.api_key:
            self.client = AsyncOpenAI(api_key=self.api_key)
        else:
            logger.warning("No OpenAI API key configured")

    async def generate(
        self,
        prompt: str,
        system: str | None = None,
        temperature: float = 0.6,
        max_tokens: int = 500,
    ) -> str:
        """
        Generate a completion for a prompt.

        Args:
            prompt: User message text
            system: Optional system message
            temperature: Sampling temperature
            max_tokens: Output token budget

        Returns:
            Generated text, stripped; empty string if the model returned nothing

        Raises:
            LLMServiceUnavailableError: Client missing or API unreachable
            LLMRateLimitError: Rate limit exceeded
            LLMServiceError: Any other API error
        """
        if self.client is None:
            raise LLMServiceUnavailableError(
                "LLM client not initialized. Check OPENAI_API_KEY."
            )

        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except openai.RateLimitError as e:
            logger.error(f"OpenAI rate limit error: {e}")
            raise LLMRateLimitError(f"Rate limit exceeded: {e}")
        except (openai.APIConnectionError, openai.AuthenticationError) as e:
            logger.error(f"OpenAI unreachable: {e}")
            raise LLMServiceUnavailableError(f"LLM service unavailable: {e}")
        except openai.APIError as e:
            logger.error(f"OpenAI API error: {e}")
            raise LLMServiceError(f"LLM request failed: {e}")

        if not response.choices:
            raise LLMServiceError("LLM response contained no choices")
        content = response.choices[0].message.content
        return content.strip() if content else ""
