"""Rough per-request cost estimates for cache savings reporting."""

import math

# USD per token
EMBEDDING_PRICES: dict[str, float] = {
    "text-embedding-3-small": 0.02 / 1_000_000,
    "text-embedding-3-large": 0.13 / 1_000_000,
    "text-embedding-ada-002": 0.10 / 1_000_000,
}

CHAT_PRICES: dict[str, dict[str, float]] = {
    "gpt-4o": {"input": 2.50 / 1_000_000, "output": 10.00 / 1_000_000},
    "gpt-4o-mini": {"input": 0.15 / 1_000_000, "output": 0.60 / 1_000_000},
}

DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"
DEFAULT_CHAT_MODEL = "gpt-4o"


def estimate_tokens(text: str) -> int:
    """Approximate token count as one token per four characters."""
    return math.ceil(len(text) / 4)


def estimate_embedding_cost(text: str, model: str = DEFAULT_EMBEDDING_MODEL) -> float:
    price = EMBEDDING_PRICES.get(model, EMBEDDING_PRICES[DEFAULT_EMBEDDING_MODEL])
    return estimate_tokens(text) * price


def estimate_chat_cost(
    prompt: str,
    completion: str,
    model: str = DEFAULT_CHAT_MODEL,
) -> float:
    prices = CHAT_PRICES.get(model, CHAT_PRICES[DEFAULT_CHAT_MODEL])
    return (
        estimate_tokens(prompt) * prices["input"]
        + estimate_tokens(completion) * prices["output"]
    )


def estimate_request_cost(
    query: str,
    prompt: str,
    completion: str,
    chat_model: str = DEFAULT_CHAT_MODEL,
    embedding_model: str = DEFAULT_EMBEDDING_MODEL,
) -> float:
    """Cost of one uncached situation request: query embedding plus synthesis."""
    return estimate_embedding_cost(query, embedding_model) + estimate_chat_cost(
        prompt, completion, chat_model
    )
