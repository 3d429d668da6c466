"""
Base LLM provider interface and error types.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class LLMError(Exception):
    """Base exception for LLM provider errors."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(LLMError):
    """API key missing, invalid or not authorised for the model."""


class RateLimitError(LLMError):
    """Provider refused the request because of quota or rate limits."""


class ModelNotFoundError(LLMError):
    """Requested model does not exist at the provider."""


class LLMProvider(ABC):
    """Abstract text-completion provider.

    Usage:
        async with GeminiProvider(api_key="...") as provider:
            text = await provider.complete("How many items are low on stock?")
    """

    @abstractmethod
    async def complete(self, prompt: str, model: str | None = None) -> str:
        """Send a single-turn prompt and return the generated text."""

    async def close(self) -> None:
        """Release network resources."""

    async def __aenter__(self) -> "LLMProvider":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
