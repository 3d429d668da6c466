"""
Gemini provider: single-turn ``generateContent`` over HTTPS with httpx.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from stockroom.shared.infrastructure.llm.base import (
    AuthenticationError,
    LLMError,
    LLMProvider,
    ModelNotFoundError,
    RateLimitError,
)

logger = logging.getLogger(__name__)


class GeminiProvider(LLMProvider):
    """Client for the Generative Language API."""

    DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
    DEFAULT_MODEL = "gemini-pro"

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        model: str = DEFAULT_MODEL,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the provider.

        Args:
            api_key: Generative Language API key
            base_url: API base URL
            model: Default model name
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        if not api_key:
            raise AuthenticationError("Gemini API key is required")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.default_model = model
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def complete(self, prompt: str, model: str | None = None) -> str:
        model_name = model or self.default_model
        url = f"{self.base_url}/models/{model_name}:generateContent"
        body = {"contents": [{"parts": [{"text": prompt}]}]}

        logger.debug(f"Requesting completion from {model_name} ({len(prompt)} chars)")
        try:
            response = await self._client.post(url, params={"key": self.api_key}, json=body)
        except httpx.HTTPError as e:
            raise LLMError(f"Request to {model_name} failed: {e}") from e

        self._raise_for_status(response, model_name)

        try:
            data = response.json()
        except ValueError as e:
            raise LLMError("Response body is not valid JSON", response.status_code) from e
        return self._extract_text(data)

    def _raise_for_status(self, response: httpx.Response, model_name: str) -> None:
        status = response.status_code
        if status < 400:
            return
        detail = response.text[:200]
        if status in (401, 403):
            raise AuthenticationError(f"Gemini rejected the API key: {detail}", status)
        if status == 429:
            raise RateLimitError(f"Gemini rate limit exceeded: {detail}", status)
        if status == 404:
            raise ModelNotFoundError(f"Model not found: {model_name}", status)
        raise LLMError(f"Gemini request failed with HTTP {status}: {detail}", status)

    @staticmethod
    def _extract_text(data: Any) -> str:
        try:
            return data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise LLMError("Response did not contain any candidate text") from e

    async def close(self) -> None:
        await self._client.aclose()
