"""
LLM Interface - remote model client used by the inventory assistant.
"""

from stockroom.shared.infrastructure.llm.base import (
    LLMProvider,
    LLMError,
    AuthenticationError,
    RateLimitError,
    ModelNotFoundError,
)
from stockroom.shared.infrastructure.llm.gemini_provider import GeminiProvider

__all__ = [
    # Base
    "LLMProvider",
    "LLMError",
    "AuthenticationError",
    "RateLimitError",
    "ModelNotFoundError",
    # Providers
    "GeminiProvider",
]
