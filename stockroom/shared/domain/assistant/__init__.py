"""Inventory chat assistant (remote model or offline heuristics)."""

from .heuristics import offline_answer
from .service import (
    CONNECTION_APOLOGY,
    GREETING,
    QUICK_QUESTIONS,
    ChatMessage,
    InventoryAssistant,
    build_prompt,
)

__all__ = [
    "offline_answer",
    "CONNECTION_APOLOGY",
    "GREETING",
    "QUICK_QUESTIONS",
    "ChatMessage",
    "InventoryAssistant",
    "build_prompt",
]
