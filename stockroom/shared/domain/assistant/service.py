"""Inventory Assistant: chat over the current inventory.

Answers come from the remote model when a Gemini API key is configured in the
settings, otherwise from offline keyword heuristics. The chat history belongs to
the assistant; the store is only read.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Callable, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from stockroom.shared.core.clock import Clock, utcnow
from stockroom.shared.core.configuration import AssistantConfig
from stockroom.shared.domain.activity.recorder import new_id
from stockroom.shared.infrastructure.llm import GeminiProvider, LLMError, LLMProvider
from stockroom.state.models import ApplicationState
from stockroom.state.store import Store

from .heuristics import offline_answer

logger = logging.getLogger(__name__)

GREETING = (
    "Hello! I'm your AI inventory assistant. I can help you analyze your inventory, "
    "suggest optimizations, and answer questions about your stock. What would you like to know?"
)
CONNECTION_APOLOGY = (
    "Sorry, I had trouble connecting to the AI service. "
    "Please check your API key and network connection."
)
QUICK_QUESTIONS = [
    "What items are running low?",
    "Show me inventory trends",
    "Which categories need attention?",
    "Suggest reorder points",
    "Analyze stock distribution",
    "What are my most valuable items?",
]

ProviderFactory = Callable[[str], LLMProvider]


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime = Field(default_factory=utcnow)


def build_prompt(state: ApplicationState, question: str) -> str:
    """Inventory snapshot (items and categories as JSON) followed by the question."""
    items = []
    for item in state.items:
        entry = {
            "id": item.id,
            "name": item.name,
            "quantity": item.quantity,
            "unit": item.unit,
            "categoryId": item.category_id,
        }
        if item.price is not None:
            entry["price"] = item.price
            entry["value"] = f"{item.stock_value:.2f}"
        items.append(entry)
    categories = [category.to_json_dict() for category in state.categories]

    return (
        "Here is the current inventory data in JSON format. Use this to answer my questions.\n"
        f"Items: {json.dumps(items, indent=2, ensure_ascii=False)}\n"
        f"Categories: {json.dumps(categories, indent=2, ensure_ascii=False)}\n\n"
        f'User question: "{question}"'
    )


class InventoryAssistant:
    """Chat assistant keeping its own message history."""

    def __init__(
        self,
        store: Store,
        config: Optional[AssistantConfig] = None,
        provider_factory: Optional[ProviderFactory] = None,
        clock: Clock = utcnow,
    ):
        """Initialize the assistant.

        Args:
            store: Store to read the inventory from
            config: Remote model settings (defaults when omitted)
            provider_factory: Builds a provider for an API key (GeminiProvider by default)
            clock: Source of message timestamps
        """
        self.store = store
        self.config = config or AssistantConfig()
        self.provider_factory = provider_factory or self._default_provider
        self.clock = clock
        self.service_name = "InventoryAssistant"
        self.messages: List[ChatMessage] = [self._message("assistant", GREETING)]

    def _default_provider(self, api_key: str) -> LLMProvider:
        return GeminiProvider(
            api_key=api_key,
            base_url=self.config.base_url,
            model=self.config.model,
            timeout=self.config.timeout,
        )

    def _message(self, role: str, content: str) -> ChatMessage:
        return ChatMessage(role=role, content=content, timestamp=self.clock())

    @property
    def is_online(self) -> bool:
        """Whether questions go to the remote model."""
        return bool(self.store.get_state().settings.gemini_api_key)

    async def ask(self, question: str) -> Optional[ChatMessage]:
        """Answer a question and append both messages to the history.

        Returns:
            The assistant reply, or None for a blank question
        """
        if not question or not question.strip():
            return None

        self.messages.append(self._message("user", question))
        state = self.store.get_state()
        api_key = state.settings.gemini_api_key

        if not api_key:
            content = offline_answer(state, question)
        else:
            content = await self._ask_remote(api_key, state, question)

        reply = self._message("assistant", content)
        self.messages.append(reply)
        return reply

    async def _ask_remote(self, api_key: str, state: ApplicationState, question: str) -> str:
        try:
            async with self.provider_factory(api_key) as provider:
                return await provider.complete(build_prompt(state, question))
        except LLMError as e:
            logger.error(f"Error calling Gemini API: {e}")
        except Exception:
            logger.exception("Unexpected error calling Gemini API")
        return CONNECTION_APOLOGY

    def reset(self) -> None:
        """Forget the conversation (the greeting stays)."""
        self.messages = [self._message("assistant", GREETING)]
