"""Tests for the inventory assistant and the Gemini provider."""

import json
import logging

import httpx
import pytest

from stockroom.shared.domain.assistant import (
    CONNECTION_APOLOGY,
    GREETING,
    InventoryAssistant,
    build_prompt,
    offline_answer,
)
from stockroom.shared.infrastructure.llm import (
    AuthenticationError,
    GeminiProvider,
    LLMError,
    ModelNotFoundError,
    RateLimitError,
)
from stockroom.state import ApplicationState, actions

from conftest import make_category, make_item


def _gemini_reply(text):
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


def _factory(handler):
    def build(api_key):
        return GeminiProvider(api_key, transport=httpx.MockTransport(handler))
    return build


@pytest.fixture
def stocked_state():
    return ApplicationState(
        items=(
            make_item("i1", name="Hammer", quantity=5, price=12.5),
            make_item("i2", name="Saw", quantity=100, category_id="tools"),
        ),
        categories=(make_category("default", name="General"), make_category("tools"), make_category("paint", name="Paint")),
    )


# --- Offline heuristics ---

def test_low_stock_answer(stocked_state):
    answer = offline_answer(stocked_state, "What items are running LOW?")

    assert answer.startswith("I found 1 items running low:")
    assert "• Hammer: 5 pcs" in answer
    assert "Saw" not in answer


def test_low_stock_answer_on_empty_inventory():
    answer = offline_answer(ApplicationState(), "Anything low on stock?")

    assert answer == "Great news! All your items have sufficient stock levels."


def test_category_answer_lists_empty_categories(stocked_state):
    answer = offline_answer(stocked_state, "Which categories need attention?")

    assert "• General: 1 items" in answer
    assert "**Empty Categories:**\n• Paint" in answer


def test_reorder_and_valuable_answers(stocked_state):
    reorder = offline_answer(stocked_state, "Suggest reorder points")
    assert "• Hammer: Current 5 pcs, suggested reorder at 1" in reorder
    assert "• Saw: Current 100 pcs, suggested reorder at 20" in reorder

    valuable = offline_answer(stocked_state, "What are my most valuable items?")
    assert "• Hammer: $62.50 (5 × $12.50)" in valuable
    assert "Saw" not in valuable


def test_valuable_answer_without_prices():
    state = ApplicationState(items=(make_item("i1"),))

    assert offline_answer(state, "most expensive?").startswith("No price information available.")


def test_trend_and_default_answers(stocked_state):
    trends = offline_answer(stocked_state, "Show me inventory trends")
    assert "• Total items: 2" in trends
    assert "• Estimated value: $62.50" in trends

    default = offline_answer(stocked_state, "hello there")
    assert 'asking about "hello there"' in default
    assert "• You have 2 items across 3 categories" in default


def test_build_prompt(stocked_state):
    prompt = build_prompt(stocked_state, "How many hammers?")

    assert prompt.startswith("Here is the current inventory data in JSON format.")
    assert '"value": "62.50"' in prompt
    assert prompt.endswith('User question: "How many hammers?"')


# --- Assistant ---

@pytest.mark.asyncio
async def test_ask_offline_without_api_key(store):
    assistant = InventoryAssistant(store)

    reply = await assistant.ask("low stock?")

    assert not assistant.is_online
    assert reply.role == "assistant"
    assert reply.content == "Great news! All your items have sufficient stock levels."
    assert [m.role for m in assistant.messages] == ["assistant", "user", "assistant"]
    assert assistant.messages[0].content == GREETING


@pytest.mark.asyncio
async def test_blank_question_is_ignored(store):
    assistant = InventoryAssistant(store)

    assert await assistant.ask("   ") is None
    assert len(assistant.messages) == 1


@pytest.mark.asyncio
async def test_ask_remote_model(store):
    store.dispatch(actions.set_items([make_item("i1", name="Hammer")]))
    store.dispatch(actions.update_settings(gemini_api_key="secret"))
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=_gemini_reply("You have 5 hammers."))

    assistant = InventoryAssistant(store, provider_factory=_factory(handler))
    reply = await assistant.ask("How many hammers?")

    assert assistant.is_online
    assert reply.content == "You have 5 hammers."
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path.endswith("/models/gemini-pro:generateContent")
    assert request.url.params["key"] == "secret"
    text = json.loads(request.content)["contents"][0]["parts"][0]["text"]
    assert '"name": "Hammer"' in text
    assert text.endswith('User question: "How many hammers?"')


@pytest.mark.asyncio
async def test_remote_failure_returns_apology(store, caplog):
    store.dispatch(actions.update_settings(gemini_api_key="bad"))
    assistant = InventoryAssistant(
        store,
        provider_factory=_factory(lambda request: httpx.Response(403, text="API key not valid")),
    )

    with caplog.at_level(logging.ERROR):
        reply = await assistant.ask("anything")

    assert reply.content == CONNECTION_APOLOGY
    assert "Error calling Gemini API" in caplog.text


@pytest.mark.asyncio
async def test_network_error_returns_apology(store):
    store.dispatch(actions.update_settings(gemini_api_key="key"))

    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    assistant = InventoryAssistant(store, provider_factory=_factory(handler))

    assert (await assistant.ask("anything")).content == CONNECTION_APOLOGY


@pytest.mark.asyncio
async def test_reset_keeps_greeting(store):
    assistant = InventoryAssistant(store)
    await assistant.ask("hello")

    assistant.reset()

    assert [m.content for m in assistant.messages] == [GREETING]


# --- Provider ---

def test_provider_requires_api_key():
    with pytest.raises(AuthenticationError):
        GeminiProvider("")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status, error",
    [
        (401, AuthenticationError),
        (403, AuthenticationError),
        (429, RateLimitError),
        (404, ModelNotFoundError),
        (500, LLMError),
    ],
)
async def test_provider_maps_http_errors(status, error):
    provider = GeminiProvider("key", transport=httpx.MockTransport(lambda request: httpx.Response(status)))

    async with provider:
        with pytest.raises(error) as excinfo:
            await provider.complete("hi")

    assert excinfo.value.status_code == status


@pytest.mark.asyncio
async def test_provider_rejects_empty_candidates():
    provider = GeminiProvider("key", transport=httpx.MockTransport(lambda request: httpx.Response(200, json={})))

    async with provider:
        with pytest.raises(LLMError):
            await provider.complete("hi")


@pytest.mark.asyncio
async def test_provider_uses_requested_model():
    seen = []

    def handler(request):
        seen.append(request.url.path)
        return httpx.Response(200, json=_gemini_reply("ok"))

    async with GeminiProvider("key", model="gemini-1.5-flash", transport=httpx.MockTransport(handler)) as provider:
        assert await provider.complete("hi") == "ok"
        assert await provider.complete("hi", model="gemini-pro") == "ok"

    assert seen == [
        "/v1beta/models/gemini-1.5-flash:generateContent",
        "/v1beta/models/gemini-pro:generateContent",
    ]
