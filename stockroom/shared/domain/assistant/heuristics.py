"""Offline answers for the inventory assistant (used when no API key is set)."""

from __future__ import annotations

from typing import Callable, List, Sequence, Tuple

from stockroom.state.models import ApplicationState, Item

LOW_STOCK_FRACTION = 0.2
TOP_N = 5


def _money(value: float) -> str:
    return f"${value:.2f}"


def _has_prices(items: Sequence[Item]) -> bool:
    return any(item.price is not None for item in items)


def _total_value(items: Sequence[Item]) -> float:
    return sum(item.stock_value for item in items)


def answer_low_stock(state: ApplicationState, question: str) -> str:
    items = state.items
    if not items:
        return "Great news! All your items have sufficient stock levels."

    # relative to the average quantity, not the per-item minimum level
    threshold = sum(item.quantity for item in items) / len(items) * LOW_STOCK_FRACTION
    low = [item for item in items if item.quantity <= threshold]
    if not low:
        return "Great news! All your items have sufficient stock levels."

    lines = "\n".join(f"• {item.name}: {item.quantity} {item.unit}".rstrip() for item in low)
    return f"I found {len(low)} items running low:\n\n{lines}\n\nConsider restocking these items soon."


def answer_trends(state: ApplicationState, question: str) -> str:
    total = len(state.items)
    categories = len(state.categories)

    response = f"Here's your inventory analysis:\n\n📊 **Overview**\n• Total items: {total}\n• Categories: {categories}"
    if _has_prices(state.items):
        response += f"\n• Estimated value: {_money(_total_value(state.items))}"

    first = state.categories[0].name if state.categories else "General"
    average = round(total / categories) if categories else total
    response += (
        f'\n\n📈 **Insights**\n• Most items are in the "{first}" category'
        f"\n• Average items per category: {average}"
        "\n\nConsider diversifying your inventory across more categories for better organization."
    )
    return response


def answer_categories(state: ApplicationState, question: str) -> str:
    counts: List[Tuple[str, int]] = [
        (cat.name, sum(1 for item in state.items if item.category_id == cat.id))
        for cat in state.categories
    ]
    empty = [name for name, count in counts if count == 0]
    used = sorted(((name, count) for name, count in counts if count > 0), key=lambda pair: -pair[1])

    active = "\n".join(f"• {name}: {count} items" for name, count in used)
    response = f"📁 **Category Analysis**\n\n**Active Categories:**\n{active}\n\n"
    if empty:
        listed = "\n".join(f"• {name}" for name in empty)
        response += (
            f"**Empty Categories:**\n{listed}\n\n"
            "Consider removing unused categories or adding items to them."
        )
    else:
        response += "All categories are being used - great organization!"
    return response


def answer_reorder(state: ApplicationState, question: str) -> str:
    active = [item for item in state.items if item.quantity > 0]
    if not active:
        return "No active items found to suggest reorder points for."

    lines = "\n".join(
        f"• {item.name}: Current {item.quantity} {item.unit}, "
        f"suggested reorder at {max(1, round(item.quantity * LOW_STOCK_FRACTION))}"
        for item in active[:TOP_N]
    )
    return (
        f"Here are suggested reorder points for your active items:\n\n{lines}"
        "\n\nThese suggestions are based on maintaining 20% of current stock levels."
    )


def answer_valuable(state: ApplicationState, question: str) -> str:
    priced = [item for item in state.items if item.price is not None]
    if not priced:
        return "No price information available. Consider adding prices to your items to track inventory value."

    top = sorted(priced, key=lambda item: item.stock_value, reverse=True)[:TOP_N]
    lines = "\n".join(
        f"• {item.name}: {_money(item.stock_value)} ({item.quantity} × {_money(item.price)})"
        for item in top
    )
    return (
        f"💰 **Most Valuable Items:**\n\n{lines}"
        "\n\nThese items represent the highest value in your inventory. "
        "Consider extra security measures for these items."
    )


def answer_default(state: ApplicationState, question: str) -> str:
    items = state.items
    in_stock = sum(1 for item in items if item.quantity > 0)
    out_of_stock = sum(1 for item in items if item.quantity == 0)

    response = (
        f'I understand you\'re asking about "{question}". Based on your current inventory:\n\n'
        f"• You have {len(items)} items across {len(state.categories)} categories\n"
        f"• {in_stock} items are in stock\n"
        f"• {out_of_stock} items are out of stock"
    )
    if _has_prices(items):
        response += f"\n• Estimated total value: {_money(_total_value(items))}"
    response += (
        "\n\nCould you be more specific about what you'd like to know? I can help with stock "
        "analysis, reorder suggestions, category optimization, and more!"
    )
    return response


Answer = Callable[[ApplicationState, str], str]

# first matching rule wins
RULES: List[Tuple[Tuple[str, ...], Answer]] = [
    (("low", "stock"), answer_low_stock),
    (("trend", "analysis"), answer_trends),
    (("categor", "attention"), answer_categories),
    (("reorder", "suggest"), answer_reorder),
    (("valuable", "expensive"), answer_valuable),
]


def offline_answer(state: ApplicationState, question: str) -> str:
    lowered = question.lower()
    for keywords, answer in RULES:
        if any(keyword in lowered for keyword in keywords):
            return answer(state, question)
    return answer_default(state, question)
