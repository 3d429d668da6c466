"""Canonical event definitions for Stockroom."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .event_bus import EventPayload

if TYPE_CHECKING:
    from stockroom.state.actions import Action
    from stockroom.state.models import ApplicationState

# Store topics
TOPIC_STATE_CHANGED = "state.changed"
TOPIC_THEME_CHANGED = "theme.changed"

# Session topics
TOPIC_SESSION_ARMED = "session.armed"
TOPIC_SESSION_DISARMED = "session.disarmed"
TOPIC_SESSION_EXPIRED = "session.expired"

# Infrastructure topics
TOPIC_PERSISTENCE_FAILED = "persistence.failed"

DARK_MODE_MARKER = "dark"


def create_state_changed_event(
    state: "ApplicationState",
    previous: "ApplicationState",
    action: "Action",
) -> EventPayload:
    """Create a state changed event (published after every effective transition)."""
    return {
        "state": state,
        "previous": previous,
        "action": action,
    }


def create_theme_changed_event(theme: str) -> EventPayload:
    """Create a theme changed event carrying the dark-mode marker decision."""
    return {
        "theme": theme,
        "dark": theme == DARK_MODE_MARKER,
    }


def create_session_event(user_id: str | None, expiry: Any = None) -> EventPayload:
    """Create a session armed/disarmed/expired event."""
    return {
        "user_id": user_id,
        "session_expiry": expiry,
    }


def create_persistence_failed_event(key: str, error: Exception) -> EventPayload:
    return {
        "key": key,
        "error": str(error),
        "error_type": type(error).__name__,
    }
