"""State management for Stockroom.

The application state lives in one immutable ``ApplicationState`` value owned by
the store. Everything that changes it goes through an ``Action`` and the reducer.

Architecture:
- models: immutable pydantic records (items, categories, activity, settings, auth)
- actions: the complete write surface, one creator per action kind
- reducer: pure ``reduce(state, action) -> state``
- session_monitor: logs the user out once the session expires
- store: ``Store`` facade wiring reducer, persistence and monitor (import it from
  ``stockroom.state.store``; it depends on the persistence adapter, which in turn
  depends on the models here)
"""

from . import actions
from .models import (
    DEFAULT_CATEGORY_ID,
    ActivityKind,
    ActivityRecord,
    ApplicationState,
    AuthSession,
    Category,
    Item,
    Role,
    Settings,
    User,
    default_category,
)
from .actions import Action, ActionType
from .reducer import SESSION_DURATION, reduce
from .session_monitor import MonitorState, SessionMonitor
from .theme import ThemeMarker

__all__ = [
    "actions",
    "DEFAULT_CATEGORY_ID",
    "ActivityKind",
    "ActivityRecord",
    "ApplicationState",
    "AuthSession",
    "Category",
    "Item",
    "Role",
    "Settings",
    "User",
    "default_category",
    "Action",
    "ActionType",
    "SESSION_DURATION",
    "reduce",
    "MonitorState",
    "SessionMonitor",
    "ThemeMarker",
]
