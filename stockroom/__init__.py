"""Stockroom - single-session inventory bookkeeping store."""

from .shared.core.event_bus import EventBus
from .state import ApplicationState, actions, reduce
from .state.store import Store

__version__ = "0.1.0"

__all__ = ["ApplicationState", "EventBus", "Store", "actions", "reduce"]
