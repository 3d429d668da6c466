"""Presentation-side dark-mode marker driven by ``theme.changed`` events."""

from __future__ import annotations

import logging
from typing import Set

from stockroom.shared.core import events
from stockroom.shared.core.event_bus import EventBus, EventPayload

logger = logging.getLogger(__name__)


class ThemeMarker:
    """Holds the root element's class set and applies/removes the dark marker."""

    def __init__(self) -> None:
        self.classes: Set[str] = set()
        self._bus: EventBus | None = None

    @property
    def is_dark(self) -> bool:
        return events.DARK_MODE_MARKER in self.classes

    def attach(self, bus: EventBus) -> None:
        self._bus = bus
        bus.subscribe(events.TOPIC_THEME_CHANGED, self._handle_theme_changed)

    def detach(self) -> None:
        if self._bus is not None:
            self._bus.unsubscribe(events.TOPIC_THEME_CHANGED, self._handle_theme_changed)
            self._bus = None

    def _handle_theme_changed(self, payload: EventPayload) -> None:
        if payload.get("dark"):
            self.classes.add(events.DARK_MODE_MARKER)
        else:
            self.classes.discard(events.DARK_MODE_MARKER)
        logger.debug(f"Theme applied: {payload.get('theme')}")
