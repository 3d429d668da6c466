from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Any, Callable, Dict, List, TypeAlias

EventPayload: TypeAlias = Dict[str, Any]
EventHandler: TypeAlias = Callable[[EventPayload], None]


class EventBus:
    """Central PubSub hub.

    Handlers run synchronously on the publishing thread, in subscription order,
    so ``publish`` has returned only after every subscriber has seen the event.
    """

    def __init__(self) -> None:
        self._subscribers: Dict[str, List[EventHandler]] = defaultdict(list)
        self._lock = threading.RLock()
        self._logger = logging.getLogger(__name__)

    def subscribe(self, topic: str, handler: EventHandler) -> None:
        """Register a handler for a topic."""
        with self._lock:
            if handler not in self._subscribers[topic]:
                self._subscribers[topic].append(handler)

    def unsubscribe(self, topic: str, handler: EventHandler) -> None:
        """Remove a handler from a topic."""
        with self._lock:
            if handler in self._subscribers.get(topic, []):
                self._subscribers[topic].remove(handler)

    def has_subscribers(self, topic: str) -> bool:
        with self._lock:
            return bool(self._subscribers.get(topic))

    def publish(self, topic: str, payload: EventPayload) -> int:
        """Publish an event to all subscribers.

        Returns:
            Number of handlers the event was delivered to
        """
        with self._lock:
            handlers = list(self._subscribers.get(topic, []))

        if not handlers:
            # Informational topics (theme.changed before any view exists) are normal
            self._logger.debug(f"No subscribers for topic '{topic}'")
            return 0

        self._logger.debug(f"Publishing to topic '{topic}' with {len(handlers)} handler(s)")
        for handler in handlers:
            self._safe_dispatch(topic, handler, payload)
        return len(handlers)

    def _safe_dispatch(
        self,
        topic: str,
        handler: EventHandler,
        payload: EventPayload,
    ) -> None:
        """Dispatch wrapper to keep one handler failure from stopping the bus."""
        handler_name = getattr(handler, "__name__", str(handler))
        try:
            handler(payload)
        except Exception as exc:
            self._logger.exception(
                f"EventBus handler error in '{handler_name}' for topic '{topic}'",
                exc_info=exc,
            )

    def clear(self) -> None:
        """Remove all subscriptions."""
        with self._lock:
            self._subscribers.clear()
