"""Global State Store.

The store owns the single ``ApplicationState`` of the process. Consumers read it
with ``get_state()`` and change it only through ``dispatch(action)``, which runs
synchronously: reduce, notify subscribers, persist.
"""

from __future__ import annotations

import logging
import threading
from datetime import timedelta
from typing import Callable, Optional

from stockroom.shared.core import events
from stockroom.shared.core.clock import Clock, utcnow
from stockroom.shared.core.event_bus import EventBus, EventPayload
from stockroom.shared.infrastructure.persistence import MemorySlotStorage, StatePersistence

from . import actions
from .actions import Action, ActionType
from .models import ApplicationState, AuthSession
from .reducer import SESSION_DURATION, reduce
from .session_monitor import DEFAULT_POLL_INTERVAL, SessionMonitor

logger = logging.getLogger(__name__)

Listener = Callable[[ApplicationState, Action], None]


class Store:
    """Store facade wiring reducer, persistence and session monitor together.

    Usage:
        # During app initialization
        Store.initialize(persistence)

        # In any consumer
        store = Store.get()
        store.dispatch(actions.delete_item("i1"))
        store.get_state().items
    """

    _instance: Optional['Store'] = None

    def __init__(
        self,
        persistence: Optional[StatePersistence] = None,
        event_bus: Optional[EventBus] = None,
        *,
        clock: Clock = utcnow,
        session_duration: timedelta = SESSION_DURATION,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        """Restore state and start following the session.

        Args:
            persistence: Slot-backed persistence (memory-only when omitted)
            event_bus: Bus used to notify subscribers (a private one when omitted)
            clock: Source of "now" for session expiry
            session_duration: Session lifetime granted by LOGIN / REFRESH_SESSION
            poll_interval: Session monitor cadence in seconds
        """
        self.bus = event_bus or EventBus()
        self.persistence = persistence or StatePersistence(MemorySlotStorage())
        self._clock = clock
        self._session_duration = session_duration
        self._lock = threading.RLock()
        self._state = ApplicationState()

        self.session_monitor = SessionMonitor(self, interval=poll_interval, clock=clock)
        self.session_monitor.attach()

        self._restore()
        self.apply_theme()

    # --- Singleton access ---

    @classmethod
    def initialize(cls, *args, **kwargs) -> 'Store':
        """Initialize the global store instance.

        Raises:
            RuntimeError: If store is already initialized
        """
        if cls._instance is not None:
            raise RuntimeError("Store already initialized!")

        cls._instance = cls(*args, **kwargs)
        return cls._instance

    @classmethod
    def get(cls) -> 'Store':
        """Get the global store instance.

        Raises:
            RuntimeError: If store has not been initialized
        """
        if cls._instance is None:
            raise RuntimeError("Store not initialized! Call Store.initialize() first.")
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the global instance (tests); stops its session monitor."""
        if cls._instance is not None:
            cls._instance.close()
        cls._instance = None

    # --- Read / write surface ---

    def get_state(self) -> ApplicationState:
        """Current state snapshot (immutable)."""
        return self._state

    @property
    def state(self) -> ApplicationState:
        return self._state

    def dispatch(self, action: Action) -> ApplicationState:
        """Apply an action: reduce, notify subscribers, persist.

        Returns:
            The state after the action (the same object when it was a no-op)
        """
        with self._lock:
            previous = self._state
            current = reduce(
                previous,
                action,
                clock=self._clock,
                session_duration=self._session_duration,
            )
            if current is previous:
                return previous
            self._state = current

            logger.debug(f"Dispatched {action.type}")
            self.bus.publish(
                events.TOPIC_STATE_CHANGED,
                events.create_state_changed_event(current, previous, action),
            )
            if action.kind is ActionType.UPDATE_SETTINGS and "theme" in action.payload:
                self.apply_theme()
            # a listener may have dispatched in between; persist the latest state
            self.persistence.save(self._state)
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener(state, action)`` after every effective transition.

        Returns:
            A callable that removes the subscription
        """
        def _handler(payload: EventPayload) -> None:
            listener(payload["state"], payload["action"])

        _handler.__name__ = getattr(listener, "__name__", "listener")
        self.bus.subscribe(events.TOPIC_STATE_CHANGED, _handler)

        def _unsubscribe() -> None:
            self.bus.unsubscribe(events.TOPIC_STATE_CHANGED, _handler)

        return _unsubscribe

    def apply_theme(self) -> None:
        """Publish the current theme so presentation can set the dark-mode marker."""
        self.bus.publish(
            events.TOPIC_THEME_CHANGED,
            events.create_theme_changed_event(self._state.settings.theme),
        )

    def close(self) -> None:
        """Stop the session monitor. Persistence already happened per dispatch."""
        self.session_monitor.detach()

    # --- Startup ---

    def _restore(self) -> None:
        loaded = self.persistence.load()
        if loaded is None:
            logger.info("Starting with default state")
            return

        stored_auth = loaded.auth
        self._state = loaded.model_copy(update={"auth": AuthSession()})

        if self._is_restorable(stored_auth):
            logger.info(f"Restoring session for user {stored_auth.user.id}")
            self.dispatch(actions.login(stored_auth.user))
        else:
            logger.info("Starting logged out")

    def _is_restorable(self, auth: AuthSession) -> bool:
        return (
            auth.is_authenticated
            and auth.user is not None
            and auth.session_expiry is not None
            and auth.session_expiry > self._clock()
        )
