"""Session Monitor.

Two states: ACTIVE while the store holds an authenticated session with an expiry,
INACTIVE otherwise. While ACTIVE it polls on a fixed cadence and dispatches LOGOUT
once the expiry has passed. It is armed and disarmed purely by watching store
transitions; REFRESH_SESSION moves the expiry but leaves the cadence untouched.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional

from stockroom.shared.core import events
from stockroom.shared.core.clock import Clock, utcnow

from . import actions
from .models import ApplicationState

if TYPE_CHECKING:
    from .store import Store

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 60.0


class MonitorState(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class SessionMonitor:
    """Expires the authenticated session of a store.

    Usage:
        monitor = SessionMonitor(store, interval=60.0)
        monitor.attach()      # follow LOGIN / LOGOUT from now on

    The polling task lives on the running asyncio loop. When the monitor is armed
    outside a loop it stays ACTIVE without a task; ``check()`` can then be called
    directly and ``start()`` attaches the task once a loop is available.
    """

    def __init__(
        self,
        store: "Store",
        interval: float = DEFAULT_POLL_INTERVAL,
        clock: Clock = utcnow,
    ) -> None:
        self.store = store
        self.interval = interval
        self.clock = clock
        self.state = MonitorState.INACTIVE
        self._task: Optional[asyncio.Task] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def is_active(self) -> bool:
        return self.state is MonitorState.ACTIVE

    @property
    def has_timer(self) -> bool:
        return self._task is not None and not self._task.done()

    def attach(self) -> None:
        """Follow store transitions and sync with the current state."""
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe(self._on_transition)
        self._sync(self.store.get_state())

    def detach(self) -> None:
        """Stop following the store and disarm."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._disarm()

    def start(self) -> None:
        """Attach the polling task to the running loop if armed and not yet polling."""
        if self.is_active and not self.has_timer:
            self._schedule()

    def check(self) -> bool:
        """Compare the clock with the session expiry; log out when it has passed.

        Returns:
            True if a LOGOUT was dispatched
        """
        if not self.is_active:
            return False

        auth = self.store.get_state().auth
        expiry = auth.session_expiry
        if not auth.is_authenticated or expiry is None:
            return False

        now = self.clock()
        if now <= expiry:
            return False

        user_id = auth.user.id if auth.user else None
        logger.info(f"Session for user {user_id} expired at {expiry.isoformat()}; logging out")
        self.store.bus.publish(
            events.TOPIC_SESSION_EXPIRED,
            events.create_session_event(user_id, expiry),
        )
        self.store.dispatch(actions.logout())
        return True

    # --- Internals ---

    def _on_transition(self, state: ApplicationState, action: actions.Action) -> None:
        self._sync(state)

    def _sync(self, state: ApplicationState) -> None:
        if state.auth.is_authenticated and state.auth.session_expiry is not None:
            self._arm(state)
        else:
            self._disarm()

    def _arm(self, state: ApplicationState) -> None:
        if self.is_active:
            return
        self.state = MonitorState.ACTIVE
        user_id = state.auth.user.id if state.auth.user else None
        logger.debug(f"Session monitor armed for user {user_id}")
        self.store.bus.publish(
            events.TOPIC_SESSION_ARMED,
            events.create_session_event(user_id, state.auth.session_expiry),
        )
        self._schedule()

    def _disarm(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
        if not self.is_active:
            return
        self.state = MonitorState.INACTIVE
        logger.debug("Session monitor disarmed")
        self.store.bus.publish(events.TOPIC_SESSION_DISARMED, events.create_session_event(None))

    def _schedule(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; session monitor waits for start() or check()")
            return
        self._task = loop.create_task(self._poll())

    async def _poll(self) -> None:
        while self.is_active:
            await asyncio.sleep(self.interval)
            try:
                self.check()
            except Exception:
                logger.exception("Session check failed")
