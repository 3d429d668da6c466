"""Clock helpers.

All timestamps in the store are timezone-aware UTC. Components that depend on the
current time take a ``Clock`` so tests can substitute a controllable one.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, TypeAlias

Clock: TypeAlias = Callable[[], datetime]


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC and normalise aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def epoch_millis(clock: Clock = utcnow) -> int:
    return int(clock().timestamp() * 1000)
