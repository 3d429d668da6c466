"""Read-only queries over the activity log.

The log is stored newest first; every query here keeps that order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from stockroom.shared.core.clock import ensure_utc, utcnow
from stockroom.state.models import ActivityKind, ActivityRecord

logger = logging.getLogger(__name__)


class TimeWindow(str, Enum):
    ALL = "all"
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"


_WINDOW_SPANS = {
    TimeWindow.WEEK: timedelta(days=7),
    TimeWindow.MONTH: timedelta(days=30),
}


@dataclass(frozen=True)
class DailyStats:
    total: int = 0
    create: int = 0
    update: int = 0
    delete: int = 0
    scan: int = 0


def _in_window(record: ActivityRecord, window: TimeWindow, now: datetime) -> bool:
    if window is TimeWindow.ALL:
        return True
    if window is TimeWindow.TODAY:
        return record.timestamp.date() == now.date()
    return record.timestamp >= now - _WINDOW_SPANS[window]


def _matches_text(record: ActivityRecord, search: str) -> bool:
    needle = search.lower()
    return needle in record.description.lower() or needle in record.kind.value


def filter_activities(
    records: Iterable[ActivityRecord],
    search: str = "",
    kind: ActivityKind | str | None = None,
    window: TimeWindow | str = TimeWindow.ALL,
    now: Optional[datetime] = None,
) -> List[ActivityRecord]:
    """Filter the log by free text, kind and time window.

    Args:
        records: Activity records, newest first
        search: Case-insensitive text matched against description and kind
        kind: Only keep records of this kind (None or "all" keeps every kind)
        window: all / today / week (last 7 days) / month (last 30 days)
        now: Reference time (defaults to the current UTC time)

    Returns:
        Matching records in their original order
    """
    window = TimeWindow(window)
    kind_filter = None if kind in (None, "all") else ActivityKind(kind)
    now = ensure_utc(now) if now is not None else utcnow()

    return [
        record
        for record in records
        if (not search or _matches_text(record, search))
        and (kind_filter is None or record.kind is kind_filter)
        and _in_window(record, window, now)
    ]


def todays_activities(records: Iterable[ActivityRecord], now: Optional[datetime] = None) -> List[ActivityRecord]:
    return filter_activities(records, window=TimeWindow.TODAY, now=now)


def daily_stats(records: Iterable[ActivityRecord], now: Optional[datetime] = None) -> DailyStats:
    """Count today's activity per kind (searches only count towards the total)."""
    today = todays_activities(records, now)
    counts = {kind: 0 for kind in ActivityKind}
    for record in today:
        counts[record.kind] += 1
    return DailyStats(
        total=len(today),
        create=counts[ActivityKind.CREATE],
        update=counts[ActivityKind.UPDATE],
        delete=counts[ActivityKind.DELETE],
        scan=counts[ActivityKind.SCAN],
    )


def recent(records: Sequence[ActivityRecord], n: int = 5) -> List[ActivityRecord]:
    """The ``n`` newest records."""
    return list(records[: max(n, 0)])
