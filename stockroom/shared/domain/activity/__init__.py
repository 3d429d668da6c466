"""Activity log: record builders and queries (filtering, daily statistics, recent entries)."""

from .recorder import make_activity, new_id, record_activity
from .queries import DailyStats, TimeWindow, daily_stats, filter_activities, recent, todays_activities

__all__ = [
    "make_activity",
    "new_id",
    "record_activity",
    "DailyStats",
    "TimeWindow",
    "daily_stats",
    "filter_activities",
    "recent",
    "todays_activities",
]
