"""Sunday-Saturday week windows in an injected local timezone."""

from __future__ import annotations

import logging
from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from inkwell.models.weekly_summary import WeekBoundaries

logger = logging.getLogger("inkwell")

WEEK_END_TIME = time(23, 59, 59)


def load_location(name: str = "Asia/Jakarta", fallback_offset_hours: int = 7) -> tzinfo:
    """Resolve a tz database zone, or a fixed offset if the database is unavailable."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Timezone {name} not found, using fixed UTC{fallback_offset_hours:+d}")
        return timezone(timedelta(hours=fallback_offset_hours), "WIB")


def sunday_index(moment: datetime) -> int:
    """Weekday with Sunday=0 .. Saturday=6."""
    return (moment.weekday() + 1) % 7


class WeekWindower:
    def __init__(self, location: tzinfo):
        self.location = location

    def localize(self, now: Optional[datetime] = None) -> datetime:
        moment = now or datetime.now(timezone.utc)
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return moment.astimezone(self.location)

    def _window_ending(self, saturday) -> WeekBoundaries:
        sunday = saturday - timedelta(days=6)
        return WeekBoundaries(
            start=datetime.combine(sunday, time.min, tzinfo=self.location),
            end=datetime.combine(saturday, WEEK_END_TIME, tzinfo=self.location),
        )

    def current_week(self, now: Optional[datetime] = None) -> WeekBoundaries:
        local = self.localize(now)
        sunday = local.date() - timedelta(days=sunday_index(local))
        return self._window_ending(sunday + timedelta(days=6))

    def last_completed_week(self, now: Optional[datetime] = None) -> WeekBoundaries:
        local = self.localize(now)
        index = sunday_index(local)
        # A Saturday is not complete until it has fully elapsed
        days_back = 7 if index == 6 else index + 1
        return self._window_ending(local.date() - timedelta(days=days_back))


def get_week_windower(cfg=None) -> WeekWindower:
    from inkwell.core.config import settings

    cfg = cfg or settings
    return WeekWindower(load_location(cfg.LOCAL_TIMEZONE, cfg.LOCAL_UTC_OFFSET_HOURS))
