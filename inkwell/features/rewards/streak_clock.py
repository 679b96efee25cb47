"""Day-granularity activity gaps shared by the reward rules."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Literal, Optional

ActivityGap = Literal["first", "same_day", "consecutive", "broken"]


def utc_today(now: Optional[datetime] = None) -> date:
    """Midnight-truncated UTC calendar date of `now` (naive input is taken as UTC)."""
    moment = now or datetime.now(timezone.utc)
    aware = moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)
    return aware.astimezone(timezone.utc).date()


def days_since_active(last_active: Optional[date], today: date) -> Optional[int]:
    if last_active is None:
        return None
    return (today - last_active).days


def classify_gap(last_active: Optional[date], today: date) -> ActivityGap:
    days = days_since_active(last_active, today)
    if days is None:
        return "first"
    # A last_active_date ahead of today (clock skew) counts as already active
    if days <= 0:
        return "same_day"
    if days == 1:
        return "consecutive"
    return "broken"
