"""
Weekly summary domain model.

A weekly summary is an immutable snapshot of one user's completed
Sunday-Saturday week: counts plus an AI-authored letter and emotion profile.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Literal, Optional

SummaryTrend = Literal["improving", "stable", "challenging"]


@dataclass(frozen=True)
class WeekBoundaries:
    """Sunday 00:00:00 through Saturday 23:59:59, both in the same local zone."""

    start: datetime
    end: datetime

    @property
    def start_date(self) -> date:
        return self.start.date()

    @property
    def end_date(self) -> date:
        return self.end.date()

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end

    def to_dict(self) -> dict:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "week_start": self.start_date.isoformat(),
            "week_end": self.end_date.isoformat(),
        }


@dataclass(frozen=True)
class WeekCounts:
    session_count: int = 0
    message_count: int = 0


@dataclass
class EmotionProfile:
    dominant_emotion: str
    secondary_emotions: List[str] = field(default_factory=list)
    trend: SummaryTrend = "stable"
    insights: List[str] = field(default_factory=list)
    encouragement: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dominant_emotion": self.dominant_emotion,
            "secondary_emotions": list(self.secondary_emotions),
            "trend": self.trend,
            "insights": list(self.insights),
            "encouragement": self.encouragement,
        }


@dataclass
class WeeklySummary:
    """
    One row per (user_id, week_start). Created once, never updated.

    persisted is False only for the canned empty-week summary, which is
    returned to the caller but never written.
    """

    user_id: str
    week_start: date
    week_end: date
    summary: str
    session_count: int
    message_count: int
    emotions: Dict[str, Any]
    id: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    persisted: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "week_start": self.week_start.isoformat(),
            "week_end": self.week_end.isoformat(),
            "summary": self.summary,
            "session_count": self.session_count,
            "message_count": self.message_count,
            "emotions": dict(self.emotions),
            "created_at": self.created_at.isoformat(),
            "persisted": self.persisted,
        }
