"""
Weekly summary orchestration.

Summaries cover the last completed Sunday-Saturday week and are generated
lazily on first read. Once stored they are returned verbatim; the text
generator is never called twice for the same (user, week).
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from inkwell.core.errors import ConflictError
from inkwell.core.logging import log_event
from inkwell.features.weekly.generator import TextGenerator, build_weekly_prompt
from inkwell.features.weekly.schema import parse_summary_response, to_json_schema
from inkwell.features.weekly.store import SummaryStore
from inkwell.features.weekly.windows import WeekWindower
from inkwell.models.weekly_summary import EmotionProfile, WeekBoundaries, WeekCounts, WeeklySummary

EMPTY_WEEK_SUMMARY = "You didn't write in your journal last week. Whenever you're ready, the page is here."
EMPTY_WEEK_ENCOURAGEMENT = "Even one sentence is a good start. Try writing a little this week."


def empty_week_summary(user_id: str, week: WeekBoundaries, counts: Optional[WeekCounts] = None) -> WeeklySummary:
    """Canned summary for a week without user messages. Never persisted."""
    counts = counts or WeekCounts()
    emotions = EmotionProfile(
        dominant_emotion="neutral",
        secondary_emotions=[],
        trend="stable",
        insights=[],
        encouragement=EMPTY_WEEK_ENCOURAGEMENT,
    )
    return WeeklySummary(
        user_id=user_id,
        week_start=week.start_date,
        week_end=week.end_date,
        summary=EMPTY_WEEK_SUMMARY,
        session_count=counts.session_count,
        message_count=0,
        emotions=emotions.to_dict(),
        persisted=False,
    )


class WeeklySummaryOrchestrator:
    def __init__(self, store: SummaryStore, generator: TextGenerator, windower: WeekWindower):
        self.store = store
        self.generator = generator
        self.windower = windower

    def generate_or_get(self, user_id: str, now: Optional[datetime] = None) -> WeeklySummary:
        week = self.windower.last_completed_week(now)

        existing = self.store.find(user_id, week.start_date)
        if existing is not None:
            return existing

        counts = self.store.aggregate_counts(user_id, week.start, week.end)
        texts = self.store.fetch_message_texts(user_id, week.start, week.end)
        if counts.message_count == 0 or not texts:
            return empty_week_summary(user_id, week, counts)

        prompt = build_weekly_prompt(texts, counts, week)
        raw = self.generator.complete_structured(prompt, to_json_schema())
        draft = parse_summary_response(raw)

        summary = WeeklySummary(
            user_id=user_id,
            week_start=week.start_date,
            week_end=week.end_date,
            summary=draft.summary,
            session_count=counts.session_count,
            message_count=counts.message_count,
            emotions=draft.emotions().to_dict(),
        )
        try:
            created = self.store.create(summary)
        except ConflictError:
            # A concurrent request stored this week first; theirs wins
            winner = self.store.find(user_id, week.start_date)
            if winner is None:
                raise
            log_event(
                "info",
                "weekly_summary.reconciled",
                user_id=user_id,
                event_type="weekly_summary.reconciled",
                extra={"week_start": week.start_date.isoformat()},
            )
            return winner

        log_event(
            "info",
            "weekly_summary.generated",
            user_id=user_id,
            event_type="weekly_summary.generated",
            extra={
                "week_start": week.start_date.isoformat(),
                "session_count": counts.session_count,
                "message_count": counts.message_count,
            },
        )
        return created

    def get_latest(self, user_id: str) -> Optional[WeeklySummary]:
        return self.store.latest(user_id)

    def list_summaries(self, user_id: str, limit: int = 10, offset: int = 0) -> List[WeeklySummary]:
        return self.store.list(user_id, limit=max(1, limit), offset=max(0, offset))


def get_weekly_orchestrator() -> WeeklySummaryOrchestrator:
    from inkwell.features.weekly.generator import get_text_generator
    from inkwell.features.weekly.store import get_summary_store
    from inkwell.features.weekly.windows import get_week_windower

    return WeeklySummaryOrchestrator(get_summary_store(), get_text_generator(), get_week_windower())
