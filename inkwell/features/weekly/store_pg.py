"""
inkwell/features/weekly/store_pg.py

PostgreSQL-backed weekly summaries. The (user_id, week_start) unique
constraint is the source of truth for idempotence; a violation surfaces
as ConflictError so the caller can re-read the winning row.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional
from uuid import uuid4

from sqlalchemy import distinct, func, insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from inkwell.core.database import get_db_session, journal_messages, journal_sessions, weekly_summaries
from inkwell.core.errors import ConflictError, StoreError
from inkwell.models.weekly_summary import WeekCounts, WeeklySummary


def _row_to_summary(row) -> WeeklySummary:
    return WeeklySummary(
        id=row.id,
        user_id=row.user_id,
        week_start=row.week_start,
        week_end=row.week_end,
        summary=row.summary,
        session_count=row.session_count,
        message_count=row.message_count,
        emotions=dict(row.emotions or {}),
        created_at=row.created_at,
    )


def _window_filter(user_id: str, start: datetime, end: datetime):
    return (
        journal_sessions.c.user_id == user_id,
        journal_sessions.c.started_at >= start,
        journal_sessions.c.started_at <= end,
        journal_messages.c.role == "user",
    )


class PostgresSummaryStore:
    def find(self, user_id: str, week_start: date) -> Optional[WeeklySummary]:
        try:
            with get_db_session() as session:
                row = session.execute(
                    select(weekly_summaries).where(
                        weekly_summaries.c.user_id == user_id,
                        weekly_summaries.c.week_start == week_start,
                    )
                ).first()
                return _row_to_summary(row) if row else None
        except SQLAlchemyError as exc:
            raise StoreError("Failed to read weekly summary") from exc

    def create(self, summary: WeeklySummary) -> WeeklySummary:
        values = {
            "id": summary.id or str(uuid4()),
            "user_id": summary.user_id,
            "week_start": summary.week_start,
            "week_end": summary.week_end,
            "summary": summary.summary,
            "session_count": summary.session_count,
            "message_count": summary.message_count,
            "emotions": summary.emotions,
            "created_at": summary.created_at,
        }
        try:
            with get_db_session() as session:
                row = session.execute(
                    insert(weekly_summaries).values(**values).returning(*weekly_summaries.c)
                ).one()
                return _row_to_summary(row)
        except IntegrityError as exc:
            raise ConflictError(
                f"Summary already exists for week {summary.week_start.isoformat()}"
            ) from exc
        except SQLAlchemyError as exc:
            raise StoreError("Failed to save weekly summary") from exc

    def latest(self, user_id: str) -> Optional[WeeklySummary]:
        rows = self.list(user_id, limit=1, offset=0)
        return rows[0] if rows else None

    def list(self, user_id: str, limit: int, offset: int) -> List[WeeklySummary]:
        try:
            with get_db_session() as session:
                rows = session.execute(
                    select(weekly_summaries)
                    .where(weekly_summaries.c.user_id == user_id)
                    .order_by(weekly_summaries.c.week_start.desc())
                    .limit(limit)
                    .offset(offset)
                ).all()
                return [_row_to_summary(r) for r in rows]
        except SQLAlchemyError as exc:
            raise StoreError("Failed to list weekly summaries") from exc

    def aggregate_counts(self, user_id: str, start: datetime, end: datetime) -> WeekCounts:
        try:
            with get_db_session() as session:
                session_count = session.execute(
                    select(func.count()).select_from(journal_sessions).where(
                        journal_sessions.c.user_id == user_id,
                        journal_sessions.c.started_at >= start,
                        journal_sessions.c.started_at <= end,
                    )
                ).scalar_one()
                message_count = session.execute(
                    select(func.count(distinct(journal_messages.c.id)))
                    .select_from(journal_messages.join(journal_sessions))
                    .where(*_window_filter(user_id, start, end))
                ).scalar_one()
        except SQLAlchemyError as exc:
            raise StoreError("Failed to aggregate weekly counts") from exc
        return WeekCounts(session_count=session_count, message_count=message_count)

    def fetch_message_texts(self, user_id: str, start: datetime, end: datetime) -> List[str]:
        try:
            with get_db_session() as session:
                rows = session.execute(
                    select(journal_messages.c.content)
                    .select_from(journal_messages.join(journal_sessions))
                    .where(*_window_filter(user_id, start, end))
                    .order_by(journal_messages.c.created_at, journal_messages.c.id)
                ).all()
        except SQLAlchemyError as exc:
            raise StoreError("Failed to fetch weekly message texts") from exc
        return [r.content for r in rows]

    def clear(self) -> None:
        """FOR TESTING ONLY."""
        with get_db_session() as session:
            session.execute(weekly_summaries.delete())
