"""
inkwell/features/weekly/store.py

Weekly summary persistence plus the read-side aggregates the orchestrator
needs (session/message counts and user message texts in a window).

At most one summary exists per (user_id, week_start); a second create for
the same key raises ConflictError.
"""

from __future__ import annotations

import os
import threading
from dataclasses import replace
from datetime import date, datetime
from typing import Dict, List, Optional, Protocol, Tuple
from uuid import uuid4

from inkwell.core.errors import ConflictError
from inkwell.models.weekly_summary import WeekCounts, WeeklySummary


class SummaryStore(Protocol):
    def find(self, user_id: str, week_start: date) -> Optional[WeeklySummary]:
        ...

    def create(self, summary: WeeklySummary) -> WeeklySummary:
        ...

    def latest(self, user_id: str) -> Optional[WeeklySummary]:
        ...

    def list(self, user_id: str, limit: int, offset: int) -> List[WeeklySummary]:
        ...

    def aggregate_counts(self, user_id: str, start: datetime, end: datetime) -> WeekCounts:
        ...

    def fetch_message_texts(self, user_id: str, start: datetime, end: datetime) -> List[str]:
        ...

    def clear(self) -> None:
        ...


class InMemorySummaryStore:
    """Dict-backed summaries; aggregates read from an InMemoryJournalStore."""

    def __init__(self, journal_store=None):
        if journal_store is None:
            from inkwell.features.journal.store import InMemoryJournalStore

            journal_store = InMemoryJournalStore()
        self.journal_store = journal_store
        self._rows: Dict[Tuple[str, date], WeeklySummary] = {}
        self._lock = threading.Lock()

    def find(self, user_id: str, week_start: date) -> Optional[WeeklySummary]:
        with self._lock:
            row = self._rows.get((user_id, week_start))
            return replace(row) if row else None

    def create(self, summary: WeeklySummary) -> WeeklySummary:
        key = (summary.user_id, summary.week_start)
        with self._lock:
            if key in self._rows:
                raise ConflictError(f"Summary already exists for week {summary.week_start.isoformat()}")
            stored = replace(summary, id=summary.id or str(uuid4()), persisted=True)
            self._rows[key] = stored
        return replace(stored)

    def _for_user(self, user_id: str) -> List[WeeklySummary]:
        with self._lock:
            rows = [replace(r) for (uid, _), r in self._rows.items() if uid == user_id]
        return sorted(rows, key=lambda r: r.week_start, reverse=True)

    def latest(self, user_id: str) -> Optional[WeeklySummary]:
        rows = self._for_user(user_id)
        return rows[0] if rows else None

    def list(self, user_id: str, limit: int, offset: int) -> List[WeeklySummary]:
        return self._for_user(user_id)[offset:offset + limit]

    def aggregate_counts(self, user_id: str, start: datetime, end: datetime) -> WeekCounts:
        sessions = self.journal_store.sessions_between(user_id, start, end)
        messages = sum(
            1 for s in sessions for m in s.messages if m.role == "user"
        )
        return WeekCounts(session_count=len(sessions), message_count=messages)

    def fetch_message_texts(self, user_id: str, start: datetime, end: datetime) -> List[str]:
        sessions = self.journal_store.sessions_between(user_id, start, end)
        messages = [m for s in sessions for m in s.messages if m.role == "user"]
        messages.sort(key=lambda m: (m.created_at, m.id))
        return [m.content for m in messages]

    def clear(self) -> None:
        """FOR TESTING ONLY."""
        with self._lock:
            self._rows.clear()


def get_summary_store_impl() -> SummaryStore:
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        from inkwell.core.database import check_connection
        from inkwell.features.weekly.store_pg import PostgresSummaryStore

        if check_connection():
            return PostgresSummaryStore()

    from inkwell.features.journal.store import get_journal_store

    return InMemorySummaryStore(get_journal_store())


_store_instance: Optional[SummaryStore] = None


def get_summary_store() -> SummaryStore:
    global _store_instance
    if _store_instance is None:
        _store_instance = get_summary_store_impl()
    return _store_instance


def reset_summary_store() -> None:
    """FOR TESTING ONLY."""
    global _store_instance
    _store_instance = None
