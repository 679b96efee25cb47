"""
inkwell/features/progress/store.py

Per-user progress storage.

The store is the only serialization point for reward state: every method is
atomic for one user row, and callers compose several calls per reward event
without a surrounding transaction. update_streak is a compare-and-swap on
last_active_date so the daily streak/marble award happens at most once per
user per day even under concurrent messages.
"""

from __future__ import annotations

import os
import threading
from dataclasses import replace
from datetime import date
from typing import Dict, Optional, Protocol

from inkwell.models.progress import UserProgress


class ProgressStore(Protocol):
    """Interface shared by the in-memory and PostgreSQL stores."""

    def get(self, user_id: str) -> Optional[UserProgress]:
        ...

    def get_or_create(self, user_id: str) -> UserProgress:
        ...

    def add_golden_ink(self, user_id: str, delta: int) -> UserProgress:
        ...

    def add_marble(self, user_id: str, delta: int) -> UserProgress:
        ...

    def update_streak(self, user_id: str, new_streak: int, active_date: date) -> Optional[UserProgress]:
        """
        Set current_streak and last_active_date, raising longest_streak.

        Returns None (and writes nothing) when last_active_date already
        equals active_date, i.e. another request already won the day.
        """
        ...

    def add_xp(self, user_id: str, delta: int) -> UserProgress:
        """Add delta to both total_xp and current_xp."""
        ...

    def raise_level(
        self, user_id: str, from_level: int, to_level: int, level_floor_xp: int
    ) -> Optional[UserProgress]:
        """
        Move level from from_level up to to_level.

        current_xp is rewritten from the stored total_xp as
        total_xp - level_floor_xp. Returns None (and writes nothing) when the
        stored level is no longer from_level or to_level is not higher, so a
        level never moves down.
        """
        ...

    def clear(self) -> None:
        ...


class InMemoryProgressStore:
    """
    Dict-backed store used when no database is configured.

    The lock stands in for row-level locking in the database; it guards one
    row mutation at a time and is never held across calls.
    """

    def __init__(self):
        self._rows: Dict[str, UserProgress] = {}
        self._lock = threading.Lock()

    def _ensure(self, user_id: str) -> UserProgress:
        row = self._rows.get(user_id)
        if row is None:
            row = UserProgress(user_id=user_id)
            self._rows[user_id] = row
        return row

    def get(self, user_id: str) -> Optional[UserProgress]:
        with self._lock:
            row = self._rows.get(user_id)
            return replace(row) if row else None

    def get_or_create(self, user_id: str) -> UserProgress:
        with self._lock:
            return replace(self._ensure(user_id))

    def add_golden_ink(self, user_id: str, delta: int) -> UserProgress:
        with self._lock:
            row = self._ensure(user_id)
            row.golden_ink = max(0, row.golden_ink + delta)
            return replace(row)

    def add_marble(self, user_id: str, delta: int) -> UserProgress:
        with self._lock:
            row = self._ensure(user_id)
            row.marble = max(0, row.marble + delta)
            return replace(row)

    def update_streak(self, user_id: str, new_streak: int, active_date: date) -> Optional[UserProgress]:
        with self._lock:
            row = self._ensure(user_id)
            if row.last_active_date == active_date:
                return None
            row.current_streak = new_streak
            row.longest_streak = max(row.longest_streak, new_streak)
            row.last_active_date = active_date
            return replace(row)

    def add_xp(self, user_id: str, delta: int) -> UserProgress:
        with self._lock:
            row = self._ensure(user_id)
            row.total_xp = max(0, row.total_xp + delta)
            row.current_xp = max(0, row.current_xp + delta)
            return replace(row)

    def raise_level(
        self, user_id: str, from_level: int, to_level: int, level_floor_xp: int
    ) -> Optional[UserProgress]:
        with self._lock:
            row = self._ensure(user_id)
            if row.level != from_level or to_level <= row.level:
                return None
            row.level = to_level
            row.current_xp = max(0, row.total_xp - level_floor_xp)
            return replace(row)

    def clear(self) -> None:
        """FOR TESTING ONLY."""
        with self._lock:
            self._rows.clear()

    def count(self) -> int:
        return len(self._rows)


def get_progress_store_impl() -> ProgressStore:
    """
    Pick the store implementation.

    - PostgreSQL if DATABASE_URL is configured and reachable
    - In-memory otherwise
    """
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        from inkwell.core.database import check_connection
        from inkwell.features.progress.store_pg import PostgresProgressStore

        if check_connection():
            return PostgresProgressStore()

    return InMemoryProgressStore()


_store_instance: Optional[ProgressStore] = None


def get_progress_store() -> ProgressStore:
    """Singleton accessor; the primary API consumers should use."""
    global _store_instance
    if _store_instance is None:
        _store_instance = get_progress_store_impl()
    return _store_instance


def reset_progress_store() -> None:
    """FOR TESTING ONLY - forces re-initialization on next get_progress_store() call."""
    global _store_instance
    _store_instance = None
