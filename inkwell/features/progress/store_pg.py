"""
inkwell/features/progress/store_pg.py

PostgreSQL-backed progress store.

Every mutation is one statement: counters are incremented in SQL and the
streak update carries its own compare-and-swap predicate, so concurrent
requests for the same user never lose an update.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError

from inkwell.core.database import get_db_session, user_progress
from inkwell.core.errors import StoreError
from inkwell.models.progress import UserProgress


def _row_to_progress(row) -> UserProgress:
    return UserProgress(
        user_id=row.user_id,
        golden_ink=row.golden_ink,
        marble=row.marble,
        current_streak=row.current_streak,
        longest_streak=row.longest_streak,
        level=row.level,
        current_xp=row.current_xp,
        total_xp=row.total_xp,
        last_active_date=row.last_active_date,
    )


class PostgresProgressStore:
    """Same interface as InMemoryProgressStore with durability."""

    def _upsert_increment(self, user_id: str, **deltas: int) -> UserProgress:
        stmt = insert(user_progress).values(user_id=user_id, **{k: max(0, v) for k, v in deltas.items()})
        stmt = stmt.on_conflict_do_update(
            index_elements=[user_progress.c.user_id],
            set_={
                name: func.greatest(0, user_progress.c[name] + delta)
                for name, delta in deltas.items()
            },
        ).returning(*user_progress.c)
        try:
            with get_db_session() as session:
                row = session.execute(stmt).one()
                return _row_to_progress(row)
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to update progress for {user_id}") from exc

    def get(self, user_id: str) -> Optional[UserProgress]:
        try:
            with get_db_session() as session:
                row = session.execute(
                    select(user_progress).where(user_progress.c.user_id == user_id)
                ).first()
                return _row_to_progress(row) if row else None
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to read progress for {user_id}") from exc

    def get_or_create(self, user_id: str) -> UserProgress:
        try:
            with get_db_session() as session:
                session.execute(
                    insert(user_progress)
                    .values(user_id=user_id)
                    .on_conflict_do_nothing(index_elements=[user_progress.c.user_id])
                )
                row = session.execute(
                    select(user_progress).where(user_progress.c.user_id == user_id)
                ).one()
                return _row_to_progress(row)
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to load progress for {user_id}") from exc

    def add_golden_ink(self, user_id: str, delta: int) -> UserProgress:
        return self._upsert_increment(user_id, golden_ink=delta)

    def add_marble(self, user_id: str, delta: int) -> UserProgress:
        return self._upsert_increment(user_id, marble=delta)

    def add_xp(self, user_id: str, delta: int) -> UserProgress:
        return self._upsert_increment(user_id, total_xp=delta, current_xp=delta)

    def update_streak(self, user_id: str, new_streak: int, active_date: date) -> Optional[UserProgress]:
        stmt = (
            update(user_progress)
            .where(user_progress.c.user_id == user_id)
            .where(
                or_(
                    user_progress.c.last_active_date.is_(None),
                    user_progress.c.last_active_date != active_date,
                )
            )
            .values(
                current_streak=new_streak,
                longest_streak=func.greatest(user_progress.c.longest_streak, new_streak),
                last_active_date=active_date,
                updated_at=func.now(),
            )
            .returning(*user_progress.c)
        )
        try:
            with get_db_session() as session:
                row = session.execute(stmt).first()
                return _row_to_progress(row) if row else None
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to update streak for {user_id}") from exc

    def raise_level(
        self, user_id: str, from_level: int, to_level: int, level_floor_xp: int
    ) -> Optional[UserProgress]:
        if to_level <= from_level:
            return None
        stmt = (
            update(user_progress)
            .where(user_progress.c.user_id == user_id)
            .where(user_progress.c.level == from_level)
            .values(
                level=to_level,
                current_xp=func.greatest(0, user_progress.c.total_xp - level_floor_xp),
                updated_at=func.now(),
            )
            .returning(*user_progress.c)
        )
        try:
            with get_db_session() as session:
                row = session.execute(stmt).first()
                return _row_to_progress(row) if row else None
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to raise level for {user_id}") from exc

    def clear(self) -> None:
        """FOR TESTING ONLY."""
        with get_db_session() as session:
            session.execute(user_progress.delete())
