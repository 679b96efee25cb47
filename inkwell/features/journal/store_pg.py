"""
inkwell/features/journal/store_pg.py

PostgreSQL-backed journal sessions and messages.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import uuid4

from sqlalchemy import func, insert, select, update
from sqlalchemy.exc import SQLAlchemyError

from inkwell.core.database import get_db_session, journal_messages, journal_sessions
from inkwell.core.errors import NotFoundError, StoreError
from inkwell.models.journal import JournalMessage, JournalSession, MessageRole


def _row_to_session(row) -> JournalSession:
    return JournalSession(
        id=row.id,
        user_id=row.user_id,
        started_at=row.started_at,
        status=row.status,
        golden_ink_earned=row.golden_ink_earned,
        message_count=row.message_count,
    )


def _row_to_message(row) -> JournalMessage:
    return JournalMessage(
        id=row.id,
        session_id=row.session_id,
        role=row.role,
        content=row.content,
        created_at=row.created_at,
        word_count=row.word_count,
    )


class PostgresJournalStore:
    def create_session(self, user_id: str, started_at: datetime) -> JournalSession:
        try:
            with get_db_session() as session:
                row = session.execute(
                    insert(journal_sessions)
                    .values(id=str(uuid4()), user_id=user_id, started_at=started_at)
                    .returning(*journal_sessions.c)
                ).one()
                return _row_to_session(row)
        except SQLAlchemyError as exc:
            raise StoreError("Failed to create journal session") from exc

    def get_session(self, session_id: str, user_id: str) -> Optional[JournalSession]:
        try:
            with get_db_session() as session:
                row = session.execute(
                    select(journal_sessions).where(
                        journal_sessions.c.id == session_id,
                        journal_sessions.c.user_id == user_id,
                    )
                ).first()
                return _row_to_session(row) if row else None
        except SQLAlchemyError as exc:
            raise StoreError("Failed to read journal session") from exc

    def add_message(
        self,
        session_id: str,
        role: MessageRole,
        content: str,
        created_at: datetime,
        word_count: int = 0,
    ) -> JournalMessage:
        try:
            with get_db_session() as session:
                bumped = session.execute(
                    update(journal_sessions)
                    .where(journal_sessions.c.id == session_id)
                    .values(message_count=journal_sessions.c.message_count + 1)
                    .returning(journal_sessions.c.id)
                ).first()
                if bumped is None:
                    raise NotFoundError(f"Session {session_id} not found")
                row = session.execute(
                    insert(journal_messages)
                    .values(
                        session_id=session_id,
                        role=role,
                        content=content,
                        word_count=word_count,
                        created_at=created_at,
                    )
                    .returning(*journal_messages.c)
                ).one()
                return _row_to_message(row)
        except SQLAlchemyError as exc:
            raise StoreError("Failed to save journal message") from exc

    def add_session_golden_ink(self, session_id: str, delta: int) -> JournalSession:
        try:
            with get_db_session() as session:
                row = session.execute(
                    update(journal_sessions)
                    .where(journal_sessions.c.id == session_id)
                    .values(golden_ink_earned=journal_sessions.c.golden_ink_earned + max(0, delta))
                    .returning(*journal_sessions.c)
                ).first()
        except SQLAlchemyError as exc:
            raise StoreError("Failed to add session golden ink") from exc
        if row is None:
            raise NotFoundError(f"Session {session_id} not found")
        return _row_to_session(row)

    def list_messages(self, session_id: str) -> List[JournalMessage]:
        try:
            with get_db_session() as session:
                rows = session.execute(
                    select(journal_messages)
                    .where(journal_messages.c.session_id == session_id)
                    .order_by(journal_messages.c.created_at, journal_messages.c.id)
                ).all()
                return [_row_to_message(r) for r in rows]
        except SQLAlchemyError as exc:
            raise StoreError("Failed to list journal messages") from exc

    def list_sessions(self, user_id: str, limit: int, offset: int) -> List[JournalSession]:
        first_message = (
            select(journal_messages.c.content)
            .where(
                journal_messages.c.session_id == journal_sessions.c.id,
                journal_messages.c.role == "user",
            )
            .order_by(journal_messages.c.created_at, journal_messages.c.id)
            .limit(1)
            .correlate(journal_sessions)
            .scalar_subquery()
            .label("first_user_message")
        )
        stmt = (
            select(journal_sessions, first_message)
            .where(journal_sessions.c.user_id == user_id)
            .order_by(journal_sessions.c.started_at.desc(), journal_sessions.c.id.desc())
            .limit(limit)
            .offset(offset)
        )
        try:
            with get_db_session() as session:
                rows = session.execute(stmt).all()
        except SQLAlchemyError as exc:
            raise StoreError("Failed to list journal sessions") from exc
        return [replace(_row_to_session(r), first_user_message=r.first_user_message) for r in rows]

    def get_or_create_active_session(
        self, user_id: str, day_start: datetime, day_end: datetime, now: datetime
    ) -> Tuple[JournalSession, bool]:
        try:
            with get_db_session() as session:
                # Serializes get-or-create per user until commit
                session.execute(select(func.pg_advisory_xact_lock(func.hashtext(user_id))))
                row = session.execute(
                    select(journal_sessions)
                    .where(
                        journal_sessions.c.user_id == user_id,
                        journal_sessions.c.status == "active",
                        journal_sessions.c.started_at >= day_start,
                        journal_sessions.c.started_at < day_end,
                    )
                    .order_by(journal_sessions.c.started_at.desc(), journal_sessions.c.id.desc())
                    .limit(1)
                ).first()
                if row is not None:
                    return _row_to_session(row), False
                row = session.execute(
                    insert(journal_sessions)
                    .values(id=str(uuid4()), user_id=user_id, started_at=now)
                    .returning(*journal_sessions.c)
                ).one()
                return _row_to_session(row), True
        except SQLAlchemyError as exc:
            raise StoreError("Failed to load today's journal session") from exc

    def clear(self) -> None:
        """FOR TESTING ONLY."""
        with get_db_session() as session:
            session.execute(journal_messages.delete())
            session.execute(journal_sessions.delete())
