"""
inkwell/features/journal/store.py

Journal sessions and messages.

In-memory implementation; PostgreSQL lives in store_pg.py with the same
interface.
"""

from __future__ import annotations

import os
import threading
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional, Protocol, Tuple
from uuid import uuid4

from inkwell.core.errors import NotFoundError
from inkwell.models.journal import JournalMessage, JournalSession, MessageRole


class JournalStore(Protocol):
    def create_session(self, user_id: str, started_at: datetime) -> JournalSession:
        ...

    def get_session(self, session_id: str, user_id: str) -> Optional[JournalSession]:
        ...

    def add_message(
        self,
        session_id: str,
        role: MessageRole,
        content: str,
        created_at: datetime,
        word_count: int = 0,
    ) -> JournalMessage:
        ...

    def add_session_golden_ink(self, session_id: str, delta: int) -> JournalSession:
        ...

    def list_messages(self, session_id: str) -> List[JournalMessage]:
        ...

    def list_sessions(self, user_id: str, limit: int, offset: int) -> List[JournalSession]:
        """A user's sessions, newest first, each with first_user_message set."""
        ...

    def get_or_create_active_session(
        self, user_id: str, day_start: datetime, day_end: datetime, now: datetime
    ) -> Tuple[JournalSession, bool]:
        """
        Newest active session started in [day_start, day_end), or a new one.

        Atomic per user, so concurrent calls on the same day share one
        session. The flag is True when the session was created.
        """
        ...

    def clear(self) -> None:
        ...


class InMemoryJournalStore:
    def __init__(self):
        self._sessions: Dict[str, JournalSession] = {}
        self._next_message_id = 1
        self._lock = threading.Lock()

    def create_session(self, user_id: str, started_at: datetime) -> JournalSession:
        session = JournalSession(id=str(uuid4()), user_id=user_id, started_at=started_at)
        with self._lock:
            self._sessions[session.id] = session
        return replace(session, messages=[])

    def get_session(self, session_id: str, user_id: str) -> Optional[JournalSession]:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None or session.user_id != user_id:
                return None
            return replace(session, messages=list(session.messages))

    def add_message(
        self,
        session_id: str,
        role: MessageRole,
        content: str,
        created_at: datetime,
        word_count: int = 0,
    ) -> JournalMessage:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise NotFoundError(f"Session {session_id} not found")
            message = JournalMessage(
                id=self._next_message_id,
                session_id=session_id,
                role=role,
                content=content,
                created_at=created_at,
                word_count=word_count,
            )
            self._next_message_id += 1
            session.messages.append(message)
            session.message_count += 1
            return replace(message)

    def add_session_golden_ink(self, session_id: str, delta: int) -> JournalSession:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise NotFoundError(f"Session {session_id} not found")
            session.golden_ink_earned += max(0, delta)
            return replace(session, messages=list(session.messages))

    def list_messages(self, session_id: str) -> List[JournalMessage]:
        with self._lock:
            session = self._sessions.get(session_id)
            return [replace(m) for m in session.messages] if session else []

    def list_sessions(self, user_id: str, limit: int, offset: int) -> List[JournalSession]:
        with self._lock:
            owned = [s for s in self._sessions.values() if s.user_id == user_id]
            owned.sort(key=lambda s: (s.started_at, s.id), reverse=True)
            page = []
            for s in owned[offset:offset + limit]:
                first = next((m.content for m in s.messages if m.role == "user"), None)
                page.append(replace(s, messages=[], first_user_message=first))
            return page

    def get_or_create_active_session(
        self, user_id: str, day_start: datetime, day_end: datetime, now: datetime
    ) -> Tuple[JournalSession, bool]:
        with self._lock:
            active = [
                s for s in self._sessions.values()
                if s.user_id == user_id and s.status == "active" and day_start <= s.started_at < day_end
            ]
            if active:
                newest = max(active, key=lambda s: (s.started_at, s.id))
                return replace(newest, messages=list(newest.messages)), False
            session = JournalSession(id=str(uuid4()), user_id=user_id, started_at=now)
            self._sessions[session.id] = session
            return replace(session, messages=[]), True

    def sessions_between(self, user_id: str, start: datetime, end: datetime) -> List[JournalSession]:
        """Sessions of a user whose start falls inside [start, end], oldest first."""
        with self._lock:
            found = [
                replace(s, messages=list(s.messages)) for s in self._sessions.values()
                if s.user_id == user_id and start <= s.started_at <= end
            ]
        return sorted(found, key=lambda s: s.started_at)

    def clear(self) -> None:
        """FOR TESTING ONLY."""
        with self._lock:
            self._sessions.clear()
            self._next_message_id = 1


def get_journal_store_impl() -> JournalStore:
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        from inkwell.core.database import check_connection
        from inkwell.features.journal.store_pg import PostgresJournalStore

        if check_connection():
            return PostgresJournalStore()

    return InMemoryJournalStore()


_store_instance: Optional[JournalStore] = None


def get_journal_store() -> JournalStore:
    global _store_instance
    if _store_instance is None:
        _store_instance = get_journal_store_impl()
    return _store_instance


def reset_journal_store() -> None:
    """FOR TESTING ONLY."""
    global _store_instance
    _store_instance = None
