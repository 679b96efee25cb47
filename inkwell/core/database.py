"""
Database configuration and connection management.

This module provides:
- SQLAlchemy engine and session management
- Connection pooling with sane defaults
- Test database support
- Table definitions for progress, journal and weekly summaries
"""
from typing import Optional
from contextlib import contextmanager
from sqlalchemy import create_engine, MetaData, Table, Column, Integer, String, Date, DateTime, JSON, Text, Index, ForeignKey, UniqueConstraint, CheckConstraint, text
from sqlalchemy.pool import QueuePool
from sqlalchemy.orm import sessionmaker
from sqlalchemy.sql import func
import logging
import os

from inkwell.core.config import settings


# SQLAlchemy metadata for table definitions
metadata = MetaData()

# Connection pooling configuration
POOL_SIZE = 10
MAX_OVERFLOW = 20
POOL_TIMEOUT = 30
POOL_RECYCLE = 3600  # Recycle connections after 1 hour

# Global engine and session factory
_engine = None
_SessionLocal = None


def get_database_url() -> Optional[str]:
    """
    Get the database URL from settings or environment.

    For testing, use TEST_DATABASE_URL if available.
    """
    test_url = os.getenv("TEST_DATABASE_URL")
    if test_url:
        return test_url

    return os.getenv("DATABASE_URL") or settings.DATABASE_URL


def init_engine(database_url: Optional[str] = None):
    """
    Initialize the SQLAlchemy engine.

    Args:
        database_url: Optional override for DATABASE_URL
    """
    global _engine, _SessionLocal

    url = database_url or get_database_url()

    if not url:
        raise ValueError(
            "DATABASE_URL is not configured. "
            "Set DATABASE_URL in environment or .env file."
        )

    _engine = create_engine(
        url,
        poolclass=QueuePool,
        pool_size=POOL_SIZE,
        max_overflow=MAX_OVERFLOW,
        pool_timeout=POOL_TIMEOUT,
        pool_recycle=POOL_RECYCLE,
        echo=False,  # Set to True for SQL query logging
    )

    _SessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=_engine
    )

    return _engine


def get_engine():
    """Get the current SQLAlchemy engine."""
    global _engine
    if _engine is None:
        init_engine()
    return _engine


def get_session_factory():
    """Get the session factory."""
    global _SessionLocal
    if _SessionLocal is None:
        init_engine()
    return _SessionLocal


@contextmanager
def get_db_session():
    """
    Context manager for database sessions.

    Usage:
        with get_db_session() as session:
            session.execute(...)
    """
    SessionLocal = get_session_factory()
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_all_tables():
    """
    Create all tables defined in metadata.

    This is idempotent - tables that already exist will not be recreated.
    """
    engine = get_engine()
    metadata.create_all(bind=engine)


def check_connection() -> bool:
    """
    Check if database connection is available.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        engine = get_engine()
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logging.getLogger("inkwell").warning(f"Database connection check failed: {e}")
        return False


# One row per user; all counters are mutated with single-statement increments
user_progress = Table(
    'user_progress',
    metadata,
    Column('user_id', String(100), primary_key=True),
    Column('golden_ink', Integer, nullable=False, server_default='0'),
    Column('marble', Integer, nullable=False, server_default='0'),
    Column('current_streak', Integer, nullable=False, server_default='0'),
    Column('longest_streak', Integer, nullable=False, server_default='0'),
    Column('level', Integer, nullable=False, server_default='1'),
    Column('current_xp', Integer, nullable=False, server_default='0'),
    Column('total_xp', Integer, nullable=False, server_default='0'),
    Column('last_active_date', Date, nullable=True),
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
    Column('updated_at', DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False),
    CheckConstraint('golden_ink >= 0', name='ck_user_progress_golden_ink'),
    CheckConstraint('marble >= 0', name='ck_user_progress_marble'),
    CheckConstraint('level >= 1', name='ck_user_progress_level'),
)

journal_sessions = Table(
    'journal_sessions',
    metadata,
    Column('id', String(36), primary_key=True),
    Column('user_id', String(100), nullable=False, index=True),
    Column('status', String(20), nullable=False, server_default='active'),
    Column('golden_ink_earned', Integer, nullable=False, server_default='0'),
    Column('message_count', Integer, nullable=False, server_default='0'),
    Column('started_at', DateTime(timezone=True), nullable=False),
    Index('idx_journal_sessions_user_started', 'user_id', 'started_at'),
)

journal_messages = Table(
    'journal_messages',
    metadata,
    Column('id', Integer, primary_key=True, autoincrement=True),
    Column('session_id', String(36), ForeignKey('journal_sessions.id', ondelete='CASCADE'), nullable=False, index=True),
    Column('role', String(20), nullable=False),  # 'user' | 'assistant'
    Column('content', Text, nullable=False),
    Column('word_count', Integer, nullable=False, server_default='0'),
    Column('created_at', DateTime(timezone=True), nullable=False),
)

weekly_summaries = Table(
    'weekly_summaries',
    metadata,
    Column('id', String(36), primary_key=True),
    Column('user_id', String(100), nullable=False, index=True),
    Column('week_start', Date, nullable=False),
    Column('week_end', Date, nullable=False),
    Column('summary', Text, nullable=False),
    Column('session_count', Integer, nullable=False, server_default='0'),
    Column('message_count', Integer, nullable=False, server_default='0'),
    Column('emotions', JSON, nullable=False),
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
    UniqueConstraint('user_id', 'week_start', name='uq_weekly_summaries_user_week'),
    Index('idx_weekly_summaries_user_week', 'user_id', 'week_start'),
)
