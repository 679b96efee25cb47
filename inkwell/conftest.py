# inkwell/conftest.py
import os

import pytest


@pytest.fixture(scope="session")
def db_url():
    """
    Provide DATABASE_URL for tests.

    Returns the URL from environment, or None if not set.
    Tests can use this to conditionally enable persistence tests.
    """
    return os.getenv("DATABASE_URL")


@pytest.fixture(scope="session", autouse=True)
def create_tables(db_url):
    """
    Create all database tables before running tests.

    Runs once per test session if DATABASE_URL is set.
    """
    if not db_url:
        yield
        return

    from inkwell.core.database import create_all_tables
    create_all_tables()
    yield


@pytest.fixture(scope="function")
def reset_db(db_url):
    """
    Truncate all tables before and after a test.

    Only runs if DATABASE_URL is set.
    """
    if not db_url:
        yield
        return

    from sqlalchemy import text
    from inkwell.core.database import get_engine, metadata

    engine = get_engine()
    table_names = [table.name for table in metadata.sorted_tables]

    def _truncate():
        with engine.connect() as conn:
            for table_name in reversed(table_names):
                conn.execute(text(f"TRUNCATE TABLE {table_name} CASCADE"))
            conn.commit()

    _truncate()
    yield
    _truncate()


@pytest.fixture(scope="function", autouse=True)
def reset_singletons():
    """
    Fresh stores and generator for every test.

    Store singletons are rebuilt lazily on next use, so in-memory state never
    leaks between tests.
    """
    from inkwell.features.journal.store import reset_journal_store
    from inkwell.features.progress.store import reset_progress_store
    from inkwell.features.weekly.generator import reset_text_generator
    from inkwell.features.weekly.store import reset_summary_store

    reset_progress_store()
    reset_journal_store()
    reset_summary_store()
    reset_text_generator()
    yield
    reset_progress_store()
    reset_journal_store()
    reset_summary_store()
    reset_text_generator()
