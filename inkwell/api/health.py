"""
Health endpoints for Inkwell.

Liveness never touches dependencies; readiness probes the database only when
one is configured.
"""

import logging
import os
import time

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import inspect

from inkwell.core.database import get_engine
from inkwell.core.logging import get_request_id, latency_bucket_ms

logger = logging.getLogger("inkwell")

root_router = APIRouter(tags=["health"])

REQUIRED_TABLES = [
    "user_progress",
    "journal_sessions",
    "journal_messages",
    "weekly_summaries",
]


@root_router.get("/healthz")
def healthz():
    """Lightweight liveness check (no deps)."""
    return {"status": "ok"}


@root_router.get("/readyz")
def readyz():
    """Readiness check: DB connectivity + required tables, or in-memory storage."""
    if not os.getenv("DATABASE_URL"):
        return {"status": "ok", "storage": "memory"}

    start = time.perf_counter()
    try:
        engine = get_engine()
        with engine.connect() as conn:
            conn.exec_driver_sql("SELECT 1")

        inspector = inspect(engine)
        missing = [t for t in REQUIRED_TABLES if not inspector.has_table(t)]
        if missing:
            detail = f"missing tables: {', '.join(missing)}"
            logger.warning(f"[readyz] {detail}")
            return JSONResponse(status_code=503, content={"status": "error", "detail": detail})
    except Exception as e:
        logger.error(f"[readyz] readiness check failed: {e}")
        return JSONResponse(status_code=503, content={"status": "error", "detail": "database unreachable"})

    logger.info(
        "health.ready",
        extra={
            "request_id": get_request_id(),
            "latency_bucket": latency_bucket_ms((time.perf_counter() - start) * 1000),
        },
    )
    return {"status": "ok", "storage": "postgres"}
