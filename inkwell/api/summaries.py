"""
Weekly summary API.

Store and generator failures are not distinguished for the caller: both
come back as one generic summary_unavailable error.
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from inkwell.api.paging import parse_page
from inkwell.core.auth import get_current_user_id
from inkwell.core.config import settings
from inkwell.core.errors import AppError
from inkwell.core.logging import log_event
from inkwell.features.weekly.service import get_weekly_orchestrator

router = APIRouter(prefix="/v1/summaries", tags=["summaries"])


class SummaryUnavailable(AppError):
    code = "summary_unavailable"
    status_code = 503


def _unavailable(user_id: str, exc: Exception) -> SummaryUnavailable:
    log_event(
        "error",
        "weekly_summary.failed",
        user_id=user_id,
        event_type="weekly_summary.failed",
        error_code=getattr(exc, "code", exc.__class__.__name__),
        extra={"error_message": str(exc)},
    )
    return SummaryUnavailable("Weekly summary is not available right now")


@router.get("")
def list_summaries(
    limit: Optional[str] = Query(None),
    offset: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
):
    page_limit, page_offset = parse_page(
        limit, offset, settings.SUMMARY_LIST_DEFAULT_LIMIT, settings.SUMMARY_LIST_MAX_LIMIT
    )
    try:
        rows = get_weekly_orchestrator().list_summaries(user_id, limit=page_limit, offset=page_offset)
    except Exception as exc:
        raise _unavailable(user_id, exc) from exc
    return {
        "summaries": [r.to_dict() for r in rows],
        "limit": page_limit,
        "offset": page_offset,
    }


@router.get("/latest")
def latest_summary(user_id: str = Depends(get_current_user_id)):
    """Summary for the last completed week, generated on first request."""
    try:
        summary = get_weekly_orchestrator().generate_or_get(user_id)
    except Exception as exc:
        raise _unavailable(user_id, exc) from exc
    return summary.to_dict()
