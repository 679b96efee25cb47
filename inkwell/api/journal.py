from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, Field

from inkwell.api.paging import parse_page
from inkwell.core.auth import get_current_user_id
from inkwell.core.config import settings
from inkwell.core.errors import NotFoundError
from inkwell.features.journal.service import get_journal_service

router = APIRouter(prefix="/v1/journal", tags=["journal"])


class MessageRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=20000)


@router.post("/sessions", status_code=201)
def start_session(user_id: str = Depends(get_current_user_id)):
    session = get_journal_service().start_session(user_id)
    return session.to_dict()


@router.get("/sessions")
def list_sessions(
    limit: Optional[str] = Query(None),
    offset: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
):
    """Session history, newest first, with a preview of each first entry."""
    page_limit, page_offset = parse_page(
        limit, offset, settings.SESSION_LIST_DEFAULT_LIMIT, settings.SESSION_LIST_MAX_LIMIT
    )
    sessions = get_journal_service().list_sessions(user_id, page_limit, page_offset)
    return {
        "sessions": [
            {**s.to_dict(), "first_user_message": s.first_user_message or ""}
            for s in sessions
        ],
        "limit": page_limit,
        "offset": page_offset,
    }


@router.post("/sessions/today")
def today_session(response: Response, user_id: str = Depends(get_current_user_id)):
    session, messages, created = get_journal_service().get_or_create_today_session(user_id)
    if created:
        response.status_code = 201
    return {
        "session": session.to_dict(),
        "messages": [m.to_dict() for m in messages],
        "is_new": created,
    }


@router.get("/sessions/{session_id}")
def get_session(session_id: str, user_id: str = Depends(get_current_user_id)):
    service = get_journal_service()
    session = service.journal_store.get_session(session_id, user_id)
    if session is None:
        raise NotFoundError(f"Session {session_id} not found")
    data = session.to_dict()
    data["messages"] = [m.to_dict() for m in service.journal_store.list_messages(session_id)]
    return data


@router.get("/sessions/{session_id}/messages")
def list_messages(session_id: str, user_id: str = Depends(get_current_user_id)):
    messages = get_journal_service().list_messages(user_id, session_id)
    return {"messages": [m.to_dict() for m in messages]}


@router.post("/sessions/{session_id}/messages")
def submit_message(session_id: str, req: MessageRequest, user_id: str = Depends(get_current_user_id)):
    """Save one journal entry and return what it earned."""
    result = get_journal_service().submit_message(user_id, session_id, req.content)
    return result.to_dict()
