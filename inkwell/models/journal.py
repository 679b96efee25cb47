from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Literal, Optional

MessageRole = Literal["user", "assistant"]
SessionStatus = Literal["active", "completed"]


@dataclass
class JournalMessage:
    session_id: str
    role: MessageRole
    content: str
    created_at: datetime
    word_count: int = 0
    id: int = 0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "role": self.role,
            "content": self.content,
            "word_count": self.word_count,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class JournalSession:
    """One sitting of journaling. golden_ink_earned sums golden ink awarded inside it."""

    id: str
    user_id: str
    started_at: datetime
    status: SessionStatus = "active"
    golden_ink_earned: int = 0
    message_count: int = 0
    first_user_message: Optional[str] = None  # filled by list_sessions only
    messages: List[JournalMessage] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "status": self.status,
            "started_at": self.started_at.isoformat(),
            "golden_ink_earned": self.golden_ink_earned,
            "message_count": self.message_count,
        }
