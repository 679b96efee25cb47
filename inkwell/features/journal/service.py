"""
Journal sessions and the message pipeline: store the entry, then pay out
rewards and XP.

The message is written first so a store failure never awards anything for
an entry that was not saved.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from inkwell.core.errors import NotFoundError, ValidationError
from inkwell.features.journal.store import JournalStore
from inkwell.features.leveling.service import LevelingCalculator
from inkwell.features.progress.store import ProgressStore
from inkwell.features.rewards.service import RewardCalculator
from inkwell.features.words.counter import count_words
from inkwell.models.journal import JournalMessage, JournalSession
from inkwell.models.progress import LevelOutcome, RewardOutcome


@dataclass(frozen=True)
class MessageResult:
    message: JournalMessage
    session: JournalSession
    reward: RewardOutcome
    level: LevelOutcome

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message_id": self.message.id,
            "session_id": self.session.id,
            "word_count": self.message.word_count,
            "golden_ink": self.reward.golden_ink,
            "marble": self.reward.marble,
            "new_streak": self.reward.new_streak,
            "streak_updated": self.reward.streak_updated,
            "xp_earned": self.level.xp_earned,
            "level": self.level.level,
            "leveled_up": self.level.leveled_up,
            "levels_gained": self.level.levels_gained,
            "xp_to_next_level": self.level.xp_to_next_level,
            "session_golden_ink": self.session.golden_ink_earned,
        }


class JournalService:
    def __init__(
        self,
        journal_store: JournalStore,
        progress_store: ProgressStore,
        rewards: RewardCalculator,
        leveling: LevelingCalculator,
    ):
        self.journal_store = journal_store
        self.progress_store = progress_store
        self.rewards = rewards
        self.leveling = leveling

    def start_session(self, user_id: str, now: Optional[datetime] = None) -> JournalSession:
        return self.journal_store.create_session(user_id, now or datetime.now(timezone.utc))

    def get_or_create_today_session(
        self, user_id: str, now: Optional[datetime] = None
    ) -> Tuple[JournalSession, List[JournalMessage], bool]:
        """Today's active session with its messages; "today" is the UTC date, as for streaks."""
        moment = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
        day_start = datetime.combine(moment.date(), time.min, tzinfo=timezone.utc)
        session, created = self.journal_store.get_or_create_active_session(
            user_id, day_start, day_start + timedelta(days=1), moment
        )
        messages = [] if created else self.journal_store.list_messages(session.id)
        return session, messages, created

    def list_sessions(self, user_id: str, limit: int, offset: int) -> List[JournalSession]:
        return self.journal_store.list_sessions(user_id, limit, offset)

    def list_messages(self, user_id: str, session_id: str) -> List[JournalMessage]:
        if self.journal_store.get_session(session_id, user_id) is None:
            raise NotFoundError(f"Session {session_id} not found")
        return self.journal_store.list_messages(session_id)

    def submit_message(
        self,
        user_id: str,
        session_id: str,
        content: str,
        now: Optional[datetime] = None,
    ) -> MessageResult:
        if not content or not content.strip():
            raise ValidationError("Message content must not be empty")

        session = self.journal_store.get_session(session_id, user_id)
        if session is None:
            raise NotFoundError(f"Session {session_id} not found")

        moment = now or datetime.now(timezone.utc)
        word_count = count_words(content)
        message = self.journal_store.add_message(
            session_id, "user", content, moment, word_count=word_count
        )

        today = moment.astimezone(timezone.utc).date()
        applied = self.rewards.calculate_and_apply(self.progress_store, user_id, word_count, today=today)
        level = self.leveling.award_xp(self.progress_store, user_id, word_count)
        session = self.journal_store.add_session_golden_ink(session_id, applied.outcome.golden_ink)

        return MessageResult(message=message, session=session, reward=applied.outcome, level=level)


def get_journal_service() -> JournalService:
    from inkwell.features.journal.store import get_journal_store
    from inkwell.features.leveling.service import get_leveling_calculator
    from inkwell.features.progress.store import get_progress_store
    from inkwell.features.rewards.service import get_reward_calculator

    return JournalService(
        get_journal_store(),
        get_progress_store(),
        get_reward_calculator(),
        get_leveling_calculator(),
    )
