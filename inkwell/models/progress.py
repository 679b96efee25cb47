from __future__ import annotations

from dataclasses import dataclass, asdict
from datetime import date
from typing import Optional


@dataclass
class UserProgress:
    """
    Per-user reward state: currencies, streak and XP. Day-level, UTC only, no direct DB concerns.

    current_xp is XP earned inside the current level, not a lifetime total.
    """

    user_id: str
    golden_ink: int = 0
    marble: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    level: int = 1
    current_xp: int = 0
    total_xp: int = 0
    last_active_date: Optional[date] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["last_active_date"] = self.last_active_date.isoformat() if self.last_active_date else None
        return data


@dataclass(frozen=True)
class RewardOutcome:
    """Currency and streak result for a single message. Computed, applied, discarded."""

    golden_ink: int = 0
    marble: int = 0
    streak_updated: bool = False
    new_streak: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class AppliedReward:
    """What apply_rewards actually wrote; outcome may be downgraded if another request won the day."""

    progress: UserProgress
    outcome: RewardOutcome


@dataclass(frozen=True)
class LevelOutcome:
    xp_earned: int = 0
    current_xp: int = 0
    total_xp: int = 0
    level: int = 1
    leveled_up: bool = False
    levels_gained: int = 0
    xp_to_next_level: int = 0

    def to_dict(self) -> dict:
        return asdict(self)
