from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from inkwell.core.config import settings
from inkwell.core.logging import log_event
from inkwell.features.progress.store import ProgressStore
from inkwell.models.progress import LevelOutcome, UserProgress


@dataclass(frozen=True)
class LevelingConfig:
    xp_per_word: int = 10
    base_xp_per_level: int = 100  # level N requires (N - 1) * base cumulative XP

    @classmethod
    def from_settings(cls, cfg=None) -> "LevelingConfig":
        cfg = cfg or settings
        return cls(xp_per_word=cfg.XP_PER_WORD, base_xp_per_level=cfg.BASE_XP_PER_LEVEL)


class LevelingCalculator:
    """XP per message on a linear level curve."""

    def __init__(self, config: Optional[LevelingConfig] = None):
        self.config = config or LevelingConfig()

    def calculate_xp_from_words(self, word_count: int) -> int:
        if word_count <= 0:
            return 0
        xp = 1
        if self.config.xp_per_word > 0:
            xp += word_count // self.config.xp_per_word
        return xp

    def xp_required_for_level(self, level: int) -> int:
        if level <= 1:
            return 0
        return (level - 1) * self.config.base_xp_per_level

    def calculate_level_from_xp(self, total_xp: int) -> int:
        if self.config.base_xp_per_level <= 0:
            return 1
        level = 1
        while self.xp_required_for_level(level + 1) <= total_xp:
            level += 1
        return level

    def xp_to_next_level(self, level: int, total_xp: int) -> int:
        """Absolute XP still missing for level + 1. Negative means the stored level is stale."""
        return self.xp_required_for_level(level + 1) - total_xp

    def xp_into_level(self, level: int, total_xp: int) -> int:
        return total_xp - self.xp_required_for_level(level)

    def level_progress_percent(self, level: int, total_xp: int) -> int:
        floor_xp = self.xp_required_for_level(level)
        span = self.xp_required_for_level(level + 1) - floor_xp
        if span <= 0:
            return 100
        progress = ((total_xp - floor_xp) * 100) // span
        return max(0, min(100, progress))

    def _outcome(self, progress: UserProgress, *, xp_earned: int = 0, levels_gained: int = 0) -> LevelOutcome:
        return LevelOutcome(
            xp_earned=xp_earned,
            current_xp=self.xp_into_level(progress.level, progress.total_xp),
            total_xp=progress.total_xp,
            level=progress.level,
            leveled_up=levels_gained > 0,
            levels_gained=levels_gained,
            xp_to_next_level=self.xp_to_next_level(progress.level, progress.total_xp),
        )

    def get_current_level(self, store: ProgressStore, user_id: str) -> LevelOutcome:
        progress = store.get(user_id)
        if progress is None:
            return LevelOutcome(
                xp_earned=0,
                current_xp=0,
                total_xp=0,
                level=1,
                leveled_up=False,
                levels_gained=0,
                xp_to_next_level=self.config.base_xp_per_level,
            )

        if self.xp_to_next_level(progress.level, progress.total_xp) <= 0:
            progress, _ = self._sync_level(store, progress)
        return self._outcome(progress)

    def _sync_level(self, store: ProgressStore, progress: UserProgress) -> Tuple[UserProgress, int]:
        """
        Raise the stored level to match total_xp.

        Returns the fresh row and the levels this call raised. A lost
        compare-and-swap means another request moved the level first; the
        row is re-read and checked again, so levels are only ever counted once.
        """
        while True:
            target = self.calculate_level_from_xp(progress.total_xp)
            if target <= progress.level:
                return progress, 0
            raised = store.raise_level(
                progress.user_id, progress.level, target, self.xp_required_for_level(target)
            )
            if raised is not None:
                return raised, target - progress.level
            progress = store.get_or_create(progress.user_id)

    def award_xp(self, store: ProgressStore, user_id: str, word_count: int) -> LevelOutcome:
        xp_earned = self.calculate_xp_from_words(word_count)
        if xp_earned <= 0:
            return self.get_current_level(store, user_id)

        progress = store.add_xp(user_id, xp_earned)
        progress, levels_gained = self._sync_level(store, progress)
        if levels_gained:
            log_event(
                "info",
                "level.up",
                user_id=user_id,
                event_type="level.up",
                extra={"level": progress.level, "levels_gained": levels_gained, "total_xp": progress.total_xp},
            )

        return self._outcome(progress, xp_earned=xp_earned, levels_gained=levels_gained)


def get_leveling_calculator() -> LevelingCalculator:
    return LevelingCalculator(LevelingConfig.from_settings())
