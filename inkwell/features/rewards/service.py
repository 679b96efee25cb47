from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from inkwell.core.config import settings
from inkwell.core.logging import log_event
from inkwell.features.progress.store import ProgressStore
from inkwell.features.rewards.streak_clock import classify_gap, utc_today
from inkwell.models.progress import AppliedReward, RewardOutcome, UserProgress


@dataclass(frozen=True)
class RewardConfig:
    words_per_golden_ink: int = 10
    marble_base_reward: int = 1
    marble_streak_divisor: int = 7

    @classmethod
    def from_settings(cls, cfg=None) -> "RewardConfig":
        cfg = cfg or settings
        return cls(
            words_per_golden_ink=cfg.WORDS_PER_GOLDEN_INK,
            marble_base_reward=cfg.MARBLE_BASE_REWARD,
            marble_streak_divisor=cfg.MARBLE_STREAK_DIVISOR,
        )


class RewardCalculator:
    """
    Golden ink per message, marble and streak once per UTC day.

    Calculation never touches storage; apply_rewards is the only writer.
    """

    def __init__(self, config: Optional[RewardConfig] = None):
        self.config = config or RewardConfig()

    def golden_ink_for_words(self, word_count: int) -> int:
        if word_count <= 0:
            return 0
        reward = 1
        if self.config.words_per_golden_ink > 0:
            reward += word_count // self.config.words_per_golden_ink
        return reward

    def marble_for_streak(self, new_streak: int) -> int:
        reward = self.config.marble_base_reward
        if self.config.marble_streak_divisor > 0:
            reward += new_streak // self.config.marble_streak_divisor
        return reward

    def calculate_message_reward(
        self,
        prior: Optional[UserProgress],
        word_count: int,
        today: Optional[date] = None,
    ) -> RewardOutcome:
        word_count = max(0, word_count)
        day = today or utc_today()
        golden_ink = self.golden_ink_for_words(word_count)

        current_streak = prior.current_streak if prior else 0
        gap = classify_gap(prior.last_active_date if prior else None, day)

        if gap == "same_day":
            return RewardOutcome(golden_ink=golden_ink, marble=0, streak_updated=False, new_streak=current_streak)

        if gap == "consecutive":
            new_streak = current_streak + 1
            return RewardOutcome(
                golden_ink=golden_ink,
                marble=self.marble_for_streak(new_streak),
                streak_updated=True,
                new_streak=new_streak,
            )

        # First ever activity or a broken streak: restart at 1 with base marble only
        return RewardOutcome(
            golden_ink=golden_ink,
            marble=self.config.marble_base_reward,
            streak_updated=True,
            new_streak=1,
        )

    def calculate_for_user(
        self,
        store: ProgressStore,
        user_id: str,
        word_count: int,
        today: Optional[date] = None,
    ) -> RewardOutcome:
        """
        Rewards the next message would earn, for the apply path.

        Makes sure the progress row exists first; the counters are left
        untouched until apply_rewards. The read-only preview endpoint uses
        store.get with calculate_message_reward instead.
        """
        prior = store.get_or_create(user_id)
        return self.calculate_message_reward(prior, word_count, today=today)

    def apply_rewards(
        self,
        store: ProgressStore,
        user_id: str,
        outcome: RewardOutcome,
        today: Optional[date] = None,
    ) -> AppliedReward:
        day = today or utc_today()
        progress = store.get_or_create(user_id)

        if outcome.golden_ink > 0:
            progress = store.add_golden_ink(user_id, outcome.golden_ink)

        applied = outcome
        if outcome.streak_updated:
            updated = store.update_streak(user_id, outcome.new_streak, day)
            if updated is None:
                # Another message already claimed today's streak and marble
                progress = store.get_or_create(user_id)
                applied = RewardOutcome(
                    golden_ink=outcome.golden_ink,
                    marble=0,
                    streak_updated=False,
                    new_streak=progress.current_streak,
                )
            else:
                progress = updated
                if outcome.marble > 0:
                    progress = store.add_marble(user_id, outcome.marble)
        elif outcome.marble > 0:
            progress = store.add_marble(user_id, outcome.marble)

        log_event(
            "info",
            "rewards.applied",
            user_id=user_id,
            event_type="rewards.applied",
            extra={
                "golden_ink": applied.golden_ink,
                "marble": applied.marble,
                "streak_updated": applied.streak_updated,
                "new_streak": applied.new_streak,
            },
        )
        return AppliedReward(progress=progress, outcome=applied)

    def calculate_and_apply(
        self,
        store: ProgressStore,
        user_id: str,
        word_count: int,
        today: Optional[date] = None,
    ) -> AppliedReward:
        day = today or utc_today()
        outcome = self.calculate_for_user(store, user_id, word_count, today=day)
        return self.apply_rewards(store, user_id, outcome, today=day)


def get_reward_calculator() -> RewardCalculator:
    return RewardCalculator(RewardConfig.from_settings())
