from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, model_validator

from inkwell.core.auth import get_current_user_id
from inkwell.features.leveling.service import get_leveling_calculator
from inkwell.features.progress.store import get_progress_store
from inkwell.features.rewards.service import get_reward_calculator
from inkwell.features.words.counter import count_words

router = APIRouter(tags=["progress"])


class RewardPreviewRequest(BaseModel):
    word_count: Optional[int] = None
    content: Optional[str] = None

    @model_validator(mode="after")
    def _one_source(self):
        if self.word_count is None and self.content is None:
            raise ValueError("Provide word_count or content")
        return self


@router.get("/v1/progress")
def get_progress(user_id: str = Depends(get_current_user_id)):
    """Reward stats for the caller. Users without activity get zeroed stats."""
    store = get_progress_store()
    leveling = get_leveling_calculator()

    level = leveling.get_current_level(store, user_id)
    progress = store.get(user_id)
    stats = progress.to_dict() if progress else {
        "user_id": user_id,
        "golden_ink": 0,
        "marble": 0,
        "current_streak": 0,
        "longest_streak": 0,
        "last_active_date": None,
    }
    stats.update(
        {
            "level": level.level,
            "current_xp": level.current_xp,
            "total_xp": level.total_xp,
            "xp_to_next_level": level.xp_to_next_level,
            "level_progress": leveling.level_progress_percent(level.level, level.total_xp),
        }
    )
    return stats


@router.post("/v1/rewards/preview")
def preview_rewards(req: RewardPreviewRequest, user_id: str = Depends(get_current_user_id)):
    """What the next message would earn. Writes nothing."""
    word_count = req.word_count if req.word_count is not None else count_words(req.content)
    word_count = max(0, word_count)

    store = get_progress_store()
    outcome = get_reward_calculator().calculate_message_reward(store.get(user_id), word_count)
    xp = get_leveling_calculator().calculate_xp_from_words(word_count)
    return {"word_count": word_count, "xp_earned": xp, **outcome.to_dict()}
