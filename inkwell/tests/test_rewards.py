from concurrent.futures import ThreadPoolExecutor
from datetime import date, timedelta

from inkwell.features.progress.store import InMemoryProgressStore
from inkwell.features.rewards.service import RewardCalculator, RewardConfig
from inkwell.features.rewards.streak_clock import classify_gap, days_since_active
from inkwell.models.progress import RewardOutcome, UserProgress

TODAY = date(2024, 6, 12)


def _prior(streak: int, last_active):
    return UserProgress(user_id="u1", current_streak=streak, longest_streak=streak, last_active_date=last_active)


def test_golden_ink_formula():
    calc = RewardCalculator()
    assert calc.golden_ink_for_words(0) == 0
    assert calc.golden_ink_for_words(-5) == 0
    assert calc.golden_ink_for_words(1) == 1
    assert calc.golden_ink_for_words(9) == 1
    assert calc.golden_ink_for_words(10) == 2
    assert calc.golden_ink_for_words(25) == 3


def test_zero_divisor_disables_word_bonus():
    calc = RewardCalculator(RewardConfig(words_per_golden_ink=0, marble_streak_divisor=0))
    assert calc.golden_ink_for_words(500) == 1
    assert calc.marble_for_streak(70) == 1


def test_first_activity_starts_streak():
    outcome = RewardCalculator().calculate_message_reward(None, 25, today=TODAY)
    assert outcome == RewardOutcome(golden_ink=3, marble=1, streak_updated=True, new_streak=1)


def test_consecutive_day_extends_streak():
    outcome = RewardCalculator().calculate_message_reward(_prior(5, TODAY - timedelta(days=1)), 25, today=TODAY)
    assert outcome.new_streak == 6
    assert outcome.marble == 1
    assert outcome.streak_updated is True


def test_weekly_milestone_bonus():
    outcome = RewardCalculator().calculate_message_reward(_prior(6, TODAY - timedelta(days=1)), 3, today=TODAY)
    assert outcome.new_streak == 7
    assert outcome.marble == 2


def test_gap_resets_streak_with_base_marble():
    outcome = RewardCalculator().calculate_message_reward(_prior(5, TODAY - timedelta(days=3)), 25, today=TODAY)
    assert outcome == RewardOutcome(golden_ink=3, marble=1, streak_updated=True, new_streak=1)


def test_same_day_never_touches_streak():
    calc = RewardCalculator()
    prior = _prior(4, TODAY)
    for words in (0, 1, 50):
        outcome = calc.calculate_message_reward(prior, words, today=TODAY)
        assert outcome.streak_updated is False
        assert outcome.marble == 0
        assert outcome.new_streak == 4


def test_future_last_active_counts_as_same_day():
    assert classify_gap(TODAY + timedelta(days=2), TODAY) == "same_day"
    assert days_since_active(TODAY - timedelta(days=3), TODAY) == 3
    assert classify_gap(None, TODAY) == "first"


def test_apply_rewards_persists_once_per_day():
    store = InMemoryProgressStore()
    calc = RewardCalculator()

    first = calc.calculate_and_apply(store, "u1", 25, today=TODAY)
    second = calc.calculate_and_apply(store, "u1", 25, today=TODAY)

    assert first.outcome.marble == 1
    assert second.outcome.marble == 0
    progress = store.get("u1")
    assert progress.golden_ink == 6
    assert progress.marble == 1
    assert progress.current_streak == 1
    assert progress.longest_streak == 1
    assert progress.last_active_date == TODAY


def test_longest_streak_survives_reset():
    store = InMemoryProgressStore()
    calc = RewardCalculator()
    for offset in range(3):
        calc.calculate_and_apply(store, "u1", 5, today=TODAY + timedelta(days=offset))
    calc.calculate_and_apply(store, "u1", 5, today=TODAY + timedelta(days=10))

    progress = store.get("u1")
    assert progress.current_streak == 1
    assert progress.longest_streak == 3


def test_calculate_for_user_creates_row_without_paying():
    store = InMemoryProgressStore()
    outcome = RewardCalculator().calculate_for_user(store, "u1", 10, today=TODAY)

    assert outcome.golden_ink == 2
    assert outcome.streak_updated is True
    progress = store.get("u1")
    assert progress is not None
    assert progress.golden_ink == 0
    assert progress.marble == 0
    assert progress.current_streak == 0


def test_lost_compare_and_swap_downgrades_outcome():
    store = InMemoryProgressStore()
    calc = RewardCalculator()
    stale = calc.calculate_for_user(store, "u1", 10, today=TODAY)

    # A concurrent request claims the day between calculation and apply
    calc.calculate_and_apply(store, "u1", 10, today=TODAY)
    applied = calc.apply_rewards(store, "u1", stale, today=TODAY)

    assert applied.outcome.streak_updated is False
    assert applied.outcome.marble == 0
    assert applied.outcome.new_streak == 1
    assert store.get("u1").marble == 1


def test_concurrent_messages_award_streak_once():
    store = InMemoryProgressStore()
    calc = RewardCalculator()

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: calc.calculate_and_apply(store, "u1", 10, today=TODAY), range(16)))

    assert sum(1 for r in results if r.outcome.streak_updated) == 1
    progress = store.get("u1")
    assert progress.marble == 1
    assert progress.current_streak == 1
    assert progress.golden_ink == 16 * 2
