from datetime import date, datetime, timedelta, timezone

import pytest

from inkwell.features.weekly.windows import WeekWindower, load_location, sunday_index

WIB = timezone(timedelta(hours=7), "WIB")


@pytest.fixture
def windower():
    return WeekWindower(WIB)


def test_saturday_morning_returns_previous_week(windower):
    now = datetime(2024, 6, 15, 10, 0, tzinfo=WIB)  # Saturday
    week = windower.last_completed_week(now)
    assert week.start == datetime(2024, 6, 2, 0, 0, 0, tzinfo=WIB)
    assert week.end == datetime(2024, 6, 8, 23, 59, 59, tzinfo=WIB)


def test_sunday_returns_week_that_just_ended(windower):
    now = datetime(2024, 6, 16, 0, 30, tzinfo=WIB)
    week = windower.last_completed_week(now)
    assert week.start_date == date(2024, 6, 9)
    assert week.end_date == date(2024, 6, 15)


def test_current_week_contains_now(windower):
    now = datetime(2024, 6, 12, 15, 0, tzinfo=WIB)
    week = windower.current_week(now)
    assert week.start_date == date(2024, 6, 9)
    assert week.end_date == date(2024, 6, 15)
    assert week.contains(now)


def test_utc_input_is_localized_first(windower):
    # Saturday 20:00 UTC is already Sunday 03:00 in WIB
    now = datetime(2024, 6, 15, 20, 0, tzinfo=timezone.utc)
    assert windower.last_completed_week(now).end_date == date(2024, 6, 15)


def test_naive_input_is_treated_as_utc(windower):
    naive = datetime(2024, 6, 15, 20, 0)
    aware = naive.replace(tzinfo=timezone.utc)
    assert windower.last_completed_week(naive) == windower.last_completed_week(aware)


def test_completed_week_always_in_past_and_full_length(windower):
    start = datetime(2024, 1, 1, tzinfo=WIB)
    for hours in range(0, 24 * 21, 5):
        now = start + timedelta(hours=hours)
        week = windower.last_completed_week(now)
        assert week.end < now
        assert week.end - week.start == timedelta(days=6, hours=23, minutes=59, seconds=59)
        assert sunday_index(week.start) == 0
        assert sunday_index(week.end) == 6


def test_unknown_zone_falls_back_to_fixed_offset():
    location = load_location("Not/AZone", fallback_offset_hours=7)
    assert location.utcoffset(None) == timedelta(hours=7)


def test_to_dict_has_dates_and_timestamps(windower):
    week = windower.current_week(datetime(2024, 6, 12, tzinfo=WIB))
    data = week.to_dict()
    assert data["week_start"] == "2024-06-09"
    assert data["week_end"] == "2024-06-15"
    assert data["start"].startswith("2024-06-09T00:00:00")
