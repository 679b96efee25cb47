import json
from datetime import date, datetime, timedelta, timezone

import pytest

from inkwell.core.errors import GenerationError
from inkwell.features.journal.store import InMemoryJournalStore
from inkwell.features.weekly.service import WeeklySummaryOrchestrator
from inkwell.features.weekly.store import InMemorySummaryStore
from inkwell.features.weekly.windows import WeekWindower
from inkwell.models.weekly_summary import WeeklySummary

WIB = timezone(timedelta(hours=7), "WIB")
NOW = datetime(2024, 6, 12, 12, 0, tzinfo=timezone.utc)  # Wednesday
WEEK_START = date(2024, 6, 2)

REPLY = json.dumps(
    {
        "summary": "You wrote about work and rest.",
        "dominant_emotion": "calm",
        "secondary_emotions": ["tired"],
        "trend": "stable",
        "insights": ["Mornings were easier than evenings."],
        "encouragement": "Be kind to yourself.",
    }
)


class FakeGenerator:
    def __init__(self, reply=REPLY, on_call=None):
        self.reply = reply
        self.on_call = on_call
        self.prompts = []

    def complete_structured(self, prompt, schema):
        self.prompts.append(prompt)
        if self.on_call:
            self.on_call()
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


@pytest.fixture
def journal():
    return InMemoryJournalStore()


@pytest.fixture
def store(journal):
    return InMemorySummaryStore(journal)


def _write(journal, user_id, started_at, *texts):
    session = journal.create_session(user_id, started_at)
    for i, text in enumerate(texts):
        journal.add_message(session.id, "user", text, started_at + timedelta(minutes=i))
        journal.add_message(session.id, "assistant", "reply", started_at + timedelta(minutes=i, seconds=30))
    return session


def _orchestrator(store, generator):
    return WeeklySummaryOrchestrator(store, generator, WeekWindower(WIB))


def test_generates_and_persists_once(journal, store):
    _write(journal, "u1", datetime(2024, 6, 3, 9, 0, tzinfo=WIB), "monday thoughts", "more")
    _write(journal, "u1", datetime(2024, 6, 7, 21, 0, tzinfo=WIB), "friday thoughts")
    generator = FakeGenerator()
    orchestrator = _orchestrator(store, generator)

    first = orchestrator.generate_or_get("u1", now=NOW)
    second = orchestrator.generate_or_get("u1", now=NOW)

    assert len(generator.prompts) == 1
    assert first.to_dict() == second.to_dict()
    assert first.week_start == WEEK_START
    assert first.week_end == date(2024, 6, 8)
    assert first.session_count == 2
    assert first.message_count == 3
    assert first.emotions["dominant_emotion"] == "calm"
    assert first.persisted is True
    assert first.id


def test_prompt_only_has_user_messages_in_order(journal, store):
    _write(journal, "u1", datetime(2024, 6, 5, 8, 0, tzinfo=WIB), "second")
    _write(journal, "u1", datetime(2024, 6, 3, 8, 0, tzinfo=WIB), "first")
    generator = FakeGenerator()

    _orchestrator(store, generator).generate_or_get("u1", now=NOW)

    prompt = generator.prompts[0]
    assert prompt.index("first") < prompt.index("second")
    assert "reply" not in prompt


def test_messages_outside_window_are_ignored(journal, store):
    _write(journal, "u1", datetime(2024, 6, 1, 23, 59, tzinfo=WIB), "saturday before")
    _write(journal, "u1", datetime(2024, 6, 9, 0, 0, tzinfo=WIB), "this week")
    _write(journal, "u2", datetime(2024, 6, 4, 0, 0, tzinfo=WIB), "someone else")
    generator = FakeGenerator()

    summary = _orchestrator(store, generator).generate_or_get("u1", now=NOW)

    assert generator.prompts == []
    assert summary.persisted is False


def test_empty_week_is_canned_and_not_persisted(store):
    generator = FakeGenerator()
    summary = _orchestrator(store, generator).generate_or_get("u1", now=NOW)

    assert generator.prompts == []
    assert summary.persisted is False
    assert summary.id is None
    assert summary.message_count == 0
    assert summary.emotions["dominant_emotion"] == "neutral"
    assert summary.emotions["secondary_emotions"] == []
    assert summary.emotions["trend"] == "stable"
    assert summary.emotions["insights"] == []
    assert summary.emotions["encouragement"]
    assert store.find("u1", WEEK_START) is None


def test_generation_failure_propagates_and_stores_nothing(journal, store):
    _write(journal, "u1", datetime(2024, 6, 4, 10, 0, tzinfo=WIB), "hello")
    orchestrator = _orchestrator(store, FakeGenerator(reply=GenerationError("down")))

    with pytest.raises(GenerationError):
        orchestrator.generate_or_get("u1", now=NOW)
    assert store.find("u1", WEEK_START) is None


def test_bad_generator_output_is_generation_error(journal, store):
    _write(journal, "u1", datetime(2024, 6, 4, 10, 0, tzinfo=WIB), "hello")
    with pytest.raises(GenerationError):
        _orchestrator(store, FakeGenerator(reply="{}")).generate_or_get("u1", now=NOW)


def test_concurrent_writer_wins_and_is_returned(journal, store):
    _write(journal, "u1", datetime(2024, 6, 4, 10, 0, tzinfo=WIB), "hello")
    competitor = WeeklySummary(
        user_id="u1",
        week_start=WEEK_START,
        week_end=date(2024, 6, 8),
        summary="written by the other request",
        session_count=1,
        message_count=1,
        emotions={"dominant_emotion": "joy"},
    )
    generator = FakeGenerator(on_call=lambda: store.create(competitor))

    summary = _orchestrator(store, generator).generate_or_get("u1", now=NOW)

    assert summary.summary == "written by the other request"
    assert store.list("u1", limit=10, offset=0)[0].summary == "written by the other request"
    assert len(store.list("u1", limit=10, offset=0)) == 1


def test_latest_and_list_are_newest_first(store):
    for offset in range(3):
        start = WEEK_START - timedelta(days=7 * offset)
        store.create(
            WeeklySummary(
                user_id="u1",
                week_start=start,
                week_end=start + timedelta(days=6),
                summary=f"week {offset}",
                session_count=1,
                message_count=1,
                emotions={},
            )
        )
    orchestrator = _orchestrator(store, FakeGenerator())

    assert orchestrator.get_latest("u1").week_start == WEEK_START
    assert orchestrator.get_latest("nobody") is None
    page = orchestrator.list_summaries("u1", limit=2, offset=1)
    assert [s.summary for s in page] == ["week 1", "week 2"]
