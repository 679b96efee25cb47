from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient

from inkwell.features.journal.service import JournalService
from inkwell.features.journal.store import InMemoryJournalStore
from inkwell.features.leveling.service import LevelingCalculator
from inkwell.features.progress.store import InMemoryProgressStore
from inkwell.features.rewards.service import RewardCalculator
from inkwell.main import app

client = TestClient(app)

TWENTY_FIVE_WORDS = " ".join(["word"] * 25)


def _start(user_id="writer-1"):
    resp = client.post("/v1/journal/sessions", headers={"X-User-Id": user_id})
    assert resp.status_code == 201
    return resp.json()["id"]


def test_first_message_awards_streak_and_currency():
    session_id = _start()
    resp = client.post(
        f"/v1/journal/sessions/{session_id}/messages",
        headers={"X-User-Id": "writer-1"},
        json={"content": TWENTY_FIVE_WORDS},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["word_count"] == 25
    assert body["golden_ink"] == 3
    assert body["marble"] == 1
    assert body["new_streak"] == 1
    assert body["streak_updated"] is True
    assert body["xp_earned"] == 3
    assert body["level"] == 1
    assert body["leveled_up"] is False
    assert body["levels_gained"] == 0
    assert body["xp_to_next_level"] == 97
    assert body["session_golden_ink"] == 3


def test_second_message_same_day_earns_no_marble():
    session_id = _start()
    headers = {"X-User-Id": "writer-1"}
    client.post(f"/v1/journal/sessions/{session_id}/messages", headers=headers, json={"content": "one two"})
    resp = client.post(f"/v1/journal/sessions/{session_id}/messages", headers=headers, json={"content": "three"})

    body = resp.json()
    assert body["marble"] == 0
    assert body["streak_updated"] is False
    assert body["new_streak"] == 1
    assert body["session_golden_ink"] == 2


def test_session_detail_lists_messages():
    session_id = _start()
    headers = {"X-User-Id": "writer-1"}
    client.post(f"/v1/journal/sessions/{session_id}/messages", headers=headers, json={"content": "hello world"})

    resp = client.get(f"/v1/journal/sessions/{session_id}", headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["message_count"] == 1
    assert body["messages"][0]["content"] == "hello world"
    assert body["messages"][0]["word_count"] == 2


def test_other_users_session_is_not_found():
    session_id = _start("owner")
    resp = client.post(
        f"/v1/journal/sessions/{session_id}/messages",
        headers={"X-User-Id": "intruder"},
        json={"content": "hi"},
    )
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "not_found"


def test_blank_content_is_validation_error():
    session_id = _start()
    resp = client.post(
        f"/v1/journal/sessions/{session_id}/messages",
        headers={"X-User-Id": "writer-1"},
        json={"content": "   \n"},
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "validation_error"


def test_missing_user_header_is_unauthorized():
    resp = client.post("/v1/journal/sessions")
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "unauthorized"


def test_session_history_lists_own_sessions_with_preview():
    headers = {"X-User-Id": "historian"}
    first = _start("historian")
    second = _start("historian")
    _start("someone-else")
    client.post(f"/v1/journal/sessions/{first}/messages", headers=headers, json={"content": "dear diary"})
    client.post(f"/v1/journal/sessions/{first}/messages", headers=headers, json={"content": "later entry"})

    resp = client.get("/v1/journal/sessions", headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["limit"] == 20
    assert body["offset"] == 0
    by_id = {s["id"]: s for s in body["sessions"]}
    assert set(by_id) == {first, second}
    assert by_id[first]["first_user_message"] == "dear diary"
    assert by_id[first]["message_count"] == 2
    assert by_id[second]["first_user_message"] == ""


def test_session_history_pages_and_ignores_bad_params():
    headers = {"X-User-Id": "pager"}
    for _ in range(3):
        _start("pager")

    page = client.get("/v1/journal/sessions?limit=2&offset=1", headers=headers).json()
    assert len(page["sessions"]) == 2
    assert page["limit"] == 2
    assert page["offset"] == 1

    fallback = client.get("/v1/journal/sessions?limit=500&offset=-1", headers=headers).json()
    assert fallback["limit"] == 20
    assert fallback["offset"] == 0
    assert len(fallback["sessions"]) == 3


def test_today_session_is_created_once_then_reused():
    headers = {"X-User-Id": "daily"}
    created = client.post("/v1/journal/sessions/today", headers=headers)
    assert created.status_code == 201
    body = created.json()
    assert body["is_new"] is True
    assert body["messages"] == []
    session_id = body["session"]["id"]

    client.post(f"/v1/journal/sessions/{session_id}/messages", headers=headers, json={"content": "morning pages"})

    again = client.post("/v1/journal/sessions/today", headers=headers)
    assert again.status_code == 200
    body = again.json()
    assert body["is_new"] is False
    assert body["session"]["id"] == session_id
    assert [m["content"] for m in body["messages"]] == ["morning pages"]


def test_list_messages_is_scoped_to_owner():
    session_id = _start("owner")
    headers = {"X-User-Id": "owner"}
    client.post(f"/v1/journal/sessions/{session_id}/messages", headers=headers, json={"content": "one"})
    client.post(f"/v1/journal/sessions/{session_id}/messages", headers=headers, json={"content": "two words"})

    resp = client.get(f"/v1/journal/sessions/{session_id}/messages", headers=headers)
    assert resp.status_code == 200
    messages = resp.json()["messages"]
    assert [m["content"] for m in messages] == ["one", "two words"]
    assert messages[1]["word_count"] == 2

    other = client.get(f"/v1/journal/sessions/{session_id}/messages", headers={"X-User-Id": "intruder"})
    assert other.status_code == 404


def test_today_session_follows_the_utc_date():
    service = JournalService(
        InMemoryJournalStore(), InMemoryProgressStore(), RewardCalculator(), LevelingCalculator()
    )
    jakarta = timezone(timedelta(hours=7))
    # 06:30 WIB on June 5 is still June 4 in UTC
    late = datetime(2024, 6, 4, 22, 0, tzinfo=timezone.utc)
    early_local = datetime(2024, 6, 5, 6, 30, tzinfo=jakarta)

    first, _, created = service.get_or_create_today_session("u1", now=late)
    assert created is True
    same, _, created = service.get_or_create_today_session("u1", now=early_local)
    assert created is False
    assert same.id == first.id

    next_day, _, created = service.get_or_create_today_session("u1", now=late + timedelta(hours=3))
    assert created is True
    assert next_day.id != first.id
