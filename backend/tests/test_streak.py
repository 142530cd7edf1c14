"""
Tests for the activity routes: /recovery-day, /register-activity and
/streak-status.

All routes share one policy; the clock is pinned by patching
fitmemory.streak.utc_now.
"""

from datetime import date, datetime, timezone

import pytest

from fitmemory.main import app
from fitmemory.streak_logic import StreakRecord
from fitmemory.streak_store import get_streak_store

from fakes import FakeStreakStore


NOW = datetime(2024, 1, 11, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def frozen_now(monkeypatch):
    monkeypatch.setattr("fitmemory.streak.utc_now", lambda: NOW)
    return NOW


def _use_store(store: FakeStreakStore) -> FakeStreakStore:
    app.dependency_overrides[get_streak_store] = lambda: store
    return store


@pytest.mark.asyncio
async def test_recovery_day_extends_streak(client, frozen_now):
    store = _use_store(FakeStreakStore(StreakRecord(5, 7, 2, date(2024, 1, 10))))

    response = await client.post("/recovery-day")

    assert response.status_code == 200
    assert response.json() == {
        "ok": True,
        "recoveryDayRegistered": True,
        "currentStreak": 6,
        "longestStreak": 7,
        "alreadyDoneToday": False,
    }
    assert store.record == StreakRecord(6, 7, 2, date(2024, 1, 11))


@pytest.mark.asyncio
async def test_recovery_day_twice_same_day(client, frozen_now):
    store = _use_store(FakeStreakStore(StreakRecord(5, 7, 2, date(2024, 1, 10))))

    first = await client.post("/recovery-day")
    second = await client.post("/recovery-day")

    assert first.json()["alreadyDoneToday"] is False
    assert second.status_code == 200
    assert second.json()["alreadyDoneToday"] is True
    assert second.json()["currentStreak"] == 6
    assert store.record.missed_workouts == 2


@pytest.mark.asyncio
async def test_recovery_day_creates_record(client, frozen_now):
    store = _use_store(FakeStreakStore(None))

    response = await client.post("/recovery-day")

    assert response.status_code == 200
    data = response.json()
    assert data["currentStreak"] == 1
    assert data["longestStreak"] == 1
    assert data["alreadyDoneToday"] is False
    assert store.record.last_workout_date == date(2024, 1, 11)


@pytest.mark.asyncio
async def test_recovery_day_storage_failure(client, frozen_now):
    _use_store(FakeStreakStore(fail=True))

    response = await client.post("/recovery-day", headers={"X-Request-Id": "req-recovery-1"})

    assert response.status_code == 500
    assert response.json() == {"ok": False, "error": "Database is not available"}
    assert response.headers.get("X-Request-Id") == "req-recovery-1"


@pytest.mark.asyncio
async def test_recovery_day_without_database(client, frozen_now, monkeypatch):
    from fitmemory.db import db

    monkeypatch.setattr(db, "pool", None)

    response = await client.post("/recovery-day")

    assert response.status_code == 500
    assert response.json()["ok"] is False


@pytest.mark.asyncio
@pytest.mark.parametrize("activity_type", ["workout", "recovery", "rest"])
async def test_register_activity_types_share_policy(client, frozen_now, activity_type):
    _use_store(FakeStreakStore(StreakRecord(5, 7, 2, date(2024, 1, 7))))

    response = await client.post("/register-activity", json={"type": activity_type})

    assert response.status_code == 200
    data = response.json()
    assert data["ok"] is True
    assert data["activityRegistered"] is True
    assert data["activityType"] == activity_type
    assert data["currentStreak"] == 1
    assert data["longestStreak"] == 7
    assert data["alreadyDoneToday"] is False
    assert data["streakStatus"]["missedWorkouts"] == 5
    assert data["streakStatus"]["needsActivity"] is False
    assert data["streakStatus"]["nextResetAt"] == "2024-01-12T00:00:00+00:00"


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{"type": "nap"}, {}, {"type": None}])
async def test_register_activity_rejects_unknown_type(client, frozen_now, body):
    store = _use_store(FakeStreakStore(StreakRecord(5, 7, 2, date(2024, 1, 10))))

    response = await client.post("/register-activity", json=body)

    assert response.status_code == 400
    data = response.json()
    assert data["ok"] is False
    assert "workout, recovery, rest" in data["error"]
    assert store.updates == 0


@pytest.mark.asyncio
async def test_register_activity_storage_failure(client, frozen_now):
    _use_store(FakeStreakStore(fail=True))

    response = await client.post("/register-activity", json={"type": "workout"})

    assert response.status_code == 500
    assert response.json()["ok"] is False


@pytest.mark.asyncio
async def test_list_activity_types(client):
    response = await client.get("/register-activity")

    assert response.status_code == 200
    data = response.json()
    assert data["availableActivityTypes"] == ["workout", "recovery", "rest"]
    assert data["activityTypes"]["recovery"]["label"] == "Recovery Day"


@pytest.mark.asyncio
async def test_streak_status_is_read_only(client, frozen_now):
    # last activity four days ago: status reports it but does not break the streak
    store = _use_store(FakeStreakStore(StreakRecord(5, 7, 2, date(2024, 1, 7))))

    response = await client.get("/streak-status")

    assert response.status_code == 200
    assert response.json() == {
        "currentStreak": 5,
        "longestStreak": 7,
        "missedWorkouts": 2,
        "lastWorkoutDate": "2024-01-07",
        "daysSinceLastWorkout": 4,
        "needsActivity": True,
        "nextResetAt": "2024-01-12T00:00:00+00:00",
    }
    assert store.updates == 0
    assert store.record == StreakRecord(5, 7, 2, date(2024, 1, 7))


@pytest.mark.asyncio
async def test_streak_status_without_record(client, frozen_now):
    _use_store(FakeStreakStore(None))

    response = await client.get("/streak-status")

    assert response.status_code == 200
    data = response.json()
    assert data["currentStreak"] == 0
    assert data["lastWorkoutDate"] is None
    assert data["daysSinceLastWorkout"] is None


@pytest.mark.asyncio
async def test_streak_status_storage_failure(client, frozen_now):
    _use_store(FakeStreakStore(fail=True))

    response = await client.get("/streak-status")

    assert response.status_code == 500
    assert response.json()["error"]["code"] == "STORAGE_ERROR"
