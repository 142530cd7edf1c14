from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any, Optional

from .dates import calendar_day, days_between, next_day_start, parse_iso_day, streak_timezone


# streak counters are stored in INT columns
MAX_COUNTER = 2**31 - 1

COUNTER_FIELDS = (
    ("currentStreak", "current_streak"),
    ("longestStreak", "longest_streak"),
    ("missedWorkouts", "missed_workouts"),
)


@dataclass(frozen=True)
class StreakRecord:
    current_streak: int = 0
    longest_streak: int = 0
    missed_workouts: int = 0
    last_workout_date: Optional[date] = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "currentStreak": self.current_streak,
            "longestStreak": self.longest_streak,
            "missedWorkouts": self.missed_workouts,
            "lastWorkoutDate": self.last_workout_date.isoformat() if self.last_workout_date else None,
        }


def register_activity(
    now: datetime,
    record: Optional[StreakRecord],
    tz=None,
) -> tuple[StreakRecord, bool]:
    """
    Count one day of activity at `now`.

    Returns the next record and whether activity was already registered for
    that calendar day. Workouts, recovery days and rest days all go through
    here unchanged.
    """
    if record is None:
        record = StreakRecord()
    if tz is None:
        tz = streak_timezone()

    today = calendar_day(now, tz)
    last = record.last_workout_date

    if last is not None and last == today:
        return record, True

    current_streak = record.current_streak
    missed_workouts = record.missed_workouts

    gap = days_between(last, today) if last is not None else None
    if gap == 1:
        current_streak += 1
    elif gap is not None and gap > 1:
        missed_workouts += gap - 1
        current_streak = 1
    else:
        # first activity ever, or the stored day lies in the future
        current_streak = 1

    updated = StreakRecord(
        current_streak=current_streak,
        longest_streak=max(record.longest_streak, current_streak),
        missed_workouts=missed_workouts,
        last_workout_date=today,
    )
    return updated, False


def _as_counter(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, int) and 0 <= value <= MAX_COUNTER:
        return value
    return None


def apply_streak_overrides(
    record: Optional[StreakRecord],
    payload: dict[str, Any],
    tz=None,
) -> tuple[StreakRecord, list[str]]:
    """
    Merge admin-supplied values into the record field by field.

    Invalid or missing fields are skipped; the rest still apply. No
    cross-field checks are made. Returns the merged record and the names of
    the fields that were applied.
    """
    if record is None:
        record = StreakRecord()

    changes: dict[str, Any] = {}
    applied: list[str] = []

    for payload_key, attr in COUNTER_FIELDS:
        if payload_key not in payload:
            continue
        value = _as_counter(payload[payload_key])
        if value is None:
            continue
        changes[attr] = value
        applied.append(payload_key)

    if "lastWorkoutDate" in payload:
        parsed_day = parse_iso_day(payload["lastWorkoutDate"], tz)
        if parsed_day is not None:
            changes["last_workout_date"] = parsed_day
            applied.append("lastWorkoutDate")

    return replace(record, **changes), applied


def summarize_streak(record: Optional[StreakRecord], now: datetime, tz=None) -> dict[str, Any]:
    if record is None:
        record = StreakRecord()
    if tz is None:
        tz = streak_timezone()

    today = calendar_day(now, tz)
    days_since: Optional[int] = None
    if record.last_workout_date is not None:
        days_since = days_between(record.last_workout_date, today)

    summary = record.to_payload()
    summary.update({
        "daysSinceLastWorkout": days_since,
        "needsActivity": record.last_workout_date != today,
        "nextResetAt": next_day_start(now, tz).isoformat(),
    })
    return summary
