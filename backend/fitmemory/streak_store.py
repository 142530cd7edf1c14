import logging
from typing import Any, Callable, Optional

from .config import settings
from .db import Database, db, execute_named, fetchrow_named
from .streak_logic import StreakRecord

logger = logging.getLogger("fitmemory-streak")

StreakTransition = Callable[[StreakRecord], tuple[StreakRecord, Any]]


def _record_from_row(row) -> StreakRecord:
    return StreakRecord(
        current_streak=int(row["current_streak"] or 0),
        longest_streak=int(row["longest_streak"] or 0),
        missed_workouts=int(row["missed_workouts"] or 0),
        last_workout_date=row["last_workout_date"],
    )


class StreakStore:
    """Singleton streak row keyed by STREAK_RECORD_ID."""

    def __init__(self, database: Database, record_id: Optional[str] = None):
        self.database = database
        self.record_id = record_id or settings.STREAK_RECORD_ID

    async def load(self) -> Optional[StreakRecord]:
        async with self.database.acquire() as conn:
            row = await fetchrow_named(
                conn,
                "streak.load",
                """
                SELECT current_streak, longest_streak, missed_workouts, last_workout_date
                FROM streaks
                WHERE id = $1
                """,
                self.record_id,
            )
        if row is None:
            return None
        return _record_from_row(row)

    async def update(self, transition: StreakTransition) -> tuple[StreakRecord, Any]:
        """
        Run `transition` against the locked record and persist its result.

        The row is created with zero counters if missing, then locked with
        SELECT ... FOR UPDATE so concurrent writers serialize on it.
        `transition` returns the next record plus an arbitrary outcome that is
        handed back to the caller.
        """
        async with self.database.acquire() as conn:
            async with conn.transaction():
                await execute_named(
                    conn,
                    "streak.ensure",
                    """
                    INSERT INTO streaks (id)
                    VALUES ($1)
                    ON CONFLICT (id) DO NOTHING
                    """,
                    self.record_id,
                )
                row = await fetchrow_named(
                    conn,
                    "streak.lock",
                    """
                    SELECT current_streak, longest_streak, missed_workouts, last_workout_date
                    FROM streaks
                    WHERE id = $1
                    FOR UPDATE
                    """,
                    self.record_id,
                )
                current = _record_from_row(row)
                updated, outcome = transition(current)

                if updated != current:
                    await execute_named(
                        conn,
                        "streak.save",
                        """
                        UPDATE streaks
                        SET current_streak = $2,
                            longest_streak = $3,
                            missed_workouts = $4,
                            last_workout_date = $5,
                            updated_at = NOW()
                        WHERE id = $1
                        """,
                        self.record_id,
                        updated.current_streak,
                        updated.longest_streak,
                        updated.missed_workouts,
                        updated.last_workout_date,
                    )
        return updated, outcome


def get_streak_store() -> StreakStore:
    return StreakStore(db)
