"""In-memory stand-ins for the stores and the asyncpg connection."""

from contextlib import asynccontextmanager
from typing import Optional

from fitmemory.errors import StorageError
from fitmemory.streak_logic import StreakRecord


class FakeStreakStore:
    def __init__(self, record: Optional[StreakRecord] = None, fail: bool = False):
        self.record = record
        self.fail = fail
        self.updates = 0

    async def load(self) -> Optional[StreakRecord]:
        if self.fail:
            raise StorageError("Database is not available")
        return self.record

    async def update(self, transition):
        if self.fail:
            raise StorageError("Database is not available")
        current = self.record if self.record is not None else StreakRecord()
        updated, outcome = transition(current)
        self.record = updated
        self.updates += 1
        return updated, outcome


class FakeMemoryStore:
    def __init__(self, entries: int = 0, fail: bool = False):
        self.entries = entries
        self.fail = fail

    async def count(self) -> int:
        if self.fail:
            raise StorageError("Database is not available")
        return self.entries

    async def clear_all(self) -> int:
        if self.fail:
            raise StorageError("Database is not available")
        deleted, self.entries = self.entries, 0
        return deleted


class FakeStreakConn:
    """
    Minimal asyncpg connection that understands the streak queries.

    Rows live in `self.rows` keyed by record id; every call is recorded in
    `self.calls` as (method, query_name_hint, args).
    """

    def __init__(self, rows: Optional[dict] = None):
        self.rows = rows if rows is not None else {}
        self.calls = []
        self.transactions = 0

    @asynccontextmanager
    async def _transaction(self):
        self.transactions += 1
        yield

    def transaction(self):
        return self._transaction()

    async def execute(self, query: str, *args):
        normalized = " ".join(query.split()).upper()
        self.calls.append(("execute", normalized, args))
        if normalized.startswith("INSERT INTO STREAKS"):
            record_id = args[0]
            if record_id in self.rows:
                return "INSERT 0 0"
            self.rows[record_id] = {
                "current_streak": 0,
                "longest_streak": 0,
                "missed_workouts": 0,
                "last_workout_date": None,
            }
            return "INSERT 0 1"
        if normalized.startswith("UPDATE STREAKS"):
            record_id, current, longest, missed, last_date = args
            self.rows[record_id] = {
                "current_streak": current,
                "longest_streak": longest,
                "missed_workouts": missed,
                "last_workout_date": last_date,
            }
            return "UPDATE 1"
        if normalized.startswith("DELETE FROM MEMORIES"):
            deleted = len(self.rows)
            self.rows.clear()
            return f"DELETE {deleted}"
        return "OK"

    async def fetchrow(self, query: str, *args):
        normalized = " ".join(query.split()).upper()
        self.calls.append(("fetchrow", normalized, args))
        row = self.rows.get(args[0])
        return dict(row) if row is not None else None

    async def fetchval(self, query: str, *args):
        self.calls.append(("fetchval", " ".join(query.split()).upper(), args))
        return len(self.rows)


class FakeDatabase:
    def __init__(self, conn, fail: bool = False):
        self.conn = conn
        self.fail = fail

    @asynccontextmanager
    async def acquire(self):
        if self.fail:
            raise StorageError("Database is not available")
        yield self.conn
