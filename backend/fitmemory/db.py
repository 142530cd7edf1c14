import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import asyncpg

from .config import settings
from .errors import StorageError
from .observability import current_request_context

logger = logging.getLogger("fitmemory-db")

STORAGE_EXCEPTIONS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)


def _statement_timeout_ms() -> int:
    return max(0, int(settings.DB_STATEMENT_TIMEOUT_MS))


def _slow_query_threshold_ms() -> int:
    return max(0, int(settings.DB_SLOW_QUERY_MS))


def _log_slow_query(query_name: str, started_at: float) -> None:
    threshold_ms = _slow_query_threshold_ms()
    if threshold_ms <= 0:
        return

    duration = int((time.monotonic() - started_at) * 1000)
    if duration < threshold_ms:
        return

    context = current_request_context()
    payload = {
        "request_id": context.get("request_id", ""),
        "path": context.get("path", ""),
        "query_name": query_name,
        "duration_ms": duration,
        "threshold_ms": threshold_ms,
    }
    logger.warning("DB_SLOW_QUERY context=%s", payload)


async def fetchrow_named(conn: asyncpg.Connection, query_name: str, query: str, *args):
    started_at = time.monotonic()
    try:
        return await conn.fetchrow(query, *args)
    finally:
        _log_slow_query(query_name=query_name, started_at=started_at)


async def fetchval_named(conn: asyncpg.Connection, query_name: str, query: str, *args):
    started_at = time.monotonic()
    try:
        return await conn.fetchval(query, *args)
    finally:
        _log_slow_query(query_name=query_name, started_at=started_at)


async def execute_named(conn: asyncpg.Connection, query_name: str, query: str, *args):
    started_at = time.monotonic()
    try:
        return await conn.execute(query, *args)
    finally:
        _log_slow_query(query_name=query_name, started_at=started_at)


def affected_rows(status: str) -> int:
    """Row count from a command tag such as 'DELETE 3'."""
    try:
        return int(str(status).rsplit(" ", 1)[-1])
    except (TypeError, ValueError):
        return 0


class Database:
    def __init__(self):
        self.pool: Optional[asyncpg.Pool] = None
        self._pool_lock = asyncio.Lock()

    async def create_pool(self):
        if not settings.DATABASE_URL:
            logger.warning("DATABASE_URL is not set, database pool will not be created.")
            return

        try:
            self.pool = await asyncpg.create_pool(
                dsn=settings.DATABASE_URL,
                min_size=1,
                max_size=5,
                max_inactive_connection_lifetime=300.0,
                command_timeout=60.0,
                statement_cache_size=0,
                server_settings={"statement_timeout": f"{_statement_timeout_ms()}ms"},
            )
            logger.info("Database pool created.")

            await self.init_db()
        except STORAGE_EXCEPTIONS as e:
            logger.error(f"Failed to create database pool: {e}")
            await self._discard_pool()

    async def _discard_pool(self):
        pool, self.pool = self.pool, None
        if pool is None:
            return
        try:
            await pool.close()
        except STORAGE_EXCEPTIONS as e:
            logger.warning(f"Failed to close database pool: {e}")

    async def init_db(self):
        if not self.pool:
            return

        async with self.pool.acquire() as conn:
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS streaks (
                    id TEXT PRIMARY KEY,
                    current_streak INT NOT NULL DEFAULT 0,
                    longest_streak INT NOT NULL DEFAULT 0,
                    missed_workouts INT NOT NULL DEFAULT 0,
                    last_workout_date DATE,
                    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
                );

                CREATE TABLE IF NOT EXISTS memories (
                    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
                    type TEXT NOT NULL CHECK (
                        type IN ('preference', 'goal', 'pattern', 'injury', 'constraint', 'insight')
                    ),
                    content TEXT NOT NULL,
                    meta JSONB NOT NULL DEFAULT '{}'::jsonb,
                    embedding DOUBLE PRECISION[],
                    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
                );

                CREATE INDEX IF NOT EXISTS idx_memories_created
                    ON memories (created_at DESC);
            """)
            logger.info("Database tables initialized.")

    async def close_pool(self):
        if self.pool:
            await self.pool.close()
            logger.info("Database pool closed.")

    async def ensure_pool(self) -> asyncpg.Pool:
        if not self.pool and settings.DATABASE_URL:
            # the database may have been down during startup
            async with self._pool_lock:
                if not self.pool:
                    await self.create_pool()
        if not self.pool:
            raise StorageError("Database is not available")
        return self.pool

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection]:
        pool = await self.ensure_pool()
        try:
            async with pool.acquire() as conn:
                yield conn
        except STORAGE_EXCEPTIONS as exc:
            raise StorageError(details={"reason": type(exc).__name__}) from exc

    async def db_check(self) -> str:
        if not settings.DATABASE_URL:
            return "disabled"

        try:
            async with self.acquire() as conn:
                await conn.execute("SELECT 1")
            return "ok"
        except StorageError as e:
            logger.error(f"Database health check failed: {e}")
            return "fail"


db = Database()
