import logging

from .db import Database, affected_rows, db, execute_named, fetchval_named

logger = logging.getLogger("fitmemory-memory")


class MemoryStore:
    """Long-term coaching memories. Only counting and bulk removal live here."""

    def __init__(self, database: Database):
        self.database = database

    async def count(self) -> int:
        async with self.database.acquire() as conn:
            total = await fetchval_named(conn, "memory.count", "SELECT COUNT(*)::int FROM memories")
        return int(total or 0)

    async def clear_all(self) -> int:
        async with self.database.acquire() as conn:
            status = await execute_named(conn, "memory.clear_all", "DELETE FROM memories")
        deleted = affected_rows(status)
        logger.info("Long-term memory cleared deleted_count=%s", deleted)
        return deleted


def get_memory_store() -> MemoryStore:
    return MemoryStore(db)
