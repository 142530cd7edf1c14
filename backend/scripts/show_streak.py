import asyncio
import json
import logging

from fitmemory.dates import utc_now
from fitmemory.db import db
from fitmemory.errors import StorageError
from fitmemory.memory_store import MemoryStore
from fitmemory.streak_logic import summarize_streak
from fitmemory.streak_store import StreakStore


logger = logging.getLogger("fitmemory-show-streak-script")


async def _run() -> int:
    await db.create_pool()
    if db.pool is None:
        logger.error("SHOW_STREAK_ABORT reason=no_db_pool")
        return 1

    try:
        record = await StreakStore(db).load()
        memory_count = await MemoryStore(db).count()
    except StorageError:
        logger.error("SHOW_STREAK_ABORT reason=storage_error", exc_info=True)
        return 1
    finally:
        await db.close_pool()

    summary = summarize_streak(record, utc_now())
    summary["recordExists"] = record is not None
    summary["memoryCount"] = memory_count
    print(json.dumps(summary, indent=2))
    return 0


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    exit_code = asyncio.run(_run())
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
