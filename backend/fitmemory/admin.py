import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Request

from .observability import log_ctx, log_ctx_json
from .schemas import OkResponse
from .streak_logic import StreakRecord, apply_streak_overrides
from .streak_store import StreakStore, get_streak_store


router = APIRouter(prefix="/admin", tags=["Admin"])
logger = logging.getLogger("fitmemory-admin")


@router.put("/streak", response_model=OkResponse)
async def override_streak(
    request: Request,
    payload: Optional[dict[str, Any]] = Body(default=None),
    store: StreakStore = Depends(get_streak_store),
):
    """
    Overwrite any subset of the streak counters, bypassing the streak policy.

    Fields with the wrong type (or an unparseable lastWorkoutDate) are skipped
    while the valid ones still apply. longestStreak >= currentStreak is not
    enforced here so that mistakes can be corrected by hand.
    """
    overrides = payload or {}

    def _merge(record: StreakRecord):
        return apply_streak_overrides(record, overrides)

    updated, applied_fields = await store.update(_merge)

    skipped_fields = sorted(set(overrides) - set(applied_fields))
    logger.info(
        "STREAK_OVERRIDE context=%s",
        log_ctx_json(
            log_ctx(
                request,
                extra={
                    "applied_fields": applied_fields,
                    "skipped_fields": skipped_fields or None,
                    "current_streak": updated.current_streak,
                },
            )
        ),
    )
    return OkResponse(ok=True)
