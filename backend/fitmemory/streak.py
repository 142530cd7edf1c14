import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from .dates import utc_now
from .errors import StorageError, json_error_response
from .observability import log_ctx, log_ctx_json
from .schemas import (
    ActivityTypeInfo,
    ActivityTypesResponse,
    RecoveryDayResponse,
    RegisterActivityRequest,
    RegisterActivityResponse,
    StreakStatusResponse,
)
from .streak_logic import StreakRecord, register_activity, summarize_streak
from .streak_store import StreakStore, get_streak_store


router = APIRouter(tags=["Streak"])
logger = logging.getLogger("fitmemory-streak")

ACTIVITY_TYPES = {
    "workout": ActivityTypeInfo(label="Workout", description="Complete a workout session"),
    "recovery": ActivityTypeInfo(
        label="Recovery Day",
        description="Active recovery, stretching, or light activity",
    ),
    "rest": ActivityTypeInfo(label="Rest Day", description="Planned rest day for muscle recovery"),
}


async def _register_today(store: StreakStore) -> tuple[StreakRecord, bool]:
    now = utc_now()
    return await store.update(lambda record: register_activity(now, record))


def _activity_failure(request: Request, exc: StorageError, status_code: int = 500) -> JSONResponse:
    logger.error(
        "Activity registration failed context=%s",
        log_ctx_json(log_ctx(request, extra={"status_code": status_code, "code": exc.code})),
        exc_info=exc,
    )
    return json_error_response(request, status_code, {"ok": False, "error": exc.message})


@router.get("/streak-status", response_model=StreakStatusResponse)
async def get_streak_status(store: StreakStore = Depends(get_streak_store)):
    """Read-only: looking at the streak never breaks it."""
    record = await store.load()
    return StreakStatusResponse(**summarize_streak(record, utc_now()))


@router.post("/recovery-day", response_model=RecoveryDayResponse)
async def register_recovery_day(request: Request, store: StreakStore = Depends(get_streak_store)):
    """A recovery day keeps the streak alive exactly like a workout does."""
    try:
        record, already_done_today = await _register_today(store)
    except StorageError as exc:
        return _activity_failure(request, exc)

    logger.info(
        "RECOVERY_DAY context=%s",
        log_ctx_json(
            log_ctx(
                request,
                extra={
                    "current_streak": record.current_streak,
                    "already_done_today": already_done_today,
                },
            )
        ),
    )
    return RecoveryDayResponse(
        ok=True,
        recoveryDayRegistered=True,
        currentStreak=record.current_streak,
        longestStreak=record.longest_streak,
        alreadyDoneToday=already_done_today,
    )


@router.get("/register-activity", response_model=ActivityTypesResponse)
async def list_activity_types():
    return ActivityTypesResponse(
        availableActivityTypes=list(ACTIVITY_TYPES),
        activityTypes=ACTIVITY_TYPES,
    )


@router.post("/register-activity", response_model=RegisterActivityResponse)
async def register_any_activity(
    request: Request,
    body: RegisterActivityRequest,
    store: StreakStore = Depends(get_streak_store),
):
    activity_type = body.type
    if activity_type not in ACTIVITY_TYPES:
        return json_error_response(
            request,
            400,
            {
                "ok": False,
                "error": f"Invalid activity type. Must be one of: {', '.join(ACTIVITY_TYPES)}",
            },
        )

    try:
        record, already_done_today = await _register_today(store)
    except StorageError as exc:
        return _activity_failure(request, exc)

    logger.info(
        "ACTIVITY_REGISTERED context=%s",
        log_ctx_json(
            log_ctx(
                request,
                extra={
                    "activity_type": activity_type,
                    "current_streak": record.current_streak,
                    "already_done_today": already_done_today,
                },
            )
        ),
    )
    return RegisterActivityResponse(
        ok=True,
        activityRegistered=True,
        activityType=activity_type,
        currentStreak=record.current_streak,
        longestStreak=record.longest_streak,
        alreadyDoneToday=already_done_today,
        streakStatus=StreakStatusResponse(**summarize_streak(record, utc_now())),
    )
