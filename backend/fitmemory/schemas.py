from pydantic import BaseModel
from typing import Optional, Literal

from .auth import SessionInfo


ActivityType = Literal["workout", "recovery", "rest"]


class LoginRequest(BaseModel):
    password: Optional[str] = None


class LoginResponse(BaseModel):
    success: bool
    message: str


class SessionResponse(BaseModel):
    authenticated: bool
    user: Optional[SessionInfo] = None


class OkResponse(BaseModel):
    ok: bool


class StreakStatusResponse(BaseModel):
    currentStreak: int
    longestStreak: int
    missedWorkouts: int
    lastWorkoutDate: Optional[str] = None
    daysSinceLastWorkout: Optional[int] = None
    needsActivity: bool
    nextResetAt: str


class RecoveryDayResponse(BaseModel):
    ok: bool
    recoveryDayRegistered: bool
    currentStreak: int
    longestStreak: int
    alreadyDoneToday: bool


class RegisterActivityRequest(BaseModel):
    type: Optional[str] = None


class RegisterActivityResponse(BaseModel):
    ok: bool
    activityRegistered: bool
    activityType: ActivityType
    currentStreak: int
    longestStreak: int
    alreadyDoneToday: bool
    streakStatus: StreakStatusResponse


class ActivityTypeInfo(BaseModel):
    label: str
    description: str


class ActivityTypesResponse(BaseModel):
    availableActivityTypes: list[ActivityType]
    activityTypes: dict[str, ActivityTypeInfo]


class ClearMemoryResponse(BaseModel):
    message: str
    deletedCount: int


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    db: str
