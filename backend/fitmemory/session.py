import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse

from .auth import SessionInfo, create_session_token, verify_password
from .config import settings
from .deps import get_optional_session
from .errors import FitMemoryError
from .observability import log_ctx, log_ctx_json
from .schemas import LoginRequest, LoginResponse, SessionResponse


router = APIRouter(tags=["Auth"])
logger = logging.getLogger("fitmemory-auth")

FAILED_LOGIN_DELAY_SEC = 1.0


@router.get("/auth/session", response_model=SessionResponse, response_model_exclude_none=True)
async def get_session(session: Optional[SessionInfo] = Depends(get_optional_session)):
    if session is None:
        return SessionResponse(authenticated=False)
    return SessionResponse(authenticated=True, user=session)


@router.get("/login")
async def login_page(session: Optional[SessionInfo] = Depends(get_optional_session)):
    """Already signed in users are sent home; everyone else stays on the login page."""
    if session is not None:
        return RedirectResponse(url="/", status_code=307)
    return {"authenticated": False}


@router.post("/auth/login", response_model=LoginResponse)
async def login(request: Request, body: LoginRequest):
    if not body.password:
        raise FitMemoryError(
            code="VALIDATION_FAILED",
            message="Password is required",
            status_code=400,
            details={"fieldErrors": [{"field": "body.password", "issue": "required"}]},
        )

    if not verify_password(body.password):
        logger.warning(
            "LOGIN_REJECTED context=%s",
            log_ctx_json(log_ctx(request, extra={"reason": "invalid_password"})),
        )
        # slows down brute forcing
        await asyncio.sleep(FAILED_LOGIN_DELAY_SEC)
        raise FitMemoryError(code="UNAUTHORIZED", message="Invalid password", status_code=401)

    token = create_session_token("user")
    response = JSONResponse(content=LoginResponse(success=True, message="Login successful").model_dump())
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.get_session_max_age_sec(),
        httponly=True,
        secure=settings.is_production(),
        samesite="lax",
        path="/",
    )
    logger.info("LOGIN_OK context=%s", log_ctx_json(log_ctx(request, subject="user")))
    return response


@router.post("/auth/logout", response_model=LoginResponse)
async def logout():
    response = JSONResponse(content=LoginResponse(success=True, message="Logged out").model_dump())
    for cookie_name in (settings.SESSION_COOKIE_NAME, settings.REFRESH_COOKIE_NAME):
        response.delete_cookie(
            key=cookie_name,
            path="/",
            httponly=True,
            secure=settings.is_production(),
            samesite="lax",
        )
    return response
