import logging
import sys
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .admin import router as admin_router
from .config import settings
from .db import db
from .errors import json_error_response, setup_error_handlers
from .memory import router as memory_router
from .observability import (
    REQUEST_ID_HEADER,
    REQUEST_ID_MAX_LEN,
    duration_ms,
    generate_request_id,
    log_ctx,
    log_ctx_json,
    reset_request_context,
    set_request_context,
    validate_request_id,
)
from .schemas import HealthResponse
from .session import router as session_router
from .streak import router as streak_router

APP_VERSION = "0.1.0"

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stdout,
)
logger = logging.getLogger("fitmemory-api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting FitMemory API...")
    logger.info(
        "Startup config: env=%s streak_timezone=%s cors_origins=%s",
        settings.env_mode(),
        settings.STREAK_TIMEZONE,
        settings.get_cors_allow_origins(),
    )
    await db.create_pool()
    yield
    logger.info("Shutting down FitMemory API...")
    await db.close_pool()


app = FastAPI(
    title="FitMemory API",
    description="Streak tracking, session gate and coach memory for FitMemory",
    version=APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_allow_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT"],
    allow_headers=["Content-Type", "X-Request-Id"],
    expose_headers=[REQUEST_ID_HEADER],
)


def _reject_request_id(request: Request, started_at: float) -> JSONResponse:
    request.state.request_id = generate_request_id()
    response = json_error_response(
        request,
        400,
        {
            "error": {
                "code": "VALIDATION_FAILED",
                "message": "Invalid request data",
                "details": {
                    "fieldErrors": [
                        {
                            "field": "header.X-Request-Id",
                            "issue": f"must be non-empty and <= {REQUEST_ID_MAX_LEN} chars",
                        }
                    ]
                },
            }
        },
    )
    logger.warning(
        "REQUEST_REJECTED context=%s",
        log_ctx_json(
            log_ctx(
                request,
                extra={
                    "status_code": 400,
                    "duration_ms": duration_ms(started_at),
                    "reason": "invalid_x_request_id",
                },
            )
        ),
    )
    return response


@app.middleware("http")
async def request_observability_middleware(request: Request, call_next):
    started_at = time.monotonic()

    incoming_request_id = request.headers.get(REQUEST_ID_HEADER)
    if incoming_request_id is None:
        request_id = generate_request_id()
    elif validate_request_id(incoming_request_id):
        request_id = incoming_request_id.strip()
    else:
        return _reject_request_id(request, started_at)

    request.state.request_id = request_id
    context_tokens = set_request_context(request_id=request_id, path=request.url.path)
    try:
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(
            "REQUEST_DONE context=%s",
            log_ctx_json(
                log_ctx(
                    request,
                    extra={
                        "status_code": response.status_code,
                        "duration_ms": duration_ms(started_at),
                    },
                )
            ),
        )
        return response
    finally:
        reset_request_context(context_tokens)


setup_error_handlers(app)


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    db_status = await db.db_check()
    return HealthResponse(status="ok", service="fitmemory-api", version=APP_VERSION, db=db_status)


app.include_router(session_router)
app.include_router(streak_router)
app.include_router(admin_router)
app.include_router(memory_router)


def run() -> None:
    import uvicorn

    uvicorn.run(app, host=settings.APP_HOST, port=settings.APP_PORT, log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    run()
