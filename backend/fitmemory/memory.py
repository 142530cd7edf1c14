import logging

from fastapi import APIRouter, Depends, Request

from .errors import StorageError, json_error_response
from .memory_store import MemoryStore, get_memory_store
from .observability import log_ctx, log_ctx_json
from .schemas import ClearMemoryResponse


router = APIRouter(tags=["Memory"])
logger = logging.getLogger("fitmemory-memory")


@router.post("/clear-memory", response_model=ClearMemoryResponse)
async def clear_memory(request: Request, store: MemoryStore = Depends(get_memory_store)):
    try:
        deleted_count = await store.clear_all()
    except StorageError as exc:
        logger.error(
            "Error clearing memory context=%s",
            log_ctx_json(log_ctx(request, extra={"status_code": 500, "code": exc.code})),
            exc_info=exc,
        )
        return json_error_response(request, 500, {"error": "Failed to clear memory"})

    return ClearMemoryResponse(message="Long-term memory cleared", deletedCount=deleted_count)
