"""Health check route."""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from codeclip.config import APP_VERSION
from codeclip.errors import StorageError
from codeclip.services.clipboard_service import get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health_check():
    """Report service status and clipboard counts from the storage backend."""
    try:
        store = get_store()
        stats = await store.stats()
    except (RuntimeError, StorageError) as e:
        logger.warning("Health check failed: %s", e)
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "version": APP_VERSION},
        )

    return {
        "status": "ok",
        "version": APP_VERSION,
        "storage": store.storage.name,
        "clipboards": stats["total"],
        "expired": stats["expired"],
    }
