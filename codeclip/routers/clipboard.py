"""Clipboard routes: create, open by share or view code, update, delete.

No login is involved. Whoever holds a code has the access that code grants.
"""

import logging

from fastapi import APIRouter, HTTPException

from codeclip.errors import (
    ClipboardError,
    CodeCollisionError,
    ExpiredError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from codeclip.models.clipboard import (
    ClipboardCreate,
    ClipboardCreated,
    ClipboardDelete,
    ClipboardEditView,
    ClipboardReadView,
    ClipboardUpdate,
    ClipboardUpdated,
)
from codeclip.services.clipboard_service import create_clipboard, get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/clipboard", tags=["clipboard"])


def _http_error(exc: Exception) -> HTTPException:
    """Map a service failure to the status code clients rely on.

    AccessDeniedError is a NotFoundError, so a wrong share code and an
    unknown id produce identical responses.
    """
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, ExpiredError):
        return HTTPException(status_code=410, detail=str(exc))
    if isinstance(exc, CodeCollisionError):
        return HTTPException(
            status_code=503,
            detail="Could not allocate a unique code, please try again",
        )
    logger.error("Clipboard request failed: %s", exc, exc_info=exc)
    return HTTPException(status_code=500, detail="Internal server error")


@router.post("", response_model=ClipboardCreated)
async def create(data: ClipboardCreate):
    """Create a clipboard and return the code(s) its access type discloses."""
    try:
        return await create_clipboard(
            get_store(),
            data.content,
            access_type=data.access_type,
            expiry_hours=data.expiry_hours,
        )
    except (ClipboardError, StorageError) as e:
        raise _http_error(e) from e


@router.get("/share/{code}", response_model=ClipboardEditView)
async def open_by_share_code(code: str):
    """Edit-mode view of a clipboard."""
    try:
        return await get_store().get_by_share_code(code)
    except (ClipboardError, StorageError) as e:
        raise _http_error(e) from e


@router.get("/view/{code}", response_model=ClipboardReadView)
async def open_by_view_code(code: str):
    """Read-only view of a clipboard."""
    try:
        return await get_store().get_by_view_code(code)
    except (ClipboardError, StorageError) as e:
        raise _http_error(e) from e


@router.put("/{clipboard_id}", response_model=ClipboardUpdated)
async def update(clipboard_id: int, data: ClipboardUpdate):
    """Replace clipboard content. Requires the matching share code."""
    try:
        return await get_store().update(clipboard_id, data.share_code, data.content)
    except (ClipboardError, StorageError) as e:
        raise _http_error(e) from e


@router.delete("/{clipboard_id}")
async def delete(clipboard_id: int, data: ClipboardDelete):
    """Delete a clipboard. Requires the matching share code."""
    try:
        return await get_store().delete(clipboard_id, data.share_code)
    except (ClipboardError, StorageError) as e:
        raise _http_error(e) from e
