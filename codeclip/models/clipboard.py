"""Clipboard record type and Pydantic request/response models."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime | None) -> str | None:
    """Serialize a UTC datetime with fixed microsecond precision.

    The fixed width keeps string comparison equal to time comparison, which
    the SQLite expiry queries rely on.
    """
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_timestamp(value: str | None) -> datetime | None:
    if value is None:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class AccessType(str, Enum):
    EDIT = "edit"
    VIEW = "view"
    PRIVATE = "private"


@dataclass
class ClipboardRecord:
    id: int
    share_code: str
    view_code: str
    content: str
    access_type: str
    expiry_at: datetime | None
    created_at: datetime
    updated_at: datetime
    last_edit_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return self.expiry_at is not None and self.expiry_at <= now


# ── Request bodies ───────────────────────────────────────────────────────────
# Field names on the wire are camelCase; the access type and expiry are left
# loosely typed so the service decides what counts as invalid (400, not 422).

class ClipboardCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: str | None = None
    access_type: str | None = Field(default=None, alias="accessType")
    expiry_hours: float | None = Field(default=None, alias="expiryHours")


class ClipboardUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: str | None = None
    share_code: str | None = Field(default=None, alias="shareCode")


class ClipboardDelete(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    share_code: str | None = Field(default=None, alias="shareCode")


# ── Responses ────────────────────────────────────────────────────────────────

class ClipboardCreated(BaseModel):
    id: int
    shareCode: str | None = None
    viewCode: str | None = None
    accessType: str
    expiryAt: str | None = None
    message: str


class ClipboardEditView(BaseModel):
    id: int
    content: str
    shareCode: str
    accessType: str
    createdAt: str
    updatedAt: str
    lastEditAt: str
    expiryAt: str | None = None
    isEditable: bool = True


class ClipboardReadView(BaseModel):
    id: int
    content: str
    viewCode: str
    accessType: str
    createdAt: str
    updatedAt: str
    lastEditAt: str
    expiryAt: str | None = None
    isEditable: bool = False


class ClipboardUpdated(BaseModel):
    content: str
    updatedAt: str
    lastEditAt: str
    message: str
