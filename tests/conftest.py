"""Shared test fixtures for all test modules."""

import os
import tempfile
from datetime import datetime, timedelta, timezone

import pytest

# ── Environment overrides (must be set before importing codeclip modules) ────
_tmp = tempfile.mkdtemp(prefix="cc_pytest_")
os.environ["CODECLIP_DATA_DIR"] = _tmp
os.environ["CODECLIP_DB_PATH"] = os.path.join(_tmp, "test.db")
os.environ["CODECLIP_STORAGE_BACKEND"] = "memory"
os.environ["CODECLIP_SWEEP_INTERVAL_SECONDS"] = "0"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def db_path(tmp_path):
    """Point the settings singleton at a fresh SQLite file for one test."""
    from codeclip.config import settings

    original = settings.db_path
    settings.db_path = tmp_path / "clipboards.db"
    yield settings.db_path
    settings.db_path = original


@pytest.fixture(params=["memory", "sqlite"])
async def storage(request, db_path):
    """Each storage backend, opened on empty state."""
    from codeclip.storage.registry import create_storage

    backend = create_storage(request.param)
    await backend.open()
    yield backend
    await backend.close()


@pytest.fixture
async def store(storage, clock):
    """ClipboardStore over each backend, driven by a fake clock."""
    from codeclip.services.clipboard_service import ClipboardStore

    return ClipboardStore(storage, clock=clock)


@pytest.fixture
async def installed_store(store):
    """Install `store` as the process-wide singleton used by the routers."""
    import codeclip.services.clipboard_service as service

    previous = service._store
    service._store = store
    yield store
    service._store = previous
