"""Storage backend lookup by name."""

from codeclip.storage.base import ClipboardStorage
from codeclip.storage.memory import MemoryStorage
from codeclip.storage.sqlite import SQLiteStorage

_backends: dict[str, type[ClipboardStorage]] = {
    MemoryStorage.name: MemoryStorage,
    SQLiteStorage.name: SQLiteStorage,
}


def available_backends() -> list[str]:
    return sorted(_backends)


def create_storage(name: str) -> ClipboardStorage:
    """Instantiate the backend registered under `name`."""
    backend = _backends.get(name.strip().lower())
    if backend is None:
        raise ValueError(
            f"Unknown storage backend '{name}'. "
            f"Choose one of: {', '.join(available_backends())}"
        )
    return backend()
