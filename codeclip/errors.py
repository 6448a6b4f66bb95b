"""Exception types raised by the clipboard service and storage backends."""


class ClipboardError(Exception):
    """Base class for clipboard operation failures."""


class ValidationError(ClipboardError):
    """A required field is missing or empty, or a value is not recognized."""


class CodeCollisionError(ClipboardError):
    """A freshly generated share or view code is already taken.

    Recoverable: regenerate the codes and try the create again.
    """


class NotFoundError(ClipboardError):
    """No live clipboard matches the given code or id."""


class AccessDeniedError(NotFoundError):
    """The clipboard exists but the share code does not match.

    Subclasses NotFoundError so callers report both the same way and never
    reveal which half of the id/share-code pair was wrong.
    """


class ExpiredError(ClipboardError):
    """The clipboard exists and the code is valid, but it has expired."""


class StorageError(Exception):
    """Opaque failure inside a storage backend."""


class DuplicateKeyError(StorageError):
    """A unique column already holds the value being inserted."""

    def __init__(self, column: str):
        super().__init__(f"Duplicate value for unique column '{column}'")
        self.column = column
