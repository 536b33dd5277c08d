"""Exception hierarchy shared by the store, services and HTTP layer."""

from __future__ import annotations


class OmnibusError(Exception):
    """Base class for every error raised by the catalog."""


class StoreError(OmnibusError):
    """An engine-level failure; carries the original engine message."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConstraintError(StoreError):
    """Integrity violation reported by SQLite (FOREIGN KEY, NOT NULL, UNIQUE)."""


class NotInitializedError(StoreError):
    """Raised when the database handle is used before ``init()`` or after ``close()``."""

    def __init__(self, message: str = "Database not initialized"):
        super().__init__(message)


class ValidationError(OmnibusError, ValueError):
    """Input rejected before any statement was executed."""


class NotFoundError(OmnibusError, LookupError):
    """A record that the operation depends on does not exist."""
