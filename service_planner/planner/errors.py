"""Error types shared by the planning core and the backend."""

from __future__ import annotations


class PlannerError(RuntimeError):
    """Base class for service planning failures."""
    pass


class ServiceValidationError(PlannerError, ValueError):
    """Raised when a request is missing or carries a malformed field."""
    pass


class StorageError(PlannerError):
    """Raised when the document store rejects a read or write."""
    pass


class NotFoundError(PlannerError, KeyError):
    """Raised when a requested record does not exist."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep plain messages for API payloads.
        return str(self.args[0]) if self.args else ""
