from __future__ import annotations

from typing import Any, Optional


class StoreError(Exception):
    """Base class for every failure surfaced by the reconciliation core."""

    status_code: int = 500

    def __init__(self, message: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause

    def to_dict(self) -> dict[str, Any]:
        return {"error": type(self).__name__, "detail": self.message}


class ConfigurationError(StoreError):
    """A recognized setting was supplied with the wrong type."""


class StoreConnectionError(StoreError, ConnectionError):
    """The document store is unreachable, the URI is invalid or connect timed out."""


class StoreOperationError(StoreError):
    """A single find/insert/update call failed.

    Writes already committed earlier in the same batch are not rolled back.
    """


class DuplicateRecordError(StoreOperationError):
    """An insert hit the unique index on (scope, Index)."""


class InvalidRecordError(StoreError):
    """An incoming resource is missing a field the reconciler reasons about."""


class InvalidTransitionError(StoreError):
    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"illegal job transition {current!r} -> {target!r}")
        self.current = current
        self.target = target
