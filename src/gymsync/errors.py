"""Error taxonomy for GymSync.

Every error is scoped to the user action that triggered it; none is fatal
to the process.
"""

from __future__ import annotations


class GymSyncError(Exception):
    """Base class for all GymSync errors."""


class ValidationError(GymSyncError):
    """A draft is missing required fields and cannot be committed."""

    def __init__(self, problems: list[str]) -> None:
        super().__init__("; ".join(problems) or "invalid draft")
        self.problems = list(problems)


class BackendError(GymSyncError):
    """A read or write against the record store failed."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation


class CatalogError(GymSyncError):
    """GIF search/trending failed. Callers receive an empty list instead."""


class StaleStateError(GymSyncError):
    """A refetch finished after its view was unmounted or superseded."""


class NotOwnerError(GymSyncError):
    """Only the creator of a session may delete it."""


class ConfirmationDeclined(GymSyncError):
    """A destructive action was not confirmed by the user."""
