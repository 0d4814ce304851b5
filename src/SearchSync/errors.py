"""Exception types raised by SearchSync."""

from __future__ import annotations

from typing import Any, Sequence


class SearchSyncError(Exception):
    """Base class for all SearchSync errors."""


class SearchError(SearchSyncError):
    """The search backend rejected a request or could not be reached.

    Attributes:
        message: Error message reported by the backend (or the transport).
        status_code: HTTP status code when a response was received.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"[{self.status_code}] {self.message}"


class DocumentUploadError(SearchError):
    """A document batch upload was rejected by the backend.

    Attributes:
        errors: Error entries from the backend's upload envelope.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        errors: Sequence[Any] = (),
    ) -> None:
        super().__init__(message, status_code)
        self.errors = tuple(errors)


class UnknownEntityTypeError(SearchSyncError, LookupError):
    """A queue entry references an entity kind with no registered repository."""

    def __init__(self, entry_type: str) -> None:
        super().__init__(f"No repository registered for entity type: {entry_type}")
        self.entry_type = entry_type
