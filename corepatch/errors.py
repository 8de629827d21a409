"""Exception types raised by CorePatch."""

from typing import Optional


class CorePatchError(Exception):
    """Base class for CorePatch errors."""


class EntryLockedError(CorePatchError):
    """Raised when editing an entry that already received feedback."""


class StorageError(CorePatchError):
    """Raised when the local database cannot be read or written."""


class FeedbackError(CorePatchError):
    """Raised when the chat endpoint cannot produce a reply.

    Attributes:
        status_code: HTTP status returned by the endpoint, if any.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
