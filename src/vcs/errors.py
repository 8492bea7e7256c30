"""Errors raised by the versioning engine.

Each error carries a ``kind`` tag so outer layers (GraphQL, CLI) can report
it without inspecting the class hierarchy.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Category of a versioning failure."""

    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    VALIDATION = "VALIDATION"
    INTERNAL = "INTERNAL"


class VersioningError(Exception):
    """Base exception for engine operations."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(VersioningError):
    """A repository, branch, file or commit reference does not resolve."""

    kind = ErrorKind.NOT_FOUND


class ConflictError(VersioningError):
    """Duplicate name, or a branch head moved under a concurrent commit."""

    kind = ErrorKind.CONFLICT


class ValidationError(VersioningError):
    """A required field is missing or malformed."""

    kind = ErrorKind.VALIDATION


class InternalError(VersioningError):
    """The backing store failed; the operation was rolled back."""

    kind = ErrorKind.INTERNAL


class MalformedRowError(InternalError):
    """A row read from the store does not match its record type."""

    pass
