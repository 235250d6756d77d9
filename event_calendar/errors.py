"""Error kinds surfaced by the event API.

Every failure a caller can observe maps to one of these classes. The
``kind`` attribute is the machine-readable name returned in error bodies
and ``status_code`` the HTTP status the API answers with.
"""
from __future__ import annotations

from typing import Any, Dict


class CalendarError(Exception):
    """Base class for expected service failures."""

    kind = "CalendarError"
    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "kind": self.kind, "status": self.status_code}


class InvalidArgument(CalendarError):
    """Malformed id, malformed timestamp or inverted range."""

    kind = "InvalidArgument"
    status_code = 400


class ValidationError(CalendarError):
    """Missing field, length limit exceeded or end not after start."""

    kind = "ValidationError"
    status_code = 400


class NotFound(CalendarError):
    kind = "NotFound"
    status_code = 404


class Conflict(CalendarError):
    """The record changed since the caller last read it."""

    kind = "Conflict"
    status_code = 409


class InternalError(CalendarError):
    kind = "InternalError"
    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
