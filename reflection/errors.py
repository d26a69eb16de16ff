"""Error types raised at the reflection service boundary."""

from __future__ import annotations


class ReflectionError(Exception):
    """Base error carrying the HTTP status it maps to."""

    status_code: int = 500
    reason: str = "internal"
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class MalformedRequestError(ReflectionError):
    """The request body could not be parsed as JSON."""

    status_code = 400
    reason = "malformed"
    default_message = "Invalid JSON payload"


class ValidationFailedError(ReflectionError):
    """A required field is missing, has the wrong type, or is blank."""

    status_code = 422
    reason = "validation"
    default_message = "Both entryId and content are required."


class ReflectionUnavailableError(ReflectionError):
    """No strategy in the chain produced a result."""

    status_code = 500
    reason = "unavailable"
    default_message = "Unable to generate reflection"


__all__ = [
    "ReflectionError",
    "MalformedRequestError",
    "ValidationFailedError",
    "ReflectionUnavailableError",
]
