"""
Domain exceptions raised by the training-load engine.

The engine prefers table defaults over exceptions (taper factor 1.0 out of
range, ``stable`` trend on short series).  Exceptions are reserved for input
that cannot be interpreted at all and for breaches of the session ownership
rules when guards run in strict mode.
"""

from __future__ import annotations

from typing import Any


class EngineError(Exception):
    """Base class for all engine errors."""


class InvalidInputError(EngineError, ValueError):
    """A numeric input is negative, NaN or otherwise inconsistent."""

    def __init__(self, field: str, value: Any, reason: str = "must be a finite, non-negative number"):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid value for '{field}': {value!r} ({reason})")


class OwnershipViolationError(EngineError):
    """A session operation breaks the creation / deletion authority rules."""

    def __init__(self, message: str, session_id: str | None = None, context: dict[str, Any] | None = None):
        self.session_id = session_id
        self.context = context or {}
        super().__init__(message)
