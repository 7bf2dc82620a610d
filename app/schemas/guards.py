"""
Guard result types.

Every guarded operation returns a best-effort value together with the
warnings collected while producing it.  Callers decide whether a warning is
fatal.
"""

from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class GuardMode(str, Enum):
    """``strict`` raises on ownership violations, ``soft`` logs and refuses."""
    SOFT = "soft"
    STRICT = "strict"


class WarningCode(str, Enum):
    # Telemetry only: never change the outcome
    TYPE_MISMATCH = "TYPE_MISMATCH"
    DUPLICATE_ID = "DUPLICATE_ID"
    MISSING_ID = "MISSING_ID"
    SESSION_CAP_EXCEEDED = "SESSION_CAP_EXCEEDED"
    LOCKED_DELETE_ATTEMPT = "LOCKED_DELETE_ATTEMPT"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    SESSION_OUTSIDE_WEEK = "SESSION_OUTSIDE_WEEK"
    # Ownership violations (raised in strict mode)
    ILLEGAL_CREATE = "ILLEGAL_CREATE"
    ILLEGAL_DELETE = "ILLEGAL_DELETE"
    PROTECTED_SESSION_LOST = "PROTECTED_SESSION_LOST"


class ValidationWarning(BaseModel):
    code: WarningCode
    message: str
    session_id: Optional[str] = None
    context: dict[str, Any] = Field(default_factory=dict)


class GuardedResult(BaseModel, Generic[T]):
    value: T
    warnings: list[ValidationWarning] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.warnings

    def has(self, code: WarningCode) -> bool:
        return any(w.code == code for w in self.warnings)
