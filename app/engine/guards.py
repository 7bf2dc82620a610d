"""
Session guards.

Two tiers:

1. **Telemetry guards** (``warn_if`` and the ``guard_*`` helpers) never
   raise and never change the outcome.  They log at WARNING and record a
   :class:`ValidationWarning`.
2. **Ownership invariants** (:meth:`GuardCollector.violation`) raise
   :class:`OwnershipViolationError` in strict mode.  In soft mode the
   violation is logged and recorded; the caller must then skip the illegal
   operation.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional, Union

from app.core.errors import OwnershipViolationError
from app.core.logging_config import get_logger
from app.schemas.guards import GuardMode, ValidationWarning, WarningCode
from app.schemas.session import (EXPECTED_PRESCRIPTION, SessionOrigin, SessionPriority, SessionRole, TrainingDay,
                                 TrainingSession, )

logger = get_logger(__name__)

DEFAULT_SESSION_SOFT_CAP = 4


class GuardCollector:
    """Accumulates warnings for one guarded operation."""

    def __init__(self, mode: GuardMode = GuardMode.SOFT, module: str = "engine"):
        self.mode = GuardMode(mode)
        self.module = module
        self.warnings: list[ValidationWarning] = []

    def warn_if(self, condition: bool, code: WarningCode, message: str, session_id: Optional[str] = None,
                **context: Any) -> bool:
        """Record a telemetry warning when *condition* holds.  Returns *condition*."""
        if not condition:
            return False
        self._record(code, message, session_id, context)
        return True

    def violation(self, code: WarningCode, message: str, session_id: Optional[str] = None, **context: Any) -> None:
        """Report an ownership violation.

        Strict mode raises; soft mode records the warning and returns.
        """
        if self.mode == GuardMode.STRICT:
            logger.error(message, extra={ "ctx_code": code.value, "ctx_session_id": session_id,
                                          "ctx_module": self.module, })
            raise OwnershipViolationError(message, session_id=session_id, context={ "code": code.value, **context })
        self._record(code, message, session_id, context)

    def extend(self, warnings: Iterable[ValidationWarning]) -> None:
        self.warnings.extend(warnings)

    def _record(self, code: WarningCode, message: str, session_id: Optional[str], context: dict[str, Any]) -> None:
        logger.warning(message, extra={ "ctx_code": code.value, "ctx_session_id": session_id,
                                        "ctx_module": self.module, **{ f"ctx_{k}": v for k, v in context.items() }, })
        self.warnings.append(ValidationWarning(code=code, message=message, session_id=session_id, context=context))


# ======================================================================
# Authority rules
# ======================================================================


def as_origin(value: Union[str, SessionOrigin, None]) -> Optional[SessionOrigin]:
    try:
        return SessionOrigin(value)
    except ValueError:
        return None


def origin_label(value: Union[str, SessionOrigin]) -> str:
    return value.value if isinstance(value, SessionOrigin) else str(value)


def can_create(origin: Union[str, SessionOrigin], role: SessionRole, priority: SessionPriority) -> bool:
    """Known authorities only; ADAPTIVE is limited to non-primary recovery sessions."""
    authority = as_origin(origin)
    if authority is None:
        return False
    if authority == SessionOrigin.ADAPTIVE:
        return role == SessionRole.RECOVERY_SUPPORT and priority != SessionPriority.PRIMARY
    return True


def illegal_create_message(origin: Union[str, SessionOrigin], role: SessionRole, priority: SessionPriority) -> str:
    authority = as_origin(origin)
    if authority is None:
        return f"Unknown session origin '{origin_label(origin)}'"
    return (f"{authority.value} may only create recovery sessions "
            f"(got role {role.value}, priority {priority.value})")


def guard_creation_authority(session: TrainingSession, guards: GuardCollector) -> bool:
    """Apply the creation rules to a session that did not come through ``create_session``."""
    if can_create(session.origin, session.role, session.priority):
        return True
    guards.violation(WarningCode.ILLEGAL_CREATE, illegal_create_message(session.origin, session.role, session.priority),
                     session_id=session.id, origin=session.origin.value, role=session.role.value,
                     priority=session.priority.value, )
    return False


# ======================================================================
# Telemetry guards
# ======================================================================


def guard_session_type(session: TrainingSession, guards: GuardCollector) -> bool:
    expected = EXPECTED_PRESCRIPTION[session.type]
    actual = session.prescription.kind
    return not guards.warn_if(expected != actual, WarningCode.TYPE_MISMATCH,
                              f"Session type {session.type.value} carries a '{actual}' prescription in "
                              f"{guards.module}", session_id=session.id, expected=expected, actual=actual, )


def guard_session_id(session: TrainingSession, guards: GuardCollector) -> bool:
    return not guards.warn_if(not session.id, WarningCode.MISSING_ID, f"Missing session ID in {guards.module}",
                              title=session.title, type=session.type.value, )


def guard_unique_ids(sessions: Iterable[TrainingSession], guards: GuardCollector) -> bool:
    ids = [s.id for s in sessions if s.id]
    duplicates = sorted({i for i in ids if ids.count(i) > 1})
    return not guards.warn_if(bool(duplicates), WarningCode.DUPLICATE_ID,
                              f"Duplicate session IDs detected in {guards.module}", duplicates=duplicates,
                              total_ids=len(ids), )


def guard_session_cap(day: TrainingDay, guards: GuardCollector, soft_cap: int = DEFAULT_SESSION_SOFT_CAP) -> bool:
    count = len(day.sessions)
    return not guards.warn_if(count > soft_cap, WarningCode.SESSION_CAP_EXCEEDED,
                              f"Day {day.date.isoformat()} holds {count} sessions (soft cap {soft_cap})",
                              date=day.date.isoformat(), session_count=count, soft_cap=soft_cap, )


def guard_locked_delete(session: TrainingSession, guards: GuardCollector) -> bool:
    return not guards.warn_if(session.locked, WarningCode.LOCKED_DELETE_ATTEMPT, "Attempted to delete locked session",
                              session_id=session.id, lock_reason=session.lock_reason, )


def check_day(day: TrainingDay, guards: GuardCollector, soft_cap: int = DEFAULT_SESSION_SOFT_CAP) -> None:
    """Run every telemetry guard over one day, then the creation rules.

    The creation rules are an ownership invariant: strict mode raises on the
    first session that breaks them.
    """
    for session in day.sessions:
        guard_session_id(session, guards)
        guard_session_type(session, guards)
    guard_unique_ids(day.sessions, guards)
    guard_session_cap(day, guards, soft_cap)
    for session in day.sessions:
        guard_creation_authority(session, guards)


# ======================================================================
# Ownership invariant
# ======================================================================


def protected_ids(sessions: Iterable[TrainingSession]) -> list[str]:
    return [s.id for s in sessions if s.is_protected]


def ownership_preserved(original: Iterable[TrainingSession], resolved: Iterable[TrainingSession],
                        guards: GuardCollector, ) -> bool:
    """Check that no protected session disappeared during adaptation.

    Protected means non-ADAPTIVE origin, locked, or primary priority.
    """
    resolved_ids = {s.id for s in resolved}
    missing = [i for i in protected_ids(original) if i not in resolved_ids]
    if missing:
        guards.violation(WarningCode.PROTECTED_SESSION_LOST,
                         f"Protected sessions deleted in {guards.module}: {', '.join(missing)}", missing=missing, )
        return False
    return True
