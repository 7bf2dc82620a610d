"""
Small numeric helpers shared by the engine modules.

Rounding follows the half-up convention used throughout the planner
(``22.5 -> 23``), which differs from Python's banker's rounding.
"""

from __future__ import annotations

import math
from typing import Iterable, Optional, Sequence

from app.core.errors import InvalidInputError


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round halves away from zero for positives (``2.5 -> 3``, ``22.5 -> 23``)."""
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def round_int(value: float) -> int:
    return int(math.floor(value + 0.5))


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean, ``0.0`` for an empty sequence."""
    return sum(values) / len(values) if values else 0.0


def pstdev(values: Sequence[float]) -> float:
    """Population standard deviation, ``0.0`` for fewer than two values."""
    if len(values) < 2:
        return 0.0
    avg = mean(values)
    return math.sqrt(sum((v - avg) ** 2 for v in values) / len(values))


# ======================================================================
# Input validation
# ======================================================================


def is_finite(value: float) -> bool:
    return not (math.isnan(value) or math.isinf(value))


def require_finite(field: str, value: float) -> float:
    if value is None or not is_finite(value):
        raise InvalidInputError(field, value, "must be a finite number")
    return value


def require_non_negative(field: str, value: float) -> float:
    """Return *value* unchanged, or raise :class:`InvalidInputError`."""
    if value is None or not is_finite(value) or value < 0:
        raise InvalidInputError(field, value)
    return value


def require_optional_non_negative(field: str, value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    return require_non_negative(field, value)


def require_all_non_negative(field: str, values: Iterable[float]) -> list[float]:
    return [require_non_negative(f"{field}[{i}]", v) for i, v in enumerate(values)]
