# backend/krishi/utils/numbers.py
import math
from typing import Any, Optional


def round_half_up(x: float, ndigits: int = 0) -> float:
    """Round halves towards +inf (2.5 -> 3, -2.5 -> -2) instead of to even."""
    scale = 10 ** ndigits
    return math.floor(x * scale + 0.5) / scale


def to_float(x: Any, default: float = 0.0) -> float:
    """Lenient float parse for upstream fields like "2150.00"; falls back to default."""
    try:
        val = float(x)
    except (TypeError, ValueError):
        return default
    return val if math.isfinite(val) else default


def finite_float(x: Any, field: str) -> float:
    """Strict parse: raises ValueError unless x is a finite number."""
    try:
        val = float(x)
    except (TypeError, ValueError):
        raise ValueError(f"{field} is not a number: {x!r}")
    if not math.isfinite(val):
        raise ValueError(f"{field} is not finite: {x!r}")
    return val
