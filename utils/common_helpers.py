from __future__ import annotations

from datetime import datetime, timezone
from decimal import ROUND_HALF_DOWN, ROUND_HALF_UP, Decimal
from typing import Callable, Optional

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def safe_div(n: Optional[float], d: Optional[float], default: float = 0.0) -> float:
    """n / d, or `default` when either side is missing or d is zero."""
    if n is None or d in (None, 0):
        return default
    return n / d


def round_half_up(x: float, d: int = 2) -> float:
    """Round ties toward +inf (2.5 -> 3, -2.5 -> -2), not like Python's banker's round()."""
    quantum = Decimal(1).scaleb(-d)
    # toward +inf means half-up above zero and half-down below it
    rounding = ROUND_HALF_UP if x >= 0 else ROUND_HALF_DOWN
    return float(Decimal(repr(x)).quantize(quantum, rounding=rounding)) + 0.0  # no "-0.0"


def money(x: float) -> float:
    return round_half_up(x, 2)
