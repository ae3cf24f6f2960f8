from __future__ import annotations

import logging
from typing import Iterable, Optional

from .models import ProgramValue, ValueTier

logger = logging.getLogger(__name__)

# cpp >= threshold * EXCELLENT_FACTOR is "excellent"
EXCELLENT_FACTOR = 1.5
# Below the threshold but at least this many cents per mile is "decent"
DECENT_FLOOR_CPP = 1.0

UNKNOWN = ValueTier("unknown", "N/A", "—")
EXCELLENT = ValueTier("excellent", "Excellent", "🔥")
GOOD = ValueTier("good", "Good", "✅")
DECENT = ValueTier("decent", "Decent", "🟡")
POOR = ValueTier("poor", "Poor", "❌")


def cents_per_mile(cash_price: Optional[float], miles: Optional[int]) -> float:
    """Return the value of one mile in cents for a fare of *cash_price*.

    Missing, zero or negative inputs give ``0`` rather than an error.
    """
    if not cash_price or not miles or cash_price < 0 or miles < 0:
        return 0.0
    return round(cash_price / miles * 100, 2)


def net_cents_per_mile(
    cash_price: Optional[float], miles: Optional[int], fees: float = 0.0
) -> float:
    """Return cents per mile after subtracting the cash co-pay *fees*.

    Never negative: when fees meet or exceed the fare the redemption saves
    nothing and the result is ``0``.
    """
    if not cash_price or not miles or miles < 0:
        return 0.0
    saved = max(0.0, (cash_price - (fees or 0.0)) / miles)
    return round(saved * 100, 2)


def value_tier(cpp: float, threshold: float) -> ValueTier:
    """Classify *cpp* against the program's alert *threshold*.

    Bands are closed on their lower bound.  With ``threshold < 1`` the
    "decent" band is empty.
    """
    if cpp <= 0:
        return UNKNOWN
    if cpp >= threshold * EXCELLENT_FACTOR:
        return EXCELLENT
    if cpp >= threshold:
        return GOOD
    if cpp >= DECENT_FLOOR_CPP:
        return DECENT
    return POOR


def beats_threshold(cpp: float, threshold: float) -> bool:
    return cpp > 0 and cpp >= threshold


def bookable_one_ways(balance: Optional[int], miles: int) -> Optional[int]:
    """Return how many one-ways *balance* pays for, ``None`` if unknown."""
    if balance is None or miles <= 0:
        return None
    return balance // miles


def best_value(values: Iterable[ProgramValue]) -> Optional[ProgramValue]:
    """Return the highest-value program that beats its threshold."""
    candidates = [v for v in values if v.beats]
    if not candidates:
        return None
    return max(candidates, key=lambda v: v.cpp)


__all__ = [
    "EXCELLENT_FACTOR",
    "DECENT_FLOOR_CPP",
    "cents_per_mile",
    "net_cents_per_mile",
    "value_tier",
    "beats_threshold",
    "bookable_one_ways",
    "best_value",
]
