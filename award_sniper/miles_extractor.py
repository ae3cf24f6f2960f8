"""Heuristic mileage extraction from free-text search results.

The output is a best-effort estimate and must always be presented as such
(low confidence).  Three textual shapes are recognised::

    22,500 miles / 55,000 award / 30,000 points
    55k miles / 22.5k points
    22,500 Flying Blue / 35,000 SkyMiles

Numbers outside the plausibility band are discarded as noise (fares in
dollars, flight numbers, ...).  The estimate is the median of the plausible
matches; on an even count the upper-middle element is used so that the
result is always a figure that was actually observed.
"""

from __future__ import annotations

import logging
import re
from statistics import median_high
from typing import Iterable, List, Mapping, Optional, Pattern, Tuple

logger = logging.getLogger(__name__)

# One-way transatlantic economy award range
MIN_PLAUSIBLE_MILES = 8_000
MAX_PLAUSIBLE_MILES = 200_000

PROGRAM_TOKENS = (
    "Flying Blue",
    "SkyMiles",
    "AAdvantage",
    "MileagePlus",
    "Flying Club",
)

_GROUPED = r"(?<![\d,.])(\d{1,3}(?:,\d{3})+)(?![\d,])"

# (pattern, multiplier)
PATTERNS: Tuple[Tuple[Pattern[str], int], ...] = (
    (re.compile(_GROUPED + r"\s*(?:miles|points|award)", re.IGNORECASE), 1),
    (
        re.compile(
            r"(?<![\d,.])(\d+(?:\.\d+)?)k\s*(?:miles|points)", re.IGNORECASE
        ),
        1000,
    ),
    (
        re.compile(
            _GROUPED
            + r"\s*(?:"
            + "|".join(re.escape(t) for t in PROGRAM_TOKENS)
            + r"|miles)",
            re.IGNORECASE,
        ),
        1,
    ),
)


def is_plausible(miles: int) -> bool:
    return MIN_PLAUSIBLE_MILES <= miles <= MAX_PLAUSIBLE_MILES


def find_mentions(text: str) -> List[int]:
    """Return every plausible mileage mention in *text*, in text order.

    A mention matched by more than one pattern is counted once.
    """
    if not text:
        return []

    by_span: dict[int, int] = {}
    for pattern, multiplier in PATTERNS:
        for m in pattern.finditer(text):
            start = m.start(1)
            if start in by_span:
                continue
            raw = m.group(1).replace(",", "")
            value = int(round(float(raw) * multiplier))
            if is_plausible(value):
                by_span[start] = value
    return [by_span[k] for k in sorted(by_span)]


def extract_miles(text: str) -> Optional[int]:
    """Return the median plausible mileage found in *text* or ``None``."""
    found = find_mentions(text)
    if not found:
        return None
    estimate = median_high(sorted(found))
    logger.debug("Extracted %d mentions %s -> %s", len(found), found, estimate)
    return estimate


def hits_to_text(hits: Iterable[Mapping[str, str]]) -> str:
    """Join ``title`` and ``description`` of search hits into one text."""
    parts = []
    for hit in hits:
        title = hit.get("title") or ""
        description = hit.get("description") or ""
        parts.append(f"{title} {description}".strip())
    return " ".join(p for p in parts if p)


__all__ = [
    "MIN_PLAUSIBLE_MILES",
    "MAX_PLAUSIBLE_MILES",
    "PROGRAM_TOKENS",
    "extract_miles",
    "find_mentions",
    "hits_to_text",
    "is_plausible",
]
