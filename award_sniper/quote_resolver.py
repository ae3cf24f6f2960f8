"""Pick the authoritative mileage figure for a (route, program) pair.

Sources are never blended: a verified manual quote would be corrupted by
averaging it with a text-mining estimate.  The first present source in
``manual > live > estimated > default`` wins.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Union

from .catalog import SEATS_AERO_SOURCES
from .models import (
    AvailabilityResult,
    DefaultQuote,
    EstimatedQuote,
    LiveQuote,
    ManualQuote,
    Provenance,
    ResolvedQuote,
)

logger = logging.getLogger(__name__)

AwardQuote = Union[ManualQuote, LiveQuote, EstimatedQuote, DefaultQuote]

PROVENANCE_LABELS = {
    Provenance.MANUAL: "Your quote",
    Provenance.LIVE: "Live availability",
    Provenance.ESTIMATED: "Estimated",
    Provenance.DEFAULT: "Published rate",
}


def resolve(
    manual: Optional[ManualQuote] = None,
    live: Optional[LiveQuote] = None,
    estimate: Union[EstimatedQuote, int, None] = None,
    *,
    baseline: int,
) -> ResolvedQuote:
    """Return the highest-precedence quote with its provenance."""
    if isinstance(estimate, int):
        estimate = EstimatedQuote(estimate)

    ordered: Sequence[Optional[AwardQuote]] = (
        manual,
        live,
        estimate,
        DefaultQuote(baseline),
    )
    chosen = next(q for q in ordered if q is not None)

    fees = chosen.fees if isinstance(chosen, ManualQuote) else 0.0
    return ResolvedQuote(
        miles=chosen.miles, fees=fees, provenance=chosen.provenance
    )


def live_quote_for(
    program_id: str, availability: Optional[AvailabilityResult]
) -> Optional[LiveQuote]:
    """Return the cheapest live entry for *program_id*, if any."""
    if availability is None or availability.status != "ok":
        return None
    source = SEATS_AERO_SOURCES.get(program_id, program_id)
    for entry in availability.results:
        # results are sorted by miles ascending
        if entry.program == source:
            return LiveQuote(
                miles=entry.miles,
                seats_remaining=entry.seats_remaining,
                carriers=entry.carriers,
            )
    return None


def describe(quote: ResolvedQuote) -> str:
    """Human readable figure, always with its provenance label."""
    text = f"{quote.miles:,} miles ({PROVENANCE_LABELS[quote.provenance]})"
    if quote.fees:
        text += f" + {quote.fees:,.2f} fees"
    return text


__all__ = [
    "AwardQuote",
    "PROVENANCE_LABELS",
    "resolve",
    "live_quote_for",
    "describe",
]
