"""Data models used throughout the project."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


def _iso(ts: Optional[datetime]) -> Optional[str]:
    return ts.isoformat() if ts else None


@dataclass(slots=True)
class FlightRoute:
    id: str
    label: str
    origin: str
    origin_city: str
    destination: str
    dest_city: str
    date: str


@dataclass(slots=True)
class RewardProgram:
    id: str
    name: str
    miles: int
    threshold: float = 1.5
    book_url: str = ""
    color: str = ""
    balance: Optional[int] = None

    def __post_init__(self) -> None:
        if self.threshold <= 0:
            raise ValueError(f"threshold must be > 0 (got {self.threshold})")
        if self.miles < 0:
            raise ValueError(f"miles must be >= 0 (got {self.miles})")


@dataclass(slots=True)
class AppSettings:
    routes: List[FlightRoute] = field(default_factory=list)
    programs: List[RewardProgram] = field(default_factory=list)


# ────────────────────────────────────────────────────────────────
# Award quotes – one class per source
# ────────────────────────────────────────────────────────────────


class Provenance(str, Enum):
    MANUAL = "manual"
    LIVE = "live"
    ESTIMATED = "estimated"
    DEFAULT = "default"


@dataclass(slots=True)
class ManualQuote:
    miles: int
    fees: float = 0.0
    saved_at: Optional[datetime] = None

    @property
    def provenance(self) -> Provenance:
        return Provenance.MANUAL


@dataclass(slots=True)
class LiveQuote:
    miles: int
    seats_remaining: Optional[int] = None
    carriers: str = ""

    @property
    def provenance(self) -> Provenance:
        return Provenance.LIVE


@dataclass(slots=True)
class EstimatedQuote:
    miles: int

    @property
    def provenance(self) -> Provenance:
        return Provenance.ESTIMATED


@dataclass(slots=True)
class DefaultQuote:
    miles: int

    @property
    def provenance(self) -> Provenance:
        return Provenance.DEFAULT


@dataclass(slots=True, frozen=True)
class ResolvedQuote:
    miles: int
    fees: float
    provenance: Provenance

    def to_dict(self) -> dict:
        return {
            "miles": self.miles,
            "fees": self.fees,
            "provenance": self.provenance.value,
        }


# ────────────────────────────────────────────────────────────────
# Gateway results
# ────────────────────────────────────────────────────────────────


@dataclass(slots=True)
class PriceResult:
    price: Optional[float]
    currency: str
    source: str
    fetched_at: datetime
    error: Optional[str] = None
    warning: Optional[str] = None

    @property
    def freshness(self) -> str:
        if self.price is None:
            return "unavailable"
        if self.warning:
            return "stale"
        if "cached" in self.source:
            return "cached"
        return "fresh"

    def to_dict(self) -> dict:
        data = {
            "price": self.price,
            "currency": self.currency,
            "source": self.source,
            "fetchedAt": _iso(self.fetched_at),
        }
        if self.error:
            data["error"] = self.error
        if self.warning:
            data["warning"] = self.warning
        return data


@dataclass(slots=True)
class AwardEstimate:
    miles: Optional[int]
    source: str
    confidence: str
    fetched_at: datetime
    cached: bool = False

    def to_dict(self) -> dict:
        data = {
            "miles": self.miles,
            "source": self.source,
            "confidence": self.confidence,
            "fetchedAt": _iso(self.fetched_at),
        }
        if self.cached:
            data["cached"] = True
        return data


@dataclass(slots=True)
class AvailabilityEntry:
    program: str
    miles: int
    seats_remaining: int
    stops: Optional[int]
    carriers: str
    date: str = ""

    def to_dict(self) -> dict:
        return {
            "program": self.program,
            "miles": self.miles,
            "seatsRemaining": self.seats_remaining,
            "stops": self.stops,
            "carriers": self.carriers,
            "date": self.date,
        }


@dataclass(slots=True)
class AvailabilityResult:
    status: str
    results: List[AvailabilityEntry]
    fetched_at: datetime
    source: str = "seats.aero"
    message: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "status": self.status,
            "results": [r.to_dict() for r in self.results],
            "fetchedAt": _iso(self.fetched_at),
            "source": self.source,
        }
        if self.message:
            data["message"] = self.message
        return data


# ────────────────────────────────────────────────────────────────
# Value computation
# ────────────────────────────────────────────────────────────────


@dataclass(slots=True, frozen=True)
class ValueTier:
    tier: str
    label: str
    indicator: str


@dataclass(slots=True)
class ProgramValue:
    program: RewardProgram
    quote: ResolvedQuote
    cpp: float
    net_cpp: float
    tier: ValueTier
    beats: bool
    bookings: Optional[int] = None


@dataclass(slots=True)
class RouteEvaluation:
    route: FlightRoute
    price: PriceResult
    values: List[ProgramValue] = field(default_factory=list)

    @property
    def best(self) -> Optional[ProgramValue]:
        from .value_engine import best_value

        return best_value(self.values)
