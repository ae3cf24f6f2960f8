from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .amadeus_fetcher import AmadeusFetcher
from .db import DB_FILE, get_miles_override
from .models import (
    AppSettings,
    AvailabilityResult,
    FlightRoute,
    ProgramValue,
    RewardProgram,
    RouteEvaluation,
)
from .quote_resolver import live_quote_for, resolve
from .search_fetcher import BraveSearchFetcher
from .seats_fetcher import SeatsAeroFetcher
from .value_engine import (
    beats_threshold,
    bookable_one_ways,
    cents_per_mile,
    net_cents_per_mile,
    value_tier,
)

# ────────────────────────────────────────────────────────────────
# Gateways – one per process so their caches are shared
# ────────────────────────────────────────────────────────────────

price_fetcher = AmadeusFetcher()
search_fetcher = BraveSearchFetcher()
seats_fetcher = SeatsAeroFetcher()

logger = logging.getLogger(__name__)


def evaluate_program(
    route: FlightRoute,
    program: RewardProgram,
    cash_price: Optional[float],
    availability: Optional[AvailabilityResult] = None,
    *,
    searcher: Optional[BraveSearchFetcher] = None,
    db_path: str = DB_FILE,
) -> ProgramValue:
    """Resolve the mileage for one program and compute its value."""
    searcher = searcher or search_fetcher

    manual = get_miles_override(route.id, program.id, db_path=db_path)
    live = None if manual is not None else live_quote_for(program.id, availability)

    # Web search only when nothing better is known
    estimate = None
    if manual is None and live is None:
        estimate = searcher.estimate_award_miles(
            route.origin,
            route.destination,
            program.id,
            route.date,
            route.origin_city,
            route.dest_city,
        ).miles

    quote = resolve(manual, live, estimate, baseline=program.miles)
    cpp = cents_per_mile(cash_price, quote.miles)
    logger.debug(
        "%s %s: %s miles (%s) = %.2f cpp",
        route.id,
        program.id,
        quote.miles,
        quote.provenance.value,
        cpp,
    )
    return ProgramValue(
        program=program,
        quote=quote,
        cpp=cpp,
        net_cpp=net_cents_per_mile(cash_price, quote.miles, quote.fees),
        tier=value_tier(cpp, program.threshold),
        beats=beats_threshold(cpp, program.threshold),
        bookings=bookable_one_ways(program.balance, quote.miles),
    )


def evaluate_route(
    route: FlightRoute,
    programs: Sequence[RewardProgram],
    *,
    pricer: Optional[AmadeusFetcher] = None,
    searcher: Optional[BraveSearchFetcher] = None,
    seats: Optional[SeatsAeroFetcher] = None,
    db_path: str = DB_FILE,
) -> RouteEvaluation:
    """Fetch the cash fare and value every program for *route*."""
    pricer = pricer or price_fetcher
    seats = seats or seats_fetcher

    logger.info("Evaluating: %s ➔ %s on %s", route.origin, route.destination, route.date)
    price = pricer.lowest_fare(route.origin, route.destination, route.date)
    if price.price is None:
        logger.warning("  No cash price for %s: %s", route.id, price.error)
    elif price.warning:
        logger.warning("  Stale cash price for %s: %s", route.id, price.warning)

    availability = seats.availability(route.origin, route.destination, route.date)
    if availability.status != "ok":
        logger.info("  Availability %s: %s", availability.status, availability.message)

    values = [
        evaluate_program(
            route,
            prog,
            price.price,
            availability,
            searcher=searcher,
            db_path=db_path,
        )
        for prog in programs
    ]
    return RouteEvaluation(route=route, price=price, values=values)


def evaluate_all(settings: AppSettings, **kwargs) -> List[RouteEvaluation]:
    evaluations = []
    for route in settings.routes:
        evaluations.append(evaluate_route(route, settings.programs, **kwargs))
    best = [e.best for e in evaluations if e.best]
    logger.info("Evaluated %d routes, %d with a good redemption", len(evaluations), len(best))
    return evaluations


__all__ = [
    "evaluate_program",
    "evaluate_route",
    "evaluate_all",
    "price_fetcher",
    "search_fetcher",
    "seats_fetcher",
]
