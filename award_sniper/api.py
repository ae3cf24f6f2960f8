"""HTTP endpoints for cash prices and award mileage."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, FastAPI, Query
from fastapi.responses import JSONResponse

from . import tracker
from .amadeus_fetcher import AmadeusFetcher
from .search_fetcher import BraveSearchFetcher
from .seats_fetcher import SeatsAeroFetcher

logger = logging.getLogger(__name__)

app = FastAPI(title="award-sniper")


def get_price_fetcher() -> AmadeusFetcher:
    return tracker.price_fetcher


def get_search_fetcher() -> BraveSearchFetcher:
    return tracker.search_fetcher


def get_seats_fetcher() -> SeatsAeroFetcher:
    return tracker.seats_fetcher


def _bad_request(message: str) -> JSONResponse:
    logger.info("Rejected request: %s", message)
    return JSONResponse({"error": message}, status_code=400)


@app.get("/price")
def get_price(
    origin: Optional[str] = None,
    destination: Optional[str] = None,
    date: Optional[str] = None,
    fetcher: AmadeusFetcher = Depends(get_price_fetcher),
):
    """Lowest one-way economy fare for a route and date."""
    if not origin or not destination or not date:
        return _bad_request("Missing origin, destination, or date")
    return fetcher.lowest_fare(origin, destination, date).to_dict()


@app.get("/awards")
def get_awards(
    origin: Optional[str] = None,
    destination: Optional[str] = None,
    program: Optional[str] = None,
    date: Optional[str] = None,
    origin_city: Optional[str] = Query(None, alias="originCity"),
    dest_city: Optional[str] = Query(None, alias="destCity"),
    searcher: BraveSearchFetcher = Depends(get_search_fetcher),
    seats: SeatsAeroFetcher = Depends(get_seats_fetcher),
):
    """Award mileage for a route.

    With ``program`` this is a web-search estimate for that program,
    without it the live availability across all programs.
    """
    if not origin or not destination:
        return _bad_request("Missing origin or destination")

    if program:
        estimate = searcher.estimate_award_miles(
            origin,
            destination,
            program,
            date or "",
            origin_city,
            dest_city,
        )
        return estimate.to_dict()

    if not date:
        return _bad_request("Missing origin, destination, or date")
    return seats.availability(origin, destination, date).to_dict()


__all__ = ["app", "get_price_fetcher", "get_search_fetcher", "get_seats_fetcher"]
