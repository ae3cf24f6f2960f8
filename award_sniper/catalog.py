"""Default routes and programs, presets, and settings mutations.

Mutations never change their input: each returns a new ``AppSettings``
which the caller saves as a whole.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Dict, List
from urllib.parse import quote_plus

from .models import AppSettings, FlightRoute, RewardProgram

logger = logging.getLogger(__name__)

DEFAULT_PROGRAMS: List[RewardProgram] = [
    RewardProgram(
        id="flyingblue",
        name="Flying Blue (Air France/KLM)",
        miles=22500,
        threshold=1.5,
        book_url="https://www.flyingblue.com/en/book-award",
        color="blue",
    ),
    RewardProgram(
        id="aadvantage",
        name="AA AAdvantage (via Iberia)",
        miles=30000,
        threshold=1.5,
        book_url="https://www.aa.com/aadvantage-program/redeem-miles/flights",
        color="red",
    ),
    RewardProgram(
        id="virginatlantic",
        name="Virgin Atlantic Flying Club",
        miles=30000,
        threshold=1.5,
        book_url="https://www.virginatlantic.com/en/us/flying-club/spend-miles",
        color="pink",
    ),
    RewardProgram(
        id="skymileseco",
        name="Delta SkyMiles (Economy)",
        miles=35000,
        threshold=1.5,
        book_url="https://www.delta.com/us/en/skymiles/redeem-miles/book-a-flight",
        color="indigo",
    ),
]

DEFAULT_ROUTES: List[FlightRoute] = [
    FlightRoute(
        id="opo-ord",
        label="Porto → Chicago (Leg 1)",
        origin="OPO",
        origin_city="Porto",
        destination="ORD",
        dest_city="Chicago",
        date="2026-05-27",
    ),
    FlightRoute(
        id="ams-msp",
        label="Amsterdam → Minneapolis (Leg 2)",
        origin="AMS",
        origin_city="Amsterdam",
        destination="MSP",
        dest_city="Minneapolis",
        date="2026-07-27",
    ),
]

PRESETS: List[Dict] = [
    {"name": "Flying Blue (Air France/KLM)", "miles": 22500, "book_url": "https://www.flyingblue.com/en/book-award", "color": "blue"},
    {"name": "AA AAdvantage (via Iberia)", "miles": 30000, "book_url": "https://www.aa.com/aadvantage-program/redeem-miles/flights", "color": "red"},
    {"name": "Virgin Atlantic Flying Club", "miles": 30000, "book_url": "https://www.virginatlantic.com/en/us/flying-club/spend-miles", "color": "pink"},
    {"name": "Delta SkyMiles", "miles": 35000, "book_url": "https://www.delta.com/us/en/skymiles/redeem-miles/book-a-flight", "color": "indigo"},
    {"name": "United MileagePlus", "miles": 30000, "book_url": "https://www.united.com/en/us/fly/mileageplus/awards.html", "color": "navy"},
    {"name": "Chase Ultimate Rewards", "miles": 25000, "book_url": "https://www.chase.com/personal/credit-cards/ultimate-rewards", "color": "cyan"},
    {"name": "Amex Membership Rewards", "miles": 22500, "book_url": "https://www.americanexpress.com/en-us/rewards/membership-rewards/", "color": "indigo"},
]

# Program id -> name used in web-search queries
PROGRAM_SEARCH_TERMS: Dict[str, str] = {
    "flyingblue": "Flying Blue",
    "aadvantage": "AAdvantage Iberia",
    "virginatlantic": "Virgin Atlantic Flying Club",
    "skymileseco": "Delta SkyMiles",
    "united": "United MileagePlus",
}

# Program id -> seats.aero "Source" identifier
SEATS_AERO_SOURCES: Dict[str, str] = {
    "flyingblue": "flyingblue",
    "aadvantage": "american",
    "virginatlantic": "virginatlantic",
    "skymileseco": "delta",
    "united": "united",
}

# Program id -> live award search page ({origin}, {destination}, {date})
AWARD_SEARCH_URLS: Dict[str, str] = {
    "flyingblue": "https://wwws.airfrance.us/search/offers?pax=1:0:0:0:0:0:0:0&cabinClass=ECONOMY&activeConnection=0&connections={origin}:A-{destination}:A&bookingFlow=REWARD&date={date}",
    "aadvantage": "https://www.aa.com/booking/search?locale=en_US&pax=1&adult=1&type=OneWay&searchType=Award&cabin=&carriers=ALL&slices=%5B%7B%22orig%22:%22{origin}%22,%22dest%22:%22{destination}%22,%22date%22:%22{date}%22%7D%5D",
    "virginatlantic": "https://www.virginatlantic.com/flight-search/select-flights?origin={origin}&destination={destination}&departing={date}&passengerAdult=1&awardSearch=true",
    "skymileseco": "https://www.delta.com/flight-search/book-a-flight?tripType=ONE_WAY&fromCity={origin}&toCity={destination}&departureDate={date}&paxCount=1&shopWithMiles=true",
    "united": "https://www.united.com/en/us/fsr/choose-flights?f={origin}&t={destination}&d={date}&tt=1&at=1&sc=7&px=1&taxng=1&newHP=True&clm=7&st=bestmatches&award=true",
}


def award_search_url(
    program: RewardProgram, origin: str, destination: str, date: str
) -> str:
    """Live award search page for *program*, else its booking page."""
    template = AWARD_SEARCH_URLS.get(program.id)
    if not template:
        return program.book_url
    return template.format(origin=origin, destination=destination, date=date)


def google_flights_url(route: FlightRoute) -> str:
    """Manual fallback for checking the cash fare."""
    q = f"flights from {route.origin} to {route.destination} on {route.date}"
    return f"https://www.google.com/travel/flights?q={quote_plus(q)}"


def default_settings() -> AppSettings:
    return AppSettings(
        routes=[replace(r) for r in DEFAULT_ROUTES],
        programs=[replace(p) for p in DEFAULT_PROGRAMS],
    )


def _slug(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


def _unique_id(base: str, taken: set[str]) -> str:
    candidate = base or "item"
    n = 2
    while candidate in taken:
        candidate = f"{base}-{n}"
        n += 1
    return candidate


# ────────────────────────────────────────────────────────────────
# Routes
# ────────────────────────────────────────────────────────────────


def add_route(settings: AppSettings, route: FlightRoute) -> AppSettings:
    taken = {r.id for r in settings.routes}
    route = replace(
        route,
        id=_unique_id(route.id or _slug(f"{route.origin}-{route.destination}"), taken),
        origin=route.origin.upper(),
        destination=route.destination.upper(),
    )
    logger.info("Adding route %s (%s ➔ %s)", route.id, route.origin, route.destination)
    return replace(settings, routes=[*settings.routes, route])


def update_route(settings: AppSettings, route: FlightRoute) -> AppSettings:
    if not any(r.id == route.id for r in settings.routes):
        raise KeyError(f"Unknown route {route.id!r}")
    routes = [route if r.id == route.id else r for r in settings.routes]
    return replace(settings, routes=routes)


def remove_route(settings: AppSettings, route_id: str) -> AppSettings:
    routes = [r for r in settings.routes if r.id != route_id]
    if len(routes) == len(settings.routes):
        raise KeyError(f"Unknown route {route_id!r}")
    return replace(settings, routes=routes)


# ────────────────────────────────────────────────────────────────
# Programs
# ────────────────────────────────────────────────────────────────


def add_program(settings: AppSettings, program: RewardProgram) -> AppSettings:
    taken = {p.id for p in settings.programs}
    program = replace(program, id=_unique_id(program.id or _slug(program.name), taken))
    return replace(settings, programs=[*settings.programs, program])


def update_program(settings: AppSettings, program: RewardProgram) -> AppSettings:
    if not any(p.id == program.id for p in settings.programs):
        raise KeyError(f"Unknown program {program.id!r}")
    programs = [program if p.id == program.id else p for p in settings.programs]
    return replace(settings, programs=programs)


def remove_program(settings: AppSettings, program_id: str) -> AppSettings:
    programs = [p for p in settings.programs if p.id != program_id]
    if len(programs) == len(settings.programs):
        raise KeyError(f"Unknown program {program_id!r}")
    return replace(settings, programs=programs)


def add_preset(settings: AppSettings, name: str) -> AppSettings:
    """Add the preset called *name* unless a program with that name exists."""
    preset = next((p for p in PRESETS if p["name"] == name), None)
    if preset is None:
        raise KeyError(f"Unknown preset {name!r}")
    if any(p.name == name for p in settings.programs):
        logger.info("Preset %s already present, skipping", name)
        return settings
    program = RewardProgram(id=_slug(name), threshold=1.5, **preset)
    return add_program(settings, program)


__all__ = [
    "DEFAULT_PROGRAMS",
    "DEFAULT_ROUTES",
    "PRESETS",
    "PROGRAM_SEARCH_TERMS",
    "SEATS_AERO_SOURCES",
    "award_search_url",
    "google_flights_url",
    "default_settings",
    "add_route",
    "update_route",
    "remove_route",
    "add_program",
    "update_program",
    "remove_program",
    "add_preset",
]
