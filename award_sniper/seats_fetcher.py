from __future__ import annotations

import datetime as dt
import logging
from typing import List, Optional

import requests

from .cache import TTLCache
from .config import get_settings
from .models import AvailabilityEntry, AvailabilityResult

logger = logging.getLogger(__name__)

CACHE_TTL_S = 30 * 60
SEARCH_URL = "https://seats.aero/partnerapi/search"

STATUS_OK = "ok"
STATUS_KEY_REQUIRED = "key_required"
STATUS_ERROR = "error"


class SeatsAeroFetcherError(RuntimeError):
    """Error talking to the seats.aero partner API."""


class SeatsAeroFetcher:
    """Live award availability (economy only) from seats.aero."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str = SEARCH_URL,
        timeout: float | None = None,
        cache: TTLCache | None = None,
    ) -> None:
        cfg = get_settings()
        self.api_key = api_key if api_key is not None else cfg.seats_aero_api_key
        self.base_url = base_url
        self.timeout = timeout or cfg.http_timeout_s
        self.cache = (
            cache if cache is not None else TTLCache(CACHE_TTL_S, cfg.cache_max_entries)
        )

    def availability(
        self, origin: str, destination: str, date: str
    ) -> AvailabilityResult:
        """Return availability for the route; never raises."""
        now = dt.datetime.now(dt.timezone.utc)
        if not self.api_key:
            return AvailabilityResult(
                status=STATUS_KEY_REQUIRED,
                results=[],
                fetched_at=now,
                message="Set SEATS_AERO_API_KEY to enable live award availability",
            )

        origin, destination = origin.upper(), destination.upper()
        key = (origin, destination, date)
        cached = self.cache.get(key)
        if cached is not None:
            return AvailabilityResult(STATUS_OK, list(cached.value), cached.fetched_at)

        try:
            entries = self.search(origin, destination, date)
        except (SeatsAeroFetcherError, requests.RequestException) as exc:
            logger.warning(
                "Availability %s->%s %s failed: %s", origin, destination, date, exc
            )
            return AvailabilityResult(
                status=STATUS_ERROR, results=[], fetched_at=now, message=str(exc)
            )

        entry = self.cache.set(key, entries)
        logger.info(
            "Availability %s->%s %s: %d economy entries",
            origin,
            destination,
            date,
            len(entries),
        )
        return AvailabilityResult(STATUS_OK, list(entries), entry.fetched_at)

    def search(self, origin: str, destination: str, date: str) -> List[AvailabilityEntry]:
        resp = requests.get(
            self.base_url,
            params={
                "origin_airport": origin,
                "destination_airport": destination,
                "start_date": date,
                "end_date": date,
                "cabins": "economy",
            },
            headers={
                "accept": "application/json",
                "Partner-Authorization": self.api_key,
            },
            timeout=self.timeout,
        )
        if resp.status_code != 200:
            raise SeatsAeroFetcherError(f"HTTP {resp.status_code} – {resp.text[:120]}")

        payload = resp.json()
        items = (payload.get("data") or []) if isinstance(payload, dict) else None
        if not isinstance(items, list):
            raise SeatsAeroFetcherError("Unexpected availability payload")
        entries = [e for e in (self._to_entry(item) for item in items) if e]
        return sorted(entries, key=lambda e: e.miles)

    @staticmethod
    def _to_entry(item: dict) -> Optional[AvailabilityEntry]:
        """Map one availability record; ``None`` if economy is not bookable."""
        if not isinstance(item, dict) or not item.get("YAvailable"):
            return None
        try:
            miles = int(item.get("YMileageCostRaw") or item.get("YMileageCost") or 0)
        except (TypeError, ValueError):
            return None
        if miles <= 0:
            return None
        try:
            seats = int(item.get("YRemainingSeats") or 0)
        except (TypeError, ValueError):
            seats = 0

        route = item.get("Route")
        if not isinstance(route, dict):
            route = {}
        source = item.get("Source") or route.get("Source", "")
        direct = item.get("YDirect")
        return AvailabilityEntry(
            program=source,
            miles=miles,
            seats_remaining=seats,
            stops=0 if direct else None,
            carriers=item.get("YAirlines") or "",
            date=item.get("Date") or "",
        )


__all__ = [
    "SeatsAeroFetcher",
    "SeatsAeroFetcherError",
    "STATUS_OK",
    "STATUS_KEY_REQUIRED",
    "STATUS_ERROR",
]
