from __future__ import annotations

import datetime as dt
import logging
from typing import Optional, Tuple

import requests

from .cache import TTLCache
from .config import get_settings
from .models import PriceResult

logger = logging.getLogger(__name__)

CACHE_TTL_S = 2 * 60 * 60
SOURCE = "amadeus"
NO_RESULTS = "No flights found for this route/date"


class AmadeusFetcherError(RuntimeError):
    """Error talking to the Amadeus self-service API."""

    def __init__(self, message: str, status_code: int = 0) -> None:
        super().__init__(message)
        self.status_code = status_code


def classify_error(status_code: int) -> str:
    """Map an upstream status code to a human-readable message."""
    if status_code == 429:
        return "Rate limit – try refreshing in a few minutes"
    if status_code == 401:
        return "API auth error – contact site owner"
    if status_code == 400:
        return NO_RESULTS
    if status_code >= 500:
        return "Amadeus server error – try again shortly"
    return "Price temporarily unavailable"


def _now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class AmadeusFetcher:
    """
    Lowest one-way economy fare from the Amadeus flight-offers search.
    """

    def __init__(
        self,
        client_id: str | None = None,
        client_secret: str | None = None,
        base_url: str | None = None,
        *,
        currency: str | None = None,
        timeout: float | None = None,
        cache: TTLCache | None = None,
    ) -> None:
        cfg = get_settings()
        self.client_id = client_id if client_id is not None else cfg.amadeus_client_id
        self.client_secret = (
            client_secret if client_secret is not None else cfg.amadeus_client_secret
        )
        self.base_url = (base_url or cfg.amadeus_base_url).rstrip("/")
        self.currency = currency or cfg.currency
        self.timeout = timeout or cfg.http_timeout_s
        self.cache = (
            cache if cache is not None else TTLCache(CACHE_TTL_S, cfg.cache_max_entries)
        )
        self._token: Optional[str] = None
        self._token_expires: Optional[dt.datetime] = None

    # ──────────────────────────────────────────────────────────

    def lowest_fare(self, origin: str, destination: str, date: str) -> PriceResult:
        """Return the cheapest fare for the route; never raises."""
        origin, destination = origin.upper(), destination.upper()
        key = (origin, destination, date)

        cached = self.cache.get(key)
        if cached is not None:
            return PriceResult(
                price=cached.value,
                currency=self.currency,
                source=f"{SOURCE} (cached)",
                fetched_at=cached.fetched_at,
            )

        try:
            prices = self.search_prices(origin, destination, date)
        except AmadeusFetcherError as exc:
            message = classify_error(exc.status_code) if exc.status_code else str(exc)
            logger.warning(
                "Price fetch %s->%s %s failed: %s", origin, destination, date, exc
            )
            return self._fallback(key, message)
        except requests.RequestException as exc:
            logger.warning(
                "Price fetch %s->%s %s network error: %s", origin, destination, date, exc
            )
            return self._fallback(key, "Price temporarily unavailable")

        if not prices:
            logger.info("No offers for %s->%s %s", origin, destination, date)
            return PriceResult(
                price=None,
                currency=self.currency,
                source=SOURCE,
                fetched_at=_now(),
                error=NO_RESULTS,
            )

        lowest = min(prices)
        entry = self.cache.set(key, lowest)
        logger.info("Lowest fare %s->%s %s: %.2f", origin, destination, date, lowest)
        return PriceResult(
            price=lowest,
            currency=self.currency,
            source=SOURCE,
            fetched_at=entry.fetched_at,
        )

    def _fallback(self, key: Tuple[str, str, str], message: str) -> PriceResult:
        stale = self.cache.get_stale(key)
        if stale is not None:
            return PriceResult(
                price=stale.value,
                currency=self.currency,
                source=f"{SOURCE} (cached, may be stale)",
                fetched_at=stale.fetched_at,
                warning=message,
            )
        return PriceResult(
            price=None,
            currency=self.currency,
            source=SOURCE,
            fetched_at=_now(),
            error=message,
        )

    # ──────────────────────────────────────────────────────────

    def search_prices(
        self,
        origin: str,
        destination: str,
        date: str,
        *,
        adults: int = 1,
        limit: int = 25,
    ) -> list[float]:
        """Return all positive offer totals for the route."""
        token = self._ensure_token()
        resp = requests.get(
            f"{self.base_url}/v2/shopping/flight-offers",
            params={
                "originLocationCode": origin,
                "destinationLocationCode": destination,
                "departureDate": date,
                "adults": adults,
                "travelClass": "ECONOMY",
                "nonStop": "false",
                "currencyCode": self.currency,
                "max": limit,
            },
            headers={"Authorization": f"Bearer {token}"},
            timeout=self.timeout,
        )
        if resp.status_code != 200:
            raise AmadeusFetcherError(
                f"HTTP {resp.status_code} – {resp.text[:120]}", resp.status_code
            )

        payload = resp.json()
        offers = (payload.get("data") or []) if isinstance(payload, dict) else None
        if not isinstance(offers, list):
            raise AmadeusFetcherError("Unexpected flight-offers payload")
        return [p for p in (self._to_price(o) for o in offers) if p is not None]

    def _ensure_token(self) -> str:
        if not self.client_id or not self.client_secret:
            raise AmadeusFetcherError("Price search is not configured")

        if self._token and self._token_expires and _now() < self._token_expires:
            return self._token

        resp = requests.post(
            f"{self.base_url}/v1/security/oauth2/token",
            data={
                "grant_type": "client_credentials",
                "client_id": self.client_id,
                "client_secret": self.client_secret,
            },
            timeout=self.timeout,
        )
        if resp.status_code != 200:
            raise AmadeusFetcherError(
                f"Token HTTP {resp.status_code}", resp.status_code
            )
        data = resp.json()
        if not isinstance(data, dict) or not data.get("access_token"):
            raise AmadeusFetcherError("Token response without access_token")
        self._token = data["access_token"]
        self._token_expires = _now() + dt.timedelta(
            seconds=int(data.get("expires_in", 1799)) - 60
        )
        logger.info("Amadeus token refreshed")
        return self._token

    @staticmethod
    def _to_price(offer: dict) -> float | None:
        try:
            total = float(offer["price"]["total"])
        except (KeyError, TypeError, ValueError):
            return None
        if total != total or total <= 0:
            return None
        return total


__all__ = ["AmadeusFetcher", "AmadeusFetcherError", "classify_error"]
