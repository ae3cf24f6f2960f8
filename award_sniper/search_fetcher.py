from __future__ import annotations

import datetime as dt
import logging
from typing import List, Optional

import requests

from .cache import TTLCache
from .catalog import PROGRAM_SEARCH_TERMS
from .config import get_settings
from .miles_extractor import extract_miles, hits_to_text
from .models import AwardEstimate

logger = logging.getLogger(__name__)

CACHE_TTL_S = 6 * 60 * 60
SEARCH_URL = "https://api.search.brave.com/res/v1/web/search"


class SearchFetcherError(RuntimeError):
    """Error talking to the Brave web search API."""


class BraveSearchFetcher:
    """Web search client used for community mileage estimates."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str = SEARCH_URL,
        timeout: float | None = None,
        cache: TTLCache | None = None,
    ) -> None:
        cfg = get_settings()
        self.api_key = api_key if api_key is not None else cfg.brave_api_key
        self.base_url = base_url
        self.timeout = timeout or cfg.http_timeout_s
        self.cache = (
            cache if cache is not None else TTLCache(CACHE_TTL_S, cfg.cache_max_entries)
        )

    def search(self, query: str, *, count: int = 8) -> List[dict]:
        """Return ``title``/``description`` hits, ``[]`` on any failure."""
        try:
            return self._search(query, count=count)
        except (SearchFetcherError, requests.RequestException) as exc:
            logger.warning("Search failed for %r: %s", query, exc)
            return []

    def _search(self, query: str, *, count: int) -> List[dict]:
        if not self.api_key:
            raise SearchFetcherError("BRAVE_API_KEY is not set")
        resp = requests.get(
            self.base_url,
            params={"q": query, "count": count, "freshness": "py"},
            headers={
                "Accept": "application/json",
                "X-Subscription-Token": self.api_key,
            },
            timeout=self.timeout,
        )
        if resp.status_code != 200:
            raise SearchFetcherError(f"HTTP {resp.status_code} – {resp.text[:120]}")
        data = resp.json()
        if not isinstance(data, dict):
            raise SearchFetcherError("Unexpected search payload")
        web = data.get("web") or {}
        results = (web.get("results") or []) if isinstance(web, dict) else None
        if not isinstance(results, list):
            raise SearchFetcherError("Unexpected search payload")
        return [
            {
                "title": r.get("title") or "",
                "description": r.get("description") or "",
            }
            for r in results
            if isinstance(r, dict)
        ]

    # ──────────────────────────────────────────────────────────

    def estimate_award_miles(
        self,
        origin: str,
        destination: str,
        program_id: str,
        date: str = "",
        origin_city: Optional[str] = None,
        dest_city: Optional[str] = None,
    ) -> AwardEstimate:
        """Estimate the one-way economy award cost from search snippets."""
        origin, destination = origin.upper(), destination.upper()
        origin_city, dest_city = origin_city or origin, dest_city or destination
        # every value that reaches a query string
        key = (origin, destination, program_id, date, origin_city, dest_city)

        cached = self.cache.get(key)
        if cached is not None:
            miles = cached.value
            return _estimate(miles, cached.fetched_at, cached=True)

        queries = build_queries(
            program_id, origin, destination, date, origin_city, dest_city
        )
        hits: List[dict] = []
        for q in queries:
            hits.extend(self.search(q))

        miles = extract_miles(hits_to_text(hits))
        logger.info(
            "Estimate %s %s->%s: %s from %d hits",
            program_id,
            origin,
            destination,
            miles,
            len(hits),
        )
        entry = self.cache.set(key, miles)
        return _estimate(miles, entry.fetched_at)


def build_queries(
    program_id: str,
    origin: str,
    destination: str,
    date: str,
    origin_city: str,
    dest_city: str,
) -> List[str]:
    """Phrase several queries for coverage of one route and program."""
    name = PROGRAM_SEARCH_TERMS.get(program_id, program_id)
    year = date[:4] if date else str(dt.date.today().year)
    return [
        f'"{name}" {origin} {destination} miles award economy {year}',
        f'"{name}" "{origin_city}" "{dest_city}" award miles economy one-way',
        f"{name} {origin} {destination} economy award how many miles",
    ]


def _estimate(
    miles: Optional[int], fetched_at: dt.datetime, cached: bool = False
) -> AwardEstimate:
    if miles:
        return AwardEstimate(miles, "community-estimate", "low", fetched_at, cached)
    return AwardEstimate(None, "not-found", "none", fetched_at, cached)


__all__ = ["BraveSearchFetcher", "SearchFetcherError", "build_queries"]
