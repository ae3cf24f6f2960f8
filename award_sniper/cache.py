from __future__ import annotations

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Generic, Hashable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class CacheEntry(Generic[T]):
    value: T
    stored_at: float

    @property
    def fetched_at(self) -> datetime:
        return datetime.fromtimestamp(self.stored_at, tz=timezone.utc)


class TTLCache(Generic[T]):
    """In-process cache with a freshness window and a capacity bound.

    Entries older than ``ttl_s`` are no longer returned by :meth:`get` but
    stay available through :meth:`get_stale` until evicted by capacity, so
    callers can fall back to the last known value when upstream fails.
    """

    def __init__(
        self,
        ttl_s: float,
        maxsize: int = 256,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if ttl_s <= 0 or maxsize <= 0:
            raise ValueError("ttl_s and maxsize must be positive")
        self.ttl_s = ttl_s
        self.maxsize = maxsize
        self._clock = clock
        self._data: "OrderedDict[Hashable, CacheEntry[T]]" = OrderedDict()

    def get(self, key: Hashable) -> Optional[CacheEntry[T]]:
        entry = self._data.get(key)
        if entry is None:
            return None
        if self._clock() - entry.stored_at >= self.ttl_s:
            return None
        logger.debug("Cache hit %s", key)
        return entry

    def get_stale(self, key: Hashable) -> Optional[CacheEntry[T]]:
        return self._data.get(key)

    def set(self, key: Hashable, value: T) -> CacheEntry[T]:
        entry = CacheEntry(value=value, stored_at=self._clock())
        self._data.pop(key, None)
        self._data[key] = entry
        while len(self._data) > self.maxsize:
            evicted, _ = self._data.popitem(last=False)
            logger.debug("Cache evicted %s", evicted)
        return entry

    def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: Any) -> bool:
        return key in self._data


__all__ = ["CacheEntry", "TTLCache"]
