"""In-memory outcome cache with separate retention for success and failure."""

from __future__ import annotations

import hashlib
import json
import time
from collections.abc import Callable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from pygsis._constants import FAILURE_TTL, SUCCESS_TTL
from pygsis.models.query import CoordinateQuery, PostalCodeQuery
from pygsis.models.result import NormalizedZoneResult


def _digest(canonical: dict[str, Any]) -> str:
    text = json.dumps(canonical, sort_keys=True, separators=(",", ":"))
    return hashlib.md5(text.encode("utf-8"), usedforsecurity=False).hexdigest()


def round_coordinate(value: float, precision: int) -> str:
    """Round half-up from the shortest decimal repr of *value*.

    Rounding the binary float directly would send ``37.9838095`` down to
    ``37.983809``; going through ``repr`` keeps it at ``37.983810``.
    """
    quantum = Decimal(1).scaleb(-precision)
    return str(Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP))


def coordinate_cache_key(query: CoordinateQuery, precision: int = 6) -> str:
    return _digest(
        {
            "t": "ll",
            "lat": round_coordinate(query.latitude, precision),
            "lng": round_coordinate(query.longitude, precision),
        }
    )


def postal_cache_key(query: PostalCodeQuery) -> str:
    return _digest({"t": "zip", "zip": query.postal_code})


@dataclass(frozen=True)
class CacheEntry:
    """A cached lookup outcome and its retention window."""

    result: NormalizedZoneResult
    created_at: float
    ttl: float

    def is_live(self, now: float) -> bool:
        return now - self.created_at < self.ttl


class OutcomeCache:
    """Memoize normalized results; failures expire much sooner than successes.

    Expired entries are dropped when their key is next read; there is no
    background sweep.
    """

    def __init__(
        self,
        *,
        success_ttl: float = SUCCESS_TTL,
        failure_ttl: float = FAILURE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._success_ttl = success_ttl
        self._failure_ttl = failure_ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> NormalizedZoneResult | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not entry.is_live(self._clock()):
            del self._entries[key]
            return None
        return entry.result

    def put(self, key: str, result: NormalizedZoneResult) -> CacheEntry:
        ttl = self._success_ttl if result.success else self._failure_ttl
        entry = CacheEntry(result=result.tagged(cached=False), created_at=self._clock(), ttl=ttl)
        self._entries[key] = entry
        return entry

    def clear(self) -> None:
        self._entries.clear()
