"""In-memory TTL cache for pairwise distances."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional

from ...config import settings
from ..routing.models import DistanceResult, DistanceSource


@dataclass(frozen=True, slots=True)
class CacheEntry:
    distance_km: float
    source: DistanceSource
    geometry: Optional[str]
    duration_min: Optional[float]
    timestamp_ms: float

    def is_expired(self, now_ms: float, ttl_ms: float) -> bool:
        return now_ms - self.timestamp_ms >= ttl_ms


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class TTLDistanceCache:
    """Distance cache whose entries go stale after ``ttl_ms``.

    Expired entries are only dropped when looked up; there is no background
    sweep. Reads and writes are not atomic with respect to each other.
    """

    def __init__(self, ttl_ms: float | None = None, clock: Callable[[], float] = _monotonic_ms) -> None:
        self.ttl_ms = ttl_ms if ttl_ms is not None else settings.cache_ttl_ms
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock(), self.ttl_ms):
            self._entries.pop(key, None)
            return None
        return entry

    def put(self, key: str, result: DistanceResult) -> CacheEntry:
        entry = CacheEntry(
            distance_km=result.distance_km,
            source=result.source,
            geometry=result.geometry,
            duration_min=result.duration_min,
            timestamp_ms=self._clock(),
        )
        self._entries[key] = entry
        return entry

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
