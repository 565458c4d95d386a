"""Distance provider with cache, grid search, OSRM and haversine tiers."""

from __future__ import annotations

import logging
import math
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, Iterator, Optional, Sequence

from ...models.domain import GeoPoint, canonical_pair_key
from ..context import ServiceContext
from ..routing.grid_pathfinder import GeoGridPathfinder, PathNotFoundError
from ..routing.models import DistanceResult, DistanceSource, ProgressSink, RoutingUnavailableError
from .cache import TTLDistanceCache

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ProviderStats:
    cache_hits: int = 0
    grid: int = 0
    routing: int = 0
    haversine: int = 0
    grid_failures: int = 0
    routing_failures: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def increment(self, name: str) -> None:
        with self._lock:
            setattr(self, name, getattr(self, name) + 1)

    def as_dict(self) -> dict[str, int]:
        return {
            "cache_hits": self.cache_hits,
            "grid": self.grid,
            "routing": self.routing,
            "haversine": self.haversine,
            "grid_failures": self.grid_failures,
            "routing_failures": self.routing_failures,
        }


@dataclass(frozen=True)
class DistanceMatrix:
    """Distances indexed as ``[person_index][center_index]`` in kilometers.

    When ``cancelled`` is set, cells that were never computed hold the fill
    value supplied by the caller and their ``routes`` entry is ``None``.
    """

    distances: tuple[tuple[float, ...], ...]
    routes: tuple[tuple[Optional[DistanceResult], ...], ...]
    completed_pairs: int
    total_pairs: int
    cancelled: bool = False

    @property
    def complete(self) -> bool:
        return self.completed_pairs == self.total_pairs

    @property
    def shape(self) -> tuple[int, int]:
        return (len(self.distances), len(self.distances[0]) if self.distances else 0)

    def distance(self, person_index: int, center_index: int) -> float:
        return self.distances[person_index][center_index]

    def route(self, person_index: int, center_index: int) -> Optional[DistanceResult]:
        return self.routes[person_index][center_index]

    def __len__(self) -> int:
        return len(self.distances)

    def __getitem__(self, person_index: int) -> tuple[float, ...]:
        return self.distances[person_index]


def haversine_matrix(people: Sequence[GeoPoint], centers: Sequence[GeoPoint]) -> DistanceMatrix:
    """Straight-line matrix used when road distances are disabled."""
    routes = tuple(
        tuple(DistanceResult(person.distance_to(center), DistanceSource.HAVERSINE) for center in centers)
        for person in people
    )
    distances = tuple(tuple(cell.distance_km for cell in row) for row in routes)
    total = len(people) * len(centers)
    return DistanceMatrix(distances=distances, routes=routes, completed_pairs=total, total_pairs=total)


class DistanceProvider:
    """Answers pairwise distance queries with progressive fallback.

    Lookup order: TTL cache, grid A* (pairs within ``grid_max_range_km``), the
    routing service (long range or grid failure), and finally haversine when
    the routing service is missing or fails. ``get_distance`` never raises.
    """

    def __init__(
        self,
        context: ServiceContext | None = None,
        *,
        pathfinder: GeoGridPathfinder | None = None,
        cache: TTLDistanceCache | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.context = context or ServiceContext()
        config = self.context.settings
        self.routing_service = self.context.routing_service
        self.pathfinder = pathfinder or GeoGridPathfinder(
            resolution_deg=config.grid_resolution_deg,
            margin_deg=config.grid_margin_deg,
            max_range_km=config.grid_max_range_km,
            max_expansions=config.grid_max_expansions,
        )
        self.cache = cache or TTLDistanceCache(ttl_ms=config.cache_ttl_ms)
        self.use_grid_search = config.grid_search_enabled
        self.batch_size = config.batch_size
        self.batch_delay_seconds = config.batch_delay_seconds
        self.max_parallel_requests = config.max_parallel_requests
        self.stats = ProviderStats()
        self._sleep = sleep

    # ── Single pair ──────────────────────────────────────────────────

    def get_distance(self, point_a: GeoPoint, point_b: GeoPoint) -> DistanceResult:
        cache_key = canonical_pair_key(point_a, point_b)
        entry = self.cache.get(cache_key)
        if entry is not None:
            self.stats.increment("cache_hits")
            return DistanceResult(
                distance_km=entry.distance_km,
                source=DistanceSource.CACHE,
                geometry=entry.geometry,
                duration_min=entry.duration_min,
            )

        result = self._compute(point_a, point_b)
        self.stats.increment(result.source.value)
        # Haversine answers are not cached so the road tiers are retried next time.
        if result.source is not DistanceSource.HAVERSINE:
            self.cache.put(cache_key, result)
        return result

    def _compute(self, point_a: GeoPoint, point_b: GeoPoint) -> DistanceResult:
        if self.use_grid_search and self.pathfinder.in_range(point_a, point_b):
            try:
                distance = self.pathfinder.find_distance(point_a, point_b)
                return DistanceResult(distance_km=distance, source=DistanceSource.GRID)
            except PathNotFoundError as exc:
                self.stats.increment("grid_failures")
                logger.debug(f"Grid search failed for {point_a} -> {point_b}: {exc}")

        if self.routing_service is not None:
            try:
                route = self.routing_service.route(point_a, point_b)
                return DistanceResult(
                    distance_km=route.distance_km,
                    source=DistanceSource.ROUTING,
                    geometry=route.geometry,
                    duration_min=route.duration_min,
                )
            except RoutingUnavailableError as exc:
                self.stats.increment("routing_failures")
                logger.warning(f"Routing failed for {point_a} -> {point_b}: {exc}. Using haversine fallback.")
            except Exception as exc:
                self.stats.increment("routing_failures")
                logger.error(f"Unexpected routing error for {point_a} -> {point_b}: {exc}. Using haversine fallback.")

        return DistanceResult(distance_km=point_a.distance_to(point_b), source=DistanceSource.HAVERSINE)

    # ── Matrix ───────────────────────────────────────────────────────

    def get_distance_matrix(
        self,
        people: Sequence[GeoPoint],
        centers: Sequence[GeoPoint],
        progress: ProgressSink | None = None,
        *,
        cancel_event: threading.Event | None = None,
        fill_value: float = math.inf,
    ) -> DistanceMatrix:
        """Compute every person/center distance in batches.

        Args:
            people: Row points.
            centers: Column points.
            progress: Receives ``update(completed, total, message)`` after each
                pair; defaults to the context's sink.
            cancel_event: When set, no further batch is started. A batch that
                is already running completes.
            fill_value: Value left in cells that were never computed.

        Returns:
            DistanceMatrix with per-cell route metadata.
        """
        sink = progress or self.context.progress
        row_count, column_count = len(people), len(centers)
        total = row_count * column_count
        distances = [[fill_value] * column_count for _ in range(row_count)]
        routes: list[list[Optional[DistanceResult]]] = [[None] * column_count for _ in range(row_count)]

        pairs = [(i, j) for i in range(row_count) for j in range(column_count)]
        batches = [pairs[k : k + self.batch_size] for k in range(0, total, self.batch_size)]
        logger.info(
            f"Calculating {total} distances for {row_count} people x {column_count} centers "
            f"in {len(batches)} batches of up to {self.batch_size}"
        )

        start_time = time.time()
        completed = 0
        cancelled = False
        executor = ThreadPoolExecutor(max_workers=self.max_parallel_requests) if self.max_parallel_requests > 1 else None
        try:
            for batch_index, batch in enumerate(batches):
                if cancel_event is not None and cancel_event.is_set():
                    cancelled = True
                    logger.info(f"Distance matrix cancelled after {completed}/{total} pairs")
                    break

                for (i, j), result in self._run_batch(batch, people, centers, executor):
                    distances[i][j] = result.distance_km
                    routes[i][j] = result
                    completed += 1
                    percent = round(completed / total * 100) if total else 100
                    self._notify(sink, completed, total, f"Processed {completed}/{total} distances ({percent}%)")

                logger.debug(f"Batch {batch_index + 1}/{len(batches)} completed")
                if batch_index < len(batches) - 1 and self.batch_delay_seconds > 0:
                    self._sleep(self.batch_delay_seconds)
        finally:
            if executor is not None:
                executor.shutdown(wait=True)

        elapsed = time.time() - start_time
        logger.info(f"Distance matrix finished: {completed}/{total} pairs in {elapsed:.2f}s ({self.stats.as_dict()})")
        return DistanceMatrix(
            distances=tuple(tuple(row) for row in distances),
            routes=tuple(tuple(row) for row in routes),
            completed_pairs=completed,
            total_pairs=total,
            cancelled=cancelled,
        )

    def _run_batch(
        self,
        batch: Sequence[tuple[int, int]],
        people: Sequence[GeoPoint],
        centers: Sequence[GeoPoint],
        executor: ThreadPoolExecutor | None,
    ) -> Iterator[tuple[tuple[int, int], DistanceResult]]:
        if executor is None:
            for i, j in batch:
                yield (i, j), self.get_distance(people[i], centers[j])
            return

        future_to_pair = {executor.submit(self.get_distance, people[i], centers[j]): (i, j) for i, j in batch}
        for future in as_completed(future_to_pair):
            yield future_to_pair[future], future.result()

    @staticmethod
    def _notify(sink: ProgressSink, completed: int, total: int, message: str) -> None:
        try:
            sink.update(completed, total, message)
        except Exception as exc:
            logger.warning(f"Progress sink failed: {exc}")

    # ── Cache management ─────────────────────────────────────────────

    def clear_cache(self) -> None:
        self.cache.clear()
        self.pathfinder.clear_cache()

    def cache_stats(self) -> dict:
        return {
            "size": len(self.cache),
            "ttl_ms": self.cache.ttl_ms,
            "batch_size": self.batch_size,
            "grid": self.pathfinder.cache_stats(),
            "sources": self.stats.as_dict(),
        }
