"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from ...models.domain import GeoPoint


class RoutingUnavailableError(ConnectionError):
    """The routing service failed, timed out or returned no usable route."""


class DistanceSource(str, Enum):
    CACHE = "cache"
    GRID = "grid"
    ROUTING = "routing"
    HAVERSINE = "haversine"


@dataclass(frozen=True, slots=True)
class RouteResult:
    distance_km: float
    duration_min: float
    geometry: Optional[str] = None


@dataclass(frozen=True, slots=True)
class DistanceResult:
    distance_km: float
    source: DistanceSource
    geometry: Optional[str] = None
    duration_min: Optional[float] = None


class RoutingService(Protocol):
    """Road routing backend; raises RoutingUnavailableError on any failure."""

    def route(self, point_a: GeoPoint, point_b: GeoPoint) -> RouteResult:
        ...


class ProgressSink(Protocol):
    """Observer for long-running matrix computations. Must not block."""

    def update(self, completed: int, total: int, message: str) -> None:
        ...
