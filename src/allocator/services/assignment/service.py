"""Assignment orchestration service."""

from __future__ import annotations

import logging
import threading
from functools import lru_cache
from typing import Sequence

from ...config import settings
from ...models.domain import GeoPoint
from ...schemas.assignment import (
    AssignmentRecordModel,
    AssignmentRequest,
    AssignmentResponse,
    AssignmentStatsModel,
    CenterInput,
    DistanceRequest,
    DistanceResponse,
    PersonInput,
)
from ..context import ServiceContext
from ..distance.progress import LoggingProgressSink
from ..distance.provider import DistanceMatrix, DistanceProvider, haversine_matrix
from ..routing.models import ProgressSink
from .engine import AssignmentResult, CapacitatedAssignmentEngine

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_distance_provider() -> DistanceProvider:
    """Process-wide provider so the distance cache survives between requests."""
    context = ServiceContext.from_settings(settings, progress=LoggingProgressSink(every=settings.batch_size))
    return DistanceProvider(context)


def _people_points(people: Sequence[PersonInput]) -> list[GeoPoint]:
    return [GeoPoint.person(person.latitude, person.longitude, person.category) for person in people]


def _center_points(centers: Sequence[CenterInput]) -> list[GeoPoint]:
    return [GeoPoint.center(center.latitude, center.longitude) for center in centers]


def _build_records(
    request: AssignmentRequest, result: AssignmentResult, matrix: DistanceMatrix
) -> list[AssignmentRecordModel]:
    records = []
    for record in result.records:
        route = matrix.route(record.person_index, record.center_index)
        records.append(
            AssignmentRecordModel(
                person_index=record.person_index,
                center_index=record.center_index,
                person_id=request.people[record.person_index].person_id,
                center_id=request.centers[record.center_index].center_id,
                category=record.category,
                distance_km=record.distance_km,
                duration_min=route.duration_min if route else None,
                source=route.source.value if route else None,
                geometry=route.geometry if route and request.include_geometry else None,
            )
        )
    return records


def run_assignment(
    request: AssignmentRequest,
    *,
    provider: DistanceProvider | None = None,
    progress: ProgressSink | None = None,
    cancel_event: threading.Event | None = None,
) -> AssignmentResponse:
    people = _people_points(request.people)
    centers = _center_points(request.centers)
    use_road_distances = (
        request.use_road_distances if request.use_road_distances is not None else settings.use_road_distances
    )
    capacity = request.capacity_per_center or settings.capacity_per_center

    if use_road_distances:
        provider = provider or get_distance_provider()
        matrix = provider.get_distance_matrix(people, centers, progress, cancel_event=cancel_event)
        engine = CapacitatedAssignmentEngine(provider.context)
    else:
        logger.info(f"Calculating straight-line distance matrix for {len(people)} people x {len(centers)} centers")
        matrix = haversine_matrix(people, centers)
        engine = CapacitatedAssignmentEngine()

    result = engine.assign(people, centers, capacity, matrix.distances)

    metadata: dict = {
        "capacity_per_center": capacity,
        "matrix": {
            "completed_pairs": matrix.completed_pairs,
            "total_pairs": matrix.total_pairs,
            "cancelled": matrix.cancelled,
        },
    }
    if use_road_distances and provider is not None:
        metadata["cache"] = provider.cache_stats()

    return AssignmentResponse(
        distance_type="road" if use_road_distances else "straight-line",
        state=result.state.value,
        records=_build_records(request, result, matrix),
        unassigned_people=result.unassigned,
        remaining_capacity=result.remaining_capacity,
        stats=AssignmentStatsModel(
            total_people=result.stats.total_people,
            total_assigned=result.stats.total_assigned,
            unassigned=result.stats.unassigned,
            assigned_by_category=result.stats.assigned_by_category,
            unassigned_by_category=result.stats.unassigned_by_category,
            average_distance_km=result.stats.average_distance_km,
            min_distance_km=result.stats.min_distance_km,
            max_distance_km=result.stats.max_distance_km,
        ),
        metadata=metadata,
    )


def compute_distance(request: DistanceRequest, *, provider: DistanceProvider | None = None) -> DistanceResponse:
    provider = provider or get_distance_provider()
    origin = GeoPoint.center(request.origin.latitude, request.origin.longitude)
    destination = GeoPoint.center(request.destination.latitude, request.destination.longitude)
    result = provider.get_distance(origin, destination)
    return DistanceResponse(
        distance_km=result.distance_km,
        source=result.source.value,
        duration_min=result.duration_min,
        geometry=result.geometry,
    )
