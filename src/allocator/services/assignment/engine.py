"""Priority-ordered greedy assignment of people to capacity-limited centers.

People are served in priority order (PWD, then Female, then Male) and each
takes the nearest center that still has a free seat. The sort is stable, so
input order is the only tie-break among people of the same category; among
equidistant centers the lowest index wins. There is no backtracking: once a
person is seated the assignment is final.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

from ...models.domain import GeoPoint, PersonCategory
from ..context import ServiceContext

logger = logging.getLogger(__name__)


class EngineState(str, Enum):
    IDLE = "idle"
    MATRIX_READY = "matrix_ready"
    ASSIGNING = "assigning"
    DONE = "done"
    PARTIAL = "partial"


@dataclass(frozen=True, slots=True)
class AssignmentRecord:
    person_index: int
    center_index: int
    distance_km: float
    category: PersonCategory


@dataclass(slots=True)
class AssignmentStats:
    total_people: int = 0
    total_assigned: int = 0
    unassigned: int = 0
    assigned_by_category: dict[str, int] = field(default_factory=dict)
    unassigned_by_category: dict[str, int] = field(default_factory=dict)
    average_distance_km: Optional[float] = None
    min_distance_km: Optional[float] = None
    max_distance_km: Optional[float] = None


@dataclass(slots=True)
class AssignmentResult:
    records: list[AssignmentRecord]
    assignments: dict[int, int]
    unassigned: list[int]
    remaining_capacity: list[int]
    stats: AssignmentStats
    state: EngineState

    def center_load(self, center_index: int) -> int:
        return sum(1 for record in self.records if record.center_index == center_index)


def sort_by_priority(people: Sequence[GeoPoint]) -> list[int]:
    """Original indices of ``people`` in service order (stable by category rank)."""
    return sorted(range(len(people)), key=lambda index: people[index].category.rank)


def compute_stats(people: Sequence[GeoPoint], records: Sequence[AssignmentRecord], unassigned: Sequence[int]) -> AssignmentStats:
    assigned_by_category = {category.value: 0 for category in PersonCategory}
    unassigned_by_category = {category.value: 0 for category in PersonCategory}
    for record in records:
        assigned_by_category[record.category.value] += 1
    for index in unassigned:
        unassigned_by_category[people[index].category.value] += 1

    stats = AssignmentStats(
        total_people=len(people),
        total_assigned=len(records),
        unassigned=len(unassigned),
        assigned_by_category=assigned_by_category,
        unassigned_by_category=unassigned_by_category,
    )
    if records:
        distances = [record.distance_km for record in records]
        stats.average_distance_km = sum(distances) / len(distances)
        stats.min_distance_km = min(distances)
        stats.max_distance_km = max(distances)
    return stats


class CapacitatedAssignmentEngine:
    """Greedy capacitated matcher. Not safe for concurrent use of one instance."""

    def __init__(self, context: ServiceContext | None = None) -> None:
        self.context = context or ServiceContext()
        self.state = EngineState.IDLE

    def assign(
        self,
        people: Sequence[GeoPoint],
        centers: Sequence[GeoPoint],
        capacity_per_center: int | None,
        distance_matrix: Sequence[Sequence[float]],
    ) -> AssignmentResult:
        """Seat people at centers using a precomputed distance matrix.

        Args:
            people: Person points; indices in the result refer to this order.
            centers: Center points.
            capacity_per_center: Seats per center (``None`` uses the configured default).
            distance_matrix: ``[person_index][center_index]`` distances in km.

        Returns:
            AssignmentResult. Running out of seats is not an error: the state
            is ``PARTIAL`` and the leftover people are listed as unassigned.

        Raises:
            ValueError: On a non-positive capacity, a non-person entry in
                ``people`` or a matrix whose shape does not match the inputs.
        """
        if capacity_per_center is None:
            capacity_per_center = self.context.settings.capacity_per_center
        self._validate(people, centers, capacity_per_center, distance_matrix)
        self.state = EngineState.MATRIX_READY

        remaining = [capacity_per_center] * len(centers)
        self.state = EngineState.ASSIGNING

        records: list[AssignmentRecord] = []
        assignments: dict[int, int] = {}
        unassigned: list[int] = []
        for person_index in sort_by_priority(people):
            best = self._find_best_center(distance_matrix[person_index], remaining)
            if best is None:
                unassigned.append(person_index)
                continue
            center_index, distance = best
            remaining[center_index] -= 1
            assignments[person_index] = center_index
            records.append(
                AssignmentRecord(
                    person_index=person_index,
                    center_index=center_index,
                    distance_km=distance,
                    category=people[person_index].category,
                )
            )

        unassigned.sort()
        stats = compute_stats(people, records, unassigned)
        self.state = EngineState.PARTIAL if unassigned else EngineState.DONE
        logger.info(
            f"Assigned {stats.total_assigned}/{stats.total_people} people to {len(centers)} centers "
            f"(capacity {capacity_per_center} each, {stats.unassigned} unassigned)"
        )
        return AssignmentResult(
            records=records,
            assignments=assignments,
            unassigned=unassigned,
            remaining_capacity=remaining,
            stats=stats,
            state=self.state,
        )

    @staticmethod
    def _find_best_center(row: Sequence[float], remaining: Sequence[int]) -> tuple[int, float] | None:
        best_index: int | None = None
        best_distance = float("inf")
        for center_index, seats in enumerate(remaining):
            if seats <= 0:
                continue
            distance = row[center_index]
            # Strict comparison keeps the first (lowest-index) minimum.
            if distance < best_distance:
                best_distance = distance
                best_index = center_index
        if best_index is None:
            return None
        return best_index, best_distance

    @staticmethod
    def _validate(
        people: Sequence[GeoPoint],
        centers: Sequence[GeoPoint],
        capacity_per_center: int,
        distance_matrix: Sequence[Sequence[float]],
    ) -> None:
        if isinstance(capacity_per_center, bool) or not isinstance(capacity_per_center, int) or capacity_per_center <= 0:
            raise ValueError(f"capacity_per_center must be a positive integer, got {capacity_per_center!r}.")
        for index, person in enumerate(people):
            if not person.is_person:
                raise ValueError(f"Entry {index} in people is not a person.")
        if len(distance_matrix) != len(people):
            raise ValueError(f"Distance matrix has {len(distance_matrix)} rows for {len(people)} people.")
        for index, row in enumerate(distance_matrix):
            if len(row) != len(centers):
                raise ValueError(f"Distance matrix row {index} has {len(row)} columns for {len(centers)} centers.")
