"""A* search over a discretized latitude/longitude grid.

Approximates the road distance between two nearby points without calling an
external service. No road or obstacle data is consulted (each grid's obstacle
set is empty), so the result is an estimate rather than a true shortest path
over the road network.

Both axes use 111 km per degree, so east-west distances come out about
1/cos(latitude) longer than the haversine figure for the same pair.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

from ...config import settings
from ...models.domain import GeoPoint, canonical_pair_key
from ..geospatial import KM_PER_DEGREE
from ..graph.priority_queue import MinPriorityQueue

logger = logging.getLogger(__name__)

# 8-connected moves: (dx, dy)
DIRECTIONS: tuple[tuple[int, int], ...] = (
    (-1, -1), (-1, 0), (-1, 1),
    (0, -1),           (0, 1),
    (1, -1),  (1, 0),  (1, 1),
)
_EPSILON = 1e-9


class PathNotFoundError(LookupError):
    """The grid search exhausted its open set without reaching the goal."""


@dataclass(frozen=True, slots=True)
class GridCell:
    x: int
    y: int

    @property
    def key(self) -> str:
        return f"{self.x},{self.y}"


@dataclass(frozen=True, slots=True)
class GridBounds:
    west: float
    east: float
    south: float
    north: float


@dataclass(slots=True)
class Grid:
    """Search frame derived from one start/goal pair; cells are local to it."""

    bounds: GridBounds
    resolution: float
    width: int
    height: int
    start: GridCell
    goal: GridCell
    obstacles: set[str] = field(default_factory=set)

    def contains(self, cell: GridCell) -> bool:
        return 0 <= cell.x < self.width and 0 <= cell.y < self.height

    def is_walkable(self, cell: GridCell) -> bool:
        return self.contains(cell) and cell.key not in self.obstacles


class GeoGridPathfinder:
    """Grid A* for short-range geographic distances (kilometers)."""

    def __init__(
        self,
        resolution_deg: float | None = None,
        margin_deg: float | None = None,
        max_range_km: float | None = None,
        max_expansions: int | None = None,
    ) -> None:
        self.resolution_deg = resolution_deg if resolution_deg is not None else settings.grid_resolution_deg
        self.margin_deg = margin_deg if margin_deg is not None else settings.grid_margin_deg
        self.max_range_km = max_range_km if max_range_km is not None else settings.grid_max_range_km
        self.max_expansions = max_expansions if max_expansions is not None else settings.grid_max_expansions
        if self.resolution_deg <= 0:
            raise ValueError("Grid resolution must be positive.")
        self._cache: dict[str, float] = {}

    # ── Public API ───────────────────────────────────────────────────

    def in_range(self, start: GeoPoint, goal: GeoPoint) -> bool:
        return start.distance_to(goal) <= self.max_range_km

    def find_distance(self, start: GeoPoint, goal: GeoPoint) -> float:
        """Approximate travel distance in km between two points.

        Raises:
            ValueError: If the pair is farther apart than ``max_range_km``.
            PathNotFoundError: If the search cannot reach the goal.
        """
        if not self.in_range(start, goal):
            raise ValueError(
                f"Points {start} and {goal} are beyond the grid search range of {self.max_range_km} km."
            )
        cache_key = canonical_pair_key(start, goal)
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        grid = self.create_grid(start, goal)
        path = self.search(grid)
        distance = self.path_length_km(path)
        logger.debug(f"Grid path {start} -> {goal}: {len(path)} cells, {distance:.3f} km")
        self._cache[cache_key] = distance
        return distance

    def create_grid(self, start: GeoPoint, goal: GeoPoint) -> Grid:
        bounds = self.calculate_bounds(start, goal)
        return Grid(
            bounds=bounds,
            resolution=self.resolution_deg,
            width=math.floor((bounds.east - bounds.west) / self.resolution_deg + _EPSILON) + 1,
            height=math.floor((bounds.north - bounds.south) / self.resolution_deg + _EPSILON) + 1,
            start=self.point_to_cell(start, bounds),
            goal=self.point_to_cell(goal, bounds),
        )

    def calculate_bounds(self, start: GeoPoint, goal: GeoPoint) -> GridBounds:
        margin = self.margin_deg
        return GridBounds(
            west=min(start.longitude, goal.longitude) - margin,
            east=max(start.longitude, goal.longitude) + margin,
            south=min(start.latitude, goal.latitude) - margin,
            north=max(start.latitude, goal.latitude) + margin,
        )

    def point_to_cell(self, point: GeoPoint, bounds: GridBounds) -> GridCell:
        return GridCell(
            x=math.floor((point.longitude - bounds.west) / self.resolution_deg + _EPSILON),
            y=math.floor((point.latitude - bounds.south) / self.resolution_deg + _EPSILON),
        )

    def heuristic(self, a: GridCell, b: GridCell) -> float:
        """Straight-line grid distance converted to km."""
        return math.hypot(a.x - b.x, a.y - b.y) * self.resolution_deg * KM_PER_DEGREE

    def step_cost(self, a: GridCell, b: GridCell) -> float:
        """Cost of one move between adjacent cells (diagonals cost sqrt(2))."""
        diagonal = abs(a.x - b.x) == 1 and abs(a.y - b.y) == 1
        return (math.sqrt(2) if diagonal else 1.0) * self.resolution_deg * KM_PER_DEGREE

    def neighbors(self, cell: GridCell, grid: Grid) -> list[GridCell]:
        result = []
        for dx, dy in DIRECTIONS:
            neighbor = GridCell(cell.x + dx, cell.y + dy)
            if grid.is_walkable(neighbor):
                result.append(neighbor)
        return result

    def search(self, grid: Grid) -> list[GridCell]:
        """Run A* from ``grid.start`` to ``grid.goal`` and return the cell path."""
        start, goal = grid.start, grid.goal
        goal_key = goal.key

        open_set: MinPriorityQueue[GridCell] = MinPriorityQueue()
        closed: set[str] = set()
        came_from: dict[str, GridCell] = {}
        g_score: dict[str, float] = {start.key: 0.0}
        f_score: dict[str, float] = {start.key: self.heuristic(start, goal)}
        open_set.push(start, f_score[start.key])
        expansions = 0

        while open_set:
            current = open_set.pop()
            current_key = current.key
            if current_key in closed:
                continue
            if current_key == goal_key:
                return self._reconstruct_path(came_from, current)
            closed.add(current_key)

            expansions += 1
            if expansions > self.max_expansions:
                raise PathNotFoundError(
                    f"Grid search gave up after {self.max_expansions} expansions ({grid.width}x{grid.height} cells)."
                )

            for neighbor in self.neighbors(current, grid):
                neighbor_key = neighbor.key
                if neighbor_key in closed:
                    continue
                tentative = g_score[current_key] + self.step_cost(current, neighbor)
                if tentative < g_score.get(neighbor_key, math.inf):
                    came_from[neighbor_key] = current
                    g_score[neighbor_key] = tentative
                    f_score[neighbor_key] = tentative + self.heuristic(neighbor, goal)
                    open_set.push(neighbor, f_score[neighbor_key])

        raise PathNotFoundError(f"No grid path from {start.key} to {goal_key}.")

    def path_length_km(self, path: list[GridCell]) -> float:
        return sum(self.step_cost(a, b) for a, b in zip(path, path[1:]))

    def clear_cache(self) -> None:
        self._cache.clear()

    def cache_stats(self) -> dict:
        return {
            "size": len(self._cache),
            "max_range_km": self.max_range_km,
            "resolution_deg": self.resolution_deg,
        }

    @staticmethod
    def _reconstruct_path(came_from: dict[str, GridCell], current: GridCell) -> list[GridCell]:
        path = [current]
        while current.key in came_from:
            current = came_from[current.key]
            path.append(current)
        path.reverse()
        return path
