"""Dijkstra shortest paths over a WeightedGraph."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from .priority_queue import MinPriorityQueue
from .weighted_graph import WeightedGraph

NO_PATH_DISTANCE = -1


@dataclass(frozen=True, slots=True)
class PathResult:
    """Shortest path between two vertices.

    An empty path with distance -1 means one of the vertices is missing or the
    end is unreachable. Callers must check ``found`` (or the sentinel) rather
    than expect an exception.
    """

    path: list[str] = field(default_factory=list)
    distance: float = NO_PATH_DISTANCE

    @property
    def found(self) -> bool:
        return self.distance != NO_PATH_DISTANCE


class ShortestPathSolver:
    """Binary-heap Dijkstra, O((V + E) log V)."""

    def __init__(self, graph: WeightedGraph) -> None:
        self.graph = graph

    def find_shortest_path(self, start: str, end: str) -> PathResult:
        if not self.graph.has_vertex(start) or not self.graph.has_vertex(end):
            return PathResult()

        distances = {vertex: math.inf for vertex in self.graph}
        distances[start] = 0
        previous: dict[str, str] = {}
        visited: set[str] = set()
        queue: MinPriorityQueue[str] = MinPriorityQueue()
        queue.push(start, 0)

        while queue:
            current = queue.pop()
            if current in visited:
                continue
            visited.add(current)
            # Stop once the target is settled, not when it is first reached.
            if current == end:
                break
            self._relax(current, distances, visited, queue, previous)

        if distances[end] == math.inf:
            return PathResult()
        return PathResult(path=self._reconstruct_path(previous, end), distance=distances[end])

    def find_shortest_distances(self, start: str) -> dict[str, float]:
        """Distances from ``start`` to every vertex (inf when unreachable)."""
        if not self.graph.has_vertex(start):
            return {}

        distances = {vertex: math.inf for vertex in self.graph}
        distances[start] = 0
        visited: set[str] = set()
        queue: MinPriorityQueue[str] = MinPriorityQueue()
        queue.push(start, 0)

        while queue:
            current = queue.pop()
            if current in visited:
                continue
            visited.add(current)
            self._relax(current, distances, visited, queue)

        return distances

    def path_exists(self, start: str, end: str) -> bool:
        return self.find_shortest_path(start, end).found

    def reachable_vertices(self, start: str) -> list[str]:
        return [vertex for vertex, distance in self.find_shortest_distances(start).items() if distance != math.inf]

    def _relax(
        self,
        current: str,
        distances: dict[str, float],
        visited: set[str],
        queue: MinPriorityQueue[str],
        previous: dict[str, str] | None = None,
    ) -> None:
        for edge in self.graph.edges(current):
            if edge.vertex in visited:
                continue
            candidate = distances[current] + edge.weight
            if candidate < distances[edge.vertex]:
                distances[edge.vertex] = candidate
                if previous is not None:
                    previous[edge.vertex] = current
                queue.push(edge.vertex, candidate)

    @staticmethod
    def _reconstruct_path(previous: dict[str, str], end: str) -> list[str]:
        path = [end]
        while path[-1] in previous:
            path.append(previous[path[-1]])
        path.reverse()
        return path
