"""Undirected weighted graph stored as an adjacency list."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator


@dataclass(frozen=True, slots=True)
class Edge:
    vertex: str
    weight: int


class WeightedGraph:
    """Undirected graph with non-negative integer edge weights.

    Every edge is stored on both endpoints. Adding an edge that already exists
    is a no-op: the first weight written for a pair is kept.
    """

    def __init__(self) -> None:
        self._adjacency: dict[str, list[Edge]] = {}

    # ── Vertices ─────────────────────────────────────────────────────

    def add_vertex(self, vertex: str) -> None:
        if vertex not in self._adjacency:
            self._adjacency[vertex] = []

    def remove_vertex(self, vertex: str) -> None:
        edges = self._adjacency.pop(vertex, None)
        if edges is None:
            return
        for edge in edges:
            neighbor_edges = self._adjacency.get(edge.vertex)
            if neighbor_edges is not None:
                self._adjacency[edge.vertex] = [e for e in neighbor_edges if e.vertex != vertex]

    def has_vertex(self, vertex: str) -> bool:
        return vertex in self._adjacency

    def vertices(self) -> list[str]:
        return list(self._adjacency)

    @property
    def vertex_count(self) -> int:
        return len(self._adjacency)

    # ── Edges ────────────────────────────────────────────────────────

    def add_edge(self, from_vertex: str, to_vertex: str, weight: int) -> None:
        """Connect two vertices, creating them if needed.

        Raises:
            ValueError: If the weight is not a non-negative integer or the
                edge would be a self-loop.
        """
        if isinstance(weight, bool) or not isinstance(weight, int):
            raise ValueError(f"Edge weight must be an integer, got {weight!r}.")
        if weight < 0:
            raise ValueError(f"Edge weight must be non-negative, got {weight}.")
        if from_vertex == to_vertex:
            raise ValueError(f"Self-loop on '{from_vertex}' is not allowed.")

        self.add_vertex(from_vertex)
        self.add_vertex(to_vertex)
        if self.has_edge(from_vertex, to_vertex):
            return
        self._adjacency[from_vertex].append(Edge(to_vertex, weight))
        self._adjacency[to_vertex].append(Edge(from_vertex, weight))

    def remove_edge(self, from_vertex: str, to_vertex: str) -> None:
        if not self.has_edge(from_vertex, to_vertex):
            return
        self._adjacency[from_vertex] = [e for e in self._adjacency[from_vertex] if e.vertex != to_vertex]
        self._adjacency[to_vertex] = [e for e in self._adjacency[to_vertex] if e.vertex != from_vertex]

    def has_edge(self, from_vertex: str, to_vertex: str) -> bool:
        edges = self._adjacency.get(from_vertex)
        if edges is None or to_vertex not in self._adjacency:
            return False
        return any(edge.vertex == to_vertex for edge in edges)

    def edge_weight(self, from_vertex: str, to_vertex: str) -> int:
        """Weight of the edge, or -1 when the vertices are not adjacent."""
        for edge in self._adjacency.get(from_vertex, ()):
            if edge.vertex == to_vertex:
                return edge.weight
        return -1

    def edges(self, vertex: str) -> list[Edge]:
        return list(self._adjacency.get(vertex, ()))

    def neighbors(self, vertex: str) -> list[str]:
        return [edge.vertex for edge in self._adjacency.get(vertex, ())]

    @property
    def edge_count(self) -> int:
        return sum(len(edges) for edges in self._adjacency.values()) // 2

    def clear(self) -> None:
        self._adjacency.clear()

    def __contains__(self, vertex: object) -> bool:
        return vertex in self._adjacency

    def __iter__(self) -> Iterator[str]:
        return iter(self._adjacency)

    def __len__(self) -> int:
        return len(self._adjacency)
