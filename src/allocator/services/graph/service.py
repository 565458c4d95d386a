"""Shortest-path requests over caller-supplied graphs."""

from __future__ import annotations

import math

from ...schemas.graph import (
    GraphModel,
    ShortestDistancesRequest,
    ShortestDistancesResponse,
    ShortestPathRequest,
    ShortestPathResponse,
)
from .dijkstra import ShortestPathSolver
from .weighted_graph import WeightedGraph


def build_graph(payload: GraphModel) -> WeightedGraph:
    graph = WeightedGraph()
    for vertex in payload.vertices:
        graph.add_vertex(vertex)
    for edge in payload.edges:
        graph.add_edge(edge.source, edge.target, edge.weight)
    return graph


def shortest_path(payload: ShortestPathRequest) -> ShortestPathResponse:
    result = ShortestPathSolver(build_graph(payload)).find_shortest_path(payload.start, payload.end)
    return ShortestPathResponse(found=result.found, path=result.path, distance=result.distance)


def shortest_distances(payload: ShortestDistancesRequest) -> ShortestDistancesResponse:
    # An unknown start vertex yields an empty map, mirroring the path sentinel.
    distances = ShortestPathSolver(build_graph(payload)).find_shortest_distances(payload.start)
    return ShortestDistancesResponse(
        start=payload.start,
        distances={vertex: (None if distance == math.inf else distance) for vertex, distance in distances.items()},
    )
