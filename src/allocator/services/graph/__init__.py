"""Graph primitives and shortest-path search."""

from .dijkstra import NO_PATH_DISTANCE, PathResult, ShortestPathSolver
from .priority_queue import EmptyQueueError, MinPriorityQueue
from .weighted_graph import Edge, WeightedGraph

__all__ = [
    "MinPriorityQueue",
    "EmptyQueueError",
    "WeightedGraph",
    "Edge",
    "ShortestPathSolver",
    "PathResult",
    "NO_PATH_DISTANCE",
]
