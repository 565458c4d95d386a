"""Route group exports."""

from . import assignments, distances, graph, health

__all__ = ["assignments", "distances", "graph", "health"]
