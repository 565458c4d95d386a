"""Graph shortest-path schemas."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class EdgeModel(BaseModel):
    source: str
    target: str
    weight: int = Field(..., ge=0)


class GraphModel(BaseModel):
    vertices: List[str] = Field(default_factory=list, description="Isolated vertices; edge endpoints are added implicitly.")
    edges: List[EdgeModel] = Field(default_factory=list)


class ShortestPathRequest(GraphModel):
    start: str
    end: str


class ShortestPathResponse(BaseModel):
    found: bool
    path: List[str]
    distance: float


class ShortestDistancesRequest(GraphModel):
    start: str


class ShortestDistancesResponse(BaseModel):
    start: str
    distances: Dict[str, Optional[float]] = Field(description="Unreachable vertices map to null.")
