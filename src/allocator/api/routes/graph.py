"""Graph shortest-path endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from ...schemas.graph import (
    ShortestDistancesRequest,
    ShortestDistancesResponse,
    ShortestPathRequest,
    ShortestPathResponse,
)
from ...services.graph.service import shortest_distances, shortest_path

router = APIRouter(prefix="/graph", tags=["graph"])


@router.post("/shortest-path", response_model=ShortestPathResponse, status_code=status.HTTP_200_OK)
def find_shortest_path(payload: ShortestPathRequest) -> ShortestPathResponse:
    try:
        return shortest_path(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.post("/distances", response_model=ShortestDistancesResponse, status_code=status.HTTP_200_OK)
def find_shortest_distances(payload: ShortestDistancesRequest) -> ShortestDistancesResponse:
    try:
        return shortest_distances(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
