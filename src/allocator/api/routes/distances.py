"""Distance lookup endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from ...schemas.assignment import DistanceRequest, DistanceResponse
from ...services.assignment.service import compute_distance, get_distance_provider

router = APIRouter(prefix="/distances", tags=["distances"])


@router.post("", response_model=DistanceResponse, status_code=status.HTTP_200_OK)
def distance(payload: DistanceRequest) -> DistanceResponse:
    try:
        return compute_distance(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.get("/cache", status_code=status.HTTP_200_OK)
def cache_stats() -> dict:
    return get_distance_provider().cache_stats()


@router.delete("/cache", status_code=status.HTTP_200_OK)
def clear_cache() -> dict:
    """Drop cached distances and grid-search results."""
    get_distance_provider().clear_cache()
    return {"success": True, "message": "Distance cache cleared"}
