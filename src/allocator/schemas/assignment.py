"""Assignment and distance request/response schemas."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..models.domain import PersonCategory


class PointModel(BaseModel):
    latitude: float
    longitude: float


class PersonInput(PointModel):
    person_id: Optional[str] = Field(default=None, description="Caller-side identifier echoed in the response.")
    category: PersonCategory = PersonCategory.MALE


class CenterInput(PointModel):
    center_id: Optional[str] = Field(default=None, description="Caller-side identifier echoed in the response.")


class AssignmentRequest(BaseModel):
    people: List[PersonInput]
    centers: List[CenterInput]
    capacity_per_center: Optional[int] = Field(default=None, ge=1)
    use_road_distances: Optional[bool] = Field(
        default=None,
        description="Road distances (grid search / OSRM) when true, straight-line when false. Defaults to settings.",
    )
    include_geometry: bool = Field(
        default=False,
        description="Attach the encoded route polyline to each assignment when one is available.",
    )


class AssignmentRecordModel(BaseModel):
    person_index: int
    center_index: int
    person_id: Optional[str] = None
    center_id: Optional[str] = None
    category: PersonCategory
    distance_km: float
    duration_min: Optional[float] = None
    source: Optional[str] = None
    geometry: Optional[str] = None


class AssignmentStatsModel(BaseModel):
    total_people: int
    total_assigned: int
    unassigned: int
    assigned_by_category: Dict[str, int]
    unassigned_by_category: Dict[str, int]
    average_distance_km: Optional[float] = None
    min_distance_km: Optional[float] = None
    max_distance_km: Optional[float] = None


class AssignmentResponse(BaseModel):
    distance_type: str
    state: str
    records: List[AssignmentRecordModel]
    unassigned_people: List[int]
    remaining_capacity: List[int]
    stats: AssignmentStatsModel
    metadata: dict


class DistanceRequest(BaseModel):
    origin: PointModel
    destination: PointModel


class DistanceResponse(BaseModel):
    distance_km: float
    source: str
    duration_min: Optional[float] = None
    geometry: Optional[str] = None
