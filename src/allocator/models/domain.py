"""Domain models for people and test center locations."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..services.geospatial import haversine_km

COORDINATE_PRECISION = 6


class CoordinateValidationError(ValueError):
    """Raised when a latitude/longitude pair is outside the valid ranges."""


class PointRole(str, Enum):
    PERSON = "person"
    CENTER = "center"


class PersonCategory(str, Enum):
    """Priority classes; lower rank is served first."""

    PWD = "pwd"
    FEMALE = "female"
    MALE = "male"

    @property
    def rank(self) -> int:
        return _CATEGORY_RANK[self]


_CATEGORY_RANK = {
    PersonCategory.PWD: 1,
    PersonCategory.FEMALE: 2,
    PersonCategory.MALE: 3,
}


def validate_coordinates(latitude: float, longitude: float) -> None:
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        raise CoordinateValidationError(f"Coordinates must be finite numbers, got ({latitude}, {longitude}).")
    if not -90.0 <= latitude <= 90.0:
        raise CoordinateValidationError(f"Latitude {latitude} is outside [-90, 90].")
    if not -180.0 <= longitude <= 180.0:
        raise CoordinateValidationError(f"Longitude {longitude} is outside [-180, 180].")


@dataclass(frozen=True, slots=True)
class GeoPoint:
    """A validated geographic point representing a person or a test center."""

    latitude: float
    longitude: float
    role: PointRole = PointRole.PERSON
    category: Optional[PersonCategory] = None

    def __post_init__(self) -> None:
        validate_coordinates(self.latitude, self.longitude)
        if self.role is PointRole.PERSON and self.category is None:
            object.__setattr__(self, "category", PersonCategory.MALE)
        if self.role is PointRole.CENTER and self.category is not None:
            raise ValueError("Test centers do not carry a priority category.")

    @classmethod
    def person(
        cls, latitude: float, longitude: float, category: PersonCategory | str = PersonCategory.MALE
    ) -> GeoPoint:
        return cls(float(latitude), float(longitude), PointRole.PERSON, PersonCategory(category))

    @classmethod
    def center(cls, latitude: float, longitude: float) -> GeoPoint:
        return cls(float(latitude), float(longitude), PointRole.CENTER)

    @property
    def is_person(self) -> bool:
        return self.role is PointRole.PERSON

    @property
    def is_center(self) -> bool:
        return self.role is PointRole.CENTER

    def distance_to(self, other: GeoPoint) -> float:
        """Great-circle distance to ``other`` in kilometers."""
        return haversine_km(self.latitude, self.longitude, other.latitude, other.longitude)

    def coordinate_token(self, precision: int = COORDINATE_PRECISION) -> str:
        return f"{self.latitude:.{precision}f},{self.longitude:.{precision}f}"

    def __str__(self) -> str:
        return f"({self.latitude:.6f}, {self.longitude:.6f})"


def canonical_pair_key(a: GeoPoint, b: GeoPoint, precision: int = COORDINATE_PRECISION) -> str:
    """Order-independent key for a pair of points, so A->B and B->A collide."""
    first = a.coordinate_token(precision)
    second = b.coordinate_token(precision)
    return f"{first}|{second}" if first < second else f"{second}|{first}"
