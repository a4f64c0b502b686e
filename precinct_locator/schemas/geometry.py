"""Geometry value types and boundary payload validation"""

import math
from typing import Annotated, List, Literal, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator

# [longitude, latitude], the boundary payload ordinate order
Position = List[float]
Ring = List[Position]

MIN_RING_POSITIONS = 4


class LatLng(BaseModel):
    """In-memory point, latitude first"""
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)


class BoundingBox(BaseModel):
    """Axis-aligned box serialized as [minLat, minLng, maxLat, maxLng]"""
    model_config = ConfigDict(frozen=True)

    min_lat: float
    min_lng: float
    max_lat: float
    max_lng: float

    @model_validator(mode="after")
    def validate_ordering(self):
        if self.min_lat > self.max_lat or self.min_lng > self.max_lng:
            raise ValueError(
                f"Bounding box min exceeds max: {self.to_array()}"
            )
        return self

    @classmethod
    def from_array(cls, values: Sequence[float]) -> "BoundingBox":
        if len(values) != 4:
            raise ValueError(f"Bounding box needs 4 values, got {len(values)}")
        min_lat, min_lng, max_lat, max_lng = values
        return cls(min_lat=min_lat, min_lng=min_lng, max_lat=max_lat, max_lng=max_lng)

    def to_array(self) -> List[float]:
        return [self.min_lat, self.min_lng, self.max_lat, self.max_lng]


def _validate_ring(ring: Ring) -> Ring:
    if len(ring) < MIN_RING_POSITIONS:
        raise ValueError(
            f"Ring must have at least {MIN_RING_POSITIONS} positions, got {len(ring)}"
        )
    for position in ring:
        if len(position) < 2:
            raise ValueError(f"Position needs longitude and latitude, got {position}")
        if not all(math.isfinite(value) for value in position[:2]):
            raise ValueError(f"Position has non-finite ordinate: {position}")
    if ring[0][:2] != ring[-1][:2]:
        raise ValueError("Ring is not closed (first and last positions differ)")
    return ring


class PolygonGeometry(BaseModel):
    """Exterior ring followed by zero or more inner rings"""
    model_config = ConfigDict(frozen=True)

    type: Literal["Polygon"]
    coordinates: List[Ring]

    @field_validator("coordinates")
    @classmethod
    def validate_rings(cls, v):
        if not v:
            raise ValueError("Polygon has no rings")
        return [_validate_ring(ring) for ring in v]

    @property
    def polygons(self) -> List[List[Ring]]:
        return [self.coordinates]


class MultiPolygonGeometry(BaseModel):
    """Ordered list of polygon ring-sets"""
    model_config = ConfigDict(frozen=True)

    type: Literal["MultiPolygon"]
    coordinates: List[List[Ring]]

    @field_validator("coordinates")
    @classmethod
    def validate_polygons(cls, v):
        if not v:
            raise ValueError("MultiPolygon has no polygons")
        for polygon in v:
            if not polygon:
                raise ValueError("MultiPolygon member has no rings")
            for ring in polygon:
                _validate_ring(ring)
        return v

    @property
    def polygons(self) -> List[List[Ring]]:
        return self.coordinates


Geometry = Annotated[
    Union[PolygonGeometry, MultiPolygonGeometry],
    Field(discriminator="type"),
]

GEOMETRY_ADAPTER = TypeAdapter(Geometry)
