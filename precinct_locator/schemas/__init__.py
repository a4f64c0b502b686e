"""Pydantic schemas for geometry payloads, API requests and responses"""

from .geometry import (
    LatLng, BoundingBox, PolygonGeometry, MultiPolygonGeometry, Geometry, GEOMETRY_ADAPTER
)
from .schedule import (
    PatternKind, ScheduleDefinition, SquadResponse, MonthScheduleResponse, DayScheduleResponse,
    DUTY_TOKEN, OFF_TOKEN
)
from .zones import (
    DayHours, ZoneResponse, SubZoneResponse, ZoneResolutionResponse,
    DatasetVersionResponse, DatasetStatusResponse
)
from .common import ErrorResponse

__all__ = [
    "LatLng", "BoundingBox", "PolygonGeometry", "MultiPolygonGeometry", "Geometry", "GEOMETRY_ADAPTER",
    "PatternKind", "ScheduleDefinition", "SquadResponse", "MonthScheduleResponse", "DayScheduleResponse",
    "DUTY_TOKEN", "OFF_TOKEN",
    "DayHours", "ZoneResponse", "SubZoneResponse", "ZoneResolutionResponse",
    "DatasetVersionResponse", "DatasetStatusResponse",
    "ErrorResponse",
]
