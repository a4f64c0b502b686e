"""Zone and resolution Pydantic schemas"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from precinct_locator.schemas.geometry import LatLng


class DayHours(BaseModel):
    """Opening hours for one weekday (Sunday-first list)"""
    day: str
    hours: str
    is_open: bool


class ZoneResponse(BaseModel):
    """Precinct details"""
    zone_id: int = Field(..., description="Precinct number")
    name: str
    address: str
    phone: str
    borough: Optional[str] = None
    centroid: LatLng
    bounding_box: List[float] = Field(..., description="[minLat, minLng, maxLat, maxLng]")
    opening_hours: List[DayHours] = Field(default_factory=list)
    boundary: Optional[Dict[str, Any]] = Field(None, description="Boundary geometry payload")


class SubZoneResponse(BaseModel):
    """Sector details"""
    zone_id: int
    sub_zone_id: str
    bounding_box: List[float]
    derived: bool = Field(default=False, description="True when produced by ring bisection")


class ZoneResolutionResponse(BaseModel):
    """Result of resolving a point to a precinct and sector"""
    point: LatLng
    match_level: str = Field(..., description="polygon, nearest or unresolved")
    zone: Optional[ZoneResponse] = None
    sub_zone: Optional[SubZoneResponse] = None
    squared_distance: Optional[float] = Field(
        None, description="Centroid distance in squared degrees (nearest matches only)"
    )
    warnings: List[str] = Field(default_factory=list)


class DatasetVersionResponse(BaseModel):
    """Recorded dataset version"""
    dataset_key: str
    version: Optional[str] = None
    last_synced_at: Optional[str] = None
    target_version: Optional[str] = None
    needs_upgrade: bool


class DatasetStatusResponse(BaseModel):
    """Overall dataset status"""
    initial_load_complete: bool
    comparison_rule: str
    datasets: List[DatasetVersionResponse]
