"""Precinct and sector endpoints, including point resolution"""

import json
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from precinct_locator.config import Settings
from precinct_locator.dependencies import get_db, get_settings, limiter
from precinct_locator.models.zones import SubZone, Zone
from precinct_locator.observability.metrics import ZONE_RESOLUTIONS
from precinct_locator.schemas.geometry import LatLng
from precinct_locator.schemas.zones import SubZoneResponse, ZoneResolutionResponse, ZoneResponse
from precinct_locator.services.zone_catalog import ZoneCatalog, load_opening_hours
from precinct_locator.services.zone_resolver import MATCH_NEAREST, ZoneResolver

router = APIRouter()


def zone_response(row: Zone, include_boundary: bool = False) -> ZoneResponse:
    return ZoneResponse(
        zone_id=row.zone_id,
        name=row.name,
        address=row.address,
        phone=row.phone,
        borough=row.borough,
        centroid=LatLng(latitude=row.centroid_lat, longitude=row.centroid_lng),
        bounding_box=json.loads(row.bounding_box_json),
        opening_hours=load_opening_hours(row),
        boundary=json.loads(row.boundary_json) if include_boundary else None,
    )


def sub_zone_response(row: SubZone) -> SubZoneResponse:
    return SubZoneResponse(
        zone_id=row.zone_id,
        sub_zone_id=row.sub_zone_id,
        bounding_box=json.loads(row.bounding_box_json),
        derived=bool(row.derived),
    )


@router.get("", response_model=List[ZoneResponse])
async def list_zones(db: Session = Depends(get_db)):
    """All precincts, without boundaries"""
    return [zone_response(row) for row in ZoneCatalog(db).list_zones()]


@router.get("/resolve", response_model=ZoneResolutionResponse)
@limiter.limit("60/minute")
async def resolve_point(
    request: Request,
    lat: float = Query(..., ge=-90.0, le=90.0, description="Latitude"),
    lng: float = Query(..., ge=-180.0, le=180.0, description="Longitude"),
    db: Session = Depends(get_db),
    app_settings: Settings = Depends(get_settings),
):
    """
    Resolve a point to its precinct and sector.

    Cascade: polygon containment, then nearest precinct centroid within the
    configured threshold, else unresolved. Unresolved is a normal 200 result.
    """
    catalog = ZoneCatalog(db)
    snapshot = catalog.snapshot()
    point = LatLng(latitude=lat, longitude=lng)

    resolver = ZoneResolver(app_settings.nearest_max_squared_degrees)
    resolution = resolver.resolve(point, snapshot.zones, snapshot.sub_zones)
    ZONE_RESOLUTIONS.labels(match_level=resolution.match_level).inc()

    warnings = [
        f"{entry.kind} {entry.identifier} excluded: {entry.reason}"
        for entry in snapshot.quarantined
    ]
    if resolution.match_level == MATCH_NEAREST:
        warnings.append("Point is outside every precinct boundary; nearest precinct by centroid returned")

    zone = None
    if resolution.zone is not None:
        zone = zone_response(catalog.get_zone(resolution.zone.zone_id))

    sub_zone = None
    if resolution.sub_zone is not None:
        sub_zone = SubZoneResponse(
            zone_id=resolution.sub_zone.zone_id,
            sub_zone_id=resolution.sub_zone.sub_zone_id,
            bounding_box=resolution.sub_zone.bounding_box.to_array(),
            derived=resolution.sub_zone.derived,
        )

    return ZoneResolutionResponse(
        point=point,
        match_level=resolution.match_level,
        zone=zone,
        sub_zone=sub_zone,
        squared_distance=resolution.squared_distance,
        warnings=warnings,
    )


@router.get("/{zone_id}", response_model=ZoneResponse)
async def get_zone(zone_id: int, db: Session = Depends(get_db)):
    """Precinct details including its boundary"""
    row = ZoneCatalog(db).get_zone(zone_id)
    if row is None:
        raise HTTPException(status_code=404, detail=f"Precinct {zone_id} not found")
    return zone_response(row, include_boundary=True)


@router.get("/{zone_id}/sub-zones", response_model=List[SubZoneResponse])
async def list_sub_zones(zone_id: int, db: Session = Depends(get_db)):
    """Sectors of one precinct, ordered by sector id"""
    catalog = ZoneCatalog(db)
    if catalog.get_zone(zone_id) is None:
        raise HTTPException(status_code=404, detail=f"Precinct {zone_id} not found")
    return [sub_zone_response(row) for row in catalog.list_sub_zones(zone_id)]
