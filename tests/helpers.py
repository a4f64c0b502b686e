"""Geometry builders shared by the resolver and catalog tests"""

from precinct_locator.schemas.geometry import LatLng
from precinct_locator.services.geometry import parse_geometry
from precinct_locator.services.zone_resolver import SubZoneShape, ZoneShape


def square_ring(min_lng: float, min_lat: float, max_lng: float, max_lat: float):
    """Closed counter-clockwise rectangle in [lng, lat] order"""
    return [
        [min_lng, min_lat],
        [max_lng, min_lat],
        [max_lng, max_lat],
        [min_lng, max_lat],
        [min_lng, min_lat],
    ]


def square_polygon(min_lng: float, min_lat: float, max_lng: float, max_lat: float):
    return parse_geometry({
        "type": "Polygon",
        "coordinates": [square_ring(min_lng, min_lat, max_lng, max_lat)],
    })


def square_zone(zone_id: int, min_lng: float, min_lat: float, max_lng: float, max_lat: float) -> ZoneShape:
    geometry = square_polygon(min_lng, min_lat, max_lng, max_lat)
    return ZoneShape.from_geometry(zone_id, geometry, name=f"Zone {zone_id}")


def square_sub_zone(zone_id: int, sub_zone_id: str, min_lng: float, min_lat: float,
                    max_lng: float, max_lat: float) -> SubZoneShape:
    geometry = square_polygon(min_lng, min_lat, max_lng, max_lat)
    return SubZoneShape.from_geometry(zone_id, sub_zone_id, geometry)


def point(lat: float, lng: float) -> LatLng:
    return LatLng(latitude=lat, longitude=lng)
