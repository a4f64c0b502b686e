"""
Geometry primitives for zone resolution.

Pure functions over the typed geometry values in schemas.geometry. Boundary
payloads use [longitude, latitude] order while points are (latitude,
longitude); every function here does the swap explicitly.

Containment never raises: degenerate rings are "no match".
"""

import json
from typing import Any, List, Sequence, Tuple, Union

import structlog
from pydantic import ValidationError

from precinct_locator.exceptions import MalformedGeometryError
from precinct_locator.schemas.geometry import (
    GEOMETRY_ADAPTER, BoundingBox, Geometry, LatLng, MultiPolygonGeometry, PolygonGeometry, Ring,
)

logger = structlog.get_logger()


def parse_geometry(payload: Union[str, bytes, dict]) -> Geometry:
    """
    Validate a boundary payload into a Polygon or MultiPolygon.

    Raises:
        MalformedGeometryError: unparseable JSON, unknown type, or rings
        that violate the closed / 4-position invariants
    """
    try:
        data = json.loads(payload) if isinstance(payload, (str, bytes)) else payload
        return GEOMETRY_ADAPTER.validate_python(data)
    except (ValueError, TypeError, ValidationError) as e:
        raise MalformedGeometryError(f"Invalid boundary geometry: {e}") from e


def parse_bounding_box(payload: Union[str, bytes, Sequence[float]]) -> BoundingBox:
    """Validate a [minLat, minLng, maxLat, maxLng] payload"""
    try:
        data = json.loads(payload) if isinstance(payload, (str, bytes)) else payload
        if not isinstance(data, (list, tuple)):
            raise ValueError(f"expected a 4-element array, got {type(data).__name__}")
        return BoundingBox.from_array(data)
    except (ValueError, TypeError, ValidationError) as e:
        raise MalformedGeometryError(f"Invalid bounding box: {e}", payload_kind="bounding_box") from e


def geometry_to_dict(geometry: Geometry) -> dict:
    return {"type": geometry.type, "coordinates": geometry.coordinates}


def point_in_bounding_box(point: LatLng, bbox: BoundingBox) -> bool:
    """Inclusive box test"""
    return (
        bbox.min_lat <= point.latitude <= bbox.max_lat
        and bbox.min_lng <= point.longitude <= bbox.max_lng
    )


def point_in_polygon(point: LatLng, geometry: Any) -> bool:
    """
    Ray-casting containment test.

    Polygon: exterior ring only. MultiPolygon: true if any member contains
    the point. Anything else, or a degenerate ring, is treated as no match.
    """
    if isinstance(geometry, PolygonGeometry):
        return _point_in_ring_set(point, geometry.coordinates)
    if isinstance(geometry, MultiPolygonGeometry):
        return any(_point_in_ring_set(point, polygon) for polygon in geometry.coordinates)
    return False


def _point_in_ring_set(point: LatLng, rings: Sequence[Ring]) -> bool:
    if not rings:
        return False
    try:
        return _ray_cast(point.latitude, point.longitude, rings[0])
    except (TypeError, IndexError, ValueError) as e:
        logger.debug("Skipping malformed ring", error=str(e))
        return False


def _ray_cast(lat: float, lng: float, ring: Ring) -> bool:
    n = len(ring)
    if n < 3:
        return False

    inside = False
    j = n - 1
    for i in range(n):
        xi, yi = ring[i][0], ring[i][1]
        xj, yj = ring[j][0], ring[j][1]
        # Edge straddles the point's latitude, so yi != yj below
        if (yi > lat) != (yj > lat):
            intersect_lng = (xj - xi) * (lat - yi) / (yj - yi) + xi
            if lng < intersect_lng:
                inside = not inside
        j = i
    return inside


def compute_centroid(ring: Ring) -> LatLng:
    """
    Vertex mean of a closed ring, excluding the closing duplicate.

    Not area-weighted: close enough for small, roughly convex precinct shapes.
    """
    vertices = ring[:-1] if len(ring) > 1 and ring[0][:2] == ring[-1][:2] else ring
    if not vertices:
        raise MalformedGeometryError("Cannot compute centroid of an empty ring")

    sum_lng = sum(position[0] for position in vertices)
    sum_lat = sum(position[1] for position in vertices)
    count = len(vertices)
    return LatLng(latitude=sum_lat / count, longitude=sum_lng / count)


def geometry_centroid(geometry: Geometry) -> LatLng:
    """Centroid of the first polygon's exterior ring"""
    return compute_centroid(geometry.polygons[0][0])


def compute_bounding_box(rings: Sequence[Ring]) -> BoundingBox:
    """Min/max scan over every position of every ring"""
    lats = [position[1] for ring in rings for position in ring]
    lngs = [position[0] for ring in rings for position in ring]
    if not lats:
        raise MalformedGeometryError("Cannot compute bounding box without coordinates")
    return BoundingBox(min_lat=min(lats), min_lng=min(lngs), max_lat=max(lats), max_lng=max(lngs))


def geometry_bounding_box(geometry: Geometry) -> BoundingBox:
    return compute_bounding_box(rings_of(geometry))


def squared_distance(a: LatLng, b: LatLng) -> float:
    """
    Planar squared distance in degrees.

    Ignores longitude shrinkage with latitude; fine for ranking within one
    city, not a metric distance.
    """
    dlat = a.latitude - b.latitude
    dlng = a.longitude - b.longitude
    return dlat * dlat + dlng * dlng


def bisect_ring(ring: Ring) -> Tuple[Ring, ...]:
    """
    Split a closed ring at its midpoint vertex index into two closed rings.

    Placeholder sub-zone derivation: the halves only partition the shape for
    convex rings. Rings with fewer than 4 distinct vertices are returned whole.
    """
    vertices = [list(position) for position in ring[:-1]]
    if len(vertices) < 4:
        return (ring,)

    mid = len(vertices) // 2
    first = vertices[: mid + 1] + [vertices[0]]
    second = vertices[mid:] + [vertices[0], vertices[mid]]
    return first, second


def rings_of(geometry: Geometry) -> List[Ring]:
    return [ring for polygon in geometry.polygons for ring in polygon]
