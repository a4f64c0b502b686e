"""Zone resolver: point -> precinct / sector with nearest-centroid fallback"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

import structlog

from precinct_locator.config import settings
from precinct_locator.schemas.geometry import BoundingBox, Geometry, LatLng
from precinct_locator.services.geometry import (
    geometry_bounding_box, geometry_centroid, point_in_bounding_box, point_in_polygon,
    squared_distance,
)

logger = structlog.get_logger()

MATCH_POLYGON = "polygon"
MATCH_NEAREST = "nearest"
MATCH_UNRESOLVED = "unresolved"


@dataclass(frozen=True)
class ZoneShape:
    """Immutable in-memory view of a zone used for resolution"""
    zone_id: int
    geometry: Geometry
    bounding_box: BoundingBox
    centroid: LatLng
    attributes: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_geometry(cls, zone_id: int, geometry: Geometry, **attributes) -> "ZoneShape":
        return cls(
            zone_id=zone_id,
            geometry=geometry,
            bounding_box=geometry_bounding_box(geometry),
            centroid=geometry_centroid(geometry),
            attributes=attributes,
        )


@dataclass(frozen=True)
class SubZoneShape:
    """Immutable in-memory view of a sector"""
    zone_id: int
    sub_zone_id: str
    geometry: Geometry
    bounding_box: BoundingBox
    derived: bool = False

    @classmethod
    def from_geometry(cls, zone_id: int, sub_zone_id: str, geometry: Geometry,
                      derived: bool = False) -> "SubZoneShape":
        return cls(
            zone_id=zone_id,
            sub_zone_id=sub_zone_id,
            geometry=geometry,
            bounding_box=geometry_bounding_box(geometry),
            derived=derived,
        )


@dataclass
class ZoneResolution:
    """Outcome of the full polygon -> nearest -> unresolved cascade"""
    point: LatLng
    match_level: str
    zone: Optional[ZoneShape] = None
    sub_zone: Optional[SubZoneShape] = None
    squared_distance: Optional[float] = None
    candidates_checked: int = 0

    @property
    def resolved(self) -> bool:
        return self.zone is not None


class ZoneResolver:
    """
    Two-stage resolver over a small zone collection.

    Stage 1 rejects zones whose bounding box excludes the point; stage 2 runs
    the exact ray-casting test. polygon_tests counts stage-2 evaluations.
    """

    def __init__(self, max_squared_distance: Optional[float] = None):
        if max_squared_distance is None:
            max_squared_distance = settings.nearest_max_squared_degrees
        self.max_squared_distance = max_squared_distance
        self.polygon_tests = 0

    def resolve_zone(self, point: LatLng, zones: Iterable[ZoneShape]) -> Optional[ZoneShape]:
        """
        Zone whose polygon contains the point.

        Overlapping matches are broken by centroid squared distance, then by
        the lower zone_id, so points on shared edges resolve the same way
        every time.
        """
        matches = [zone for zone in self._bbox_candidates(point, zones) if self._contains(point, zone)]
        if not matches:
            return None
        if len(matches) > 1:
            logger.warning(
                "Overlapping zones contain point",
                latitude=point.latitude,
                longitude=point.longitude,
                zone_ids=[zone.zone_id for zone in matches],
            )
        return min(matches, key=lambda zone: (squared_distance(point, zone.centroid), zone.zone_id))

    def find_sub_zone(
        self,
        point: LatLng,
        sub_zones: Iterable[SubZoneShape],
        zone_id: Optional[int] = None,
    ) -> Optional[SubZoneShape]:
        """First sector containing the point, limited to zone_id when known"""
        if zone_id is not None:
            sub_zones = [sub_zone for sub_zone in sub_zones if sub_zone.zone_id == zone_id]
        ordered = sorted(sub_zones, key=lambda s: (s.zone_id, s.sub_zone_id))
        for sub_zone in self._bbox_candidates(point, ordered):
            if self._contains(point, sub_zone):
                return sub_zone
        return None

    def find_nearest(
        self,
        point: LatLng,
        zones: Iterable[ZoneShape],
        max_squared_distance: Optional[float] = None,
    ) -> Optional[ZoneShape]:
        """Zone with the closest centroid, or None beyond the threshold"""
        if max_squared_distance is None:
            max_squared_distance = self.max_squared_distance

        best = None
        best_distance = float("inf")
        for zone in zones:
            distance = squared_distance(point, zone.centroid)
            if distance < best_distance or (distance == best_distance and best is not None
                                            and zone.zone_id < best.zone_id):
                best, best_distance = zone, distance

        if best is None or best_distance > max_squared_distance:
            return None
        return best

    def resolve(
        self,
        point: LatLng,
        zones: Sequence[ZoneShape],
        sub_zones: Sequence[SubZoneShape] = (),
    ) -> ZoneResolution:
        """Polygon match, then nearest centroid within threshold, else unresolved"""
        tests_before = self.polygon_tests

        zone = self.resolve_zone(point, zones)
        if zone is not None:
            resolution = ZoneResolution(point=point, match_level=MATCH_POLYGON, zone=zone)
        else:
            zone = self.find_nearest(point, zones)
            if zone is not None:
                resolution = ZoneResolution(
                    point=point,
                    match_level=MATCH_NEAREST,
                    zone=zone,
                    squared_distance=squared_distance(point, zone.centroid),
                )
            else:
                resolution = ZoneResolution(point=point, match_level=MATCH_UNRESOLVED)

        # Sectors only exist inside a precinct
        if zone is not None and sub_zones:
            resolution.sub_zone = self.find_sub_zone(point, sub_zones, zone.zone_id)

        resolution.candidates_checked = self.polygon_tests - tests_before

        logger.info(
            "Zone resolution complete",
            latitude=point.latitude,
            longitude=point.longitude,
            match_level=resolution.match_level,
            zone_id=resolution.zone.zone_id if resolution.zone else None,
            sub_zone_id=resolution.sub_zone.sub_zone_id if resolution.sub_zone else None,
            polygon_tests=resolution.candidates_checked,
        )
        return resolution

    def _bbox_candidates(self, point: LatLng, shapes: Iterable) -> List:
        return [shape for shape in shapes if point_in_bounding_box(point, shape.bounding_box)]

    def _contains(self, point: LatLng, shape) -> bool:
        self.polygon_tests += 1
        return point_in_polygon(point, shape.geometry)


# Utility functions
def resolve_zone(point: LatLng, zones: Iterable[ZoneShape]) -> Optional[ZoneShape]:
    return ZoneResolver().resolve_zone(point, zones)


def find_sub_zone(
    point: LatLng,
    sub_zones: Iterable[SubZoneShape],
    zone_id: Optional[int] = None,
) -> Optional[SubZoneShape]:
    return ZoneResolver().find_sub_zone(point, sub_zones, zone_id)


def find_nearest(
    point: LatLng,
    zones: Iterable[ZoneShape],
    max_squared_distance: float,
) -> Optional[ZoneShape]:
    return ZoneResolver(max_squared_distance).find_nearest(point, zones)
