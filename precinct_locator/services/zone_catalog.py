"""Zone catalog: database rows -> validated in-memory resolution snapshot"""

import json
from dataclasses import dataclass
from typing import List, Optional, Tuple

import structlog
from pydantic import ValidationError
from sqlalchemy.orm import Session

from precinct_locator.exceptions import MalformedGeometryError
from precinct_locator.models.zones import SubZone, Zone
from precinct_locator.schemas.geometry import LatLng
from precinct_locator.services.geometry import parse_bounding_box, parse_geometry
from precinct_locator.services.zone_resolver import SubZoneShape, ZoneShape

logger = structlog.get_logger()


@dataclass(frozen=True)
class QuarantinedShape:
    """Row excluded from resolution because its geometry failed validation"""
    kind: str  # zone, sub_zone
    identifier: str
    reason: str


@dataclass(frozen=True)
class ZoneSnapshot:
    """Immutable set of zones and sub-zones for one dataset version"""
    zones: Tuple[ZoneShape, ...]
    sub_zones: Tuple[SubZoneShape, ...]
    quarantined: Tuple[QuarantinedShape, ...] = ()

    def sub_zones_for(self, zone_id: int) -> List[SubZoneShape]:
        return [sub_zone for sub_zone in self.sub_zones if sub_zone.zone_id == zone_id]


class ZoneCatalog:
    """Reads zone tables and validates geometry at the deserialization boundary"""

    def __init__(self, db: Session):
        self.db = db

    def list_zones(self) -> List[Zone]:
        return self.db.query(Zone).order_by(Zone.zone_id).all()

    def get_zone(self, zone_id: int) -> Optional[Zone]:
        return self.db.query(Zone).filter(Zone.zone_id == zone_id).first()

    def list_sub_zones(self, zone_id: Optional[int] = None) -> List[SubZone]:
        query = self.db.query(SubZone)
        if zone_id is not None:
            query = query.filter(SubZone.zone_id == zone_id)
        return query.order_by(SubZone.zone_id, SubZone.sub_zone_id).all()

    def snapshot(self, zone_id: Optional[int] = None) -> ZoneSnapshot:
        """
        Load every zone and sub-zone into shapes.

        Malformed rows are logged and quarantined so the remaining shapes
        still resolve.
        """
        quarantined: List[QuarantinedShape] = []

        zones = []
        for row in self.list_zones():
            try:
                zones.append(self.to_zone_shape(row))
            except MalformedGeometryError as e:
                quarantined.append(QuarantinedShape("zone", str(row.zone_id), str(e)))

        sub_zones = []
        for row in self.list_sub_zones(zone_id):
            try:
                sub_zones.append(self.to_sub_zone_shape(row))
            except MalformedGeometryError as e:
                quarantined.append(
                    QuarantinedShape("sub_zone", f"{row.zone_id}/{row.sub_zone_id}", str(e))
                )

        for entry in quarantined:
            logger.warning(
                "Quarantined malformed geometry",
                kind=entry.kind,
                identifier=entry.identifier,
                reason=entry.reason,
            )

        logger.debug(
            "Zone snapshot loaded",
            zones=len(zones),
            sub_zones=len(sub_zones),
            quarantined=len(quarantined),
        )
        return ZoneSnapshot(tuple(zones), tuple(sub_zones), tuple(quarantined))

    @staticmethod
    def to_zone_shape(row: Zone) -> ZoneShape:
        geometry = parse_geometry(row.boundary_json)
        try:
            centroid = LatLng(latitude=row.centroid_lat, longitude=row.centroid_lng)
        except ValidationError as e:
            raise MalformedGeometryError(f"Invalid centroid: {e}") from e
        return ZoneShape(
            zone_id=row.zone_id,
            geometry=geometry,
            bounding_box=parse_bounding_box(row.bounding_box_json),
            centroid=centroid,
            attributes={
                "name": row.name,
                "address": row.address,
                "phone": row.phone,
                "borough": row.borough,
            },
        )

    @staticmethod
    def to_sub_zone_shape(row: SubZone) -> SubZoneShape:
        return SubZoneShape(
            zone_id=row.zone_id,
            sub_zone_id=row.sub_zone_id,
            geometry=parse_geometry(row.boundary_json),
            bounding_box=parse_bounding_box(row.bounding_box_json),
            derived=bool(row.derived),
        )


def load_opening_hours(row: Zone) -> list:
    """Opening hours table; unreadable JSON yields an empty table"""
    try:
        hours = json.loads(row.opening_hours_json or "[]")
    except ValueError:
        logger.warning("Unreadable opening hours", zone_id=row.zone_id)
        return []
    return hours if isinstance(hours, list) else []
