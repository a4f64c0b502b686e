"""Seeders that drop and repopulate one dataset from bundled JSON files"""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import structlog
from pydantic import ValidationError
from sqlalchemy.orm import Session

from precinct_locator.config import Settings, settings
from precinct_locator.exceptions import MalformedGeometryError
from precinct_locator.models.laws import LawCategory, LawEntry
from precinct_locator.models.schedules import Schedule, Squad
from precinct_locator.models.zones import SubZone, Zone
from precinct_locator.schemas.zones import DayHours
from precinct_locator.services.dataset_versions import DatasetKey
from precinct_locator.services.geometry import (
    bisect_ring, compute_bounding_box, geometry_bounding_box, geometry_centroid,
    geometry_to_dict, parse_geometry,
)
from precinct_locator.services.schedule_engine import load_schedule_definition

logger = structlog.get_logger()

BUNDLED_DATA_DIR = Path(__file__).resolve().parent.parent / "data"

WEEKDAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
DEFAULT_OPENING_HOURS = [
    {"day": day, "hours": "Open 24 hours", "is_open": True} for day in WEEKDAY_NAMES
]


class DatasetSeeder(ABC):
    """Base class for dataset seeders"""

    dataset_key: DatasetKey
    filename: str

    def __init__(self, data_dir: Optional[Union[str, Path]] = None, app_settings: Optional[Settings] = None):
        self.settings = app_settings or settings
        self.data_dir = Path(data_dir or self.settings.seed_data_dir or BUNDLED_DATA_DIR)

    @property
    def source_path(self) -> Path:
        return self.data_dir / self.filename

    def load_payload(self) -> Dict[str, Any]:
        """Read the seed file for this dataset"""
        with open(self.source_path, encoding="utf-8") as f:
            payload = json.load(f)
        if not isinstance(payload, dict):
            raise ValueError(f"{self.source_path.name} must contain a JSON object")
        return payload

    @abstractmethod
    def clear(self, db: Session) -> None:
        """Delete every row of the dataset"""
        pass

    @abstractmethod
    def populate(self, db: Session, payload: Dict[str, Any]) -> int:
        """Insert rows from the payload and return how many were written"""
        pass

    @abstractmethod
    def count_rows(self, db: Session) -> int:
        pass

    def reseed(self, db: Session) -> int:
        """
        Delete then repopulate the dataset on the caller's session.

        Nothing is committed here; the version manager commits the reseed and
        the version record together.
        """
        payload = self.load_payload()

        logger.info("Reseeding dataset", dataset_key=self.dataset_key.value, source=str(self.source_path))
        self.clear(db)
        db.flush()

        rows = self.populate(db, payload)
        db.flush()

        logger.info("Dataset reseeded", dataset_key=self.dataset_key.value, rows=rows)
        return rows


class PrecinctSeeder(DatasetSeeder):
    """Precinct boundaries from a GeoJSON FeatureCollection"""

    dataset_key = DatasetKey.PRECINCTS
    filename = "precincts.json"

    def clear(self, db: Session) -> None:
        db.query(Zone).delete()

    def count_rows(self, db: Session) -> int:
        return db.query(Zone).count()

    def populate(self, db: Session, payload: Dict[str, Any]) -> int:
        rows = 0
        for feature in payload.get("features", []):
            properties = feature.get("properties") or {}
            zone_id = int(properties["precinct"])

            geometry = parse_geometry(feature.get("geometry"))
            centroid = geometry_centroid(geometry)

            db.add(Zone(
                zone_id=zone_id,
                name=properties.get("name") or f"Precinct {zone_id}",
                address=properties.get("address", ""),
                phone=properties.get("phone", ""),
                borough=properties.get("borough"),
                boundary_json=json.dumps(geometry_to_dict(geometry)),
                centroid_lat=centroid.latitude,
                centroid_lng=centroid.longitude,
                bounding_box_json=json.dumps(geometry_bounding_box(geometry).to_array()),
                opening_hours_json=json.dumps(self._opening_hours(zone_id, properties.get("opening_hours"))),
            ))
            rows += 1
        return rows

    @staticmethod
    def _opening_hours(zone_id: int, hours: Optional[List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
        if hours is None:
            return DEFAULT_OPENING_HOURS
        try:
            table = [DayHours.model_validate(entry).model_dump() for entry in hours]
        except ValidationError as e:
            raise ValueError(f"Precinct {zone_id}: invalid opening hours: {e}") from e
        if len(table) != len(WEEKDAY_NAMES):
            raise ValueError(f"Precinct {zone_id}: opening hours need 7 days, got {len(table)}")
        return table


class SectorSeeder(DatasetSeeder):
    """
    Sector boundaries.

    Precincts with no explicit sectors get two derived halves of their
    exterior ring when derive_missing_sub_zones is enabled. The halves are
    only a placeholder partition and are flagged as derived.
    """

    dataset_key = DatasetKey.SECTORS
    filename = "sectors.json"

    def clear(self, db: Session) -> None:
        db.query(SubZone).delete()

    def count_rows(self, db: Session) -> int:
        return db.query(SubZone).count()

    def populate(self, db: Session, payload: Dict[str, Any]) -> int:
        covered = set()
        rows = 0
        for feature in payload.get("features", []):
            properties = feature.get("properties") or {}
            zone_id = int(properties["precinct"])
            sub_zone_id = str(properties["sector"])

            geometry = parse_geometry(feature.get("geometry"))
            db.add(SubZone(
                zone_id=zone_id,
                sub_zone_id=sub_zone_id,
                boundary_json=json.dumps(geometry_to_dict(geometry)),
                bounding_box_json=json.dumps(geometry_bounding_box(geometry).to_array()),
                derived=0,
            ))
            covered.add(zone_id)
            rows += 1

        if self.settings.derive_missing_sub_zones:
            rows += self._derive_missing(db, covered)
        return rows

    def _derive_missing(self, db: Session, covered: set) -> int:
        rows = 0
        for zone in db.query(Zone).order_by(Zone.zone_id).all():
            if zone.zone_id in covered:
                continue
            try:
                geometry = parse_geometry(zone.boundary_json)
            except MalformedGeometryError as e:
                logger.warning("Cannot derive sectors for precinct", zone_id=zone.zone_id, error=str(e))
                continue

            halves = bisect_ring(geometry.polygons[0][0])
            if len(halves) < 2:
                continue

            for suffix, ring in zip("AB", halves):
                db.add(SubZone(
                    zone_id=zone.zone_id,
                    sub_zone_id=f"{zone.zone_id}{suffix}",
                    boundary_json=json.dumps({"type": "Polygon", "coordinates": [ring]}),
                    bounding_box_json=json.dumps(compute_bounding_box([ring]).to_array()),
                    derived=1,
                ))
                rows += 1

        if rows:
            logger.info("Derived placeholder sectors", rows=rows)
        return rows


class LawLibrarySeeder(DatasetSeeder):
    """Reference-text categories and entries"""

    dataset_key = DatasetKey.LAWS
    filename = "laws.json"

    def clear(self, db: Session) -> None:
        db.query(LawEntry).delete()
        db.query(LawCategory).delete()

    def count_rows(self, db: Session) -> int:
        return db.query(LawCategory).count()

    def populate(self, db: Session, payload: Dict[str, Any]) -> int:
        categories = {}
        for item in payload.get("categories", []):
            category = LawCategory(
                category_id=item["category_id"],
                name=item["name"],
                display_order=int(item["display_order"]),
                entry_count=0,
            )
            categories[category.category_id] = category
            db.add(category)

        entries = 0
        for item in payload.get("entries", []):
            category = categories.get(item["category_id"])
            if category is None:
                raise ValueError(f"Law entry {item.get('section_number')} has unknown category {item['category_id']}")
            db.add(LawEntry(
                category_id=category.category_id,
                section_number=item["section_number"],
                title=item["title"],
                body_text=item["body_text"],
            ))
            category.entry_count += 1
            entries += 1

        return len(categories) + entries


class ScheduleSeeder(DatasetSeeder):
    """Squads and their duty patterns"""

    dataset_key = DatasetKey.SCHEDULES
    filename = "schedules.json"

    def clear(self, db: Session) -> None:
        db.query(Schedule).delete()
        db.query(Squad).delete()

    def count_rows(self, db: Session) -> int:
        return db.query(Squad).count()

    def populate(self, db: Session, payload: Dict[str, Any]) -> int:
        squad_ids = set()
        for item in payload.get("squads", []):
            db.add(Squad(
                squad_id=int(item["squad_id"]),
                name=item["name"],
                display_order=int(item.get("display_order", item["squad_id"])),
            ))
            squad_ids.add(int(item["squad_id"]))
        db.flush()

        schedules = 0
        for item in payload.get("schedules", []):
            # Misconfigured patterns fail the whole reseed here
            definition = load_schedule_definition(item)
            if definition.squad_id not in squad_ids:
                raise ValueError(f"Schedule references unknown squad {definition.squad_id}")
            db.add(Schedule(
                squad_id=definition.squad_id,
                kind=definition.kind.value,
                cycle_length=definition.cycle_length,
                pattern_json=json.dumps(list(definition.pattern)),
                anchor_date=definition.anchor_date,
                squad_offset=definition.offset,
            ))
            schedules += 1

        return len(squad_ids) + schedules


# Seeding order: sectors derive from precinct rows, so precincts come first
SEEDERS = {
    DatasetKey.SCHEDULES: ScheduleSeeder,
    DatasetKey.LAWS: LawLibrarySeeder,
    DatasetKey.PRECINCTS: PrecinctSeeder,
    DatasetKey.SECTORS: SectorSeeder,
}


def get_seeder(dataset_key: Union[DatasetKey, str], **kwargs) -> DatasetSeeder:
    return SEEDERS[DatasetKey(dataset_key)](**kwargs)
