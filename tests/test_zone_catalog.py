"""
Tests for the zone catalog snapshot against seeded precinct data
"""

import json

import pytest

from precinct_locator.models.zones import SubZone, Zone
from precinct_locator.services.zone_catalog import ZoneCatalog, load_opening_hours
from precinct_locator.services.zone_resolver import (
    MATCH_NEAREST, MATCH_POLYGON, MATCH_UNRESOLVED, ZoneResolver,
)
from tests.helpers import point


def add_zone(session, zone_id, boundary_json, bounding_box_json="[0, 0, 1, 1]"):
    session.add(Zone(
        zone_id=zone_id,
        name=f"Broken {zone_id}",
        address="",
        phone="",
        borough=None,
        boundary_json=boundary_json,
        centroid_lat=0.5,
        centroid_lng=0.5,
        bounding_box_json=bounding_box_json,
        opening_hours_json="[]",
    ))
    session.commit()


class TestZoneSnapshot:
    """Rows -> validated shapes"""

    def test_snapshot_loads_every_seeded_shape(self, seeded_session):
        snapshot = ZoneCatalog(seeded_session).snapshot()
        assert [zone.zone_id for zone in snapshot.zones] == [1, 5, 6, 7, 14, 18, 40, 60, 100, 120]
        assert len(snapshot.sub_zones) == 16
        assert snapshot.quarantined == ()

    def test_zone_attributes_carried(self, seeded_session):
        zone = ZoneCatalog(seeded_session).to_zone_shape(ZoneCatalog(seeded_session).get_zone(14))
        assert zone.attributes["name"] == "14th Precinct (Midtown South)"
        assert zone.attributes["borough"] == "Manhattan"

    def test_sub_zones_for_zone(self, seeded_session):
        snapshot = ZoneCatalog(seeded_session).snapshot()
        assert [s.sub_zone_id for s in snapshot.sub_zones_for(1)] == ["1A", "1B"]
        assert [s.sub_zone_id for s in snapshot.sub_zones_for(6)] == ["6A", "6B"]

    def test_snapshot_limited_to_zone(self, seeded_session):
        snapshot = ZoneCatalog(seeded_session).snapshot(zone_id=5)
        assert [s.sub_zone_id for s in snapshot.sub_zones] == ["5A"]

    @pytest.mark.parametrize("boundary_json", [
        "{}",
        "not json",
        '{"type": "Polygon", "coordinates": [[[0, 0], [1, 0], [1, 1]]]}',
    ])
    def test_malformed_boundary_is_quarantined(self, seeded_session, boundary_json):
        add_zone(seeded_session, 999, boundary_json)

        snapshot = ZoneCatalog(seeded_session).snapshot()

        assert 999 not in [zone.zone_id for zone in snapshot.zones]
        assert len(snapshot.zones) == 10
        assert [(q.kind, q.identifier) for q in snapshot.quarantined] == [("zone", "999")]

    def test_malformed_bounding_box_is_quarantined(self, seeded_session):
        boundary = json.dumps({"type": "Polygon", "coordinates": [[[0, 0], [1, 0], [1, 1], [0, 0]]]})
        add_zone(seeded_session, 998, boundary, bounding_box_json="[1, 1, 0]")

        snapshot = ZoneCatalog(seeded_session).snapshot()
        assert snapshot.quarantined[0].identifier == "998"
        assert "bounding box" in snapshot.quarantined[0].reason

    def test_malformed_sub_zone_is_quarantined(self, seeded_session):
        seeded_session.add(SubZone(
            zone_id=1, sub_zone_id="1Z", boundary_json="[]", bounding_box_json="[0, 0, 1, 1]", derived=0,
        ))
        seeded_session.commit()

        snapshot = ZoneCatalog(seeded_session).snapshot()
        assert [(q.kind, q.identifier) for q in snapshot.quarantined] == [("sub_zone", "1/1Z")]
        assert len(snapshot.sub_zones) == 16

    def test_remaining_shapes_still_resolve(self, seeded_session):
        add_zone(seeded_session, 999, "{}")
        snapshot = ZoneCatalog(seeded_session).snapshot()

        resolution = ZoneResolver(0.0009).resolve(point(40.710, -74.010), snapshot.zones, snapshot.sub_zones)
        assert resolution.zone.zone_id == 1


class TestSeededResolution:
    """End-to-end resolution over the bundled precincts"""

    def setup_method(self):
        self.resolver = ZoneResolver(max_squared_distance=0.0009)

    def resolve(self, session, lat, lng):
        snapshot = ZoneCatalog(session).snapshot()
        return self.resolver.resolve(point(lat, lng), snapshot.zones, snapshot.sub_zones)

    def test_point_in_precinct_and_sector(self, seeded_session):
        resolution = self.resolve(seeded_session, 40.710, -74.010)
        assert resolution.match_level == MATCH_POLYGON
        assert resolution.zone.zone_id == 1
        assert resolution.sub_zone.sub_zone_id == "1A"

    def test_point_in_derived_sector(self, seeded_session):
        resolution = self.resolve(seeded_session, 40.734, -74.0013)
        assert resolution.zone.zone_id == 6
        assert resolution.sub_zone.sub_zone_id == "6A"
        assert resolution.sub_zone.derived is True

    def test_point_just_outside_precinct_uses_nearest(self, seeded_session):
        resolution = self.resolve(seeded_session, 40.705, -74.005)
        assert resolution.match_level == MATCH_NEAREST
        assert resolution.zone.zone_id == 1
        assert resolution.squared_distance < 0.0009

    def test_point_outside_city_is_unresolved(self, seeded_session):
        resolution = self.resolve(seeded_session, 40.900, -73.500)
        assert resolution.match_level == MATCH_UNRESOLVED
        assert resolution.zone is None


class TestOpeningHours:
    """Sunday-first opening hours table"""

    def test_default_table_is_open_all_week(self, seeded_session):
        hours = load_opening_hours(ZoneCatalog(seeded_session).get_zone(1))
        assert [entry["day"] for entry in hours][0] == "Sunday"
        assert len(hours) == 7
        assert all(entry["is_open"] for entry in hours)

    def test_explicit_table(self, seeded_session):
        hours = load_opening_hours(ZoneCatalog(seeded_session).get_zone(120))
        assert hours[0] == {"day": "Sunday", "hours": "Closed", "is_open": False}
        assert hours[1]["is_open"] is True

    def test_unreadable_table(self, seeded_session):
        row = ZoneCatalog(seeded_session).get_zone(5)
        row.opening_hours_json = "{broken"
        assert load_opening_hours(row) == []
