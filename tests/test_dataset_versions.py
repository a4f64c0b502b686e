"""
Tests for the dataset version manager

Upgrade decisions under both comparison rules, version records, the initial
load gate, and the guarded upgrade sequence.
"""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from precinct_locator.exceptions import DatasetUpgradeError
from precinct_locator.models.dataset_versions import DatasetVersion
from precinct_locator.models.schedules import Squad
from precinct_locator.services.dataset_versions import (
    DatasetKey, DatasetVersionManager, VersionComparison, compare_versions, semantic_version_key,
)


class TestVersionComparison:
    """Semantic and lexicographic ordering"""

    def test_semantic_numeric_segments(self):
        assert compare_versions("9.0.0", "10.0.0") == -1
        assert compare_versions("1.10.0", "1.9.0") == 1
        assert compare_versions("2.0.0", "2.0.0") == 0

    def test_lexicographic_compares_raw_strings(self):
        assert compare_versions("9.0.0", "10.0.0", VersionComparison.LEXICOGRAPHIC) == 1
        assert compare_versions("1.0.0", "1.0.1", "lexicographic") == -1

    def test_trailing_zero_segments_are_equal(self):
        assert semantic_version_key("1.0") == semantic_version_key("1.0.0")
        assert compare_versions("1", "1.0.0") == 0

    def test_leading_v_is_ignored(self):
        assert compare_versions("v1.2.0", "1.2.0") == 0

    def test_prerelease_sorts_below_release(self):
        assert compare_versions("1.0.0-rc1", "1.0.0") == -1
        assert compare_versions("2.0.0-beta", "2.0.0") == -1
        assert compare_versions("2.0.0-beta", "1.9.0") == 1

    def test_prerelease_identifiers_ordered(self):
        assert compare_versions("1.0.0-alpha", "1.0.0-beta") == -1
        assert compare_versions("1.0.0-rc.2", "1.0.0-rc.10") == -1

    def test_build_metadata_is_ignored(self):
        assert compare_versions("1.2.0+20260101", "1.2.0") == 0
        assert compare_versions("1.2.0-rc1+build.5", "1.2.0-rc1") == 0


class TestNeedsUpgrade:
    """Upgrade decision"""

    def setup_method(self):
        self.manager = DatasetVersionManager(Mock(), VersionComparison.SEMANTIC)
        self.legacy = DatasetVersionManager(Mock(), VersionComparison.LEXICOGRAPHIC)

    @pytest.mark.parametrize("current", [None, ""])
    def test_absent_version_needs_upgrade(self, current):
        assert self.manager.needs_upgrade(DatasetKey.PRECINCTS, current, "1.0.0") is True
        assert self.legacy.needs_upgrade(DatasetKey.PRECINCTS, current, "1.0.0") is True

    def test_equal_versions_are_current(self):
        assert self.manager.needs_upgrade("laws", "1.0.0", "1.0.0") is False

    def test_older_version_needs_upgrade(self):
        assert self.manager.needs_upgrade("sectors", "1.0.0", "1.1.0") is True

    def test_newer_recorded_version_is_not_downgraded(self):
        assert self.manager.needs_upgrade("sectors", "2.0.0", "1.1.0") is False

    def test_release_candidate_upgrades_to_release(self):
        assert self.manager.needs_upgrade(DatasetKey.PRECINCTS, "1.0.0-rc1", "1.0.0") is True
        assert self.manager.needs_upgrade(DatasetKey.PRECINCTS, "1.0.0", "1.0.0-rc1") is False

    def test_digit_count_difference(self):
        assert self.manager.needs_upgrade(DatasetKey.SCHEDULES, "9.0.0", "10.0.0") is True
        assert self.legacy.needs_upgrade(DatasetKey.SCHEDULES, "9.0.0", "10.0.0") is False

    def test_unknown_dataset_key_rejected(self):
        with pytest.raises(ValueError):
            self.manager.needs_upgrade("parking", "1.0.0", "1.0.0")

    def test_comparison_defaults_to_settings(self):
        assert DatasetVersionManager(Mock()).comparison == VersionComparison.SEMANTIC


class TestVersionRecords:
    """Upsert, listing and the initial load gate"""

    def test_get_version_absent(self, db_session):
        assert DatasetVersionManager(db_session).get_version(DatasetKey.LAWS) is None

    def test_record_version_upserts_and_refreshes_timestamp(self, db_session):
        manager = DatasetVersionManager(db_session)
        first = datetime(2026, 1, 1, 8, 0, 0)
        second = datetime(2026, 2, 1, 8, 0, 0)

        manager.record_version(DatasetKey.LAWS, "1.0.0", timestamp=first)
        manager.record_version(DatasetKey.LAWS, "1.0.0", timestamp=second)

        rows = db_session.query(DatasetVersion).all()
        assert len(rows) == 1
        assert rows[0].version == "1.0.0"
        assert rows[0].last_synced_at == second

    def test_default_timestamp_is_naive_utc(self, db_session):
        before = datetime.now(timezone.utc).replace(tzinfo=None)
        record = DatasetVersionManager(db_session).record_version(DatasetKey.LAWS, "1.0.0")
        after = datetime.now(timezone.utc).replace(tzinfo=None)

        assert record.last_synced_at.tzinfo is None
        assert before <= record.last_synced_at <= after

    def test_list_versions_sorted_by_key(self, db_session):
        manager = DatasetVersionManager(db_session)
        manager.record_version("sectors", "1.0.0")
        manager.record_version("laws", "2.0.0")
        assert [row.dataset_key for row in manager.list_versions()] == ["laws", "sectors"]

    def test_initial_load_requires_every_key(self, db_session):
        manager = DatasetVersionManager(db_session)
        required = ["precincts", "sectors", "laws"]

        manager.record_version("precincts", "1.0.0")
        manager.record_version("sectors", "1.0.0")
        assert manager.is_initial_load_complete(required) is False

        manager.record_version("laws", "1.0.0")
        assert manager.is_initial_load_complete(required) is True
        assert manager.is_initial_load_complete(required + ["schedules"]) is False

    def test_initial_load_with_no_requirements(self, db_session):
        assert DatasetVersionManager(db_session).is_initial_load_complete([]) is True


class TestGuardedUpgrade:
    """Version is recorded only after a successful reseed"""

    def test_successful_upgrade_records_version(self, db_session):
        manager = DatasetVersionManager(db_session)
        reseed = Mock(return_value=12)

        assert manager.upgrade(DatasetKey.SCHEDULES, "1.0.0", reseed) is True
        reseed.assert_called_once_with(db_session)
        assert manager.get_version(DatasetKey.SCHEDULES).version == "1.0.0"

    def test_current_dataset_is_not_reseeded(self, db_session):
        manager = DatasetVersionManager(db_session)
        manager.record_version(DatasetKey.SCHEDULES, "1.0.0")
        reseed = Mock(return_value=0)

        assert manager.upgrade(DatasetKey.SCHEDULES, "1.0.0", reseed) is False
        reseed.assert_not_called()

    def test_force_reseeds_current_dataset(self, db_session):
        manager = DatasetVersionManager(db_session)
        manager.record_version(DatasetKey.SCHEDULES, "1.0.0")
        reseed = Mock(return_value=0)

        assert manager.upgrade(DatasetKey.SCHEDULES, "1.0.0", reseed, force=True) is True
        reseed.assert_called_once()

    def test_forced_reseed_never_downgrades(self, db_session):
        manager = DatasetVersionManager(db_session)
        manager.record_version(DatasetKey.SECTORS, "2.0.0")
        reseed = Mock(return_value=3)

        assert manager.upgrade(DatasetKey.SECTORS, "1.0.0", reseed, force=True) is True
        reseed.assert_called_once()
        assert manager.get_version(DatasetKey.SECTORS).version == "2.0.0"

    def test_failed_reseed_leaves_version_unrecorded(self, db_session):
        manager = DatasetVersionManager(db_session)

        def partial_reseed(db):
            db.add(Squad(squad_id=1, name="Squad 1", display_order=1))
            db.flush()
            raise RuntimeError("seed file truncated")

        with pytest.raises(DatasetUpgradeError) as exc_info:
            manager.upgrade(DatasetKey.SCHEDULES, "1.0.0", partial_reseed)

        error = exc_info.value
        assert error.dataset_key == "schedules"
        assert error.target_version == "1.0.0"
        assert "seed file truncated" in error.reason
        assert error.retryable is True

        assert manager.get_version(DatasetKey.SCHEDULES) is None
        assert db_session.query(Squad).count() == 0

    def test_failed_upgrade_keeps_previous_version(self, db_session):
        manager = DatasetVersionManager(db_session)
        manager.record_version(DatasetKey.PRECINCTS, "1.0.0")

        with pytest.raises(DatasetUpgradeError):
            manager.upgrade(DatasetKey.PRECINCTS, "2.0.0", Mock(side_effect=ValueError("bad boundary")))

        assert manager.get_version(DatasetKey.PRECINCTS).version == "1.0.0"

    def test_retry_after_failure_succeeds(self, db_session):
        manager = DatasetVersionManager(db_session)
        reseed = Mock(side_effect=[RuntimeError("disk full"), 4])

        with pytest.raises(DatasetUpgradeError):
            manager.upgrade(DatasetKey.LAWS, "1.0.0", reseed)
        assert manager.upgrade(DatasetKey.LAWS, "1.0.0", reseed) is True
        assert manager.get_version(DatasetKey.LAWS).version == "1.0.0"
