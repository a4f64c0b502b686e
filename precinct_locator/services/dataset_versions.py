"""
Dataset version manager.

Tracks one version string per logical dataset and decides when a dataset
must be dropped and reseeded.

Comparison rule: versions are compared semantically by default, segment by
segment with numeric segments compared as integers ("10.0.0" > "9.0.0").
Earlier releases compared raw strings, which orders "9.0.0" above "10.0.0";
that rule is still available as VersionComparison.LEXICOGRAPHIC for seed
data that depends on it.
"""

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Iterable, List, Optional, Tuple, Union

import structlog
from sqlalchemy.orm import Session

from precinct_locator.config import settings
from precinct_locator.exceptions import DatasetUpgradeError
from precinct_locator.models.dataset_versions import DatasetVersion

logger = structlog.get_logger()

_SEGMENT_SPLIT = re.compile(r"[._]")
_PRERELEASE_SPLIT = re.compile(r"[.\-_]")
_LEADING_DIGITS = re.compile(r"^(\d+)(.*)$")

Segment = Tuple[int, int, str]
VersionKey = Tuple[Tuple[Segment, ...], Tuple]


class DatasetKey(str, Enum):
    """Logical datasets with their own version record"""
    PRECINCTS = "precincts"
    SECTORS = "sectors"
    LAWS = "laws"
    SCHEDULES = "schedules"


class VersionComparison(str, Enum):
    """Ordering rule for version strings"""
    SEMANTIC = "semantic"
    LEXICOGRAPHIC = "lexicographic"


def _segment_key(segment: str) -> Segment:
    match = _LEADING_DIGITS.match(segment)
    if match:
        return (0, int(match.group(1)), match.group(2))
    return (1, 0, segment)


def semantic_version_key(version: str) -> VersionKey:
    """
    Sort key for dotted versions.

    Build metadata after "+" is ignored. A "-prerelease" part sorts below the
    same release without one ("1.0.0-rc1" < "1.0.0"). Numeric segments sort
    numerically and ahead of text segments; trailing zero segments of the
    release are dropped so "1.0" == "1.0.0".
    """
    text = version.strip()
    if text[:1] in ("v", "V"):
        text = text[1:]
    text = text.split("+", 1)[0]
    release, _, prerelease = text.partition("-")

    key = [_segment_key(segment) for segment in _SEGMENT_SPLIT.split(release)]
    while key and key[-1] == (0, 0, ""):
        key.pop()

    if prerelease:
        return tuple(key), (0, tuple(_segment_key(segment) for segment in _PRERELEASE_SPLIT.split(prerelease)))
    return tuple(key), (1,)


def compare_versions(left: str, right: str,
                     rule: Union[VersionComparison, str] = VersionComparison.SEMANTIC) -> int:
    """-1, 0 or 1 as left is older than, equal to, or newer than right"""
    rule = VersionComparison(rule)
    if rule == VersionComparison.LEXICOGRAPHIC:
        a, b = left, right
    else:
        a, b = semantic_version_key(left), semantic_version_key(right)
    return (a > b) - (a < b)


ReseedFn = Callable[[Session], int]


class DatasetVersionManager:
    """Reads and writes dataset_versions rows on an injected session"""

    def __init__(self, db: Session, comparison: Union[VersionComparison, str, None] = None):
        self.db = db
        self.comparison = VersionComparison(comparison or settings.version_comparison)

    def needs_upgrade(
        self,
        dataset_key: Union[DatasetKey, str],
        current_version: Optional[str],
        target_version: str,
    ) -> bool:
        """True when no version is recorded or current sorts strictly before target"""
        key = DatasetKey(dataset_key)
        if current_version is None or current_version == "":
            logger.info("Dataset has no recorded version", dataset_key=key.value, target_version=target_version)
            return True
        return compare_versions(current_version, target_version, self.comparison) < 0

    def get_version(self, dataset_key: Union[DatasetKey, str]) -> Optional[DatasetVersion]:
        key = DatasetKey(dataset_key)
        return self.db.query(DatasetVersion).filter(DatasetVersion.dataset_key == key.value).first()

    def list_versions(self) -> List[DatasetVersion]:
        return self.db.query(DatasetVersion).order_by(DatasetVersion.dataset_key).all()

    def record_version(
        self,
        dataset_key: Union[DatasetKey, str],
        version: str,
        timestamp: Optional[datetime] = None,
        commit: bool = True,
    ) -> DatasetVersion:
        """Upsert the version; the timestamp is refreshed even when unchanged"""
        key = DatasetKey(dataset_key)
        # Naive UTC, matching the column type
        synced_at = timestamp or datetime.now(timezone.utc).replace(tzinfo=None)

        record = self.get_version(key)
        if record is None:
            record = DatasetVersion(dataset_key=key.value, version=version, last_synced_at=synced_at)
            self.db.add(record)
        else:
            record.version = version
            record.last_synced_at = synced_at

        if commit:
            self.db.commit()
        else:
            self.db.flush()

        logger.info("Dataset version recorded", dataset_key=key.value, version=version)
        return record

    def is_initial_load_complete(self, required_keys: Iterable[Union[DatasetKey, str]]) -> bool:
        """True only when every required dataset has a recorded version"""
        keys = {DatasetKey(key).value for key in required_keys}
        if not keys:
            return True
        recorded = {
            row.dataset_key
            for row in self.db.query(DatasetVersion.dataset_key)
            .filter(DatasetVersion.dataset_key.in_(keys))
            .all()
        }
        return keys <= recorded

    def upgrade(
        self,
        dataset_key: Union[DatasetKey, str],
        target_version: str,
        reseed: ReseedFn,
        force: bool = False,
    ) -> bool:
        """
        Drop and repopulate a dataset, then record target_version.

        A forced reseed over a newer recorded version keeps that version;
        versions never move backwards.

        The reseed and the version write share one transaction. If the reseed
        fails partway, everything is rolled back and the old version (or its
        absence) stays recorded, so the next startup retries.

        Returns:
            True when a reseed ran, False when the dataset was already current

        Raises:
            DatasetUpgradeError: the reseed or version write failed
        """
        key = DatasetKey(dataset_key)
        current = self.get_version(key)
        current_version = current.version if current else None

        if not force and not self.needs_upgrade(key, current_version, target_version):
            logger.info(
                "Dataset is current",
                dataset_key=key.value,
                version=current_version,
                target_version=target_version,
            )
            return False

        logger.info(
            "Upgrading dataset",
            dataset_key=key.value,
            from_version=current_version,
            target_version=target_version,
            forced=force,
        )

        recorded_version = target_version
        if current_version and compare_versions(current_version, target_version, self.comparison) > 0:
            logger.warning(
                "Recorded version is newer than target, keeping it",
                dataset_key=key.value,
                version=current_version,
                target_version=target_version,
            )
            recorded_version = current_version

        try:
            row_count = reseed(self.db)
            self.record_version(key, recorded_version, commit=False)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(
                "Dataset upgrade failed",
                dataset_key=key.value,
                target_version=target_version,
                error=str(e),
                exc_info=True,
            )
            raise DatasetUpgradeError(key.value, target_version, str(e)) from e

        logger.info(
            "Dataset upgraded",
            dataset_key=key.value,
            version=recorded_version,
            rows=row_count,
        )
        return True
