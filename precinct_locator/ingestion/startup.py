"""Startup sequence: consult dataset versions once and reseed what is stale"""

from dataclasses import dataclass, field
from typing import List, Optional

import structlog

from precinct_locator.config import Settings, settings
from precinct_locator.database import Database
from precinct_locator.ingestion.seeders import SEEDERS
from precinct_locator.observability.metrics import DATASET_UPGRADES
from precinct_locator.services.dataset_versions import DatasetKey, DatasetVersionManager

logger = structlog.get_logger()


@dataclass
class BootstrapReport:
    """Which datasets were reseeded and which were already current"""
    upgraded: List[str] = field(default_factory=list)
    current: List[str] = field(default_factory=list)
    initial_load_complete: bool = False


class DatasetBootstrapper:
    """
    Runs the guarded upgrade for every dataset, in seeding order.

    Stops at the first DatasetUpgradeError; datasets upgraded before the
    failure keep their new version.
    """

    def __init__(self, database: Database, app_settings: Optional[Settings] = None,
                 data_dir: Optional[str] = None):
        self.database = database
        self.settings = app_settings or settings
        self.data_dir = data_dir

    def run(self, force: bool = False) -> BootstrapReport:
        report = BootstrapReport()
        targets = self.settings.get_target_versions()

        db = self.database.session()
        try:
            manager = DatasetVersionManager(db, self.settings.version_comparison)
            precincts_reseeded = False

            for key, seeder_cls in SEEDERS.items():
                seeder = seeder_cls(data_dir=self.data_dir, app_settings=self.settings)
                reseed_now = force

                recorded = manager.get_version(key)
                if recorded is not None and seeder.count_rows(db) == 0:
                    logger.warning(
                        "Dataset version recorded but table is empty, reseeding",
                        dataset_key=key.value,
                        version=recorded.version,
                    )
                    reseed_now = True

                # Derived sectors follow their precinct rings
                if key == DatasetKey.SECTORS and precincts_reseeded and recorded is not None:
                    reseed_now = True

                try:
                    upgraded = manager.upgrade(key, targets[key.value], seeder.reseed, force=reseed_now)
                except Exception:
                    DATASET_UPGRADES.labels(dataset_key=key.value, outcome="failed").inc()
                    raise

                if upgraded:
                    DATASET_UPGRADES.labels(dataset_key=key.value, outcome="upgraded").inc()
                    report.upgraded.append(key.value)
                    if key == DatasetKey.PRECINCTS:
                        precincts_reseeded = True
                else:
                    report.current.append(key.value)

            report.initial_load_complete = manager.is_initial_load_complete(
                self.settings.get_required_datasets()
            )
        finally:
            db.close()

        logger.info(
            "Dataset bootstrap complete",
            upgraded=report.upgraded,
            current=report.current,
            initial_load_complete=report.initial_load_complete,
        )
        return report
