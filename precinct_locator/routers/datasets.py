"""Dataset version status endpoints"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from precinct_locator.config import Settings
from precinct_locator.dependencies import get_db, get_settings
from precinct_locator.schemas.zones import DatasetStatusResponse, DatasetVersionResponse
from precinct_locator.services.dataset_versions import DatasetKey, DatasetVersionManager

router = APIRouter()


@router.get("/versions", response_model=DatasetStatusResponse)
async def list_dataset_versions(
    db: Session = Depends(get_db),
    app_settings: Settings = Depends(get_settings),
):
    """Recorded version of every dataset against its target version"""
    manager = DatasetVersionManager(db, app_settings.version_comparison)
    recorded = {row.dataset_key: row for row in manager.list_versions()}
    targets = app_settings.get_target_versions()

    datasets = []
    for key in DatasetKey:
        row = recorded.get(key.value)
        current = row.version if row else None
        datasets.append(DatasetVersionResponse(
            dataset_key=key.value,
            version=current,
            last_synced_at=row.last_synced_at.isoformat() if row else None,
            target_version=targets[key.value],
            needs_upgrade=manager.needs_upgrade(key, current, targets[key.value]),
        ))

    return DatasetStatusResponse(
        initial_load_complete=manager.is_initial_load_complete(app_settings.get_required_datasets()),
        comparison_rule=manager.comparison.value,
        datasets=datasets,
    )
