"""Health check endpoints"""

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from precinct_locator.config import Settings
from precinct_locator.dependencies import get_database, get_db, get_settings
from precinct_locator.database import Database
from precinct_locator.services.dataset_versions import DatasetVersionManager

router = APIRouter()


@router.get("/healthz")
async def health_check():
    """Basic health check"""
    return {"status": "healthy", "service": "precinct-locator"}


@router.get("/readyz")
async def readiness_check(
    request: Request,
    database: Database = Depends(get_database),
    db: Session = Depends(get_db),
    app_settings: Settings = Depends(get_settings),
):
    """Ready once the database answers and every required dataset is loaded"""
    startup_error = getattr(request.app.state, "startup_error", None)
    if startup_error:
        raise HTTPException(status_code=503, detail=f"Service not ready: {startup_error}")

    try:
        database.ping()
    except Exception as e:
        raise HTTPException(status_code=503, detail=f"Service not ready: {str(e)}")

    manager = DatasetVersionManager(db, app_settings.version_comparison)
    required = app_settings.get_required_datasets()
    if not manager.is_initial_load_complete(required):
        raise HTTPException(status_code=503, detail="Service not ready: initial dataset load incomplete")

    return {
        "status": "ready",
        "service": "precinct-locator",
        "dependencies": {
            "database": "healthy",
            "datasets": required,
        }
    }
