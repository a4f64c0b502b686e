"""Squad duty calendar endpoints"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from precinct_locator.dependencies import get_db
from precinct_locator.schemas.schedule import (
    DayScheduleResponse, MonthScheduleResponse, ScheduleDefinition, SquadResponse,
)
from precinct_locator.services.schedule_engine import ScheduleService, compute_month, is_off

router = APIRouter()


def _require_schedule(service: ScheduleService, squad_id: int) -> ScheduleDefinition:
    if service.get_squad(squad_id) is None:
        raise HTTPException(status_code=404, detail=f"Squad {squad_id} not found")
    schedule = service.get_schedule(squad_id)
    if schedule is None:
        raise HTTPException(status_code=404, detail=f"Squad {squad_id} has no schedule")
    return schedule


@router.get("/squads", response_model=List[SquadResponse])
async def list_squads(db: Session = Depends(get_db)):
    """Squads in display order with their pattern kind (None when unset or misconfigured)"""
    service = ScheduleService(db)
    kinds = service.pattern_kinds()
    return [
        SquadResponse(
            squad_id=squad.squad_id,
            name=squad.name,
            display_order=squad.display_order,
            kind=kinds.get(squad.squad_id),
        )
        for squad in service.list_squads()
    ]


@router.get("/{squad_id}/month", response_model=MonthScheduleResponse)
async def get_month(
    squad_id: int,
    year: int = Query(..., ge=1, le=9999, description="Calendar year"),
    month: int = Query(..., ge=1, le=12, description="Month, January = 1"),
    db: Session = Depends(get_db),
):
    """Off-day map for every day of the month"""
    schedule = _require_schedule(ScheduleService(db), squad_id)
    days = compute_month(year, month, schedule)
    return MonthScheduleResponse(
        squad_id=squad_id,
        year=year,
        month=month,
        days=days,
        off_days=[day for day, off in days.items() if off],
    )


@router.get("/{squad_id}/day", response_model=DayScheduleResponse)
async def get_day(
    squad_id: int,
    day: Optional[date] = Query(None, alias="date", description="ISO date, defaults to today"),
    db: Session = Depends(get_db),
):
    """Duty status for one date"""
    schedule = _require_schedule(ScheduleService(db), squad_id)
    target = day or date.today()
    return DayScheduleResponse(squad_id=squad_id, date=target, is_off=is_off(target, schedule))
