"""Duty / day-off calendar calculation"""

import calendar
import json
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

import structlog
from pydantic import ValidationError
from sqlalchemy.orm import Session

from precinct_locator.exceptions import ScheduleConfigurationError
from precinct_locator.models.schedules import Schedule, Squad
from precinct_locator.schemas.schedule import OFF_TOKEN, PatternKind, ScheduleDefinition

logger = structlog.get_logger(__name__)

DateLike = Union[date, datetime, str]


def _as_calendar_date(value: DateLike) -> date:
    """Date-only value; datetimes drop their time and timezone"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def sunday_first_weekday(day: date) -> int:
    """Day of week with Sunday = 0 ... Saturday = 6"""
    return day.isoweekday() % 7


def pattern_index(target: DateLike, schedule: ScheduleDefinition) -> int:
    """Index into schedule.pattern that applies on target"""
    target = _as_calendar_date(target)
    if schedule.kind == PatternKind.WEEKLY:
        return sunday_first_weekday(target)

    days_since_anchor = (target - schedule.anchor_date).days
    # Python's % already lands in [0, cycle_length) for negative day counts
    return (days_since_anchor + schedule.effective_offset) % schedule.cycle_length


def is_off(target: DateLike, schedule: ScheduleDefinition) -> bool:
    """True when the squad is off duty on target"""
    return schedule.pattern[pattern_index(target, schedule)] == OFF_TOKEN


def compute_month(year: int, month: int, schedule: ScheduleDefinition) -> Dict[int, bool]:
    """
    Off-day map for a calendar month.

    Args:
        year: Calendar year
        month: 1-based month (January = 1)
        schedule: Validated schedule definition

    Returns:
        Day of month (1..N) -> True when off
    """
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month {month}. Must be 1-12.")

    days_in_month = calendar.monthrange(year, month)[1]
    return {
        day: is_off(date(year, month, day), schedule)
        for day in range(1, days_in_month + 1)
    }


def load_schedule_definition(payload: Dict[str, Any]) -> ScheduleDefinition:
    """
    Validate a raw schedule payload.

    Raises:
        ScheduleConfigurationError: pattern length, cycle length or token
        violations, reported at load time rather than as wrong calendars
    """
    try:
        return ScheduleDefinition.model_validate(payload)
    except ValidationError as e:
        messages = "; ".join(error["msg"] for error in e.errors())
        raise ScheduleConfigurationError(messages, squad_id=payload.get("squad_id")) from e


class ScheduleService:
    """Loads squads and their schedule definitions from the database"""

    def __init__(self, db: Session):
        self.db = db

    def list_squads(self) -> List[Squad]:
        return self.db.query(Squad).order_by(Squad.display_order, Squad.squad_id).all()

    def get_squad(self, squad_id: int) -> Optional[Squad]:
        return self.db.query(Squad).filter(Squad.squad_id == squad_id).first()

    def get_schedule(self, squad_id: int) -> Optional[ScheduleDefinition]:
        """Validated schedule for a squad, None when the squad has none"""
        row = self.db.query(Schedule).filter(Schedule.squad_id == squad_id).first()
        if row is None:
            return None
        return self.to_definition(row)

    def load_all(self) -> Dict[int, ScheduleDefinition]:
        """Every stored schedule; the first misconfigured one raises"""
        rows = self.db.query(Schedule).order_by(Schedule.squad_id).all()
        return {row.squad_id: self.to_definition(row) for row in rows}

    def pattern_kinds(self) -> Dict[int, Optional[PatternKind]]:
        """
        Pattern kind per squad with a schedule.

        A misconfigured schedule maps to None and is logged; the per-squad
        calendar lookups still raise for it.
        """
        kinds: Dict[int, Optional[PatternKind]] = {}
        for row in self.db.query(Schedule).order_by(Schedule.squad_id).all():
            try:
                kinds[row.squad_id] = self.to_definition(row).kind
            except ScheduleConfigurationError as e:
                logger.warning("Skipping misconfigured schedule", squad_id=row.squad_id, error=str(e))
                kinds[row.squad_id] = None
        return kinds

    def month_for_squad(self, squad_id: int, year: int, month: int) -> Optional[Dict[int, bool]]:
        schedule = self.get_schedule(squad_id)
        if schedule is None:
            return None
        return compute_month(year, month, schedule)

    @staticmethod
    def to_definition(row: Schedule) -> ScheduleDefinition:
        try:
            pattern = json.loads(row.pattern_json)
        except ValueError as e:
            raise ScheduleConfigurationError(f"Unreadable pattern JSON: {e}", squad_id=row.squad_id) from e

        definition = load_schedule_definition({
            "squad_id": row.squad_id,
            "kind": row.kind,
            "cycle_length": row.cycle_length,
            "pattern": pattern,
            "anchor_date": row.anchor_date,
            "offset": row.squad_offset,
        })
        logger.debug("Schedule loaded", squad_id=row.squad_id, kind=definition.kind.value)
        return definition
