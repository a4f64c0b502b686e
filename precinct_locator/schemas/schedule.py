"""Schedule definition schema and calendar responses"""

from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DUTY_TOKEN = "W"
OFF_TOKEN = "O"
DAYS_PER_WEEK = 7

# Names used by older seed files
LEGACY_KIND_ALIASES = {"rotating": "cyclic", "steady": "weekly"}


class PatternKind(str, Enum):
    """How a pattern index is derived from a date"""
    CYCLIC = "cyclic"
    WEEKLY = "weekly"


class ScheduleDefinition(BaseModel):
    """
    Validated duty pattern for one squad.

    Cyclic patterns are indexed by (days since anchor + offset) mod cycle
    length. Weekly patterns are indexed by day of week, Sunday = 0.
    """
    model_config = ConfigDict(frozen=True)

    squad_id: int
    kind: PatternKind
    cycle_length: int = Field(..., gt=0)
    pattern: Tuple[str, ...]
    anchor_date: date
    offset: int = 0

    @field_validator("kind", mode="before")
    @classmethod
    def normalize_kind(cls, v):
        if isinstance(v, str):
            return LEGACY_KIND_ALIASES.get(v.lower(), v.lower())
        return v

    @field_validator("pattern")
    @classmethod
    def validate_tokens(cls, v):
        unknown = sorted({token for token in v if token not in (DUTY_TOKEN, OFF_TOKEN)})
        if unknown:
            raise ValueError(f"Unknown pattern tokens {unknown}; expected '{DUTY_TOKEN}' or '{OFF_TOKEN}'")
        return v

    @model_validator(mode="after")
    def validate_cycle(self):
        if self.kind == PatternKind.WEEKLY and self.cycle_length != DAYS_PER_WEEK:
            raise ValueError(f"Weekly schedules must have cycle length 7, got {self.cycle_length}")
        if len(self.pattern) != self.cycle_length:
            raise ValueError(
                f"Pattern length {len(self.pattern)} does not match cycle length {self.cycle_length}"
            )
        return self

    @property
    def effective_offset(self) -> int:
        """Offset reduced into [0, cycle_length)"""
        return self.offset % self.cycle_length


class SquadResponse(BaseModel):
    """Squad listing entry"""
    squad_id: int
    name: str
    display_order: int
    kind: Optional[PatternKind] = None


class MonthScheduleResponse(BaseModel):
    """Off-day map for one calendar month"""
    squad_id: int
    year: int
    month: int = Field(..., ge=1, le=12)
    days: Dict[int, bool] = Field(..., description="Day of month -> True when off")
    off_days: List[int] = Field(default_factory=list)


class DayScheduleResponse(BaseModel):
    """Duty status for a single date"""
    squad_id: int
    date: date
    is_off: bool
