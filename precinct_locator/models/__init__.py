"""Database models for the Precinct Locator service"""

from .zones import Zone, SubZone
from .schedules import Squad, Schedule
from .dataset_versions import DatasetVersion
from .laws import LawCategory, LawEntry

__all__ = [
    "Zone", "SubZone",
    "Squad", "Schedule",
    "DatasetVersion",
    "LawCategory", "LawEntry",
]
