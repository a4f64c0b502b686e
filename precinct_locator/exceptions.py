"""Domain exceptions for the Precinct Locator service"""

from typing import Optional


class PrecinctLocatorError(Exception):
    """Base exception for service errors."""
    pass


class MalformedGeometryError(PrecinctLocatorError):
    """Raised when a boundary or bounding box payload cannot be parsed."""

    def __init__(self, message: str, payload_kind: str = "geometry"):
        super().__init__(message)
        self.payload_kind = payload_kind


class ScheduleConfigurationError(PrecinctLocatorError):
    """Raised when a schedule definition violates its pattern invariants."""

    def __init__(self, message: str, squad_id: Optional[int] = None):
        self.squad_id = squad_id
        prefix = f"Squad {squad_id}: " if squad_id is not None else ""
        super().__init__(f"{prefix}{message}")


class DatasetUpgradeError(PrecinctLocatorError):
    """
    Raised when a dataset reseed fails partway.

    The version record is left untouched, so the next startup retries the
    upgrade from scratch.
    """

    retryable = True

    def __init__(self, dataset_key: str, target_version: str, reason: str):
        self.dataset_key = dataset_key
        self.target_version = target_version
        self.reason = reason
        super().__init__(
            f"Upgrade of dataset '{dataset_key}' to {target_version} failed: {reason}"
        )


class DatabaseStateError(PrecinctLocatorError):
    """Raised when the database handle is used outside its ready state."""
    pass
