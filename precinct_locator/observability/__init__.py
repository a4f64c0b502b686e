"""
Observability module

Structured logging setup and Prometheus metrics
"""

from .structured_logging import configure_logging
from .metrics import DATASET_UPGRADES, REQUEST_COUNT, REQUEST_DURATION, ZONE_RESOLUTIONS

__all__ = [
    'configure_logging',
    'DATASET_UPGRADES',
    'REQUEST_COUNT',
    'REQUEST_DURATION',
    'ZONE_RESOLUTIONS',
]
