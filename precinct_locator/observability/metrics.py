"""Prometheus metrics"""

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status_code']
)
REQUEST_DURATION = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration',
    ['method', 'endpoint']
)
ZONE_RESOLUTIONS = Counter(
    'zone_resolutions_total',
    'Point resolutions by match level',
    ['match_level']
)
DATASET_UPGRADES = Counter(
    'dataset_upgrades_total',
    'Dataset reseed attempts',
    ['dataset_key', 'outcome']
)
