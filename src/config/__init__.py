from .settings import (
    DATABASE_URL,
    DUPLICATE_RADIUS_METERS,
    MERGE_MAX_ATTEMPTS,
    MERGE_RETRY_WAIT,
    ALERT_MAX_LISTINGS,
    INACTIVE_AFTER_DAYS,
    METRICS_PORT,
    LOG_LEVEL
)

__all__ = [
    'DATABASE_URL',
    'DUPLICATE_RADIUS_METERS',
    'MERGE_MAX_ATTEMPTS',
    'MERGE_RETRY_WAIT',
    'ALERT_MAX_LISTINGS',
    'INACTIVE_AFTER_DAYS',
    'METRICS_PORT',
    'LOG_LEVEL'
]
