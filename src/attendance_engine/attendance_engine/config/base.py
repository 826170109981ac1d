"""Settings shared by every environment; each module overrides what differs."""

import os

from ..core import constants


def _int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _flag(name: str, default: str) -> bool:
    return bool(int(os.getenv(name, default)))


DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": _int("DB_PORT", 3306),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_engine"),
}

BUSINESS_TIMEZONE = os.getenv("BUSINESS_TIMEZONE", "Asia/Kolkata")

TIMING_CACHE_TTL_SECONDS = _int("TIMING_CACHE_TTL_SECONDS", constants.TIMING_CACHE_TTL_SECONDS)
TIMING_CACHE_BACKEND = os.getenv("TIMING_CACHE_BACKEND", "memory")
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

ATTENDANCE_RATE_LIMIT = _int("ATTENDANCE_RATE_LIMIT", constants.ATTENDANCE_RATE_LIMIT)
EARLY_MORNING_CUTOFF_HOUR = _int("EARLY_MORNING_CUTOFF_HOUR", constants.EARLY_MORNING_CUTOFF_HOUR)
EARLY_CHECKOUT_MIN_REASON = _int("EARLY_CHECKOUT_MIN_REASON", constants.EARLY_CHECKOUT_MIN_REASON)
UNLOCK_REASON_MIN_LENGTH = _int("UNLOCK_REASON_MIN_LENGTH", constants.UNLOCK_REASON_MIN_LENGTH)

SWEEP_MAX_RECORDS = _int("SWEEP_MAX_RECORDS", constants.SWEEP_MAX_RECORDS)
OT_AUTO_CLOSE_HOURS = _int("OT_AUTO_CLOSE_HOURS", constants.OT_AUTO_CLOSE_HOURS)
OT_LOOKBACK_DAYS = _int("OT_LOOKBACK_DAYS", constants.OT_LOOKBACK_DAYS)
AUTO_CHECKOUT_INTERVAL_HOURS = _int("AUTO_CHECKOUT_INTERVAL_HOURS", 2)
OT_AUTO_CLOSE_HOUR = _int("OT_AUTO_CLOSE_HOUR", 0)
OT_AUTO_CLOSE_MINUTE = _int("OT_AUTO_CLOSE_MINUTE", 5)

CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", REDIS_URL)
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", REDIS_URL)
