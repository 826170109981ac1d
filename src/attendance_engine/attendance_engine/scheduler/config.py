"""
Celery configuration for the attendance sweeps.
"""
import logging
from datetime import timedelta
from typing import Any, Dict

from celery.schedules import crontab

logger = logging.getLogger(__name__)


def get_celery_config(settings: Any) -> Dict[str, Any]:
    """
    Build the Celery configuration from an engine settings module.

    Beat runs in the business timezone so the daily OT auto-close fires at
    local wall-clock time.
    """
    broker_url = getattr(settings, "CELERY_BROKER_URL", None) or getattr(settings, "REDIS_URL", None)
    if not broker_url:
        raise ValueError("REDIS_URL (or CELERY_BROKER_URL) is required for the Celery broker")

    business_tz = getattr(settings, "BUSINESS_TIMEZONE", "UTC")
    auto_checkout_hours = int(getattr(settings, "AUTO_CHECKOUT_INTERVAL_HOURS", 2))
    ot_hour = int(getattr(settings, "OT_AUTO_CLOSE_HOUR", 0))
    ot_minute = int(getattr(settings, "OT_AUTO_CLOSE_MINUTE", 5))

    config = {
        # Broker settings
        "broker_url": broker_url,
        "broker_connection_retry_on_startup": True,
        "result_backend": getattr(settings, "CELERY_RESULT_BACKEND", None),
        "result_expires": 24 * 3600,

        # Serialization
        "task_serializer": "json",
        "accept_content": ["json"],
        "result_serializer": "json",

        "timezone": business_tz,
        "enable_utc": False,

        # A sweep re-run is a no-op, so late acks are safe.
        "task_acks_late": True,
        "task_reject_on_worker_lost": True,
        "worker_prefetch_multiplier": 1,
        "task_time_limit": 900,
        "task_soft_time_limit": 840,

        "worker_log_format": "[%(asctime)s: %(levelname)s/%(processName)s] %(message)s",
        "worker_task_log_format": "[%(asctime)s: %(levelname)s/%(processName)s][%(task_name)s(%(task_id)s)] %(message)s",

        "imports": ("attendance_engine.scheduler.tasks",),

        "beat_schedule": {
            "auto-checkout-sweep": {
                "task": "attendance_engine.scheduler.tasks.run_auto_checkout",
                "schedule": timedelta(hours=auto_checkout_hours),
            },
            "ot-auto-close-daily": {
                "task": "attendance_engine.scheduler.tasks.run_ot_auto_close",
                "schedule": crontab(minute=ot_minute, hour=ot_hour),
            },
        },
    }

    logger.info(
        "Celery configured: timezone=%s, auto-checkout every %dh, OT auto-close daily at %02d:%02d",
        business_tz, auto_checkout_hours, ot_hour, ot_minute,
    )
    return config
