import logging
from functools import lru_cache

from ..container import Container, build_container
from ..main import load_settings
from . import celery_app

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_container() -> Container:
    """One container per worker process."""
    return build_container(settings=load_settings())


@celery_app.task(name="attendance_engine.scheduler.tasks.run_auto_checkout")
def run_auto_checkout() -> dict:
    summary = get_container().auto_checkout_service.run()
    if summary.failed:
        logger.warning("Auto-checkout sweep had %d failures: %s", summary.failed, summary.errors[:10])
    return summary.to_dict()


@celery_app.task(name="attendance_engine.scheduler.tasks.run_ot_auto_close")
def run_ot_auto_close() -> dict:
    summary = get_container().ot_auto_close_service.run()
    if summary.failed:
        logger.warning("OT auto-close sweep had %d failures: %s", summary.failed, summary.errors[:10])
    return summary.to_dict()
