"""
Celery application driving the background sweeps.
"""
from celery import Celery

from ..main import load_settings
from .config import get_celery_config

celery_app = Celery("attendance_engine")
celery_app.config_from_object(get_celery_config(load_settings()))

__all__ = ["celery_app"]
