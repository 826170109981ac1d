from .base import *  # noqa: F401,F403
from .base import _flag

SECRET_KEY = "test-secret"

DEBUG = False
TESTING = True

BUSINESS_TIMEZONE = "UTC"
TIMING_CACHE_BACKEND = "memory"

AUTO_INIT_DB = _flag("AUTO_INIT_DB", "0")
