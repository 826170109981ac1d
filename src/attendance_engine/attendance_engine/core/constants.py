"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_CHECK_IN_TIME = "9:00 AM"
DEFAULT_CHECK_OUT_TIME = "6:00 PM"
DEFAULT_WORKING_HOURS = 8
DEFAULT_LATE_THRESHOLD_MINUTES = 15
DEFAULT_OVERTIME_THRESHOLD_MINUTES = 30
DEFAULT_AUTO_CHECKOUT_GRACE_MINUTES = 120
DEFAULT_WEEKLY_OFF_DAYS = frozenset({0})  # 0=Sunday .. 6=Saturday

TIMING_CACHE_TTL_SECONDS = 5 * 60

EARLY_MORNING_CUTOFF_HOUR = 6
HALF_DAY_RATIO = 0.5
EARLY_CHECKOUT_MIN_REASON = 10

OT_AUTO_CLOSE_HOURS = 16
OT_LOOKBACK_DAYS = 3
DEFAULT_MAX_OT_HOURS_PER_DAY = 5.0
DEFAULT_OT_RATE = 1.0

UNLOCK_REASON_MIN_LENGTH = 10
MIN_PAYROLL_YEAR = 2024

STANDARD_WORKING_DAYS = 26
STANDARD_WORKING_HOURS = 8

SWEEP_MAX_RECORDS = 500
ATTENDANCE_RATE_LIMIT = 20
RATE_LIMIT_WINDOW_SECONDS = 60

DEFAULT_REPORT_DAYS = 7
