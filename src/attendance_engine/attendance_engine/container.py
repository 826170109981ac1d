from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import tzinfo
from typing import Any, Optional

from .attendance.auto_checkout import AutoCheckoutService
from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .collaborators.mysql_calendar_repository import MySQLHolidayService, MySQLLeaveService
from .collaborators.mysql_notification_repository import MySQLNotificationOutbox
from .collaborators.mysql_settings_repository import MySQLCompanySettingsService, MySQLSalaryStructureService
from .collaborators.mysql_user_directory import MySQLUserDirectory
from .collaborators.notifier import SafeNotifier
from .collaborators.repository import (
    CompanySettingsService,
    HolidayService,
    LeaveService,
    NotificationService,
    SalaryStructureService,
    UserDirectory,
)
from .common.datetime_utils import load_timezone
from .common.locks import KeyedLock
from .common.rate_limiter import RateLimiter
from .core import constants
from .database.connection import DBConfig, DatabaseConnection
from .overtime.auto_close import OTAutoCloseService
from .overtime.service import OTSessionService
from .payroll.service import PayrollAggregator
from .reports.service import AttendanceReportService
from .review.lock_service import PayrollLockService
from .review.mysql_payroll_period_repository import MySQLPayrollPeriodRepository
from .review.repository import PayrollPeriodRepository
from .review.service import AdminReviewService
from .timing.cache import InMemoryTimingCache, RedisTimingCache, TimingCache
from .timing.mysql_timing_repository import MySQLDepartmentTimingRepository
from .timing.repository import DepartmentTimingRepository
from .timing.store import DepartmentTimingStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]
    business_tz: tzinfo

    users: UserDirectory
    attendance_repo: AttendanceRepository
    timing_store: DepartmentTimingStore
    record_lock: KeyedLock

    lock_service: PayrollLockService
    attendance_service: AttendanceService
    auto_checkout_service: AutoCheckoutService
    ot_service: OTSessionService
    ot_auto_close_service: OTAutoCloseService
    review_service: AdminReviewService
    payroll_aggregator: PayrollAggregator
    report_service: AttendanceReportService


def _setting(settings: Any, name: str, default: Any) -> Any:
    return getattr(settings, name, default) if settings is not None else default


def wire(
    *,
    attendance_repo: AttendanceRepository,
    periods_repo: PayrollPeriodRepository,
    timing_repo: DepartmentTimingRepository,
    users: UserDirectory,
    holidays: HolidayService,
    leaves: LeaveService,
    company_settings: CompanySettingsService,
    salaries: SalaryStructureService,
    notifications: NotificationService,
    timing_cache: Optional[TimingCache] = None,
    settings: Any = None,
    conn: Optional[DatabaseConnection] = None,
    clock=None,
) -> Container:
    """Assemble every service around the given ports (MySQL in production, fakes in tests)."""
    tz = load_timezone(_setting(settings, "BUSINESS_TIMEZONE", "UTC"))
    ttl = int(_setting(settings, "TIMING_CACHE_TTL_SECONDS", constants.TIMING_CACHE_TTL_SECONDS))
    max_records = int(_setting(settings, "SWEEP_MAX_RECORDS", constants.SWEEP_MAX_RECORDS))
    clock_kw = {"clock": clock} if clock is not None else {}

    timing_store = DepartmentTimingStore(timing_repo, timing_cache or InMemoryTimingCache(ttl_seconds=ttl))
    notifier = SafeNotifier(notifications, users)
    record_lock = KeyedLock()
    rate_limiter = RateLimiter(
        max_requests=int(_setting(settings, "ATTENDANCE_RATE_LIMIT", constants.ATTENDANCE_RATE_LIMIT))
    )

    lock_service = PayrollLockService(
        periods_repo,
        attendance_repo,
        unlock_reason_min_length=int(
            _setting(settings, "UNLOCK_REASON_MIN_LENGTH", constants.UNLOCK_REASON_MIN_LENGTH)
        ),
        **clock_kw,
    )
    attendance_service = AttendanceService(
        attendance_repo,
        users,
        timing_store,
        holidays,
        lock_service,
        rate_limiter=rate_limiter,
        record_lock=record_lock,
        strategy_factory=AttendanceStrategyFactory(),
        business_tz=tz,
        early_morning_cutoff_hour=int(
            _setting(settings, "EARLY_MORNING_CUTOFF_HOUR", constants.EARLY_MORNING_CUTOFF_HOUR)
        ),
        early_checkout_min_reason=int(
            _setting(settings, "EARLY_CHECKOUT_MIN_REASON", constants.EARLY_CHECKOUT_MIN_REASON)
        ),
        **clock_kw,
    )
    auto_checkout_service = AutoCheckoutService(
        attendance_repo,
        users,
        timing_store,
        holidays,
        leaves,
        lock_service,
        notifier,
        record_lock=record_lock,
        business_tz=tz,
        max_records=max_records,
        **clock_kw,
    )
    ot_service = OTSessionService(
        attendance_repo,
        users,
        timing_store,
        holidays,
        leaves,
        company_settings,
        lock_service,
        notifier,
        rate_limiter=rate_limiter,
        record_lock=record_lock,
        business_tz=tz,
        **clock_kw,
    )
    ot_auto_close_service = OTAutoCloseService(
        attendance_repo,
        leaves,
        lock_service,
        notifier,
        record_lock=record_lock,
        business_tz=tz,
        max_open_hours=int(_setting(settings, "OT_AUTO_CLOSE_HOURS", constants.OT_AUTO_CLOSE_HOURS)),
        lookback_days=int(_setting(settings, "OT_LOOKBACK_DAYS", constants.OT_LOOKBACK_DAYS)),
        max_records=max_records,
        **clock_kw,
    )
    review_service = AdminReviewService(attendance_repo, lock_service, notifier, record_lock=record_lock, **clock_kw)
    payroll_aggregator = PayrollAggregator(
        attendance_repo, users, timing_store, holidays, company_settings, salaries
    )
    report_service = AttendanceReportService(attendance_repo, users)

    return Container(
        conn=conn,
        business_tz=tz,
        users=users,
        attendance_repo=attendance_repo,
        timing_store=timing_store,
        record_lock=record_lock,
        lock_service=lock_service,
        attendance_service=attendance_service,
        auto_checkout_service=auto_checkout_service,
        ot_service=ot_service,
        ot_auto_close_service=ot_auto_close_service,
        review_service=review_service,
        payroll_aggregator=payroll_aggregator,
        report_service=report_service,
    )


def build_timing_cache(settings: Any) -> TimingCache:
    ttl = int(_setting(settings, "TIMING_CACHE_TTL_SECONDS", constants.TIMING_CACHE_TTL_SECONDS))
    backend = str(_setting(settings, "TIMING_CACHE_BACKEND", "memory")).lower()
    if backend == "redis":
        return RedisTimingCache.from_url(_setting(settings, "REDIS_URL", "redis://localhost:6379/0"), ttl_seconds=ttl)
    if backend != "memory":
        logger.warning("Unknown TIMING_CACHE_BACKEND %r, using in-memory cache", backend)
    return InMemoryTimingCache(ttl_seconds=ttl)


def build_container(*, settings: Any) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(settings.DB_CONFIG))

    return wire(
        attendance_repo=MySQLAttendanceRepository(conn),
        periods_repo=MySQLPayrollPeriodRepository(conn),
        timing_repo=MySQLDepartmentTimingRepository(conn),
        users=MySQLUserDirectory(conn),
        holidays=MySQLHolidayService(conn),
        leaves=MySQLLeaveService(conn),
        company_settings=MySQLCompanySettingsService(conn),
        salaries=MySQLSalaryStructureService(conn),
        notifications=MySQLNotificationOutbox(conn),
        timing_cache=build_timing_cache(settings),
        settings=settings,
        conn=conn,
    )
