from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from typing import Iterable, List, Optional, Sequence

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..collaborators.model import CompanySettings, SalaryStructure
from ..collaborators.repository import (
    CompanySettingsService,
    HolidayService,
    SalaryStructureService,
    UserDirectory,
)
from ..common.datetime_utils import iter_days, month_bounds, weekday_index
from ..core.constants import MIN_PAYROLL_YEAR
from ..core.enums import AttendanceStatus, Role
from ..core.exceptions import AuthorizationError, PendingReviewBlockError, ValidationError
from ..review.gate import exclude_pending
from ..timing.store import DepartmentTimingStore
from .calculator.base import PayrollCalculator
from .calculator.standard_calculator import StandardPayrollCalculator
from .model import ExcludedDay, PayrollLine, PayrollRun

logger = logging.getLogger(__name__)


class PayrollAggregator:
    """Turns finalized attendance into payable days and amounts.

    Records pending admin review never reach the arithmetic below.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserDirectory,
        timings: DepartmentTimingStore,
        holidays: HolidayService,
        settings: CompanySettingsService,
        salaries: SalaryStructureService,
        *,
        calculator: Optional[PayrollCalculator] = None,
    ):
        self._attendance = attendance
        self._users = users
        self._timings = timings
        self._holidays = holidays
        self._settings = settings
        self._salaries = salaries
        self._calculator = calculator or StandardPayrollCalculator()

    def enrich_with_statutory_days(
        self,
        user_id: int,
        start_date: date,
        end_date: date,
        records: Iterable[AttendanceRecord],
    ) -> List[AttendanceRecord]:
        by_date = {r.work_date: r for r in records}
        user = self._users.get_user(int(user_id))
        department = user.department if user else None
        weekly_off = self._weekly_off_days(department)

        enriched = list(by_date.values())
        for day in iter_days(start_date, end_date):
            if day in by_date:
                continue
            if self._holidays.is_holiday(day, department).is_holiday:
                status = AttendanceStatus.HOLIDAY
            elif weekday_index(day) in weekly_off:
                status = AttendanceStatus.WEEKLY_OFF
            else:
                continue
            enriched.append(AttendanceRecord(attendance_id=None, user_id=int(user_id), work_date=day, status=status))

        enriched.sort(key=lambda r: r.work_date)
        return enriched

    def weighted_payable_days(self, records: Iterable[AttendanceRecord]) -> float:
        return round(sum(self._calculator.day_weight(r.status) for r in exclude_pending(records)), 2)

    def daily_rate(self, salary: Optional[SalaryStructure], settings: Optional[CompanySettings] = None) -> float:
        settings = settings or self._settings.get_settings()
        if salary is None:
            return 0.0
        divisor = int(settings.standard_working_days) or 1
        return round(salary.fixed_monthly_components / divisor, 2)

    def hourly_rate(self, daily_rate: float, department: Optional[str], settings: Optional[CompanySettings] = None) -> float:
        settings = settings or self._settings.get_settings()
        hours = self._timings.get(department).working_hours if department else 0
        hours = hours or settings.standard_working_hours
        return round(daily_rate / float(hours), 2)

    def generate(
        self,
        year: int,
        month: int,
        *,
        current_role: Role,
        actor_id: Optional[int] = None,
        force: bool = False,
        user_ids: Optional[Sequence[int]] = None,
    ) -> PayrollRun:
        if not current_role.is_admin:
            raise AuthorizationError("Only admins can generate payroll")
        if not 1 <= int(month) <= 12 or int(year) < MIN_PAYROLL_YEAR:
            raise ValidationError("Invalid payroll period")

        start, end = month_bounds(int(year), int(month))
        raw = self._attendance.list_range(start, end, user_ids=user_ids)
        pending = [r for r in raw if r.is_pending_review]

        excluded: List[ExcludedDay] = []
        if pending:
            if not force:
                raise PendingReviewBlockError(
                    f"{len(pending)} attendance records in {month:02d}/{year} are pending admin review",
                    record_ids=[r.attendance_id for r in pending],
                )
            if current_role != Role.MASTER_ADMIN:
                raise AuthorizationError("Only master admin can force payroll with pending reviews")
            excluded = [
                ExcludedDay(
                    attendance_id=r.attendance_id,
                    user_id=r.user_id,
                    work_date=r.work_date,
                    reason=r.auto_correction_reason or "Pending admin review",
                )
                for r in pending
            ]
            logger.warning(
                "AUDIT payroll %02d/%d forced by %s excluding %d pending days: %s",
                month, year, actor_id, len(excluded), [d.attendance_id for d in excluded],
            )

        finalized = exclude_pending(self._attendance.list_for_report(start, end, user_ids=user_ids))
        by_user: dict[int, list[AttendanceRecord]] = defaultdict(list)
        for record in finalized:
            by_user[record.user_id].append(record)

        targets = sorted(set(user_ids or ()) | {r.user_id for r in raw})
        settings = self._settings.get_settings()
        lines = [self._line(uid, start, end, by_user.get(uid, []), settings) for uid in targets]

        logger.info("Payroll %02d/%d generated for %d employees", month, year, len(lines))
        return PayrollRun(
            year=int(year),
            month=int(month),
            period=(start, end),
            forced=bool(pending),
            lines=lines,
            excluded_days=excluded,
        )

    def _line(
        self,
        user_id: int,
        start: date,
        end: date,
        records: List[AttendanceRecord],
        settings: CompanySettings,
    ) -> PayrollLine:
        enriched = self.enrich_with_statutory_days(user_id, start, end, records)
        user = self._users.get_user(user_id)
        salary = self._salaries.get_structure(user_id)
        if salary is None:
            logger.warning("No salary structure for user %s; payroll amounts are zero", user_id)

        days = self.weighted_payable_days(enriched)
        daily = self.daily_rate(salary, settings)
        hourly = self.hourly_rate(daily, user.department if user else None, settings)
        ot_hours = round(sum(s.payable_hours for r in records for s in r.ot_sessions), 2)

        return PayrollLine(
            user_id=user_id,
            payable_days=days,
            daily_rate=daily,
            hourly_rate=hourly,
            earned_amount=round(daily * days, 2),
            ot_hours=ot_hours,
            ot_pay=round(ot_hours * hourly * float(settings.default_ot_rate), 2),
            holidays=sum(1 for r in enriched if r.is_virtual and r.status == AttendanceStatus.HOLIDAY),
            weekly_offs=sum(1 for r in enriched if r.is_virtual and r.status == AttendanceStatus.WEEKLY_OFF),
        )

    def _weekly_off_days(self, department: Optional[str]) -> frozenset:
        if department:
            return self._timings.get(department).weekly_off_days
        return frozenset(self._settings.get_settings().weekend_days)
