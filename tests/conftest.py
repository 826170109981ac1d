from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from types import SimpleNamespace
from typing import Optional

import pytest

from attendance_engine.attendance.model import AttendanceRecord
from attendance_engine.collaborators.model import CompanySettings, Holiday, HolidayCheck, SalaryStructure, User
from attendance_engine.container import Container, wire
from attendance_engine.core.enums import OTSessionStatus, Role
from attendance_engine.core.exceptions import BusinessRuleViolation, ConcurrentModificationError
from attendance_engine.review.model import PayrollPeriod
from attendance_engine.timing.model import DepartmentTiming

MONDAY = date(2025, 3, 3)
TUESDAY = date(2025, 3, 4)
SUNDAY = date(2025, 3, 2)

EMPLOYEE = 1
ADMIN = 2
MASTER = 3
INACTIVE = 4
NO_DEPT = 5


def at(day: date, hour: int, minute: int = 0, second: int = 0) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute, second, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class InMemoryAttendance:
    def __init__(self):
        self._rows: dict[int, AttendanceRecord] = {}
        self._next_id = 0

    def all(self) -> list[AttendanceRecord]:
        return sorted(self._rows.values(), key=lambda r: (r.work_date, r.attendance_id))

    def get(self, attendance_id: int) -> Optional[AttendanceRecord]:
        return self._rows.get(attendance_id)

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        return next((r for r in self._rows.values() if r.user_id == user_id and r.work_date == work_date), None)

    def get_recent_for_user(self, user_id: int, limit: int):
        items = [r for r in self._rows.values() if r.user_id == user_id]
        items.sort(key=lambda r: r.work_date, reverse=True)
        return items[:limit]

    def create(self, record: AttendanceRecord) -> AttendanceRecord:
        if self.get_for_user_and_date(record.user_id, record.work_date) is not None:
            raise BusinessRuleViolation("An attendance record already exists for this day", code="DUPLICATE_CHECK_IN")
        self._next_id += 1
        saved = replace(record, attendance_id=self._next_id, version=1)
        self._rows[saved.attendance_id] = saved
        return saved

    def update(self, record: AttendanceRecord) -> AttendanceRecord:
        current = self._rows.get(record.attendance_id)
        if current is None or current.version != record.version:
            raise ConcurrentModificationError("modified concurrently")
        saved = replace(record, version=record.version + 1)
        self._rows[saved.attendance_id] = saved
        return saved

    def list_open(self, work_date: date, *, limit: int):
        return [r for r in self.all() if r.work_date == work_date and r.is_open][:limit]

    def list_range(self, start_date, end_date, *, user_id=None, user_ids=None):
        rows = [r for r in self.all() if start_date <= r.work_date <= end_date]
        if user_id is not None:
            rows = [r for r in rows if r.user_id == user_id]
        if user_ids:
            rows = [r for r in rows if r.user_id in set(user_ids)]
        return rows

    def list_for_report(self, start_date, end_date, *, user_ids=None):
        return [r for r in self.list_range(start_date, end_date, user_ids=user_ids) if not r.is_pending_review]

    def list_pending_review(self):
        return [r for r in self.all() if r.is_pending_review]

    def find_by_session(self, session_id: str):
        return next((r for r in self.all() if r.session(session_id) is not None), None)

    def find_with_active_session(self, user_id: int):
        return next((r for r in self.all() if r.user_id == user_id and r.active_session() is not None), None)

    def list_with_session_status(self, status, *, start_date=None, end_date=None, limit=500):
        rows = [r for r in self.all() if any(s.status.value == str(status) for s in r.ot_sessions)]
        if start_date is not None:
            rows = [r for r in rows if r.work_date >= start_date]
        if end_date is not None:
            rows = [r for r in rows if r.work_date <= end_date]
        return rows[:limit]


class InMemoryPeriods:
    def __init__(self):
        self.periods: dict[tuple[int, int], PayrollPeriod] = {}

    def get(self, year: int, month: int) -> Optional[PayrollPeriod]:
        return self.periods.get((year, month))

    def save(self, period: PayrollPeriod) -> None:
        self.periods[(period.year, period.month)] = period

    def list_for_year(self, year: int):
        return [p for (y, _), p in sorted(self.periods.items()) if y == year]


class InMemoryTimings:
    def __init__(self, timings: dict[str, DepartmentTiming]):
        self.timings = dict(timings)
        self.gets = 0

    def get(self, department: str) -> Optional[DepartmentTiming]:
        self.gets += 1
        return self.timings.get(department)

    def list_all(self):
        return [self.timings[k] for k in sorted(self.timings)]

    def upsert(self, timing: DepartmentTiming) -> None:
        self.timings[timing.department] = timing


@dataclass
class InMemoryUsers:
    users: dict[int, User]

    def get_user(self, user_id: int) -> Optional[User]:
        return self.users.get(user_id)

    def list_by_role(self, role: Role):
        return [u for u in self.users.values() if u.role == role and u.is_active]

    def list_by_department(self, department: str):
        return [u for u in self.users.values() if (u.department or "").lower() == department.lower()]


@dataclass
class FakeHolidays:
    holidays: list[Holiday] = field(default_factory=list)

    def is_holiday(self, day: date, department: Optional[str]) -> HolidayCheck:
        for h in self.holidays:
            if h.holiday_date == day and h.applies_to(department):
                return HolidayCheck(is_holiday=True, holiday=h)
        return HolidayCheck(is_holiday=False)


@dataclass
class FakeLeaves:
    days: set = field(default_factory=set)

    def has_approved_leave(self, user_id: int, day: date) -> bool:
        return (user_id, day) in self.days


@dataclass
class FakeSettings:
    settings: CompanySettings = field(default_factory=CompanySettings)

    def get_settings(self) -> CompanySettings:
        return self.settings


@dataclass
class FakeSalaries:
    structures: dict[int, SalaryStructure] = field(default_factory=dict)

    def get_structure(self, user_id: int) -> Optional[SalaryStructure]:
        return self.structures.get(user_id)


class RecordingNotifications:
    def __init__(self):
        self.sent: list[tuple] = []
        self.fail = False

    def notify(self, user_id, kind, payload) -> None:
        if self.fail:
            raise RuntimeError("push gateway down")
        self.sent.append((user_id, kind, dict(payload)))

    def kinds_for(self, user_id: int) -> list:
        return [kind for uid, kind, _ in self.sent if uid == user_id]


ENGINEERING = DepartmentTiming(
    department="engineering",
    check_in_time="9:00 AM",
    check_out_time="6:00 PM",
    working_hours=9,
    overtime_threshold_minutes=30,
    late_threshold_minutes=15,
    auto_checkout_grace_minutes=120,
    weekly_off_days=frozenset({0}),
)


@dataclass
class Env:
    container: Container
    attendance: InMemoryAttendance
    periods: InMemoryPeriods
    timings: InMemoryTimings
    users: InMemoryUsers
    holidays: FakeHolidays
    leaves: FakeLeaves
    company: FakeSettings
    salaries: FakeSalaries
    notifications: RecordingNotifications
    clock: FakeClock

    def session(self, session_id: str):
        record = self.attendance.find_by_session(session_id)
        return record.session(session_id)

    def all_sessions(self):
        return [s for r in self.attendance.all() for s in r.ot_sessions]

    def assert_session_invariants(self):
        for s in self.all_sessions():
            if s.status == OTSessionStatus.PENDING_REVIEW:
                assert s.ot_hours == 0
        for uid in self.users.users:
            open_sessions = [
                s for r in self.attendance.all() if r.user_id == uid for s in r.ot_sessions if s.is_open
            ]
            assert len(open_sessions) <= 1


@pytest.fixture
def make_env():
    def _make(**overrides) -> Env:
        attendance = InMemoryAttendance()
        periods = InMemoryPeriods()
        timings = InMemoryTimings({"engineering": ENGINEERING})
        users = InMemoryUsers(
            {
                EMPLOYEE: User(EMPLOYEE, "Asha", Role.EMPLOYEE, "engineering"),
                ADMIN: User(ADMIN, "Ravi", Role.ADMIN, "operations"),
                MASTER: User(MASTER, "Meera", Role.MASTER_ADMIN, "operations"),
                INACTIVE: User(INACTIVE, "Old", Role.EMPLOYEE, "engineering", is_active=False),
                NO_DEPT: User(NO_DEPT, "Nodept", Role.EMPLOYEE, None),
            }
        )
        holidays = FakeHolidays()
        leaves = FakeLeaves()
        company = FakeSettings()
        salaries = FakeSalaries()
        notifications = RecordingNotifications()
        clock = FakeClock(at(MONDAY, 9, 0))

        settings = SimpleNamespace(**{"BUSINESS_TIMEZONE": "UTC", "ATTENDANCE_RATE_LIMIT": 1000, **overrides})
        container = wire(
            attendance_repo=attendance,
            periods_repo=periods,
            timing_repo=timings,
            users=users,
            holidays=holidays,
            leaves=leaves,
            company_settings=company,
            salaries=salaries,
            notifications=notifications,
            settings=settings,
            clock=clock,
        )
        return Env(
            container=container,
            attendance=attendance,
            periods=periods,
            timings=timings,
            users=users,
            holidays=holidays,
            leaves=leaves,
            company=company,
            salaries=salaries,
            notifications=notifications,
            clock=clock,
        )

    return _make


@pytest.fixture
def env(make_env) -> Env:
    return make_env()
