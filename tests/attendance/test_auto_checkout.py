from dataclasses import replace

from attendance_engine.attendance.model import AttendanceRecord
from attendance_engine.collaborators.model import Holiday
from attendance_engine.core.enums import AttendanceStatus, NotificationKind, ReviewStatus, Role
from attendance_engine.core.exceptions import ConcurrentModificationError

from conftest import ADMIN, EMPLOYEE, ENGINEERING, MASTER, MONDAY, NO_DEPT, SUNDAY, TUESDAY, at


def open_record(env, day, hour, minute=0, *, user_id=EMPLOYEE, status=AttendanceStatus.PRESENT):
    return env.attendance.create(
        AttendanceRecord(
            attendance_id=None,
            user_id=user_id,
            work_date=day,
            status=status,
            check_in_time=at(day, hour, minute),
        )
    )


def run(env, when):
    return env.container.auto_checkout_service.run(now=when)


def test_record_is_left_alone_inside_grace(env):
    record = open_record(env, MONDAY, 9)

    summary = run(env, at(MONDAY, 19, 59))

    assert summary.scanned == 1
    assert summary.processed == 0
    assert env.attendance.get(record.attendance_id).is_open


def test_overdue_record_is_closed_at_shift_end_and_parked(env):
    record = open_record(env, MONDAY, 9)

    summary = run(env, at(MONDAY, 20, 0))

    saved = env.attendance.get(record.attendance_id)
    assert summary.processed == 1
    assert saved.check_out_time == at(MONDAY, 18, 0)
    assert saved.working_hours == 9.0
    assert saved.overtime_hours == 0.0
    assert saved.auto_corrected
    assert saved.auto_corrected_at == at(MONDAY, 20, 0)
    assert saved.admin_review_status == ReviewStatus.PENDING
    assert "120 minutes past 6:00 PM" in saved.auto_correction_reason


def test_status_is_not_rederived(env):
    record = open_record(env, MONDAY, 17, status=AttendanceStatus.LATE)

    run(env, at(MONDAY, 20, 0))

    saved = env.attendance.get(record.attendance_id)
    assert saved.working_hours == 1.0
    assert saved.status == AttendanceStatus.LATE


def test_employee_and_admins_are_notified(env):
    open_record(env, MONDAY, 9)

    run(env, at(MONDAY, 20, 0))

    assert env.notifications.kinds_for(EMPLOYEE) == [NotificationKind.AUTO_CHECKOUT]
    assert env.notifications.kinds_for(ADMIN) == [NotificationKind.ADMIN_REVIEW_PENDING]
    assert env.notifications.kinds_for(MASTER) == [NotificationKind.ADMIN_REVIEW_PENDING]


def test_rerun_is_a_no_op(env):
    open_record(env, MONDAY, 9)
    run(env, at(MONDAY, 20, 0))
    before = env.attendance.all()

    summary = run(env, at(MONDAY, 22, 0))

    assert summary.scanned == 0
    assert env.attendance.all() == before


def test_yesterday_is_swept_too(env):
    record = open_record(env, MONDAY, 9)

    summary = run(env, at(TUESDAY, 1, 0))

    assert summary.processed == 1
    assert env.attendance.get(record.attendance_id).check_out_time == at(MONDAY, 18, 0)


def test_leave_and_weekly_off_are_skipped(env):
    leave_day = open_record(env, MONDAY, 9)
    env.leaves.days.add((EMPLOYEE, MONDAY))
    weekly_off = open_record(env, SUNDAY, 9, user_id=ADMIN)
    env.users.users[ADMIN] = replace(env.users.users[ADMIN], department="engineering")

    summary = run(env, at(MONDAY, 21, 0))

    assert summary.processed == 0
    assert summary.skipped == 2
    assert env.attendance.get(leave_day.attendance_id).is_open
    assert env.attendance.get(weekly_off.attendance_id).is_open


def test_holiday_is_skipped(env):
    record = open_record(env, MONDAY, 9)
    env.holidays.holidays.append(Holiday("Holi", MONDAY, allow_ot=True))

    assert run(env, at(MONDAY, 21, 0)).skipped == 1
    assert env.attendance.get(record.attendance_id).is_open


def test_active_overtime_session_is_skipped(env):
    env.container.attendance_service.check_in(EMPLOYEE, photo_ref="p", now=at(MONDAY, 9, 0))
    env.container.ot_service.start(EMPLOYEE, now=at(MONDAY, 18, 30))

    summary = run(env, at(MONDAY, 21, 0))

    assert summary.skipped == 1
    assert env.attendance.all()[0].is_open


def test_locked_period_and_missing_department_are_skipped(env):
    open_record(env, MONDAY, 9)
    open_record(env, MONDAY, 9, user_id=NO_DEPT)
    env.container.lock_service.lock(current_role=Role.MASTER_ADMIN, actor_id=MASTER, year=2025, month=3)

    summary = run(env, at(MONDAY, 21, 0))

    assert summary.skipped == 2
    assert summary.failed == 0


def test_one_bad_record_does_not_stop_the_sweep(env):
    env.timings.timings["broken"] = replace(ENGINEERING, department="broken", check_out_time="18:00")
    env.users.users[ADMIN] = replace(env.users.users[ADMIN], department="broken")
    open_record(env, MONDAY, 9, user_id=ADMIN)
    good = open_record(env, MONDAY, 9)

    summary = run(env, at(MONDAY, 21, 0))

    assert summary.failed == 1
    assert summary.processed == 1
    assert not env.attendance.get(good.attendance_id).is_open


def test_notification_failure_keeps_the_correction(env):
    record = open_record(env, MONDAY, 9)
    env.notifications.fail = True

    summary = run(env, at(MONDAY, 21, 0))

    assert summary.processed == 1
    assert env.attendance.get(record.attendance_id).auto_corrected


def test_sweep_respects_the_record_cap(make_env):
    env = make_env(SWEEP_MAX_RECORDS=1)
    open_record(env, MONDAY, 9)
    open_record(env, MONDAY, 9, user_id=ADMIN)

    summary = run(env, at(MONDAY, 21, 0))

    assert summary.scanned == 1


def test_conflicting_write_is_counted_and_left_for_the_next_run(env, monkeypatch):
    record = open_record(env, MONDAY, 9)

    def conflict(_record):
        raise ConcurrentModificationError("modified concurrently")

    monkeypatch.setattr(env.attendance, "update", conflict)
    summary = run(env, at(MONDAY, 20, 0))

    assert summary.failed == 1
    assert summary.processed == 0
    assert env.attendance.get(record.attendance_id).is_open

    monkeypatch.undo()
    assert run(env, at(MONDAY, 20, 5)).processed == 1
