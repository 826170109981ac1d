import pytest

from attendance_engine.core.enums import AttendanceStatus, NotificationKind, ReviewAction, ReviewStatus, Role
from attendance_engine.core.exceptions import AuthorizationError, BusinessRuleViolation, PayrollLockedError, ValidationError

from conftest import ADMIN, EMPLOYEE, MASTER, MONDAY, TUESDAY, at


@pytest.fixture
def parked(env):
    """Late check-in that was never closed and got auto-corrected."""
    env.container.attendance_service.check_in(EMPLOYEE, photo_ref="p", now=at(MONDAY, 9, 30))
    env.container.auto_checkout_service.run(now=at(MONDAY, 21, 0))
    return env.attendance.get_for_user_and_date(EMPLOYEE, MONDAY)


def review(env, record, action, *, role=Role.ADMIN, **kwargs):
    return env.container.review_service.review(
        record.attendance_id, action=action, reviewer_id=ADMIN, current_role=role, now=at(TUESDAY, 10), **kwargs
    )


def test_pending_records_are_listed(env, parked):
    assert parked.is_pending_review
    assert [r.attendance_id for r in env.container.review_service.list_pending()] == [parked.attendance_id]


def test_adjust_replaces_the_auto_checkout(env, parked):
    saved = review(env, parked, ReviewAction.ADJUST, check_out_time=at(MONDAY, 17, 30), notes="Left at 5:30")

    assert saved.admin_review_status == ReviewStatus.ADJUSTED
    assert saved.original_check_out_time == at(MONDAY, 18, 0)
    assert saved.check_out_time == at(MONDAY, 17, 30)
    assert saved.working_hours == 8.0
    assert saved.status == AttendanceStatus.PRESENT
    assert saved.admin_reviewed_by == ADMIN
    assert saved.admin_review_notes == "Left at 5:30"
    assert NotificationKind.ATTENDANCE_REVIEWED in env.notifications.kinds_for(EMPLOYEE)
    assert env.container.review_service.list_pending() == []


def test_adjust_needs_a_valid_check_out(env, parked):
    with pytest.raises(ValidationError) as exc:
        review(env, parked, ReviewAction.ADJUST)
    assert exc.value.missing_fields == ["check_out_time"]

    with pytest.raises(ValidationError):
        review(env, parked, ReviewAction.ADJUST, check_out_time=at(MONDAY, 9, 0))


def test_accept_marks_present(env, parked):
    saved = review(env, parked, ReviewAction.ACCEPT)

    assert saved.admin_review_status == ReviewStatus.ACCEPTED
    assert saved.status == AttendanceStatus.PRESENT
    assert saved.check_out_time == at(MONDAY, 18, 0)


def test_reject_marks_absent(env, parked):
    saved = review(env, parked, ReviewAction.REJECT)

    assert saved.admin_review_status == ReviewStatus.REJECTED
    assert saved.status == AttendanceStatus.ABSENT
    assert saved.check_out_time is None
    assert saved.working_hours == 0.0


def test_rejected_day_stays_rejected_after_the_next_sweep(env, parked):
    review(env, parked, ReviewAction.REJECT)

    summary = env.container.auto_checkout_service.run(now=at(TUESDAY, 11))

    saved = env.attendance.get(parked.attendance_id)
    assert summary.scanned == 0
    assert saved.admin_review_status == ReviewStatus.REJECTED
    assert saved.status == AttendanceStatus.ABSENT
    assert saved.check_out_time is None
    assert env.container.review_service.list_pending() == []


def test_rejected_day_cannot_be_checked_out(env, parked):
    env.container.review_service.review(
        parked.attendance_id, action=ReviewAction.REJECT, reviewer_id=ADMIN, current_role=Role.ADMIN,
        now=at(MONDAY, 21, 15),
    )

    with pytest.raises(BusinessRuleViolation) as exc:
        env.container.attendance_service.check_out(EMPLOYEE, photo_ref="p", reason="late", now=at(MONDAY, 21, 30))
    assert exc.value.code == "REVIEW_CLOSED"

    saved = env.attendance.get(parked.attendance_id)
    assert saved.working_hours == 0.0
    assert saved.check_out_time is None


def test_review_only_applies_to_pending(env, parked):
    review(env, parked, ReviewAction.ACCEPT)

    with pytest.raises(BusinessRuleViolation) as exc:
        review(env, parked, ReviewAction.REJECT)
    assert exc.value.code == "NOT_PENDING"


def test_review_needs_admin_and_open_period(env, parked):
    with pytest.raises(AuthorizationError):
        review(env, parked, ReviewAction.ACCEPT, role=Role.EMPLOYEE)

    env.container.lock_service.lock(current_role=Role.MASTER_ADMIN, actor_id=MASTER, year=2025, month=3)
    with pytest.raises(PayrollLockedError):
        review(env, parked, ReviewAction.ACCEPT)


def test_pending_record_is_hidden_from_reports(env, parked):
    report = env.container.report_service.build_attendance_report(start=MONDAY, end=MONDAY)
    assert report.rows == []

    review(env, parked, ReviewAction.ACCEPT)

    report = env.container.report_service.build_attendance_report(start=MONDAY, end=MONDAY)
    assert [row["attendance_id"] for row in report.rows] == [parked.attendance_id]
