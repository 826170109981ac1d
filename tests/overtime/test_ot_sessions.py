import pytest

from attendance_engine.collaborators.model import Holiday
from attendance_engine.core.enums import AttendanceStatus, NotificationKind, OTSessionStatus, OTType, Role
from attendance_engine.core.exceptions import BusinessRuleViolation, NotFoundError, PayrollLockedError

from conftest import ADMIN, EMPLOYEE, MASTER, MONDAY, SUNDAY, at


def start(env, when, user_id=EMPLOYEE, **kwargs):
    return env.container.ot_service.start(user_id, now=when, **kwargs)


def end(env, when, user_id=EMPLOYEE, **kwargs):
    return env.container.ot_service.end(user_id, now=when, **kwargs)


def test_start_creates_the_day_record(env):
    session = start(env, at(MONDAY, 19, 0), reason="Hotfix", photo_ref="p.jpg")

    record = env.attendance.get_for_user_and_date(EMPLOYEE, MONDAY)
    assert record.status == AttendanceStatus.PRESENT
    assert record.check_in_time is None
    assert record.active_session() == session
    assert session.session_id.startswith("ot_")
    assert session.session_number == 1
    assert session.reason == "Hotfix"


@pytest.mark.parametrize(
    "day, hour, expected",
    [
        (MONDAY, 7, OTType.EARLY_ARRIVAL),
        (MONDAY, 19, OTType.LATE_DEPARTURE),
        (SUNDAY, 11, OTType.WEEKEND),
    ],
)
def test_session_type_classification(env, day, hour, expected):
    assert start(env, at(day, hour)).ot_type == expected


def test_holiday_overtime_needs_permission(env):
    env.holidays.holidays.append(Holiday("Diwali", MONDAY))
    with pytest.raises(BusinessRuleViolation) as exc:
        start(env, at(MONDAY, 10))
    assert exc.value.code == "OT_NOT_ALLOWED"

    env.holidays.holidays[0] = Holiday("Diwali", MONDAY, allow_ot=True)
    assert start(env, at(MONDAY, 10)).ot_type == OTType.HOLIDAY


def test_start_on_leave_or_locked_period(env):
    env.leaves.days.add((EMPLOYEE, MONDAY))
    with pytest.raises(BusinessRuleViolation) as exc:
        start(env, at(MONDAY, 19))
    assert exc.value.code == "ON_LEAVE"

    env.container.lock_service.lock(current_role=Role.MASTER_ADMIN, actor_id=MASTER, year=2025, month=3)
    with pytest.raises(PayrollLockedError):
        start(env, at(MONDAY, 19), user_id=ADMIN)


def test_only_one_active_session(env):
    start(env, at(MONDAY, 19, 0))

    with pytest.raises(BusinessRuleViolation) as exc:
        start(env, at(MONDAY, 19, 30))
    assert exc.value.code == "OT_ALREADY_ACTIVE"
    env.assert_session_invariants()


def test_end_records_hours(env):
    start(env, at(MONDAY, 18, 0))

    result = end(env, at(MONDAY, 23, 0), photo_ref="end.jpg")

    assert result.session.status == OTSessionStatus.COMPLETED
    assert result.session.ot_hours == 5.0
    assert not result.exceeds_daily_limit
    assert env.attendance.get_for_user_and_date(EMPLOYEE, MONDAY).total_ot_hours == 5.0


def test_sessions_are_numbered_in_order(env):
    start(env, at(MONDAY, 7, 0))
    end(env, at(MONDAY, 8, 30))
    second = start(env, at(MONDAY, 18, 30))

    assert second.session_number == 2
    assert [s.session_number for s in env.container.ot_service.sessions_for_date(EMPLOYEE, MONDAY)] == [1, 2]


def test_daily_cap_sends_session_to_review(env):
    start(env, at(MONDAY, 18, 0))
    end(env, at(MONDAY, 21, 0))
    start(env, at(MONDAY, 21, 30))

    result = end(env, at(MONDAY, 23, 45))

    assert result.exceeds_daily_limit
    assert result.total_ot_hours == 5.25
    assert result.session.status == OTSessionStatus.PENDING_REVIEW
    assert result.session.ot_hours == 0.0
    assert env.attendance.get_for_user_and_date(EMPLOYEE, MONDAY).total_ot_hours == 3.0
    assert NotificationKind.OT_REVIEW_REQUIRED in env.notifications.kinds_for(ADMIN)
    env.assert_session_invariants()


def test_end_without_active_session(env):
    with pytest.raises(NotFoundError) as exc:
        end(env, at(MONDAY, 20))
    assert exc.value.code == "NO_ACTIVE_SESSION"


def test_end_of_someone_elses_session(env):
    session = start(env, at(MONDAY, 19))

    with pytest.raises(NotFoundError):
        end(env, at(MONDAY, 20), user_id=ADMIN, session_id=session.session_id)


def test_end_of_closed_session(env):
    session = start(env, at(MONDAY, 19))
    end(env, at(MONDAY, 20))

    with pytest.raises(BusinessRuleViolation) as exc:
        end(env, at(MONDAY, 21), session_id=session.session_id)
    assert exc.value.code == "SESSION_NOT_ACTIVE"


def test_status_follows_the_session(env):
    service = env.container.ot_service
    assert service.get_status(EMPLOYEE, now=at(MONDAY, 18)).state == "not_started"

    start(env, at(MONDAY, 18, 0))
    status = service.get_status(EMPLOYEE, now=at(MONDAY, 19, 30))
    assert status.state == "in_progress"
    assert status.can_end and not status.can_start
    assert status.current_ot_hours == 1.5

    end(env, at(MONDAY, 20, 0))
    status = service.get_status(EMPLOYEE, now=at(MONDAY, 20, 5))
    assert status.state == "completed"
    assert status.can_start
