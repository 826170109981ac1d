import pytest

from attendance_engine.core.enums import Role
from attendance_engine.main import create_app

from conftest import ADMIN, EMPLOYEE, MASTER, MONDAY, at


@pytest.fixture
def app(env, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    return create_app(container=env.container)


@pytest.fixture
def client(app):
    return app.test_client()


def login(client, user_id, role):
    with client.session_transaction() as sess:
        sess["user_id"] = user_id
        sess["role"] = role.value


def test_login_is_required(client):
    resp = client.post("/api/attendance/check-in", json={"photo_ref": "p"})

    assert resp.status_code == 401
    assert resp.get_json()["code"] == "UNAUTHENTICATED"


def test_check_in_and_out(env, client):
    login(client, EMPLOYEE, Role.EMPLOYEE)
    env.clock.now = at(MONDAY, 9, 20)

    resp = client.post(
        "/api/attendance/check-in",
        json={"photo_ref": "p.jpg", "location": {"latitude": 12.97, "longitude": 77.59}},
    )
    body = resp.get_json()
    assert resp.status_code == 201
    assert body["success"] is True
    assert body["attendance"]["status"] == "late"
    assert body["attendance"]["check_in_location"]["latitude"] == 12.97

    env.clock.now = at(MONDAY, 18, 0)
    resp = client.post("/api/attendance/check-out", json={})
    assert resp.status_code == 200
    assert resp.get_json()["attendance"]["working_hours"] == 8.67

    today = client.get("/api/attendance/today").get_json()
    assert today["attendance"]["date"] == "2025-03-03"


def test_missing_photo_is_a_needs_input_error(client):
    login(client, EMPLOYEE, Role.EMPLOYEE)

    resp = client.post("/api/attendance/check-in", json={})
    body = resp.get_json()

    assert resp.status_code == 400
    assert body["success"] is False
    assert body["code"] == "PHOTO_REQUIRED"
    assert body["category"] == "needs_input"
    assert body["missing_fields"] == ["photo"]


def test_check_out_without_check_in_is_404(client):
    login(client, EMPLOYEE, Role.EMPLOYEE)

    resp = client.post("/api/attendance/check-out", json={})

    assert resp.status_code == 404
    assert resp.get_json()["code"] == "NO_OPEN_RECORD"


def test_employee_cannot_reach_admin_routes(client):
    login(client, EMPLOYEE, Role.EMPLOYEE)

    resp = client.get("/api/admin/attendance/pending")

    assert resp.status_code == 403
    assert resp.get_json()["code"] == "FORBIDDEN"


def test_locked_period_is_423(env, client):
    login(client, MASTER, Role.MASTER_ADMIN)
    resp = client.post("/api/admin/payroll-periods/lock", json={"year": 2025, "month": 3})
    assert resp.status_code == 200
    assert resp.get_json()["period"]["status"] == "locked"

    login(client, EMPLOYEE, Role.EMPLOYEE)
    resp = client.post("/api/attendance/check-in", json={"photo_ref": "p"})
    assert resp.status_code == 423
    assert resp.get_json()["code"] == "PERIOD_LOCKED"


def test_payroll_blocked_by_pending_review(env, client):
    env.container.attendance_service.check_in(EMPLOYEE, photo_ref="p", now=at(MONDAY, 9, 0))
    env.container.auto_checkout_service.run(now=at(MONDAY, 21, 0))
    login(client, ADMIN, Role.ADMIN)

    pending = client.get("/api/admin/attendance/pending").get_json()
    assert pending["count"] == 1

    resp = client.post("/api/admin/payroll/generate", json={"year": 2025, "month": 3})
    assert resp.status_code == 409
    assert resp.get_json()["count"] == 1

    record_id = pending["records"][0]["attendance_id"]
    resp = client.post(
        f"/api/admin/attendance/{record_id}/review",
        json={"action": "ADJUST", "check_out_time": "2025-03-03T17:00:00Z", "notes": "Badge log"},
    )
    assert resp.status_code == 200
    assert resp.get_json()["attendance"]["working_hours"] == 8.0

    resp = client.post("/api/admin/payroll/generate", json={"year": 2025, "month": 3})
    assert resp.status_code == 200
    assert resp.get_json()["payroll"]["lines"][0]["user_id"] == EMPLOYEE


def test_overtime_flow(env, client):
    login(client, EMPLOYEE, Role.EMPLOYEE)
    env.clock.now = at(MONDAY, 18, 30)

    resp = client.post("/api/ot/start", json={"reason": "Release"})
    assert resp.status_code == 201
    session_id = resp.get_json()["session"]["session_id"]

    env.clock.now = at(MONDAY, 20, 0)
    assert client.get("/api/ot/status").get_json()["state"] == "in_progress"
    resp = client.post("/api/ot/end", json={"session_id": session_id})
    assert resp.status_code == 200
    assert resp.get_json()["session"]["ot_hours"] == 1.5

    sessions = client.get("/api/ot/sessions?date=2025-03-03").get_json()["sessions"]
    assert [s["session_id"] for s in sessions] == [session_id]

    login(client, ADMIN, Role.ADMIN)
    resp = client.post(f"/api/admin/ot/{session_id}/review", json={"action": "rejected"})
    assert resp.status_code == 200
    assert resp.get_json()["session"]["status"] == "REJECTED"


def test_bad_review_action(env, client):
    login(client, ADMIN, Role.ADMIN)

    resp = client.post("/api/admin/attendance/1/review", json={"action": "maybe"})

    assert resp.status_code == 400
    assert resp.get_json()["missing_fields"] == ["action"]


def test_department_timing_update(client):
    login(client, ADMIN, Role.ADMIN)

    resp = client.put(
        "/api/admin/department-timings/Engineering",
        json={"check_in_time": "10:00 am", "check_out_time": "7:00 pm"},
    )
    assert resp.status_code == 200

    timing = client.get("/api/department-timings/engineering").get_json()["timing"]
    assert timing["check_in_time"] == "10:00 AM"
    assert timing["weekly_off_days"] == [0]


def test_invalid_timing_is_400(client):
    login(client, ADMIN, Role.ADMIN)

    resp = client.put("/api/admin/department-timings/engineering", json={"check_in_time": "9", "check_out_time": "6"})

    assert resp.status_code == 400
    assert resp.get_json()["code"] == "INVALID_SHIFT_TIME"


def test_admin_report_filters(env, client):
    env.container.attendance_service.check_in(EMPLOYEE, photo_ref="p", now=at(MONDAY, 9, 0))
    env.container.attendance_service.check_out(EMPLOYEE, now=at(MONDAY, 17, 0))
    login(client, ADMIN, Role.ADMIN)

    body = client.get("/api/admin/report?start=2025-03-01&end=2025-03-31&department=engineering").get_json()

    assert body["summary"][0]["total_hours"] == "08:00"
    resp = client.get("/api/admin/report?start=2025-03-31&end=2025-03-01")
    assert resp.status_code == 400


def test_unknown_route_keeps_http_status(client):
    assert client.get("/api/nope").status_code == 404
