from datetime import datetime

from attendance_engine.core.enums import OTSessionStatus
from attendance_engine.overtime.migration import legacy_session_from_row


def test_finished_legacy_row_becomes_completed_session():
    row = {
        "attendance_id": 42,
        "ot_start_time": datetime(2024, 11, 4, 18, 0),
        "ot_end_time": datetime(2024, 11, 4, 20, 30),
        "ot_hours": None,
        "ot_reason": "Month end close",
        "ot_sessions": None,
    }

    session = legacy_session_from_row(row)

    assert session.session_id == "ot_legacy_42"
    assert session.session_number == 1
    assert session.status == OTSessionStatus.COMPLETED
    assert session.ot_hours == 2.5
    assert session.start_time.tzinfo is not None
    assert session.reason == "Month end close"


def test_open_legacy_row_stays_in_progress():
    row = {"attendance_id": 7, "ot_start_time": datetime(2024, 11, 4, 18, 0), "ot_end_time": None, "ot_hours": 3}

    session = legacy_session_from_row(row)

    assert session.status == OTSessionStatus.IN_PROGRESS
    assert session.ot_hours == 0.0


def test_rows_without_legacy_data_or_already_migrated_are_skipped():
    assert legacy_session_from_row({"attendance_id": 1, "ot_start_time": None}) is None
    migrated = {
        "attendance_id": 2,
        "ot_start_time": datetime(2024, 11, 4, 18, 0),
        "ot_sessions": '[{"session_id": "ot_legacy_2"}]',
    }
    assert legacy_session_from_row(migrated) is None
