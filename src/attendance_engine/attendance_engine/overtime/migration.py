"""One-time migration of legacy single-session OT columns.

Rows written before multi-session overtime carry ``ot_start_time``,
``ot_end_time``, ``ot_hours`` and ``ot_reason`` directly on the attendance
row. Each becomes a one-element ``ot_sessions`` array. Rows that already have
sessions are left alone, so the job can be re-run safely.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..common.datetime_utils import ensure_aware, hours_between
from ..common.sweep import SweepSummary
from ..core.enums import OTSessionStatus, OTType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, load_json
from .model import OTSession

logger = logging.getLogger(__name__)

MIGRATION_BATCH_SIZE = 500


def legacy_session_from_row(row: dict) -> Optional[OTSession]:
    if row.get("ot_start_time") is None:
        return None
    if load_json(row.get("ot_sessions"), default=[]):
        return None

    start = ensure_aware(row["ot_start_time"])
    end = ensure_aware(row["ot_end_time"]) if row.get("ot_end_time") else None
    hours = float(row.get("ot_hours") or 0)
    if end is not None and not hours:
        hours = hours_between(start, end)

    return OTSession(
        session_id=f"ot_legacy_{row['attendance_id']}",
        session_number=1,
        ot_type=OTType.LATE_DEPARTURE,
        start_time=start,
        status=OTSessionStatus.COMPLETED if end is not None else OTSessionStatus.IN_PROGRESS,
        end_time=end,
        ot_hours=hours if end is not None else 0.0,
        reason=row.get("ot_reason"),
    )


def migrate_legacy_ot(conn_factory: DatabaseConnection, *, batch_size: int = MIGRATION_BATCH_SIZE) -> SweepSummary:
    summary = SweepSummary(name="legacy_ot_migration")
    last_id = 0
    while True:
        with db_cursor(conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT attendance_id, ot_start_time, ot_end_time, ot_hours, ot_reason, ot_sessions
                FROM attendance_records
                WHERE attendance_id > %s AND ot_start_time IS NOT NULL
                ORDER BY attendance_id
                LIMIT %s
                """,
                (last_id, int(batch_size)),
            )
            rows = fetchall(cur)
            if not rows:
                break

            for row in rows:
                summary.scanned += 1
                last_id = int(row["attendance_id"])
                session = legacy_session_from_row(row)
                if session is None:
                    summary.skipped += 1
                    continue
                cur.execute(
                    """
                    UPDATE attendance_records
                    SET ot_sessions=%s, total_ot_hours=%s, version=version+1
                    WHERE attendance_id=%s
                    """,
                    (dump_json([session.to_dict()]), session.payable_hours, last_id),
                )
                summary.processed += 1
        logger.info("Legacy OT migration: %d rows migrated so far (up to id %d)", summary.processed, last_id)

    logger.info("Legacy OT migration done: %d migrated, %d skipped", summary.processed, summary.skipped)
    return summary
