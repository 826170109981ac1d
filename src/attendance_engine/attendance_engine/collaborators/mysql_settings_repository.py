from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, load_json
from .model import CompanySettings, SalaryStructure
from .repository import CompanySettingsService, SalaryStructureService


class MySQLCompanySettingsService(CompanySettingsService):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_settings(self) -> CompanySettings:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT weekend_days, default_ot_rate, max_ot_hours_per_day,
                       standard_working_days, standard_working_hours
                FROM company_settings
                ORDER BY settings_id
                LIMIT 1
                """
            )
            r = fetchone(cur)
        if not r:
            return CompanySettings()
        defaults = CompanySettings()
        return CompanySettings(
            weekend_days=frozenset(int(d) for d in load_json(r.get("weekend_days"), default=[0])),
            default_ot_rate=float(r.get("default_ot_rate") or defaults.default_ot_rate),
            max_ot_hours_per_day=float(r.get("max_ot_hours_per_day") or defaults.max_ot_hours_per_day),
            standard_working_days=int(r.get("standard_working_days") or defaults.standard_working_days),
            standard_working_hours=float(r.get("standard_working_hours") or defaults.standard_working_hours),
        )


class MySQLSalaryStructureService(SalaryStructureService):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_structure(self, user_id: int) -> Optional[SalaryStructure]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT user_id, fixed_basic, fixed_hra, fixed_conveyance FROM salary_structures WHERE user_id=%s",
                (int(user_id),),
            )
            r = fetchone(cur)
        if not r:
            return None
        return SalaryStructure(
            user_id=int(r["user_id"]),
            fixed_basic=float(r.get("fixed_basic") or 0),
            fixed_hra=float(r.get("fixed_hra") or 0),
            fixed_conveyance=float(r.get("fixed_conveyance") or 0),
        )
