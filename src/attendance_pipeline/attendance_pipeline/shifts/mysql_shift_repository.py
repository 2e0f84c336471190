from __future__ import annotations

from typing import Optional

from ..core.constants import DEFAULT_GRACE_MINUTES
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, normalize_mysql_time
from .model import ShiftSchedule, parse_days_of_week
from .repository import ShiftRepository


def _to_shift(r: dict) -> ShiftSchedule:
    grace = r.get("grace_period_minutes")
    return ShiftSchedule(
        shift_id=int(r["shift_id"]),
        shift_name=r["shift_name"],
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        grace_period_minutes=DEFAULT_GRACE_MINUTES if grace is None else int(grace),
        days_of_week=parse_days_of_week(r.get("days_of_week")),
    )


class MySQLShiftRepository(ShiftRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_employee(self, emp_code: str) -> Optional[ShiftSchedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT s.shift_id, s.shift_name, s.start_time, s.end_time, s.grace_period_minutes, s.days_of_week
                FROM employee_directory e
                JOIN shifts s ON s.shift_id = e.shift_id
                WHERE e.emp_code=%s AND s.is_active=1
                """,
                (emp_code,),
            )
            r = fetchone(cur)
            return _to_shift(r) if r else None
