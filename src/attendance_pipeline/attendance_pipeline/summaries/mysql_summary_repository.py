from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import DailySummary
from .repository import DailySummaryRepository

_COLUMNS = """
    summary_id, summary_date, total_employees, present_employees, absent_employees,
    late_employees, non_bio_employees, attendance_rate, created_at
"""


def _to_summary(r: dict) -> DailySummary:
    return DailySummary(
        summary_id=int(r["summary_id"]),
        summary_date=r["summary_date"],
        total_employees=int(r["total_employees"]),
        present_employees=int(r["present_employees"]),
        absent_employees=int(r["absent_employees"]),
        late_employees=int(r["late_employees"]),
        non_bio_employees=int(r["non_bio_employees"]),
        attendance_rate=float(r["attendance_rate"]),
        created_at=r.get("created_at"),
    )


class MySQLDailySummaryRepository(DailySummaryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def exists_for(self, summary_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT summary_id FROM daily_attendance_summary WHERE summary_date=%s LIMIT 1",
                (summary_date,),
            )
            return fetchone(cur) is not None

    def create(self, summary: DailySummary) -> Optional[int]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO daily_attendance_summary(
                        summary_date, total_employees, present_employees, absent_employees,
                        late_employees, non_bio_employees, attendance_rate
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        summary.summary_date,
                        summary.total_employees,
                        summary.present_employees,
                        summary.absent_employees,
                        summary.late_employees,
                        summary.non_bio_employees,
                        summary.attendance_rate,
                    ),
                )
                return int(cur.lastrowid)
        except Exception as exc:
            if is_duplicate_key(exc):
                return None
            raise

    def get_by_date(self, summary_date: date) -> Optional[DailySummary]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM daily_attendance_summary WHERE summary_date=%s", (summary_date,))
            r = fetchone(cur)
            return _to_summary(r) if r else None

    def list_between(self, start: date, end: date) -> Sequence[DailySummary]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM daily_attendance_summary
                WHERE summary_date BETWEEN %s AND %s
                ORDER BY summary_date ASC
                """,
                (start, end),
            )
            return [_to_summary(r) for r in fetchall(cur)]
