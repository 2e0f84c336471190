from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import ArrivalStatus, DepartureStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import AttendanceRecord, PunchPair, TimingDecision
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, emp_code, work_date, check_in, check_out, hours_worked, source_punch_id, punch_count,
    arrival_status, departure_status, late_minutes, grace_minutes, early_minutes,
    late_departure_minutes, early_departure_minutes, created_at
"""


def _to_record(r: dict) -> AttendanceRecord:
    arrival = r.get("arrival_status")
    departure = r.get("departure_status")
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        emp_code=r["emp_code"],
        work_date=r["work_date"],
        check_in=r["check_in"],
        check_out=r.get("check_out"),
        hours_worked=float(r.get("hours_worked") or 0),
        source_punch_id=r.get("source_punch_id"),
        punch_count=int(r.get("punch_count") or 1),
        arrival_status=ArrivalStatus(arrival) if arrival else None,
        departure_status=DepartureStatus(departure) if departure else None,
        late_minutes=r.get("late_minutes"),
        grace_minutes=r.get("grace_minutes"),
        early_minutes=r.get("early_minutes"),
        late_departure_minutes=r.get("late_departure_minutes"),
        early_departure_minutes=r.get("early_departure_minutes"),
        created_at=r.get("created_at"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def exists_for(self, emp_code: str, work_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT attendance_id FROM attendance_records WHERE emp_code=%s AND work_date=%s LIMIT 1",
                (emp_code, work_date),
            )
            return fetchone(cur) is not None

    def create(self, pair: PunchPair) -> Optional[int]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        emp_code, work_date, check_in, check_out, hours_worked, source_punch_id, punch_count
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        pair.emp_code,
                        pair.work_date,
                        pair.check_in,
                        pair.check_out,
                        pair.hours_worked,
                        pair.source_punch_id,
                        pair.punch_count,
                    ),
                )
                return int(cur.lastrowid)
        except Exception as exc:
            if is_duplicate_key(exc):
                return None
            raise

    def list_unanalyzed(self, limit: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE arrival_status IS NULL
                ORDER BY work_date ASC, attendance_id ASC
                LIMIT %s
                """,
                (int(limit),),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def update_timing(self, attendance_id: int, decision: TimingDecision) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET arrival_status=%s, departure_status=%s, late_minutes=%s, grace_minutes=%s,
                    early_minutes=%s, late_departure_minutes=%s, early_departure_minutes=%s
                WHERE attendance_id=%s
                """,
                (
                    decision.arrival_status.value,
                    decision.departure_status.value,
                    decision.late_minutes,
                    decision.grace_minutes,
                    decision.early_minutes,
                    decision.late_departure_minutes,
                    decision.early_departure_minutes,
                    attendance_id,
                ),
            )
            return cur.rowcount > 0

    def list_records(self, *, start: date, end: date, emp_code: Optional[str] = None) -> Sequence[AttendanceRecord]:
        sql = f"SELECT {_COLUMNS} FROM attendance_records WHERE work_date BETWEEN %s AND %s"
        params: list = [start, end]
        if emp_code:
            sql += " AND emp_code=%s"
            params.append(emp_code)
        sql += " ORDER BY work_date ASC, emp_code ASC"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_record(r) for r in fetchall(cur)]

    def count_present(self, work_date: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(DISTINCT emp_code) AS n FROM attendance_records
                WHERE work_date=%s AND check_in IS NOT NULL
                """,
                (work_date,),
            )
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def count_late(self, work_date: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(DISTINCT emp_code) AS n FROM attendance_records
                WHERE work_date=%s AND late_minutes > 0
                """,
                (work_date,),
            )
            r = fetchone(cur)
            return int(r["n"]) if r else 0
