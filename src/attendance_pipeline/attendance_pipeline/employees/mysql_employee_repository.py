from __future__ import annotations

from typing import Optional, Sequence

from ..core.constants import FORMER_EMPLOYEES_DEPARTMENT
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json
from .model import EmployeeDirectoryRecord
from .repository import EmployeeDirectoryRepository

_COLUMNS = """
    emp_code, source_id, first_name, last_name, nickname, format_name, department, position,
    mobile, email, hire_date, payload, pulled_at, shift_id, is_active, non_bio
"""

# Columns the source sync owns; shift_id / is_active / non_bio belong to HR.
_SYNCED = (
    "source_id",
    "first_name",
    "last_name",
    "nickname",
    "format_name",
    "department",
    "position",
    "mobile",
    "email",
    "hire_date",
    "payload",
    "pulled_at",
)


def _to_record(r: dict) -> EmployeeDirectoryRecord:
    return EmployeeDirectoryRecord(
        emp_code=r["emp_code"],
        source_id=r.get("source_id"),
        first_name=r.get("first_name"),
        last_name=r.get("last_name"),
        nickname=r.get("nickname"),
        format_name=r.get("format_name"),
        department=r.get("department"),
        position=r.get("position"),
        mobile=r.get("mobile"),
        email=r.get("email"),
        hire_date=r.get("hire_date"),
        payload=load_json(r.get("payload")),
        pulled_at=r.get("pulled_at"),
        shift_id=r.get("shift_id"),
        is_active=bool(r.get("is_active", True)),
        non_bio=bool(r.get("non_bio", False)),
    )


def _synced_values(record: EmployeeDirectoryRecord) -> tuple:
    return (
        record.source_id,
        record.first_name,
        record.last_name,
        record.nickname,
        record.format_name,
        record.department,
        record.position,
        record.mobile,
        record.email,
        record.hire_date,
        dump_json(record.payload),
        record.pulled_at,
    )


class MySQLEmployeeDirectoryRepository(EmployeeDirectoryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_code(self, emp_code: str) -> Optional[EmployeeDirectoryRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employee_directory WHERE emp_code=%s", (emp_code,))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def upsert(self, record: EmployeeDirectoryRecord) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT emp_code FROM employee_directory WHERE emp_code=%s LIMIT 1", (record.emp_code,))
            if fetchone(cur):
                assignments = ", ".join(f"{col}=%s" for col in _SYNCED)
                cur.execute(
                    f"UPDATE employee_directory SET {assignments} WHERE emp_code=%s",
                    _synced_values(record) + (record.emp_code,),
                )
                return False

            placeholders = ",".join(["%s"] * (len(_SYNCED) + 1))
            cur.execute(
                f"INSERT INTO employee_directory(emp_code, {', '.join(_SYNCED)}) VALUES({placeholders})",
                (record.emp_code,) + _synced_values(record),
            )
            return True

    def list_all(self) -> Sequence[EmployeeDirectoryRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employee_directory ORDER BY emp_code")
            return [_to_record(r) for r in fetchall(cur)]

    def count_active(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(DISTINCT emp_code) AS n FROM employee_directory
                WHERE is_active=1 AND (department IS NULL OR department <> %s)
                """,
                (FORMER_EMPLOYEES_DEPARTMENT,),
            )
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def count_active_non_bio(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS n FROM employee_directory
                WHERE is_active=1 AND non_bio=1 AND (department IS NULL OR department <> %s)
                """,
                (FORMER_EMPLOYEES_DEPARTMENT,),
            )
            r = fetchone(cur)
            return int(r["n"]) if r else 0
