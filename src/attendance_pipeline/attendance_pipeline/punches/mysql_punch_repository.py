from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, is_duplicate_key, load_json
from .model import PunchCoverage, RawPunchRecord
from .repository import RawPunchRepository

_COLUMNS = "raw_id, source_id, emp_code, punch_time, punch_state, terminal_alias, payload, created_at"


def _to_record(r: dict) -> RawPunchRecord:
    return RawPunchRecord(
        raw_id=int(r["raw_id"]),
        source_id=r.get("source_id"),
        emp_code=r.get("emp_code"),
        punch_time=r.get("punch_time"),
        punch_state=r.get("punch_state"),
        terminal_alias=r.get("terminal_alias"),
        payload=load_json(r.get("payload")),
        created_at=r.get("created_at"),
    )


class MySQLRawPunchRepository(RawPunchRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def exists_by_source_id(self, source_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT raw_id FROM raw_punches WHERE source_id=%s LIMIT 1", (source_id,))
            return fetchone(cur) is not None

    def exists_by_composite(self, *, punch_time: Optional[datetime], emp_code: Optional[str], punch_state: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT raw_id FROM raw_punches
                WHERE punch_time <=> %s AND emp_code <=> %s AND punch_state <=> %s
                LIMIT 1
                """,
                (punch_time, emp_code, punch_state),
            )
            return fetchone(cur) is not None

    def insert(self, record: RawPunchRecord) -> Optional[int]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO raw_punches(source_id, emp_code, punch_time, punch_state, terminal_alias, payload)
                    VALUES(%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        record.source_id,
                        record.emp_code,
                        record.punch_time,
                        record.punch_state,
                        record.terminal_alias,
                        dump_json(record.payload),
                    ),
                )
                return int(cur.lastrowid)
        except Exception as exc:
            if is_duplicate_key(exc):
                return None
            raise

    def latest_punch_time(self) -> Optional[datetime]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT MAX(punch_time) AS latest FROM raw_punches")
            r = fetchone(cur)
            return r.get("latest") if r else None

    def coverage(self) -> PunchCoverage:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS total, MIN(punch_time) AS earliest, MAX(punch_time) AS latest
                FROM raw_punches
                WHERE punch_time IS NOT NULL
                """
            )
            r = fetchone(cur) or {}
            return PunchCoverage(
                total_records=int(r.get("total") or 0),
                earliest=r.get("earliest"),
                latest=r.get("latest"),
            )

    def count_between(self, start: datetime, end: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS n FROM raw_punches WHERE punch_time >= %s AND punch_time < %s",
                (start, end),
            )
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def list_unconverted(self, since: datetime, *, exclude_terminal_keyword: str, limit: int) -> Sequence[RawPunchRecord]:
        terminal_filter = f"%{exclude_terminal_keyword.lower()}%"
        prefixed = ", ".join(f"p.{c.strip()}" for c in _COLUMNS.split(","))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {prefixed}
                FROM raw_punches p
                JOIN (
                    SELECT r.emp_code, DATE(r.punch_time) AS work_date
                    FROM raw_punches r
                    WHERE r.punch_time >= %s
                      AND r.emp_code IS NOT NULL
                      AND (r.terminal_alias IS NULL OR LOWER(r.terminal_alias) NOT LIKE %s)
                      AND NOT EXISTS (
                          SELECT 1 FROM attendance_records a
                          WHERE a.emp_code = r.emp_code AND a.work_date = DATE(r.punch_time)
                      )
                    GROUP BY r.emp_code, DATE(r.punch_time)
                    ORDER BY work_date ASC, r.emp_code ASC
                    LIMIT %s
                ) d ON d.emp_code = p.emp_code AND d.work_date = DATE(p.punch_time)
                WHERE p.terminal_alias IS NULL OR LOWER(p.terminal_alias) NOT LIKE %s
                ORDER BY p.punch_time ASC, p.raw_id ASC
                """,
                (since, terminal_filter, int(limit), terminal_filter),
            )
            return [_to_record(r) for r in fetchall(cur)]
