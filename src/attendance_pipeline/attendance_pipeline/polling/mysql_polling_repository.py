from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import QueueStatus, RequestType, ResultType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json
from .model import NewQueueItem, PollingQueueItem, PollingQueueResult
from .repository import PollingQueueRepository

_COLUMNS = """
    id, request_type, target_date, end_date, priority, status, requested_by, requested_at,
    started_at, completed_at, error_message, records_processed, total_records,
    progress_percentage, metadata
"""


def _to_item(r: dict) -> PollingQueueItem:
    return PollingQueueItem(
        id=int(r["id"]),
        request_type=RequestType(r["request_type"]),
        target_date=r["target_date"],
        end_date=r.get("end_date"),
        priority=int(r["priority"]),
        status=QueueStatus(r["status"]),
        requested_by=r.get("requested_by"),
        requested_at=r["requested_at"],
        started_at=r.get("started_at"),
        completed_at=r.get("completed_at"),
        error_message=r.get("error_message"),
        records_processed=int(r.get("records_processed") or 0),
        total_records=int(r.get("total_records") or 0),
        progress_percentage=float(r.get("progress_percentage") or 0),
        metadata=load_json(r.get("metadata")),
    )


class MySQLPollingQueueRepository(PollingQueueRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def enqueue(self, item: NewQueueItem, *, requested_at: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO polling_queue(
                    request_type, target_date, end_date, priority, status, requested_by, requested_at, metadata
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    item.request_type.value,
                    item.target_date,
                    item.end_date,
                    int(item.priority),
                    QueueStatus.PENDING.value,
                    item.requested_by,
                    requested_at,
                    dump_json(item.metadata) if item.metadata else None,
                ),
            )
            return int(cur.lastrowid)

    def get(self, item_id: int) -> Optional[PollingQueueItem]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM polling_queue WHERE id=%s", (int(item_id),))
            r = fetchone(cur)
            return _to_item(r) if r else None

    def list_pending(self) -> Sequence[PollingQueueItem]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM polling_queue
                WHERE status=%s
                ORDER BY priority ASC, requested_at ASC, id ASC
                """,
                (QueueStatus.PENDING.value,),
            )
            return [_to_item(r) for r in fetchall(cur)]

    def mark_processing(self, item_id: int, *, started_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE polling_queue SET status=%s, started_at=%s WHERE id=%s AND status=%s",
                (QueueStatus.PROCESSING.value, started_at, int(item_id), QueueStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def update_progress(
        self, item_id: int, *, records_processed: int, total_records: int, progress_percentage: float
    ) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE polling_queue
                SET records_processed=%s, total_records=%s, progress_percentage=%s
                WHERE id=%s
                """,
                (int(records_processed), int(total_records), float(progress_percentage), int(item_id)),
            )

    def finish(
        self,
        item_id: int,
        *,
        status: QueueStatus,
        completed_at: datetime,
        records_processed: int,
        total_records: int,
        progress_percentage: float,
        error_message: Optional[str] = None,
    ) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE polling_queue
                SET status=%s, completed_at=%s, records_processed=%s, total_records=%s,
                    progress_percentage=%s, error_message=%s
                WHERE id=%s
                """,
                (
                    status.value,
                    completed_at,
                    int(records_processed),
                    int(total_records),
                    float(progress_percentage),
                    error_message,
                    int(item_id),
                ),
            )

    def cancel(self, item_id: int, *, completed_at: datetime, message: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE polling_queue SET status=%s, completed_at=%s, error_message=%s
                WHERE id=%s AND status=%s
                """,
                (QueueStatus.CANCELLED.value, completed_at, message, int(item_id), QueueStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def add_result(
        self,
        queue_id: int,
        *,
        result_type: ResultType,
        data_count: int,
        processing_time_ms: int,
        error_details: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO polling_queue_results(queue_id, result_type, data_count, error_details, processing_time_ms)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (int(queue_id), result_type.value, int(data_count), error_details, int(processing_time_ms)),
            )
            return int(cur.lastrowid)

    def list_results(self, queue_id: int) -> Sequence[PollingQueueResult]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, queue_id, result_type, data_count, error_details, processing_time_ms, created_at
                FROM polling_queue_results
                WHERE queue_id=%s
                ORDER BY id ASC
                """,
                (int(queue_id),),
            )
            return [
                PollingQueueResult(
                    id=int(r["id"]),
                    queue_id=int(r["queue_id"]),
                    result_type=ResultType(r["result_type"]),
                    data_count=int(r.get("data_count") or 0),
                    error_details=r.get("error_details"),
                    processing_time_ms=int(r.get("processing_time_ms") or 0),
                    created_at=r.get("created_at"),
                )
                for r in fetchall(cur)
            ]

    def list_page(self, *, status: Optional[QueueStatus], offset: int, limit: int) -> tuple[Sequence[PollingQueueItem], int]:
        where = ""
        params: tuple = ()
        if status is not None:
            where = "WHERE status=%s"
            params = (status.value,)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM polling_queue {where}", params)
            r = fetchone(cur)
            total = int(r["n"]) if r else 0
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM polling_queue {where}
                ORDER BY requested_at DESC, id DESC
                LIMIT %s OFFSET %s
                """,
                params + (int(limit), int(offset)),
            )
            return [_to_item(row) for row in fetchall(cur)], total

    def count_by_status(self) -> dict[QueueStatus, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT status, COUNT(*) AS n FROM polling_queue GROUP BY status")
            return {QueueStatus(r["status"]): int(r["n"]) for r in fetchall(cur)}
