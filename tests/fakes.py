"""In-memory stand-ins for the MySQL repositories and the BioTime HTTP session."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from typing import Optional

from src.attendance_pipeline.attendance_pipeline.attendance.model import AttendanceRecord, PunchPair, TimingDecision
from src.attendance_pipeline.attendance_pipeline.biotime.model import PullResult
from src.attendance_pipeline.attendance_pipeline.core.enums import QueueStatus, ResultType
from src.attendance_pipeline.attendance_pipeline.employees.model import EmployeeDirectoryRecord
from src.attendance_pipeline.attendance_pipeline.polling.model import (
    NewQueueItem,
    PollingQueueItem,
    PollingQueueResult,
)
from src.attendance_pipeline.attendance_pipeline.punches.model import PunchCoverage, RawPunchRecord
from src.attendance_pipeline.attendance_pipeline.shifts.model import ShiftSchedule
from src.attendance_pipeline.attendance_pipeline.summaries.model import DailySummary


def punch(emp_code: str, when: datetime, *, source_id: Optional[str] = None, state: str = "0", terminal: str = "Front Door") -> RawPunchRecord:
    return RawPunchRecord(
        source_id=source_id,
        emp_code=emp_code,
        punch_time=when,
        punch_state=state,
        terminal_alias=terminal,
        payload={"id": source_id, "emp_code": emp_code},
    )


class InMemoryPunches:
    def __init__(self, records: Optional[list[RawPunchRecord]] = None, *, attendance=None):
        self.attendance = attendance
        self.records: list[RawPunchRecord] = []
        for r in records or []:
            self.insert(r)

    def exists_by_source_id(self, source_id):
        return any(r.source_id == source_id for r in self.records)

    def exists_by_composite(self, *, punch_time, emp_code, punch_state):
        return any(
            r.punch_time == punch_time and r.emp_code == emp_code and r.punch_state == punch_state
            for r in self.records
        )

    def insert(self, record):
        if record.source_id and self.exists_by_source_id(record.source_id):
            return None
        raw_id = len(self.records) + 1
        self.records.append(replace(record, raw_id=raw_id))
        return raw_id

    def latest_punch_time(self):
        times = [r.punch_time for r in self.records if r.punch_time]
        return max(times) if times else None

    def coverage(self):
        times = [r.punch_time for r in self.records if r.punch_time]
        return PunchCoverage(
            total_records=len(times),
            earliest=min(times) if times else None,
            latest=max(times) if times else None,
        )

    def count_between(self, start, end):
        return sum(1 for r in self.records if r.punch_time and start <= r.punch_time < end)

    def list_unconverted(self, since, *, exclude_terminal_keyword, limit):
        converted = self.attendance.exists_for if self.attendance is not None else (lambda emp, day: False)
        rows = [
            r
            for r in self.records
            if r.emp_code and r.punch_time and r.punch_time >= since
            and exclude_terminal_keyword not in (r.terminal_alias or "").lower()
            and not converted(r.emp_code, r.punch_time.date())
        ]
        days = sorted({(r.punch_time.date(), r.emp_code) for r in rows})[:limit]
        picked = {(emp_code, day) for day, emp_code in days}
        rows = [r for r in rows if (r.emp_code, r.punch_time.date()) in picked]
        rows.sort(key=lambda r: (r.punch_time, r.raw_id))
        return rows


class InMemoryEmployees:
    def __init__(self, records: Optional[list[EmployeeDirectoryRecord]] = None):
        self.by_code: dict[str, EmployeeDirectoryRecord] = {r.emp_code: r for r in records or []}

    def get_by_code(self, emp_code):
        return self.by_code.get(emp_code)

    def upsert(self, record):
        existing = self.by_code.get(record.emp_code)
        if existing is not None:
            record = replace(record, shift_id=existing.shift_id, is_active=existing.is_active, non_bio=existing.non_bio)
        self.by_code[record.emp_code] = record
        return existing is None

    def list_all(self):
        return sorted(self.by_code.values(), key=lambda r: r.emp_code)

    def count_active(self):
        return sum(1 for r in self.by_code.values() if r.is_active)

    def count_active_non_bio(self):
        return sum(1 for r in self.by_code.values() if r.is_active and r.non_bio)


@dataclass
class InMemoryShifts:
    by_employee: dict[str, ShiftSchedule] = field(default_factory=dict)
    lookups: int = 0

    def get_for_employee(self, emp_code):
        self.lookups += 1
        return self.by_employee.get(emp_code)


class InMemoryAttendance:
    def __init__(self):
        self.records: dict[int, AttendanceRecord] = {}
        self._next_id = 1

    def exists_for(self, emp_code, work_date):
        return any(r.emp_code == emp_code and r.work_date == work_date for r in self.records.values())

    def create(self, pair: PunchPair):
        if self.exists_for(pair.emp_code, pair.work_date):
            return None
        attendance_id = self._next_id
        self._next_id += 1
        self.records[attendance_id] = AttendanceRecord(
            attendance_id=attendance_id,
            emp_code=pair.emp_code,
            work_date=pair.work_date,
            check_in=pair.check_in,
            check_out=pair.check_out,
            hours_worked=pair.hours_worked,
            source_punch_id=pair.source_punch_id,
            punch_count=pair.punch_count,
        )
        return attendance_id

    def list_unanalyzed(self, limit):
        rows = [r for r in self.records.values() if r.arrival_status is None]
        return sorted(rows, key=lambda r: (r.work_date, r.attendance_id))[:limit]

    def update_timing(self, attendance_id, decision: TimingDecision):
        record = self.records.get(attendance_id)
        if record is None:
            return False
        self.records[attendance_id] = replace(
            record,
            arrival_status=decision.arrival_status,
            departure_status=decision.departure_status,
            late_minutes=decision.late_minutes,
            grace_minutes=decision.grace_minutes,
            early_minutes=decision.early_minutes,
            late_departure_minutes=decision.late_departure_minutes,
            early_departure_minutes=decision.early_departure_minutes,
        )
        return True

    def list_records(self, *, start, end, emp_code=None):
        rows = [
            r
            for r in self.records.values()
            if start <= r.work_date <= end and (emp_code is None or r.emp_code == emp_code)
        ]
        return sorted(rows, key=lambda r: (r.work_date, r.emp_code))

    def count_present(self, work_date):
        return len({r.emp_code for r in self.records.values() if r.work_date == work_date})

    def count_late(self, work_date):
        return len({r.emp_code for r in self.records.values() if r.work_date == work_date and (r.late_minutes or 0) > 0})


class InMemorySummaries:
    def __init__(self):
        self.by_date: dict[date, DailySummary] = {}

    def exists_for(self, summary_date):
        return summary_date in self.by_date

    def create(self, summary):
        if summary.summary_date in self.by_date:
            return None
        self.by_date[summary.summary_date] = summary
        return len(self.by_date)

    def get_by_date(self, summary_date):
        return self.by_date.get(summary_date)

    def list_between(self, start, end):
        return [s for d, s in sorted(self.by_date.items()) if start <= d <= end]


class InMemoryQueue:
    def __init__(self):
        self.items: dict[int, PollingQueueItem] = {}
        self.results: list[PollingQueueResult] = []
        self.progress_updates: list[tuple[int, int, int, float]] = []
        self._next_id = 1

    def enqueue(self, item: NewQueueItem, *, requested_at):
        item_id = self._next_id
        self._next_id += 1
        self.items[item_id] = PollingQueueItem(
            id=item_id,
            request_type=item.request_type,
            target_date=item.target_date,
            end_date=item.end_date,
            priority=item.priority,
            status=QueueStatus.PENDING,
            requested_by=item.requested_by,
            requested_at=requested_at,
            metadata=dict(item.metadata),
        )
        return item_id

    def get(self, item_id):
        return self.items.get(item_id)

    def list_pending(self):
        rows = [i for i in self.items.values() if i.status == QueueStatus.PENDING]
        return sorted(rows, key=lambda i: (i.priority, i.requested_at, i.id))

    def mark_processing(self, item_id, *, started_at):
        item = self.items.get(item_id)
        if item is None or item.status != QueueStatus.PENDING:
            return False
        self.items[item_id] = replace(item, status=QueueStatus.PROCESSING, started_at=started_at)
        return True

    def update_progress(self, item_id, *, records_processed, total_records, progress_percentage):
        self.progress_updates.append((item_id, records_processed, total_records, progress_percentage))
        self.items[item_id] = replace(
            self.items[item_id],
            records_processed=records_processed,
            total_records=total_records,
            progress_percentage=progress_percentage,
        )

    def finish(self, item_id, *, status, completed_at, records_processed, total_records, progress_percentage, error_message=None):
        self.items[item_id] = replace(
            self.items[item_id],
            status=status,
            completed_at=completed_at,
            records_processed=records_processed,
            total_records=total_records,
            progress_percentage=progress_percentage,
            error_message=error_message,
        )

    def cancel(self, item_id, *, completed_at, message):
        item = self.items.get(item_id)
        if item is None or item.status != QueueStatus.PENDING:
            return False
        self.items[item_id] = replace(item, status=QueueStatus.CANCELLED, completed_at=completed_at, error_message=message)
        return True

    def add_result(self, queue_id, *, result_type, data_count, processing_time_ms, error_details=None):
        result = PollingQueueResult(
            id=len(self.results) + 1,
            queue_id=queue_id,
            result_type=ResultType(result_type),
            data_count=data_count,
            processing_time_ms=processing_time_ms,
            error_details=error_details,
        )
        self.results.append(result)
        return result.id

    def list_results(self, queue_id):
        return [r for r in self.results if r.queue_id == queue_id]

    def list_page(self, *, status, offset, limit):
        rows = [i for i in self.items.values() if status is None or i.status == status]
        rows.sort(key=lambda i: (i.requested_at, i.id), reverse=True)
        return rows[offset : offset + limit], len(rows)

    def count_by_status(self):
        counts: dict[QueueStatus, int] = {}
        for item in self.items.values():
            counts[item.status] = counts.get(item.status, 0) + 1
        return counts


class StubIngestion:
    """Records pull windows; answers from a per-start map or a default result."""

    def __init__(self, default: Optional[PullResult] = None, by_day: Optional[dict[date, PullResult]] = None, *, punches=None):
        self.default = default or PullResult(success=True)
        self.by_day = by_day or {}
        self.punches = punches
        self.calls: list[tuple[datetime, datetime]] = []

    def last_sync_time(self):
        return self.punches.latest_punch_time() if self.punches is not None else None

    def pull_attendance(self, start, end):
        self.calls.append((start, end))
        return self.by_day.get(start.date(), self.default)

    def pull_attendance_for_date(self, day):
        start = datetime.combine(day, datetime.min.time())
        return self.pull_attendance(start, start + timedelta(days=1))


class FakeResponse:
    def __init__(self, status_code: int = 200, body: Optional[dict] = None):
        self.status_code = status_code
        self._body = body or {}

    def json(self):
        return self._body


class FakeSession:
    """Minimal requests.Session: POST answers auth, GET pops scripted responses."""

    def __init__(self, get_responses=None, *, token: str = "tok-1", auth_status: int = 200):
        self.get_responses: list = list(get_responses or [])
        self.token = token
        self.auth_status = auth_status
        self.posts: list[dict] = []
        self.gets: list[dict] = []

    def post(self, url, json=None, timeout=None, verify=None):
        self.posts.append({"url": url, "json": json})
        if self.auth_status != 200:
            return FakeResponse(self.auth_status, {})
        return FakeResponse(200, {"token": f"{self.token}-{len(self.posts)}"})

    def get(self, url, params=None, headers=None, timeout=None, verify=None):
        self.gets.append({"url": url, "params": dict(params or {}), "headers": dict(headers or {})})
        if not self.get_responses:
            return FakeResponse(200, {"data": []})
        response = self.get_responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def transactions_page(start_id: int, count: int, *, day: str = "2026-02-09", terminal: str = "Front Door") -> FakeResponse:
    rows = [
        {
            "id": start_id + i,
            "emp_code": f"E{(start_id + i) % 7}",
            "punch_time": f"{day} 08:{i % 60:02d}:00",
            "punch_state": "0",
            "terminal_alias": terminal,
        }
        for i in range(count)
    ]
    return FakeResponse(200, {"data": rows, "count": count})

