from __future__ import annotations

from datetime import datetime

from fakes import InMemoryEmployees, InMemoryPunches
from src.attendance_pipeline.attendance_pipeline.biotime.service import BioTimeIngestionService
from src.attendance_pipeline.attendance_pipeline.core.exceptions import SourceUnavailableError
from src.attendance_pipeline.attendance_pipeline.employees.model import EmployeeDirectoryRecord

START = datetime(2026, 2, 9, 0, 0, 0)
END = datetime(2026, 2, 10, 0, 0, 0)


class StubClient:
    def __init__(self, transactions=None, employees=None, error=None):
        self.transactions = transactions or []
        self.employees = employees or []
        self.error = error

    def fetch_transactions(self, start, end):
        if self.error:
            raise self.error
        return [dict(r) for r in self.transactions]

    def fetch_employees(self):
        if self.error:
            raise self.error
        return [dict(e) for e in self.employees]

    def test_connection(self):
        return self.error is None


TRANSACTIONS = [
    {"id": 101, "emp_code": "E1", "punch_time": "2026-02-09 08:01:00", "punch_state": "0", "terminal_alias": "Lobby"},
    {"id": 102, "emp_code": "E1", "punch_time": "2026-02-09 17:03:00", "punch_state": "1", "terminal_alias": "Lobby"},
    {"id": 103, "emp_code": "E2", "punch_time": "2026-02-09 08:10:00", "punch_state": "0", "terminal_alias": "Server Room LOCK"},
    {"id": 104, "emp_code": "E3", "punch_time": "not-a-date", "punch_state": "0", "terminal_alias": "Lobby"},
]


def test_pull_is_idempotent():
    punches = InMemoryPunches()
    svc = BioTimeIngestionService(StubClient(TRANSACTIONS), punches, InMemoryEmployees())

    first = svc.pull_attendance(START, END)
    second = svc.pull_attendance(START, END)

    assert first.success and second.success
    assert (first.fetched, first.inserted, first.access_control_skipped, first.failed) == (4, 2, 1, 1)
    assert (second.inserted, second.duplicates) == (0, 2)
    assert len(punches.records) == 2
    assert punches.records[0].payload["terminal_alias"] == "Lobby"


def test_last_sync_time_follows_newest_stored_punch():
    punches = InMemoryPunches()
    svc = BioTimeIngestionService(StubClient(TRANSACTIONS), punches, InMemoryEmployees())
    assert svc.last_sync_time() is None

    svc.pull_attendance(START, END)

    assert svc.last_sync_time() == datetime(2026, 2, 9, 17, 3, 0)


def test_records_without_source_id_deduplicate_on_composite_key():
    row = {"emp_code": "E1", "punch_time": "2026-02-09T08:01:00Z", "punch_state": "0", "terminal": "Lobby"}
    punches = InMemoryPunches()
    svc = BioTimeIngestionService(StubClient([row, dict(row)]), punches, InMemoryEmployees())

    result = svc.pull_attendance(START, END)

    assert (result.inserted, result.duplicates) == (1, 1)
    assert punches.records[0].punch_time == datetime(2026, 2, 9, 8, 1, 0)
    assert punches.records[0].terminal_alias == "Lobby"


def test_source_failure_returns_failed_result_and_keeps_store():
    punches = InMemoryPunches()
    svc = BioTimeIngestionService(StubClient(error=SourceUnavailableError("timeout")), punches, InMemoryEmployees())

    result = svc.pull_attendance(START, END)

    assert result.success is False
    assert result.error == "timeout"
    assert punches.records == []


def test_pull_for_date_covers_whole_day():
    calls = []

    class RecordingClient(StubClient):
        def fetch_transactions(self, start, end):
            calls.append((start, end))
            return []

    svc = BioTimeIngestionService(RecordingClient(), InMemoryPunches(), InMemoryEmployees())
    svc.pull_attendance_for_date(START.date())

    assert calls == [(START, END)]


def test_employee_sync_upserts_and_keeps_hr_flags(fixed_now):
    employees = InMemoryEmployees([EmployeeDirectoryRecord(emp_code="E1", first_name="Old", non_bio=True, shift_id=4)])
    client = StubClient(
        employees=[
            {"id": 1, "emp_code": "E1", "first_name": "Ana", "last_name": "Silva", "department": {"dept_name": "Ops"}},
            {"id": 2, "emp_code": "E2", "first_name": "Bo", "last_name": "Chen"},
            {"id": 3, "first_name": "No code"},
        ]
    )
    svc = BioTimeIngestionService(client, InMemoryPunches(), employees, clock=lambda: fixed_now)

    result = svc.sync_employees()

    assert (result.fetched, result.created, result.updated, result.skipped) == (3, 1, 1, 1)
    e1 = employees.get_by_code("E1")
    assert e1.first_name == "Ana"
    assert e1.department == "Ops"
    assert e1.non_bio is True and e1.shift_id == 4
    assert e1.pulled_at == fixed_now


def test_employee_sync_failure_is_reported():
    svc = BioTimeIngestionService(StubClient(error=SourceUnavailableError("down")), InMemoryPunches(), InMemoryEmployees())

    result = svc.sync_employees()

    assert result.success is False
    assert result.error == "down"
