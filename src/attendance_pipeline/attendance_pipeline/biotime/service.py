from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from ..common.datetime_utils import now_local, start_of_day
from ..core.exceptions import SourceError
from ..employees.model import EmployeeDirectoryRecord, NameValidationReport
from ..employees.repository import EmployeeDirectoryRepository
from ..employees.validation import validate_names
from ..punches.model import RawPunchRecord
from ..punches.repository import RawPunchRepository
from .client import BioTimeClient
from .model import EmployeeSyncResult, PullResult

logger = logging.getLogger(__name__)


class BioTimeIngestionService:
    """Pulls punches and employees from BioTime into raw storage.

    Inserts are at-least-once: a failed pull leaves already stored records in
    place, and a re-pull skips them through the duplicate checks.
    """

    def __init__(
        self,
        client: BioTimeClient,
        punches: RawPunchRepository,
        employees: EmployeeDirectoryRepository,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._client = client
        self._punches = punches
        self._employees = employees
        self._clock = clock

    def pull_attendance(self, start: datetime, end: datetime) -> PullResult:
        logger.info("Pulling attendance %s .. %s", start, end)
        try:
            records = self._client.fetch_transactions(start, end)
        except SourceError as exc:
            logger.error("Attendance pull %s .. %s failed: %s", start, end, exc)
            return PullResult(success=False, error=str(exc))

        result = PullResult(success=True, fetched=len(records))
        for raw in records:
            try:
                self._store_punch(raw, result)
            except Exception:
                result.failed += 1
                logger.exception("Skipping unstorable punch id=%s emp=%s", raw.get("id"), raw.get("emp_code"))

        logger.info(
            "Pull %s .. %s: fetched=%d inserted=%d duplicates=%d access_control=%d failed=%d",
            start,
            end,
            result.fetched,
            result.inserted,
            result.duplicates,
            result.access_control_skipped,
            result.failed,
        )
        return result

    def pull_attendance_for_date(self, day: date) -> PullResult:
        start = start_of_day(day)
        return self.pull_attendance(start, start + timedelta(days=1))

    def _store_punch(self, raw: dict, result: PullResult) -> None:
        record = RawPunchRecord.from_source(raw)
        if record.is_access_control:
            result.access_control_skipped += 1
            return

        if record.source_id:
            duplicate = self._punches.exists_by_source_id(record.source_id)
        else:
            duplicate = self._punches.exists_by_composite(
                punch_time=record.punch_time,
                emp_code=record.emp_code,
                punch_state=record.punch_state,
            )
        if duplicate or self._punches.insert(record) is None:
            result.duplicates += 1
            return
        result.inserted += 1

    def last_sync_time(self) -> Optional[datetime]:
        return self._punches.latest_punch_time()

    def sync_employees(self) -> EmployeeSyncResult:
        try:
            employees = self._client.fetch_employees()
        except SourceError as exc:
            logger.error("Employee sync failed: %s", exc)
            return EmployeeSyncResult(success=False, error=str(exc))

        result = EmployeeSyncResult(success=True, fetched=len(employees))
        pulled_at = self._clock()
        for employee in employees:
            if not employee.get("emp_code"):
                result.skipped += 1
                continue
            try:
                created = self._employees.upsert(EmployeeDirectoryRecord.from_source(employee, pulled_at=pulled_at))
            except Exception:
                result.failed += 1
                logger.exception("Skipping employee %s", employee.get("emp_code"))
                continue
            if created:
                result.created += 1
            else:
                result.updated += 1

        logger.info(
            "Employee sync: fetched=%d created=%d updated=%d skipped=%d failed=%d",
            result.fetched,
            result.created,
            result.updated,
            result.skipped,
            result.failed,
        )
        return result

    def validate_employee_names(self) -> NameValidationReport:
        report = validate_names(self._employees.list_all())
        logger.info("Name validation: %d valid, %d suspect of %d", report.valid, report.corrupted, report.total)
        return report

    def test_connection(self) -> bool:
        return self._client.test_connection()
