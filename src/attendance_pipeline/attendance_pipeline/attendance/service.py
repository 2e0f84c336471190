from __future__ import annotations

import logging
import threading
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from ..biotime.service import BioTimeIngestionService
from ..common.datetime_utils import now_local, start_of_day
from ..core.constants import (
    ACCESS_CONTROL_TERMINAL_KEYWORD,
    DEFAULT_BATCH_SIZE,
    DEFAULT_CHECKOUT_WINDOW_HOURS,
    DEFAULT_HOURS_WORKED,
    DEFAULT_INITIAL_PULL_HOURS,
    DEFAULT_PROCESSING_INTERVAL_SECONDS,
    DEFAULT_RAW_LOOKBACK_DAYS,
    DEFAULT_SUMMARY_DAYS,
)
from ..core.exceptions import ValidationError
from ..employees.repository import EmployeeDirectoryRepository
from ..punches.repository import RawPunchRepository
from ..scheduling.runner import IntervalRunner
from ..shifts.model import ShiftSchedule
from ..shifts.repository import ShiftRepository
from ..summaries.model import DailySummary
from ..summaries.repository import DailySummaryRepository
from .model import AttendanceRecord, CycleResult, StepOutcome
from .pairing import group_by_employee_day, pair_punches
from .repository import AttendanceRepository
from .timing import analyze_timing, resolve_shift

logger = logging.getLogger(__name__)


class AttendanceProcessor:
    """Turns raw punches into attendance facts, timing analysis and daily summaries.

    One cycle runs four steps in order: pull new data, pair raw punches, analyze
    timing, generate summaries. Each step records its own errors and the cycle
    carries on with the next one.
    """

    def __init__(
        self,
        ingestion: BioTimeIngestionService,
        punches: RawPunchRepository,
        attendance: AttendanceRepository,
        shifts: ShiftRepository,
        employees: EmployeeDirectoryRepository,
        summaries: DailySummaryRepository,
        *,
        clock: Callable[[], datetime] = now_local,
        interval_seconds: float = DEFAULT_PROCESSING_INTERVAL_SECONDS,
        checkout_window_hours: float = DEFAULT_CHECKOUT_WINDOW_HOURS,
        default_hours_worked: float = DEFAULT_HOURS_WORKED,
        lookback_days: int = DEFAULT_RAW_LOOKBACK_DAYS,
        initial_pull_hours: int = DEFAULT_INITIAL_PULL_HOURS,
        summary_days: int = DEFAULT_SUMMARY_DAYS,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        self._ingestion = ingestion
        self._punches = punches
        self._attendance = attendance
        self._shifts = shifts
        self._employees = employees
        self._summaries = summaries
        self._clock = clock
        self._checkout_window_hours = checkout_window_hours
        self._default_hours_worked = default_hours_worked
        self._lookback_days = int(lookback_days)
        self._initial_pull_hours = int(initial_pull_hours)
        self._summary_days = int(summary_days)
        self._batch_size = int(batch_size)

        self._cycle_lock = threading.Lock()
        self._last_result: Optional[CycleResult] = None
        self._runner = IntervalRunner("attendance-processor", interval_seconds, self.run_cycle)

    # ---- steps ----

    def pull_new_data(self, now: Optional[datetime] = None) -> StepOutcome:
        """Pull from the newest stored punch (or the initial window) up to now."""
        now = now or self._clock()
        since = self._ingestion.last_sync_time() or now - timedelta(hours=self._initial_pull_hours)
        result = self._ingestion.pull_attendance(since, now)
        outcome = StepOutcome(count=result.inserted)
        if not result.success:
            outcome.errors.append(f"Raw pull failed: {result.error}")
        return outcome

    def process_raw_attendance(self, now: Optional[datetime] = None) -> StepOutcome:
        """Pair unconverted punches of the lookback window into one fact per employee-day."""
        now = now or self._clock()
        since = start_of_day(now.date() - timedelta(days=self._lookback_days))
        outcome = StepOutcome()

        punches = self._punches.list_unconverted(
            since,
            exclude_terminal_keyword=ACCESS_CONTROL_TERMINAL_KEYWORD,
            limit=self._batch_size,
        )
        pending = [p for p in punches if not p.is_access_control]

        for (emp_code, work_date), group in sorted(group_by_employee_day(pending).items()):
            try:
                if self._attendance.exists_for(emp_code, work_date):
                    continue
                pair = pair_punches(
                    emp_code,
                    work_date,
                    group,
                    checkout_window_hours=self._checkout_window_hours,
                    default_hours_worked=self._default_hours_worked,
                )
                if self._attendance.create(pair) is not None:
                    outcome.count += 1
            except Exception as exc:
                logger.exception("Pairing failed for %s on %s", emp_code, work_date)
                outcome.errors.append(f"Processing {emp_code} {work_date}: {exc}")

        logger.info("Processed %d attendance record(s) from %d punch(es)", outcome.count, len(pending))
        return outcome

    def analyze_timing(self) -> StepOutcome:
        outcome = StepOutcome()
        shift_cache: dict[str, Optional[ShiftSchedule]] = {}

        for record in self._attendance.list_unanalyzed(self._batch_size):
            try:
                if record.emp_code not in shift_cache:
                    shift_cache[record.emp_code] = self._shifts.get_for_employee(record.emp_code)
                shift = resolve_shift(shift_cache[record.emp_code], record.work_date)
                decision = analyze_timing(record.check_in, record.check_out, shift)
                if self._attendance.update_timing(record.attendance_id, decision):
                    outcome.count += 1
            except Exception as exc:
                logger.exception("Timing analysis failed for attendance %s", record.attendance_id)
                outcome.errors.append(f"Timing {record.emp_code} {record.work_date}: {exc}")

        logger.info("Analyzed timing for %d record(s)", outcome.count)
        return outcome

    def generate_daily_summaries(self, now: Optional[datetime] = None) -> StepOutcome:
        """Summaries for the trailing days that do not have one yet; existing ones are left alone."""
        now = now or self._clock()
        outcome = StepOutcome()
        for offset in range(self._summary_days):
            day = now.date() - timedelta(days=offset)
            try:
                if self._summaries.exists_for(day):
                    continue
                if self._summaries.create(self.build_summary(day)) is not None:
                    outcome.count += 1
            except Exception as exc:
                logger.exception("Summary generation failed for %s", day)
                outcome.errors.append(f"Summary {day}: {exc}")
        return outcome

    def build_summary(self, day: date) -> DailySummary:
        return DailySummary.compute(
            day,
            total=self._employees.count_active(),
            present=self._attendance.count_present(day),
            non_bio=self._employees.count_active_non_bio(),
            late=self._attendance.count_late(day),
        )

    # ---- cycle ----

    def run_cycle(self, now: Optional[datetime] = None) -> CycleResult:
        if not self._cycle_lock.acquire(blocking=False):
            logger.warning("Processing cycle already in progress, skipping")
            return CycleResult(skipped=True, errors=["Processing cycle already in progress"])

        try:
            now = now or self._clock()
            result = CycleResult(started_at=now)
            try:
                step = self.pull_new_data(now)
                result.raw_pulled = step.count
                result.errors.extend(step.errors)

                step = self.process_raw_attendance(now)
                result.processed = step.count
                result.errors.extend(step.errors)

                step = self.analyze_timing()
                result.analyzed = step.count
                result.errors.extend(step.errors)

                step = self.generate_daily_summaries(now)
                result.summarized = step.count
                result.errors.extend(step.errors)
            except Exception as exc:
                logger.exception("Processing cycle aborted")
                result.errors.append(f"Cycle aborted: {exc}")

            result.finished_at = self._clock()
            self._last_result = result
            logger.info(
                "Cycle done: pulled=%d processed=%d analyzed=%d summarized=%d errors=%d",
                result.raw_pulled,
                result.processed,
                result.analyzed,
                result.summarized,
                len(result.errors),
            )
            return result
        finally:
            self._cycle_lock.release()

    @property
    def busy(self) -> bool:
        return self._cycle_lock.locked()

    def start(self) -> bool:
        return self._runner.start()

    def stop(self) -> bool:
        return self._runner.stop()

    def status(self) -> dict:
        return {
            "running": self._runner.running,
            "busy": self.busy,
            "interval_seconds": self._runner.interval_seconds,
            "last_cycle": self._last_result.as_dict() if self._last_result else None,
        }

    # ---- reads ----

    def list_attendance(
        self, *, start: date, end: date, emp_code: Optional[str] = None
    ) -> list[AttendanceRecord]:
        if end < start:
            raise ValidationError("end must not be before start")
        return list(self._attendance.list_records(start=start, end=end, emp_code=emp_code))

    def get_summary(self, day: date) -> Optional[DailySummary]:
        return self._summaries.get_by_date(day)
