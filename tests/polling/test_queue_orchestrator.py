from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from fakes import InMemoryQueue, StubIngestion
from src.attendance_pipeline.attendance_pipeline.attendance.model import StepOutcome
from src.attendance_pipeline.attendance_pipeline.biotime.model import PullResult
from src.attendance_pipeline.attendance_pipeline.core.enums import QueueStatus, RequestType, ResultType
from src.attendance_pipeline.attendance_pipeline.core.exceptions import InvalidStateError, NotFoundError
from src.attendance_pipeline.attendance_pipeline.polling.factory import QueueHandlerFactory
from src.attendance_pipeline.attendance_pipeline.polling.orchestrator import QueueOrchestrator
from src.attendance_pipeline.attendance_pipeline.polling.service import PollingQueueService

DAY = date(2026, 2, 9)
OK = PullResult(success=True, fetched=4, inserted=3, duplicates=1)


class StubProcessor:
    def __init__(self, errors=None):
        self.calls: list[str] = []
        self.errors = errors or []

    def process_raw_attendance(self):
        self.calls.append("process")
        return StepOutcome(count=2, errors=list(self.errors))

    def analyze_timing(self):
        self.calls.append("analyze")
        return StepOutcome(count=2)


def build(ingestion=None, processor=None, monotonic=None, repo=None):
    repo = repo if repo is not None else InMemoryQueue()
    state = {"now": datetime(2026, 2, 10, 9, 0, 0)}

    def clock():
        state["now"] += timedelta(seconds=1)
        return state["now"]

    service = PollingQueueService(repo, clock=clock)
    orchestrator = QueueOrchestrator(
        repo,
        QueueHandlerFactory.build(ingestion or StubIngestion(OK), processor or StubProcessor()),
        clock=clock,
        monotonic=monotonic or (lambda: 0.0),
    )
    return service, orchestrator, repo


def test_tick_processes_one_item_in_priority_order():
    service, orchestrator, _ = build()
    for priority in (2, 1, 1):
        service.enqueue(RequestType.MISSING_DATA, DAY, priority=priority)

    processed = [orchestrator.tick().id for _ in range(3)]

    assert processed == [2, 3, 1]
    assert orchestrator.tick() is None


def test_completed_item_gets_counts_and_audit_row():
    ticks = iter([10.0, 10.25])
    service, orchestrator, repo = build(monotonic=lambda: next(ticks))
    item = service.request_missing_data(DAY)

    done = orchestrator.tick()

    assert done.status == QueueStatus.COMPLETED
    assert (done.records_processed, done.total_records, done.progress_percentage) == (4, 4, 100.0)
    assert done.started_at is not None and done.completed_at is not None
    [result] = repo.list_results(item.id)
    assert (result.result_type, result.data_count, result.processing_time_ms) == (ResultType.SUCCESS, 4, 250)


def test_empty_pull_counts_as_fully_done():
    service, orchestrator, _ = build(ingestion=StubIngestion(PullResult(success=True)))
    service.request_missing_data(DAY)

    assert orchestrator.tick().progress_percentage == 100.0


def test_date_range_continues_past_failed_day_then_fails():
    ingestion = StubIngestion(OK, by_day={date(2026, 2, 2): PullResult(success=False, error="HTTP 503")})
    service, orchestrator, repo = build(ingestion=ingestion)
    item = service.request_date_range(date(2026, 2, 1), date(2026, 2, 3))

    done = orchestrator.tick()

    assert [start.date() for start, _ in ingestion.calls] == [date(2026, 2, 1), date(2026, 2, 2), date(2026, 2, 3)]
    assert [u[3] for u in repo.progress_updates] == [33.33, 66.67, 100.0]
    assert done.status == QueueStatus.FAILED
    assert done.error_message == "2026-02-02: HTTP 503"
    assert (done.records_processed, done.total_records) == (8, 8)
    assert repo.list_results(item.id)[0].result_type == ResultType.ERROR


def test_handler_crash_fails_the_item():
    class CrashingIngestion(StubIngestion):
        def pull_attendance(self, start, end):
            raise RuntimeError("db down")

    service, orchestrator, repo = build(ingestion=CrashingIngestion())
    item = service.request_missing_data(DAY)

    done = orchestrator.tick()

    assert done.status == QueueStatus.FAILED
    assert done.error_message == "db down"
    assert repo.list_results(item.id)[0].error_details == "db down"


class FlakyFinishQueue(InMemoryQueue):
    def __init__(self, failures):
        super().__init__()
        self.failures = failures

    def finish(self, item_id, **kwargs):
        if self.failures:
            self.failures -= 1
            raise RuntimeError("connection reset")
        super().finish(item_id, **kwargs)


def test_failed_outcome_write_still_leaves_item_failed_and_retryable():
    service, orchestrator, repo = build(repo=FlakyFinishQueue(failures=1))
    item = service.request_missing_data(DAY)

    done = orchestrator.tick()

    assert done.status == QueueStatus.FAILED
    assert done.error_message == "Recording outcome failed: connection reset"
    assert orchestrator.tick() is None
    assert orchestrator.status()["current_item_id"] is None
    assert service.retry(item.id).status == QueueStatus.PENDING


def test_next_tick_fails_items_orphaned_in_processing():
    ingestion = StubIngestion(OK)
    service, orchestrator, repo = build(ingestion=ingestion, repo=FlakyFinishQueue(failures=2))
    stuck = service.request_missing_data(DAY)
    assert orchestrator.tick().status == QueueStatus.PROCESSING
    waiting = service.request_missing_data(DAY)

    done = orchestrator.tick()

    assert repo.get(stuck.id).status == QueueStatus.FAILED
    assert repo.get(stuck.id).error_message == "Interrupted while processing"
    assert done.id == waiting.id and done.status == QueueStatus.COMPLETED


def test_missing_audit_row_does_not_undo_completion():
    class NoAuditQueue(InMemoryQueue):
        def add_result(self, item_id, **kwargs):
            raise RuntimeError("audit table locked")

    service, orchestrator, _ = build(repo=NoAuditQueue())
    service.request_missing_data(DAY)

    done = orchestrator.tick()

    assert done.status == QueueStatus.COMPLETED
    assert done.error_message is None


def test_gap_fill_pulls_metadata_window():
    ingestion = StubIngestion(OK)
    service, orchestrator, _ = build(ingestion=ingestion)
    service.request_gap_fill(datetime(2026, 2, 9, 12, 0), datetime(2026, 2, 9, 18, 0), priority=1)

    orchestrator.tick()

    assert ingestion.calls == [(datetime(2026, 2, 9, 12, 0), datetime(2026, 2, 9, 18, 0))]


def test_gap_fill_without_window_pulls_whole_day():
    ingestion = StubIngestion(OK)
    service, orchestrator, _ = build(ingestion=ingestion)
    service.enqueue(RequestType.GAP_FILL, DAY)

    orchestrator.tick()

    assert ingestion.calls == [(datetime(2026, 2, 9), datetime(2026, 2, 10))]


def test_manual_repoll_runs_processing_after_pull():
    processor = StubProcessor()
    service, orchestrator, _ = build(processor=processor)
    service.request_manual_repoll(DAY)

    done = orchestrator.tick()

    assert done.status == QueueStatus.COMPLETED
    assert processor.calls == ["process", "analyze"]


def test_manual_repoll_skips_processing_when_pull_fails():
    processor = StubProcessor()
    service, orchestrator, _ = build(ingestion=StubIngestion(PullResult(success=False, error="auth")), processor=processor)
    service.request_manual_repoll(DAY)

    assert orchestrator.tick().status == QueueStatus.FAILED
    assert processor.calls == []


def test_process_item_runs_specific_pending_item():
    service, orchestrator, _ = build()
    service.request_missing_data(DAY)
    late = service.request_missing_data(DAY, priority=5)

    done = orchestrator.process_item(late.id)

    assert done.id == late.id and done.status == QueueStatus.COMPLETED
    with pytest.raises(InvalidStateError):
        orchestrator.process_item(late.id)
    with pytest.raises(NotFoundError):
        orchestrator.process_item(99)


def test_cancelled_item_is_never_picked_up():
    ingestion = StubIngestion(OK)
    service, orchestrator, _ = build(ingestion=ingestion)
    item = service.request_missing_data(DAY)
    service.cancel(item.id)

    assert orchestrator.tick() is None
    assert ingestion.calls == []


def test_status_when_idle():
    _, orchestrator, _ = build()

    status = orchestrator.status()

    assert (status["running"], status["busy"], status["current_item_id"]) == (False, False, None)
