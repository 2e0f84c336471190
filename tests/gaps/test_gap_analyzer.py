from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from fakes import InMemoryPunches, InMemoryQueue, StubIngestion, punch
from src.attendance_pipeline.attendance_pipeline.biotime.model import PullResult
from src.attendance_pipeline.attendance_pipeline.core.enums import GapPriority, RequestType
from src.attendance_pipeline.attendance_pipeline.gaps.estimators import BusinessHoursEstimator
from src.attendance_pipeline.attendance_pipeline.gaps.service import GapAnalyzer, classify_priority
from src.attendance_pipeline.attendance_pipeline.polling.service import PollingQueueService


class FlatEstimator:
    def expected(self, start, end):
        return 10


def seeded_punches() -> InMemoryPunches:
    # 06:00-12:00 window holds 9 of 10, 12:00-18:00 holds 2 of 10
    morning = [punch("E1", datetime(2026, 2, 9, 6, 0) + timedelta(minutes=i), source_id=f"m{i}") for i in range(9)]
    afternoon = [
        punch("E2", datetime(2026, 2, 9, 12, 30), source_id="a1"),
        punch("E2", datetime(2026, 2, 9, 17, 0), source_id="a2"),
    ]
    return InMemoryPunches(morning + afternoon)


def make_analyzer(punches, ingestion=None, queue=None, *, now, sleeps=None):
    return GapAnalyzer(
        punches,
        ingestion or StubIngestion(),
        queue,
        estimator=FlatEstimator(),
        clock=lambda: now,
        sleep=(sleeps.append if sleeps is not None else lambda _s: None),
    )


@pytest.mark.parametrize(
    "missing, expected_priority",
    [(80, GapPriority.CRITICAL), (60, GapPriority.HIGH), (30, GapPriority.MEDIUM), (10, GapPriority.LOW)],
)
def test_priority_thresholds(missing, expected_priority):
    assert classify_priority(missing, 100) == expected_priority


def test_business_hours_estimate():
    est = BusinessHoursEstimator()

    assert est.expected(datetime(2026, 2, 9, 6), datetime(2026, 2, 9, 12)) == 1080
    assert est.expected(datetime(2026, 2, 9, 0), datetime(2026, 2, 9, 6)) == 108
    assert est.expected(datetime(2026, 2, 9, 22), datetime(2026, 2, 10, 4)) == 108


def test_analyze_reports_windows_with_missing_records(fixed_now):
    analysis = make_analyzer(seeded_punches(), now=fixed_now).analyze()

    assert analysis.total_records == 11
    assert analysis.total_missing == 9
    assert analysis.contiguity_percentage == 55.0
    assert [(g.start.hour, g.missing_records, g.priority) for g in analysis.gaps] == [
        (6, 1, GapPriority.LOW),
        (12, 8, GapPriority.CRITICAL),
    ]
    assert len(analysis.fillable_gaps) == 2
    assert [g.start.hour for g in analysis.critical_gaps] == [12]
    assert analysis.missing_by_date == {date(2026, 2, 9): 9}


def test_empty_store_has_zero_contiguity(fixed_now):
    analysis = make_analyzer(InMemoryPunches(), now=fixed_now).analyze()

    assert analysis.total_records == 0
    assert analysis.contiguity_percentage == 0.0
    assert analysis.gaps == ()


def test_old_gaps_are_not_fillable():
    analysis = make_analyzer(seeded_punches(), now=datetime(2026, 3, 20, 0, 0)).analyze()

    assert analysis.fillable_gaps == []
    assert len(analysis.unfillable_gaps) == 2


def test_fill_gaps_pulls_most_urgent_first(fixed_now):
    ingestion = StubIngestion(PullResult(success=True, fetched=5, inserted=5))
    sleeps: list[float] = []
    analyzer = make_analyzer(seeded_punches(), ingestion, now=fixed_now, sleeps=sleeps)

    report = analyzer.fill_gaps()

    assert [start.hour for start, _ in ingestion.calls] == [12, 6]
    assert ingestion.calls[0][1] == datetime(2026, 2, 9, 18, 0)
    assert (report.total_gaps, report.filled, report.failed, report.records_inserted) == (2, 2, 0, 10)
    assert sleeps == [1.0]
    assert analyzer.status()["progress"] == 100
    assert analyzer.status()["running"] is False


def test_fill_gaps_records_failed_windows(fixed_now):
    ingestion = StubIngestion(PullResult(success=False, error="HTTP 503"))
    report = make_analyzer(seeded_punches(), ingestion, now=fixed_now).fill_gaps()

    assert report.failed == 2
    assert report.errors[0].endswith("HTTP 503")


def test_second_fill_is_refused_while_running(fixed_now):
    nested = []

    class ReentrantIngestion(StubIngestion):
        def pull_attendance(self, start, end):
            nested.append(analyzer.fill_gaps())
            return super().pull_attendance(start, end)

    analyzer = make_analyzer(seeded_punches(), ReentrantIngestion(), now=fixed_now)
    report = analyzer.fill_gaps()

    assert report.skipped is False
    assert all(r.skipped for r in nested)
    assert len(nested) == 2


def test_enqueue_backfill_maps_priority_and_window(fixed_now):
    queue = PollingQueueService(InMemoryQueue(), clock=lambda: fixed_now)
    analyzer = make_analyzer(seeded_punches(), queue=queue, now=fixed_now)

    items = analyzer.enqueue_backfill()

    assert [(i.request_type, i.priority) for i in items] == [(RequestType.GAP_FILL, 1), (RequestType.GAP_FILL, 4)]
    assert items[0].target_date == date(2026, 2, 9)
    assert items[0].metadata == {"window_start": "2026-02-09 12:00:00", "window_end": "2026-02-09 18:00:00"}


def test_enqueue_backfill_needs_a_queue(fixed_now):
    with pytest.raises(RuntimeError):
        make_analyzer(seeded_punches(), now=fixed_now).enqueue_backfill()
