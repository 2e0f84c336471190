from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timedelta
from typing import Callable, Optional

from ..biotime.service import BioTimeIngestionService
from ..common.datetime_utils import now_local
from ..core.constants import GAP_FILL_DELAY_SECONDS, GAP_FILLABLE_DAYS, GAP_WINDOW_HOURS
from ..core.enums import GapPriority
from ..polling.model import PollingQueueItem
from ..polling.service import PollingQueueService
from ..punches.repository import RawPunchRepository
from .estimators import BusinessHoursEstimator, ExpectedRecordsEstimator
from .model import BackfillReport, GapAnalysis, GapPeriod

logger = logging.getLogger(__name__)


def classify_priority(missing: int, expected: int) -> GapPriority:
    if expected <= 0:
        return GapPriority.LOW
    ratio = missing / expected * 100
    if ratio >= 80:
        return GapPriority.CRITICAL
    if ratio >= 50:
        return GapPriority.HIGH
    if ratio >= 25:
        return GapPriority.MEDIUM
    return GapPriority.LOW


class GapAnalyzer:
    """Scans raw storage for under-populated windows and backfills them from the source."""

    def __init__(
        self,
        punches: RawPunchRepository,
        ingestion: BioTimeIngestionService,
        queue: Optional[PollingQueueService] = None,
        *,
        estimator: Optional[ExpectedRecordsEstimator] = None,
        clock: Callable[[], datetime] = now_local,
        sleep: Callable[[float], None] = time.sleep,
        window_hours: int = GAP_WINDOW_HOURS,
        fillable_days: int = GAP_FILLABLE_DAYS,
        fill_delay_seconds: float = GAP_FILL_DELAY_SECONDS,
    ):
        self._punches = punches
        self._ingestion = ingestion
        self._queue = queue
        self._estimator = estimator or BusinessHoursEstimator()
        self._clock = clock
        self._sleep = sleep
        self._window = timedelta(hours=window_hours)
        self._fillable_days = fillable_days
        self._fill_delay = fill_delay_seconds

        self._fill_lock = threading.Lock()
        self._total_to_fill = 0
        self._filled = 0

    def is_fillable(self, start: datetime, now: datetime) -> bool:
        return now - start <= timedelta(days=self._fillable_days)

    def analyze(self, now: Optional[datetime] = None) -> GapAnalysis:
        now = now or self._clock()
        coverage = self._punches.coverage()
        if coverage.total_records == 0 or coverage.earliest is None or coverage.latest is None:
            return GapAnalysis(analyzed_at=now, total_records=0, total_missing=0, contiguity_percentage=0.0)

        gaps: list[GapPeriod] = []
        cursor = coverage.earliest
        while cursor < coverage.latest:
            window_end = cursor + self._window
            expected = self._estimator.expected(cursor, window_end)
            actual = self._punches.count_between(cursor, window_end)
            missing = max(0, expected - actual)
            if missing > 0:
                gaps.append(
                    GapPeriod(
                        start=cursor,
                        end=window_end,
                        expected_records=expected,
                        actual_records=actual,
                        missing_records=missing,
                        priority=classify_priority(missing, expected),
                        fillable=self.is_fillable(cursor, now),
                    )
                )
            cursor = window_end

        total_missing = sum(g.missing_records for g in gaps)
        denominator = coverage.total_records + total_missing
        contiguity = round(coverage.total_records / denominator * 100, 2) if denominator else 0.0

        analysis = GapAnalysis(
            analyzed_at=now,
            total_records=coverage.total_records,
            total_missing=total_missing,
            contiguity_percentage=contiguity,
            earliest=coverage.earliest,
            latest=coverage.latest,
            gaps=tuple(gaps),
        )
        logger.info(
            "Gap analysis: %d records, %d missing, %.2f%% contiguous, %d gap(s) (%d fillable, %d critical)",
            analysis.total_records,
            analysis.total_missing,
            analysis.contiguity_percentage,
            len(gaps),
            len(analysis.fillable_gaps),
            len(analysis.critical_gaps),
        )
        return analysis

    def fill_gaps(self, analysis: Optional[GapAnalysis] = None) -> BackfillReport:
        """Pull every fillable gap window, most urgent first.

        Returns a skipped report when another fill is already running.
        """
        if not self._fill_lock.acquire(blocking=False):
            logger.warning("Gap filling already in progress")
            return BackfillReport(total_gaps=self._total_to_fill, filled=self._filled, skipped=True)

        try:
            analysis = analysis or self.analyze()
            ordered = sorted(analysis.fillable_gaps, key=lambda g: (g.priority.rank, g.start))
            self._total_to_fill = len(ordered)
            self._filled = 0
            report = BackfillReport(total_gaps=len(ordered))

            for index, gap in enumerate(ordered):
                if index:
                    self._sleep(self._fill_delay)
                result = self._ingestion.pull_attendance(gap.start, gap.end)
                if result.success:
                    report.records_inserted += result.inserted
                else:
                    report.failed += 1
                    report.errors.append(f"{gap.start.isoformat()} .. {gap.end.isoformat()}: {result.error}")
                self._filled += 1
                report.filled = self._filled
                logger.info("Gap fill progress: %d%% (%d/%d)", self.progress, self._filled, self._total_to_fill)

            return report
        finally:
            self._fill_lock.release()

    @property
    def progress(self) -> int:
        if not self._total_to_fill:
            return 0
        return round(self._filled / self._total_to_fill * 100)

    def status(self) -> dict:
        return {
            "running": self._fill_lock.locked(),
            "progress": self.progress,
            "total_gaps": self._total_to_fill,
            "filled_gaps": self._filled,
            "remaining_gaps": self._total_to_fill - self._filled,
        }

    def enqueue_backfill(
        self, analysis: Optional[GapAnalysis] = None, *, requested_by: Optional[str] = None
    ) -> list[PollingQueueItem]:
        """Hand fillable gaps to the polling queue instead of pulling inline."""
        if self._queue is None:
            raise RuntimeError("GapAnalyzer has no polling queue configured")

        analysis = analysis or self.analyze()
        items = [
            self._queue.request_gap_fill(gap.start, gap.end, priority=gap.priority.rank, requested_by=requested_by)
            for gap in sorted(analysis.fillable_gaps, key=lambda g: (g.priority.rank, g.start))
        ]
        logger.info("Enqueued %d gap fill request(s)", len(items))
        return items
