from __future__ import annotations

from ...attendance.service import AttendanceProcessor
from ...biotime.service import BioTimeIngestionService
from ..model import HandlerResult, PollingQueueItem
from .base import ProgressCallback, QueueHandler, from_pull


class ManualRepollHandler(QueueHandler):
    """Re-pull one date and push it straight through pairing and timing analysis."""

    def __init__(self, ingestion: BioTimeIngestionService, processor: AttendanceProcessor):
        self._ingestion = ingestion
        self._processor = processor

    def handle(self, item: PollingQueueItem, progress: ProgressCallback) -> HandlerResult:
        pulled = from_pull(self._ingestion.pull_attendance_for_date(item.target_date))
        if not pulled.success:
            return pulled

        errors = list(self._processor.process_raw_attendance().errors)
        errors.extend(self._processor.analyze_timing().errors)
        return HandlerResult(
            success=not errors,
            records_processed=pulled.records_processed,
            total_records=pulled.total_records,
            error_message="; ".join(errors) or None,
        )
