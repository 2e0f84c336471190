from __future__ import annotations

from ...biotime.service import BioTimeIngestionService
from ...common.datetime_utils import iter_days
from ..model import HandlerResult, PollingQueueItem
from .base import ProgressCallback, QueueHandler


class DateRangeHandler(QueueHandler):
    """Day-by-day pulls over [target_date, end_date].

    A failing day does not stop the range, but the item fails if any day did.
    """

    def __init__(self, ingestion: BioTimeIngestionService):
        self._ingestion = ingestion

    def handle(self, item: PollingQueueItem, progress: ProgressCallback) -> HandlerResult:
        days = list(iter_days(item.target_date, item.end_date or item.target_date))
        processed = total = 0
        errors: list[str] = []

        for index, day in enumerate(days, start=1):
            result = self._ingestion.pull_attendance_for_date(day)
            processed += result.processed
            total += result.fetched
            if not result.success:
                errors.append(f"{day.isoformat()}: {result.error}")
            progress(processed, total, round(index / len(days) * 100, 2))

        return HandlerResult(
            success=not errors,
            records_processed=processed,
            total_records=total,
            error_message="; ".join(errors) or None,
        )


class HistoricalBackfillHandler(DateRangeHandler):
    """Same day-by-day walk, queued at lower priority for old ranges."""
