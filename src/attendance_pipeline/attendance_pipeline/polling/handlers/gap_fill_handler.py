from __future__ import annotations

from datetime import timedelta

from ...biotime.service import BioTimeIngestionService
from ...common.datetime_utils import parse_source_timestamp, start_of_day
from ..model import HandlerResult, PollingQueueItem
from .base import ProgressCallback, QueueHandler, from_pull


class GapFillHandler(QueueHandler):
    """Pulls the window stored in metadata, or the whole target date without one."""

    def __init__(self, ingestion: BioTimeIngestionService):
        self._ingestion = ingestion

    def handle(self, item: PollingQueueItem, progress: ProgressCallback) -> HandlerResult:
        start = parse_source_timestamp(item.metadata.get("window_start"))
        end = parse_source_timestamp(item.metadata.get("window_end"))
        if start is None or end is None:
            start = start_of_day(item.target_date)
            end = start + timedelta(days=1)
        return from_pull(self._ingestion.pull_attendance(start, end))
