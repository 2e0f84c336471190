from __future__ import annotations

from ...biotime.service import BioTimeIngestionService
from ..model import HandlerResult, PollingQueueItem
from .base import ProgressCallback, QueueHandler, from_pull


class MissingDataHandler(QueueHandler):
    def __init__(self, ingestion: BioTimeIngestionService):
        self._ingestion = ingestion

    def handle(self, item: PollingQueueItem, progress: ProgressCallback) -> HandlerResult:
        return from_pull(self._ingestion.pull_attendance_for_date(item.target_date))
