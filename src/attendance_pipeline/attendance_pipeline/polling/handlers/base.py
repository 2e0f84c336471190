from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

from ...biotime.model import PullResult
from ..model import HandlerResult, PollingQueueItem

# (records_processed, total_records, progress_percentage)
ProgressCallback = Callable[[int, int, float], None]


def from_pull(result: PullResult) -> HandlerResult:
    return HandlerResult(
        success=result.success,
        records_processed=result.processed,
        total_records=result.fetched,
        error_message=result.error,
    )


class QueueHandler(ABC):
    """Strategy Pattern: how one kind of queue request is carried out."""

    @abstractmethod
    def handle(self, item: PollingQueueItem, progress: ProgressCallback) -> HandlerResult:
        raise NotImplementedError
