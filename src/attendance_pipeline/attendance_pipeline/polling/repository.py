from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import QueueStatus, ResultType
from .model import NewQueueItem, PollingQueueItem, PollingQueueResult


class PollingQueueRepository(Protocol):
    def enqueue(self, item: NewQueueItem, *, requested_at: datetime) -> int:
        raise NotImplementedError

    def get(self, item_id: int) -> Optional[PollingQueueItem]:
        raise NotImplementedError

    def list_pending(self) -> Sequence[PollingQueueItem]:
        """Pending items ordered by (priority, requested_at, id)."""
        raise NotImplementedError

    def mark_processing(self, item_id: int, *, started_at: datetime) -> bool:
        """pending -> processing. False when the item is no longer pending."""
        raise NotImplementedError

    def update_progress(
        self, item_id: int, *, records_processed: int, total_records: int, progress_percentage: float
    ) -> None:
        raise NotImplementedError

    def finish(
        self,
        item_id: int,
        *,
        status: QueueStatus,
        completed_at: datetime,
        records_processed: int,
        total_records: int,
        progress_percentage: float,
        error_message: Optional[str] = None,
    ) -> None:
        raise NotImplementedError

    def cancel(self, item_id: int, *, completed_at: datetime, message: str) -> bool:
        """pending -> cancelled. False when the item is no longer pending."""
        raise NotImplementedError

    def add_result(
        self,
        queue_id: int,
        *,
        result_type: ResultType,
        data_count: int,
        processing_time_ms: int,
        error_details: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def list_results(self, queue_id: int) -> Sequence[PollingQueueResult]:
        raise NotImplementedError

    def list_page(self, *, status: Optional[QueueStatus], offset: int, limit: int) -> tuple[Sequence[PollingQueueItem], int]:
        """Newest first. Returns (items, total matching)."""
        raise NotImplementedError

    def count_by_status(self) -> dict[QueueStatus, int]:
        raise NotImplementedError
