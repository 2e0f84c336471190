from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Optional, Union

from ..common.datetime_utils import format_source_timestamp, now_local
from ..core.constants import CANCELLED_MESSAGE, DEFAULT_HISTORY_LIMIT
from ..core.enums import QueueStatus, RequestType
from ..core.exceptions import InvalidStateError, NotFoundError, ValidationError
from .model import NewQueueItem, PollingQueueItem, QueuePage, QueueStats
from .repository import PollingQueueRepository

logger = logging.getLogger(__name__)

DATE_RANGE_PRIORITY = 1
MISSING_DATA_PRIORITY = 2
MANUAL_REPOLL_PRIORITY = 1
HISTORICAL_BACKFILL_PRIORITY = 3

_RETRYABLE = (QueueStatus.FAILED, QueueStatus.CANCELLED)


class PollingQueueService:
    def __init__(self, queue: PollingQueueRepository, *, clock: Callable[[], datetime] = now_local):
        self._queue = queue
        self._clock = clock

    def enqueue(
        self,
        request_type: Union[RequestType, str],
        target_date: date,
        end_date: Optional[date] = None,
        priority: int = 1,
        requested_by: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> PollingQueueItem:
        try:
            request_type = RequestType(request_type)
        except ValueError:
            raise ValidationError(f"Unknown request type: {request_type}")
        if target_date is None:
            raise ValidationError("target_date is required")
        if end_date is not None and end_date < target_date:
            raise ValidationError("end_date must not be before target_date")
        if int(priority) < 1:
            raise ValidationError("priority must be >= 1")

        item_id = self._queue.enqueue(
            NewQueueItem(
                request_type=request_type,
                target_date=target_date,
                end_date=end_date,
                priority=int(priority),
                requested_by=requested_by,
                metadata=dict(metadata or {}),
            ),
            requested_at=self._clock(),
        )
        logger.info("Queued %s #%d for %s..%s (priority %d)", request_type.value, item_id, target_date, end_date, priority)
        return self._require(item_id)

    def request_date_range(
        self, start: date, end: date, *, priority: int = DATE_RANGE_PRIORITY, requested_by: Optional[str] = None
    ) -> PollingQueueItem:
        return self.enqueue(RequestType.DATE_RANGE, start, end, priority, requested_by)

    def request_missing_data(
        self, day: date, *, priority: int = MISSING_DATA_PRIORITY, requested_by: Optional[str] = None
    ) -> PollingQueueItem:
        return self.enqueue(RequestType.MISSING_DATA, day, None, priority, requested_by)

    def request_manual_repoll(
        self, day: date, *, priority: int = MANUAL_REPOLL_PRIORITY, requested_by: Optional[str] = None
    ) -> PollingQueueItem:
        return self.enqueue(RequestType.MANUAL_REPOLL, day, None, priority, requested_by)

    def request_historical_backfill(
        self, start: date, end: date, *, priority: int = HISTORICAL_BACKFILL_PRIORITY, requested_by: Optional[str] = None
    ) -> PollingQueueItem:
        return self.enqueue(RequestType.HISTORICAL_BACKFILL, start, end, priority, requested_by)

    def request_gap_fill(
        self, window_start: datetime, window_end: datetime, *, priority: int, requested_by: Optional[str] = None
    ) -> PollingQueueItem:
        return self.enqueue(
            RequestType.GAP_FILL,
            window_start.date(),
            None,
            priority,
            requested_by,
            metadata={
                "window_start": format_source_timestamp(window_start),
                "window_end": format_source_timestamp(window_end),
            },
        )

    def cancel(self, item_id: int) -> bool:
        """Only pending items can be cancelled; anything else returns False."""
        self._require(item_id)
        cancelled = self._queue.cancel(item_id, completed_at=self._clock(), message=CANCELLED_MESSAGE)
        if cancelled:
            logger.info("Cancelled queue item #%d", item_id)
        return cancelled

    def retry(self, item_id: int) -> PollingQueueItem:
        item = self._require(item_id)
        if item.status not in _RETRYABLE:
            raise InvalidStateError(f"Queue item #{item_id} is {item.status.value}; only failed or cancelled items can be retried")
        metadata = dict(item.metadata)
        metadata["retry_of"] = item.id
        return self.enqueue(
            item.request_type,
            item.target_date,
            item.end_date,
            item.priority,
            item.requested_by,
            metadata,
        )

    def get(self, item_id: int) -> Optional[PollingQueueItem]:
        return self._queue.get(item_id)

    def _require(self, item_id: int) -> PollingQueueItem:
        item = self._queue.get(item_id)
        if item is None:
            raise NotFoundError(f"Queue item #{item_id} not found")
        return item

    def list_pending(self) -> list[PollingQueueItem]:
        return list(self._queue.list_pending())

    def history(self, page: int = 1, limit: int = DEFAULT_HISTORY_LIMIT) -> QueuePage:
        return self._page(None, page, limit)

    def list_by_status(
        self, status: Union[QueueStatus, str], page: int = 1, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> QueuePage:
        try:
            status = QueueStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown queue status: {status}")
        return self._page(status, page, limit)

    def _page(self, status: Optional[QueueStatus], page: int, limit: int) -> QueuePage:
        page, limit = int(page), int(limit)
        if page < 1 or limit < 1:
            raise ValidationError("page and limit must be >= 1")
        items, total = self._queue.list_page(status=status, offset=(page - 1) * limit, limit=limit)
        return QueuePage(items=list(items), total=total, page=page, limit=limit)

    def stats(self) -> QueueStats:
        counts = self._queue.count_by_status()
        return QueueStats(
            pending=counts.get(QueueStatus.PENDING, 0),
            processing=counts.get(QueueStatus.PROCESSING, 0),
            completed=counts.get(QueueStatus.COMPLETED, 0),
            failed=counts.get(QueueStatus.FAILED, 0),
            cancelled=counts.get(QueueStatus.CANCELLED, 0),
        )
