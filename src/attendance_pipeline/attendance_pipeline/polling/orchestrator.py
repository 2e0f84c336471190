from __future__ import annotations

import logging
import threading
import time
from datetime import datetime
from typing import Callable, Optional

from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_QUEUE_INTERVAL_SECONDS, INTERRUPTED_MESSAGE, INTERRUPTED_SWEEP_LIMIT
from ..core.enums import QueueStatus, ResultType
from ..core.exceptions import InvalidStateError, NotFoundError
from ..scheduling.runner import IntervalRunner
from .factory import QueueHandlerFactory
from .model import HandlerResult, PollingQueueItem, compute_progress
from .repository import PollingQueueRepository

logger = logging.getLogger(__name__)


class QueueOrchestrator:
    """Drives the polling queue one item at a time.

    Each tick takes the most urgent pending item, runs the handler for its
    type and records the outcome plus an audit row. Items are never preempted.
    """

    def __init__(
        self,
        queue: PollingQueueRepository,
        handlers: QueueHandlerFactory,
        *,
        clock: Callable[[], datetime] = now_local,
        monotonic: Callable[[], float] = time.monotonic,
        interval_seconds: float = DEFAULT_QUEUE_INTERVAL_SECONDS,
    ):
        self._queue = queue
        self._handlers = handlers
        self._clock = clock
        self._monotonic = monotonic
        self._busy = threading.Lock()
        self._current_item_id: Optional[int] = None
        self._runner = IntervalRunner("polling-queue", interval_seconds, self.tick)

    def tick(self) -> Optional[PollingQueueItem]:
        """Process the next pending item. Returns it in its final state, or None when idle."""
        if not self._busy.acquire(blocking=False):
            logger.debug("Queue item #%s still running, skipping tick", self._current_item_id)
            return None
        try:
            self.recover_interrupted()
            pending = self._queue.list_pending()
            if not pending:
                return None
            return self._execute(pending[0])
        finally:
            self._busy.release()

    def process_item(self, item_id: int) -> PollingQueueItem:
        item = self._queue.get(item_id)
        if item is None:
            raise NotFoundError(f"Queue item #{item_id} not found")
        if item.status != QueueStatus.PENDING:
            raise InvalidStateError(f"Queue item #{item_id} is {item.status.value}, not pending")
        if not self._busy.acquire(blocking=False):
            raise InvalidStateError(f"Queue item #{self._current_item_id} is already processing")
        try:
            return self._execute(item)
        finally:
            self._busy.release()

    def _execute(self, item: PollingQueueItem) -> PollingQueueItem:
        if not self._queue.mark_processing(item.id, started_at=self._clock()):
            logger.info("Queue item #%d left pending state before it could start", item.id)
            return self._queue.get(item.id) or item

        self._current_item_id = item.id
        started = self._monotonic()
        logger.info("Processing queue item #%d (%s, %s)", item.id, item.request_type.value, item.target_date)

        def progress(processed: int, total: int, percentage: float) -> None:
            self._queue.update_progress(
                item.id, records_processed=processed, total_records=total, progress_percentage=percentage
            )

        try:
            try:
                result = self._handlers.for_type(item.request_type).handle(item, progress)
            except Exception as exc:
                logger.exception("Queue item #%d crashed", item.id)
                result = HandlerResult(success=False, error_message=str(exc) or type(exc).__name__)

            elapsed_ms = int((self._monotonic() - started) * 1000)
            try:
                self._record(item, result, elapsed_ms)
            except Exception as exc:
                logger.exception("Recording the outcome of queue item #%d failed", item.id)
                self._fail(item.id, f"Recording outcome failed: {exc}")
        finally:
            self._current_item_id = None

        return self._queue.get(item.id) or item

    def recover_interrupted(self) -> int:
        """Fail items left in `processing` that no handler in this process is running.

        Only called while holding the busy lock, so any processing row found here
        was orphaned by a crash or by a failed outcome write.
        """
        stuck, _ = self._queue.list_page(status=QueueStatus.PROCESSING, offset=0, limit=INTERRUPTED_SWEEP_LIMIT)
        recovered = 0
        for item in stuck:
            if item.id == self._current_item_id:
                continue
            logger.warning("Queue item #%d was left processing, marking it failed", item.id)
            self._queue.finish(
                item.id,
                status=QueueStatus.FAILED,
                completed_at=self._clock(),
                records_processed=item.records_processed,
                total_records=item.total_records,
                progress_percentage=item.progress_percentage,
                error_message=INTERRUPTED_MESSAGE,
            )
            recovered += 1
        return recovered

    def _fail(self, item_id: int, message: str) -> None:
        try:
            current = self._queue.get(item_id)
            if current is None or current.status != QueueStatus.PROCESSING:
                return
            self._queue.finish(
                item_id,
                status=QueueStatus.FAILED,
                completed_at=self._clock(),
                records_processed=0,
                total_records=0,
                progress_percentage=0.0,
                error_message=message,
            )
        except Exception:
            logger.exception("Queue item #%d stays processing until the next sweep", item_id)

    def _record(self, item: PollingQueueItem, result: HandlerResult, elapsed_ms: int) -> None:
        if result.success:
            status, percentage = QueueStatus.COMPLETED, compute_progress(result.records_processed, result.total_records)
        else:
            status = QueueStatus.FAILED
            percentage = compute_progress(result.records_processed, result.total_records) if result.total_records else 0.0

        self._queue.finish(
            item.id,
            status=status,
            completed_at=self._clock(),
            records_processed=result.records_processed,
            total_records=result.total_records,
            progress_percentage=percentage,
            error_message=result.error_message,
        )
        self._queue.add_result(
            item.id,
            result_type=ResultType.SUCCESS if result.success else ResultType.ERROR,
            data_count=result.records_processed,
            processing_time_ms=elapsed_ms,
            error_details=result.error_message,
        )
        log = logger.info if result.success else logger.warning
        log(
            "Queue item #%d %s: %d/%d record(s) in %d ms%s",
            item.id,
            status.value,
            result.records_processed,
            result.total_records,
            elapsed_ms,
            f" ({result.error_message})" if result.error_message else "",
        )

    def start(self) -> bool:
        return self._runner.start()

    def stop(self) -> bool:
        return self._runner.stop()

    def status(self) -> dict:
        return {
            "running": self._runner.running,
            "busy": self._busy.locked(),
            "current_item_id": self._current_item_id,
            "interval_seconds": self._runner.interval_seconds,
        }
