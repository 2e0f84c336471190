from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import QueueStatus, RequestType, ResultType


def compute_progress(processed: int, total: int) -> float:
    """Percentage of records handled; an empty job counts as done."""
    if total <= 0:
        return 100.0
    return round(min(processed, total) / total * 100, 2)


@dataclass(frozen=True)
class NewQueueItem:
    request_type: RequestType
    target_date: date
    priority: int
    end_date: Optional[date] = None
    requested_by: Optional[str] = None
    metadata: dict = field(default_factory=dict)


@dataclass(frozen=True)
class PollingQueueItem:
    id: int
    request_type: RequestType
    target_date: date
    priority: int
    status: QueueStatus
    requested_at: datetime
    end_date: Optional[date] = None
    requested_by: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    error_message: Optional[str] = None
    records_processed: int = 0
    total_records: int = 0
    progress_percentage: float = 0.0
    metadata: dict = field(default_factory=dict)

    def as_dict(self) -> dict:
        def _iso(v):
            return v.isoformat() if v else None

        return {
            "id": self.id,
            "request_type": self.request_type.value,
            "target_date": self.target_date.isoformat(),
            "end_date": _iso(self.end_date),
            "priority": self.priority,
            "status": self.status.value,
            "requested_by": self.requested_by,
            "requested_at": _iso(self.requested_at),
            "started_at": _iso(self.started_at),
            "completed_at": _iso(self.completed_at),
            "error_message": self.error_message,
            "records_processed": self.records_processed,
            "total_records": self.total_records,
            "progress_percentage": self.progress_percentage,
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class PollingQueueResult:
    id: int
    queue_id: int
    result_type: ResultType
    data_count: int
    processing_time_ms: int
    error_details: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class HandlerResult:
    success: bool
    records_processed: int = 0
    total_records: int = 0
    error_message: Optional[str] = None


@dataclass(frozen=True)
class QueuePage:
    items: Sequence[PollingQueueItem]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        if self.limit <= 0:
            return 0
        return (self.total + self.limit - 1) // self.limit

    def as_dict(self) -> dict:
        return {
            "items": [i.as_dict() for i in self.items],
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "total_pages": self.total_pages,
        }


@dataclass(frozen=True)
class QueueStats:
    pending: int = 0
    processing: int = 0
    completed: int = 0
    failed: int = 0
    cancelled: int = 0

    @property
    def total(self) -> int:
        return self.pending + self.processing + self.completed + self.failed + self.cancelled

    def as_dict(self) -> dict:
        return {
            "pending": self.pending,
            "processing": self.processing,
            "completed": self.completed,
            "failed": self.failed,
            "cancelled": self.cancelled,
            "total": self.total,
        }
