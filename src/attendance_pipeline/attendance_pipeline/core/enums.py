from __future__ import annotations

from enum import Enum


class ArrivalStatus(str, Enum):
    """Arrival classification against the expected shift start."""

    EARLY = "early"
    ON_TIME = "on_time"
    GRACE = "grace"
    LATE = "late"


class DepartureStatus(str, Enum):
    """Departure classification against the expected shift end."""

    EARLY = "early"
    ON_TIME = "on_time"
    LATE = "late"
    INCOMPLETE = "incomplete"


class GapPriority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Lower rank = more urgent."""
        return _GAP_RANKS[self]


_GAP_RANKS = {
    GapPriority.CRITICAL: 1,
    GapPriority.HIGH: 2,
    GapPriority.MEDIUM: 3,
    GapPriority.LOW: 4,
}


class RequestType(str, Enum):
    """Kinds of ingestion work accepted by the polling queue."""

    DATE_RANGE = "date_range"
    MISSING_DATA = "missing_data"
    MANUAL_REPOLL = "manual_repoll"
    GAP_FILL = "gap_fill"
    HISTORICAL_BACKFILL = "historical_backfill"


class QueueStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class ResultType(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
