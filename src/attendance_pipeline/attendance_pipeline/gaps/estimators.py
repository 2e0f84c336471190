from __future__ import annotations

from datetime import datetime
from typing import Protocol

from ..core.constants import (
    BUSINESS_HOURS_END,
    BUSINESS_HOURS_RECORDS_PER_MINUTE,
    BUSINESS_HOURS_START,
    OFF_HOURS_RECORDS_PER_MINUTE,
)


class ExpectedRecordsEstimator(Protocol):
    def expected(self, start: datetime, end: datetime) -> int:
        raise NotImplementedError


class BusinessHoursEstimator:
    """Flat punch rate by time of day, decided by the hour the window starts in."""

    def __init__(
        self,
        *,
        business_start: int = BUSINESS_HOURS_START,
        business_end: int = BUSINESS_HOURS_END,
        business_rate: float = BUSINESS_HOURS_RECORDS_PER_MINUTE,
        off_hours_rate: float = OFF_HOURS_RECORDS_PER_MINUTE,
    ):
        self._business_start = business_start
        self._business_end = business_end
        self._business_rate = business_rate
        self._off_hours_rate = off_hours_rate

    def expected(self, start: datetime, end: datetime) -> int:
        minutes = (end - start).total_seconds() / 60
        in_business_hours = self._business_start <= start.hour < self._business_end
        rate = self._business_rate if in_business_hours else self._off_hours_rate
        return round(minutes * rate)
