from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import DailySummary


class DailySummaryRepository(Protocol):
    def exists_for(self, summary_date: date) -> bool:
        raise NotImplementedError

    def create(self, summary: DailySummary) -> Optional[int]:
        raise NotImplementedError

    def get_by_date(self, summary_date: date) -> Optional[DailySummary]:
        raise NotImplementedError

    def list_between(self, start: date, end: date) -> Sequence[DailySummary]:
        raise NotImplementedError
