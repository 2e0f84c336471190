from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import PunchCoverage, RawPunchRecord


class RawPunchRepository(Protocol):
    """Staging store for punches as received from the terminal API."""

    def exists_by_source_id(self, source_id: str) -> bool:
        raise NotImplementedError

    def exists_by_composite(self, *, punch_time: Optional[datetime], emp_code: Optional[str], punch_state: Optional[str]) -> bool:
        raise NotImplementedError

    def insert(self, record: RawPunchRecord) -> Optional[int]:
        """Insert and return the new id, or None when a unique key already holds the record."""

        raise NotImplementedError

    def latest_punch_time(self) -> Optional[datetime]:
        raise NotImplementedError

    def coverage(self) -> PunchCoverage:
        raise NotImplementedError

    def count_between(self, start: datetime, end: datetime) -> int:
        """Count punches in [start, end)."""

        raise NotImplementedError

    def list_unconverted(self, since: datetime, *, exclude_terminal_keyword: str, limit: int) -> Sequence[RawPunchRecord]:
        """Punches of up to `limit` employee-days since `since` that have no attendance record yet.

        Whole days are returned, oldest first; access-control terminals are left out.
        """

        raise NotImplementedError
