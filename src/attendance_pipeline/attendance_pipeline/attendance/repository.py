from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord, PunchPair, TimingDecision


class AttendanceRepository(Protocol):
    def exists_for(self, emp_code: str, work_date: date) -> bool:
        raise NotImplementedError

    def create(self, pair: PunchPair) -> Optional[int]:
        """Insert one attendance fact. Returns None when (emp_code, work_date) already exists."""
        raise NotImplementedError

    def list_unanalyzed(self, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def update_timing(self, attendance_id: int, decision: TimingDecision) -> bool:
        raise NotImplementedError

    def list_records(self, *, start: date, end: date, emp_code: Optional[str] = None) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def count_present(self, work_date: date) -> int:
        raise NotImplementedError

    def count_late(self, work_date: date) -> int:
        raise NotImplementedError
