from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.enums import ArrivalStatus, DepartureStatus


@dataclass(frozen=True)
class PunchPair:
    """Check-in/out derived from one employee's punches on one day (not yet stored)."""

    emp_code: str
    work_date: date
    check_in: datetime
    check_out: Optional[datetime]
    hours_worked: float
    source_punch_id: Optional[str]
    punch_count: int


@dataclass(frozen=True)
class TimingDecision:
    arrival_status: ArrivalStatus
    departure_status: DepartureStatus
    late_minutes: int = 0
    grace_minutes: int = 0
    early_minutes: int = 0
    late_departure_minutes: int = 0
    early_departure_minutes: int = 0


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one employee's attendance for one calendar date."""

    attendance_id: int
    emp_code: str
    work_date: date
    check_in: datetime
    check_out: Optional[datetime]
    hours_worked: float
    source_punch_id: Optional[str] = None
    punch_count: int = 1
    arrival_status: Optional[ArrivalStatus] = None
    departure_status: Optional[DepartureStatus] = None
    late_minutes: Optional[int] = None
    grace_minutes: Optional[int] = None
    early_minutes: Optional[int] = None
    late_departure_minutes: Optional[int] = None
    early_departure_minutes: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass
class StepOutcome:
    count: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class CycleResult:
    """Aggregate counts of one unified processing cycle."""

    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    raw_pulled: int = 0
    processed: int = 0
    analyzed: int = 0
    summarized: int = 0
    errors: list[str] = field(default_factory=list)
    skipped: bool = False

    def as_dict(self) -> dict:
        return {
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "raw_pulled": self.raw_pulled,
            "processed": self.processed,
            "analyzed": self.analyzed,
            "summarized": self.summarized,
            "errors": list(self.errors),
            "skipped": self.skipped,
        }
