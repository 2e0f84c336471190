from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.enums import GapPriority


@dataclass(frozen=True)
class GapPeriod:
    """A window of raw storage holding fewer punches than expected."""

    start: datetime
    end: datetime
    expected_records: int
    actual_records: int
    missing_records: int
    priority: GapPriority
    fillable: bool

    def as_dict(self) -> dict:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "expected_records": self.expected_records,
            "actual_records": self.actual_records,
            "missing_records": self.missing_records,
            "priority": self.priority.value,
            "fillable": self.fillable,
        }


@dataclass(frozen=True)
class GapAnalysis:
    analyzed_at: datetime
    total_records: int
    total_missing: int
    contiguity_percentage: float
    earliest: Optional[datetime] = None
    latest: Optional[datetime] = None
    gaps: tuple[GapPeriod, ...] = ()

    @property
    def fillable_gaps(self) -> list[GapPeriod]:
        return [g for g in self.gaps if g.fillable]

    @property
    def unfillable_gaps(self) -> list[GapPeriod]:
        return [g for g in self.gaps if not g.fillable]

    @property
    def critical_gaps(self) -> list[GapPeriod]:
        return [g for g in self.gaps if g.priority == GapPriority.CRITICAL]

    @property
    def missing_by_date(self) -> dict[date, int]:
        totals: dict[date, int] = {}
        for gap in self.gaps:
            day = gap.start.date()
            totals[day] = totals.get(day, 0) + gap.missing_records
        return totals

    def as_dict(self) -> dict:
        return {
            "analyzed_at": self.analyzed_at.isoformat(),
            "total_records": self.total_records,
            "total_missing": self.total_missing,
            "contiguity_percentage": self.contiguity_percentage,
            "earliest": self.earliest.isoformat() if self.earliest else None,
            "latest": self.latest.isoformat() if self.latest else None,
            "gap_count": len(self.gaps),
            "fillable_gaps": [g.as_dict() for g in self.fillable_gaps],
            "critical_gaps": [g.as_dict() for g in self.critical_gaps],
            "unfillable_gaps": [g.as_dict() for g in self.unfillable_gaps],
            "missing_by_date": {d.isoformat(): n for d, n in sorted(self.missing_by_date.items())},
        }


@dataclass
class BackfillReport:
    total_gaps: int = 0
    filled: int = 0
    failed: int = 0
    records_inserted: int = 0
    errors: list[str] = field(default_factory=list)
    skipped: bool = False
