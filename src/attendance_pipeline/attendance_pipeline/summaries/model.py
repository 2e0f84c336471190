from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional


@dataclass(frozen=True)
class DailySummary:
    summary_date: date
    total_employees: int
    present_employees: int
    absent_employees: int
    late_employees: int
    non_bio_employees: int
    attendance_rate: float
    summary_id: Optional[int] = None
    created_at: Optional[datetime] = None

    @classmethod
    def compute(cls, summary_date: date, *, total: int, present: int, non_bio: int, late: int) -> "DailySummary":
        """Non-bio employees are exempt from punching and count toward the attendance rate."""
        absent = total - present - non_bio
        rate = round((present + non_bio) / total * 100, 2) if total > 0 else 0.0
        return cls(
            summary_date=summary_date,
            total_employees=total,
            present_employees=present,
            absent_employees=absent,
            late_employees=late,
            non_bio_employees=non_bio,
            attendance_rate=rate,
        )

    def as_dict(self) -> dict:
        return {
            "summary_date": self.summary_date.isoformat(),
            "total_employees": self.total_employees,
            "present_employees": self.present_employees,
            "absent_employees": self.absent_employees,
            "late_employees": self.late_employees,
            "non_bio_employees": self.non_bio_employees,
            "attendance_rate": self.attendance_rate,
        }
