from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional

from ..core.constants import DEFAULT_GRACE_MINUTES, DEFAULT_SHIFT_END, DEFAULT_SHIFT_START

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


@dataclass(frozen=True)
class ShiftSchedule:
    """Expected working window for an employee."""

    shift_id: Optional[int]
    shift_name: str
    start_time: time
    end_time: time
    grace_period_minutes: int = DEFAULT_GRACE_MINUTES
    days_of_week: tuple[str, ...] = WEEKDAYS

    @property
    def is_overnight(self) -> bool:
        return self.end_time < self.start_time

    def applies_on(self, day: date) -> bool:
        return WEEKDAYS[day.weekday()] in self.days_of_week

    def expected_start(self, day: date) -> datetime:
        return datetime.combine(day, self.start_time)

    def expected_end(self, day: date) -> datetime:
        end = datetime.combine(day, self.end_time)
        if self.is_overnight:
            end += timedelta(days=1)
        return end


DEFAULT_SHIFT = ShiftSchedule(
    shift_id=None,
    shift_name="Default",
    start_time=DEFAULT_SHIFT_START,
    end_time=DEFAULT_SHIFT_END,
)


def parse_days_of_week(value: Optional[str]) -> tuple[str, ...]:
    if not value:
        return WEEKDAYS
    days = tuple(d.strip().lower() for d in value.split(",") if d.strip())
    return days or WEEKDAYS
