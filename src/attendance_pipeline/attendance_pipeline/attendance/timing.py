from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import minutes_between
from ..core.enums import ArrivalStatus, DepartureStatus
from ..shifts.model import DEFAULT_SHIFT, ShiftSchedule
from .model import TimingDecision


def resolve_shift(assigned: Optional[ShiftSchedule], work_date: date) -> ShiftSchedule:
    """Assigned shift when it covers that weekday, otherwise the 09:00-17:00 default."""
    if assigned is not None and assigned.applies_on(work_date):
        return assigned
    return DEFAULT_SHIFT


def analyze_timing(check_in: datetime, check_out: Optional[datetime], shift: ShiftSchedule) -> TimingDecision:
    """Classify arrival and departure against the shift.

    Minutes inside the grace period are reported as grace minutes, not late
    minutes; everything past it is late.
    """
    day = check_in.date()
    expected_start = shift.expected_start(day)
    grace_period = max(0, int(shift.grace_period_minutes))

    offset = minutes_between(check_in, expected_start)
    raw_late = max(0, offset)
    grace_minutes = min(raw_late, grace_period)
    late_minutes = max(0, raw_late - grace_period)
    early_minutes = max(0, -offset)

    if late_minutes > 0:
        arrival = ArrivalStatus.LATE
    elif grace_minutes > 0:
        arrival = ArrivalStatus.GRACE
    elif early_minutes > 0:
        arrival = ArrivalStatus.EARLY
    else:
        arrival = ArrivalStatus.ON_TIME

    late_dep = early_dep = 0
    if check_out is None:
        departure = DepartureStatus.INCOMPLETE
    else:
        end_offset = minutes_between(check_out, shift.expected_end(day))
        if end_offset > 0:
            departure, late_dep = DepartureStatus.LATE, end_offset
        elif end_offset < 0:
            departure, early_dep = DepartureStatus.EARLY, -end_offset
        else:
            departure = DepartureStatus.ON_TIME

    return TimingDecision(
        arrival_status=arrival,
        departure_status=departure,
        late_minutes=late_minutes,
        grace_minutes=grace_minutes,
        early_minutes=early_minutes,
        late_departure_minutes=late_dep,
        early_departure_minutes=early_dep,
    )
