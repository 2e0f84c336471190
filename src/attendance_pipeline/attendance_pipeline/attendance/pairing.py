from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta
from typing import Iterable, Sequence

from ..core.constants import DEFAULT_CHECKOUT_WINDOW_HOURS, DEFAULT_HOURS_WORKED
from ..punches.model import RawPunchRecord
from .model import PunchPair


def group_by_employee_day(punches: Iterable[RawPunchRecord]) -> dict[tuple[str, date], list[RawPunchRecord]]:
    """Bucket punches by (emp_code, calendar date of the punch). Incomplete rows are dropped."""
    groups: dict[tuple[str, date], list[RawPunchRecord]] = defaultdict(list)
    for punch in punches:
        if not punch.emp_code or punch.punch_time is None:
            continue
        groups[(punch.emp_code, punch.punch_time.date())].append(punch)
    return dict(groups)


def pair_punches(
    emp_code: str,
    work_date: date,
    punches: Sequence[RawPunchRecord],
    *,
    checkout_window_hours: float = DEFAULT_CHECKOUT_WINDOW_HOURS,
    default_hours_worked: float = DEFAULT_HOURS_WORKED,
) -> PunchPair:
    """First punch is the check-in; the last one is the check-out if it lands inside the window.

    A last punch beyond the window is treated as a missed punch-out.
    """
    if not punches:
        raise ValueError(f"No punches for {emp_code} on {work_date}")

    ordered = sorted(punches, key=lambda p: p.punch_time)
    first, last = ordered[0], ordered[-1]

    check_out = None
    hours_worked = float(default_hours_worked)
    if len(ordered) > 1:
        span = last.punch_time - first.punch_time
        if span <= timedelta(hours=checkout_window_hours):
            check_out = last.punch_time
            hours_worked = round(span.total_seconds() / 3600, 2)

    return PunchPair(
        emp_code=emp_code,
        work_date=work_date,
        check_in=first.punch_time,
        check_out=check_out,
        hours_worked=hours_worked,
        source_punch_id=first.source_id,
        punch_count=len(ordered),
    )
