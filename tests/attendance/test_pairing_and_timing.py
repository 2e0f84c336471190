from __future__ import annotations

from datetime import date, datetime, time

import pytest

from fakes import punch
from src.attendance_pipeline.attendance_pipeline.attendance.pairing import group_by_employee_day, pair_punches
from src.attendance_pipeline.attendance_pipeline.attendance.timing import analyze_timing, resolve_shift
from src.attendance_pipeline.attendance_pipeline.core.enums import ArrivalStatus, DepartureStatus
from src.attendance_pipeline.attendance_pipeline.shifts.model import DEFAULT_SHIFT, ShiftSchedule

DAY = date(2026, 2, 9)  # Monday


def at(hour, minute=0, day=DAY):
    return datetime.combine(day, time(hour, minute))


def test_nine_hour_day_pairs_first_and_last_punch():
    punches = [punch("E1", at(17), source_id="2"), punch("E1", at(12), source_id="3"), punch("E1", at(8), source_id="1")]

    pair = pair_punches("E1", DAY, punches)

    assert (pair.check_in, pair.check_out, pair.hours_worked) == (at(8), at(17), 9.0)
    assert pair.source_punch_id == "1"
    assert pair.punch_count == 3


def test_span_beyond_window_is_a_missed_checkout():
    pair = pair_punches("E1", DAY, [punch("E1", at(6)), punch("E1", at(20))])

    assert pair.check_out is None
    assert pair.hours_worked == 8.0


def test_single_punch_gets_default_hours():
    pair = pair_punches("E1", DAY, [punch("E1", at(9, 5))])

    assert (pair.check_in, pair.check_out, pair.hours_worked) == (at(9, 5), None, 8.0)


def test_window_and_default_are_overridable():
    pair = pair_punches(
        "E1", DAY, [punch("E1", at(6)), punch("E1", at(20))], checkout_window_hours=16, default_hours_worked=7.5
    )
    assert (pair.check_out, pair.hours_worked) == (at(20), 14.0)

    pair = pair_punches("E1", DAY, [punch("E1", at(6))], default_hours_worked=7.5)
    assert pair.hours_worked == 7.5


def test_hours_are_rounded_to_two_decimals():
    pair = pair_punches("E1", DAY, [punch("E1", at(8)), punch("E1", at(16, 20))])

    assert pair.hours_worked == 8.33


def test_grouping_is_by_employee_and_calendar_date():
    groups = group_by_employee_day(
        [
            punch("E1", at(8)),
            punch("E1", at(23, 50)),
            punch("E1", at(0, 10, day=date(2026, 2, 10))),
            punch("E2", at(9)),
        ]
    )

    assert sorted((k, len(v)) for k, v in groups.items()) == [
        (("E1", DAY), 2),
        (("E1", date(2026, 2, 10)), 1),
        (("E2", DAY), 1),
    ]


@pytest.mark.parametrize(
    "check_in, arrival, late, grace, early",
    [
        (at(8, 50), ArrivalStatus.EARLY, 0, 0, 10),
        (at(9, 0), ArrivalStatus.ON_TIME, 0, 0, 0),
        (at(9, 10), ArrivalStatus.GRACE, 0, 10, 0),
        (at(9, 45), ArrivalStatus.LATE, 15, 30, 0),
    ],
)
def test_arrival_classification_against_default_shift(check_in, arrival, late, grace, early):
    decision = analyze_timing(check_in, at(17), DEFAULT_SHIFT)

    assert decision.arrival_status == arrival
    assert (decision.late_minutes, decision.grace_minutes, decision.early_minutes) == (late, grace, early)


def test_departure_classification():
    assert analyze_timing(at(9), None, DEFAULT_SHIFT).departure_status == DepartureStatus.INCOMPLETE

    early = analyze_timing(at(9), at(16, 30), DEFAULT_SHIFT)
    assert (early.departure_status, early.early_departure_minutes) == (DepartureStatus.EARLY, 30)

    late = analyze_timing(at(9), at(18, 15), DEFAULT_SHIFT)
    assert (late.departure_status, late.late_departure_minutes) == (DepartureStatus.LATE, 75)

    assert analyze_timing(at(9), at(17), DEFAULT_SHIFT).departure_status == DepartureStatus.ON_TIME


def test_overnight_shift_ends_next_day():
    night = ShiftSchedule(shift_id=3, shift_name="Night", start_time=time(22, 0), end_time=time(6, 0), grace_period_minutes=5)

    decision = analyze_timing(at(22, 20), at(6, 30, day=date(2026, 2, 10)), night)

    assert (decision.arrival_status, decision.late_minutes, decision.grace_minutes) == (ArrivalStatus.LATE, 15, 5)
    assert (decision.departure_status, decision.late_departure_minutes) == (DepartureStatus.LATE, 30)


def test_assigned_shift_only_applies_on_its_days():
    weekend = ShiftSchedule(
        shift_id=7, shift_name="Weekend", start_time=time(7, 0), end_time=time(15, 0), days_of_week=("saturday", "sunday")
    )

    assert resolve_shift(weekend, DAY) is DEFAULT_SHIFT
    assert resolve_shift(weekend, date(2026, 2, 14)) is weekend
    assert resolve_shift(None, DAY) is DEFAULT_SHIFT
