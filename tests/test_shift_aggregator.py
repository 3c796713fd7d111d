"""Tests for worked-hours aggregation."""

from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4
from zoneinfo import ZoneInfo

from shift_payroll.calculators.pay_period import PayPeriodCalculator
from shift_payroll.calculators.rounding import round2
from shift_payroll.calculators.shift_aggregator import (
    ShiftAggregator,
    aggregate_shifts,
    find_conflicts,
    shift_hours,
    worked_seconds,
)
from shift_payroll.calculators.types import ShiftRecord

from .conftest import WEEK_END, WEEK_START, utc


def record(employee_id, start, hours, break_minutes=0, status="scheduled") -> ShiftRecord:
    return ShiftRecord(
        shift_id=uuid4(),
        employee_id=employee_id,
        start=start,
        end=start + timedelta(hours=hours),
        break_minutes=break_minutes,
        status=status,
    )


class TestShiftHours:
    """Hours for a single shift."""

    def test_subtracts_break(self):
        assert shift_hours(utc(2024, 3, 12, 9), utc(2024, 3, 12, 17, 30), 30) == Decimal("8")

    def test_break_longer_than_shift_clamps_to_zero(self):
        assert shift_hours(utc(2024, 3, 12, 9), utc(2024, 3, 12, 10), 90) == Decimal("0")

    def test_overnight_shift(self):
        assert shift_hours(utc(2024, 3, 12, 22), utc(2024, 3, 13, 6)) == Decimal("8")

    def test_twenty_minutes_in_seconds(self):
        assert worked_seconds(utc(2024, 3, 12, 9), utc(2024, 3, 12, 9, 20)) == Decimal("1200")

    def test_break_counted_in_seconds(self):
        assert worked_seconds(utc(2024, 3, 12, 9), utc(2024, 3, 12, 9, 50), 5) == Decimal("2700")

    def test_unrounded_minutes(self):
        """Twenty minutes is a repeating decimal in hours."""
        hours = shift_hours(utc(2024, 3, 12, 9), utc(2024, 3, 12, 9, 20))

        assert round2(hours * 3) == Decimal("1.00")


class TestAggregateShifts:
    """Per-employee aggregation."""

    def test_sums_per_employee(self):
        alice, bob = uuid4(), uuid4()
        shifts = [
            record(alice, utc(2024, 3, 11, 8), 9),
            record(alice, utc(2024, 3, 12, 8), 9),
            record(bob, utc(2024, 3, 12, 9), 8.5, break_minutes=30),
        ]

        totals = aggregate_shifts(shifts)

        assert totals[alice].total_hours == Decimal("18.00")
        assert totals[bob].total_hours == Decimal("8.00")
        assert totals[alice].shift_ids == [shifts[0].shift_id, shifts[1].shift_id]

    def test_cancelled_shifts_are_skipped(self):
        alice = uuid4()
        shifts = [
            record(alice, utc(2024, 3, 11, 8), 9),
            record(alice, utc(2024, 3, 12, 8), 9, status="cancelled"),
        ]

        totals = aggregate_shifts(shifts)

        assert totals[alice].total_hours == Decimal("9.00")
        assert shifts[1].shift_id not in totals[alice].shift_ids

    def test_only_cancelled_shifts_yield_no_entry(self):
        alice = uuid4()

        assert aggregate_shifts([record(alice, utc(2024, 3, 11, 8), 9, status="cancelled")]) == {}

    def test_rounds_only_the_total(self):
        """Three 20-minute shifts are exactly one hour."""
        alice = uuid4()
        shifts = [
            ShiftRecord(
                shift_id=uuid4(),
                employee_id=alice,
                start=utc(2024, 3, 11 + i, 9),
                end=utc(2024, 3, 11 + i, 9, 20),
            )
            for i in range(3)
        ]

        totals = aggregate_shifts(shifts)

        assert totals[alice].worked_seconds == Decimal("3600")
        assert totals[alice].raw_hours == Decimal("1")
        assert totals[alice].total_hours == Decimal("1.00")

    def test_hours_by_local_start_day(self):
        """A shift starting 23:30 UTC belongs to the next day in Sydney."""
        alice = uuid4()
        shifts = [
            record(alice, utc(2024, 3, 17, 23, 30), 4),
            record(alice, utc(2024, 3, 18, 22), 2),
        ]

        totals = aggregate_shifts(shifts, ZoneInfo("Australia/Sydney"))

        assert totals[alice].hours_by_day == {
            date(2024, 3, 18): Decimal("4"),
            date(2024, 3, 19): Decimal("2"),
        }


class TestFindConflicts:
    """Overlap detection."""

    def test_overlapping_shifts(self):
        alice = uuid4()
        first = record(alice, utc(2024, 3, 11, 8), 8)
        second = record(alice, utc(2024, 3, 11, 14), 4)

        assert find_conflicts([second, first]) == [(first.shift_id, second.shift_id)]

    def test_back_to_back_shifts_do_not_conflict(self):
        alice = uuid4()
        shifts = [record(alice, utc(2024, 3, 11, 8), 4), record(alice, utc(2024, 3, 11, 12), 4)]

        assert find_conflicts(shifts) == []

    def test_different_employees_do_not_conflict(self):
        shifts = [record(uuid4(), utc(2024, 3, 11, 8), 8), record(uuid4(), utc(2024, 3, 11, 9), 8)]

        assert find_conflicts(shifts) == []

    def test_cancelled_shift_ignored(self):
        alice = uuid4()
        shifts = [
            record(alice, utc(2024, 3, 11, 8), 8),
            record(alice, utc(2024, 3, 11, 9), 8, status="cancelled"),
        ]

        assert find_conflicts(shifts) == []

    def test_overlapping_hours_are_summed(self):
        alice = uuid4()
        shifts = [record(alice, utc(2024, 3, 11, 8), 8), record(alice, utc(2024, 3, 11, 14), 4)]

        assert aggregate_shifts(shifts)[alice].total_hours == Decimal("12.00")


class TestShiftAggregator:
    """Loading shifts from the database."""

    async def test_aggregate_week(self, session, payroll_week):
        period = PayPeriodCalculator.period_window(WEEK_START, WEEK_END, "Europe/London")

        totals = await ShiftAggregator(session).aggregate(
            payroll_week.tenant.tenant_id, period, "Europe/London"
        )

        assert totals[payroll_week.alice.employee_id].total_hours == Decimal("45.00")
        assert totals[payroll_week.bob.employee_id].total_hours == Decimal("16.00")
        assert totals[payroll_week.carol.employee_id].total_hours == Decimal("4.00")
        assert sorted(totals[payroll_week.alice.employee_id].shift_ids) == sorted(
            payroll_week.shift_ids["alice"]
        )

    async def test_period_end_is_exclusive(self, session, payroll_week):
        """The shift at 2024-03-18 00:30 starts after the window closes."""
        period = PayPeriodCalculator.period_window(WEEK_START, WEEK_END, "Europe/London")

        shifts = await ShiftAggregator(session).load_shifts(payroll_week.tenant.tenant_id, period)

        assert all(period.contains(shift.start) for shift in shifts)
        assert len(shifts) == 8

    async def test_other_tenant_sees_nothing(self, session, payroll_week):
        period = PayPeriodCalculator.period_window(WEEK_START, WEEK_END, "Europe/London")

        totals = await ShiftAggregator(session).aggregate(uuid4(), period, "Europe/London")

        assert totals == {}
