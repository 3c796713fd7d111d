"""Worked-hours aggregation from scheduled shifts."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable
from uuid import UUID
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shift_payroll.calculators.timezones import load_timezone, to_local
from shift_payroll.calculators.types import SECONDS_PER_HOUR, AggregatedHours, PayPeriod, ShiftRecord
from shift_payroll.models import Shift

ZERO = Decimal("0")


def _exact_seconds(delta: timedelta) -> Decimal:
    return Decimal(delta.days * 86400 + delta.seconds) + Decimal(delta.microseconds) / Decimal(1_000_000)


def worked_seconds(start: datetime, end: datetime, break_minutes: int = 0) -> Decimal:
    """Worked seconds for one shift: (end - start) - break, clamped at zero."""
    worked = _exact_seconds(end - start) - Decimal(break_minutes or 0) * 60
    return max(ZERO, worked)


def shift_hours(start: datetime, end: datetime, break_minutes: int = 0) -> Decimal:
    """Worked hours for one shift.

    A break longer than the shift yields zero, never negative hours.
    """
    return worked_seconds(start, end, break_minutes) / SECONDS_PER_HOUR


def aggregate_shifts(
    shifts: Iterable[ShiftRecord],
    tz: ZoneInfo | None = None,
) -> dict[UUID, AggregatedHours]:
    """Sum worked time per employee, skipping cancelled shifts.

    Time is summed in exact seconds; ``AggregatedHours.total_hours`` converts
    and rounds on read. When ``tz`` is given, time is also attributed to the
    shift's local start date.
    """
    totals: dict[UUID, AggregatedHours] = {}
    for shift in shifts:
        if shift.is_cancelled:
            continue
        seconds = worked_seconds(shift.start, shift.end, shift.break_minutes)
        agg = totals.get(shift.employee_id)
        if agg is None:
            agg = totals[shift.employee_id] = AggregatedHours(employee_id=shift.employee_id)
        agg.worked_seconds += seconds
        agg.shift_ids.append(shift.shift_id)
        if tz is not None:
            day = to_local(shift.start, tz).date()
            agg.seconds_by_day[day] = agg.seconds_by_day.get(day, ZERO) + seconds
    return totals


def find_conflicts(shifts: Iterable[ShiftRecord]) -> list[tuple[UUID, UUID]]:
    """Pairs of overlapping non-cancelled shifts for the same employee.

    Two shifts conflict when ``start1 < end2 and start2 < end1``. Payroll
    still counts both; this only surfaces the overlap.
    """
    by_employee: dict[UUID, list[ShiftRecord]] = defaultdict(list)
    for shift in shifts:
        if not shift.is_cancelled:
            by_employee[shift.employee_id].append(shift)

    conflicts: list[tuple[UUID, UUID]] = []
    for employee_shifts in by_employee.values():
        employee_shifts.sort(key=lambda s: (s.start, s.end))
        for i, first in enumerate(employee_shifts):
            for second in employee_shifts[i + 1 :]:
                if second.start >= first.end:
                    break
                if first.start < second.end and second.start < first.end:
                    conflicts.append((first.shift_id, second.shift_id))
    return conflicts


class ShiftAggregator:
    """Loads a tenant's shifts for a period and aggregates hours per employee."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def load_shifts(self, tenant_id: UUID, period: PayPeriod) -> list[ShiftRecord]:
        """Non-cancelled shifts whose start falls in ``[period.start, period.end)``."""
        result = await self.session.execute(
            select(Shift)
            .where(
                Shift.tenant_id == tenant_id,
                Shift.start_time >= period.start,
                Shift.start_time < period.end,
                Shift.status != "cancelled",
            )
            .order_by(Shift.employee_id, Shift.start_time)
        )
        return [
            ShiftRecord(
                shift_id=row.shift_id,
                employee_id=row.employee_id,
                start=row.start_time,
                end=row.end_time,
                break_minutes=row.break_minutes,
                status=row.status,
            )
            for row in result.scalars().all()
        ]

    async def aggregate(
        self,
        tenant_id: UUID,
        period: PayPeriod,
        timezone: str,
    ) -> dict[UUID, AggregatedHours]:
        """Per-employee totals and source shift ids for the period."""
        tz = load_timezone(timezone)
        shifts = await self.load_shifts(tenant_id, period)
        return aggregate_shifts(shifts, tz)
