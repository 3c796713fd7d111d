"""Pay run line assembly and run totals."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Iterable
from uuid import UUID

from shift_payroll.calculators.overtime import OvertimeSplitter
from shift_payroll.calculators.rounding import round2, round_rate, to_decimal
from shift_payroll.calculators.types import (
    AggregatedHours,
    LineCandidate,
    OvertimePolicy,
    RunTotals,
)


class LineBuilder:
    """Builds pay run lines from aggregated hours, a resolved rate and a policy.

    Rounding:
    - Hours are rounded to 2 decimals once, when reported for the employee
    - regular_pay, overtime_pay and gross_pay are each rounded to cents
    - Stored rates keep 4 decimals
    - Run totals are sums of the already-rounded line values
    """

    @staticmethod
    def compute_gross(regular_pay: Decimal, overtime_pay: Decimal, adjustments: Decimal) -> Decimal:
        """gross = round2(regular + overtime + adjustments)."""
        return round2(to_decimal(regular_pay) + to_decimal(overtime_pay) + to_decimal(adjustments))

    @staticmethod
    def build_line(
        employee_id: UUID,
        hours: AggregatedHours,
        base_rate: Decimal,
        policy: OvertimePolicy,
        employee_number: str = "",
        staff_name: str = "Unknown",
    ) -> LineCandidate:
        """Create an included line with zero adjustments."""
        base_rate = to_decimal(base_rate)
        total_hours = hours.total_hours
        split = OvertimeSplitter.split(total_hours, policy, base_rate)

        regular_pay = round2(split.regular_hours * base_rate)
        overtime_pay = round2(split.overtime_hours * split.overtime_rate)
        adjustments = Decimal("0")

        return LineCandidate(
            employee_id=employee_id,
            employee_number=employee_number or "",
            staff_name=staff_name,
            regular_hours=round2(split.regular_hours),
            overtime_hours=round2(split.overtime_hours),
            total_hours=total_hours,
            hourly_rate=round_rate(base_rate),
            overtime_rate=round_rate(split.overtime_rate),
            regular_pay=regular_pay,
            overtime_pay=overtime_pay,
            adjustments=adjustments,
            gross_pay=LineBuilder.compute_gross(regular_pay, overtime_pay, adjustments),
            source_shift_ids=list(hours.shift_ids),
        )

    @staticmethod
    def totals_from_lines(lines: Iterable[Any]) -> RunTotals:
        """Totals over included lines.

        Accepts ``LineCandidate`` objects (always included) or persisted
        ``PayRunLine`` rows carrying a ``status``.
        """
        total_hours = Decimal("0")
        total_gross = Decimal("0")
        count = 0
        for line in lines:
            if getattr(line, "status", "included") != "included":
                continue
            total_hours += to_decimal(line.total_hours)
            total_gross += to_decimal(line.gross_pay)
            count += 1
        return RunTotals(
            total_hours=round2(total_hours),
            total_gross_pay=round2(total_gross),
            staff_count=count,
        )


def build_run_name(period_start: date, period_end: date) -> str:
    """Display name such as ``11 Mar to 17 Mar 2024``."""
    return (
        f"{period_start.day} {period_start:%b} to "
        f"{period_end.day} {period_end:%b} {period_end.year}"
    )
