"""Type definitions for the pay-run calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum, IntEnum
from typing import Any, Union
from uuid import UUID

from shift_payroll.calculators.rounding import round2
from shift_payroll.calculators.timezones import load_timezone, to_local
from shift_payroll.errors import ValidationError

SECONDS_PER_HOUR = Decimal(3600)


class Weekday(IntEnum):
    """Day of week, numbered like ``date.weekday()``."""

    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @classmethod
    def parse(cls, value: str | int | Weekday) -> Weekday:
        """Accept a Weekday, an int 0-6, or a day name ("monday")."""
        if isinstance(value, Weekday):
            return value
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                raise ValidationError(f"Invalid day of week: {value}", field="start_day_of_week")
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            raise ValidationError(f"Invalid day of week: {value!r}", field="start_day_of_week")


# ===== Period schemes =====


@dataclass(frozen=True)
class WeeklyScheme:
    """Seven-day periods starting on a fixed weekday."""

    start_day_of_week: Weekday = Weekday.MONDAY

    def __post_init__(self) -> None:
        object.__setattr__(self, "start_day_of_week", Weekday.parse(self.start_day_of_week))


@dataclass(frozen=True)
class FortnightlyScheme:
    """Fourteen-day periods anchored on a reference start date."""

    reference_start_date: date

    def __post_init__(self) -> None:
        if self.reference_start_date is None:
            raise ValidationError(
                "Fortnightly pay period requires a reference start date",
                field="reference_start_date",
            )
        if isinstance(self.reference_start_date, datetime) or not isinstance(
            self.reference_start_date, date
        ):
            raise ValidationError(
                "reference_start_date must be a calendar date",
                field="reference_start_date",
            )


@dataclass(frozen=True)
class SemiMonthlyScheme:
    """Two periods per month split after ``first_half_end_day``."""

    first_half_end_day: int = 15

    def __post_init__(self) -> None:
        if not isinstance(self.first_half_end_day, int) or not 1 <= self.first_half_end_day <= 28:
            raise ValidationError(
                "first_half_end_day must be between 1 and 28",
                field="first_half_end_day",
            )


@dataclass(frozen=True)
class MonthlyScheme:
    """Monthly periods starting on a nominal day, clamped in short months."""

    start_day_of_month: int = 1

    def __post_init__(self) -> None:
        if not isinstance(self.start_day_of_month, int) or not 1 <= self.start_day_of_month <= 31:
            raise ValidationError(
                "start_day_of_month must be between 1 and 31",
                field="start_day_of_month",
            )


PeriodScheme = Union[WeeklyScheme, FortnightlyScheme, SemiMonthlyScheme, MonthlyScheme]


@dataclass(frozen=True)
class PayPeriod:
    """Half-open ``[start, end)`` interval of absolute UTC instants."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise ValidationError("Pay period end must be after start", field="end")

    def contains(self, instant: datetime) -> bool:
        """Check if an instant falls within the period."""
        return self.start <= instant < self.end

    def to_calendar_dates(self, timezone: str) -> tuple[date, date]:
        """First and last (inclusive) calendar day of the period in ``timezone``."""
        tz = load_timezone(timezone)
        first_day = to_local(self.start, tz).date()
        last_day = to_local(self.end, tz).date() - timedelta(days=1)
        return first_day, last_day


# ===== Overtime =====


class OvertimeRuleType(str, Enum):
    """How the overtime rate is derived from the base rate."""

    MULTIPLIER = "multiplier"
    FLAT_EXTRA = "flat_extra"


@dataclass(frozen=True)
class OvertimePolicy:
    """Single-threshold overtime policy for one employee."""

    enabled: bool = False
    contracted_weekly_hours: Decimal | None = None
    rule_type: OvertimeRuleType | None = None
    multiplier: Decimal | None = None
    flat_extra: Decimal | None = None

    @property
    def applies(self) -> bool:
        """True when hours beyond the contracted threshold are overtime."""
        return (
            self.enabled
            and self.contracted_weekly_hours is not None
            and self.contracted_weekly_hours > 0
        )


@dataclass(frozen=True)
class OvertimeSplit:
    """Result of splitting aggregated hours into regular and overtime."""

    regular_hours: Decimal
    overtime_hours: Decimal
    overtime_rate: Decimal


# ===== Aggregation =====


@dataclass(frozen=True)
class ShiftRecord:
    """Plain view of a shift for the pure aggregation functions."""

    shift_id: UUID
    employee_id: UUID
    start: datetime
    end: datetime
    break_minutes: int = 0
    status: str = "scheduled"

    @property
    def is_cancelled(self) -> bool:
        return self.status == "cancelled"


@dataclass
class AggregatedHours:
    """Worked time for one employee over a period.

    Time is accumulated as exact seconds and converted to hours on read, so
    rounding happens once, when the total is reported.
    """

    employee_id: UUID
    worked_seconds: Decimal = Decimal("0")
    shift_ids: list[UUID] = field(default_factory=list)
    seconds_by_day: dict[date, Decimal] = field(default_factory=dict)

    @property
    def raw_hours(self) -> Decimal:
        return self.worked_seconds / SECONDS_PER_HOUR

    @property
    def hours_by_day(self) -> dict[date, Decimal]:
        return {day: seconds / SECONDS_PER_HOUR for day, seconds in self.seconds_by_day.items()}

    @property
    def total_hours(self) -> Decimal:
        """Total hours rounded to 2 decimal places."""
        return round2(self.raw_hours)


# ===== Lines =====


@dataclass
class LineCandidate:
    """A pay run line before persistence."""

    employee_id: UUID
    employee_number: str
    staff_name: str

    regular_hours: Decimal
    overtime_hours: Decimal
    total_hours: Decimal
    hourly_rate: Decimal
    overtime_rate: Decimal
    regular_pay: Decimal
    overtime_pay: Decimal
    adjustments: Decimal = Decimal("0")
    gross_pay: Decimal = Decimal("0")

    # Traceability
    source_shift_ids: list[UUID] = field(default_factory=list)

    def to_row(self) -> dict[str, Any]:
        """Column values for a ``PayRunLine`` insert."""
        return {
            "employee_id": self.employee_id,
            "employee_number": self.employee_number,
            "staff_name": self.staff_name,
            "regular_hours": self.regular_hours,
            "overtime_hours": self.overtime_hours,
            "total_hours": self.total_hours,
            "hourly_rate": self.hourly_rate,
            "overtime_rate": self.overtime_rate,
            "regular_pay": self.regular_pay,
            "overtime_pay": self.overtime_pay,
            "adjustments": self.adjustments,
            "gross_pay": self.gross_pay,
            "status": "included",
            "source_shift_ids": [str(shift_id) for shift_id in self.source_shift_ids],
        }


@dataclass(frozen=True)
class RunTotals:
    """Pay run totals over included lines."""

    total_hours: Decimal = Decimal("0")
    total_gross_pay: Decimal = Decimal("0")
    staff_count: int = 0
