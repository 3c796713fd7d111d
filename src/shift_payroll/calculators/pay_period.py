"""Pay period boundary calculation.

All schemes follow the same three steps:

1. Convert the reference instant to wall-clock time in the tenant timezone.
2. Work out the period's first and (exclusive) end day with calendar arithmetic.
3. Convert each boundary's local midnight back to UTC using the offset in
   force at that moment.

Durations are never added to absolute instants, so a period spanning a DST
change is 167 or 169 hours long rather than drifting off midnight.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import Any

from shift_payroll.calculators.timezones import load_timezone, local_midnight_utc, to_local
from shift_payroll.calculators.types import (
    FortnightlyScheme,
    MonthlyScheme,
    PayPeriod,
    PeriodScheme,
    SemiMonthlyScheme,
    WeeklyScheme,
    Weekday,
)
from shift_payroll.errors import ValidationError

SCHEME_TYPES = ("weekly", "fortnightly", "semi-monthly", "monthly")


def _clamped_date(year: int, month: int, day: int) -> date:
    """date(year, month, day) with day clamped to the month's length."""
    return date(year, month, min(day, calendar.monthrange(year, month)[1]))


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


class PayPeriodCalculator:
    """Pure, stateless pay period computations."""

    @staticmethod
    def compute(
        reference: datetime | date,
        scheme: PeriodScheme,
        timezone: str,
    ) -> PayPeriod:
        """Return the period containing ``reference`` as UTC instants.

        Args:
            reference: Instant (naive is read as UTC) or a calendar date
                already expressed in the tenant's timezone.
            scheme: Period scheme configuration.
            timezone: IANA timezone name of the tenant.

        Raises:
            ValidationError: On an empty/unknown timezone or bad scheme.
        """
        tz = load_timezone(timezone)
        if isinstance(reference, datetime):
            local_day = to_local(reference, tz).date()
        elif isinstance(reference, date):
            local_day = reference
        else:
            raise ValidationError("Reference date is required", field="reference_date")

        first_day, end_day = PayPeriodCalculator.period_dates(local_day, scheme)
        return PayPeriod(
            start=local_midnight_utc(first_day, tz),
            end=local_midnight_utc(end_day, tz),
        )

    @staticmethod
    def period_dates(local_day: date, scheme: PeriodScheme) -> tuple[date, date]:
        """Calendar ``[first_day, end_day)`` of the period containing ``local_day``."""
        if isinstance(scheme, WeeklyScheme):
            offset = (local_day.weekday() - scheme.start_day_of_week) % 7
            first_day = local_day - timedelta(days=offset)
            return first_day, first_day + timedelta(days=7)

        if isinstance(scheme, FortnightlyScheme):
            # Calendar-day difference; floor division handles dates before the anchor
            days_since_reference = (local_day - scheme.reference_start_date).days
            periods_elapsed = days_since_reference // 14
            first_day = scheme.reference_start_date + timedelta(days=periods_elapsed * 14)
            return first_day, first_day + timedelta(days=14)

        if isinstance(scheme, SemiMonthlyScheme):
            year, month = local_day.year, local_day.month
            split_day = scheme.first_half_end_day + 1
            if local_day.day <= scheme.first_half_end_day:
                return date(year, month, 1), date(year, month, split_day)
            next_year, next_month = _shift_month(year, month, 1)
            return date(year, month, split_day), date(next_year, next_month, 1)

        if isinstance(scheme, MonthlyScheme):
            nominal = scheme.start_day_of_month
            year, month = local_day.year, local_day.month
            first_day = _clamped_date(year, month, nominal)
            if local_day < first_day:
                # Still inside the period that began last month
                prev_year, prev_month = _shift_month(year, month, -1)
                return _clamped_date(prev_year, prev_month, nominal), first_day
            next_year, next_month = _shift_month(year, month, 1)
            return first_day, _clamped_date(next_year, next_month, nominal)

        raise ValidationError(f"Unsupported pay period scheme: {scheme!r}", field="type")

    @staticmethod
    def period_window(start_date: date, end_date: date, timezone: str) -> PayPeriod:
        """UTC window ``[start_date 00:00, end_date+1 00:00)`` in ``timezone``.

        ``end_date`` is the last day included, as stored on a pay run.
        """
        if start_date is None:
            raise ValidationError("Pay period start date is required", field="pay_period_start")
        if end_date is None:
            raise ValidationError("Pay period end date is required", field="pay_period_end")
        if end_date < start_date:
            raise ValidationError(
                "Pay period end must not be before its start",
                field="pay_period_end",
            )
        tz = load_timezone(timezone)
        return PayPeriod(
            start=local_midnight_utc(start_date, tz),
            end=local_midnight_utc(end_date + timedelta(days=1), tz),
        )

    @staticmethod
    def next_period_after(last_day: date, scheme: PeriodScheme, timezone: str) -> PayPeriod:
        """The period containing the day after ``last_day``."""
        return PayPeriodCalculator.compute(last_day + timedelta(days=1), scheme, timezone)


def _parse_date(value: Any, field: str) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as exc:
        raise ValidationError(f"Invalid date: {value!r}", field=field) from exc


def _parse_int(value: Any, default: int, field: str) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid number: {value!r}", field=field) from exc


def scheme_from_config(config: dict[str, Any] | None) -> PeriodScheme:
    """Build a PeriodScheme from a stored tenant ``pay_period`` config block."""
    if not config or not config.get("type"):
        raise ValidationError("Pay period type is required", field="type")

    scheme_type = str(config["type"]).strip().lower()
    if scheme_type == "weekly":
        return WeeklyScheme(Weekday.parse(config.get("week_starts_on") or "monday"))
    if scheme_type == "fortnightly":
        return FortnightlyScheme(_parse_date(config.get("first_period_start"), "first_period_start"))
    if scheme_type == "semi-monthly":
        return SemiMonthlyScheme(_parse_int(config.get("first_period_end"), 15, "first_period_end"))
    if scheme_type == "monthly":
        return MonthlyScheme(_parse_int(config.get("monthly_starts_on"), 1, "monthly_starts_on"))
    raise ValidationError(f"Unsupported pay period type: {config['type']!r}", field="type")


def scheme_to_config(scheme: PeriodScheme) -> dict[str, Any]:
    """Inverse of :func:`scheme_from_config`."""
    if isinstance(scheme, WeeklyScheme):
        return {"type": "weekly", "week_starts_on": scheme.start_day_of_week.name.lower()}
    if isinstance(scheme, FortnightlyScheme):
        return {"type": "fortnightly", "first_period_start": scheme.reference_start_date.isoformat()}
    if isinstance(scheme, SemiMonthlyScheme):
        return {"type": "semi-monthly", "first_period_end": scheme.first_half_end_day}
    if isinstance(scheme, MonthlyScheme):
        return {"type": "monthly", "monthly_starts_on": scheme.start_day_of_month}
    raise ValidationError(f"Unsupported pay period scheme: {scheme!r}", field="type")
