"""IANA timezone helpers."""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from shift_payroll.errors import ValidationError


def load_timezone(name: str | None) -> ZoneInfo:
    """Load an IANA timezone, raising ValidationError for empty or unknown names."""
    if name is None or not str(name).strip():
        raise ValidationError("Timezone is required", field="timezone")
    try:
        return ZoneInfo(str(name).strip())
    except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
        raise ValidationError(f"Unknown timezone: {name!r}", field="timezone") from exc


def to_local(instant: datetime, tz: ZoneInfo) -> datetime:
    """Convert an instant to wall-clock time in ``tz`` (naive input is UTC)."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(tz)


def local_midnight_utc(day: date, tz: ZoneInfo) -> datetime:
    """00:00 wall-clock on ``day`` in ``tz``, as a UTC instant.

    The offset is looked up for that moment, so each boundary resolves DST
    on its own. A midnight inside a spring-forward gap takes the pre-gap
    offset, which lands on the first valid wall-clock time after it.
    """
    return datetime.combine(day, time.min, tzinfo=tz).astimezone(timezone.utc)
