"""ORM models."""

from shift_payroll.models.base import Base, TimestampMixin, UTCDateTime, utc_now
from shift_payroll.models.payroll import AuditEvent, PayRun, PayRunChange, PayRunLine
from shift_payroll.models.shift import Shift
from shift_payroll.models.staff import Employee, RateHistoryEntry
from shift_payroll.models.tenant import Tenant

__all__ = [
    "AuditEvent",
    "Base",
    "Employee",
    "PayRun",
    "PayRunChange",
    "PayRunLine",
    "RateHistoryEntry",
    "Shift",
    "Tenant",
    "TimestampMixin",
    "UTCDateTime",
    "utc_now",
]
