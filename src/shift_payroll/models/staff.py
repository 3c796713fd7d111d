"""Employee and effective-dated rate history models."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shift_payroll.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from shift_payroll.models.tenant import Tenant


class Employee(Base, TimestampMixin):
    """Staff member with an optional per-employee overtime policy.

    Overtime columns left NULL fall back to the tenant's overtime defaults.
    """

    __tablename__ = "employee"

    employee_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    tenant_id: Mapped[UUID] = mapped_column(
        ForeignKey("tenant.tenant_id", ondelete="CASCADE"),
        nullable=False,
    )
    employee_number: Mapped[str] = mapped_column(String, nullable=False, default="")
    first_name: Mapped[str] = mapped_column(String, nullable=False)
    last_name: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="active")

    # Overtime policy
    contracted_weekly_hours: Mapped[Decimal | None] = mapped_column(Numeric(6, 2), nullable=True)
    overtime_enabled: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    overtime_rule_type: Mapped[str | None] = mapped_column(String, nullable=True)
    overtime_multiplier: Mapped[Decimal | None] = mapped_column(Numeric(6, 3), nullable=True)
    overtime_flat_extra: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'terminated', 'on_leave')",
            name="employee_status_check",
        ),
        CheckConstraint(
            "overtime_rule_type IS NULL OR overtime_rule_type IN ('multiplier', 'flat_extra')",
            name="employee_overtime_rule_check",
        ),
    )

    # Relationships
    tenant: Mapped[Tenant] = relationship(back_populates="employees")
    rates: Mapped[list[RateHistoryEntry]] = relationship(back_populates="employee")

    @property
    def full_name(self) -> str:
        """Display name, 'Unknown' when no name parts are set."""
        name = " ".join(p for p in (self.first_name, self.last_name) if p).strip()
        return name or "Unknown"


class RateHistoryEntry(Base, TimestampMixin):
    """Append-only effective-dated hourly rate.

    The rate in effect on a date is the entry with the latest
    ``effective_date`` on or before that date.
    """

    __tablename__ = "staff_hourly_rate"

    rate_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    tenant_id: Mapped[UUID] = mapped_column(
        ForeignKey("tenant.tenant_id", ondelete="CASCADE"),
        nullable=False,
    )
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    hourly_rate: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False)
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[UUID | None] = mapped_column(nullable=True)

    __table_args__ = (
        UniqueConstraint("employee_id", "effective_date", name="staff_hourly_rate_effective_unique"),
        CheckConstraint("hourly_rate >= 0", name="staff_hourly_rate_non_negative"),
    )

    # Relationships
    employee: Mapped[Employee] = relationship(back_populates="rates")

    def is_effective_on(self, as_of_date: date) -> bool:
        """Check if the entry has taken effect on a given date."""
        return self.effective_date <= as_of_date
