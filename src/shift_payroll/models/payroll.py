"""Pay run, pay run line, change log, and audit models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    Date,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shift_payroll.models.base import Base, JSONType, TimestampMixin, utc_now

# ===== Pay Runs =====


class PayRun(Base, TimestampMixin):
    """Payroll run for one tenant and one pay period.

    The period is stored as calendar dates in the tenant's timezone,
    ``pay_period_end`` being the last day included.
    """

    __tablename__ = "pay_run"

    pay_run_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    tenant_id: Mapped[UUID] = mapped_column(
        ForeignKey("tenant.tenant_id", ondelete="CASCADE"),
        nullable=False,
    )
    pay_period_start: Mapped[date] = mapped_column(Date, nullable=False)
    pay_period_end: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="draft")
    name: Mapped[str] = mapped_column(String, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Totals over included lines
    total_hours: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    total_gross_pay: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    staff_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    skipped_employee_ids: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)

    created_by: Mapped[UUID | None] = mapped_column(nullable=True)
    approved_by: Mapped[UUID | None] = mapped_column(nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    finalised_by: Mapped[UUID | None] = mapped_column(nullable=True)
    finalised_at: Mapped[datetime | None] = mapped_column(nullable=True)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utc_now, onupdate=utc_now)

    __table_args__ = (
        UniqueConstraint(
            "tenant_id",
            "pay_period_start",
            "pay_period_end",
            name="pay_run_tenant_period_unique",
        ),
        CheckConstraint(
            "status IN ('draft', 'reviewing', 'approved', 'finalised')",
            name="pay_run_status_check",
        ),
        CheckConstraint("pay_period_end >= pay_period_start", name="pay_run_dates_check"),
    )

    # Relationships
    lines: Mapped[list[PayRunLine]] = relationship(
        back_populates="pay_run",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="PayRunLine.staff_name",
    )


class PayRunLine(Base, TimestampMixin):
    """One employee's pay within a pay run.

    Invariant: gross_pay = round2(regular_pay + overtime_pay + adjustments).
    """

    __tablename__ = "pay_run_line"

    pay_run_line_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    pay_run_id: Mapped[UUID] = mapped_column(
        ForeignKey("pay_run.pay_run_id", ondelete="CASCADE"),
        nullable=False,
    )
    tenant_id: Mapped[UUID] = mapped_column(
        ForeignKey("tenant.tenant_id", ondelete="CASCADE"),
        nullable=False,
    )
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id"),
        nullable=False,
    )
    employee_number: Mapped[str] = mapped_column(String, nullable=False, default="")
    staff_name: Mapped[str] = mapped_column(String, nullable=False)

    regular_hours: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    overtime_hours: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total_hours: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    hourly_rate: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False)
    overtime_rate: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False)
    regular_pay: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    overtime_pay: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    adjustments: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    adjustment_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    gross_pay: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="included")
    source_shift_ids: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utc_now, onupdate=utc_now)

    __table_args__ = (
        UniqueConstraint("pay_run_id", "employee_id", name="pay_run_line_employee_unique"),
        CheckConstraint(
            "status IN ('included', 'excluded')",
            name="pay_run_line_status_check",
        ),
    )

    # Relationships
    pay_run: Mapped[PayRun] = relationship(back_populates="lines")


class PayRunChange(Base, TimestampMixin):
    """Append-only record of one field change on a pay run line."""

    __tablename__ = "pay_run_change"

    pay_run_change_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    tenant_id: Mapped[UUID] = mapped_column(
        ForeignKey("tenant.tenant_id", ondelete="CASCADE"),
        nullable=False,
    )
    pay_run_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("pay_run.pay_run_id", ondelete="SET NULL"),
        nullable=True,
    )
    pay_run_line_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("pay_run_line.pay_run_line_id", ondelete="SET NULL"),
        nullable=True,
    )
    field_changed: Mapped[str] = mapped_column(String, nullable=False)
    old_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    new_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    changed_by: Mapped[UUID | None] = mapped_column(nullable=True)


# ===== Audit =====


class AuditEvent(Base, TimestampMixin):
    """Audit trail entry."""

    __tablename__ = "audit_event"

    audit_event_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    tenant_id: Mapped[UUID] = mapped_column(
        ForeignKey("tenant.tenant_id", ondelete="CASCADE"),
        nullable=False,
    )
    actor_user_id: Mapped[UUID | None] = mapped_column(nullable=True)
    entity_type: Mapped[str] = mapped_column(String, nullable=False)
    entity_id: Mapped[UUID] = mapped_column(nullable=False)
    action: Mapped[str] = mapped_column(String, nullable=False)
    before_json: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    after_json: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
