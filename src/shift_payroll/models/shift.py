"""Scheduled shift model (read-only to the pay-run engine)."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shift_payroll.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from shift_payroll.models.staff import Employee


class Shift(Base, TimestampMixin):
    """A scheduled shift for one employee."""

    __tablename__ = "shift"

    shift_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    tenant_id: Mapped[UUID] = mapped_column(
        ForeignKey("tenant.tenant_id", ondelete="CASCADE"),
        nullable=False,
    )
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    start_time: Mapped[datetime] = mapped_column(nullable=False)
    end_time: Mapped[datetime] = mapped_column(nullable=False)
    break_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String, nullable=False, default="scheduled")

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="shift_times_check"),
        CheckConstraint("break_minutes >= 0", name="shift_break_non_negative"),
        CheckConstraint(
            "status IN ('scheduled', 'published', 'completed', 'cancelled')",
            name="shift_status_check",
        ),
        Index("ix_shift_tenant_start", "tenant_id", "start_time"),
    )

    # Relationships
    employee: Mapped[Employee] = relationship()
