"""Tenant (employer) model."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shift_payroll.models.base import Base, JSONType, TimestampMixin

if TYPE_CHECKING:
    from shift_payroll.models.staff import Employee


class Tenant(Base, TimestampMixin):
    """Multi-tenant container.

    `settings` holds tenant configuration blocks consumed by the engine:
    ``pay_period`` (period scheme config) and ``overtime`` (policy defaults).
    """

    __tablename__ = "tenant"

    tenant_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="active")
    timezone: Mapped[str | None] = mapped_column(String, nullable=True)
    settings: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)

    __table_args__ = (
        CheckConstraint("status IN ('active', 'suspended', 'closed')", name="tenant_status_check"),
    )

    # Relationships
    employees: Mapped[list[Employee]] = relationship(back_populates="tenant")
