"""Effective-dated hourly rate history management."""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shift_payroll.calculators.rounding import round_rate, to_decimal
from shift_payroll.calculators.timezones import load_timezone, to_local
from shift_payroll.errors import ConflictError, NotFoundError, ValidationError
from shift_payroll.models import Employee, RateHistoryEntry, utc_now
from shift_payroll.services.audit import record_audit
from shift_payroll.services.tenant_settings import TenantSettingsService

logger = logging.getLogger(__name__)


class RateHistoryService:
    """List, add and remove an employee's rate history entries.

    Entries are append-only: a rate change is a new entry with a later
    effective date. Only entries that have not yet taken effect (effective
    date after today in the tenant's timezone) may be deleted.
    """

    def __init__(self, session: AsyncSession, clock: Callable[[], datetime] | None = None):
        self.session = session
        self.clock = clock or utc_now
        self.settings_service = TenantSettingsService(session)

    async def _get_employee(self, tenant_id: UUID, employee_id: UUID) -> Employee:
        result = await self.session.execute(
            select(Employee).where(
                Employee.employee_id == employee_id,
                Employee.tenant_id == tenant_id,
            )
        )
        employee = result.scalar_one_or_none()
        if employee is None:
            raise NotFoundError("Employee not found")
        return employee

    async def list_rates(self, tenant_id: UUID, employee_id: UUID) -> list[RateHistoryEntry]:
        """Entries for an employee, latest effective date first."""
        await self._get_employee(tenant_id, employee_id)
        result = await self.session.execute(
            select(RateHistoryEntry)
            .where(
                RateHistoryEntry.tenant_id == tenant_id,
                RateHistoryEntry.employee_id == employee_id,
            )
            .order_by(RateHistoryEntry.effective_date.desc())
        )
        return list(result.scalars().all())

    async def create_rate(
        self,
        tenant_id: UUID,
        employee_id: UUID,
        hourly_rate: Any,
        effective_date: date | None,
        notes: str | None = None,
        created_by: UUID | None = None,
    ) -> RateHistoryEntry:
        """Add a rate entry.

        Raises:
            ValidationError: Missing or negative rate, missing date
            ConflictError: The employee already has an entry for that date
        """
        rate = self._parse_rate(hourly_rate)
        if effective_date is None:
            raise ValidationError("Effective date is required", field="effective_date")

        await self._get_employee(tenant_id, employee_id)

        existing = await self.session.scalar(
            select(RateHistoryEntry.rate_id).where(
                RateHistoryEntry.employee_id == employee_id,
                RateHistoryEntry.effective_date == effective_date,
            )
        )
        if existing is not None:
            raise ConflictError(f"A rate already exists with effective date {effective_date}")

        entry = RateHistoryEntry(
            tenant_id=tenant_id,
            employee_id=employee_id,
            hourly_rate=rate,
            effective_date=effective_date,
            notes=(notes or "").strip() or None,
            created_by=created_by,
        )
        self.session.add(entry)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            await self.session.rollback()
            logger.warning(
                "Concurrent rate creation for employee %s on %s: %s",
                employee_id,
                effective_date,
                exc.orig,
            )
            raise ConflictError(f"A rate already exists with effective date {effective_date}") from exc

        record_audit(
            self.session,
            tenant_id=tenant_id,
            entity_type="staff_hourly_rate",
            entity_id=entry.rate_id,
            action="created",
            actor_user_id=created_by,
            after={
                "employee_id": employee_id,
                "hourly_rate": rate,
                "effective_date": effective_date,
            },
        )
        await self.session.flush()
        return entry

    async def delete_rate(
        self,
        tenant_id: UUID,
        employee_id: UUID,
        rate_id: UUID,
        actor_user_id: UUID | None = None,
    ) -> None:
        """Delete an entry that has not taken effect yet."""
        result = await self.session.execute(
            select(RateHistoryEntry).where(
                RateHistoryEntry.rate_id == rate_id,
                RateHistoryEntry.employee_id == employee_id,
                RateHistoryEntry.tenant_id == tenant_id,
            )
        )
        entry = result.scalar_one_or_none()
        if entry is None:
            raise NotFoundError("Rate not found")

        settings = await self.settings_service.get(tenant_id)
        today = to_local(self.clock(), load_timezone(settings.timezone)).date()
        if entry.is_effective_on(today):
            raise ValidationError(
                "Only future-dated rates can be deleted; add a new rate instead",
                field="effective_date",
            )

        record_audit(
            self.session,
            tenant_id=tenant_id,
            entity_type="staff_hourly_rate",
            entity_id=entry.rate_id,
            action="deleted",
            actor_user_id=actor_user_id,
            before=entry.to_dict(),
        )
        await self.session.delete(entry)
        await self.session.flush()

    @staticmethod
    def _parse_rate(value: Any) -> Decimal:
        if value is None or value == "":
            raise ValidationError("Hourly rate is required", field="hourly_rate")
        try:
            rate = to_decimal(value)
        except (InvalidOperation, ValueError, TypeError) as exc:
            raise ValidationError(f"Invalid hourly rate: {value!r}", field="hourly_rate") from exc
        if not rate.is_finite():
            raise ValidationError(f"Invalid hourly rate: {value!r}", field="hourly_rate")
        if rate < 0:
            raise ValidationError("Hourly rate must not be negative", field="hourly_rate")
        return round_rate(rate)
