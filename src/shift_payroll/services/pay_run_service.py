"""Pay run service - lifecycle operations on persisted pay runs."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from shift_payroll.calculators.pay_period import PayPeriodCalculator
from shift_payroll.calculators.types import PayPeriod, PeriodScheme
from shift_payroll.errors import ImmutabilityError, NotFoundError, ValidationError
from shift_payroll.models import PayRun, utc_now
from shift_payroll.services.audit import pay_run_snapshot, record_audit
from shift_payroll.services.state_machine import (
    InvalidTransitionError,
    PayRunStateMachine,
    PayRunStatus,
)
from shift_payroll.services.tenant_settings import TenantSettingsService

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class PayRunService:
    """Service for managing pay run lifecycle.

    Operations:
    - get_pay_run / list_pay_runs: tenant-scoped reads
    - transition_status: forward-only status changes with approval stamps
    - delete_pay_run: drafts only
    - suggest_next_period: the period after the latest run
    - compute_pay_period: period boundaries from tenant or explicit settings
    """

    def __init__(self, session: AsyncSession, clock: Clock | None = None):
        self.session = session
        self.clock = clock or utc_now
        self.settings_service = TenantSettingsService(session)

    async def get_pay_run(self, tenant_id: UUID, pay_run_id: UUID) -> PayRun:
        """Load a pay run with its lines."""
        result = await self.session.execute(
            select(PayRun).where(
                PayRun.pay_run_id == pay_run_id,
                PayRun.tenant_id == tenant_id,
            )
        )
        pay_run = result.scalar_one_or_none()
        if pay_run is None:
            raise NotFoundError("Pay run not found")
        return pay_run

    async def list_pay_runs(
        self,
        tenant_id: UUID,
        status: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[PayRun], int]:
        """Runs for a tenant, most recent period first, plus the total count."""
        conditions = [PayRun.tenant_id == tenant_id]
        if status:
            conditions.append(PayRun.status == status)

        total = await self.session.scalar(select(func.count()).select_from(PayRun).where(*conditions))
        result = await self.session.execute(
            select(PayRun)
            .where(*conditions)
            .order_by(PayRun.pay_period_start.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all()), int(total or 0)

    async def transition_status(
        self,
        tenant_id: UUID,
        pay_run_id: UUID,
        to_status: str,
        actor_user_id: UUID | None = None,
    ) -> PayRun:
        """Transition a pay run to a new status.

        Side effects:
        - approved: set approved_by / approved_at
        - finalised: set finalised_by / finalised_at

        Raises InvalidTransitionError if transition is not allowed.
        """
        pay_run = await self.get_pay_run(tenant_id, pay_run_id)
        from_status = pay_run.status
        to_status = getattr(to_status, "value", to_status)

        errors = PayRunStateMachine.validate_pay_run_for_transition(pay_run, to_status)
        if errors:
            raise InvalidTransitionError(from_status, to_status, "; ".join(errors))

        before = pay_run_snapshot(pay_run)
        now = self.clock()
        if to_status == PayRunStatus.APPROVED:
            pay_run.approved_by = actor_user_id
            pay_run.approved_at = now
        elif to_status == PayRunStatus.FINALISED:
            pay_run.finalised_by = actor_user_id
            pay_run.finalised_at = now

        pay_run.status = to_status

        record_audit(
            self.session,
            tenant_id=tenant_id,
            entity_type="pay_run",
            entity_id=pay_run.pay_run_id,
            action=f"status_change:{from_status}:{pay_run.status}",
            actor_user_id=actor_user_id,
            before=before,
            after=pay_run_snapshot(pay_run),
        )
        await self.session.flush()

        logger.info(
            "Pay run %s transitioned %s -> %s by %s",
            pay_run.pay_run_id,
            from_status,
            pay_run.status,
            actor_user_id,
        )
        return pay_run

    async def delete_pay_run(
        self,
        tenant_id: UUID,
        pay_run_id: UUID,
        actor_user_id: UUID | None = None,
    ) -> None:
        """Delete a draft pay run and its lines.

        Raises:
            ImmutabilityError: The run has left draft
        """
        pay_run = await self.get_pay_run(tenant_id, pay_run_id)
        if not PayRunStateMachine.can_delete(pay_run.status):
            raise ImmutabilityError(
                f"Pay run is {pay_run.status}; only draft pay runs can be deleted"
            )

        record_audit(
            self.session,
            tenant_id=tenant_id,
            entity_type="pay_run",
            entity_id=pay_run.pay_run_id,
            action="deleted",
            actor_user_id=actor_user_id,
            before=pay_run_snapshot(pay_run),
        )
        await self.session.delete(pay_run)
        await self.session.flush()

        logger.info("Deleted draft pay run %s for tenant %s", pay_run_id, tenant_id)

    async def suggest_next_period(self, tenant_id: UUID) -> tuple[date, date]:
        """First and last day of the next period to run.

        The day after the latest run's end if the tenant has runs, otherwise
        the period containing now.
        """
        settings = await self.settings_service.get(tenant_id)
        if settings.pay_period_scheme is None:
            raise ValidationError("Pay period settings are not configured", field="pay_period")

        latest = await self.session.scalar(
            select(PayRun)
            .where(PayRun.tenant_id == tenant_id)
            .order_by(PayRun.pay_period_end.desc())
            .limit(1)
        )
        if latest is not None:
            period = PayPeriodCalculator.next_period_after(
                latest.pay_period_end, settings.pay_period_scheme, settings.timezone
            )
        else:
            period = PayPeriodCalculator.compute(
                self.clock(), settings.pay_period_scheme, settings.timezone
            )
        return period.to_calendar_dates(settings.timezone)

    async def compute_pay_period(
        self,
        tenant_id: UUID,
        reference: datetime | date,
        scheme: PeriodScheme | None = None,
        timezone: str | None = None,
    ) -> tuple[PayPeriod, str]:
        """Period containing ``reference``; unset arguments come from tenant settings.

        Returns the period and the timezone it was computed in.
        """
        if scheme is None or timezone is None:
            settings = await self.settings_service.get(tenant_id)
            scheme = scheme or settings.pay_period_scheme
            timezone = timezone or settings.timezone
        if scheme is None:
            raise ValidationError("Pay period settings are not configured", field="pay_period")
        return PayPeriodCalculator.compute(reference, scheme, timezone), timezone
