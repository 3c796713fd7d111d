"""Pay run generation from shifts, rates and overtime policies."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shift_payroll.calculators.line_builder import LineBuilder, build_run_name
from shift_payroll.calculators.overtime import policy_for_employee
from shift_payroll.calculators.pay_period import PayPeriodCalculator
from shift_payroll.calculators.rate_resolver import RateResolver
from shift_payroll.calculators.shift_aggregator import (
    ShiftAggregator,
    aggregate_shifts,
    find_conflicts,
)
from shift_payroll.calculators.timezones import load_timezone
from shift_payroll.calculators.types import LineCandidate, RunTotals
from shift_payroll.errors import ComputationError, ConflictError, ValidationError
from shift_payroll.models import Employee, PayRun, PayRunLine
from shift_payroll.services.audit import pay_run_snapshot, record_audit
from shift_payroll.services.state_machine import PayRunStatus
from shift_payroll.services.tenant_settings import TenantPayrollSettings, TenantSettingsService

logger = logging.getLogger(__name__)


@dataclass
class PayRunComputation:
    """Lines and totals for a period, before anything is persisted."""

    period_start: date
    period_end: date
    name: str
    timezone: str
    lines: list[LineCandidate] = field(default_factory=list)
    totals: RunTotals = field(default_factory=RunTotals)
    skipped_employee_ids: list[UUID] = field(default_factory=list)
    conflict_count: int = 0
    existing_pay_run_id: UUID | None = None


class PayRunBuilder:
    """Builds a draft pay run for one tenant and one pay period.

    Steps:
    1. Refuse periods that already have a run (draft or otherwise)
    2. Aggregate non-cancelled shifts starting inside the period window
    3. Resolve every employee's rate with one batched lookup
    4. Split hours into regular/overtime and build one line per employee
    5. Persist header and lines together

    Employees with shifts but no rate are skipped and listed on the run.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.settings_service = TenantSettingsService(session)
        self.aggregator = ShiftAggregator(session)
        self.rate_resolver = RateResolver(session)

    async def find_existing(
        self,
        tenant_id: UUID,
        period_start: date,
        period_end: date,
    ) -> PayRun | None:
        """Run for exactly this period, if any."""
        result = await self.session.execute(
            select(PayRun).where(
                PayRun.tenant_id == tenant_id,
                PayRun.pay_period_start == period_start,
                PayRun.pay_period_end == period_end,
            )
        )
        return result.scalars().first()

    async def preview(
        self,
        tenant_id: UUID,
        period_start: date,
        period_end: date,
    ) -> PayRunComputation:
        """Compute a run exactly as :meth:`build` would, without persisting."""
        settings = await self.settings_service.get(tenant_id)
        computation = await self._compute(tenant_id, period_start, period_end, settings)
        existing = await self.find_existing(tenant_id, period_start, period_end)
        computation.existing_pay_run_id = existing.pay_run_id if existing else None
        return computation

    async def build(
        self,
        tenant_id: UUID,
        period_start: date,
        period_end: date,
        created_by: UUID | None = None,
        notes: str | None = None,
    ) -> PayRun:
        """Create a draft pay run with one included line per resolved employee.

        Args:
            tenant_id: Owning tenant
            period_start: First day of the period (tenant calendar)
            period_end: Last day of the period, inclusive
            created_by: Actor creating the run
            notes: Free-text notes stored on the header

        Raises:
            ConflictError: A run already exists for the period
            ValidationError: Bad dates or tenant timezone
        """
        existing = await self.find_existing(tenant_id, period_start, period_end)
        if existing is not None:
            if existing.status != PayRunStatus.DRAFT:
                raise ConflictError(
                    f"A {existing.status} pay run already exists for "
                    f"{period_start} to {period_end}"
                )
            raise ConflictError(
                f"A draft pay run already exists for {period_start} to {period_end}; "
                "edit or delete it instead"
            )

        settings = await self.settings_service.get(tenant_id)
        computation = await self._compute(tenant_id, period_start, period_end, settings)

        pay_run = PayRun(
            tenant_id=tenant_id,
            pay_period_start=period_start,
            pay_period_end=period_end,
            status=PayRunStatus.DRAFT.value,
            name=computation.name,
            total_hours=computation.totals.total_hours,
            total_gross_pay=computation.totals.total_gross_pay,
            staff_count=computation.totals.staff_count,
            skipped_employee_ids=[str(e) for e in computation.skipped_employee_ids],
            notes=notes,
            created_by=created_by,
            lines=[PayRunLine(tenant_id=tenant_id, **line.to_row()) for line in computation.lines],
        )
        self.session.add(pay_run)

        try:
            await self.session.flush()
        except IntegrityError as exc:
            # Header and lines go in one flush; rollback leaves neither behind
            await self.session.rollback()
            logger.warning(
                "Concurrent pay run creation for tenant %s period %s..%s: %s",
                tenant_id,
                period_start,
                period_end,
                exc.orig,
            )
            raise ConflictError(
                f"A pay run already exists for {period_start} to {period_end}"
            ) from exc

        record_audit(
            self.session,
            tenant_id=tenant_id,
            entity_type="pay_run",
            entity_id=pay_run.pay_run_id,
            action="created",
            actor_user_id=created_by,
            after=pay_run_snapshot(pay_run)
            | {"skipped_employee_ids": pay_run.skipped_employee_ids},
        )
        await self.session.flush()

        logger.info(
            "Created pay run %s for tenant %s (%s): %d lines, %d skipped",
            pay_run.pay_run_id,
            tenant_id,
            pay_run.name,
            len(computation.lines),
            len(computation.skipped_employee_ids),
        )
        return pay_run

    async def _compute(
        self,
        tenant_id: UUID,
        period_start: date,
        period_end: date,
        settings: TenantPayrollSettings,
    ) -> PayRunComputation:
        timezone = settings.timezone
        window = PayPeriodCalculator.period_window(period_start, period_end, timezone)

        shifts = await self.aggregator.load_shifts(tenant_id, window)
        aggregated = aggregate_shifts(shifts, load_timezone(timezone))
        conflicts = find_conflicts(shifts)

        computation = PayRunComputation(
            period_start=period_start,
            period_end=period_end,
            name=build_run_name(period_start, period_end),
            timezone=timezone,
            conflict_count=len(conflicts),
        )
        if not aggregated:
            return computation

        employees = await self._load_employees(tenant_id, list(aggregated))
        # Rate in effect on the last day of the period
        rates = await self.rate_resolver.resolve_batch(list(aggregated), period_end)

        for employee_id, hours in aggregated.items():
            employee = employees.get(employee_id)
            try:
                if employee is None:
                    raise ComputationError(employee_id, "employee record not found")
                rate = rates.get(employee_id)
                if rate is None:
                    raise ComputationError(
                        employee_id,
                        f"no hourly rate effective on or before {period_end}",
                    )
                line = LineBuilder.build_line(
                    employee_id,
                    hours,
                    rate,
                    policy_for_employee(employee, settings.overtime_defaults),
                    employee_number=employee.employee_number,
                    staff_name=employee.full_name,
                )
            except (ComputationError, ValidationError) as exc:
                logger.warning("Skipping employee in pay run %s..%s: %s", period_start, period_end, exc)
                computation.skipped_employee_ids.append(employee_id)
                continue
            computation.lines.append(line)

        computation.lines.sort(key=lambda line: (line.staff_name.lower(), str(line.employee_id)))
        computation.skipped_employee_ids.sort(key=str)
        computation.totals = LineBuilder.totals_from_lines(computation.lines)
        return computation

    async def _load_employees(self, tenant_id: UUID, employee_ids: list[UUID]) -> dict[UUID, Employee]:
        result = await self.session.execute(
            select(Employee).where(
                Employee.tenant_id == tenant_id,
                Employee.employee_id.in_(employee_ids),
            )
        )
        return {employee.employee_id: employee for employee in result.scalars().all()}
