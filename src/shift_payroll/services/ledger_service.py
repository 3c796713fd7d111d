"""Audited edits to pay run lines."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from shift_payroll.calculators.line_builder import LineBuilder
from shift_payroll.calculators.rounding import round2, to_decimal
from shift_payroll.errors import ImmutabilityError, NotFoundError, ValidationError
from shift_payroll.models import PayRun, PayRunChange, PayRunLine
from shift_payroll.services.state_machine import LineStatus, PayRunStateMachine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LineChanges:
    """Requested changes to one line; ``None`` leaves a field untouched."""

    adjustments: Decimal | None = None
    adjustment_reason: str | None = None
    status: str | None = None


class PayRunLedger:
    """Applies line edits under the owning run's state rules.

    - draft, reviewing: edits accepted
    - approved: an adjustment change needs a non-empty reason
    - finalised: every edit rejected with ImmutabilityError

    Each changed field writes a PayRunChange row before the line is updated,
    in the same transaction. Hours and base pay are never recomputed here.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_line(self, line_id: UUID, tenant_id: UUID | None = None) -> PayRunLine:
        """Load a line together with its pay run."""
        query = (
            select(PayRunLine)
            .where(PayRunLine.pay_run_line_id == line_id)
            .options(selectinload(PayRunLine.pay_run))
        )
        if tenant_id is not None:
            query = query.where(PayRunLine.tenant_id == tenant_id)
        line = (await self.session.execute(query)).scalar_one_or_none()
        if line is None:
            raise NotFoundError("Pay run line not found")
        return line

    async def edit_line(
        self,
        line_id: UUID,
        changes: LineChanges,
        actor_user_id: UUID | None = None,
        tenant_id: UUID | None = None,
        pay_run_id: UUID | None = None,
    ) -> PayRunLine:
        """Apply ``changes`` to a line and recompute its gross and the run totals.

        Raises:
            NotFoundError: Unknown line (or line not in ``pay_run_id``)
            ImmutabilityError: The run is finalised
            ValidationError: Bad status/amount, or missing reason once approved
        """
        line = await self.get_line(line_id, tenant_id)
        if pay_run_id is not None and line.pay_run_id != pay_run_id:
            raise NotFoundError("Pay run line not found")
        pay_run = line.pay_run

        if PayRunStateMachine.is_immutable(pay_run.status):
            raise ImmutabilityError(f"Pay run is {pay_run.status}; lines can no longer be edited")

        new_adjustments = self._parse_adjustments(changes.adjustments)
        new_status = self._parse_status(changes.status)
        reason = (changes.adjustment_reason or "").strip() or None

        adjustments_changed = new_adjustments is not None and new_adjustments != line.adjustments
        status_changed = new_status is not None and new_status != line.status

        # Clearing an adjustment back to zero needs no reason
        if (
            adjustments_changed
            and new_adjustments != 0
            and PayRunStateMachine.requires_reason(pay_run.status)
            and reason is None
        ):
            raise ValidationError(
                "An adjustment reason is required once the pay run is approved",
                field="adjustment_reason",
            )

        pending: list[PayRunChange] = []
        if adjustments_changed:
            pending.append(
                self._change(line, "adjustments", line.adjustments, new_adjustments, reason, actor_user_id)
            )
        if status_changed:
            pending.append(self._change(line, "status", line.status, new_status, reason, actor_user_id))

        # Change rows are written ahead of the line update
        self.session.add_all(pending)
        await self.session.flush()

        if adjustments_changed:
            line.adjustments = new_adjustments
            line.adjustment_reason = reason
        elif reason is not None:
            line.adjustment_reason = reason
        if status_changed:
            line.status = new_status

        line.gross_pay = LineBuilder.compute_gross(line.regular_pay, line.overtime_pay, line.adjustments)
        self._refresh_totals(pay_run)
        await self.session.flush()

        if pending:
            logger.info(
                "Line %s on pay run %s edited by %s: %s",
                line.pay_run_line_id,
                pay_run.pay_run_id,
                actor_user_id,
                ", ".join(change.field_changed for change in pending),
            )
        return line

    async def list_changes(self, pay_run_id: UUID, tenant_id: UUID | None = None) -> list[PayRunChange]:
        """Change log for a run, newest first."""
        query = select(PayRunChange).where(PayRunChange.pay_run_id == pay_run_id)
        if tenant_id is not None:
            query = query.where(PayRunChange.tenant_id == tenant_id)
        result = await self.session.execute(query.order_by(PayRunChange.created_at.desc()))
        return list(result.scalars().all())

    @staticmethod
    def _refresh_totals(pay_run: PayRun) -> None:
        totals = LineBuilder.totals_from_lines(pay_run.lines)
        pay_run.total_hours = totals.total_hours
        pay_run.total_gross_pay = totals.total_gross_pay
        pay_run.staff_count = totals.staff_count

    @staticmethod
    def _parse_adjustments(value: Any) -> Decimal | None:
        if value is None:
            return None
        try:
            amount = to_decimal(value)
        except (InvalidOperation, ValueError, TypeError) as exc:
            raise ValidationError(f"Invalid adjustment amount: {value!r}", field="adjustments") from exc
        if not amount.is_finite():
            raise ValidationError(f"Invalid adjustment amount: {value!r}", field="adjustments")
        return round2(amount)

    @staticmethod
    def _parse_status(value: Any) -> str | None:
        if value is None:
            return None
        try:
            return LineStatus(getattr(value, "value", value)).value
        except ValueError as exc:
            raise ValidationError(f"Invalid line status: {value!r}", field="status") from exc

    @staticmethod
    def _change(
        line: PayRunLine,
        field_changed: str,
        old_value: Any,
        new_value: Any,
        reason: str | None,
        actor_user_id: UUID | None,
    ) -> PayRunChange:
        return PayRunChange(
            tenant_id=line.tenant_id,
            pay_run_id=line.pay_run_id,
            pay_run_line_id=line.pay_run_line_id,
            field_changed=field_changed,
            old_value=None if old_value is None else str(old_value),
            new_value=None if new_value is None else str(new_value),
            reason=reason,
            changed_by=actor_user_id,
        )
