"""Audit-log sink: append-only ``audit_event`` rows in the caller's transaction."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from shift_payroll.models import AuditEvent, PayRun


def _jsonable(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def pay_run_snapshot(pay_run: PayRun) -> dict[str, Any]:
    """Header fields of a pay run for before/after audit payloads."""
    return _jsonable(
        {
            "pay_run_id": pay_run.pay_run_id,
            "status": pay_run.status,
            "pay_period_start": pay_run.pay_period_start,
            "pay_period_end": pay_run.pay_period_end,
            "total_hours": pay_run.total_hours,
            "total_gross_pay": pay_run.total_gross_pay,
            "staff_count": pay_run.staff_count,
        }
    )


def record_audit(
    session: AsyncSession,
    tenant_id: UUID,
    entity_type: str,
    entity_id: UUID,
    action: str,
    actor_user_id: UUID | None = None,
    before: dict[str, Any] | None = None,
    after: dict[str, Any] | None = None,
) -> AuditEvent:
    """Record an audit event; it is flushed and committed with the mutation."""
    event = AuditEvent(
        tenant_id=tenant_id,
        actor_user_id=actor_user_id,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        before_json=_jsonable(before) if before is not None else None,
        after_json=_jsonable(after) if after is not None else None,
    )
    session.add(event)
    return event
