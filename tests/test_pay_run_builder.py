"""Tests for pay run generation and lifecycle."""

import logging
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from shift_payroll.errors import ConflictError, ImmutabilityError, NotFoundError, ValidationError
from shift_payroll.models import AuditEvent, PayRun
from shift_payroll.services.ledger_service import LineChanges, PayRunLedger
from shift_payroll.services.pay_run_builder import PayRunBuilder
from shift_payroll.services.pay_run_service import PayRunService
from shift_payroll.services.state_machine import InvalidTransitionError

from .conftest import WEEK_END, WEEK_START, add_shift, utc


class TestPayRunGeneration:
    """Building a draft run from the seeded week."""

    async def test_totals_and_lines(self, session, payroll_week):
        pay_run = await PayRunBuilder(session).build(payroll_week.tenant.tenant_id, WEEK_START, WEEK_END)

        assert pay_run.status == "draft"
        assert pay_run.name == "11 Mar to 17 Mar 2024"
        assert pay_run.total_hours == Decimal("61.00")
        assert pay_run.total_gross_pay == Decimal("1190.00")
        assert pay_run.staff_count == 2
        assert [line.staff_name for line in pay_run.lines] == ["Alice Able", "Bob Baker"]

    async def test_overtime_line(self, session, payroll_week):
        pay_run = await PayRunBuilder(session).build(payroll_week.tenant.tenant_id, WEEK_START, WEEK_END)
        alice = next(line for line in pay_run.lines if line.employee_id == payroll_week.alice.employee_id)

        assert alice.employee_number == "E001"
        assert alice.regular_hours == Decimal("40.00")
        assert alice.overtime_hours == Decimal("5.00")
        # 20.00 applies from 2024-03-01; the 25.00 entry starts after the period
        assert alice.hourly_rate == Decimal("20.0000")
        assert alice.overtime_rate == Decimal("30.0000")
        assert alice.gross_pay == Decimal("950.00")
        assert alice.status == "included"
        assert sorted(alice.source_shift_ids) == sorted(str(s) for s in payroll_week.shift_ids["alice"])

    async def test_cancelled_shift_not_paid(self, session, payroll_week):
        pay_run = await PayRunBuilder(session).build(payroll_week.tenant.tenant_id, WEEK_START, WEEK_END)
        bob = next(line for line in pay_run.lines if line.employee_id == payroll_week.bob.employee_id)

        assert bob.total_hours == Decimal("16.00")
        assert bob.overtime_hours == Decimal("0.00")
        assert bob.gross_pay == Decimal("240.00")
        assert len(bob.source_shift_ids) == 2

    async def test_employee_without_rate_skipped(self, session, payroll_week, caplog):
        with caplog.at_level(logging.WARNING, logger="shift_payroll.services.pay_run_builder"):
            pay_run = await PayRunBuilder(session).build(payroll_week.tenant.tenant_id, WEEK_START, WEEK_END)

        assert pay_run.skipped_employee_ids == [str(payroll_week.carol.employee_id)]
        assert payroll_week.carol.employee_id not in {line.employee_id for line in pay_run.lines}
        assert "no hourly rate" in caplog.text

    async def test_empty_period(self, session, tenant):
        pay_run = await PayRunBuilder(session).build(tenant.tenant_id, date(2024, 1, 1), date(2024, 1, 7))

        assert pay_run.lines == []
        assert pay_run.total_gross_pay == Decimal("0")
        assert pay_run.staff_count == 0

    async def test_audit_event_written(self, session, payroll_week):
        user_id = uuid4()
        pay_run = await PayRunBuilder(session).build(
            payroll_week.tenant.tenant_id, WEEK_START, WEEK_END, created_by=user_id, notes="March week 2"
        )

        event = await session.scalar(select(AuditEvent).where(AuditEvent.entity_id == pay_run.pay_run_id))

        assert pay_run.notes == "March week 2"
        assert pay_run.created_by == user_id
        assert event.action == "created"
        assert event.actor_user_id == user_id
        assert event.after_json["total_gross_pay"] == "1190.00"

    async def test_unknown_tenant(self, session):
        with pytest.raises(NotFoundError):
            await PayRunBuilder(session).build(uuid4(), WEEK_START, WEEK_END)

    async def test_reversed_dates(self, session, tenant):
        with pytest.raises(ValidationError):
            await PayRunBuilder(session).build(tenant.tenant_id, WEEK_END, WEEK_START)


class TestDuplicatePeriods:
    """At most one run per tenant and period."""

    async def test_duplicate_draft(self, session, payroll_week):
        builder = PayRunBuilder(session)
        await builder.build(payroll_week.tenant.tenant_id, WEEK_START, WEEK_END)

        with pytest.raises(ConflictError) as exc_info:
            await builder.build(payroll_week.tenant.tenant_id, WEEK_START, WEEK_END)

        assert "draft" in exc_info.value.message
        count = await session.scalar(select(func.count()).select_from(PayRun))
        assert count == 1

    async def test_duplicate_of_non_draft(self, session, payroll_week, fixed_clock):
        tenant_id = payroll_week.tenant.tenant_id
        pay_run = await PayRunBuilder(session).build(tenant_id, WEEK_START, WEEK_END)
        await PayRunService(session, clock=fixed_clock).transition_status(
            tenant_id, pay_run.pay_run_id, "reviewing"
        )

        with pytest.raises(ConflictError) as exc_info:
            await PayRunBuilder(session).build(tenant_id, WEEK_START, WEEK_END)

        assert "reviewing" in exc_info.value.message

    async def test_storage_constraint_reported_as_conflict(self, session, payroll_week, caplog, monkeypatch):
        """A run inserted between the existence check and the flush still conflicts."""
        tenant_id = payroll_week.tenant.tenant_id
        await PayRunBuilder(session).build(tenant_id, WEEK_START, WEEK_END)
        monkeypatch.setattr(PayRunBuilder, "find_existing", AsyncMock(return_value=None))

        with caplog.at_level(logging.WARNING, logger="shift_payroll.services.pay_run_builder"):
            with pytest.raises(ConflictError):
                await PayRunBuilder(session).build(tenant_id, WEEK_START, WEEK_END)

        assert "Concurrent pay run creation" in caplog.text

    async def test_other_tenant_same_period(self, session, payroll_week, tenant_factory):
        other = await tenant_factory("Quay Bakery")
        await PayRunBuilder(session).build(payroll_week.tenant.tenant_id, WEEK_START, WEEK_END)

        pay_run = await PayRunBuilder(session).build(other.tenant_id, WEEK_START, WEEK_END)

        assert pay_run.tenant_id == other.tenant_id
        assert pay_run.lines == []


class TestPreview:
    """Preview computes without persisting."""

    async def test_preview_matches_build(self, session, payroll_week):
        builder = PayRunBuilder(session)
        tenant_id = payroll_week.tenant.tenant_id

        computation = await builder.preview(tenant_id, WEEK_START, WEEK_END)

        assert computation.totals.total_gross_pay == Decimal("1190.00")
        assert computation.totals.staff_count == 2
        assert computation.skipped_employee_ids == [payroll_week.carol.employee_id]
        assert computation.existing_pay_run_id is None
        assert await session.scalar(select(func.count()).select_from(PayRun)) == 0

    async def test_preview_reports_existing_run(self, session, payroll_week):
        builder = PayRunBuilder(session)
        tenant_id = payroll_week.tenant.tenant_id
        pay_run = await builder.build(tenant_id, WEEK_START, WEEK_END)

        computation = await builder.preview(tenant_id, WEEK_START, WEEK_END)

        assert computation.existing_pay_run_id == pay_run.pay_run_id

    async def test_overlapping_shifts_counted_and_summed(self, session, payroll_week):
        """Overlaps are reported, and both shifts are still paid."""
        await add_shift(session, payroll_week.bob, utc(2024, 3, 12, 12), 2)

        computation = await PayRunBuilder(session).preview(payroll_week.tenant.tenant_id, WEEK_START, WEEK_END)
        bob = next(line for line in computation.lines if line.employee_id == payroll_week.bob.employee_id)

        assert computation.conflict_count == 1
        assert bob.total_hours == Decimal("18.00")


class TestPayRunLifecycle:
    """Status transitions, deletion and period suggestions."""

    async def test_forward_transitions_stamp_actor(self, session, payroll_week, fixed_clock):
        tenant_id = payroll_week.tenant.tenant_id
        user_id = uuid4()
        pay_run = await PayRunBuilder(session).build(tenant_id, WEEK_START, WEEK_END)
        service = PayRunService(session, clock=fixed_clock)

        await service.transition_status(tenant_id, pay_run.pay_run_id, "reviewing", actor_user_id=user_id)
        await service.transition_status(tenant_id, pay_run.pay_run_id, "approved", actor_user_id=user_id)
        await service.transition_status(tenant_id, pay_run.pay_run_id, "finalised", actor_user_id=user_id)

        assert pay_run.status == "finalised"
        assert pay_run.approved_by == user_id
        assert pay_run.approved_at == utc(2024, 3, 20, 12)
        assert pay_run.finalised_by == user_id
        assert pay_run.finalised_at == utc(2024, 3, 20, 12)

        actions = (
            await session.scalars(
                select(AuditEvent.action).where(AuditEvent.entity_id == pay_run.pay_run_id)
            )
        ).all()
        assert "status_change:approved:finalised" in actions

    async def test_skipping_review_rejected(self, session, payroll_week):
        tenant_id = payroll_week.tenant.tenant_id
        pay_run = await PayRunBuilder(session).build(tenant_id, WEEK_START, WEEK_END)

        with pytest.raises(InvalidTransitionError):
            await PayRunService(session).transition_status(tenant_id, pay_run.pay_run_id, "approved")

        assert pay_run.status == "draft"

    async def test_run_with_every_line_excluded_can_be_approved(self, session, payroll_week):
        tenant_id = payroll_week.tenant.tenant_id
        pay_run = await PayRunBuilder(session).build(tenant_id, WEEK_START, WEEK_END)
        ledger = PayRunLedger(session)
        for line in list(pay_run.lines):
            await ledger.edit_line(line.pay_run_line_id, LineChanges(status="excluded"))
        service = PayRunService(session)
        await service.transition_status(tenant_id, pay_run.pay_run_id, "reviewing")

        await service.transition_status(tenant_id, pay_run.pay_run_id, "approved")

        assert pay_run.status == "approved"
        assert pay_run.staff_count == 0

    async def test_run_for_empty_period_can_be_approved(self, session, tenant):
        pay_run = await PayRunBuilder(session).build(tenant.tenant_id, date(2024, 1, 1), date(2024, 1, 7))
        service = PayRunService(session)

        for status in ("reviewing", "approved", "finalised"):
            await service.transition_status(tenant.tenant_id, pay_run.pay_run_id, status)

        assert pay_run.status == "finalised"

    async def test_delete_draft(self, session, payroll_week):
        tenant_id = payroll_week.tenant.tenant_id
        pay_run = await PayRunBuilder(session).build(tenant_id, WEEK_START, WEEK_END)
        service = PayRunService(session)

        await service.delete_pay_run(tenant_id, pay_run.pay_run_id)

        with pytest.raises(NotFoundError):
            await service.get_pay_run(tenant_id, pay_run.pay_run_id)

    async def test_delete_after_draft_rejected(self, session, payroll_week):
        tenant_id = payroll_week.tenant.tenant_id
        pay_run = await PayRunBuilder(session).build(tenant_id, WEEK_START, WEEK_END)
        service = PayRunService(session)
        await service.transition_status(tenant_id, pay_run.pay_run_id, "reviewing")

        with pytest.raises(ImmutabilityError):
            await service.delete_pay_run(tenant_id, pay_run.pay_run_id)

    async def test_get_is_tenant_scoped(self, session, payroll_week):
        pay_run = await PayRunBuilder(session).build(payroll_week.tenant.tenant_id, WEEK_START, WEEK_END)

        with pytest.raises(NotFoundError):
            await PayRunService(session).get_pay_run(uuid4(), pay_run.pay_run_id)

    async def test_list_filters_by_status(self, session, payroll_week):
        tenant_id = payroll_week.tenant.tenant_id
        builder = PayRunBuilder(session)
        first = await builder.build(tenant_id, date(2024, 3, 4), date(2024, 3, 10))
        await builder.build(tenant_id, WEEK_START, WEEK_END)
        service = PayRunService(session)
        await service.transition_status(tenant_id, first.pay_run_id, "reviewing")

        runs, total = await service.list_pay_runs(tenant_id)
        drafts, draft_total = await service.list_pay_runs(tenant_id, status="draft")

        assert total == 2
        assert [run.pay_period_start for run in runs] == [WEEK_START, date(2024, 3, 4)]
        assert draft_total == 1
        assert drafts[0].pay_period_start == WEEK_START

    async def test_suggest_period_after_latest_run(self, session, payroll_week, fixed_clock):
        tenant_id = payroll_week.tenant.tenant_id
        await PayRunBuilder(session).build(tenant_id, WEEK_START, WEEK_END)

        suggestion = await PayRunService(session, clock=fixed_clock).suggest_next_period(tenant_id)

        assert suggestion == (date(2024, 3, 18), date(2024, 3, 24))

    async def test_suggest_period_without_runs(self, session, tenant):
        service = PayRunService(session, clock=lambda: utc(2024, 3, 14, 9))

        assert await service.suggest_next_period(tenant.tenant_id) == (WEEK_START, WEEK_END)

    async def test_suggest_period_requires_settings(self, session, tenant_factory):
        tenant = await tenant_factory("No Schedule Ltd", settings={})

        with pytest.raises(ValidationError) as exc_info:
            await PayRunService(session).suggest_next_period(tenant.tenant_id)

        assert exc_info.value.field == "pay_period"
