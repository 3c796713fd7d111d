"""Pay run API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, Response, status

from shift_payroll.api.dependencies import AdminActor, DbSession, ReaderActor
from shift_payroll.api.schemas import (
    ErrorResponse,
    PayRunChangeResponse,
    PayRunCreate,
    PayRunLineResponse,
    PayRunLineUpdate,
    PayRunListResponse,
    PayRunPeriod,
    PayRunPreviewResponse,
    PayRunResponse,
    PayRunStatusUpdate,
    PayRunSummaryResponse,
    PreviewLine,
    SuggestedPeriodResponse,
)
from shift_payroll.calculators.line_builder import build_run_name
from shift_payroll.services.export_service import PayRunExportService
from shift_payroll.services.ledger_service import LineChanges, PayRunLedger
from shift_payroll.services.pay_run_builder import PayRunBuilder
from shift_payroll.services.pay_run_service import PayRunService

router = APIRouter(prefix="/pay-runs", tags=["pay-runs"])


# ============================================================================
# Listing and generation
# ============================================================================


@router.get(
    "",
    response_model=PayRunListResponse,
)
async def list_pay_runs(
    db: DbSession,
    actor: ReaderActor,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 20,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> PayRunListResponse:
    """List pay runs for a tenant, most recent period first."""
    pay_runs, total = await PayRunService(db).list_pay_runs(
        actor.tenant_id,
        status=status_filter,
        limit=page_size,
        offset=(page - 1) * page_size,
    )
    return PayRunListResponse(
        items=[PayRunSummaryResponse.model_validate(pr) for pr in pay_runs],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post(
    "/preview",
    response_model=PayRunPreviewResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def preview_pay_run(
    db: DbSession,
    actor: ReaderActor,
    payload: PayRunPeriod,
) -> PayRunPreviewResponse:
    """Compute a pay run for a period without saving it."""
    computation = await PayRunBuilder(db).preview(
        actor.tenant_id, payload.pay_period_start, payload.pay_period_end
    )
    return PayRunPreviewResponse(
        pay_period_start=computation.period_start,
        pay_period_end=computation.period_end,
        name=computation.name,
        staff_count=computation.totals.staff_count,
        total_hours=computation.totals.total_hours,
        estimated_gross=computation.totals.total_gross_pay,
        skipped_employee_ids=computation.skipped_employee_ids,
        conflict_count=computation.conflict_count,
        existing_pay_run_id=computation.existing_pay_run_id,
        lines=[PreviewLine.model_validate(line) for line in computation.lines],
    )


@router.get(
    "/suggested-period",
    response_model=SuggestedPeriodResponse,
    responses={422: {"model": ErrorResponse}},
)
async def suggested_period(db: DbSession, actor: ReaderActor) -> SuggestedPeriodResponse:
    """Next period to run under the tenant's pay period settings."""
    first_day, last_day = await PayRunService(db).suggest_next_period(actor.tenant_id)
    return SuggestedPeriodResponse(
        pay_period_start=first_day,
        pay_period_end=last_day,
        name=build_run_name(first_day, last_day),
    )


@router.post(
    "",
    response_model=PayRunResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def create_pay_run(
    db: DbSession,
    actor: AdminActor,
    payload: PayRunCreate,
) -> PayRunResponse:
    """Generate a draft pay run from the period's shifts."""
    pay_run = await PayRunBuilder(db).build(
        actor.tenant_id,
        payload.pay_period_start,
        payload.pay_period_end,
        created_by=actor.user_id,
        notes=payload.notes,
    )
    await db.commit()
    return PayRunResponse.model_validate(pay_run)


# ============================================================================
# Pay Run lifecycle
# ============================================================================


@router.get(
    "/{pay_run_id}",
    response_model=PayRunResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_pay_run(
    db: DbSession,
    actor: ReaderActor,
    pay_run_id: Annotated[UUID, Path()],
) -> PayRunResponse:
    """Get a specific pay run by ID."""
    pay_run = await PayRunService(db).get_pay_run(actor.tenant_id, pay_run_id)
    return PayRunResponse.model_validate(pay_run)


@router.patch(
    "/{pay_run_id}/status",
    response_model=PayRunResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def transition_pay_run_status(
    db: DbSession,
    actor: AdminActor,
    pay_run_id: Annotated[UUID, Path()],
    payload: PayRunStatusUpdate,
) -> PayRunResponse:
    """Move a pay run one step forward (draft → reviewing → approved → finalised)."""
    pay_run = await PayRunService(db).transition_status(
        actor.tenant_id, pay_run_id, payload.status, actor_user_id=actor.user_id
    )
    await db.commit()
    return PayRunResponse.model_validate(pay_run)


@router.delete(
    "/{pay_run_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def delete_pay_run(
    db: DbSession,
    actor: AdminActor,
    pay_run_id: Annotated[UUID, Path()],
) -> Response:
    """Delete a draft pay run."""
    await PayRunService(db).delete_pay_run(actor.tenant_id, pay_run_id, actor_user_id=actor.user_id)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Lines and change log
# ============================================================================


@router.patch(
    "/{pay_run_id}/lines/{line_id}",
    response_model=PayRunLineResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def edit_pay_run_line(
    db: DbSession,
    actor: AdminActor,
    pay_run_id: Annotated[UUID, Path()],
    line_id: Annotated[UUID, Path()],
    payload: PayRunLineUpdate,
) -> PayRunLineResponse:
    """Adjust or include/exclude one line."""
    line = await PayRunLedger(db).edit_line(
        line_id,
        LineChanges(
            adjustments=payload.adjustments,
            adjustment_reason=payload.adjustment_reason,
            status=payload.status,
        ),
        actor_user_id=actor.user_id,
        tenant_id=actor.tenant_id,
        pay_run_id=pay_run_id,
    )
    await db.commit()
    return PayRunLineResponse.model_validate(line)


@router.get(
    "/{pay_run_id}/changes",
    response_model=list[PayRunChangeResponse],
    responses={404: {"model": ErrorResponse}},
)
async def list_pay_run_changes(
    db: DbSession,
    actor: ReaderActor,
    pay_run_id: Annotated[UUID, Path()],
) -> list[PayRunChangeResponse]:
    """Change log for a pay run, newest first."""
    await PayRunService(db).get_pay_run(actor.tenant_id, pay_run_id)
    changes = await PayRunLedger(db).list_changes(pay_run_id, tenant_id=actor.tenant_id)
    return [PayRunChangeResponse.model_validate(change) for change in changes]


@router.get(
    "/{pay_run_id}/export",
    response_class=Response,
    responses={200: {"content": {"text/csv": {}}}, 404: {"model": ErrorResponse}},
)
async def export_pay_run(
    db: DbSession,
    actor: ReaderActor,
    pay_run_id: Annotated[UUID, Path()],
) -> Response:
    """Download the included lines as CSV."""
    content, filename = await PayRunExportService(db).export_to_csv(actor.tenant_id, pay_run_id)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
