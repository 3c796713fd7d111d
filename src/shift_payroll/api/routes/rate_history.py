"""Staff hourly rate history endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Response, status

from shift_payroll.api.dependencies import AdminActor, DbSession, ReaderActor
from shift_payroll.api.schemas import ErrorResponse, RateCreate, RateResponse
from shift_payroll.services.rate_history_service import RateHistoryService

router = APIRouter(prefix="/staff/{employee_id}/rates", tags=["rate-history"])


@router.get(
    "",
    response_model=list[RateResponse],
    responses={404: {"model": ErrorResponse}},
)
async def list_rates(
    db: DbSession,
    actor: ReaderActor,
    employee_id: Annotated[UUID, Path()],
) -> list[RateResponse]:
    """Rate history for an employee, latest effective date first."""
    entries = await RateHistoryService(db).list_rates(actor.tenant_id, employee_id)
    return [RateResponse.model_validate(entry) for entry in entries]


@router.post(
    "",
    response_model=RateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def create_rate(
    db: DbSession,
    actor: AdminActor,
    employee_id: Annotated[UUID, Path()],
    payload: RateCreate,
) -> RateResponse:
    """Add a rate effective from a date."""
    entry = await RateHistoryService(db).create_rate(
        actor.tenant_id,
        employee_id,
        payload.hourly_rate,
        payload.effective_date,
        notes=payload.notes,
        created_by=actor.user_id,
    )
    await db.commit()
    return RateResponse.model_validate(entry)


@router.delete(
    "/{rate_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def delete_rate(
    db: DbSession,
    actor: AdminActor,
    employee_id: Annotated[UUID, Path()],
    rate_id: Annotated[UUID, Path()],
) -> Response:
    """Remove a rate that has not taken effect yet."""
    await RateHistoryService(db).delete_rate(
        actor.tenant_id, employee_id, rate_id, actor_user_id=actor.user_id
    )
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
