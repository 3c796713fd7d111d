"""Pay period computation and tenant pay period settings endpoints."""

from fastapi import APIRouter

from shift_payroll.api.dependencies import AdminActor, DbSession, ReaderActor
from shift_payroll.api.schemas import (
    ErrorResponse,
    PayPeriodComputeRequest,
    PayPeriodResponse,
    PayPeriodSettingsResponse,
    PayPeriodSettingsUpdate,
)
from shift_payroll.calculators.pay_period import scheme_from_config
from shift_payroll.models import utc_now
from shift_payroll.services.pay_run_service import PayRunService
from shift_payroll.services.tenant_settings import TenantSettingsService

router = APIRouter(tags=["pay-periods"])


@router.post(
    "/pay-periods/compute",
    response_model=PayPeriodResponse,
    responses={422: {"model": ErrorResponse}},
)
async def compute_pay_period(
    db: DbSession,
    actor: ReaderActor,
    payload: PayPeriodComputeRequest,
) -> PayPeriodResponse:
    """Period containing a reference date under a scheme and timezone."""
    reference = payload.reference_time or payload.reference_date or utc_now()
    scheme = scheme_from_config(payload.scheme.to_config()) if payload.scheme else None

    period, timezone = await PayRunService(db).compute_pay_period(
        actor.tenant_id, reference, scheme=scheme, timezone=payload.timezone
    )
    first_day, last_day = period.to_calendar_dates(timezone)
    return PayPeriodResponse(
        start=period.start,
        end=period.end,
        first_day=first_day,
        last_day=last_day,
        timezone=timezone,
    )


@router.get(
    "/settings/pay-period",
    response_model=PayPeriodSettingsResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_pay_period_settings(db: DbSession, actor: ReaderActor) -> PayPeriodSettingsResponse:
    """Tenant timezone and stored pay period configuration."""
    service = TenantSettingsService(db)
    settings = await service.get(actor.tenant_id)
    return PayPeriodSettingsResponse(
        timezone=settings.timezone,
        pay_period=await service.get_pay_period_config(actor.tenant_id),
    )


@router.put(
    "/settings/pay-period",
    response_model=PayPeriodSettingsResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def update_pay_period_settings(
    db: DbSession,
    actor: AdminActor,
    payload: PayPeriodSettingsUpdate,
) -> PayPeriodSettingsResponse:
    """Replace the tenant's pay period configuration.

    Existing pay runs keep their stored dates; only future runs follow the
    new configuration.
    """
    service = TenantSettingsService(db)
    settings = await service.update_pay_period_config(
        actor.tenant_id, payload.pay_period.to_config(), timezone=payload.timezone
    )
    await db.commit()
    return PayPeriodSettingsResponse(
        timezone=settings.timezone,
        pay_period=await service.get_pay_period_config(actor.tenant_id),
    )
