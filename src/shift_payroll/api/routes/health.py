"""Health check endpoints."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Response, status
from pydantic import BaseModel
from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError

from shift_payroll.api.dependencies import DbSession
from shift_payroll.calculators.timezones import load_timezone
from shift_payroll.config import get_settings
from shift_payroll.errors import ValidationError
from shift_payroll.models import PayRun

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: datetime
    database: str


class ReadinessResponse(BaseModel):
    """Readiness of the pieces pay-run generation depends on."""

    status: str
    timezone_data: str
    pay_run_table: str


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
)
async def health_check(db: DbSession) -> HealthResponse:
    """Check API and database health."""
    db_status = "unhealthy"
    try:
        await db.execute(text("SELECT 1"))
        db_status = "healthy"
    except (SQLAlchemyError, OSError):
        logger.warning("Database health check failed", exc_info=True)

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        timestamp=datetime.now(timezone.utc),
        database=db_status,
    )


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(db: DbSession, response: Response) -> ReadinessResponse:
    """Ready once the fallback timezone resolves and pay runs can be read.

    Period boundaries need the IANA database for ``DEFAULT_TIMEZONE``, and run
    creation needs the migrated ``pay_run`` table. Either missing answers 503.
    """
    fallback_timezone = get_settings().default_timezone
    timezone_data = "ok"
    try:
        load_timezone(fallback_timezone)
    except ValidationError:
        logger.warning("Fallback timezone %r cannot be loaded", fallback_timezone)
        timezone_data = "missing"

    pay_run_table = "ok"
    try:
        await db.execute(select(PayRun.pay_run_id).limit(1))
    except (SQLAlchemyError, OSError):
        logger.warning("Pay run table is not readable", exc_info=True)
        pay_run_table = "unavailable"

    ready = timezone_data == "ok" and pay_run_table == "ok"
    if not ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return ReadinessResponse(
        status="ready" if ready else "not_ready",
        timezone_data=timezone_data,
        pay_run_table=pay_run_table,
    )


@router.get("/live", status_code=status.HTTP_200_OK)
async def liveness_check() -> dict[str, str]:
    """Liveness check for container orchestration."""
    return {"status": "alive"}
