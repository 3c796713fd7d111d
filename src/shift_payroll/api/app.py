"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shift_payroll import __version__
from shift_payroll.api.routes import (
    health_router,
    pay_periods_router,
    pay_runs_router,
    rate_history_router,
)
from shift_payroll.database import dispose_db, init_db
from shift_payroll.errors import PayrollError
from shift_payroll.services.state_machine import InvalidTransitionError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    init_db()
    yield
    # Shutdown
    await dispose_db()


async def _payroll_error_handler(request: Request, exc: PayrollError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.message,
            "code": exc.code,
            "field": getattr(exc, "field", None),
        },
    )


async def _invalid_transition_handler(request: Request, exc: InvalidTransitionError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": str(exc),
            "code": "INVALID_TRANSITION",
            "field": "status",
        },
    )


async def _general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(PayrollError, _payroll_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(InvalidTransitionError, _invalid_transition_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _general_exception_handler)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Shift Payroll API",
        description="Pay period and pay run generation for shift-scheduled staff",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_exception_handlers(app)

    # Include routers
    app.include_router(health_router)
    app.include_router(pay_periods_router, prefix="/api/v1")
    app.include_router(pay_runs_router, prefix="/api/v1")
    app.include_router(rate_history_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
