"""API routes."""

from shift_payroll.api.routes.health import router as health_router
from shift_payroll.api.routes.pay_periods import router as pay_periods_router
from shift_payroll.api.routes.pay_runs import router as pay_runs_router
from shift_payroll.api.routes.rate_history import router as rate_history_router

__all__ = ["health_router", "pay_periods_router", "pay_runs_router", "rate_history_router"]
