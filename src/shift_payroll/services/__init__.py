"""Pay run engine services."""

from shift_payroll.services.export_service import PayRunExportService
from shift_payroll.services.ledger_service import LineChanges, PayRunLedger
from shift_payroll.services.pay_run_builder import PayRunBuilder, PayRunComputation
from shift_payroll.services.pay_run_service import PayRunService
from shift_payroll.services.rate_history_service import RateHistoryService
from shift_payroll.services.state_machine import (
    InvalidTransitionError,
    LineStatus,
    PayRunStateMachine,
    PayRunStatus,
)
from shift_payroll.services.tenant_settings import TenantPayrollSettings, TenantSettingsService

__all__ = [
    "InvalidTransitionError",
    "LineChanges",
    "LineStatus",
    "PayRunBuilder",
    "PayRunComputation",
    "PayRunExportService",
    "PayRunLedger",
    "PayRunService",
    "PayRunStateMachine",
    "PayRunStatus",
    "RateHistoryService",
    "TenantPayrollSettings",
    "TenantSettingsService",
]
