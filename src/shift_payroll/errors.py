"""Error taxonomy shared by calculators, services and the API layer."""

from __future__ import annotations

from uuid import UUID


class PayrollError(Exception):
    """Base class for errors surfaced to callers of the engine."""

    status_code = 500
    code = "PAYROLL_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(PayrollError):
    """Malformed input: scheme config, missing date, negative rate, bad timezone."""

    status_code = 422
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class ConflictError(PayrollError):
    """Duplicate pay run for a period or duplicate rate effective date."""

    status_code = 409
    code = "CONFLICT"


class ImmutabilityError(PayrollError):
    """Mutation attempted on a pay run that no longer accepts it."""

    status_code = 409
    code = "IMMUTABLE"


class NotFoundError(PayrollError):
    """Requested entity does not exist within the tenant."""

    status_code = 404
    code = "NOT_FOUND"


class ComputationError(PayrollError):
    """An employee's pay line cannot be computed (e.g. no resolvable rate).

    Raised per employee during pay-run generation; the builder logs it and
    skips the employee instead of failing the run.
    """

    status_code = 422
    code = "COMPUTATION_ERROR"

    def __init__(self, employee_id: UUID, message: str):
        self.employee_id = employee_id
        super().__init__(f"Employee {employee_id}: {message}")
