"""Pay run state machine with transition validation."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shift_payroll.models import PayRun


class PayRunStatus(str, Enum):
    """Pay run status values."""

    DRAFT = "draft"
    REVIEWING = "reviewing"
    APPROVED = "approved"
    FINALISED = "finalised"


class LineStatus(str, Enum):
    """Pay run line status values."""

    INCLUDED = "included"
    EXCLUDED = "excluded"


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class PayRunStateMachine:
    """State machine for pay run status transitions.

    Allowed transitions:
    - draft → reviewing
    - reviewing → approved
    - approved → finalised

    Transitions are forward only; finalised is terminal.
    """

    # Define valid transitions: {from_status: [allowed_to_statuses]}
    VALID_TRANSITIONS: dict[str, list[str]] = {
        PayRunStatus.DRAFT: [PayRunStatus.REVIEWING],
        PayRunStatus.REVIEWING: [PayRunStatus.APPROVED],
        PayRunStatus.APPROVED: [PayRunStatus.FINALISED],
        PayRunStatus.FINALISED: [],  # Terminal state
    }

    # Statuses where line edits need no reason
    LINES_FREELY_EDITABLE = {
        PayRunStatus.DRAFT,
        PayRunStatus.REVIEWING,
    }

    # Statuses where adjustment changes need a reason
    REASON_REQUIRED = {
        PayRunStatus.APPROVED,
    }

    # Statuses where lines are immutable
    RESULTS_IMMUTABLE = {
        PayRunStatus.FINALISED,
    }

    @staticmethod
    def _value(status: str) -> str:
        return status.value if isinstance(status, PayRunStatus) else str(status)

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(cls._value(from_status), [])
        return cls._value(to_status) in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(cls._value(from_status), cls._value(to_status))

    @classmethod
    def can_edit_lines(cls, status: str) -> bool:
        """Check if lines may be edited at all in this status."""
        return cls._value(status) not in cls.RESULTS_IMMUTABLE

    @classmethod
    def requires_reason(cls, status: str) -> bool:
        """Check if an adjustment change needs a reason in this status."""
        return cls._value(status) in cls.REASON_REQUIRED

    @classmethod
    def is_immutable(cls, status: str) -> bool:
        """Check if the run's lines are immutable."""
        return cls._value(status) in cls.RESULTS_IMMUTABLE

    @classmethod
    def can_delete(cls, status: str) -> bool:
        """Only draft runs may be deleted."""
        return cls._value(status) == PayRunStatus.DRAFT

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return [s.value for s in cls.VALID_TRANSITIONS.get(cls._value(current_status), [])]

    @classmethod
    def validate_pay_run_for_transition(cls, pay_run: PayRun, to_status: str) -> list[str]:
        """Validate a pay run for a specific transition, returning any errors.

        Returns list of error messages (empty if valid).
        """
        errors: list[str] = []
        from_status = pay_run.status

        # Basic transition check
        if not cls.can_transition(from_status, to_status):
            errors.append(f"Cannot transition from '{from_status}' to '{cls._value(to_status)}'")

        return errors
