"""Status state machines for leave requests and payroll runs."""

from __future__ import annotations

from typing import ClassVar

from hr_payroll.errors import InvalidTransitionError
from hr_payroll.models import LeaveStatus, PayrollRunStatus


class StateMachine:
    """Table-driven status transition validation."""

    # {from_status: [allowed_to_statuses]}
    VALID_TRANSITIONS: ClassVar[dict[str, list[str]]] = {}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if to_status not in cls.VALID_TRANSITIONS:
            raise InvalidTransitionError(from_status, to_status, "unknown status")
        if not cls.can_transition(from_status, to_status):
            reason = "status is terminal" if cls.is_terminal(from_status) else None
            raise InvalidTransitionError(from_status, to_status, reason)

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(current_status, [])

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        return status in cls.VALID_TRANSITIONS and not cls.VALID_TRANSITIONS[status]


class LeaveRequestStateMachine(StateMachine):
    """Leave requests are decided exactly once.

    Allowed transitions:
    - PENDING → APPROVED
    - PENDING → REJECTED
    """

    VALID_TRANSITIONS = {
        LeaveStatus.PENDING: [LeaveStatus.APPROVED, LeaveStatus.REJECTED],
        LeaveStatus.APPROVED: [],  # Terminal state
        LeaveStatus.REJECTED: [],  # Terminal state
    }


class PayrollRunStateMachine(StateMachine):
    """Payroll runs only move from processed to paid.

    Allowed transitions:
    - PROCESSED → PAID
    """

    VALID_TRANSITIONS = {
        PayrollRunStatus.PROCESSED: [PayrollRunStatus.PAID],
        PayrollRunStatus.PAID: [],  # Terminal state
    }
