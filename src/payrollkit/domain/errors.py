"""Shared domain error messages and error types."""

from typing import Any, Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """

    def __init__(
        self,
        message: str,
        *,
        entity: Optional[str] = None,
        entity_id: Optional[int] = None,
        expected: Any = None,
        actual: Any = None,
    ):
        super().__init__(message)
        self.entity = entity
        self.entity_id = entity_id
        self.expected = expected
        self.actual = actual


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


class AllocationError(ValidationError):
    """An amount could not be split across the requested shares."""


class PercentagesNotNormalizedError(AllocationError):
    """Share percentages do not add up to 100."""


class OverlappingPeriodError(ConflictError):
    """Another payroll of the company already covers part of the period."""


class StateError(DomainError):
    """Operation not allowed in the current lifecycle state."""


class PayrollClosedError(StateError):
    """Mutation attempted on a closed payroll."""


class PayrollNotClosedError(StateError):
    """Operation requires a closed payroll."""


class EmptyPayrollError(StateError):
    """Payroll has no employees to settle."""


class SpecialPaymentNotAppliedError(StateError):
    """Removal of a thirteenth salary or vacation that was never applied."""


class IntegrityError(DomainError):
    """Stored data contradicts the data it is derived from."""


class AggregateMismatchError(IntegrityError):
    """Stored totals differ from the sum of the underlying items."""


def not_found(entity: str, entity_id: int) -> str:
    """Return message for a missing entity."""
    return f"{entity} {entity_id} not found"


def payroll_closed(payroll_id: int) -> str:
    """Return message for a mutation against a closed payroll."""
    return f"Payroll {payroll_id} is closed"


def payroll_not_closed(payroll_id: int) -> str:
    """Return message when a closed payroll was expected."""
    return f"Payroll {payroll_id} is not closed"


def percentages_not_normalized(total: Any) -> str:
    """Return message for percentages that do not sum to 100."""
    return f"Percentages must sum to 100.00 (got {total})"


def overlapping_period(company_id: int, other_payroll_id: int) -> str:
    """Return message for an overlapping payroll period."""
    return (
        f"Company {company_id} already has payroll {other_payroll_id} "
        "overlapping this period"
    )


def aggregate_mismatch(entity: str, entity_id: int, field: str, expected: int, actual: int) -> str:
    """Return message for stored totals that drifted from their items."""
    return (
        f"{entity} {entity_id} {field} is {actual} but its items sum to {expected}"
    )


def special_payment_not_applied(kind: str, entity: str, entity_id: int) -> str:
    """Return message when removing a special payment that is not present."""
    return f"{entity} {entity_id} has no {kind} applied"
