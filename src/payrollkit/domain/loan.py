"""Loan and salary advance domain service."""

from datetime import date
from decimal import Decimal
from typing import Optional

from payrollkit.database.base import Database
from payrollkit.domain.allocation import allocate_by_weights
from payrollkit.domain.entities import (
    DiscountSource,
    ItemCategory,
    ItemDraft,
    ItemType,
    LoanAdvance,
    SourceType,
)
from payrollkit.domain.errors import NotFoundError, ValidationError, not_found
from payrollkit.domain.proration import calculation_details, scale


def installment_amounts(loan: LoanAdvance) -> list[int]:
    """Split the loan principal into equal installments that sum exactly."""
    return [amount for _, amount in allocate_by_weights(loan.amount, [(i, 1) for i in range(loan.installments)])]


def next_installment(loan: LoanAdvance) -> Optional[tuple[int, int]]:
    """Return (installment number, amount) of the next unpaid installment."""
    if loan.is_fully_paid:
        return None
    covered = 0
    for number, amount in enumerate(installment_amounts(loan), start=1):
        covered += amount
        if covered > loan.paid_amount:
            return number, min(covered - loan.paid_amount, amount, loan.remaining_amount)
    return None


def loan_item(
    loan: LoanAdvance,
    source_type: SourceType = SourceType.LOAN,
    category: ItemCategory = ItemCategory.LOAN,
    percentage: Optional[Decimal] = None,
) -> Optional[ItemDraft]:
    """Debit item for a loan's next installment, optionally scaled by a percentage."""
    installment = next_installment(loan)
    if installment is None:
        return None
    number, amount = installment
    if percentage is not None:
        amount = scale(amount, percentage, 100)
    if amount <= 0:
        return None

    description = loan.description or f"Loan {loan.id}"
    return ItemDraft(
        description=f"{description} ({number}/{loan.installments})",
        type=ItemType.DEBIT,
        category=category,
        amount=amount,
        source_type=source_type,
        reference_id=loan.id,
        calculation_basis=loan.remaining_amount,
        calculation_details=calculation_details(
            loan_amount=loan.amount,
            paid_amount=loan.paid_amount,
            percentage=percentage,
        ),
        installment_number=number,
        installment_total=loan.installments,
    )


class LoanService:
    """Service for managing employee loans and advances."""

    def __init__(self, db: Database):
        """Initialize loan service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_loan(
        self,
        employee_id: int,
        amount: int,
        installments: int = 1,
        discount_source: DiscountSource = DiscountSource.SALARY,
        start_date: Optional[date] = None,
        description: Optional[str] = None,
        is_approved: bool = True,
    ) -> int:
        """Create a loan repaid through payroll deductions.

        Args:
            employee_id: Borrowing employee
            amount: Principal in minor units
            installments: Number of monthly installments
            discount_source: Payments the installments are deducted from
            start_date: First period the loan is deducted in (today if None)
            description: Optional description shown on payroll items
            is_approved: Only approved loans are deducted

        Returns:
            Loan ID

        Raises:
            ValidationError: If amount, installments or source is invalid
            NotFoundError: If the employee does not exist
        """
        if amount <= 0:
            raise ValidationError(f"Loan amount must be greater than zero (got {amount})")
        if installments <= 0:
            raise ValidationError(f"Installments must be at least 1 (got {installments})")
        try:
            discount_source = DiscountSource(discount_source)
        except ValueError as e:
            raise ValidationError(str(e))
        if self.db.get_employee(employee_id) is None:
            raise NotFoundError(not_found("Employee", employee_id), entity="Employee", entity_id=employee_id)

        return self.db.create_loan(
            employee_id=employee_id,
            amount=amount,
            installments=installments,
            discount_source=discount_source,
            start_date=start_date or date.today(),
            is_approved=is_approved,
            description=description,
        )

    def get_loan(self, loan_id: int) -> Optional[LoanAdvance]:
        """Get loan by ID."""
        return self.db.get_loan(loan_id)

    def list_loans(self, employee_id: int) -> list[LoanAdvance]:
        """List loans of an employee."""
        return self.db.list_loans(employee_id)

    def approve_loan(self, loan_id: int) -> None:
        """Approve a loan so payrolls start deducting it.

        Raises:
            NotFoundError: If the loan does not exist
        """
        if self.db.get_loan(loan_id) is None:
            raise NotFoundError(not_found("Loan", loan_id), entity="Loan", entity_id=loan_id)
        self.db.update_loan(loan_id, is_approved=True)

    def pending_loans(self, employee_id: int, until: date, sources: set[DiscountSource]) -> list[LoanAdvance]:
        """Approved, unpaid loans already started by a date and deducted from the given sources."""
        return [
            loan
            for loan in self.db.list_loans(employee_id)
            if loan.is_approved
            and not loan.is_fully_paid
            and loan.start_date <= until
            and loan.discount_source in sources
        ]
