"""Thirteenth salary calculator."""

from decimal import Decimal, InvalidOperation
from typing import Optional

from payrollkit.database.base import Database
from payrollkit.domain.entities import (
    CalculationContext,
    Contract,
    DiscountSource,
    ItemCategory,
    ItemDraft,
    ItemType,
    Payroll,
    PayrollEmployee,
    PayrollView,
    SourceType,
    TaxOption,
    THIRTEENTH_SOURCES,
)
from payrollkit.domain.errors import (
    SpecialPaymentNotAppliedError,
    ValidationError,
    special_payment_not_applied,
)
from payrollkit.domain.ledger import (
    LedgerService,
    add_items,
    build_view,
    get_open_payroll,
    manual_overrides,
)
from payrollkit.domain.loan import LoanService, loan_item
from payrollkit.domain.locking import payroll_scope
from payrollkit.domain.proration import benefit_item, calculation_details, prorate, scale
from payrollkit.domain.taxes import TaxCalculator
from payrollkit.logging_config import get_logger

logger = get_logger("thirteenth")

THIRTEENTH_LOAN_SOURCES = {DiscountSource.THIRTEENTH, DiscountSource.ALL}


def to_thirteenth_percentage(value) -> Decimal:
    """Validate a thirteenth salary percentage (0 < p <= 100, two decimals)."""
    try:
        percentage = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"Invalid thirteenth salary percentage '{value}'")
    if not percentage.is_finite() or percentage <= 0 or percentage > 100:
        raise ValidationError(
            f"Thirteenth salary percentage must be greater than 0 and at most 100 (got {value})"
        )
    if percentage != percentage.quantize(Decimal("0.01")):
        raise ValidationError(f"Percentage '{value}' has more than two decimal places")
    return percentage.quantize(Decimal("0.01"))


def salary_base(items) -> int:
    """Sum of the regular salary credits."""
    return sum(
        item.amount
        for item in items
        if item.type == ItemType.CREDIT and item.source_type == SourceType.SALARY
    )


class ThirteenthSalaryService:
    """Applies and removes the thirteenth salary on a payroll."""

    def __init__(self, db: Database, calculator: Optional[TaxCalculator] = None):
        self.db = db
        self.calculator = calculator or TaxCalculator()
        self.ledger = LedgerService(db, self.calculator)
        self.loans = LoanService(db)

    def apply(self, payroll_id: int, percentage, tax_option: TaxOption = TaxOption.NONE) -> PayrollView:
        """Add the thirteenth salary to every eligible employee.

        Re-applying replaces the previous application.

        Args:
            payroll_id: Payroll to apply to
            percentage: Share of the salary paid, greater than 0 and at most 100
            tax_option: Withholding mode (none, proportional, full)

        Returns:
            The updated payroll view

        Raises:
            ValidationError: If percentage or tax option is invalid
            NotFoundError: If the payroll does not exist
            PayrollClosedError: If the payroll is closed
        """
        percentage = to_thirteenth_percentage(percentage)
        try:
            tax_option = TaxOption(tax_option)
        except ValueError as e:
            raise ValidationError(str(e))

        with payroll_scope(self.db, payroll_id):
            payroll = get_open_payroll(self.db, payroll_id)
            for payroll_employee in self.db.list_payroll_employees(payroll_id):
                self.db.delete_payroll_items(payroll_employee.id, THIRTEENTH_SOURCES)
                self.apply_employee(payroll, payroll_employee, percentage, tax_option)
            self.db.update_payroll(
                payroll_id, thirteenth_percentage=percentage, thirteenth_tax_option=tax_option
            )
            self.ledger.refresh_totals(payroll_id)

        logger.info(
            "thirteenth_applied",
            extra={"payroll_id": payroll_id, "percentage": percentage, "tax_option": tax_option},
        )
        return build_view(self.db, payroll_id)

    def remove(self, payroll_id: int) -> PayrollView:
        """Delete every thirteenth salary item and clear the payroll settings.

        Raises:
            NotFoundError: If the payroll does not exist
            PayrollClosedError: If the payroll is closed
            SpecialPaymentNotAppliedError: If no thirteenth salary is applied
        """
        with payroll_scope(self.db, payroll_id):
            payroll = get_open_payroll(self.db, payroll_id)
            if payroll.thirteenth_percentage is None:
                raise SpecialPaymentNotAppliedError(
                    special_payment_not_applied("thirteenth salary", "Payroll", payroll_id),
                    entity="Payroll",
                    entity_id=payroll_id,
                )
            # Hand-edited thirteenth items go too; their taxes carry thirteenth sources
            for payroll_employee in self.db.list_payroll_employees(payroll_id):
                self.db.delete_payroll_items(payroll_employee.id, THIRTEENTH_SOURCES, include_manual=True)
            self.db.update_payroll(payroll_id, thirteenth_percentage=None, thirteenth_tax_option=None)
            self.ledger.refresh_totals(payroll_id)

        logger.info("thirteenth_removed", extra={"payroll_id": payroll_id})
        return build_view(self.db, payroll_id)

    def apply_employee(
        self,
        payroll: Payroll,
        payroll_employee: PayrollEmployee,
        percentage: Decimal,
        tax_option: TaxOption,
    ) -> None:
        """Insert one employee's thirteenth salary items.

        Expects the employee's previous thirteenth items to be gone already.
        Totals are left to the caller.
        """
        contract = self.db.get_contract(payroll_employee.contract_id) if payroll_employee.contract_id else None
        if contract is None or not contract.has_thirteenth_salary:
            return

        items = self.db.list_payroll_items(payroll_employee.id)
        overrides = manual_overrides(items)
        base = salary_base(items)
        if base <= 0:
            return

        amount = scale(base, percentage, 100)
        credit = ItemDraft(
            description=f"Thirteenth salary ({percentage}%)",
            type=ItemType.CREDIT,
            category=ItemCategory.THIRTEENTH,
            amount=amount,
            source_type=SourceType.THIRTEENTH_SALARY,
            reference_id=contract.id,
            calculation_basis=base,
            calculation_details=calculation_details(percentage=percentage, salary_base=base),
            is_taxable=True,
        )
        credit_ids = add_items(self.db, payroll_employee.id, [credit], overrides)
        if credit_ids:
            credit_id = credit_ids[0]
        else:
            # A hand-edited credit stands in for the calculated one
            manual_credit = next(
                item
                for item in items
                if item.is_manual
                and item.source_type == SourceType.THIRTEENTH_SALARY
                and item.reference_id == contract.id
            )
            credit_id, amount = manual_credit.id, manual_credit.amount

        drafts = self._benefit_items(payroll, payroll_employee, contract, percentage)
        drafts.extend(self._loan_items(payroll, payroll_employee, percentage))
        add_items(self.db, payroll_employee.id, drafts, overrides)

        if tax_option != TaxOption.NONE:
            tax_base = amount if tax_option == TaxOption.PROPORTIONAL else base
            add_items(
                self.db,
                payroll_employee.id,
                self._tax_items(contract, tax_base, credit_id, tax_option),
                overrides,
            )

    def _benefit_items(
        self,
        payroll: Payroll,
        payroll_employee: PayrollEmployee,
        contract: Contract,
        percentage: Decimal,
    ) -> list[ItemDraft]:
        drafts = []
        for benefit in self.db.list_benefit_discounts(contract.id):
            full = prorate(
                benefit,
                payroll.period_start,
                payroll.period_end,
                1,
                1,
                context=CalculationContext.THIRTEENTH,
            )
            if full == 0:
                continue
            amount = scale(full, percentage, 100)
            if amount > 0:
                drafts.append(
                    benefit_item(
                        benefit,
                        amount,
                        payroll_employee.days_worked,
                        payroll_employee.days_in_period,
                        context=CalculationContext.THIRTEENTH,
                        note=f"{percentage}%",
                    )
                )
        return drafts

    def _loan_items(
        self, payroll: Payroll, payroll_employee: PayrollEmployee, percentage: Decimal
    ) -> list[ItemDraft]:
        drafts = []
        for loan in self.loans.pending_loans(
            payroll_employee.employee_id, payroll.period_end, THIRTEENTH_LOAN_SOURCES
        ):
            draft = loan_item(
                loan,
                source_type=SourceType.THIRTEENTH_LOAN,
                category=ItemCategory.THIRTEENTH_LOAN,
                percentage=percentage,
            )
            if draft is not None:
                drafts.append(draft)
        return drafts

    def _tax_items(
        self, contract: Contract, base: int, credit_id: int, tax_option: TaxOption
    ) -> list[ItemDraft]:
        drafts = []
        social_security = 0
        if contract.has_inss:
            social_security = self.calculator.social_security(base)
            if social_security > 0:
                drafts.append(
                    ItemDraft(
                        description="Social security (INSS) on thirteenth salary",
                        type=ItemType.DEBIT,
                        category=ItemCategory.THIRTEENTH_TAX,
                        amount=social_security,
                        source_type=SourceType.THIRTEENTH_SOCIAL_SECURITY,
                        reference_id=credit_id,
                        calculation_basis=base,
                        calculation_details=calculation_details(tax_option=tax_option),
                    )
                )
        if contract.has_irrf:
            income_tax = self.calculator.income_tax(base, social_security)
            if income_tax > 0:
                drafts.append(
                    ItemDraft(
                        description="Income tax (IRRF) on thirteenth salary",
                        type=ItemType.DEBIT,
                        category=ItemCategory.THIRTEENTH_TAX,
                        amount=income_tax,
                        source_type=SourceType.THIRTEENTH_INCOME_TAX,
                        reference_id=credit_id,
                        calculation_basis=base - social_security,
                        calculation_details=calculation_details(tax_option=tax_option),
                    )
                )
        return drafts
