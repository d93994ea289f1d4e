"""Vacation pay calculator.

Vacation pay is the salary share of the vacation days; the employee always
receives the one-third bonus on it. With advance_next_month the vacation pay
itself is also credited now and deducted again in the following payroll.
"""

from datetime import date, timedelta
from fractions import Fraction
from typing import Optional

from dateutil.relativedelta import relativedelta

from payrollkit.config import DEFAULT_VACATION_DAYS
from payrollkit.database.base import Database
from payrollkit.domain.entities import (
    CalculationContext,
    Contract,
    ContractType,
    DiscountSource,
    ItemCategory,
    ItemDraft,
    ItemType,
    Payroll,
    PayrollEmployee,
    PayrollView,
    SourceType,
    VACATION_ADVANCE_SETTLEMENT_SOURCES,
    VACATION_SOURCES,
)
from payrollkit.domain.errors import (
    PayrollClosedError,
    SpecialPaymentNotAppliedError,
    ValidationError,
    payroll_closed,
    special_payment_not_applied,
)
from payrollkit.domain.ledger import (
    LedgerService,
    add_items,
    build_view,
    get_open_payroll,
    get_payroll_employee,
    manual_overrides,
)
from payrollkit.domain.loan import LoanService, loan_item
from payrollkit.domain.locking import payroll_scope
from payrollkit.domain.proration import (
    benefit_item,
    calculation_details,
    prorate,
    round_half_up,
    scale,
)
from payrollkit.domain.taxes import TaxCalculator
from payrollkit.domain.thirteenth import salary_base
from payrollkit.logging_config import get_logger

logger = get_logger("vacation")

VACATION_LOAN_SOURCES = {DiscountSource.VACATION}


def advance_deduction_items(previous: PayrollEmployee) -> list[ItemDraft]:
    """Items settling the vacation pay advanced in the previous period.

    The advance is deducted again and the taxes withheld on it are credited
    back.
    """
    if not previous.vacation_advance_next_month or not previous.vacation_advance_amount:
        return []
    details = calculation_details(
        vacation_days=previous.vacation_days,
        vacation_start_date=previous.vacation_start_date,
    )
    drafts = [
        ItemDraft(
            description=f"Vacation advance deduction ({previous.vacation_days} days)",
            type=ItemType.DEBIT,
            category=ItemCategory.VACATION_ADVANCE_DEDUCTION,
            amount=previous.vacation_advance_amount,
            source_type=SourceType.VACATION_ADVANCE_DEDUCTION,
            reference_id=previous.id,
            calculation_basis=previous.vacation_advance_amount,
            calculation_details=details,
        )
    ]
    for description, amount, source_type in (
        (
            "Social security (INSS) on vacation advance returned",
            previous.vacation_advance_social_security,
            SourceType.VACATION_ADVANCE_SOCIAL_SECURITY_COMPENSATION,
        ),
        (
            "Income tax (IRRF) on vacation advance returned",
            previous.vacation_advance_income_tax,
            SourceType.VACATION_ADVANCE_INCOME_TAX_COMPENSATION,
        ),
    ):
        if amount > 0:
            drafts.append(
                ItemDraft(
                    description=description,
                    type=ItemType.CREDIT,
                    category=ItemCategory.VACATION_ADVANCE_TAX_COMPENSATION,
                    amount=amount,
                    source_type=source_type,
                    reference_id=previous.id,
                    calculation_basis=previous.vacation_advance_amount,
                    calculation_details=details,
                )
            )
    return drafts


def find_next_payroll(db: Database, payroll: Payroll) -> Optional[Payroll]:
    """The company's payroll for the period right after this one, if created."""
    next_start = payroll.period_end + timedelta(days=1)
    next_end = next_start + relativedelta(months=1) - timedelta(days=1)
    candidates = [
        p
        for p in db.find_overlapping_payrolls(payroll.company_id, next_start, next_end)
        if p.period_start > payroll.period_end
    ]
    return candidates[0] if candidates else None


class VacationService:
    """Applies and removes vacations on payroll employees."""

    def __init__(
        self,
        db: Database,
        calculator: Optional[TaxCalculator] = None,
        entitlement_days: int = DEFAULT_VACATION_DAYS,
    ):
        """Initialize vacation service.

        Args:
            db: Database instance
            calculator: Tax calculator for withholding on vacation pay
            entitlement_days: Annual vacation entitlement in days
        """
        self.db = db
        self.calculator = calculator or TaxCalculator()
        self.entitlement_days = entitlement_days
        self.ledger = LedgerService(db, self.calculator)
        self.loans = LoanService(db)

    def apply(
        self,
        payroll_id: int,
        payroll_employee_id: int,
        vacation_days: int,
        vacation_start_date: date,
        include_taxes: bool = False,
        advance_next_month: bool = False,
        notes: Optional[str] = None,
    ) -> PayrollView:
        """Put an employee on vacation in a payroll.

        Re-applying replaces the previous vacation.

        Args:
            payroll_id: Payroll the employee belongs to
            payroll_employee_id: Payroll employee going on vacation
            vacation_days: Days of vacation, 1 to the annual entitlement
            vacation_start_date: First vacation day
            include_taxes: Withhold social security (and income tax on the advance)
            advance_next_month: Pay the vacation salary now and deduct it next period
            notes: Free text

        Returns:
            The updated payroll view

        Raises:
            ValidationError: If the days are out of range or the employee is
                not part of the payroll
            NotFoundError: If the payroll or payroll employee does not exist
            PayrollClosedError: If this payroll is closed, or the next one is
                closed and would need the advance deduction
        """
        if not 1 <= vacation_days <= self.entitlement_days:
            raise ValidationError(
                f"Vacation days must be between 1 and {self.entitlement_days} (got {vacation_days})"
            )
        if vacation_start_date is None:
            raise ValidationError("Vacation start date is required")

        with payroll_scope(self.db, payroll_id):
            payroll = get_open_payroll(self.db, payroll_id)
            payroll_employee = self._get_member(payroll_id, payroll_employee_id)
            self.db.delete_payroll_items(payroll_employee.id, VACATION_SOURCES)
            self.db.update_payroll_employee(
                payroll_employee.id,
                is_on_vacation=True,
                vacation_days=vacation_days,
                vacation_start_date=vacation_start_date,
                vacation_end_date=vacation_start_date + timedelta(days=vacation_days - 1),
                vacation_include_taxes=include_taxes,
                vacation_advance_next_month=advance_next_month,
                vacation_notes=notes,
                vacation_advance_amount=None,
                vacation_advance_social_security=0,
                vacation_advance_income_tax=0,
            )
            self.apply_employee(payroll, self.db.get_payroll_employee(payroll_employee.id))
            self.ledger.refresh_totals(payroll_id, [payroll_employee.id])

        logger.info(
            "vacation_applied",
            extra={
                "payroll_id": payroll_id,
                "payroll_employee_id": payroll_employee_id,
                "vacation_days": vacation_days,
                "advance_next_month": advance_next_month,
            },
        )
        return build_view(self.db, payroll_id)

    def remove(self, payroll_id: int, payroll_employee_id: int) -> PayrollView:
        """Take an employee off vacation, in this period and the next.

        Raises:
            NotFoundError: If the payroll or payroll employee does not exist
            PayrollClosedError: If this payroll, or the next one holding the
                advance deduction, is closed
            SpecialPaymentNotAppliedError: If the employee is not on vacation
        """
        with payroll_scope(self.db, payroll_id):
            payroll = get_open_payroll(self.db, payroll_id)
            payroll_employee = self._get_member(payroll_id, payroll_employee_id)
            if not payroll_employee.is_on_vacation:
                raise SpecialPaymentNotAppliedError(
                    special_payment_not_applied("vacation", "Payroll employee", payroll_employee_id),
                    entity="PayrollEmployee",
                    entity_id=payroll_employee_id,
                )
            # Hand-edited vacation items go too
            self.db.delete_payroll_items(payroll_employee.id, VACATION_SOURCES, include_manual=True)
            self.db.update_payroll_employee(
                payroll_employee.id,
                is_on_vacation=False,
                vacation_days=None,
                vacation_start_date=None,
                vacation_end_date=None,
                vacation_include_taxes=False,
                vacation_advance_next_month=False,
                vacation_advance_amount=None,
                vacation_advance_social_security=0,
                vacation_advance_income_tax=0,
                vacation_notes=None,
            )
            self.sync_next_period(payroll, self.db.get_payroll_employee(payroll_employee.id))
            self.ledger.refresh_totals(payroll_id, [payroll_employee.id])

        logger.info(
            "vacation_removed",
            extra={"payroll_id": payroll_id, "payroll_employee_id": payroll_employee_id},
        )
        return build_view(self.db, payroll_id)

    def apply_employee(self, payroll: Payroll, payroll_employee: PayrollEmployee) -> None:
        """Insert the vacation items for the stored vacation settings.

        Expects the employee's previous vacation items to be gone already.
        Updates the advance amount and the next period; totals of this
        payroll are left to the caller.
        """
        contract = self.db.get_contract(payroll_employee.contract_id) if payroll_employee.contract_id else None
        if contract is None or not payroll_employee.is_on_vacation:
            return

        days = payroll_employee.vacation_days
        items = self.db.list_payroll_items(payroll_employee.id)
        overrides = manual_overrides(items)

        base = contract.value if contract.type == ContractType.MONTHLY else salary_base(items)
        vacation_pay = scale(base, days, self.entitlement_days)
        bonus = round_half_up(Fraction(vacation_pay, 3))

        bonus_ids = add_items(
            self.db,
            payroll_employee.id,
            [
                ItemDraft(
                    description=f"Vacation one-third bonus ({days} days)",
                    type=ItemType.CREDIT,
                    category=ItemCategory.VACATION,
                    amount=bonus,
                    source_type=SourceType.VACATION_BONUS,
                    reference_id=contract.id,
                    calculation_basis=vacation_pay,
                    calculation_details=calculation_details(
                        entitlement_days=self.entitlement_days,
                        salary_base=base,
                        vacation_days=days,
                        vacation_pay=vacation_pay,
                    ),
                    is_taxable=True,
                )
            ]
            if bonus > 0
            else [],
            overrides,
        )

        bonus_id = bonus_ids[0] if bonus_ids else None
        manual_bonus = next(
            (
                item
                for item in items
                if item.is_manual
                and item.source_type == SourceType.VACATION_BONUS
                and item.reference_id == contract.id
            ),
            None,
        )
        if manual_bonus is not None:
            # A hand-edited bonus stands in for the calculated one
            bonus_id, bonus = manual_bonus.id, manual_bonus.amount

        drafts = self._benefit_items(payroll, contract, days)
        taxable_base = bonus + sum(d.amount for d in drafts if d.is_taxable)
        drafts.extend(self._loan_items(payroll, payroll_employee))

        if payroll_employee.vacation_advance_next_month and vacation_pay > 0:
            drafts.append(
                ItemDraft(
                    description=f"Vacation salary advance ({days} days)",
                    type=ItemType.CREDIT,
                    category=ItemCategory.VACATION_ADVANCE,
                    amount=vacation_pay,
                    source_type=SourceType.VACATION_ADVANCE_SALARY,
                    reference_id=contract.id,
                    calculation_basis=base,
                    calculation_details=calculation_details(
                        entitlement_days=self.entitlement_days, vacation_days=days
                    ),
                    is_taxable=True,
                )
            )
        add_items(self.db, payroll_employee.id, drafts, overrides)

        if payroll_employee.vacation_include_taxes:
            add_items(
                self.db,
                payroll_employee.id,
                self._tax_items(
                    contract,
                    taxable_base,
                    bonus_id,
                    vacation_pay if payroll_employee.vacation_advance_next_month else 0,
                ),
                overrides,
            )

        advance = vacation_pay if payroll_employee.vacation_advance_next_month and vacation_pay > 0 else None
        withheld = {SourceType.VACATION_ADVANCE_SOCIAL_SECURITY: 0, SourceType.VACATION_ADVANCE_INCOME_TAX: 0}
        for item in self.db.list_payroll_items(payroll_employee.id):
            if item.source_type in withheld:
                withheld[item.source_type] += item.amount
        self.db.update_payroll_employee(
            payroll_employee.id,
            vacation_advance_amount=advance,
            vacation_advance_social_security=withheld[SourceType.VACATION_ADVANCE_SOCIAL_SECURITY],
            vacation_advance_income_tax=withheld[SourceType.VACATION_ADVANCE_INCOME_TAX],
        )
        self.sync_next_period(payroll, self.db.get_payroll_employee(payroll_employee.id))

    def sync_next_period(self, payroll: Payroll, payroll_employee: PayrollEmployee) -> None:
        """Make the next payroll's advance settlement match this period.

        Without a next payroll nothing happens: its regular run picks the
        settlement up from this period when it is created.

        Raises:
            PayrollClosedError: If the next payroll is closed and its
                settlement would have to change
        """
        next_payroll = find_next_payroll(self.db, payroll)
        if next_payroll is None:
            return
        next_employee = self.db.get_payroll_employee_by_employee(
            next_payroll.id, payroll_employee.employee_id
        )
        if next_employee is None:
            return

        wanted = advance_deduction_items(payroll_employee)
        # Without an advance, hand-edited settlement items go as well
        include_manual = not wanted
        items = self.db.list_payroll_items(next_employee.id)
        overrides = set() if include_manual else manual_overrides(items)
        wanted = [d for d in wanted if (d.source_type, d.reference_id) not in overrides]
        current = [
            item
            for item in items
            if item.source_type in VACATION_ADVANCE_SETTLEMENT_SOURCES
            and (include_manual or not item.is_manual)
        ]
        if sorted((item.source_type.value, item.amount) for item in current) == sorted(
            (draft.source_type.value, draft.amount) for draft in wanted
        ):
            return
        if next_payroll.is_closed:
            raise PayrollClosedError(
                payroll_closed(next_payroll.id), entity="Payroll", entity_id=next_payroll.id
            )

        with payroll_scope(self.db, next_payroll.id):
            self.db.delete_payroll_items(
                next_employee.id, VACATION_ADVANCE_SETTLEMENT_SOURCES, include_manual=include_manual
            )
            add_items(self.db, next_employee.id, wanted)
            self.ledger.refresh_totals(next_payroll.id, [next_employee.id])

        logger.info(
            "vacation_advance_settlement_synced",
            extra={"payroll_id": next_payroll.id, "payroll_employee_id": next_employee.id},
        )

    def _get_member(self, payroll_id: int, payroll_employee_id: int) -> PayrollEmployee:
        payroll_employee = get_payroll_employee(self.db, payroll_employee_id)
        if payroll_employee.payroll_id != payroll_id:
            raise ValidationError(
                f"Payroll employee {payroll_employee_id} does not belong to payroll {payroll_id}",
                entity="PayrollEmployee",
                entity_id=payroll_employee_id,
            )
        return payroll_employee

    def _benefit_items(self, payroll: Payroll, contract: Contract, days: int) -> list[ItemDraft]:
        drafts = []
        for benefit in self.db.list_benefit_discounts(contract.id):
            amount = prorate(
                benefit,
                payroll.period_start,
                payroll.period_end,
                self.entitlement_days,
                days,
                context=CalculationContext.VACATION,
            )
            if amount > 0:
                drafts.append(
                    benefit_item(
                        benefit,
                        amount,
                        days,
                        self.entitlement_days,
                        context=CalculationContext.VACATION,
                    )
                )
        return drafts

    def _loan_items(self, payroll: Payroll, payroll_employee: PayrollEmployee) -> list[ItemDraft]:
        drafts = []
        for loan in self.loans.pending_loans(
            payroll_employee.employee_id, payroll.period_end, VACATION_LOAN_SOURCES
        ):
            draft = loan_item(loan, source_type=SourceType.VACATION_LOAN, category=ItemCategory.VACATION_LOAN)
            if draft is not None:
                drafts.append(draft)
        return drafts

    def _tax_items(
        self, contract: Contract, base: int, bonus_id: Optional[int], advance: int
    ) -> list[ItemDraft]:
        drafts = []
        if contract.has_inss:
            social_security = self.calculator.social_security(base)
            if social_security > 0:
                drafts.append(
                    ItemDraft(
                        description="Social security (INSS) on vacation",
                        type=ItemType.DEBIT,
                        category=ItemCategory.VACATION_TAX,
                        amount=social_security,
                        source_type=SourceType.VACATION_SOCIAL_SECURITY,
                        reference_id=bonus_id,
                        calculation_basis=base,
                    )
                )
        if advance <= 0:
            return drafts

        advance_social_security = 0
        if contract.has_inss:
            advance_social_security = self.calculator.social_security(advance)
            if advance_social_security > 0:
                drafts.append(
                    ItemDraft(
                        description="Social security (INSS) on vacation advance",
                        type=ItemType.DEBIT,
                        category=ItemCategory.VACATION_TAX,
                        amount=advance_social_security,
                        source_type=SourceType.VACATION_ADVANCE_SOCIAL_SECURITY,
                        reference_id=contract.id,
                        calculation_basis=advance,
                    )
                )
        if contract.has_irrf:
            income_tax = self.calculator.income_tax(advance, advance_social_security)
            if income_tax > 0:
                drafts.append(
                    ItemDraft(
                        description="Income tax (IRRF) on vacation advance",
                        type=ItemType.DEBIT,
                        category=ItemCategory.VACATION_TAX,
                        amount=income_tax,
                        source_type=SourceType.VACATION_ADVANCE_INCOME_TAX,
                        reference_id=contract.id,
                        calculation_basis=advance - advance_social_security,
                    )
                )
        return drafts
