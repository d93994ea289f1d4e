"""Payroll lifecycle: create, recalculate, close, reopen and settlement reversal."""

import json
from dataclasses import asdict
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Optional

from dateutil.relativedelta import relativedelta

from payrollkit.config import DEFAULT_VACATION_DAYS
from payrollkit.database.base import Database
from payrollkit.domain.allocation import distribute, distribute_by_weights
from payrollkit.domain.entities import (
    Contract,
    DiscountSource,
    ItemCategory,
    ItemDraft,
    ItemType,
    LOAN_SOURCES,
    Payroll,
    PayrollEmployee,
    PayrollItem,
    PayrollView,
    REGULAR_SOURCES,
    SourceType,
    TaxOption,
    THIRTEENTH_SOURCES,
    TransactionType,
    VACATION_SOURCES,
)
from payrollkit.domain.errors import (
    EmptyPayrollError,
    NotFoundError,
    OverlappingPeriodError,
    PayrollClosedError,
    PayrollNotClosedError,
    StateError,
    ValidationError,
    not_found,
    overlapping_period,
    payroll_closed,
    payroll_not_closed,
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
from payrollkit.domain.locking import company_scope, payroll_scope
from payrollkit.domain.posting import DatabaseTransactionPoster, TransactionPoster
from payrollkit.domain.proration import (
    active_days,
    benefit_item,
    calculation_details,
    days_in_period,
    default_worked_units,
    prorate,
    salary_amount,
    salary_item,
)
from payrollkit.domain.taxes import TaxCalculator
from payrollkit.domain.thirteenth import ThirteenthSalaryService
from payrollkit.domain.vacation import VacationService, advance_deduction_items, find_next_payroll
from payrollkit.logging_config import LogContext, get_logger

logger = get_logger("payroll")

SALARY_LOAN_SOURCES = {DiscountSource.SALARY, DiscountSource.ALL}
AUTOMATIC_SOURCES = REGULAR_SOURCES | THIRTEENTH_SOURCES | VACATION_SOURCES


def snapshot_json(view: PayrollView, loan_repayments: dict[int, int]) -> str:
    """Freeze a payroll view as JSON text."""
    data = asdict(view)
    data["loan_repayments"] = {str(loan_id): amount for loan_id, amount in loan_repayments.items()}
    data["reversed_at"] = None
    return json.dumps(data, sort_keys=True, default=str)


def has_open_settlement(payroll: Payroll) -> bool:
    """Whether a close recorded postings that were not reversed yet."""
    if payroll.snapshot is None:
        return False
    return json.loads(payroll.snapshot).get("reversed_at") is None


class PayrollService:
    """Service driving a payroll through its lifecycle.

    Every operation that changes a payroll returns its PayrollView.
    """

    def __init__(
        self,
        db: Database,
        poster: Optional[TransactionPoster] = None,
        calculator: Optional[TaxCalculator] = None,
        entitlement_days: int = DEFAULT_VACATION_DAYS,
    ):
        """Initialize payroll service.

        Args:
            db: Database instance
            poster: Transaction poster used on close (stores through db if None)
            calculator: Tax calculator (no withholding if None)
            entitlement_days: Annual vacation entitlement in days
        """
        self.db = db
        self.poster = poster or DatabaseTransactionPoster(db)
        self.calculator = calculator or TaxCalculator()
        self.ledger = LedgerService(db, self.calculator)
        self.thirteenth = ThirteenthSalaryService(db, self.calculator)
        self.vacation = VacationService(db, self.calculator, entitlement_days)
        self.loans = LoanService(db)

    def create(
        self,
        company_id: int,
        period_start: date,
        period_end: date,
        created_by: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> PayrollView:
        """Create a payroll and seed one employee per active payroll contract.

        Args:
            company_id: Company the payroll belongs to
            period_start: First day of the period
            period_end: Last day of the period
            created_by: Acting user ID
            notes: Free text

        Returns:
            The new payroll view

        Raises:
            ValidationError: If the period is invalid or no contract is eligible
            NotFoundError: If the company does not exist
            OverlappingPeriodError: If another payroll of the company overlaps
        """
        if self.db.get_company(company_id) is None:
            raise NotFoundError(not_found("Company", company_id), entity="Company", entity_id=company_id)
        days_in_period(period_start, period_end)

        with company_scope(self.db, company_id):
            overlapping = self.db.find_overlapping_payrolls(company_id, period_start, period_end)
            if overlapping:
                raise OverlappingPeriodError(
                    overlapping_period(company_id, overlapping[0].id),
                    entity="Payroll",
                    entity_id=overlapping[0].id,
                )

            contracts = self._eligible_contracts(company_id, period_start, period_end)
            if not contracts:
                raise ValidationError(
                    f"Company {company_id} has no active payroll contracts between "
                    f"{period_start} and {period_end}",
                    entity="Company",
                    entity_id=company_id,
                )

            payroll_id = self.db.create_payroll(
                company_id=company_id,
                period_start=period_start,
                period_end=period_end,
                created_by=created_by,
                notes=notes,
            )
            with payroll_scope(self.db, payroll_id):
                payroll = self.db.get_payroll(payroll_id)
                for contract in contracts.values():
                    payroll_employee = self._add_employee(payroll, contract)
                    self._rebuild_employee(payroll, payroll_employee)
                self.ledger.refresh_totals(payroll_id)

        with LogContext.bind(payroll_id=payroll_id, actor_id=created_by):
            logger.info(
                "payroll_created",
                extra={
                    "company_id": company_id,
                    "period_start": period_start,
                    "period_end": period_end,
                    "employees": len(contracts),
                },
            )
        return build_view(self.db, payroll_id)

    def recalculate(self, payroll_id: int) -> PayrollView:
        """Rebuild every employee's automatic items from current master data.

        Manual items are kept. Employees without an eligible contract are
        dropped and newly eligible ones added. The stored thirteenth salary
        and vacation settings are applied again.

        Raises:
            NotFoundError: If the payroll does not exist
            PayrollClosedError: If the payroll is closed
        """
        with payroll_scope(self.db, payroll_id):
            payroll = get_open_payroll(self.db, payroll_id)
            contracts = self._eligible_contracts(
                payroll.company_id, payroll.period_start, payroll.period_end
            )
            existing = {pe.employee_id: pe for pe in self.db.list_payroll_employees(payroll_id)}

            for employee_id, payroll_employee in existing.items():
                if employee_id not in contracts:
                    self.db.delete_payroll_employee(payroll_employee.id)

            for employee_id, contract in contracts.items():
                payroll_employee = existing.get(employee_id)
                if payroll_employee is None:
                    self._add_employee(payroll, contract)
                elif payroll_employee.contract_id != contract.id:
                    self.db.update_payroll_employee(
                        payroll_employee.id,
                        contract_id=contract.id,
                        days_worked=active_days(contract, payroll.period_start, payroll.period_end),
                        worked_units=self._default_units(payroll, contract),
                        has_fgts=contract.has_fgts,
                    )
                elif payroll_employee.has_fgts != contract.has_fgts:
                    self.db.update_payroll_employee(payroll_employee.id, has_fgts=contract.has_fgts)

            for payroll_employee in self.db.list_payroll_employees(payroll_id):
                self._rebuild_employee(payroll, payroll_employee)
            self.ledger.refresh_totals(payroll_id)

        logger.info("payroll_recalculated", extra={"payroll_id": payroll_id})
        return build_view(self.db, payroll_id)

    def recalculate_employee(self, payroll_employee_id: int) -> PayrollView:
        """Rebuild one employee's automatic items.

        Raises:
            NotFoundError: If the payroll employee does not exist
            PayrollClosedError: If the payroll is closed
        """
        return self._rebuild_member(payroll_employee_id)

    def set_days_worked(self, payroll_employee_id: int, days_worked: int) -> PayrollView:
        """Record the days an employee worked and rebuild their items.

        Raises:
            ValidationError: If days_worked is outside 0..days_in_period
        """
        payroll_employee = get_payroll_employee(self.db, payroll_employee_id)
        if not 0 <= days_worked <= payroll_employee.days_in_period:
            raise ValidationError(
                f"Days worked must be between 0 and {payroll_employee.days_in_period} "
                f"(got {days_worked})",
                entity="PayrollEmployee",
                entity_id=payroll_employee_id,
            )
        return self._rebuild_member(payroll_employee_id, days_worked=days_worked)

    def set_worked_units(self, payroll_employee_id: int, worked_units) -> PayrollView:
        """Record the hours or days an hourly/daily employee is paid for.

        Raises:
            ValidationError: If worked_units is not a non-negative number
        """
        try:
            units = Decimal(str(worked_units))
        except InvalidOperation:
            raise ValidationError(f"Invalid worked units '{worked_units}'")
        if not units.is_finite() or units < 0:
            raise ValidationError(f"Worked units cannot be negative (got {worked_units})")

        return self._rebuild_member(payroll_employee_id, worked_units=units)

    def close(
        self,
        payroll_id: int,
        account_id: int,
        payment_date: date,
        inss_amount: int = 0,
        fgts_amount: int = 0,
        closed_by: Optional[int] = None,
    ) -> PayrollView:
        """Close a payroll and post its settlement.

        One outflow is posted per employee with positive net pay, split over
        the employee contract's cost centers. A negative net pay becomes a
        single-installment loan deducted in the next period. Loan installments
        in the payroll are recorded as repaid. The social security and
        employer fund amounts are posted split by each cost center's share of
        gross pay.

        Args:
            payroll_id: Payroll to close
            account_id: Account the payroll is paid from
            payment_date: Date of the postings
            inss_amount: Social security amount to collect
            fgts_amount: Employer fund amount to collect
            closed_by: Acting user ID

        Returns:
            The closed payroll view

        Raises:
            NotFoundError: If the payroll or account does not exist
            PayrollClosedError: If the payroll is already closed
            EmptyPayrollError: If the payroll has no employees
            StateError: If an earlier settlement was not reversed
            AggregateMismatchError: If stored totals drifted from the items
        """
        if inss_amount < 0 or fgts_amount < 0:
            raise ValidationError("Social security and employer fund amounts cannot be negative")

        with payroll_scope(self.db, payroll_id), LogContext.bind(payroll_id=payroll_id, actor_id=closed_by):
            payroll = self._get_payroll(payroll_id)
            if payroll.is_closed:
                raise PayrollClosedError(payroll_closed(payroll_id), entity="Payroll", entity_id=payroll_id)
            if not self.db.list_payroll_employees(payroll_id):
                raise EmptyPayrollError(
                    f"Payroll {payroll_id} has no employees", entity="Payroll", entity_id=payroll_id
                )
            if has_open_settlement(payroll):
                raise StateError(
                    f"Payroll {payroll_id} has a settlement that was not reversed",
                    entity="Payroll",
                    entity_id=payroll_id,
                )
            account = self.db.get_account(account_id)
            if account is None or account.company_id != payroll.company_id:
                raise NotFoundError(not_found("Account", account_id), entity="Account", entity_id=account_id)

            self.ledger.verify(payroll_id)
            view = build_view(self.db, payroll_id)
            label = payroll.period_end.strftime("%m/%Y")

            posted: list[int] = []
            generated: list[int] = []
            gross_by_cost_center: dict[int, int] = {}
            for employee_view in view.employees:
                payroll_employee = employee_view.payroll_employee
                weights = self._cost_center_weights(payroll_employee)
                if weights and payroll_employee.total_gross_pay > 0:
                    for share in distribute(payroll_employee.total_gross_pay, weights):
                        gross_by_cost_center[share.key] = gross_by_cost_center.get(share.key, 0) + share.amount

                net_pay = payroll_employee.total_net_pay
                if net_pay > 0:
                    posted.append(
                        self.poster.post(
                            company_id=payroll.company_id,
                            account_id=account_id,
                            amount=net_pay,
                            description=f"Payroll {label} - {employee_view.employee_name}",
                            type=TransactionType.OUTFLOW,
                            distributions=distribute(net_pay, weights) if weights else [],
                            origin_payroll_id=payroll_id,
                            transaction_date=payment_date,
                        )
                    )
                elif net_pay < 0:
                    generated.append(
                        self.db.create_loan(
                            employee_id=payroll_employee.employee_id,
                            amount=-net_pay,
                            installments=1,
                            discount_source=DiscountSource.SALARY,
                            start_date=payroll.period_end + timedelta(days=1),
                            is_approved=True,
                            description=f"Negative balance payroll {label}",
                            origin_payroll_id=payroll_id,
                        )
                    )

            repayments = self._record_repayments(view)

            charges = ((inss_amount, "Social security (INSS)"), (fgts_amount, "Employer fund (FGTS)"))
            for amount, name in charges:
                if amount <= 0:
                    continue
                distributions = (
                    distribute_by_weights(amount, sorted(gross_by_cost_center.items()))
                    if gross_by_cost_center
                    else []
                )
                posted.append(
                    self.poster.post(
                        company_id=payroll.company_id,
                        account_id=account_id,
                        amount=amount,
                        description=f"{name} payroll {label}",
                        type=TransactionType.OUTFLOW,
                        distributions=distributions,
                        origin_payroll_id=payroll_id,
                        transaction_date=payment_date,
                    )
                )

            self.db.update_payroll(
                payroll_id,
                is_closed=True,
                closed_at=datetime.now(UTC),
                closed_by=closed_by,
                payment_date=payment_date,
                account_id=account_id,
                inss_amount=inss_amount,
                fgts_amount=fgts_amount,
                snapshot=snapshot_json(view, repayments),
                posted_transaction_ids=tuple(posted),
                generated_loan_ids=tuple(generated),
            )

            logger.info(
                "payroll_closed",
                extra={
                    "total_net_pay": view.payroll.total_net_pay,
                    "transactions": len(posted),
                    "generated_loans": len(generated),
                },
            )
        return build_view(self.db, payroll_id)

    def reopen(self, payroll_id: int) -> PayrollView:
        """Make a closed payroll editable again.

        The snapshot, postings, loan repayments and generated loans stay as
        they are; see reverse_settlement.

        Raises:
            NotFoundError: If the payroll does not exist
            PayrollNotClosedError: If the payroll is open
        """
        with payroll_scope(self.db, payroll_id):
            payroll = self._get_payroll(payroll_id)
            if not payroll.is_closed:
                raise PayrollNotClosedError(
                    payroll_not_closed(payroll_id), entity="Payroll", entity_id=payroll_id
                )
            self.db.update_payroll(payroll_id, is_closed=False)

        logger.info("payroll_reopened", extra={"payroll_id": payroll_id})
        return build_view(self.db, payroll_id)

    def reverse_settlement(self, payroll_id: int, transaction_date: Optional[date] = None) -> PayrollView:
        """Undo what the last close recorded outside the payroll.

        Posts a reversing transaction for every posted one, takes the loan
        repayments back and deletes the loans created for negative net pay.

        Raises:
            NotFoundError: If the payroll does not exist
            PayrollClosedError: If the payroll is still closed
            StateError: If there is no settlement to reverse, or a generated
                loan was already repaid
        """
        transaction_date = transaction_date or date.today()
        with payroll_scope(self.db, payroll_id), LogContext.bind(payroll_id=payroll_id):
            payroll = self._get_payroll(payroll_id)
            if payroll.is_closed:
                raise PayrollClosedError(
                    f"Payroll {payroll_id} must be reopened before its settlement is reversed",
                    entity="Payroll",
                    entity_id=payroll_id,
                )
            if not has_open_settlement(payroll):
                raise StateError(
                    f"Payroll {payroll_id} has no settlement to reverse",
                    entity="Payroll",
                    entity_id=payroll_id,
                )

            reversals = [
                self.poster.reverse(transaction_id, transaction_date)
                for transaction_id in payroll.posted_transaction_ids
            ]

            snapshot = json.loads(payroll.snapshot)
            for loan_id, amount in snapshot.get("loan_repayments", {}).items():
                loan = self.db.get_loan(int(loan_id))
                if loan is not None:
                    self.db.update_loan(loan.id, paid_amount=max(loan.paid_amount - amount, 0))

            for loan_id in payroll.generated_loan_ids:
                loan = self.db.get_loan(loan_id)
                if loan is None:
                    continue
                if loan.paid_amount > 0:
                    raise StateError(
                        f"Loan {loan_id} created by payroll {payroll_id} was already repaid",
                        entity="LoanAdvance",
                        entity_id=loan_id,
                    )
                self.db.delete_loan(loan_id)

            snapshot["reversed_at"] = transaction_date.isoformat()
            self.db.update_payroll(
                payroll_id,
                snapshot=json.dumps(snapshot, sort_keys=True),
                posted_transaction_ids=(),
                generated_loan_ids=(),
            )

            logger.info("payroll_settlement_reversed", extra={"reversals": len(reversals)})
        return build_view(self.db, payroll_id)

    def delete(self, payroll_id: int) -> None:
        """Delete an open payroll with its employees and items.

        Raises:
            NotFoundError: If the payroll does not exist
            PayrollClosedError: If the payroll is closed
            StateError: If the payroll has a settlement that was not reversed
        """
        with payroll_scope(self.db, payroll_id):
            payroll = get_open_payroll(self.db, payroll_id)
            if has_open_settlement(payroll):
                raise StateError(
                    f"Payroll {payroll_id} has a settlement that was not reversed",
                    entity="Payroll",
                    entity_id=payroll_id,
                )
            self.db.delete_payroll(payroll_id)
        logger.info("payroll_deleted", extra={"payroll_id": payroll_id})

    def get_view(self, payroll_id: int) -> PayrollView:
        """Get a payroll with its employees and items.

        Raises:
            NotFoundError: If the payroll does not exist
        """
        return build_view(self.db, payroll_id)

    def list_payrolls(self, company_id: int) -> list[Payroll]:
        """List payrolls of a company, most recent first."""
        return self.db.list_payrolls(company_id)

    def suggest_next_period(self, company_id: int, today: Optional[date] = None) -> tuple[date, date]:
        """Period following the last closed payroll, else the current month."""
        last_closed = self.db.get_latest_closed_payroll(company_id)
        if last_closed is not None:
            start = last_closed.period_end + timedelta(days=1)
        else:
            start = (today or date.today()).replace(day=1)
        return start, start + relativedelta(months=1) - timedelta(days=1)

    def _get_payroll(self, payroll_id: int) -> Payroll:
        payroll = self.db.get_payroll(payroll_id)
        if payroll is None:
            raise NotFoundError(not_found("Payroll", payroll_id), entity="Payroll", entity_id=payroll_id)
        return payroll

    def _rebuild_member(self, payroll_employee_id: int, **changes) -> PayrollView:
        payroll_employee = get_payroll_employee(self.db, payroll_employee_id)
        payroll_id = payroll_employee.payroll_id
        with payroll_scope(self.db, payroll_id):
            payroll = get_open_payroll(self.db, payroll_id)
            if changes:
                self.db.update_payroll_employee(payroll_employee_id, **changes)
                payroll_employee = self.db.get_payroll_employee(payroll_employee_id)
            self._rebuild_employee(payroll, payroll_employee)
            self.ledger.refresh_totals(payroll_id, [payroll_employee_id])
        return build_view(self.db, payroll_id)

    def _eligible_contracts(self, company_id: int, period_start: date, period_end: date) -> dict[int, Contract]:
        """Newest eligible contract per employee, in employee name order."""
        contracts: dict[int, Contract] = {}
        for contract in self.db.list_payroll_contracts(company_id, period_start, period_end):
            contracts.setdefault(contract.employee_id, contract)
        return contracts

    def _default_units(self, payroll: Payroll, contract: Contract) -> Optional[Decimal]:
        start = max(contract.start_date, payroll.period_start)
        end = payroll.period_end if contract.end_date is None else min(contract.end_date, payroll.period_end)
        return default_worked_units(contract, start, end)

    def _add_employee(self, payroll: Payroll, contract: Contract) -> PayrollEmployee:
        payroll_employee_id = self.db.create_payroll_employee(
            payroll_id=payroll.id,
            employee_id=contract.employee_id,
            contract_id=contract.id,
            days_in_period=days_in_period(payroll.period_start, payroll.period_end),
            days_worked=active_days(contract, payroll.period_start, payroll.period_end),
            worked_units=self._default_units(payroll, contract),
            has_fgts=contract.has_fgts,
        )
        return self.db.get_payroll_employee(payroll_employee_id)

    def _rebuild_employee(self, payroll: Payroll, payroll_employee: PayrollEmployee) -> None:
        """Replace an employee's automatic items; totals are left to the caller."""
        contract = self.db.get_contract(payroll_employee.contract_id) if payroll_employee.contract_id else None
        self.db.delete_payroll_items(payroll_employee.id, AUTOMATIC_SOURCES)
        if contract is None:
            return

        payroll_employee = self.db.get_payroll_employee(payroll_employee.id)
        manual_items = self.db.list_payroll_items(payroll_employee.id)
        add_items(
            self.db,
            payroll_employee.id,
            self._regular_items(payroll, payroll_employee, contract, manual_items),
        )

        if payroll.thirteenth_percentage is not None:
            self.thirteenth.apply_employee(
                payroll,
                payroll_employee,
                payroll.thirteenth_percentage,
                payroll.thirteenth_tax_option or TaxOption.NONE,
            )
        if payroll_employee.is_on_vacation:
            self.vacation.apply_employee(payroll, payroll_employee)

    def _regular_items(
        self,
        payroll: Payroll,
        payroll_employee: PayrollEmployee,
        contract: Contract,
        manual_items: list[PayrollItem],
    ) -> list[ItemDraft]:
        """Salary, contract benefits/discounts, loans, advance deduction and taxes."""
        drafts = []
        active = active_days(contract, payroll.period_start, payroll.period_end)
        salary = salary_amount(
            contract, payroll_employee.days_in_period, active, payroll_employee.worked_units
        )
        if salary > 0:
            drafts.append(
                salary_item(
                    contract, salary, payroll_employee.days_in_period, active, payroll_employee.worked_units
                )
            )

        for benefit in self.db.list_benefit_discounts(contract.id):
            amount = prorate(
                benefit,
                payroll.period_start,
                payroll.period_end,
                payroll_employee.days_in_period,
                payroll_employee.days_worked,
            )
            if amount > 0:
                drafts.append(
                    benefit_item(
                        benefit, amount, payroll_employee.days_worked, payroll_employee.days_in_period
                    )
                )

        for loan in self.loans.pending_loans(
            payroll_employee.employee_id, payroll.period_end, SALARY_LOAN_SOURCES
        ):
            draft = loan_item(loan)
            if draft is not None:
                drafts.append(draft)

        drafts.extend(self._advance_settlement(payroll, payroll_employee))

        overrides = manual_overrides(manual_items)
        drafts = [d for d in drafts if (d.source_type, d.reference_id) not in overrides]

        taxable_base = sum(
            d.amount for d in drafts if d.type == ItemType.CREDIT and d.is_taxable
        ) + sum(
            i.amount
            for i in manual_items
            if i.type == ItemType.CREDIT and i.is_taxable and i.source_type in REGULAR_SOURCES | {SourceType.MANUAL}
        )
        drafts.extend(
            d for d in self._tax_items(contract, taxable_base) if (d.source_type, d.reference_id) not in overrides
        )
        return drafts

    def _advance_settlement(self, payroll: Payroll, payroll_employee: PayrollEmployee) -> list[ItemDraft]:
        previous = self.db.get_previous_payroll_employee(
            payroll.company_id, payroll_employee.employee_id, payroll.period_start
        )
        if previous is None:
            return []
        previous_payroll = self.db.get_payroll(previous.payroll_id)
        following = find_next_payroll(self.db, previous_payroll)
        if following is None or following.id != payroll.id:
            return []
        return advance_deduction_items(previous)

    def _tax_items(self, contract: Contract, base: int) -> list[ItemDraft]:
        drafts = []
        social_security = 0
        if contract.has_inss:
            social_security = self.calculator.social_security(base)
            if social_security > 0:
                drafts.append(
                    ItemDraft(
                        description="Social security (INSS)",
                        type=ItemType.DEBIT,
                        category=ItemCategory.TAX,
                        amount=social_security,
                        source_type=SourceType.SOCIAL_SECURITY,
                        reference_id=contract.id,
                        calculation_basis=base,
                    )
                )
        if contract.has_irrf:
            income_tax = self.calculator.income_tax(base, social_security)
            if income_tax > 0:
                drafts.append(
                    ItemDraft(
                        description="Income tax (IRRF)",
                        type=ItemType.DEBIT,
                        category=ItemCategory.TAX,
                        amount=income_tax,
                        source_type=SourceType.INCOME_TAX,
                        reference_id=contract.id,
                        calculation_basis=base - social_security,
                        calculation_details=calculation_details(social_security=social_security),
                    )
                )
        return drafts

    def _cost_center_weights(self, payroll_employee: PayrollEmployee) -> list[tuple[int, Decimal]]:
        if payroll_employee.contract_id is None:
            return []
        return [
            (row.cost_center_id, row.percentage)
            for row in self.db.list_contract_cost_centers(payroll_employee.contract_id)
        ]

    def _record_repayments(self, view: PayrollView) -> dict[int, int]:
        """Add the payroll's loan installments to the loans' paid amounts."""
        deducted: dict[int, int] = {}
        for employee_view in view.employees:
            for item in employee_view.items:
                if item.source_type in LOAN_SOURCES and item.reference_id is not None:
                    deducted[item.reference_id] = deducted.get(item.reference_id, 0) + item.amount

        applied: dict[int, int] = {}
        for loan_id, amount in deducted.items():
            loan = self.db.get_loan(loan_id)
            if loan is None:
                continue
            repaid = min(amount, loan.remaining_amount)
            if repaid > 0:
                self.db.update_loan(loan_id, paid_amount=loan.paid_amount + repaid)
                applied[loan_id] = repaid
        return applied
