"""Domain model entities for payrollkit.

These are pure data classes representing business concepts, independent of
database schema. Relationships are plain identifiers; the persistence layer
materializes whatever a service needs before the service runs, so nothing
here navigates to a parent or child on its own.

All money fields are integers in minor currency units (cents).
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional


class ContractType(str, Enum):
    """How a contract's value is turned into salary."""

    MONTHLY = "monthly"
    HOURLY = "hourly"
    DAILY = "daily"


class BenefitKind(str, Enum):
    """Whether a contract item adds to or subtracts from pay."""

    BENEFIT = "benefit"
    DISCOUNT = "discount"


class Application(str, Enum):
    """Which kind of payment a benefit or discount applies to."""

    SALARY = "salary"
    THIRTEENTH = "thirteenth"
    VACATION = "vacation"
    BONUS = "bonus"
    COMMISSION = "commission"
    ALL = "all"


class CalculationContext(str, Enum):
    """The kind of calculation currently being run."""

    SALARY = "salary"
    THIRTEENTH = "thirteenth"
    VACATION = "vacation"
    BONUS = "bonus"
    COMMISSION = "commission"


class ItemType(str, Enum):
    """Sign of a payroll item."""

    CREDIT = "credit"
    DEBIT = "debit"


class ItemCategory(str, Enum):
    """Reporting category of a payroll item."""

    SALARY = "salary"
    BENEFIT = "benefit"
    DISCOUNT = "discount"
    LOAN = "loan"
    ADVANCE = "advance"
    TAX = "tax"
    THIRTEENTH = "thirteenth"
    THIRTEENTH_BENEFIT = "thirteenth_benefit"
    THIRTEENTH_DISCOUNT = "thirteenth_discount"
    THIRTEENTH_LOAN = "thirteenth_loan"
    THIRTEENTH_TAX = "thirteenth_tax"
    VACATION = "vacation"
    VACATION_BENEFIT = "vacation_benefit"
    VACATION_DISCOUNT = "vacation_discount"
    VACATION_LOAN = "vacation_loan"
    VACATION_TAX = "vacation_tax"
    VACATION_ADVANCE = "vacation_advance"
    VACATION_ADVANCE_DEDUCTION = "vacation_advance_deduction"
    VACATION_ADVANCE_TAX_COMPENSATION = "vacation_advance_tax_compensation"
    MANUAL = "manual"


class SourceType(str, Enum):
    """What produced a payroll item.

    Recalculation and the special-payment calculators select the items they
    own by source type.
    """

    SALARY = "salary"
    CONTRACT_BENEFIT = "contract_benefit"
    CONTRACT_DISCOUNT = "contract_discount"
    LOAN = "loan"
    SOCIAL_SECURITY = "social_security"
    INCOME_TAX = "income_tax"
    VACATION_ADVANCE_DEDUCTION = "vacation_advance_deduction"
    VACATION_ADVANCE_SOCIAL_SECURITY_COMPENSATION = "vacation_advance_social_security_compensation"
    VACATION_ADVANCE_INCOME_TAX_COMPENSATION = "vacation_advance_income_tax_compensation"
    THIRTEENTH_SALARY = "thirteenth_salary"
    THIRTEENTH_BENEFIT = "thirteenth_benefit"
    THIRTEENTH_LOAN = "thirteenth_loan"
    THIRTEENTH_SOCIAL_SECURITY = "thirteenth_social_security"
    THIRTEENTH_INCOME_TAX = "thirteenth_income_tax"
    VACATION_BONUS = "vacation_bonus"
    VACATION_BENEFIT = "vacation_benefit"
    VACATION_LOAN = "vacation_loan"
    VACATION_SOCIAL_SECURITY = "vacation_social_security"
    VACATION_ADVANCE_SALARY = "vacation_advance_salary"
    VACATION_ADVANCE_SOCIAL_SECURITY = "vacation_advance_social_security"
    VACATION_ADVANCE_INCOME_TAX = "vacation_advance_income_tax"
    MANUAL = "manual"


REGULAR_SOURCES = frozenset(
    {
        SourceType.SALARY,
        SourceType.CONTRACT_BENEFIT,
        SourceType.CONTRACT_DISCOUNT,
        SourceType.LOAN,
        SourceType.SOCIAL_SECURITY,
        SourceType.INCOME_TAX,
        SourceType.VACATION_ADVANCE_DEDUCTION,
        SourceType.VACATION_ADVANCE_SOCIAL_SECURITY_COMPENSATION,
        SourceType.VACATION_ADVANCE_INCOME_TAX_COMPENSATION,
    }
)

# Items the following payroll carries for a vacation advance paid the period before
VACATION_ADVANCE_SETTLEMENT_SOURCES = frozenset(
    {
        SourceType.VACATION_ADVANCE_DEDUCTION,
        SourceType.VACATION_ADVANCE_SOCIAL_SECURITY_COMPENSATION,
        SourceType.VACATION_ADVANCE_INCOME_TAX_COMPENSATION,
    }
)

THIRTEENTH_SOURCES = frozenset(
    {
        SourceType.THIRTEENTH_SALARY,
        SourceType.THIRTEENTH_BENEFIT,
        SourceType.THIRTEENTH_LOAN,
        SourceType.THIRTEENTH_SOCIAL_SECURITY,
        SourceType.THIRTEENTH_INCOME_TAX,
    }
)

VACATION_SOURCES = frozenset(
    {
        SourceType.VACATION_BONUS,
        SourceType.VACATION_BENEFIT,
        SourceType.VACATION_LOAN,
        SourceType.VACATION_SOCIAL_SECURITY,
        SourceType.VACATION_ADVANCE_SALARY,
        SourceType.VACATION_ADVANCE_SOCIAL_SECURITY,
        SourceType.VACATION_ADVANCE_INCOME_TAX,
    }
)

LOAN_SOURCES = frozenset(
    {SourceType.LOAN, SourceType.THIRTEENTH_LOAN, SourceType.VACATION_LOAN}
)

SOCIAL_SECURITY_SOURCES = frozenset(
    {
        SourceType.SOCIAL_SECURITY,
        SourceType.THIRTEENTH_SOCIAL_SECURITY,
        SourceType.VACATION_SOCIAL_SECURITY,
        SourceType.VACATION_ADVANCE_SOCIAL_SECURITY,
    }
)


class TaxOption(str, Enum):
    """Tax withholding mode for the thirteenth salary."""

    NONE = "none"
    PROPORTIONAL = "proportional"
    FULL = "full"


class DiscountSource(str, Enum):
    """Which payments a loan installment is deducted from."""

    SALARY = "salary"
    THIRTEENTH = "thirteenth"
    VACATION = "vacation"
    ALL = "all"


class TransactionType(str, Enum):
    """Direction of a financial transaction."""

    OUTFLOW = "outflow"
    INFLOW = "inflow"


@dataclass(frozen=True)
class Company:
    """Tenant owning every other record."""

    id: int
    name: str
    created_at: datetime


@dataclass(frozen=True)
class Account:
    """Bank account a payroll is paid from."""

    id: int
    company_id: int
    name: str
    bank_name: str
    created_at: datetime


@dataclass(frozen=True)
class CostCenter:
    """Cost center domain entity."""

    id: int
    company_id: int
    name: str
    is_active: bool


@dataclass(frozen=True)
class Employee:
    """Employee domain entity."""

    id: int
    company_id: int
    name: str
    is_active: bool


@dataclass(frozen=True)
class Contract:
    """Employment contract of one employee."""

    id: int
    employee_id: int
    type: ContractType
    value: int
    is_payroll: bool
    has_inss: bool
    has_irrf: bool
    has_fgts: bool
    start_date: date
    end_date: Optional[date]
    is_active: bool
    has_thirteenth_salary: bool = True


@dataclass(frozen=True)
class BenefitDiscount:
    """Recurring benefit or discount attached to a contract."""

    id: int
    contract_id: int
    description: str
    kind: BenefitKind
    application: Application
    amount: int
    month: Optional[int] = None
    is_proportional: bool = True
    has_taxes: bool = False


@dataclass(frozen=True)
class Distribution:
    """Share of a source amount assigned to one cost center.

    The source is a contract (weights only, amount 0) or a financial
    transaction.
    """

    source_id: int
    cost_center_id: int
    percentage: Decimal
    amount: int = 0


@dataclass(frozen=True)
class LoanAdvance:
    """Loan or salary advance repaid through payroll deductions."""

    id: int
    employee_id: int
    amount: int
    installments: int
    discount_source: DiscountSource
    start_date: date
    is_approved: bool
    paid_amount: int = 0
    description: Optional[str] = None
    origin_payroll_id: Optional[int] = None

    @property
    def remaining_amount(self) -> int:
        return max(self.amount - self.paid_amount, 0)

    @property
    def is_fully_paid(self) -> bool:
        return self.paid_amount >= self.amount


@dataclass(frozen=True)
class Payroll:
    """Payroll period of one company."""

    id: int
    company_id: int
    period_start: date
    period_end: date
    total_gross_pay: int = 0
    total_deductions: int = 0
    total_net_pay: int = 0
    total_inss: int = 0
    total_fgts: int = 0
    is_closed: bool = False
    closed_at: Optional[datetime] = None
    closed_by: Optional[int] = None
    payment_date: Optional[date] = None
    account_id: Optional[int] = None
    inss_amount: Optional[int] = None
    fgts_amount: Optional[int] = None
    thirteenth_percentage: Optional[Decimal] = None
    thirteenth_tax_option: Optional[TaxOption] = None
    snapshot: Optional[str] = None
    posted_transaction_ids: tuple[int, ...] = ()
    generated_loan_ids: tuple[int, ...] = ()
    notes: Optional[str] = None
    created_by: Optional[int] = None


@dataclass(frozen=True)
class PayrollEmployee:
    """One employee's share of a payroll."""

    id: int
    payroll_id: int
    employee_id: int
    contract_id: Optional[int]
    days_in_period: int
    days_worked: int
    worked_units: Optional[Decimal] = None
    has_fgts: bool = False
    is_on_vacation: bool = False
    vacation_days: Optional[int] = None
    vacation_start_date: Optional[date] = None
    vacation_end_date: Optional[date] = None
    vacation_include_taxes: bool = False
    vacation_advance_next_month: bool = False
    vacation_advance_amount: Optional[int] = None
    vacation_advance_social_security: int = 0
    vacation_advance_income_tax: int = 0
    vacation_notes: Optional[str] = None
    total_gross_pay: int = 0
    total_deductions: int = 0
    total_net_pay: int = 0
    total_inss: int = 0
    total_fgts: int = 0


@dataclass(frozen=True)
class ItemDraft:
    """A payroll item that has not been stored yet."""

    description: str
    type: ItemType
    category: ItemCategory
    amount: int
    source_type: SourceType
    reference_id: Optional[int] = None
    calculation_basis: Optional[int] = None
    calculation_details: Optional[str] = None
    is_manual: bool = False
    is_taxable: bool = False
    installment_number: Optional[int] = None
    installment_total: Optional[int] = None


@dataclass(frozen=True)
class PayrollItem:
    """Single credit or debit line of a payroll employee."""

    id: int
    payroll_employee_id: int
    description: str
    type: ItemType
    category: ItemCategory
    amount: int
    source_type: SourceType
    reference_id: Optional[int] = None
    calculation_basis: Optional[int] = None
    calculation_details: Optional[str] = None
    is_manual: bool = False
    is_taxable: bool = False
    installment_number: Optional[int] = None
    installment_total: Optional[int] = None

    def content(self) -> tuple:
        """Everything but the identity fields, for comparing item sets."""
        return (
            self.description,
            self.type,
            self.category,
            self.amount,
            self.source_type,
            self.reference_id,
            self.calculation_basis,
            self.calculation_details,
            self.is_manual,
            self.is_taxable,
            self.installment_number,
            self.installment_total,
        )


@dataclass(frozen=True)
class FinancialTransaction:
    """Money movement recorded by the transaction poster."""

    id: int
    company_id: int
    account_id: int
    description: str
    type: TransactionType
    amount: int
    transaction_date: date
    origin_payroll_id: Optional[int] = None
    reversal_of_id: Optional[int] = None
    distributions: tuple[Distribution, ...] = ()


@dataclass(frozen=True)
class PayrollEmployeeView:
    """A payroll employee together with its items."""

    payroll_employee: PayrollEmployee
    employee_name: str
    items: tuple[PayrollItem, ...] = ()


@dataclass(frozen=True)
class PayrollView:
    """Aggregate returned by every payroll operation."""

    payroll: Payroll
    employees: tuple[PayrollEmployeeView, ...] = field(default_factory=tuple)

    def employee(self, payroll_employee_id: int) -> Optional[PayrollEmployeeView]:
        for view in self.employees:
            if view.payroll_employee.id == payroll_employee_id:
                return view
        return None
