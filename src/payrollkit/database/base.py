"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Optional, Sequence

# Import entities directly to avoid circular import through domain/__init__.py
from payrollkit.domain.entities import (
    Account,
    BenefitDiscount,
    Company,
    Contract,
    CostCenter,
    Distribution,
    Employee,
    FinancialTransaction,
    ItemDraft,
    LoanAdvance,
    Payroll,
    PayrollEmployee,
    PayrollItem,
    SourceType,
)


class Database(ABC):
    """Abstract database interface for payrollkit.

    Every write commits on its own unless it runs inside unit_of_work(), in
    which case the outermost scope commits or rolls back all of them.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def unit_of_work(self) -> AbstractContextManager["Database"]:
        """Open a transaction scope.

        Scopes belong to the calling thread. Nested scopes join the
        outermost one of the same thread. The outermost scope commits on
        success and rolls back when an exception escapes.
        """
        pass

    # Company operations
    @abstractmethod
    def create_company(self, name: str) -> int:
        """Create a company. Returns company ID."""
        pass

    @abstractmethod
    def get_company(self, company_id: int) -> Optional[Company]:
        """Get company by ID."""
        pass

    @abstractmethod
    def get_company_by_name(self, name: str) -> Optional[Company]:
        """Get company by name."""
        pass

    @abstractmethod
    def list_companies(self) -> list[Company]:
        """List all companies."""
        pass

    # Account operations
    @abstractmethod
    def create_account(self, company_id: int, name: str, bank_name: str) -> int:
        """Create a bank account. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def list_accounts(self, company_id: int) -> list[Account]:
        """List accounts of a company."""
        pass

    # Cost center operations
    @abstractmethod
    def create_cost_center(self, company_id: int, name: str) -> int:
        """Create a cost center. Returns cost center ID."""
        pass

    @abstractmethod
    def get_cost_center(self, cost_center_id: int) -> Optional[CostCenter]:
        """Get cost center by ID."""
        pass

    @abstractmethod
    def list_cost_centers(self, company_id: int, active_only: bool = False) -> list[CostCenter]:
        """List cost centers of a company."""
        pass

    @abstractmethod
    def update_cost_center(
        self, cost_center_id: int, name: Optional[str] = None, is_active: Optional[bool] = None
    ) -> None:
        """Rename or (de)activate a cost center."""
        pass

    # Employee operations
    @abstractmethod
    def create_employee(self, company_id: int, name: str) -> int:
        """Create an employee. Returns employee ID."""
        pass

    @abstractmethod
    def get_employee(self, employee_id: int) -> Optional[Employee]:
        """Get employee by ID."""
        pass

    @abstractmethod
    def list_employees(self, company_id: int, active_only: bool = False) -> list[Employee]:
        """List employees of a company."""
        pass

    @abstractmethod
    def update_employee(
        self, employee_id: int, name: Optional[str] = None, is_active: Optional[bool] = None
    ) -> None:
        """Rename or (de)activate an employee."""
        pass

    # Contract operations
    @abstractmethod
    def create_contract(
        self,
        employee_id: int,
        type: str,
        value: int,
        start_date: date,
        end_date: Optional[date] = None,
        is_payroll: bool = True,
        has_inss: bool = False,
        has_irrf: bool = False,
        has_fgts: bool = False,
        has_thirteenth_salary: bool = True,
    ) -> int:
        """Create a contract. Returns contract ID."""
        pass

    @abstractmethod
    def get_contract(self, contract_id: int) -> Optional[Contract]:
        """Get contract by ID."""
        pass

    @abstractmethod
    def list_contracts(self, employee_id: int) -> list[Contract]:
        """List contracts of an employee, newest first."""
        pass

    @abstractmethod
    def list_payroll_contracts(
        self, company_id: int, period_start: date, period_end: date
    ) -> list[Contract]:
        """List active payroll contracts of active employees that overlap a period.

        Ordered by employee name, then contract ID.
        """
        pass

    @abstractmethod
    def update_contract(self, contract_id: int, **changes: Any) -> None:
        """Update contract fields."""
        pass

    # Benefit/discount operations
    @abstractmethod
    def create_benefit_discount(
        self,
        contract_id: int,
        description: str,
        kind: str,
        application: str,
        amount: int,
        month: Optional[int] = None,
        is_proportional: bool = True,
        has_taxes: bool = False,
    ) -> int:
        """Attach a benefit or discount to a contract. Returns its ID."""
        pass

    @abstractmethod
    def get_benefit_discount(self, benefit_discount_id: int) -> Optional[BenefitDiscount]:
        """Get benefit/discount by ID."""
        pass

    @abstractmethod
    def list_benefit_discounts(self, contract_id: int) -> list[BenefitDiscount]:
        """List benefits and discounts of a contract in creation order."""
        pass

    @abstractmethod
    def delete_benefit_discount(self, benefit_discount_id: int) -> None:
        """Delete a benefit/discount."""
        pass

    # Contract cost center operations
    @abstractmethod
    def set_contract_cost_centers(
        self, contract_id: int, shares: Sequence[tuple[int, Decimal]]
    ) -> None:
        """Replace the cost center weights of a contract."""
        pass

    @abstractmethod
    def list_contract_cost_centers(self, contract_id: int) -> list[Distribution]:
        """List the cost center weights of a contract."""
        pass

    # Loan operations
    @abstractmethod
    def create_loan(
        self,
        employee_id: int,
        amount: int,
        installments: int,
        discount_source: str,
        start_date: date,
        is_approved: bool = False,
        description: Optional[str] = None,
        origin_payroll_id: Optional[int] = None,
    ) -> int:
        """Create a loan or advance. Returns loan ID."""
        pass

    @abstractmethod
    def get_loan(self, loan_id: int) -> Optional[LoanAdvance]:
        """Get loan by ID."""
        pass

    @abstractmethod
    def list_loans(self, employee_id: int) -> list[LoanAdvance]:
        """List loans of an employee by start date."""
        pass

    @abstractmethod
    def update_loan(self, loan_id: int, **changes: Any) -> None:
        """Update loan fields (paid_amount, is_approved)."""
        pass

    @abstractmethod
    def delete_loan(self, loan_id: int) -> None:
        """Delete a loan."""
        pass

    # Payroll operations
    @abstractmethod
    def create_payroll(
        self,
        company_id: int,
        period_start: date,
        period_end: date,
        created_by: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> int:
        """Create an empty payroll. Returns payroll ID."""
        pass

    @abstractmethod
    def get_payroll(self, payroll_id: int) -> Optional[Payroll]:
        """Get payroll by ID."""
        pass

    @abstractmethod
    def list_payrolls(self, company_id: int) -> list[Payroll]:
        """List payrolls of a company, most recent period first."""
        pass

    @abstractmethod
    def find_overlapping_payrolls(
        self,
        company_id: int,
        period_start: date,
        period_end: date,
        exclude_payroll_id: Optional[int] = None,
    ) -> list[Payroll]:
        """Payrolls of a company whose period intersects the given one."""
        pass

    @abstractmethod
    def get_latest_closed_payroll(self, company_id: int) -> Optional[Payroll]:
        """Closed payroll with the latest period end."""
        pass

    @abstractmethod
    def update_payroll(self, payroll_id: int, **changes: Any) -> None:
        """Update payroll fields."""
        pass

    @abstractmethod
    def delete_payroll(self, payroll_id: int) -> None:
        """Delete a payroll with its employees and items."""
        pass

    # Payroll employee operations
    @abstractmethod
    def create_payroll_employee(
        self,
        payroll_id: int,
        employee_id: int,
        contract_id: Optional[int],
        days_in_period: int,
        days_worked: int,
        worked_units: Optional[Decimal] = None,
        has_fgts: bool = False,
    ) -> int:
        """Add an employee to a payroll. Returns payroll employee ID."""
        pass

    @abstractmethod
    def get_payroll_employee(self, payroll_employee_id: int) -> Optional[PayrollEmployee]:
        """Get payroll employee by ID."""
        pass

    @abstractmethod
    def get_payroll_employee_by_employee(
        self, payroll_id: int, employee_id: int
    ) -> Optional[PayrollEmployee]:
        """Get the payroll employee of an employee in a payroll."""
        pass

    @abstractmethod
    def list_payroll_employees(self, payroll_id: int) -> list[PayrollEmployee]:
        """List payroll employees ordered by employee name."""
        pass

    @abstractmethod
    def get_previous_payroll_employee(
        self, company_id: int, employee_id: int, before: date
    ) -> Optional[PayrollEmployee]:
        """Payroll employee of the latest payroll ending before a date."""
        pass

    @abstractmethod
    def update_payroll_employee(self, payroll_employee_id: int, **changes: Any) -> None:
        """Update payroll employee fields."""
        pass

    @abstractmethod
    def delete_payroll_employee(self, payroll_employee_id: int) -> None:
        """Delete a payroll employee and its items."""
        pass

    # Payroll item operations
    @abstractmethod
    def add_payroll_item(self, payroll_employee_id: int, item: ItemDraft) -> int:
        """Store a payroll item. Returns item ID."""
        pass

    @abstractmethod
    def get_payroll_item(self, payroll_item_id: int) -> Optional[PayrollItem]:
        """Get payroll item by ID."""
        pass

    @abstractmethod
    def list_payroll_items(self, payroll_employee_id: int) -> list[PayrollItem]:
        """List items of a payroll employee in insertion order."""
        pass

    @abstractmethod
    def update_payroll_item(self, payroll_item_id: int, **changes: Any) -> None:
        """Update payroll item fields."""
        pass

    @abstractmethod
    def delete_payroll_item(self, payroll_item_id: int) -> None:
        """Delete a payroll item."""
        pass

    @abstractmethod
    def delete_payroll_items(
        self,
        payroll_employee_id: int,
        source_types: Iterable[SourceType],
        include_manual: bool = False,
    ) -> int:
        """Delete the items of the given sources. Returns the number deleted."""
        pass

    # Financial transaction operations
    @abstractmethod
    def create_transaction(
        self,
        company_id: int,
        account_id: int,
        description: str,
        type: str,
        amount: int,
        transaction_date: date,
        distributions: Sequence[Distribution] = (),
        origin_payroll_id: Optional[int] = None,
        reversal_of_id: Optional[int] = None,
    ) -> int:
        """Record a transaction with its cost center rows. Returns its ID."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[FinancialTransaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def list_transactions(
        self, company_id: int, origin_payroll_id: Optional[int] = None
    ) -> list[FinancialTransaction]:
        """List transactions of a company, optionally only a payroll's."""
        pass
