"""Shared pytest fixtures for payrollkit tests."""

import tempfile
import os
from datetime import date
from decimal import Decimal
import pytest

from payrollkit.database.factories import create_sqlite_database
from payrollkit.domain.company import CompanyService
from payrollkit.domain.contract import ContractService
from payrollkit.domain.cost_center import CostCenterService
from payrollkit.domain.employee import EmployeeService
from payrollkit.domain.entities import ContractType
from payrollkit.domain.ledger import LedgerService
from payrollkit.domain.loan import LoanService
from payrollkit.domain.payroll import PayrollService
from payrollkit.domain.taxes import TaxCalculator, TaxTables
from payrollkit.domain.thirteenth import ThirteenthSalaryService
from payrollkit.domain.vacation import VacationService
from payrollkit.logging_config import reset_logging

JUNE_START = date(2024, 6, 1)
JUNE_END = date(2024, 6, 30)
JULY_START = date(2024, 7, 1)
JULY_END = date(2024, 7, 31)

TAX_TABLE_DATA = {
    "employer_fund_rate": Decimal("0.08"),
    "social_security": [
        {"upper_limit": 100000, "rate": Decimal("0.075")},
        {"upper_limit": 300000, "rate": Decimal("0.09")},
        {"upper_limit": 600000, "rate": Decimal("0.14")},
    ],
    "income_tax": [
        {"upper_limit": 200000, "rate": 0},
        {"rate": Decimal("0.15"), "deduction": 30000},
    ],
}


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture(autouse=True)
def clean_logging():
    """Drop handlers installed by CLI invocations between tests."""
    yield
    reset_logging()


@pytest.fixture
def calculator():
    """Tax calculator with a small progressive table."""
    return TaxCalculator(TaxTables.from_mapping(TAX_TABLE_DATA))


@pytest.fixture
def company_service(temp_db):
    return CompanyService(temp_db)


@pytest.fixture
def cost_center_service(temp_db):
    return CostCenterService(temp_db)


@pytest.fixture
def employee_service(temp_db):
    return EmployeeService(temp_db)


@pytest.fixture
def contract_service(temp_db):
    return ContractService(temp_db)


@pytest.fixture
def loan_service(temp_db):
    return LoanService(temp_db)


@pytest.fixture
def ledger_service(temp_db):
    return LedgerService(temp_db)


@pytest.fixture
def payroll_service(temp_db):
    """PayrollService without withholding tables."""
    return PayrollService(temp_db)


@pytest.fixture
def taxed_payroll_service(temp_db, calculator):
    """PayrollService using the test tax tables."""
    return PayrollService(temp_db, calculator=calculator)


@pytest.fixture
def thirteenth_service(temp_db):
    return ThirteenthSalaryService(temp_db)


@pytest.fixture
def vacation_service(temp_db):
    return VacationService(temp_db)


@pytest.fixture
def sample_company(company_service):
    """Create a sample company for testing."""
    company_id = company_service.create_company("Acme Ltda")
    return company_service.get_company(company_id)


@pytest.fixture
def sample_account(company_service, sample_company):
    """Create a bank account for the sample company."""
    account_id = company_service.create_account(sample_company.id, "Payroll", "First Bank")
    return company_service.get_account(account_id)


@pytest.fixture
def sample_cost_centers(cost_center_service, sample_company):
    """Create two cost centers: Operations and Administration."""
    operations = cost_center_service.create_cost_center(sample_company.id, "Operations")
    administration = cost_center_service.create_cost_center(sample_company.id, "Administration")
    return [cost_center_service.get_cost_center(operations), cost_center_service.get_cost_center(administration)]


@pytest.fixture
def sample_employee(employee_service, sample_company):
    """Create a sample employee."""
    employee_id = employee_service.create_employee(sample_company.id, "Maria Silva")
    return employee_service.get_employee(employee_id)


@pytest.fixture
def sample_contract(contract_service, sample_employee, sample_cost_centers):
    """Monthly contract of 5000.00 split 60/40 across the two cost centers."""
    contract_id = contract_service.create_contract(
        employee_id=sample_employee.id,
        type=ContractType.MONTHLY,
        value=500000,
        start_date=date(2024, 1, 1),
    )
    contract_service.set_cost_centers(
        contract_id,
        [(sample_cost_centers[0].id, Decimal("60")), (sample_cost_centers[1].id, Decimal("40"))],
    )
    return contract_service.get_contract(contract_id)


@pytest.fixture
def taxed_contract(contract_service, sample_employee, sample_cost_centers):
    """Monthly contract of 5000.00 with social security, income tax and employer fund."""
    contract_id = contract_service.create_contract(
        employee_id=sample_employee.id,
        type=ContractType.MONTHLY,
        value=500000,
        start_date=date(2024, 1, 1),
        has_inss=True,
        has_irrf=True,
        has_fgts=True,
    )
    contract_service.set_cost_centers(contract_id, [(sample_cost_centers[0].id, Decimal("100"))])
    return contract_service.get_contract(contract_id)


@pytest.fixture
def june_payroll(payroll_service, sample_company, sample_contract):
    """Open June 2024 payroll for the sample company."""
    return payroll_service.create(sample_company.id, JUNE_START, JUNE_END)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
