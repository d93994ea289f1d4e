"""SQLAlchemy models for payrollkit database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    UniqueConstraint,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class Company(Base):
    """Company (tenant) model."""

    __tablename__ = "companies"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    accounts = relationship("Account", back_populates="company", cascade="all, delete-orphan")
    cost_centers = relationship("CostCenter", back_populates="company", cascade="all, delete-orphan")
    employees = relationship("Employee", back_populates="company", cascade="all, delete-orphan")


class Account(Base):
    """Bank account model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    name = Column(String, nullable=False)
    bank_name = Column(String, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (UniqueConstraint("company_id", "name", name="uq_account_company_name"),)

    company = relationship("Company", back_populates="accounts")


class CostCenter(Base):
    """Cost center model."""

    __tablename__ = "cost_centers"

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    name = Column(String, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    __table_args__ = (UniqueConstraint("company_id", "name", name="uq_cost_center_company_name"),)

    company = relationship("Company", back_populates="cost_centers")


class Employee(Base):
    """Employee model."""

    __tablename__ = "employees"

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    name = Column(String, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    company = relationship("Company", back_populates="employees")
    contracts = relationship("Contract", back_populates="employee", cascade="all, delete-orphan")
    loans = relationship("LoanAdvance", back_populates="employee", cascade="all, delete-orphan")


class Contract(Base):
    """Employment contract model."""

    __tablename__ = "contracts"

    id = Column(Integer, primary_key=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False)
    type = Column(String, nullable=False)
    value = Column(Integer, nullable=False)
    is_payroll = Column(Boolean, default=True, nullable=False)
    has_inss = Column(Boolean, default=False, nullable=False)
    has_irrf = Column(Boolean, default=False, nullable=False)
    has_fgts = Column(Boolean, default=False, nullable=False)
    has_thirteenth_salary = Column(Boolean, default=True, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    employee = relationship("Employee", back_populates="contracts")
    benefit_discounts = relationship(
        "ContractBenefitDiscount", back_populates="contract", cascade="all, delete-orphan"
    )
    cost_centers = relationship(
        "ContractCostCenter", back_populates="contract", cascade="all, delete-orphan"
    )


class ContractBenefitDiscount(Base):
    """Recurring benefit or discount of a contract."""

    __tablename__ = "contract_benefit_discounts"

    id = Column(Integer, primary_key=True)
    contract_id = Column(Integer, ForeignKey("contracts.id"), nullable=False)
    description = Column(String, nullable=False)
    kind = Column(String, nullable=False)
    application = Column(String, nullable=False)
    amount = Column(Integer, nullable=False)
    month = Column(Integer, nullable=True)
    is_proportional = Column(Boolean, default=True, nullable=False)
    has_taxes = Column(Boolean, default=False, nullable=False)

    contract = relationship("Contract", back_populates="benefit_discounts")


class ContractCostCenter(Base):
    """Cost center weight of a contract."""

    __tablename__ = "contract_cost_centers"

    id = Column(Integer, primary_key=True)
    contract_id = Column(Integer, ForeignKey("contracts.id"), nullable=False)
    cost_center_id = Column(Integer, ForeignKey("cost_centers.id"), nullable=False)
    percentage = Column(Numeric(5, 2), nullable=False)

    __table_args__ = (
        UniqueConstraint("contract_id", "cost_center_id", name="uq_contract_cost_center"),
    )

    contract = relationship("Contract", back_populates="cost_centers")


class LoanAdvance(Base):
    """Loan or salary advance model."""

    __tablename__ = "loan_advances"

    id = Column(Integer, primary_key=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False)
    amount = Column(Integer, nullable=False)
    installments = Column(Integer, nullable=False)
    discount_source = Column(String, nullable=False)
    start_date = Column(Date, nullable=False)
    is_approved = Column(Boolean, default=False, nullable=False)
    paid_amount = Column(Integer, default=0, nullable=False)
    description = Column(String, nullable=True)
    origin_payroll_id = Column(Integer, ForeignKey("payrolls.id"), nullable=True)

    employee = relationship("Employee", back_populates="loans")


class Payroll(Base):
    """Payroll period model."""

    __tablename__ = "payrolls"

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)
    total_gross_pay = Column(Integer, default=0, nullable=False)
    total_deductions = Column(Integer, default=0, nullable=False)
    total_net_pay = Column(Integer, default=0, nullable=False)
    total_inss = Column(Integer, default=0, nullable=False)
    total_fgts = Column(Integer, default=0, nullable=False)
    is_closed = Column(Boolean, default=False, nullable=False)
    closed_at = Column(DateTime, nullable=True)
    closed_by = Column(Integer, nullable=True)
    payment_date = Column(Date, nullable=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    inss_amount = Column(Integer, nullable=True)
    fgts_amount = Column(Integer, nullable=True)
    thirteenth_percentage = Column(Numeric(5, 2), nullable=True)
    thirteenth_tax_option = Column(String, nullable=True)
    snapshot = Column(Text, nullable=True)
    # JSON lists of ids
    posted_transaction_ids = Column(Text, nullable=True)
    generated_loan_ids = Column(Text, nullable=True)
    notes = Column(String, nullable=True)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    employees = relationship(
        "PayrollEmployee", back_populates="payroll", cascade="all, delete-orphan"
    )


class PayrollEmployee(Base):
    """One employee's share of a payroll."""

    __tablename__ = "payroll_employees"

    id = Column(Integer, primary_key=True)
    payroll_id = Column(Integer, ForeignKey("payrolls.id"), nullable=False)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False)
    contract_id = Column(Integer, ForeignKey("contracts.id"), nullable=True)
    days_in_period = Column(Integer, nullable=False)
    days_worked = Column(Integer, nullable=False)
    worked_units = Column(Numeric(10, 2), nullable=True)
    has_fgts = Column(Boolean, default=False, nullable=False)
    is_on_vacation = Column(Boolean, default=False, nullable=False)
    vacation_days = Column(Integer, nullable=True)
    vacation_start_date = Column(Date, nullable=True)
    vacation_end_date = Column(Date, nullable=True)
    vacation_include_taxes = Column(Boolean, default=False, nullable=False)
    vacation_advance_next_month = Column(Boolean, default=False, nullable=False)
    vacation_advance_amount = Column(Integer, nullable=True)
    vacation_advance_social_security = Column(Integer, default=0, nullable=False)
    vacation_advance_income_tax = Column(Integer, default=0, nullable=False)
    vacation_notes = Column(String, nullable=True)
    total_gross_pay = Column(Integer, default=0, nullable=False)
    total_deductions = Column(Integer, default=0, nullable=False)
    total_net_pay = Column(Integer, default=0, nullable=False)
    total_inss = Column(Integer, default=0, nullable=False)
    total_fgts = Column(Integer, default=0, nullable=False)

    __table_args__ = (
        UniqueConstraint("payroll_id", "employee_id", name="uq_payroll_employee"),
    )

    payroll = relationship("Payroll", back_populates="employees")
    employee = relationship("Employee")
    items = relationship("PayrollItem", back_populates="payroll_employee", cascade="all, delete-orphan")


class PayrollItem(Base):
    """Credit or debit line of a payroll employee."""

    __tablename__ = "payroll_items"

    id = Column(Integer, primary_key=True)
    payroll_employee_id = Column(Integer, ForeignKey("payroll_employees.id"), nullable=False)
    description = Column(String, nullable=False)
    type = Column(String, nullable=False)
    category = Column(String, nullable=False)
    amount = Column(Integer, nullable=False)
    source_type = Column(String, nullable=False)
    reference_id = Column(Integer, nullable=True)
    calculation_basis = Column(Integer, nullable=True)
    calculation_details = Column(Text, nullable=True)
    is_manual = Column(Boolean, default=False, nullable=False)
    is_taxable = Column(Boolean, default=False, nullable=False)
    installment_number = Column(Integer, nullable=True)
    installment_total = Column(Integer, nullable=True)

    payroll_employee = relationship("PayrollEmployee", back_populates="items")


class FinancialTransaction(Base):
    """Money movement posted against an account."""

    __tablename__ = "financial_transactions"

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    description = Column(String, nullable=False)
    type = Column(String, nullable=False)
    amount = Column(Integer, nullable=False)
    transaction_date = Column(Date, nullable=False)
    origin_payroll_id = Column(Integer, nullable=True)
    reversal_of_id = Column(Integer, ForeignKey("financial_transactions.id"), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    distributions = relationship(
        "TransactionCostCenter",
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="TransactionCostCenter.id",
    )


class TransactionCostCenter(Base):
    """Cost center share of a financial transaction."""

    __tablename__ = "transaction_cost_centers"

    id = Column(Integer, primary_key=True)
    transaction_id = Column(Integer, ForeignKey("financial_transactions.id"), nullable=False)
    cost_center_id = Column(Integer, ForeignKey("cost_centers.id"), nullable=False)
    percentage = Column(Numeric(5, 2), nullable=False)
    amount = Column(Integer, nullable=False)

    transaction = relationship("FinancialTransaction", back_populates="distributions")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine: Engine = create_engine(database_url, echo=False)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
