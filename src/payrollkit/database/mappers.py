"""Mapper functions to convert between domain models and SQLAlchemy models.

Enum-valued columns are stored as their string values and id lists as JSON
text; this layer turns them back into domain types.
"""

import json
from decimal import Decimal
from typing import Optional

from payrollkit.domain import entities as domain
from payrollkit.database.models import (
    Company as ORMCompany,
    Account as ORMAccount,
    CostCenter as ORMCostCenter,
    Employee as ORMEmployee,
    Contract as ORMContract,
    ContractBenefitDiscount as ORMBenefitDiscount,
    ContractCostCenter as ORMContractCostCenter,
    LoanAdvance as ORMLoanAdvance,
    Payroll as ORMPayroll,
    PayrollEmployee as ORMPayrollEmployee,
    PayrollItem as ORMPayrollItem,
    FinancialTransaction as ORMFinancialTransaction,
    TransactionCostCenter as ORMTransactionCostCenter,
)


def ids_to_text(ids: tuple[int, ...]) -> Optional[str]:
    """Serialize an id tuple for a JSON text column."""
    if not ids:
        return None
    return json.dumps(list(ids))


def text_to_ids(text: Optional[str]) -> tuple[int, ...]:
    """Parse a JSON text column into an id tuple."""
    if not text:
        return ()
    return tuple(int(i) for i in json.loads(text))


def _decimal(value) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(value))


def company_to_domain(orm_company: ORMCompany) -> domain.Company:
    """Convert SQLAlchemy Company model to domain Company entity."""
    return domain.Company(
        id=orm_company.id,
        name=orm_company.name,
        created_at=orm_company.created_at,
    )


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        company_id=orm_account.company_id,
        name=orm_account.name,
        bank_name=orm_account.bank_name,
        created_at=orm_account.created_at,
    )


def cost_center_to_domain(orm_cost_center: ORMCostCenter) -> domain.CostCenter:
    """Convert SQLAlchemy CostCenter model to domain CostCenter entity."""
    return domain.CostCenter(
        id=orm_cost_center.id,
        company_id=orm_cost_center.company_id,
        name=orm_cost_center.name,
        is_active=orm_cost_center.is_active,
    )


def employee_to_domain(orm_employee: ORMEmployee) -> domain.Employee:
    """Convert SQLAlchemy Employee model to domain Employee entity."""
    return domain.Employee(
        id=orm_employee.id,
        company_id=orm_employee.company_id,
        name=orm_employee.name,
        is_active=orm_employee.is_active,
    )


def contract_to_domain(orm_contract: ORMContract) -> domain.Contract:
    """Convert SQLAlchemy Contract model to domain Contract entity."""
    return domain.Contract(
        id=orm_contract.id,
        employee_id=orm_contract.employee_id,
        type=domain.ContractType(orm_contract.type),
        value=orm_contract.value,
        is_payroll=orm_contract.is_payroll,
        has_inss=orm_contract.has_inss,
        has_irrf=orm_contract.has_irrf,
        has_fgts=orm_contract.has_fgts,
        start_date=orm_contract.start_date,
        end_date=orm_contract.end_date,
        is_active=orm_contract.is_active,
        has_thirteenth_salary=orm_contract.has_thirteenth_salary,
    )


def benefit_discount_to_domain(orm_item: ORMBenefitDiscount) -> domain.BenefitDiscount:
    """Convert SQLAlchemy ContractBenefitDiscount model to domain BenefitDiscount."""
    return domain.BenefitDiscount(
        id=orm_item.id,
        contract_id=orm_item.contract_id,
        description=orm_item.description,
        kind=domain.BenefitKind(orm_item.kind),
        application=domain.Application(orm_item.application),
        amount=orm_item.amount,
        month=orm_item.month,
        is_proportional=orm_item.is_proportional,
        has_taxes=orm_item.has_taxes,
    )


def contract_cost_center_to_domain(orm_row: ORMContractCostCenter) -> domain.Distribution:
    """Convert a contract cost center weight to a domain Distribution."""
    return domain.Distribution(
        source_id=orm_row.contract_id,
        cost_center_id=orm_row.cost_center_id,
        percentage=_decimal(orm_row.percentage),
    )


def loan_to_domain(orm_loan: ORMLoanAdvance) -> domain.LoanAdvance:
    """Convert SQLAlchemy LoanAdvance model to domain LoanAdvance entity."""
    return domain.LoanAdvance(
        id=orm_loan.id,
        employee_id=orm_loan.employee_id,
        amount=orm_loan.amount,
        installments=orm_loan.installments,
        discount_source=domain.DiscountSource(orm_loan.discount_source),
        start_date=orm_loan.start_date,
        is_approved=orm_loan.is_approved,
        paid_amount=orm_loan.paid_amount,
        description=orm_loan.description,
        origin_payroll_id=orm_loan.origin_payroll_id,
    )


def payroll_to_domain(orm_payroll: ORMPayroll) -> domain.Payroll:
    """Convert SQLAlchemy Payroll model to domain Payroll entity."""
    tax_option = orm_payroll.thirteenth_tax_option
    return domain.Payroll(
        id=orm_payroll.id,
        company_id=orm_payroll.company_id,
        period_start=orm_payroll.period_start,
        period_end=orm_payroll.period_end,
        total_gross_pay=orm_payroll.total_gross_pay,
        total_deductions=orm_payroll.total_deductions,
        total_net_pay=orm_payroll.total_net_pay,
        total_inss=orm_payroll.total_inss,
        total_fgts=orm_payroll.total_fgts,
        is_closed=orm_payroll.is_closed,
        closed_at=orm_payroll.closed_at,
        closed_by=orm_payroll.closed_by,
        payment_date=orm_payroll.payment_date,
        account_id=orm_payroll.account_id,
        inss_amount=orm_payroll.inss_amount,
        fgts_amount=orm_payroll.fgts_amount,
        thirteenth_percentage=_decimal(orm_payroll.thirteenth_percentage),
        thirteenth_tax_option=domain.TaxOption(tax_option) if tax_option else None,
        snapshot=orm_payroll.snapshot,
        posted_transaction_ids=text_to_ids(orm_payroll.posted_transaction_ids),
        generated_loan_ids=text_to_ids(orm_payroll.generated_loan_ids),
        notes=orm_payroll.notes,
        created_by=orm_payroll.created_by,
    )


def payroll_employee_to_domain(orm_pe: ORMPayrollEmployee) -> domain.PayrollEmployee:
    """Convert SQLAlchemy PayrollEmployee model to domain PayrollEmployee entity."""
    return domain.PayrollEmployee(
        id=orm_pe.id,
        payroll_id=orm_pe.payroll_id,
        employee_id=orm_pe.employee_id,
        contract_id=orm_pe.contract_id,
        days_in_period=orm_pe.days_in_period,
        days_worked=orm_pe.days_worked,
        worked_units=_decimal(orm_pe.worked_units),
        has_fgts=orm_pe.has_fgts,
        is_on_vacation=orm_pe.is_on_vacation,
        vacation_days=orm_pe.vacation_days,
        vacation_start_date=orm_pe.vacation_start_date,
        vacation_end_date=orm_pe.vacation_end_date,
        vacation_include_taxes=orm_pe.vacation_include_taxes,
        vacation_advance_next_month=orm_pe.vacation_advance_next_month,
        vacation_advance_amount=orm_pe.vacation_advance_amount,
        vacation_advance_social_security=orm_pe.vacation_advance_social_security or 0,
        vacation_advance_income_tax=orm_pe.vacation_advance_income_tax or 0,
        vacation_notes=orm_pe.vacation_notes,
        total_gross_pay=orm_pe.total_gross_pay,
        total_deductions=orm_pe.total_deductions,
        total_net_pay=orm_pe.total_net_pay,
        total_inss=orm_pe.total_inss,
        total_fgts=orm_pe.total_fgts,
    )


def payroll_item_to_domain(orm_item: ORMPayrollItem) -> domain.PayrollItem:
    """Convert SQLAlchemy PayrollItem model to domain PayrollItem entity."""
    return domain.PayrollItem(
        id=orm_item.id,
        payroll_employee_id=orm_item.payroll_employee_id,
        description=orm_item.description,
        type=domain.ItemType(orm_item.type),
        category=domain.ItemCategory(orm_item.category),
        amount=orm_item.amount,
        source_type=domain.SourceType(orm_item.source_type),
        reference_id=orm_item.reference_id,
        calculation_basis=orm_item.calculation_basis,
        calculation_details=orm_item.calculation_details,
        is_manual=orm_item.is_manual,
        is_taxable=orm_item.is_taxable,
        installment_number=orm_item.installment_number,
        installment_total=orm_item.installment_total,
    )


def transaction_cost_center_to_domain(orm_row: ORMTransactionCostCenter) -> domain.Distribution:
    """Convert a transaction cost center row to a domain Distribution."""
    return domain.Distribution(
        source_id=orm_row.transaction_id,
        cost_center_id=orm_row.cost_center_id,
        percentage=_decimal(orm_row.percentage),
        amount=orm_row.amount,
    )


def transaction_to_domain(orm_transaction: ORMFinancialTransaction) -> domain.FinancialTransaction:
    """Convert SQLAlchemy FinancialTransaction model to domain entity."""
    return domain.FinancialTransaction(
        id=orm_transaction.id,
        company_id=orm_transaction.company_id,
        account_id=orm_transaction.account_id,
        description=orm_transaction.description,
        type=domain.TransactionType(orm_transaction.type),
        amount=orm_transaction.amount,
        transaction_date=orm_transaction.transaction_date,
        origin_payroll_id=orm_transaction.origin_payroll_id,
        reversal_of_id=orm_transaction.reversal_of_id,
        distributions=tuple(
            transaction_cost_center_to_domain(row) for row in orm_transaction.distributions
        ),
    )
