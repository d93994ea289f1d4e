"""Tests for the thirteenth salary."""

from datetime import date
from decimal import Decimal

import pytest

from payrollkit.domain.entities import (
    Application,
    BenefitKind,
    ContractType,
    DiscountSource,
    ItemType,
    SourceType,
    TaxOption,
    THIRTEENTH_SOURCES,
)
from payrollkit.domain.errors import (
    PayrollClosedError,
    SpecialPaymentNotAppliedError,
    ValidationError,
)
from payrollkit.domain.thirteenth import to_thirteenth_percentage

JUNE_START = date(2024, 6, 1)
JUNE_END = date(2024, 6, 30)


def thirteenth_items(view):
    return [item for e in view.employees for item in e.items if item.source_type in THIRTEENTH_SOURCES]


def by_source(view, source_type):
    return [item for e in view.employees for item in e.items if item.source_type == source_type]


class TestThirteenthPercentage:
    """Tests for percentage validation."""

    @pytest.mark.parametrize("value", ["50", 50, Decimal("33.33"), "100"])
    def test_valid(self, value):
        assert to_thirteenth_percentage(value) == Decimal(str(value)).quantize(Decimal("0.01"))

    @pytest.mark.parametrize("value", ["0", "-10", "100.01", "12.345", "half", "NaN"])
    def test_invalid(self, value):
        with pytest.raises(ValidationError):
            to_thirteenth_percentage(value)


class TestApplyThirteenth:
    """Tests for applying the thirteenth salary."""

    def test_half_salary(self, thirteenth_service, june_payroll):
        view = thirteenth_service.apply(june_payroll.payroll.id, 50)

        credits = by_source(view, SourceType.THIRTEENTH_SALARY)
        assert len(credits) == 1
        assert credits[0].amount == 250000
        assert credits[0].description == "Thirteenth salary (50.00%)"
        assert credits[0].type == ItemType.CREDIT
        assert view.payroll.thirteenth_percentage == Decimal("50.00")
        assert view.payroll.thirteenth_tax_option == TaxOption.NONE
        assert view.payroll.total_gross_pay == 750000

    def test_based_on_prorated_salary(
        self, payroll_service, thirteenth_service, contract_service, employee_service, sample_company
    ):
        employee_id = employee_service.create_employee(sample_company.id, "Late Joiner")
        contract_service.create_contract(employee_id, ContractType.MONTHLY, 300000, date(2024, 6, 11))
        view = payroll_service.create(sample_company.id, JUNE_START, JUNE_END)

        view = thirteenth_service.apply(view.payroll.id, 100)
        assert [c.amount for c in by_source(view, SourceType.THIRTEENTH_SALARY)] == [200000]

    def test_reapply_replaces(self, thirteenth_service, june_payroll):
        thirteenth_service.apply(june_payroll.payroll.id, 50)
        view = thirteenth_service.apply(june_payroll.payroll.id, 100)
        assert [c.amount for c in by_source(view, SourceType.THIRTEENTH_SALARY)] == [500000]

    def test_skips_contract_without_thirteenth(
        self, payroll_service, thirteenth_service, contract_service, employee_service, sample_company
    ):
        employee_id = employee_service.create_employee(sample_company.id, "Intern")
        contract_service.create_contract(
            employee_id, ContractType.MONTHLY, 150000, date(2024, 1, 1), has_thirteenth_salary=False
        )
        view = payroll_service.create(sample_company.id, JUNE_START, JUNE_END)

        view = thirteenth_service.apply(view.payroll.id, 100)
        assert thirteenth_items(view) == []
        assert view.payroll.total_gross_pay == 150000

    def test_invalid_tax_option(self, thirteenth_service, june_payroll):
        with pytest.raises(ValidationError):
            thirteenth_service.apply(june_payroll.payroll.id, 50, "everything")

    def test_benefits_for_thirteenth(self, thirteenth_service, contract_service, sample_contract, june_payroll):
        contract_service.add_benefit_discount(
            sample_contract.id, "Christmas basket", BenefitKind.BENEFIT, 20000, application=Application.THIRTEENTH
        )
        contract_service.add_benefit_discount(
            sample_contract.id, "Union fee", BenefitKind.DISCOUNT, 4000, application=Application.ALL
        )

        view = thirteenth_service.apply(june_payroll.payroll.id, 50)
        assert [b.amount for b in by_source(view, SourceType.THIRTEENTH_BENEFIT)] == [10000, 2000]

    def test_thirteenth_loans(self, thirteenth_service, loan_service, sample_contract, june_payroll):
        loan_service.create_loan(
            sample_contract.employee_id, 50000, discount_source=DiscountSource.THIRTEENTH, start_date=JUNE_START
        )
        view = thirteenth_service.apply(june_payroll.payroll.id, 50)

        loans = by_source(view, SourceType.THIRTEENTH_LOAN)
        assert [loan.amount for loan in loans] == [25000]
        assert loans[0].type == ItemType.DEBIT

    def test_full_taxes(self, taxed_payroll_service, sample_company, taxed_contract):
        view = taxed_payroll_service.create(sample_company.id, JUNE_START, JUNE_END)
        view = taxed_payroll_service.thirteenth.apply(view.payroll.id, 50, TaxOption.FULL)

        credit = by_source(view, SourceType.THIRTEENTH_SALARY)[0]
        social_security = by_source(view, SourceType.THIRTEENTH_SOCIAL_SECURITY)[0]
        income_tax = by_source(view, SourceType.THIRTEENTH_INCOME_TAX)[0]
        assert social_security.amount == 53500
        assert income_tax.amount == 36975
        assert social_security.reference_id == credit.id
        assert income_tax.reference_id == credit.id

    def test_proportional_taxes(self, taxed_payroll_service, sample_company, taxed_contract):
        view = taxed_payroll_service.create(sample_company.id, JUNE_START, JUNE_END)
        view = taxed_payroll_service.thirteenth.apply(view.payroll.id, 50, TaxOption.PROPORTIONAL)

        assert [i.amount for i in by_source(view, SourceType.THIRTEENTH_SOCIAL_SECURITY)] == [21000]
        assert [i.amount for i in by_source(view, SourceType.THIRTEENTH_INCOME_TAX)] == [4350]
        # Regular withholding is unchanged by the thirteenth salary
        assert [i.amount for i in by_source(view, SourceType.SOCIAL_SECURITY)] == [53500]

    def test_edited_credit_keeps_its_taxes(self, taxed_payroll_service, sample_company, taxed_contract):
        view = taxed_payroll_service.create(sample_company.id, JUNE_START, JUNE_END)
        view = taxed_payroll_service.thirteenth.apply(view.payroll.id, 50, TaxOption.PROPORTIONAL)
        credit = by_source(view, SourceType.THIRTEENTH_SALARY)[0]
        taxed_payroll_service.ledger.update_item(credit.id, amount=300000)

        view = taxed_payroll_service.thirteenth.apply(view.payroll.id, 50, TaxOption.PROPORTIONAL)
        assert [(c.id, c.amount) for c in by_source(view, SourceType.THIRTEENTH_SALARY)] == [(credit.id, 300000)]
        social_security = by_source(view, SourceType.THIRTEENTH_SOCIAL_SECURITY)
        income_tax = by_source(view, SourceType.THIRTEENTH_INCOME_TAX)
        assert [i.amount for i in social_security] == [25500]
        assert [i.amount for i in income_tax] == [11175]
        assert social_security[0].reference_id == credit.id
        assert income_tax[0].reference_id == credit.id

    def test_employer_fund_includes_thirteenth(self, taxed_payroll_service, sample_company, taxed_contract):
        view = taxed_payroll_service.create(sample_company.id, JUNE_START, JUNE_END)
        assert view.payroll.total_fgts == 40000

        view = taxed_payroll_service.thirteenth.apply(view.payroll.id, 50)
        assert view.payroll.total_fgts == 60000

    def test_closed_payroll(self, payroll_service, thirteenth_service, june_payroll, sample_account):
        payroll_service.close(june_payroll.payroll.id, sample_account.id, date(2024, 7, 5))
        with pytest.raises(PayrollClosedError):
            thirteenth_service.apply(june_payroll.payroll.id, 50)


class TestRemoveThirteenth:
    """Tests for removing the thirteenth salary."""

    def test_remove(self, thirteenth_service, june_payroll):
        thirteenth_service.apply(june_payroll.payroll.id, 50)
        view = thirteenth_service.remove(june_payroll.payroll.id)

        assert thirteenth_items(view) == []
        assert view.payroll.thirteenth_percentage is None
        assert view.payroll.total_gross_pay == 500000

    def test_remove_without_apply(self, thirteenth_service, june_payroll):
        with pytest.raises(SpecialPaymentNotAppliedError):
            thirteenth_service.remove(june_payroll.payroll.id)

    def test_remove_then_reapply_restores_items(
        self, thirteenth_service, contract_service, loan_service, sample_contract, june_payroll
    ):
        contract_service.add_benefit_discount(
            sample_contract.id, "Christmas basket", BenefitKind.BENEFIT, 20000, application=Application.THIRTEENTH
        )
        loan_service.create_loan(
            sample_contract.employee_id, 50000, discount_source=DiscountSource.THIRTEENTH, start_date=JUNE_START
        )
        payroll_id = june_payroll.payroll.id

        first = thirteenth_service.apply(payroll_id, 75)
        thirteenth_service.remove(payroll_id)
        second = thirteenth_service.apply(payroll_id, 75)

        assert thirteenth_items(first)
        assert sorted(i.content()[:6] for i in thirteenth_items(first)) == sorted(
            i.content()[:6] for i in thirteenth_items(second)
        )
        assert first.payroll.total_net_pay == second.payroll.total_net_pay

    def test_recalculate_after_remove_keeps_it_off(self, payroll_service, thirteenth_service, june_payroll):
        thirteenth_service.apply(june_payroll.payroll.id, 50)
        thirteenth_service.remove(june_payroll.payroll.id)

        view = payroll_service.recalculate(june_payroll.payroll.id)
        assert thirteenth_items(view) == []

    def test_remove_drops_edited_items(self, thirteenth_service, ledger_service, june_payroll):
        view = thirteenth_service.apply(june_payroll.payroll.id, 50)
        credit = by_source(view, SourceType.THIRTEENTH_SALARY)[0]
        ledger_service.update_item(credit.id, description="Thirteenth salary, agreed", amount=300000)

        view = thirteenth_service.remove(june_payroll.payroll.id)
        assert thirteenth_items(view) == []
        assert view.payroll.thirteenth_percentage is None
        assert view.payroll.total_gross_pay == 500000
