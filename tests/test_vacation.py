"""Tests for vacations and the vacation advance."""

from datetime import date

import pytest

from payrollkit.domain.entities import (
    BenefitKind,
    Application,
    DiscountSource,
    ItemCategory,
    ItemType,
    SourceType,
    VACATION_ADVANCE_SETTLEMENT_SOURCES,
    VACATION_SOURCES,
)
from payrollkit.domain.errors import (
    PayrollClosedError,
    SpecialPaymentNotAppliedError,
    ValidationError,
)
from payrollkit.domain.vacation import VacationService, find_next_payroll

JUNE_START = date(2024, 6, 1)
JUNE_END = date(2024, 6, 30)
JULY_START = date(2024, 7, 1)
JULY_END = date(2024, 7, 31)
VACATION_START = date(2024, 6, 10)


def member(view):
    assert len(view.employees) == 1
    return view.employees[0]


def amounts(view, source_type):
    return [item.amount for item in member(view).items if item.source_type == source_type]


class TestApplyVacation:
    """Tests for applying a vacation."""

    def test_full_month(self, vacation_service, june_payroll):
        pe = member(june_payroll).payroll_employee
        view = vacation_service.apply(june_payroll.payroll.id, pe.id, 30, VACATION_START)

        assert amounts(view, SourceType.VACATION_BONUS) == [166667]
        assert view.payroll.total_gross_pay == 666667

        pe = member(view).payroll_employee
        assert pe.is_on_vacation is True
        assert pe.vacation_days == 30
        assert pe.vacation_start_date == VACATION_START
        assert pe.vacation_end_date == date(2024, 7, 9)
        assert pe.vacation_advance_amount is None

    def test_partial_vacation(self, vacation_service, june_payroll):
        pe = member(june_payroll).payroll_employee
        view = vacation_service.apply(june_payroll.payroll.id, pe.id, 10, VACATION_START, notes="Summer")

        assert amounts(view, SourceType.VACATION_BONUS) == [55556]
        assert member(view).payroll_employee.vacation_notes == "Summer"

    @pytest.mark.parametrize("days", [0, 31, -5])
    def test_days_out_of_range(self, vacation_service, june_payroll, days):
        pe = member(june_payroll).payroll_employee
        with pytest.raises(ValidationError):
            vacation_service.apply(june_payroll.payroll.id, pe.id, days, VACATION_START)

    def test_custom_entitlement(self, temp_db, june_payroll):
        service = VacationService(temp_db, entitlement_days=20)
        pe = member(june_payroll).payroll_employee

        view = service.apply(june_payroll.payroll.id, pe.id, 20, VACATION_START)
        assert amounts(view, SourceType.VACATION_BONUS) == [166667]
        with pytest.raises(ValidationError):
            service.apply(june_payroll.payroll.id, pe.id, 21, VACATION_START)

    def test_employee_from_other_payroll(self, vacation_service, payroll_service, sample_company, june_payroll):
        july = payroll_service.create(sample_company.id, JULY_START, JULY_END)
        other = member(july).payroll_employee
        with pytest.raises(ValidationError):
            vacation_service.apply(june_payroll.payroll.id, other.id, 10, VACATION_START)

    def test_vacation_benefits_and_loans(
        self, vacation_service, contract_service, loan_service, sample_contract, june_payroll
    ):
        contract_service.add_benefit_discount(
            sample_contract.id, "Travel allowance", BenefitKind.BENEFIT, 30000, application=Application.VACATION
        )
        loan_service.create_loan(
            sample_contract.employee_id, 12000, discount_source=DiscountSource.VACATION, start_date=JUNE_START
        )
        pe = member(june_payroll).payroll_employee

        view = vacation_service.apply(june_payroll.payroll.id, pe.id, 10, VACATION_START)
        assert amounts(view, SourceType.VACATION_BENEFIT) == [10000]
        assert amounts(view, SourceType.VACATION_LOAN) == [12000]

    def test_taxes(self, taxed_payroll_service, sample_company, taxed_contract):
        view = taxed_payroll_service.create(sample_company.id, JUNE_START, JUNE_END)
        pe = member(view).payroll_employee

        view = taxed_payroll_service.vacation.apply(
            view.payroll.id, pe.id, 10, VACATION_START, include_taxes=True, advance_next_month=True
        )
        assert amounts(view, SourceType.VACATION_SOCIAL_SECURITY) == [4167]
        assert amounts(view, SourceType.VACATION_ADVANCE_SOCIAL_SECURITY) == [13500]
        # Below the income tax threshold
        assert amounts(view, SourceType.VACATION_ADVANCE_INCOME_TAX) == []
        assert amounts(view, SourceType.SOCIAL_SECURITY) == [53500]

    def test_edited_bonus_is_the_tax_base(self, taxed_payroll_service, sample_company, taxed_contract):
        view = taxed_payroll_service.create(sample_company.id, JUNE_START, JUNE_END)
        pe = member(view).payroll_employee
        view = taxed_payroll_service.vacation.apply(view.payroll.id, pe.id, 10, VACATION_START, include_taxes=True)
        bonus = [i for i in member(view).items if i.source_type == SourceType.VACATION_BONUS][0]
        taxed_payroll_service.ledger.update_item(bonus.id, amount=100000)

        view = taxed_payroll_service.vacation.apply(view.payroll.id, pe.id, 10, VACATION_START, include_taxes=True)
        assert amounts(view, SourceType.VACATION_BONUS) == [100000]
        social_security = [
            i for i in member(view).items if i.source_type == SourceType.VACATION_SOCIAL_SECURITY
        ]
        assert [i.amount for i in social_security] == [7500]
        assert social_security[0].reference_id == bonus.id

    def test_recalculate_keeps_vacation(self, vacation_service, payroll_service, june_payroll):
        pe = member(june_payroll).payroll_employee
        applied = vacation_service.apply(june_payroll.payroll.id, pe.id, 10, VACATION_START)

        view = payroll_service.recalculate(june_payroll.payroll.id)
        assert amounts(view, SourceType.VACATION_BONUS) == [55556]
        assert view.payroll.total_net_pay == applied.payroll.total_net_pay


class TestRemoveVacation:
    """Tests for removing a vacation."""

    def test_remove(self, vacation_service, june_payroll):
        pe = member(june_payroll).payroll_employee
        vacation_service.apply(june_payroll.payroll.id, pe.id, 10, VACATION_START)

        view = vacation_service.remove(june_payroll.payroll.id, pe.id)
        assert [i for i in member(view).items if i.source_type in VACATION_SOURCES] == []
        assert member(view).payroll_employee.is_on_vacation is False
        assert view.payroll.total_gross_pay == 500000

    def test_remove_drops_edited_items(self, vacation_service, ledger_service, june_payroll):
        pe = member(june_payroll).payroll_employee
        view = vacation_service.apply(june_payroll.payroll.id, pe.id, 10, VACATION_START)
        bonus = [i for i in member(view).items if i.source_type == SourceType.VACATION_BONUS][0]
        ledger_service.update_item(bonus.id, amount=60000)

        view = vacation_service.remove(june_payroll.payroll.id, pe.id)
        assert [i for i in member(view).items if i.source_type in VACATION_SOURCES] == []
        assert view.payroll.total_gross_pay == 500000

    def test_remove_without_vacation(self, vacation_service, june_payroll):
        pe = member(june_payroll).payroll_employee
        with pytest.raises(SpecialPaymentNotAppliedError):
            vacation_service.remove(june_payroll.payroll.id, pe.id)


class TestVacationAdvance:
    """Tests for paying vacation salary in advance."""

    def test_advance_is_paid_now(self, vacation_service, june_payroll):
        pe = member(june_payroll).payroll_employee
        view = vacation_service.apply(
            june_payroll.payroll.id, pe.id, 10, VACATION_START, advance_next_month=True
        )

        assert amounts(view, SourceType.VACATION_ADVANCE_SALARY) == [166667]
        assert member(view).payroll_employee.vacation_advance_amount == 166667
        assert view.payroll.total_gross_pay == 500000 + 55556 + 166667

    def test_next_payroll_created_later_deducts_advance(
        self, vacation_service, payroll_service, sample_company, june_payroll
    ):
        pe = member(june_payroll).payroll_employee
        vacation_service.apply(june_payroll.payroll.id, pe.id, 10, VACATION_START, advance_next_month=True)

        july = payroll_service.create(sample_company.id, JULY_START, JULY_END)
        deduction = [
            i for i in member(july).items if i.source_type == SourceType.VACATION_ADVANCE_DEDUCTION
        ]
        assert len(deduction) == 1
        assert deduction[0].amount == 166667
        assert deduction[0].type == ItemType.DEBIT
        assert deduction[0].reference_id == pe.id
        assert july.payroll.total_net_pay == 500000 - 166667

    def test_existing_next_payroll_is_updated(
        self, vacation_service, payroll_service, sample_company, june_payroll
    ):
        july = payroll_service.create(sample_company.id, JULY_START, JULY_END)
        assert find_next_payroll(vacation_service.db, june_payroll.payroll).id == july.payroll.id
        pe = member(june_payroll).payroll_employee

        vacation_service.apply(june_payroll.payroll.id, pe.id, 10, VACATION_START, advance_next_month=True)
        view = payroll_service.get_view(july.payroll.id)
        assert amounts(view, SourceType.VACATION_ADVANCE_DEDUCTION) == [166667]
        assert view.payroll.total_deductions == 166667

        vacation_service.remove(june_payroll.payroll.id, pe.id)
        view = payroll_service.get_view(july.payroll.id)
        assert amounts(view, SourceType.VACATION_ADVANCE_DEDUCTION) == []
        assert view.payroll.total_deductions == 0

    def test_reapply_without_advance_clears_deduction(
        self, vacation_service, payroll_service, sample_company, june_payroll
    ):
        july = payroll_service.create(sample_company.id, JULY_START, JULY_END)
        pe = member(june_payroll).payroll_employee
        vacation_service.apply(june_payroll.payroll.id, pe.id, 10, VACATION_START, advance_next_month=True)

        vacation_service.apply(june_payroll.payroll.id, pe.id, 10, VACATION_START)
        view = payroll_service.get_view(july.payroll.id)
        assert amounts(view, SourceType.VACATION_ADVANCE_DEDUCTION) == []

    def test_closed_next_payroll_blocks_change(
        self, vacation_service, payroll_service, sample_company, june_payroll, sample_account
    ):
        july = payroll_service.create(sample_company.id, JULY_START, JULY_END)
        payroll_service.close(july.payroll.id, sample_account.id, date(2024, 8, 5))
        pe = member(june_payroll).payroll_employee

        with pytest.raises(PayrollClosedError):
            vacation_service.apply(
                june_payroll.payroll.id, pe.id, 10, VACATION_START, advance_next_month=True
            )
        view = payroll_service.get_view(june_payroll.payroll.id)
        assert member(view).payroll_employee.is_on_vacation is False
        assert amounts(view, SourceType.VACATION_ADVANCE_SALARY) == []

    def test_deduction_only_in_following_period(
        self, vacation_service, payroll_service, sample_company, june_payroll
    ):
        pe = member(june_payroll).payroll_employee
        vacation_service.apply(june_payroll.payroll.id, pe.id, 10, VACATION_START, advance_next_month=True)

        august = payroll_service.create(sample_company.id, date(2024, 8, 1), date(2024, 8, 31))
        assert amounts(august, SourceType.VACATION_ADVANCE_DEDUCTION) == []


class TestVacationAdvanceTaxes:
    """Taxes withheld on an advance are credited back in the next period."""

    def apply_advance(self, service, payroll_id, payroll_employee_id):
        return service.vacation.apply(
            payroll_id, payroll_employee_id, 30, VACATION_START, include_taxes=True, advance_next_month=True
        )

    def test_withholdings_are_stored(self, taxed_payroll_service, sample_company, taxed_contract):
        view = taxed_payroll_service.create(sample_company.id, JUNE_START, JUNE_END)
        view = self.apply_advance(taxed_payroll_service, view.payroll.id, member(view).payroll_employee.id)

        pe = member(view).payroll_employee
        assert pe.vacation_advance_amount == 500000
        assert pe.vacation_advance_social_security == 53500
        assert pe.vacation_advance_income_tax == 36975

        view = taxed_payroll_service.vacation.remove(view.payroll.id, pe.id)
        pe = member(view).payroll_employee
        assert pe.vacation_advance_social_security == 0
        assert pe.vacation_advance_income_tax == 0

    def test_next_payroll_credits_withholdings(self, taxed_payroll_service, sample_company, taxed_contract):
        june = taxed_payroll_service.create(sample_company.id, JUNE_START, JUNE_END)
        pe = member(june).payroll_employee
        self.apply_advance(taxed_payroll_service, june.payroll.id, pe.id)

        july = taxed_payroll_service.create(sample_company.id, JULY_START, JULY_END)
        assert amounts(july, SourceType.VACATION_ADVANCE_DEDUCTION) == [500000]
        assert amounts(july, SourceType.VACATION_ADVANCE_SOCIAL_SECURITY_COMPENSATION) == [53500]
        assert amounts(july, SourceType.VACATION_ADVANCE_INCOME_TAX_COMPENSATION) == [36975]
        compensation = [i for i in member(july).items if i.category == ItemCategory.VACATION_ADVANCE_TAX_COMPENSATION]
        assert {i.type for i in compensation} == {ItemType.CREDIT}
        assert {i.reference_id for i in compensation} == {pe.id}
        assert not any(i.is_taxable for i in compensation)
        # Regular withholding still runs on the full salary
        assert amounts(july, SourceType.SOCIAL_SECURITY) == [53500]

    def test_existing_next_payroll_is_synced(self, taxed_payroll_service, sample_company, taxed_contract):
        june = taxed_payroll_service.create(sample_company.id, JUNE_START, JUNE_END)
        july = taxed_payroll_service.create(sample_company.id, JULY_START, JULY_END)
        pe = member(june).payroll_employee

        self.apply_advance(taxed_payroll_service, june.payroll.id, pe.id)
        view = taxed_payroll_service.get_view(july.payroll.id)
        assert amounts(view, SourceType.VACATION_ADVANCE_SOCIAL_SECURITY_COMPENSATION) == [53500]
        assert amounts(view, SourceType.VACATION_ADVANCE_INCOME_TAX_COMPENSATION) == [36975]

        taxed_payroll_service.vacation.remove(june.payroll.id, pe.id)
        view = taxed_payroll_service.get_view(july.payroll.id)
        assert [i for i in member(view).items if i.source_type in VACATION_ADVANCE_SETTLEMENT_SOURCES] == []

    def test_edited_deduction(self, vacation_service, ledger_service, payroll_service, sample_company, june_payroll):
        july = payroll_service.create(sample_company.id, JULY_START, JULY_END)
        pe = member(june_payroll).payroll_employee
        vacation_service.apply(june_payroll.payroll.id, pe.id, 10, VACATION_START, advance_next_month=True)
        view = payroll_service.get_view(july.payroll.id)
        deduction = [i for i in member(view).items if i.source_type == SourceType.VACATION_ADVANCE_DEDUCTION][0]
        ledger_service.update_item(deduction.id, amount=100000)

        # Re-applying keeps the hand-edited deduction
        vacation_service.apply(june_payroll.payroll.id, pe.id, 10, VACATION_START, advance_next_month=True)
        view = payroll_service.get_view(july.payroll.id)
        assert amounts(view, SourceType.VACATION_ADVANCE_DEDUCTION) == [100000]

        vacation_service.remove(june_payroll.payroll.id, pe.id)
        view = payroll_service.get_view(july.payroll.id)
        assert amounts(view, SourceType.VACATION_ADVANCE_DEDUCTION) == []
        assert view.payroll.total_deductions == 0
