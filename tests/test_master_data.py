"""Tests for companies, cost centers, employees and contracts."""

from datetime import date
from decimal import Decimal

import pytest

from payrollkit.domain.entities import Application, BenefitKind, ContractType, TransactionType
from payrollkit.domain.errors import (
    ConflictError,
    NotFoundError,
    PercentagesNotNormalizedError,
    ValidationError,
)


class TestCompanyService:
    """Tests for CompanyService."""

    def test_create_company(self, company_service):
        company_id = company_service.create_company("  Acme Ltda ")
        company = company_service.get_company(company_id)
        assert company.name == "Acme Ltda"

    def test_duplicate_company(self, company_service, sample_company):
        with pytest.raises(ConflictError):
            company_service.create_company("Acme Ltda")

    def test_empty_name(self, company_service):
        with pytest.raises(ValidationError):
            company_service.create_company("   ")

    def test_list_companies_by_name(self, company_service):
        company_service.create_company("Zeta")
        company_service.create_company("Alpha")
        assert [c.name for c in company_service.list_companies()] == ["Alpha", "Zeta"]

    def test_accounts(self, company_service, sample_company, sample_account):
        assert sample_account.company_id == sample_company.id
        assert sample_account.bank_name == "First Bank"
        assert [a.id for a in company_service.list_accounts(sample_company.id)] == [sample_account.id]

        with pytest.raises(ConflictError):
            company_service.create_account(sample_company.id, "Payroll", "Other Bank")
        with pytest.raises(NotFoundError):
            company_service.create_account(9999, "Main", "Bank")


class TestCostCenterService:
    """Tests for CostCenterService."""

    def test_create_and_list(self, cost_center_service, sample_company, sample_cost_centers):
        names = [c.name for c in cost_center_service.list_cost_centers(sample_company.id)]
        assert names == ["Administration", "Operations"]

    def test_duplicate_name(self, cost_center_service, sample_company, sample_cost_centers):
        with pytest.raises(ConflictError):
            cost_center_service.create_cost_center(sample_company.id, "Operations")

    def test_deactivate(self, cost_center_service, sample_company, sample_cost_centers):
        operations = sample_cost_centers[0]
        cost_center_service.set_active(operations.id, False)

        active = cost_center_service.list_cost_centers(sample_company.id, active_only=True)
        assert [c.name for c in active] == ["Administration"]
        with pytest.raises(ValidationError):
            cost_center_service.require_cost_center(operations.id)

    def test_require_checks_company(self, cost_center_service, company_service, sample_cost_centers):
        other = company_service.create_company("Other")
        with pytest.raises(NotFoundError):
            cost_center_service.require_cost_center(sample_cost_centers[0].id, other)

    def test_record_transaction(self, cost_center_service, sample_company, sample_account, sample_cost_centers):
        transaction_id = cost_center_service.record_transaction(
            sample_company.id,
            sample_account.id,
            10001,
            "Office rent",
            TransactionType.OUTFLOW,
            [(sample_cost_centers[0].id, "50"), (sample_cost_centers[1].id, "50")],
            transaction_date=date(2024, 6, 5),
        )

        [transaction] = cost_center_service.list_transactions(sample_company.id)
        assert transaction.id == transaction_id
        assert transaction.origin_payroll_id is None
        assert [d.amount for d in transaction.distributions] == [5001, 5000]
        assert [d.percentage for d in transaction.distributions] == [Decimal("50"), Decimal("50")]

    def test_record_transaction_bad_split(
        self, cost_center_service, sample_company, sample_account, sample_cost_centers
    ):
        with pytest.raises(PercentagesNotNormalizedError):
            cost_center_service.record_transaction(
                sample_company.id,
                sample_account.id,
                10000,
                "Office rent",
                TransactionType.OUTFLOW,
                [(sample_cost_centers[0].id, "50"), (sample_cost_centers[1].id, "40")],
            )
        assert cost_center_service.list_transactions(sample_company.id) == []


class TestEmployeeService:
    """Tests for EmployeeService."""

    def test_create_employee(self, employee_service, sample_company):
        employee_id = employee_service.create_employee(sample_company.id, "João Souza")
        employee = employee_service.get_employee(employee_id)
        assert employee.name == "João Souza"
        assert employee.is_active is True

    def test_unknown_company(self, employee_service):
        with pytest.raises(NotFoundError):
            employee_service.create_employee(9999, "Nobody")

    def test_deactivate(self, employee_service, sample_company, sample_employee):
        employee_service.set_active(sample_employee.id, False)
        assert employee_service.list_employees(sample_company.id, active_only=True) == []
        assert len(employee_service.list_employees(sample_company.id)) == 1


class TestContractService:
    """Tests for ContractService."""

    def test_create_contract(self, contract_service, sample_contract, sample_employee):
        assert sample_contract.employee_id == sample_employee.id
        assert sample_contract.type == ContractType.MONTHLY
        assert sample_contract.value == 500000
        assert sample_contract.is_payroll is True
        assert sample_contract.has_thirteenth_salary is True
        assert sample_contract.has_inss is False

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"type": "weekly"},
            {"value": -1},
            {"end_date": date(2023, 12, 31)},
        ],
    )
    def test_invalid_contract(self, contract_service, sample_employee, kwargs):
        values = {"type": ContractType.MONTHLY, "value": 100000, "start_date": date(2024, 1, 1)}
        values.update(kwargs)
        with pytest.raises(ValidationError):
            contract_service.create_contract(sample_employee.id, **values)

    def test_unknown_employee(self, contract_service):
        with pytest.raises(NotFoundError):
            contract_service.create_contract(9999, ContractType.MONTHLY, 100000, date(2024, 1, 1))

    def test_end_contract(self, contract_service, sample_contract):
        contract_service.end_contract(sample_contract.id, date(2024, 6, 15))
        assert contract_service.get_contract(sample_contract.id).end_date == date(2024, 6, 15)

        with pytest.raises(ValidationError):
            contract_service.end_contract(sample_contract.id, date(2023, 1, 1))

    def test_cost_center_weights(self, contract_service, sample_contract, sample_cost_centers):
        weights = contract_service.list_cost_centers(sample_contract.id)
        assert [(w.cost_center_id, w.percentage) for w in weights] == [
            (sample_cost_centers[0].id, Decimal("60")),
            (sample_cost_centers[1].id, Decimal("40")),
        ]

    def test_replace_cost_center_weights(self, contract_service, sample_contract, sample_cost_centers):
        contract_service.set_cost_centers(sample_contract.id, [(sample_cost_centers[1].id, "100")])
        weights = contract_service.list_cost_centers(sample_contract.id)
        assert [(w.cost_center_id, w.percentage) for w in weights] == [(sample_cost_centers[1].id, Decimal("100"))]

    def test_cost_center_weights_must_sum_to_100(self, contract_service, sample_contract, sample_cost_centers):
        with pytest.raises(PercentagesNotNormalizedError):
            contract_service.set_cost_centers(
                sample_contract.id, [(sample_cost_centers[0].id, "70"), (sample_cost_centers[1].id, "40")]
            )

    def test_cost_center_weights_validation(
        self, contract_service, cost_center_service, company_service, sample_contract, sample_cost_centers
    ):
        operations, administration = sample_cost_centers
        with pytest.raises(ValidationError):
            contract_service.set_cost_centers(sample_contract.id, [])
        with pytest.raises(ValidationError):
            contract_service.set_cost_centers(sample_contract.id, [(operations.id, "50"), (operations.id, "50")])
        with pytest.raises(ValidationError):
            contract_service.set_cost_centers(sample_contract.id, [(operations.id, "33.333"), (administration.id, "66.667")])

        other = company_service.create_company("Other")
        foreign = cost_center_service.create_cost_center(other, "Foreign")
        with pytest.raises(NotFoundError):
            contract_service.set_cost_centers(sample_contract.id, [(foreign, "100")])

        # Failed updates leave the stored weights alone
        assert len(contract_service.list_cost_centers(sample_contract.id)) == 2

    def test_benefits(self, contract_service, sample_contract):
        benefit_id = contract_service.add_benefit_discount(
            sample_contract.id,
            "Meal allowance",
            BenefitKind.BENEFIT,
            10000,
            application=Application.ALL,
            month=12,
            is_proportional=False,
            has_taxes=True,
        )
        [benefit] = contract_service.list_benefit_discounts(sample_contract.id)
        assert benefit.id == benefit_id
        assert benefit.application == Application.ALL
        assert benefit.month == 12
        assert benefit.is_proportional is False
        assert benefit.has_taxes is True

        contract_service.remove_benefit_discount(benefit_id)
        assert contract_service.list_benefit_discounts(sample_contract.id) == []
        with pytest.raises(NotFoundError):
            contract_service.remove_benefit_discount(benefit_id)

    @pytest.mark.parametrize(
        "description,kind,amount,month",
        [
            ("", "benefit", 100, None),
            ("Fee", "perk", 100, None),
            ("Fee", "discount", -1, None),
            ("Fee", "discount", 100, 13),
        ],
    )
    def test_invalid_benefit(self, contract_service, sample_contract, description, kind, amount, month):
        with pytest.raises(ValidationError):
            contract_service.add_benefit_discount(sample_contract.id, description, kind, amount, month=month)
