"""Contract domain service: contracts, benefits/discounts and cost center weights."""

from datetime import date
from typing import Optional, Sequence

from payrollkit.database.base import Database
from payrollkit.domain.allocation import to_percentage, validate_percentages
from payrollkit.domain.entities import (
    Application,
    BenefitDiscount,
    BenefitKind,
    Contract,
    ContractType,
    Distribution,
)
from payrollkit.domain.errors import NotFoundError, ValidationError, not_found
from payrollkit.domain.cost_center import CostCenterService


class ContractService:
    """Service for managing employment contracts."""

    def __init__(self, db: Database):
        """Initialize contract service.

        Args:
            db: Database instance
        """
        self.db = db
        self.cost_centers = CostCenterService(db)

    def create_contract(
        self,
        employee_id: int,
        type: ContractType,
        value: int,
        start_date: date,
        end_date: Optional[date] = None,
        is_payroll: bool = True,
        has_inss: bool = False,
        has_irrf: bool = False,
        has_fgts: bool = False,
        has_thirteenth_salary: bool = True,
    ) -> int:
        """Create a contract for an employee.

        Args:
            employee_id: Employee the contract belongs to
            type: monthly, hourly or daily
            value: Monthly salary, or rate per hour/day, in minor units
            start_date: First day of the contract
            end_date: Last day of the contract (open ended if None)
            is_payroll: Whether the contract is paid through payroll
            has_inss: Withhold social security
            has_irrf: Withhold income tax
            has_fgts: Employer fund levy applies
            has_thirteenth_salary: Receives the thirteenth salary

        Returns:
            Contract ID

        Raises:
            ValidationError: If type, value or dates are invalid
            NotFoundError: If the employee does not exist
        """
        try:
            type = ContractType(type)
        except ValueError as e:
            raise ValidationError(str(e))
        if value < 0:
            raise ValidationError(f"Contract value cannot be negative (got {value})")
        if end_date is not None and end_date < start_date:
            raise ValidationError("Contract end date is before its start date")
        if self.db.get_employee(employee_id) is None:
            raise NotFoundError(not_found("Employee", employee_id), entity="Employee", entity_id=employee_id)

        return self.db.create_contract(
            employee_id=employee_id,
            type=type,
            value=value,
            start_date=start_date,
            end_date=end_date,
            is_payroll=is_payroll,
            has_inss=has_inss,
            has_irrf=has_irrf,
            has_fgts=has_fgts,
            has_thirteenth_salary=has_thirteenth_salary,
        )

    def get_contract(self, contract_id: int) -> Optional[Contract]:
        """Get contract by ID."""
        return self.db.get_contract(contract_id)

    def require_contract(self, contract_id: int) -> Contract:
        """Get contract by ID or raise NotFoundError."""
        contract = self.db.get_contract(contract_id)
        if contract is None:
            raise NotFoundError(not_found("Contract", contract_id), entity="Contract", entity_id=contract_id)
        return contract

    def list_contracts(self, employee_id: int) -> list[Contract]:
        """List contracts of an employee, newest first."""
        return self.db.list_contracts(employee_id)

    def end_contract(self, contract_id: int, end_date: date) -> None:
        """Set a contract's last day.

        Raises:
            ValidationError: If end_date is before the start date
        """
        contract = self.require_contract(contract_id)
        if end_date < contract.start_date:
            raise ValidationError("Contract end date is before its start date")
        self.db.update_contract(contract_id, end_date=end_date)

    def deactivate_contract(self, contract_id: int) -> None:
        """Exclude a contract from future payrolls."""
        self.require_contract(contract_id)
        self.db.update_contract(contract_id, is_active=False)

    def add_benefit_discount(
        self,
        contract_id: int,
        description: str,
        kind: BenefitKind,
        amount: int,
        application: Application = Application.SALARY,
        month: Optional[int] = None,
        is_proportional: bool = True,
        has_taxes: bool = False,
    ) -> int:
        """Attach a recurring benefit or discount to a contract.

        Args:
            contract_id: Contract receiving the item
            description: Description shown on payroll items
            kind: benefit or discount
            amount: Full amount in minor units
            application: Payments the item applies to
            month: Restrict to one calendar month (1-12) for annual items
            is_proportional: Scale by days worked
            has_taxes: Include in the taxable base (benefits only)

        Returns:
            Benefit/discount ID

        Raises:
            ValidationError: If any value is invalid
            NotFoundError: If the contract does not exist
        """
        try:
            kind = BenefitKind(kind)
            application = Application(application)
        except ValueError as e:
            raise ValidationError(str(e))
        if not description or not description.strip():
            raise ValidationError("Benefit/discount description cannot be empty")
        if amount < 0:
            raise ValidationError(f"Benefit/discount amount cannot be negative (got {amount})")
        if month is not None and not 1 <= month <= 12:
            raise ValidationError(f"Month must be between 1 and 12 (got {month})")
        self.require_contract(contract_id)

        return self.db.create_benefit_discount(
            contract_id=contract_id,
            description=description.strip(),
            kind=kind,
            application=application,
            amount=amount,
            month=month,
            is_proportional=is_proportional,
            has_taxes=has_taxes,
        )

    def list_benefit_discounts(self, contract_id: int) -> list[BenefitDiscount]:
        """List benefits and discounts of a contract."""
        return self.db.list_benefit_discounts(contract_id)

    def remove_benefit_discount(self, benefit_discount_id: int) -> None:
        """Delete a benefit or discount."""
        if self.db.get_benefit_discount(benefit_discount_id) is None:
            raise NotFoundError(
                not_found("Benefit/discount", benefit_discount_id),
                entity="BenefitDiscount",
                entity_id=benefit_discount_id,
            )
        self.db.delete_benefit_discount(benefit_discount_id)

    def set_cost_centers(self, contract_id: int, shares: Sequence[tuple[int, object]]) -> list[Distribution]:
        """Replace the cost center weights of a contract.

        Args:
            contract_id: Contract to update
            shares: (cost center ID, percentage) pairs summing to 100

        Returns:
            The stored weights

        Raises:
            ValidationError: If shares is empty, repeats a cost center or
                has an invalid percentage
            PercentagesNotNormalizedError: If the percentages do not sum to 100
            NotFoundError: If the contract or a cost center does not exist
        """
        contract = self.require_contract(contract_id)
        if not shares:
            raise ValidationError("At least one cost center is required")
        employee = self.db.get_employee(contract.employee_id)

        cost_center_ids = [cost_center_id for cost_center_id, _ in shares]
        if len(set(cost_center_ids)) != len(cost_center_ids):
            raise ValidationError("A cost center can only appear once per contract")
        for cost_center_id in cost_center_ids:
            self.cost_centers.require_cost_center(cost_center_id, employee.company_id)

        percentages = [to_percentage(percentage) for _, percentage in shares]
        validate_percentages(percentages)
        self.db.set_contract_cost_centers(contract_id, list(zip(cost_center_ids, percentages)))
        return self.db.list_contract_cost_centers(contract_id)

    def list_cost_centers(self, contract_id: int) -> list[Distribution]:
        """List the cost center weights of a contract."""
        return self.db.list_contract_cost_centers(contract_id)
