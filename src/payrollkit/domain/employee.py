"""Employee domain service."""

from typing import Optional

from payrollkit.database.base import Database
from payrollkit.domain.entities import Employee
from payrollkit.domain.errors import NotFoundError, ValidationError, not_found


class EmployeeService:
    """Service for managing employees."""

    def __init__(self, db: Database):
        self.db = db

    def create_employee(self, company_id: int, name: str) -> int:
        """Create an employee.

        Raises:
            ValidationError: If name is empty
            NotFoundError: If the company does not exist
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Employee name cannot be empty")
        if self.db.get_company(company_id) is None:
            raise NotFoundError(not_found("Company", company_id), entity="Company", entity_id=company_id)
        return self.db.create_employee(company_id=company_id, name=name)

    def get_employee(self, employee_id: int) -> Optional[Employee]:
        """Get employee by ID."""
        return self.db.get_employee(employee_id)

    def list_employees(self, company_id: int, active_only: bool = False) -> list[Employee]:
        """List employees of a company."""
        return self.db.list_employees(company_id, active_only=active_only)

    def set_active(self, employee_id: int, is_active: bool) -> None:
        """Activate or deactivate an employee.

        Inactive employees are left out of new payrolls.
        """
        if self.db.get_employee(employee_id) is None:
            raise NotFoundError(not_found("Employee", employee_id), entity="Employee", entity_id=employee_id)
        self.db.update_employee(employee_id, is_active=is_active)
