"""Company and bank account domain service."""

from typing import Optional

from payrollkit.database.base import Database
from payrollkit.domain.entities import Account, Company
from payrollkit.domain.errors import ConflictError, NotFoundError, ValidationError, not_found


class CompanyService:
    """Service for managing companies and their bank accounts."""

    def __init__(self, db: Database):
        """Initialize company service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_company(self, name: str) -> int:
        """Create a new company.

        Args:
            name: Company name

        Returns:
            Company ID

        Raises:
            ValidationError: If name is empty
            ConflictError: If a company with the same name exists
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Company name cannot be empty")
        if self.db.get_company_by_name(name) is not None:
            raise ConflictError(f"Company with name '{name}' already exists")
        return self.db.create_company(name)

    def get_company(self, company_id: int) -> Optional[Company]:
        """Get company by ID."""
        return self.db.get_company(company_id)

    def require_company(self, company_id: int) -> Company:
        """Get company by ID or raise NotFoundError."""
        company = self.db.get_company(company_id)
        if company is None:
            raise NotFoundError(not_found("Company", company_id), entity="Company", entity_id=company_id)
        return company

    def list_companies(self) -> list[Company]:
        """List all companies."""
        return self.db.list_companies()

    def create_account(self, company_id: int, name: str, bank_name: str) -> int:
        """Create a bank account payrolls can be paid from.

        Raises:
            NotFoundError: If the company does not exist
            ConflictError: If the company already has an account with this name
        """
        self.require_company(company_id)
        name = (name or "").strip()
        if not name:
            raise ValidationError("Account name cannot be empty")
        for account in self.db.list_accounts(company_id):
            if account.name == name:
                raise ConflictError(f"Account with name '{name}' already exists")
        return self.db.create_account(company_id=company_id, name=name, bank_name=bank_name)

    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        return self.db.get_account(account_id)

    def list_accounts(self, company_id: int) -> list[Account]:
        """List accounts of a company."""
        return self.db.list_accounts(company_id)
