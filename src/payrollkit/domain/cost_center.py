"""Cost center domain service and manual cost-center transactions."""

from datetime import date
from typing import Optional, Sequence

from payrollkit.database.base import Database
from payrollkit.domain.allocation import distribute
from payrollkit.domain.entities import CostCenter, FinancialTransaction, TransactionType
from payrollkit.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    not_found,
)
from payrollkit.domain.posting import DatabaseTransactionPoster, TransactionPoster


class CostCenterService:
    """Service for managing cost centers."""

    def __init__(self, db: Database, poster: Optional[TransactionPoster] = None):
        """Initialize cost center service.

        Args:
            db: Database instance
            poster: Poster used for manual transactions
        """
        self.db = db
        self.poster = poster or DatabaseTransactionPoster(db)

    def create_cost_center(self, company_id: int, name: str) -> int:
        """Create a cost center.

        Raises:
            ValidationError: If name is empty
            NotFoundError: If the company does not exist
            ConflictError: If the company already has a cost center with this name
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Cost center name cannot be empty")
        if self.db.get_company(company_id) is None:
            raise NotFoundError(not_found("Company", company_id), entity="Company", entity_id=company_id)
        for cost_center in self.db.list_cost_centers(company_id):
            if cost_center.name == name:
                raise ConflictError(f"Cost center with name '{name}' already exists")
        return self.db.create_cost_center(company_id=company_id, name=name)

    def get_cost_center(self, cost_center_id: int) -> Optional[CostCenter]:
        """Get cost center by ID."""
        return self.db.get_cost_center(cost_center_id)

    def list_cost_centers(self, company_id: int, active_only: bool = False) -> list[CostCenter]:
        """List cost centers of a company."""
        return self.db.list_cost_centers(company_id, active_only=active_only)

    def set_active(self, cost_center_id: int, is_active: bool) -> None:
        """Activate or deactivate a cost center.

        Raises:
            NotFoundError: If the cost center does not exist
        """
        self.require_cost_center(cost_center_id)
        self.db.update_cost_center(cost_center_id, is_active=is_active)

    def require_cost_center(self, cost_center_id: int, company_id: Optional[int] = None) -> CostCenter:
        """Get an active cost center or raise NotFoundError.

        Args:
            cost_center_id: Cost center ID
            company_id: When given, the cost center must belong to this company
        """
        cost_center = self.db.get_cost_center(cost_center_id)
        if cost_center is None or (company_id is not None and cost_center.company_id != company_id):
            raise NotFoundError(
                not_found("Cost center", cost_center_id),
                entity="CostCenter",
                entity_id=cost_center_id,
            )
        if not cost_center.is_active:
            raise ValidationError(
                f"Cost center {cost_center_id} is inactive",
                entity="CostCenter",
                entity_id=cost_center_id,
            )
        return cost_center

    def record_transaction(
        self,
        company_id: int,
        account_id: int,
        amount: int,
        description: str,
        type: TransactionType,
        shares: Sequence[tuple[int, object]],
        transaction_date: Optional[date] = None,
    ) -> int:
        """Record a manual transaction split across cost centers by percentage.

        Args:
            company_id: Owning company
            account_id: Account the money moves through
            amount: Amount in minor units
            description: Transaction description
            type: Inflow or outflow
            shares: (cost center ID, percentage) pairs summing to 100
            transaction_date: Defaults to today

        Returns:
            Transaction ID

        Raises:
            ValidationError: If the amount or a percentage is invalid
            PercentagesNotNormalizedError: If the percentages do not sum to 100
            NotFoundError: If the account or a cost center does not exist
        """
        if not description or not description.strip():
            raise ValidationError("Transaction description cannot be empty")
        for cost_center_id, _ in shares:
            self.require_cost_center(cost_center_id, company_id)
        distributions = distribute(amount, shares) if shares else []
        return self.poster.post(
            company_id=company_id,
            account_id=account_id,
            amount=amount,
            description=description.strip(),
            type=type,
            distributions=distributions,
            origin_payroll_id=None,
            transaction_date=transaction_date or date.today(),
        )

    def list_transactions(
        self, company_id: int, origin_payroll_id: Optional[int] = None
    ) -> list[FinancialTransaction]:
        """List transactions of a company."""
        return self.db.list_transactions(company_id, origin_payroll_id=origin_payroll_id)
