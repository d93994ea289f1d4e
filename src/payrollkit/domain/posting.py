"""Transaction posting boundary.

Payroll settlement talks to a TransactionPoster only; how the money
movements are stored or reported is the poster's business.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional, Sequence

from payrollkit.database.base import Database
from payrollkit.domain.allocation import AllocatedShare, validate_percentages
from payrollkit.domain.entities import Distribution, TransactionType
from payrollkit.domain.errors import (
    AllocationError,
    NotFoundError,
    ValidationError,
    not_found,
)
from payrollkit.logging_config import get_logger

logger = get_logger("posting")


class TransactionPoster(ABC):
    """Records money movements on behalf of the payroll engine."""

    @abstractmethod
    def post(
        self,
        company_id: int,
        account_id: int,
        amount: int,
        description: str,
        type: TransactionType,
        distributions: Sequence[AllocatedShare],
        origin_payroll_id: Optional[int],
        transaction_date: date,
    ) -> int:
        """Record a transaction. Returns the transaction ID."""
        pass

    @abstractmethod
    def reverse(self, transaction_id: int, transaction_date: date) -> int:
        """Record the opposite of a transaction. Returns the new transaction ID."""
        pass


def check_distributions(amount: int, distributions: Sequence[AllocatedShare]) -> None:
    """Distribution rows must cover 100% and exactly the transaction amount.

    Raises:
        PercentagesNotNormalizedError: If percentages do not sum to 100
        AllocationError: If the amounts do not sum to the total
    """
    if not distributions:
        return
    validate_percentages([share.percentage for share in distributions])
    allocated = sum(share.amount for share in distributions)
    if allocated != amount:
        raise AllocationError(
            f"Cost center amounts sum to {allocated}, expected {amount}",
            expected=amount,
            actual=allocated,
        )


class DatabaseTransactionPoster(TransactionPoster):
    """Poster that stores transactions through the Database interface."""

    def __init__(self, db: Database):
        self.db = db

    def post(
        self,
        company_id: int,
        account_id: int,
        amount: int,
        description: str,
        type: TransactionType,
        distributions: Sequence[AllocatedShare],
        origin_payroll_id: Optional[int],
        transaction_date: date,
    ) -> int:
        if amount <= 0:
            raise ValidationError(f"Transaction amount must be greater than zero (got {amount})")
        account = self.db.get_account(account_id)
        if account is None or account.company_id != company_id:
            raise NotFoundError(not_found("Account", account_id), entity="Account", entity_id=account_id)
        check_distributions(amount, distributions)

        transaction_id = self.db.create_transaction(
            company_id=company_id,
            account_id=account_id,
            description=description,
            type=TransactionType(type),
            amount=amount,
            transaction_date=transaction_date,
            distributions=[
                Distribution(
                    source_id=0,
                    cost_center_id=share.key,
                    percentage=share.percentage,
                    amount=share.amount,
                )
                for share in distributions
            ],
            origin_payroll_id=origin_payroll_id,
        )
        logger.info(
            "transaction_posted",
            extra={
                "transaction_id": transaction_id,
                "payroll_id": origin_payroll_id,
                "amount": amount,
                "type": TransactionType(type),
            },
        )
        return transaction_id

    def reverse(self, transaction_id: int, transaction_date: date) -> int:
        original = self.db.get_transaction(transaction_id)
        if original is None:
            raise NotFoundError(
                not_found("Transaction", transaction_id),
                entity="FinancialTransaction",
                entity_id=transaction_id,
            )
        opposite = (
            TransactionType.INFLOW
            if original.type == TransactionType.OUTFLOW
            else TransactionType.OUTFLOW
        )
        reversal_id = self.db.create_transaction(
            company_id=original.company_id,
            account_id=original.account_id,
            description=f"Reversal of {original.description}",
            type=opposite,
            amount=original.amount,
            transaction_date=transaction_date,
            distributions=original.distributions,
            origin_payroll_id=original.origin_payroll_id,
            reversal_of_id=original.id,
        )
        logger.info(
            "transaction_reversed",
            extra={
                "transaction_id": reversal_id,
                "reversal_of_id": transaction_id,
                "payroll_id": original.origin_payroll_id,
            },
        )
        return reversal_id
