"""Payroll item ledger and aggregate maintenance.

Every mutation re-derives the employee totals from the full item list and
then the payroll totals from the full employee list. Stored totals are read
back afterwards; a difference is an AggregateMismatchError, never a fix-up.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from payrollkit.database.base import Database
from payrollkit.domain.entities import (
    ItemCategory,
    ItemDraft,
    ItemType,
    Payroll,
    PayrollEmployee,
    PayrollEmployeeView,
    PayrollItem,
    PayrollView,
    SOCIAL_SECURITY_SOURCES,
    SourceType,
)
from payrollkit.domain.errors import (
    AggregateMismatchError,
    NotFoundError,
    PayrollClosedError,
    ValidationError,
    aggregate_mismatch,
    not_found,
    payroll_closed,
)
from payrollkit.domain.locking import payroll_scope
from payrollkit.domain.taxes import TaxCalculator
from payrollkit.logging_config import get_logger

logger = get_logger("ledger")

TOTAL_FIELDS = (
    "total_gross_pay",
    "total_deductions",
    "total_net_pay",
    "total_inss",
    "total_fgts",
)


@dataclass(frozen=True)
class Totals:
    """Aggregates derived from a set of payroll items."""

    total_gross_pay: int = 0
    total_deductions: int = 0
    total_net_pay: int = 0
    total_inss: int = 0
    total_fgts: int = 0

    def as_dict(self) -> dict[str, int]:
        return {name: getattr(self, name) for name in TOTAL_FIELDS}

    def __add__(self, other: "Totals") -> "Totals":
        return Totals(**{name: getattr(self, name) + getattr(other, name) for name in TOTAL_FIELDS})


def employee_totals(
    items: Iterable[PayrollItem], calculator: TaxCalculator, has_fgts: bool
) -> Totals:
    """Derive a payroll employee's totals from its items."""
    gross = deductions = inss = taxable = 0
    for item in items:
        if item.type == ItemType.CREDIT:
            gross += item.amount
            if item.is_taxable:
                taxable += item.amount
        else:
            deductions += item.amount
            if item.source_type in SOCIAL_SECURITY_SOURCES:
                inss += item.amount
    return Totals(
        total_gross_pay=gross,
        total_deductions=deductions,
        total_net_pay=gross - deductions,
        total_inss=inss,
        total_fgts=calculator.employer_fund(taxable) if has_fgts else 0,
    )


def manual_overrides(items: Iterable[PayrollItem]) -> set[tuple[SourceType, Optional[int]]]:
    """(source, reference) pairs whose automatic item was replaced by hand."""
    return {
        (item.source_type, item.reference_id)
        for item in items
        if item.is_manual and item.source_type != SourceType.MANUAL
    }


def add_items(
    db: Database,
    payroll_employee_id: int,
    drafts: Iterable[ItemDraft],
    overrides: Optional[set] = None,
) -> list[int]:
    """Store drafts, skipping those a manual item overrides."""
    overrides = overrides or set()
    ids = []
    for draft in drafts:
        if (draft.source_type, draft.reference_id) in overrides:
            continue
        ids.append(db.add_payroll_item(payroll_employee_id, draft))
    return ids


def build_view(db: Database, payroll_id: int) -> PayrollView:
    """Load a payroll with its employees and their items."""
    payroll = db.get_payroll(payroll_id)
    if payroll is None:
        raise NotFoundError(not_found("Payroll", payroll_id), entity="Payroll", entity_id=payroll_id)

    employees = []
    for payroll_employee in db.list_payroll_employees(payroll_id):
        employee = db.get_employee(payroll_employee.employee_id)
        employees.append(
            PayrollEmployeeView(
                payroll_employee=payroll_employee,
                employee_name=employee.name if employee is not None else "",
                items=tuple(db.list_payroll_items(payroll_employee.id)),
            )
        )
    return PayrollView(payroll=payroll, employees=tuple(employees))


def get_open_payroll(db: Database, payroll_id: int) -> Payroll:
    """Load a payroll that may still be mutated.

    Raises:
        NotFoundError: If the payroll does not exist
        PayrollClosedError: If the payroll is closed
    """
    payroll = db.get_payroll(payroll_id)
    if payroll is None:
        raise NotFoundError(not_found("Payroll", payroll_id), entity="Payroll", entity_id=payroll_id)
    if payroll.is_closed:
        raise PayrollClosedError(payroll_closed(payroll_id), entity="Payroll", entity_id=payroll_id)
    return payroll


def get_payroll_employee(db: Database, payroll_employee_id: int) -> PayrollEmployee:
    """Load a payroll employee or raise NotFoundError."""
    payroll_employee = db.get_payroll_employee(payroll_employee_id)
    if payroll_employee is None:
        raise NotFoundError(
            not_found("Payroll employee", payroll_employee_id),
            entity="PayrollEmployee",
            entity_id=payroll_employee_id,
        )
    return payroll_employee


class LedgerService:
    """Service for payroll items and the totals derived from them."""

    def __init__(self, db: Database, calculator: Optional[TaxCalculator] = None):
        """Initialize ledger service.

        Args:
            db: Database instance
            calculator: Tax calculator used for the employer fund total
        """
        self.db = db
        self.calculator = calculator or TaxCalculator()

    def add_item(
        self,
        payroll_employee_id: int,
        description: str,
        type: ItemType,
        amount: int,
        category: ItemCategory = ItemCategory.MANUAL,
        is_taxable: bool = False,
    ) -> PayrollView:
        """Add a manual item to a payroll employee.

        Args:
            payroll_employee_id: Payroll employee receiving the item
            description: Item description
            type: Credit or debit
            amount: Amount in minor units, greater than zero
            category: Reporting category
            is_taxable: Whether the item counts towards the employer fund base

        Returns:
            The updated payroll view

        Raises:
            ValidationError: If description, type or amount is invalid
            NotFoundError: If the payroll employee does not exist
            PayrollClosedError: If the payroll is closed
        """
        description = self._validate(description, amount)
        try:
            type = ItemType(type)
            category = ItemCategory(category)
        except ValueError as e:
            raise ValidationError(str(e))

        payroll_employee = get_payroll_employee(self.db, payroll_employee_id)
        payroll_id = payroll_employee.payroll_id
        with payroll_scope(self.db, payroll_id):
            get_open_payroll(self.db, payroll_id)
            item_id = self.db.add_payroll_item(
                payroll_employee_id,
                ItemDraft(
                    description=description,
                    type=type,
                    category=category,
                    amount=amount,
                    source_type=SourceType.MANUAL,
                    is_manual=True,
                    is_taxable=is_taxable,
                ),
            )
            self.refresh_totals(payroll_id, [payroll_employee_id])

        logger.info(
            "payroll_item_added",
            extra={"payroll_id": payroll_id, "payroll_item_id": item_id, "amount": amount},
        )
        return build_view(self.db, payroll_id)

    def update_item(
        self, payroll_item_id: int, description: Optional[str] = None, amount: Optional[int] = None
    ) -> PayrollView:
        """Change an item's description and/or amount.

        The item becomes manual, so recalculation keeps it and stops
        regenerating the automatic item it came from.

        Raises:
            ValidationError: If description or amount is invalid
            NotFoundError: If the item does not exist
            PayrollClosedError: If the payroll is closed
        """
        item = self._get_item(payroll_item_id)
        changes = {"is_manual": True}
        if description is not None:
            changes["description"] = self._validate(description, 1)
        if amount is not None:
            self._validate("-", amount)
            changes["amount"] = amount

        payroll_employee = get_payroll_employee(self.db, item.payroll_employee_id)
        payroll_id = payroll_employee.payroll_id
        with payroll_scope(self.db, payroll_id):
            get_open_payroll(self.db, payroll_id)
            self.db.update_payroll_item(payroll_item_id, **changes)
            self.refresh_totals(payroll_id, [payroll_employee.id])

        logger.info(
            "payroll_item_updated",
            extra={"payroll_id": payroll_id, "payroll_item_id": payroll_item_id},
        )
        return build_view(self.db, payroll_id)

    def remove_item(self, payroll_item_id: int) -> PayrollView:
        """Delete an item.

        Raises:
            NotFoundError: If the item does not exist
            PayrollClosedError: If the payroll is closed
        """
        item = self._get_item(payroll_item_id)
        payroll_employee = get_payroll_employee(self.db, item.payroll_employee_id)
        payroll_id = payroll_employee.payroll_id
        with payroll_scope(self.db, payroll_id):
            get_open_payroll(self.db, payroll_id)
            self.db.delete_payroll_item(payroll_item_id)
            self.refresh_totals(payroll_id, [payroll_employee.id])

        logger.info(
            "payroll_item_removed",
            extra={"payroll_id": payroll_id, "payroll_item_id": payroll_item_id},
        )
        return build_view(self.db, payroll_id)

    def recalculate_employee(self, payroll_employee_id: int) -> PayrollView:
        """Re-derive one employee's totals and the payroll totals."""
        payroll_employee = get_payroll_employee(self.db, payroll_employee_id)
        payroll_id = payroll_employee.payroll_id
        with payroll_scope(self.db, payroll_id):
            get_open_payroll(self.db, payroll_id)
            self.refresh_totals(payroll_id, [payroll_employee_id])
        return build_view(self.db, payroll_id)

    def refresh_totals(self, payroll_id: int, payroll_employee_ids: Optional[Iterable[int]] = None) -> Totals:
        """Re-derive employee totals, then payroll totals, and verify them.

        Args:
            payroll_id: Payroll to refresh
            payroll_employee_ids: Employees whose items changed; all when None

        Returns:
            The payroll totals
        """
        payroll_employees = self.db.list_payroll_employees(payroll_id)
        changed = None if payroll_employee_ids is None else set(payroll_employee_ids)

        for payroll_employee in payroll_employees:
            if changed is not None and payroll_employee.id not in changed:
                continue
            totals = employee_totals(
                self.db.list_payroll_items(payroll_employee.id),
                self.calculator,
                payroll_employee.has_fgts,
            )
            self.db.update_payroll_employee(payroll_employee.id, **totals.as_dict())

        payroll_totals = Totals()
        for payroll_employee in self.db.list_payroll_employees(payroll_id):
            payroll_totals += Totals(
                **{name: getattr(payroll_employee, name) for name in TOTAL_FIELDS}
            )
        self.db.update_payroll(payroll_id, **payroll_totals.as_dict())

        self.verify(payroll_id)
        return payroll_totals

    def verify(self, payroll_id: int) -> None:
        """Compare stored totals with totals derived from the items.

        Raises:
            AggregateMismatchError: On the first total that differs
        """
        payroll = self.db.get_payroll(payroll_id)
        payroll_totals = Totals()
        for payroll_employee in self.db.list_payroll_employees(payroll_id):
            expected = employee_totals(
                self.db.list_payroll_items(payroll_employee.id),
                self.calculator,
                payroll_employee.has_fgts,
            )
            self._compare("PayrollEmployee", payroll_employee.id, expected, payroll_employee)
            payroll_totals += expected
        self._compare("Payroll", payroll_id, payroll_totals, payroll)

    def _compare(self, entity: str, entity_id: int, expected: Totals, stored) -> None:
        for name in TOTAL_FIELDS:
            actual = getattr(stored, name)
            wanted = getattr(expected, name)
            if actual != wanted:
                logger.error(
                    "aggregate_mismatch",
                    extra={"entity": entity, "entity_id": entity_id, "field": name},
                )
                raise AggregateMismatchError(
                    aggregate_mismatch(entity, entity_id, name, wanted, actual),
                    entity=entity,
                    entity_id=entity_id,
                    expected=wanted,
                    actual=actual,
                )

    def _get_item(self, payroll_item_id: int) -> PayrollItem:
        item = self.db.get_payroll_item(payroll_item_id)
        if item is None:
            raise NotFoundError(
                not_found("Payroll item", payroll_item_id),
                entity="PayrollItem",
                entity_id=payroll_item_id,
            )
        return item

    @staticmethod
    def _validate(description: str, amount: int) -> str:
        if description is None or not description.strip():
            raise ValidationError("Item description cannot be empty")
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise ValidationError(f"Item amount must be an integer number of minor units (got {amount!r})")
        if amount <= 0:
            raise ValidationError(f"Item amount must be greater than zero (got {amount})")
        return description.strip()
