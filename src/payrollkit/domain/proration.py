"""Proration of salaries, benefits and discounts for a pay period."""

import json
from datetime import date, timedelta
from decimal import Decimal
from fractions import Fraction
from typing import Optional, Union

from payrollkit.domain.entities import (
    Application,
    BenefitDiscount,
    BenefitKind,
    CalculationContext,
    Contract,
    ContractType,
    ItemCategory,
    ItemDraft,
    ItemType,
    SourceType,
)
from payrollkit.domain.errors import ValidationError

HOURS_PER_BUSINESS_DAY = 8

_CONTEXT_LABELS = {
    CalculationContext.SALARY: None,
    CalculationContext.THIRTEENTH: "13th",
    CalculationContext.VACATION: "vacation",
    CalculationContext.BONUS: "bonus",
    CalculationContext.COMMISSION: "commission",
}

_CONTEXT_ITEMS = {
    CalculationContext.THIRTEENTH: (
        ItemCategory.THIRTEENTH_BENEFIT,
        ItemCategory.THIRTEENTH_DISCOUNT,
        SourceType.THIRTEENTH_BENEFIT,
        SourceType.THIRTEENTH_BENEFIT,
    ),
    CalculationContext.VACATION: (
        ItemCategory.VACATION_BENEFIT,
        ItemCategory.VACATION_DISCOUNT,
        SourceType.VACATION_BENEFIT,
        SourceType.VACATION_BENEFIT,
    ),
}

_REGULAR_ITEMS = (
    ItemCategory.BENEFIT,
    ItemCategory.DISCOUNT,
    SourceType.CONTRACT_BENEFIT,
    SourceType.CONTRACT_DISCOUNT,
)


def round_half_up(value: Union[Fraction, Decimal, int]) -> int:
    """Round a non-negative exact value to the nearest integer, halves up."""
    value = Fraction(value)
    if value < 0:
        return -round_half_up(-value)
    return int((value * 2 + 1) // 2)


def scale(amount: int, numerator: Union[Decimal, int], denominator: Union[Decimal, int]) -> int:
    """Return round_half_up(amount * numerator / denominator)."""
    return round_half_up(Fraction(amount) * Fraction(numerator) / Fraction(denominator))


def days_in_period(period_start: date, period_end: date) -> int:
    """Number of calendar days in an inclusive period."""
    if period_end < period_start:
        raise ValidationError(
            f"Period end {period_end} is before period start {period_start}"
        )
    return (period_end - period_start).days + 1


def active_days(contract: Contract, period_start: date, period_end: date) -> int:
    """Days of the period during which the contract is in force."""
    start = max(contract.start_date, period_start)
    end = period_end if contract.end_date is None else min(contract.end_date, period_end)
    if end < start:
        return 0
    return (end - start).days + 1


def business_days(period_start: date, period_end: date) -> int:
    """Count Monday to Friday days in an inclusive period."""
    count = 0
    current = period_start
    while current <= period_end:
        if current.weekday() < 5:
            count += 1
        current += timedelta(days=1)
    return count


def applies_to(application: Application, context: CalculationContext) -> bool:
    """Whether an item scoped to application fires in the given context."""
    if application == Application.ALL:
        return True
    return application.value == context.value


def prorate(
    item: BenefitDiscount,
    period_start: date,
    period_end: date,
    days_in_period: int,
    days_worked: int,
    context: CalculationContext = CalculationContext.SALARY,
) -> int:
    """Amount a benefit or discount contributes to a pay period.

    Args:
        item: The contract benefit or discount
        period_start: First day of the payroll period
        period_end: Last day of the payroll period
        days_in_period: Days the full amount corresponds to
        days_worked: Days actually worked
        context: Calculation being run

    Returns:
        Amount in minor units, between 0 and item.amount

    Raises:
        ValidationError: If the day counts or the amount are invalid
    """
    if days_in_period <= 0:
        raise ValidationError(f"Days in period must be positive (got {days_in_period})")
    if days_worked < 0:
        raise ValidationError(f"Days worked cannot be negative (got {days_worked})")
    if item.amount < 0:
        raise ValidationError(
            f"Benefit/discount {item.id} has a negative amount",
            entity="BenefitDiscount",
            entity_id=item.id,
        )

    if item.month is not None and item.month != period_end.month:
        return 0
    if not applies_to(item.application, context):
        return 0
    if not item.is_proportional:
        return item.amount

    return min(scale(item.amount, days_worked, days_in_period), item.amount)


def calculation_details(**values) -> str:
    """Serialize audit values for a payroll item."""
    return json.dumps(values, sort_keys=True, default=str)


def benefit_item(
    item: BenefitDiscount,
    amount: int,
    days_worked: int,
    days_in_period: int,
    context: CalculationContext = CalculationContext.SALARY,
    note: Optional[str] = None,
) -> ItemDraft:
    """Build the payroll item for a prorated benefit or discount.

    note replaces the default "proportional x/y days" annotation.
    """
    credit_category, debit_category, credit_source, debit_source = _CONTEXT_ITEMS.get(
        context, _REGULAR_ITEMS
    )
    is_benefit = item.kind == BenefitKind.BENEFIT

    description = item.description
    if note is not None:
        description = f"{description} ({note})"
    elif item.is_proportional and amount != item.amount:
        description = f"{description} (proportional {days_worked}/{days_in_period} days)"
    label = _CONTEXT_LABELS.get(context)
    if label is not None:
        description = f"{description} ({label})"

    return ItemDraft(
        description=description,
        type=ItemType.CREDIT if is_benefit else ItemType.DEBIT,
        category=credit_category if is_benefit else debit_category,
        amount=amount,
        source_type=credit_source if is_benefit else debit_source,
        reference_id=item.id,
        calculation_basis=days_worked,
        calculation_details=calculation_details(
            base_amount=item.amount,
            days_in_period=days_in_period,
            days_worked=days_worked,
        ),
        is_taxable=is_benefit and item.has_taxes,
    )


def default_worked_units(contract: Contract, period_start: date, period_end: date) -> Optional[Decimal]:
    """Hours or days an hourly or daily contract is paid for by default."""
    days = business_days(period_start, period_end)
    if contract.type == ContractType.HOURLY:
        return Decimal(days * HOURS_PER_BUSINESS_DAY)
    if contract.type == ContractType.DAILY:
        return Decimal(days)
    return None


def salary_amount(
    contract: Contract,
    days_in_period: int,
    active_days: int,
    worked_units: Optional[Decimal] = None,
) -> int:
    """Salary a contract earns in a period.

    Monthly contracts earn their value, prorated by the days the contract
    was in force. Hourly and daily contracts earn value per worked unit.
    """
    if contract.type in (ContractType.HOURLY, ContractType.DAILY):
        if worked_units is None:
            raise ValidationError(
                f"Contract {contract.id} is {contract.type.value} and needs worked units",
                entity="Contract",
                entity_id=contract.id,
            )
        return round_half_up(Fraction(contract.value) * Fraction(worked_units))

    if active_days >= days_in_period:
        return contract.value
    return scale(contract.value, active_days, days_in_period)


def salary_item(
    contract: Contract,
    amount: int,
    days_in_period: int,
    active_days: int,
    worked_units: Optional[Decimal] = None,
) -> ItemDraft:
    """Build the base salary payroll item."""
    if contract.type == ContractType.HOURLY:
        description = f"Base salary ({worked_units:f} hours)"
    elif contract.type == ContractType.DAILY:
        description = f"Base salary ({worked_units:f} days)"
    elif amount != contract.value:
        description = f"Base salary (proportional {active_days}/{days_in_period} days)"
    else:
        description = "Base salary"

    return ItemDraft(
        description=description,
        type=ItemType.CREDIT,
        category=ItemCategory.SALARY,
        amount=amount,
        source_type=SourceType.SALARY,
        reference_id=contract.id,
        calculation_basis=contract.value,
        calculation_details=calculation_details(
            active_days=active_days,
            contract_type=contract.type.value,
            days_in_period=days_in_period,
            worked_units=None if worked_units is None else str(worked_units),
        ),
        is_taxable=True,
    )
