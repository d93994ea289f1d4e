"""Proportional allocation of money across weighted shares.

Splits one amount in minor units across cost centers, installments or any
other keyed shares so that the parts always add up to the whole. Pure
functions, no I/O and no shared state.

The remainder left after flooring every share is handed out one unit at a
time to the shares with the largest fractional parts (largest remainder
method), ties going to the share that comes first.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from fractions import Fraction
from typing import Hashable, Sequence, TypeVar, Union

from payrollkit.domain.errors import (
    AllocationError,
    PercentagesNotNormalizedError,
    ValidationError,
    percentages_not_normalized,
)

K = TypeVar("K", bound=Hashable)

Number = Union[Decimal, int, str]

HUNDRED = Decimal("100")
PERCENTAGE_TOLERANCE = Decimal("0.01")
PERCENTAGE_PLACES = Decimal("0.01")


@dataclass(frozen=True)
class AllocatedShare:
    """One share of an allocation with the percentage it represents."""

    key: Hashable
    percentage: Decimal
    amount: int


def to_percentage(value: Number) -> Decimal:
    """Convert a percentage to a two-decimal Decimal.

    Raises:
        ValidationError: If the value is not a number, is negative or has
            more than two decimal places
    """
    try:
        percentage = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"Invalid percentage '{value}'")
    if not percentage.is_finite() or percentage < 0:
        raise ValidationError(f"Invalid percentage '{value}'")
    if percentage != percentage.quantize(PERCENTAGE_PLACES):
        raise ValidationError(f"Percentage '{value}' has more than two decimal places")
    return percentage


def validate_percentages(percentages: Sequence[Number]) -> Decimal:
    """Check that percentages sum to 100.00 within tolerance.

    Returns:
        The sum of the percentages

    Raises:
        ValidationError: If a percentage is invalid
        PercentagesNotNormalizedError: If the sum is off by more than 0.01
    """
    total = sum((to_percentage(p) for p in percentages), Decimal("0"))
    if abs(total - HUNDRED) > PERCENTAGE_TOLERANCE:
        raise PercentagesNotNormalizedError(
            percentages_not_normalized(total), expected=HUNDRED, actual=total
        )
    return total


def _largest_remainder(total_amount: int, weights: Sequence[Fraction]) -> list[int]:
    weight_sum = sum(weights, Fraction(0))
    exact = [total_amount * w / weight_sum for w in weights]
    floors = [int(e.numerator // e.denominator) for e in exact]
    remainder = total_amount - sum(floors)

    # sorted() is stable, so equal fractions keep their original order
    order = sorted(range(len(weights)), key=lambda i: exact[i] - floors[i], reverse=True)
    for index in order[:remainder]:
        floors[index] += 1
    return floors


def allocate(total_amount: int, shares: Sequence[tuple[K, Number]]) -> list[tuple[K, int]]:
    """Split an amount across shares given as (key, percentage).

    Args:
        total_amount: Amount in minor units, zero or positive
        shares: Ordered (key, percentage) pairs; percentages sum to 100.00

    Returns:
        Ordered (key, amount) pairs whose amounts sum to total_amount

    Raises:
        ValidationError: If total_amount is negative, shares is empty or a
            percentage is invalid
        PercentagesNotNormalizedError: If the percentages do not sum to 100
    """
    if total_amount < 0:
        raise ValidationError(f"Cannot allocate a negative amount ({total_amount})")
    if not shares:
        raise ValidationError("At least one share is required")

    percentages = [to_percentage(p) for _, p in shares]
    validate_percentages(percentages)

    amounts = _largest_remainder(total_amount, [Fraction(p) for p in percentages])
    return [(key, amount) for (key, _), amount in zip(shares, amounts)]


def allocate_by_weights(total_amount: int, weighted: Sequence[tuple[K, Number]]) -> list[tuple[K, int]]:
    """Split an amount in proportion to non-negative weights.

    Raises:
        ValidationError: If total_amount or a weight is negative, or weighted
            is empty
        AllocationError: If every weight is zero but there is money to split
    """
    if total_amount < 0:
        raise ValidationError(f"Cannot allocate a negative amount ({total_amount})")
    if not weighted:
        raise ValidationError("At least one share is required")

    weights = []
    for key, weight in weighted:
        value = Fraction(Decimal(str(weight)))
        if value < 0:
            raise ValidationError(f"Weight for {key!r} cannot be negative")
        weights.append(value)

    if sum(weights) == 0:
        if total_amount == 0:
            return [(key, 0) for key, _ in weighted]
        raise AllocationError("Cannot allocate across shares that all weigh zero")

    amounts = _largest_remainder(total_amount, weights)
    return [(key, amount) for (key, _), amount in zip(weighted, amounts)]


def percentages_from_weights(weighted: Sequence[tuple[K, Number]]) -> list[tuple[K, Decimal]]:
    """Express weights as two-decimal percentages that sum to exactly 100."""
    basis_points = allocate_by_weights(10000, weighted)
    return [(key, Decimal(points) / HUNDRED) for key, points in basis_points]


def distribute(total_amount: int, shares: Sequence[tuple[K, Number]]) -> list[AllocatedShare]:
    """Allocate by percentage and keep each share's percentage alongside."""
    allocated = allocate(total_amount, shares)
    return [
        AllocatedShare(key=key, percentage=to_percentage(percentage), amount=amount)
        for (key, percentage), (_, amount) in zip(shares, allocated)
    ]


def distribute_by_weights(total_amount: int, weighted: Sequence[tuple[K, Number]]) -> list[AllocatedShare]:
    """Allocate by weight, recording the percentage each weight represents."""
    percentages = percentages_from_weights(weighted)
    return distribute(total_amount, percentages)
