"""Withholding and employer levy calculations.

The bracket values are data loaded by payrollkit.config; nothing here knows
any particular year's table. All bases and results are minor units.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from fractions import Fraction
from typing import Any, Mapping, Optional

from payrollkit.domain.errors import ValidationError
from payrollkit.domain.proration import round_half_up


@dataclass(frozen=True)
class TaxBracket:
    """One bracket of a tax table.

    upper_limit is inclusive and None for the open top bracket. deduction is
    only used by the income tax table.
    """

    upper_limit: Optional[int]
    rate: Decimal
    deduction: int = 0


@dataclass(frozen=True)
class TaxTables:
    """Social security, income tax and employer fund parameters."""

    social_security: tuple[TaxBracket, ...] = ()
    income_tax: tuple[TaxBracket, ...] = ()
    employer_fund_rate: Decimal = Decimal("0")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "TaxTables":
        """Build tables from parsed YAML data.

        Raises:
            ValidationError: If a bracket is malformed or brackets are not
                in ascending order
        """
        return cls(
            social_security=_brackets(data.get("social_security", []), "social_security"),
            income_tax=_brackets(data.get("income_tax", []), "income_tax"),
            employer_fund_rate=_rate(data.get("employer_fund_rate", 0), "employer_fund_rate"),
        )


def _rate(value: Any, where: str) -> Decimal:
    try:
        rate = Decimal(str(value))
    except ArithmeticError:
        raise ValidationError(f"Invalid rate '{value}' in {where}")
    if not rate.is_finite() or rate < 0 or rate > 1:
        raise ValidationError(f"Rate in {where} must be between 0 and 1 (got {value})")
    return rate


def _brackets(rows: list, where: str) -> tuple[TaxBracket, ...]:
    brackets = []
    previous_limit = -1
    for index, row in enumerate(rows):
        upper_limit = row.get("upper_limit")
        if upper_limit is not None:
            upper_limit = int(upper_limit)
            if upper_limit <= previous_limit:
                raise ValidationError(f"Brackets in {where} must have ascending limits")
            previous_limit = upper_limit
        elif index != len(rows) - 1:
            raise ValidationError(f"Only the last bracket in {where} may be open ended")
        brackets.append(
            TaxBracket(
                upper_limit=upper_limit,
                rate=_rate(row.get("rate", 0), where),
                deduction=int(row.get("deduction", 0)),
            )
        )
    return tuple(brackets)


@dataclass(frozen=True)
class TaxCalculator:
    """Applies a set of tax tables to payroll bases."""

    tables: TaxTables = field(default_factory=TaxTables)

    def social_security(self, base: int) -> int:
        """Progressive contribution: each bracket's rate on the slice inside it.

        A base above the last closed bracket pays the ceiling contribution.
        """
        if base <= 0:
            return 0
        total = Fraction(0)
        lower = 0
        for bracket in self.tables.social_security:
            upper = base if bracket.upper_limit is None else min(base, bracket.upper_limit)
            if upper > lower:
                total += (upper - lower) * Fraction(bracket.rate)
            if bracket.upper_limit is None or base <= bracket.upper_limit:
                break
            lower = bracket.upper_limit
        return round_half_up(total)

    def income_tax(self, base: int, social_security: int = 0) -> int:
        """Flat bracket rate on the base net of social security, minus the
        bracket deduction, never below zero."""
        taxable = base - social_security
        if taxable <= 0 or not self.tables.income_tax:
            return 0
        bracket = self.tables.income_tax[-1]
        for candidate in self.tables.income_tax:
            if candidate.upper_limit is None or taxable <= candidate.upper_limit:
                bracket = candidate
                break
        tax = taxable * Fraction(bracket.rate) - bracket.deduction
        if tax <= 0:
            return 0
        return round_half_up(tax)

    def employer_fund(self, base: int) -> int:
        """Employer levy on the taxable base; never withheld from the employee."""
        if base <= 0:
            return 0
        return round_half_up(base * Fraction(self.tables.employer_fund_rate))
