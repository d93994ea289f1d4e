"""Amount parsing and formatting utilities.

Amounts are stored as integers in minor currency units (cents).
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import re

CENT = Decimal("0.01")


def parse_amount(amount_str: str) -> int:
    """Parse an amount string into minor units.

    Handles various formats:
    - "1234.56"
    - "$1234.56" or "R$1234.56"
    - "-1234.56"
    - "1,234.56"
    - "(1234.56)" (negative in parentheses)

    Args:
        amount_str: Amount string

    Returns:
        Amount in minor units

    Raises:
        ValueError: If amount string cannot be parsed or has more than two
            decimal places
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    # Parentheses mean negative
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    amount_str = re.sub(r"R?[$€£¥]", "", amount_str)
    amount_str = amount_str.replace(",", "").strip()

    try:
        amount = Decimal(amount_str)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if amount != amount.quantize(CENT):
        raise ValueError(f"Amount '{amount_str}' has more than two decimal places")

    cents = int((amount * 100).to_integral_value(rounding=ROUND_HALF_UP))
    return -cents if is_negative else cents


def format_amount(cents: int) -> str:
    """Format minor units as "1,234.56"."""
    sign = "-" if cents < 0 else ""
    units, rest = divmod(abs(cents), 100)
    return f"{sign}{units:,}.{rest:02d}"
