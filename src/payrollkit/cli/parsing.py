"""CLI helpers turning option strings into domain values."""

from datetime import date
from decimal import Decimal

import click

from payrollkit.utils.amount_parser import parse_amount
from payrollkit.utils.date_parser import parse_date, parse_period


def amount_or_exit(ctx: click.Context, value: str, label: str = "amount") -> int:
    """Parse an amount in minor units or exit with an error."""
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def date_or_exit(ctx: click.Context, value: str, label: str = "date") -> date:
    """Parse a date or exit with an error."""
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def period_or_exit(
    ctx: click.Context, period: str | None, start_date: str | None, end_date: str | None
) -> tuple[date, date]:
    """Resolve a payroll period from --period or --start-date/--end-date."""
    if period and (start_date or end_date):
        click.echo("Error: --period cannot be combined with --start-date or --end-date.", err=True)
        ctx.exit(1)

    if period:
        try:
            return parse_period(period)
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)

    if not (start_date and end_date):
        click.echo("Error: Give --period or both --start-date and --end-date.", err=True)
        ctx.exit(1)
    return date_or_exit(ctx, start_date, "start date"), date_or_exit(ctx, end_date, "end date")


def shares_or_exit(ctx: click.Context, values: tuple[str, ...]) -> list[tuple[int, Decimal]]:
    """Parse COST_CENTER_ID=PERCENT pairs."""
    shares = []
    for value in values:
        cost_center, sep, percentage = value.partition("=")
        try:
            if not sep:
                raise ValueError("expected COST_CENTER_ID=PERCENT")
            shares.append((int(cost_center), Decimal(percentage.strip().rstrip("%"))))
        except (ValueError, ArithmeticError) as e:
            click.echo(f"Error: Invalid cost center share '{value}': {e}", err=True)
            ctx.exit(1)
    return shares
