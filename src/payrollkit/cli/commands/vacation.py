"""Vacation commands."""

import click

from payrollkit.cli.commands.payroll import print_payroll_view
from payrollkit.cli.error_handling import handle_domain_error
from payrollkit.cli.parsing import date_or_exit
from payrollkit.domain.errors import DomainError
from payrollkit.domain.vacation import VacationService


def vacation_service(ctx: click.Context) -> VacationService:
    return VacationService(
        ctx.obj["db"],
        ctx.obj["calculator"],
        entitlement_days=ctx.obj["settings"].vacation_days,
    )


@click.group()
def vacation_group():
    """Apply or remove vacations on payroll employees."""
    pass


@vacation_group.command("apply")
@click.argument("payroll_id", type=int)
@click.argument("payroll_employee_id", type=int)
@click.option("--days", type=int, required=True, help="Vacation days")
@click.option("--start-date", required=True, help="First vacation day")
@click.option("--taxes", is_flag=True, help="Withhold taxes on the vacation pay")
@click.option("--advance", is_flag=True, help="Pay the vacation salary now and deduct it next period")
@click.option("--notes", help="Free text")
@click.pass_context
def apply_vacation(
    ctx,
    payroll_id: int,
    payroll_employee_id: int,
    days: int,
    start_date: str,
    taxes: bool,
    advance: bool,
    notes: str | None,
):
    """Put a payroll employee on vacation.

    Examples:
        payrollkit vacation apply 5 9 --days 30 --start-date 2024-07-01
        payrollkit vacation apply 5 9 --days 15 --start-date 2024-07-15 --advance --taxes
    """
    start = date_or_exit(ctx, start_date, "start date")
    try:
        view = vacation_service(ctx).apply(
            payroll_id,
            payroll_employee_id,
            days,
            start,
            include_taxes=taxes,
            advance_next_month=advance,
            notes=notes,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Applied {days} vacation day(s) to payroll employee {payroll_employee_id}")
    print_payroll_view(view)


@vacation_group.command("remove")
@click.argument("payroll_id", type=int)
@click.argument("payroll_employee_id", type=int)
@click.pass_context
def remove_vacation(ctx, payroll_id: int, payroll_employee_id: int):
    """Take a payroll employee off vacation."""
    try:
        view = vacation_service(ctx).remove(payroll_id, payroll_employee_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Removed vacation from payroll employee {payroll_employee_id}")
    print_payroll_view(view)


def register_commands(cli):
    """Register vacation commands with main CLI."""
    cli.add_command(vacation_group, name="vacation")
