"""Thirteenth salary commands."""

import click

from payrollkit.cli.commands.payroll import print_payroll_view
from payrollkit.cli.error_handling import handle_domain_error
from payrollkit.domain.entities import TaxOption
from payrollkit.domain.errors import DomainError
from payrollkit.domain.thirteenth import ThirteenthSalaryService


@click.group()
def thirteenth_group():
    """Apply or remove the thirteenth salary on a payroll."""
    pass


@thirteenth_group.command("apply")
@click.argument("payroll_id", type=int)
@click.option("--percentage", required=True, help="Share of the salary to pay (0-100, up to 2 decimals)")
@click.option(
    "--taxes",
    type=click.Choice([o.value for o in TaxOption], case_sensitive=False),
    default=TaxOption.NONE.value,
    help="Withholding: none, proportional (on the paid share) or full (on the whole salary)",
)
@click.pass_context
def apply_thirteenth(ctx, payroll_id: int, percentage: str, taxes: str):
    """Pay the thirteenth salary to every eligible employee.

    Examples:
        payrollkit thirteenth apply 12 --percentage 50
        payrollkit thirteenth apply 13 --percentage 50 --taxes full
    """
    service = ThirteenthSalaryService(ctx.obj["db"], ctx.obj["calculator"])
    try:
        view = service.apply(payroll_id, percentage, TaxOption(taxes.lower()))
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Applied {view.payroll.thirteenth_percentage}% thirteenth salary to payroll {payroll_id}")
    print_payroll_view(view)


@thirteenth_group.command("remove")
@click.argument("payroll_id", type=int)
@click.pass_context
def remove_thirteenth(ctx, payroll_id: int):
    """Remove the thirteenth salary from a payroll."""
    service = ThirteenthSalaryService(ctx.obj["db"], ctx.obj["calculator"])
    try:
        view = service.remove(payroll_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Removed thirteenth salary from payroll {payroll_id}")
    print_payroll_view(view)


def register_commands(cli):
    """Register thirteenth salary commands with main CLI."""
    cli.add_command(thirteenth_group, name="thirteenth")
