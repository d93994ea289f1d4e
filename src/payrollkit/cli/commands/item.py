"""Manual payroll item commands."""

import click

from payrollkit.cli.commands.payroll import print_payroll_view
from payrollkit.cli.error_handling import handle_domain_error
from payrollkit.cli.parsing import amount_or_exit
from payrollkit.domain.entities import ItemType
from payrollkit.domain.errors import DomainError
from payrollkit.domain.ledger import LedgerService


def ledger_service(ctx: click.Context) -> LedgerService:
    return LedgerService(ctx.obj["db"], ctx.obj["calculator"])


@click.group()
def item_group():
    """Add, change and remove payroll items."""
    pass


@item_group.command("add")
@click.argument("payroll_employee_id", type=int)
@click.argument("description")
@click.option("--amount", required=True, help="Amount (e.g., 150.00)")
@click.option("--debit", is_flag=True, help="Deduct instead of crediting")
@click.option("--taxable", is_flag=True, help="Include in the employer fund base")
@click.pass_context
def add_item(ctx, payroll_employee_id: int, description: str, amount: str, debit: bool, taxable: bool):
    """Add a manual credit or debit to a payroll employee.

    Examples:
        payrollkit item add 4 "Overtime" --amount 320.00 --taxable
        payrollkit item add 4 "Uniform" --amount 45.00 --debit
    """
    value = amount_or_exit(ctx, amount)
    try:
        view = ledger_service(ctx).add_item(
            payroll_employee_id,
            description,
            ItemType.DEBIT if debit else ItemType.CREDIT,
            value,
            is_taxable=taxable,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Added item '{description.strip()}' to payroll employee {payroll_employee_id}")
    print_payroll_view(view)


@item_group.command("update")
@click.argument("item_id", type=int)
@click.option("--description", help="New description")
@click.option("--amount", help="New amount")
@click.pass_context
def update_item(ctx, item_id: int, description: str | None, amount: str | None):
    """Change an item; it becomes manual and survives recalculation."""
    if description is None and amount is None:
        click.echo("Error: Give --description and/or --amount.", err=True)
        ctx.exit(1)
    value = amount_or_exit(ctx, amount) if amount is not None else None
    try:
        view = ledger_service(ctx).update_item(item_id, description=description, amount=value)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Updated item {item_id}")
    print_payroll_view(view)


@item_group.command("remove")
@click.argument("item_id", type=int)
@click.pass_context
def remove_item(ctx, item_id: int):
    """Delete a payroll item."""
    try:
        view = ledger_service(ctx).remove_item(item_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Removed item {item_id}")
    print_payroll_view(view)


def register_commands(cli):
    """Register item commands with main CLI."""
    cli.add_command(item_group, name="item")
