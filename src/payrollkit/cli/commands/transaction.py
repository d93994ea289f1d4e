"""Financial transaction commands."""

import click

from payrollkit.cli.error_handling import handle_domain_error
from payrollkit.cli.parsing import amount_or_exit, date_or_exit, shares_or_exit
from payrollkit.domain.cost_center import CostCenterService
from payrollkit.domain.entities import TransactionType
from payrollkit.domain.errors import DomainError
from payrollkit.utils.amount_parser import format_amount


@click.group()
def transaction_group():
    """Record and list financial transactions."""
    pass


@transaction_group.command("record")
@click.option("--company", "company_id", type=int, required=True, help="Company ID")
@click.option("--account", "account_id", type=int, required=True, help="Account ID")
@click.option("--amount", required=True, help="Amount (e.g., 250.00)")
@click.option("--description", required=True, help="Transaction description")
@click.option("--inflow", is_flag=True, help="Money coming in (default: outflow)")
@click.option("--date", "transaction_date", help="Transaction date (default: today)")
@click.option("--split", "shares", multiple=True, metavar="COST_CENTER_ID=PERCENT", help="Cost center share")
@click.pass_context
def record_transaction(
    ctx,
    company_id: int,
    account_id: int,
    amount: str,
    description: str,
    inflow: bool,
    transaction_date: str | None,
    shares: tuple[str, ...],
):
    """Record a transaction split across cost centers.

    Examples:
        payrollkit transaction record --company 1 --account 1 --amount 300.00 \\
            --description "Office rent" --split 1=50 --split 2=50
    """
    service = CostCenterService(ctx.obj["db"])
    value = amount_or_exit(ctx, amount)
    when = date_or_exit(ctx, transaction_date) if transaction_date else None
    try:
        transaction_id = service.record_transaction(
            company_id=company_id,
            account_id=account_id,
            amount=value,
            description=description,
            type=TransactionType.INFLOW if inflow else TransactionType.OUTFLOW,
            shares=shares_or_exit(ctx, shares),
            transaction_date=when,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Recorded transaction {transaction_id}")


@transaction_group.command("list")
@click.option("--company", "company_id", type=int, required=True, help="Company ID")
@click.option("--payroll", "payroll_id", type=int, help="Only transactions posted by this payroll")
@click.pass_context
def list_transactions(ctx, company_id: int, payroll_id: int | None):
    """List transactions with their cost center split."""
    service = CostCenterService(ctx.obj["db"])

    transactions = service.list_transactions(company_id, origin_payroll_id=payroll_id)
    if not transactions:
        click.echo("No transactions found.")
        return

    for txn in transactions:
        sign = "-" if txn.type == TransactionType.OUTFLOW else "+"
        click.echo(f"ID: {txn.id:3d} | {txn.transaction_date} | {sign}{format_amount(txn.amount):>12s} | {txn.description}")
        for share in txn.distributions:
            click.echo(f"        cost center {share.cost_center_id:3d}: {format_amount(share.amount):>12s} ({share.percentage}%)")


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
