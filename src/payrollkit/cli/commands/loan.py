"""Loan and salary advance commands."""

import click

from payrollkit.cli.error_handling import handle_domain_error
from payrollkit.cli.parsing import amount_or_exit, date_or_exit
from payrollkit.domain.entities import DiscountSource
from payrollkit.domain.errors import DomainError
from payrollkit.domain.loan import LoanService
from payrollkit.utils.amount_parser import format_amount


@click.group()
def loan_group():
    """Manage loans and salary advances."""
    pass


@loan_group.command("create")
@click.option("--employee", "employee_id", type=int, required=True, help="Employee ID")
@click.option("--amount", required=True, help="Principal (e.g., 1200.00)")
@click.option("--installments", type=click.IntRange(min=1), default=1, help="Number of installments")
@click.option(
    "--source",
    type=click.Choice([s.value for s in DiscountSource], case_sensitive=False),
    default=DiscountSource.SALARY.value,
    help="Payments the installments are deducted from (default: salary)",
)
@click.option("--start-date", help="First period to deduct in (default: today)")
@click.option("--description", help="Description shown on payroll items")
@click.option("--pending", is_flag=True, help="Create unapproved; it is not deducted until approved")
@click.pass_context
def create_loan(
    ctx,
    employee_id: int,
    amount: str,
    installments: int,
    source: str,
    start_date: str | None,
    description: str | None,
    pending: bool,
):
    """Create a loan repaid through payroll deductions.

    Examples:
        payrollkit loan create --employee 1 --amount 1200.00 --installments 3
        payrollkit loan create --employee 1 --amount 500.00 --source thirteenth
    """
    service = LoanService(ctx.obj["db"])
    principal = amount_or_exit(ctx, amount)
    start = date_or_exit(ctx, start_date, "start date") if start_date else None
    try:
        loan_id = service.create_loan(
            employee_id=employee_id,
            amount=principal,
            installments=installments,
            discount_source=DiscountSource(source.lower()),
            start_date=start,
            description=description,
            is_approved=not pending,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created loan {loan_id}: {format_amount(principal)} in {installments} installment(s)")


@loan_group.command("list")
@click.option("--employee", "employee_id", type=int, required=True, help="Employee ID")
@click.pass_context
def list_loans(ctx, employee_id: int):
    """List loans of an employee."""
    service = LoanService(ctx.obj["db"])

    loans = service.list_loans(employee_id)
    if not loans:
        click.echo("No loans found.")
        return

    click.echo("\nLoans:")
    click.echo("-" * 80)
    for loan in loans:
        status = "paid" if loan.is_fully_paid else ("approved" if loan.is_approved else "pending")
        click.echo(
            f"ID: {loan.id:3d} | {format_amount(loan.amount):>10s} | paid {format_amount(loan.paid_amount):>10s} | "
            f"{loan.installments}x | {loan.discount_source.value:10s} | from {loan.start_date} | {status}"
        )


@loan_group.command("approve")
@click.argument("loan_id", type=int)
@click.pass_context
def approve_loan(ctx, loan_id: int):
    """Approve a pending loan."""
    service = LoanService(ctx.obj["db"])
    try:
        service.approve_loan(loan_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Approved loan {loan_id}")


def register_commands(cli):
    """Register loan commands with main CLI."""
    cli.add_command(loan_group, name="loan")
