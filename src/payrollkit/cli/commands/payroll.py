"""Payroll lifecycle commands."""

import click

from payrollkit.cli.error_handling import handle_domain_error
from payrollkit.cli.parsing import amount_or_exit, date_or_exit, period_or_exit
from payrollkit.domain.entities import ItemType, PayrollView
from payrollkit.domain.errors import DomainError
from payrollkit.domain.payroll import PayrollService
from payrollkit.utils.amount_parser import format_amount


def payroll_service(ctx: click.Context) -> PayrollService:
    """Build a payroll service from the CLI context."""
    return PayrollService(
        ctx.obj["db"],
        calculator=ctx.obj["calculator"],
        entitlement_days=ctx.obj["settings"].vacation_days,
    )


def print_payroll_view(view: PayrollView) -> None:
    """Print a payroll with its employees and items."""
    payroll = view.payroll
    status = "closed" if payroll.is_closed else "open"
    click.echo(f"\nPayroll {payroll.id} | {payroll.period_start} - {payroll.period_end} | {status}")
    if payroll.thirteenth_percentage is not None:
        click.echo(f"Thirteenth salary: {payroll.thirteenth_percentage}% (taxes: {payroll.thirteenth_tax_option.value})")
    click.echo("-" * 80)

    for employee_view in view.employees:
        pe = employee_view.payroll_employee
        vacation = f" | vacation {pe.vacation_days} days from {pe.vacation_start_date}" if pe.is_on_vacation else ""
        click.echo(
            f"{employee_view.employee_name} (payroll employee {pe.id}) | "
            f"days {pe.days_worked}/{pe.days_in_period}{vacation}"
        )
        for item in employee_view.items:
            sign = "+" if item.type == ItemType.CREDIT else "-"
            manual = " *" if item.is_manual else ""
            click.echo(f"  [{item.id:4d}] {sign} {item.description:50s} {format_amount(item.amount):>12s}{manual}")
        click.echo(
            f"  Gross {format_amount(pe.total_gross_pay)} | Deductions {format_amount(pe.total_deductions)} | "
            f"Net {format_amount(pe.total_net_pay)}"
        )

    click.echo("-" * 80)
    click.echo(
        f"Total gross {format_amount(payroll.total_gross_pay)} | "
        f"Deductions {format_amount(payroll.total_deductions)} | "
        f"Net {format_amount(payroll.total_net_pay)} | "
        f"INSS {format_amount(payroll.total_inss)} | FGTS {format_amount(payroll.total_fgts)}"
    )


@click.group()
def payroll_group():
    """Create, calculate and close payrolls."""
    pass


@payroll_group.command("create")
@click.option("--company", "company_id", type=int, required=True, help="Company ID")
@click.option("--period", help="Month of the payroll (YYYY-MM, MM/YYYY, this-month, last-month)")
@click.option("--start-date", help="First day of the period")
@click.option("--end-date", help="Last day of the period")
@click.option("--notes", help="Free text")
@click.pass_context
def create_payroll(
    ctx,
    company_id: int,
    period: str | None,
    start_date: str | None,
    end_date: str | None,
    notes: str | None,
):
    """Create a payroll from the company's active contracts.

    Examples:
        payrollkit payroll create --company 1 --period 2024-06
        payrollkit payroll create --company 1 --start-date 2024-06-01 --end-date 2024-06-15
    """
    start, end = period_or_exit(ctx, period, start_date, end_date)
    try:
        view = payroll_service(ctx).create(company_id, start, end, notes=notes)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created payroll {view.payroll.id} with {len(view.employees)} employee(s)")
    print_payroll_view(view)


@payroll_group.command("list")
@click.option("--company", "company_id", type=int, required=True, help="Company ID")
@click.pass_context
def list_payrolls(ctx, company_id: int):
    """List payrolls of a company, most recent first."""
    payrolls = payroll_service(ctx).list_payrolls(company_id)
    if not payrolls:
        click.echo("No payrolls found.")
        return

    click.echo("\nPayrolls:")
    click.echo("-" * 70)
    for payroll in payrolls:
        status = "closed" if payroll.is_closed else "open"
        click.echo(
            f"ID: {payroll.id:3d} | {payroll.period_start} - {payroll.period_end} | "
            f"net {format_amount(payroll.total_net_pay):>12s} | {status}"
        )


@payroll_group.command("show")
@click.argument("payroll_id", type=int)
@click.pass_context
def show_payroll(ctx, payroll_id: int):
    """Show a payroll with its items."""
    try:
        view = payroll_service(ctx).get_view(payroll_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    print_payroll_view(view)


@payroll_group.command("suggest")
@click.option("--company", "company_id", type=int, required=True, help="Company ID")
@click.pass_context
def suggest_period(ctx, company_id: int):
    """Suggest the period of the next payroll."""
    start, end = payroll_service(ctx).suggest_next_period(company_id)
    click.echo(f"Next period: {start} - {end}")


@payroll_group.command("recalculate")
@click.argument("payroll_id", type=int)
@click.option("--employee", "payroll_employee_id", type=int, help="Only this payroll employee")
@click.pass_context
def recalculate_payroll(ctx, payroll_id: int, payroll_employee_id: int | None):
    """Rebuild automatic items from current contracts, keeping manual ones."""
    service = payroll_service(ctx)
    try:
        if payroll_employee_id is None:
            view = service.recalculate(payroll_id)
        else:
            view = service.recalculate_employee(payroll_employee_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Recalculated payroll {view.payroll.id}")
    print_payroll_view(view)


@payroll_group.command("days-worked")
@click.argument("payroll_employee_id", type=int)
@click.argument("days", type=int)
@click.pass_context
def set_days_worked(ctx, payroll_employee_id: int, days: int):
    """Set the days a payroll employee worked."""
    try:
        view = payroll_service(ctx).set_days_worked(payroll_employee_id, days)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Payroll employee {payroll_employee_id} worked {days} day(s)")
    print_payroll_view(view)


@payroll_group.command("units")
@click.argument("payroll_employee_id", type=int)
@click.argument("units")
@click.pass_context
def set_worked_units(ctx, payroll_employee_id: int, units: str):
    """Set the hours or days an hourly/daily payroll employee is paid for."""
    try:
        view = payroll_service(ctx).set_worked_units(payroll_employee_id, units)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Payroll employee {payroll_employee_id} worked {units} unit(s)")
    print_payroll_view(view)


@payroll_group.command("close")
@click.argument("payroll_id", type=int)
@click.option("--account", "account_id", type=int, required=True, help="Account paying the payroll")
@click.option("--payment-date", required=True, help="Date of the payments")
@click.option("--inss", "inss_amount", default="0", help="Social security amount to post")
@click.option("--fgts", "fgts_amount", default="0", help="Employer fund amount to post")
@click.pass_context
def close_payroll(ctx, payroll_id: int, account_id: int, payment_date: str, inss_amount: str, fgts_amount: str):
    """Close a payroll and post its settlement.

    Examples:
        payrollkit payroll close 3 --account 1 --payment-date 2024-07-05
        payrollkit payroll close 3 --account 1 --payment-date 2024-07-05 --inss 1100.00 --fgts 400.00
    """
    paid_on = date_or_exit(ctx, payment_date, "payment date")
    inss = amount_or_exit(ctx, inss_amount, "INSS amount")
    fgts = amount_or_exit(ctx, fgts_amount, "FGTS amount")
    try:
        view = payroll_service(ctx).close(payroll_id, account_id, paid_on, inss_amount=inss, fgts_amount=fgts)
    except DomainError as e:
        handle_domain_error(ctx, e)
    posted = len(view.payroll.posted_transaction_ids)
    click.echo(f"Closed payroll {payroll_id}: {posted} transaction(s) posted")
    if view.payroll.generated_loan_ids:
        click.echo(f"Negative balances carried as loans: {', '.join(map(str, view.payroll.generated_loan_ids))}")


@payroll_group.command("reopen")
@click.argument("payroll_id", type=int)
@click.pass_context
def reopen_payroll(ctx, payroll_id: int):
    """Reopen a closed payroll for editing; postings are kept."""
    try:
        payroll_service(ctx).reopen(payroll_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Reopened payroll {payroll_id}")


@payroll_group.command("reverse")
@click.argument("payroll_id", type=int)
@click.option("--date", "transaction_date", help="Date of the reversing transactions (default: today)")
@click.pass_context
def reverse_settlement(ctx, payroll_id: int, transaction_date: str | None):
    """Reverse the postings and loan changes of a reopened payroll."""
    when = date_or_exit(ctx, transaction_date) if transaction_date else None
    try:
        payroll_service(ctx).reverse_settlement(payroll_id, when)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Reversed settlement of payroll {payroll_id}")


@payroll_group.command("delete")
@click.argument("payroll_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_payroll(ctx, payroll_id: int, yes: bool):
    """Delete an open payroll with all its items."""
    if not yes and not click.confirm(f"Are you sure you want to delete payroll {payroll_id}?"):
        click.echo("Deletion cancelled.")
        return
    try:
        payroll_service(ctx).delete(payroll_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted payroll {payroll_id}")


def register_commands(cli):
    """Register payroll commands with main CLI."""
    cli.add_command(payroll_group, name="payroll")
