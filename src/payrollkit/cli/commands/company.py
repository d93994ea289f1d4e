"""Company and bank account commands."""

import click

from payrollkit.cli.error_handling import handle_domain_error
from payrollkit.domain.company import CompanyService
from payrollkit.domain.errors import DomainError


@click.group()
def company_group():
    """Manage companies."""
    pass


@company_group.command("create")
@click.argument("name", metavar="COMPANY_NAME")
@click.pass_context
def create_company(ctx, name: str):
    """Create a new company.

    Examples:
        payrollkit company create "Acme Ltda"
    """
    service = CompanyService(ctx.obj["db"])
    try:
        company_id = service.create_company(name)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created company '{name.strip()}' (ID: {company_id})")


@company_group.command("list")
@click.pass_context
def list_companies(ctx):
    """List all companies."""
    service = CompanyService(ctx.obj["db"])

    companies = service.list_companies()
    if not companies:
        click.echo("No companies found.")
        return

    click.echo("\nCompanies:")
    click.echo("-" * 60)
    for company in companies:
        click.echo(f"ID: {company.id:3d} | {company.name}")


@click.group()
def account_group():
    """Manage bank accounts payrolls are paid from."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option("--company", "company_id", type=int, required=True, help="Company ID")
@click.option("--bank", help="Bank name (defaults to account name if not provided)")
@click.pass_context
def create_account(ctx, name: str, company_id: int, bank: str | None):
    """Create a new bank account.

    Examples:
        payrollkit account create "Payroll" --company 1 --bank "First Bank"
    """
    service = CompanyService(ctx.obj["db"])
    bank_name = bank if bank is not None else name
    try:
        account_id = service.create_account(company_id, name, bank_name)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created account '{name.strip()}' (ID: {account_id})")


@account_group.command("list")
@click.option("--company", "company_id", type=int, required=True, help="Company ID")
@click.pass_context
def list_accounts(ctx, company_id: int):
    """List accounts of a company."""
    service = CompanyService(ctx.obj["db"])

    accounts = service.list_accounts(company_id)
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 60)
    for acc in accounts:
        click.echo(f"ID: {acc.id:3d} | {acc.name:20s} | Bank: {acc.bank_name}")


def register_commands(cli):
    """Register company and account commands with main CLI."""
    cli.add_command(company_group, name="company")
    cli.add_command(account_group, name="account")
