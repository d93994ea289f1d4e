"""Contract, benefit/discount and cost center weight commands."""

import click

from payrollkit.cli.error_handling import handle_domain_error
from payrollkit.cli.parsing import amount_or_exit, date_or_exit, shares_or_exit
from payrollkit.domain.contract import ContractService
from payrollkit.domain.entities import Application, BenefitKind, ContractType
from payrollkit.domain.errors import DomainError
from payrollkit.utils.amount_parser import format_amount


@click.group()
def contract_group():
    """Manage employment contracts."""
    pass


@contract_group.command("create")
@click.option("--employee", "employee_id", type=int, required=True, help="Employee ID")
@click.option(
    "--type",
    "contract_type",
    type=click.Choice([t.value for t in ContractType], case_sensitive=False),
    default=ContractType.MONTHLY.value,
    help="Contract type (default: monthly)",
)
@click.option("--value", required=True, help="Monthly salary, or rate per hour/day (e.g., 5000.00)")
@click.option("--start-date", required=True, help="First day of the contract")
@click.option("--end-date", help="Last day of the contract")
@click.option("--inss", is_flag=True, help="Withhold social security")
@click.option("--irrf", is_flag=True, help="Withhold income tax")
@click.option("--fgts", is_flag=True, help="Employer fund levy applies")
@click.option("--no-thirteenth", is_flag=True, help="Contract does not receive the thirteenth salary")
@click.option("--not-payroll", is_flag=True, help="Contract is not paid through payroll")
@click.pass_context
def create_contract(
    ctx,
    employee_id: int,
    contract_type: str,
    value: str,
    start_date: str,
    end_date: str | None,
    inss: bool,
    irrf: bool,
    fgts: bool,
    no_thirteenth: bool,
    not_payroll: bool,
):
    """Create a contract for an employee.

    Examples:
        payrollkit contract create --employee 1 --value 5000.00 --start-date 2024-01-01 --inss --fgts
        payrollkit contract create --employee 2 --type hourly --value 25.00 --start-date 2024-03-01
    """
    service = ContractService(ctx.obj["db"])
    contract_value = amount_or_exit(ctx, value, "value")
    start = date_or_exit(ctx, start_date, "start date")
    end = date_or_exit(ctx, end_date, "end date") if end_date else None

    try:
        contract_id = service.create_contract(
            employee_id=employee_id,
            type=ContractType(contract_type.lower()),
            value=contract_value,
            start_date=start,
            end_date=end,
            is_payroll=not not_payroll,
            has_inss=inss,
            has_irrf=irrf,
            has_fgts=fgts,
            has_thirteenth_salary=not no_thirteenth,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created contract {contract_id} for employee {employee_id}")


@contract_group.command("list")
@click.option("--employee", "employee_id", type=int, required=True, help="Employee ID")
@click.pass_context
def list_contracts(ctx, employee_id: int):
    """List contracts of an employee, newest first."""
    service = ContractService(ctx.obj["db"])

    contracts = service.list_contracts(employee_id)
    if not contracts:
        click.echo("No contracts found.")
        return

    click.echo("\nContracts:")
    click.echo("-" * 80)
    for contract in contracts:
        end = contract.end_date.isoformat() if contract.end_date else "open"
        flags = [
            name
            for name, enabled in (
                ("inss", contract.has_inss),
                ("irrf", contract.has_irrf),
                ("fgts", contract.has_fgts),
                ("13th", contract.has_thirteenth_salary),
            )
            if enabled
        ]
        status = "" if contract.is_active else " (inactive)"
        click.echo(
            f"ID: {contract.id:3d} | {contract.type.value:7s} | {format_amount(contract.value):>12s} | "
            f"{contract.start_date} - {end} | {', '.join(flags) or '-'}{status}"
        )


@contract_group.command("end")
@click.argument("contract_id", type=int)
@click.option("--end-date", required=True, help="Last day of the contract")
@click.pass_context
def end_contract(ctx, contract_id: int, end_date: str):
    """Set a contract's last day."""
    service = ContractService(ctx.obj["db"])
    end = date_or_exit(ctx, end_date, "end date")
    try:
        service.end_contract(contract_id, end)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Contract {contract_id} ends on {end}")


@contract_group.group("benefit")
def benefit_group():
    """Manage recurring benefits and discounts of a contract."""
    pass


@benefit_group.command("add")
@click.argument("contract_id", type=int)
@click.argument("description")
@click.option("--amount", required=True, help="Full amount (e.g., 100.00)")
@click.option("--discount", is_flag=True, help="Deduct instead of adding")
@click.option(
    "--application",
    type=click.Choice([a.value for a in Application], case_sensitive=False),
    default=Application.SALARY.value,
    help="Payments the item applies to (default: salary)",
)
@click.option("--month", type=click.IntRange(1, 12), help="Only apply in this calendar month")
@click.option("--fixed", is_flag=True, help="Do not prorate by days worked")
@click.option("--taxable", is_flag=True, help="Include in the taxable base")
@click.pass_context
def add_benefit(
    ctx,
    contract_id: int,
    description: str,
    amount: str,
    discount: bool,
    application: str,
    month: int | None,
    fixed: bool,
    taxable: bool,
):
    """Attach a benefit or discount to a contract.

    Examples:
        payrollkit contract benefit add 1 "Meal allowance" --amount 100.00
        payrollkit contract benefit add 1 "Health plan" --amount 80.00 --discount --fixed
    """
    service = ContractService(ctx.obj["db"])
    value = amount_or_exit(ctx, amount)
    try:
        benefit_id = service.add_benefit_discount(
            contract_id=contract_id,
            description=description,
            kind=BenefitKind.DISCOUNT if discount else BenefitKind.BENEFIT,
            amount=value,
            application=Application(application.lower()),
            month=month,
            is_proportional=not fixed,
            has_taxes=taxable,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    kind = "discount" if discount else "benefit"
    click.echo(f"Added {kind} '{description}' (ID: {benefit_id}) to contract {contract_id}")


@benefit_group.command("list")
@click.argument("contract_id", type=int)
@click.pass_context
def list_benefits(ctx, contract_id: int):
    """List benefits and discounts of a contract."""
    service = ContractService(ctx.obj["db"])

    items = service.list_benefit_discounts(contract_id)
    if not items:
        click.echo("No benefits or discounts found.")
        return

    for item in items:
        month = f" | month {item.month}" if item.month else ""
        mode = "proportional" if item.is_proportional else "fixed"
        click.echo(
            f"ID: {item.id:3d} | {item.kind.value:8s} | {item.description:25s} | "
            f"{format_amount(item.amount):>10s} | {item.application.value} | {mode}{month}"
        )


@benefit_group.command("remove")
@click.argument("benefit_id", type=int)
@click.pass_context
def remove_benefit(ctx, benefit_id: int):
    """Delete a benefit or discount."""
    service = ContractService(ctx.obj["db"])
    try:
        service.remove_benefit_discount(benefit_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Removed benefit/discount {benefit_id}")


@contract_group.command("cost-centers")
@click.argument("contract_id", type=int)
@click.argument("shares", nargs=-1, metavar="COST_CENTER_ID=PERCENT...")
@click.pass_context
def cost_centers(ctx, contract_id: int, shares: tuple[str, ...]):
    """Show or replace the cost center split of a contract.

    Percentages must add up to 100.

    Examples:
        payrollkit contract cost-centers 1
        payrollkit contract cost-centers 1 1=60 2=40
    """
    service = ContractService(ctx.obj["db"])
    if shares:
        try:
            service.set_cost_centers(contract_id, shares_or_exit(ctx, shares))
        except DomainError as e:
            handle_domain_error(ctx, e)

    rows = service.list_cost_centers(contract_id)
    if not rows:
        click.echo("No cost centers assigned.")
        return
    for row in rows:
        click.echo(f"Cost center {row.cost_center_id:3d} | {row.percentage}%")


def register_commands(cli):
    """Register contract commands with main CLI."""
    cli.add_command(contract_group, name="contract")
