"""Employee commands."""

import click

from payrollkit.cli.error_handling import handle_domain_error
from payrollkit.domain.employee import EmployeeService
from payrollkit.domain.errors import DomainError


@click.group()
def employee_group():
    """Manage employees."""
    pass


@employee_group.command("create")
@click.argument("name", metavar="EMPLOYEE_NAME")
@click.option("--company", "company_id", type=int, required=True, help="Company ID")
@click.pass_context
def create_employee(ctx, name: str, company_id: int):
    """Create an employee.

    Examples:
        payrollkit employee create "Maria Silva" --company 1
    """
    service = EmployeeService(ctx.obj["db"])
    try:
        employee_id = service.create_employee(company_id, name)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created employee '{name.strip()}' (ID: {employee_id})")


@employee_group.command("list")
@click.option("--company", "company_id", type=int, required=True, help="Company ID")
@click.option("--active-only", is_flag=True, help="Hide inactive employees")
@click.pass_context
def list_employees(ctx, company_id: int, active_only: bool):
    """List employees of a company."""
    service = EmployeeService(ctx.obj["db"])

    employees = service.list_employees(company_id, active_only=active_only)
    if not employees:
        click.echo("No employees found.")
        return

    click.echo("\nEmployees:")
    click.echo("-" * 60)
    for employee in employees:
        status = "" if employee.is_active else " (inactive)"
        click.echo(f"ID: {employee.id:3d} | {employee.name}{status}")


@employee_group.command("deactivate")
@click.argument("employee_id", type=int)
@click.pass_context
def deactivate_employee(ctx, employee_id: int):
    """Leave an employee out of new payrolls."""
    service = EmployeeService(ctx.obj["db"])
    try:
        service.set_active(employee_id, False)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deactivated employee {employee_id}")


def register_commands(cli):
    """Register employee commands with main CLI."""
    cli.add_command(employee_group, name="employee")
