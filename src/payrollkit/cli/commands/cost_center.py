"""Cost center commands."""

import click

from payrollkit.cli.error_handling import handle_domain_error
from payrollkit.domain.cost_center import CostCenterService
from payrollkit.domain.errors import DomainError


@click.group()
def cost_center_group():
    """Manage cost centers."""
    pass


@cost_center_group.command("create")
@click.argument("name", metavar="NAME")
@click.option("--company", "company_id", type=int, required=True, help="Company ID")
@click.pass_context
def create_cost_center(ctx, name: str, company_id: int):
    """Create a cost center.

    Examples:
        payrollkit cost-center create "Operations" --company 1
    """
    service = CostCenterService(ctx.obj["db"])
    try:
        cost_center_id = service.create_cost_center(company_id, name)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created cost center '{name.strip()}' (ID: {cost_center_id})")


@cost_center_group.command("list")
@click.option("--company", "company_id", type=int, required=True, help="Company ID")
@click.option("--active-only", is_flag=True, help="Hide inactive cost centers")
@click.pass_context
def list_cost_centers(ctx, company_id: int, active_only: bool):
    """List cost centers of a company."""
    service = CostCenterService(ctx.obj["db"])

    cost_centers = service.list_cost_centers(company_id, active_only=active_only)
    if not cost_centers:
        click.echo("No cost centers found.")
        return

    click.echo("\nCost centers:")
    click.echo("-" * 60)
    for cost_center in cost_centers:
        status = "" if cost_center.is_active else " (inactive)"
        click.echo(f"ID: {cost_center.id:3d} | {cost_center.name}{status}")


@cost_center_group.command("deactivate")
@click.argument("cost_center_id", type=int)
@click.pass_context
def deactivate_cost_center(ctx, cost_center_id: int):
    """Deactivate a cost center."""
    service = CostCenterService(ctx.obj["db"])
    try:
        service.set_active(cost_center_id, False)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deactivated cost center {cost_center_id}")


def register_commands(cli):
    """Register cost center commands with main CLI."""
    cli.add_command(cost_center_group, name="cost-center")
