"""Main CLI entry point."""

from dataclasses import replace

import click

from payrollkit.config import Settings, load_tax_tables
from payrollkit.database.factories import create_sqlite_database
from payrollkit.domain.errors import DomainError
from payrollkit.domain.taxes import TaxCalculator
from payrollkit.logging_config import configure_logging
from payrollkit.cli.error_handling import handle_domain_error

# Import and register all commands at module level
from payrollkit.cli.commands import (
    company,
    cost_center,
    employee,
    contract,
    loan,
    payroll,
    item,
    thirteenth,
    vacation,
    transaction,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides PAYROLLKIT_DB_PATH environment variable)",
    envvar="PAYROLLKIT_DB_PATH",
)
@click.option(
    "--tax-tables",
    type=click.Path(),
    help="YAML file with social security, income tax and employer fund tables",
    envvar="PAYROLLKIT_TAX_TABLES",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    envvar="PAYROLLKIT_LOG_LEVEL",
    help="Log level for the JSON log lines written to stderr",
)
@click.pass_context
def cli(ctx, db_path: str | None, tax_tables: str | None, log_level: str):
    """Payrollkit - Payroll processing for small companies.

    Builds monthly payrolls from employment contracts, applies thirteenth
    salary and vacation payments, and posts the settlement split across
    cost centers.
    """
    ctx.ensure_object(dict)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        configure_logging(level=log_level.upper())
        try:
            settings = replace(
                Settings.from_env(),
                db_path=db_path,
                tax_tables_path=tax_tables,
                log_level=log_level.upper(),
            )
            calculator = TaxCalculator(load_tax_tables(settings.tax_tables_path))
        except DomainError as e:
            handle_domain_error(ctx, e)

        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.obj["settings"] = settings
        ctx.obj["calculator"] = calculator


# Register all commands
company.register_commands(cli)
cost_center.register_commands(cli)
employee.register_commands(cli)
contract.register_commands(cli)
loan.register_commands(cli)
payroll.register_commands(cli)
item.register_commands(cli)
thirteenth.register_commands(cli)
vacation.register_commands(cli)
transaction.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
