"""CLI error handling helpers."""

import click

from payrollkit.domain.errors import DomainError, IntegrityError
from payrollkit.logging_config import get_logger

logger = get_logger("cli")


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure.

    Integrity errors mean stored money totals drifted, so they are logged
    with their context at ERROR. Caller mistakes only reach the DEBUG log.
    """
    if isinstance(error, IntegrityError):
        logger.error(
            "integrity_error",
            exc_info=error,
            extra={"command": ctx.command_path},
        )
    else:
        logger.debug(
            "command_rejected",
            extra={"command": ctx.command_path, "error_type": type(error).__name__},
        )
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)
