"""Runtime settings read from the environment."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from payrollkit.domain.errors import ValidationError
from payrollkit.domain.taxes import TaxTables

DEFAULT_VACATION_DAYS = 30


@dataclass(frozen=True)
class Settings:
    """Settings shared by the CLI and the services."""

    db_path: Optional[str] = None
    log_level: str = "WARNING"
    tax_tables_path: Optional[str] = None
    vacation_days: int = DEFAULT_VACATION_DAYS

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "Settings":
        """Read PAYROLLKIT_* variables, falling back to defaults."""
        environ = os.environ if environ is None else environ
        vacation_days = environ.get("PAYROLLKIT_VACATION_DAYS")
        try:
            vacation_days = int(vacation_days) if vacation_days else DEFAULT_VACATION_DAYS
        except ValueError:
            raise ValidationError(
                f"PAYROLLKIT_VACATION_DAYS must be an integer (got '{vacation_days}')"
            )
        if vacation_days <= 0:
            raise ValidationError("PAYROLLKIT_VACATION_DAYS must be positive")

        return cls(
            db_path=environ.get("PAYROLLKIT_DB_PATH"),
            log_level=environ.get("PAYROLLKIT_LOG_LEVEL", "WARNING").upper(),
            tax_tables_path=environ.get("PAYROLLKIT_TAX_TABLES"),
            vacation_days=vacation_days,
        )


def load_tax_tables(path: Optional[str] = None) -> TaxTables:
    """Load tax tables from a YAML file.

    Without a path the empty tables (no withholding) are returned.

    Raises:
        ValidationError: If the file is missing or malformed
    """
    if path is None:
        return TaxTables()

    file_path = Path(path)
    if not file_path.exists():
        raise ValidationError(f"Tax table file '{path}' does not exist")

    try:
        with file_path.open() as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValidationError(f"Could not parse tax table file '{path}': {e}")
    if not isinstance(data, dict):
        raise ValidationError(f"Tax table file '{path}' must contain a mapping")

    return TaxTables.from_mapping(data)
