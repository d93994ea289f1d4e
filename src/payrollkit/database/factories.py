"""Database factory functions for creating database instances."""

import os
from pathlib import Path
from typing import Optional

from payrollkit.database.sqlalchemy_db import SQLAlchemyDatabase
from payrollkit.logging_config import get_logger

logger = get_logger("database")

DEFAULT_DB_DIR = Path.home() / ".payrollkit"


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks PAYROLLKIT_DB_PATH
            environment variable, then defaults to ~/.payrollkit/payrollkit.db.
            A leading ~ is expanded and missing parent directories are created.

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    path = database_path or os.environ.get("PAYROLLKIT_DB_PATH")
    db_file = Path(path).expanduser() if path else DEFAULT_DB_DIR / "payrollkit.db"
    db_file.parent.mkdir(parents=True, exist_ok=True)

    logger.debug("sqlite_database", extra={"database_path": str(db_file)})
    return SQLAlchemyDatabase(f"sqlite:///{db_file}")
