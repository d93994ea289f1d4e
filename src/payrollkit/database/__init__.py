"""Database layer for payrollkit."""

from payrollkit.database.base import Database
from payrollkit.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
