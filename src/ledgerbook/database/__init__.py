"""Database layer for ledgerbook application."""

from ledgerbook.database.base import Database
from ledgerbook.database.factories import create_sqlite_database, create_database

__all__ = ["Database", "create_sqlite_database", "create_database"]
