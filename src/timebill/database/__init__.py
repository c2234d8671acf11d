"""Database layer for timebill application."""

from timebill.database.base import Database, RecordStore
from timebill.database.factories import create_sqlite_database

__all__ = ["Database", "RecordStore", "create_sqlite_database"]
