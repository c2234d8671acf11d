"""Database factory functions for creating database instances."""

import logging
import os
from pathlib import Path
from typing import Optional

from timebill import config
from timebill.database.sqlalchemy_db import SQLAlchemyDatabase

logger = logging.getLogger(__name__)


def resolve_database_path(database_path: Optional[str] = None) -> Path:
    """Work out which SQLite file to use.

    Precedence: the explicit path, then TIMEBILL_DB_PATH, then
    ~/.timebill/timebill.db. The parent directory is created if needed.
    """
    raw = database_path or os.environ.get(config.DB_PATH_ENV_VAR)
    path = Path(raw).expanduser() if raw else config.DEFAULT_DB_DIR / config.DEFAULT_DB_FILENAME
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file; see resolve_database_path

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    path = resolve_database_path(database_path)
    logger.debug(f"Using database {path}")
    return SQLAlchemyDatabase(f"sqlite:///{path}")
