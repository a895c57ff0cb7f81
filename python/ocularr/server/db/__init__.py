"""Ocularr Server - Cycle Store."""

from .connection import (
    DatabaseManager,
    get_database_manager,
    get_db,
    init_database,
    set_database_manager,
)

__all__ = [
    "DatabaseManager",
    "get_database_manager",
    "get_db",
    "init_database",
    "set_database_manager",
]
