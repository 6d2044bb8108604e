"""SQLite persistence: connection management, schema, and table repositories."""

from marketplace.store.database import Database, open_database
from marketplace.store.repositories import Repositories

__all__ = ["Database", "Repositories", "open_database"]
