from crudkit.db.engine import get_engine
from crudkit.db.memory import InMemoryRepository
from crudkit.db.sql import SOFT_DELETE_COLUMN, SqlRepository

__all__ = [
    "SOFT_DELETE_COLUMN",
    "InMemoryRepository",
    "SqlRepository",
    "get_engine",
]
