"""Storage layer for transactions."""

from .database import TransactionDatabase, DEFAULT_DB_PATH

__all__ = ["TransactionDatabase", "DEFAULT_DB_PATH"]
