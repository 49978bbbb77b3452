"""Database layer for Tithebook."""

from tithebook.db.repository import LedgerRepository
from tithebook.db.schema import create_schema

__all__ = ["LedgerRepository", "create_schema"]
