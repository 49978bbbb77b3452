"""Ledger store and query view."""

from tithebook.ledger.query import LedgerQuery
from tithebook.ledger.store import LedgerStore, entry_from_row

__all__ = ["LedgerQuery", "LedgerStore", "entry_from_row"]
