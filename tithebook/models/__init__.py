"""Data models for Tithebook."""

from tithebook.models.enums import AuditOperation, ExportFormat
from tithebook.models.ledger import Church, EntryDraft, EntryPatch, LedgerEntry, Member
from tithebook.models.reports import (
    AuditEntry,
    ExportRow,
    LedgerFilter,
    LedgerSummary,
    NameDirectory,
    PagedResult,
    PageRequest,
    ScopeTotal,
)

__all__ = [
    "AuditEntry",
    "AuditOperation",
    "Church",
    "EntryDraft",
    "EntryPatch",
    "ExportFormat",
    "ExportRow",
    "LedgerEntry",
    "LedgerFilter",
    "LedgerSummary",
    "Member",
    "NameDirectory",
    "PagedResult",
    "PageRequest",
    "ScopeTotal",
]
