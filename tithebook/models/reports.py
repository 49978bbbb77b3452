"""Query, summary and report output models."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from math import ceil

from pydantic import BaseModel, Field

from tithebook.models.enums import AuditOperation
from tithebook.models.ledger import LedgerEntry


class LedgerFilter(BaseModel):
    scope_id: str | None = None
    search_term: str | None = None


class PageRequest(BaseModel):
    """Offset pagination request. ``index`` is 0-based."""

    index: int = Field(default=0, ge=0)
    size: int = Field(default=10, ge=1, le=1000)

    @property
    def offset(self) -> int:
        return self.index * self.size


class PagedResult(BaseModel):
    items: list[LedgerEntry]
    total_matching: int
    index: int
    size: int

    @property
    def page_count(self) -> int:
        return ceil(self.total_matching / self.size) if self.total_matching else 0


@dataclass
class NameDirectory:
    """Church and member display names, resolved ahead of an export."""

    church_names: dict[str, str] = field(default_factory=dict)
    member_names: dict[str, str] = field(default_factory=dict)

    def church_name(self, church_id: str) -> str:
        return self.church_names.get(church_id, "Unknown")

    def contributor_name(self, member_id: str | None) -> str:
        if not member_id:
            return "Anonymous"
        return self.member_names.get(member_id, "Unknown")


class ExportRow(BaseModel):
    payment_date: date
    church: str
    contributor: str
    amount: Decimal
    currency: str
    normalized_amount: Decimal
    method: str
    reference: str


class ScopeTotal(BaseModel):
    scope_id: str
    entry_count: int
    total: Decimal


class LedgerSummary(BaseModel):
    reporting_currency: str
    total: Decimal
    entry_count: int
    scope_count: int
    average: Decimal
    by_scope: list[ScopeTotal] = []


class AuditEntry(BaseModel):
    timestamp: datetime
    operation: AuditOperation
    entry_id: str
    inputs: dict
    output: dict
    notes: str | None = None
