"""Filtered, paginated view over the ledger."""

from tithebook.db.repository import LedgerRepository
from tithebook.ledger.store import entry_from_row
from tithebook.models.reports import LedgerFilter, PagedResult, PageRequest


class LedgerQuery:
    """Read-only projection of ledger entries.

    Every call reads the repository directly; there is no cache.
    """

    def __init__(self, repo: LedgerRepository):
        self.repo = repo

    def list(
        self,
        ledger_filter: LedgerFilter | None = None,
        page: PageRequest | None = None,
    ) -> PagedResult:
        """Entries matching the scope AND the search term, newest payment first."""
        ledger_filter = ledger_filter or LedgerFilter()
        page = page or PageRequest()
        search_term = (ledger_filter.search_term or "").strip() or None
        rows, total = self.repo.query_entries(
            scope_id=ledger_filter.scope_id,
            search_term=search_term,
            limit=page.size,
            offset=page.offset,
        )
        return PagedResult(
            items=[entry_from_row(row) for row in rows],
            total_matching=total,
            index=page.index,
            size=page.size,
        )
