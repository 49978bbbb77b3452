"""Data access layer for Tithebook."""

import json
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from decimal import Decimal

from tithebook.models.ledger import Church, LedgerEntry, Member
from tithebook.models.reports import AuditEntry, NameDirectory

_ENTRY_COLUMNS = (
    "id",
    "scope_id",
    "contributor_id",
    "amount",
    "currency",
    "normalized_amount",
    "exchange_rate",
    "payment_method",
    "payment_date",
    "transaction_reference",
    "notes",
    "created_at",
    "updated_at",
)


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _entry_params(entry: LedgerEntry) -> tuple:
    return (
        entry.id,
        entry.scope_id,
        entry.contributor_id,
        str(entry.amount),
        entry.currency,
        str(entry.normalized_amount),
        str(entry.exchange_rate),
        entry.payment_method,
        entry.payment_date.isoformat(),
        entry.transaction_reference,
        entry.notes,
        entry.created_at.isoformat(timespec="microseconds"),
        entry.updated_at.isoformat(timespec="microseconds") if entry.updated_at else None,
    )


class LedgerRepository:
    """CRUD operations for ledger entities."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self._transaction_depth = 0

    def _commit(self) -> None:
        if not self._transaction_depth:
            self.conn.commit()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Group several writes into one commit; roll all back on error."""
        self._transaction_depth += 1
        try:
            yield
        except BaseException:
            self._transaction_depth -= 1
            if not self._transaction_depth:
                self.conn.rollback()
            raise
        self._transaction_depth -= 1
        self._commit()

    def _fetch_dicts(self, query: str, params: tuple | list = ()) -> list[dict]:
        cursor = self.conn.execute(query, params)
        columns = [desc[0] for desc in cursor.description]
        return [dict(zip(columns, row)) for row in cursor.fetchall()]

    # --- Churches ---

    def save_church(self, church: Church) -> None:
        """Insert or update a church."""
        self.conn.execute(
            "INSERT OR REPLACE INTO churches (id, name, location) VALUES (?, ?, ?)",
            (church.id, church.name, church.location),
        )
        self._commit()

    def get_church(self, church_id: str) -> dict | None:
        rows = self._fetch_dicts("SELECT * FROM churches WHERE id = ?", (church_id,))
        return rows[0] if rows else None

    def get_churches(self) -> list[dict]:
        """Retrieve all churches ordered by name."""
        return self._fetch_dicts("SELECT * FROM churches ORDER BY name")

    # --- Members ---

    def save_member(self, member: Member) -> None:
        """Insert or update a church member."""
        self.conn.execute(
            """INSERT OR REPLACE INTO members
               (id, church_id, first_name, last_name, email, phone)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (
                member.id,
                member.church_id,
                member.first_name,
                member.last_name,
                member.email,
                member.phone,
            ),
        )
        self._commit()

    def get_members(self, church_id: str | None = None) -> list[dict]:
        """Retrieve members, optionally filtered by church."""
        if church_id:
            return self._fetch_dicts(
                "SELECT * FROM members WHERE church_id = ? ORDER BY first_name, last_name",
                (church_id,),
            )
        return self._fetch_dicts("SELECT * FROM members ORDER BY first_name, last_name")

    def get_name_directory(self) -> NameDirectory:
        """Snapshot church and member display names for report rendering."""
        churches = {row["id"]: row["name"] for row in self.get_churches()}
        members = {
            row["id"]: f"{row['first_name']} {row['last_name']}".strip()
            for row in self.get_members()
        }
        return NameDirectory(church_names=churches, member_names=members)

    # --- Ledger entries ---

    def insert_entry(self, entry: LedgerEntry) -> None:
        """Insert a new ledger entry."""
        placeholders = ", ".join("?" for _ in _ENTRY_COLUMNS)
        self.conn.execute(
            f"INSERT INTO ledger_entries ({', '.join(_ENTRY_COLUMNS)}) VALUES ({placeholders})",
            _entry_params(entry),
        )
        self._commit()

    def replace_entry(self, entry: LedgerEntry) -> int:
        """Overwrite every mutable column of an entry. Returns rows updated."""
        params = _entry_params(entry)
        cursor = self.conn.execute(
            """UPDATE ledger_entries
               SET scope_id = ?, contributor_id = ?, amount = ?, currency = ?,
                   normalized_amount = ?, exchange_rate = ?, payment_method = ?,
                   payment_date = ?, transaction_reference = ?, notes = ?,
                   updated_at = ?
               WHERE id = ?""",
            (*params[1:11], params[12], entry.id),
        )
        self._commit()
        return cursor.rowcount

    def delete_entry(self, entry_id: str) -> int:
        """Delete a ledger entry. Returns count deleted."""
        cursor = self.conn.execute("DELETE FROM ledger_entries WHERE id = ?", (entry_id,))
        self._commit()
        return cursor.rowcount

    def get_entry(self, entry_id: str) -> dict | None:
        rows = self._fetch_dicts("SELECT * FROM ledger_entries WHERE id = ?", (entry_id,))
        return rows[0] if rows else None

    def get_normalized_amounts(self, scope_id: str | None = None) -> list[tuple[str, str]]:
        """Return (scope_id, normalized_amount) pairs, optionally for one scope."""
        if scope_id:
            cursor = self.conn.execute(
                "SELECT scope_id, normalized_amount FROM ledger_entries WHERE scope_id = ?",
                (scope_id,),
            )
        else:
            cursor = self.conn.execute("SELECT scope_id, normalized_amount FROM ledger_entries")
        return cursor.fetchall()

    def query_entries(
        self,
        scope_id: str | None = None,
        search_term: str | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[dict], int]:
        """Filter, order and slice ledger entries. Returns (rows, total matching)."""
        conditions = []
        params: list[str] = []
        if scope_id:
            conditions.append("e.scope_id = ?")
            params.append(scope_id)
        if search_term:
            pattern = f"%{_escape_like(search_term.casefold())}%"
            searchable = (
                "casefold(coalesce(m.first_name, '') || ' ' || coalesce(m.last_name, ''))",
                "casefold(coalesce(e.transaction_reference, ''))",
                "casefold(coalesce(e.notes, ''))",
                "casefold(coalesce(e.payment_method, ''))",
            )
            conditions.append(
                "(" + " OR ".join(f"{column} LIKE ? ESCAPE '\\'" for column in searchable) + ")"
            )
            params.extend([pattern] * len(searchable))

        where = " WHERE " + " AND ".join(conditions) if conditions else ""
        base = "FROM ledger_entries e LEFT JOIN members m ON m.id = e.contributor_id" + where

        total = self.conn.execute(f"SELECT COUNT(*) {base}", params).fetchone()[0]
        rows = self._fetch_dicts(
            f"""SELECT e.* {base}
                ORDER BY e.payment_date DESC, e.created_at DESC, e.rowid DESC
                LIMIT ? OFFSET ?""",
            [*params, limit, offset],
        )
        return rows, total

    # --- Exchange rates ---

    def save_exchange_rate(self, from_currency: str, to_currency: str, rate: Decimal) -> None:
        """Insert or replace an operator-maintained exchange rate."""
        self.conn.execute(
            """INSERT OR REPLACE INTO exchange_rates (from_currency, to_currency, rate, updated_at)
               VALUES (?, ?, ?, datetime('now'))""",
            (from_currency, to_currency, str(rate)),
        )
        self._commit()

    def get_exchange_rate(self, from_currency: str, to_currency: str) -> Decimal | None:
        cursor = self.conn.execute(
            "SELECT rate FROM exchange_rates WHERE from_currency = ? AND to_currency = ?",
            (from_currency, to_currency),
        )
        row = cursor.fetchone()
        return Decimal(row[0]) if row else None

    def get_exchange_rates(self) -> list[dict]:
        return self._fetch_dicts(
            "SELECT * FROM exchange_rates ORDER BY from_currency, to_currency"
        )

    # --- Audit log ---

    def save_audit_entry(self, entry: AuditEntry) -> None:
        """Insert an audit log entry."""
        self.conn.execute(
            """INSERT INTO audit_log (timestamp, operation, entry_id, inputs, output, notes)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (
                entry.timestamp.isoformat(),
                entry.operation.value,
                entry.entry_id,
                json.dumps(entry.inputs, default=str),
                json.dumps(entry.output, default=str),
                entry.notes,
            ),
        )
        self._commit()

    def get_audit_log(self, entry_id: str | None = None) -> list[dict]:
        """Retrieve audit log rows in insertion order."""
        if entry_id:
            rows = self._fetch_dicts(
                "SELECT * FROM audit_log WHERE entry_id = ? ORDER BY id", (entry_id,)
            )
        else:
            rows = self._fetch_dicts("SELECT * FROM audit_log ORDER BY id")
        for record in rows:
            record["inputs"] = json.loads(record["inputs"])
            record["output"] = json.loads(record["output"])
        return rows
