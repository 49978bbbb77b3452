"""SQLite database schema definition."""

import sqlite3
from pathlib import Path

SCHEMA_VERSION = 1

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS churches (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    location TEXT,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS members (
    id TEXT PRIMARY KEY,
    church_id TEXT REFERENCES churches(id),
    first_name TEXT NOT NULL,
    last_name TEXT NOT NULL,
    email TEXT,
    phone TEXT,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS ledger_entries (
    id TEXT PRIMARY KEY,
    scope_id TEXT NOT NULL REFERENCES churches(id),
    contributor_id TEXT,
    amount TEXT NOT NULL,
    currency TEXT NOT NULL,
    normalized_amount TEXT NOT NULL,
    exchange_rate TEXT NOT NULL,
    payment_method TEXT,
    payment_date TEXT NOT NULL,
    transaction_reference TEXT,
    notes TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_ledger_entries_scope
    ON ledger_entries (scope_id);
CREATE INDEX IF NOT EXISTS idx_ledger_entries_order
    ON ledger_entries (payment_date DESC, created_at DESC);

CREATE TABLE IF NOT EXISTS exchange_rates (
    from_currency TEXT NOT NULL,
    to_currency TEXT NOT NULL,
    rate TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (datetime('now')),
    PRIMARY KEY (from_currency, to_currency)
);

CREATE TABLE IF NOT EXISTS audit_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp TEXT NOT NULL,
    operation TEXT NOT NULL,
    entry_id TEXT NOT NULL,
    inputs TEXT NOT NULL,
    output TEXT NOT NULL,
    notes TEXT
);
"""


def _casefold(value: str | None) -> str | None:
    return value.casefold() if value is not None else None


def create_schema(db_path: Path) -> sqlite3.Connection:
    """Create the database schema. Returns the connection.

    The connection may be read from a rate-lookup worker thread, so the
    same-thread check is disabled. It also registers ``casefold()`` for
    case-insensitive search beyond ASCII (SQLite's ``lower()`` is ASCII only).
    """
    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    conn.create_function("casefold", 1, _casefold, deterministic=True)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    conn.executescript(SCHEMA_SQL)
    conn.execute(
        "INSERT OR IGNORE INTO schema_version (version) VALUES (?)",
        (SCHEMA_VERSION,),
    )
    conn.commit()
    return conn
