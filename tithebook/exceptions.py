"""Custom exceptions for Tithebook."""


class LedgerError(Exception):
    """Base exception for contribution ledger errors."""

    retryable = False


class DataValidationError(LedgerError):
    """Raised when an entry draft or patch fails validation."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Validation error on '{field}': {message}")


class RateUnavailableError(LedgerError):
    """Raised when no exchange rate can be resolved for a currency pair."""

    retryable = True

    def __init__(self, from_currency: str, to_currency: str, reason: str = "no rate available"):
        self.from_currency = from_currency
        self.to_currency = to_currency
        self.reason = reason
        super().__init__(
            f"Exchange rate unavailable for {from_currency} -> {to_currency}: {reason}"
        )


class EntryNotFoundError(LedgerError):
    """Raised when an update or delete references a missing entry."""

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Ledger entry not found: {entry_id}")


class ScopeNotFoundError(LedgerError):
    """Raised when an entry references a church that doesn't exist."""

    def __init__(self, scope_id: str):
        self.scope_id = scope_id
        super().__init__(f"Church not found: {scope_id}")
