"""Ledger store: owns entry identity and the normalized-amount invariant."""

import logging
import re
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from uuid import uuid4

from tithebook.currency.normalizer import CurrencyNormalizer, quantize
from tithebook.db.repository import LedgerRepository
from tithebook.exceptions import (
    DataValidationError,
    EntryNotFoundError,
    RateUnavailableError,
    ScopeNotFoundError,
)
from tithebook.models.enums import AuditOperation
from tithebook.models.ledger import EntryDraft, EntryPatch, LedgerEntry
from tithebook.models.reports import AuditEntry, LedgerSummary, ScopeTotal

logger = logging.getLogger(__name__)

_CURRENCY_CODE = re.compile(r"^[A-Z]{3}$")


def entry_from_row(row: dict) -> LedgerEntry:
    """Build a LedgerEntry from a ``ledger_entries`` row."""
    return LedgerEntry(**{k: v for k, v in row.items() if k in LedgerEntry.model_fields})


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


class LedgerStore:
    """Create, update and delete ledger entries.

    Every write that sets ``amount`` or ``currency`` runs the normalizer
    first. If normalization fails nothing is written.
    """

    def __init__(self, repo: LedgerRepository, normalizer: CurrencyNormalizer):
        self.repo = repo
        self.normalizer = normalizer

    @property
    def reporting_currency(self) -> str:
        return self.normalizer.reporting_currency

    # --- Validation ---

    def _validate_amount(self, amount) -> Decimal:
        if amount is None:
            raise DataValidationError("amount", "amount is required")
        try:
            value = Decimal(amount)
        except (InvalidOperation, TypeError, ValueError):
            raise DataValidationError("amount", f"not a number: {amount!r}") from None
        if not value.is_finite() or value <= 0:
            raise DataValidationError("amount", "amount must be greater than zero")
        return value

    def _validate_currency(self, currency: str | None) -> str:
        code = (currency or "").strip().upper()
        if not _CURRENCY_CODE.match(code):
            raise DataValidationError("currency", f"invalid currency code: {currency!r}")
        return code

    def _validate_payment_date(self, payment_date) -> date:
        if payment_date is None:
            raise DataValidationError("payment_date", "payment date is required")
        if isinstance(payment_date, datetime):
            return payment_date.date()
        if not isinstance(payment_date, date):
            raise DataValidationError("payment_date", f"not a date: {payment_date!r}")
        return payment_date

    def _validate_scope(self, scope_id: str | None) -> str:
        scope_id = _blank_to_none(scope_id)
        if scope_id is None:
            raise DataValidationError("scope_id", "church is required")
        if self.repo.get_church(scope_id) is None:
            raise ScopeNotFoundError(scope_id)
        return scope_id

    # --- Writes ---

    def create(self, draft: EntryDraft) -> LedgerEntry:
        """Validate, normalize and persist a new entry."""
        scope_id = self._validate_scope(draft.scope_id)
        amount = self._validate_amount(draft.amount)
        currency = self._validate_currency(draft.currency)
        payment_date = self._validate_payment_date(draft.payment_date)

        try:
            result = self.normalizer.normalize(amount, currency)
        except RateUnavailableError:
            logger.warning("Rejected new entry: no %s rate for %s", self.reporting_currency, currency)
            raise

        entry = LedgerEntry(
            id=str(uuid4()),
            scope_id=scope_id,
            contributor_id=_blank_to_none(draft.contributor_id),
            amount=amount,
            currency=currency,
            normalized_amount=result.normalized_amount,
            exchange_rate=result.rate,
            payment_method=_blank_to_none(draft.payment_method),
            payment_date=payment_date,
            transaction_reference=_blank_to_none(draft.transaction_reference),
            notes=_blank_to_none(draft.notes),
            created_at=_now(),
        )
        with self.repo.transaction():
            self.repo.insert_entry(entry)
            self._audit(AuditOperation.CREATE, entry.id, draft.model_dump(), entry.model_dump())
        logger.info(
            "Created entry %s: %s %s -> %s %s",
            entry.id, entry.amount, entry.currency,
            entry.normalized_amount, self.reporting_currency,
        )
        return entry

    def update(self, entry_id: str, patch: EntryPatch) -> LedgerEntry:
        """Apply a patch. Re-normalizes only when amount or currency change."""
        current = self.get(entry_id)
        changes = patch.changes()
        values = current.model_dump()

        if "scope_id" in changes:
            values["scope_id"] = self._validate_scope(changes["scope_id"])
        if "amount" in changes:
            values["amount"] = self._validate_amount(changes["amount"])
        if "currency" in changes:
            values["currency"] = self._validate_currency(changes["currency"])
        if "payment_date" in changes:
            values["payment_date"] = self._validate_payment_date(changes["payment_date"])
        for name in ("contributor_id", "payment_method", "transaction_reference", "notes"):
            if name in changes:
                values[name] = _blank_to_none(changes[name])

        renormalize = (
            values["amount"] != current.amount or values["currency"] != current.currency
        )
        if renormalize:
            try:
                result = self.normalizer.normalize(values["amount"], values["currency"])
            except RateUnavailableError:
                logger.warning("Rejected edit of %s: no rate for %s", entry_id, values["currency"])
                raise
            values["normalized_amount"] = result.normalized_amount
            values["exchange_rate"] = result.rate

        values["updated_at"] = _now()
        updated = LedgerEntry(**values)
        # Last write wins: no version check against concurrent edits.
        with self.repo.transaction():
            if self.repo.replace_entry(updated) == 0:
                raise EntryNotFoundError(entry_id)
            self._audit(
                AuditOperation.UPDATE,
                entry_id,
                patch.model_dump(exclude_unset=True),
                updated.model_dump(),
                notes="renormalized" if renormalize else None,
            )
        logger.info("Updated entry %s (renormalized=%s)", entry_id, renormalize)
        return updated

    def delete(self, entry_id: str) -> None:
        """Permanently remove an entry."""
        row = self.repo.get_entry(entry_id)
        if row is None:
            raise EntryNotFoundError(entry_id)
        with self.repo.transaction():
            if self.repo.delete_entry(entry_id) == 0:
                raise EntryNotFoundError(entry_id)
            self._audit(AuditOperation.DELETE, entry_id, {}, row)
        logger.info("Deleted entry %s", entry_id)

    # --- Reads ---

    def get(self, entry_id: str) -> LedgerEntry:
        row = self.repo.get_entry(entry_id)
        if row is None:
            raise EntryNotFoundError(entry_id)
        return entry_from_row(row)

    def aggregate_total(self, scope_id: str | None = None) -> Decimal:
        """Sum stored normalized amounts. No currency conversion happens here."""
        return sum(
            (Decimal(amount) for _, amount in self.repo.get_normalized_amounts(scope_id)),
            Decimal("0"),
        )

    def summary(self, scope_id: str | None = None) -> LedgerSummary:
        """Totals, counts and per-church breakdown in the reporting currency."""
        per_scope: dict[str, ScopeTotal] = {}
        for sid, amount in self.repo.get_normalized_amounts(scope_id):
            bucket = per_scope.setdefault(
                sid, ScopeTotal(scope_id=sid, entry_count=0, total=Decimal("0"))
            )
            bucket.entry_count += 1
            bucket.total += Decimal(amount)

        total = sum((s.total for s in per_scope.values()), Decimal("0"))
        count = sum(s.entry_count for s in per_scope.values())
        average = quantize(total / count, self.reporting_currency) if count else Decimal("0")
        return LedgerSummary(
            reporting_currency=self.reporting_currency,
            total=total,
            entry_count=count,
            scope_count=len(per_scope),
            average=average,
            by_scope=sorted(per_scope.values(), key=lambda s: s.total, reverse=True),
        )

    def _audit(
        self,
        operation: AuditOperation,
        entry_id: str,
        inputs: dict,
        output: dict,
        notes: str | None = None,
    ) -> None:
        self.repo.save_audit_entry(
            AuditEntry(
                timestamp=_now(),
                operation=operation,
                entry_id=entry_id,
                inputs=inputs,
                output=output,
                notes=notes,
            )
        )
