"""Ledger entry models and the directory records they reference."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel


class Church(BaseModel):
    id: str
    name: str
    location: str | None = None


class Member(BaseModel):
    id: str
    church_id: str | None = None
    first_name: str
    last_name: str
    email: str | None = None
    phone: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class LedgerEntry(BaseModel):
    """A stored contribution. ``normalized_amount`` is fixed at write time."""

    id: str
    scope_id: str
    contributor_id: str | None = None
    amount: Decimal
    currency: str
    normalized_amount: Decimal
    exchange_rate: Decimal
    payment_method: str | None = None
    payment_date: date
    transaction_reference: str | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime | None = None


class EntryDraft(BaseModel):
    """Operator input for a new ledger entry."""

    scope_id: str
    contributor_id: str | None = None
    amount: Decimal
    currency: str = "KES"
    payment_method: str | None = None
    payment_date: date | None = None
    transaction_reference: str | None = None
    notes: str | None = None


class EntryPatch(BaseModel):
    """Fields to change on an existing entry.

    Only fields explicitly set are applied, so ``EntryPatch(notes=None)``
    clears the notes while ``EntryPatch()`` changes nothing.
    """

    scope_id: str | None = None
    contributor_id: str | None = None
    amount: Decimal | None = None
    currency: str | None = None
    payment_method: str | None = None
    payment_date: date | None = None
    transaction_reference: str | None = None
    notes: str | None = None

    def changes(self) -> dict:
        return {name: getattr(self, name) for name in self.model_fields_set}
