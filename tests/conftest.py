"""Shared test fixtures for Tithebook."""

from datetime import date
from decimal import Decimal

import pytest

from tithebook.currency import CurrencyNormalizer, StaticRateSource
from tithebook.db.repository import LedgerRepository
from tithebook.db.schema import create_schema
from tithebook.ledger import LedgerQuery, LedgerStore
from tithebook.models.ledger import Church, EntryDraft, Member


@pytest.fixture
def db_conn(tmp_path):
    conn = create_schema(tmp_path / "test.db")
    yield conn
    conn.close()


@pytest.fixture
def repo(db_conn) -> LedgerRepository:
    return LedgerRepository(db_conn)


@pytest.fixture
def church(repo: LedgerRepository) -> Church:
    church = Church(id="church-nbi", name="Nairobi Central", location="Nairobi")
    repo.save_church(church)
    return church


@pytest.fixture
def other_church(repo: LedgerRepository) -> Church:
    church = Church(id="church-msa", name="Mombasa Bethel", location="Mombasa")
    repo.save_church(church)
    return church


@pytest.fixture
def member(repo: LedgerRepository, church: Church) -> Member:
    member = Member(id="member-grace", church_id=church.id, first_name="Grace", last_name="Wanjiru")
    repo.save_member(member)
    return member


@pytest.fixture
def rate_source() -> StaticRateSource:
    return StaticRateSource()


@pytest.fixture
def normalizer(rate_source: StaticRateSource) -> CurrencyNormalizer:
    return CurrencyNormalizer(rate_source, reporting_currency="KES")


@pytest.fixture
def store(repo: LedgerRepository, normalizer: CurrencyNormalizer) -> LedgerStore:
    return LedgerStore(repo, normalizer)


@pytest.fixture
def query(repo: LedgerRepository) -> LedgerQuery:
    return LedgerQuery(repo)


@pytest.fixture
def usd_draft(church: Church) -> EntryDraft:
    return EntryDraft(
        scope_id=church.id,
        amount=Decimal("100"),
        currency="USD",
        payment_method="Bank Transfer",
        payment_date=date(2025, 3, 2),
        transaction_reference="TRX-1001",
        notes="Sunday tithe",
    )
