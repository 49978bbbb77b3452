"""Tests for the SQLite repository."""

from decimal import Decimal

import pytest

from tithebook.db.repository import LedgerRepository, _escape_like
from tithebook.db.schema import SCHEMA_VERSION, create_schema
from tithebook.models.ledger import Church, Member


class TestSchema:
    def test_schema_version_recorded(self, db_conn):
        row = db_conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
        assert row[0] == SCHEMA_VERSION

    def test_reopen_existing_database(self, tmp_path):
        path = tmp_path / "ledger.db"
        conn = create_schema(path)
        LedgerRepository(conn).save_church(Church(id="c1", name="Kisumu"))
        conn.close()

        conn = create_schema(path)
        assert LedgerRepository(conn).get_church("c1")["name"] == "Kisumu"
        conn.close()


class TestDirectory:
    def test_churches_ordered_by_name(self, repo):
        repo.save_church(Church(id="c2", name="Thika Road"))
        repo.save_church(Church(id="c1", name="Eldoret"))
        assert [row["name"] for row in repo.get_churches()] == ["Eldoret", "Thika Road"]

    def test_missing_church(self, repo):
        assert repo.get_church("nope") is None

    def test_members_by_church(self, repo, church, other_church):
        repo.save_member(Member(id="m1", church_id=church.id, first_name="Peter", last_name="Otieno"))
        repo.save_member(Member(id="m2", church_id=other_church.id, first_name="Amina", last_name="Hassan"))
        assert [row["id"] for row in repo.get_members(church.id)] == ["m1"]
        assert [row["id"] for row in repo.get_members()] == ["m2", "m1"]

    def test_name_directory(self, repo, church, member):
        directory = repo.get_name_directory()
        assert directory.church_name(church.id) == "Nairobi Central"
        assert directory.contributor_name(member.id) == "Grace Wanjiru"
        assert directory.contributor_name(None) == "Anonymous"
        assert directory.contributor_name("deleted-member") == "Unknown"
        assert directory.church_name("deleted-church") == "Unknown"


class TestExchangeRates:
    def test_round_trip(self, repo):
        repo.save_exchange_rate("EUR", "KES", Decimal("141.25"))
        assert repo.get_exchange_rate("EUR", "KES") == Decimal("141.25")
        assert repo.get_exchange_rate("KES", "EUR") is None

    def test_list(self, repo):
        repo.save_exchange_rate("USD", "KES", Decimal("129"))
        repo.save_exchange_rate("EUR", "KES", Decimal("141"))
        rows = repo.get_exchange_rates()
        assert [(r["from_currency"], r["rate"]) for r in rows] == [("EUR", "141"), ("USD", "129")]


class TestEntries:
    def test_money_stored_as_text(self, store, repo, usd_draft):
        entry = store.create(usd_draft)
        row = repo.get_entry(entry.id)
        assert row["amount"] == "100"
        assert row["normalized_amount"] == "13000.00"
        assert row["payment_date"] == "2025-03-02"

    def test_delete_returns_count(self, store, repo, usd_draft):
        entry = store.create(usd_draft)
        assert repo.delete_entry(entry.id) == 1
        assert repo.delete_entry(entry.id) == 0


class TestTransaction:
    def test_commits_together(self, repo, db_conn):
        with repo.transaction():
            repo.save_church(Church(id="c1", name="Nakuru"))
            assert db_conn.in_transaction
            repo.save_church(Church(id="c2", name="Nyeri"))
        assert not db_conn.in_transaction
        assert [row["id"] for row in repo.get_churches()] == ["c1", "c2"]

    def test_rolls_back_on_error(self, repo):
        with pytest.raises(RuntimeError):
            with repo.transaction():
                repo.save_church(Church(id="c1", name="Nakuru"))
                raise RuntimeError("boom")
        assert repo.get_churches() == []

    def test_nested_commits_at_outermost(self, repo, db_conn):
        with repo.transaction():
            with repo.transaction():
                repo.save_church(Church(id="c1", name="Nakuru"))
            assert db_conn.in_transaction
        assert not db_conn.in_transaction


class TestCaseFold:
    def test_casefold_registered(self, db_conn):
        assert db_conn.execute("SELECT casefold('ÉMILE Straße')").fetchone()[0] == "émile strasse"
        assert db_conn.execute("SELECT casefold(NULL)").fetchone()[0] is None


def test_escape_like():
    assert _escape_like("50%_off\\") == "50\\%\\_off\\\\"
