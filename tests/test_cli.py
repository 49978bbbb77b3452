"""Tests for CLI commands."""

import csv
import io
from pathlib import Path

import pytest
from typer.testing import CliRunner

from tithebook.cli import app

runner = CliRunner()


@pytest.fixture
def db(tmp_path: Path) -> Path:
    return tmp_path / "cli.db"


def _invoke(db: Path, *args: str, **kwargs):
    return runner.invoke(app, ["--db", str(db), *args], **kwargs)


def _add_church(db: Path, name: str = "Nairobi Central") -> str:
    result = _invoke(db, "church", "add", name)
    assert result.exit_code == 0, result.output
    return result.output.strip().rsplit(": ", 1)[1]


def _add_entry(db: Path, church_id: str, *args: str) -> str:
    result = _invoke(db, "entry", "add", "--church", church_id, *args)
    assert result.exit_code == 0, result.output
    return result.output.split()[2].rstrip(":")


class TestHelp:
    def test_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "Tithebook" in result.output

    @pytest.mark.parametrize("command", ["church", "member", "rate", "entry", "total", "summary", "export"])
    def test_command_help(self, command):
        result = runner.invoke(app, [command, "--help"])
        assert result.exit_code == 0


class TestLedgerFlow:
    def test_scenario_add_edit_total(self, db):
        church_id = _add_church(db)
        entry_id = _add_entry(db, church_id, "--amount", "100", "--currency", "USD", "--date", "2025-03-02")

        result = _invoke(db, "total")
        assert result.output.strip() == "KES 13,000.00"

        result = _invoke(db, "entry", "edit", entry_id, "--amount", "50")
        assert result.exit_code == 0, result.output
        assert "KES 6,500.00" in result.output

        result = _invoke(db, "total")
        assert result.output.strip() == "KES 6,500.00"

    def test_unavailable_rate_rejected(self, db):
        church_id = _add_church(db)
        result = _invoke(db, "entry", "add", "--church", church_id, "--amount", "10", "--currency", "XYZ")
        assert result.exit_code == 1
        assert "Exchange rate unavailable" in result.output
        assert _invoke(db, "total").output.strip() == "KES 0.00"

    def test_invalid_amount(self, db):
        church_id = _add_church(db)
        result = _invoke(db, "entry", "add", "--church", church_id, "--amount", "-5")
        assert result.exit_code == 1
        assert "amount" in result.output

    def test_non_numeric_amount(self, db):
        church_id = _add_church(db)
        result = _invoke(db, "entry", "add", "--church", church_id, "--amount", "lots")
        assert result.exit_code == 1
        assert "must be a number" in result.output

    def test_unknown_church(self, db):
        result = _invoke(db, "entry", "add", "--church", "missing", "--amount", "5")
        assert result.exit_code == 1
        assert "Church not found" in result.output

    def test_stored_rate_overrides_default(self, db):
        church_id = _add_church(db)
        result = _invoke(db, "rate", "set", "usd", "120")
        assert result.exit_code == 0
        assert "1 USD = 120 KES" in result.output

        _add_entry(db, church_id, "--amount", "10", "--currency", "USD")
        assert _invoke(db, "total").output.strip() == "KES 1,200.00"

    def test_rate_must_be_positive(self, db):
        result = _invoke(db, "rate", "set", "USD", "0")
        assert result.exit_code == 1

    def test_edit_notes_only_keeps_total(self, db):
        church_id = _add_church(db)
        entry_id = _add_entry(db, church_id, "--amount", "100", "--currency", "USD")
        _invoke(db, "rate", "set", "USD", "150")

        result = _invoke(db, "entry", "edit", entry_id, "--notes", "late entry")
        assert result.exit_code == 0
        assert _invoke(db, "total").output.strip() == "KES 13,000.00"

    def test_edit_without_changes(self, db):
        result = _invoke(db, "entry", "edit", "some-id")
        assert result.exit_code == 1
        assert "Nothing to change" in result.output

    def test_edit_missing_entry(self, db):
        result = _invoke(db, "entry", "edit", "missing", "--notes", "x")
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_delete(self, db):
        church_id = _add_church(db)
        entry_id = _add_entry(db, church_id, "--amount", "500")

        result = _invoke(db, "entry", "delete", entry_id, "--yes")
        assert result.exit_code == 0
        assert _invoke(db, "total").output.strip() == "KES 0.00"

        result = _invoke(db, "entry", "delete", entry_id, "--yes")
        assert result.exit_code == 1

    def test_delete_asks_for_confirmation(self, db):
        church_id = _add_church(db)
        entry_id = _add_entry(db, church_id, "--amount", "500")

        result = _invoke(db, "entry", "delete", entry_id, input="n\n")
        assert result.exit_code == 1
        assert _invoke(db, "total").output.strip() == "KES 500.00"

    def test_total_per_church(self, db):
        first = _add_church(db, "Nairobi Central")
        second = _add_church(db, "Mombasa Bethel")
        _add_entry(db, first, "--amount", "500")
        _add_entry(db, second, "--amount", "250")
        assert _invoke(db, "total", "--church", second).output.strip() == "KES 250.00"


class TestListing:
    def test_list_with_search(self, db):
        church_id = _add_church(db)
        _add_entry(db, church_id, "--amount", "100", "--method", "M-Pesa")
        _add_entry(db, church_id, "--amount", "200", "--method", "Cash")

        result = _invoke(db, "entry", "list", "--search", "pesa")

        assert result.exit_code == 0
        assert "1 matching entries" in result.output

    def test_list_empty(self, db):
        result = _invoke(db, "entry", "list")
        assert result.exit_code == 0
        assert "No entries found." in result.output

    def test_church_and_member_lists(self, db):
        church_id = _add_church(db)
        result = _invoke(db, "member", "add", "Grace", "Wanjiru", "--church", church_id)
        assert result.exit_code == 0
        assert "Grace Wanjiru" in result.output

        assert _invoke(db, "church", "list").exit_code == 0
        assert _invoke(db, "member", "list").exit_code == 0

    def test_member_unknown_church(self, db):
        result = _invoke(db, "member", "add", "Grace", "Wanjiru", "--church", "missing")
        assert result.exit_code == 1


class TestReports:
    def test_summary(self, db, tmp_path):
        church_id = _add_church(db)
        _add_entry(db, church_id, "--amount", "100", "--currency", "USD")

        result = _invoke(db, "summary")
        assert result.exit_code == 0
        assert "Contributing churches:  1" in result.output

        out = tmp_path / "reports" / "summary.txt"
        result = _invoke(db, "summary", "--output", str(out))
        assert result.exit_code == 0
        assert "KES 13,000.00" in out.read_text()

    def test_export_csv_matches_listing(self, db, tmp_path):
        church_id = _add_church(db)
        for amount in ("100", "200", "300"):
            _add_entry(db, church_id, "--amount", amount, "--currency", "USD")

        out = tmp_path / "page.csv"
        result = _invoke(db, "export", "csv", str(out), "--size", "2")
        assert result.exit_code == 0
        assert "Exported 2 entries" in result.output

        out_all = tmp_path / "all.csv"
        _invoke(db, "export", "csv", str(out_all), "--all")
        rows = list(csv.DictReader(io.StringIO(out_all.read_text())))
        assert sorted(row["Amount"] for row in rows) == ["100", "200", "300"]
        assert {row["Currency"] for row in rows} == {"USD"}

    def test_export_pdf(self, db, tmp_path):
        church_id = _add_church(db)
        _add_entry(db, church_id, "--amount", "100")
        out = tmp_path / "tithes.pdf"
        result = _invoke(db, "export", "pdf", str(out))
        assert result.exit_code == 0
        assert out.read_bytes().startswith(b"%PDF")


def test_db_from_environment(tmp_path: Path):
    db = tmp_path / "env.db"
    result = runner.invoke(app, ["church", "add", "Kisumu"], env={"TITHEBOOK_DB": str(db)})
    assert result.exit_code == 0
    assert db.exists()
