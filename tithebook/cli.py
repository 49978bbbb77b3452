"""Typer CLI interface for Tithebook."""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import NoReturn
from uuid import uuid4

import typer
from rich.console import Console
from rich.table import Table

from tithebook.config import (
    DB_ENVVAR,
    DEFAULT_DB_PATH,
    DEFAULT_RATE_TIMEOUT,
    DEFAULT_REPORTING_CURRENCY,
    RATE_TIMEOUT_ENVVAR,
    REPORTING_CURRENCY_ENVVAR,
)
from tithebook.currency import (
    ChainedRateSource,
    CurrencyNormalizer,
    DatabaseRateSource,
    StaticRateSource,
    TimeoutRateSource,
    format_amount,
)
from tithebook.db.repository import LedgerRepository
from tithebook.db.schema import create_schema
from tithebook.exceptions import LedgerError
from tithebook.ledger import LedgerQuery, LedgerStore
from tithebook.models import (
    Church,
    EntryDraft,
    EntryPatch,
    ExportFormat,
    LedgerFilter,
    Member,
    PageRequest,
)
from tithebook.reports import LedgerExporter, SummaryReportGenerator

app = typer.Typer(
    name="tithebook",
    help="Tithebook: contribution ledger with KES normalization.",
    no_args_is_help=True,
)
church_app = typer.Typer(help="Manage churches (ledger scopes).", no_args_is_help=True)
member_app = typer.Typer(help="Manage church members (contributors).", no_args_is_help=True)
rate_app = typer.Typer(help="Manage exchange rates to the reporting currency.", no_args_is_help=True)
entry_app = typer.Typer(help="Create, edit, delete and list ledger entries.", no_args_is_help=True)
app.add_typer(church_app, name="church")
app.add_typer(member_app, name="member")
app.add_typer(rate_app, name="rate")
app.add_typer(entry_app, name="entry")

DATE_FORMATS = ["%Y-%m-%d"]


@dataclass
class Settings:
    db: Path
    reporting_currency: str
    rate_timeout: float


@app.callback()
def main(
    ctx: typer.Context,
    db: Path = typer.Option(
        DEFAULT_DB_PATH,
        "--db",
        envvar=DB_ENVVAR,
        help="Path to the SQLite database file",
    ),
    reporting_currency: str = typer.Option(
        DEFAULT_REPORTING_CURRENCY,
        "--reporting-currency",
        envvar=REPORTING_CURRENCY_ENVVAR,
        help="Currency all totals are expressed in",
    ),
    rate_timeout: float = typer.Option(
        DEFAULT_RATE_TIMEOUT,
        "--rate-timeout",
        envvar=RATE_TIMEOUT_ENVVAR,
        min=0.1,
        help="Seconds to wait for an exchange-rate lookup",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Tithebook: contribution ledger with KES normalization."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = Settings(
        db=db,
        reporting_currency=reporting_currency.upper(),
        rate_timeout=rate_timeout,
    )


# --- Helpers ---


def _settings(ctx: typer.Context) -> Settings:
    return ctx.find_root().obj


def _open_repo(ctx: typer.Context) -> LedgerRepository:
    """Open (creating if needed) the database and close it when the command ends."""
    settings = _settings(ctx)
    settings.db.parent.mkdir(parents=True, exist_ok=True)
    conn = create_schema(settings.db)
    ctx.call_on_close(conn.close)
    return LedgerRepository(conn)


def _build_store(ctx: typer.Context, repo: LedgerRepository) -> LedgerStore:
    settings = _settings(ctx)
    rate_source = TimeoutRateSource(
        ChainedRateSource([DatabaseRateSource(repo), StaticRateSource()]),
        timeout=settings.rate_timeout,
    )
    return LedgerStore(repo, CurrencyNormalizer(rate_source, settings.reporting_currency))


def _fail(exc: Exception) -> NoReturn:
    message = f"Error: {exc}"
    if isinstance(exc, LedgerError) and exc.retryable:
        message += " (retry once the rate is available)"
    typer.echo(message, err=True)
    raise typer.Exit(1)


def _parse_decimal(value: str, name: str) -> Decimal:
    try:
        parsed = Decimal(value.replace(",", ""))
    except InvalidOperation:
        parsed = None
    if parsed is None or not parsed.is_finite():
        typer.echo(f"Error: {name} must be a number, got '{value}'", err=True)
        raise typer.Exit(1)
    return parsed


def _as_date(value: datetime | None) -> date | None:
    return value.date() if value else None


# --- Churches ---


@church_app.command("add")
def church_add(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Church name"),
    location: str = typer.Option(None, "--location", help="Town or region"),
) -> None:
    """Register a church."""
    repo = _open_repo(ctx)
    church = Church(id=str(uuid4()), name=name, location=location)
    repo.save_church(church)
    typer.echo(f"Added church {church.name}: {church.id}")


@church_app.command("list")
def church_list(ctx: typer.Context) -> None:
    """List churches."""
    repo = _open_repo(ctx)
    churches = repo.get_churches()
    if not churches:
        typer.echo("No churches found. Add one with `tithebook church add`.")
        return
    table = Table("ID", "Name", "Location")
    for row in churches:
        table.add_row(row["id"], row["name"], row["location"] or "")
    Console().print(table)


# --- Members ---


@member_app.command("add")
def member_add(
    ctx: typer.Context,
    first_name: str = typer.Argument(...),
    last_name: str = typer.Argument(...),
    church: str = typer.Option(None, "--church", "-c", help="Church ID"),
    email: str = typer.Option(None, "--email"),
    phone: str = typer.Option(None, "--phone"),
) -> None:
    """Register a church member."""
    repo = _open_repo(ctx)
    if church and repo.get_church(church) is None:
        typer.echo(f"Error: Church not found: {church}", err=True)
        raise typer.Exit(1)
    member = Member(
        id=str(uuid4()),
        church_id=church,
        first_name=first_name,
        last_name=last_name,
        email=email,
        phone=phone,
    )
    repo.save_member(member)
    typer.echo(f"Added member {member.full_name}: {member.id}")


@member_app.command("list")
def member_list(
    ctx: typer.Context,
    church: str = typer.Option(None, "--church", "-c", help="Only members of this church"),
) -> None:
    """List church members."""
    repo = _open_repo(ctx)
    members = repo.get_members(church)
    if not members:
        typer.echo("No members found.")
        return
    table = Table("ID", "Name", "Church", "Email", "Phone")
    directory = repo.get_name_directory()
    for row in members:
        table.add_row(
            row["id"],
            f"{row['first_name']} {row['last_name']}",
            directory.church_name(row["church_id"]) if row["church_id"] else "",
            row["email"] or "",
            row["phone"] or "",
        )
    Console().print(table)


# --- Exchange rates ---


@rate_app.command("set")
def rate_set(
    ctx: typer.Context,
    currency: str = typer.Argument(..., help="Currency code, e.g. USD"),
    rate: str = typer.Argument(..., help="Units of the reporting currency per one unit"),
) -> None:
    """Store an exchange rate. Existing entries keep the rate they were written with."""
    settings = _settings(ctx)
    value = _parse_decimal(rate, "rate")
    if value <= 0:
        typer.echo("Error: rate must be greater than zero", err=True)
        raise typer.Exit(1)
    repo = _open_repo(ctx)
    code = currency.strip().upper()
    repo.save_exchange_rate(code, settings.reporting_currency, value)
    typer.echo(f"1 {code} = {value} {settings.reporting_currency}")


@rate_app.command("list")
def rate_list(ctx: typer.Context) -> None:
    """List stored exchange rates."""
    repo = _open_repo(ctx)
    rates = repo.get_exchange_rates()
    if not rates:
        typer.echo("No stored rates; built-in defaults apply.")
        return
    table = Table("From", "To", "Rate", "Updated")
    for row in rates:
        table.add_row(row["from_currency"], row["to_currency"], row["rate"], row["updated_at"])
    Console().print(table)


# --- Ledger entries ---


@entry_app.command("add")
def entry_add(
    ctx: typer.Context,
    church: str = typer.Option(..., "--church", "-c", help="Church ID"),
    amount: str = typer.Option(..., "--amount", "-a", help="Amount in the paid currency"),
    currency: str = typer.Option("KES", "--currency", help="Currency code"),
    payment_date: datetime = typer.Option(
        None, "--date", formats=DATE_FORMATS, help="Payment date (default: today)"
    ),
    member: str = typer.Option(None, "--member", "-m", help="Member ID (omit for anonymous)"),
    method: str = typer.Option(None, "--method", help="e.g. M-Pesa, Bank Transfer"),
    reference: str = typer.Option(None, "--reference", help="Transaction reference"),
    notes: str = typer.Option(None, "--notes"),
) -> None:
    """Record a contribution."""
    repo = _open_repo(ctx)
    store = _build_store(ctx, repo)
    draft = EntryDraft(
        scope_id=church,
        contributor_id=member,
        amount=_parse_decimal(amount, "amount"),
        currency=currency,
        payment_method=method,
        payment_date=_as_date(payment_date) or date.today(),
        transaction_reference=reference,
        notes=notes,
    )
    try:
        entry = store.create(draft)
    except LedgerError as exc:
        _fail(exc)
    typer.echo(
        f"Added entry {entry.id}: {entry.amount} {entry.currency} = "
        f"{format_amount(entry.normalized_amount, store.reporting_currency)}"
    )


@entry_app.command("edit")
def entry_edit(
    ctx: typer.Context,
    entry_id: str = typer.Argument(..., help="Entry ID"),
    church: str = typer.Option(None, "--church", "-c"),
    amount: str = typer.Option(None, "--amount", "-a"),
    currency: str = typer.Option(None, "--currency"),
    payment_date: datetime = typer.Option(None, "--date", formats=DATE_FORMATS),
    member: str = typer.Option(None, "--member", "-m", help="Member ID ('' for anonymous)"),
    method: str = typer.Option(None, "--method"),
    reference: str = typer.Option(None, "--reference"),
    notes: str = typer.Option(None, "--notes", help="New notes ('' clears)"),
) -> None:
    """Edit an entry. Changing amount or currency re-normalizes it."""
    changes: dict = {}
    if church is not None:
        changes["scope_id"] = church
    if amount is not None:
        changes["amount"] = _parse_decimal(amount, "amount")
    if currency is not None:
        changes["currency"] = currency
    if payment_date is not None:
        changes["payment_date"] = _as_date(payment_date)
    if member is not None:
        changes["contributor_id"] = member
    if method is not None:
        changes["payment_method"] = method
    if reference is not None:
        changes["transaction_reference"] = reference
    if notes is not None:
        changes["notes"] = notes
    if not changes:
        typer.echo("Nothing to change.", err=True)
        raise typer.Exit(1)

    repo = _open_repo(ctx)
    store = _build_store(ctx, repo)
    try:
        entry = store.update(entry_id, EntryPatch(**changes))
    except LedgerError as exc:
        _fail(exc)
    typer.echo(
        f"Updated entry {entry.id}: {entry.amount} {entry.currency} = "
        f"{format_amount(entry.normalized_amount, store.reporting_currency)}"
    )


@entry_app.command("delete")
def entry_delete(
    ctx: typer.Context,
    entry_id: str = typer.Argument(..., help="Entry ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Permanently delete an entry."""
    if not yes:
        typer.confirm("Are you sure you want to delete this tithe record?", abort=True)
    repo = _open_repo(ctx)
    store = _build_store(ctx, repo)
    try:
        store.delete(entry_id)
    except LedgerError as exc:
        _fail(exc)
    typer.echo(f"Deleted entry {entry_id}")


@entry_app.command("list")
def entry_list(
    ctx: typer.Context,
    church: str = typer.Option(None, "--church", "-c", help="Only this church"),
    search: str = typer.Option(None, "--search", "-s", help="Match contributor, reference, notes or method"),
    page: int = typer.Option(0, "--page", min=0, help="Page index, starting at 0"),
    size: int = typer.Option(10, "--size", min=1, max=1000, help="Entries per page"),
) -> None:
    """List entries, newest payment date first."""
    repo = _open_repo(ctx)
    settings = _settings(ctx)
    result = LedgerQuery(repo).list(
        LedgerFilter(scope_id=church, search_term=search), PageRequest(index=page, size=size)
    )
    directory = repo.get_name_directory()

    if result.items:
        table = Table(
            "ID", "Date", "Church", "Contributor", "Amount",
            f"Amount ({settings.reporting_currency})", "Method", "Reference",
        )
        for entry in result.items:
            table.add_row(
                entry.id,
                entry.payment_date.isoformat(),
                directory.church_name(entry.scope_id),
                directory.contributor_name(entry.contributor_id),
                f"{entry.amount} {entry.currency}",
                str(entry.normalized_amount),
                entry.payment_method or "",
                entry.transaction_reference or "",
            )
        Console().print(table)
    else:
        typer.echo("No entries found.")
    typer.echo(
        f"Page {result.index} (0-based) of {result.page_count} page(s); "
        f"{result.total_matching} matching entries"
    )


# --- Totals and reports ---


@app.command()
def total(
    ctx: typer.Context,
    church: str = typer.Option(None, "--church", "-c", help="Only this church"),
) -> None:
    """Print the total of all contributions in the reporting currency."""
    repo = _open_repo(ctx)
    store = _build_store(ctx, repo)
    typer.echo(format_amount(store.aggregate_total(church), store.reporting_currency))


@app.command()
def summary(
    ctx: typer.Context,
    church: str = typer.Option(None, "--church", "-c", help="Only this church"),
    output: Path = typer.Option(None, "--output", "-o", help="Write the report to a file"),
) -> None:
    """Summary statistics: total, record count, contributing churches."""
    repo = _open_repo(ctx)
    store = _build_store(ctx, repo)
    content = SummaryReportGenerator().render(store.summary(church), repo.get_name_directory())
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(content)
        typer.echo(f"Summary written to {output}")
    else:
        typer.echo(content)


@app.command()
def export(
    ctx: typer.Context,
    fmt: ExportFormat = typer.Argument(..., metavar="FORMAT", help="csv or pdf"),
    output: Path = typer.Argument(..., help="Output file"),
    church: str = typer.Option(None, "--church", "-c"),
    search: str = typer.Option(None, "--search", "-s"),
    page: int = typer.Option(0, "--page", min=0),
    size: int = typer.Option(10, "--size", min=1, max=1000),
    all_pages: bool = typer.Option(False, "--all", help="Export every matching entry"),
) -> None:
    """Export the entries `entry list` would show with the same options."""
    repo = _open_repo(ctx)
    settings = _settings(ctx)
    query = LedgerQuery(repo)
    ledger_filter = LedgerFilter(scope_id=church, search_term=search)

    if all_pages:
        entries = []
        index = 0
        while True:
            result = query.list(ledger_filter, PageRequest(index=index, size=1000))
            entries.extend(result.items)
            index += 1
            if index >= result.page_count:
                break
    else:
        entries = query.list(ledger_filter, PageRequest(index=page, size=size)).items

    exporter = LedgerExporter(reporting_currency=settings.reporting_currency)
    content = exporter.export(entries, fmt, repo.get_name_directory())
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(content)
    typer.echo(f"Exported {len(entries)} entries to {output}")


if __name__ == "__main__":
    app()
