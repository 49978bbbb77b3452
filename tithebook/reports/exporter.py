"""Flat CSV/PDF export of ledger entries."""

import csv
import io
from datetime import datetime, timezone
from decimal import Decimal

from fpdf import FPDF
from fpdf.fonts import FontFace

from tithebook.config import DEFAULT_REPORTING_CURRENCY
from tithebook.currency.normalizer import format_amount
from tithebook.models.enums import ExportFormat
from tithebook.models.ledger import LedgerEntry
from tithebook.models.reports import ExportRow, NameDirectory

PDF_COLUMN_WIDTHS = (24, 42, 42, 28, 18, 34, 38, 51)
PDF_HEADINGS_STYLE = FontFace(emphasis="BOLD", color=(255, 255, 255), fill_color=(41, 128, 185))


def _pdf_text(value: str) -> str:
    # Core PDF fonts only cover Latin-1.
    return value.encode("latin-1", "replace").decode("latin-1")


class LedgerExporter:
    """Maps ledger entries to flat rows and renders them as CSV or PDF.

    The exporter never reads the ledger itself: callers pass the exact
    entries they displayed, plus the names needed to label them.
    """

    def __init__(
        self,
        reporting_currency: str = DEFAULT_REPORTING_CURRENCY,
        title: str = "Tithes Report",
    ) -> None:
        self.reporting_currency = reporting_currency
        self.title = title

    @property
    def headers(self) -> list[str]:
        return [
            "Date",
            "Church",
            "Contributor",
            "Amount",
            "Currency",
            f"Amount ({self.reporting_currency})",
            "Method",
            "Reference",
        ]

    def build_rows(self, entries: list[LedgerEntry], directory: NameDirectory) -> list[ExportRow]:
        """Convert entries to export rows."""
        return [
            ExportRow(
                payment_date=entry.payment_date,
                church=directory.church_name(entry.scope_id),
                contributor=directory.contributor_name(entry.contributor_id),
                amount=entry.amount,
                currency=entry.currency,
                normalized_amount=entry.normalized_amount,
                method=entry.payment_method or "",
                reference=entry.transaction_reference or "",
            )
            for entry in entries
        ]

    @staticmethod
    def _row_values(row: ExportRow) -> list[str]:
        return [
            row.payment_date.isoformat(),
            row.church,
            row.contributor,
            str(row.amount),
            row.currency,
            str(row.normalized_amount),
            row.method,
            row.reference,
        ]

    def to_csv(self, rows: list[ExportRow]) -> bytes:
        """Render rows as UTF-8 CSV with a header line."""
        buf = io.StringIO()
        writer = csv.writer(buf)
        writer.writerow(self.headers)
        for row in rows:
            writer.writerow(self._row_values(row))
        return buf.getvalue().encode("utf-8")

    def to_pdf(self, rows: list[ExportRow], generated_at: datetime) -> bytes:
        """Render rows as a landscape PDF table.

        ``generated_at`` is printed on the page and stored as the document
        creation date; it is the only part of the output that varies
        between runs over the same rows.
        """
        pdf = FPDF(orientation="L", unit="mm", format="A4")
        pdf.creation_date = generated_at
        pdf.set_title(_pdf_text(self.title))
        pdf.add_page()

        pdf.set_font("Helvetica", "B", 16)
        pdf.cell(0, 10, _pdf_text(self.title), new_x="LMARGIN", new_y="NEXT")
        pdf.set_font("Helvetica", size=8)
        pdf.cell(
            0, 5, f"Generated {generated_at:%Y-%m-%d %H:%M %Z}".strip(),
            new_x="LMARGIN", new_y="NEXT",
        )
        pdf.ln(3)

        if not rows:
            pdf.cell(0, 6, "No entries", new_x="LMARGIN", new_y="NEXT")
            return bytes(pdf.output())

        with pdf.table(
            col_widths=PDF_COLUMN_WIDTHS,
            headings_style=PDF_HEADINGS_STYLE,
            line_height=5,
        ) as table:
            heading = table.row()
            for title in self.headers:
                heading.cell(title)
            for row in rows:
                cells = table.row()
                for value in self._row_values(row):
                    cells.cell(_pdf_text(value))

        total = sum((row.normalized_amount for row in rows), Decimal("0"))
        pdf.ln(3)
        pdf.set_font("Helvetica", "B", 10)
        pdf.cell(
            0, 6,
            f"Total: {format_amount(total, self.reporting_currency)} ({len(rows)} entries)",
            new_x="LMARGIN", new_y="NEXT",
        )
        return bytes(pdf.output())

    def export(
        self,
        entries: list[LedgerEntry],
        fmt: ExportFormat | str,
        directory: NameDirectory,
        generated_at: datetime | None = None,
    ) -> bytes:
        """Export entries in the requested format."""
        fmt = ExportFormat(fmt)
        rows = self.build_rows(entries, directory)
        if fmt == ExportFormat.CSV:
            return self.to_csv(rows)
        return self.to_pdf(rows, generated_at or datetime.now(timezone.utc))
