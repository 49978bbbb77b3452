"""Plain-text ledger summary report."""

from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from tithebook.currency.normalizer import format_amount
from tithebook.models.reports import LedgerSummary, NameDirectory

TEMPLATE_DIR = Path(__file__).parent / "templates"


class SummaryReportGenerator:
    """Renders totals and the per-church breakdown."""

    def __init__(self) -> None:
        self.env = Environment(loader=FileSystemLoader(str(TEMPLATE_DIR)), trim_blocks=True)
        self.env.filters["money"] = format_amount

    def render(self, summary: LedgerSummary, directory: NameDirectory) -> str:
        template = self.env.get_template("ledger_summary.txt")
        return template.render(summary=summary, directory=directory)
