"""Report generation for Tithebook."""

from tithebook.reports.exporter import LedgerExporter
from tithebook.reports.summary import SummaryReportGenerator

__all__ = ["LedgerExporter", "SummaryReportGenerator"]
