"""Tithebook: contribution ledger with reporting-currency normalization."""

__version__ = "0.1.0"
