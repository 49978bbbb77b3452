"""Enumerations for Tithebook."""

from enum import StrEnum


class ExportFormat(StrEnum):
    CSV = "csv"
    PDF = "pdf"


class AuditOperation(StrEnum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
