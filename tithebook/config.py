"""Default settings for Tithebook.

Each default can be overridden per invocation with a CLI option or its
environment variable.
"""

from pathlib import Path

DEFAULT_DB_PATH = Path.home() / ".tithebook" / "tithebook.db"
DEFAULT_REPORTING_CURRENCY = "KES"
DEFAULT_RATE_TIMEOUT = 5.0

DB_ENVVAR = "TITHEBOOK_DB"
REPORTING_CURRENCY_ENVVAR = "TITHEBOOK_REPORTING_CURRENCY"
RATE_TIMEOUT_ENVVAR = "TITHEBOOK_RATE_TIMEOUT"
