"""Currency normalization into the reporting currency."""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from tithebook.config import DEFAULT_REPORTING_CURRENCY
from tithebook.currency.rates import RateSource
from tithebook.exceptions import RateUnavailableError

logger = logging.getLogger(__name__)

# ISO 4217 minor units for the currencies the ledger accepts. Others default to 2.
MINOR_UNITS: dict[str, int] = {
    "KES": 2,
    "USD": 2,
    "EUR": 2,
    "GBP": 2,
    "ZAR": 2,
    "UGX": 0,
    "TZS": 2,
    "JPY": 0,
}

CURRENCY_SYMBOLS: dict[str, str] = {
    "KES": "KES",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "ZAR": "R",
    "UGX": "UGX",
    "TZS": "TSh",
}


def minor_units(currency: str) -> int:
    return MINOR_UNITS.get(currency.upper(), 2)


def quantize(amount: Decimal, currency: str) -> Decimal:
    """Round half-up to the currency's minor-unit precision."""
    exponent = Decimal(1).scaleb(-minor_units(currency))
    return amount.quantize(exponent, rounding=ROUND_HALF_UP)


def currency_symbol(currency: str) -> str:
    return CURRENCY_SYMBOLS.get(currency.upper(), currency.upper())


def format_amount(amount: Decimal, currency: str = DEFAULT_REPORTING_CURRENCY) -> str:
    """Format an amount for display, e.g. ``KES 1,234.50``."""
    places = minor_units(currency)
    return f"{currency.upper()} {quantize(amount, currency):,.{places}f}"


@dataclass(frozen=True)
class NormalizationResult:
    normalized_amount: Decimal
    rate: Decimal


class CurrencyNormalizer:
    """Converts (amount, currency) pairs into the reporting currency."""

    def __init__(
        self,
        rate_source: RateSource,
        reporting_currency: str = DEFAULT_REPORTING_CURRENCY,
    ) -> None:
        self.rate_source = rate_source
        self.reporting_currency = reporting_currency.upper()

    def normalize(
        self,
        amount: Decimal,
        currency: str,
        reporting_currency: str | None = None,
    ) -> NormalizationResult:
        """Convert ``amount`` in ``currency`` to the reporting currency.

        Identity conversion returns the amount unchanged without a rate
        lookup. Otherwise the converted value is rounded to the reporting
        currency's minor units. Raises RateUnavailableError when no rate
        can be resolved.
        """
        target = (reporting_currency or self.reporting_currency).upper()
        source = currency.upper()
        if source == target:
            return NormalizationResult(normalized_amount=amount, rate=Decimal("1"))

        rate = self.rate_source.get_rate(source, target)
        if rate is None or rate <= 0:
            logger.warning("No usable rate for %s -> %s (got %s)", source, target, rate)
            raise RateUnavailableError(source, target)

        logger.debug("Resolved rate %s -> %s = %s", source, target, rate)
        return NormalizationResult(
            normalized_amount=quantize(amount * rate, target),
            rate=rate,
        )
