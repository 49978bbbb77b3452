"""Exchange-rate sources used by the currency normalizer."""

import logging
import threading
from abc import ABC, abstractmethod
from decimal import Decimal

from tithebook.config import DEFAULT_RATE_TIMEOUT
from tithebook.exceptions import RateUnavailableError

logger = logging.getLogger(__name__)

# Units of KES per one unit of each currency.
DEFAULT_KES_RATES: dict[str, Decimal] = {
    "KES": Decimal("1"),
    "USD": Decimal("130"),
    "EUR": Decimal("140"),
    "GBP": Decimal("165"),
    "ZAR": Decimal("7.5"),
    "UGX": Decimal("0.035"),
    "TZS": Decimal("0.055"),
}


class RateSource(ABC):
    """Abstract exchange-rate provider."""

    @abstractmethod
    def get_rate(self, from_currency: str, to_currency: str) -> Decimal | None:
        """Return units of ``to_currency`` per one ``from_currency``, or None."""
        ...


class StaticRateSource(RateSource):
    """In-memory rate table expressed against a single base currency.

    Any pair of currencies in the table can be converted, including the
    inverse direction and cross rates.
    """

    def __init__(self, rates: dict[str, Decimal] | None = None, base: str = "KES"):
        self.base = base.upper()
        table = DEFAULT_KES_RATES if rates is None else rates
        self.rates = {code.upper(): Decimal(value) for code, value in table.items()}
        self.rates[self.base] = Decimal("1")

    def get_rate(self, from_currency: str, to_currency: str) -> Decimal | None:
        if from_currency == to_currency:
            return Decimal("1")
        from_rate = self.rates.get(from_currency)
        to_rate = self.rates.get(to_currency)
        if not from_rate or not to_rate:
            return None
        return from_rate / to_rate


class DatabaseRateSource(RateSource):
    """Operator-maintained rates stored in the ``exchange_rates`` table."""

    def __init__(self, repo):
        self.repo = repo

    def get_rate(self, from_currency: str, to_currency: str) -> Decimal | None:
        rate = self.repo.get_exchange_rate(from_currency, to_currency)
        if rate is not None:
            return rate
        inverse = self.repo.get_exchange_rate(to_currency, from_currency)
        if inverse:
            return Decimal("1") / inverse
        return None


class ChainedRateSource(RateSource):
    """Ask each source in order; the first rate found wins."""

    def __init__(self, sources: list[RateSource]):
        self.sources = sources

    def get_rate(self, from_currency: str, to_currency: str) -> Decimal | None:
        for source in self.sources:
            rate = source.get_rate(from_currency, to_currency)
            if rate is not None:
                return rate
        return None


class TimeoutRateSource(RateSource):
    """Bound a wrapped source's lookup time.

    A lookup that times out or raises becomes a RateUnavailableError. The
    lookup runs on a daemon thread, so a hung source never holds up
    interpreter exit.
    """

    def __init__(self, source: RateSource, timeout: float = DEFAULT_RATE_TIMEOUT):
        self.source = source
        self.timeout = timeout

    def get_rate(self, from_currency: str, to_currency: str) -> Decimal | None:
        outcome: dict = {}

        def _lookup() -> None:
            try:
                outcome["rate"] = self.source.get_rate(from_currency, to_currency)
            except Exception as exc:
                outcome["error"] = exc

        worker = threading.Thread(
            target=_lookup, name=f"rate-lookup-{from_currency}-{to_currency}", daemon=True
        )
        worker.start()
        worker.join(self.timeout)

        if worker.is_alive():
            logger.warning(
                "Rate lookup %s -> %s timed out after %ss", from_currency, to_currency, self.timeout
            )
            raise RateUnavailableError(
                from_currency, to_currency, f"lookup timed out after {self.timeout}s"
            )
        error = outcome.get("error")
        if isinstance(error, RateUnavailableError):
            raise error
        if error is not None:
            logger.warning("Rate lookup %s -> %s failed: %s", from_currency, to_currency, error)
            raise RateUnavailableError(from_currency, to_currency, str(error)) from error
        return outcome.get("rate")
