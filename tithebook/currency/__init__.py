"""Currency normalization and exchange-rate sources."""

from tithebook.currency.normalizer import (
    CurrencyNormalizer,
    NormalizationResult,
    currency_symbol,
    format_amount,
    quantize,
)
from tithebook.currency.rates import (
    ChainedRateSource,
    DatabaseRateSource,
    RateSource,
    StaticRateSource,
    TimeoutRateSource,
)

__all__ = [
    "ChainedRateSource",
    "CurrencyNormalizer",
    "DatabaseRateSource",
    "NormalizationResult",
    "RateSource",
    "StaticRateSource",
    "TimeoutRateSource",
    "currency_symbol",
    "format_amount",
    "quantize",
]
