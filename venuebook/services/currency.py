"""Presentation-time currency helpers.

Prices are always computed in the venue's own currency. Conversion happens
only when a caller asks to display an amount in another currency, through a
``RateSource`` so the static table can be swapped for a live feed.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping, Protocol

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

# Units per 1 USD
STATIC_RATES: dict[str, Decimal] = {
    "USD": Decimal("1"),
    "EUR": Decimal("0.85"),
    "SAR": Decimal("3.75"),
    "AED": Decimal("3.67"),
    "GBP": Decimal("0.73"),
    "CAD": Decimal("1.25"),
    "AUD": Decimal("1.35"),
}

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "SAR": "ر.س",
    "AED": "د.إ",
    "GBP": "£",
    "CAD": "C$",
    "AUD": "A$",
}

SUFFIX_CURRENCIES = {"SAR", "AED"}


class RateSource(Protocol):
    def rate(self, currency: str) -> Decimal | None: ...


class StaticRateSource:
    def __init__(self, rates: Mapping[str, Decimal] | None = None):
        self.rates = dict(STATIC_RATES if rates is None else rates)

    def rate(self, currency: str) -> Decimal | None:
        return self.rates.get((currency or "").upper())


_default_source = StaticRateSource()


def quantize_money(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def can_convert(from_currency: str, to_currency: str, source: RateSource | None = None) -> bool:
    if (from_currency or "").upper() == (to_currency or "").upper():
        return True
    source = source or _default_source
    return bool(source.rate(from_currency)) and bool(source.rate(to_currency))


def convert_currency(amount, from_currency: str, to_currency: str, source: RateSource | None = None):
    """Convert ``amount`` between currencies via USD.

    Unknown currency codes are not an error: the amount comes back unchanged
    and a warning is logged.
    """
    if amount is None:
        return amount
    if (from_currency or "").upper() == (to_currency or "").upper():
        return amount

    source = source or _default_source
    from_rate = source.rate(from_currency)
    to_rate = source.rate(to_currency)
    if not from_rate or not to_rate:
        missing = from_currency if not from_rate else to_currency
        logger.warning("Currency conversion: missing exchange rate for %s", missing)
        return amount

    value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    return value / from_rate * to_rate


def format_currency(amount, currency: str = "USD", language: str = "en") -> str:
    if amount is None:
        return "0"
    value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    currency = (currency or "USD").upper()
    symbol = CURRENCY_SYMBOLS.get(currency, currency)

    if value == value.to_integral_value():
        text = f"{value:,.0f}"
    else:
        text = f"{quantize_money(value):,.2f}"

    if language == "ar" or currency in SUFFIX_CURRENCIES:
        return f"{text} {symbol}"
    return f"{symbol}{text}"
