"""
Currency handling for expenses.
All expenses are stored in KRW; THB input is converted with a fixed,
configurable rate before it is persisted.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional
import logging
import math

from tripplanner.core.errors import UnsupportedCurrencyError

logger = logging.getLogger(__name__)

KRW = "KRW"
THB = "THB"
SUPPORTED_CURRENCIES = (KRW, THB)


def parse_amount(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    """
    Coerce a decimal-like value (str, Decimal, int, float) to float.
    Anything unparseable, NaN or infinite becomes ``default``.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        try:
            result = float(value)
        except (InvalidOperation, ValueError):
            return default
    elif isinstance(value, (int, float)):
        result = float(value)
    else:
        text = str(value).strip().replace(",", "")
        try:
            result = float(text)
        except ValueError:
            return default
    if math.isnan(result) or math.isinf(result):
        return default
    return result


def normalize_currency(currency: Optional[str]) -> str:
    code = (currency or KRW).strip().upper()
    if code not in SUPPORTED_CURRENCIES:
        raise UnsupportedCurrencyError(
            f"Unsupported currency: {currency}. Supported: {', '.join(SUPPORTED_CURRENCIES)}"
        )
    return code


def convert_to_krw(amount: Any, currency: Optional[str], rate: float) -> float:
    """
    Convert an entered amount to KRW.

    THB is multiplied by ``rate`` (KRW per THB); KRW passes through.
    The source currency is not kept anywhere after this call.
    """
    code = normalize_currency(currency)
    value = parse_amount(amount)
    if code == THB:
        return value * rate
    return value


class ExchangeCalculator:
    """Two-way THB/KRW calculator with its own rate."""

    def __init__(self, rate: float):
        if rate <= 0:
            raise ValueError("Exchange rate must be positive")
        self.rate = rate

    def baht_to_won(self, baht: Any) -> float:
        return parse_amount(baht) * self.rate

    def won_to_baht(self, won: Any) -> float:
        return round(parse_amount(won) / self.rate, 2)

    def convert(self, amount: Any, from_currency: str) -> dict:
        source = normalize_currency(from_currency)
        if source == THB:
            return {"from": THB, "to": KRW, "amount": parse_amount(amount),
                    "converted": self.baht_to_won(amount), "rate": self.rate}
        return {"from": KRW, "to": THB, "amount": parse_amount(amount),
                "converted": self.won_to_baht(amount), "rate": self.rate}
