"""Currency rounding helpers"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from config import CURRENCY_DECIMALS

_QUANTUM = Decimal(1).scaleb(-CURRENCY_DECIMALS)


def round_currency(value: float) -> float:
    """Round a monetary amount to currency precision, halves away from zero."""
    return float(Decimal(str(value)).quantize(_QUANTUM, rounding=ROUND_HALF_UP))


def sum_currency(values: Iterable[float]) -> float:
    """Sum amounts and round the total once."""
    return round_currency(sum(values))
