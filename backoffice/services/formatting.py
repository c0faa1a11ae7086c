"""Human-readable number formatting for exported reports."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

from django.conf import settings

CURRENCY_SYMBOLS = {
    'USD': '$',
    'EUR': '€',
    'GBP': '£',
}


def _to_decimal(value: Any) -> Decimal:
    if value is None or isinstance(value, bool):
        return Decimal(0)
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        return Decimal(0)
    return number if number.is_finite() else Decimal(0)


def format_number(value: Any, decimals: int = 2) -> str:
    """Format ``value`` with thousands separators and fixed decimals.

    Anything that is not a number is treated as zero.
    """

    quantum = Decimal(1).scaleb(-decimals)
    number = _to_decimal(value).quantize(quantum, rounding=ROUND_HALF_UP)
    return f"{number:,.{decimals}f}"


def format_currency(value: Any, currency: Optional[str] = None) -> str:
    code = (currency or settings.BACKOFFICE_CURRENCY).upper()
    number = _to_decimal(value).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    symbol = CURRENCY_SYMBOLS.get(code, f"{code} ")
    sign = '-' if number < 0 else ''
    return f"{sign}{symbol}{format_number(abs(number), 2)}"


def format_litres(value: Any, decimals: int = 1) -> str:
    return f"{format_number(value, decimals)}L"
