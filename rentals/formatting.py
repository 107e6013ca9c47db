"""Spanish-locale currency and date formatting used by documents and alerts."""

from __future__ import annotations

from datetime import date
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Union

Number = Union[int, float, Decimal]

MONTHS = [
    "enero",
    "febrero",
    "marzo",
    "abril",
    "mayo",
    "junio",
    "julio",
    "agosto",
    "septiembre",
    "octubre",
    "noviembre",
    "diciembre",
]


def _to_decimal(value: Optional[Number]) -> Decimal:
    if value is None:
        return Decimal("0")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")


def _group_thousands(digits: str) -> str:
    # Spanish convention: four-digit amounts are not grouped (1234), five or more are (12.345).
    if len(digits) <= 4:
        return digits
    groups = []
    while digits:
        groups.insert(0, digits[-3:])
        digits = digits[:-3]
    return ".".join(groups)


def format_currency(value: Optional[Number], *, whole: bool = False) -> str:
    """Format an amount as EUR the way es_ES does: ``12.345,50 €``.

    ``whole`` truncates to whole euros for compact badges (``450 €``).
    """
    amount = _to_decimal(value)
    sign = "-" if amount < 0 else ""
    amount = abs(amount)
    if whole:
        units = amount.quantize(Decimal("1"), rounding=ROUND_DOWN)
        return f"{sign}{_group_thousands(str(int(units)))} €"
    cents = amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    integer, _, fraction = f"{cents:.2f}".partition(".")
    return f"{sign}{_group_thousands(integer)},{fraction} €"


def whole_euros(value: Optional[Number]) -> int:
    return int(_to_decimal(value).quantize(Decimal("1"), rounding=ROUND_DOWN))


def format_number(value: Optional[Number]) -> str:
    """Plain decimal with a comma separator and no trailing zeros (``12,5``)."""
    amount = _to_decimal(value).normalize()
    if amount == amount.to_integral_value():
        return str(int(amount))
    return format(amount, "f").replace(".", ",")


def long_date(value: Optional[date]) -> str:
    """``19 de octubre de 2026``; empty string for a missing date."""
    if value is None:
        return ""
    return f"{value.day} de {MONTHS[value.month - 1]} de {value.year}"


def medium_date(value: Optional[date]) -> str:
    """``19 oct 2026``"""
    if value is None:
        return ""
    return f"{value.day} {MONTHS[value.month - 1][:3]} {value.year}"
