"""Money and quantity primitives.

Amounts and measured quantities are carried as :class:`~decimal.Decimal`
values throughout the package, matching how the workbook layer deserializes
numeric cells. These helpers never validate sign; callers reject negative or
zero inputs before reaching them.
"""

from __future__ import annotations

from decimal import ROUND_FLOOR, Decimal
from typing import Any, Optional

from .constants import DEFAULT_CURRENCY, DEFAULT_LOCALE


ZERO = Decimal("0")
HALF = Decimal("0.5")

# Thousands separator by locale language.
_GROUP_SEPARATORS = {
    "en": ",",
    "fr": " ",
}


def to_decimal(value: Any) -> Decimal:
    """Coerce a raw numeric value into a ``Decimal``.

    ``None`` and empty strings become zero so aggregations can treat missing
    numeric fields as absent amounts. Floats are converted through ``str`` to
    avoid carrying binary representation noise into the ledger.
    """

    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_half_up(value: Any) -> Decimal:
    """Round to the nearest integer, halves towards positive infinity.

    ``2.5`` becomes ``3`` and ``-2.5`` becomes ``-2``.
    """

    return (to_decimal(value) + HALF).to_integral_value(rounding=ROUND_FLOOR)


def round_currency(amount: Any) -> Decimal:
    """Round an amount to the nearest whole currency unit."""

    return round_half_up(amount)


def multiply_quantity_price(quantity: Any, unit_price: Any) -> Decimal:
    """Return ``quantity * unit_price`` without intermediate rounding."""

    return to_decimal(quantity) * to_decimal(unit_price)


def sum_amounts(values) -> Decimal:
    total = ZERO
    for value in values:
        total += to_decimal(value)
    return total


def format_currency(amount: Any, currency: str = DEFAULT_CURRENCY, locale: Optional[str] = DEFAULT_LOCALE) -> str:
    """Render an amount for display at the presentation boundary.

    Args:
        amount (Any): Value to format; ``None`` renders as zero.
        currency (str): Currency code appended after the number.
        locale (str | None): BCP 47 tag whose language selects the thousands
            separator. Unknown languages fall back to a comma.

    Returns:
        str: Rounded, grouped amount such as ``"1,234,500 RWF"``.
    """

    rounded = round_currency(amount)
    language = (locale or DEFAULT_LOCALE).split("-")[0].lower()
    separator = _GROUP_SEPARATORS.get(language, ",")
    grouped = f"{rounded:,}"
    if separator != ",":
        grouped = grouped.replace(",", separator)
    return f"{grouped} {currency}" if currency else grouped


def format_quantity(quantity: Any, locale: Optional[str] = DEFAULT_LOCALE) -> str:
    """Format a quantity with grouping while keeping its fractional digits."""

    value = to_decimal(quantity)
    if value == value.to_integral_value():
        value = value.quantize(Decimal("1"))
    language = (locale or DEFAULT_LOCALE).split("-")[0].lower()
    separator = _GROUP_SEPARATORS.get(language, ",")
    grouped = f"{value:,}"
    if separator != ",":
        grouped = grouped.replace(",", separator)
    return grouped


__all__ = [
    "ZERO",
    "to_decimal",
    "round_half_up",
    "round_currency",
    "multiply_quantity_price",
    "sum_amounts",
    "format_currency",
    "format_quantity",
]
