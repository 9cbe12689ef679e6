"""Stock ledger derived from the full purchase and sale history.

Stock is never stored: it is recomputed from every purchase (+) and sale (-)
of an item, so the result does not depend on insertion order. Negative stock
is reported as-is; it signals sales recorded without a matching purchase.

The package-count view (``50 kg sacks``, ``20 L cans``...) is a coarse,
secondary ledger summed from the optional ``package_size``/``package_count``
columns. It is an approximation and does not reconcile with the quantity
ledger, for example when a purchase declares packages that do not add up to
its total quantity.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from . import log
from .constants import PACKAGE_SIZES, MeasurementType
from .models import ItemRow, PurchaseRow, SaleRow
from .money import ZERO, to_decimal


@dataclass(frozen=True)
class StockLine:
    """Current stock position of one item."""

    item_id: str
    item_name: str
    measurement_type: str
    base_unit: str
    is_active: bool
    total_purchased: Decimal
    total_sold: Decimal
    current_stock: Decimal
    package_counts: Dict[Decimal, Decimal] = field(default_factory=dict)
    whole_packages: Dict[int, int] = field(default_factory=dict)


def current_stock(item_id: str, purchases: Iterable[PurchaseRow], sales: Iterable[SaleRow]) -> Decimal:
    """Return ``sum(purchased) - sum(sold)`` for ``item_id``."""

    purchased = sum((to_decimal(p.total_quantity) for p in purchases if p.item_id == item_id), ZERO)
    sold = sum((to_decimal(s.total_quantity) for s in sales if s.item_id == item_id), ZERO)
    return purchased - sold


def package_balance(item_id: str, purchases: Iterable[PurchaseRow], sales: Iterable[SaleRow]) -> Dict[Decimal, Decimal]:
    """Signed package count per declared package size for ``item_id``.

    Records that leave either package column empty are ignored.
    """

    balance: Dict[Decimal, Decimal] = {}
    for record, sign in [(p, 1) for p in purchases] + [(s, -1) for s in sales]:
        if record.item_id != item_id:
            continue
        if record.package_size is None or record.package_count is None:
            continue
        size = to_decimal(record.package_size)
        balance[size] = balance.get(size, ZERO) + sign * to_decimal(record.package_count)
    return balance


def estimate_whole_packages(stock: Decimal, measurement_type: Optional[str]) -> Dict[int, int]:
    """Whole sacks or cans that the current stock would fill, per standard size.

    WEIGHT items map to 50 kg and 25 kg sacks, VOLUME items to 20 L and 5 L
    cans. Each size is computed independently as ``floor(stock / size)``.
    """

    try:
        sizes = PACKAGE_SIZES[MeasurementType(measurement_type)]
    except ValueError:
        return {}
    value = to_decimal(stock)
    return {size: math.floor(value / size) for size in sizes}


def calculate_stock(
    items: Sequence[ItemRow],
    purchases: Sequence[PurchaseRow],
    sales: Sequence[SaleRow],
    *,
    include_inactive: bool = False,
) -> List[StockLine]:
    """Build one :class:`StockLine` per item in sheet order.

    Args:
        items (Sequence[ItemRow]): Item master data.
        purchases (Sequence[PurchaseRow]): Every purchase ever recorded.
        sales (Sequence[SaleRow]): Every sale ever recorded.
        include_inactive (bool): When ``False`` (default) soft-disabled items
            are left out of the result.

    Returns:
        list[StockLine]: Stock positions including package balances and the
            whole-package estimate.
    """

    purchased: Dict[str, Decimal] = {}
    sold: Dict[str, Decimal] = {}
    for purchase in purchases:
        purchased[purchase.item_id] = purchased.get(purchase.item_id, ZERO) + to_decimal(purchase.total_quantity)
    for sale in sales:
        sold[sale.item_id] = sold.get(sale.item_id, ZERO) + to_decimal(sale.total_quantity)

    lines: List[StockLine] = []
    for item in items:
        if not item.is_active and not include_inactive:
            continue
        item_purchased = purchased.get(item.item_id, ZERO)
        item_sold = sold.get(item.item_id, ZERO)
        stock = item_purchased - item_sold
        if stock < ZERO:
            log.warning("Item '%s' has negative stock %s", item.item_id, stock)
        lines.append(
            StockLine(
                item_id=item.item_id,
                item_name=item.item_name,
                measurement_type=item.measurement_type,
                base_unit=item.base_unit,
                is_active=item.is_active,
                total_purchased=item_purchased,
                total_sold=item_sold,
                current_stock=stock,
                package_counts=package_balance(item.item_id, purchases, sales),
                whole_packages=estimate_whole_packages(stock, item.measurement_type),
            )
        )
    log.debug("Calculated stock for %d items", len(lines))
    return lines


def total_stock(lines: Iterable[StockLine]) -> Decimal:
    """Sum ``current_stock`` over active lines."""

    return sum((line.current_stock for line in lines if line.is_active), ZERO)


__all__ = [
    "StockLine",
    "current_stock",
    "package_balance",
    "estimate_whole_packages",
    "calculate_stock",
    "total_stock",
]
