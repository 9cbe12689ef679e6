"""Dashboard aggregates folded from the full record set.

All functions here are pure: they take record sequences plus an evaluation
date and return frozen dataclasses, never touching the workbook. Empty input
yields zeros and empty series, and missing numeric fields count as zero.

Each aggregate carries a ``KIND`` tag. :func:`serialize_aggregate` turns an
aggregate into a plain mapping with camelCase keys for API or file output, and
:func:`parse_aggregate` validates such a mapping back into the typed form.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, ClassVar, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from . import log
from .constants import VehicleStatus
from .errors import ValidationError
from .models import ItemRow, PurchaseRow, RentalContractRow, RentalPaymentRow, SaleRow, VehicleRow
from .money import ZERO, round_half_up, to_decimal
from .stock import calculate_stock, total_stock


DEFAULT_WINDOW_DAYS = 30
DEFAULT_TOP_VEHICLES = 8


@dataclass(frozen=True)
class GroceryStats:
    KIND: ClassVar[str] = "grocery_stats"

    total_stock: Decimal
    today_sales: Decimal
    monthly_sales: Decimal
    monthly_profit: Decimal
    payables: Decimal
    receivables: Decimal


@dataclass(frozen=True)
class RentalStats:
    KIND: ClassVar[str] = "rental_stats"

    total: int
    available: int
    rented_out: int
    rented_in: int
    maintenance: int
    offline: int
    today_revenue: Decimal
    month_revenue: Decimal
    utilization: int


@dataclass(frozen=True)
class DailyGroceryPoint:
    KIND: ClassVar[str] = "grocery_daily_point"

    date: date
    sales: Decimal
    purchases: Decimal
    profit: Decimal


@dataclass(frozen=True)
class DailyRentalPoint:
    KIND: ClassVar[str] = "rental_daily_point"

    date: date
    revenue: Decimal


@dataclass(frozen=True)
class VehicleRevenueRow:
    KIND: ClassVar[str] = "vehicle_revenue"

    vehicle_id: str
    vehicle_name: str
    revenue: Decimal
    contract_count: int


@dataclass(frozen=True)
class DashboardTrends:
    KIND: ClassVar[str] = "dashboard_trends"

    grocery_daily: Tuple[DailyGroceryPoint, ...]
    rental_daily: Tuple[DailyRentalPoint, ...]
    top_vehicles: Tuple[VehicleRevenueRow, ...]


Aggregate = Union[GroceryStats, RentalStats, DailyGroceryPoint, DailyRentalPoint, VehicleRevenueRow, DashboardTrends]

AGGREGATE_TYPES: Dict[str, type] = {
    aggregate.KIND: aggregate
    for aggregate in (GroceryStats, RentalStats, DailyGroceryPoint, DailyRentalPoint, VehicleRevenueRow, DashboardTrends)
}

_SERIES_TYPES: Dict[str, type] = {
    "grocery_daily": DailyGroceryPoint,
    "rental_daily": DailyRentalPoint,
    "top_vehicles": VehicleRevenueRow,
}


def _as_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        log.debug("Ignoring unparseable date value %r", value)
        return None


def _same_month(value: Optional[date], today: date) -> bool:
    return value is not None and (value.year, value.month) == (today.year, today.month)


def _window(today: date, window_days: int) -> List[date]:
    window_days = max(0, int(window_days))
    start = today - timedelta(days=window_days - 1)
    return [start + timedelta(days=offset) for offset in range(window_days)]


def fleet_utilization(vehicles: Sequence[VehicleRow]) -> int:
    """Percentage of the fleet rented out or in, rounded to a whole number."""

    if not vehicles:
        return 0
    rented = sum(
        1
        for vehicle in vehicles
        if vehicle.current_status in (VehicleStatus.RENTED_OUT.value, VehicleStatus.RENTED_IN.value)
    )
    return int(round_half_up(Decimal(rented) * 100 / Decimal(len(vehicles))))


def grocery_stats(
    items: Sequence[ItemRow],
    purchases: Sequence[PurchaseRow],
    sales: Sequence[SaleRow],
    today: date,
) -> GroceryStats:
    """Compute the grocery KPI tiles.

    ``monthly_profit`` is month sales minus month purchase cost, a cash-basis
    figure that does not match sold quantities to their purchase cost.

    Args:
        items (Sequence[ItemRow]): Item master data; only active items count
            towards ``total_stock``.
        purchases (Sequence[PurchaseRow]): All purchases.
        sales (Sequence[SaleRow]): All sales.
        today (date): Evaluation date for the daily and monthly windows.

    Returns:
        GroceryStats: Stock, sales, profit, payables and receivables totals.
    """

    today = _as_date(today)
    stock_total = total_stock(calculate_stock(items, purchases, sales))
    today_sales = ZERO
    monthly_sales = ZERO
    monthly_purchases = ZERO
    receivables = ZERO
    payables = ZERO

    for sale in sales:
        sale_day = _as_date(sale.sale_date)
        amount = to_decimal(sale.total_sale_amount)
        if sale_day == today:
            today_sales += amount
        if _same_month(sale_day, today):
            monthly_sales += amount
        receivables += to_decimal(sale.remaining_amount)

    for purchase in purchases:
        if _same_month(_as_date(purchase.purchase_date), today):
            monthly_purchases += to_decimal(purchase.total_purchase_cost)
        payables += to_decimal(purchase.remaining_amount)

    return GroceryStats(
        total_stock=stock_total,
        today_sales=today_sales,
        monthly_sales=monthly_sales,
        monthly_profit=monthly_sales - monthly_purchases,
        payables=payables,
        receivables=receivables,
    )


def rental_stats(
    vehicles: Sequence[VehicleRow],
    payments: Sequence[RentalPaymentRow],
    today: date,
) -> RentalStats:
    """Compute fleet counts by status and rental revenue for today and this month."""

    today = _as_date(today)
    counts = {status: 0 for status in VehicleStatus}
    for vehicle in vehicles:
        try:
            counts[VehicleStatus(vehicle.current_status)] += 1
        except ValueError:
            log.warning("Vehicle '%s' has unknown status %r", vehicle.vehicle_id, vehicle.current_status)

    today_revenue = ZERO
    month_revenue = ZERO
    for payment in payments:
        paid_on = _as_date(payment.payment_date)
        amount = to_decimal(payment.amount)
        if paid_on == today:
            today_revenue += amount
        if _same_month(paid_on, today):
            month_revenue += amount

    return RentalStats(
        total=len(vehicles),
        available=counts[VehicleStatus.AVAILABLE],
        rented_out=counts[VehicleStatus.RENTED_OUT],
        rented_in=counts[VehicleStatus.RENTED_IN],
        maintenance=counts[VehicleStatus.MAINTENANCE],
        offline=counts[VehicleStatus.OFFLINE],
        today_revenue=today_revenue,
        month_revenue=month_revenue,
        utilization=fleet_utilization(vehicles),
    )


def grocery_daily(
    purchases: Sequence[PurchaseRow],
    sales: Sequence[SaleRow],
    today: date,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> Tuple[DailyGroceryPoint, ...]:
    """Daily sales, purchase cost and profit for the ``window_days`` ending today.

    Days without activity are present with zero values so the series is
    contiguous.
    """

    days = _window(_as_date(today), window_days)
    sales_by_day: Dict[date, Decimal] = {day: ZERO for day in days}
    purchases_by_day: Dict[date, Decimal] = {day: ZERO for day in days}
    for sale in sales:
        day = _as_date(sale.sale_date)
        if day in sales_by_day:
            sales_by_day[day] += to_decimal(sale.total_sale_amount)
    for purchase in purchases:
        day = _as_date(purchase.purchase_date)
        if day in purchases_by_day:
            purchases_by_day[day] += to_decimal(purchase.total_purchase_cost)
    return tuple(
        DailyGroceryPoint(
            date=day,
            sales=sales_by_day[day],
            purchases=purchases_by_day[day],
            profit=sales_by_day[day] - purchases_by_day[day],
        )
        for day in days
    )


def rental_daily(
    payments: Sequence[RentalPaymentRow],
    today: date,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> Tuple[DailyRentalPoint, ...]:
    days = _window(_as_date(today), window_days)
    revenue: Dict[date, Decimal] = {day: ZERO for day in days}
    for payment in payments:
        day = _as_date(payment.payment_date)
        if day in revenue:
            revenue[day] += to_decimal(payment.amount)
    return tuple(DailyRentalPoint(date=day, revenue=revenue[day]) for day in days)


def top_vehicles(
    vehicles: Sequence[VehicleRow],
    contracts: Sequence[RentalContractRow],
    payments: Sequence[RentalPaymentRow],
    limit: int = DEFAULT_TOP_VEHICLES,
) -> Tuple[VehicleRevenueRow, ...]:
    """Rank vehicles with at least one contract by rental-payment revenue.

    Ties are broken by vehicle name so the ordering is stable between runs.
    """

    vehicle_of_contract = {contract.contract_id: contract.vehicle_id for contract in contracts}
    contract_counts: Dict[str, int] = {}
    for contract in contracts:
        contract_counts[contract.vehicle_id] = contract_counts.get(contract.vehicle_id, 0) + 1

    revenue: Dict[str, Decimal] = {}
    for payment in payments:
        vehicle_id = vehicle_of_contract.get(payment.rental_contract_id)
        if vehicle_id is None:
            continue
        revenue[vehicle_id] = revenue.get(vehicle_id, ZERO) + to_decimal(payment.amount)

    rows = [
        VehicleRevenueRow(
            vehicle_id=vehicle.vehicle_id,
            vehicle_name=vehicle.vehicle_name,
            revenue=revenue.get(vehicle.vehicle_id, ZERO),
            contract_count=contract_counts[vehicle.vehicle_id],
        )
        for vehicle in vehicles
        if contract_counts.get(vehicle.vehicle_id)
    ]
    rows.sort(key=lambda row: (-row.revenue, row.vehicle_name))
    return tuple(rows[: max(0, limit)])


def dashboard_trends(
    purchases: Sequence[PurchaseRow],
    sales: Sequence[SaleRow],
    vehicles: Sequence[VehicleRow],
    contracts: Sequence[RentalContractRow],
    payments: Sequence[RentalPaymentRow],
    today: date,
    *,
    window_days: int = DEFAULT_WINDOW_DAYS,
    limit: int = DEFAULT_TOP_VEHICLES,
) -> DashboardTrends:
    """Bundle the chart series shown on the dashboard."""

    trends = DashboardTrends(
        grocery_daily=grocery_daily(purchases, sales, today, window_days),
        rental_daily=rental_daily(payments, today, window_days),
        top_vehicles=top_vehicles(vehicles, contracts, payments, limit),
    )
    log.debug(
        "Computed dashboard trends: %d grocery points, %d rental points, %d vehicles",
        len(trends.grocery_daily),
        len(trends.rental_daily),
        len(trends.top_vehicles),
    )
    return trends


def _camel(name: str) -> str:
    head, *tail = name.split("_")
    return head + "".join(part.capitalize() for part in tail)


def _serialize_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, tuple):
        return [serialize_aggregate(entry) for entry in value]
    return value


def serialize_aggregate(aggregate: Aggregate) -> Dict[str, Any]:
    """Render an aggregate as a tagged mapping with camelCase keys.

    Decimals become strings to keep their precision and dates use ISO format.
    Series entries are serialized recursively and carry their own tag.
    """

    payload: Dict[str, Any] = {"kind": aggregate.KIND}
    for entry in fields(aggregate):
        payload[_camel(entry.name)] = _serialize_value(getattr(aggregate, entry.name))
    return payload


def _parse_field(kind: str, name: str, annotation: str, raw: Any) -> Any:
    label = f"{kind}.{_camel(name)}"
    if annotation == "Decimal":
        if raw is None:
            return ZERO
        if isinstance(raw, bool):
            raise ValidationError(label, "must be a number", raw)
        try:
            return to_decimal(raw)
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(label, "must be a number", raw) from exc
    if annotation == "int":
        if raw is None:
            return 0
        if isinstance(raw, bool) or not isinstance(raw, (int, str, Decimal, float)):
            raise ValidationError(label, "must be an integer", raw)
        try:
            value = Decimal(str(raw))
        except InvalidOperation as exc:
            raise ValidationError(label, "must be an integer", raw) from exc
        if value != value.to_integral_value():
            raise ValidationError(label, "must be an integer", raw)
        return int(value)
    if annotation == "date":
        if isinstance(raw, date):
            return raw
        try:
            return date.fromisoformat(str(raw))
        except ValueError as exc:
            raise ValidationError(label, "must be an ISO date", raw) from exc
    if annotation == "str":
        if raw is None:
            raise ValidationError(label, "is required", raw)
        return str(raw)
    # series of tagged entries
    if not isinstance(raw, (list, tuple)):
        raise ValidationError(label, "must be a list", raw)
    expected = _SERIES_TYPES[name]
    parsed = []
    for entry in raw:
        item = parse_aggregate(entry)
        if not isinstance(item, expected):
            raise ValidationError(label, f"entries must be of kind {expected.KIND}", entry)
        parsed.append(item)
    return tuple(parsed)


def parse_aggregate(payload: Mapping[str, Any]) -> Aggregate:
    """Validate a tagged mapping and rebuild the matching aggregate.

    Args:
        payload (Mapping[str, Any]): Mapping produced by
            :func:`serialize_aggregate` or by an external aggregation backend.

    Returns:
        Aggregate: Typed aggregate selected by ``payload["kind"]``.

    Raises:
        ValidationError: If the payload is not a mapping, its ``kind`` is
            unknown, a field is missing, or a value has the wrong type.
            ``null`` numeric values are read as zero.
    """

    if not isinstance(payload, Mapping):
        raise ValidationError("payload", "must be a mapping", payload)
    kind = payload.get("kind")
    aggregate_type = AGGREGATE_TYPES.get(kind)
    if aggregate_type is None:
        raise ValidationError("kind", "is not a known aggregate kind", kind)

    values = {}
    for entry in fields(aggregate_type):
        key = _camel(entry.name)
        if key not in payload:
            raise ValidationError(f"{kind}.{key}", "is required")
        values[entry.name] = _parse_field(kind, entry.name, entry.type, payload[key])
    return aggregate_type(**values)


__all__ = [
    "DEFAULT_WINDOW_DAYS",
    "DEFAULT_TOP_VEHICLES",
    "GroceryStats",
    "RentalStats",
    "DailyGroceryPoint",
    "DailyRentalPoint",
    "VehicleRevenueRow",
    "DashboardTrends",
    "AGGREGATE_TYPES",
    "fleet_utilization",
    "grocery_stats",
    "rental_stats",
    "grocery_daily",
    "rental_daily",
    "top_vehicles",
    "dashboard_trends",
    "serialize_aggregate",
    "parse_aggregate",
]
