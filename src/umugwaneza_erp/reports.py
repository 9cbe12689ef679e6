"""Read-only report builders over the ledger records.

Reports are pure functions over record sequences, mirroring the aggregation
engine. Display names for suppliers, customers, owners, items and vehicles are
passed in as a single ``names`` mapping keyed by record id; ids without a name
render as ``"-"``.

Date windows are inclusive on both ends. Rental contracts fall in a window by
the calendar date of ``rental_start_datetime``.

The notifications feed is the exception: it windows records by their
``created_at`` instant rather than by business date.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from . import log
from .constants import DEFAULT_CURRENCY, PaymentReferenceType, PurchaseStatus, RentalDirection, RentalType, VehicleStatus
from .errors import ValidationError
from .models import GroceryPaymentRow, PurchaseRow, RentalContractRow, RentalPaymentRow, SaleRow, VehicleRow
from .money import ZERO, format_currency, round_half_up, to_decimal
from .settlement import billed_units
from .status import display_status, is_overdue


DEFAULT_PERIOD_DAYS = 30
MISSING_NAME = "-"
NOTIFICATION_WINDOW_DAYS = 7
NOTIFICATION_LIMIT = 50


class RowType(str, Enum):
    """Kinds of rows in the unified transaction report."""

    PURCHASE = "Purchase"
    SALE = "Sale"
    RENTAL_OUT = "Rental Out"
    RENTAL_IN = "Rental In"


class NotificationType(str, Enum):
    """Kinds of entries in the activity feed."""

    PURCHASE = "purchase"
    SALE = "sale"
    PAYMENT = "payment"
    RENTAL_PAYMENT = "rental_payment"
    RENTAL = "rental"
    VEHICLE_ALERT = "vehicle_alert"
    OUTSTANDING = "outstanding"


@dataclass(frozen=True)
class ReportRow:
    date: date
    type: str
    reference: str
    party: str
    item_vehicle: str
    quantity: Optional[Decimal]
    unit: Optional[str]
    unit_price: Decimal
    total: Decimal
    paid: Decimal
    remaining: Decimal
    status: str


@dataclass(frozen=True)
class ReportSummary:
    total_purchase: Decimal
    total_sales: Decimal
    total_rental_revenue: Decimal
    total_rental_cost: Decimal
    total_paid: Decimal
    total_received: Decimal
    total_outstanding_payables: Decimal
    total_outstanding_receivables: Decimal
    net_profit: Decimal


@dataclass(frozen=True)
class TransactionReport:
    start: date
    end: date
    rows: Tuple[ReportRow, ...]
    summary: ReportSummary


@dataclass(frozen=True)
class ProfitRow:
    date: date
    total_sales: Decimal
    total_purchases: Decimal
    profit: Decimal


@dataclass(frozen=True)
class ProfitReport:
    rows: Tuple[ProfitRow, ...]
    grand_total_sales: Decimal
    grand_total_purchases: Decimal
    net_profit: Decimal


@dataclass(frozen=True)
class OutstandingRow:
    date: date
    type: str
    record_id: str
    reference: str
    party: str
    item: str
    total: Decimal
    settled: Decimal
    remaining: Decimal
    status: str
    due_date: Optional[date]


@dataclass(frozen=True)
class OutstandingReport:
    rows: Tuple[OutstandingRow, ...]
    total_outstanding: Decimal


@dataclass(frozen=True)
class LedgerRow:
    date: date
    reference: str
    charge: Decimal
    payment: Decimal
    balance: Decimal


@dataclass(frozen=True)
class LedgerReport:
    party_id: str
    rows: Tuple[LedgerRow, ...]
    final_balance: Decimal


@dataclass(frozen=True)
class RentalReportRow:
    contract_id: str
    reference: str
    party: str
    vehicle: str
    start: date
    end: date
    total: Decimal
    paid: Decimal
    remaining: Decimal
    status: str
    operational_status: str


@dataclass(frozen=True)
class RentalReport:
    direction: str
    rows: Tuple[RentalReportRow, ...]
    total_amount: Decimal
    total_paid: Decimal
    total_outstanding: Decimal


@dataclass(frozen=True)
class UtilizationRow:
    vehicle_id: str
    vehicle_name: str
    vehicle_type: str
    total_rental_days: int
    total_revenue: Decimal
    rental_count: int
    availability: int


@dataclass(frozen=True)
class RentalProfit:
    total_revenue: Decimal
    total_cost: Decimal
    net_profit: Decimal
    outgoing_count: int
    incoming_count: int


@dataclass(frozen=True)
class PurchaseReportRow:
    date: date
    reference: str
    supplier: str
    item: str
    quantity: Decimal
    unit: str
    unit_price: Decimal
    total: Decimal
    paid: Decimal
    remaining: Decimal
    status: str


@dataclass(frozen=True)
class PurchaseReport:
    rows: Tuple[PurchaseReportRow, ...]
    total_purchased: Decimal
    total_paid: Decimal
    total_outstanding: Decimal


@dataclass(frozen=True)
class SaleReportRow:
    date: date
    reference: str
    customer: str
    item: str
    quantity: Decimal
    unit: str
    unit_price: Decimal
    total: Decimal
    received: Decimal
    remaining: Decimal
    status: str


@dataclass(frozen=True)
class SaleReport:
    rows: Tuple[SaleReportRow, ...]
    total_sales: Decimal
    total_received: Decimal
    total_outstanding: Decimal


@dataclass(frozen=True)
class Notification:
    """One activity feed entry; ``timestamp`` is timezone-aware."""

    id: str
    type: str
    title: str
    description: str
    timestamp: datetime
    status: str


def daily_window(day: date) -> Tuple[date, date]:
    return day, day


def monthly_window(year: int, month: int) -> Tuple[date, date]:
    """First and last calendar day of ``year``-``month``."""

    if not 1 <= month <= 12:
        raise ValidationError("month", "must be between 1 and 12", month)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def custom_window(start: date, end: date) -> Tuple[date, date]:
    if start is None or end is None:
        raise ValidationError("period", "start and end dates are required", (start, end))
    if end < start:
        raise ValidationError("end", "must not be before start", end)
    return start, end


def _as_date(value) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _in_window(value, start: Optional[date], end: Optional[date]) -> bool:
    day = _as_date(value)
    if day is None:
        return False
    if start is not None and day < start:
        return False
    if end is not None and day > end:
        return False
    return True


def _name(names: Mapping[str, str], record_id: Optional[str]) -> str:
    if record_id is None:
        return MISSING_NAME
    return names.get(record_id) or MISSING_NAME


def build_unified_rows(
    purchases: Iterable[PurchaseRow],
    sales: Iterable[SaleRow],
    contracts: Iterable[RentalContractRow],
    names: Mapping[str, str],
) -> List[ReportRow]:
    """Flatten purchases, sales and rental contracts into report rows.

    Rows appear grouped by kind (purchases, sales, outgoing rentals, incoming
    rentals) and keep record order within each group.
    """

    rows: List[ReportRow] = []
    for purchase in purchases:
        rows.append(
            ReportRow(
                date=_as_date(purchase.purchase_date),
                type=RowType.PURCHASE.value,
                reference=purchase.reference_no,
                party=_name(names, purchase.supplier_id),
                item_vehicle=_name(names, purchase.item_id),
                quantity=to_decimal(purchase.total_quantity),
                unit=purchase.unit,
                unit_price=to_decimal(purchase.unit_price),
                total=to_decimal(purchase.total_purchase_cost),
                paid=to_decimal(purchase.amount_paid),
                remaining=to_decimal(purchase.remaining_amount),
                status=purchase.financial_status,
            )
        )
    for sale in sales:
        rows.append(
            ReportRow(
                date=_as_date(sale.sale_date),
                type=RowType.SALE.value,
                reference=sale.reference_no,
                party=_name(names, sale.customer_id),
                item_vehicle=_name(names, sale.item_id),
                quantity=to_decimal(sale.total_quantity),
                unit=sale.unit,
                unit_price=to_decimal(sale.unit_price),
                total=to_decimal(sale.total_sale_amount),
                paid=to_decimal(sale.amount_received),
                remaining=to_decimal(sale.remaining_amount),
                status=sale.financial_status,
            )
        )
    contracts = list(contracts)
    for direction, row_type in (
        (RentalDirection.OUTGOING, RowType.RENTAL_OUT),
        (RentalDirection.INCOMING, RowType.RENTAL_IN),
    ):
        for contract in contracts:
            if contract.rental_direction != direction.value:
                continue
            party_id = contract.customer_id if direction == RentalDirection.OUTGOING else contract.external_owner_id
            rows.append(
                ReportRow(
                    date=_as_date(contract.rental_start_datetime),
                    type=row_type.value,
                    reference=contract.display_reference,
                    party=_name(names, party_id),
                    item_vehicle=_name(names, contract.vehicle_id),
                    quantity=None,
                    unit=None,
                    unit_price=to_decimal(contract.rate),
                    total=to_decimal(contract.total_amount),
                    paid=to_decimal(contract.amount_paid),
                    remaining=to_decimal(contract.remaining_amount),
                    status=contract.financial_status,
                )
            )
    return rows


def compute_summary(rows: Iterable[ReportRow]) -> ReportSummary:
    """Totals over unified rows.

    ``total_paid`` sums the paid column of every row, including amounts
    received on sales; ``total_received`` only covers sales.
    """

    totals: Dict[str, Decimal] = {row_type.value: ZERO for row_type in RowType}
    total_paid = ZERO
    total_received = ZERO
    payables = ZERO
    receivables = ZERO
    for row in rows:
        totals[row.type] = totals.get(row.type, ZERO) + row.total
        total_paid += row.paid
        if row.type == RowType.SALE.value:
            total_received += row.paid
        if row.type in (RowType.PURCHASE.value, RowType.RENTAL_IN.value):
            payables += row.remaining
        if row.type in (RowType.SALE.value, RowType.RENTAL_OUT.value):
            receivables += row.remaining

    return ReportSummary(
        total_purchase=totals[RowType.PURCHASE.value],
        total_sales=totals[RowType.SALE.value],
        total_rental_revenue=totals[RowType.RENTAL_OUT.value],
        total_rental_cost=totals[RowType.RENTAL_IN.value],
        total_paid=total_paid,
        total_received=total_received,
        total_outstanding_payables=payables,
        total_outstanding_receivables=receivables,
        net_profit=(
            totals[RowType.SALE.value]
            - totals[RowType.PURCHASE.value]
            + totals[RowType.RENTAL_OUT.value]
            - totals[RowType.RENTAL_IN.value]
        ),
    )


def transaction_report(
    purchases: Sequence[PurchaseRow],
    sales: Sequence[SaleRow],
    contracts: Sequence[RentalContractRow],
    names: Mapping[str, str],
    start: date,
    end: date,
) -> TransactionReport:
    """Unified report for every record dated within ``start``..``end``.

    Args:
        purchases (Sequence[PurchaseRow]): All purchases.
        sales (Sequence[SaleRow]): All sales.
        contracts (Sequence[RentalContractRow]): All rental contracts.
        names (Mapping[str, str]): Display name per referenced record id.
        start (date): First day of the window.
        end (date): Last day of the window.

    Returns:
        TransactionReport: Rows in the window and their summary.
    """

    start, end = custom_window(start, end)
    rows = build_unified_rows(
        [p for p in purchases if _in_window(p.purchase_date, start, end)],
        [s for s in sales if _in_window(s.sale_date, start, end)],
        [c for c in contracts if _in_window(c.rental_start_datetime, start, end)],
        names,
    )
    log.debug("Built transaction report for %s..%s with %d rows", start, end, len(rows))
    return TransactionReport(start=start, end=end, rows=tuple(rows), summary=compute_summary(rows))


def profit_by_date(
    purchases: Iterable[PurchaseRow],
    sales: Iterable[SaleRow],
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> ProfitReport:
    """Per-day sales, purchase cost and profit, for days with any activity."""

    by_day: Dict[date, List[Decimal]] = {}
    for purchase in purchases:
        if _in_window(purchase.purchase_date, start, end):
            bucket = by_day.setdefault(_as_date(purchase.purchase_date), [ZERO, ZERO])
            bucket[1] += to_decimal(purchase.total_purchase_cost)
    for sale in sales:
        if _in_window(sale.sale_date, start, end):
            bucket = by_day.setdefault(_as_date(sale.sale_date), [ZERO, ZERO])
            bucket[0] += to_decimal(sale.total_sale_amount)

    rows = tuple(
        ProfitRow(date=day, total_sales=values[0], total_purchases=values[1], profit=values[0] - values[1])
        for day, values in sorted(by_day.items())
    )
    grand_sales = sum((row.total_sales for row in rows), ZERO)
    grand_purchases = sum((row.total_purchases for row in rows), ZERO)
    return ProfitReport(
        rows=rows,
        grand_total_sales=grand_sales,
        grand_total_purchases=grand_purchases,
        net_profit=grand_sales - grand_purchases,
    )


def _purchase_outstanding(purchase: PurchaseRow, names: Mapping[str, str], status: str) -> OutstandingRow:
    return OutstandingRow(
        date=_as_date(purchase.purchase_date),
        type=RowType.PURCHASE.value,
        record_id=purchase.purchase_id,
        reference=purchase.reference_no,
        party=_name(names, purchase.supplier_id),
        item=_name(names, purchase.item_id),
        total=to_decimal(purchase.total_purchase_cost),
        settled=to_decimal(purchase.amount_paid),
        remaining=to_decimal(purchase.remaining_amount),
        status=status,
        due_date=_as_date(purchase.amount_due_date),
    )


def _sale_outstanding(sale: SaleRow, names: Mapping[str, str], status: str) -> OutstandingRow:
    return OutstandingRow(
        date=_as_date(sale.sale_date),
        type=RowType.SALE.value,
        record_id=sale.sale_id,
        reference=sale.reference_no,
        party=_name(names, sale.customer_id),
        item=_name(names, sale.item_id),
        total=to_decimal(sale.total_sale_amount),
        settled=to_decimal(sale.amount_received),
        remaining=to_decimal(sale.remaining_amount),
        status=status,
        due_date=_as_date(sale.amount_due_date),
    )


def _outstanding_report(rows: List[OutstandingRow]) -> OutstandingReport:
    rows.sort(key=lambda row: row.date)
    return OutstandingReport(rows=tuple(rows), total_outstanding=sum((row.remaining for row in rows), ZERO))


def outstanding_payables(
    purchases: Iterable[PurchaseRow],
    names: Mapping[str, str],
    supplier_id: Optional[str] = None,
    today: Optional[date] = None,
) -> OutstandingReport:
    """Open purchases, oldest first, with their display status."""

    rows = [
        _purchase_outstanding(
            purchase,
            names,
            display_status(purchase.remaining_amount, purchase.amount_due_date, purchase.financial_status, today),
        )
        for purchase in purchases
        if to_decimal(purchase.remaining_amount) > ZERO
        and (supplier_id is None or purchase.supplier_id == supplier_id)
    ]
    return _outstanding_report(rows)


def outstanding_receivables(
    sales: Iterable[SaleRow],
    names: Mapping[str, str],
    customer_id: Optional[str] = None,
    today: Optional[date] = None,
) -> OutstandingReport:
    """Open sales, oldest first, with their display status."""

    rows = [
        _sale_outstanding(
            sale,
            names,
            display_status(sale.remaining_amount, sale.amount_due_date, sale.financial_status, today),
        )
        for sale in sales
        if to_decimal(sale.remaining_amount) > ZERO
        and (customer_id is None or sale.customer_id == customer_id)
    ]
    return _outstanding_report(rows)


def overdue_balances(
    purchases: Iterable[PurchaseRow],
    sales: Iterable[SaleRow],
    names: Mapping[str, str],
    today: date,
) -> OutstandingReport:
    """Open purchases and sales whose due date is before ``today``."""

    rows = [
        _purchase_outstanding(purchase, names, display_status(purchase.remaining_amount, purchase.amount_due_date, purchase.financial_status, today))
        for purchase in purchases
        if is_overdue(purchase.remaining_amount, purchase.amount_due_date, today)
    ]
    rows.extend(
        _sale_outstanding(sale, names, display_status(sale.remaining_amount, sale.amount_due_date, sale.financial_status, today))
        for sale in sales
        if is_overdue(sale.remaining_amount, sale.amount_due_date, today)
    )
    return _outstanding_report(rows)


def _ledger(party_id: str, entries: List[Tuple[date, str, Decimal, Decimal]]) -> LedgerReport:
    # stable sort keeps charges ahead of payments on the same day
    entries.sort(key=lambda entry: entry[0])
    balance = ZERO
    rows: List[LedgerRow] = []
    for day, reference, charge, payment in entries:
        balance = balance + charge - payment
        rows.append(LedgerRow(date=day, reference=reference, charge=charge, payment=payment, balance=balance))
    return LedgerReport(party_id=party_id, rows=tuple(rows), final_balance=balance)


def _payment_reference(payment: GroceryPaymentRow) -> str:
    return f"PMT-{payment.reference_id[:8]}"


def supplier_ledger(
    supplier_id: str,
    purchases: Iterable[PurchaseRow],
    payments: Iterable[GroceryPaymentRow],
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> LedgerReport:
    """Purchases and payments to one supplier with a running balance owed.

    Args:
        supplier_id (str): Supplier whose account is listed.
        purchases (Iterable[PurchaseRow]): All purchases; other suppliers'
            records are ignored.
        payments (Iterable[GroceryPaymentRow]): All grocery payments; only
            payments against this supplier's purchases are listed.
        start (date | None): Optional first day of the window.
        end (date | None): Optional last day of the window.

    Returns:
        LedgerReport: Chronological entries and the closing balance.
    """

    if not supplier_id:
        raise ValidationError("supplier_id", "is required", supplier_id)
    own = [purchase for purchase in purchases if purchase.supplier_id == supplier_id]
    own_ids = {purchase.purchase_id for purchase in own}
    entries = [
        (_as_date(p.purchase_date), p.reference_no, to_decimal(p.total_purchase_cost), ZERO)
        for p in own
        if _in_window(p.purchase_date, start, end)
    ]
    entries.extend(
        (_as_date(pm.payment_date), _payment_reference(pm), ZERO, to_decimal(pm.amount))
        for pm in payments
        if pm.reference_type == PaymentReferenceType.PURCHASE.value
        and pm.reference_id in own_ids
        and _in_window(pm.payment_date, start, end)
    )
    return _ledger(supplier_id, entries)


def customer_ledger(
    customer_id: str,
    sales: Iterable[SaleRow],
    payments: Iterable[GroceryPaymentRow],
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> LedgerReport:
    """Sales and receipts for one customer with a running balance due."""

    if not customer_id:
        raise ValidationError("customer_id", "is required", customer_id)
    own = [sale for sale in sales if sale.customer_id == customer_id]
    own_ids = {sale.sale_id for sale in own}
    entries = [
        (_as_date(s.sale_date), s.reference_no, to_decimal(s.total_sale_amount), ZERO)
        for s in own
        if _in_window(s.sale_date, start, end)
    ]
    entries.extend(
        (_as_date(pm.payment_date), _payment_reference(pm), ZERO, to_decimal(pm.amount))
        for pm in payments
        if pm.reference_type == PaymentReferenceType.SALE.value
        and pm.reference_id in own_ids
        and _in_window(pm.payment_date, start, end)
    )
    return _ledger(customer_id, entries)


def rental_report(
    contracts: Iterable[RentalContractRow],
    direction: RentalDirection,
    names: Mapping[str, str],
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> RentalReport:
    """Outgoing (revenue) or incoming (cost) contracts in a window."""

    direction = RentalDirection(direction)
    rows = []
    for contract in contracts:
        if contract.rental_direction != direction.value:
            continue
        if not _in_window(contract.rental_start_datetime, start, end):
            continue
        party_id = contract.customer_id if direction == RentalDirection.OUTGOING else contract.external_owner_id
        rows.append(
            RentalReportRow(
                contract_id=contract.contract_id,
                reference=contract.display_reference,
                party=_name(names, party_id),
                vehicle=_name(names, contract.vehicle_id),
                start=_as_date(contract.rental_start_datetime),
                end=_as_date(contract.rental_end_datetime),
                total=to_decimal(contract.total_amount),
                paid=to_decimal(contract.amount_paid),
                remaining=to_decimal(contract.remaining_amount),
                status=contract.financial_status,
                operational_status=contract.operational_status,
            )
        )
    rows.sort(key=lambda row: row.start)
    return RentalReport(
        direction=direction.value,
        rows=tuple(rows),
        total_amount=sum((row.total for row in rows), ZERO),
        total_paid=sum((row.paid for row in rows), ZERO),
        total_outstanding=sum((row.remaining for row in rows), ZERO),
    )


def vehicle_utilization(
    vehicles: Sequence[VehicleRow],
    contracts: Iterable[RentalContractRow],
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> Tuple[UtilizationRow, ...]:
    """Rental days, outgoing revenue and availability per vehicle.

    Each contract counts at least one day, rounded up per started day. The
    period spans ``end - start`` days (at least one) when both bounds are
    given and 30 days otherwise. Availability is clamped at zero because
    overlapping or long contracts can exceed the period.
    """

    usage: Dict[str, List] = {}
    for contract in contracts:
        if not _in_window(contract.rental_start_datetime, start, end):
            continue
        days = max(1, billed_units(contract.rental_start_datetime, contract.rental_end_datetime, RentalType.DAY))
        entry = usage.setdefault(contract.vehicle_id, [0, ZERO, 0])
        entry[0] += days
        if contract.rental_direction == RentalDirection.OUTGOING.value:
            entry[1] += to_decimal(contract.total_amount)
        entry[2] += 1

    if start is not None and end is not None:
        period_days = max(1, (end - start).days)
    else:
        period_days = DEFAULT_PERIOD_DAYS

    rows = []
    for vehicle in vehicles:
        total_days, revenue, count = usage.get(vehicle.vehicle_id, [0, ZERO, 0])
        availability = round_half_up((1 - Decimal(total_days) / Decimal(period_days)) * 100)
        rows.append(
            UtilizationRow(
                vehicle_id=vehicle.vehicle_id,
                vehicle_name=vehicle.vehicle_name,
                vehicle_type=vehicle.vehicle_type,
                total_rental_days=total_days,
                total_revenue=revenue,
                rental_count=count,
                availability=max(0, int(availability)),
            )
        )
    return tuple(rows)


def rental_profit(
    contracts: Iterable[RentalContractRow],
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> RentalProfit:
    revenue = ZERO
    cost = ZERO
    outgoing = 0
    incoming = 0
    for contract in contracts:
        if not _in_window(contract.rental_start_datetime, start, end):
            continue
        if contract.rental_direction == RentalDirection.OUTGOING.value:
            revenue += to_decimal(contract.total_amount)
            outgoing += 1
        else:
            cost += to_decimal(contract.total_amount)
            incoming += 1
    return RentalProfit(
        total_revenue=revenue,
        total_cost=cost,
        net_profit=revenue - cost,
        outgoing_count=outgoing,
        incoming_count=incoming,
    )


def _optional_window(start: Optional[date], end: Optional[date]) -> Tuple[Optional[date], Optional[date]]:
    if start is not None and end is not None:
        return custom_window(start, end)
    return start, end


def purchases_report(
    purchases: Iterable[PurchaseRow],
    names: Mapping[str, str],
    start: Optional[date] = None,
    end: Optional[date] = None,
    supplier_id: Optional[str] = None,
) -> PurchaseReport:
    """Purchases in an optional window, optionally for one supplier, oldest first.

    Args:
        purchases (Iterable[PurchaseRow]): All purchases.
        names (Mapping[str, str]): Display name per referenced record id.
        start (date | None): Optional first day of the window.
        end (date | None): Optional last day of the window.
        supplier_id (str | None): Restrict the report to this supplier.

    Returns:
        PurchaseReport: Matching rows with purchased, paid and outstanding
            totals.
    """

    start, end = _optional_window(start, end)
    selected = [
        purchase
        for purchase in purchases
        if _in_window(purchase.purchase_date, start, end)
        and (supplier_id is None or purchase.supplier_id == supplier_id)
    ]
    selected.sort(key=lambda purchase: _as_date(purchase.purchase_date))
    rows = tuple(
        PurchaseReportRow(
            date=_as_date(purchase.purchase_date),
            reference=purchase.reference_no,
            supplier=_name(names, purchase.supplier_id),
            item=_name(names, purchase.item_id),
            quantity=to_decimal(purchase.total_quantity),
            unit=purchase.unit,
            unit_price=to_decimal(purchase.unit_price),
            total=to_decimal(purchase.total_purchase_cost),
            paid=to_decimal(purchase.amount_paid),
            remaining=to_decimal(purchase.remaining_amount),
            status=purchase.financial_status,
        )
        for purchase in selected
    )
    return PurchaseReport(
        rows=rows,
        total_purchased=sum((row.total for row in rows), ZERO),
        total_paid=sum((row.paid for row in rows), ZERO),
        total_outstanding=sum((row.remaining for row in rows), ZERO),
    )


def sales_report(
    sales: Iterable[SaleRow],
    names: Mapping[str, str],
    start: Optional[date] = None,
    end: Optional[date] = None,
    customer_id: Optional[str] = None,
) -> SaleReport:
    """Sales in an optional window, optionally for one customer, oldest first."""

    start, end = _optional_window(start, end)
    selected = [
        sale
        for sale in sales
        if _in_window(sale.sale_date, start, end) and (customer_id is None or sale.customer_id == customer_id)
    ]
    selected.sort(key=lambda sale: _as_date(sale.sale_date))
    rows = tuple(
        SaleReportRow(
            date=_as_date(sale.sale_date),
            reference=sale.reference_no,
            customer=_name(names, sale.customer_id),
            item=_name(names, sale.item_id),
            quantity=to_decimal(sale.total_quantity),
            unit=sale.unit,
            unit_price=to_decimal(sale.unit_price),
            total=to_decimal(sale.total_sale_amount),
            received=to_decimal(sale.amount_received),
            remaining=to_decimal(sale.remaining_amount),
            status=sale.financial_status,
        )
        for sale in selected
    )
    return SaleReport(
        rows=rows,
        total_sales=sum((row.total for row in rows), ZERO),
        total_received=sum((row.received for row in rows), ZERO),
        total_outstanding=sum((row.remaining for row in rows), ZERO),
    )


# Newest entries kept per source before the feed is merged.
_FEED_LIMITS = {
    NotificationType.PURCHASE: 20,
    NotificationType.SALE: 20,
    NotificationType.PAYMENT: 10,
    NotificationType.RENTAL_PAYMENT: 10,
    NotificationType.RENTAL: 10,
    NotificationType.VEHICLE_ALERT: 10,
}


def _aware(moment: datetime) -> datetime:
    # naive timestamps are stored UTC
    return moment if moment.tzinfo is not None else moment.replace(tzinfo=UTC)


def _created(value) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return _aware(value)
    return _aware(datetime.fromisoformat(str(value)))


def _recent(records: Iterable, since: datetime, kind: NotificationType) -> List[Tuple[datetime, object]]:
    stamped = [(_created(record.created_at), record) for record in records]
    recent = [(moment, record) for moment, record in stamped if moment is not None and moment >= since]
    recent.sort(key=lambda entry: entry[0], reverse=True)
    return recent[: _FEED_LIMITS[kind]]


def notifications(
    purchases: Sequence[PurchaseRow],
    sales: Sequence[SaleRow],
    grocery_payments: Iterable[GroceryPaymentRow],
    rental_payments: Iterable[RentalPaymentRow],
    contracts: Iterable[RentalContractRow],
    vehicles: Iterable[VehicleRow],
    names: Mapping[str, str],
    now: datetime,
    *,
    currency: str = DEFAULT_CURRENCY,
    limit: int = NOTIFICATION_LIMIT,
) -> Tuple[Notification, ...]:
    """Activity feed of the last week plus standing alerts, newest first.

    Purchases, sales, payments and rental contracts count when their
    ``created_at`` falls on or after midnight UTC seven days before ``now``;
    each source contributes only its newest entries. Vehicles in MAINTENANCE
    and every purchase with an unpaid balance are added as alerts stamped
    ``now``, so they lead the feed. The merged feed is cut to ``limit``.
    """

    now = _aware(now)
    since = datetime.combine((now - timedelta(days=NOTIFICATION_WINDOW_DAYS)).date(), datetime.min.time(), tzinfo=UTC)

    def money(amount) -> str:
        return format_currency(amount, currency)

    feed: List[Notification] = []
    for moment, purchase in _recent(purchases, since, NotificationType.PURCHASE):
        feed.append(
            Notification(
                id=f"pur-{purchase.purchase_id}",
                type=NotificationType.PURCHASE.value,
                title=f"Purchase: {purchase.reference_no}",
                description=(
                    f"{_name(names, purchase.item_id)} from {_name(names, purchase.supplier_id)}"
                    f" - {money(purchase.total_purchase_cost)}"
                ),
                timestamp=moment,
                status=purchase.financial_status,
            )
        )
    for moment, sale in _recent(sales, since, NotificationType.SALE):
        feed.append(
            Notification(
                id=f"sal-{sale.sale_id}",
                type=NotificationType.SALE.value,
                title=f"Sale: {sale.reference_no}",
                description=f"{_name(names, sale.item_id)} to {_name(names, sale.customer_id)} - {money(sale.total_sale_amount)}",
                timestamp=moment,
                status=sale.financial_status,
            )
        )
    for moment, payment in _recent(grocery_payments, since, NotificationType.PAYMENT):
        feed.append(
            Notification(
                id=f"gpay-{payment.payment_id}",
                type=NotificationType.PAYMENT.value,
                title=f"Payment: {payment.reference_type}",
                description=f"{money(payment.amount)} via {payment.mode}",
                timestamp=moment,
                status="COMPLETED",
            )
        )
    for moment, payment in _recent(rental_payments, since, NotificationType.RENTAL_PAYMENT):
        feed.append(
            Notification(
                id=f"rpay-{payment.payment_id}",
                type=NotificationType.RENTAL_PAYMENT.value,
                title="Rental Payment",
                description=f"{money(payment.amount)} via {payment.mode}",
                timestamp=moment,
                status="COMPLETED",
            )
        )
    for moment, contract in _recent(contracts, since, NotificationType.RENTAL):
        party_id = contract.customer_id if contract.rental_direction == RentalDirection.OUTGOING.value else contract.external_owner_id
        feed.append(
            Notification(
                id=f"rnt-{contract.contract_id}",
                type=NotificationType.RENTAL.value,
                title=f"Rental {contract.rental_direction}: {_name(names, contract.vehicle_id)}",
                description=f"{_name(names, party_id)} - {money(contract.total_amount)} ({contract.operational_status})",
                timestamp=moment,
                status=contract.financial_status,
            )
        )

    alerts: List[Notification] = []
    in_maintenance = [v for v in vehicles if v.current_status == VehicleStatus.MAINTENANCE.value]
    for vehicle in in_maintenance[: _FEED_LIMITS[NotificationType.VEHICLE_ALERT]]:
        alerts.append(
            Notification(
                id=f"veh-{vehicle.vehicle_id}",
                type=NotificationType.VEHICLE_ALERT.value,
                title=f"Vehicle: {vehicle.vehicle_name}",
                description=f"Status: {vehicle.current_status} at {vehicle.current_location or 'unknown'}",
                timestamp=now,
                status="WARNING",
            )
        )
    for purchase in purchases:
        if to_decimal(purchase.remaining_amount) <= ZERO:
            continue
        alerts.append(
            Notification(
                id=f"due-{purchase.reference_no}",
                type=NotificationType.OUTSTANDING.value,
                title=f"Outstanding: {purchase.reference_no}",
                description=f"{money(purchase.remaining_amount)} to {_name(names, purchase.supplier_id)}",
                timestamp=now,
                status=PurchaseStatus.PENDING.value,
            )
        )

    merged = alerts + feed
    # stable, so alerts stay ahead of records created at ``now``
    merged.sort(key=lambda entry: entry.timestamp, reverse=True)
    log.debug("Built %d notifications since %s", len(merged), since.isoformat())
    return tuple(merged[: max(0, limit)])


__all__ = [
    "RowType",
    "NotificationType",
    "ReportRow",
    "ReportSummary",
    "TransactionReport",
    "ProfitRow",
    "ProfitReport",
    "OutstandingRow",
    "OutstandingReport",
    "LedgerRow",
    "LedgerReport",
    "RentalReportRow",
    "RentalReport",
    "UtilizationRow",
    "RentalProfit",
    "PurchaseReportRow",
    "PurchaseReport",
    "SaleReportRow",
    "SaleReport",
    "Notification",
    "daily_window",
    "monthly_window",
    "custom_window",
    "build_unified_rows",
    "compute_summary",
    "transaction_report",
    "profit_by_date",
    "outstanding_payables",
    "outstanding_receivables",
    "overdue_balances",
    "supplier_ledger",
    "customer_ledger",
    "rental_report",
    "vehicle_utilization",
    "rental_profit",
    "purchases_report",
    "sales_report",
    "notifications",
]
