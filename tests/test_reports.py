"""Unit tests for the read-only report builders."""

from __future__ import annotations

from dataclasses import replace
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal

import pytest

from umugwaneza_erp import reports
from umugwaneza_erp.constants import DELAYED, RentalDirection
from umugwaneza_erp.errors import ValidationError
from umugwaneza_erp.models import GroceryPaymentRow, PurchaseRow, RentalContractRow, RentalPaymentRow, SaleRow, VehicleRow


NAMES = {
    "S1": "Kigali Grain Traders",
    "S2": "COPRIMU Cooperative",
    "C1": "Simba Supermarket",
    "O1": "Marie UWIMANA",
    "I1": "Rice",
    "V1": "RAA 100A",
    "V2": "RAB 200B",
}

BASE_PURCHASE = PurchaseRow(
    purchase_id="P1",
    reference_no="PUR-A1",
    supplier_id="S1",
    item_id="I1",
    purchase_date=date(2024, 1, 10),
    total_quantity=Decimal("500"),
    unit="KG",
    unit_price=Decimal("1200"),
    total_purchase_cost=Decimal("600000"),
    package_size=None,
    package_count=None,
    amount_paid=Decimal("400000"),
    remaining_amount=Decimal("200000"),
    financial_status="PARTIAL",
    amount_due_date=None,
    created_at="2024-01-10T09:00:00+00:00",
)

BASE_SALE = SaleRow(
    sale_id="SA1",
    reference_no="SAL-B1",
    customer_id="C1",
    item_id="I1",
    sale_date=date(2024, 1, 12),
    total_quantity=Decimal("200"),
    unit="KG",
    unit_price=Decimal("1500"),
    total_sale_amount=Decimal("300000"),
    package_size=None,
    package_count=None,
    amount_received=Decimal("0"),
    remaining_amount=Decimal("300000"),
    financial_status="PENDING",
    amount_due_date=None,
    created_at="2024-01-12T09:00:00+00:00",
)

OUTGOING = RentalContractRow(
    contract_id="0a1b2c3d-aaaa-bbbb-cccc-000000000001",
    vehicle_id="V1",
    rental_direction="OUTGOING",
    rental_type="DAY",
    customer_id="C1",
    external_owner_id=None,
    rental_start_datetime=datetime(2024, 1, 1, 8),
    rental_end_datetime=datetime(2024, 1, 6, 8),
    rate=Decimal("150000"),
    total_amount=Decimal("750000"),
    amount_paid=Decimal("300000"),
    remaining_amount=Decimal("450000"),
    financial_status="PARTIAL",
    operational_status="ACTIVE",
    location="Kigali",
    notes=None,
    created_at="2024-01-01T08:00:00+00:00",
)

INCOMING = replace(
    OUTGOING,
    contract_id="9f8e7d6c-aaaa-bbbb-cccc-000000000002",
    vehicle_id="V2",
    rental_direction="INCOMING",
    customer_id=None,
    external_owner_id="O1",
    rental_start_datetime=datetime(2024, 1, 3, 8),
    rental_end_datetime=datetime(2024, 1, 8, 8),
    rate=Decimal("200000"),
    total_amount=Decimal("1000000"),
    amount_paid=Decimal("250000"),
    remaining_amount=Decimal("750000"),
)


def _payment(pid: str, reference_type: str, reference_id: str, amount: str, day: date) -> GroceryPaymentRow:
    return GroceryPaymentRow(pid, reference_type, reference_id, Decimal(amount), day, "CASH", None, day.isoformat())


# ---------------------------------------------------------------------------
# Windows
# ---------------------------------------------------------------------------


def test_monthly_window_handles_leap_february():
    assert reports.monthly_window(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))


def test_monthly_window_rejects_bad_month():
    with pytest.raises(ValidationError):
        reports.monthly_window(2024, 13)


def test_custom_window_rejects_reversed_range():
    with pytest.raises(ValidationError) as excinfo:
        reports.custom_window(date(2024, 2, 1), date(2024, 1, 1))

    assert excinfo.value.field == "end"


def test_daily_window_is_single_day():
    assert reports.daily_window(date(2024, 1, 5)) == (date(2024, 1, 5), date(2024, 1, 5))


# ---------------------------------------------------------------------------
# Unified transaction report
# ---------------------------------------------------------------------------


def test_transaction_report_rows_and_summary():
    report = reports.transaction_report(
        [BASE_PURCHASE], [BASE_SALE], [OUTGOING, INCOMING], NAMES, date(2024, 1, 1), date(2024, 1, 31)
    )

    assert [row.type for row in report.rows] == ["Purchase", "Sale", "Rental Out", "Rental In"]
    purchase_row = report.rows[0]
    assert (purchase_row.party, purchase_row.item_vehicle) == ("Kigali Grain Traders", "Rice")
    rental_row = report.rows[2]
    assert rental_row.reference == "RNT-0a1b2c3d"
    assert rental_row.quantity is None and rental_row.unit is None

    summary = report.summary
    assert summary.total_purchase == Decimal("600000")
    assert summary.total_sales == Decimal("300000")
    assert summary.total_rental_revenue == Decimal("750000")
    assert summary.total_rental_cost == Decimal("1000000")
    assert summary.total_paid == Decimal("950000")
    assert summary.total_received == Decimal("0")
    assert summary.total_outstanding_payables == Decimal("950000")
    assert summary.total_outstanding_receivables == Decimal("750000")
    assert summary.net_profit == Decimal("300000") - Decimal("600000") + Decimal("750000") - Decimal("1000000")


def test_transaction_report_window_is_inclusive():
    report = reports.transaction_report(
        [BASE_PURCHASE], [BASE_SALE], [OUTGOING, INCOMING], NAMES, date(2024, 1, 3), date(2024, 1, 10)
    )

    assert [row.type for row in report.rows] == ["Purchase", "Rental In"]


def test_transaction_report_unknown_names_render_dash():
    report = reports.transaction_report(
        [BASE_PURCHASE], [], [], {}, date(2024, 1, 1), date(2024, 1, 31)
    )

    assert report.rows[0].party == reports.MISSING_NAME


def test_transaction_report_empty_window_has_zero_summary():
    report = reports.transaction_report([], [], [], NAMES, date(2024, 1, 1), date(2024, 1, 1))

    assert report.rows == ()
    assert report.summary.net_profit == Decimal("0")


# ---------------------------------------------------------------------------
# Profit and outstanding balances
# ---------------------------------------------------------------------------


def test_profit_by_date_groups_activity_days():
    second_purchase = replace(BASE_PURCHASE, purchase_id="P2", total_purchase_cost=Decimal("100000"))

    report = reports.profit_by_date([BASE_PURCHASE, second_purchase], [BASE_SALE])

    assert [row.date for row in report.rows] == [date(2024, 1, 10), date(2024, 1, 12)]
    assert report.rows[0].total_purchases == Decimal("700000")
    assert report.rows[1].profit == Decimal("300000")
    assert report.net_profit == Decimal("-400000")


def test_outstanding_payables_filters_settled_and_supplier():
    settled = replace(BASE_PURCHASE, purchase_id="P2", remaining_amount=Decimal("0"), financial_status="FULLY_SETTLED")
    other = replace(BASE_PURCHASE, purchase_id="P3", supplier_id="S2", purchase_date=date(2024, 1, 2))

    everyone = reports.outstanding_payables([BASE_PURCHASE, settled, other], NAMES, today=date(2024, 1, 15))
    one_supplier = reports.outstanding_payables([BASE_PURCHASE, settled, other], NAMES, supplier_id="S1", today=date(2024, 1, 15))

    assert [row.record_id for row in everyone.rows] == ["P3", "P1"]
    assert everyone.total_outstanding == Decimal("400000")
    assert [row.record_id for row in one_supplier.rows] == ["P1"]


def test_outstanding_receivables_shows_delayed_overlay():
    overdue = replace(BASE_SALE, amount_due_date=date(2024, 1, 20))

    report = reports.outstanding_receivables([overdue], NAMES, today=date(2024, 2, 1))

    assert report.rows[0].status == DELAYED
    assert report.rows[0].due_date == date(2024, 1, 20)
    assert overdue.financial_status == "PENDING"


def test_overdue_balances_only_lists_past_due():
    overdue_purchase = replace(BASE_PURCHASE, amount_due_date=date(2024, 1, 11))
    future_sale = replace(BASE_SALE, amount_due_date=date(2024, 3, 1))
    overdue_sale = replace(BASE_SALE, sale_id="SA2", amount_due_date=date(2024, 1, 13))

    report = reports.overdue_balances([overdue_purchase], [future_sale, overdue_sale], NAMES, date(2024, 2, 1))

    assert [row.record_id for row in report.rows] == ["P1", "SA2"]
    assert all(row.status == DELAYED for row in report.rows)
    assert report.total_outstanding == Decimal("500000")


# ---------------------------------------------------------------------------
# Ledgers
# ---------------------------------------------------------------------------


def test_supplier_ledger_running_balance():
    other_supplier = replace(BASE_PURCHASE, purchase_id="P9", supplier_id="S2")
    payments = [
        _payment("PM1", "PURCHASE", "P1", "100000", date(2024, 1, 11)),
        _payment("PM2", "PURCHASE", "P9", "50000", date(2024, 1, 11)),
        _payment("PM3", "SALE", "P1", "1", date(2024, 1, 11)),
    ]

    ledger = reports.supplier_ledger("S1", [BASE_PURCHASE, other_supplier], payments)

    assert [(row.charge, row.payment) for row in ledger.rows] == [
        (Decimal("600000"), Decimal("0")),
        (Decimal("0"), Decimal("100000")),
    ]
    assert ledger.rows[-1].balance == Decimal("500000")
    assert ledger.final_balance == Decimal("500000")


def test_customer_ledger_same_day_charge_precedes_receipt():
    payments = [_payment("PM1", "SALE", "SA1", "50000", date(2024, 1, 12))]

    ledger = reports.customer_ledger("C1", [BASE_SALE], payments)

    assert ledger.rows[0].reference == "SAL-B1"
    assert ledger.rows[0].balance == Decimal("300000")
    assert ledger.final_balance == Decimal("250000")


def test_ledger_requires_party_id():
    with pytest.raises(ValidationError):
        reports.customer_ledger("", [BASE_SALE], [])


# ---------------------------------------------------------------------------
# Rental reports
# ---------------------------------------------------------------------------


def test_rental_report_by_direction():
    outgoing = reports.rental_report([OUTGOING, INCOMING], RentalDirection.OUTGOING, NAMES)
    incoming = reports.rental_report([OUTGOING, INCOMING], "INCOMING", NAMES)

    assert [row.party for row in outgoing.rows] == ["Simba Supermarket"]
    assert outgoing.total_outstanding == Decimal("450000")
    assert [row.party for row in incoming.rows] == ["Marie UWIMANA"]
    assert incoming.total_amount == Decimal("1000000")
    assert incoming.total_paid == Decimal("250000")


def test_vehicle_utilization_counts_days_and_outgoing_revenue():
    vehicles = [
        VehicleRow("V1", "RAA 100A", "TRUCK", "DAY", "OWN", Decimal("150000"), "RENTED_OUT", None, None),
        VehicleRow("V2", "RAB 200B", "TRUCK", "DAY", "OWN", Decimal("150000"), "RENTED_IN", None, None),
        VehicleRow("V3", "RAC 300C", "MACHINE", "HOUR", "OWN", Decimal("20000"), "AVAILABLE", None, None),
    ]

    rows = reports.vehicle_utilization(vehicles, [OUTGOING, INCOMING], date(2024, 1, 1), date(2024, 1, 11))

    by_id = {row.vehicle_id: row for row in rows}
    assert by_id["V1"].total_rental_days == 5
    assert by_id["V1"].total_revenue == Decimal("750000")
    assert by_id["V1"].availability == 50
    # incoming contracts cost money, they do not earn it
    assert by_id["V2"].total_revenue == Decimal("0")
    assert by_id["V2"].rental_count == 1
    assert by_id["V3"].availability == 100


def test_vehicle_utilization_availability_never_negative():
    vehicles = [VehicleRow("V1", "RAA 100A", "TRUCK", "DAY", "OWN", Decimal("150000"), "AVAILABLE", None, None)]

    rows = reports.vehicle_utilization(vehicles, [OUTGOING], date(2024, 1, 1), date(2024, 1, 2))

    assert rows[0].availability == 0


def test_rental_profit_nets_revenue_against_cost():
    result = reports.rental_profit([OUTGOING, INCOMING])

    assert result.total_revenue == Decimal("750000")
    assert result.total_cost == Decimal("1000000")
    assert result.net_profit == Decimal("-250000")
    assert (result.outgoing_count, result.incoming_count) == (1, 1)


# ---------------------------------------------------------------------------
# Purchase and sale reports
# ---------------------------------------------------------------------------


def test_purchases_report_window_totals_and_order():
    settled = replace(
        BASE_PURCHASE,
        purchase_id="P2",
        reference_no="PUR-A2",
        supplier_id="S2",
        purchase_date=date(2024, 1, 5),
        total_purchase_cost=Decimal("100000"),
        amount_paid=Decimal("100000"),
        remaining_amount=Decimal("0"),
        financial_status="FULLY_SETTLED",
    )
    february = replace(BASE_PURCHASE, purchase_id="P3", reference_no="PUR-A3", purchase_date=date(2024, 2, 1))

    report = reports.purchases_report([BASE_PURCHASE, settled, february], NAMES, date(2024, 1, 1), date(2024, 1, 31))

    assert [row.reference for row in report.rows] == ["PUR-A2", "PUR-A1"]
    assert report.rows[0].supplier == "COPRIMU Cooperative"
    assert report.total_purchased == Decimal("700000")
    assert report.total_paid == Decimal("500000")
    assert report.total_outstanding == Decimal("200000")


def test_purchases_report_filters_by_supplier_without_window():
    other = replace(BASE_PURCHASE, purchase_id="P2", reference_no="PUR-A2", supplier_id="S2")
    later = replace(BASE_PURCHASE, purchase_id="P3", reference_no="PUR-A3", purchase_date=date(2024, 2, 1))

    report = reports.purchases_report([later, other, BASE_PURCHASE], NAMES, supplier_id="S1")

    assert [row.reference for row in report.rows] == ["PUR-A1", "PUR-A3"]
    assert {row.supplier for row in report.rows} == {"Kigali Grain Traders"}
    assert report.total_purchased == Decimal("1200000")
    assert report.total_outstanding == Decimal("400000")


def test_purchases_report_rejects_reversed_window():
    with pytest.raises(ValidationError):
        reports.purchases_report([BASE_PURCHASE], NAMES, date(2024, 2, 1), date(2024, 1, 1))


def test_sales_report_filters_by_customer_and_start():
    received = replace(
        BASE_SALE,
        sale_id="SA2",
        reference_no="SAL-B2",
        customer_id="C2",
        sale_date=date(2024, 1, 11),
        amount_received=Decimal("300000"),
        remaining_amount=Decimal("0"),
        financial_status="FULLY_RECEIVED",
    )

    only_simba = reports.sales_report([BASE_SALE, received], NAMES, customer_id="C1")
    assert [row.customer for row in only_simba.rows] == ["Simba Supermarket"]
    assert only_simba.total_sales == Decimal("300000")
    assert only_simba.total_received == Decimal("0")
    assert only_simba.total_outstanding == Decimal("300000")

    since = reports.sales_report([BASE_SALE, received], NAMES, start=date(2024, 1, 11))
    assert [row.reference for row in since.rows] == ["SAL-B2", "SAL-B1"]
    assert since.rows[0].customer == "-"
    assert since.total_sales == Decimal("600000")
    assert since.total_received == Decimal("300000")


def test_sales_report_empty_input_has_zero_totals():
    report = reports.sales_report([], NAMES)

    assert report.rows == ()
    assert report.total_sales == report.total_received == report.total_outstanding == Decimal("0")


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


NOW = datetime(2024, 1, 12, 12, tzinfo=UTC)


def test_notifications_cover_the_last_seven_days():
    settled = replace(
        BASE_PURCHASE,
        purchase_id="P0",
        reference_no="PUR-OLD",
        amount_paid=Decimal("600000"),
        remaining_amount=Decimal("0"),
        financial_status="FULLY_SETTLED",
        created_at="2024-01-04T23:59:59+00:00",
    )
    first_day = replace(settled, purchase_id="P2", reference_no="PUR-EDGE", created_at="2024-01-05T00:00:00+00:00")

    feed = reports.notifications([settled, first_day, BASE_PURCHASE], [BASE_SALE], [], [], [OUTGOING], [], NAMES, NOW)

    assert [entry.id for entry in feed] == ["due-PUR-A1", "sal-SA1", "pur-P1", "pur-P2"]
    by_id = {entry.id: entry for entry in feed}
    assert by_id["pur-P1"].description == "Rice from Kigali Grain Traders - 600,000 RWF"
    assert by_id["pur-P1"].status == "PARTIAL"
    assert by_id["due-PUR-A1"].description == "200,000 RWF to Kigali Grain Traders"
    assert by_id["due-PUR-A1"].timestamp == NOW


def test_notifications_newest_first_with_alerts_leading():
    payment = _payment("G1", "PURCHASE", "P1", "100000", date(2024, 1, 11))
    rental_payment = RentalPaymentRow(
        "R1", OUTGOING.contract_id, Decimal("300000"), date(2024, 1, 11), "MOBILE_MONEY", None, "2024-01-11T15:00:00+00:00"
    )
    contract = replace(INCOMING, created_at="2024-01-11T10:00:00+00:00")
    vehicles = [
        VehicleRow("V1", "RAA 100A", "TRUCK", "DAY", "OWN", Decimal("150000"), "MAINTENANCE", "Kigali Depot", None),
        VehicleRow("V2", "RAB 200B", "TRUCK", "DAY", "OWN", Decimal("150000"), "AVAILABLE", None, None),
    ]

    feed = reports.notifications([], [], [payment], [rental_payment], [contract], vehicles, NAMES, NOW)

    assert [entry.type for entry in feed] == ["vehicle_alert", "rental_payment", "rental", "payment"]
    alert, paid, rental, grocery = feed
    assert alert.description == "Status: MAINTENANCE at Kigali Depot"
    assert alert.status == "WARNING"
    assert paid.description == "300,000 RWF via MOBILE_MONEY"
    assert rental.title == "Rental INCOMING: RAB 200B"
    assert rental.description == "Marie UWIMANA - 1,000,000 RWF (ACTIVE)"
    assert grocery.title == "Payment: PURCHASE"
    assert grocery.timestamp == datetime(2024, 1, 11, tzinfo=UTC)


def test_notifications_are_capped_at_fifty():
    purchases = [
        replace(
            BASE_PURCHASE,
            purchase_id=f"P{index:02d}",
            reference_no=f"PUR-{index:02d}",
            created_at=(NOW - timedelta(minutes=index)).isoformat(),
        )
        for index in range(30)
    ]
    sales = [
        replace(BASE_SALE, sale_id=f"S{index:02d}", created_at=(NOW - timedelta(hours=1, minutes=index)).isoformat())
        for index in range(30)
    ]

    feed = reports.notifications(purchases, sales, [], [], [], [], NAMES, NOW)

    assert len(feed) == reports.NOTIFICATION_LIMIT == 50
    assert [entry.type for entry in feed[:30]] == ["outstanding"] * 30
    stamps = [entry.timestamp for entry in feed]
    assert stamps == sorted(stamps, reverse=True)

    everything = reports.notifications(purchases, sales, [], [], [], [], NAMES, NOW, limit=100)
    assert [e.id for e in everything if e.type == "purchase"] == [f"pur-P{index:02d}" for index in range(20)]
    assert sum(entry.type == "sale" for entry in everything) == 20


def test_notifications_empty_input():
    assert reports.notifications([], [], [], [], [], [], {}, NOW) == ()
