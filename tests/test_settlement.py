"""Unit tests for the settlement calculator."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from umugwaneza_erp import settlement
from umugwaneza_erp.constants import PurchaseStatus, RentalType, SaleStatus, SettlementKind
from umugwaneza_erp.errors import IntegrityError, ValidationError


START = datetime(2024, 1, 1, 8, 0)


# ---------------------------------------------------------------------------
# Status and remaining balance
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("paid", "remaining", "status"),
    [
        (Decimal("0"), Decimal("600000"), PurchaseStatus.PENDING.value),
        (Decimal("1"), Decimal("599999"), PurchaseStatus.PARTIAL.value),
        (Decimal("400000"), Decimal("200000"), PurchaseStatus.PARTIAL.value),
        (Decimal("600000"), Decimal("0"), PurchaseStatus.FULLY_SETTLED.value),
    ],
)
def test_compute_settlement_purchase_states(paid, remaining, status):
    result = settlement.compute_settlement(Decimal("600000"), paid, SettlementKind.PURCHASE)

    assert result.total == Decimal("600000")
    assert result.paid == paid
    assert result.remaining == remaining
    assert result.status == status


def test_compute_settlement_sale_uses_fully_received():
    result = settlement.compute_settlement(Decimal("300000"), Decimal("300000"), SettlementKind.SALE)

    assert result.status == SaleStatus.FULLY_RECEIVED.value
    assert result.remaining == Decimal("0")


def test_compute_settlement_rental_uses_fully_settled():
    result = settlement.compute_settlement(Decimal("750000"), Decimal("750000"), SettlementKind.RENTAL)

    assert result.status == PurchaseStatus.FULLY_SETTLED.value


def test_compute_settlement_clamps_overpayment_to_zero_remaining():
    """An overpaid record never shows a negative balance."""

    result = settlement.compute_settlement(Decimal("100"), Decimal("150"), SettlementKind.PURCHASE)

    assert result.remaining == Decimal("0")
    assert result.status == PurchaseStatus.FULLY_SETTLED.value


def test_settle_purchase_matches_worked_example():
    result = settlement.settle_purchase(Decimal("500"), Decimal("1200"), Decimal("400000"))

    assert result.total == Decimal("600000")
    assert result.remaining == Decimal("200000")
    assert result.status == PurchaseStatus.PARTIAL.value


def test_settle_sale_defaults_to_unpaid():
    result = settlement.settle_sale(Decimal("30"), Decimal("4500"))

    assert result.total == Decimal("135000")
    assert result.paid == Decimal("0")
    assert result.status == SaleStatus.PENDING.value


@pytest.mark.parametrize("quantity", [Decimal("0"), Decimal("-5"), None])
def test_settle_purchase_rejects_non_positive_quantity(quantity):
    with pytest.raises(ValidationError) as excinfo:
        settlement.settle_purchase(quantity, Decimal("1200"))

    assert excinfo.value.field == "total_quantity"


@pytest.mark.parametrize("price", [Decimal("0"), Decimal("-1")])
def test_settle_sale_rejects_non_positive_price(price):
    with pytest.raises(ValidationError) as excinfo:
        settlement.settle_sale(Decimal("10"), price)

    assert excinfo.value.field == "unit_price"


def test_settle_purchase_rejects_negative_payment():
    with pytest.raises(ValidationError) as excinfo:
        settlement.settle_purchase(Decimal("10"), Decimal("100"), Decimal("-1"))

    assert excinfo.value.field == "amount_paid"


def test_validation_error_is_a_value_error():
    with pytest.raises(ValueError):
        settlement.require_positive_money(Decimal("0"), "amount")


# ---------------------------------------------------------------------------
# Rental billing
# ---------------------------------------------------------------------------


def test_billed_units_rounds_partial_hours_up():
    assert settlement.billed_units(START, START + timedelta(minutes=61), RentalType.HOUR) == 2


def test_billed_units_rounds_partial_days_up():
    assert settlement.billed_units(START, START + timedelta(hours=25), RentalType.DAY) == 2


def test_billed_units_exact_multiple_does_not_round_further():
    assert settlement.billed_units(START, START + timedelta(days=5), RentalType.DAY) == 5


def test_billed_units_month_rate_bills_per_day():
    assert settlement.billed_units(START, START + timedelta(days=3, hours=1), RentalType.MONTH) == 4


def test_billed_units_zero_for_empty_period():
    assert settlement.billed_units(START, START, RentalType.DAY) == 0


def test_billed_units_rejects_mixed_timezone_awareness():
    with pytest.raises(ValidationError):
        settlement.billed_units(START, datetime(2024, 1, 2, tzinfo=UTC), RentalType.DAY)


def test_settle_rental_five_day_contract():
    result = settlement.settle_rental(
        datetime.fromisoformat("2024-01-01T08:00"),
        datetime.fromisoformat("2024-01-06T08:00"),
        Decimal("150000"),
        RentalType.DAY,
    )

    assert result.total == Decimal("750000")
    assert result.remaining == Decimal("750000")
    assert result.status == PurchaseStatus.PENDING.value


@pytest.mark.parametrize("end", [START, START - timedelta(hours=1)])
def test_settle_rental_rejects_empty_or_reversed_period(end):
    with pytest.raises(ValidationError) as excinfo:
        settlement.settle_rental(START, end, Decimal("150000"), RentalType.DAY)

    assert excinfo.value.field == "rental_end_datetime"


def test_settle_rental_rejects_zero_rate():
    with pytest.raises(ValidationError) as excinfo:
        settlement.settle_rental(START, START + timedelta(days=1), Decimal("0"), RentalType.DAY)

    assert excinfo.value.field == "rate"


def test_settle_rental_requires_both_datetimes():
    with pytest.raises(ValidationError):
        settlement.settle_rental(None, START, Decimal("1"), RentalType.DAY)
    with pytest.raises(ValidationError):
        settlement.settle_rental(START, None, Decimal("1"), RentalType.DAY)


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------


def test_apply_payment_settles_remaining_balance():
    result = settlement.apply_payment(Decimal("600000"), Decimal("400000"), Decimal("200000"), SettlementKind.PURCHASE)

    assert result.paid == Decimal("600000")
    assert result.remaining == Decimal("0")
    assert result.status == PurchaseStatus.FULLY_SETTLED.value


def test_apply_payment_partial_sale():
    result = settlement.apply_payment(Decimal("300000"), Decimal("0"), Decimal("50000"), SettlementKind.SALE)

    assert result.remaining == Decimal("250000")
    assert result.status == SaleStatus.PARTIAL.value


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-10")])
def test_apply_payment_rejects_non_positive_amount(amount):
    with pytest.raises(IntegrityError):
        settlement.apply_payment(Decimal("100"), Decimal("0"), amount, SettlementKind.PURCHASE)


def test_apply_payment_rejects_overpayment():
    with pytest.raises(IntegrityError) as excinfo:
        settlement.apply_payment(Decimal("100"), Decimal("60"), Decimal("41"), SettlementKind.RENTAL)

    assert excinfo.value.field == "amount"
