"""Settlement calculator for purchases, sales and rental contracts.

Every write path that creates a priced record or applies a payment goes
through this module so ``remaining_amount`` and ``financial_status`` are always
derived from the same formula:

* ``remaining = max(0, total - paid)``
* ``status`` is the fully settled/received variant when ``paid >= total``,
  ``PARTIAL`` when ``paid > 0`` and ``PENDING`` otherwise.

Rental totals bill elapsed time in whole units, rounding partial hours or days
up.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Union

from . import log
from .constants import PurchaseStatus, RentalType, SaleStatus, SettlementKind
from .errors import IntegrityError, ValidationError
from .money import ZERO, multiply_quantity_price, to_decimal


HOUR = timedelta(hours=1)
DAY = timedelta(days=1)

_FULLY_PAID_STATUS = {
    SettlementKind.PURCHASE: PurchaseStatus.FULLY_SETTLED.value,
    SettlementKind.SALE: SaleStatus.FULLY_RECEIVED.value,
    SettlementKind.RENTAL: PurchaseStatus.FULLY_SETTLED.value,
}


@dataclass(frozen=True)
class SettlementResult:
    """Derived settlement fields for one purchase, sale or contract."""

    total: Decimal
    paid: Decimal
    remaining: Decimal
    status: str


def require_positive_quantity(quantity: Any, field: str = "total_quantity") -> Decimal:
    """Validate that a quantity is strictly positive and return it as ``Decimal``.

    Raises:
        ValidationError: If ``quantity`` is missing, zero or negative.
    """

    if quantity is None:
        log.error("Quantity validation failed: %s is missing", field)
        raise ValidationError(field, "is required", quantity)
    value = to_decimal(quantity)
    if value <= ZERO:
        log.error("Quantity validation failed: %s=%s", field, value)
        raise ValidationError(field, "must be greater than zero", value)
    return value


def require_positive_money(amount: Any, field: str) -> Decimal:
    """Validate that a price, rate or payment amount is strictly positive.

    Raises:
        ValidationError: If ``amount`` is missing, zero or negative.
    """

    if amount is None:
        log.error("Monetary value validation failed: %s is missing", field)
        raise ValidationError(field, "is required", amount)
    value = to_decimal(amount)
    if value <= ZERO:
        log.error("Monetary value validation failed: %s=%s", field, value)
        raise ValidationError(field, "must be greater than zero", value)
    return value


def require_nonnegative_money(amount: Any, field: str) -> Decimal:
    """Validate that a paid or received amount is zero or positive.

    ``None`` is accepted and treated as zero because creation forms may omit
    an upfront payment entirely.

    Raises:
        ValidationError: If ``amount`` is negative.
    """

    value = to_decimal(amount)
    if value < ZERO:
        log.error("Monetary value validation failed: %s=%s", field, value)
        raise ValidationError(field, "must be zero or positive", value)
    return value


def settlement_status(total: Any, paid: Any, kind: Union[SettlementKind, str]) -> str:
    """Return the tri-state financial status for ``paid`` against ``total``."""

    kind = SettlementKind(kind)
    total = to_decimal(total)
    paid = to_decimal(paid)
    if paid >= total:
        return _FULLY_PAID_STATUS[kind]
    if paid > ZERO:
        return PurchaseStatus.PARTIAL.value
    return PurchaseStatus.PENDING.value


def compute_settlement(total: Any, paid: Any, kind: Union[SettlementKind, str]) -> SettlementResult:
    """Derive remaining balance and status from a total and the amount paid.

    Args:
        total (Any): Billed amount of the record.
        paid (Any): Amount paid (purchases, rentals) or received (sales).
        kind (SettlementKind | str): Ledger side, which selects the fully
            settled status label.

    Returns:
        SettlementResult: ``total`` and ``paid`` as decimals together with the
            clamped remaining balance and the derived status.
    """

    total = to_decimal(total)
    paid = to_decimal(paid)
    remaining = max(ZERO, total - paid)
    return SettlementResult(
        total=total,
        paid=paid,
        remaining=remaining,
        status=settlement_status(total, paid, kind),
    )


def settle_purchase(quantity: Any, unit_price: Any, amount_paid: Any = None) -> SettlementResult:
    """Validate purchase inputs and compute cost, balance and status."""

    quantity = require_positive_quantity(quantity)
    unit_price = require_positive_money(unit_price, "unit_price")
    amount_paid = require_nonnegative_money(amount_paid, "amount_paid")
    total = multiply_quantity_price(quantity, unit_price)
    return compute_settlement(total, amount_paid, SettlementKind.PURCHASE)


def settle_sale(quantity: Any, unit_price: Any, amount_received: Any = None) -> SettlementResult:
    """Validate sale inputs and compute amount, balance and status."""

    quantity = require_positive_quantity(quantity)
    unit_price = require_positive_money(unit_price, "unit_price")
    amount_received = require_nonnegative_money(amount_received, "amount_received")
    total = multiply_quantity_price(quantity, unit_price)
    return compute_settlement(total, amount_received, SettlementKind.SALE)


def _elapsed(start: datetime, end: datetime) -> timedelta:
    try:
        return end - start
    except TypeError as exc:
        # mixing naive and timezone-aware datetimes
        raise ValidationError(
            "rental_end_datetime",
            "must use the same timezone awareness as rental_start_datetime",
            end,
        ) from exc


def billed_units(start: datetime, end: datetime, rental_type: Union[RentalType, str]) -> int:
    """Return the number of billable units between ``start`` and ``end``.

    HOUR-rate vehicles bill per started hour; DAY and MONTH-rate vehicles bill
    per started day. Non-positive durations bill nothing.

    Examples:
        61 minutes at HOUR rate bills 2 units; 25 hours at DAY rate bills 2
        units; exactly 5 days at DAY rate bills 5 units.
    """

    elapsed = _elapsed(start, end)
    if elapsed <= timedelta(0):
        return 0
    unit = HOUR if RentalType(rental_type) == RentalType.HOUR else DAY
    return -(-elapsed // unit)


def rental_total(start: datetime, end: datetime, rate: Any, rental_type: Union[RentalType, str]) -> Decimal:
    """Return ``billed_units * rate`` for a rental period."""

    return Decimal(billed_units(start, end, rental_type)) * to_decimal(rate)


def settle_rental(
    start: datetime,
    end: datetime,
    rate: Any,
    rental_type: Union[RentalType, str],
    amount_paid: Any = None,
) -> SettlementResult:
    """Validate a rental period and compute the contract settlement.

    Raises:
        ValidationError: If the period is empty or reversed, the rate is not
            positive or ``amount_paid`` is negative.
    """

    if start is None:
        raise ValidationError("rental_start_datetime", "is required")
    if end is None:
        raise ValidationError("rental_end_datetime", "is required")
    if _elapsed(start, end) <= timedelta(0):
        log.error("Rental period validation failed: start=%s end=%s", start, end)
        raise ValidationError("rental_end_datetime", "must be after rental_start_datetime", end)
    rate = require_positive_money(rate, "rate")
    amount_paid = require_nonnegative_money(amount_paid, "amount_paid")
    total = rental_total(start, end, rate, rental_type)
    return compute_settlement(total, amount_paid, SettlementKind.RENTAL)


def apply_payment(total: Any, current_paid: Any, amount: Any, kind: Union[SettlementKind, str]) -> SettlementResult:
    """Add a payment to a record and recompute its settlement fields.

    Args:
        total (Any): Persisted total of the record being paid.
        current_paid (Any): Persisted paid or received amount before this
            payment.
        amount (Any): New payment amount.
        kind (SettlementKind | str): Ledger side of the record.

    Returns:
        SettlementResult: Updated ``paid``, ``remaining`` and ``status``.

    Raises:
        IntegrityError: If ``amount`` is not positive or exceeds the remaining
            balance, since either would break the settlement invariants.
    """

    amount = to_decimal(amount)
    if amount <= ZERO:
        log.error("Payment rejected: non-positive amount %s", amount)
        raise IntegrityError("amount", "must be greater than zero", amount)
    before = compute_settlement(total, current_paid, kind)
    if amount > before.remaining:
        log.error(
            "Payment rejected: amount %s exceeds remaining balance %s",
            amount,
            before.remaining,
        )
        raise IntegrityError("amount", f"exceeds remaining balance {before.remaining}", amount)
    result = compute_settlement(before.total, before.paid + amount, kind)
    log.debug(
        "Applied payment of %s: paid=%s remaining=%s status=%s",
        amount,
        result.paid,
        result.remaining,
        result.status,
    )
    return result


__all__ = [
    "SettlementResult",
    "require_positive_quantity",
    "require_positive_money",
    "require_nonnegative_money",
    "settlement_status",
    "compute_settlement",
    "settle_purchase",
    "settle_sale",
    "billed_units",
    "rental_total",
    "settle_rental",
    "apply_payment",
]
