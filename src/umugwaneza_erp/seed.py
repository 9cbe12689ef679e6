"""Idempotent sample data for a fresh Umugwaneza workbook.

The seed is gated by the persisted business record rather than by any
in-process flag: if the configured business already exists on the
``Businesses`` sheet nothing is written. Every sample record is created
through the regular :mod:`.core_logic` write paths so totals, balances,
statuses and vehicle states are derived exactly as for user input.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Optional

from . import core_logic, log
from .constants import (
    CustomerSegment,
    MeasurementType,
    OwnershipType,
    PaymentMode,
    PaymentReferenceType,
    RentalDirection,
    RentalType,
    VehicleType,
)


SEED_ITEMS = (
    ("Umuceri (Rice)", MeasurementType.WEIGHT),
    ("Ibishyimbo (Beans)", MeasurementType.WEIGHT),
    ("Ibigori (Maize)", MeasurementType.WEIGHT),
    ("Amavuta (Cooking Oil)", MeasurementType.VOLUME),
    ("Isukari (Sugar)", MeasurementType.WEIGHT),
    ("Umunyu (Salt)", MeasurementType.WEIGHT),
    ("Ifu (Wheat Flour)", MeasurementType.WEIGHT),
)

SEED_SUPPLIERS = (
    ("COPRIMU Cooperative", "+250788100001", "Muhanga"),
    ("Kigali Grain Traders", "+250788100002", "Kigali"),
    ("Inyange Industries", "+250788100003", "Kigali"),
    ("MINIMEX Rwanda", "+250788100004", "Kigali"),
    ("Rubavu Lake Trading", "+250788100005", "Rubavu"),
)

SEED_CUSTOMERS = (
    ("Marché de Kimironko", "+250788200001", "Kigali"),
    ("Simba Supermarket", "+250788200002", "Kigali"),
    ("Musanze Fresh Foods", "+250788200003", "Musanze"),
    ("Huye Market Vendors", "+250788200004", "Huye"),
    ("Hotel Gorillas Kigali", "+250788200005", "Kigali"),
)

SEED_OWNERS = (
    ("Jean-Pierre HABIMANA", "+250788300001", "Huye"),
    ("Marie Claire UWIMANA", "+250788300002", "Musanze"),
    ("Emmanuel NSABIMANA", "+250788300003", "Rubavu"),
)

SEED_VEHICLES = (
    ("RAA 100A", VehicleType.TRUCK, RentalType.DAY, Decimal("150000"), OwnershipType.OWN),
    ("RAB 200B", VehicleType.TRUCK, RentalType.DAY, Decimal("150000"), OwnershipType.OWN),
    ("RAC 300C", VehicleType.MACHINE, RentalType.HOUR, Decimal("20000"), OwnershipType.OWN),
    ("RAD 400D", VehicleType.MACHINE, RentalType.HOUR, Decimal("20000"), OwnershipType.OWN),
    ("RAE 500E", VehicleType.TRUCK, RentalType.DAY, Decimal("180000"), OwnershipType.OWN),
    # rented in from the first external owner
    ("RAF 600F", VehicleType.TRUCK, RentalType.DAY, Decimal("200000"), OwnershipType.EXTERNAL),
)

SEED_DEPOT = "Kigali Depot"

# (supplier index, item index, days ago, quantity, unit price, paid upfront)
SEED_PURCHASES = (
    (0, 0, 0, Decimal("500"), Decimal("1200"), Decimal("400000")),
    (1, 1, 0, Decimal("1000"), Decimal("800"), Decimal("800000")),
    (2, 2, 1, Decimal("800"), Decimal("600"), Decimal("0")),
    (0, 3, 1, Decimal("200"), Decimal("3500"), Decimal("700000")),
    (3, 4, 0, Decimal("100"), Decimal("1800"), Decimal("180000")),
)

# (customer index, item index, days ago, quantity, unit price, received upfront)
SEED_SALES = (
    (0, 0, 0, Decimal("200"), Decimal("1500"), Decimal("300000")),
    (1, 1, 0, Decimal("300"), Decimal("1000"), Decimal("100000")),
    (2, 0, 1, Decimal("150"), Decimal("1450"), Decimal("217500")),
    (3, 2, 1, Decimal("50"), Decimal("2200"), Decimal("0")),
    (4, 3, 0, Decimal("30"), Decimal("4500"), Decimal("135000")),
)

SEED_RENTAL_DAYS = 5


def is_seeded(context: core_logic.RuntimeContext) -> bool:
    """Return ``True`` when the configured business is already on the workbook."""

    return core_logic.find_business(context, context.settings.business_id) is not None


def ensure_seed_data(context: core_logic.RuntimeContext, *, now: Optional[datetime] = None) -> bool:
    """Populate an empty workbook with the sample business data.

    Args:
        context (RuntimeContext): Runtime context whose workbook receives the
            records. The workbook is not saved; callers decide when to
            persist.
        now (datetime | None): Reference instant for record dates and the
            rental period. Defaults to the current UTC time.

    Returns:
        bool: ``True`` when the seed ran, ``False`` when the business record
            already existed and nothing was written.
    """

    if is_seeded(context):
        log.info("Seed skipped: business '%s' already exists", context.settings.business_id)
        return False

    now = now or datetime.now(UTC)
    today = now.date()

    core_logic.register_business(
        context,
        context.settings.business_id,
        context.settings.business_name,
        context.settings.currency,
        timestamp=now,
    )

    items = [
        core_logic.add_item(context, core_logic.ItemCommand(item_name=name, measurement_type=measurement))
        for name, measurement in SEED_ITEMS
    ]
    suppliers = [
        core_logic.add_supplier(context, core_logic.SupplierCommand(supplier_name=name, phone=phone, address=address))
        for name, phone, address in SEED_SUPPLIERS
    ]
    customers = [
        core_logic.add_customer(
            context,
            core_logic.CustomerCommand(customer_name=name, phone=phone, address=address, segment=CustomerSegment.GROCERY),
        )
        for name, phone, address in SEED_CUSTOMERS
    ]
    owners = [
        core_logic.add_external_owner(context, core_logic.ExternalOwnerCommand(owner_name=name, phone=phone, address=address))
        for name, phone, address in SEED_OWNERS
    ]
    vehicles = [
        core_logic.add_vehicle(
            context,
            core_logic.VehicleCommand(
                vehicle_name=name,
                vehicle_type=vehicle_type,
                rental_type=rental_type,
                base_rate=rate,
                ownership_type=ownership,
                current_location=SEED_DEPOT,
            ),
        )
        for name, vehicle_type, rental_type, rate, ownership in SEED_VEHICLES
    ]

    purchases = [
        core_logic.record_purchase(
            context,
            core_logic.PurchaseCommand(
                supplier_id=suppliers[supplier].supplier_id,
                item_id=items[item].item_id,
                total_quantity=quantity,
                unit_price=price,
                amount_paid=paid,
                purchase_date=today - timedelta(days=days_ago),
                timestamp=now + timedelta(milliseconds=index),
            ),
        )
        for index, (supplier, item, days_ago, quantity, price, paid) in enumerate(SEED_PURCHASES)
    ]
    sales = [
        core_logic.record_sale(
            context,
            core_logic.SaleCommand(
                customer_id=customers[customer].customer_id,
                item_id=items[item].item_id,
                total_quantity=quantity,
                unit_price=price,
                amount_received=received,
                sale_date=today - timedelta(days=days_ago),
                timestamp=now + timedelta(milliseconds=index),
            ),
        )
        for index, (customer, item, days_ago, quantity, price, received) in enumerate(SEED_SALES)
    ]

    open_purchase = next(p for p in purchases if p.remaining_amount > 0)
    open_sale = next(s for s in sales if s.remaining_amount > 0)
    core_logic.record_grocery_payment(
        context,
        core_logic.GroceryPaymentCommand(
            reference_type=PaymentReferenceType.PURCHASE,
            reference_id=open_purchase.purchase_id,
            amount=Decimal("100000"),
            payment_date=today,
            mode=PaymentMode.BANK_TRANSFER,
            notes="Seed payment",
            timestamp=now,
        ),
    )
    core_logic.record_grocery_payment(
        context,
        core_logic.GroceryPaymentCommand(
            reference_type=PaymentReferenceType.SALE,
            reference_id=open_sale.sale_id,
            amount=Decimal("50000"),
            payment_date=today,
            mode=PaymentMode.CASH,
            notes="Seed payment",
            timestamp=now,
        ),
    )

    external_vehicle = next(v for v in vehicles if v.ownership_type == OwnershipType.EXTERNAL.value)
    start = now.replace(microsecond=0)
    end = start + timedelta(days=SEED_RENTAL_DAYS)
    outgoing = core_logic.create_rental_contract(
        context,
        core_logic.RentalContractCommand(
            vehicle_id=vehicles[0].vehicle_id,
            rental_direction=RentalDirection.OUTGOING,
            rental_start_datetime=start,
            rental_end_datetime=end,
            customer_id=customers[0].customer_id,
            rate=Decimal("150000"),
            location="Nyamirambo",
            timestamp=now,
        ),
    )
    incoming = core_logic.create_rental_contract(
        context,
        core_logic.RentalContractCommand(
            vehicle_id=external_vehicle.vehicle_id,
            rental_direction=RentalDirection.INCOMING,
            rental_start_datetime=start,
            rental_end_datetime=end,
            external_owner_id=owners[0].owner_id,
            rate=Decimal("200000"),
            location="Huye",
            timestamp=now,
        ),
    )
    for contract, amount, mode, notes in (
        (outgoing, Decimal("150000"), PaymentMode.BANK_TRANSFER, "First instalment"),
        (outgoing, Decimal("150000"), PaymentMode.CASH, "Second instalment"),
        (incoming, Decimal("250000"), PaymentMode.MOBILE_MONEY, "Advance"),
    ):
        core_logic.record_rental_payment(
            context,
            core_logic.RentalPaymentCommand(
                rental_contract_id=contract.contract_id,
                amount=amount,
                payment_date=today,
                mode=mode,
                notes=notes,
                timestamp=now,
            ),
        )

    log.info(
        "Seeded business '%s': %d items, %d suppliers, %d customers, %d owners, %d vehicles, %d purchases, %d sales",
        context.settings.business_id,
        len(items),
        len(suppliers),
        len(customers),
        len(owners),
        len(vehicles),
        len(purchases),
        len(sales),
    )
    return True


__all__ = ["ensure_seed_data", "is_seeded"]
