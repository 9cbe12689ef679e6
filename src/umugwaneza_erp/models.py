"""In-memory records for every entity stored in the master workbook.

Each dataclass mirrors one worksheet row: field order is column order, and the
worksheet header row uses the field names verbatim. Status fields hold the
``.value`` of the matching enum from :mod:`umugwaneza_erp.constants` so rows
compare equal to freshly deserialized ones.

``SHEET`` and ``KEY`` tell the data access layer where a record lives and which
column identifies it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar, Dict, Optional, Type

from .constants import SheetName


@dataclass(frozen=True)
class BusinessRow:
    SHEET: ClassVar[SheetName] = SheetName.BUSINESSES
    KEY: ClassVar[str] = "business_id"

    business_id: str
    name: str
    currency: str
    created_at: str


@dataclass(frozen=True)
class ItemRow:
    """A stock-keeping item measured by weight or volume."""

    SHEET: ClassVar[SheetName] = SheetName.ITEMS
    KEY: ClassVar[str] = "item_id"

    item_id: str
    item_name: str
    measurement_type: str
    base_unit: str
    is_active: bool


@dataclass(frozen=True)
class SupplierRow:
    SHEET: ClassVar[SheetName] = SheetName.SUPPLIERS
    KEY: ClassVar[str] = "supplier_id"

    supplier_id: str
    supplier_name: str
    phone: Optional[str]
    address: Optional[str]
    notes: Optional[str]


@dataclass(frozen=True)
class CustomerRow:
    SHEET: ClassVar[SheetName] = SheetName.CUSTOMERS
    KEY: ClassVar[str] = "customer_id"

    customer_id: str
    customer_name: str
    phone: Optional[str]
    address: Optional[str]
    notes: Optional[str]
    segment: str


@dataclass(frozen=True)
class ExternalOwnerRow:
    """Third party whose vehicles we rent in."""

    SHEET: ClassVar[SheetName] = SheetName.EXTERNAL_OWNERS
    KEY: ClassVar[str] = "owner_id"

    owner_id: str
    owner_name: str
    phone: Optional[str]
    address: Optional[str]
    notes: Optional[str]


@dataclass(frozen=True)
class PurchaseRow:
    """A stock intake from a supplier and the amount still owed on it."""

    SHEET: ClassVar[SheetName] = SheetName.PURCHASES
    KEY: ClassVar[str] = "purchase_id"

    purchase_id: str
    reference_no: str
    supplier_id: str
    item_id: str
    purchase_date: date
    total_quantity: Decimal
    unit: str
    unit_price: Decimal
    total_purchase_cost: Decimal
    package_size: Optional[Decimal]
    package_count: Optional[Decimal]
    amount_paid: Decimal
    remaining_amount: Decimal
    financial_status: str
    amount_due_date: Optional[date]
    created_at: str


@dataclass(frozen=True)
class SaleRow:
    """A delivery to a customer and the amount still to be received."""

    SHEET: ClassVar[SheetName] = SheetName.SALES
    KEY: ClassVar[str] = "sale_id"

    sale_id: str
    reference_no: str
    customer_id: str
    item_id: str
    sale_date: date
    total_quantity: Decimal
    unit: str
    unit_price: Decimal
    total_sale_amount: Decimal
    package_size: Optional[Decimal]
    package_count: Optional[Decimal]
    amount_received: Decimal
    remaining_amount: Decimal
    financial_status: str
    amount_due_date: Optional[date]
    created_at: str


@dataclass(frozen=True)
class GroceryPaymentRow:
    """Append-only payment against a purchase (paid) or a sale (received)."""

    SHEET: ClassVar[SheetName] = SheetName.GROCERY_PAYMENTS
    KEY: ClassVar[str] = "payment_id"

    payment_id: str
    reference_type: str
    reference_id: str
    amount: Decimal
    payment_date: date
    mode: str
    notes: Optional[str]
    created_at: str


@dataclass(frozen=True)
class VehicleRow:
    SHEET: ClassVar[SheetName] = SheetName.VEHICLES
    KEY: ClassVar[str] = "vehicle_id"

    vehicle_id: str
    vehicle_name: str
    vehicle_type: str
    rental_type: str
    ownership_type: str
    base_rate: Decimal
    current_status: str
    current_location: Optional[str]
    notes: Optional[str]


@dataclass(frozen=True)
class RentalContractRow:
    """A vehicle rented out to a customer or rented in from an external owner."""

    SHEET: ClassVar[SheetName] = SheetName.RENTAL_CONTRACTS
    KEY: ClassVar[str] = "contract_id"

    contract_id: str
    vehicle_id: str
    rental_direction: str
    rental_type: str
    customer_id: Optional[str]
    external_owner_id: Optional[str]
    rental_start_datetime: datetime
    rental_end_datetime: datetime
    rate: Decimal
    total_amount: Decimal
    amount_paid: Decimal
    remaining_amount: Decimal
    financial_status: str
    operational_status: str
    location: Optional[str]
    notes: Optional[str]
    created_at: str

    @property
    def display_reference(self) -> str:
        return f"RNT-{self.contract_id[:8]}"


@dataclass(frozen=True)
class RentalPaymentRow:
    SHEET: ClassVar[SheetName] = SheetName.RENTAL_PAYMENTS
    KEY: ClassVar[str] = "payment_id"

    payment_id: str
    rental_contract_id: str
    amount: Decimal
    payment_date: date
    mode: str
    notes: Optional[str]
    created_at: str


RECORD_TYPES: Dict[SheetName, Type] = {
    record_type.SHEET: record_type
    for record_type in (
        BusinessRow,
        ItemRow,
        SupplierRow,
        CustomerRow,
        ExternalOwnerRow,
        PurchaseRow,
        SaleRow,
        GroceryPaymentRow,
        VehicleRow,
        RentalContractRow,
        RentalPaymentRow,
    )
}


__all__ = [
    "BusinessRow",
    "ItemRow",
    "SupplierRow",
    "CustomerRow",
    "ExternalOwnerRow",
    "PurchaseRow",
    "SaleRow",
    "GroceryPaymentRow",
    "VehicleRow",
    "RentalContractRow",
    "RentalPaymentRow",
    "RECORD_TYPES",
]
