"""Enumerations shared across the Umugwaneza ERP modules.

Centralises domain constants so that the data access layer (DAL), the ledger
engines, the business logic layer (BLL) and the CLI rely on a single source of
truth for status codes and sheet identifiers. Values match the identifiers
persisted by the hosted dashboard so records can move between the two.
"""

from __future__ import annotations

from enum import Enum


# Central schema version expected by all layers when validating workbooks.
EXPECTED_SCHEMA_VERSION = "2.0.0"

DEFAULT_CURRENCY = "RWF"
DEFAULT_LOCALE = "en-RW"


class MeasurementType(str, Enum):
    """How an item is measured."""

    WEIGHT = "WEIGHT"
    VOLUME = "VOLUME"


class BaseUnit(str, Enum):
    """Primary quantity unit of an item."""

    KG = "KG"
    LITRE = "LITRE"


class CustomerSegment(str, Enum):
    GROCERY = "GROCERY"
    FLEET = "FLEET"


class PurchaseStatus(str, Enum):
    """Settlement state of a purchase or a rental contract."""

    PENDING = "PENDING"
    PARTIAL = "PARTIAL"
    FULLY_SETTLED = "FULLY_SETTLED"


class SaleStatus(str, Enum):
    """Settlement state of a sale."""

    PENDING = "PENDING"
    PARTIAL = "PARTIAL"
    FULLY_RECEIVED = "FULLY_RECEIVED"


# Read-time overlay shown instead of the persisted status once a due date passes.
DELAYED = "DELAYED"


class SettlementKind(str, Enum):
    """Which side of the ledger a settlement belongs to."""

    PURCHASE = "PURCHASE"
    SALE = "SALE"
    RENTAL = "RENTAL"


class PaymentReferenceType(str, Enum):
    """Record kinds a grocery payment may point at."""

    PURCHASE = "PURCHASE"
    SALE = "SALE"


class PaymentMode(str, Enum):
    """How a payment was made."""

    CASH = "CASH"
    BANK_TRANSFER = "BANK_TRANSFER"
    MOBILE_MONEY = "MOBILE_MONEY"


class VehicleType(str, Enum):
    TRUCK = "TRUCK"
    MACHINE = "MACHINE"


class RentalType(str, Enum):
    """Rate basis of a vehicle."""

    DAY = "DAY"
    HOUR = "HOUR"
    MONTH = "MONTH"


class OwnershipType(str, Enum):
    OWN = "OWN"
    EXTERNAL = "EXTERNAL"


class VehicleStatus(str, Enum):
    """Operational status of a vehicle."""

    AVAILABLE = "AVAILABLE"
    RENTED_OUT = "RENTED_OUT"
    RENTED_IN = "RENTED_IN"
    MAINTENANCE = "MAINTENANCE"
    OFFLINE = "OFFLINE"


class RentalDirection(str, Enum):
    """OUTGOING rents our vehicle out, INCOMING rents someone else's."""

    OUTGOING = "OUTGOING"
    INCOMING = "INCOMING"


class OperationalStatus(str, Enum):
    """Lifecycle of a rental contract."""

    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class SheetName(str, Enum):
    """Enumerate the workbook sheet names managed by the DAL."""

    BUSINESSES = "Businesses"
    ITEMS = "Items"
    SUPPLIERS = "Suppliers"
    CUSTOMERS = "Customers"
    EXTERNAL_OWNERS = "ExternalOwners"
    PURCHASES = "Purchases"
    SALES = "Sales"
    GROCERY_PAYMENTS = "GroceryPayments"
    VEHICLES = "Vehicles"
    RENTAL_CONTRACTS = "RentalContracts"
    RENTAL_PAYMENTS = "RentalPayments"


# Package sizes used for the coarse "whole sacks/cans" stock view.
PACKAGE_SIZES: dict[MeasurementType, tuple[int, ...]] = {
    MeasurementType.WEIGHT: (50, 25),
    MeasurementType.VOLUME: (20, 5),
}


__all__ = [
    "EXPECTED_SCHEMA_VERSION",
    "DEFAULT_CURRENCY",
    "DEFAULT_LOCALE",
    "DELAYED",
    "PACKAGE_SIZES",
    "MeasurementType",
    "BaseUnit",
    "CustomerSegment",
    "PurchaseStatus",
    "SaleStatus",
    "SettlementKind",
    "PaymentReferenceType",
    "PaymentMode",
    "VehicleType",
    "RentalType",
    "OwnershipType",
    "VehicleStatus",
    "RentalDirection",
    "OperationalStatus",
    "SheetName",
]
