"""Business logic layer for Umugwaneza ERP.

This module orchestrates every write path of the grocery and rental ledgers
and exposes the read views built on top of them. It consumes the Data Access
Layer (DAL) for all I/O and delegates arithmetic and state rules to the pure
engines (:mod:`.settlement`, :mod:`.status`, :mod:`.stock`,
:mod:`.aggregation`, :mod:`.reports`), so no balance or status is ever
computed inline here.

Read-modify-write sequences (payment application, contract creation and
closing, manual vehicle moves) run while holding the context lock, start from
freshly invalidated caches and finish with a conditional row update so a
stale read can never overwrite a newer value.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar

from openpyxl.workbook import Workbook

from . import aggregation, data_manager, log, reports, stock
from .constants import (
    EXPECTED_SCHEMA_VERSION,
    BaseUnit,
    CustomerSegment,
    MeasurementType,
    OperationalStatus,
    OwnershipType,
    PaymentMode,
    PaymentReferenceType,
    RentalDirection,
    RentalType,
    SettlementKind,
    SheetName,
    VehicleStatus,
    VehicleType,
)
from .errors import IntegrityError, NotFoundError, StatusTransitionError, ValidationError
from .models import (
    BusinessRow,
    CustomerRow,
    ExternalOwnerRow,
    GroceryPaymentRow,
    ItemRow,
    PurchaseRow,
    RentalContractRow,
    RentalPaymentRow,
    SaleRow,
    SupplierRow,
    VehicleRow,
)
from .money import ZERO, to_decimal
from .settlement import (
    apply_payment,
    require_nonnegative_money,
    require_positive_money,
    settle_purchase,
    settle_rental,
    settle_sale,
)
from .status import release_vehicle_status, start_rental_status, transition_contract, validate_manual_status


E = TypeVar("E", bound=Enum)

_BASE_UNITS = {
    MeasurementType.WEIGHT: BaseUnit.KG,
    MeasurementType.VOLUME: BaseUnit.LITRE,
}

_ENTITY_LABELS = {
    SheetName.BUSINESSES: "business",
    SheetName.ITEMS: "item",
    SheetName.SUPPLIERS: "supplier",
    SheetName.CUSTOMERS: "customer",
    SheetName.EXTERNAL_OWNERS: "external owner",
    SheetName.PURCHASES: "purchase",
    SheetName.SALES: "sale",
    SheetName.GROCERY_PAYMENTS: "grocery payment",
    SheetName.VEHICLES: "vehicle",
    SheetName.RENTAL_CONTRACTS: "rental contract",
    SheetName.RENTAL_PAYMENTS: "rental payment",
}


@dataclass(frozen=True)
class RuntimeContext:
    """Container for configuration and workbook references used by the BLL."""

    settings: data_manager.ConfigSettings
    workbook: Workbook
    _cache: Dict[str, Dict[str, Any]] = field(default_factory=dict, repr=False, compare=False)
    _lock: Any = field(default_factory=threading.RLock, repr=False, compare=False)


@dataclass(frozen=True)
class ItemCommand:
    """User intent for registering a stock item."""

    item_name: str
    measurement_type: MeasurementType
    base_unit: Optional[BaseUnit] = None
    is_active: bool = True


@dataclass(frozen=True)
class SupplierCommand:
    supplier_name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class CustomerCommand:
    customer_name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    segment: CustomerSegment = CustomerSegment.GROCERY


@dataclass(frozen=True)
class ExternalOwnerCommand:
    owner_name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class VehicleCommand:
    """User intent for adding a truck or machine to the fleet."""

    vehicle_name: str
    vehicle_type: VehicleType
    rental_type: RentalType
    base_rate: Decimal
    ownership_type: OwnershipType = OwnershipType.OWN
    current_location: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class PurchaseCommand:
    """User intent for recording stock bought from a supplier."""

    supplier_id: str
    item_id: str
    total_quantity: Decimal
    unit_price: Decimal
    amount_paid: Decimal = Decimal("0")
    purchase_date: Optional[date] = None
    unit: Optional[str] = None
    package_size: Optional[Decimal] = None
    package_count: Optional[Decimal] = None
    amount_due_date: Optional[date] = None
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class SaleCommand:
    """User intent for recording stock delivered to a customer."""

    customer_id: str
    item_id: str
    total_quantity: Decimal
    unit_price: Decimal
    amount_received: Decimal = Decimal("0")
    sale_date: Optional[date] = None
    unit: Optional[str] = None
    package_size: Optional[Decimal] = None
    package_count: Optional[Decimal] = None
    amount_due_date: Optional[date] = None
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class GroceryPaymentCommand:
    """User intent for paying a purchase or receiving money for a sale."""

    reference_type: PaymentReferenceType
    reference_id: str
    amount: Decimal
    payment_date: Optional[date] = None
    mode: PaymentMode = PaymentMode.CASH
    notes: Optional[str] = None
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class RentalContractCommand:
    """User intent for renting a vehicle out or renting one in.

    ``rate`` defaults to the vehicle's base rate when omitted.
    """

    vehicle_id: str
    rental_direction: RentalDirection
    rental_start_datetime: datetime
    rental_end_datetime: datetime
    customer_id: Optional[str] = None
    external_owner_id: Optional[str] = None
    rate: Optional[Decimal] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class RentalPaymentCommand:
    rental_contract_id: str
    amount: Decimal
    payment_date: Optional[date] = None
    mode: PaymentMode = PaymentMode.CASH
    notes: Optional[str] = None
    timestamp: Optional[datetime] = None


def _resolve_timestamp(candidate: Optional[datetime]) -> datetime:
    """Resolve optional timestamps into consistent, timezone-aware values.

    Args:
        candidate (datetime | None): Caller-provided timestamp, usually sourced
            from a command object.

    Returns:
        datetime: ``candidate`` as-is when provided, otherwise the current UTC
            datetime generated via :func:`datetime.now`.
    """

    return candidate if candidate is not None else datetime.now(UTC)


def _resolve_date(candidate: Optional[date], timestamp: Optional[datetime] = None) -> date:
    if candidate is not None:
        return candidate
    return _resolve_timestamp(timestamp).date()


def _coerce_enum(enum_type: Type[E], value: Any, field_name: str) -> E:
    try:
        return enum_type(value)
    except ValueError as exc:
        log.error("Invalid %s value: %r", field_name, value)
        raise ValidationError(field_name, f"must be one of {', '.join(m.value for m in enum_type)}", value) from exc


def _require_text(value: Optional[str], field_name: str) -> str:
    if value is None or not str(value).strip():
        log.error("Validation failed: %s is empty", field_name)
        raise ValidationError(field_name, "is required", value)
    return str(value).strip()


def _get_cache_bucket(context: RuntimeContext, name: str) -> Dict[str, Any]:
    """Return a mutable cache bucket dedicated to the supplied name.

    The business logic layer keeps one bucket per worksheet so repeated
    queries do not re-scan the workbook.

    Args:
        context (RuntimeContext): Runtime state carrying the shared cache
            dictionary.
        name (str): Logical bucket name to fetch or create.

    Returns:
        dict[str, Any]: Mutable mapping used to cache derived collections.
    """

    bucket = context._cache.get(name)
    if bucket is None:
        log.debug("Initializing cache bucket '%s'", name)
        bucket = {}
        context._cache[name] = bucket
    return bucket


def _invalidate_cache(context: RuntimeContext, *names: str) -> None:
    """Evict one or more cache buckets after mutating workbook state.

    Missing buckets are ignored.
    """

    if not names:
        return

    log.debug("Invalidating cache buckets: %s", ", ".join(names))

    for name in names:
        context._cache.pop(name, None)


def _ensure_records_cache(context: RuntimeContext, sheet: SheetName) -> Dict[str, Any]:
    """Populate the cache bucket for ``sheet`` on demand.

    Returns:
        dict[str, Any]: Bucket containing ``all`` records in sheet order and a
            ``by_id`` lookup keyed by the record's primary key.
    """

    bucket = _get_cache_bucket(context, sheet.value)
    if "all" not in bucket:
        records = list(data_manager.iter_records(context.workbook, sheet))
        bucket["all"] = records
        bucket["by_id"] = {getattr(record, record.KEY): record for record in records}
        log.debug("Populated %s cache with %d entries", sheet.value, len(records))
    return bucket


def _records(context: RuntimeContext, sheet: SheetName) -> List[Any]:
    return list(_ensure_records_cache(context, sheet)["all"])


def _get_record(context: RuntimeContext, sheet: SheetName, record_id: Optional[str]) -> Any:
    cache = _ensure_records_cache(context, sheet)
    try:
        return cache["by_id"][record_id]
    except KeyError as exc:
        entity = _ENTITY_LABELS[sheet]
        log.warning("%s lookup failed for id '%s'", entity.capitalize(), record_id)
        raise NotFoundError(entity, record_id) from exc


def load_runtime_context(config_path: Optional[Path] = None) -> RuntimeContext:
    """Load configuration settings and a live workbook for the BLL.

    Args:
        config_path (Path | None): Optional override path for the configuration
            file. When omitted the data layer performs its upward search from
            the current working directory.

    Returns:
        RuntimeContext: Fully populated context ready for orchestration
            functions.

    Raises:
        FileNotFoundError: If the configuration file or workbook cannot be
            located.
        KeyError: When mandatory configuration options are missing.
    """
    located_config = data_manager.find_config_file(config_path)
    resolved_config = Path(located_config).expanduser().resolve()
    parser = data_manager.read_config(resolved_config)
    settings = data_manager.parse_settings(parser, base_path=resolved_config.parent)
    workbook = data_manager.open_workbook(settings.data_file)
    log.info("Loaded runtime context for workbook '%s'", settings.data_file)
    return RuntimeContext(settings=settings, workbook=workbook)


def ensure_schema_version(context: RuntimeContext) -> None:
    """Validate workbook compatibility before mutating state.

    Raises:
        RuntimeError: If the schema version declared in the configuration does
            not match ``EXPECTED_SCHEMA_VERSION``.
    """
    if context.settings.schema_version != EXPECTED_SCHEMA_VERSION:
        log.error(
            "Workbook schema mismatch: expected %s, found %s",
            EXPECTED_SCHEMA_VERSION,
            context.settings.schema_version,
        )
        raise RuntimeError(
            "Workbook schema mismatch: expected %s, found %s"
            % (EXPECTED_SCHEMA_VERSION, context.settings.schema_version)
        )

    log.debug("Schema version '%s' validated", context.settings.schema_version)


def generate_record_id() -> str:
    """Return a new random record identifier (UUID4 text)."""

    return str(uuid.uuid4())


def _base36(number: int) -> str:
    digits = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    if number == 0:
        return "0"
    out = []
    while number:
        number, remainder = divmod(number, 36)
        out.append(digits[remainder])
    return "".join(reversed(out))


def generate_reference(prefix: str, *, when: Optional[datetime] = None) -> str:
    """Build a human-readable reference such as ``PUR-LRX3K2QF``.

    The suffix is the millisecond Unix timestamp of ``when`` in upper-case
    base 36, so references sort by creation time within a prefix.
    """
    when = when or _resolve_timestamp(None)
    millis = int(when.timestamp() * 1000)
    return f"{prefix}-{_base36(millis)}"


def _unique_reference(context: RuntimeContext, sheet: SheetName, prefix: str, when: datetime) -> str:
    taken = {record.reference_no for record in _ensure_records_cache(context, sheet)["all"]}
    candidate = generate_reference(prefix, when=when)
    while candidate in taken:
        when = when + timedelta(milliseconds=1)
        candidate = generate_reference(prefix, when=when)
    return candidate


# --------------------------------------------------------------------------
# Reference data
# --------------------------------------------------------------------------


def find_business(context: RuntimeContext, business_id: str) -> Optional[BusinessRow]:
    return _ensure_records_cache(context, SheetName.BUSINESSES)["by_id"].get(business_id)


def register_business(
    context: RuntimeContext,
    business_id: str,
    name: str,
    currency: Optional[str] = None,
    *,
    timestamp: Optional[datetime] = None,
) -> BusinessRow:
    """Persist the business record that owns every other record in the workbook.

    Raises:
        ValidationError: If the id or name is empty, or the business already
            exists.
    """
    business_id = _require_text(business_id, "business_id")
    with context._lock:
        if find_business(context, business_id) is not None:
            raise ValidationError("business_id", "already exists", business_id)
        business = BusinessRow(
            business_id=business_id,
            name=_require_text(name, "name"),
            currency=currency or context.settings.currency,
            created_at=_resolve_timestamp(timestamp).isoformat(),
        )
        data_manager.append_record(context.workbook, business)
        _invalidate_cache(context, SheetName.BUSINESSES.value)
    log.info("Registered business '%s' (%s)", business.business_id, business.name)
    return business


def list_items(context: RuntimeContext, *, include_inactive: bool = False) -> List[ItemRow]:
    """Return item rows in sheet order, active ones only unless asked otherwise.

    Args:
        context (RuntimeContext): Runtime context providing workbook access and
            caches.
        include_inactive (bool): When ``True`` the result includes soft-disabled
            items.

    Returns:
        list[ItemRow]: Copy of the cached item dataset.
    """
    items = _records(context, SheetName.ITEMS)
    if include_inactive:
        return items
    return [item for item in items if item.is_active]


def get_item(context: RuntimeContext, item_id: str) -> ItemRow:
    """Resolve an item by id.

    Raises:
        NotFoundError: If ``item_id`` is absent from the workbook.
    """
    return _get_record(context, SheetName.ITEMS, item_id)


def _require_active_item(context: RuntimeContext, item_id: str) -> ItemRow:
    item = get_item(context, item_id)
    if not item.is_active:
        log.warning("Attempted to trade inactive item '%s'", item_id)
        raise ValidationError("item_id", "refers to an inactive item", item_id)
    return item


def add_item(context: RuntimeContext, command: ItemCommand) -> ItemRow:
    """Validate and append a new item.

    The base unit defaults to ``KG`` for WEIGHT items and ``LITRE`` for
    VOLUME items.

    Raises:
        ValidationError: If the name is empty or an enum value is unknown.
    """
    name = _require_text(command.item_name, "item_name")
    measurement = _coerce_enum(MeasurementType, command.measurement_type, "measurement_type")
    base_unit = (
        _coerce_enum(BaseUnit, command.base_unit, "base_unit")
        if command.base_unit is not None
        else _BASE_UNITS[measurement]
    )
    item = ItemRow(
        item_id=generate_record_id(),
        item_name=name,
        measurement_type=measurement.value,
        base_unit=base_unit.value,
        is_active=bool(command.is_active),
    )
    with context._lock:
        data_manager.append_record(context.workbook, item)
        _invalidate_cache(context, SheetName.ITEMS.value)
    log.info("Added item '%s' (%s, %s)", item.item_id, item.item_name, item.measurement_type)
    return item


def set_item_active(context: RuntimeContext, item_id: str, is_active: bool) -> ItemRow:
    """Soft-enable or soft-disable an item; items are never deleted.

    Raises:
        NotFoundError: If ``item_id`` is unknown.
    """
    with context._lock:
        item = get_item(context, item_id)
        data_manager.update_record(
            context.workbook,
            SheetName.ITEMS,
            item_id,
            field_values={"is_active": bool(is_active)},
        )
        _invalidate_cache(context, SheetName.ITEMS.value)
    log.info("Set item '%s' active=%s", item_id, bool(is_active))
    return replace(item, is_active=bool(is_active))


def deactivate_item(context: RuntimeContext, item_id: str) -> ItemRow:
    return set_item_active(context, item_id, False)


def list_suppliers(context: RuntimeContext) -> List[SupplierRow]:
    return _records(context, SheetName.SUPPLIERS)


def get_supplier(context: RuntimeContext, supplier_id: str) -> SupplierRow:
    return _get_record(context, SheetName.SUPPLIERS, supplier_id)


def add_supplier(context: RuntimeContext, command: SupplierCommand) -> SupplierRow:
    supplier = SupplierRow(
        supplier_id=generate_record_id(),
        supplier_name=_require_text(command.supplier_name, "supplier_name"),
        phone=command.phone,
        address=command.address,
        notes=command.notes,
    )
    with context._lock:
        data_manager.append_record(context.workbook, supplier)
        _invalidate_cache(context, SheetName.SUPPLIERS.value)
    log.info("Added supplier '%s' (%s)", supplier.supplier_id, supplier.supplier_name)
    return supplier


def list_customers(context: RuntimeContext, *, segment: Optional[CustomerSegment] = None) -> List[CustomerRow]:
    """Return customers, optionally limited to the GROCERY or FLEET segment."""
    customers = _records(context, SheetName.CUSTOMERS)
    if segment is None:
        return customers
    wanted = CustomerSegment(segment).value
    return [customer for customer in customers if customer.segment == wanted]


def get_customer(context: RuntimeContext, customer_id: str) -> CustomerRow:
    return _get_record(context, SheetName.CUSTOMERS, customer_id)


def add_customer(context: RuntimeContext, command: CustomerCommand) -> CustomerRow:
    customer = CustomerRow(
        customer_id=generate_record_id(),
        customer_name=_require_text(command.customer_name, "customer_name"),
        phone=command.phone,
        address=command.address,
        notes=command.notes,
        segment=_coerce_enum(CustomerSegment, command.segment, "segment").value,
    )
    with context._lock:
        data_manager.append_record(context.workbook, customer)
        _invalidate_cache(context, SheetName.CUSTOMERS.value)
    log.info("Added customer '%s' (%s)", customer.customer_id, customer.customer_name)
    return customer


def list_external_owners(context: RuntimeContext) -> List[ExternalOwnerRow]:
    return _records(context, SheetName.EXTERNAL_OWNERS)


def get_external_owner(context: RuntimeContext, owner_id: str) -> ExternalOwnerRow:
    return _get_record(context, SheetName.EXTERNAL_OWNERS, owner_id)


def add_external_owner(context: RuntimeContext, command: ExternalOwnerCommand) -> ExternalOwnerRow:
    owner = ExternalOwnerRow(
        owner_id=generate_record_id(),
        owner_name=_require_text(command.owner_name, "owner_name"),
        phone=command.phone,
        address=command.address,
        notes=command.notes,
    )
    with context._lock:
        data_manager.append_record(context.workbook, owner)
        _invalidate_cache(context, SheetName.EXTERNAL_OWNERS.value)
    log.info("Added external owner '%s' (%s)", owner.owner_id, owner.owner_name)
    return owner


def list_vehicles(context: RuntimeContext, *, status: Optional[VehicleStatus] = None) -> List[VehicleRow]:
    vehicles = _records(context, SheetName.VEHICLES)
    if status is None:
        return vehicles
    wanted = VehicleStatus(status).value
    return [vehicle for vehicle in vehicles if vehicle.current_status == wanted]


def get_vehicle(context: RuntimeContext, vehicle_id: str) -> VehicleRow:
    return _get_record(context, SheetName.VEHICLES, vehicle_id)


def add_vehicle(context: RuntimeContext, command: VehicleCommand) -> VehicleRow:
    """Validate and append a vehicle; new vehicles start ``AVAILABLE``.

    Raises:
        ValidationError: If the name is empty, an enum value is unknown or the
            base rate is negative.
    """
    vehicle = VehicleRow(
        vehicle_id=generate_record_id(),
        vehicle_name=_require_text(command.vehicle_name, "vehicle_name"),
        vehicle_type=_coerce_enum(VehicleType, command.vehicle_type, "vehicle_type").value,
        rental_type=_coerce_enum(RentalType, command.rental_type, "rental_type").value,
        ownership_type=_coerce_enum(OwnershipType, command.ownership_type, "ownership_type").value,
        base_rate=require_nonnegative_money(command.base_rate, "base_rate"),
        current_status=VehicleStatus.AVAILABLE.value,
        current_location=command.current_location,
        notes=command.notes,
    )
    with context._lock:
        data_manager.append_record(context.workbook, vehicle)
        _invalidate_cache(context, SheetName.VEHICLES.value)
    log.info(
        "Added vehicle '%s' (%s, %s rate %s)",
        vehicle.vehicle_id,
        vehicle.vehicle_name,
        vehicle.rental_type,
        vehicle.base_rate,
    )
    return vehicle


def set_vehicle_status(context: RuntimeContext, vehicle_id: str, requested: VehicleStatus) -> VehicleRow:
    """Move a vehicle between AVAILABLE, MAINTENANCE and OFFLINE.

    Rented states are owned by the contract workflow and cannot be requested
    or left through this path.

    Args:
        context (RuntimeContext): Runtime context providing workbook access and
            caches.
        vehicle_id (str): Vehicle to update.
        requested (VehicleStatus): Target status.

    Returns:
        VehicleRow: Vehicle as persisted after the move.

    Raises:
        NotFoundError: If the vehicle is unknown.
        ValidationError: If ``requested`` is a rented state or not a status.
        StatusTransitionError: If the vehicle is rented or changed while the
            update was in flight.
    """
    with context._lock:
        _invalidate_cache(context, SheetName.VEHICLES.value)
        vehicle = get_vehicle(context, vehicle_id)
        target = validate_manual_status(vehicle_id, vehicle.current_status, requested)
        if target.value == vehicle.current_status:
            return vehicle
        updated = data_manager.update_record(
            context.workbook,
            SheetName.VEHICLES,
            vehicle_id,
            field_values={"current_status": target.value},
            expected={"current_status": vehicle.current_status},
        )
        if not updated:
            raise StatusTransitionError("vehicle", vehicle_id, vehicle.current_status, target.value)
        _invalidate_cache(context, SheetName.VEHICLES.value)
    log.info("Vehicle '%s' moved from %s to %s", vehicle_id, vehicle.current_status, target.value)
    return replace(vehicle, current_status=target.value)


# --------------------------------------------------------------------------
# Grocery ledger
# --------------------------------------------------------------------------


def list_purchases(context: RuntimeContext) -> List[PurchaseRow]:
    return _records(context, SheetName.PURCHASES)


def get_purchase(context: RuntimeContext, purchase_id: str) -> PurchaseRow:
    return _get_record(context, SheetName.PURCHASES, purchase_id)


def list_sales(context: RuntimeContext) -> List[SaleRow]:
    return _records(context, SheetName.SALES)


def get_sale(context: RuntimeContext, sale_id: str) -> SaleRow:
    return _get_record(context, SheetName.SALES, sale_id)


def list_grocery_payments(context: RuntimeContext, *, reference_id: Optional[str] = None) -> List[GroceryPaymentRow]:
    payments = _records(context, SheetName.GROCERY_PAYMENTS)
    if reference_id is None:
        return payments
    return [payment for payment in payments if payment.reference_id == reference_id]


def list_pending_purchases(context: RuntimeContext) -> List[PurchaseRow]:
    """Purchases that still carry a balance owed to the supplier."""
    return [purchase for purchase in list_purchases(context) if purchase.remaining_amount > ZERO]


def list_pending_sales(context: RuntimeContext) -> List[SaleRow]:
    """Sales that still carry a balance due from the customer."""
    return [sale for sale in list_sales(context) if sale.remaining_amount > ZERO]


def _validate_packages(package_size: Any, package_count: Any) -> tuple[Optional[Decimal], Optional[Decimal]]:
    if package_size is None and package_count is None:
        return None, None
    if package_size is None or package_count is None:
        field_name = "package_size" if package_size is None else "package_count"
        log.error("Package validation failed: %s missing", field_name)
        raise ValidationError(field_name, "package size and count must be given together")
    return (
        require_positive_money(package_size, "package_size"),
        require_positive_money(package_count, "package_count"),
    )


def record_purchase(context: RuntimeContext, command: PurchaseCommand) -> PurchaseRow:
    """Validate and append a purchase with its derived settlement fields.

    ``total_purchase_cost``, ``remaining_amount`` and ``financial_status`` are
    computed by :func:`settle_purchase`; callers only supply quantity, price
    and any upfront payment.

    Args:
        context (RuntimeContext): Runtime context providing workbook access and
            caches.
        command (PurchaseCommand): Structured intent describing the purchase.

    Returns:
        PurchaseRow: Newly appended purchase.

    Raises:
        NotFoundError: If the supplier or item is unknown.
        ValidationError: If the item is inactive, a quantity or amount is
            invalid, or the upfront payment exceeds the total cost.
    """
    with context._lock:
        get_supplier(context, command.supplier_id)
        item = _require_active_item(context, command.item_id)
        settlement = settle_purchase(command.total_quantity, command.unit_price, command.amount_paid)
        if settlement.paid > settlement.total:
            log.error("Purchase payment %s exceeds cost %s", settlement.paid, settlement.total)
            raise ValidationError("amount_paid", "must not exceed total_purchase_cost", settlement.paid)
        package_size, package_count = _validate_packages(command.package_size, command.package_count)

        timestamp = _resolve_timestamp(command.timestamp)
        purchase = PurchaseRow(
            purchase_id=generate_record_id(),
            reference_no=_unique_reference(context, SheetName.PURCHASES, "PUR", timestamp),
            supplier_id=command.supplier_id,
            item_id=command.item_id,
            purchase_date=_resolve_date(command.purchase_date, timestamp),
            total_quantity=to_decimal(command.total_quantity),
            unit=command.unit or item.base_unit,
            unit_price=to_decimal(command.unit_price),
            total_purchase_cost=settlement.total,
            package_size=package_size,
            package_count=package_count,
            amount_paid=settlement.paid,
            remaining_amount=settlement.remaining,
            financial_status=settlement.status,
            amount_due_date=command.amount_due_date,
            created_at=timestamp.isoformat(),
        )
        data_manager.append_record(context.workbook, purchase)
        _invalidate_cache(context, SheetName.PURCHASES.value)
    log.info(
        "Recorded purchase '%s' (%s) for item '%s' (quantity=%s, cost=%s, status=%s)",
        purchase.purchase_id,
        purchase.reference_no,
        purchase.item_id,
        purchase.total_quantity,
        purchase.total_purchase_cost,
        purchase.financial_status,
    )
    return purchase


def record_sale(context: RuntimeContext, command: SaleCommand) -> SaleRow:
    """Validate and append a sale with its derived settlement fields.

    Stock is not checked: selling more than was purchased is recorded and
    shows up as negative stock.

    Raises:
        NotFoundError: If the customer or item is unknown.
        ValidationError: If the item is inactive, a quantity or amount is
            invalid, or the amount received exceeds the sale total.
    """
    with context._lock:
        get_customer(context, command.customer_id)
        item = _require_active_item(context, command.item_id)
        settlement = settle_sale(command.total_quantity, command.unit_price, command.amount_received)
        if settlement.paid > settlement.total:
            log.error("Sale receipt %s exceeds amount %s", settlement.paid, settlement.total)
            raise ValidationError("amount_received", "must not exceed total_sale_amount", settlement.paid)
        package_size, package_count = _validate_packages(command.package_size, command.package_count)

        timestamp = _resolve_timestamp(command.timestamp)
        sale = SaleRow(
            sale_id=generate_record_id(),
            reference_no=_unique_reference(context, SheetName.SALES, "SAL", timestamp),
            customer_id=command.customer_id,
            item_id=command.item_id,
            sale_date=_resolve_date(command.sale_date, timestamp),
            total_quantity=to_decimal(command.total_quantity),
            unit=command.unit or item.base_unit,
            unit_price=to_decimal(command.unit_price),
            total_sale_amount=settlement.total,
            package_size=package_size,
            package_count=package_count,
            amount_received=settlement.paid,
            remaining_amount=settlement.remaining,
            financial_status=settlement.status,
            amount_due_date=command.amount_due_date,
            created_at=timestamp.isoformat(),
        )
        data_manager.append_record(context.workbook, sale)
        _invalidate_cache(context, SheetName.SALES.value)
    log.info(
        "Recorded sale '%s' (%s) for item '%s' (quantity=%s, amount=%s, status=%s)",
        sale.sale_id,
        sale.reference_no,
        sale.item_id,
        sale.total_quantity,
        sale.total_sale_amount,
        sale.financial_status,
    )
    return sale


def _apply_settlement_payment(
    context: RuntimeContext,
    sheet: SheetName,
    record: Any,
    *,
    total: Decimal,
    paid_field: str,
    amount: Decimal,
    kind: SettlementKind,
) -> Any:
    """Recompute and conditionally write the settlement fields of ``record``.

    Must be called with the context lock held and a fresh cache.
    """
    current_paid = getattr(record, paid_field)
    result = apply_payment(total, current_paid, amount, kind)
    record_id = getattr(record, record.KEY)
    updated = data_manager.update_record(
        context.workbook,
        sheet,
        record_id,
        field_values={
            paid_field: result.paid,
            "remaining_amount": result.remaining,
            "financial_status": result.status,
        },
        expected={paid_field: current_paid},
    )
    if not updated:
        raise IntegrityError(paid_field, "changed while the payment was being applied", current_paid)
    return replace(
        record,
        **{paid_field: result.paid, "remaining_amount": result.remaining, "financial_status": result.status},
    )


def record_grocery_payment(context: RuntimeContext, command: GroceryPaymentCommand) -> GroceryPaymentRow:
    """Apply a payment to a purchase or sale and append it to the payment log.

    The referenced record's paid amount, remaining balance and status are
    recomputed through :func:`apply_payment` and written with a conditional
    update before the payment row is appended, all under the context lock.

    Args:
        context (RuntimeContext): Runtime context providing workbook access and
            caches.
        command (GroceryPaymentCommand): Payment intent.

    Returns:
        GroceryPaymentRow: Newly appended payment.

    Raises:
        ValidationError: If the amount is not positive or the reference type
            is unknown.
        NotFoundError: If the referenced purchase or sale does not exist.
        IntegrityError: If the amount exceeds the remaining balance or the
            record changed concurrently.
    """
    amount = require_positive_money(command.amount, "amount")
    reference_type = _coerce_enum(PaymentReferenceType, command.reference_type, "reference_type")
    mode = _coerce_enum(PaymentMode, command.mode, "mode")
    if reference_type == PaymentReferenceType.PURCHASE:
        sheet, paid_field, kind = SheetName.PURCHASES, "amount_paid", SettlementKind.PURCHASE
    else:
        sheet, paid_field, kind = SheetName.SALES, "amount_received", SettlementKind.SALE

    with context._lock:
        _invalidate_cache(context, sheet.value)
        record = _get_record(context, sheet, command.reference_id)
        total = record.total_purchase_cost if reference_type == PaymentReferenceType.PURCHASE else record.total_sale_amount
        updated = _apply_settlement_payment(
            context,
            sheet,
            record,
            total=total,
            paid_field=paid_field,
            amount=amount,
            kind=kind,
        )
        timestamp = _resolve_timestamp(command.timestamp)
        payment = GroceryPaymentRow(
            payment_id=generate_record_id(),
            reference_type=reference_type.value,
            reference_id=command.reference_id,
            amount=amount,
            payment_date=_resolve_date(command.payment_date, timestamp),
            mode=mode.value,
            notes=command.notes,
            created_at=timestamp.isoformat(),
        )
        data_manager.append_record(context.workbook, payment)
        _invalidate_cache(context, sheet.value, SheetName.GROCERY_PAYMENTS.value)
    log.info(
        "Recorded %s payment '%s' of %s against '%s' (remaining=%s, status=%s)",
        reference_type.value,
        payment.payment_id,
        amount,
        command.reference_id,
        updated.remaining_amount,
        updated.financial_status,
    )
    return payment


# --------------------------------------------------------------------------
# Rental ledger
# --------------------------------------------------------------------------


def list_rental_contracts(
    context: RuntimeContext,
    *,
    direction: Optional[RentalDirection] = None,
    operational_status: Optional[OperationalStatus] = None,
) -> List[RentalContractRow]:
    contracts = _records(context, SheetName.RENTAL_CONTRACTS)
    if direction is not None:
        contracts = [c for c in contracts if c.rental_direction == RentalDirection(direction).value]
    if operational_status is not None:
        contracts = [c for c in contracts if c.operational_status == OperationalStatus(operational_status).value]
    return contracts


def get_rental_contract(context: RuntimeContext, contract_id: str) -> RentalContractRow:
    return _get_record(context, SheetName.RENTAL_CONTRACTS, contract_id)


def list_rental_payments(context: RuntimeContext, *, contract_id: Optional[str] = None) -> List[RentalPaymentRow]:
    payments = _records(context, SheetName.RENTAL_PAYMENTS)
    if contract_id is None:
        return payments
    return [payment for payment in payments if payment.rental_contract_id == contract_id]


def list_pending_rental_contracts(context: RuntimeContext) -> List[RentalContractRow]:
    """Contracts with an unpaid balance, regardless of operational status."""
    return [contract for contract in list_rental_contracts(context) if contract.remaining_amount > ZERO]


def create_rental_contract(context: RuntimeContext, command: RentalContractCommand) -> RentalContractRow:
    """Open a rental contract and move its vehicle into the rented state.

    The contract bills the vehicle's rate basis (HOUR, DAY or MONTH) with the
    elapsed time rounded up to whole units, starts unpaid and ``ACTIVE``. The
    vehicle moves to ``RENTED_OUT`` (OUTGOING) or ``RENTED_IN`` (INCOMING)
    through a conditional update that requires it to still be ``AVAILABLE``.

    Args:
        context (RuntimeContext): Runtime context providing workbook access and
            caches.
        command (RentalContractCommand): Contract intent. OUTGOING contracts
            name a customer, INCOMING contracts an external owner.

    Returns:
        RentalContractRow: Newly appended contract.

    Raises:
        ValidationError: If the direction is unknown, the wrong party is
            given, the period is empty or reversed, or the rate is invalid.
        NotFoundError: If the vehicle, customer or owner is unknown.
        StatusTransitionError: If the vehicle already has an ACTIVE contract
            or is not AVAILABLE.
    """
    direction = _coerce_enum(RentalDirection, command.rental_direction, "rental_direction")
    if direction == RentalDirection.OUTGOING:
        if not command.customer_id or command.external_owner_id:
            raise ValidationError("customer_id", "OUTGOING contracts require a customer and no external owner", command.customer_id)
    elif not command.external_owner_id or command.customer_id:
        raise ValidationError("external_owner_id", "INCOMING contracts require an external owner and no customer", command.external_owner_id)

    with context._lock:
        _invalidate_cache(context, SheetName.VEHICLES.value, SheetName.RENTAL_CONTRACTS.value)
        vehicle = get_vehicle(context, command.vehicle_id)
        if direction == RentalDirection.OUTGOING:
            get_customer(context, command.customer_id)
        else:
            get_external_owner(context, command.external_owner_id)

        rate = command.rate if command.rate is not None else vehicle.base_rate
        settlement = settle_rental(
            command.rental_start_datetime,
            command.rental_end_datetime,
            rate,
            vehicle.rental_type,
        )

        active = [
            contract
            for contract in list_rental_contracts(context, operational_status=OperationalStatus.ACTIVE)
            if contract.vehicle_id == vehicle.vehicle_id
        ]
        target = start_rental_status(vehicle.vehicle_id, vehicle.current_status, direction)
        if active:
            log.warning(
                "Vehicle '%s' already has ACTIVE contract '%s'",
                vehicle.vehicle_id,
                active[0].contract_id,
            )
            raise StatusTransitionError("vehicle", vehicle.vehicle_id, vehicle.current_status, target.value)

        moved = data_manager.update_record(
            context.workbook,
            SheetName.VEHICLES,
            vehicle.vehicle_id,
            field_values={"current_status": target.value},
            expected={"current_status": VehicleStatus.AVAILABLE.value},
        )
        if not moved:
            raise StatusTransitionError("vehicle", vehicle.vehicle_id, vehicle.current_status, target.value)

        timestamp = _resolve_timestamp(command.timestamp)
        contract = RentalContractRow(
            contract_id=generate_record_id(),
            vehicle_id=vehicle.vehicle_id,
            rental_direction=direction.value,
            rental_type=vehicle.rental_type,
            customer_id=command.customer_id if direction == RentalDirection.OUTGOING else None,
            external_owner_id=command.external_owner_id if direction == RentalDirection.INCOMING else None,
            rental_start_datetime=command.rental_start_datetime,
            rental_end_datetime=command.rental_end_datetime,
            rate=to_decimal(rate),
            total_amount=settlement.total,
            amount_paid=settlement.paid,
            remaining_amount=settlement.remaining,
            financial_status=settlement.status,
            operational_status=OperationalStatus.ACTIVE.value,
            location=command.location or vehicle.current_location,
            notes=command.notes,
            created_at=timestamp.isoformat(),
        )
        data_manager.append_record(context.workbook, contract)
        _invalidate_cache(context, SheetName.VEHICLES.value, SheetName.RENTAL_CONTRACTS.value)
    log.info(
        "Created %s contract '%s' for vehicle '%s' (total=%s); vehicle now %s",
        direction.value,
        contract.contract_id,
        vehicle.vehicle_id,
        contract.total_amount,
        target.value,
    )
    return contract


def _close_rental_contract(context: RuntimeContext, contract_id: str, requested: OperationalStatus) -> RentalContractRow:
    with context._lock:
        _invalidate_cache(context, SheetName.VEHICLES.value, SheetName.RENTAL_CONTRACTS.value)
        contract = get_rental_contract(context, contract_id)
        target = transition_contract(contract_id, contract.operational_status, requested)
        vehicle = get_vehicle(context, contract.vehicle_id)

        closed = data_manager.update_record(
            context.workbook,
            SheetName.RENTAL_CONTRACTS,
            contract_id,
            field_values={"operational_status": target.value},
            expected={"operational_status": OperationalStatus.ACTIVE.value},
        )
        if not closed:
            raise StatusTransitionError("rental contract", contract_id, contract.operational_status, target.value)

        released = release_vehicle_status(vehicle.current_status)
        if released is not None and not data_manager.update_record(
            context.workbook,
            SheetName.VEHICLES,
            vehicle.vehicle_id,
            field_values={"current_status": released.value},
            expected={"current_status": vehicle.current_status},
        ):
            log.warning("Vehicle '%s' changed status while contract '%s' was closing", vehicle.vehicle_id, contract_id)
            released = None
        _invalidate_cache(context, SheetName.VEHICLES.value, SheetName.RENTAL_CONTRACTS.value)
    log.info(
        "Contract '%s' moved to %s; vehicle '%s' %s",
        contract_id,
        target.value,
        vehicle.vehicle_id,
        f"released to {released.value}" if released is not None else f"left {vehicle.current_status}",
    )
    return replace(contract, operational_status=target.value)


def complete_rental_contract(context: RuntimeContext, contract_id: str) -> RentalContractRow:
    """Mark an ACTIVE contract COMPLETED and release its vehicle.

    The vehicle returns to ``AVAILABLE`` when it is still rented; a vehicle an
    owner moved to MAINTENANCE or OFFLINE keeps that status.

    Raises:
        NotFoundError: If the contract or its vehicle is unknown.
        StatusTransitionError: If the contract is not ACTIVE.
    """
    return _close_rental_contract(context, contract_id, OperationalStatus.COMPLETED)


def cancel_rental_contract(context: RuntimeContext, contract_id: str) -> RentalContractRow:
    """Mark an ACTIVE contract CANCELLED and release its vehicle.

    The billed total and any payments are kept as recorded.
    """
    return _close_rental_contract(context, contract_id, OperationalStatus.CANCELLED)


def record_rental_payment(context: RuntimeContext, command: RentalPaymentCommand) -> RentalPaymentRow:
    """Apply a payment to a rental contract and append it to the payment log.

    Works the same way as :func:`record_grocery_payment`; payments are accepted
    whatever the contract's operational status as long as a balance remains.

    Raises:
        ValidationError: If the amount is not positive.
        NotFoundError: If the contract does not exist.
        IntegrityError: If the amount exceeds the remaining balance or the
            contract changed concurrently.
    """
    amount = require_positive_money(command.amount, "amount")
    mode = _coerce_enum(PaymentMode, command.mode, "mode")
    with context._lock:
        _invalidate_cache(context, SheetName.RENTAL_CONTRACTS.value)
        contract = get_rental_contract(context, command.rental_contract_id)
        updated = _apply_settlement_payment(
            context,
            SheetName.RENTAL_CONTRACTS,
            contract,
            total=contract.total_amount,
            paid_field="amount_paid",
            amount=amount,
            kind=SettlementKind.RENTAL,
        )
        timestamp = _resolve_timestamp(command.timestamp)
        payment = RentalPaymentRow(
            payment_id=generate_record_id(),
            rental_contract_id=command.rental_contract_id,
            amount=amount,
            payment_date=_resolve_date(command.payment_date, timestamp),
            mode=mode.value,
            notes=command.notes,
            created_at=timestamp.isoformat(),
        )
        data_manager.append_record(context.workbook, payment)
        _invalidate_cache(context, SheetName.RENTAL_CONTRACTS.value, SheetName.RENTAL_PAYMENTS.value)
    log.info(
        "Recorded rental payment '%s' of %s against '%s' (remaining=%s, status=%s)",
        payment.payment_id,
        amount,
        command.rental_contract_id,
        updated.remaining_amount,
        updated.financial_status,
    )
    return payment


# --------------------------------------------------------------------------
# Read views
# --------------------------------------------------------------------------


def _today(today: Optional[date]) -> date:
    return today if today is not None else _resolve_timestamp(None).date()


def display_names(context: RuntimeContext) -> Dict[str, str]:
    """Map every item, party and vehicle id to its display name."""
    names: Dict[str, str] = {}
    names.update({item.item_id: item.item_name for item in list_items(context, include_inactive=True)})
    names.update({supplier.supplier_id: supplier.supplier_name for supplier in list_suppliers(context)})
    names.update({customer.customer_id: customer.customer_name for customer in list_customers(context)})
    names.update({owner.owner_id: owner.owner_name for owner in list_external_owners(context)})
    names.update({vehicle.vehicle_id: vehicle.vehicle_name for vehicle in list_vehicles(context)})
    return names


def calculate_stock_levels(context: RuntimeContext, *, include_inactive: bool = False) -> List[stock.StockLine]:
    """Compute stock per item from the full purchase and sale history."""
    return stock.calculate_stock(
        list_items(context, include_inactive=True),
        list_purchases(context),
        list_sales(context),
        include_inactive=include_inactive,
    )


def grocery_dashboard(context: RuntimeContext, *, today: Optional[date] = None) -> aggregation.GroceryStats:
    return aggregation.grocery_stats(
        list_items(context, include_inactive=True),
        list_purchases(context),
        list_sales(context),
        _today(today),
    )


def rental_dashboard(context: RuntimeContext, *, today: Optional[date] = None) -> aggregation.RentalStats:
    return aggregation.rental_stats(list_vehicles(context), list_rental_payments(context), _today(today))


def dashboard_trends(
    context: RuntimeContext,
    *,
    today: Optional[date] = None,
    window_days: int = aggregation.DEFAULT_WINDOW_DAYS,
    limit: int = aggregation.DEFAULT_TOP_VEHICLES,
) -> aggregation.DashboardTrends:
    return aggregation.dashboard_trends(
        list_purchases(context),
        list_sales(context),
        list_vehicles(context),
        list_rental_contracts(context),
        list_rental_payments(context),
        _today(today),
        window_days=window_days,
        limit=limit,
    )


def build_transaction_report(context: RuntimeContext, start: date, end: date) -> reports.TransactionReport:
    """Unified purchases/sales/rentals report for an inclusive date window."""
    return reports.transaction_report(
        list_purchases(context),
        list_sales(context),
        list_rental_contracts(context),
        display_names(context),
        start,
        end,
    )


def build_profit_report(context: RuntimeContext, start: Optional[date] = None, end: Optional[date] = None) -> reports.ProfitReport:
    return reports.profit_by_date(list_purchases(context), list_sales(context), start, end)


def build_outstanding_payables(
    context: RuntimeContext,
    *,
    supplier_id: Optional[str] = None,
    today: Optional[date] = None,
) -> reports.OutstandingReport:
    if supplier_id is not None:
        get_supplier(context, supplier_id)
    return reports.outstanding_payables(list_purchases(context), display_names(context), supplier_id, _today(today))


def build_outstanding_receivables(
    context: RuntimeContext,
    *,
    customer_id: Optional[str] = None,
    today: Optional[date] = None,
) -> reports.OutstandingReport:
    if customer_id is not None:
        get_customer(context, customer_id)
    return reports.outstanding_receivables(list_sales(context), display_names(context), customer_id, _today(today))


def build_overdue_balances(context: RuntimeContext, *, today: Optional[date] = None) -> reports.OutstandingReport:
    return reports.overdue_balances(list_purchases(context), list_sales(context), display_names(context), _today(today))


def build_supplier_ledger(
    context: RuntimeContext,
    supplier_id: str,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> reports.LedgerReport:
    get_supplier(context, supplier_id)
    return reports.supplier_ledger(supplier_id, list_purchases(context), list_grocery_payments(context), start, end)


def build_customer_ledger(
    context: RuntimeContext,
    customer_id: str,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> reports.LedgerReport:
    get_customer(context, customer_id)
    return reports.customer_ledger(customer_id, list_sales(context), list_grocery_payments(context), start, end)


def build_rental_report(
    context: RuntimeContext,
    direction: RentalDirection,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> reports.RentalReport:
    return reports.rental_report(list_rental_contracts(context), direction, display_names(context), start, end)


def build_vehicle_utilization(
    context: RuntimeContext,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> tuple[reports.UtilizationRow, ...]:
    return reports.vehicle_utilization(list_vehicles(context), list_rental_contracts(context), start, end)


def build_rental_profit(context: RuntimeContext, start: Optional[date] = None, end: Optional[date] = None) -> reports.RentalProfit:
    return reports.rental_profit(list_rental_contracts(context), start, end)


def build_purchases_report(
    context: RuntimeContext,
    *,
    start: Optional[date] = None,
    end: Optional[date] = None,
    supplier_id: Optional[str] = None,
) -> reports.PurchaseReport:
    if supplier_id is not None:
        get_supplier(context, supplier_id)
    return reports.purchases_report(list_purchases(context), display_names(context), start, end, supplier_id)


def build_sales_report(
    context: RuntimeContext,
    *,
    start: Optional[date] = None,
    end: Optional[date] = None,
    customer_id: Optional[str] = None,
) -> reports.SaleReport:
    if customer_id is not None:
        get_customer(context, customer_id)
    return reports.sales_report(list_sales(context), display_names(context), start, end, customer_id)


def build_notifications(
    context: RuntimeContext,
    *,
    now: Optional[datetime] = None,
    limit: int = reports.NOTIFICATION_LIMIT,
) -> tuple[reports.Notification, ...]:
    """Recent activity and standing alerts across both ledgers, newest first."""
    return reports.notifications(
        list_purchases(context),
        list_sales(context),
        list_grocery_payments(context),
        list_rental_payments(context),
        list_rental_contracts(context),
        list_vehicles(context),
        display_names(context),
        _resolve_timestamp(now),
        currency=context.settings.currency,
        limit=limit,
    )


def persist_context(context: RuntimeContext) -> None:
    """Persist any in-memory workbook changes to disk.

    Saves always target :attr:`RuntimeContext.settings.data_file`. In-memory
    caches remain valid because the workbook handle is unchanged.
    """
    with context._lock:
        data_manager.save_workbook(
            context.workbook,
            destination=context.settings.data_file,
        )
    log.info("Persisted workbook '%s'", context.settings.data_file)


def refresh_context(context: RuntimeContext) -> RuntimeContext:
    """Reload the workbook to discard unsaved modifications.

    Returns:
        RuntimeContext: Fresh context containing a newly opened workbook and
            an empty cache.

    Raises:
        FileNotFoundError: If the backing workbook cannot be reloaded.
    """
    workbook = data_manager.refresh_workbook(context.settings.data_file)
    log.info("Reloaded workbook '%s'", context.settings.data_file)
    return RuntimeContext(settings=context.settings, workbook=workbook)


__all__ = [
    "RuntimeContext",
    "ItemCommand",
    "SupplierCommand",
    "CustomerCommand",
    "ExternalOwnerCommand",
    "VehicleCommand",
    "PurchaseCommand",
    "SaleCommand",
    "GroceryPaymentCommand",
    "RentalContractCommand",
    "RentalPaymentCommand",
    "load_runtime_context",
    "ensure_schema_version",
    "generate_record_id",
    "generate_reference",
    "find_business",
    "register_business",
    "list_items",
    "get_item",
    "add_item",
    "set_item_active",
    "deactivate_item",
    "list_suppliers",
    "get_supplier",
    "add_supplier",
    "list_customers",
    "get_customer",
    "add_customer",
    "list_external_owners",
    "get_external_owner",
    "add_external_owner",
    "list_vehicles",
    "get_vehicle",
    "add_vehicle",
    "set_vehicle_status",
    "list_purchases",
    "get_purchase",
    "list_sales",
    "get_sale",
    "list_grocery_payments",
    "list_pending_purchases",
    "list_pending_sales",
    "record_purchase",
    "record_sale",
    "record_grocery_payment",
    "list_rental_contracts",
    "get_rental_contract",
    "list_rental_payments",
    "list_pending_rental_contracts",
    "create_rental_contract",
    "complete_rental_contract",
    "cancel_rental_contract",
    "record_rental_payment",
    "display_names",
    "calculate_stock_levels",
    "grocery_dashboard",
    "rental_dashboard",
    "dashboard_trends",
    "build_transaction_report",
    "build_profit_report",
    "build_outstanding_payables",
    "build_outstanding_receivables",
    "build_overdue_balances",
    "build_supplier_ledger",
    "build_customer_ledger",
    "build_rental_report",
    "build_vehicle_utilization",
    "build_rental_profit",
    "build_purchases_report",
    "build_sales_report",
    "build_notifications",
    "persist_context",
    "refresh_context",
]
