"""Command-line entry points for the Umugwaneza ERP toolkit.

All orchestration in this module is limited to argparse wiring, translating
command-line arguments into the command objects consumed by the business
layer, and printing read views as plain-text tables. Keeping the CLI thin
ensures the same parser configuration can be reused by tests, scripts, or any
alternative front-end that wants to expose the package capabilities.
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Mapping, MutableMapping, Optional, Sequence

from . import core_logic, log, reports, set_console_level
from .constants import (
    CustomerSegment,
    MeasurementType,
    OwnershipType,
    PaymentMode,
    PaymentReferenceType,
    RentalDirection,
    RentalType,
    VehicleStatus,
    VehicleType,
)
from .errors import BusinessRuleViolation
from .money import format_currency, format_quantity
from .seed import ensure_seed_data
from .status import display_status, utc_today


@dataclass(frozen=True)
class CommandSpec:
    """Describe how a CLI sub-command is configured and executed.

    ``mutates`` marks commands whose successful run must persist the workbook.
    """

    name: str
    help_text: str
    register: Callable[[argparse._SubParsersAction[argparse.ArgumentParser]], argparse.ArgumentParser]
    execute: Callable[[core_logic.RuntimeContext, argparse.Namespace], int]
    mutates: bool = True


def build_parser() -> argparse.ArgumentParser:
    """Construct the top-level CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="umugwaneza-cli",
        description="Command-line tools for the Umugwaneza ERP workbook.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional path to config.ini (searched upwards from the working directory by default).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Echo informational log records to stderr.",
    )
    return parser


def configure_subcommands(
    parser: argparse.ArgumentParser,
) -> Mapping[str, CommandSpec]:
    """Wire all CLI sub-commands onto the supplied parser."""
    subparsers = parser.add_subparsers(dest="command", required=True, title="commands")
    write_specs = register_write_commands(subparsers)
    read_specs = register_read_commands(subparsers)
    return build_command_table([*write_specs.values(), *read_specs.values()])


def _simple_spec(
    name: str,
    help_text: str,
    execute: Callable[[core_logic.RuntimeContext, argparse.Namespace], int],
    arguments: Callable[[argparse.ArgumentParser], None],
    *,
    mutates: bool,
) -> CommandSpec:
    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        arguments(parser)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=execute, mutates=mutates)


def _no_arguments(parser: argparse.ArgumentParser) -> None:
    return None


def _choices(enum_type) -> list[str]:
    return [member.value for member in enum_type]


def register_write_commands(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> Dict[str, CommandSpec]:
    """Declare mutating CLI commands such as purchases and rentals."""
    specs = {
        "add-item": register_add_item_command(subparsers),
        "deactivate-item": register_deactivate_item_command(subparsers),
        "add-supplier": register_add_supplier_command(subparsers),
        "add-customer": register_add_customer_command(subparsers),
        "add-owner": register_add_owner_command(subparsers),
        "add-vehicle": register_add_vehicle_command(subparsers),
        "vehicle-status": register_vehicle_status_command(subparsers),
        "purchase": register_purchase_command(subparsers),
        "sale": register_sale_command(subparsers),
        "pay": register_pay_command(subparsers),
        "rent": register_rent_command(subparsers),
        "complete-rental": register_complete_rental_command(subparsers),
        "cancel-rental": register_cancel_rental_command(subparsers),
        "pay-rental": register_pay_rental_command(subparsers),
        "seed": register_seed_command(subparsers),
    }
    for spec in specs.values():
        spec.register(subparsers)
    return specs


def register_read_commands(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> Dict[str, CommandSpec]:
    """Declare read-only CLI commands such as dashboards and reports."""
    specs = {
        "stock": register_stock_command(subparsers),
        "dashboard": register_dashboard_command(subparsers),
        "trends": register_trends_command(subparsers),
        "payables": register_payables_command(subparsers),
        "receivables": register_receivables_command(subparsers),
        "overdue": register_overdue_command(subparsers),
        "report": register_report_command(subparsers),
        "profit": register_profit_command(subparsers),
        "ledger": register_ledger_command(subparsers),
        "rentals": register_rentals_command(subparsers),
        "utilization": register_utilization_command(subparsers),
        "rental-profit": register_rental_profit_command(subparsers),
        "purchases": register_purchases_command(subparsers),
        "sales": register_sales_command(subparsers),
        "notifications": register_notifications_command(subparsers),
    }
    for spec in specs.values():
        spec.register(subparsers)
    return specs


def register_add_item_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``add-item``."""

    def arguments(parser: argparse.ArgumentParser) -> None:
        parser.add_argument("--item-name", required=True)
        parser.add_argument("--measurement-type", choices=_choices(MeasurementType), required=True)
        parser.add_argument("--inactive", action="store_true", help="Mark the item as inactive on creation.")

    return _simple_spec("add-item", "Register a new stock item.", run_add_item, arguments, mutates=True)


def register_deactivate_item_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``deactivate-item``."""

    def arguments(parser: argparse.ArgumentParser) -> None:
        parser.add_argument("--item-id", required=True)

    return _simple_spec("deactivate-item", "Soft-disable an item.", run_deactivate_item, arguments, mutates=True)


def _party_arguments(prefix: str) -> Callable[[argparse.ArgumentParser], None]:
    def arguments(parser: argparse.ArgumentParser) -> None:
        parser.add_argument(f"--{prefix}-name", required=True)
        parser.add_argument("--phone", default=None)
        parser.add_argument("--address", default=None)
        parser.add_argument("--notes", default=None)

    return arguments


def register_add_supplier_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``add-supplier``."""
    return _simple_spec("add-supplier", "Register a new supplier.", run_add_supplier, _party_arguments("supplier"), mutates=True)


def register_add_customer_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``add-customer``."""
    party_arguments = _party_arguments("customer")

    def arguments(parser: argparse.ArgumentParser) -> None:
        party_arguments(parser)
        parser.add_argument(
            "--segment",
            choices=_choices(CustomerSegment),
            default=CustomerSegment.GROCERY.value,
        )

    return _simple_spec("add-customer", "Register a new customer.", run_add_customer, arguments, mutates=True)


def register_add_owner_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``add-owner``."""
    return _simple_spec(
        "add-owner",
        "Register an external asset owner.",
        run_add_owner,
        _party_arguments("owner"),
        mutates=True,
    )


def register_add_vehicle_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``add-vehicle``."""

    def arguments(parser: argparse.ArgumentParser) -> None:
        parser.add_argument("--vehicle-name", required=True)
        parser.add_argument("--vehicle-type", choices=_choices(VehicleType), required=True)
        parser.add_argument("--rental-type", choices=_choices(RentalType), required=True)
        parser.add_argument("--base-rate", required=True)
        parser.add_argument("--ownership-type", choices=_choices(OwnershipType), default=OwnershipType.OWN.value)
        parser.add_argument("--location", default=None)
        parser.add_argument("--notes", default=None)

    return _simple_spec("add-vehicle", "Add a truck or machine to the fleet.", run_add_vehicle, arguments, mutates=True)


def register_vehicle_status_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``vehicle-status``."""

    def arguments(parser: argparse.ArgumentParser) -> None:
        parser.add_argument("--vehicle-id", required=True)
        parser.add_argument(
            "--status",
            choices=[VehicleStatus.AVAILABLE.value, VehicleStatus.MAINTENANCE.value, VehicleStatus.OFFLINE.value],
            required=True,
        )

    return _simple_spec(
        "vehicle-status",
        "Move a vehicle between AVAILABLE, MAINTENANCE and OFFLINE.",
        run_vehicle_status,
        arguments,
        mutates=True,
    )


def _trade_arguments(party: str, paid_flag: str) -> Callable[[argparse.ArgumentParser], None]:
    def arguments(parser: argparse.ArgumentParser) -> None:
        parser.add_argument(f"--{party}-id", required=True)
        parser.add_argument("--item-id", required=True)
        parser.add_argument("--quantity", required=True)
        parser.add_argument("--unit-price", required=True)
        parser.add_argument(f"--{paid_flag}", default="0")
        parser.add_argument("--date", default=None, help="ISO date (defaults to today).")
        parser.add_argument("--unit", default=None)
        parser.add_argument("--package-size", default=None)
        parser.add_argument("--package-count", default=None)
        parser.add_argument("--due-date", default=None, help="ISO date the balance falls due.")

    return arguments


def register_purchase_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``purchase``."""
    return _simple_spec(
        "purchase",
        "Record stock bought from a supplier.",
        run_purchase,
        _trade_arguments("supplier", "amount-paid"),
        mutates=True,
    )


def register_sale_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``sale``."""
    return _simple_spec(
        "sale",
        "Record stock sold to a customer.",
        run_sale,
        _trade_arguments("customer", "amount-received"),
        mutates=True,
    )


def _payment_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--amount", required=True)
    parser.add_argument("--date", default=None, help="ISO date (defaults to today).")
    parser.add_argument("--mode", choices=_choices(PaymentMode), default=PaymentMode.CASH.value)
    parser.add_argument("--notes", default=None)


def register_pay_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``pay``."""

    def arguments(parser: argparse.ArgumentParser) -> None:
        parser.add_argument("--reference-type", choices=_choices(PaymentReferenceType), required=True)
        parser.add_argument("--reference-id", required=True)
        _payment_arguments(parser)

    return _simple_spec("pay", "Pay a purchase or receive money for a sale.", run_pay, arguments, mutates=True)


def register_rent_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``rent``."""

    def arguments(parser: argparse.ArgumentParser) -> None:
        parser.add_argument("--vehicle-id", required=True)
        parser.add_argument("--direction", choices=_choices(RentalDirection), required=True)
        parser.add_argument("--start", required=True, help="ISO datetime the rental starts.")
        parser.add_argument("--end", required=True, help="ISO datetime the rental ends.")
        parser.add_argument("--customer-id", default=None)
        parser.add_argument("--owner-id", default=None)
        parser.add_argument("--rate", default=None, help="Defaults to the vehicle's base rate.")
        parser.add_argument("--location", default=None)
        parser.add_argument("--notes", default=None)

    return _simple_spec("rent", "Open a rental contract.", run_rent, arguments, mutates=True)


def _contract_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--contract-id", required=True)


def register_complete_rental_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``complete-rental``."""
    return _simple_spec(
        "complete-rental",
        "Complete an active rental contract.",
        run_complete_rental,
        _contract_arguments,
        mutates=True,
    )


def register_cancel_rental_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``cancel-rental``."""
    return _simple_spec(
        "cancel-rental",
        "Cancel an active rental contract.",
        run_cancel_rental,
        _contract_arguments,
        mutates=True,
    )


def register_pay_rental_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``pay-rental``."""

    def arguments(parser: argparse.ArgumentParser) -> None:
        _contract_arguments(parser)
        _payment_arguments(parser)

    return _simple_spec("pay-rental", "Record a payment against a rental contract.", run_pay_rental, arguments, mutates=True)


def register_seed_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``seed``."""
    return _simple_spec("seed", "Populate an empty workbook with sample data.", run_seed, _no_arguments, mutates=True)


def _as_of_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--as-of", default=None, help="ISO date to evaluate against (defaults to today).")


def _period_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--start", default=None, help="ISO start date (inclusive).")
    parser.add_argument("--end", default=None, help="ISO end date (inclusive).")


def register_stock_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``stock``."""

    def arguments(parser: argparse.ArgumentParser) -> None:
        parser.add_argument("--include-inactive", action="store_true")

    return _simple_spec("stock", "Display current stock levels.", run_stock_report, arguments, mutates=False)


def register_dashboard_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``dashboard``."""
    return _simple_spec("dashboard", "Display grocery and fleet KPIs.", run_dashboard, _as_of_arguments, mutates=False)


def register_trends_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``trends``."""

    def arguments(parser: argparse.ArgumentParser) -> None:
        _as_of_arguments(parser)
        parser.add_argument("--days", type=int, default=30)

    return _simple_spec("trends", "Display daily trends and top vehicles.", run_trends, arguments, mutates=False)


def register_payables_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``payables``."""

    def arguments(parser: argparse.ArgumentParser) -> None:
        parser.add_argument("--supplier-id", default=None)
        _as_of_arguments(parser)

    return _simple_spec("payables", "Display open balances owed to suppliers.", run_payables, arguments, mutates=False)


def register_receivables_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``receivables``."""

    def arguments(parser: argparse.ArgumentParser) -> None:
        parser.add_argument("--customer-id", default=None)
        _as_of_arguments(parser)

    return _simple_spec("receivables", "Display open balances due from customers.", run_receivables, arguments, mutates=False)


def register_overdue_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``overdue``."""
    return _simple_spec("overdue", "Display balances past their due date.", run_overdue, _as_of_arguments, mutates=False)


def register_report_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``report``."""

    def arguments(parser: argparse.ArgumentParser) -> None:
        parser.add_argument("period", choices=["daily", "monthly", "custom"])
        parser.add_argument("--date", default=None, help="Day for daily reports (ISO, defaults to today).")
        parser.add_argument("--month", default=None, help="YYYY-MM for monthly reports (defaults to this month).")
        _period_arguments(parser)

    return _simple_spec("report", "Display the unified transaction report.", run_transaction_report, arguments, mutates=False)


def register_profit_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``profit``."""
    return _simple_spec("profit", "Display grocery profit per day.", run_profit_report, _period_arguments, mutates=False)


def register_ledger_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``ledger``."""

    def arguments(parser: argparse.ArgumentParser) -> None:
        party = parser.add_mutually_exclusive_group(required=True)
        party.add_argument("--supplier-id", default=None)
        party.add_argument("--customer-id", default=None)
        _period_arguments(parser)

    return _simple_spec("ledger", "Display a supplier or customer ledger.", run_ledger, arguments, mutates=False)


def register_rentals_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``rentals``."""

    def arguments(parser: argparse.ArgumentParser) -> None:
        parser.add_argument("--direction", choices=_choices(RentalDirection), default=RentalDirection.OUTGOING.value)
        _period_arguments(parser)

    return _simple_spec("rentals", "Display rental contracts in one direction.", run_rentals, arguments, mutates=False)


def register_utilization_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``utilization``."""
    return _simple_spec("utilization", "Display per-vehicle utilization.", run_utilization, _period_arguments, mutates=False)


def register_rental_profit_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``rental-profit``."""
    return _simple_spec(
        "rental-profit",
        "Display rental revenue against rental cost.",
        run_rental_profit,
        _period_arguments,
        mutates=False,
    )


def register_purchases_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``purchases``."""

    def arguments(parser: argparse.ArgumentParser) -> None:
        parser.add_argument("--supplier-id", default=None)
        _period_arguments(parser)

    return _simple_spec("purchases", "Display purchases with paid and outstanding totals.", run_purchases_report, arguments, mutates=False)


def register_sales_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``sales``."""

    def arguments(parser: argparse.ArgumentParser) -> None:
        parser.add_argument("--customer-id", default=None)
        _period_arguments(parser)

    return _simple_spec("sales", "Display sales with received and outstanding totals.", run_sales_report, arguments, mutates=False)


def register_notifications_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``notifications``."""

    def arguments(parser: argparse.ArgumentParser) -> None:
        parser.add_argument("--limit", type=int, default=reports.NOTIFICATION_LIMIT)

    return _simple_spec("notifications", "Display recent activity and alerts.", run_notifications, arguments, mutates=False)


def load_runtime_context(config_path: Optional[Path] = None) -> core_logic.RuntimeContext:
    """Resolve the runtime context for CLI operations and validate its schema."""
    context = core_logic.load_runtime_context(Path(config_path) if config_path is not None else None)
    core_logic.ensure_schema_version(context)
    return context


def dispatch_command(
    context: core_logic.RuntimeContext,
    args: argparse.Namespace,
    command_table: Mapping[str, CommandSpec],
) -> int:
    """Dispatch the parsed arguments to the configured executor."""
    if not hasattr(args, "command") or args.command is None:
        raise KeyError("No command specified")
    spec = command_table.get(args.command)
    if spec is None:
        raise KeyError(f"Unknown command: {args.command}")
    return spec.execute(context, args)


def build_command_table(
    specs: Iterable[CommandSpec],
) -> MutableMapping[str, CommandSpec]:
    """Build an index of command specifications keyed by command name."""
    table: Dict[str, CommandSpec] = {}
    for spec in specs:
        if spec.name in table:
            raise ValueError(f"Duplicate command name: {spec.name}")
        table[spec.name] = spec
    return table


def _decimal(raw: Optional[str]) -> Optional[Decimal]:
    return Decimal(raw) if raw is not None else None


def _date(raw: Optional[str]) -> Optional[date]:
    return date.fromisoformat(raw) if raw else None


def translate_purchase(args: argparse.Namespace) -> core_logic.PurchaseCommand:
    """Translate CLI args into a purchase command object."""
    return core_logic.PurchaseCommand(
        supplier_id=args.supplier_id,
        item_id=args.item_id,
        total_quantity=Decimal(args.quantity),
        unit_price=Decimal(args.unit_price),
        amount_paid=Decimal(args.amount_paid),
        purchase_date=_date(args.date),
        unit=args.unit,
        package_size=_decimal(args.package_size),
        package_count=_decimal(args.package_count),
        amount_due_date=_date(args.due_date),
    )


def translate_sale(args: argparse.Namespace) -> core_logic.SaleCommand:
    """Translate CLI args into a sale command object."""
    return core_logic.SaleCommand(
        customer_id=args.customer_id,
        item_id=args.item_id,
        total_quantity=Decimal(args.quantity),
        unit_price=Decimal(args.unit_price),
        amount_received=Decimal(args.amount_received),
        sale_date=_date(args.date),
        unit=args.unit,
        package_size=_decimal(args.package_size),
        package_count=_decimal(args.package_count),
        amount_due_date=_date(args.due_date),
    )


def translate_pay(args: argparse.Namespace) -> core_logic.GroceryPaymentCommand:
    """Translate CLI args into a grocery payment command object."""
    return core_logic.GroceryPaymentCommand(
        reference_type=PaymentReferenceType(args.reference_type),
        reference_id=args.reference_id,
        amount=Decimal(args.amount),
        payment_date=_date(args.date),
        mode=PaymentMode(args.mode),
        notes=args.notes,
    )


def translate_rent(args: argparse.Namespace) -> core_logic.RentalContractCommand:
    """Translate CLI args into a rental contract command object."""
    return core_logic.RentalContractCommand(
        vehicle_id=args.vehicle_id,
        rental_direction=RentalDirection(args.direction),
        rental_start_datetime=datetime.fromisoformat(args.start),
        rental_end_datetime=datetime.fromisoformat(args.end),
        customer_id=args.customer_id,
        external_owner_id=args.owner_id,
        rate=_decimal(args.rate),
        location=args.location,
        notes=args.notes,
    )


def translate_pay_rental(args: argparse.Namespace) -> core_logic.RentalPaymentCommand:
    """Translate CLI args into a rental payment command object."""
    return core_logic.RentalPaymentCommand(
        rental_contract_id=args.contract_id,
        amount=Decimal(args.amount),
        payment_date=_date(args.date),
        mode=PaymentMode(args.mode),
        notes=args.notes,
    )


def run_add_item(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    item = core_logic.add_item(
        context,
        core_logic.ItemCommand(
            item_name=args.item_name,
            measurement_type=MeasurementType(args.measurement_type),
            is_active=not getattr(args, "inactive", False),
        ),
    )
    print(f"Added item {item.item_id} ({item.item_name}, {item.base_unit})")
    return 0


def run_deactivate_item(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    item = core_logic.deactivate_item(context, args.item_id)
    print(f"Deactivated item {item.item_id} ({item.item_name})")
    return 0


def run_add_supplier(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    supplier = core_logic.add_supplier(
        context,
        core_logic.SupplierCommand(
            supplier_name=args.supplier_name,
            phone=args.phone,
            address=args.address,
            notes=args.notes,
        ),
    )
    print(f"Added supplier {supplier.supplier_id} ({supplier.supplier_name})")
    return 0


def run_add_customer(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    customer = core_logic.add_customer(
        context,
        core_logic.CustomerCommand(
            customer_name=args.customer_name,
            phone=args.phone,
            address=args.address,
            notes=args.notes,
            segment=CustomerSegment(args.segment),
        ),
    )
    print(f"Added customer {customer.customer_id} ({customer.customer_name})")
    return 0


def run_add_owner(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    owner = core_logic.add_external_owner(
        context,
        core_logic.ExternalOwnerCommand(
            owner_name=args.owner_name,
            phone=args.phone,
            address=args.address,
            notes=args.notes,
        ),
    )
    print(f"Added external owner {owner.owner_id} ({owner.owner_name})")
    return 0


def run_add_vehicle(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    vehicle = core_logic.add_vehicle(
        context,
        core_logic.VehicleCommand(
            vehicle_name=args.vehicle_name,
            vehicle_type=VehicleType(args.vehicle_type),
            rental_type=RentalType(args.rental_type),
            base_rate=Decimal(args.base_rate),
            ownership_type=OwnershipType(args.ownership_type),
            current_location=args.location,
            notes=args.notes,
        ),
    )
    print(f"Added vehicle {vehicle.vehicle_id} ({vehicle.vehicle_name})")
    return 0


def run_vehicle_status(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    vehicle = core_logic.set_vehicle_status(context, args.vehicle_id, VehicleStatus(args.status))
    print(f"Vehicle {vehicle.vehicle_name} is now {vehicle.current_status}")
    return 0


def run_purchase(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the purchase workflow via the BLL."""
    purchase = core_logic.record_purchase(context, translate_purchase(args))
    print(
        f"Recorded purchase {purchase.reference_no}: total "
        f"{_money(context, purchase.total_purchase_cost)}, remaining "
        f"{_money(context, purchase.remaining_amount)} ({purchase.financial_status})"
    )
    return 0


def run_sale(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the sale workflow via the BLL."""
    sale = core_logic.record_sale(context, translate_sale(args))
    print(
        f"Recorded sale {sale.reference_no}: total "
        f"{_money(context, sale.total_sale_amount)}, remaining "
        f"{_money(context, sale.remaining_amount)} ({sale.financial_status})"
    )
    return 0


def run_pay(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the grocery payment workflow via the BLL."""
    payment = core_logic.record_grocery_payment(context, translate_pay(args))
    print(f"Recorded payment {payment.payment_id} of {_money(context, payment.amount)}")
    return 0


def run_rent(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the rental contract workflow via the BLL."""
    contract = core_logic.create_rental_contract(context, translate_rent(args))
    print(
        f"Created contract {contract.display_reference} ({contract.contract_id}): "
        f"total {_money(context, contract.total_amount)}"
    )
    return 0


def run_complete_rental(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    contract = core_logic.complete_rental_contract(context, args.contract_id)
    print(f"Contract {contract.display_reference} is {contract.operational_status}")
    return 0


def run_cancel_rental(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    contract = core_logic.cancel_rental_contract(context, args.contract_id)
    print(f"Contract {contract.display_reference} is {contract.operational_status}")
    return 0


def run_pay_rental(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the rental payment workflow via the BLL."""
    payment = core_logic.record_rental_payment(context, translate_pay_rental(args))
    print(f"Recorded rental payment {payment.payment_id} of {_money(context, payment.amount)}")
    return 0


def run_seed(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    if ensure_seed_data(context):
        print(f"Seeded sample data for {context.settings.business_name}")
    else:
        print("Workbook already seeded; nothing written")
    return 0


def _money(context: core_logic.RuntimeContext, amount: Any) -> str:
    return format_currency(amount, context.settings.currency, context.settings.locale)


def _qty(context: core_logic.RuntimeContext, quantity: Any) -> str:
    return format_quantity(quantity, context.settings.locale) if quantity is not None else "-"


def render_table(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    """Render rows as a left-aligned plain-text table."""
    body = [[str(cell) for cell in row] for row in rows]
    widths = [len(header) for header in headers]
    for row in body:
        for index, cell in enumerate(row):
            widths[index] = max(widths[index], len(cell))
    lines = [
        "  ".join(header.ljust(width) for header, width in zip(headers, widths)),
        "  ".join("-" * width for width in widths),
    ]
    lines.extend("  ".join(cell.ljust(width) for cell, width in zip(row, widths)) for row in body)
    return "\n".join(lines)


def run_stock_report(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the stock reporting workflow."""
    lines = core_logic.calculate_stock_levels(context, include_inactive=getattr(args, "include_inactive", False))
    print(
        render_table(
            ["Item", "Unit", "Purchased", "Sold", "Stock", "Packages"],
            [
                (
                    line.item_name,
                    line.base_unit,
                    _qty(context, line.total_purchased),
                    _qty(context, line.total_sold),
                    _qty(context, line.current_stock),
                    ", ".join(f"{count} x {size}" for size, count in line.whole_packages.items()),
                )
                for line in lines
            ],
        )
    )
    return 0


def run_dashboard(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    today = _date(args.as_of)
    grocery = core_logic.grocery_dashboard(context, today=today)
    fleet = core_logic.rental_dashboard(context, today=today)
    print(
        render_table(
            ["Metric", "Value"],
            [
                ("Total stock", _qty(context, grocery.total_stock)),
                ("Today's sales", _money(context, grocery.today_sales)),
                ("Monthly sales", _money(context, grocery.monthly_sales)),
                ("Monthly profit", _money(context, grocery.monthly_profit)),
                ("Payables", _money(context, grocery.payables)),
                ("Receivables", _money(context, grocery.receivables)),
                ("Fleet size", fleet.total),
                ("Available", fleet.available),
                ("Rented out", fleet.rented_out),
                ("Rented in", fleet.rented_in),
                ("Maintenance", fleet.maintenance),
                ("Offline", fleet.offline),
                ("Today's rental revenue", _money(context, fleet.today_revenue)),
                ("Monthly rental revenue", _money(context, fleet.month_revenue)),
                ("Utilization", f"{fleet.utilization}%"),
            ],
        )
    )
    return 0


def run_trends(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    trends = core_logic.dashboard_trends(context, today=_date(args.as_of), window_days=args.days)
    rental_by_day = {point.date: point.revenue for point in trends.rental_daily}
    print(
        render_table(
            ["Date", "Sales", "Purchases", "Profit", "Rental revenue"],
            [
                (
                    point.date.isoformat(),
                    _money(context, point.sales),
                    _money(context, point.purchases),
                    _money(context, point.profit),
                    _money(context, rental_by_day.get(point.date, 0)),
                )
                for point in trends.grocery_daily
            ],
        )
    )
    print()
    print(
        render_table(
            ["Vehicle", "Revenue", "Contracts"],
            [(row.vehicle_name, _money(context, row.revenue), row.contract_count) for row in trends.top_vehicles],
        )
    )
    return 0


def _print_outstanding(context: core_logic.RuntimeContext, report: reports.OutstandingReport) -> None:
    print(
        render_table(
            ["Date", "Type", "Reference", "Party", "Item", "Total", "Settled", "Remaining", "Status"],
            [
                (
                    row.date.isoformat(),
                    row.type,
                    row.reference,
                    row.party,
                    row.item,
                    _money(context, row.total),
                    _money(context, row.settled),
                    _money(context, row.remaining),
                    row.status,
                )
                for row in report.rows
            ],
        )
    )
    print(f"\nTotal outstanding: {_money(context, report.total_outstanding)}")


def run_payables(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    today = _date(args.as_of)
    report = core_logic.build_outstanding_payables(context, supplier_id=args.supplier_id, today=today)
    _print_outstanding(context, report)
    return 0


def run_receivables(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    today = _date(args.as_of)
    report = core_logic.build_outstanding_receivables(context, customer_id=args.customer_id, today=today)
    _print_outstanding(context, report)
    return 0


def run_overdue(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    today = _date(args.as_of)
    report = core_logic.build_overdue_balances(context, today=today)
    _print_outstanding(context, report)
    return 0


def resolve_report_window(args: argparse.Namespace, today: Optional[date] = None) -> tuple[date, date]:
    """Turn ``report`` arguments into an inclusive date window."""
    today = today or utc_today()
    if args.period == "daily":
        return reports.daily_window(_date(args.date) or today)
    if args.period == "monthly":
        if args.month:
            year, month = (int(part) for part in args.month.split("-", 1))
        else:
            year, month = today.year, today.month
        return reports.monthly_window(year, month)
    if not args.start or not args.end:
        raise KeyError("Custom reports require --start and --end")
    return reports.custom_window(_date(args.start), _date(args.end))


def run_transaction_report(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    start, end = resolve_report_window(args)
    report = core_logic.build_transaction_report(context, start, end)
    print(f"Transactions {report.start.isoformat()} to {report.end.isoformat()}\n")
    print(
        render_table(
            ["Date", "Type", "Reference", "Party", "Item/Vehicle", "Qty", "Total", "Paid", "Remaining", "Status"],
            [
                (
                    row.date.isoformat(),
                    row.type,
                    row.reference,
                    row.party,
                    row.item_vehicle,
                    _qty(context, row.quantity),
                    _money(context, row.total),
                    _money(context, row.paid),
                    _money(context, row.remaining),
                    row.status,
                )
                for row in report.rows
            ],
        )
    )
    summary = report.summary
    print()
    print(
        render_table(
            ["Summary", "Amount"],
            [
                ("Purchases", _money(context, summary.total_purchase)),
                ("Sales", _money(context, summary.total_sales)),
                ("Rental revenue", _money(context, summary.total_rental_revenue)),
                ("Rental cost", _money(context, summary.total_rental_cost)),
                ("Paid", _money(context, summary.total_paid)),
                ("Received", _money(context, summary.total_received)),
                ("Outstanding payables", _money(context, summary.total_outstanding_payables)),
                ("Outstanding receivables", _money(context, summary.total_outstanding_receivables)),
                ("Net profit", _money(context, summary.net_profit)),
            ],
        )
    )
    return 0


def run_profit_report(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the profit reporting workflow."""
    report = core_logic.build_profit_report(context, _date(args.start), _date(args.end))
    rows = [
        (row.date.isoformat(), _money(context, row.total_sales), _money(context, row.total_purchases), _money(context, row.profit))
        for row in report.rows
    ]
    rows.append(
        (
            "TOTAL",
            _money(context, report.grand_total_sales),
            _money(context, report.grand_total_purchases),
            _money(context, report.net_profit),
        )
    )
    print(render_table(["Date", "Sales", "Purchases", "Profit"], rows))
    return 0


def run_ledger(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    start, end = _date(args.start), _date(args.end)
    if args.supplier_id:
        ledger = core_logic.build_supplier_ledger(context, args.supplier_id, start, end)
    else:
        ledger = core_logic.build_customer_ledger(context, args.customer_id, start, end)
    print(
        render_table(
            ["Date", "Reference", "Charge", "Payment", "Balance"],
            [
                (
                    row.date.isoformat(),
                    row.reference,
                    _money(context, row.charge),
                    _money(context, row.payment),
                    _money(context, row.balance),
                )
                for row in ledger.rows
            ],
        )
    )
    print(f"\nBalance: {_money(context, ledger.final_balance)}")
    return 0


def run_rentals(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    report = core_logic.build_rental_report(context, RentalDirection(args.direction), _date(args.start), _date(args.end))
    today = utc_today()
    print(
        render_table(
            ["Reference", "Party", "Vehicle", "Start", "End", "Total", "Paid", "Remaining", "Status", "State"],
            [
                (
                    row.reference,
                    row.party,
                    row.vehicle,
                    row.start.isoformat(),
                    row.end.isoformat(),
                    _money(context, row.total),
                    _money(context, row.paid),
                    _money(context, row.remaining),
                    display_status(row.remaining, None, row.status, today),
                    row.operational_status,
                )
                for row in report.rows
            ],
        )
    )
    print(
        f"\nTotal {_money(context, report.total_amount)}, paid {_money(context, report.total_paid)}, "
        f"outstanding {_money(context, report.total_outstanding)}"
    )
    return 0


def run_utilization(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    rows = core_logic.build_vehicle_utilization(context, _date(args.start), _date(args.end))
    print(
        render_table(
            ["Vehicle", "Type", "Rental days", "Revenue", "Contracts", "Availability"],
            [
                (
                    row.vehicle_name,
                    row.vehicle_type,
                    row.total_rental_days,
                    _money(context, row.total_revenue),
                    row.rental_count,
                    f"{row.availability}%",
                )
                for row in rows
            ],
        )
    )
    return 0


def run_rental_profit(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    profit = core_logic.build_rental_profit(context, _date(args.start), _date(args.end))
    print(
        render_table(
            ["Metric", "Value"],
            [
                ("Revenue (outgoing)", _money(context, profit.total_revenue)),
                ("Cost (incoming)", _money(context, profit.total_cost)),
                ("Net profit", _money(context, profit.net_profit)),
                ("Outgoing contracts", profit.outgoing_count),
                ("Incoming contracts", profit.incoming_count),
            ],
        )
    )
    return 0


def run_purchases_report(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    report = core_logic.build_purchases_report(
        context,
        start=_date(args.start),
        end=_date(args.end),
        supplier_id=args.supplier_id,
    )
    print(
        render_table(
            ["Date", "Reference", "Supplier", "Item", "Qty", "Total", "Paid", "Remaining", "Status"],
            [
                (
                    row.date.isoformat(),
                    row.reference,
                    row.supplier,
                    row.item,
                    f"{_qty(context, row.quantity)} {row.unit}",
                    _money(context, row.total),
                    _money(context, row.paid),
                    _money(context, row.remaining),
                    row.status,
                )
                for row in report.rows
            ],
        )
    )
    print(
        f"\nPurchased {_money(context, report.total_purchased)}, paid {_money(context, report.total_paid)}, "
        f"outstanding {_money(context, report.total_outstanding)}"
    )
    return 0


def run_sales_report(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    report = core_logic.build_sales_report(
        context,
        start=_date(args.start),
        end=_date(args.end),
        customer_id=args.customer_id,
    )
    print(
        render_table(
            ["Date", "Reference", "Customer", "Item", "Qty", "Total", "Received", "Remaining", "Status"],
            [
                (
                    row.date.isoformat(),
                    row.reference,
                    row.customer,
                    row.item,
                    f"{_qty(context, row.quantity)} {row.unit}",
                    _money(context, row.total),
                    _money(context, row.received),
                    _money(context, row.remaining),
                    row.status,
                )
                for row in report.rows
            ],
        )
    )
    print(
        f"\nSold {_money(context, report.total_sales)}, received {_money(context, report.total_received)}, "
        f"outstanding {_money(context, report.total_outstanding)}"
    )
    return 0


def run_notifications(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    feed = core_logic.build_notifications(context, limit=args.limit)
    print(
        render_table(
            ["When", "Type", "Title", "Details", "Status"],
            [
                (entry.timestamp.strftime("%Y-%m-%d %H:%M"), entry.type, entry.title, entry.description, entry.status)
                for entry in feed
            ],
        )
    )
    return 0


def handle_cli_error(error: Exception) -> int:
    """Convert raised exceptions into user-friendly exit codes."""
    if isinstance(error, BusinessRuleViolation):
        log.error("%s", error)
        return 2
    if isinstance(error, FileNotFoundError):
        log.error("%s", error)
        return 3
    log.error("%s", error)
    return 1


def persist_workbook(context: core_logic.RuntimeContext) -> None:
    """Persist workbook changes after successful execution."""
    try:
        core_logic.persist_context(context)
    except PermissionError as error:
        raise RuntimeError(str(error)) from error


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point that orchestrates parsing and execution."""
    parser = build_parser()
    command_table = configure_subcommands(parser)
    args = parser.parse_args(argv)
    if getattr(args, "verbose", False):
        set_console_level("INFO")
    try:
        context = load_runtime_context(getattr(args, "config", None))
        exit_code = dispatch_command(context, args, command_table)
        if exit_code == 0 and command_table[args.command].mutates:
            persist_workbook(context)
        return exit_code
    except Exception as error:  # pragma: no cover - centralised error handler tested separately
        return handle_cli_error(error)
