"""Shared pytest fixtures and utilities for Umugwaneza ERP tests."""

from __future__ import annotations

import argparse
import sys
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from pathlib import Path
from typing import Callable, Iterator
from unittest.mock import Mock

import pytest

# Ensure source packages are importable without installation.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"

if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from umugwaneza_erp import cli, constants, core_logic, data_manager  # noqa: E402
from umugwaneza_erp.setup_excel import create_master_workbook  # noqa: E402

DEFAULT_SCHEMA_VERSION = constants.EXPECTED_SCHEMA_VERSION
DEFAULT_BUSINESS_ID = "biz_test"
_CONFIG_TEMPLATE = (
    "[System]\n"
    "DataFile = {data_file}\n"
    "SchemaVersion = {schema_version}\n\n"
    "[Business]\n"
    "BusinessID = {business_id}\n"
    "BusinessName = {business_name}\n"
    "Currency = RWF\n"
)


@dataclass(frozen=True)
class ConfigBundle:
    """Container bundling together config metadata for tests."""

    directory: Path
    config_path: Path
    workbook_path: Path
    business_id: str
    schema_version: str
    business_name: str


@dataclass(frozen=True)
class ReferenceData:
    """Ids of the parties, item and vehicles registered by ``populated_context``."""

    item_id: str
    volume_item_id: str
    supplier_id: str
    customer_id: str
    owner_id: str
    day_vehicle_id: str
    hour_vehicle_id: str


@pytest.fixture(scope="session", autouse=True)
def _restore_sys_path() -> Iterator[None]:
    """Ensure sys.path modifications are undone after the test session."""

    original = sys.path.copy()
    try:
        yield
    finally:
        sys.path[:] = original


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return the repository root path."""

    return PROJECT_ROOT


@pytest.fixture
def workbook_factory(tmp_path: Path) -> Callable[..., Path]:
    """Factory that creates an initialized master workbook in a temp folder."""

    def _create_workbook(
        *,
        subdir: str | None = None,
        filename: str = "master_workbook.xlsx",
    ) -> Path:
        base_dir = tmp_path if subdir is None else tmp_path / subdir
        base_dir.mkdir(parents=True, exist_ok=True)
        workbook_path = base_dir / filename
        create_master_workbook(workbook_path, overwrite=True)
        return workbook_path

    return _create_workbook


@pytest.fixture
def master_workbook_path(workbook_factory: Callable[..., Path]) -> Path:
    """Return a fresh master workbook ready for use in a test."""

    unique_dir = f"workbook_{uuid.uuid4().hex}"
    return workbook_factory(subdir=unique_dir)


@pytest.fixture
def config_factory(tmp_path: Path, workbook_factory: Callable[..., Path]) -> Callable[..., ConfigBundle]:
    """Provide a callable that creates config/workbook bundles on demand."""

    def _create_config(
        *,
        make_relative: bool = False,
        business_name: str = "Test Traders",
        schema_version: str = DEFAULT_SCHEMA_VERSION,
        business_id: str = DEFAULT_BUSINESS_ID,
    ) -> ConfigBundle:
        bundle_id = uuid.uuid4().hex
        bundle_dir = tmp_path / f"bundle_{bundle_id}"
        bundle_dir.mkdir(parents=True, exist_ok=True)
        workbook_path = workbook_factory(subdir=f"bundle_{bundle_id}")
        data_file_entry = workbook_path.name if make_relative else str(workbook_path)
        config_path = bundle_dir / "config.ini"
        config_path.write_text(
            _CONFIG_TEMPLATE.format(
                data_file=data_file_entry,
                schema_version=schema_version,
                business_id=business_id,
                business_name=business_name,
            ),
            encoding="utf-8",
        )
        return ConfigBundle(
            directory=bundle_dir,
            config_path=config_path,
            workbook_path=workbook_path,
            business_id=business_id,
            schema_version=schema_version,
            business_name=business_name,
        )

    return _create_config


@pytest.fixture
def config_file(config_factory: Callable[..., ConfigBundle]) -> Path:
    """Convenience fixture returning only the config path."""

    return config_factory().config_path


@pytest.fixture
def runtime_context(config_file: Path) -> core_logic.RuntimeContext:
    """Load the runtime context for tests through the public API."""

    context = core_logic.load_runtime_context(config_file)
    core_logic.ensure_schema_version(context)
    return context


@pytest.fixture
def populated_context(runtime_context: core_logic.RuntimeContext) -> tuple[core_logic.RuntimeContext, ReferenceData]:
    """Runtime context with one of each party, two items and two vehicles."""

    context = runtime_context
    rice = core_logic.add_item(
        context,
        core_logic.ItemCommand(item_name="Rice", measurement_type=constants.MeasurementType.WEIGHT),
    )
    oil = core_logic.add_item(
        context,
        core_logic.ItemCommand(item_name="Cooking Oil", measurement_type=constants.MeasurementType.VOLUME),
    )
    supplier = core_logic.add_supplier(context, core_logic.SupplierCommand(supplier_name="Kigali Grain Traders"))
    customer = core_logic.add_customer(context, core_logic.CustomerCommand(customer_name="Simba Supermarket"))
    owner = core_logic.add_external_owner(context, core_logic.ExternalOwnerCommand(owner_name="Marie UWIMANA"))
    truck = core_logic.add_vehicle(
        context,
        core_logic.VehicleCommand(
            vehicle_name="RAA 100A",
            vehicle_type=constants.VehicleType.TRUCK,
            rental_type=constants.RentalType.DAY,
            base_rate=Decimal("150000"),
        ),
    )
    digger = core_logic.add_vehicle(
        context,
        core_logic.VehicleCommand(
            vehicle_name="RAC 300C",
            vehicle_type=constants.VehicleType.MACHINE,
            rental_type=constants.RentalType.HOUR,
            base_rate=Decimal("20000"),
        ),
    )
    return context, ReferenceData(
        item_id=rice.item_id,
        volume_item_id=oil.item_id,
        supplier_id=supplier.supplier_id,
        customer_id=customer.customer_id,
        owner_id=owner.owner_id,
        day_vehicle_id=truck.vehicle_id,
        hour_vehicle_id=digger.vehicle_id,
    )


# ---------------------------------------------------------------------------
# CLI layer fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_parser() -> argparse.ArgumentParser:
    """Return a fresh CLI parser instance for tests."""

    return argparse.ArgumentParser(prog="umugwaneza-cli", description="Umugwaneza CLI")


@pytest.fixture
def subparsers_action(
    cli_parser: argparse.ArgumentParser,
) -> argparse._SubParsersAction[argparse.ArgumentParser]:
    """Return the subparser action used to register commands."""

    return cli_parser.add_subparsers(dest="command")


@pytest.fixture
def command_spec_iterable() -> list[cli.CommandSpec]:
    """Provide a list of command specs for indexing tests."""

    def _make_spec(name: str) -> cli.CommandSpec:
        return cli.CommandSpec(
            name,
            f"{name} help",
            lambda subparsers: subparsers.add_parser(name),
            lambda *_: 0,
        )

    return [_make_spec("alpha"), _make_spec("beta"), _make_spec("gamma")]


# ---------------------------------------------------------------------------
# Core logic fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings(tmp_path: Path) -> data_manager.ConfigSettings:
    """Provide default configuration settings for runtime context tests."""

    return data_manager.ConfigSettings(
        data_file=tmp_path / "master_workbook.xlsx",
        schema_version=constants.EXPECTED_SCHEMA_VERSION,
        business_id=DEFAULT_BUSINESS_ID,
        business_name="Test Traders",
    )


@pytest.fixture
def workbook() -> Mock:
    """Return a mock workbook object for business logic tests."""

    return Mock(name="workbook")


@pytest.fixture
def context(settings: data_manager.ConfigSettings, workbook: Mock) -> core_logic.RuntimeContext:
    """Assemble a runtime context from injected settings and workbook mocks."""

    return core_logic.RuntimeContext(settings=settings, workbook=workbook)


@pytest.fixture
def set_fixed_datetime(monkeypatch: pytest.MonkeyPatch) -> Callable[[datetime], datetime]:
    """Patch ``core_logic.datetime`` to return a predetermined moment."""

    def _apply(moment: datetime) -> datetime:
        class _FixedDateTime:
            @staticmethod
            def now(tz=None):
                assert tz is UTC
                return moment

        monkeypatch.setattr(core_logic, "datetime", _FixedDateTime)
        return moment

    return _apply
