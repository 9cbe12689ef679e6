"""Unit tests documenting the expected behavior of the data access layer."""

from __future__ import annotations

import configparser
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

import openpyxl
from openpyxl.workbook import Workbook as OpenpyxlWorkbook
import pytest

from umugwaneza_erp import constants, data_manager  # noqa: E402
from umugwaneza_erp.models import ItemRow, PurchaseRow, RentalContractRow, SupplierRow


def _purchase(purchase_id: str = "P1", **overrides) -> PurchaseRow:
    values = dict(
        purchase_id=purchase_id,
        reference_no="PUR-LQ2X9A",
        supplier_id="S1",
        item_id="I1",
        purchase_date=date(2024, 1, 10),
        total_quantity=Decimal("500"),
        unit="KG",
        unit_price=Decimal("1200"),
        total_purchase_cost=Decimal("600000"),
        package_size=Decimal("50"),
        package_count=Decimal("10"),
        amount_paid=Decimal("400000"),
        remaining_amount=Decimal("200000"),
        financial_status=constants.PurchaseStatus.PARTIAL.value,
        amount_due_date=None,
        created_at="2024-01-10T09:00:00+00:00",
    )
    values.update(overrides)
    return PurchaseRow(**values)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


def test_find_config_file_respects_explicit_path(config_file: Path):
    """Supplying an explicit path should be treated as the winning answer."""

    result = data_manager.find_config_file(config_file)
    assert result == config_file


def test_find_config_file_discovers_in_cwd(tmp_path, monkeypatch):
    """Auto-discovery should locate config.ini in the working directory tree."""

    config_dir = tmp_path / "nested"
    config_dir.mkdir(parents=True)
    config_file = config_dir / "config.ini"
    config_file.write_text("[System]\nDataFile=master_workbook.xlsx")
    monkeypatch.chdir(config_dir)

    result = data_manager.find_config_file()
    assert result == config_file


def test_find_config_file_raises_when_missing(tmp_path, monkeypatch):
    """Absent configuration should surface a clear FileNotFoundError."""

    monkeypatch.chdir(tmp_path)
    with pytest.raises(FileNotFoundError):
        data_manager.find_config_file()


def test_read_config_loads_sections(config_file: Path):
    parser = data_manager.read_config(config_file)
    assert parser.get("Business", "BusinessName") == "Test Traders"
    assert parser.get("System", "SchemaVersion") == constants.EXPECTED_SCHEMA_VERSION


def test_read_config_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        data_manager.read_config(tmp_path / "not_there.ini")


def test_parse_settings_resolves_relative_paths(config_factory):
    """Relative DataFile entries should be anchored to the config location."""

    parser = configparser.ConfigParser()
    bundle = config_factory(make_relative=True)
    parser.read(bundle.config_path)
    settings = data_manager.parse_settings(parser, base_path=bundle.config_path.parent)

    assert settings.data_file == (bundle.config_path.parent / bundle.workbook_path.name).resolve()
    assert settings.business_id == bundle.business_id
    assert settings.currency == "RWF"


def test_parse_settings_defaults_locale(tmp_path):
    parser = configparser.ConfigParser()
    parser.read_string(
        "[System]\nDataFile = wb.xlsx\nSchemaVersion = 2.0.0\n"
        "[Business]\nBusinessID = b1\nBusinessName = Shop\n"
    )

    settings = data_manager.parse_settings(parser, base_path=tmp_path)

    assert settings.currency == constants.DEFAULT_CURRENCY
    assert settings.locale == constants.DEFAULT_LOCALE


def test_parse_settings_requires_expected_sections(tmp_path):
    """Missing keys should result in a descriptive KeyError."""

    parser = configparser.ConfigParser()
    parser.read_string("[System]\nDataFile = wb.xlsx\nSchemaVersion = 2.0.0\n")
    with pytest.raises(KeyError):
        data_manager.parse_settings(parser, base_path=tmp_path)


# ---------------------------------------------------------------------------
# Workbook lifecycle
# ---------------------------------------------------------------------------


def test_sheet_columns_cover_every_sheet():
    assert set(data_manager.SHEET_COLUMNS) == set(constants.SheetName)
    assert data_manager.SHEET_COLUMNS[constants.SheetName.ITEMS] == [
        "item_id",
        "item_name",
        "measurement_type",
        "base_unit",
        "is_active",
    ]


def test_open_workbook_returns_openpyxl_instance(master_workbook_path):
    workbook = data_manager.open_workbook(master_workbook_path)

    assert isinstance(workbook, OpenpyxlWorkbook)
    assert set(workbook.sheetnames) == {sheet.value for sheet in constants.SheetName}


def test_open_workbook_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        data_manager.open_workbook(tmp_path / "missing.xlsx")


def test_save_workbook_with_destination_creates_copy(master_workbook_path, tmp_path):
    """Providing a destination should create a new file independent of the source."""

    workbook = data_manager.open_workbook(master_workbook_path)
    data_manager.append_record(workbook, SupplierRow("S2", "COPRIMU Cooperative", None, "Musanze", None))
    copy_path = tmp_path / "nested" / "copy.xlsx"
    data_manager.save_workbook(workbook, destination=copy_path)

    copy = openpyxl.load_workbook(copy_path)
    rows = list(copy[constants.SheetName.SUPPLIERS.value].iter_rows(min_row=2, values_only=True))
    assert ("S2", "COPRIMU Cooperative", None, "Musanze", None) in rows

    original = data_manager.open_workbook(master_workbook_path)
    assert list(data_manager.iter_records(original, constants.SheetName.SUPPLIERS)) == []


def test_refresh_workbook_discards_unsaved_changes(master_workbook_path):
    original = data_manager.open_workbook(master_workbook_path)
    data_manager.append_record(original, ItemRow("I1", "Rice", "WEIGHT", "KG", True))

    refreshed = data_manager.refresh_workbook(master_workbook_path)

    assert refreshed is not original
    assert list(data_manager.iter_records(refreshed, constants.SheetName.ITEMS)) == []


# ---------------------------------------------------------------------------
# Sheet operations
# ---------------------------------------------------------------------------


def test_append_and_iter_records_round_trip_through_disk(master_workbook_path):
    workbook = data_manager.open_workbook(master_workbook_path)
    record = _purchase()
    data_manager.append_record(workbook, record)
    data_manager.save_workbook(workbook, master_workbook_path)

    rows = list(data_manager.iter_records(data_manager.open_workbook(master_workbook_path), "Purchases"))

    assert rows == [record]


def test_iter_records_decodes_datetimes(master_workbook_path):
    contract = RentalContractRow(
        contract_id="C1",
        vehicle_id="V1",
        rental_direction="OUTGOING",
        rental_type="DAY",
        customer_id="CU1",
        external_owner_id=None,
        rental_start_datetime=datetime(2024, 1, 1, 8),
        rental_end_datetime=datetime(2024, 1, 6, 8),
        rate=Decimal("150000"),
        total_amount=Decimal("750000"),
        amount_paid=Decimal("0"),
        remaining_amount=Decimal("750000"),
        financial_status="PENDING",
        operational_status="ACTIVE",
        location=None,
        notes=None,
        created_at="2024-01-01T08:00:00+00:00",
    )
    workbook = data_manager.open_workbook(master_workbook_path)
    data_manager.append_record(workbook, contract)

    (loaded,) = data_manager.iter_records(workbook, constants.SheetName.RENTAL_CONTRACTS)

    assert loaded.rental_start_datetime == datetime(2024, 1, 1, 8)
    assert loaded.external_owner_id is None


def test_iter_records_skips_blank_rows(master_workbook_path):
    workbook = data_manager.open_workbook(master_workbook_path)
    sheet = workbook[constants.SheetName.ITEMS.value]
    sheet.append(["I1", "Rice", "WEIGHT", "KG", True])
    sheet.append([None, None, None, None, None])
    sheet.append(["I2", "Oil", "VOLUME", "LITRE", "false"])

    rows = list(data_manager.iter_records(workbook, constants.SheetName.ITEMS))

    assert [row.item_id for row in rows] == ["I1", "I2"]
    assert rows[1].is_active is False


def test_update_record_writes_selected_fields(master_workbook_path):
    workbook = data_manager.open_workbook(master_workbook_path)
    data_manager.append_record(workbook, _purchase())

    written = data_manager.update_record(
        workbook,
        constants.SheetName.PURCHASES,
        "P1",
        field_values={"amount_paid": Decimal("600000"), "remaining_amount": Decimal("0")},
    )

    (row,) = data_manager.iter_records(workbook, constants.SheetName.PURCHASES)
    assert written is True
    assert row.amount_paid == Decimal("600000")
    assert row.remaining_amount == Decimal("0")
    assert row.supplier_id == "S1"


def test_update_record_conditional_mismatch_writes_nothing(master_workbook_path):
    workbook = data_manager.open_workbook(master_workbook_path)
    data_manager.append_record(workbook, _purchase())

    written = data_manager.update_record(
        workbook,
        constants.SheetName.PURCHASES,
        "P1",
        field_values={"amount_paid": Decimal("500000")},
        expected={"amount_paid": Decimal("100000")},
    )

    (row,) = data_manager.iter_records(workbook, constants.SheetName.PURCHASES)
    assert written is False
    assert row.amount_paid == Decimal("400000")


def test_update_record_conditional_match_after_reload(master_workbook_path):
    """Numbers read back from disk still compare equal to the expected Decimal."""

    workbook = data_manager.open_workbook(master_workbook_path)
    data_manager.append_record(workbook, _purchase())
    data_manager.save_workbook(workbook, master_workbook_path)
    reloaded = data_manager.open_workbook(master_workbook_path)

    assert data_manager.update_record(
        reloaded,
        constants.SheetName.PURCHASES,
        "P1",
        field_values={"financial_status": constants.PurchaseStatus.FULLY_SETTLED},
        expected={"amount_paid": Decimal("400000"), "financial_status": "PARTIAL"},
    )
    (row,) = data_manager.iter_records(reloaded, constants.SheetName.PURCHASES)
    assert row.financial_status == "FULLY_SETTLED"


def test_update_record_missing_raises(master_workbook_path):
    workbook = data_manager.open_workbook(master_workbook_path)
    with pytest.raises(KeyError):
        data_manager.update_record(workbook, constants.SheetName.ITEMS, "NOPE", field_values={"is_active": False})


def test_update_record_unknown_field_raises(master_workbook_path):
    workbook = data_manager.open_workbook(master_workbook_path)
    data_manager.append_record(workbook, ItemRow("I1", "Rice", "WEIGHT", "KG", True))

    with pytest.raises(KeyError):
        data_manager.update_record(workbook, constants.SheetName.ITEMS, "I1", field_values={"price": 1})


def test_locate_row_returns_row_index(master_workbook_path):
    workbook = data_manager.open_workbook(master_workbook_path)
    data_manager.append_record(workbook, ItemRow("I1", "Rice", "WEIGHT", "KG", True))
    data_manager.append_record(workbook, ItemRow("I2", "Oil", "VOLUME", "LITRE", True))

    assert data_manager.locate_row(workbook, constants.SheetName.ITEMS.value, "item_id", "I2") == 3
    assert data_manager.locate_row(workbook, constants.SheetName.ITEMS.value, "item_id", "NOPE") is None


def test_locate_row_unknown_column_raises(master_workbook_path):
    workbook = data_manager.open_workbook(master_workbook_path)
    with pytest.raises(KeyError):
        data_manager.locate_row(workbook, constants.SheetName.ITEMS.value, "ProductID", "I1")


# ---------------------------------------------------------------------------
# Codecs
# ---------------------------------------------------------------------------


def test_serialize_record_preserves_column_order():
    record = _purchase(amount_due_date=date(2024, 2, 1))

    values = data_manager.serialize_record(record)

    assert values[:5] == ["P1", "PUR-LQ2X9A", "S1", "I1", "2024-01-10"]
    assert values[5] == Decimal("500")
    assert values[14] == "2024-02-01"
    assert len(values) == len(data_manager.SHEET_COLUMNS[constants.SheetName.PURCHASES])


def test_encode_value_unwraps_enums():
    assert data_manager.encode_value(constants.VehicleStatus.RENTED_OUT) == "RENTED_OUT"


@pytest.mark.parametrize(
    ("annotation", "raw", "expected"),
    [
        ("Decimal", 1200.5, Decimal("1200.5")),
        ("Decimal", None, Decimal("0")),
        ("Optional[Decimal]", None, None),
        ("Optional[Decimal]", "", None),
        ("bool", "TRUE", True),
        ("bool", None, False),
        ("date", "2024-01-10", date(2024, 1, 10)),
        ("date", datetime(2024, 1, 10, 15, 30), date(2024, 1, 10)),
        ("datetime", "2024-01-01T08:00:00", datetime(2024, 1, 1, 8)),
        ("str", 42, "42"),
        ("str", None, ""),
        ("Optional[str]", None, None),
    ],
)
def test_decode_value(annotation, raw, expected):
    assert data_manager.decode_value(annotation, raw) == expected


def test_deserialize_record_pads_short_rows():
    record = data_manager.deserialize_record(SupplierRow, ["S1", "Kigali Grain Traders"])

    assert record == SupplierRow("S1", "Kigali Grain Traders", None, None, None)
