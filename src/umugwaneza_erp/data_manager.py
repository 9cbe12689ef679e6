"""Data access layer for Umugwaneza ERP.

This module provides low-level helpers that read from and write to the
``master_workbook.xlsx`` workbook. Business logic belongs elsewhere.

The public API is designed around three responsibilities:

1. Configuration handling: finding and parsing ``config.ini``.
2. Workbook lifecycle: opening, validating, and persisting the Excel file.
3. Sheet operations: loading structured records and appending or updating
   individual rows.

Every worksheet stores one record type from :mod:`umugwaneza_erp.models`. The
header row holds the dataclass field names, so row layout and column lookup
both derive from the record definitions. Dates and datetimes are stored as ISO
8601 text, money and quantities as numbers.
"""


from __future__ import annotations

import configparser
from dataclasses import dataclass, fields
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Sequence

from openpyxl.workbook import Workbook
import openpyxl

from . import log
from .constants import DEFAULT_CURRENCY, DEFAULT_LOCALE, SheetName
from .models import RECORD_TYPES


CONFIG_FILE_NAME = "config.ini"

SHEET_COLUMNS: dict[SheetName, list[str]] = {
    sheet: [column.name for column in fields(record_type)]
    for sheet, record_type in RECORD_TYPES.items()
}


@dataclass(frozen=True)
class ConfigSettings:
    """Typed representation of the ``config.ini`` settings we care about."""

    data_file: Path
    schema_version: str
    business_id: str
    business_name: str
    currency: str = DEFAULT_CURRENCY
    locale: str = DEFAULT_LOCALE


def find_config_file(explicit_path: Optional[Path] = None) -> Path:
    """Locate the configuration file that controls how the data layer behaves.

    If the caller provides ``explicit_path`` the value is returned immediately
    without any verification, which allows the caller to deliberately target a
    non-standard location. When no explicit path is given the function walks up
    from the current working directory toward the filesystem root looking for a
    file named ``CONFIG_FILE_NAME``. The first match that exists on disk is
    considered authoritative.

    Args:
        explicit_path (Path | None): Optional path to use instead of performing
            the upward search. May be relative to the current working directory.

    Returns:
        Path: The path provided by the caller or the discovered configuration
            file.

    Raises:
        FileNotFoundError: If the search exhausts all parent directories without
            finding ``CONFIG_FILE_NAME``.
    """

    if explicit_path:
        return explicit_path

    current = Path.cwd()
    for p in (current, *current.parents):
        candidate = p / CONFIG_FILE_NAME
        if candidate.exists():
            return candidate

    raise FileNotFoundError(
        f"Configuration file not found: {CONFIG_FILE_NAME}")


def read_config(config_path: Path) -> configparser.ConfigParser:
    """Load ``config.ini`` and return a populated ``ConfigParser`` instance.

    The function expands user home references (``~``), resolves the absolute
    path, and validates that the file exists before parsing it. Validation of
    required entries happens in :func:`parse_settings`.

    Args:
        config_path (Path): Path to the configuration file, relative or
            absolute.

    Returns:
        configparser.ConfigParser: Initialized parser containing the raw
            configuration data.

    Raises:
        FileNotFoundError: If ``config_path`` does not exist after expansion and
            resolution.
    """

    config_path = Path(config_path).expanduser().resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    parser = configparser.ConfigParser()
    parser.read(config_path, encoding="utf-8")
    return parser


def parse_settings(parser: configparser.ConfigParser, *, base_path: Optional[Path] = None) -> ConfigSettings:
    """Convert a ``ConfigParser`` into strongly typed :class:`ConfigSettings`.

    Relative ``DataFile`` entries are expanded against ``base_path`` when
    provided, or against the current working directory as a fallback.
    ``Currency`` and ``Locale`` are optional and default to ``RWF`` and
    ``en-RW``.

    Args:
        parser (configparser.ConfigParser): Parsed configuration data.
        base_path (Path | None): Directory to use as the anchor for relative
            ``DataFile`` entries.

    Returns:
        ConfigSettings: Immutable settings container with the resolved data
            file path, schema version and business metadata.

    Raises:
        KeyError: If one of the required sections or options is missing from the
            configuration.
    """

    try:
        data_file_raw = parser.get("System", "DataFile")
        schema_version = parser.get("System", "SchemaVersion")
        business_id = parser.get("Business", "BusinessID")
        business_name = parser.get("Business", "BusinessName")
    except (configparser.NoSectionError, configparser.NoOptionError) as exc:
        raise KeyError(f"Missing required configuration entry: {exc}") from exc

    currency = parser.get("Business", "Currency", fallback=DEFAULT_CURRENCY)
    locale = parser.get("Business", "Locale", fallback=DEFAULT_LOCALE)

    data_file_path = Path(data_file_raw)
    if not data_file_path.is_absolute():
        if base_path is None:
            base_path = Path.cwd()
        data_file_path = (base_path / data_file_path).resolve()

    return ConfigSettings(
        data_file=data_file_path,
        schema_version=schema_version,
        business_id=business_id,
        business_name=business_name,
        currency=currency,
        locale=locale,
    )


def open_workbook(data_file: Path) -> Workbook:
    """Open the master Excel workbook and return a live ``openpyxl`` workbook.

    Args:
        data_file (Path): Filesystem path to the ``master_workbook.xlsx`` file.

    Returns:
        Workbook: ``openpyxl`` workbook instance backed by the provided file.

    Raises:
        FileNotFoundError: If ``data_file`` does not exist after expansion and
            resolution.
    """

    data_file = Path(data_file).expanduser().resolve()
    if not data_file.exists():
        raise FileNotFoundError(f"Workbook not found: {data_file}")

    wb = openpyxl.load_workbook(data_file)
    log.debug("Opened workbook '%s'", data_file)
    return wb


def save_workbook(workbook: Workbook, destination: Path) -> None:
    """Persist the workbook to disk at an explicitly provided destination.

    Parent directories are created on demand.

    Args:
        workbook (Workbook): Workbook instance to persist.
        destination (Path): Filesystem path that should receive the serialized
            workbook.
    """

    dest = Path(destination).expanduser().resolve()
    dest.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(dest)


def refresh_workbook(data_file: Path) -> Workbook:
    """Reload the workbook from disk, discarding any unsaved in-memory changes."""

    return open_workbook(data_file)


def _header_map(sheet) -> dict[str, int]:
    return {cell.value: idx + 1 for idx, cell in enumerate(sheet[1]) if cell.value is not None}


def iter_records(workbook: Workbook, sheet_name: SheetName) -> Iterable[Any]:
    """Iterate over the records stored on ``sheet_name``.

    The iterator skips the header row and any fully empty rows. Each remaining
    row is converted into the sheet's record dataclass via
    :func:`deserialize_record`.

    Args:
        workbook (Workbook): Workbook containing the sheet.
        sheet_name (SheetName): Sheet to read.

    Yields:
        Any: One record dataclass per populated row, in sheet order.
    """

    sheet_name = SheetName(sheet_name)
    record_type = RECORD_TYPES[sheet_name]
    sheet = workbook[sheet_name.value]
    for raw in sheet.iter_rows(min_row=2, values_only=True):
        # skip fully empty rows
        if any(cell is not None for cell in raw):
            yield deserialize_record(record_type, raw)


def append_record(workbook: Workbook, record: Any) -> None:
    """Append a record to the worksheet that stores its type.

    The dataclass is serialized into the exact column ordering expected by the
    sheet before being appended.

    Args:
        workbook (Workbook): Workbook to modify.
        record (Any): Record dataclass from :mod:`umugwaneza_erp.models`.
    """

    sheet = workbook[record.SHEET.value]
    sheet.append(serialize_record(record))


def update_record(
    workbook: Workbook,
    sheet_name: SheetName,
    record_id: str,
    *,
    field_values: Mapping[str, Any],
    expected: Optional[Mapping[str, Any]] = None,
) -> bool:
    """Update selected columns of an existing record.

    When ``expected`` is supplied the update is conditional: the current cells
    are decoded and compared with the expected values first, and if any
    differs nothing is written and ``False`` is returned. Otherwise the
    provided values are encoded and written, leaving other columns untouched.

    Args:
        workbook (Workbook): Workbook containing the sheet.
        sheet_name (SheetName): Sheet holding the record.
        record_id (str): Identifier matched against the record's key column.
        field_values (Mapping[str, Any]): Column name to replacement value.
        expected (Mapping[str, Any] | None): Column name to value the row must
            currently hold for the update to proceed.

    Returns:
        bool: ``True`` when the row was written, ``False`` when ``expected``
            did not match.

    Raises:
        KeyError: If the record or any referenced column cannot be found.
    """

    sheet_name = SheetName(sheet_name)
    record_type = RECORD_TYPES[sheet_name]
    row_index = locate_row(workbook, sheet_name.value, record_type.KEY, record_id)
    if row_index is None:
        raise KeyError(f"Record not found in {sheet_name.value}: {record_id}")

    sheet = workbook[sheet_name.value]
    header_map = _header_map(sheet)
    annotations = {column.name: column.type for column in fields(record_type)}

    for field in (*field_values, *(expected or {})):
        if field not in header_map:
            raise KeyError(f"Unknown {sheet_name.value} field: {field}")

    for field, value in (expected or {}).items():
        current = decode_value(annotations[field], sheet.cell(row=row_index, column=header_map[field]).value)
        if current != value:
            log.warning(
                "Conditional update of %s '%s' rejected: %s is %r, expected %r",
                sheet_name.value,
                record_id,
                field,
                current,
                value,
            )
            return False

    for field, value in field_values.items():
        sheet.cell(row=row_index, column=header_map[field], value=encode_value(value))
    return True


def locate_row(workbook: Workbook, sheet_name: str, key_column: str, key_value: str) -> Optional[int]:
    """Find a row by matching a key value within the specified worksheet.

    Args:
        workbook (Workbook): Workbook providing access to ``sheet_name``.
        sheet_name (str): Name of the worksheet to search.
        key_column (str): Header title identifying the column that stores the
            lookup key.
        key_value (str): Value to match within the key column.

    Returns:
        int | None: 1-based Excel row index when a match is found, otherwise
            ``None``.

    Raises:
        KeyError: If ``key_column`` is not present in the worksheet header.
    """

    sheet = workbook[sheet_name]
    header_map = _header_map(sheet)
    if key_column not in header_map:
        raise KeyError(f"Unknown column: {key_column}")

    key_col_index = header_map[key_column]

    for row_idx, row in enumerate(sheet.iter_rows(min_row=2, values_only=True), start=2):
        cell_value = row[key_col_index - 1]
        if cell_value is not None and str(cell_value) == key_value:
            return row_idx

    return None


def encode_value(value: Any) -> Any:
    """Convert a Python value into something openpyxl stores faithfully."""

    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _to_bool(raw: Any) -> bool:
    if isinstance(raw, str):
        return raw.strip().lower() in ("true", "1", "yes")
    return bool(raw)


def _to_date(raw: Any) -> date:
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    return date.fromisoformat(str(raw)[:10])


def _to_datetime(raw: Any) -> datetime:
    if isinstance(raw, datetime):
        return raw
    return datetime.fromisoformat(str(raw))


def decode_value(annotation: str, raw: Any) -> Any:
    """Convert a raw cell value according to a record field annotation.

    Optional columns stay ``None`` when blank. Required numeric columns
    default to zero and required text columns to an empty string, so a
    partially filled row still produces a usable record.
    """

    optional = annotation.startswith("Optional[")
    base = annotation[len("Optional["):-1] if optional else annotation
    if raw is None or raw == "":
        if optional:
            return None
        if base == "Decimal":
            return Decimal("0")
        if base == "bool":
            return False
        if base == "str":
            return ""
        return None
    if base == "Decimal":
        return Decimal(str(raw))
    if base == "bool":
        return _to_bool(raw)
    if base == "date":
        return _to_date(raw)
    if base == "datetime":
        return _to_datetime(raw)
    return str(raw)


def serialize_record(record: Any) -> list[object]:
    """Convert a record dataclass into its worksheet column ordering.

    Numeric fields remain :class:`~decimal.Decimal` instances, dates become
    ISO text and enums their value.
    """

    return [encode_value(getattr(record, column.name)) for column in fields(record)]


def deserialize_record(record_type: type, raw_row: Sequence[object]) -> Any:
    """Convert a raw worksheet row into a strongly typed record.

    Args:
        record_type (type): Record dataclass for the sheet.
        raw_row (Sequence[object]): Raw cell values in worksheet order. Short
            rows are padded with blanks.

    Returns:
        Any: Instance of ``record_type``.
    """

    columns = fields(record_type)
    padded = list(raw_row) + [None] * (len(columns) - len(raw_row))
    values = {
        column.name: decode_value(column.type, raw)
        for column, raw in zip(columns, padded)
    }
    return record_type(**values)


__all__ = [
    "CONFIG_FILE_NAME",
    "SHEET_COLUMNS",
    "ConfigSettings",
    "find_config_file",
    "read_config",
    "parse_settings",
    "open_workbook",
    "save_workbook",
    "refresh_workbook",
    "iter_records",
    "append_record",
    "update_record",
    "locate_row",
    "encode_value",
    "decode_value",
    "serialize_record",
    "deserialize_record",
]
