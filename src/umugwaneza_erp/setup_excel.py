"""Utility for initializing the Umugwaneza ERP master workbook.

The module doubles as a script (``umugwaneza-setup``) and as a library used
by tests or other tooling. Sheet layouts come from
:data:`umugwaneza_erp.data_manager.SHEET_COLUMNS`, so the bootstrap always
matches what the data layer reads and writes.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Mapping, Optional, Sequence
import sys

import openpyxl
from openpyxl.styles import Font

from . import data_manager, log
from .constants import SheetName


CONFIG_FILE = data_manager.CONFIG_FILE_NAME


def create_master_workbook(
    destination: Path,
    *,
    sheet_columns: Mapping[SheetName, Sequence[str]] = data_manager.SHEET_COLUMNS,
    overwrite: bool = False,
) -> Path:
    """Create an empty master workbook at ``destination``.

    Every sheet gets a bold header row holding its record field names and no
    data rows.

    Raises:
        FileExistsError: If the target exists and ``overwrite`` is ``False``.
    """

    destination = Path(destination).expanduser().resolve()
    if destination.exists() and not overwrite:
        raise FileExistsError(
            f"Refusing to overwrite existing master workbook: {destination}"
        )

    destination.parent.mkdir(parents=True, exist_ok=True)

    workbook = openpyxl.Workbook()

    # Remove the default sheet openpyxl generates so we can create ours.
    if workbook.active and workbook.active.title == "Sheet":
        workbook.remove(workbook.active)

    bold_font = Font(bold=True)

    for sheet_name, columns in sheet_columns.items():
        worksheet = workbook.create_sheet(title=SheetName(sheet_name).value)
        for column_index, column_name in enumerate(columns, start=1):
            cell = worksheet.cell(row=1, column=column_index)
            cell.value = column_name
            cell.font = bold_font

    workbook.save(destination)
    log.info("Created master workbook '%s' with %d sheets", destination, len(sheet_columns))
    return destination


def load_settings(config_path: Path) -> data_manager.ConfigSettings:
    """Read ``config.ini`` through the data layer's parser.

    Raises:
        FileNotFoundError: If ``config_path`` does not exist.
        KeyError: If a required entry is missing.
    """

    config_path = Path(config_path).expanduser().resolve()
    parser = data_manager.read_config(config_path)
    return data_manager.parse_settings(parser, base_path=config_path.parent)


def run_from_config(config_path: Path, *, overwrite: bool = False, seed: bool = False) -> Path:
    """Create the workbook named by ``config_path`` and optionally seed it."""

    settings = load_settings(config_path)
    output_path = create_master_workbook(settings.data_file, overwrite=overwrite)
    if seed:
        from . import core_logic
        from .seed import ensure_seed_data

        context = core_logic.RuntimeContext(
            settings=settings,
            workbook=data_manager.open_workbook(output_path),
        )
        if ensure_seed_data(context):
            core_logic.persist_context(context)
    return output_path


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments for the setup script."""

    parser = argparse.ArgumentParser(description="Initialize the Umugwaneza ERP data file")
    parser.add_argument(
        "--config",
        default=CONFIG_FILE,
        help="Path to configuration file (default: config.ini)",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite the target workbook if it already exists.",
    )
    parser.add_argument(
        "--seed",
        action="store_true",
        help="Populate the new workbook with sample business data.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for the ``umugwaneza-setup`` script."""

    args = parse_args(argv)
    config_path = Path(args.config).expanduser().resolve()

    print("--- Umugwaneza ERP Setup ---")
    print(f"Using configuration: {config_path}")

    try:
        output_path = run_from_config(config_path, overwrite=args.force, seed=args.seed)
    except FileNotFoundError as exc:
        print(f"\n[ERROR] {exc}")
        return 1
    except KeyError as exc:
        print(f"\n[ERROR] {exc}")
        return 1
    except FileExistsError as exc:
        print(f"\n[ERROR] {exc}")
        print("Run with --force to overwrite the existing file if appropriate.")
        return 1
    except (PermissionError, OSError) as exc:
        print(f"\n[ERROR] Unable to write workbook: {exc}")
        return 1

    print(f"\n[SUCCESS] Created master workbook at '{output_path}'.")
    return 0


if __name__ == "__main__":  # pragma: no cover - exercised via manual runs
    sys.exit(main())
