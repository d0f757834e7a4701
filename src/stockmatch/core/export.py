"""
Tabular exports of reconciliation results.

- Discrepancy CSV: mismatched, missing and extra lines of one report.
- Full workbook: Master Stock, Scanned Data and Comparison Report sheets
  covering the whole catalog against store-wide scan totals.
"""

import io
import logging
from datetime import date
from pathlib import Path

import pandas as pd

from .aggregation import aggregate_store
from .catalog import MasterCatalog
from .errors import ExportError, NothingToExportError
from .ledger import RackStore
from .reconciliation import Report, compare_full_catalog

logger = logging.getLogger(__name__)

DISCREPANCY_COLUMNS = ["Status", "Barcode", "Name", "ExpectedQty", "FoundQty", "Rack(s)"]
MASTER_COLUMNS = ["Barcode", "Name", "Size", "Rack", "ExpectedQty"]
SCANNED_COLUMNS = ["Barcode", "Name", "ScannedQty"]
COMPARISON_COLUMNS = [
    "Status", "Barcode", "Name", "Rack", "ExpectedQty", "ScannedQty", "Difference",
]

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def discrepancy_rows(report: Report) -> list[dict]:
    return [
        {
            "Status": line.status.value,
            "Barcode": line.barcode,
            "Name": line.name,
            "ExpectedQty": line.expected_qty,
            "FoundQty": line.found_qty,
            "Rack(s)": line.rack,
        }
        for line in report.discrepancies()
    ]


def discrepancy_frame(report: Report) -> pd.DataFrame:
    return pd.DataFrame(discrepancy_rows(report), columns=DISCREPANCY_COLUMNS)


def discrepancy_csv_bytes(report: Report) -> bytes:
    return discrepancy_frame(report).to_csv(index=False).encode("utf-8")


def discrepancy_filename(report: Report, today: date | None = None) -> str:
    today = today or date.today()
    scope = report.scope.label.replace(" ", "_")
    return f"report-discrepancy-{scope}-{today.isoformat()}.csv"


def write_discrepancy_csv(
    report: Report, directory: Path | str, today: date | None = None
) -> Path:
    """
    Write the discrepancy CSV into directory and return its path.

    Raises NothingToExportError when every line matched.
    """
    if report.is_perfect_match:
        raise NothingToExportError(
            "There are no items to export. Everything is a perfect match!"
        )

    path = Path(directory) / discrepancy_filename(report, today)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        discrepancy_frame(report).to_csv(path, index=False)
    except OSError as e:
        logger.error("Discrepancy export to %s failed: %s", path, e)
        raise ExportError(f"Could not save the report file: {e}") from e

    logger.info("Wrote %d discrepancies to %s", len(report.discrepancies()), path)
    return path


def master_stock_frame(catalog: MasterCatalog) -> pd.DataFrame:
    rows = [
        {
            "Barcode": barcode,
            "Name": item.name,
            "Size": item.size,
            "Rack": item.rack_label,
            "ExpectedQty": item.expected_qty,
        }
        for barcode, item in catalog.items()
    ]
    return pd.DataFrame(rows, columns=MASTER_COLUMNS)


def scanned_data_frame(catalog: MasterCatalog, store: RackStore) -> pd.DataFrame:
    """Store-wide scanned totals, named from the catalog where known."""
    rows = []
    for barcode, obs in aggregate_store(store).items():
        item = catalog.get(barcode)
        rows.append(
            {
                "Barcode": barcode,
                "Name": item.name if item else "Unknown Item",
                "ScannedQty": obs.total_quantity,
            }
        )
    return pd.DataFrame(rows, columns=SCANNED_COLUMNS)


def comparison_frame(catalog: MasterCatalog, store: RackStore) -> pd.DataFrame:
    rows = [
        {
            "Status": row.status.value,
            "Barcode": row.barcode,
            "Name": row.name,
            "Rack": row.rack,
            "ExpectedQty": row.expected_qty,
            "ScannedQty": row.scanned_qty,
            "Difference": row.difference,
        }
        for row in compare_full_catalog(catalog, aggregate_store(store))
    ]
    return pd.DataFrame(rows, columns=COMPARISON_COLUMNS)


def build_full_workbook(catalog: MasterCatalog, store: RackStore) -> bytes:
    """Three-sheet .xlsx of catalog, scans and comparison."""
    sheets = {
        "Master Stock": master_stock_frame(catalog),
        "Scanned Data": scanned_data_frame(catalog, store),
        "Comparison Report": comparison_frame(catalog, store),
    }
    with io.BytesIO() as buffer:
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            for sheet_name, frame in sheets.items():
                frame.to_excel(writer, index=False, sheet_name=sheet_name)
        return buffer.getvalue()


def full_workbook_filename(today: date | None = None) -> str:
    today = today or date.today()
    return f"Store-Report-{today.isoformat()}.xlsx"


def write_full_workbook(
    catalog: MasterCatalog,
    store: RackStore,
    directory: Path | str,
    today: date | None = None,
) -> Path:
    path = Path(directory) / full_workbook_filename(today)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(build_full_workbook(catalog, store))
    except OSError as e:
        logger.error("Workbook export to %s failed: %s", path, e)
        raise ExportError(f"An error occurred while creating the Excel file: {e}") from e

    logger.info("Wrote full store workbook to %s", path)
    return path
