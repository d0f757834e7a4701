"""
Stock-take progress and report metrics.

Computes:
- Per-line report tables
- Bucket counts and unit totals for a report
- Scan totals per rack
- Coverage of each catalog rack label by scans
"""

import pandas as pd

from .catalog import MasterCatalog
from .ledger import RackStore
from .reconciliation import Report


def report_frame(report: Report) -> pd.DataFrame:
    """
    Flatten a report into one row per line.

    Returns DataFrame with:
    - status, barcode, name, rack
    - expected_qty, found_qty
    - difference (found - expected)
    - detail
    """
    rows = [
        {
            "status": line.status.value,
            "barcode": line.barcode,
            "name": line.name,
            "rack": line.rack,
            "expected_qty": line.expected_qty,
            "found_qty": line.found_qty,
            "difference": line.found_qty - line.expected_qty,
            "detail": line.detail,
        }
        for line in report.lines()
    ]
    return pd.DataFrame(
        rows,
        columns=[
            "status", "barcode", "name", "rack",
            "expected_qty", "found_qty", "difference", "detail",
        ],
    )


def compute_report_metrics(report: Report) -> dict:
    """
    Headline numbers for a report.

    match_rate is matched lines over all catalog lines in scope (matched,
    mismatched and missing); extras are not part of the denominator.
    """
    counts = report.counts()
    in_catalog = counts["matched"] + counts["mismatched"] + counts["missing"]
    expected_units = sum(
        line.expected_qty
        for line in (*report.matched, *report.mismatched, *report.missing)
    )
    found_units = sum(line.found_qty for line in report.lines())

    return {
        "scope": report.scope.label,
        **counts,
        "discrepancies": len(report.discrepancies()),
        "expected_units": expected_units,
        "found_units": found_units,
        "unit_difference": found_units - expected_units,
        "match_rate": counts["matched"] / in_catalog if in_catalog else 0.0,
    }


def rack_totals_frame(store: RackStore) -> pd.DataFrame:
    """One row per rack: distinct barcodes and total units scanned."""
    rows = [
        {
            "rack_id": s.rack_id,
            "item_count": s.item_count,
            "total_quantity": s.total_quantity,
        }
        for s in store.list_racks()
    ]
    return pd.DataFrame(rows, columns=["rack_id", "item_count", "total_quantity"])


def rack_coverage(catalog: MasterCatalog, store: RackStore) -> pd.DataFrame:
    """
    Expected vs scanned units per catalog rack label.

    Only scans made under the matching rack id count towards a label, the
    same way a single-rack report sees them.

    Returns DataFrame with:
    - rack_label
    - expected_units
    - scanned_units (of items the catalog places in that rack)
    - progress (scanned / expected, capped at 1.0)
    """
    expected: dict[str, int] = {}
    scanned: dict[str, int] = {}
    for barcode, item in catalog.items():
        label = item.rack_label
        expected[label] = expected.get(label, 0) + item.expected_qty
        record = store.ledger(label).get(barcode)
        scanned[label] = scanned.get(label, 0) + (record.quantity if record else 0)

    df = pd.DataFrame(
        {
            "rack_label": list(expected),
            "expected_units": [expected[k] for k in expected],
            "scanned_units": [scanned[k] for k in expected],
        }
    )
    if df.empty:
        df["progress"] = pd.Series(dtype=float)
        return df

    df["progress"] = (
        (df["scanned_units"] / df["expected_units"].where(df["expected_units"] > 0))
        .clip(upper=1.0)
        .fillna(0.0)
    )
    return df.sort_values("rack_label").reset_index(drop=True)
