"""
Master stock catalog: what the store expects to find, keyed by barcode.

The catalog is rebuilt wholesale from the published master sheet on every
sync and never edited in place. Raw sheet rows are normalized here, at the
ingestion boundary, so the reconciliation code only ever sees MasterItem.
"""

import logging
import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from types import MappingProxyType

import pandas as pd

from .barcodes import normalize_barcode
from .errors import PreconditionError

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"

CATALOG_NOT_LOADED_MESSAGE = (
    "Master stock data not loaded. Please sync the master list first."
)

# Canonical field -> accepted header spellings, compared after
# lower-casing and dropping spaces/underscores
COLUMN_ALIASES = {
    "barcode": ("barcode",),
    "rack": ("rack",),
    "name": ("name",),
    "size": ("size",),
    "expected_qty": ("expectedqty",),
}

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def normalize_column_name(column: str) -> str:
    """Collapse header spelling variants ("Expected Qty" -> "expectedqty")."""
    return str(column).strip().lower().replace(" ", "").replace("_", "")


def resolve_columns(columns) -> dict[str, str]:
    """Map canonical field names to the actual column names in a sheet."""
    by_normalized: dict[str, str] = {}
    for col in columns:
        # First spelling wins if a sheet repeats a header
        by_normalized.setdefault(normalize_column_name(col), col)

    resolved = {}
    for field_name, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            if alias in by_normalized:
                resolved[field_name] = by_normalized[alias]
                break
    return resolved


def clean_text(value) -> str | None:
    """Trim a cell value; blank or missing cells become None."""
    if value is None or pd.isna(value):
        return None
    text = str(value).strip()
    return text or None


def parse_expected_qty(value) -> int:
    """
    Parse an expected quantity cell.

    Takes the leading integer the way a lenient spreadsheet reader would
    ("12" -> 12, "7.9" -> 7, "12 pairs" -> 12). Blank, non-numeric and
    negative values all coerce to 0.
    """
    text = clean_text(value)
    if text is None:
        return 0
    match = _LEADING_INT_RE.match(text)
    if not match:
        return 0
    return max(int(match.group(1)), 0)


@dataclass(frozen=True)
class MasterItem:
    """One expected stock line from the master sheet."""

    barcode: str
    name: str = NOT_AVAILABLE
    size: str = NOT_AVAILABLE
    rack_label: str = NOT_AVAILABLE
    expected_qty: int = 0

    def in_rack(self, rack_id: str) -> bool:
        return self.rack_label == rack_id.strip().upper()


class MasterCatalog(Mapping):
    """
    Read-only barcode -> MasterItem index.

    Holders get a snapshot: a new sync produces a new MasterCatalog rather
    than changing this one.
    """

    def __init__(self, items: Mapping[str, MasterItem] | None = None):
        self._items = MappingProxyType(dict(items or {}))

    def __getitem__(self, barcode: str) -> MasterItem:
        return self._items[barcode]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"MasterCatalog({len(self)} items)"

    def items_for_rack(self, rack_id: str) -> dict[str, MasterItem]:
        """Items whose rack label matches rack_id (case-insensitive)."""
        return {
            barcode: item
            for barcode, item in self._items.items()
            if item.in_rack(rack_id)
        }

    def resolve_name(self, barcode: str) -> str:
        """Display name for a scan; unknown barcodes get a placeholder."""
        item = self._items.get(barcode)
        if item is None:
            return f"Unknown: {barcode}"
        return item.name

    def rack_labels(self) -> list[str]:
        return sorted({item.rack_label for item in self._items.values()})

    def total_expected(self) -> int:
        return sum(item.expected_qty for item in self._items.values())


def build_catalog(frame: pd.DataFrame) -> MasterCatalog:
    """
    Build a catalog from a raw master-sheet DataFrame.

    Rows without a barcode are dropped. When a barcode appears on several
    rows, the last row wins.
    """
    columns = resolve_columns(frame.columns)
    if "barcode" not in columns:
        logger.warning("Master sheet has no Barcode column: %s", list(frame.columns))
        return MasterCatalog()

    def cell(row, field_name):
        col = columns.get(field_name)
        return row.get(col) if col is not None else None

    items: dict[str, MasterItem] = {}
    for row in frame.to_dict(orient="records"):
        raw_barcode = clean_text(cell(row, "barcode"))
        if raw_barcode is None:
            continue

        barcode = normalize_barcode(raw_barcode)
        rack = clean_text(cell(row, "rack"))
        items[barcode] = MasterItem(
            barcode=barcode,
            name=clean_text(cell(row, "name")) or NOT_AVAILABLE,
            size=clean_text(cell(row, "size")) or NOT_AVAILABLE,
            rack_label=rack.upper() if rack else NOT_AVAILABLE,
            expected_qty=parse_expected_qty(cell(row, "expected_qty")),
        )

    return MasterCatalog(items)


class CatalogStore:
    """
    Holds the current catalog snapshot for a session.

    Starts empty; replace() swaps in a new snapshot in one assignment so
    readers never see a half-built catalog.
    """

    def __init__(self, catalog: MasterCatalog | None = None):
        self._catalog = catalog
        self.synced_at: datetime | None = None

    @property
    def is_loaded(self) -> bool:
        return self._catalog is not None

    def snapshot(self) -> MasterCatalog | None:
        return self._catalog

    def require(self) -> MasterCatalog:
        """Return the catalog or raise PreconditionError if never synced."""
        catalog = self._catalog
        if catalog is None:
            raise PreconditionError(CATALOG_NOT_LOADED_MESSAGE)
        return catalog

    def replace(self, catalog: MasterCatalog) -> None:
        self._catalog = catalog
        self.synced_at = datetime.now(timezone.utc)
        logger.info("Catalog replaced: %d items", len(catalog))
