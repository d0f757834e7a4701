"""
Loader for the store's master stock sheet.

The stock list lives in a Google Sheet published as CSV. Sheet-specific
quirks handled here:
- Header spelling drifts between edits ("Rack"/"rack",
  "ExpectedQty"/"Expected Qty"/"expectedqty")
- Rows with a blank barcode are notes or spacer rows and are dropped
- Expected quantities are sometimes typed as text; those read as 0

The core catalog builder and quality checks do the normalization; this
module only fetches, applies them, and decides whether the result is good
enough to replace the current catalog.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from ..core.catalog import CatalogStore, MasterCatalog, build_catalog
from ..core.errors import CatalogSyncError
from ..core.quality import DataQualityReport, check_master_sheet

logger = logging.getLogger(__name__)

EMPTY_SHEET_MESSAGE = "The fetched master list is empty after parsing."
NO_BARCODES_MESSAGE = (
    'No items with a "Barcode" column were found. Please check your sheet headers.'
)


@dataclass
class SyncResult:
    """Outcome of one successful sync."""

    catalog: MasterCatalog
    total_rows: int
    quality: DataQualityReport

    @property
    def item_count(self) -> int:
        return len(self.catalog)

    @property
    def dropped_rows(self) -> int:
        return sum(i.count for i in self.quality.by_type("dropped_row"))


class MasterSheetClient:
    """
    Fetches the master sheet and installs it as the session catalog.

    Usage:
        client = MasterSheetClient(settings.MASTER_URL)
        result = client.sync(session.catalog)
    """

    def __init__(self, source: str | Path):
        self.source = source

    def fetch(self) -> pd.DataFrame:
        """
        Read the sheet as strings.

        Every cell stays text (blank cells are "") so the catalog builder
        decides how to coerce quantities.
        """
        try:
            df = pd.read_csv(
                self.source,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
                encoding="utf-8-sig",
            )
        except pd.errors.EmptyDataError as e:
            raise CatalogSyncError(EMPTY_SHEET_MESSAGE) from e
        except (OSError, ValueError) as e:
            # urllib errors are OSError subclasses; malformed CSV is a ValueError
            logger.error("Master sheet fetch from %s failed: %s", self.source, e)
            raise CatalogSyncError(
                f"Could not fetch or process master data. Error: {e}"
            ) from e

        if df.empty:
            return df

        # Drop rows that are blank in every column
        blank = df.apply(lambda col: col.str.strip() == "").all(axis=1)
        return df.loc[~blank].reset_index(drop=True)

    def load(self) -> SyncResult:
        """Fetch and build a catalog without installing it."""
        df = self.fetch()
        if df.empty:
            raise CatalogSyncError(EMPTY_SHEET_MESSAGE)

        quality = check_master_sheet(df)
        catalog = build_catalog(df)
        if len(catalog) == 0:
            raise CatalogSyncError(NO_BARCODES_MESSAGE)

        for issue in quality.issues:
            if issue.severity != "info":
                logger.warning("Master sheet %s: %s", issue.column, issue.description)

        return SyncResult(catalog=catalog, total_rows=len(df), quality=quality)

    def sync(self, store: CatalogStore) -> SyncResult:
        """
        Load the sheet and replace the store's catalog.

        On any failure the store keeps its previous catalog.
        """
        result = self.load()
        store.replace(result.catalog)
        logger.info(
            "Synced %d items from %d rows (%d dropped)",
            result.item_count,
            result.total_rows,
            result.dropped_rows,
        )
        return result
