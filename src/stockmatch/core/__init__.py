# Core stock-take engine: catalog, rack ledgers, aggregation and reconciliation
# Nothing here knows about the sheet source, the UI or the file system layout

from .barcodes import is_valid_barcode, normalize_barcode, validate_barcode
from .catalog import CatalogStore, MasterCatalog, MasterItem, build_catalog
from .ledger import RackStore, RackSummary, ScanLedger, ScanRecord
from .aggregation import AggregatedObservation, aggregate, aggregate_rack, aggregate_store
from .reconciliation import (
    ComparisonRow,
    ReconciliationEngine,
    Report,
    ReportLine,
    ReportStatus,
    Scope,
    compare_full_catalog,
)
from .session import InventorySession

__all__ = [
    "is_valid_barcode",
    "normalize_barcode",
    "validate_barcode",
    "CatalogStore",
    "MasterCatalog",
    "MasterItem",
    "build_catalog",
    "RackStore",
    "RackSummary",
    "ScanLedger",
    "ScanRecord",
    "AggregatedObservation",
    "aggregate",
    "aggregate_rack",
    "aggregate_store",
    "ComparisonRow",
    "ReconciliationEngine",
    "Report",
    "ReportLine",
    "ReportStatus",
    "Scope",
    "compare_full_catalog",
    "InventorySession",
]
