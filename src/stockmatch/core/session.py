"""
Session object tying the catalog, the rack ledgers and the report engine
together.

Replaces a single shared app context: whoever drives the engine (the
dashboard, a test, a script) creates an InventorySession and passes it
around explicitly.
"""

import logging

from .aggregation import aggregate_rack, aggregate_store
from .barcodes import validate_barcode
from .catalog import CatalogStore
from .errors import PreconditionError
from .ledger import RackStore, ScanRecord, normalize_rack_id
from .reconciliation import (
    ComparisonRow,
    ReconciliationEngine,
    Report,
    Scope,
    compare_full_catalog,
)

logger = logging.getLogger(__name__)

NO_RACKS_MESSAGE = "You must scan at least one rack to generate a report."


class InventorySession:
    """
    Scan, edit and report against one catalog and one set of racks.

    Usage:
        session = InventorySession()
        MasterSheetClient(url).sync(session.catalog)
        session.scan("a1", "T00001")
        report = session.rack_report("A1")
    """

    def __init__(
        self,
        catalog: CatalogStore | None = None,
        racks: RackStore | None = None,
        selected_scope: str | None = None,
    ):
        self.catalog = catalog if catalog is not None else CatalogStore()
        self.racks = racks if racks is not None else RackStore()
        self.selected_scope = selected_scope

    def scan(self, rack_id: str, raw_barcode: str) -> ScanRecord:
        """
        Validate and count one scan.

        Raises BarcodeValidationError for a malformed barcode and
        PreconditionError if the master list has not been synced; in both
        cases the ledger is untouched.
        """
        barcode = validate_barcode(raw_barcode)
        rack_id = normalize_rack_id(rack_id)
        catalog = self.catalog.require()
        return self.racks.record_scan(rack_id, barcode, catalog.resolve_name(barcode))

    def rack_report(self, rack_id: str) -> Report:
        scope = Scope.single_rack(normalize_rack_id(rack_id))
        engine = ReconciliationEngine(self.catalog.require())
        report = engine.reconcile(scope, aggregate_rack(self.racks, scope.rack_id))
        logger.info("Report for %s: %s", scope.label, report.counts())
        return report

    def store_report(self) -> Report:
        engine = ReconciliationEngine(self.catalog.require())
        if len(self.racks) == 0:
            raise PreconditionError(NO_RACKS_MESSAGE)
        report = engine.reconcile(Scope.store_wide(), aggregate_store(self.racks))
        logger.info("Store-wide report: %s", report.counts())
        return report

    def report(self, scope: Scope) -> Report:
        if scope.is_store_wide:
            return self.store_report()
        return self.rack_report(scope.rack_id)

    def full_comparison(self) -> list[ComparisonRow]:
        return compare_full_catalog(self.catalog.require(), aggregate_store(self.racks))
