"""
Reconciliation of scanned counts against the master catalog.

Two report flavours live here and are deliberately kept apart:

- ReconciliationEngine: the in-app rack / store-wide report. Any count that
  differs from the expected quantity is MISMATCHED, and anything scanned
  that the rack (or store) does not expect is EXTRA.
- compare_full_catalog: the comparison sheet of the full Excel export. It
  splits over-counts (EXTRA) from under-counts (MISMATCHED) and calls
  barcodes missing from the catalog UNLISTED.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

from .aggregation import AggregatedObservation
from .catalog import NOT_AVAILABLE, MasterCatalog, MasterItem
from .errors import PreconditionError
from .ledger import STORE_WIDE, normalize_rack_id


class ReportStatus(Enum):
    """Bucket a line item falls into."""

    MATCHED = "MATCHED"
    MISMATCHED = "MISMATCHED"
    MISSING = "MISSING"
    EXTRA = "EXTRA"
    UNLISTED = "UNLISTED"  # Full-catalog comparison only


@dataclass(frozen=True)
class Scope:
    """Either one rack or the whole store."""

    rack_id: str | None = None

    @classmethod
    def single_rack(cls, rack_id: str) -> "Scope":
        return cls(rack_id=normalize_rack_id(rack_id))

    @classmethod
    def store_wide(cls) -> "Scope":
        return cls(rack_id=None)

    @property
    def is_store_wide(self) -> bool:
        return self.rack_id is None

    @property
    def label(self) -> str:
        return STORE_WIDE if self.rack_id is None else self.rack_id

    @classmethod
    def from_label(cls, label: str) -> "Scope":
        if label.strip().upper() == STORE_WIDE:
            return cls.store_wide()
        return cls.single_rack(label)


@dataclass(frozen=True)
class ReportLine:
    """One classified barcode in a report."""

    barcode: str
    name: str
    rack: str
    expected_qty: int
    found_qty: int
    status: ReportStatus
    detail: str = ""


@dataclass(frozen=True)
class Report:
    """Classified result of one reconciliation pass."""

    scope: Scope
    matched: tuple[ReportLine, ...] = ()
    mismatched: tuple[ReportLine, ...] = ()
    missing: tuple[ReportLine, ...] = ()
    extra: tuple[ReportLine, ...] = ()

    def lines(self) -> list[ReportLine]:
        return [*self.matched, *self.mismatched, *self.missing, *self.extra]

    def discrepancies(self) -> list[ReportLine]:
        """Everything except matched lines, in export order."""
        return [*self.mismatched, *self.missing, *self.extra]

    @property
    def is_perfect_match(self) -> bool:
        return not self.discrepancies()

    def counts(self) -> dict[str, int]:
        return {
            "matched": len(self.matched),
            "mismatched": len(self.mismatched),
            "missing": len(self.missing),
            "extra": len(self.extra),
        }

    def summary(self) -> dict:
        return {"scope": self.scope.label, **self.counts()}


@dataclass
class _Buckets:
    matched: list[ReportLine] = field(default_factory=list)
    mismatched: list[ReportLine] = field(default_factory=list)
    missing: list[ReportLine] = field(default_factory=list)
    extra: list[ReportLine] = field(default_factory=list)


class ReconciliationEngine:
    """
    Builds the in-app discrepancy report for a rack or the whole store.

    Algorithm:
    1. Take the relevant slice of the catalog (items labelled with the rack,
       or everything for store-wide) as a working copy.
    2. For each observed barcode in that slice: equal counts are MATCHED,
       different counts MISMATCHED; the barcode is then crossed off. Observed
       barcodes outside the slice are EXTRA. For a single rack this includes
       items the catalog expects in some other rack.
    3. Whatever is left in the slice was never scanned: MISSING.

    Usage:
        engine = ReconciliationEngine(catalog_store.require())
        report = engine.reconcile(Scope.single_rack("A1"), aggregate_rack(store, "A1"))
    """

    def __init__(self, catalog: MasterCatalog | None):
        if catalog is None:
            raise PreconditionError(
                "Master stock data not loaded. Please sync the master list "
                "before generating a report."
            )
        self.catalog = catalog

    def relevant_items(self, scope: Scope) -> dict[str, MasterItem]:
        if scope.is_store_wide:
            return dict(self.catalog)
        return self.catalog.items_for_rack(scope.rack_id)

    def reconcile(
        self, scope: Scope, observed: Mapping[str, AggregatedObservation]
    ) -> Report:
        remaining = self.relevant_items(scope)
        buckets = _Buckets()

        for barcode, obs in observed.items():
            found = obs.total_quantity
            rack = obs.rack_attribution() if scope.is_store_wide else scope.label
            item = remaining.pop(barcode, None)

            if item is None:
                buckets.extra.append(
                    ReportLine(
                        barcode=barcode,
                        name=obs.name or "Unknown Item",
                        rack=rack,
                        expected_qty=0,
                        found_qty=found,
                        status=ReportStatus.EXTRA,
                        detail=f"Found {found} of this unlisted item.",
                    )
                )
            elif found == item.expected_qty:
                buckets.matched.append(
                    ReportLine(
                        barcode=barcode,
                        name=item.name,
                        rack=rack,
                        expected_qty=item.expected_qty,
                        found_qty=item.expected_qty,
                        status=ReportStatus.MATCHED,
                    )
                )
            else:
                buckets.mismatched.append(
                    ReportLine(
                        barcode=barcode,
                        name=item.name,
                        rack=rack,
                        expected_qty=item.expected_qty,
                        found_qty=found,
                        status=ReportStatus.MISMATCHED,
                        detail=f"Expected {item.expected_qty}, but found {found}.",
                    )
                )

        for barcode, item in remaining.items():
            buckets.missing.append(
                ReportLine(
                    barcode=barcode,
                    name=item.name,
                    rack=item.rack_label if scope.is_store_wide else scope.label,
                    expected_qty=item.expected_qty,
                    found_qty=0,
                    status=ReportStatus.MISSING,
                    detail=f"Expected {item.expected_qty}, but none were found.",
                )
            )

        return Report(
            scope=scope,
            matched=tuple(buckets.matched),
            mismatched=tuple(buckets.mismatched),
            missing=tuple(buckets.missing),
            extra=tuple(buckets.extra),
        )


@dataclass(frozen=True)
class ComparisonRow:
    """One row of the full-catalog comparison sheet."""

    status: ReportStatus
    barcode: str
    name: str
    rack: str
    expected_qty: int
    scanned_qty: int
    difference: int


def compare_full_catalog(
    catalog: MasterCatalog | None, observed: Mapping[str, AggregatedObservation]
) -> list[ComparisonRow]:
    """
    Three-way comparison of store-wide totals against the entire catalog.

    scanned > expected is EXTRA, scanned < expected is MISMATCHED, equal is
    MATCHED. Scanned barcodes the catalog does not know are UNLISTED and
    catalog items never scanned anywhere are MISSING.
    """
    if catalog is None:
        raise PreconditionError(
            "Master stock data not loaded. Please sync the master list before exporting."
        )

    rows: list[ComparisonRow] = []
    for barcode, obs in observed.items():
        scanned = obs.total_quantity
        item = catalog.get(barcode)
        if item is None:
            rows.append(
                ComparisonRow(
                    status=ReportStatus.UNLISTED,
                    barcode=barcode,
                    name="Unknown Item",
                    rack=NOT_AVAILABLE,
                    expected_qty=0,
                    scanned_qty=scanned,
                    difference=scanned,
                )
            )
            continue

        if scanned > item.expected_qty:
            status = ReportStatus.EXTRA
        elif scanned < item.expected_qty:
            status = ReportStatus.MISMATCHED
        else:
            status = ReportStatus.MATCHED
        rows.append(
            ComparisonRow(
                status=status,
                barcode=barcode,
                name=item.name,
                rack=item.rack_label,
                expected_qty=item.expected_qty,
                scanned_qty=scanned,
                difference=scanned - item.expected_qty,
            )
        )

    for barcode, item in catalog.items():
        if barcode in observed:
            continue
        rows.append(
            ComparisonRow(
                status=ReportStatus.MISSING,
                barcode=barcode,
                name=item.name,
                rack=item.rack_label,
                expected_qty=item.expected_qty,
                scanned_qty=0,
                difference=-item.expected_qty,
            )
        )

    return rows
