"""
Merge rack ledgers into one observed-quantity map.

A single-rack report aggregates exactly one ledger; a store-wide report
aggregates all of them. Totals are plain sums and rack attribution is a set
union, so the order racks are visited in does not change the result.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from .ledger import RackStore, ScanLedger


@dataclass(frozen=True)
class AggregatedObservation:
    """Scanned total for one barcode across the racks in scope."""

    barcode: str
    name: str
    total_quantity: int
    contributing_racks: frozenset[str]

    def rack_attribution(self) -> str:
        return ", ".join(sorted(self.contributing_racks))


def aggregate(
    ledgers: Iterable[tuple[str, ScanLedger]],
) -> dict[str, AggregatedObservation]:
    """Sum quantities per barcode and collect the racks that reported it."""
    totals: dict[str, int] = {}
    names: dict[str, str] = {}
    racks: dict[str, set[str]] = {}

    for rack_id, ledger in ledgers:
        for record in ledger.records():
            totals[record.barcode] = totals.get(record.barcode, 0) + record.quantity
            names.setdefault(record.barcode, record.name)
            racks.setdefault(record.barcode, set()).add(rack_id)

    return {
        barcode: AggregatedObservation(
            barcode=barcode,
            name=names[barcode],
            total_quantity=total,
            contributing_racks=frozenset(racks[barcode]),
        )
        for barcode, total in totals.items()
    }


def aggregate_rack(store: RackStore, rack_id: str) -> dict[str, AggregatedObservation]:
    """Observations for one rack (empty if it was never scanned)."""
    rack_id = rack_id.strip().upper()
    return aggregate([(rack_id, store.ledger(rack_id))])


def aggregate_store(store: RackStore) -> dict[str, AggregatedObservation]:
    """Observations summed over every rack in the store."""
    return aggregate(store.ledgers())
