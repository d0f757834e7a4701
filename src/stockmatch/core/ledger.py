"""
Per-rack scan ledgers and the store that holds them.

A ledger maps barcode -> ScanRecord for one rack. Quantities are always at
least 1: any edit that would take a record to 0 removes it instead.
"""

import logging
import threading
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass, replace

from .barcodes import is_valid_barcode, normalize_barcode
from .errors import InvalidQuantityError, ItemNotFoundError, RackNameError

logger = logging.getLogger(__name__)

Clock = Callable[[], int]

# Report scope label; never usable as a rack id
STORE_WIDE = "STORE-WIDE"


def epoch_millis() -> int:
    """Wall-clock time in integer milliseconds."""
    return time.time_ns() // 1_000_000


def normalize_rack_id(raw: str | None) -> str:
    """Trim and upper-case a rack id; empty and reserved ids are rejected."""
    rack_id = (raw or "").strip().upper()
    if not rack_id:
        raise RackNameError("Please enter a valid rack ID.")
    if rack_id == STORE_WIDE:
        raise RackNameError(f"{STORE_WIDE} is reserved for the store-wide report.")
    return rack_id


@dataclass(frozen=True)
class ScanRecord:
    """Observed count of one barcode in one rack."""

    barcode: str
    name: str
    quantity: int
    last_scanned_at: int


@dataclass(frozen=True)
class RackSummary:
    rack_id: str
    item_count: int
    total_quantity: int


class ScanLedger:
    """barcode -> ScanRecord for a single rack."""

    def __init__(self, records: dict[str, ScanRecord] | None = None):
        self._records: dict[str, ScanRecord] = {}
        for record in (records or {}).values():
            if record.quantity < 1:
                raise InvalidQuantityError(
                    f"{record.barcode} has quantity {record.quantity}; must be at least 1"
                )
            self._records[record.barcode] = record

    def __contains__(self, barcode: str) -> bool:
        return barcode in self._records

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def get(self, barcode: str) -> ScanRecord | None:
        return self._records.get(barcode)

    def records(self) -> list[ScanRecord]:
        return list(self._records.values())

    def recent_first(self) -> list[ScanRecord]:
        """Records ordered most-recently scanned first, for display."""
        return sorted(
            self._records.values(), key=lambda r: r.last_scanned_at, reverse=True
        )

    @property
    def item_count(self) -> int:
        return len(self._records)

    @property
    def total_quantity(self) -> int:
        return sum(r.quantity for r in self._records.values())

    def copy(self) -> "ScanLedger":
        clone = ScanLedger()
        clone._records = dict(self._records)
        return clone

    def _put(self, record: ScanRecord) -> None:
        self._records[record.barcode] = record

    def _pop(self, barcode: str) -> ScanRecord | None:
        return self._records.pop(barcode, None)


class RackStore:
    """
    Named scan ledgers keyed by upper-case rack id.

    All mutations go through one lock, so concurrent scans against the same
    rack are applied one at a time and no increment is lost.

    Usage:
        store = RackStore()
        store.record_scan("a1", "T00001", "Runner 9")
        store.adjust_quantity("A1", "T00001", -1)
    """

    def __init__(
        self,
        ledgers: dict[str, ScanLedger] | None = None,
        clock: Clock = epoch_millis,
    ):
        self._ledgers: dict[str, ScanLedger] = {}
        for rack_id, ledger in (ledgers or {}).items():
            self._ledgers[normalize_rack_id(rack_id)] = ledger
        self._clock = clock
        self._lock = threading.RLock()

    def __contains__(self, rack_id: str) -> bool:
        with self._lock:
            return rack_id.strip().upper() in self._ledgers

    def __len__(self) -> int:
        with self._lock:
            return len(self._ledgers)

    def rack_ids(self) -> list[str]:
        with self._lock:
            return sorted(self._ledgers)

    def ledger(self, rack_id: str) -> ScanLedger:
        """
        Snapshot of rack_id's ledger; empty if the rack was never scanned.

        Later scans do not show up in a snapshot already handed out.
        """
        with self._lock:
            ledger = self._ledgers.get(rack_id.strip().upper())
            return ledger.copy() if ledger is not None else ScanLedger()

    def ledgers(self) -> list[tuple[str, ScanLedger]]:
        """Snapshot of (rack_id, ledger) pairs sorted by rack id."""
        with self._lock:
            return [
                (rack_id, self._ledgers[rack_id].copy())
                for rack_id in sorted(self._ledgers)
            ]

    def record_scan(
        self, rack_id: str, barcode: str, resolved_name: str
    ) -> ScanRecord | None:
        """
        Count one scan of barcode in rack_id.

        Invalid barcodes are ignored (returns None); callers validate first
        so they can show the format message. Creates the rack on first scan.
        """
        if not is_valid_barcode(barcode):
            logger.warning("Ignoring scan with invalid barcode %r", barcode)
            return None

        rack_id = normalize_rack_id(rack_id)
        barcode = normalize_barcode(barcode)
        with self._lock:
            ledger = self._ledgers.setdefault(rack_id, ScanLedger())
            current = ledger.get(barcode)
            quantity = current.quantity + 1 if current else 1
            record = ScanRecord(
                barcode=barcode,
                name=resolved_name,
                quantity=quantity,
                last_scanned_at=self._clock(),
            )
            ledger._put(record)
        return record

    def _require_record(self, rack_id: str, barcode: str) -> tuple[ScanLedger, ScanRecord]:
        ledger = self._ledgers.get(rack_id)
        record = ledger.get(barcode) if ledger is not None else None
        if record is None:
            raise ItemNotFoundError(rack_id, barcode)
        return ledger, record

    def adjust_quantity(self, rack_id: str, barcode: str, delta: int) -> ScanRecord | None:
        """
        Add delta to a record's quantity.

        Returns the updated record, or None if the result dropped to 0 or
        below and the record was removed.
        """
        rack_id = normalize_rack_id(rack_id)
        barcode = normalize_barcode(barcode)
        with self._lock:
            ledger, record = self._require_record(rack_id, barcode)
            quantity = record.quantity + delta
            if quantity <= 0:
                ledger._pop(barcode)
                return None
            updated = replace(record, quantity=quantity)
            ledger._put(updated)
        return updated

    def set_quantity(self, rack_id: str, barcode: str, new_qty: int) -> ScanRecord:
        if new_qty < 1:
            raise InvalidQuantityError("Please enter a valid quantity greater than 0.")

        rack_id = normalize_rack_id(rack_id)
        barcode = normalize_barcode(barcode)
        with self._lock:
            ledger, record = self._require_record(rack_id, barcode)
            updated = replace(record, quantity=new_qty, last_scanned_at=self._clock())
            ledger._put(updated)
        return updated

    def remove_item(self, rack_id: str, barcode: str) -> None:
        rack_id = normalize_rack_id(rack_id)
        with self._lock:
            ledger = self._ledgers.get(rack_id)
            if ledger is not None:
                ledger._pop(normalize_barcode(barcode))

    def delete_rack(self, rack_id: str) -> None:
        rack_id = normalize_rack_id(rack_id)
        with self._lock:
            if self._ledgers.pop(rack_id, None) is not None:
                logger.info("Deleted rack %s", rack_id)

    def rename_rack(self, old_id: str, new_id: str) -> bool:
        """
        Move a rack's ledger to a new id.

        Returns False without changing anything if the ids are equal, the
        old rack does not exist, or the new id is already taken.
        """
        old_id = normalize_rack_id(old_id)
        new_id = normalize_rack_id(new_id)
        with self._lock:
            if old_id == new_id or old_id not in self._ledgers or new_id in self._ledgers:
                logger.warning("Refused rename %s -> %s", old_id, new_id)
                return False
            self._ledgers[new_id] = self._ledgers.pop(old_id)
        logger.info("Renamed rack %s -> %s", old_id, new_id)
        return True

    def list_racks(self) -> list[RackSummary]:
        """Per-rack totals, all taken from one snapshot."""
        return [
            RackSummary(
                rack_id=rack_id,
                item_count=ledger.item_count,
                total_quantity=ledger.total_quantity,
            )
            for rack_id, ledger in self.ledgers()
        ]

    def to_dict(self) -> dict[str, dict[str, ScanRecord]]:
        """Plain nested dict of records, for persistence."""
        with self._lock:
            return {
                rack_id: {r.barcode: r for r in ledger.records()}
                for rack_id, ledger in self._ledgers.items()
            }

    @classmethod
    def from_dict(
        cls, data: dict[str, dict[str, ScanRecord]], clock: Clock = epoch_millis
    ) -> "RackStore":
        return cls(
            {rack_id: ScanLedger(records) for rack_id, records in data.items()},
            clock=clock,
        )
