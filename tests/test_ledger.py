"""Tests for scan ledgers and the rack store."""

from __future__ import annotations

import threading

import pytest

from stockmatch.core.aggregation import aggregate_store
from stockmatch.core.errors import InvalidQuantityError, ItemNotFoundError, RackNameError
from stockmatch.core.ledger import RackStore, RackSummary, ScanLedger, ScanRecord, normalize_rack_id


def test_scanning_same_barcode_twice_increments_single_record(store: RackStore) -> None:
    store.record_scan("A1", "T00001", "Runner 9")
    record = store.record_scan("A1", "T00001", "Runner 9")

    ledger = store.ledger("A1")
    assert len(ledger) == 1
    assert record is not None
    assert record.quantity == 2
    assert ledger.get("T00001") == record


def test_record_scan_refreshes_timestamp(store: RackStore, clock) -> None:
    first = store.record_scan("A1", "T00001", "Runner 9")
    second = store.record_scan("A1", "T00001", "Runner 9")

    assert second.last_scanned_at > first.last_scanned_at


def test_record_scan_creates_rack_and_normalizes_ids(store: RackStore) -> None:
    record = store.record_scan(" a1 ", "t00001", "Runner 9")

    assert "A1" in store
    assert store.rack_ids() == ["A1"]
    assert record.barcode == "T00001"


def test_record_scan_with_invalid_barcode_is_noop(store: RackStore) -> None:
    assert store.record_scan("A1", "X1", "Bad") is None
    assert len(store) == 0


def test_record_scan_rejects_blank_rack(store: RackStore) -> None:
    with pytest.raises(RackNameError):
        store.record_scan("   ", "T00001", "Runner 9")


def test_adjust_below_zero_removes_record(store: RackStore) -> None:
    store.record_scan("A1", "T00001", "Runner 9")
    store.record_scan("A1", "T00001", "Runner 9")

    assert store.adjust_quantity("A1", "T00001", -2) is None
    assert "T00001" not in store.ledger("A1")
    # Rack stays until deleted explicitly
    assert "A1" in store


def test_adjust_applies_any_delta(store: RackStore) -> None:
    store.record_scan("A1", "T00001", "Runner 9")

    updated = store.adjust_quantity("A1", "T00001", 4)
    assert updated.quantity == 5
    assert store.adjust_quantity("A1", "T00001", -1).quantity == 4


def test_adjust_missing_barcode_raises_not_found(store: RackStore) -> None:
    store.record_scan("A1", "T00001", "Runner 9")

    with pytest.raises(ItemNotFoundError):
        store.adjust_quantity("A1", "T00002", 1)
    with pytest.raises(ItemNotFoundError):
        store.adjust_quantity("ZZ", "T00001", 1)


def test_set_quantity_replaces_and_refreshes(store: RackStore) -> None:
    first = store.record_scan("A1", "T00001", "Runner 9")

    updated = store.set_quantity("A1", "T00001", 12)
    assert updated.quantity == 12
    assert updated.last_scanned_at > first.last_scanned_at


@pytest.mark.parametrize("bad", [0, -3])
def test_set_quantity_rejects_values_below_one(store: RackStore, bad: int) -> None:
    store.record_scan("A1", "T00001", "Runner 9")

    with pytest.raises(InvalidQuantityError):
        store.set_quantity("A1", "T00001", bad)
    assert store.ledger("A1").get("T00001").quantity == 1


def test_set_quantity_on_absent_barcode_raises(store: RackStore) -> None:
    with pytest.raises(ItemNotFoundError):
        store.set_quantity("A1", "T00001", 3)


def test_remove_item_is_noop_when_absent(store: RackStore) -> None:
    store.record_scan("A1", "T00001", "Runner 9")

    store.remove_item("A1", "T00002")
    store.remove_item("B9", "T00001")
    store.remove_item("A1", "T00001")

    assert len(store.ledger("A1")) == 0


def test_delete_rack_is_idempotent(store: RackStore) -> None:
    store.record_scan("A1", "T00001", "Runner 9")

    store.delete_rack("A1")
    store.delete_rack("A1")

    assert "A1" not in store
    assert len(store.ledger("A1")) == 0


def test_rename_fails_when_target_exists(store: RackStore) -> None:
    store.record_scan("A", "T00001", "Runner 9")
    store.record_scan("B", "T00002", "Court Low")

    assert store.rename_rack("A", "B") is False
    assert store.ledger("A").get("T00001") is not None
    assert store.ledger("B").get("T00002") is not None


def test_rename_moves_all_records_to_new_rack(store: RackStore) -> None:
    store.record_scan("A", "T00001", "Runner 9")
    store.record_scan("A", "T00002", "Court Low")

    assert store.rename_rack("A", "b") is True
    assert "A" not in store
    assert sorted(store.ledger("B")) == ["T00001", "T00002"]


@pytest.mark.parametrize(
    ("old", "new"),
    [("A", "A"), ("a", "A"), ("MISSING", "C")],
)
def test_rename_refused_cases(store: RackStore, old: str, new: str) -> None:
    store.record_scan("A", "T00001", "Runner 9")

    assert store.rename_rack(old, new) is False
    assert store.rack_ids() == ["A"]


def test_list_racks_sorted_with_counts(store: RackStore) -> None:
    store.record_scan("B2", "T00003", "Trail Mid")
    store.record_scan("A1", "T00001", "Runner 9")
    store.record_scan("A1", "T00001", "Runner 9")
    store.record_scan("A1", "T00002", "Court Low")

    assert store.list_racks() == [
        RackSummary(rack_id="A1", item_count=2, total_quantity=3),
        RackSummary(rack_id="B2", item_count=1, total_quantity=1),
    ]


def test_recent_first_orders_by_last_scan(store: RackStore) -> None:
    store.record_scan("A1", "T00001", "Runner 9")
    store.record_scan("A1", "T00002", "Court Low")
    store.record_scan("A1", "T00001", "Runner 9")

    assert [r.barcode for r in store.ledger("A1").recent_first()] == ["T00001", "T00002"]


def test_ledger_rejects_zero_quantity_records() -> None:
    with pytest.raises(InvalidQuantityError):
        ScanLedger({"T00001": ScanRecord("T00001", "Runner 9", 0, 1)})


def test_normalize_rack_id() -> None:
    assert normalize_rack_id(" b12 ") == "B12"
    with pytest.raises(RackNameError):
        normalize_rack_id("")


@pytest.mark.parametrize("reserved", ["STORE-WIDE", " store-wide "])
def test_store_wide_is_not_a_rack_id(store: RackStore, reserved: str) -> None:
    with pytest.raises(RackNameError):
        store.record_scan(reserved, "T00001", "Runner 9")

    store.record_scan("A1", "T00001", "Runner 9")
    with pytest.raises(RackNameError):
        store.rename_rack("A1", reserved)
    assert store.rack_ids() == ["A1"]


def test_concurrent_scans_do_not_lose_increments() -> None:
    store = RackStore()
    per_thread = 200

    def worker() -> None:
        for _ in range(per_thread):
            store.record_scan("A1", "T00001", "Runner 9")

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert store.ledger("A1").get("T00001").quantity == 8 * per_thread


def test_readers_see_consistent_racks_during_renames() -> None:
    store = RackStore()
    store.record_scan("A", "T00001", "Runner 9")
    store.record_scan("C", "T00002", "Court Low")
    stop = threading.Event()

    def renamer() -> None:
        while not stop.is_set():
            store.rename_rack("A", "B")
            store.rename_rack("B", "A")

    def scanner() -> None:
        while not stop.is_set():
            store.record_scan("C", "T00003", "Trail Mid")

    threads = [threading.Thread(target=renamer), threading.Thread(target=scanner)]
    for t in threads:
        t.start()
    try:
        for _ in range(2000):
            totals = aggregate_store(store)
            summaries = store.list_racks()
            assert totals["T00001"].total_quantity == 1
            assert len({s.rack_id for s in summaries} & {"A", "B"}) == 1
    finally:
        stop.set()
        for t in threads:
            t.join()


def test_ledger_snapshot_is_detached_from_store(store: RackStore) -> None:
    store.record_scan("A1", "T00001", "Runner 9")
    snapshot = store.ledger("A1")

    store.record_scan("A1", "T00001", "Runner 9")
    store.record_scan("A1", "T00002", "Court Low")

    assert snapshot.get("T00001").quantity == 1
    assert len(snapshot) == 1
