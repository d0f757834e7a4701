"""Tests for building the master catalog from raw sheet rows."""

from __future__ import annotations

import pandas as pd
import pytest

from stockmatch.core.catalog import (
    CatalogStore,
    MasterCatalog,
    MasterItem,
    build_catalog,
    normalize_column_name,
    parse_expected_qty,
)
from stockmatch.core.errors import PreconditionError


@pytest.mark.parametrize(
    ("value", "expected"),
    [("12", 12), (" 7 ", 7), ("7.9", 7), ("12 pairs", 12), ("abc", 0), ("", 0), (None, 0), ("-3", 0), (4, 4)],
)
def test_parse_expected_qty(value, expected: int) -> None:
    assert parse_expected_qty(value) == expected


@pytest.mark.parametrize(
    ("header", "normalized"),
    [("ExpectedQty", "expectedqty"), ("Expected Qty", "expectedqty"), ("expected_qty", "expectedqty"), (" Rack ", "rack")],
)
def test_normalize_column_name(header: str, normalized: str) -> None:
    assert normalize_column_name(header) == normalized


def test_build_catalog_accepts_header_variants() -> None:
    df = pd.DataFrame(
        {
            "barcode": ["T00001", "t00002"],
            "rack": ["a1", "B1"],
            "Name": ["Runner 9", ""],
            "size": ["42", None],
            "Expected Qty": ["5", "n/a"],
        }
    )

    catalog = build_catalog(df)

    assert catalog["T00001"] == MasterItem("T00001", "Runner 9", "42", "A1", 5)
    assert catalog["T00002"] == MasterItem("T00002", "N/A", "N/A", "B1", 0)


def test_build_catalog_drops_rows_without_barcode() -> None:
    df = pd.DataFrame({"Barcode": ["T00001", "", None, "  "], "ExpectedQty": ["1", "2", "3", "4"]})

    catalog = build_catalog(df)

    assert list(catalog) == ["T00001"]


def test_build_catalog_last_duplicate_wins() -> None:
    df = pd.DataFrame({"Barcode": ["T00001", "T00001"], "ExpectedQty": ["1", "9"]})

    assert build_catalog(df)["T00001"].expected_qty == 9


def test_build_catalog_without_barcode_column_is_empty() -> None:
    df = pd.DataFrame({"Item": ["T00001"], "Qty": ["3"]})

    assert len(build_catalog(df)) == 0


def test_missing_rack_defaults_to_not_available() -> None:
    catalog = build_catalog(pd.DataFrame({"Barcode": ["T00001"]}))

    assert catalog["T00001"].rack_label == "N/A"
    assert catalog["T00001"].expected_qty == 0


def test_items_for_rack_is_case_insensitive(catalog: MasterCatalog) -> None:
    assert sorted(catalog.items_for_rack("a1")) == ["T00001", "T00002"]
    assert catalog.items_for_rack("Z9") == {}


def test_resolve_name(catalog: MasterCatalog) -> None:
    assert catalog.resolve_name("T00001") == "Runner 9"
    assert catalog.resolve_name("T99999") == "Unknown: T99999"


def test_catalog_is_read_only(catalog: MasterCatalog) -> None:
    with pytest.raises(TypeError):
        catalog["T00009"] = MasterItem("T00009")  # type: ignore[index]


def test_catalog_helpers(catalog: MasterCatalog) -> None:
    assert catalog.rack_labels() == ["A1", "B1"]
    assert catalog.total_expected() == 10


def test_catalog_store_lifecycle(catalog: MasterCatalog) -> None:
    store = CatalogStore()
    assert not store.is_loaded
    with pytest.raises(PreconditionError):
        store.require()

    store.replace(catalog)

    assert store.require() is catalog
    assert store.synced_at is not None
