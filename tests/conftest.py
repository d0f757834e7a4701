"""Shared fixtures and local package import resolution."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
src_str = str(PROJECT_ROOT / "src")
if src_str not in sys.path:
    # Ensure tests can import `stockmatch` without package installation.
    sys.path.insert(0, src_str)

from stockmatch.core.catalog import CatalogStore, MasterCatalog, MasterItem  # noqa: E402
from stockmatch.core.ledger import RackStore  # noqa: E402


class FakeClock:
    """Deterministic millisecond clock that advances on every read."""

    def __init__(self, start: int = 1_700_000_000_000, step: int = 1):
        self.now = start
        self.step = step

    def __call__(self) -> int:
        value = self.now
        self.now += self.step
        return value


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> RackStore:
    return RackStore(clock=clock)


def make_catalog(*items: MasterItem) -> MasterCatalog:
    return MasterCatalog({item.barcode: item for item in items})


@pytest.fixture
def catalog() -> MasterCatalog:
    return make_catalog(
        MasterItem(barcode="T00001", name="Runner 9", size="42", rack_label="A1", expected_qty=5),
        MasterItem(barcode="T00002", name="Court Low", size="40", rack_label="A1", expected_qty=2),
        MasterItem(barcode="T00003", name="Trail Mid", size="44", rack_label="B1", expected_qty=3),
    )


@pytest.fixture
def catalog_store(catalog: MasterCatalog) -> CatalogStore:
    return CatalogStore(catalog)
