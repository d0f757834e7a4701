"""Tests for barcode validation and normalization."""

from __future__ import annotations

import pytest

from stockmatch.core.barcodes import (
    INVALID_FORMAT_MESSAGE,
    is_valid_barcode,
    normalize_barcode,
    validate_barcode,
)
from stockmatch.core.errors import BarcodeValidationError


@pytest.mark.parametrize("raw", ["T12345", "t00001", " T12345 ", "\tT99999\n"])
def test_valid_barcodes(raw: str) -> None:
    assert is_valid_barcode(raw)


@pytest.mark.parametrize(
    "raw",
    ["T1234", "T123456", "A12345", "", "   ", None, "TT12345", "T12 45", "12345", "T1234５"],
)
def test_invalid_barcodes(raw: str | None) -> None:
    assert not is_valid_barcode(raw)


def test_normalize_trims_and_uppercases() -> None:
    assert normalize_barcode(" t00001 ") == "T00001"


def test_validate_returns_normalized_barcode() -> None:
    assert validate_barcode("t00042") == "T00042"


def test_validate_raises_with_actionable_message() -> None:
    with pytest.raises(BarcodeValidationError) as exc_info:
        validate_barcode("A12345")

    assert str(exc_info.value) == INVALID_FORMAT_MESSAGE
    assert exc_info.value.barcode == "A12345"
    # Callers that only know ValueError still catch it
    assert isinstance(exc_info.value, ValueError)
