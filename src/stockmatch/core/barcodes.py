"""
Barcode validation for scanned shoe-box labels.

Labels are Code 39 strings of the form T + 5 digits (e.g. T12345). Anything
else coming off the camera or the keyboard is rejected before it can touch
a rack ledger.
"""

import re

from .errors import BarcodeValidationError

BARCODE_PATTERN = re.compile(r"^[tT]\d{5}$")

INVALID_FORMAT_MESSAGE = "Invalid: Format must be T + 5 digits (e.g., T12345)"


def is_valid_barcode(raw: str | None) -> bool:
    """Return True if the trimmed string is T/t followed by exactly 5 digits."""
    if raw is None:
        return False
    # re's \d also accepts non-ASCII digits
    trimmed = str(raw).strip()
    return trimmed.isascii() and BARCODE_PATTERN.match(trimmed) is not None


def normalize_barcode(raw: str) -> str:
    """
    Canonical ledger/catalog key for a barcode.

    Trims whitespace and upper-cases, so "t00001" and "T00001" refer to the
    same item.
    """
    return str(raw).strip().upper()


def validate_barcode(raw: str | None) -> str:
    """Return the normalized barcode or raise BarcodeValidationError."""
    if not is_valid_barcode(raw):
        raise BarcodeValidationError(INVALID_FORMAT_MESSAGE, barcode=raw)
    return normalize_barcode(raw)
