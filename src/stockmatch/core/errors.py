"""
Error taxonomy for the stock-take engine.

Every error the engine raises derives from StockMatchError so the dashboard
can catch one type and show the message. Validation errors also subclass
ValueError and lookups subclass KeyError, so plain callers keep working.
"""


class StockMatchError(Exception):
    """Base class for all stock-take errors."""


class BarcodeValidationError(StockMatchError, ValueError):
    """A scanned or typed barcode failed the format check."""

    def __init__(self, message: str, barcode: str | None = None):
        super().__init__(message)
        self.barcode = barcode


class RackNameError(StockMatchError, ValueError):
    """A rack identifier is empty after trimming."""


class InvalidQuantityError(StockMatchError, ValueError):
    """A quantity edit asked for a value below 1."""


class ItemNotFoundError(StockMatchError, KeyError):
    """An edit targeted a barcode (or rack) that is not in the ledger."""

    def __init__(self, rack_id: str, barcode: str):
        super().__init__(f"{barcode} is not scanned in rack {rack_id}")
        self.rack_id = rack_id
        self.barcode = barcode

    def __str__(self) -> str:
        # KeyError quotes its argument otherwise
        return self.args[0]


class PreconditionError(StockMatchError):
    """An operation needs state (e.g. a synced catalog) that is not there yet."""


class CatalogSyncError(StockMatchError):
    """Fetching or parsing the master stock list failed."""


class StateStoreError(StockMatchError):
    """Loading or saving persisted rack state failed."""


class ExportError(StockMatchError):
    """Writing a report file failed."""


class NothingToExportError(ExportError):
    """A discrepancy export was requested for a report with no discrepancies."""
