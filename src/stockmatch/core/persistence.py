"""
Save and restore rack scan state as a JSON blob.

The blob holds every rack ledger plus the last selected report scope. It is
validated with Pydantic on load, so a hand-edited or truncated file fails
loudly instead of producing ledgers with zero or negative quantities.
"""

import logging
import os
import tempfile
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from .errors import StateStoreError
from .ledger import Clock, RackStore, ScanRecord, epoch_millis

logger = logging.getLogger(__name__)

STATE_VERSION = 1


class PersistedScanRecord(BaseModel):
    """One ledger entry as stored on disk."""

    barcode: str
    name: str
    quantity: int = Field(ge=1)
    last_scanned_at: int = Field(description="Epoch milliseconds of the last scan")


class PersistedState(BaseModel):
    """Everything that survives a restart."""

    version: int = STATE_VERSION
    racks: dict[str, dict[str, PersistedScanRecord]] = Field(default_factory=dict)
    selected_scope: str | None = None

    @classmethod
    def from_store(
        cls, store: RackStore, selected_scope: str | None = None
    ) -> "PersistedState":
        return cls(
            racks={
                rack_id: {
                    barcode: PersistedScanRecord(
                        barcode=r.barcode,
                        name=r.name,
                        quantity=r.quantity,
                        last_scanned_at=r.last_scanned_at,
                    )
                    for barcode, r in records.items()
                }
                for rack_id, records in store.to_dict().items()
            },
            selected_scope=selected_scope,
        )

    def to_store(self, clock: Clock = epoch_millis) -> RackStore:
        return RackStore.from_dict(
            {
                rack_id: {
                    barcode: ScanRecord(
                        barcode=r.barcode,
                        name=r.name,
                        quantity=r.quantity,
                        last_scanned_at=r.last_scanned_at,
                    )
                    for barcode, r in records.items()
                }
                for rack_id, records in self.racks.items()
            },
            clock=clock,
        )


def serialize_state(store: RackStore, selected_scope: str | None = None) -> str:
    return PersistedState.from_store(store, selected_scope).model_dump_json(indent=2)


def deserialize_state(text: str) -> PersistedState:
    """Parse a JSON blob; raises StateStoreError if it does not validate."""
    try:
        return PersistedState.model_validate_json(text)
    except ValidationError as e:
        raise StateStoreError(f"Saved state is invalid: {e}") from e


class StateRepository:
    """
    JSON file holding the persisted state.

    Writes go to a temp file in the same directory and are moved into place,
    so a crash mid-write leaves the previous state intact.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def load(self) -> PersistedState:
        if not self.path.exists():
            return PersistedState()
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error("Failed to read state from %s: %s", self.path, e)
            raise StateStoreError(f"Could not read saved state: {e}") from e
        return deserialize_state(text)

    def save(self, store: RackStore, selected_scope: str | None = None) -> None:
        payload = serialize_state(store, selected_scope)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            logger.error("Failed to save state to %s: %s", self.path, e)
            raise StateStoreError(f"Could not save state: {e}") from e
        logger.info("Saved %d racks to %s", len(store), self.path)
