# Adapters for what sits outside the engine: the master sheet and scan input

from .master_sheet import MasterSheetClient, SyncResult
from .scan_input import ScanCooldown

__all__ = ["MasterSheetClient", "SyncResult", "ScanCooldown"]
