from .engine import last_sync_time, run_sync
from .results import CollectionResult, ReferentialError, SyncResult, WriteError

__all__ = ["run_sync", "last_sync_time", "CollectionResult", "SyncResult", "ReferentialError", "WriteError"]
