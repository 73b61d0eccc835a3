"""Result and error values passed between syncers and the orchestrator."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from django.utils import timezone


@dataclass(frozen=True)
class SyncError:
    message: str

    # Critical errors roll back the whole batch.
    critical = False

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class ReferentialError(SyncError):
    """A record points at a parent that is neither in the batch nor in the cloud."""

    critical = True

    @classmethod
    def missing(cls, record_label: str, local_id: int, target_label: str, target_local_id: int) -> "ReferentialError":
        return cls(
            f"{record_label} with localId {local_id} references missing "
            f"{target_label} with localId {target_local_id}"
        )


@dataclass(frozen=True)
class WriteError(SyncError):
    """The bulk upsert for an otherwise valid subset failed in the database."""


@dataclass(frozen=True)
class UnexpectedError(SyncError):
    """Anything escaping the orchestrator itself (commit, connection, ...)."""


@dataclass
class CollectionResult:
    synced_count: int = 0
    successful_ids: List[int] = field(default_factory=list)
    failed_ids: List[int] = field(default_factory=list)
    errors: List[SyncError] = field(default_factory=list)

    def as_dict(self) -> Dict[str, List[int]]:
        return {"successful": list(self.successful_ids), "failed": list(self.failed_ids)}


# Response key prefix per collection, in sync order.
COLLECTION_KEYS = (
    "services",
    "members",
    "attendance",
    "transactions",
    "healthMetrics",
    "staff",
    "staffAttendance",
)


@dataclass
class SyncResult:
    success: bool
    counts: Dict[str, int] = field(default_factory=dict)
    errors: List[SyncError] = field(default_factory=list)
    results: Optional[Dict[str, CollectionResult]] = None
    timestamp: datetime = field(default_factory=timezone.now)

    @classmethod
    def empty_counts(cls) -> Dict[str, int]:
        return {key: 0 for key in COLLECTION_KEYS}

    def as_dict(self) -> Dict:
        payload = {"success": self.success}
        for key in COLLECTION_KEYS:
            payload[f"{key}Synced"] = self.counts.get(key, 0)
        if self.errors:
            payload["errors"] = [str(error) for error in self.errors]
        payload["timestamp"] = self.timestamp.isoformat()
        if self.results:
            payload["results"] = {key: result.as_dict() for key, result in self.results.items()}
        return payload
