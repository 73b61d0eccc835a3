"""Sync orchestration: run every collection syncer inside one transaction."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, List, Mapping, Optional

from django.db import DatabaseError, transaction
from django.db.models import Max

from .results import CollectionResult, SyncError, SyncResult, UnexpectedError
from .store import CollectionStore
from .syncers import SYNC_ORDER, StoreFactory

logger = logging.getLogger(__name__)


class _Rollback(Exception):
    """Raised inside the atomic block to discard the whole batch."""


def _run_syncers(payload: Mapping, store_factory: StoreFactory) -> Dict[str, CollectionResult]:
    results: Dict[str, CollectionResult] = {}
    for syncer_cls in SYNC_ORDER:
        records = payload.get(syncer_cls.payload_key) or []
        if not records:
            continue
        results[syncer_cls.result_key] = syncer_cls(store_factory).sync(records)
    return results


def _collect_errors(results: Dict[str, CollectionResult]) -> List[SyncError]:
    errors: List[SyncError] = []
    for result in results.values():
        errors.extend(result.errors)
    return errors


def run_sync(payload: Mapping, store_factory: StoreFactory = CollectionStore) -> SyncResult:
    """
    Merge one desktop payload into the cloud tables.

    Any unresolved parent reference rolls back everything written by this call,
    including collections that synced cleanly. Bulk write failures only fail
    their own collection.
    """
    results: Dict[str, CollectionResult] = {}
    errors: List[SyncError] = []
    try:
        with transaction.atomic():
            results = _run_syncers(payload, store_factory)
            errors = _collect_errors(results)
            if any(error.critical for error in errors):
                raise _Rollback()
    except _Rollback:
        logger.warning("Sync rolled back due to critical errors: %s", "; ".join(map(str, errors)))
        return SyncResult(success=False, counts=SyncResult.empty_counts(), errors=errors)
    except Exception as exc:
        logger.exception("Sync failed: %s", exc)
        return SyncResult(
            success=False,
            counts=SyncResult.empty_counts(),
            errors=[UnexpectedError(str(exc) or exc.__class__.__name__)],
        )

    counts = SyncResult.empty_counts()
    for key, result in results.items():
        counts[key] = result.synced_count
    logger.info(
        "Sync completed: %s",
        ", ".join(f"{count} {key}" for key, count in counts.items()),
    )
    return SyncResult(
        success=not errors,
        counts=counts,
        errors=errors,
        results=results or None,
    )


def last_sync_time() -> Optional[datetime]:
    """Most recent `last_synced_at` across every synced table, or None."""
    latest = []
    for syncer_cls in SYNC_ORDER:
        model = syncer_cls.model
        try:
            value = model.objects.filter(last_synced_at__isnull=False).aggregate(
                latest=Max("last_synced_at")
            )["latest"]
        except DatabaseError as exc:
            logger.warning("Failed to get %s last sync time: %s", model._meta.model_name, exc)
            continue
        if value is not None:
            latest.append(value)
    return max(latest) if latest else None
