"""
Per-collection syncers.

Every syncer follows the same steps: resolve the parent natural keys the batch
points at, split the batch into valid and invalid records, bulk upsert the valid
ones. What differs between collections is only which parents they reference.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Mapping, Tuple, Type

from django.db import DatabaseError, transaction
from django.utils import timezone

from ..models import Attendance, HealthMetric, Member, Service, Staff, StaffAttendance, SyncedModel, Transaction
from .results import CollectionResult, ReferentialError, SyncError, WriteError
from .store import NATURAL_KEY, CollectionStore

logger = logging.getLogger(__name__)

StoreFactory = Callable[[Type[SyncedModel]], CollectionStore]


@dataclass(frozen=True)
class Reference:
    """A record field holding a parent's natural key."""

    field: str
    target: Type[SyncedModel]
    label: str
    required: bool = False

    @property
    def fk_attname(self) -> str:
        # service_local_id -> service_id
        return self.field.replace("_local_id", "_id")


def _latest_per_key(records: Iterable[Mapping]) -> List[Mapping]:
    """Drop repeated natural keys inside one batch, the last copy wins."""
    latest: Dict[int, Mapping] = {}
    for record in records:
        latest.pop(record[NATURAL_KEY], None)
        latest[record[NATURAL_KEY]] = record
    return list(latest.values())


class CollectionSyncer:
    model: Type[SyncedModel]
    payload_key = ""
    result_key = ""
    record_label = ""
    collection_name = ""
    references: Tuple[Reference, ...] = ()

    def __init__(self, store_factory: StoreFactory = CollectionStore):
        self.store = store_factory(self.model)
        self.reference_stores = {ref.field: store_factory(ref.target) for ref in self.references}
        self._columns = {f.name for f in self.model._meta.concrete_fields} | {
            f.attname for f in self.model._meta.concrete_fields
        }

    def resolve_references(self, records: List[Mapping]) -> Dict[str, Dict[int, int]]:
        resolved = {}
        for ref in self.references:
            keys = {record.get(ref.field) for record in records}
            resolved[ref.field] = self.reference_stores[ref.field].resolve(keys)
        return resolved

    def missing_references(self, record: Mapping, resolved: Dict[str, Dict[int, int]]) -> List[SyncError]:
        errors = []
        for ref in self.references:
            value = record.get(ref.field)
            # 0 and None both mean "no parent" for optional references.
            if not value and not ref.required:
                continue
            if value not in resolved[ref.field]:
                errors.append(
                    ReferentialError.missing(self.record_label, record[NATURAL_KEY], ref.label, value)
                )
        return errors

    def build_row(self, record: Mapping, resolved: Dict[str, Dict[int, int]], synced_at) -> Dict:
        row = {key: value for key, value in record.items() if key in self._columns}
        for ref in self.references:
            value = record.get(ref.field)
            row[ref.field] = value
            row[ref.fk_attname] = resolved[ref.field].get(value) if value else None
        row["last_synced_at"] = synced_at
        return row

    def sync(self, records: Iterable[Mapping]) -> CollectionResult:
        result = CollectionResult()
        batch = _latest_per_key(records)
        if not batch:
            return result

        resolved = self.resolve_references(batch)
        valid = []
        for record in batch:
            missing = self.missing_references(record, resolved)
            if missing:
                result.failed_ids.append(record[NATURAL_KEY])
                result.errors.extend(missing)
            else:
                valid.append(record)

        if result.failed_ids:
            logger.warning(
                "%d %s skipped due to missing references", len(result.failed_ids), self.collection_name
            )
        if not valid:
            return result

        synced_at = timezone.now()
        rows = [self.build_row(record, resolved, synced_at) for record in valid]
        valid_ids = [record[NATURAL_KEY] for record in valid]
        try:
            # Savepoint: a failed statement must not poison the outer transaction.
            with transaction.atomic(using=self.store.using):
                self.store.bulk_upsert(rows)
        except (DatabaseError, ValueError, TypeError) as exc:
            logger.error("Failed to bulk sync %s: %s", self.collection_name, exc)
            result.failed_ids.extend(valid_ids)
            result.errors.append(WriteError(f"Failed to sync {self.collection_name}: {exc}"))
            return result

        result.synced_count = len(valid_ids)
        result.successful_ids.extend(valid_ids)
        return result


class ServiceSyncer(CollectionSyncer):
    model = Service
    payload_key = "services"
    result_key = "services"
    collection_name = "services"
    record_label = "Service"


class MemberSyncer(CollectionSyncer):
    model = Member
    payload_key = "members"
    result_key = "members"
    collection_name = "members"
    record_label = "Member"
    references = (Reference("service_local_id", Service, "service"),)


class AttendanceSyncer(CollectionSyncer):
    model = Attendance
    payload_key = "attendance"
    result_key = "attendance"
    collection_name = "attendance"
    record_label = "Attendance record"
    references = (Reference("member_local_id", Member, "member", required=True),)


class TransactionSyncer(CollectionSyncer):
    model = Transaction
    payload_key = "transactions"
    result_key = "transactions"
    collection_name = "transactions"
    record_label = "Transaction"
    references = (
        Reference("member_local_id", Member, "member"),
        Reference("service_local_id", Service, "service"),
    )


class HealthMetricSyncer(CollectionSyncer):
    model = HealthMetric
    payload_key = "health_metrics"
    result_key = "healthMetrics"
    collection_name = "health metrics"
    record_label = "Health metric record"
    references = (Reference("member_local_id", Member, "member", required=True),)


class StaffSyncer(CollectionSyncer):
    model = Staff
    payload_key = "staff"
    result_key = "staff"
    collection_name = "staff"
    record_label = "Staff"


class StaffAttendanceSyncer(CollectionSyncer):
    model = StaffAttendance
    payload_key = "staff_attendance"
    result_key = "staffAttendance"
    collection_name = "staff attendance"
    record_label = "Staff attendance record"
    references = (Reference("staff_local_id", Staff, "staff", required=True),)


# Parents strictly before children.
SYNC_ORDER: Tuple[Type[CollectionSyncer], ...] = (
    ServiceSyncer,
    MemberSyncer,
    AttendanceSyncer,
    TransactionSyncer,
    HealthMetricSyncer,
    StaffSyncer,
    StaffAttendanceSyncer,
)

