"""Natural-key access to one synced table (lookup + bulk upsert)."""
from __future__ import annotations

from typing import Dict, Iterable, List, Sequence, Type

from ..models import SyncedModel

NATURAL_KEY = "local_id"
# Columns the upsert never overwrites on an existing row.
INSERT_ONLY_FIELDS = {"id", NATURAL_KEY, "created_at"}


class CollectionStore:
    """
    Narrow handle over one synced model.

    Syncers only need two things from the database: translate desktop natural
    keys into cloud surrogate keys, and write a batch keyed by natural key.
    """

    def __init__(self, model: Type[SyncedModel], using: str = "default"):
        self.model = model
        self.using = using

    def resolve(self, natural_keys: Iterable[int]) -> Dict[int, int]:
        """Map natural keys to surrogate keys. Unknown keys and 0 are absent."""
        keys = {key for key in natural_keys if key}
        if not keys:
            return {}
        rows = (
            self.model.objects.using(self.using)
            .filter(**{f"{NATURAL_KEY}__in": keys})
            .values_list(NATURAL_KEY, "pk")
        )
        return dict(rows)

    def update_fields(self) -> List[str]:
        return [
            field.name
            for field in self.model._meta.concrete_fields
            if field.name not in INSERT_ONLY_FIELDS
        ]

    def bulk_upsert(self, rows: Sequence[Dict]) -> int:
        """Insert new rows, overwrite existing ones matched on `local_id`."""
        if not rows:
            return 0
        objs = [self.model(**row) for row in rows]
        self.model.objects.using(self.using).bulk_create(
            objs,
            update_conflicts=True,
            unique_fields=[NATURAL_KEY],
            update_fields=self.update_fields(),
        )
        return len(objs)
