"""Checksum-driven reconciliation of observed resources against stored records.

For every incoming resource the reconciler decides one of three actions:

* ``insert`` - nothing is stored under ``(scope, Index)`` yet.
* ``update`` - the stored checksum differs (or is missing); every field the
  resource carries is written over the stored record, nothing else is set.
* ``touch`` - the checksum is unchanged; only ``Timestamp`` and ``Deleted``
  are refreshed so the sweeper keeps the record alive.

Resources are processed one at a time in input order. A store failure stops
the batch; writes already made for earlier resources stay committed.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Set, Tuple

from core.exceptions import DuplicateRecordError
from core.logging import log_event
from core.store import StoreCollection
from core.sync.models import (
    CHECKSUM_FIELD,
    DELETED_FIELD,
    INDEX_FIELD,
    TIMESTAMP_FIELD,
    PassOutcome,
    ResourceRecord,
    Timestamp,
)
from core.sync.states import ResourceEvent, next_resource_state

logger = logging.getLogger(__name__)


class SyncAction(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    TOUCH = "touch"


def effective_filter(scope: Mapping[str, Any], index: str) -> Dict[str, Any]:
    query = dict(scope)
    query[INDEX_FIELD] = index
    return query


def checksum_changed(stored: Mapping[str, Any], checksum: Optional[str]) -> bool:
    """A stored record without a checksum always counts as changed."""
    if CHECKSUM_FIELD not in stored:
        return True
    return stored[CHECKSUM_FIELD] != checksum


class Reconciler:
    def __init__(self, collection: StoreCollection, *, unique_index: bool = False) -> None:
        self._collection = collection
        self._unique_index = unique_index
        self._indexed_scopes: Set[Tuple[str, ...]] = set()

    async def reconcile(
        self,
        scope: Mapping[str, Any],
        timestamp: Timestamp,
        resources: Iterable[ResourceRecord],
    ) -> PassOutcome:
        outcome = PassOutcome()
        for resource in resources:
            if self._unique_index:
                await self._ensure_index(scope)
            action = await self._apply(scope, resource.stamped(timestamp), timestamp)
            if action is SyncAction.INSERT:
                outcome.inserted += 1
            elif action is SyncAction.UPDATE:
                outcome.updated += 1
            else:
                outcome.touched += 1
        log_event(
            logger,
            "reconcile.complete",
            collection=self._collection.name,
            inserted=outcome.inserted,
            updated=outcome.updated,
            touched=outcome.touched,
        )
        return outcome

    async def _apply(self, scope: Mapping[str, Any], record: ResourceRecord, timestamp: Timestamp) -> SyncAction:
        query = effective_filter(scope, record.index)
        matches = await self._collection.find_all(query)
        if not matches:
            try:
                await self._collection.insert_one(record.to_document())
            except DuplicateRecordError:
                if not self._unique_index:
                    raise
                # Lost the race to a concurrent writer; fall through to the update path.
                matches = await self._collection.find_all(query)
                if not matches:
                    raise
            else:
                log_event(logger, "reconcile.insert", index=record.index)
                return SyncAction.INSERT

        if len(matches) > 1:
            log_event(logger, "reconcile.duplicates", index=record.index, count=len(matches))

        stored = matches[0]
        if checksum_changed(stored, record.checksum):
            patch = record.to_document()
            patch.pop("_id", None)
            await self._collection.update_many(query, {"$set": patch})
            log_event(logger, "reconcile.update", index=record.index)
            return SyncAction.UPDATE

        state = next_resource_state(None, ResourceEvent.SIGHTED)
        await self._collection.update_many(
            query,
            {"$set": {TIMESTAMP_FIELD: timestamp, DELETED_FIELD: int(state)}},
        )
        return SyncAction.TOUCH

    async def _ensure_index(self, scope: Mapping[str, Any]) -> None:
        keys = tuple(sorted(key for key in scope if key != INDEX_FIELD)) + (INDEX_FIELD,)
        if keys in self._indexed_scopes:
            return
        await self._collection.ensure_unique_index(list(keys))
        self._indexed_scopes.add(keys)
