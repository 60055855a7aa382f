from __future__ import annotations

import logging
from typing import Any, Dict, Mapping

from core.logging import log_event
from core.store import StoreCollection
from core.sync.models import DELETED_FIELD, TIMESTAMP_FIELD, PassOutcome, Timestamp
from core.sync.states import ResourceEvent, ResourceState, next_resource_state

logger = logging.getLogger(__name__)


def stale_filter(scope: Mapping[str, Any], timestamp: Timestamp) -> Dict[str, Any]:
    query = dict(scope)
    query[TIMESTAMP_FIELD] = {"$ne": timestamp}
    return query


class Sweeper:
    """Retires every in-scope record the current pass did not refresh.

    Run it only after the reconciler has consumed the whole batch for the same
    scope and timestamp, otherwise live records still waiting in the batch get
    marked deleted.
    """

    def __init__(self, collection: StoreCollection) -> None:
        self._collection = collection

    async def sweep(self, scope: Mapping[str, Any], timestamp: Timestamp) -> PassOutcome:
        state = next_resource_state(ResourceState.ACTIVE, ResourceEvent.MISSED)
        modified = await self._collection.update_many(
            stale_filter(scope, timestamp),
            {"$set": {DELETED_FIELD: int(state)}},
        )
        log_event(logger, "sweep.complete", collection=self._collection.name, deleted=modified)
        return PassOutcome(deleted=modified)
