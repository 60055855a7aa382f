from __future__ import annotations

import logging
import uuid
from typing import Callable

from core.logging import log_event
from core.store import StoreCollection
from core.sync.models import SyncJob
from core.sync.states import transition_job

logger = logging.getLogger(__name__)


def new_job_index() -> str:
    return str(uuid.uuid4())


class JobTracker:
    """Records sync job executions keyed by a stable job index.

    The first call for an index creates the full record. Later calls only move
    ``Status`` and ``EndAt``; everything else is fixed at creation.
    """

    def __init__(
        self,
        collection: StoreCollection,
        *,
        strict_transitions: bool = False,
        index_factory: Callable[[], str] = new_job_index,
    ) -> None:
        self._collection = collection
        self._strict = strict_transitions
        self._index_factory = index_factory

    async def upsert_job(self, job: SyncJob) -> str:
        existing = []
        if job.index is not None:
            existing = await self._collection.find_all({"Index": job.index})

        if existing:
            if self._strict:
                transition_job(existing[0].get("Status"), job.status)
            await self._collection.update_one(
                {"Index": job.index},
                {"$set": {"Status": job.status, "EndAt": job.end_at}},
            )
            log_event(logger, "jobs.update", index=job.index, status=job.status)
            return job.index

        if self._strict:
            transition_job(None, job.status)
        index = self._index_factory()
        await self._collection.insert_one(job.to_document(index))
        log_event(logger, "jobs.insert", index=index, status=job.status, type=job.type)
        return index
