from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from apps.api.metrics import PASS_FAILURES, RECORDS_RECONCILED, RECORDS_SWEPT, SYNC_JOBS
from core.config import Settings, settings
from core.exceptions import StoreError
from core.logging import sync_context
from core.store import DocumentStore, StoreCollection, StoreConfig, StoreRegistry
from core.sync import JobParams, JobTracker, Params, Reconciler, Reply, Sweeper

logger = logging.getLogger(__name__)


class ProviderService:
    """Host-facing entry points: push a batch, retire stale records, track jobs."""

    def __init__(self, registry: Optional[StoreRegistry] = None, app_settings: Settings = settings) -> None:
        self._registry = registry or StoreRegistry(max_stores=app_settings.store_registry_size)
        self._settings = app_settings

    @property
    def version(self) -> str:
        return self._settings.provider_version

    def check_version(self, version: str) -> bool:
        return version == self._settings.provider_version

    async def store(self, setting: Optional[Mapping[str, Any]] = None) -> DocumentStore:
        config = StoreConfig.from_setting(setting, defaults=self._settings)
        return await self._registry.get(config)

    async def _collection(self, setting: Mapping[str, Any], resource: str) -> tuple[StoreCollection, StoreConfig]:
        store = await self.store(setting)
        return store.collection(resource), store.config

    async def push(self, params: Params) -> Reply:
        with sync_context(params.resource, params.timestamp):
            try:
                collection, config = await self._collection(params.setting, params.resource)
                reconciler = Reconciler(collection, unique_index=config.unique_index)
                outcome = await reconciler.reconcile(params.query, params.timestamp, params.input)
            except StoreError as exc:
                PASS_FAILURES.labels("push").inc()
                return Reply.failure(exc)
        RECORDS_RECONCILED.labels(params.resource, "insert").inc(outcome.inserted)
        RECORDS_RECONCILED.labels(params.resource, "update").inc(outcome.updated)
        RECORDS_RECONCILED.labels(params.resource, "touch").inc(outcome.touched)
        return Reply(status=outcome.status)

    async def update_deleted(self, params: Params) -> Reply:
        with sync_context(params.resource, params.timestamp):
            try:
                collection, _ = await self._collection(params.setting, params.resource)
                outcome = await Sweeper(collection).sweep(params.query, params.timestamp)
            except StoreError as exc:
                PASS_FAILURES.labels("update_deleted").inc()
                return Reply.failure(exc)
        RECORDS_SWEPT.labels(params.resource).inc(outcome.deleted)
        return Reply(status=outcome.status)

    async def update_sync_job(self, params: JobParams) -> str:
        with sync_context(params.resource):
            try:
                collection, _ = await self._collection(params.setting, params.resource)
                tracker = JobTracker(collection, strict_transitions=self._settings.strict_job_transitions)
                index = await tracker.upsert_job(params.sync_job)
            except StoreError:
                SYNC_JOBS.labels("failed").inc()
                raise
        SYNC_JOBS.labels("upsert").inc()
        return index

    async def close(self) -> None:
        await self._registry.close()
