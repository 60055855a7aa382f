from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from datetime import timedelta
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pymongo import ASCENDING, AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import DuplicateKeyError, PyMongoError

from core.config import Settings, settings
from core.exceptions import ConfigurationError, DuplicateRecordError, StoreConnectionError, StoreOperationError
from core.logging import log_event

logger = logging.getLogger(__name__)

Document = Dict[str, Any]


class StoreConfig(BaseModel):
    """Immutable connection settings; hashable so connected stores can be shared per config."""

    model_config = ConfigDict(frozen=True, strict=True, extra="ignore")

    timeout: float = Field(default=30.0, gt=0)
    connect_uri: str = Field(default="mongodb://localhost:27017", min_length=1)
    max_pool_size: int = Field(default=100, ge=0)
    database: str = Field(default="CloudTracker", min_length=1)
    unique_index: bool = Field(default=False)

    @field_validator("timeout", mode="before")
    @classmethod
    def timeout_seconds(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("timeout must be a number of seconds or a timedelta")
        if isinstance(value, timedelta):
            return value.total_seconds()
        if isinstance(value, int):
            return float(value)
        return value

    @classmethod
    def from_setting(cls, setting: Optional[Mapping[str, Any]] = None, defaults: Settings = settings) -> "StoreConfig":
        values: Dict[str, Any] = {
            "timeout": defaults.store_timeout,
            "connect_uri": defaults.store_connect_uri,
            "max_pool_size": defaults.store_max_pool_size,
            "database": defaults.store_database,
            "unique_index": defaults.store_unique_index,
        }
        values.update(setting or {})
        try:
            return cls.model_validate(values)
        except ValidationError as exc:
            raise ConfigurationError(f"invalid store setting: {exc}", cause=exc) from exc


class StoreCollection:
    """A named collection with the find/insert/update surface the sync core needs."""

    def __init__(self, collection: AsyncCollection) -> None:
        self._collection = collection

    @property
    def name(self) -> str:
        return self._collection.name

    async def find(self, query: Mapping[str, Any]) -> AsyncIterator[Document]:
        cursor = self._collection.find(dict(query)).sort("_id", ASCENDING)
        try:
            async for document in cursor:
                yield document
        except PyMongoError as exc:
            raise StoreOperationError(f"find on {self.name} failed: {exc}", cause=exc) from exc
        finally:
            await cursor.close()

    async def find_all(self, query: Mapping[str, Any]) -> List[Document]:
        return [document async for document in self.find(query)]

    async def insert_one(self, document: Mapping[str, Any]) -> Any:
        result = await self._run("insert_one", self._collection.insert_one, dict(document))
        return result.inserted_id

    async def update_many(self, query: Mapping[str, Any], patch: Mapping[str, Any]) -> int:
        result = await self._run("update_many", self._collection.update_many, dict(query), dict(patch))
        return result.modified_count

    async def update_one(self, query: Mapping[str, Any], patch: Mapping[str, Any]) -> int:
        result = await self._run("update_one", self._collection.update_one, dict(query), dict(patch))
        return result.modified_count

    async def ensure_unique_index(self, keys: Sequence[str]) -> str:
        return await self._run(
            "create_index",
            self._collection.create_index,
            [(key, ASCENDING) for key in keys],
            unique=True,
        )

    async def _run(self, operation: str, func: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except DuplicateKeyError as exc:
            raise DuplicateRecordError(f"{operation} on {self.name} hit unique index: {exc}", cause=exc) from exc
        except PyMongoError as exc:
            raise StoreOperationError(f"{operation} on {self.name} failed: {exc}", cause=exc) from exc


class DocumentStore:
    def __init__(self, client: AsyncMongoClient, config: StoreConfig) -> None:
        self._client = client
        self._config = config
        self._db = client[config.database]

    @property
    def config(self) -> StoreConfig:
        return self._config

    @classmethod
    async def connect(cls, config: StoreConfig) -> "DocumentStore":
        timeout_ms = int(config.timeout * 1000)
        client: Optional[AsyncMongoClient] = None
        try:
            client = AsyncMongoClient(
                config.connect_uri,
                maxPoolSize=config.max_pool_size,
                serverSelectionTimeoutMS=timeout_ms,
                connectTimeoutMS=timeout_ms,
            )
            store = cls(client, config)
            await asyncio.wait_for(store.ping(), timeout=config.timeout)
        except (PyMongoError, ValueError, TypeError, asyncio.TimeoutError) as exc:
            if client is not None:
                await client.close()
            raise StoreConnectionError(f"cannot connect to {config.connect_uri}: {exc}", cause=exc) from exc
        log_event(logger, "store.connect", database=config.database, max_pool_size=config.max_pool_size)
        return store

    async def ping(self) -> bool:
        response = await self._client.admin.command("ping")
        return bool(response.get("ok"))

    def collection(self, name: str) -> StoreCollection:
        return StoreCollection(self._db[name])

    async def close(self) -> None:
        await self._client.close()


class StoreRegistry:
    """Keeps one connected store per configuration so callers share its pool.

    Connects are serialized per configuration only, so a slow or unreachable
    endpoint never holds up lookups for other configurations. At most
    ``max_stores`` clients stay open; the least recently used one is closed
    when a new configuration pushes the registry over that bound.
    """

    def __init__(
        self,
        connector: Callable[[StoreConfig], Awaitable[DocumentStore]] = DocumentStore.connect,
        max_stores: int = 16,
    ) -> None:
        self._connector = connector
        self._max_stores = max(1, max_stores)
        self._stores: "OrderedDict[StoreConfig, DocumentStore]" = OrderedDict()
        self._locks: Dict[StoreConfig, asyncio.Lock] = {}

    def __len__(self) -> int:
        return len(self._stores)

    async def get(self, config: StoreConfig) -> DocumentStore:
        store = self._stores.get(config)
        if store is not None:
            self._stores.move_to_end(config)
            return store

        lock = self._locks.setdefault(config, asyncio.Lock())
        evicted: List[DocumentStore] = []
        try:
            async with lock:
                store = self._stores.get(config)
                if store is None:
                    store = await self._connector(config)
                    self._stores[config] = store
                    while len(self._stores) > self._max_stores:
                        old_config, old_store = self._stores.popitem(last=False)
                        evicted.append(old_store)
                        log_event(logger, "store.evict", database=old_config.database)
        finally:
            if self._locks.get(config) is lock and not lock.locked():
                del self._locks[config]
        for old_store in evicted:
            await old_store.close()
        return store

    async def close(self) -> None:
        stores = list(self._stores.values())
        self._stores.clear()
        self._locks.clear()
        for store in stores:
            await store.close()
