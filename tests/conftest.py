from __future__ import annotations

import itertools
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Sequence, Set, Tuple

import pytest

from core.exceptions import DuplicateRecordError, StoreOperationError
from core.store import StoreConfig

_MISSING = object()


def _matches(document: Mapping[str, Any], query: Mapping[str, Any]) -> bool:
    for key, expected in query.items():
        actual = document.get(key, _MISSING)
        if isinstance(expected, Mapping) and "$ne" in expected:
            if actual == expected["$ne"]:
                return False
        elif actual != expected:
            return False
    return True


class FakeCollection:
    """In-memory stand-in for StoreCollection supporting equality, $ne and $set."""

    def __init__(self, documents: Optional[List[Dict[str, Any]]] = None, name: str = "resources") -> None:
        self.name = name
        self._ids = itertools.count(1)
        self.documents: List[Dict[str, Any]] = []
        for document in documents or []:
            self.documents.append({"_id": next(self._ids), **document})
        self.fail_on: Set[str] = set()
        self.calls: List[Tuple[str, Any]] = []
        self.unique_keys: Optional[Tuple[str, ...]] = None
        self.blind_finds = 0

    def records(self) -> List[Dict[str, Any]]:
        return [{key: value for key, value in doc.items() if key != "_id"} for doc in self.documents]

    def _check(self, operation: str) -> None:
        if operation in self.fail_on:
            raise StoreOperationError(f"{operation} on {self.name} failed: boom")

    async def find(self, query: Mapping[str, Any]) -> AsyncIterator[Dict[str, Any]]:
        self.calls.append(("find", dict(query)))
        self._check("find")
        if self.blind_finds:
            self.blind_finds -= 1
            return
        for document in list(self.documents):
            if _matches(document, query):
                yield dict(document)

    async def find_all(self, query: Mapping[str, Any]) -> List[Dict[str, Any]]:
        return [document async for document in self.find(query)]

    async def insert_one(self, document: Mapping[str, Any]) -> Any:
        self.calls.append(("insert_one", dict(document)))
        self._check("insert_one")
        if self.unique_keys is not None:
            key = tuple(document.get(k) for k in self.unique_keys)
            if any(tuple(doc.get(k) for k in self.unique_keys) == key for doc in self.documents):
                raise DuplicateRecordError(f"insert_one on {self.name} hit unique index")
        stored = {"_id": next(self._ids), **document}
        self.documents.append(stored)
        return stored["_id"]

    def _apply(self, query: Mapping[str, Any], patch: Mapping[str, Any], limit: Optional[int]) -> int:
        modified = 0
        for document in self.documents:
            if limit is not None and modified >= limit:
                break
            if not _matches(document, query):
                continue
            changes = patch.get("$set", {})
            if any(document.get(key, _MISSING) != value for key, value in changes.items()):
                document.update(changes)
                modified += 1
        return modified

    async def update_many(self, query: Mapping[str, Any], patch: Mapping[str, Any]) -> int:
        self.calls.append(("update_many", (dict(query), dict(patch))))
        self._check("update_many")
        return self._apply(query, patch, None)

    async def update_one(self, query: Mapping[str, Any], patch: Mapping[str, Any]) -> int:
        self.calls.append(("update_one", (dict(query), dict(patch))))
        self._check("update_one")
        return self._apply(query, patch, 1)

    async def ensure_unique_index(self, keys: Sequence[str]) -> str:
        self.calls.append(("ensure_unique_index", list(keys)))
        self.unique_keys = tuple(keys)
        return "_".join(f"{key}_1" for key in keys)


class FakeStore:
    def __init__(self, config: StoreConfig) -> None:
        self.config = config
        self.collections: Dict[str, FakeCollection] = {}
        self.closed = False

    def collection(self, name: str) -> FakeCollection:
        return self.collections.setdefault(name, FakeCollection(name=name))

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        self.closed = True


class FakeRegistry:
    def __init__(self) -> None:
        self.stores: Dict[StoreConfig, FakeStore] = {}

    async def get(self, config: StoreConfig) -> FakeStore:
        return self.stores.setdefault(config, FakeStore(config))

    async def close(self) -> None:
        for store in self.stores.values():
            await store.close()


@pytest.fixture
def collection() -> FakeCollection:
    return FakeCollection()


@pytest.fixture
def make_collection():
    def factory(documents: Optional[List[Dict[str, Any]]] = None) -> FakeCollection:
        return FakeCollection(documents)

    return factory


@pytest.fixture
def fake_registry() -> FakeRegistry:
    return FakeRegistry()
