from __future__ import annotations

import asyncio
import json

import httpx

from core.config import settings
from core.store import DocumentStore, StoreConfig


async def check_api() -> dict[str, str]:
    url = "http://localhost:8000/health"
    async with httpx.AsyncClient(timeout=5.0) as client:
        response = await client.get(url)
        response.raise_for_status()
        return response.json()


async def check_mongodb() -> bool:
    store = await DocumentStore.connect(StoreConfig.from_setting(defaults=settings))
    try:
        return await store.ping()
    finally:
        await store.close()


async def main() -> None:
    api_task = asyncio.create_task(check_api())
    mongodb_task = asyncio.create_task(check_mongodb())

    result = {
        "api": await api_task,
        "mongodb": await mongodb_task,
    }
    print(json.dumps(result, indent=2))


if __name__ == "__main__":
    asyncio.run(main())
