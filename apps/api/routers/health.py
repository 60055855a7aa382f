from __future__ import annotations

import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from apps.api.metrics import HEALTH_STATUS
from apps.api.models import HealthDependency, HealthStatus
from apps.api.services import ProviderService, get_provider

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthStatus)
async def health(provider: ProviderService = Depends(get_provider)) -> HealthStatus:
    start = time.perf_counter()
    store_status = "pass"
    store_details = None
    try:
        store = await provider.store()
        alive = await store.ping()
        store_status = "pass" if alive else "fail"
    except Exception as exc:
        store_status = "fail"
        store_details = str(exc)
    dependencies = [
        HealthDependency(
            name="mongodb",
            status=store_status,
            latency_ms=int((time.perf_counter() - start) * 1000),
            details=store_details,
        )
    ]

    overall = "pass" if all(dep.status == "pass" for dep in dependencies) else "fail"
    HEALTH_STATUS.set(1 if overall == "pass" else 0)
    return HealthStatus(
        status=overall,
        timestamp=datetime.now(tz=timezone.utc),
        version=provider.version,
        dependencies=dependencies,
    )
