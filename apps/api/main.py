from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from apps.api.metrics import registry
from apps.api.middleware import LoggingMiddleware, register_exception_handlers
from apps.api.routers import health_router, jobs_router, resources_router, version_router
from apps.api.services import provider_service
from core.config import settings
from core.logging import configure_logging

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    await provider_service.close()
    logger.info("Closed document store connections")


app = FastAPI(title="Resource Store Provider", version=settings.provider_version, lifespan=lifespan)

app.add_middleware(LoggingMiddleware)
register_exception_handlers(app)

app.include_router(health_router)
app.include_router(version_router)
app.include_router(resources_router)
app.include_router(jobs_router)


@app.get("/metrics")
async def metrics() -> Response:
    data = generate_latest(registry)
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)
