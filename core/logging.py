from __future__ import annotations

import json
import logging
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator

from pythonjsonlogger import jsonlogger

request_id_ctx_var: ContextVar[str] = ContextVar("request_id", default="-")
resource_ctx_var: ContextVar[str] = ContextVar("resource", default="-")
sync_pass_ctx_var: ContextVar[str] = ContextVar("sync_pass", default="-")


class SyncContextFilter(logging.Filter):
    """Stamp every record with the request id and the sync pass being processed."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_ctx_var.get()
        record.resource = resource_ctx_var.get()
        record.sync_pass = sync_pass_ctx_var.get()
        return True


def configure_logging(level: str = "INFO") -> None:
    log_handler = logging.StreamHandler(sys.stdout)
    formatter = jsonlogger.JsonFormatter(
        "%(asctime)s %(name)s %(levelname)s %(request_id)s %(resource)s %(sync_pass)s %(message)s"
    )
    log_handler.setFormatter(formatter)
    log_handler.addFilter(SyncContextFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(log_handler)


def set_request_id(value: str | None = None) -> str:
    request_id = value or str(uuid.uuid4())
    request_id_ctx_var.set(request_id)
    return request_id


@contextmanager
def sync_context(resource: str, timestamp: Any = None) -> Iterator[None]:
    resource_token = resource_ctx_var.set(resource)
    pass_token = sync_pass_ctx_var.set("-" if timestamp is None else str(timestamp))
    try:
        yield
    finally:
        sync_pass_ctx_var.reset(pass_token)
        resource_ctx_var.reset(resource_token)


def log_event(logger: logging.Logger, event: str, **fields: Any) -> None:
    logger.info(json.dumps({"event": event, **fields}, default=str))
