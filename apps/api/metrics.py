from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram

registry = CollectorRegistry()
REQUEST_COUNT = Counter("store_request_count", "Total API requests", ["method", "endpoint"], registry=registry)
REQUEST_LATENCY = Histogram("store_request_latency_ms", "Request latency in milliseconds", ["endpoint"], registry=registry)
HEALTH_STATUS = Gauge("store_health_status", "Document store reachability", registry=registry)
RECORDS_RECONCILED = Counter(
    "store_records_reconciled_total", "Resources reconciled per action", ["resource", "action"], registry=registry
)
RECORDS_SWEPT = Counter("store_records_swept_total", "Resources marked deleted by sweeps", ["resource"], registry=registry)
PASS_FAILURES = Counter("store_pass_failures_total", "Failed reconcile or sweep calls", ["operation"], registry=registry)
SYNC_JOBS = Counter("store_sync_jobs_total", "Sync job upserts", ["action"], registry=registry)
