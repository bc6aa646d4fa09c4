"""Monitoring utilities leveraging Prometheus client."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

http_requests_total = Counter(
    "kmrl_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

http_request_latency_seconds = Histogram(
    "kmrl_http_request_latency_seconds",
    "HTTP request latency",
    ["method", "path"],
)

files_rejected_total = Counter(
    "kmrl_files_rejected_total",
    "Uploaded files rejected during validation",
    ["reason"],
)

metadata_fallbacks_total = Counter(
    "kmrl_metadata_fallbacks_total",
    "Files that received default metadata instead of extracted metadata",
    ["reason"],
)

documents_upserted_total = Counter(
    "kmrl_documents_upserted_total",
    "Document records written to the store",
    ["origin", "outcome"],
)

connector_syncs_total = Counter(
    "kmrl_connector_syncs_total",
    "Connector sync attempts",
    ["connector", "outcome"],
)


def observe_request(method: str, path: str, status: int, duration_seconds: float) -> None:
    http_requests_total.labels(method=method, path=path, status=str(status)).inc()
    http_request_latency_seconds.labels(method=method, path=path).observe(duration_seconds)
