"""
Prometheus Metrics for Observability

Tracks pipeline stage latency, artifact sizes, and HTTP traffic.
Served from a dedicated port because the main app answers every path
with the placeholder.
"""

import time
from typing import Optional
from contextlib import contextmanager

from prometheus_client import (
    Counter,
    Histogram,
    Gauge,
    Info,
    start_http_server,
)

# =============================================================================
# Metrics Definitions
# =============================================================================

# Pipeline Latency - Per Stage
pipeline_latency_seconds = Histogram(
    "pipeline_latency_seconds",
    "Time spent in each pipeline stage",
    labelnames=["stage", "status"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0]
)

# Total Pipeline Duration
pipeline_total_duration = Histogram(
    "pipeline_total_duration_seconds",
    "Total time for a complete fetch-transform cycle",
    labelnames=["status"],
    buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0]
)

# Pipelines Counter
pipelines_total = Counter(
    "placeholder_pipelines_total",
    "Total number of pipelines run",
    labelnames=["status", "failure_stage"]
)

# Active Pipelines
active_pipelines_gauge = Gauge(
    "placeholder_active_pipelines",
    "Number of pipelines currently running"
)

# Artifact Sizes
_size_buckets = [1_000, 5_000, 20_000, 100_000, 500_000, 1_000_000, 5_000_000, 20_000_000]

source_image_bytes = Histogram(
    "source_image_bytes",
    "Size of fetched source images",
    buckets=_size_buckets
)

variant_output_bytes = Histogram(
    "variant_output_bytes",
    "Size of encoded raster variants",
    labelnames=["variant"],
    buckets=_size_buckets
)

placeholder_output_bytes = Histogram(
    "placeholder_output_bytes",
    "Size of generated SVG placeholders",
    buckets=[500, 1_000, 2_500, 5_000, 10_000, 25_000, 50_000]
)

# API Request Metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    labelnames=["method", "status"]
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration",
    labelnames=["method"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0]
)

# Application Info
app_info = Info(
    "placeholder_app",
    "Application information"
)


# =============================================================================
# Helper Functions
# =============================================================================

def set_app_info(version: str, environment: str):
    """Set application info metric."""
    app_info.info({
        "version": version,
        "environment": environment
    })


@contextmanager
def track_stage_latency(stage: str):
    """
    Context manager to track stage latency.

    Usage:
        with track_stage_latency("fetch"):
            # do work
    """
    start = time.time()
    status = "success"
    try:
        yield
    except Exception:
        status = "error"
        raise
    finally:
        duration = time.time() - start
        pipeline_latency_seconds.labels(stage=stage, status=status).observe(duration)


def record_pipeline_completion(status: str, duration_seconds: float, failure_stage: str = "none"):
    """Record a finished pipeline run."""
    pipelines_total.labels(status=status, failure_stage=failure_stage).inc()
    pipeline_total_duration.labels(status=status).observe(duration_seconds)


def record_artifact_sizes(source_size: int, variant_sizes: dict, placeholder_size: int):
    """Record byte sizes of the source and every produced artifact."""
    source_image_bytes.observe(source_size)
    for variant, size in variant_sizes.items():
        variant_output_bytes.labels(variant=variant).observe(size)
    placeholder_output_bytes.observe(placeholder_size)


def start_metrics_server(port: Optional[int]):
    """Serve Prometheus metrics on a dedicated port. Returns the server or None."""
    if not port:
        return None
    server, _thread = start_http_server(port)
    return server
