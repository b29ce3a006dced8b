"""
Prometheus metrics collection for telemetry-store

Instruments the write path, the JSON fallback, quarantine, schema audits,
repairs, daily consolidation and metadata lookups.
"""
import os
from typing import Optional

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)


# Global registry for metrics
REGISTRY = CollectorRegistry()


# =======================
# WRITE PATH METRICS
# =======================

# Batches written counter
batches_written_total = Counter(
    name="telemetry_store_batches_written_total",
    documentation="Total number of batches handed to the typed batch writer",
    labelnames=["status"],  # status: success, encode_failure, validation_failure
    registry=REGISTRY,
)

# Rows written counter
rows_written_total = Counter(
    name="telemetry_store_rows_written_total",
    documentation="Total number of rows encoded into columnar files",
    registry=REGISTRY,
)

# Write duration histogram
write_duration_seconds = Histogram(
    name="telemetry_store_write_duration_seconds",
    documentation="Time spent encoding and validating one batch",
    buckets=[0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0],
    registry=REGISTRY,
)

# Batch size
batch_size_rows = Histogram(
    name="telemetry_store_batch_size_rows",
    documentation="Number of records in each written batch",
    buckets=[1, 10, 50, 100, 500, 1000, 5000, 10000, 100000],
    registry=REGISTRY,
)

# JSON fallback persistence
fallback_writes_total = Counter(
    name="telemetry_store_fallback_writes_total",
    documentation="Batches persisted as line-delimited JSON after an encode failure",
    registry=REGISTRY,
)

# =======================
# DATA QUALITY METRICS
# =======================

# Quarantine events
quarantine_events_total = Counter(
    name="telemetry_store_quarantine_events_total",
    documentation="Files moved to quarantine after failing validation",
    labelnames=["operation"],  # operation: write, consolidation
    registry=REGISTRY,
)

# Schema violations found by the auditor
schema_violations_total = Counter(
    name="telemetry_store_schema_violations_total",
    documentation="Schema violations reported by the schema auditor",
    registry=REGISTRY,
)

# Files repaired
files_repaired_total = Counter(
    name="telemetry_store_files_repaired_total",
    documentation="Files rewritten by the repair pipeline",
    labelnames=["status"],  # status: repaired, skipped, error
    registry=REGISTRY,
)

# =======================
# CONSOLIDATION METRICS
# =======================

consolidations_total = Counter(
    name="telemetry_store_consolidations_total",
    documentation="Telemetry-path directories processed by daily consolidation",
    labelnames=["status"],  # status: success, quarantined, error
    registry=REGISTRY,
)

consolidation_duration_seconds = Histogram(
    name="telemetry_store_consolidation_duration_seconds",
    documentation="Time spent consolidating one day",
    buckets=[0.1, 0.5, 1.0, 5.0, 10.0, 30.0, 60.0, 300.0],
    registry=REGISTRY,
)

# =======================
# METADATA METRICS
# =======================

metadata_lookups_total = Counter(
    name="telemetry_store_metadata_lookups_total",
    documentation="Metadata lookups against the external metadata service",
    labelnames=["outcome"],  # outcome: hit, miss, error, cached
    registry=REGISTRY,
)


# =======================
# HELPER FUNCTIONS
# =======================

def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics in text format

    Returns:
        Metrics in Prometheus text format
    """
    return generate_latest(REGISTRY)


def start_metrics_server(port: Optional[int] = None) -> None:
    """
    Start HTTP server for Prometheus metrics

    Args:
        port: Port to listen on (defaults to env var METRICS_PORT or 8000)
    """
    # Lazy import: only needed when the metrics endpoint is enabled
    from prometheus_client import start_http_server

    metrics_port = port or int(os.getenv("METRICS_PORT", "8000"))
    start_http_server(metrics_port, registry=REGISTRY)


class track_duration:
    """
    Context manager for tracking operation duration

    Usage:
        with track_duration(write_duration_seconds):
            # do work
            pass
    """

    def __init__(self, histogram: Histogram, **labels):
        self.histogram = histogram
        self.labels = labels
        self.timer = None

    def __enter__(self):
        metric = self.histogram.labels(**self.labels) if self.labels else self.histogram
        self.timer = metric.time()
        self.timer.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.timer.__exit__(exc_type, exc_val, exc_tb)
        return False


def increment_counter(counter: Counter, value: float = 1.0, **labels) -> None:
    """
    Increment a counter metric

    Args:
        counter: Prometheus Counter metric
        value: Amount to increment (default: 1.0)
        **labels: Label values for the metric
    """
    if labels:
        counter.labels(**labels).inc(value)
    else:
        counter.inc(value)


def observe_histogram(histogram: Histogram, value: float, **labels) -> None:
    """
    Observe a value in a histogram metric

    Args:
        histogram: Prometheus Histogram metric
        value: Value to observe
        **labels: Label values for the metric
    """
    if labels:
        histogram.labels(**labels).observe(value)
    else:
        histogram.observe(value)


def record_batch_written(row_count: int, status: str = "success") -> None:
    """
    Record the outcome of one typed batch write.

    Args:
        row_count: Records in the batch
        status: success, encode_failure or validation_failure
    """
    increment_counter(batches_written_total, 1, status=status)
    observe_histogram(batch_size_rows, row_count)
    if status == "success":
        increment_counter(rows_written_total, row_count)
