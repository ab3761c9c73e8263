"""Prometheus metrics for bucketfs."""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Generator

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram


class AdapterMetrics:
    """Metrics collector for filesystem operations."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry or REGISTRY

        self.operations_total = Counter(
            "bucketfs_operations_total",
            "Total filesystem operations",
            ["operation", "status"],  # status: success, error kind
            registry=self._registry,
        )
        self.operation_latency_seconds = Histogram(
            "bucketfs_operation_latency_seconds",
            "Filesystem operation latency in seconds",
            ["operation"],
            buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
            registry=self._registry,
        )
        self.bytes_written_total = Counter(
            "bucketfs_bytes_written_total",
            "Total bytes uploaded by write and update",
            registry=self._registry,
        )
        self.bytes_read_total = Counter(
            "bucketfs_bytes_read_total",
            "Total bytes downloaded by read",
            registry=self._registry,
        )
        self.objects_deleted_total = Counter(
            "bucketfs_objects_deleted_total",
            "Total objects removed by delete, rename and delete_dir",
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    @contextmanager
    def track(self, operation: str) -> Generator[None, None, None]:
        """Time an operation and count its outcome.

        The outcome label is "success" or the exception class name.
        """
        start = time.perf_counter()
        status = "success"
        try:
            yield
        except Exception as exc:
            status = type(exc).__name__
            raise
        finally:
            self.operation_latency_seconds.labels(operation=operation).observe(
                time.perf_counter() - start
            )
            self.operations_total.labels(operation=operation, status=status).inc()


_metrics: AdapterMetrics | None = None


def get_metrics() -> AdapterMetrics:
    """Get the process-wide metrics collector on the default registry."""
    global _metrics
    if _metrics is None:
        _metrics = AdapterMetrics()
    return _metrics
