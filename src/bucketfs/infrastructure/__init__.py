"""Infrastructure layer - cross-cutting concerns."""

from bucketfs.infrastructure.config import AdapterConfig, ObservabilityConfig, get_config, load_config
from bucketfs.infrastructure.logging import get_logger, setup_logging
from bucketfs.infrastructure.metrics import AdapterMetrics, get_metrics
from bucketfs.infrastructure.tracing import get_tracer, operation_span, setup_tracing

__all__ = [
    "AdapterConfig",
    "ObservabilityConfig",
    "get_config",
    "load_config",
    "setup_logging",
    "get_logger",
    "AdapterMetrics",
    "get_metrics",
    "setup_tracing",
    "get_tracer",
    "operation_span",
]
