"""Dependency injection container for bucketfs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar, Optional

import structlog
from opentelemetry import trace

from bucketfs.infrastructure.config import AdapterConfig, get_config
from bucketfs.infrastructure.logging import get_logger, setup_logging
from bucketfs.infrastructure.metrics import AdapterMetrics, get_metrics
from bucketfs.infrastructure.tracing import setup_tracing

if TYPE_CHECKING:
    from bucketfs.application.adapter import ClientFactory, ObjectStorageAdapter


@dataclass
class Container:
    """Wires configuration, observability and the adapter together."""

    config: AdapterConfig
    logger: structlog.stdlib.BoundLogger
    tracer: trace.Tracer
    metrics: AdapterMetrics
    adapter: "ObjectStorageAdapter"

    _instance: ClassVar["Container | None"] = None

    @classmethod
    def create(
        cls,
        config: AdapterConfig | None = None,
        client_factory: Optional["ClientFactory"] = None,
        metrics: AdapterMetrics | None = None,
    ) -> "Container":
        """Create and initialize the container with all dependencies.

        Raises:
            ConfigurationError: If the configuration is incomplete.
            StorageConnectionError: If the backend cannot be reached.
        """
        if cls._instance is not None:
            return cls._instance

        from bucketfs.application.adapter import ObjectStorageAdapter

        config = config or get_config()
        observability = config.observability
        setup_logging(level=observability.log_level, log_format=observability.log_format)
        tracer = setup_tracing(
            service_name=observability.otel_service_name,
            otlp_endpoint=observability.otel_endpoint,
        )
        metrics = metrics or get_metrics()
        logger = get_logger(__name__, bucket=config.bucket)

        adapter = ObjectStorageAdapter.from_config(config, client_factory, metrics=metrics)

        cls._instance = cls(
            config=config,
            logger=logger,
            tracer=tracer,
            metrics=metrics,
            adapter=adapter,
        )

        logger.info(
            "bucketfs_container_initialized",
            prefix=config.path_prefix,
            directory_markers=config.directory_markers,
            overwrite_destination=config.overwrite_destination,
        )

        return cls._instance

    @classmethod
    def get(cls) -> "Container":
        """Get the singleton container instance."""
        if cls._instance is None:
            return cls.create()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset the container (useful for testing)."""
        cls._instance = None


def get_container() -> Container:
    """Get the dependency injection container."""
    return Container.get()
