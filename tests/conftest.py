"""Pytest configuration and shared fixtures for bucketfs tests."""

from __future__ import annotations

from typing import Generator

import pytest
from prometheus_client import CollectorRegistry

from bucketfs.adapters.outbound.memory_client import InMemoryObjectStoreClient
from bucketfs.application.adapter import ObjectStorageAdapter
from bucketfs.infrastructure.config import AdapterConfig, load_config
from bucketfs.infrastructure.container import Container
from bucketfs.infrastructure.metrics import AdapterMetrics


@pytest.fixture(autouse=True)
def reset_container() -> Generator[None, None, None]:
    """Reset the DI container before each test."""
    Container.reset()
    yield
    Container.reset()


@pytest.fixture
def test_config() -> AdapterConfig:
    """Provide a configuration that needs no credentials."""
    return load_config(bucket="test-bucket", anonymous=True, application_name="bucketfs-tests/1.0")


@pytest.fixture
def metrics() -> AdapterMetrics:
    """Provide a fresh metrics registry for each test."""
    # Use a separate registry to avoid conflicts between tests
    return AdapterMetrics(registry=CollectorRegistry(auto_describe=True))


@pytest.fixture
def client() -> InMemoryObjectStoreClient:
    """Provide an empty in-memory object store."""
    return InMemoryObjectStoreClient()


@pytest.fixture
def adapter(
    client: InMemoryObjectStoreClient,
    test_config: AdapterConfig,
    metrics: AdapterMetrics,
) -> ObjectStorageAdapter:
    """Provide an adapter over the in-memory object store."""
    return ObjectStorageAdapter(client, test_config, metrics=metrics)


@pytest.fixture
def sample_data() -> bytes:
    """Provide sample file contents."""
    return b"Hello, World! This is test data for the filesystem adapter."


# Markers for test categories
def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests")
