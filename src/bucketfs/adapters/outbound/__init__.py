"""Outbound adapters - object store clients."""

from bucketfs.adapters.outbound.gcs_client import GCSObjectStoreClient
from bucketfs.adapters.outbound.memory_client import InMemoryObjectStoreClient

__all__ = [
    "GCSObjectStoreClient",
    "InMemoryObjectStoreClient",
]
