"""Application layer - the filesystem adapter and its asyncio facade."""

from bucketfs.application.adapter import DirectoryListing, ObjectStorageAdapter
from bucketfs.application.async_adapter import AsyncObjectStorageAdapter

__all__ = [
    "AsyncObjectStorageAdapter",
    "DirectoryListing",
    "ObjectStorageAdapter",
]
