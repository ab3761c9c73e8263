"""
bucketfs - Filesystem adapter for object storage

Maps a uniform virtual-filesystem contract (has/read/write/update/rename/
copy/delete/list/metadata/visibility) onto flat object-storage backends,
emulating directories, rename and create-only writes with object-key
operations.
"""

from bucketfs.application.adapter import DirectoryListing, ObjectStorageAdapter
from bucketfs.application.async_adapter import AsyncObjectStorageAdapter
from bucketfs.domain.entities import ContentEntry, DirectoryEntry, FileMetadata, WriteConfig
from bucketfs.domain.value_objects import Visibility
from bucketfs.infrastructure.config import AdapterConfig, load_config
from bucketfs.ports.inbound import (
    AlreadyExistsError,
    BackendError,
    ConfigurationError,
    FilesystemError,
    InvalidPathError,
    NotFoundError,
    OperationCancelledError,
    PartialCopyError,
    PartialDeleteError,
    PartialRenameError,
    StorageConnectionError,
)

__version__ = "0.1.0"

__all__ = [
    "ObjectStorageAdapter",
    "AsyncObjectStorageAdapter",
    "DirectoryListing",
    "AdapterConfig",
    "load_config",
    "FileMetadata",
    "DirectoryEntry",
    "ContentEntry",
    "WriteConfig",
    "Visibility",
    "FilesystemError",
    "NotFoundError",
    "AlreadyExistsError",
    "ConfigurationError",
    "StorageConnectionError",
    "BackendError",
    "PartialCopyError",
    "PartialRenameError",
    "PartialDeleteError",
    "InvalidPathError",
    "OperationCancelledError",
]
