"""Domain entities."""

from bucketfs.domain.entities.metadata import (
    DEFAULT_MIMETYPE,
    ContentEntry,
    DirectoryEntry,
    FileMetadata,
    WriteConfig,
)

__all__ = [
    "DEFAULT_MIMETYPE",
    "ContentEntry",
    "DirectoryEntry",
    "FileMetadata",
    "WriteConfig",
]
