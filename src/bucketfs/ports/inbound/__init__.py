"""Inbound ports - the filesystem contract exposed to application code.

Every operation takes a normalized-or-raw virtual path, raises the error
taxonomy below instead of returning sentinel values, and honors a per-call
``timeout`` forwarded to each underlying backend request.
"""

from __future__ import annotations

import threading
from abc import abstractmethod
from typing import Any, BinaryIO, Iterable, Mapping, Optional, Protocol, Union, runtime_checkable

from bucketfs.domain.entities import ContentEntry, DirectoryEntry, FileMetadata, WriteConfig
from bucketfs.domain.exceptions import (
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
from bucketfs.domain.value_objects import Visibility


WriteOptions = Optional[Union[WriteConfig, Mapping[str, Any]]]


@runtime_checkable
class FilesystemAdapterPort(Protocol):
    """Protocol for a filesystem over an object store.

    Thread Safety:
        All methods must be safe for concurrent callers sharing one instance.

    Consistency:
        Composite operations (rename, copy, delete_dir) issue several
        requests without a cross-request transaction. Concurrent mutation of
        the same paths can interleave with them.

    Example:
        adapter.write("reports/2024.csv", b"a,b\\n")
        for entry in adapter.list_contents("reports"):
            print(entry.path, entry.type)
    """

    @abstractmethod
    def has(self, path: str, *, timeout: float | None = None) -> bool:
        """Return True if a file or directory exists at the path."""
        ...

    @abstractmethod
    def read(self, path: str, *, timeout: float | None = None) -> bytes:
        """Read a whole file.

        Raises:
            NotFoundError: If no file exists at the path.
            BackendError: If the request fails.
        """
        ...

    @abstractmethod
    def read_stream(self, path: str, *, timeout: float | None = None) -> BinaryIO:
        """Read a whole file as a binary stream."""
        ...

    @abstractmethod
    def list_contents(
        self,
        directory: str = "",
        recursive: bool = False,
        *,
        timeout: float | None = None,
    ) -> Iterable[ContentEntry]:
        """Lazily list the contents of a directory."""
        ...

    @abstractmethod
    def get_metadata(self, path: str, *, timeout: float | None = None) -> FileMetadata:
        """Return file metadata.

        Raises:
            NotFoundError: If no file exists at the path.
        """
        ...

    @abstractmethod
    def get_size(self, path: str, *, timeout: float | None = None) -> int:
        ...

    @abstractmethod
    def get_mimetype(self, path: str, *, timeout: float | None = None) -> str:
        ...

    @abstractmethod
    def get_timestamp(self, path: str, *, timeout: float | None = None) -> int:
        ...

    @abstractmethod
    def get_visibility(self, path: str, *, timeout: float | None = None) -> Visibility:
        ...

    @abstractmethod
    def write(
        self,
        path: str,
        contents: bytes | str,
        config: WriteOptions = None,
        *,
        timeout: float | None = None,
    ) -> FileMetadata:
        """Create a file. Never overwrites.

        Raises:
            AlreadyExistsError: If a file exists at the path.
        """
        ...

    @abstractmethod
    def write_stream(
        self,
        path: str,
        stream: BinaryIO,
        config: WriteOptions = None,
        *,
        timeout: float | None = None,
    ) -> FileMetadata:
        ...

    @abstractmethod
    def update(
        self,
        path: str,
        contents: bytes | str,
        config: WriteOptions = None,
        *,
        timeout: float | None = None,
    ) -> FileMetadata:
        """Overwrite an existing file.

        Raises:
            NotFoundError: If no file exists at the path.
        """
        ...

    @abstractmethod
    def update_stream(
        self,
        path: str,
        stream: BinaryIO,
        config: WriteOptions = None,
        *,
        timeout: float | None = None,
    ) -> FileMetadata:
        ...

    @abstractmethod
    def rename(
        self,
        source: str,
        destination: str,
        *,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        """Move a file.

        Raises:
            NotFoundError: If the source does not exist.
            AlreadyExistsError: If the destination exists.
            PartialCopyError: If the destination was written with the wrong
                visibility and could not be removed.
            PartialRenameError: If the source could not be removed after copying.
        """
        ...

    @abstractmethod
    def copy(
        self,
        source: str,
        destination: str,
        *,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        """Copy a file, keeping its visibility.

        Raises:
            NotFoundError: If the source does not exist.
            AlreadyExistsError: If the destination exists.
            PartialCopyError: If the destination was written with the wrong
                visibility and could not be removed.
        """
        ...

    @abstractmethod
    def delete(self, path: str, *, timeout: float | None = None) -> None:
        ...

    @abstractmethod
    def delete_dir(
        self,
        dirname: str,
        *,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> int:
        """Delete every object under a directory.

        Raises:
            PartialDeleteError: If deletion stopped partway.
        """
        ...

    @abstractmethod
    def create_dir(
        self,
        dirname: str,
        config: WriteOptions = None,
        *,
        timeout: float | None = None,
    ) -> DirectoryEntry:
        ...

    @abstractmethod
    def set_visibility(
        self,
        path: str,
        visibility: Visibility | str,
        *,
        timeout: float | None = None,
    ) -> None:
        ...


__all__ = [
    "FilesystemAdapterPort",
    "WriteOptions",
    # Errors
    "FilesystemError",
    "NotFoundError",
    "AlreadyExistsError",
    "InvalidPathError",
    "ConfigurationError",
    "StorageConnectionError",
    "BackendError",
    "OperationCancelledError",
    "PartialCopyError",
    "PartialRenameError",
    "PartialDeleteError",
]
