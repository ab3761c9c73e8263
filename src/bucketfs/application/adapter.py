"""Filesystem adapter over an object store.

The adapter translates the filesystem contract into object-key requests:

- directories are key prefixes, optionally made visible by zero-length
  marker objects (``dir/``);
- rename is copy-then-delete, reported as PartialRenameError when the
  source cannot be removed after a successful copy;
- a copy whose visibility cannot be applied is removed again, or reported
  as PartialCopyError when that removal fails too;
- create-only writes use a generation precondition when the backend
  supports one and a preceding head request otherwise (with a race window
  between the check and the upload);
- contents are buffered in memory and uploaded in one request, so a failed
  upload never leaves a partial object behind.

Consistency:
    Composite operations issue sequential requests with no cross-request
    transaction. A write landing between the copy and the delete of a
    rename, or between the listing and the deletes of delete_dir, is not
    detected. This is inherent to object stores.

Thread Safety:
    The adapter holds no mutable state after construction and takes no
    locks. It is as thread-safe as its client.
"""

from __future__ import annotations

import io
import mimetypes
import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING, BinaryIO, Callable, Generator, Iterator, Mapping, Optional

from bucketfs.domain.entities import (
    DEFAULT_MIMETYPE,
    ContentEntry,
    DirectoryEntry,
    FileMetadata,
    WriteConfig,
)
from bucketfs.domain.exceptions import (
    AlreadyExistsError,
    BackendError,
    FilesystemError,
    InvalidPathError,
    NotFoundError,
    OperationCancelledError,
    PartialCopyError,
    PartialDeleteError,
    PartialRenameError,
    StorageConnectionError,
)
from bucketfs.domain.services import iter_entries
from bucketfs.domain.value_objects import KeyMapper, Visibility, is_root, normalize_path
from bucketfs.infrastructure.config import AdapterConfig, get_config
from bucketfs.infrastructure.logging import get_logger
from bucketfs.infrastructure.metrics import AdapterMetrics, get_metrics
from bucketfs.infrastructure.tracing import operation_span
from bucketfs.ports.inbound import WriteOptions
from bucketfs.ports.outbound import (
    Acl,
    ObjectCopyIncompleteError,
    ObjectNotFoundError,
    ObjectPreconditionFailedError,
    ObjectStat,
    ObjectStoreClientPort,
    ObjectStoreError,
)

if TYPE_CHECKING:
    ClientFactory = Callable[[AdapterConfig], ObjectStoreClientPort]


DIRECTORY_MIMETYPE = "application/x-directory"

_VISIBILITY_TO_ACL = {
    Visibility.PUBLIC: Acl.PUBLIC_READ,
    Visibility.PRIVATE: Acl.PRIVATE,
}
_ACL_TO_VISIBILITY = {acl: visibility for visibility, acl in _VISIBILITY_TO_ACL.items()}

_logger = get_logger(__name__)


class DirectoryListing:
    """Lazy, restartable listing of a directory.

    Each iteration starts a fresh paginated listing against the backend.
    """

    def __init__(
        self,
        adapter: "ObjectStorageAdapter",
        directory: str,
        recursive: bool,
        timeout: float,
    ) -> None:
        self._adapter = adapter
        self.directory = directory
        self.recursive = recursive
        self._timeout = timeout

    def __iter__(self) -> Iterator[ContentEntry]:
        return self._adapter._iter_listing(self.directory, self.recursive, self._timeout)

    def __repr__(self) -> str:
        return f"DirectoryListing(directory={self.directory!r}, recursive={self.recursive})"


class ObjectStorageAdapter:
    """Filesystem contract implemented with object-store primitives.

    Example:
        adapter = ObjectStorageAdapter.from_config(load_config(bucket="media"))
        adapter.write("images/logo.png", data, {"visibility": "public"})
        adapter.rename("images/logo.png", "images/brand/logo.png")
    """

    def __init__(
        self,
        client: ObjectStoreClientPort,
        config: AdapterConfig,
        *,
        metrics: AdapterMetrics | None = None,
    ) -> None:
        """Wrap an already connected client.

        Args:
            client: Object-store client.
            config: Validated adapter configuration.
            metrics: Metrics collector (default: process-wide collector).
        """
        self._client = client
        self._config = config
        self._keys = KeyMapper.with_prefix(config.path_prefix)
        self._metrics = metrics or get_metrics()
        self._logger = _logger.bind(bucket=config.bucket)

    @classmethod
    def from_config(
        cls,
        config: AdapterConfig | None = None,
        client_factory: Optional["ClientFactory"] = None,
        *,
        metrics: AdapterMetrics | None = None,
    ) -> "ObjectStorageAdapter":
        """Connect to the backend and build a ready-to-use adapter.

        Args:
            config: Validated configuration (default: from the environment).
            client_factory: Builds and authenticates the client (default:
                Google Cloud Storage).
            metrics: Metrics collector.

        Raises:
            ConfigurationError: If the configuration is incomplete.
            StorageConnectionError: If authenticating with the backend fails.
        """
        config = config or get_config()
        if config.application_name is None:
            _logger.warning(
                "application_name_missing",
                bucket=config.bucket,
                hint='Suggested format is "MyCompany-ProductName/1.0"',
            )

        if client_factory is None:
            from bucketfs.adapters.outbound.gcs_client import GCSObjectStoreClient

            client_factory = GCSObjectStoreClient.connect

        try:
            client = client_factory(config)
        except FilesystemError:
            raise
        except ObjectStoreError as exc:
            raise StorageConnectionError(
                f"Could not connect to bucket: {exc}",
                bucket=config.bucket,
                status=exc.status,
            ) from exc

        _logger.info("adapter_connected", bucket=config.bucket, prefix=config.path_prefix)
        return cls(client, config, metrics=metrics)

    @property
    def config(self) -> AdapterConfig:
        return self._config

    @property
    def client(self) -> ObjectStoreClientPort:
        return self._client

    # =========================================================================
    # Queries
    # =========================================================================

    def has(self, path: str, *, timeout: float | None = None) -> bool:
        path = normalize_path(path)
        if is_root(path):
            return True
        timeout = self._timeout(timeout)

        with self._operation("has", path):
            if self._find(path, timeout) is not None:
                return True
            prefix = self._keys.to_prefix(path)
            try:
                page = self._client.list_objects(prefix, max_results=1, timeout=timeout)
            except ObjectStoreError as exc:
                raise self._backend_error(exc, path, "list") from exc
            return bool(page.entries)

    def read(self, path: str, *, timeout: float | None = None) -> bytes:
        path = self._file_path(path)
        timeout = self._timeout(timeout)

        with self._operation("read", path):
            try:
                data = self._client.get_object(self._keys.to_key(path), timeout=timeout)
            except ObjectNotFoundError as exc:
                raise NotFoundError(path, status=exc.status) from exc
            except ObjectStoreError as exc:
                raise self._backend_error(exc, path, "get") from exc

        self._metrics.bytes_read_total.inc(len(data))
        return data

    def read_stream(self, path: str, *, timeout: float | None = None) -> BinaryIO:
        return io.BytesIO(self.read(path, timeout=timeout))

    def list_contents(
        self,
        directory: str = "",
        recursive: bool = False,
        *,
        timeout: float | None = None,
    ) -> DirectoryListing:
        """List a directory.

        Non-recursive listings return direct child files and one
        DirectoryEntry per child prefix. Recursive listings return every
        descendant file and no directory entries.
        """
        return DirectoryListing(self, normalize_path(directory), recursive, self._timeout(timeout))

    def get_metadata(self, path: str, *, timeout: float | None = None) -> FileMetadata:
        path = self._file_path(path)
        with self._operation("get_metadata", path):
            stat = self._head(path, self._timeout(timeout))
        return self._to_metadata(path, stat)

    def get_size(self, path: str, *, timeout: float | None = None) -> int:
        return self.get_metadata(path, timeout=timeout).size

    def get_mimetype(self, path: str, *, timeout: float | None = None) -> str:
        return self.get_metadata(path, timeout=timeout).mimetype

    def get_timestamp(self, path: str, *, timeout: float | None = None) -> int:
        return self.get_metadata(path, timeout=timeout).timestamp

    def get_visibility(self, path: str, *, timeout: float | None = None) -> Visibility:
        return self.get_metadata(path, timeout=timeout).visibility

    # =========================================================================
    # Writes
    # =========================================================================

    def write(
        self,
        path: str,
        contents: bytes | str,
        config: WriteOptions = None,
        *,
        timeout: float | None = None,
    ) -> FileMetadata:
        """Create a file.

        Raises:
            AlreadyExistsError: If a file exists at the path.
            BackendError: If the upload fails. No partial object is left.
        """
        path = self._file_path(path)
        data = _to_bytes(contents)
        options = WriteConfig.coerce(config)
        timeout = self._timeout(timeout)

        with self._operation("write", path):
            if self._client.supports_preconditions:
                generation: int | None = 0
            else:
                if self._find(path, timeout) is not None:
                    raise AlreadyExistsError(path)
                generation = None

            stat = self._put(
                path,
                data,
                content_type=options.mimetype or _guess_mimetype(path),
                acl=self._acl(options.visibility),
                metadata=options.metadata,
                generation=generation,
                timeout=timeout,
            )

        self._metrics.bytes_written_total.inc(len(data))
        self._logger.info("file_written", path=path, size=len(data))
        return self._to_metadata(path, stat)

    def write_stream(
        self,
        path: str,
        stream: BinaryIO,
        config: WriteOptions = None,
        *,
        timeout: float | None = None,
    ) -> FileMetadata:
        return self.write(path, stream.read(), config, timeout=timeout)

    def update(
        self,
        path: str,
        contents: bytes | str,
        config: WriteOptions = None,
        *,
        timeout: float | None = None,
    ) -> FileMetadata:
        """Overwrite an existing file.

        Visibility and MIME type are kept from the existing file unless
        given in ``config``.

        Raises:
            NotFoundError: If no file exists at the path.
        """
        path = self._file_path(path)
        data = _to_bytes(contents)
        options = WriteConfig.coerce(config)
        timeout = self._timeout(timeout)

        with self._operation("update", path):
            current = self._head(path, timeout)
            stat = self._put(
                path,
                data,
                content_type=options.mimetype or current.content_type or _guess_mimetype(path),
                acl=self._acl(options.visibility) if options.visibility else current.acl,
                metadata=options.metadata or current.metadata,
                generation=None,
                timeout=timeout,
            )

        self._metrics.bytes_written_total.inc(len(data))
        self._logger.info("file_updated", path=path, size=len(data))
        return self._to_metadata(path, stat)

    def update_stream(
        self,
        path: str,
        stream: BinaryIO,
        config: WriteOptions = None,
        *,
        timeout: float | None = None,
    ) -> FileMetadata:
        return self.update(path, stream.read(), config, timeout=timeout)

    def rename(
        self,
        source: str,
        destination: str,
        *,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        """Move a file by copying it and deleting the source.

        Raises:
            NotFoundError: If the source does not exist.
            AlreadyExistsError: If the destination exists and overwriting is
                disabled. Neither file is touched.
            PartialCopyError: If the destination was written but its
                visibility could not be applied nor the destination removed.
                The source is left in place.
            PartialRenameError: If the copy succeeded but the source could
                not be removed (or the rename was cancelled in between).
            OperationCancelledError: If cancelled before copying.
        """
        source, destination = self._transfer_paths(source, destination)
        timeout = self._timeout(timeout)

        with self._operation("rename", source, destination=destination):
            self._copy(source, destination, timeout, cancel_event)

            if cancel_event is not None and cancel_event.is_set():
                self._logger.warning("rename_cancelled_after_copy", source=source, destination=destination)
                raise PartialRenameError(source, destination) from OperationCancelledError(
                    source, completed=1
                )

            try:
                self._client.delete_object(self._keys.to_key(source), timeout=timeout)
            except ObjectNotFoundError:
                self._logger.warning("rename_source_already_removed", source=source)
            except ObjectStoreError as exc:
                self._logger.warning(
                    "rename_source_delete_failed",
                    source=source,
                    destination=destination,
                    error=exc,
                )
                raise PartialRenameError(source, destination, status=exc.status) from exc
            else:
                self._metrics.objects_deleted_total.inc()

        self._logger.info("file_renamed", source=source, destination=destination)

    def copy(
        self,
        source: str,
        destination: str,
        *,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        """Copy a file server-side, keeping its visibility.

        Raises:
            NotFoundError: If the source does not exist.
            AlreadyExistsError: If the destination exists and overwriting is
                disabled.
            PartialCopyError: If the destination was written but its
                visibility could not be applied nor the destination removed.
            OperationCancelledError: If cancelled before copying.
        """
        source, destination = self._transfer_paths(source, destination)
        timeout = self._timeout(timeout)

        with self._operation("copy", source, destination=destination):
            self._copy(source, destination, timeout, cancel_event)

        self._logger.info("file_copied", source=source, destination=destination)

    def delete(self, path: str, *, timeout: float | None = None) -> None:
        """Delete a file.

        Raises:
            NotFoundError: If no file exists at the path.
        """
        path = self._file_path(path)

        with self._operation("delete", path):
            try:
                self._client.delete_object(self._keys.to_key(path), timeout=self._timeout(timeout))
            except ObjectNotFoundError as exc:
                raise NotFoundError(path, status=exc.status) from exc
            except ObjectStoreError as exc:
                raise self._backend_error(exc, path, "delete") from exc

        self._metrics.objects_deleted_total.inc()
        self._logger.info("file_deleted", path=path)

    def delete_dir(
        self,
        dirname: str,
        *,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> int:
        """Delete every object under a directory, marker included.

        The key set is collected first, then deleted one key at a time.
        Keys already gone when their delete is issued count as deleted.

        Returns:
            Number of objects removed.

        Raises:
            InvalidPathError: If ``dirname`` is the root.
            NotFoundError: If nothing exists under the directory.
            PartialDeleteError: If a delete failed or the operation was
                cancelled after removing at least one object.
            OperationCancelledError: If cancelled before removing anything.
        """
        path = normalize_path(dirname)
        if is_root(path):
            raise InvalidPathError(dirname, "cannot delete the root directory")
        timeout = self._timeout(timeout)

        with self._operation("delete_dir", path):
            keys = [stat.key for stat in self._iter_objects(self._keys.to_prefix(path), timeout)]
            if not keys:
                raise NotFoundError(path)

            deleted = 0
            try:
                for key in keys:
                    if cancel_event is not None and cancel_event.is_set():
                        cancelled = OperationCancelledError(path, completed=deleted)
                        if deleted == 0:
                            raise cancelled
                        raise PartialDeleteError(
                            path, deleted=deleted, remaining=len(keys) - deleted
                        ) from cancelled
                    try:
                        self._client.delete_object(key, timeout=timeout)
                    except ObjectNotFoundError:
                        pass
                    except ObjectStoreError as exc:
                        self._logger.warning(
                            "directory_delete_stopped",
                            path=path,
                            key=key,
                            deleted=deleted,
                            remaining=len(keys) - deleted,
                            error=exc,
                        )
                        raise PartialDeleteError(
                            path,
                            deleted=deleted,
                            remaining=len(keys) - deleted,
                            status=exc.status,
                        ) from exc
                    deleted += 1
            finally:
                self._metrics.objects_deleted_total.inc(deleted)

        self._logger.info("directory_deleted", path=path, deleted=deleted)
        return deleted

    def create_dir(
        self,
        dirname: str,
        config: WriteOptions = None,
        *,
        timeout: float | None = None,
    ) -> DirectoryEntry:
        """Create a directory.

        Writes a zero-length marker object when directory markers are
        enabled; an existing marker is left untouched. Without markers,
        directories exist only through the files under them and this is a
        no-op.
        """
        path = normalize_path(dirname)
        if is_root(path):
            raise InvalidPathError(dirname, "the root directory always exists")
        entry = DirectoryEntry(path)

        if not self._config.directory_markers:
            self._logger.debug("directory_marker_skipped", path=path)
            return entry

        options = WriteConfig.coerce(config)
        timeout = self._timeout(timeout)

        with self._operation("create_dir", path):
            if not self._client.supports_preconditions and self._marker_exists(path, timeout):
                self._logger.debug("directory_marker_exists", path=path)
                return entry
            try:
                self._client.put_object(
                    self._keys.to_marker(path),
                    b"",
                    content_type=DIRECTORY_MIMETYPE,
                    metadata=options.metadata,
                    acl=self._acl(options.visibility),
                    if_generation_match=0 if self._client.supports_preconditions else None,
                    timeout=timeout,
                )
            except ObjectPreconditionFailedError:
                self._logger.debug("directory_marker_exists", path=path)
                return entry
            except ObjectStoreError as exc:
                raise self._backend_error(exc, path, "put") from exc

        self._logger.info("directory_created", path=path)
        return entry

    def set_visibility(
        self,
        path: str,
        visibility: Visibility | str,
        *,
        timeout: float | None = None,
    ) -> None:
        """Apply a visibility with one ACL request.

        Raises:
            NotFoundError: If no file exists at the path.
            ValueError: If the visibility is unknown.
        """
        path = self._file_path(path)
        visibility = Visibility.parse(visibility)

        with self._operation("set_visibility", path):
            try:
                self._client.set_acl(
                    self._keys.to_key(path),
                    _VISIBILITY_TO_ACL[visibility],
                    timeout=self._timeout(timeout),
                )
            except ObjectNotFoundError as exc:
                raise NotFoundError(path, status=exc.status) from exc
            except ObjectStoreError as exc:
                raise self._backend_error(exc, path, "set_acl") from exc

        self._logger.info("visibility_changed", path=path, visibility=visibility.value)

    # =========================================================================
    # Internals
    # =========================================================================

    @contextmanager
    def _operation(self, name: str, path: str, **attributes: str) -> Generator[None, None, None]:
        with self._metrics.track(name), operation_span(name, self._config.bucket, path, **attributes):
            yield

    def _timeout(self, timeout: float | None) -> float:
        return self._config.request_timeout if timeout is None else timeout

    def _file_path(self, path: str) -> str:
        normalized = normalize_path(path)
        if is_root(normalized):
            raise InvalidPathError(path, "the root directory is not a file")
        return normalized

    def _transfer_paths(self, source: str, destination: str) -> tuple[str, str]:
        source = self._file_path(source)
        destination = self._file_path(destination)
        if source == destination:
            raise InvalidPathError(destination, "source and destination are the same")
        return source, destination

    def _acl(self, visibility: Visibility | None) -> Acl:
        return _VISIBILITY_TO_ACL[visibility or self._config.default_visibility]

    def _backend_error(self, exc: ObjectStoreError, path: str, action: str) -> BackendError:
        self._logger.error(
            "backend_request_failed",
            action=action,
            path=path,
            error=exc,
        )
        return BackendError(f"Backend {action} request failed: {exc}", path=path, status=exc.status)

    def _head(self, path: str, timeout: float) -> ObjectStat:
        try:
            return self._client.head_object(self._keys.to_key(path), timeout=timeout)
        except ObjectNotFoundError as exc:
            raise NotFoundError(path, status=exc.status) from exc
        except ObjectStoreError as exc:
            raise self._backend_error(exc, path, "head") from exc

    def _find(self, path: str, timeout: float) -> ObjectStat | None:
        try:
            return self._head(path, timeout)
        except NotFoundError:
            return None

    def _marker_exists(self, path: str, timeout: float) -> bool:
        marker = self._keys.to_marker(path)
        try:
            self._client.head_object(marker, timeout=timeout)
        except ObjectNotFoundError:
            return False
        except ObjectStoreError as exc:
            raise self._backend_error(exc, path, "head") from exc
        return True

    def _put(
        self,
        path: str,
        data: bytes,
        *,
        content_type: str,
        acl: Acl,
        metadata: Mapping[str, str] | None,
        generation: int | None,
        timeout: float,
    ) -> ObjectStat:
        try:
            return self._client.put_object(
                self._keys.to_key(path),
                data,
                content_type=content_type,
                metadata=metadata,
                acl=acl,
                if_generation_match=generation,
                timeout=timeout,
            )
        except ObjectPreconditionFailedError as exc:
            raise AlreadyExistsError(path, status=exc.status) from exc
        except ObjectStoreError as exc:
            raise self._backend_error(exc, path, "put") from exc

    def _copy(
        self,
        source: str,
        destination: str,
        timeout: float,
        cancel_event: threading.Event | None,
    ) -> ObjectStat:
        _check_cancelled(cancel_event, source)
        stat = self._head(source, timeout)

        if self._config.overwrite_destination:
            generation: int | None = None
        elif self._client.supports_preconditions:
            generation = 0
        else:
            if self._find(destination, timeout) is not None:
                raise AlreadyExistsError(destination)
            generation = None

        _check_cancelled(cancel_event, source)
        try:
            return self._client.copy_object(
                self._keys.to_key(source),
                self._keys.to_key(destination),
                acl=stat.acl,
                if_generation_match=generation,
                timeout=timeout,
            )
        except ObjectNotFoundError as exc:
            raise NotFoundError(source, status=exc.status) from exc
        except ObjectPreconditionFailedError as exc:
            raise AlreadyExistsError(destination, status=exc.status) from exc
        except ObjectCopyIncompleteError as exc:
            self._logger.error(
                "copy_left_incomplete",
                source=source,
                destination=destination,
                error=exc,
            )
            raise PartialCopyError(source, destination, status=exc.status) from exc
        except ObjectStoreError as exc:
            raise self._backend_error(exc, source, "copy") from exc

    def _iter_objects(self, prefix: str, timeout: float) -> Iterator[ObjectStat]:
        page_token: str | None = None
        while True:
            with self._operation("list_page", prefix):
                try:
                    page = self._client.list_objects(
                        prefix,
                        page_token=page_token,
                        max_results=self._config.list_page_size,
                        timeout=timeout,
                    )
                except ObjectStoreError as exc:
                    raise self._backend_error(exc, prefix, "list") from exc
            yield from page.entries
            page_token = page.next_page_token
            if not page_token:
                return

    def _iter_listing(self, directory: str, recursive: bool, timeout: float) -> Iterator[ContentEntry]:
        prefix = self._keys.to_prefix(directory)
        items = ((stat.key[len(prefix):], stat) for stat in self._iter_objects(prefix, timeout))
        return iter_entries(directory, items, self._to_metadata, recursive)

    def _to_metadata(self, path: str, stat: ObjectStat) -> FileMetadata:
        return FileMetadata(
            path=path,
            size=stat.size,
            timestamp=int(stat.updated.timestamp()),
            visibility=_ACL_TO_VISIBILITY[stat.acl],
            mimetype=stat.content_type or DEFAULT_MIMETYPE,
            metadata=dict(stat.metadata),
        )


def _check_cancelled(cancel_event: threading.Event | None, path: str) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise OperationCancelledError(path)


def _to_bytes(contents: bytes | bytearray | memoryview | str) -> bytes:
    if isinstance(contents, str):
        return contents.encode("utf-8")
    if isinstance(contents, (bytes, bytearray, memoryview)):
        return bytes(contents)
    raise TypeError(f"Contents must be bytes or str, not {type(contents).__name__}")


def _guess_mimetype(path: str) -> str:
    mimetype, _ = mimetypes.guess_type(path)
    return mimetype or DEFAULT_MIMETYPE
