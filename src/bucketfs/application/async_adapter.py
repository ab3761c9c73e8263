"""asyncio facade over ObjectStorageAdapter.

Each coroutine runs the blocking adapter call in a worker thread, so the
event loop keeps running while requests are in flight.
"""

from __future__ import annotations

import asyncio
import threading
from typing import Any, BinaryIO

from bucketfs.application.adapter import ObjectStorageAdapter
from bucketfs.domain.entities import ContentEntry, DirectoryEntry, FileMetadata
from bucketfs.domain.value_objects import Visibility
from bucketfs.ports.inbound import WriteOptions


class AsyncObjectStorageAdapter:
    """Awaitable version of the filesystem contract.

    Example:
        fs = AsyncObjectStorageAdapter(adapter)
        await fs.write("notes/today.txt", "hello")
        entries = await fs.list_contents("notes")
    """

    def __init__(self, adapter: ObjectStorageAdapter) -> None:
        self._adapter = adapter

    @property
    def sync(self) -> ObjectStorageAdapter:
        """The wrapped blocking adapter."""
        return self._adapter

    async def _run(self, func: Any, *args: Any, **kwargs: Any) -> Any:
        return await asyncio.to_thread(func, *args, **kwargs)

    async def has(self, path: str, *, timeout: float | None = None) -> bool:
        return await self._run(self._adapter.has, path, timeout=timeout)

    async def read(self, path: str, *, timeout: float | None = None) -> bytes:
        return await self._run(self._adapter.read, path, timeout=timeout)

    async def read_stream(self, path: str, *, timeout: float | None = None) -> BinaryIO:
        return await self._run(self._adapter.read_stream, path, timeout=timeout)

    async def list_contents(
        self,
        directory: str = "",
        recursive: bool = False,
        *,
        timeout: float | None = None,
    ) -> list[ContentEntry]:
        """List a directory. The whole listing is fetched before returning."""
        listing = self._adapter.list_contents(directory, recursive, timeout=timeout)
        return await self._run(list, listing)

    async def get_metadata(self, path: str, *, timeout: float | None = None) -> FileMetadata:
        return await self._run(self._adapter.get_metadata, path, timeout=timeout)

    async def get_size(self, path: str, *, timeout: float | None = None) -> int:
        return await self._run(self._adapter.get_size, path, timeout=timeout)

    async def get_mimetype(self, path: str, *, timeout: float | None = None) -> str:
        return await self._run(self._adapter.get_mimetype, path, timeout=timeout)

    async def get_timestamp(self, path: str, *, timeout: float | None = None) -> int:
        return await self._run(self._adapter.get_timestamp, path, timeout=timeout)

    async def get_visibility(self, path: str, *, timeout: float | None = None) -> Visibility:
        return await self._run(self._adapter.get_visibility, path, timeout=timeout)

    async def write(
        self,
        path: str,
        contents: bytes | str,
        config: WriteOptions = None,
        *,
        timeout: float | None = None,
    ) -> FileMetadata:
        return await self._run(self._adapter.write, path, contents, config, timeout=timeout)

    async def write_stream(
        self,
        path: str,
        stream: BinaryIO,
        config: WriteOptions = None,
        *,
        timeout: float | None = None,
    ) -> FileMetadata:
        return await self._run(self._adapter.write_stream, path, stream, config, timeout=timeout)

    async def update(
        self,
        path: str,
        contents: bytes | str,
        config: WriteOptions = None,
        *,
        timeout: float | None = None,
    ) -> FileMetadata:
        return await self._run(self._adapter.update, path, contents, config, timeout=timeout)

    async def update_stream(
        self,
        path: str,
        stream: BinaryIO,
        config: WriteOptions = None,
        *,
        timeout: float | None = None,
    ) -> FileMetadata:
        return await self._run(self._adapter.update_stream, path, stream, config, timeout=timeout)

    async def rename(
        self,
        source: str,
        destination: str,
        *,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        await self._run(
            self._adapter.rename, source, destination, timeout=timeout, cancel_event=cancel_event
        )

    async def copy(
        self,
        source: str,
        destination: str,
        *,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        await self._run(
            self._adapter.copy, source, destination, timeout=timeout, cancel_event=cancel_event
        )

    async def delete(self, path: str, *, timeout: float | None = None) -> None:
        await self._run(self._adapter.delete, path, timeout=timeout)

    async def delete_dir(
        self,
        dirname: str,
        *,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> int:
        """Delete a directory.

        Cancelling the awaiting task does not stop the worker thread; pass a
        ``cancel_event`` to stop issuing further deletes.
        """
        return await self._run(
            self._adapter.delete_dir, dirname, timeout=timeout, cancel_event=cancel_event
        )

    async def create_dir(
        self,
        dirname: str,
        config: WriteOptions = None,
        *,
        timeout: float | None = None,
    ) -> DirectoryEntry:
        return await self._run(self._adapter.create_dir, dirname, config, timeout=timeout)

    async def set_visibility(
        self,
        path: str,
        visibility: Visibility | str,
        *,
        timeout: float | None = None,
    ) -> None:
        await self._run(self._adapter.set_visibility, path, visibility, timeout=timeout)
