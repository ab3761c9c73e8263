"""In-memory object store client.

A thread-safe, dict-backed implementation of ObjectStoreClientPort for
testing and development. Data is not persisted across restarts.

Usage:
    client = InMemoryObjectStoreClient()
    client.put_object("docs/a.txt", b"hello", content_type="text/plain")
    client.get_object("docs/a.txt")
"""

from __future__ import annotations

import bisect
import itertools
import threading
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Mapping

from bucketfs.ports.outbound import (
    Acl,
    ListPage,
    ObjectNotFoundError,
    ObjectPreconditionFailedError,
    ObjectStat,
)


@dataclass(frozen=True)
class _StoredObject:
    data: bytes
    stat: ObjectStat


class InMemoryObjectStoreClient:
    """In-memory implementation of ObjectStoreClientPort.

    Keys are kept sorted so listings come back in lexicographic order.
    Page tokens are the last key of the previous page.

    Attributes:
        supports_preconditions: Whether ``if_generation_match`` is enforced.
            Set to False to behave like a backend without conditional writes.
    """

    def __init__(self, supports_preconditions: bool = True) -> None:
        self._objects: dict[str, _StoredObject] = {}
        self._sorted_keys: list[str] = []
        self._generations = itertools.count(1)
        self._lock = threading.Lock()
        self._supports_preconditions = supports_preconditions

    @property
    def supports_preconditions(self) -> bool:
        return self._supports_preconditions

    def head_object(self, key: str, *, timeout: float | None = None) -> ObjectStat:
        with self._lock:
            return self._require(key).stat

    def get_object(self, key: str, *, timeout: float | None = None) -> bytes:
        with self._lock:
            return self._require(key).data

    def put_object(
        self,
        key: str,
        data: bytes,
        *,
        content_type: str,
        metadata: Mapping[str, str] | None = None,
        acl: Acl = Acl.PRIVATE,
        if_generation_match: int | None = None,
        timeout: float | None = None,
    ) -> ObjectStat:
        with self._lock:
            self._check_generation(key, if_generation_match)
            stat = ObjectStat(
                key=key,
                size=len(data),
                updated=datetime.now(timezone.utc),
                generation=next(self._generations),
                acl=acl,
                content_type=content_type,
                metadata=dict(metadata or {}),
            )
            self._store(key, _StoredObject(data=bytes(data), stat=stat))
            return stat

    def delete_object(self, key: str, *, timeout: float | None = None) -> None:
        with self._lock:
            self._require(key)
            del self._objects[key]
            index = bisect.bisect_left(self._sorted_keys, key)
            del self._sorted_keys[index]

    def list_objects(
        self,
        prefix: str,
        *,
        page_token: str | None = None,
        max_results: int | None = None,
        timeout: float | None = None,
    ) -> ListPage:
        limit = max_results or 1000
        with self._lock:
            if page_token:
                start = bisect.bisect_right(self._sorted_keys, page_token)
            else:
                start = bisect.bisect_left(self._sorted_keys, prefix)

            entries: list[ObjectStat] = []
            for key in itertools.islice(self._sorted_keys, start, None):
                if not key.startswith(prefix):
                    break
                if len(entries) == limit:
                    return ListPage(entries=entries, next_page_token=entries[-1].key)
                entries.append(self._objects[key].stat)

        return ListPage(entries=entries)

    def copy_object(
        self,
        src_key: str,
        dst_key: str,
        *,
        acl: Acl | None = None,
        if_generation_match: int | None = None,
        timeout: float | None = None,
    ) -> ObjectStat:
        with self._lock:
            source = self._require(src_key)
            self._check_generation(dst_key, if_generation_match)
            stat = replace(
                source.stat,
                key=dst_key,
                updated=datetime.now(timezone.utc),
                generation=next(self._generations),
                acl=acl or source.stat.acl,
            )
            self._store(dst_key, _StoredObject(data=source.data, stat=stat))
            return stat

    def set_acl(self, key: str, acl: Acl, *, timeout: float | None = None) -> None:
        with self._lock:
            stored = self._require(key)
            self._objects[key] = replace(stored, stat=replace(stored.stat, acl=acl))

    def keys(self) -> list[str]:
        """All stored keys in lexicographic order."""
        with self._lock:
            return list(self._sorted_keys)

    def clear(self) -> None:
        """Remove all objects."""
        with self._lock:
            self._objects.clear()
            self._sorted_keys.clear()

    def __len__(self) -> int:
        """Number of stored objects."""
        with self._lock:
            return len(self._objects)

    def _require(self, key: str) -> _StoredObject:
        stored = self._objects.get(key)
        if stored is None:
            raise ObjectNotFoundError(f"No such object: {key}", key=key, status=404)
        return stored

    def _check_generation(self, key: str, if_generation_match: int | None) -> None:
        if if_generation_match is None or not self._supports_preconditions:
            return
        stored = self._objects.get(key)
        current = stored.stat.generation if stored is not None else 0
        if current != if_generation_match:
            raise ObjectPreconditionFailedError(
                f"Generation precondition failed for {key}: "
                f"expected {if_generation_match}, found {current}",
                key=key,
                status=412,
            )

    def _store(self, key: str, stored: _StoredObject) -> None:
        if key not in self._objects:
            bisect.insort(self._sorted_keys, key)
        self._objects[key] = stored
