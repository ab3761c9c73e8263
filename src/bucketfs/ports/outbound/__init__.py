"""Outbound ports - the object-store operations the adapter depends on.

The object store is a flat key-to-bytes service with per-key metadata and
access control. Implementations translate their transport errors into
ObjectStoreError and its subclasses; the adapter never sees library
specific exceptions.
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Mapping, Optional, Protocol, runtime_checkable


# =============================================================================
# Values
# =============================================================================


class Acl(str, Enum):
    """Predefined object ACLs."""

    PUBLIC_READ = "publicRead"
    PRIVATE = "private"


@dataclass(frozen=True)
class ObjectStat:
    """Metadata of one stored object."""

    key: str
    size: int
    updated: datetime
    generation: int
    acl: Acl = Acl.PRIVATE
    content_type: Optional[str] = None
    metadata: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ListPage:
    """One page of a prefix listing.

    Entries are in lexicographic key order. ``next_page_token`` is None on
    the last page.
    """

    entries: list[ObjectStat]
    next_page_token: Optional[str] = None


# =============================================================================
# Errors
# =============================================================================


class ObjectStoreError(Exception):
    """Raised when a backend request fails."""

    def __init__(self, message: str, *, key: str | None = None, status: int | None = None) -> None:
        self.key = key
        self.status = status
        super().__init__(message)


class ObjectNotFoundError(ObjectStoreError):
    """Raised when the key does not exist."""


class ObjectPreconditionFailedError(ObjectStoreError):
    """Raised when a generation precondition does not hold."""


class ObjectCopyIncompleteError(ObjectStoreError):
    """Raised when a copy created the destination but could not finish it.

    The destination exists, possibly with the wrong ACL, and could not be
    removed again. ``key`` is the destination key.
    """


# =============================================================================
# Object Store Client Port
# =============================================================================


@runtime_checkable
class ObjectStoreClientPort(Protocol):
    """Protocol for object-store backends.

    Thread Safety:
        Implementations must allow concurrent independent requests.

    Preconditions:
        ``if_generation_match=0`` requires that the key does not exist;
        a positive value requires the live object to have that generation.
        Clients that cannot enforce preconditions set
        ``supports_preconditions`` to False and ignore the argument.
    """

    @property
    @abstractmethod
    def supports_preconditions(self) -> bool:
        """Whether put/copy enforce ``if_generation_match``."""
        ...

    @abstractmethod
    def head_object(self, key: str, *, timeout: float | None = None) -> ObjectStat:
        """Fetch object metadata.

        Raises:
            ObjectNotFoundError: If the key does not exist.
            ObjectStoreError: If the request fails.
        """
        ...

    @abstractmethod
    def get_object(self, key: str, *, timeout: float | None = None) -> bytes:
        """Fetch the full object body.

        Raises:
            ObjectNotFoundError: If the key does not exist.
            ObjectStoreError: If the request fails.
        """
        ...

    @abstractmethod
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
        """Store an object in a single request.

        The object becomes visible only once fully uploaded.

        Raises:
            ObjectPreconditionFailedError: If ``if_generation_match`` fails.
            ObjectStoreError: If the request fails.
        """
        ...

    @abstractmethod
    def delete_object(self, key: str, *, timeout: float | None = None) -> None:
        """Delete an object.

        Raises:
            ObjectNotFoundError: If the key does not exist.
            ObjectStoreError: If the request fails.
        """
        ...

    @abstractmethod
    def list_objects(
        self,
        prefix: str,
        *,
        page_token: str | None = None,
        max_results: int | None = None,
        timeout: float | None = None,
    ) -> ListPage:
        """List one page of objects whose key starts with ``prefix``.

        Raises:
            ObjectStoreError: If the request fails.
        """
        ...

    @abstractmethod
    def copy_object(
        self,
        src_key: str,
        dst_key: str,
        *,
        acl: Acl | None = None,
        if_generation_match: int | None = None,
        timeout: float | None = None,
    ) -> ObjectStat:
        """Server-side copy. ``if_generation_match`` applies to the destination.

        When ``acl`` is given the destination ends up with that ACL, or the
        copy is undone. A failed undo raises ObjectCopyIncompleteError.

        Raises:
            ObjectNotFoundError: If the source does not exist.
            ObjectPreconditionFailedError: If the destination precondition fails.
            ObjectCopyIncompleteError: If the destination was created but its
                ACL could not be applied nor the destination removed.
            ObjectStoreError: If the request fails.
        """
        ...

    @abstractmethod
    def set_acl(self, key: str, acl: Acl, *, timeout: float | None = None) -> None:
        """Replace the object's ACL with a predefined one.

        Raises:
            ObjectNotFoundError: If the key does not exist.
            ObjectStoreError: If the request fails.
        """
        ...


__all__ = [
    "Acl",
    "ListPage",
    "ObjectStat",
    "ObjectStoreClientPort",
    "ObjectStoreError",
    "ObjectNotFoundError",
    "ObjectPreconditionFailedError",
    "ObjectCopyIncompleteError",
]
