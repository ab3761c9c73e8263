"""Directory synthesis over a flat key space.

The backend has no directories. Listing a directory means listing every key
under its prefix and folding deeper keys into one entry per child prefix.
Keys arrive in lexicographic order, so all keys under one child prefix are
consecutive and a single "last child" comparison is enough to emit each
directory once.
"""

from __future__ import annotations

from typing import Callable, Iterable, Iterator, TypeVar

from bucketfs.domain.entities import ContentEntry, DirectoryEntry, FileMetadata
from bucketfs.domain.value_objects import SEPARATOR, join_path


T = TypeVar("T")

_RESERVED_SEGMENTS = ("", ".", "..")


def _is_clean(relative: str) -> bool:
    return not any(segment in _RESERVED_SEGMENTS for segment in relative.split(SEPARATOR))


def iter_entries(
    directory: str,
    items: Iterable[tuple[str, T]],
    make_file: Callable[[str, T], FileMetadata],
    recursive: bool = False,
) -> Iterator[ContentEntry]:
    """Turn listed keys into file and directory entries.

    Args:
        directory: Normalized directory being listed.
        items: (key relative to the directory prefix, listed item) pairs in
            key order.
        make_file: Builds file metadata from a normalized path and its item.
        recursive: Yield every descendant file and no directory entries.

    Yields:
        FileMetadata and DirectoryEntry values. Marker objects (keys ending
        in a slash) never yield files. Keys that do not map to a normalized
        path are skipped.
    """
    last_child: str | None = None

    for relative, item in items:
        if recursive:
            if relative.endswith(SEPARATOR) or not _is_clean(relative):
                continue
            yield make_file(join_path(directory, relative), item)
            continue

        name, sep, _ = relative.partition(SEPARATOR)
        if name in _RESERVED_SEGMENTS:
            continue

        if sep:
            # Deeper key or a child marker: fold into the child directory.
            if name != last_child:
                last_child = name
                yield DirectoryEntry(join_path(directory, name))
            continue

        yield make_file(join_path(directory, name), item)
