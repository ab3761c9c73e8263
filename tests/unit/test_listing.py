"""Unit tests for directory synthesis over listed keys."""

from __future__ import annotations

import pytest

from bucketfs.domain.entities import DirectoryEntry, FileMetadata
from bucketfs.domain.services import iter_entries
from bucketfs.domain.value_objects import Visibility


def make_file(path: str, size: int) -> FileMetadata:
    return FileMetadata(path=path, size=size, timestamp=0, visibility=Visibility.PRIVATE)


def listed(*relatives: str) -> list[tuple[str, int]]:
    return [(relative, index) for index, relative in enumerate(relatives)]


@pytest.mark.unit
class TestShallowListing:
    """Tests for non-recursive listings."""

    def test_files_and_inferred_directories(self) -> None:
        """Deeper keys fold into one entry per child directory."""
        items = listed("a.txt", "sub/b.txt", "sub/c.txt", "sub/deep/d.txt", "z.txt")

        entries = list(iter_entries("docs", items, make_file))

        assert [(entry.type, entry.path) for entry in entries] == [
            ("file", "docs/a.txt"),
            ("dir", "docs/sub"),
            ("file", "docs/z.txt"),
        ]

    def test_child_marker_is_directory(self) -> None:
        """A child marker yields the directory, never a file."""
        entries = list(iter_entries("", listed("empty/"), make_file))

        assert entries == [DirectoryEntry("empty")]

    def test_marker_and_children_yield_one_directory(self) -> None:
        """A marker followed by keys under it still yields one entry."""
        entries = list(iter_entries("", listed("sub/", "sub/a.txt", "sub/b/c.txt"), make_file))

        assert entries == [DirectoryEntry("sub")]

    def test_own_marker_is_skipped(self) -> None:
        """The listed directory's own marker is not an entry."""
        entries = list(iter_entries("docs", listed("", "a.txt"), make_file))

        assert [entry.path for entry in entries] == ["docs/a.txt"]

    def test_reserved_segments_are_skipped(self) -> None:
        """Keys whose first segment is not a valid name are ignored."""
        entries = list(iter_entries("", listed("./x", "../y", "/z", "ok.txt"), make_file))

        assert [entry.path for entry in entries] == ["ok.txt"]

    def test_file_carries_listed_item(self) -> None:
        """make_file receives the normalized path and the listed item."""
        entries = list(iter_entries("docs", [("a.txt", 42)], make_file))

        assert entries == [make_file("docs/a.txt", 42)]

    def test_empty(self) -> None:
        """No keys yield no entries."""
        assert list(iter_entries("docs", [], make_file)) == []


@pytest.mark.unit
class TestRecursiveListing:
    """Tests for recursive listings."""

    def test_all_descendant_files(self) -> None:
        """Every file at any depth is yielded and no directories."""
        items = listed("a.txt", "sub/", "sub/b.txt", "sub/deep/c.txt")

        entries = list(iter_entries("docs", items, make_file, recursive=True))

        assert all(entry.is_file for entry in entries)
        assert [entry.path for entry in entries] == [
            "docs/a.txt",
            "docs/sub/b.txt",
            "docs/sub/deep/c.txt",
        ]

    def test_unclean_keys_are_skipped(self) -> None:
        """Keys with empty or dot segments are ignored."""
        items = listed("a//b.txt", "a/./b.txt", "a/../b.txt", "a/b.txt")

        entries = list(iter_entries("", items, make_file, recursive=True))

        assert [entry.path for entry in entries] == ["a/b.txt"]
