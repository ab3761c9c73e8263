"""Unit tests for path normalization and key mapping."""

from __future__ import annotations

import pytest

from bucketfs.domain.exceptions import InvalidPathError
from bucketfs.domain.value_objects import KeyMapper, join_path, normalize_path


@pytest.mark.unit
class TestNormalizePath:
    """Tests for normalize_path."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("a/b", "a/b"),
            ("/a/b", "a/b"),
            ("a/b/", "a/b"),
            ("//a///b//", "a/b"),
            ("a/./b", "a/b"),
            ("a/b/../c", "a/c"),
            ("a\\b\\c.txt", "a/b/c.txt"),
            ("", ""),
            ("/", ""),
            ("./", ""),
            ("a/..", ""),
        ],
    )
    def test_normalization(self, raw: str, expected: str) -> None:
        """Equivalent spellings normalize to one form."""
        assert normalize_path(raw) == expected

    def test_equal_paths_compare_equal(self) -> None:
        """Paths are equal iff their normalized forms are."""
        assert normalize_path("/docs//report.txt") == normalize_path("docs/./report.txt")
        assert normalize_path("docs/report.txt") != normalize_path("docs/Report.txt")

    @pytest.mark.parametrize("raw", ["..", "../a", "a/../../b"])
    def test_climbing_above_root(self, raw: str) -> None:
        """Paths outside the root are rejected."""
        with pytest.raises(InvalidPathError, match="outside of the root"):
            normalize_path(raw)

    def test_control_characters(self) -> None:
        """Control characters are rejected."""
        with pytest.raises(InvalidPathError):
            normalize_path("a/\x00b")

    def test_invalid_path_is_value_error(self) -> None:
        """InvalidPathError can be caught as ValueError."""
        with pytest.raises(ValueError):
            normalize_path("../etc/passwd")

    def test_join_path(self) -> None:
        """join_path joins and normalizes."""
        assert join_path("a/", "/b", "c.txt") == "a/b/c.txt"
        assert join_path("", "c.txt") == "c.txt"


@pytest.mark.unit
class TestKeyMapper:
    """Tests for KeyMapper."""

    def test_identity_mapping(self) -> None:
        """Without a prefix keys equal paths."""
        keys = KeyMapper()
        assert keys.to_key("a/b.txt") == "a/b.txt"
        assert keys.to_prefix("a") == "a/"
        assert keys.to_prefix("") == ""
        assert keys.to_marker("a/b") == "a/b/"

    def test_prefixed_mapping(self) -> None:
        """A prefix is prepended to every key."""
        keys = KeyMapper.with_prefix("/tenants/acme/")
        assert keys.prefix == "tenants/acme"
        assert keys.to_key("a.txt") == "tenants/acme/a.txt"
        assert keys.to_prefix("") == "tenants/acme/"
        assert keys.to_marker("docs") == "tenants/acme/docs/"
