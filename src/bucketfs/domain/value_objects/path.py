"""Virtual path normalization and object-key mapping.

Paths are slash-separated and normalized: no leading or trailing slash,
no empty segments, ``.`` dropped and ``..`` resolved. The empty string is
the root. Object keys are the normalized path, optionally under a fixed
key prefix. A directory marker is the directory key followed by ``/``.
"""

from __future__ import annotations

from dataclasses import dataclass

from bucketfs.domain.exceptions import InvalidPathError


SEPARATOR = "/"
ROOT = ""


def normalize_path(path: str) -> str:
    """Normalize a virtual path.

    Args:
        path: Raw path. Backslashes are treated as separators.

    Returns:
        The normalized path ("" for the root).

    Raises:
        InvalidPathError: If the path climbs above the root or contains
            control characters.
    """
    if any(ord(ch) < 0x20 for ch in path):
        raise InvalidPathError(path, "control characters are not allowed")

    segments: list[str] = []
    for segment in path.replace("\\", SEPARATOR).split(SEPARATOR):
        if segment in ("", "."):
            continue
        if segment == "..":
            if not segments:
                raise InvalidPathError(path, "path is outside of the root")
            segments.pop()
            continue
        segments.append(segment)
    return SEPARATOR.join(segments)


def is_root(path: str) -> bool:
    """Return True if the normalized path is the root."""
    return path == ROOT


def join_path(*parts: str) -> str:
    """Join and normalize path parts."""
    return normalize_path(SEPARATOR.join(parts))


@dataclass(frozen=True)
class KeyMapper:
    """Maps normalized paths to object keys and back.

    Attributes:
        prefix: Normalized key prefix every path lives under ("" for none).
    """

    prefix: str = ROOT

    @classmethod
    def with_prefix(cls, prefix: str) -> "KeyMapper":
        """Mapper rooted under a raw, not yet normalized prefix."""
        return cls(prefix=normalize_path(prefix))

    def to_key(self, path: str) -> str:
        """Object key of a normalized file path."""
        if not self.prefix:
            return path
        if not path:
            return self.prefix
        return f"{self.prefix}{SEPARATOR}{path}"

    def to_prefix(self, path: str) -> str:
        """Key prefix of everything under a normalized directory path."""
        key = self.to_key(path)
        return f"{key}{SEPARATOR}" if key else ROOT

    def to_marker(self, path: str) -> str:
        """Key of the zero-length marker for a directory path."""
        return self.to_prefix(path)
