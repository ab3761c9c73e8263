"""Domain value objects."""

from bucketfs.domain.value_objects.path import (
    ROOT,
    SEPARATOR,
    KeyMapper,
    is_root,
    join_path,
    normalize_path,
)
from bucketfs.domain.value_objects.visibility import Visibility

__all__ = [
    "ROOT",
    "SEPARATOR",
    "KeyMapper",
    "Visibility",
    "is_root",
    "join_path",
    "normalize_path",
]
