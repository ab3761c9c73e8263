"""Visibility value object."""

from __future__ import annotations

from enum import Enum


class Visibility(str, Enum):
    """Coarse access classification of a stored file.

    PUBLIC maps to a world-readable ACL, PRIVATE to an owner-only ACL.
    """

    PUBLIC = "public"
    PRIVATE = "private"

    @classmethod
    def parse(cls, value: "Visibility | str") -> "Visibility":
        """Parse a visibility from its name or value, case-insensitively.

        Raises:
            ValueError: If the value is not a known visibility.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"Unknown visibility: {value!r}") from None
