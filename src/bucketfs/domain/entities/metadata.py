"""Metadata entities returned by the adapter."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from bucketfs.domain.value_objects.visibility import Visibility


DEFAULT_MIMETYPE = "application/octet-stream"


@dataclass(frozen=True)
class FileMetadata:
    """Metadata of a stored file."""

    path: str
    size: int
    timestamp: int  # seconds since epoch, as reported by the backend
    visibility: Visibility
    mimetype: str = DEFAULT_MIMETYPE
    metadata: Mapping[str, str] = field(default_factory=dict)

    type: ClassVar[Literal["file"]] = "file"

    def __post_init__(self) -> None:
        if self.size < 0:
            raise ValueError(f"File size cannot be negative: {self.size}")

    @property
    def is_file(self) -> bool:
        return True

    @property
    def is_dir(self) -> bool:
        return False


@dataclass(frozen=True)
class DirectoryEntry:
    """A directory, either marked explicitly or inferred from key prefixes."""

    path: str

    type: ClassVar[Literal["dir"]] = "dir"

    @property
    def is_file(self) -> bool:
        return False

    @property
    def is_dir(self) -> bool:
        return True


ContentEntry = Union[FileMetadata, DirectoryEntry]


class WriteConfig(BaseModel):
    """Options applied by write, update and create_dir.

    Unknown keys are accepted and ignored so callers can pass an open map.
    Unset keys fall back to adapter defaults.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    visibility: Optional[Visibility] = None
    mimetype: Optional[str] = None
    metadata: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def coerce(cls, value: "WriteConfig | Mapping[str, Any] | None") -> "WriteConfig":
        """Build a WriteConfig from a mapping, an instance or None."""
        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        return cls.model_validate(dict(value))
