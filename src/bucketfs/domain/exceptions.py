"""Error taxonomy for filesystem operations.

Not-found and already-exists are expected outcomes that callers branch on.
Partial effects of composite operations have their own kinds and are never
collapsed into plain success or plain failure. Every error carries the
offending path(s) and the backend status code when one is known.
"""

from __future__ import annotations

from typing import Sequence


class FilesystemError(Exception):
    """Base class for all errors raised by the adapter."""

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        status: int | None = None,
    ) -> None:
        self.message = message
        self.path = path
        self.status = status
        super().__init__(message)

    def context(self) -> dict[str, object]:
        """Diagnostic context, suitable for structured logging."""
        ctx: dict[str, object] = {}
        if self.path is not None:
            ctx["path"] = self.path
        if self.status is not None:
            ctx["status"] = self.status
        return ctx

    def __str__(self) -> str:
        ctx = self.context()
        if not ctx:
            return self.message
        details = ", ".join(f"{key}={value!r}" for key, value in ctx.items())
        return f"{self.message} ({details})"


class NotFoundError(FilesystemError):
    """No file or directory exists at the path."""

    def __init__(self, path: str, *, status: int | None = None) -> None:
        super().__init__("File not found", path=path, status=status)


class AlreadyExistsError(FilesystemError):
    """A file already exists at the path."""

    def __init__(self, path: str, *, status: int | None = None) -> None:
        super().__init__("File already exists", path=path, status=status)


class InvalidPathError(FilesystemError, ValueError):
    """The path cannot be normalized or is not allowed for the operation."""

    def __init__(self, path: str, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid path: {reason}", path=path)


class ConfigurationError(FilesystemError):
    """Adapter configuration is missing or invalid."""

    def __init__(self, message: str, *, fields: Sequence[str] = ()) -> None:
        self.fields = tuple(fields)
        super().__init__(message)

    def context(self) -> dict[str, object]:
        ctx = super().context()
        if self.fields:
            ctx["fields"] = list(self.fields)
        return ctx


class StorageConnectionError(FilesystemError):
    """Authenticating or connecting to the backend failed at construction."""

    def __init__(
        self,
        message: str,
        *,
        bucket: str | None = None,
        status: int | None = None,
    ) -> None:
        self.bucket = bucket
        super().__init__(message, status=status)

    def context(self) -> dict[str, object]:
        ctx = super().context()
        if self.bucket is not None:
            ctx["bucket"] = self.bucket
        return ctx


class BackendError(FilesystemError):
    """Transport or service failure. Retryable at the caller's discretion."""


class OperationCancelledError(FilesystemError):
    """A composite operation was cancelled before issuing further requests."""

    def __init__(self, path: str, *, completed: int = 0) -> None:
        self.completed = completed
        super().__init__("Operation cancelled", path=path)

    def context(self) -> dict[str, object]:
        ctx = super().context()
        ctx["completed"] = self.completed
        return ctx


class PartialCopyError(FilesystemError):
    """The destination was written but its visibility could not be applied.

    The destination exists, possibly with the wrong visibility, and removing
    it again also failed. The source is untouched.
    """

    def __init__(
        self,
        source: str,
        destination: str,
        *,
        status: int | None = None,
    ) -> None:
        self.source = source
        self.destination = destination
        super().__init__(
            "Copy wrote the destination but could not apply its visibility",
            path=source,
            status=status,
        )

    def context(self) -> dict[str, object]:
        ctx = super().context()
        ctx["destination"] = self.destination
        return ctx


class PartialRenameError(FilesystemError):
    """The copy succeeded but removing the source failed.

    Content now exists at both the source and the destination.
    """

    def __init__(
        self,
        source: str,
        destination: str,
        *,
        status: int | None = None,
    ) -> None:
        self.source = source
        self.destination = destination
        super().__init__(
            "Rename copied the file but could not remove the source",
            path=source,
            status=status,
        )

    def context(self) -> dict[str, object]:
        ctx = super().context()
        ctx["destination"] = self.destination
        return ctx


class PartialDeleteError(FilesystemError):
    """A directory delete stopped partway."""

    def __init__(
        self,
        path: str,
        *,
        deleted: int,
        remaining: int,
        status: int | None = None,
    ) -> None:
        self.deleted = deleted
        self.remaining = remaining
        super().__init__("Directory delete stopped partway", path=path, status=status)

    def context(self) -> dict[str, object]:
        ctx = super().context()
        ctx["deleted"] = self.deleted
        ctx["remaining"] = self.remaining
        return ctx
