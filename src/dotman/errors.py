"""
Exceptions raised by dotman operations.

Exception Hierarchy:
    DotmanError (base)
    ├── NotFoundError (place, pair name, mirror or registry absent)
    ├── ConflictError (duplicate name or place on add)
    ├── InvalidNameError (name unusable as a mirror directory)
    ├── FilesystemError (walk/copy/remove failures)
    ├── SerializationError (malformed registry file)
    └── HookStartError (hook command failed to launch)

Every error carries the path and operation it relates to so the command
layer can report it without extra bookkeeping.
"""

from __future__ import annotations

from pathlib import Path


class DotmanError(Exception):
    """Base exception for all dotman errors.

    Attributes:
        message: Human-readable error message.
        path: Filesystem path the error relates to, if any.
        operation: Short name of the failing step (``"remove"``,
            ``"replicate"``, ``"fingerprint"``, ...), if any.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Path | str | None = None,
        operation: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.path = Path(path) if path is not None else None
        self.operation = operation

    def __str__(self) -> str:
        return self.message


class NotFoundError(DotmanError):
    """A place, pair name, mirror or registry file does not exist."""


class ConflictError(DotmanError):
    """A pair with the same name or place is already registered."""


class InvalidNameError(DotmanError, ValueError):
    """A pair name cannot be used as a mirror subdirectory."""


class FilesystemError(DotmanError):
    """An I/O failure while walking, copying or removing a tree.

    The originating ``OSError`` is chained as ``__cause__``.
    """


class SerializationError(DotmanError):
    """The registry file is not valid TOML or not a valid registry."""


class HookStartError(DotmanError):
    """A hook command could not be started."""
