"""Ignore-aware directory walking.

``walk_tree`` produces a lazy, deterministic sequence of ``TreeEntry``
values for a directory tree:

* Entries are visited in sorted name order; a directory's own entries are
  yielded before any of its subdirectories are entered.
* ``.gitignore`` and ``.ignore`` files apply to the directory holding them
  and everything below it (gitignore syntax, via ``pathspec``).
  Version control metadata directories are always skipped when ignore
  rules are active.
* Symbolic links are reported as ``SYMLINK`` and never followed, so a
  link cycle cannot make the walk loop.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePosixPath

import pathspec

from dotman.errors import FilesystemError

logger = logging.getLogger(__name__)

IGNORE_FILENAMES = (".gitignore", ".ignore")

_DEFAULT_IGNORE_PATTERNS = [".git/", ".hg/", ".svn/"]


class EntryKind(str, Enum):
    DIR = "dir"
    FILE = "file"
    SYMLINK = "symlink"
    OTHER = "other"


@dataclass(frozen=True)
class TreeEntry:
    """One entry produced by ``walk_tree``.

    Attributes:
        path: Absolute path of the entry.
        rel: Path relative to the walk root (``.`` for the root itself).
        kind: Entry type, symlinks not resolved.
    """

    path: Path
    rel: PurePosixPath
    kind: EntryKind


class IgnoreRules:
    """Ignore specs collected from the root down to the current directory.

    Each spec is anchored at the directory whose ignore file produced it.
    Rules are immutable; ``descend`` returns a new instance.
    """

    def __init__(
        self, specs: tuple[tuple[Path, pathspec.PathSpec], ...] = ()
    ) -> None:
        self._specs = specs

    @classmethod
    def defaults(cls, root: Path) -> IgnoreRules:
        spec = pathspec.PathSpec.from_lines(
            "gitignore", _DEFAULT_IGNORE_PATTERNS
        )
        return cls(((root, spec),))

    def descend(self, directory: Path) -> IgnoreRules:
        """Return rules extended with *directory*'s own ignore files."""
        spec = load_ignore_spec(directory)
        if spec is None:
            return self
        return IgnoreRules(self._specs + ((directory, spec),))

    def ignores(self, path: Path, is_dir: bool) -> bool:
        """Return ``True`` if any collected spec matches *path*."""
        for base, spec in self._specs:
            rel = path.relative_to(base).as_posix()
            if is_dir:
                rel += "/"
            if spec.match_file(rel):
                return True
        return False


def load_ignore_spec(directory: Path) -> pathspec.PathSpec | None:
    """Compile the ignore files found directly in *directory*.

    Returns:
        The compiled spec, or ``None`` when the directory has no ignore
        file (or only empty ones).

    Raises:
        FilesystemError: If an ignore file cannot be read or contains an
            invalid pattern.
    """
    lines: list[str] = []
    for filename in IGNORE_FILENAMES:
        ignore_file = directory / filename
        if not ignore_file.is_file():
            continue
        try:
            lines.extend(
                ignore_file.read_text(encoding="utf-8").splitlines()
            )
        except (OSError, UnicodeDecodeError) as exc:
            raise FilesystemError(
                f"failed to read ignore file {ignore_file}: {exc}",
                path=ignore_file,
                operation="ignore",
            ) from exc

    if not any(line.strip() for line in lines):
        return None

    try:
        return pathspec.PathSpec.from_lines("gitignore", lines)
    except ValueError as exc:
        # Malformed patterns raise a ValueError subclass.
        raise FilesystemError(
            f"malformed ignore file in {directory}: {exc}",
            path=directory,
            operation="ignore",
        ) from exc


def _entry_kind(entry: os.DirEntry) -> EntryKind:
    if entry.is_symlink():
        return EntryKind.SYMLINK
    if entry.is_dir(follow_symlinks=False):
        return EntryKind.DIR
    if entry.is_file(follow_symlinks=False):
        return EntryKind.FILE
    return EntryKind.OTHER


def walk_tree(
    root: Path,
    *,
    ignore_files: bool = True,
    skip_hidden: bool = False,
    operation: str = "walk",
) -> Iterator[TreeEntry]:
    """Yield every entry below *root*, root first.

    Args:
        root: Directory to walk.  The root itself may be a symlink to a
            directory; links below it are not followed.
        ignore_files: Honor ``.gitignore``/``.ignore`` and skip VCS
            metadata directories.
        skip_hidden: Leave out entries whose name starts with ``.``.
        operation: Operation name recorded on raised errors.

    Raises:
        FilesystemError: If *root* is missing or not a directory, a
            directory cannot be listed, or an ignore file is malformed.
    """
    root = Path(root)
    if not root.is_dir():
        reason = "does not exist" if not root.exists() else "is not a directory"
        raise FilesystemError(
            f"{root} {reason}", path=root, operation=operation
        )

    rules = IgnoreRules()
    if ignore_files:
        rules = IgnoreRules.defaults(root).descend(root)

    yield TreeEntry(root, PurePosixPath("."), EntryKind.DIR)

    stack: list[tuple[Path, IgnoreRules]] = [(root, rules)]
    while stack:
        directory, rules = stack.pop()
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as exc:
            raise FilesystemError(
                f"failed to read directory {directory}: {exc}",
                path=directory,
                operation=operation,
            ) from exc

        subdirs: list[Path] = []
        for entry in entries:
            if skip_hidden and entry.name.startswith("."):
                continue
            path = Path(entry.path)
            try:
                kind = _entry_kind(entry)
            except OSError as exc:
                raise FilesystemError(
                    f"failed to stat {path}: {exc}",
                    path=path,
                    operation=operation,
                ) from exc
            if rules.ignores(path, kind is EntryKind.DIR):
                logger.debug("Ignoring %s", path)
                continue

            yield TreeEntry(
                path, PurePosixPath(path.relative_to(root).as_posix()), kind
            )
            if kind is EntryKind.DIR:
                subdirs.append(path)

        for sub in reversed(subdirs):
            stack.append((sub, rules.descend(sub) if ignore_files else rules))
