"""Tree replication between a live directory and its mirror.

``replicate`` copies a tree onto a destination without deleting anything
already there; callers wanting an exact copy remove the destination first
with ``remove_tree``.  Both raise ``FilesystemError`` on the first I/O
failure, naming the path involved.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from dotman.errors import FilesystemError
from dotman.sync.ignore import EntryKind, walk_tree

logger = logging.getLogger(__name__)


def replicate(
    source: Path,
    destination: Path,
    *,
    ignore_files: bool = False,
) -> int:
    """Copy the tree at *source* onto *destination*.

    Directories are created as needed (parents included), files are
    overwritten with the source bytes and permission bits, symlinks are
    recreated pointing at the same target.  Destination entries with no
    counterpart in *source* are left alone.  Running it twice with an
    unchanged source leaves the same destination.

    Args:
        source: Directory to copy from.
        destination: Directory to copy into; created if missing.
        ignore_files: Skip entries matched by ``.gitignore``/``.ignore``.

    Returns:
        Number of files and links copied.

    Raises:
        FilesystemError: On the first entry that cannot be created or
            copied.
    """
    source = Path(source)
    destination = Path(destination)
    copied = 0

    for entry in walk_tree(
        source, ignore_files=ignore_files, operation="replicate"
    ):
        target = destination / entry.rel
        try:
            if entry.kind is EntryKind.DIR:
                target.mkdir(parents=True, exist_ok=True)
            elif entry.kind is EntryKind.FILE:
                if target.is_symlink():
                    target.unlink()
                shutil.copy2(entry.path, target)
                copied += 1
            elif entry.kind is EntryKind.SYMLINK:
                link_target = os.readlink(entry.path)
                if target.is_symlink() or target.is_file():
                    target.unlink()
                os.symlink(link_target, target)
                copied += 1
            else:
                logger.warning("Skipping special file %s", entry.path)
        except OSError as exc:
            raise FilesystemError(
                f"failed to copy {entry.path} to {target}: {exc}",
                path=entry.path,
                operation="replicate",
            ) from exc

    logger.debug(
        "Replicated %d entries from %s to %s", copied, source, destination
    )
    return copied


def remove_tree(path: Path) -> bool:
    """Remove the tree at *path*.

    A symlink at *path* is unlinked rather than followed.

    Returns:
        ``True`` if something was removed, ``False`` if *path* did not
        exist.

    Raises:
        FilesystemError: For any failure other than "not found".
    """
    path = Path(path)
    try:
        if path.is_symlink() or path.is_file():
            path.unlink()
        else:
            shutil.rmtree(path)
    except FileNotFoundError:
        return False
    except OSError as exc:
        raise FilesystemError(
            f"failed to remove directory {path}: {exc}",
            path=path,
            operation="remove",
        ) from exc
    logger.debug("Removed %s", path)
    return True
