"""Content fingerprints for directory trees.

A fingerprint is a 32-bit xxHash chained over every tracked entry of a
tree: each file contributes its relative path and its bytes, each symlink
its relative path and its target string.  The chain is seeded with the
running value, so the result depends on walk order, which ``walk_tree``
keeps sorted and therefore stable across runs and filesystems.

32 bits is enough to notice drift; it is not an integrity check.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import xxhash

from dotman.errors import FilesystemError
from dotman.sync.ignore import EntryKind, walk_tree

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024


def _fold(seed: int, data: bytes) -> int:
    return xxhash.xxh32_intdigest(data, seed=seed)


def _hash_file(path: Path, seed: int) -> int:
    hasher = xxhash.xxh32(seed=seed)
    try:
        with open(path, "rb") as fh:
            for chunk in iter(lambda: fh.read(_CHUNK_SIZE), b""):
                hasher.update(chunk)
    except OSError as exc:
        raise FilesystemError(
            f"failed to read {path}: {exc}",
            path=path,
            operation="fingerprint",
        ) from exc
    return hasher.intdigest()


def fingerprint(
    path: Path,
    *,
    ignore_files: bool = True,
    skip_hidden: bool = False,
) -> int:
    """Compute the fingerprint of the tree rooted at *path*.

    Args:
        path: Directory to fingerprint.
        ignore_files: Honor ``.gitignore``/``.ignore`` files in the tree.
        skip_hidden: Leave dot-entries out of the fingerprint.

    Returns:
        Unsigned 32-bit fingerprint.  Two trees holding the same files
        with the same bytes fingerprint equally.

    Raises:
        FilesystemError: If the tree cannot be walked, a file cannot be
            read, or an ignore file is malformed.
    """
    h = 0
    files = 0
    for entry in walk_tree(
        path,
        ignore_files=ignore_files,
        skip_hidden=skip_hidden,
        operation="fingerprint",
    ):
        if entry.kind is EntryKind.FILE:
            h = _fold(h, entry.rel.as_posix().encode("utf-8", "surrogateescape"))
            h = _hash_file(entry.path, h)
            files += 1
        elif entry.kind is EntryKind.SYMLINK:
            try:
                target = os.readlink(entry.path)
            except OSError as exc:
                raise FilesystemError(
                    f"failed to read link {entry.path}: {exc}",
                    path=entry.path,
                    operation="fingerprint",
                ) from exc
            h = _fold(h, entry.rel.as_posix().encode("utf-8", "surrogateescape"))
            h = _fold(h, os.fsencode(target))

    logger.debug("Fingerprint of %s over %d files: %08x", path, files, h)
    return h
