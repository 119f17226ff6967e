"""Registry persistence layer.

Manages the TOML registry file that lists the managed pairs and hook
paths.  The file lives in the store root next to the mirrors::

    ~/dotfiles/
        dotman.toml
        shell/
        nvim/

Key design choices:

* **Atomic writes** -- ``persist()`` writes to a temp file then calls
  ``os.replace()`` so readers never see partial data.
* **Stable layout** -- hook keys are written first, then one ``[[pairs]]``
  table per pair in registry order, so load -> persist is byte-stable.
* **No cached hashes** -- the registry only records *what* is managed;
  drift is always recomputed from the trees themselves.
"""

from __future__ import annotations

import logging
import os
import tempfile
import tomllib
from pathlib import Path

import tomli_w
from pydantic import ValidationError

from dotman.errors import FilesystemError, NotFoundError, SerializationError
from dotman.sync.models import ManagedPair, Registry
from dotman.sync.replicator import remove_tree

logger = logging.getLogger(__name__)


class RegistryStore:
    """Initialize, load and persist the registry for one store root.

    Args:
        store_root: Directory holding the registry file and every mirror.
        registry_file: Name of the registry file inside *store_root*.
    """

    def __init__(
        self, store_root: Path, registry_file: str = "dotman.toml"
    ) -> None:
        self.store_root = Path(store_root)
        self.registry_file = registry_file

    @property
    def registry_path(self) -> Path:
        return self.store_root / self.registry_file

    def mirror_path(self, pair: ManagedPair) -> Path:
        """Return the mirror directory of *pair*."""
        return pair.mirror_path(self.store_root)

    def exists(self) -> bool:
        return self.registry_path.is_file()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> Registry:
        """Destroy the store root and start over with an empty registry.

        Everything under the store root is deleted, mirrors included.
        Callers must have the user's confirmation before calling this.

        Returns:
            The empty registry that was written.

        Raises:
            FilesystemError: If the old store cannot be removed or the new
                one cannot be created.
        """
        if remove_tree(self.store_root):
            logger.info("Removed existing store %s", self.store_root)
        try:
            self.store_root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FilesystemError(
                f"failed to create store directory {self.store_root}: {exc}",
                path=self.store_root,
                operation="init",
            ) from exc

        registry = Registry()
        self.persist(registry)
        return registry

    def load(self) -> Registry:
        """Read and validate the registry file.

        Raises:
            NotFoundError: If the registry file does not exist.
            FilesystemError: If it cannot be read.
            SerializationError: If it is not TOML or not a valid registry.
        """
        path = self.registry_path
        try:
            with open(path, "rb") as fh:
                raw = tomllib.load(fh)
        except FileNotFoundError as exc:
            raise NotFoundError(
                f"registry file {path} not found; run 'dotman init' first",
                path=path,
                operation="load",
            ) from exc
        except tomllib.TOMLDecodeError as exc:
            raise SerializationError(
                f"failed to parse {path} as TOML: {exc}",
                path=path,
                operation="load",
            ) from exc
        except OSError as exc:
            raise FilesystemError(
                f"failed to read registry file {path}: {exc}",
                path=path,
                operation="load",
            ) from exc

        try:
            registry = Registry.model_validate(raw)
        except ValidationError as exc:
            raise SerializationError(
                f"invalid registry in {path}: {exc}",
                path=path,
                operation="load",
            ) from exc

        logger.debug("Loaded %d pairs from %s", len(registry.pairs), path)
        return registry

    def persist(self, registry: Registry) -> None:
        """Write *registry* to disk atomically.

        Raises:
            FilesystemError: If the file cannot be written.
        """
        target = self.registry_path
        content = dumps_registry(registry)
        try:
            fd, tmp_path = tempfile.mkstemp(
                dir=str(self.store_root), suffix=".tmp"
            )
        except OSError as exc:
            raise FilesystemError(
                f"failed to open registry file {target}: {exc}",
                path=target,
                operation="persist",
            ) from exc

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(content)
            os.replace(tmp_path, target)
        except BaseException as exc:
            # Clean up temp file on any failure.
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            if isinstance(exc, OSError):
                raise FilesystemError(
                    f"failed to write registry file {target}: {exc}",
                    path=target,
                    operation="persist",
                ) from exc
            raise


def dumps_registry(registry: Registry) -> str:
    """Serialise *registry* to TOML text."""
    data = {
        "import_hook": registry.import_hook,
        "export_hook": registry.export_hook,
        "before_import_hook": registry.before_import_hook,
        "after_import_hook": registry.after_import_hook,
        "pairs": [
            {"name": pair.name, "place": str(pair.place)}
            for pair in registry.pairs
        ],
    }
    return tomli_w.dumps(data)
