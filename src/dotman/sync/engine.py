"""Core sync engine that orchestrates add, export and import.

For every selected pair the ``SyncEngine``:

1. Fingerprints the live directory and its mirror.
2. Compares the two fingerprints for the direction being run.
3. On drift, removes the losing side and replicates the winning side
   over it.
4. Persists the registry immediately, so pairs already synced stay
   recorded if a later pair fails.
5. Reports ``applied`` or ``skipped`` for the pair.

After the batch the relevant hooks fire once if anything was applied.

There is no "both sides changed" state: whichever direction is run wins
and the other side's edits are overwritten.  Any error aborts the whole
operation; nothing is retried.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

from dotman.errors import (
    ConflictError,
    FilesystemError,
    InvalidNameError,
    NotFoundError,
)
from dotman.sync.fingerprint import fingerprint
from dotman.sync.hooks import HookInvoker
from dotman.sync.models import (
    Direction,
    HookKind,
    ManagedPair,
    PairResult,
    PairState,
    Registry,
    SyncOutcome,
    SyncReport,
)
from dotman.sync.registry import RegistryStore
from dotman.sync.replicator import remove_tree, replicate
from dotman.validators import validate_pair_name

logger = logging.getLogger(__name__)

ResultCallback = Callable[[PairResult], None]


class SyncEngine:
    """Run sync operations over one registry.

    Args:
        store: Registry store owning the store root.
        registry: Registry loaded from *store*; mutated by ``add_pair``.
        hooks: Hook invoker used after export/import batches.
        ignore_files: Honor ignore files while fingerprinting.
        skip_hidden: Leave dot-entries out of fingerprints.
        ignore_during_replication: Apply ignore rules when copying too.
    """

    def __init__(
        self,
        store: RegistryStore,
        registry: Registry,
        hooks: HookInvoker | None = None,
        *,
        ignore_files: bool = True,
        skip_hidden: bool = False,
        ignore_during_replication: bool = False,
    ) -> None:
        self.store = store
        self.registry = registry
        self.hooks = hooks or HookInvoker()
        self.ignore_files = ignore_files
        self.skip_hidden = skip_hidden
        self.ignore_during_replication = ignore_during_replication

    # ------------------------------------------------------------------
    # Add / list
    # ------------------------------------------------------------------

    def add_pair(self, name: str, place: Path | str) -> ManagedPair:
        """Register *place* under *name* and mirror it into the store.

        Raises:
            InvalidNameError: If *name* cannot be a mirror directory name.
            NotFoundError: If *place* does not exist or is not a directory.
            ConflictError: If *name* or *place* is already registered,
                or if *place* and the store root contain one another.
            FilesystemError: If the stale mirror cannot be removed or the
                copy fails.
        """
        ok, reason = validate_pair_name(name, self.store.registry_file)
        if not ok:
            raise InvalidNameError(reason, operation="add")

        live = Path(os.path.abspath(Path(place).expanduser()))
        if not live.exists():
            raise NotFoundError(
                f"place {live} does not exist", path=live, operation="add"
            )
        if not live.is_dir():
            raise NotFoundError(
                f"place {live} is not a directory",
                path=live,
                operation="add",
            )
        self._check_store_overlap(live, "add")

        if self.registry.conflicts_with(name, live):
            raise ConflictError(
                f"name {name} or path {live} is already registered",
                path=live,
                operation="add",
            )

        pair = ManagedPair(name=name, place=live)
        mirror = self.store.mirror_path(pair)
        if remove_tree(mirror):
            logger.info("Removed stale mirror %s", mirror)
        replicate(
            live, mirror, ignore_files=self.ignore_during_replication
        )

        self.registry.pairs.append(pair)
        self.store.persist(self.registry)
        logger.info("Added %s -> %s", live, mirror)
        return pair

    def list_pairs(self) -> list[tuple[ManagedPair, Path]]:
        """Return each pair with its mirror path, in registry order."""
        return [
            (pair, self.store.mirror_path(pair))
            for pair in self.registry.pairs
        ]

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------

    def export_pairs(
        self,
        name: str | None = None,
        *,
        dry_run: bool = False,
        on_result: ResultCallback | None = None,
    ) -> SyncReport:
        """Copy live directories that drifted from their mirrors into the store.

        Args:
            name: Only export this pair; all pairs when ``None``.
            dry_run: Report what would be applied without changing anything.
            on_result: Called with each ``PairResult`` as it is produced.

        Raises:
            NotFoundError: If *name* is not registered (nothing is touched).
        """
        return self._run(Direction.EXPORT, name, dry_run, on_result)

    def import_pairs(
        self,
        name: str | None = None,
        *,
        dry_run: bool = False,
        on_result: ResultCallback | None = None,
    ) -> SyncReport:
        """Copy mirrors that drifted from their live directories back out.

        Args:
            name: Only import this pair; all pairs when ``None``.
            dry_run: Report what would be applied without changing anything.
            on_result: Called with each ``PairResult`` as it is produced.

        Raises:
            NotFoundError: If *name* is not registered (nothing is touched)
                or a selected pair has no mirror.
        """
        return self._run(Direction.IMPORT, name, dry_run, on_result)

    def _run(
        self,
        direction: Direction,
        name: str | None,
        dry_run: bool,
        on_result: ResultCallback | None,
    ) -> SyncReport:
        started_at = datetime.now(timezone.utc).isoformat()
        pairs = self._select(name, direction)

        hooks_fired: list[HookKind] = []
        if direction is Direction.IMPORT and not dry_run:
            self._fire(HookKind.BEFORE_IMPORT, hooks_fired)

        results: list[PairResult] = []
        for pair in pairs:
            result = self._sync_pair(pair, direction, dry_run)
            results.append(result)
            if on_result is not None:
                on_result(result)

        if not dry_run and any(
            r.outcome is SyncOutcome.APPLIED for r in results
        ):
            if direction is Direction.EXPORT:
                self._fire(HookKind.EXPORT, hooks_fired)
            else:
                self._fire(HookKind.IMPORT, hooks_fired)
                self._fire(HookKind.AFTER_IMPORT, hooks_fired)

        return SyncReport(
            direction=direction,
            dry_run=dry_run,
            results=results,
            hooks_fired=hooks_fired,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc).isoformat(),
        )

    def _select(
        self, name: str | None, direction: Direction
    ) -> list[ManagedPair]:
        if name is None:
            return list(self.registry.pairs)
        pair = self.registry.find(name)
        if pair is None:
            raise NotFoundError(
                f"name {name} not found", operation=direction.value
            )
        return [pair]

    # ------------------------------------------------------------------
    # Per-pair sync
    # ------------------------------------------------------------------

    def _sync_pair(
        self, pair: ManagedPair, direction: Direction, dry_run: bool
    ) -> PairResult:
        live = pair.place
        mirror = self.store.mirror_path(pair)
        self._check_store_overlap(live, direction.value)

        if direction is Direction.EXPORT:
            if not live.is_dir():
                raise NotFoundError(
                    f"place {live} of {pair.name} does not exist",
                    path=live,
                    operation="export",
                )
            source, target = live, mirror
        else:
            source, target = mirror, live
            if not mirror.is_dir():
                raise NotFoundError(
                    f"mirror {mirror} of {pair.name} does not exist",
                    path=mirror,
                    operation="import",
                )
            if not live.exists() and not dry_run:
                logger.info("Creating missing place %s", live)
                self._make_dir(live, "import")

        state = self._reconcile(direction, source, target)
        if state is PairState.UNCHANGED:
            logger.debug("%s is unchanged", pair.name)
            return self._result(pair, direction, state, SyncOutcome.SKIPPED)

        if dry_run:
            return self._result(pair, direction, state, SyncOutcome.APPLIED)

        if not remove_tree(target) and direction is Direction.IMPORT:
            self._make_dir(target, "import")
        replicate(
            source, target, ignore_files=self.ignore_during_replication
        )
        self.store.persist(self.registry)
        logger.debug("%s: %s -> %s", pair.name, source, target)
        return self._result(pair, direction, state, SyncOutcome.APPLIED)

    def _reconcile(
        self, direction: Direction, source: Path, target: Path
    ) -> PairState:
        """Compare fresh fingerprints of both sides.

        A target that does not exist yet always counts as drift.
        """
        source_hash = self._fingerprint(source)
        target_hash = (
            self._fingerprint(target) if target.is_dir() else None
        )
        if source_hash == target_hash:
            return PairState.UNCHANGED
        if direction is Direction.EXPORT:
            return PairState.LIVE_CHANGED
        return PairState.MIRROR_CHANGED

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _fingerprint(self, path: Path) -> int:
        return fingerprint(
            path,
            ignore_files=self.ignore_files,
            skip_hidden=self.skip_hidden,
        )

    def _fire(self, kind: HookKind, fired: list[HookKind]) -> None:
        if self.hooks.invoke(self.registry.hook_path(kind), kind) is not None:
            fired.append(kind)

    def _check_store_overlap(self, live: Path, operation: str) -> None:
        # Copying a tree into itself never terminates.
        place = live.resolve()
        root = self.store.store_root.resolve()
        if root.is_relative_to(place) or place.is_relative_to(root):
            raise ConflictError(
                f"place {live} overlaps the store root {root}",
                path=live,
                operation=operation,
            )

    @staticmethod
    def _make_dir(path: Path, operation: str) -> None:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FilesystemError(
                f"failed to create directory {path}: {exc}",
                path=path,
                operation=operation,
            ) from exc

    @staticmethod
    def _result(
        pair: ManagedPair,
        direction: Direction,
        state: PairState,
        outcome: SyncOutcome,
    ) -> PairResult:
        return PairResult(
            name=pair.name,
            direction=direction,
            state=state,
            outcome=outcome,
        )
