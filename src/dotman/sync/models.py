"""Pydantic models for the sync engine.

Defines the data contracts shared by the registry store, the engine and
the reporter:

- ``ManagedPair``: a named binding between a live directory and its mirror.
- ``Registry``: the persisted, ordered collection of pairs plus hook paths.
- ``Direction``, ``PairState``, ``SyncOutcome``: per-pair decision enums.
- ``PairResult``: outcome of processing one pair.
- ``SyncReport``: aggregate results for one export or import run.

Result models are frozen.  ``Registry`` is mutable because the engine
appends pairs to it during ``add``.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class Direction(str, Enum):
    """Which side of a pair is copied over the other."""

    EXPORT = "export"
    IMPORT = "import"


class PairState(str, Enum):
    """Drift state of a pair for the direction being run."""

    UNCHANGED = "unchanged"
    LIVE_CHANGED = "live_changed"
    MIRROR_CHANGED = "mirror_changed"


class SyncOutcome(str, Enum):
    """What happened to a pair."""

    APPLIED = "applied"
    SKIPPED = "skipped"


class HookKind(str, Enum):
    """Lifecycle points at which a hook may run."""

    EXPORT = "export"
    BEFORE_IMPORT = "before_import"
    IMPORT = "import"
    AFTER_IMPORT = "after_import"


def names_a_file(path: str | Path) -> bool:
    """Return ``True`` if the last component of *path* can name a file.

    A root, ``.`` or a path ending in ``..`` always names a directory.
    """
    return Path(path).name not in ("", ".", "..")


class ManagedPair(BaseModel):
    """A live directory mirrored under the store root.

    Attributes:
        name: Unique identifier, also the mirror's directory name.
        place: Absolute path of the live directory.
    """

    name: str
    place: Path

    def mirror_path(self, store_root: Path) -> Path:
        """Return ``store_root / name``; never stored."""
        return store_root / self.name


class Registry(BaseModel):
    """Ordered set of managed pairs and hook script paths.

    An absent hook is the empty string.  A hook counts as set only when its
    last path component can name a file (see ``names_a_file``).

    Unknown keys are ignored on load, so registry files written with a
    per-pair ``hash`` field still parse.
    """

    pairs: list[ManagedPair] = Field(default_factory=list)
    import_hook: str = ""
    export_hook: str = ""
    before_import_hook: str = ""
    after_import_hook: str = ""

    def find(self, name: str) -> ManagedPair | None:
        """Return the pair registered under *name*, or ``None``."""
        for pair in self.pairs:
            if pair.name == name:
                return pair
        return None

    def conflicts_with(self, name: str, place: Path) -> bool:
        """Return ``True`` if *name* or *place* is already registered."""
        return any(
            pair.name == name or pair.place == place
            for pair in self.pairs
        )

    def hook_path(self, kind: HookKind) -> Path | None:
        """Return the hook for *kind*, or ``None`` when it is absent."""
        raw = getattr(self, f"{kind.value}_hook")
        if not raw or not names_a_file(raw):
            return None
        return Path(raw)


class PairResult(BaseModel):
    """Result of processing one pair.

    Attributes:
        name: Pair name.
        direction: Export or import.
        state: Drift state detected before acting.
        outcome: ``applied`` when a copy was made (or would be, in a dry
            run), ``skipped`` otherwise.
    """

    name: str
    direction: Direction
    state: PairState
    outcome: SyncOutcome

    model_config = {"frozen": True}


class SyncReport(BaseModel):
    """Aggregate report for one export or import run.

    Attributes:
        direction: Export or import.
        dry_run: Whether this was a dry-run (no changes applied).
        results: Per-pair results in registry order.
        hooks_fired: Hook kinds that were launched, in launch order.
        started_at: ISO 8601 timestamp when the run started.
        completed_at: ISO 8601 timestamp when the run completed.
    """

    direction: Direction
    dry_run: bool = False
    results: list[PairResult] = []
    hooks_fired: list[HookKind] = []
    started_at: str
    completed_at: str | None = None

    model_config = {"frozen": True}

    @property
    def applied(self) -> list[PairResult]:
        """Results where a copy was made."""
        return [
            r for r in self.results if r.outcome == SyncOutcome.APPLIED
        ]

    @property
    def skipped(self) -> list[PairResult]:
        """Results where both sides already matched."""
        return [
            r for r in self.results if r.outcome == SyncOutcome.SKIPPED
        ]

    @property
    def changed(self) -> bool:
        return bool(self.applied)
