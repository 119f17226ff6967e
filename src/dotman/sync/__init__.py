"""Mirror-and-drift sync engine.

Public API for keeping named live directories and their copies under the
store root in step.

Architecture
------------
Drift is detected by **recomputing both sides every run**: the live
directory and its mirror are fingerprinted and compared directly.  No hash
is cached in the registry, so a registry can never hold stale state.

Modules:

- ``engine``      -- ``SyncEngine``: add / export / import orchestration.
- ``registry``    -- ``RegistryStore``: init/load/persist the TOML registry.
- ``fingerprint`` -- ``fingerprint()``: 32-bit xxHash over a tree.
- ``replicator``  -- ``replicate()`` / ``remove_tree()``.
- ``ignore``      -- ``walk_tree()`` honoring ``.gitignore``/``.ignore``.
- ``hooks``       -- ``HookInvoker``: lifecycle hook launching.
- ``models``      -- ``ManagedPair``, ``Registry``, ``PairResult``,
  ``SyncReport`` and the enums they use.
- ``reporter``    -- Human-readable and JSON report formatting.

Usage example
-------------
::

    from pathlib import Path
    from dotman.sync import (
        HookInvoker, RegistryStore, SyncEngine, format_sync_report,
    )

    store = RegistryStore(Path.home() / "dotfiles")
    engine = SyncEngine(store, store.load(), HookInvoker())

    engine.add_pair("shell", Path.home() / ".config" / "shell")
    report = engine.export_pairs()
    print(format_sync_report(report))
"""

from .engine import SyncEngine
from .fingerprint import fingerprint
from .hooks import HookInvoker, HookPolicy
from .models import (
    Direction,
    HookKind,
    ManagedPair,
    PairResult,
    PairState,
    Registry,
    SyncOutcome,
    SyncReport,
)
from .registry import RegistryStore
from .replicator import remove_tree, replicate
from .reporter import (
    format_pair_line,
    format_pair_list,
    format_sync_report,
    report_to_json,
)

__all__ = [
    "Direction",
    "HookInvoker",
    "HookKind",
    "HookPolicy",
    "ManagedPair",
    "PairResult",
    "PairState",
    "Registry",
    "RegistryStore",
    "SyncEngine",
    "SyncOutcome",
    "SyncReport",
    "fingerprint",
    "format_pair_line",
    "format_pair_list",
    "format_sync_report",
    "remove_tree",
    "replicate",
    "report_to_json",
]
