"""Shared pytest fixtures for dotman tests."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest
from dotenv import load_dotenv

from dotman.sync.models import HookKind, Registry
from dotman.sync.registry import RegistryStore

load_dotenv()


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep the user's real config and store out of every test."""
    for var in (
        "DOTMAN_CONFIG",
        "DOTMAN_STORE_ROOT",
        "DOTMAN_REGISTRY_FILE",
        "DOTMAN_HOOK_POLICY",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))


@pytest.fixture
def make_tree() -> Callable[[Path, dict[str, str | bytes]], Path]:
    """Factory fixture writing ``{relative_path: content}`` under a root."""

    def _make(root: Path, files: dict[str, str | bytes]) -> Path:
        root.mkdir(parents=True, exist_ok=True)
        for rel, content in files.items():
            fp = root / rel
            fp.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                fp.write_bytes(content)
            else:
                fp.write_text(content, encoding="utf-8")
        return root

    return _make


@pytest.fixture
def store_root(tmp_path: Path) -> Path:
    return tmp_path / "dotfiles"


@pytest.fixture
def store(store_root: Path) -> RegistryStore:
    """An initialized, empty registry store."""
    s = RegistryStore(store_root)
    s.initialize()
    return s


class FakeHookInvoker:
    """Records hook invocations instead of spawning processes."""

    def __init__(self) -> None:
        self.calls: list[tuple[Path | None, HookKind]] = []

    def invoke(self, hook_path: Path | None, kind: HookKind):
        self.calls.append((hook_path, kind))
        if hook_path is None:
            return None
        return object()

    @property
    def fired(self) -> list[HookKind]:
        return [kind for path, kind in self.calls if path is not None]


@pytest.fixture
def fake_hooks() -> FakeHookInvoker:
    return FakeHookInvoker()


@pytest.fixture
def hooked_registry() -> Registry:
    return Registry(
        export_hook="/opt/hooks/export.sh",
        import_hook="/opt/hooks/import",
        before_import_hook="/opt/hooks/before",
        after_import_hook="/opt/hooks/after",
    )
