"""Unified configuration schema for dotman.

Defines Pydantic models for the YAML config file with dedicated sections
for the store, sync behaviour, hooks, terminal output and logging, plus an
adapter that turns the parsed file into the runtime ``Settings`` dataclass.

Usage:
    from dotman.config_schema import build_config, to_settings

    raw = load_hierarchical_config()
    unified = build_config(raw)
    settings = to_settings(unified, cli_overrides={"store_root": "/tmp/df"})
"""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import BaseModel, Field

from .config import Settings, load_settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class StoreConfig(BaseModel):
    """Location of the store root and the registry file inside it."""

    root: str | None = Field(
        default=None,
        description="Store root directory (default: ~/dotfiles)",
    )
    registry_file: str = Field(
        default="dotman.toml",
        min_length=1,
        description="Registry file name inside the store root",
    )

    model_config = {"frozen": True}


class SyncConfig(BaseModel):
    """Fingerprinting and replication behaviour.

    Attributes:
        ignore_files: Honor ``.gitignore``/``.ignore`` while fingerprinting.
        skip_hidden: Leave dot-entries out of fingerprints.
        ignore_during_replication: Also apply ignore rules when copying.
    """

    ignore_files: bool = Field(default=True)
    skip_hidden: bool = Field(default=False)
    ignore_during_replication: bool = Field(default=False)

    model_config = {"frozen": True}


class HooksConfig(BaseModel):
    """How lifecycle hooks are run."""

    policy: Literal["detach", "wait"] = Field(
        default="detach",
        description="detach: fire and forget; wait: block until exit",
    )

    model_config = {"frozen": True}


class OutputConfig(BaseModel):
    """Markers printed in front of each pair in a sync report."""

    applied_glyph: str = Field(default="✓", min_length=1)
    skipped_glyph: str = Field(default="-", min_length=1)

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        format: "text" for glyph lines, "json" for one object per record.
        file: Optional log file path.
    """

    level: str = Field(default="INFO", description="Log level")
    format: Literal["text", "json"] = Field(
        default="text", description="stderr/file record format"
    )
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Every section has sensible defaults, so ``UnifiedConfig()``
    (zero-config) is always valid.
    """

    store: StoreConfig = Field(default_factory=StoreConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    hooks: HooksConfig = Field(default_factory=HooksConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Missing sections get their defaults.

    Args:
        raw_data: Merged configuration dictionary.

    Returns:
        Validated ``UnifiedConfig`` instance.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)


# ---------------------------------------------------------------------------
# Adapter: UnifiedConfig -> Settings dataclass
# ---------------------------------------------------------------------------


def to_settings(
    unified: UnifiedConfig,
    cli_overrides: dict | None = None,
) -> Settings:
    """Convert a ``UnifiedConfig`` into the runtime ``Settings``,
    applying CLI overrides and environment variables on top.

    The precedence applied here is:
        CLI override > environment variable > unified config value > default

    CLI overrides dict keys: store_root, debug.

    Args:
        unified: The unified config produced by ``build_config()``.
        cli_overrides: Optional dict of CLI argument values.

    Returns:
        Validated ``Settings`` instance.
    """
    overrides = cli_overrides or {}

    return load_settings(
        store_root=overrides.get("store_root"),
        debug=overrides.get("debug", False),
        yaml_fallbacks={
            "store_root": unified.store.root,
            "registry_file": unified.store.registry_file,
            "hook_policy": unified.hooks.policy,
            "ignore_files": unified.sync.ignore_files,
            "skip_hidden": unified.sync.skip_hidden,
            "ignore_during_replication": (
                unified.sync.ignore_during_replication
            ),
            "applied_glyph": unified.output.applied_glyph,
            "skipped_glyph": unified.output.skipped_glyph,
        },
    )
