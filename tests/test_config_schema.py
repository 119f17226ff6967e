"""Tests for dotman.config_schema: Pydantic config models and adapter."""

import pytest
from pydantic import ValidationError

from dotman.config_schema import (
    HooksConfig,
    LoggingConfig,
    OutputConfig,
    StoreConfig,
    SyncConfig,
    UnifiedConfig,
    build_config,
    to_settings,
)

# -------------------------------------------------------------------------
# Section models
# -------------------------------------------------------------------------


class TestSectionDefaults:
    def test_store(self):
        cfg = StoreConfig()
        assert cfg.root is None
        assert cfg.registry_file == "dotman.toml"

    def test_sync(self):
        cfg = SyncConfig()
        assert cfg.ignore_files is True
        assert cfg.skip_hidden is False
        assert cfg.ignore_during_replication is False

    def test_hooks(self):
        assert HooksConfig().policy == "detach"

    def test_output(self):
        cfg = OutputConfig()
        assert (cfg.applied_glyph, cfg.skipped_glyph) == ("✓", "-")

    def test_logging(self):
        cfg = LoggingConfig()
        assert cfg.level == "INFO"
        assert cfg.file is None
        assert cfg.format == "text"


class TestValidation:
    def test_unknown_policy_rejected(self):
        with pytest.raises(ValidationError):
            HooksConfig(policy="later")

    def test_empty_registry_file_rejected(self):
        with pytest.raises(ValidationError):
            StoreConfig(registry_file="")

    def test_unknown_log_format_rejected(self):
        with pytest.raises(ValidationError):
            LoggingConfig(format="xml")

    def test_empty_glyph_rejected(self):
        with pytest.raises(ValidationError):
            OutputConfig(applied_glyph="")

    def test_models_are_frozen(self):
        cfg = SyncConfig()
        with pytest.raises(ValidationError):
            cfg.skip_hidden = True


# -------------------------------------------------------------------------
# build_config()
# -------------------------------------------------------------------------


class TestBuildConfig:
    def test_empty_dict_gives_defaults(self):
        assert build_config({}) == UnifiedConfig()

    def test_partial_sections(self):
        cfg = build_config(
            {"hooks": {"policy": "wait"}, "sync": {"skip_hidden": True}}
        )
        assert cfg.hooks.policy == "wait"
        assert cfg.sync.skip_hidden is True
        assert cfg.sync.ignore_files is True
        assert cfg.store == StoreConfig()

    def test_bad_section_type_raises(self):
        with pytest.raises(ValidationError):
            build_config({"sync": {"skip_hidden": "perhaps"}})


# -------------------------------------------------------------------------
# to_settings()
# -------------------------------------------------------------------------


class TestToSettings:
    def test_yaml_values_flow_through(self, tmp_path):
        unified = build_config(
            {
                "store": {"root": str(tmp_path / "d"), "registry_file": "r.toml"},
                "hooks": {"policy": "wait"},
                "sync": {"ignore_during_replication": True},
                "output": {"applied_glyph": "+", "skipped_glyph": "="},
            }
        )
        settings = to_settings(unified)

        assert settings.store_root == tmp_path / "d"
        assert settings.registry_file == "r.toml"
        assert settings.hook_policy == "wait"
        assert settings.ignore_during_replication is True
        assert settings.applied_glyph == "+"
        assert settings.skipped_glyph == "="

    def test_cli_override_wins(self, tmp_path):
        unified = build_config({"store": {"root": str(tmp_path / "yaml")}})
        settings = to_settings(
            unified,
            cli_overrides={"store_root": str(tmp_path / "cli"), "debug": True},
        )
        assert settings.store_root == tmp_path / "cli"
        assert settings.debug is True

    def test_env_beats_yaml(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DOTMAN_HOOK_POLICY", "detach")
        unified = build_config({"hooks": {"policy": "wait"}})
        assert to_settings(unified).hook_policy == "detach"
