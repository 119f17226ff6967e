"""Tests for dotman.config: settings resolution and validation.

NOT to be confused with test_config_loader.py (YAML file discovery)
or test_config_schema.py (Pydantic models). This tests load_settings()
and validate_settings().
"""

from pathlib import Path

import pytest

from dotman.config import (
    Settings,
    default_store_root,
    load_settings,
    validate_settings,
)

# -------------------------------------------------------------------------
# validate_settings()
# -------------------------------------------------------------------------


class TestValidateSettings:
    """Tests for validate_settings() checks and normalisation."""

    def test_valid_settings(self, tmp_path):
        validate_settings(Settings(store_root=tmp_path / "d"))

    def test_relative_root_made_absolute(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        settings = Settings(store_root=Path("dots"))
        validate_settings(settings)
        assert settings.store_root == tmp_path / "dots"

    @pytest.mark.parametrize("name", ["", "  ", "sub/dotman.toml", ".."])
    def test_bad_registry_file(self, tmp_path, name):
        with pytest.raises(ValueError, match="[Rr]egistry file"):
            validate_settings(
                Settings(store_root=tmp_path, registry_file=name)
            )

    def test_bad_hook_policy(self, tmp_path):
        with pytest.raises(ValueError, match="hook policy"):
            validate_settings(
                Settings(store_root=tmp_path, hook_policy="sometimes")
            )

    def test_filesystem_root_rejected(self):
        with pytest.raises(ValueError, match="filesystem root"):
            validate_settings(Settings(store_root=Path("/")))


# -------------------------------------------------------------------------
# load_settings()
# -------------------------------------------------------------------------


class TestLoadSettings:
    """Tests for the CLI > env > YAML > default precedence."""

    def test_defaults(self):
        settings = load_settings()
        assert settings.store_root == default_store_root()
        assert settings.store_root == Path.home() / "dotfiles"
        assert settings.registry_file == "dotman.toml"
        assert settings.hook_policy == "detach"
        assert settings.ignore_files is True
        assert settings.skip_hidden is False
        assert settings.debug is False

    def test_env_beats_yaml(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DOTMAN_STORE_ROOT", str(tmp_path / "env"))
        settings = load_settings(
            yaml_fallbacks={"store_root": str(tmp_path / "yaml")}
        )
        assert settings.store_root == tmp_path / "env"

    def test_cli_beats_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DOTMAN_STORE_ROOT", str(tmp_path / "env"))
        settings = load_settings(store_root=str(tmp_path / "cli"))
        assert settings.store_root == tmp_path / "cli"

    def test_yaml_used_when_nothing_else(self, tmp_path):
        settings = load_settings(
            yaml_fallbacks={
                "store_root": str(tmp_path / "yaml"),
                "registry_file": "reg.toml",
                "hook_policy": "wait",
                "skip_hidden": True,
                "applied_glyph": "*",
            }
        )
        assert settings.store_root == tmp_path / "yaml"
        assert settings.registry_file == "reg.toml"
        assert settings.hook_policy == "wait"
        assert settings.skip_hidden is True
        assert settings.applied_glyph == "*"

    def test_none_fallbacks_ignored(self):
        settings = load_settings(
            yaml_fallbacks={"store_root": None, "ignore_files": None}
        )
        assert settings.store_root == default_store_root()
        assert settings.ignore_files is True

    def test_tilde_expanded(self):
        settings = load_settings(store_root="~/my-dots")
        assert settings.store_root == Path.home() / "my-dots"

    def test_env_hook_policy_normalised(self, monkeypatch):
        monkeypatch.setenv("DOTMAN_HOOK_POLICY", " WAIT ")
        assert load_settings().hook_policy == "wait"

    def test_env_registry_file(self, monkeypatch):
        monkeypatch.setenv("DOTMAN_REGISTRY_FILE", "other.toml")
        assert load_settings().registry_file == "other.toml"

    def test_invalid_env_policy_raises(self, monkeypatch):
        monkeypatch.setenv("DOTMAN_HOOK_POLICY", "never")
        with pytest.raises(ValueError):
            load_settings()

    def test_debug_flag(self):
        assert load_settings(debug=True).debug is True
