"""Tests for dotman.config_loader: hierarchical config loading."""

from pathlib import Path

import pytest
import yaml

from dotman.config_loader import (
    _interpolate_recursive,
    discover_config_files,
    interpolate_env_vars,
    load_hierarchical_config,
)

# -------------------------------------------------------------------------
# Env var interpolation
# -------------------------------------------------------------------------


class TestInterpolateEnvVars:
    """Tests for ${VAR} and ${VAR:-default} substitution."""

    def test_replaces_set_var(self, monkeypatch):
        monkeypatch.setenv("DF_HOME", "/srv/dotfiles")
        assert interpolate_env_vars("${DF_HOME}") == "/srv/dotfiles"

    def test_unset_var_replaced_with_empty(self, monkeypatch):
        monkeypatch.delenv("UNSET_VAR_XYZ", raising=False)
        assert interpolate_env_vars("${UNSET_VAR_XYZ}") == ""

    def test_default_used_when_unset(self, monkeypatch):
        monkeypatch.delenv("UNSET_VAR_XYZ", raising=False)
        assert (
            interpolate_env_vars("${UNSET_VAR_XYZ:-fallback}")
            == "fallback"
        )

    def test_default_ignored_when_set(self, monkeypatch):
        monkeypatch.setenv("DF_POLICY", "wait")
        assert interpolate_env_vars("${DF_POLICY:-detach}") == "wait"

    def test_embedded_in_path(self, monkeypatch):
        monkeypatch.setenv("XDG_DATA_HOME", "/home/u/.local/share")
        assert (
            interpolate_env_vars("${XDG_DATA_HOME}/dotfiles")
            == "/home/u/.local/share/dotfiles"
        )

    def test_nested_dict_interpolation(self, monkeypatch):
        monkeypatch.setenv("DF_ROOT", "/d")
        data = {"store": {"root": "${DF_ROOT}", "n": 5}, "l": ["${DF_ROOT}"]}
        assert _interpolate_recursive(data) == {
            "store": {"root": "/d", "n": 5},
            "l": ["/d"],
        }

    def test_non_string_values_untouched(self):
        data = {"count": 42, "enabled": True, "items": [1, 2, 3]}
        assert _interpolate_recursive(data) == data

    def test_literal_dollar_brace_no_closing(self):
        assert interpolate_env_vars("${NO_CLOSE") == "${NO_CLOSE"


# -------------------------------------------------------------------------
# Convention-based file discovery
# -------------------------------------------------------------------------


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


class TestDiscoverConfigFiles:
    """Tests for discover_config_files() precedence and filtering."""

    def test_nothing_found(self):
        assert discover_config_files() == []

    def test_env_var_takes_highest_precedence(self, tmp_path, monkeypatch):
        custom = _write(tmp_path / "custom.yml", "store: {}\n")
        xdg = _write(
            Path.home() / ".config" / "dotman" / "config.yml", "store: {}\n"
        )
        monkeypatch.setenv("DOTMAN_CONFIG", str(custom))

        assert discover_config_files() == [custom.resolve(), xdg]

    def test_xdg_before_legacy(self):
        legacy = _write(Path.home() / ".dotman" / "config.yaml", "a: 1\n")
        xdg = _write(
            Path.home() / ".config" / "dotman" / "config.yml", "a: 2\n"
        )
        assert discover_config_files() == [xdg, legacy]

    def test_missing_env_path_skipped(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DOTMAN_CONFIG", str(tmp_path / "nope.yml"))
        assert discover_config_files() == []


# -------------------------------------------------------------------------
# Hierarchical merge
# -------------------------------------------------------------------------


class TestLoadHierarchicalConfig:
    def test_zero_config(self):
        assert load_hierarchical_config() == {}

    def test_most_specific_file_wins_per_section(self, tmp_path, monkeypatch):
        _write(
            Path.home() / ".dotman" / "config.yaml",
            "store:\n  root: /legacy\nhooks:\n  policy: wait\n",
        )
        _write(
            Path.home() / ".config" / "dotman" / "config.yml",
            "store:\n  root: /xdg\n",
        )

        merged = load_hierarchical_config()

        assert merged["store"] == {"root": "/xdg"}
        assert merged["hooks"] == {"policy": "wait"}

    def test_section_keys_combine(self, tmp_path, monkeypatch):
        _write(
            Path.home() / ".config" / "dotman" / "config.yml",
            "store:\n  root: /xdg\n  registry_file: reg.toml\n",
        )
        explicit = _write(
            tmp_path / "explicit.yml", "store:\n  root: /explicit\n"
        )
        monkeypatch.setenv("DOTMAN_CONFIG", str(explicit))

        merged = load_hierarchical_config()

        assert merged["store"] == {
            "root": "/explicit",
            "registry_file": "reg.toml",
        }

    def test_interpolates_after_merge(self, monkeypatch):
        monkeypatch.setenv("DF_ROOT", "/from/env")
        _write(
            Path.home() / ".config" / "dotman" / "config.yml",
            "store:\n  root: ${DF_ROOT}\n",
        )
        assert load_hierarchical_config()["store"]["root"] == "/from/env"

    def test_non_dict_root_skipped(self):
        _write(Path.home() / ".config" / "dotman" / "config.yml", "- a\n- b\n")
        assert load_hierarchical_config() == {}

    def test_empty_file(self):
        _write(Path.home() / ".config" / "dotman" / "config.yml", "")
        assert load_hierarchical_config() == {}

    def test_malformed_yaml_raises(self):
        _write(
            Path.home() / ".config" / "dotman" / "config.yml",
            "store: [unclosed\n",
        )
        with pytest.raises(yaml.YAMLError):
            load_hierarchical_config()
