"""
YAML config file discovery and merging for dotman.

Config files are optional.  Up to three are read, most specific first::

    $DOTMAN_CONFIG
    ~/.config/dotman/config.yml
    ~/.dotman/config.yaml

Sections (``store``, ``sync``, ``hooks``, ``output``, ``logging``) are
merged key by key, so a file only needs to name the keys it changes.
String values may reference the environment as ``${VAR}`` or
``${VAR:-fallback}``.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "DOTMAN_CONFIG"

_ENV_REF = re.compile(r"\$\{(?P<name>[^}:]+?)(?::-(?P<fallback>.*?))?\}")


def interpolate_env_vars(value: str) -> str:
    """Expand ``${VAR}`` and ``${VAR:-fallback}`` references in *value*.

    An unset or empty variable expands to its fallback, or to ``""``
    without one.  A ``${`` that is never closed is kept as written.
    """
    return _ENV_REF.sub(
        lambda m: os.environ.get(m["name"]) or (m["fallback"] or ""),
        value,
    )


def _interpolate_recursive(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {key: _interpolate_recursive(val) for key, val in obj.items()}
    if isinstance(obj, list):
        return [_interpolate_recursive(val) for val in obj]
    if isinstance(obj, str):
        return interpolate_env_vars(obj)
    return obj


def discover_config_files() -> list[Path]:
    """Return the config files that exist, most specific first."""
    candidates = []
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        candidates.append(Path(explicit).expanduser().resolve())
    home = Path.home()
    candidates.append(home / ".config" / "dotman" / "config.yml")
    candidates.append(home / ".dotman" / "config.yaml")
    return [path for path in candidates if path.is_file()]


def _read_mapping(path: Path) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning(
            "Ignoring %s: top level is a %s, not a mapping",
            path,
            type(data).__name__,
        )
        return {}
    return data


def _merge_sections(base: dict, override: dict) -> dict:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


def load_hierarchical_config() -> dict[str, Any]:
    """Read every discovered config file and merge them.

    Returns:
        The merged, interpolated mapping; ``{}`` when no file exists.

    Raises:
        OSError: If a discovered file cannot be read.
        yaml.YAMLError: If a file is not valid YAML.
    """
    merged: dict[str, Any] = {}
    for path in reversed(discover_config_files()):
        logger.debug("Reading config file %s", path)
        try:
            data = _read_mapping(path)
        except (OSError, yaml.YAMLError):
            logger.error("Could not load config file %s", path)
            raise
        merged = _merge_sections(merged, data)
    return _interpolate_recursive(merged)
