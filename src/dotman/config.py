"""Runtime configuration for the dotman command line tool.

Reads store and sync settings from CLI args, environment variables,
.env files, and YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    DOTMAN_STORE_ROOT: Store root directory (optional, default: ~/dotfiles)
    DOTMAN_REGISTRY_FILE: Registry file name (optional, default: dotman.toml)
    DOTMAN_HOOK_POLICY: "detach" or "wait" (optional, default: detach)
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_STORE_DIRNAME = "dotfiles"
DEFAULT_REGISTRY_FILE = "dotman.toml"
HOOK_POLICIES = ("detach", "wait")


@dataclass
class Settings:
    store_root: Path
    registry_file: str = DEFAULT_REGISTRY_FILE
    hook_policy: str = "detach"
    ignore_files: bool = True
    skip_hidden: bool = False
    ignore_during_replication: bool = False
    applied_glyph: str = "✓"
    skipped_glyph: str = "-"
    debug: bool = False


def default_store_root() -> Path:
    """Return ``~/dotfiles`` for the current user."""
    return Path.home() / DEFAULT_STORE_DIRNAME


def validate_settings(settings: Settings) -> None:
    """Validate settings values and raise ValueError if invalid.

    Args:
        settings: Settings instance to validate. ``store_root`` is
            normalised to an absolute path in place.

    Raises:
        ValueError: If the registry file name or hook policy is unusable.
    """
    settings.store_root = Path(
        os.path.abspath(settings.store_root.expanduser())
    )

    name = settings.registry_file
    if not name or not name.strip():
        raise ValueError("Registry file name cannot be empty")
    if "/" in name or name in (".", ".."):
        raise ValueError(
            f"Invalid registry file name '{name}': must be a plain file name"
        )

    if settings.hook_policy not in HOOK_POLICIES:
        raise ValueError(
            f"Invalid hook policy '{settings.hook_policy}': "
            f"must be one of {', '.join(HOOK_POLICIES)}"
        )

    if settings.store_root == Path(settings.store_root.anchor):
        raise ValueError(
            "Store root cannot be the filesystem root: "
            "init would delete everything below it"
        )


def load_settings(
    store_root: str | None = None,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
) -> Settings:
    """Load settings with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        store_root: Override store root (takes precedence over env var and YAML).
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Dict of values from the YAML config file, flattened
            to ``Settings`` field names. ``None`` values are ignored.

    Returns:
        Validated Settings instance.

    Raises:
        ValueError: If a resolved value is invalid.
    """
    fb = {k: v for k, v in (yaml_fallbacks or {}).items() if v is not None}

    # --- Path / string fields: CLI > env > YAML > default ---

    root_raw = store_root or os.getenv("DOTMAN_STORE_ROOT") or fb.get("store_root")
    final_root = Path(root_raw).expanduser() if root_raw else default_store_root()

    registry_file = (
        os.getenv("DOTMAN_REGISTRY_FILE")
        or fb.get("registry_file")
        or DEFAULT_REGISTRY_FILE
    )

    hook_policy = (
        os.getenv("DOTMAN_HOOK_POLICY") or fb.get("hook_policy") or "detach"
    ).strip().lower()

    settings = Settings(
        store_root=final_root,
        registry_file=registry_file.strip(),
        hook_policy=hook_policy,
        ignore_files=bool(fb.get("ignore_files", True)),
        skip_hidden=bool(fb.get("skip_hidden", False)),
        ignore_during_replication=bool(
            fb.get("ignore_during_replication", False)
        ),
        applied_glyph=fb.get("applied_glyph", "✓"),
        skipped_glyph=fb.get("skipped_glyph", "-"),
        debug=debug,
    )

    validate_settings(settings)
    logger.debug(
        "Store root %s, registry %s, hook policy %s",
        settings.store_root,
        settings.registry_file,
        settings.hook_policy,
    )

    return settings
