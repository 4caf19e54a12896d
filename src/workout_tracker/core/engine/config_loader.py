"""
YAML -> app settings loader.

Loads settings from settings.yaml (bundled with the package) and
optionally merges user overrides from ~/.workout-tracker/settings.yaml.

Usage:
    from workout_tracker.core.engine.config_loader import load_app_config
    cfg = load_app_config()
    data_dir = cfg.get("data_dir")

A bundled or user file that cannot be parsed is ignored with a warning,
so a broken override never stops the CLI from starting.
"""

from __future__ import annotations

import os
import warnings
from pathlib import Path
from typing import Any

import yaml

from ..config import APP_DIR_NAME, HOME_ENV_VAR

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML mapping; return {} (with a warning) if unreadable."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        warnings.warn(f"workout-tracker: ignoring {path} ({exc})", stacklevel=2)
        return {}
    return data if isinstance(data, dict) else {}


def deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = deep_merge(result[k], v)
        else:
            result[k] = v
    return result


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_app_home() -> Path:
    """
    Return the per-user application directory.

    ``$WORKOUT_TRACKER_HOME`` wins when set; otherwise ~/.workout-tracker.
    """
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override).expanduser()
    home = Path(os.environ.get("HOME", "~")).expanduser()
    return home / APP_DIR_NAME


def get_bundled_yaml_path() -> Path | None:
    """Return the path to the bundled settings.yaml, or None if not found."""
    candidate = Path(__file__).parent.parent.parent / "settings.yaml"
    return candidate if candidate.exists() else None


def get_user_yaml_path() -> Path | None:
    """Return <app home>/settings.yaml if it exists, else None."""
    p = get_app_home() / "settings.yaml"
    return p if p.exists() else None


def load_app_config() -> dict[str, Any]:
    """
    Load and merge app settings from YAML sources.

    Load order (later overrides earlier):
    1. Bundled src/workout_tracker/settings.yaml
    2. User override at <app home>/settings.yaml

    ``data_dir`` defaults to the app home when neither file sets it.

    Returns:
        Merged settings dict
    """
    config: dict[str, Any] = {}

    bundled = get_bundled_yaml_path()
    if bundled is not None:
        config = deep_merge(config, load_yaml_file(bundled))

    user = get_user_yaml_path()
    if user is not None:
        config = deep_merge(config, load_yaml_file(user))

    if not config.get("data_dir"):
        config["data_dir"] = str(get_app_home())

    return config
