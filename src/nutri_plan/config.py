"""Preferences loading with defaults and CLI override merging."""

from __future__ import annotations

import copy
from pathlib import Path

import yaml

from nutri_plan.errors import ConfigError

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "nutri-plan" / "config.yaml"
DEFAULT_DATA_DIR = Path.home() / ".local" / "share" / "nutri-plan"

DEFAULTS = {
    "bundle": {
        "breakfasts": 7,
        "lunches": 5,
        "dinners": 5,
        "include_snacks": True,
        "allow_repeats": True,
        "prefer_tags": True,
        "name": "Slot Bundle",
    },
    "paths": {
        "state_file": str(DEFAULT_DATA_DIR / "state.json"),
        "recipes_dir": None,
        "store_file": str(DEFAULT_DATA_DIR / "local-store.json"),
    },
    "display": {
        "format": "markdown",
    },
}


def deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base, returning a new dict."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(config_path: Path | None = None) -> dict:
    """Load preferences from a YAML file, falling back to defaults."""
    config_path = config_path or DEFAULT_CONFIG_PATH

    if config_path.exists():
        try:
            with open(config_path) as f:
                user_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Could not parse config {config_path}: {e}") from e
        if not isinstance(user_config, dict):
            raise ConfigError(f"Config {config_path} must be a mapping")
        return deep_merge(copy.deepcopy(DEFAULTS), user_config)

    return copy.deepcopy(DEFAULTS)


def apply_cli_overrides(config: dict, **overrides: object) -> dict:
    """Apply CLI argument overrides to config.

    Supports flat keys that map into nested config:
      breakfasts / lunches / dinners -> bundle.<key>
      snacks -> bundle.include_snacks
      repeats -> bundle.allow_repeats
      prefer_tags -> bundle.prefer_tags
      name -> bundle.name
      state -> paths.state_file
      recipes_dir -> paths.recipes_dir
      store -> paths.store_file
    """
    for key in ("breakfasts", "lunches", "dinners", "name", "prefer_tags"):
        if overrides.get(key) is not None:
            config["bundle"][key] = overrides[key]
    if overrides.get("snacks") is not None:
        config["bundle"]["include_snacks"] = overrides["snacks"]
    if overrides.get("repeats") is not None:
        config["bundle"]["allow_repeats"] = overrides["repeats"]
    if overrides.get("state") is not None:
        config["paths"]["state_file"] = str(overrides["state"])
    if overrides.get("recipes_dir") is not None:
        config["paths"]["recipes_dir"] = str(overrides["recipes_dir"])
    if overrides.get("store") is not None:
        config["paths"]["store_file"] = str(overrides["store"])

    return config
