"""
YAML -> ProgramRules loader.

Loads rule overrides from fortyfive.yaml (bundled with the package) and
optionally merges user overrides from <data home>/fortyfive.yaml, where the
data home is $FORTYFIVE_HOME or ~/.fortyfive.

Usage:
    from fortyfive.core.engine.config_loader import load_program_rules
    rules = load_program_rules()

If the bundled YAML cannot be parsed, the Python defaults from config.py
apply (no crash).  If the user override file exists but has parse errors,
a warning is emitted and the file is ignored.
"""

from __future__ import annotations

import dataclasses
import importlib.resources
import os
import warnings
from pathlib import Path
from typing import Any

import yaml

from ..config import DEFAULT_RULES, ProgramRules

CONFIG_FILENAME = "fortyfive.yaml"

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path, *, warn: bool = False) -> dict[str, Any]:
    """Load a single YAML mapping; return {} on any error."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as e:
        if warn:
            warnings.warn(f"Ignoring {path}: {e}", stacklevel=3)
        return {}
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_data_home() -> Path:
    """Directory holding the user's data and overrides."""
    env = os.environ.get("FORTYFIVE_HOME")
    if env:
        return Path(env).expanduser()
    return Path.home() / ".fortyfive"


def get_bundled_yaml_path() -> Path | None:
    """Return the path to the bundled fortyfive.yaml, or None if not found."""
    ref = importlib.resources.files("fortyfive").joinpath(CONFIG_FILENAME)
    if ref.is_file():
        with importlib.resources.as_file(ref) as p:
            return p
    return None


def get_user_yaml_path(data_home: Path | None = None) -> Path | None:
    """Return <data home>/fortyfive.yaml if it exists, else None."""
    p = (data_home or get_data_home()) / CONFIG_FILENAME
    return p if p.exists() else None


def load_model_config(data_home: Path | None = None) -> dict[str, Any]:
    """
    Load and merge configuration from YAML sources.

    Load order (later overrides earlier):
    1. Bundled src/fortyfive/fortyfive.yaml
    2. User override at <data home>/fortyfive.yaml

    Returns:
        Merged dict of config sections.  Empty dict if no YAML available.
    """
    config: dict[str, Any] = {}

    bundled = get_bundled_yaml_path()
    if bundled is not None:
        config = _deep_merge(config, _load_yaml_file(bundled))

    user = get_user_yaml_path(data_home)
    if user is not None:
        user_cfg = _load_yaml_file(user, warn=True)
        if user_cfg:
            config = _deep_merge(config, user_cfg)

    return config


def rules_from_config(config: dict[str, Any]) -> ProgramRules:
    """
    Build ProgramRules from the ``rules`` section of a config dict.

    Unknown keys are ignored.  If the resulting rule set is invalid, a
    warning is emitted and the defaults are returned.
    """
    section = config.get("rules") or {}
    if not isinstance(section, dict):
        warnings.warn("'rules' section must be a mapping; using defaults", stacklevel=2)
        return DEFAULT_RULES

    known = {f.name for f in dataclasses.fields(ProgramRules)}
    values: dict[str, Any] = {k: v for k, v in section.items() if k in known}
    try:
        if "base_weights" in values:
            merged = dict(DEFAULT_RULES.base_weights)
            merged.update({k: (float(v[0]), float(v[1])) for k, v in values["base_weights"].items()})
            values["base_weights"] = merged
        if "rest_by_slot_type" in values:
            merged_rest = dict(DEFAULT_RULES.rest_by_slot_type)
            merged_rest.update({k: int(v) for k, v in values["rest_by_slot_type"].items()})
            values["rest_by_slot_type"] = merged_rest
        return ProgramRules(**values)
    except (AttributeError, TypeError, ValueError, IndexError) as e:
        warnings.warn(f"Invalid program rules ({e}); using defaults", stacklevel=2)
        return DEFAULT_RULES


def load_program_rules(data_home: Path | None = None) -> ProgramRules:
    """Load bundled + user YAML and build the rule set."""
    return rules_from_config(load_model_config(data_home))
