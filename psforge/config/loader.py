# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Config loader: reads YAML from disk, merges command-line overrides, and
produces a validated, frozen PsforgeConfig.

The loading pipeline is linear:
  1. Read and parse the YAML file into a plain dict (if one was given)
  2. Deep-merge command-line overrides on top
  3. Fill in the module name and manifest path from the project directory
  4. Hand the dict to pydantic for schema validation

If anything goes wrong at any step, we fail immediately with a clear error.
A broken config should stop the build before it touches the output folder.
"""

from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from pydantic import ValidationError

from psforge.config.exceptions import ConfigLoadError, ConfigValidationError
from psforge.config.schema import PsforgeConfig


def _read_yaml_file(config_path: Path) -> dict[str, Any]:
    """
    Read a YAML file and return the parsed dict.

    An empty file is treated as an empty mapping.

    Raises:
        ConfigLoadError: If the file doesn't exist, isn't readable, or isn't valid YAML.
    """
    if not config_path.exists():
        raise ConfigLoadError(f"Config file not found: {config_path}")

    if not config_path.is_file():
        raise ConfigLoadError(f"Config path is not a file: {config_path}")

    try:
        raw_text = config_path.read_text(encoding="utf-8")
    except OSError as err:
        raise ConfigLoadError(f"Cannot read config file {config_path}: {err}") from err

    try:
        parsed = yaml.safe_load(raw_text)
    except yaml.YAMLError as err:
        raise ConfigLoadError(f"Invalid YAML in {config_path}: {err}") from err

    if parsed is None:
        return {}

    if not isinstance(parsed, dict):
        raise ConfigLoadError(
            f"Config file must contain a YAML mapping (dict), got {type(parsed).__name__}"
        )

    return parsed


def _deep_merge(base: dict[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    """Merge `overrides` into a copy of `base`; None values in overrides are ignored."""
    merged = dict(base)
    for key, value in overrides.items():
        if value is None:
            continue
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        elif isinstance(value, Mapping):
            merged[key] = _deep_merge({}, value)
        else:
            merged[key] = value
    return merged


def _apply_project_defaults(raw: dict[str, Any], project_root: Path) -> dict[str, Any]:
    build = dict(raw.get("build") or {})
    if not build.get("module_name"):
        build["module_name"] = project_root.name
    if not build.get("manifest_path"):
        build["manifest_path"] = f"{build['module_name']}.psd1"
    return {**raw, "build": build}


def _validate(raw: dict[str, Any], source: str) -> PsforgeConfig:
    try:
        return PsforgeConfig.model_validate(raw)
    except ValidationError as err:
        raise ConfigValidationError(f"Config validation failed for {source}:\n{err}") from err


def load_config(config_path: Path) -> PsforgeConfig:
    """
    Load and validate a config file into a PsforgeConfig object.

    Module name and manifest path are left as written; use `build_config`
    to get a config with project defaults filled in.

    Raises:
        ConfigLoadError: File I/O or YAML parse failures.
        ConfigValidationError: Schema violations (wrong types, unknown keys).
    """
    return _validate(_read_yaml_file(config_path), str(config_path))


def build_config(
    config_path: Optional[Path],
    overrides: Optional[Mapping[str, Any]] = None,
    project_root: Optional[Path] = None,
) -> PsforgeConfig:
    """
    Produce the effective config for a build run.

    Values from the command line win over values from the file; the module
    name falls back to the project directory name and the manifest path to
    `<module_name>.psd1`.

    Args:
        config_path: Optional YAML file.
        overrides: Nested mapping shaped like the config file, e.g.
            {"build": {"output_folder": "out"}}. None leaves are skipped.
        project_root: Directory the defaults are derived from (default: cwd).

    Raises:
        ConfigLoadError: File I/O or YAML parse failures.
        ConfigValidationError: Schema violations in the merged mapping.
    """
    raw: dict[str, Any] = {}
    if config_path is not None:
        raw = _read_yaml_file(config_path)
    if overrides:
        raw = _deep_merge(raw, overrides)
    raw = _apply_project_defaults(raw, (project_root or Path.cwd()).resolve())

    source = str(config_path) if config_path is not None else "command line"
    return _validate(raw, source)
