# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""Configuration errors. The CLI maps the whole family to CONFIG_ERROR."""

from psforge.exceptions import PsforgeError


class ConfigError(PsforgeError):
    """Base for all configuration errors."""


class ConfigLoadError(ConfigError):
    """build.yaml is missing, unreadable, not YAML, or not a mapping."""


class ConfigValidationError(ConfigError):
    """
    The merged config (file plus command-line overrides) doesn't fit the
    schema: unknown keys, wrong types, a malformed --new-version.
    """
