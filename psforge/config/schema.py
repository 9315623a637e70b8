# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Type-safe configuration schemas for psforge.

Each config section gets its own frozen pydantic model. Frozen means once you
create it, you cannot mutate it. State that changes during a run (the version
being released, the build directory) lives on the BuildContext instead.

The models use pydantic v2's ConfigDict with:
  - frozen=True: immutability after construction
  - extra="forbid": unknown fields cause immediate failure
  - validate_default=True: even defaults get type-checked

Every field has a default, so a project with the conventional layout builds
without any config file at all:

    MyModule/
    ├─ MyModule.psd1
    ├─ MyModule.psm1
    ├─ Classes/ Private/ Public/
    └─ Tests/
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from psforge.utils.paths import is_absolute_pattern

ReleaseKind = Literal["major", "minor", "patch"]

_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class GlobalConfig(BaseModel):
    """Cross-cutting settings: schema version and observability."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(
        default="1.0.0",
        description="Schema version for compatibility tracking",
    )
    log_level: str = Field(
        default="INFO",
        description="One of DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Optional path for file-based log output, relative to project root",
    )

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        upper = value.upper()
        if upper not in _VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_VALID_LOG_LEVELS)}")
        return upper


class BuildConfig(BaseModel):
    """
    Where the module sources live and where build output goes.

    The manifest path, dotnet projects, test paths and the output folder are
    relative to the project root. Script folders, include globs and the
    export folder are relative to the directory holding the manifest.
    `module_name` and `manifest_path` are filled in by the loader when left
    empty.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    module_name: Optional[str] = Field(
        default=None,
        min_length=1,
        description="Module name; defaults to the project directory name",
    )
    manifest_path: Optional[str] = Field(
        default=None,
        description="Source manifest (.psd1); defaults to <module_name>.psd1",
    )
    include: list[str] = Field(
        default_factory=lambda: ["*.ps1xml", "LICENSE*", "README*"],
        description="Globs of extra files copied verbatim into the build directory",
    )
    script_folders: list[str] = Field(
        default_factory=lambda: ["Classes", "Private", "Public"],
        description="Fragment directories, assembled in this order",
    )
    export_folder: Optional[str] = Field(
        default="Public",
        description="Script folder whose fragment names become FunctionsToExport",
    )
    dotnet_projects: list[str] = Field(
        default_factory=list,
        description="Directories of .NET projects published into <build>/bin",
    )
    test_path: list[str] = Field(
        default_factory=lambda: ["Tests"],
        description="Pester test files or directories",
    )
    output_folder: str = Field(
        default="Build",
        min_length=1,
        description="Root of all build output; removed by Clean",
    )
    inline_region: str = Field(
        default="inline",
        min_length=1,
        description="Label of the #region pair in the root module replaced by fragments",
    )

    @field_validator("include")
    @classmethod
    def _check_include(cls, patterns: list[str]) -> list[str]:
        for pattern in patterns:
            if not pattern:
                raise ValueError("include patterns must not be empty")
            if is_absolute_pattern(pattern):
                raise ValueError(f"include pattern '{pattern}' must be relative to the manifest directory")
        return patterns


class ReleaseConfig(BaseModel):
    """Version bump inputs and publishing targets."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    new_version: Optional[str] = Field(
        default=None,
        pattern=r"^\d+\.\d+\.\d+$",
        description="Explicit next version; must be a single-step increment",
    )
    release: Optional[ReleaseKind] = Field(
        default=None,
        description="Bump kind applied by UpdateVersion",
    )
    remote: str = Field(default="origin", description="Git remote to fetch from and push to")
    branch: str = Field(default="main", description="Branch fetched before a version bump")
    psgallery_api_key: Optional[str] = Field(
        default=None,
        description="Registry API key; prefer the environment variable or secret store",
    )
    api_key_env: str = Field(
        default="PSGALLERY_API_KEY",
        description="Environment variable consulted when no key is configured",
    )
    api_key_secret: str = Field(
        default="PSGalleryApiKey",
        description="SecretManagement secret name used as the last fallback",
    )
    repository: str = Field(default="PSGallery", description="Registry to publish to")


class ToolsConfig(BaseModel):
    """External executables and the build-tool modules that --bootstrap installs."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    ci: bool = Field(
        default=False,
        description="Non-interactive mode: install dependencies without prompting",
    )
    pwsh: str = Field(default="pwsh")
    git: str = Field(default="git")
    gh: str = Field(default="gh")
    dotnet: str = Field(default="dotnet")
    dependencies: dict[str, str] = Field(
        default_factory=lambda: {
            "Pester": "5.5.0",
            "PSScriptAnalyzer": "1.22.0",
            "Microsoft.PowerShell.SecretManagement": "1.1.2",
        },
        description="PowerShell module name -> minimum version",
    )


class PsforgeConfig(BaseModel):
    """
    Top-level config container.

    A YAML file may contain any subset of the sections; missing sections take
    their defaults.
    """

    model_config = ConfigDict(
        frozen=True, extra="forbid", validate_default=True, populate_by_name=True
    )

    global_config: GlobalConfig = Field(default_factory=GlobalConfig, alias="global")
    build: BuildConfig = Field(default_factory=BuildConfig)
    release: ReleaseConfig = Field(default_factory=ReleaseConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
