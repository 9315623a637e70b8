# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the config loader.

We test:
  1. Valid YAML loads into a frozen, correct config object
  2. Unknown fields raise ConfigValidationError (extra="forbid")
  3. Broken YAML and missing files raise ConfigLoadError
  4. Command-line overrides win over the file, None overrides are ignored
  5. Module name and manifest path default from the project directory
"""

import textwrap
from pathlib import Path

import pytest

from psforge.config.exceptions import ConfigLoadError, ConfigValidationError
from psforge.config.loader import build_config, load_config


class TestLoadValidConfig:
    def test_loads_config_file(self, tmp_config_file: Path) -> None:
        config = load_config(tmp_config_file)
        assert config.global_config.log_level == "DEBUG"
        assert config.build.module_name == "Sample"
        assert config.build.output_folder == "out"
        assert config.release.release == "minor"

    def test_sections_default_when_absent(self, tmp_config_file: Path) -> None:
        config = load_config(tmp_config_file)
        assert config.build.script_folders == ["Classes", "Private", "Public"]
        assert config.tools.pwsh == "pwsh"
        assert config.tools.ci is False
        assert config.release.remote == "origin"

    def test_empty_file_is_all_defaults(self, tmp_path: Path) -> None:
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("", encoding="utf-8")

        config = load_config(config_file)
        assert config.build.module_name is None
        assert config.global_config.log_level == "INFO"

    def test_log_level_is_normalized(self, tmp_path: Path) -> None:
        config_file = tmp_path / "lower.yaml"
        config_file.write_text("global:\n  log_level: debug\n", encoding="utf-8")
        assert load_config(config_file).global_config.log_level == "DEBUG"


class TestLoadInvalidConfig:
    def test_unknown_field_raises_validation_error(self, invalid_config_file: Path) -> None:
        with pytest.raises(ConfigValidationError, match="script_folder"):
            load_config(invalid_config_file)

    def test_bad_release_kind(self, tmp_path: Path) -> None:
        config_file = tmp_path / "bad.yaml"
        config_file.write_text("release:\n  release: huge\n", encoding="utf-8")
        with pytest.raises(ConfigValidationError):
            load_config(config_file)

    def test_bad_new_version(self, tmp_path: Path) -> None:
        config_file = tmp_path / "bad.yaml"
        config_file.write_text("release:\n  new_version: '1.2'\n", encoding="utf-8")
        with pytest.raises(ConfigValidationError):
            load_config(config_file)

    def test_broken_yaml_raises_load_error(self, broken_yaml_file: Path) -> None:
        with pytest.raises(ConfigLoadError):
            load_config(broken_yaml_file)

    def test_missing_file_raises_load_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigLoadError, match="not found"):
            load_config(tmp_path / "nope.yaml")

    def test_directory_raises_load_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigLoadError, match="not a file"):
            load_config(tmp_path)

    def test_non_mapping_top_level(self, tmp_path: Path) -> None:
        config_file = tmp_path / "list.yaml"
        config_file.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigLoadError):
            load_config(config_file)


class TestBuildConfig:
    def test_defaults_from_project_directory(self, tmp_path: Path) -> None:
        project = tmp_path / "MyModule"
        project.mkdir()

        config = build_config(None, project_root=project)
        assert config.build.module_name == "MyModule"
        assert config.build.manifest_path == "MyModule.psd1"

    def test_manifest_path_follows_module_name(self, tmp_path: Path) -> None:
        config = build_config(None, {"build": {"module_name": "Other"}}, project_root=tmp_path)
        assert config.build.manifest_path == "Other.psd1"

    def test_overrides_win_over_file(self, tmp_config_file: Path) -> None:
        overrides = {
            "build": {"output_folder": "dist", "script_folders": ["Public"]},
            "release": {"release": None, "new_version": "1.3.0"},
            "tools": {"ci": True},
        }
        config = build_config(tmp_config_file, overrides, project_root=tmp_config_file.parent)

        assert config.build.output_folder == "dist"
        assert config.build.script_folders == ["Public"]
        assert config.build.module_name == "Sample"
        assert config.release.release == "minor"
        assert config.release.new_version == "1.3.0"
        assert config.tools.ci is True

    def test_invalid_override_names_the_source(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigValidationError, match="command line"):
            build_config(None, {"global": {"log_level": "LOUD"}}, project_root=tmp_path)

    def test_absolute_include_override_is_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigValidationError, match="relative"):
            build_config(None, {"build": {"include": ["/etc/*"]}}, project_root=tmp_path)

    def test_file_keys_outside_overrides_survive(self, tmp_path: Path) -> None:
        config_file = tmp_path / "build.yaml"
        config_file.write_text(
            textwrap.dedent("""\
                build:
                  include: ["*.psd1"]
                tools:
                  dependencies:
                    Pester: "5.6.0"
            """),
            encoding="utf-8",
        )
        config = build_config(config_file, {"build": {"output_folder": "o"}}, project_root=tmp_path)

        assert config.build.include == ["*.psd1"]
        assert config.tools.dependencies == {"Pester": "5.6.0"}
