# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""In-process tests for argument handling and error-to-exit-code mapping."""

import argparse
from pathlib import Path
from typing import Optional

import pytest

from psforge.assembler.exceptions import AssemblyError
from psforge.cli.commands import _apply_release_labels, _config_overrides, exit_code_for
from psforge.cli.exit_codes import CONFIG_ERROR, RUNTIME_ERROR, USER_ERROR, VALIDATION_ERROR
from psforge.cli.main import build_parser, split_task_names
from psforge.config.exceptions import ConfigLoadError
from psforge.manifest.exceptions import InvalidVersionJump, MissingField
from psforge.pipeline.labels import ReleaseLabelError
from psforge.tasks.exceptions import CyclicDependency, UnknownTask
from psforge.tools.exceptions import (
    AlreadyReleased,
    AlreadyTagged,
    ConfirmationDeclined,
    ExternalProcessFailure,
    LintFailure,
    MissingCredential,
)


class TestArguments:
    def test_default_task(self) -> None:
        args = build_parser().parse_args([])
        assert split_task_names(args.tasks) == ["."]
        assert args.log_level is None
        assert args.ci is None

    def test_split_task_names(self) -> None:
        assert split_task_names(["Build,Test", "Package"]) == ["Build", "Test", "Package"]
        assert split_task_names(["Build,"]) == ["Build"]
        assert split_task_names([","]) == ["."]

    def test_list_options(self) -> None:
        args = build_parser().parse_args(["--script-folders", "Private", "Public", "--ci", "Build"])
        assert args.script_folders == ["Private", "Public"]
        assert args.ci is True
        assert args.tasks == ["Build"]

    def test_release_choices(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--release", "huge"])

    def test_namespace_shape(self) -> None:
        args = build_parser().parse_args(["--new-version", "1.3.0", "--release-labels", "[]"])
        assert isinstance(args, argparse.Namespace)
        assert args.new_version == "1.3.0"
        assert args.release_labels == "[]"


class TestReleaseLabels:
    @staticmethod
    def _release_kind(*argv: str) -> Optional[str]:
        args = build_parser().parse_args(list(argv))
        overrides = _config_overrides(args)
        _apply_release_labels(args, overrides)
        return overrides["release"]["release"]

    def test_label_overrides_release_flag(self) -> None:
        assert self._release_kind("--release", "patch", "--release-labels", '["release-major"]') == "major"

    def test_release_flag_used_without_label(self) -> None:
        assert self._release_kind("--release", "patch", "--release-labels", '["bug"]') == "patch"
        assert self._release_kind("--release", "minor") == "minor"

    def test_conflicting_labels_checked_with_release_flag(self) -> None:
        with pytest.raises(ReleaseLabelError):
            self._release_kind("--release", "patch", "--release-labels", '["release-minor", "release-major"]')

    def test_required_label(self) -> None:
        with pytest.raises(ReleaseLabelError, match="No release label found"):
            self._release_kind("--require-release-label", "--release-labels", '["bug"]')
        with pytest.raises(ReleaseLabelError, match="No release label found"):
            self._release_kind("--require-release-label")
        assert self._release_kind("--require-release-label", "--release-labels", '["release-minor"]') == "minor"


class TestExitCodes:
    @pytest.mark.parametrize(
        ("error", "code"),
        [
            (UnknownTask("X"), USER_ERROR),
            (ConfirmationDeclined(["Pester"]), USER_ERROR),
            (ReleaseLabelError("two labels"), USER_ERROR),
            (CyclicDependency(["A", "B", "A"]), CONFIG_ERROR),
            (ConfigLoadError("missing"), CONFIG_ERROR),
            (MissingField("ModuleVersion"), VALIDATION_ERROR),
            (InvalidVersionJump("1.2.3", "2.1.0", ["2.0.0"]), VALIDATION_ERROR),
            (LintFailure([]), VALIDATION_ERROR),
            (AssemblyError("unclosed", Path("x.psm1")), VALIDATION_ERROR),
            (ExternalProcessFailure("git", ["git"], 1, ""), RUNTIME_ERROR),
            (AlreadyTagged("v1", "a", "b"), RUNTIME_ERROR),
            (AlreadyReleased("v1"), RUNTIME_ERROR),
            (MissingCredential("no key"), RUNTIME_ERROR),
        ],
    )
    def test_mapping(self, error: Exception, code: int) -> None:
        assert exit_code_for(error) == code
