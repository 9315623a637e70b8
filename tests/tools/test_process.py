# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the process runner, git client and gh release client.

The runner itself is exercised with the Python interpreter as the external
tool; git and gh are driven through FakeRunner and checked by the argv they
produce.
"""

import sys
from pathlib import Path

import pytest

from conftest import FakeRunner
from psforge.tools.exceptions import ExternalProcessFailure
from psforge.tools.git import GitClient
from psforge.tools.github import ReleaseClient
from psforge.tools.process import ProcessResult, ProcessRunner


class TestProcessRunner:
    def test_captures_stdout_and_stderr_together(self) -> None:
        result = ProcessRunner().run(
            [sys.executable, "-c", "import sys; print('out'); sys.stderr.write('err\\n')"]
        )
        assert result.returncode == 0
        assert "out" in result.output
        assert "err" in result.output

    def test_unexpected_exit_code_raises_with_output(self) -> None:
        with pytest.raises(ExternalProcessFailure) as excinfo:
            ProcessRunner().run([sys.executable, "-c", "print('bad things'); raise SystemExit(3)"])

        assert excinfo.value.returncode == 3
        assert "bad things" in excinfo.value.output
        assert "exit code 3" in str(excinfo.value)

    def test_widened_ok_codes(self) -> None:
        result = ProcessRunner().run([sys.executable, "-c", "raise SystemExit(1)"], ok_codes=(0, 1))
        assert result.returncode == 1

    def test_env_is_layered_over_os_environ(self) -> None:
        result = ProcessRunner().run(
            [sys.executable, "-c", "import os; print(os.environ['PSFORGE_TEST_VALUE'], 'PATH' in os.environ)"],
            env={"PSFORGE_TEST_VALUE": "layered"},
        )
        assert result.output.split() == ["layered", "True"]

    def test_missing_executable(self, tmp_path: Path) -> None:
        with pytest.raises(ExternalProcessFailure) as excinfo:
            ProcessRunner().run([str(tmp_path / "no-such-tool")])
        assert excinfo.value.returncode == -1
        assert excinfo.value.tool == "no-such-tool"


class TestGitClient:
    def test_diff_uses_exit_code_as_answer(self, tmp_path: Path) -> None:
        runner = FakeRunner({"git diff": ProcessResult(1, "")})
        assert GitClient(runner, tmp_path).diff(tmp_path / "M.psd1") is True
        assert runner.calls[0] == ["git", "diff", "HEAD", "--quiet", "--", str(tmp_path / "M.psd1")]

        clean = FakeRunner({"git diff": ProcessResult(0, "")})
        assert GitClient(clean, tmp_path).diff(tmp_path / "M.psd1") is False

    def test_commit_adds_then_commits_only_given_paths(self, tmp_path: Path) -> None:
        runner = FakeRunner()
        GitClient(runner, tmp_path).commit([Path("M.psd1")], "Release v1.3.0")
        assert runner.calls == [
            ["git", "add", "--", "M.psd1"],
            ["git", "commit", "--message", "Release v1.3.0", "--", "M.psd1"],
        ]

    def test_tag_exists_matches_exact_name(self, tmp_path: Path) -> None:
        runner = FakeRunner({"git tag --list v1.0.0": ProcessResult(0, "v1.0.0\n")})
        git = GitClient(runner, tmp_path)
        assert git.tag_exists("v1.0.0") is True
        assert git.tag_exists("v2.0.0") is False

    def test_rev_parse_strips_output(self, tmp_path: Path) -> None:
        runner = FakeRunner({"git rev-parse": ProcessResult(0, "abc123\n")})
        assert GitClient(runner, tmp_path).rev_parse("HEAD") == "abc123"
        assert runner.calls[0] == ["git", "rev-parse", "--verify", "HEAD^{commit}"]

    def test_fetch_tag_and_push(self, tmp_path: Path) -> None:
        runner = FakeRunner()
        git = GitClient(runner, tmp_path, executable="/usr/bin/git")
        git.fetch("origin", "main")
        git.tag("v1.0.0", "Release v1.0.0")
        git.push("origin", "v1.0.0")
        git.push("origin")
        assert runner.calls == [
            ["/usr/bin/git", "fetch", "--tags", "origin", "main"],
            ["/usr/bin/git", "tag", "--annotate", "v1.0.0", "--message", "Release v1.0.0"],
            ["/usr/bin/git", "push", "origin", "v1.0.0"],
            ["/usr/bin/git", "push", "origin"],
        ]

    def test_failure_carries_git_output(self, tmp_path: Path) -> None:
        runner = FakeRunner({"git push": ProcessResult(128, "fatal: remote rejected")})
        with pytest.raises(ExternalProcessFailure) as excinfo:
            GitClient(runner, tmp_path).push("origin", "HEAD")
        assert excinfo.value.output == "fatal: remote rejected"


class TestReleaseClient:
    def test_release_exists(self, tmp_path: Path) -> None:
        found = FakeRunner({"gh release view": ProcessResult(0, "title: v1.0.0")})
        missing = FakeRunner({"gh release view": ProcessResult(1, "release not found")})
        assert ReleaseClient(found, tmp_path).release_exists("v1.0.0") is True
        assert ReleaseClient(missing, tmp_path).release_exists("v1.0.0") is False

    def test_create_release_attaches_assets(self, tmp_path: Path) -> None:
        runner = FakeRunner()
        assets = [tmp_path / "M.1.0.0.zip", tmp_path / "M.1.0.0.nupkg"]
        ReleaseClient(runner, tmp_path).create_release("v1.0.0", assets)
        assert runner.calls[0] == [
            "gh", "release", "create", "v1.0.0", str(assets[0]), str(assets[1]),
            "--title", "v1.0.0", "--generate-notes", "--verify-tag",
        ]
