# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""Tests for project-root discovery, path containment and glob expansion."""

from pathlib import Path

import pytest

from psforge.utils.paths import expand_globs, resolve_project_root, validate_path_within_project


class TestResolveProjectRoot:
    def test_finds_config_marker_above(self, tmp_path: Path) -> None:
        (tmp_path / "build.yaml").write_text("", encoding="utf-8")
        nested = tmp_path / "Public" / "Sub"
        nested.mkdir(parents=True)
        assert resolve_project_root(nested) == tmp_path.resolve()

    def test_finds_git_checkout(self, tmp_path: Path) -> None:
        (tmp_path / ".git").mkdir()
        (tmp_path / "src").mkdir()
        assert resolve_project_root(tmp_path / "src") == tmp_path.resolve()


class TestValidatePathWithinProject:
    def test_accepts_child(self, tmp_path: Path) -> None:
        assert validate_path_within_project(tmp_path / "Build", tmp_path) == (tmp_path / "Build").resolve()

    def test_rejects_escape(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="outside"):
            validate_path_within_project(tmp_path / ".." / "elsewhere", tmp_path)

    def test_rejects_root_itself(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError):
            validate_path_within_project(tmp_path / ".", tmp_path)


class TestExpandGlobs:
    def test_sorted_unique_files(self, tmp_path: Path) -> None:
        for name in ["README.md", "LICENSE", "Types.ps1xml", "Other.txt"]:
            (tmp_path / name).write_text("", encoding="utf-8")

        found = expand_globs(tmp_path, ["*.ps1xml", "LICENSE*", "README*", "LICENSE"])
        assert [p.name for p in found] == ["LICENSE", "README.md", "Types.ps1xml"]

    def test_directories_expand_to_their_files(self, tmp_path: Path) -> None:
        (tmp_path / "en-US").mkdir()
        (tmp_path / "en-US" / "about_Sample.help.txt").write_text("", encoding="utf-8")

        found = expand_globs(tmp_path, ["en-US"])
        assert found == [tmp_path / "en-US" / "about_Sample.help.txt"]

    @pytest.mark.parametrize("pattern", ["/etc/*", "C:\\Temp\\*"])
    def test_absolute_pattern_rejected(self, tmp_path: Path, pattern: str) -> None:
        with pytest.raises(ValueError, match="relative"):
            expand_globs(tmp_path, [pattern])
