# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for module assembly.

We check the output layout (requirements, imports, header, regions, footer),
de-duplication of metadata, deterministic ordering, and the handling of
missing folders and inline markers.
"""

from pathlib import Path

import pytest

from psforge.assembler.core import (
    assemble,
    enumerate_fragments,
    split_root_descriptor,
    write_assembled_module,
)
from psforge.assembler.exceptions import AssemblyError


def _folders(root: Path) -> list[Path]:
    return [root / "Classes", root / "Private", root / "Public"]


class TestAssemble:
    def test_layout_of_the_assembled_module(self, module_project: Path) -> None:
        module = assemble(module_project / "Sample.psm1", _folders(module_project), module_project)

        expected = "\n\n".join(
            [
                "#requires -Version 7.2",
                "using namespace System.Collections.Generic",
                "Set-StrictMode -Version Latest",
                "#region Classes\nclass Widget {\n    [string] $Name\n}\n#endregion Classes",
                "#region Private\nfunction Get-WidgetSecret {\n    'secret'\n}\n#endregion Private",
                "#region Public\n"
                "function Get-Widget {\n    [Widget]::new()\n}\n\n"
                "function New-Widget {\n    param([string] $Name)\n    [Widget]@{ Name = $Name }\n}\n"
                "#endregion Public",
                'Export-ModuleMember -Function (Get-ChildItem "$PSScriptRoot/Public/*.ps1").BaseName',
            ]
        )
        assert module.text == expected

    def test_metadata_is_deduplicated(self, module_project: Path) -> None:
        module = assemble(module_project / "Sample.psm1", _folders(module_project), module_project)

        assert module.requirements == ("#requires -Version 7.2",)
        assert module.imports == ("using namespace System.Collections.Generic",)
        assert module.text.count("#requires -Version 7.2") == 1
        assert module.text.count("using namespace System.Collections.Generic") == 1

    def test_inline_region_is_replaced(self, module_project: Path) -> None:
        module = assemble(module_project / "Sample.psm1", _folders(module_project), module_project)
        assert "#region inline" not in module.text
        assert "Get-ChildItem \"$PSScriptRoot/$folder/*.ps1\"" not in module.text

    def test_same_sources_give_same_text(self, module_project: Path) -> None:
        first = assemble(module_project / "Sample.psm1", _folders(module_project), module_project)
        second = assemble(module_project / "Sample.psm1", _folders(module_project), module_project)
        assert first.text == second.text

    def test_missing_folder_contributes_nothing(self, module_project: Path) -> None:
        folders = [module_project / "Classes", module_project / "Nowhere"]
        module = assemble(module_project / "Sample.psm1", folders, module_project)

        assert [region.label for region in module.regions] == ["Classes"]
        assert "Nowhere" not in module.text
        assert module.fragment_count == 1

    def test_folder_order_is_output_order(self, module_project: Path) -> None:
        folders = [module_project / "Public", module_project / "Classes"]
        module = assemble(module_project / "Sample.psm1", folders, module_project)
        assert module.text.index("#region Public") < module.text.index("#region Classes")

    def test_root_without_fragments(self, tmp_path: Path) -> None:
        root = tmp_path / "Empty.psm1"
        root.write_text("#region inline\n#endregion inline\n", encoding="utf-8")

        module = assemble(root, [tmp_path / "Public"])
        assert module.text == ""

    def test_folder_of_metadata_only_fragments_has_no_region(self, tmp_path: Path) -> None:
        (tmp_path / "Shared").mkdir()
        (tmp_path / "Shared" / "requires.ps1").write_text("#requires -Version 7.2\n", encoding="utf-8")
        (tmp_path / "Shared" / "blank.ps1").write_text("\n\n", encoding="utf-8")
        (tmp_path / "Public").mkdir()
        (tmp_path / "Public" / "a.ps1").write_text("'a'\n", encoding="utf-8")
        root = tmp_path / "Mod.psm1"
        root.write_text("", encoding="utf-8")

        module = assemble(root, [tmp_path / "Shared", tmp_path / "Public"], tmp_path)

        assert module.text == "#requires -Version 7.2\n\n#region Public\n'a'\n#endregion Public"
        assert "#region Shared" not in module.text

    def test_nested_fragments_are_labelled_by_folder(self, tmp_path: Path) -> None:
        (tmp_path / "Public" / "Sub").mkdir(parents=True)
        (tmp_path / "Public" / "Sub" / "b.ps1").write_text("'b'\n", encoding="utf-8")
        (tmp_path / "Public" / "a.PS1").write_text("'a'\n", encoding="utf-8")
        root = tmp_path / "Mod.psm1"
        root.write_text("", encoding="utf-8")

        module = assemble(root, [tmp_path / "Public"], tmp_path)
        assert module.text == "#region Public\n'a'\n\n'b'\n#endregion Public"

    def test_write_adds_trailing_newline(self, module_project: Path, tmp_path: Path) -> None:
        module = assemble(module_project / "Sample.psm1", _folders(module_project), module_project)
        target = write_assembled_module(module, tmp_path / "out" / "Sample.psm1")
        assert target.read_text(encoding="utf-8") == module.text + "\n"


class TestSplitRootDescriptor:
    def test_header_and_footer(self) -> None:
        text = "head\n#region inline\n. ./x.ps1\n#endregion inline\nfoot\n"
        assert split_root_descriptor(text) == ("head", "foot")

    def test_markers_are_case_insensitive(self) -> None:
        text = "head\n#REGION Inline\n#EndRegion INLINE\nfoot"
        assert split_root_descriptor(text) == ("head", "foot")

    def test_custom_label(self) -> None:
        text = "a\n#region dev\nx\n#endregion dev\nb"
        assert split_root_descriptor(text, "dev") == ("a", "b")

    def test_no_region_means_all_header(self) -> None:
        assert split_root_descriptor("\nSet-StrictMode -Version Latest\n") == (
            "Set-StrictMode -Version Latest",
            "",
        )

    def test_unclosed_region_is_an_error(self) -> None:
        with pytest.raises(AssemblyError, match="no matching"):
            split_root_descriptor("#region inline\n. ./x.ps1\n")

    def test_other_regions_are_left_alone(self) -> None:
        text = "#region helpers\nh\n#endregion helpers\n#region inline\n#endregion inline"
        header, footer = split_root_descriptor(text)
        assert header == "#region helpers\nh\n#endregion helpers"
        assert footer == ""


class TestEnumerateFragments:
    def test_sorted_case_insensitively(self, tmp_path: Path) -> None:
        for name in ["b.ps1", "A.ps1", "c.txt", "C.Ps1"]:
            (tmp_path / name).write_text("", encoding="utf-8")
        assert [p.name for p in enumerate_fragments(tmp_path)] == ["A.ps1", "b.ps1", "C.Ps1"]

    def test_missing_directory(self, tmp_path: Path) -> None:
        assert enumerate_fragments(tmp_path / "missing") == []
