# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Shared pytest fixtures for psforge tests.

Fixtures here are available to every test file automatically.
The central one is `module_project`: a small but complete PowerShell module
source tree (manifest, root module with an inline region, Classes/Private/
Public fragments, a Pester test folder) laid out in a temp directory.

`FakeRunner` stands in for the process runner so that tasks which shell out
to pwsh, git, gh or dotnet can run without any of them installed.
"""

import textwrap
from pathlib import Path
from typing import Callable, Mapping, Optional, Sequence

import pytest

from psforge.config.loader import build_config
from psforge.tasks.context import BuildContext
from psforge.tools.exceptions import ExternalProcessFailure
from psforge.tools.process import ProcessResult, ProcessRunner

Responder = Callable[[list[str]], Optional[ProcessResult]]


class FakeRunner(ProcessRunner):
    """
    Records every command instead of running it.

    `responses` maps a prefix of argv (joined with spaces) to a result; the
    longest matching prefix wins and anything unmatched succeeds with no
    output. Non-ok exit codes raise like the real runner does.
    """

    def __init__(self, responses: Optional[Mapping[str, ProcessResult]] = None) -> None:
        self.calls: list[list[str]] = []
        self.envs: list[Optional[Mapping[str, str]]] = []
        self.responses = dict(responses or {})
        self.hooks: list[Responder] = []

    def run(
        self,
        argv: Sequence[str],
        cwd: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
        ok_codes: Sequence[int] = (0,),
    ) -> ProcessResult:
        command = list(argv)
        self.calls.append(command)
        self.envs.append(env)

        result = ProcessResult(0, "")
        joined = " ".join(command)
        matches = [prefix for prefix in self.responses if joined.startswith(prefix)]
        if matches:
            result = self.responses[max(matches, key=len)]
        for hook in self.hooks:
            result = hook(command) or result

        if result.returncode not in ok_codes:
            raise ExternalProcessFailure(Path(command[0]).name, command, result.returncode, result.output)
        return result

    def commands(self, executable: str) -> list[list[str]]:
        return [call for call in self.calls if call[0] == executable]


@pytest.fixture()
def fake_runner() -> FakeRunner:
    return FakeRunner()


def write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(content), encoding="utf-8")
    return path


MANIFEST_TEXT = """\
@{
    # Module manifest for module 'Sample'
    RootModule        = 'Sample.psm1'
    ModuleVersion     = '1.2.3'
    GUID              = '8f3c2a4e-5d1b-4c6a-9e7f-0a1b2c3d4e5f'
    Author            = 'Sample Author'
    FunctionsToExport = @()
    PrivateData       = @{
        PSData = @{
            Tags = @('sample', 'build')
        }
    }
}
"""

ROOT_MODULE_TEXT = """\
Set-StrictMode -Version Latest

#region inline
foreach ($folder in 'Classes', 'Private', 'Public') {
    Get-ChildItem "$PSScriptRoot/$folder/*.ps1" | ForEach-Object { . $_.FullName }
}
#endregion inline

Export-ModuleMember -Function (Get-ChildItem "$PSScriptRoot/Public/*.ps1").BaseName
"""


@pytest.fixture()
def module_project(tmp_path: Path) -> Path:
    """A buildable module named after its directory: <tmp>/Sample."""
    root = tmp_path / "Sample"
    write(root / "Sample.psd1", MANIFEST_TEXT)
    write(root / "Sample.psm1", ROOT_MODULE_TEXT)
    write(
        root / "Classes" / "Widget.ps1",
        """\
        using namespace System.Collections.Generic

        class Widget {
            [string] $Name
        }
        """,
    )
    write(
        root / "Private" / "Get-WidgetSecret.ps1",
        """\
        #requires -Version 7.2
        function Get-WidgetSecret {
            'secret'
        }
        """,
    )
    write(
        root / "Public" / "Get-Widget.ps1",
        """\
        #requires -Version 7.2
        using namespace System.Collections.Generic
        [Diagnostics.CodeAnalysis.SuppressMessageAttribute('PSUseSingularNouns', '')]
        param()

        function Get-Widget {
            [Widget]::new()
        }
        """,
    )
    write(
        root / "Public" / "New-Widget.ps1",
        """\
        function New-Widget {
            param([string] $Name)
            [Widget]@{ Name = $Name }
        }
        """,
    )
    write(root / "README.md", "# Sample\n")
    write(
        root / "Tests" / "Sample.Tests.ps1",
        """\
        Describe 'Get-Widget' {
            It 'returns a widget' { Get-Widget | Should -Not -BeNullOrEmpty }
        }
        """,
    )
    return root


@pytest.fixture()
def build_context(module_project: Path, fake_runner: FakeRunner) -> BuildContext:
    config = build_config(None, project_root=module_project)
    return BuildContext(config=config, project_root=module_project, runner=fake_runner)


@pytest.fixture()
def tmp_config_file(tmp_path: Path) -> Path:
    """
    A small valid build.yaml.

    Tests that need specific config values should write their own files.
    """
    config_content = textwrap.dedent("""\
        global:
          config_version: "1.0.0"
          log_level: "DEBUG"
        build:
          module_name: "Sample"
          output_folder: "out"
        release:
          release: "minor"
    """)
    config_file = tmp_path / "build.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def invalid_config_file(tmp_path: Path) -> Path:
    """Valid YAML, but fails schema validation (unknown key)."""
    config_content = textwrap.dedent("""\
        build:
          module_name: "Sample"
          script_folder: "Public"
    """)
    config_file = tmp_path / "invalid.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def broken_yaml_file(tmp_path: Path) -> Path:
    """A file that isn't valid YAML at all."""
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("{{not: yaml: at: all:::", encoding="utf-8")
    return config_file
