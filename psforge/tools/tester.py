# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Pester test runs against the built module.

The output folder is put at the front of PSModulePath and the built manifest
is imported with -Force, so tests always exercise the freshly assembled
module rather than whatever version is installed.

Two modes:
  inline    the Pester configuration is rendered as a hashtable literal in
            the -Command script
  isolated  the configuration is serialized to JSON and handed, base64
            encoded, to a fresh pwsh process. Used when the module ships .NET
            assemblies: their dependency resolution clashes with assemblies
            the build host has already loaded, so nothing from the build
            session may leak into the test process.
"""

import enum
import json
import logging
from pathlib import Path
from typing import Any, Sequence

from psforge.logging.logger import get_logger
from psforge.tools.process import ProcessResult
from psforge.tools.pwsh import PowerShell, quote, to_literal

_logger: logging.Logger = get_logger(__name__)


class PesterMode(enum.Enum):
    INLINE = "inline"
    ISOLATED = "isolated"


def pester_configuration(test_paths: Sequence[Path], result_file: Path) -> dict[str, Any]:
    return {
        "Run": {"Path": [str(p) for p in test_paths], "Exit": True, "Throw": True},
        "Output": {"Verbosity": "Detailed"},
        "TestResult": {
            "Enabled": True,
            "OutputFormat": "NUnitXml",
            "OutputPath": str(result_file),
        },
    }


def _prologue(module_root: Path, manifest: Path) -> str:
    return (
        f"$env:PSModulePath = {quote(str(module_root))} + "
        f"[IO.Path]::PathSeparator + $env:PSModulePath\n"
        "Import-Module Pester -MinimumVersion 5.0\n"
        f"Import-Module {quote(str(manifest))} -Force\n"
    )


def build_test_script(
    mode: PesterMode, module_root: Path, manifest: Path, configuration: dict[str, Any]
) -> str:
    if mode is PesterMode.ISOLATED:
        config_expr = (
            f"({quote(json.dumps(configuration))} | ConvertFrom-Json -AsHashtable)"
        )
    else:
        config_expr = to_literal(configuration)
    return (
        _prologue(module_root, manifest)
        + f"$configuration = New-PesterConfiguration -Hashtable {config_expr}\n"
        + "Invoke-Pester -Configuration $configuration\n"
    )


def run_tests(
    pwsh: PowerShell,
    module_root: Path,
    manifest: Path,
    test_paths: Sequence[Path],
    result_file: Path,
    mode: PesterMode = PesterMode.INLINE,
) -> ProcessResult:
    """
    Run Pester over `test_paths` with the built module imported.

    Pester is configured to exit non-zero on any failed test, which the
    runner turns into ExternalProcessFailure with the full test output.
    """
    configuration = pester_configuration(test_paths, result_file)
    script = build_test_script(mode, module_root, manifest, configuration)

    _logger.info(
        "Running tests",
        extra={"mode": mode.value, "paths": [str(p) for p in test_paths], "manifest": str(manifest)},
    )
    if mode is PesterMode.ISOLATED:
        result = pwsh.run_encoded(script)
    else:
        result = pwsh.run(script)

    _logger.info("Tests passed", extra={"result_file": str(result_file)})
    return result
