# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
PSScriptAnalyzer invocation.

The analyzer runs in a pwsh process and its results come back as one line of
compressed JSON. Anything at Warning severity or above fails the build;
Information findings are logged and let through.
"""

import json
import logging
from pathlib import Path
from typing import Any, NamedTuple, Optional, Sequence

from psforge.logging.logger import get_logger
from psforge.tools.exceptions import LintFailure
from psforge.tools.pwsh import PowerShell, to_literal

_logger: logging.Logger = get_logger(__name__)

SEVERITIES = ("Information", "Warning", "Error", "ParseError")
FAILING_SEVERITY = SEVERITIES.index("Warning")


class LintFinding(NamedTuple):
    rule: str
    severity: str
    script: str
    line: Optional[int]
    message: str

    @property
    def level(self) -> int:
        return SEVERITIES.index(self.severity) if self.severity in SEVERITIES else len(SEVERITIES)


def _severity_name(raw: Any) -> str:
    if isinstance(raw, int) and 0 <= raw < len(SEVERITIES):
        return SEVERITIES[raw]
    return str(raw)


def parse_findings(output: str) -> list[LintFinding]:
    """Parse the JSON line the analyzer script prints (the last non-empty line)."""
    lines = [line for line in output.splitlines() if line.strip()]
    if not lines:
        return []
    data = json.loads(lines[-1])
    if isinstance(data, dict):
        data = [data]
    return [
        LintFinding(
            rule=str(item.get("RuleName", "")),
            severity=_severity_name(item.get("Severity")),
            script=str(item.get("ScriptName") or item.get("ScriptPath") or ""),
            line=item.get("Line"),
            message=str(item.get("Message", "")).strip(),
        )
        for item in data
    ]


def _analyzer_script(paths: Sequence[Path], settings: Optional[Path]) -> str:
    settings_arg = f" -Settings {to_literal(settings)}" if settings is not None else ""
    return (
        "Import-Module PSScriptAnalyzer\n"
        f"$results = @(foreach ($p in {to_literal([str(p) for p in paths])}) "
        f"{{ Invoke-ScriptAnalyzer -Path $p -Recurse{settings_arg} }})\n"
        "ConvertTo-Json -Compress -Depth 3 -InputObject @($results | "
        "Select-Object RuleName, Severity, ScriptName, Line, Message)"
    )


def run_lint(pwsh: PowerShell, paths: Sequence[Path], settings: Optional[Path] = None) -> list[LintFinding]:
    """
    Lint `paths` and fail on anything at warning severity or above.

    Returns:
        All findings, when none of them is severe enough to fail.

    Raises:
        LintFailure: One or more findings at Warning, Error or ParseError.
        ExternalProcessFailure: The analyzer itself could not run.
    """
    existing = [p for p in paths if p.exists()]
    if not existing:
        _logger.info("Nothing to lint")
        return []

    result = pwsh.run(_analyzer_script(existing, settings))
    findings = parse_findings(result.output)

    for finding in findings:
        _logger.log(
            logging.WARNING if finding.level >= FAILING_SEVERITY else logging.INFO,
            "Lint finding",
            extra={
                "rule": finding.rule,
                "severity": finding.severity,
                "script": finding.script,
                "line": finding.line,
                "detail": finding.message,
            },
        )

    failing = [f for f in findings if f.level >= FAILING_SEVERITY]
    if failing:
        raise LintFailure(failing)

    _logger.info("Lint passed", extra={"paths": len(existing), "findings": len(findings)})
    return findings
