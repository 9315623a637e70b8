# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Build-tool dependency installation (`psforge --bootstrap`).

The build needs a few PowerShell modules (Pester, PSScriptAnalyzer, ...).
Bootstrap checks which are missing or too old, asks before installing unless
running in CI, and installs them for the current user. On CI the per-user
module directory is what gets cached between runs.
"""

import json
import logging
from typing import Callable, Mapping, NamedTuple

from psforge.logging.logger import get_logger
from psforge.runtime.environment import user_module_path
from psforge.tools.exceptions import ConfirmationDeclined
from psforge.tools.pwsh import PowerShell, quote, to_literal

_logger: logging.Logger = get_logger(__name__)


class Requirement(NamedTuple):
    name: str
    minimum_version: str


def version_key(text: str) -> tuple[int, ...]:
    parts = []
    for part in text.split("."):
        digits = "".join(ch for ch in part if ch.isdigit())
        parts.append(int(digits) if digits else 0)
    return tuple(parts)


def installed_versions(pwsh: PowerShell, names: list[str]) -> dict[str, list[str]]:
    script = (
        f"$found = foreach ($n in {to_literal(names)}) {{ "
        "Get-Module -ListAvailable -Name $n | ForEach-Object { "
        "[pscustomobject]@{ Name = $_.Name; Version = $_.Version.ToString() } } }\n"
        "ConvertTo-Json -Compress -InputObject @($found)"
    )
    lines = [line for line in pwsh.run(script).output.splitlines() if line.strip()]
    data = json.loads(lines[-1]) if lines else []
    if isinstance(data, dict):
        data = [data]

    versions: dict[str, list[str]] = {}
    for item in data:
        versions.setdefault(str(item["Name"]).casefold(), []).append(str(item["Version"]))
    return versions


def missing_requirements(
    required: Mapping[str, str], installed: Mapping[str, list[str]]
) -> list[Requirement]:
    missing = []
    for name, minimum in required.items():
        available = installed.get(name.casefold(), [])
        if not any(version_key(v) >= version_key(minimum) for v in available):
            missing.append(Requirement(name, minimum))
    return missing


def _ask(question: str) -> bool:
    answer = input(f"{question} [y/N] ")
    return answer.strip().lower() in ("y", "yes")


def install_dependencies(
    pwsh: PowerShell,
    required: Mapping[str, str],
    ci: bool,
    confirm: Callable[[str], bool] = _ask,
) -> list[Requirement]:
    """
    Install whichever required modules are missing.

    Returns:
        The requirements that were installed (empty if all were present).

    Raises:
        ConfirmationDeclined: Not in CI and the operator said no.
        ExternalProcessFailure: Querying or installing failed.
    """
    missing = missing_requirements(required, installed_versions(pwsh, list(required)))
    if not missing:
        _logger.info("Build dependencies already installed", extra={"modules": sorted(required)})
        return []

    labels = [f"{r.name} (>= {r.minimum_version})" for r in missing]
    if not ci and not confirm(f"Install missing build dependencies: {', '.join(labels)}?"):
        raise ConfirmationDeclined(labels)

    script = "\n".join(
        f"Install-Module -Name {quote(r.name)} -MinimumVersion {quote(r.minimum_version)} "
        "-Scope CurrentUser -Force -AllowClobber -SkipPublisherCheck"
        for r in missing
    )
    pwsh.run(script)
    _logger.info(
        "Installed build dependencies",
        extra={"modules": labels, "destination": str(user_module_path())},
    )
    return missing
