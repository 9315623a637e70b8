# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Running PowerShell scripts, and rendering Python values as PowerShell literals.

Scripts are passed with `-Command` normally. `-EncodedCommand` (base64 of
UTF-16LE) is used when a script has to reach a fresh process without any
quoting surprises, e.g. a serialized test configuration.
"""

import base64
from pathlib import Path
from typing import Any, Mapping, Optional

from psforge.tools.process import ProcessResult, ProcessRunner

_BASE_ARGS = ("-NoLogo", "-NoProfile", "-NonInteractive")


def quote(value: str) -> str:
    """Single-quote a string for PowerShell ('' escapes a quote)."""
    return "'" + value.replace("'", "''") + "'"


def to_literal(value: Any) -> str:
    """Render dicts, lists, strings, numbers, bools and None as a PowerShell literal."""
    if value is None:
        return "$null"
    if isinstance(value, bool):
        return "$true" if value else "$false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, (str, Path)):
        return quote(str(value))
    if isinstance(value, Mapping):
        items = "; ".join(f"{quote(str(k))} = {to_literal(v)}" for k, v in value.items())
        return "@{" + items + "}"
    if isinstance(value, (list, tuple)):
        return "@(" + ", ".join(to_literal(v) for v in value) + ")"
    raise TypeError(f"Cannot render {type(value).__name__} as a PowerShell literal")


def encode_command(script: str) -> str:
    return base64.b64encode(script.encode("utf-16-le")).decode("ascii")


class PowerShell:
    def __init__(self, runner: ProcessRunner, executable: str = "pwsh", cwd: Optional[Path] = None) -> None:
        self.runner = runner
        self.executable = executable
        self.cwd = cwd

    def run(self, script: str, env: Optional[Mapping[str, str]] = None) -> ProcessResult:
        script = "$ErrorActionPreference = 'Stop'\n" + script
        return self.runner.run([self.executable, *_BASE_ARGS, "-Command", script], cwd=self.cwd, env=env)

    def run_encoded(self, script: str, env: Optional[Mapping[str, str]] = None) -> ProcessResult:
        script = "$ErrorActionPreference = 'Stop'\n" + script
        return self.runner.run(
            [self.executable, *_BASE_ARGS, "-EncodedCommand", encode_command(script)],
            cwd=self.cwd,
            env=env,
        )
