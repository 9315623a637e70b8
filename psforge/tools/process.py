# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Synchronous process runner.

Every tool runs to completion with stdout and stderr captured together.
No timeout is applied.
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import Mapping, NamedTuple, Optional, Sequence

from psforge.logging.logger import get_logger
from psforge.tools.exceptions import ExternalProcessFailure

_logger: logging.Logger = get_logger(__name__)


class ProcessResult(NamedTuple):
    returncode: int
    output: str


class ProcessRunner:
    """Runs tools and turns unexpected exit codes into ExternalProcessFailure."""

    def run(
        self,
        argv: Sequence[str],
        cwd: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
        ok_codes: Sequence[int] = (0,),
    ) -> ProcessResult:
        """
        Run `argv` to completion with stdout and stderr captured together.

        Args:
            argv: Executable and arguments.
            cwd: Working directory.
            env: Extra environment variables, layered over os.environ.
            ok_codes: Exit codes that count as success. Callers that use the
                exit code as an answer (`git diff --quiet`) widen this.

        Raises:
            ExternalProcessFailure: The exit code is not in ok_codes, or the
                executable could not be started.
        """
        tool = Path(argv[0]).name
        merged_env = None
        if env:
            merged_env = {**os.environ, **env}

        _logger.debug("Running tool", extra={"tool": tool, "argv": list(argv), "cwd": str(cwd or "")})
        try:
            completed = subprocess.run(
                list(argv),
                cwd=str(cwd) if cwd is not None else None,
                env=merged_env,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                check=False,
            )
        except OSError as err:
            raise ExternalProcessFailure(tool, argv, -1, str(err)) from err

        if completed.returncode not in ok_codes:
            raise ExternalProcessFailure(tool, argv, completed.returncode, completed.stdout)

        return ProcessResult(completed.returncode, completed.stdout)
