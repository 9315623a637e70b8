# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""GitHub releases through the `gh` CLI."""

import logging
from pathlib import Path
from typing import Sequence

from psforge.logging.logger import get_logger
from psforge.tools.process import ProcessRunner

_logger: logging.Logger = get_logger(__name__)


class ReleaseClient:
    def __init__(self, runner: ProcessRunner, cwd: Path, executable: str = "gh") -> None:
        self.runner = runner
        self.cwd = cwd
        self.executable = executable

    def release_exists(self, tag: str) -> bool:
        # gh exits 1 with "release not found" when there is no release.
        result = self.runner.run([self.executable, "release", "view", tag], cwd=self.cwd, ok_codes=(0, 1))
        return result.returncode == 0

    def create_release(self, tag: str, assets: Sequence[Path], title: str | None = None) -> None:
        argv = [
            self.executable, "release", "create", tag,
            *(str(asset) for asset in assets),
            "--title", title or tag,
            "--generate-notes",
            "--verify-tag",
        ]
        self.runner.run(argv, cwd=self.cwd)
        _logger.info("Created release", extra={"tag": tag, "assets": [a.name for a in assets]})
