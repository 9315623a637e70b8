# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Git operations used by the release tasks.

Only what a release needs: fetch before bumping the version, commit the
bumped manifest, tag, push, and the queries behind the "already tagged"
guard.
"""

import logging
from pathlib import Path
from typing import Optional, Sequence

from psforge.logging.logger import get_logger
from psforge.tools.process import ProcessRunner

_logger: logging.Logger = get_logger(__name__)


class GitClient:
    def __init__(self, runner: ProcessRunner, cwd: Path, executable: str = "git") -> None:
        self.runner = runner
        self.cwd = cwd
        self.executable = executable

    def _git(self, *args: str, ok_codes: Sequence[int] = (0,)) -> tuple[int, str]:
        result = self.runner.run([self.executable, *args], cwd=self.cwd, ok_codes=ok_codes)
        return result.returncode, result.output

    def fetch(self, remote: str, branch: str) -> None:
        self._git("fetch", "--tags", remote, branch)
        _logger.info("Fetched", extra={"remote": remote, "branch": branch})

    def diff(self, path: Path) -> bool:
        """True if `path` has uncommitted changes (staged or not)."""
        code, _ = self._git("diff", "HEAD", "--quiet", "--", str(path), ok_codes=(0, 1))
        return code == 1

    def commit(self, paths: Sequence[Path], message: str) -> None:
        self._git("add", "--", *(str(p) for p in paths))
        self._git("commit", "--message", message, "--", *(str(p) for p in paths))
        _logger.info("Committed", extra={"paths": [str(p) for p in paths], "commit_message": message})

    def rev_parse(self, ref: str) -> str:
        _, output = self._git("rev-parse", "--verify", f"{ref}^{{commit}}")
        return output.strip()

    def tag_exists(self, name: str) -> bool:
        _, output = self._git("tag", "--list", name)
        return output.strip() == name

    def tag(self, name: str, message: str) -> None:
        self._git("tag", "--annotate", name, "--message", message)
        _logger.info("Tagged", extra={"tag": name})

    def push(self, remote: str, ref: Optional[str] = None) -> None:
        args = ["push", remote]
        if ref is not None:
            args.append(ref)
        self._git(*args)
        _logger.info("Pushed", extra={"remote": remote, "ref": ref or "HEAD"})
