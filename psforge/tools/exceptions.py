# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""Errors raised by external tool adapters."""

from typing import Sequence

from psforge.exceptions import PsforgeError


class ToolError(PsforgeError):
    """Base for failures reported by, or about, an external tool."""


class ExternalProcessFailure(ToolError):
    """A tool exited with an unexpected code (or could not be started)."""

    def __init__(self, tool: str, argv: Sequence[str], returncode: int, output: str) -> None:
        self.tool = tool
        self.argv = tuple(argv)
        self.returncode = returncode
        self.output = output
        super().__init__(f"{tool} failed with exit code {returncode}")


class LintFailure(ToolError):
    """The linter reported findings at warning severity or above."""

    def __init__(self, findings: Sequence[object]) -> None:
        self.findings = tuple(findings)
        super().__init__(f"Lint found {len(self.findings)} issue(s) at warning severity or above")


class AlreadyTagged(ToolError):
    """The release tag exists and points at a different commit."""

    def __init__(self, tag: str, tagged_commit: str, head: str) -> None:
        self.tag = tag
        self.tagged_commit = tagged_commit
        self.head = head
        super().__init__(f"Tag {tag} already exists at {tagged_commit[:12]}, not at HEAD {head[:12]}")


class AlreadyReleased(ToolError):
    """A release for this tag exists and was not made from the current commit."""

    def __init__(self, tag: str) -> None:
        self.tag = tag
        super().__init__(f"A release for {tag} already exists")


class ConfirmationDeclined(ToolError):
    """The operator refused to install missing build dependencies."""

    def __init__(self, modules: Sequence[str]) -> None:
        self.modules = tuple(modules)
        super().__init__("Installation of build dependencies declined: " + ", ".join(self.modules))


class MissingCredential(ToolError):
    """No registry API key could be found."""
