# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Semantic versions and the bump rules for releases.

A release may only move one step: the next major (x+1.0.0), the next minor
(x.y+1.0) or the next patch (x.y.z+1). An explicit version that skips a step,
or keeps a stale lower component (2.1.0 after 1.2.3), is rejected rather than
trusted, because registries never let you take a published version back.
"""

import re
from dataclasses import dataclass
from typing import Optional

from psforge.manifest.exceptions import InvalidVersion, InvalidVersionJump

_VERSION_RE = re.compile(r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)$")

BUMP_KINDS = ("major", "minor", "patch")


@dataclass(frozen=True, order=True)
class Version:
    major: int
    minor: int
    patch: int

    def __post_init__(self) -> None:
        if min(self.major, self.minor, self.patch) < 0:
            raise InvalidVersion(f"{self.major}.{self.minor}.{self.patch}")

    @classmethod
    def parse(cls, text: str) -> "Version":
        match = _VERSION_RE.match(text.strip())
        if match is None:
            raise InvalidVersion(text)
        return cls(*(int(part) for part in match.groups()))

    def bump(self, kind: str) -> "Version":
        if kind == "major":
            return Version(self.major + 1, 0, 0)
        if kind == "minor":
            return Version(self.major, self.minor + 1, 0)
        if kind == "patch":
            return Version(self.major, self.minor, self.patch + 1)
        raise ValueError(f"Unknown bump kind '{kind}'; expected one of {', '.join(BUMP_KINDS)}")

    def successors(self) -> tuple["Version", "Version", "Version"]:
        """The three versions a release may move to from here."""
        return (self.bump("major"), self.bump("minor"), self.bump("patch"))

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


def compute_next_version(
    current: Version,
    explicit: Optional[Version] = None,
    bump: Optional[str] = None,
) -> Version:
    """
    Work out the version a release moves to.

    - explicit given: it must be one of `current.successors()`; when a bump
      kind is given too, the explicit version must be the one that bump
      produces
    - only bump given: the corresponding increment
    - neither: `current`, unchanged

    Raises:
        InvalidVersionJump: The explicit version is not a legal single step.
        ValueError: Unknown bump kind.
    """
    if explicit is not None:
        allowed = current.successors()
        if bump is not None:
            allowed = (current.bump(bump),)
        if explicit not in allowed:
            raise InvalidVersionJump(current, explicit, allowed)
        return explicit

    if bump is not None:
        return current.bump(bump)

    return current
