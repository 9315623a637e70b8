# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""Errors raised while reading manifests and computing versions."""

from pathlib import Path
from typing import Optional, Sequence

from psforge.exceptions import PsforgeError


class ManifestError(PsforgeError):
    """Base for manifest and version errors."""


class ManifestParseError(ManifestError):
    """The manifest text is not a well-formed data file."""

    def __init__(self, message: str, offset: int, path: Optional[Path] = None) -> None:
        self.offset = offset
        self.path = path
        where = f"{path}:" if path is not None else ""
        super().__init__(f"{where}offset {offset}: {message}")


class MissingField(ManifestError):
    """A required manifest key is absent."""

    def __init__(self, field: str, path: Optional[Path] = None) -> None:
        self.field = field
        self.path = path
        where = f" in {path}" if path is not None else ""
        super().__init__(f"Manifest field '{field}' is missing{where}")


class InvalidVersion(ManifestError):
    """A version string is not MAJOR.MINOR.PATCH."""

    def __init__(self, text: str) -> None:
        self.text = text
        super().__init__(f"'{text}' is not a MAJOR.MINOR.PATCH version")


class InvalidVersionJump(ManifestError):
    """An explicit version is not a single-step increment of the current one."""

    def __init__(self, current: object, requested: object, allowed: Sequence[object]) -> None:
        self.current = current
        self.requested = requested
        self.allowed = tuple(allowed)
        super().__init__(
            f"Cannot move from {current} to {requested}; "
            f"expected one of {', '.join(str(v) for v in self.allowed)}"
        )
