# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Path utilities for psforge.

The rules:
  - configured paths are relative to the project root
  - nothing the build deletes may resolve outside the project root
"""

from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Iterable, Optional

PROJECT_MARKERS = ("build.yaml", "build.yml", ".git")


def resolve_project_root(start: Optional[Path] = None) -> Path:
    """
    Walk up from `start` (default: the working directory) to the project root.

    The project root is the first ancestor holding a psforge config file or a
    git checkout. If none is found, the starting directory itself is used:
    a module checked out without git metadata is still buildable.
    """
    origin = (start or Path.cwd()).resolve()
    current = origin
    while current != current.parent:
        if any((current / marker).exists() for marker in PROJECT_MARKERS):
            return current
        current = current.parent
    return origin


def validate_path_within_project(target: Path, project_root: Path) -> Path:
    """
    Make sure a path doesn't escape the project directory.

    `Clean` deletes the output folder recursively, so an output folder of
    `../..` in a config file must be rejected before anything is removed.
    Both paths are resolved first so `..` tricks get caught.

    Returns:
        The resolved absolute path if it's safe.

    Raises:
        ValueError: If the path escapes (or equals) the project root.
    """
    resolved_target = target.resolve()
    resolved_root = project_root.resolve()

    if resolved_target == resolved_root or resolved_root not in resolved_target.parents:
        raise ValueError(
            f"Path '{target}' resolves to '{resolved_target}' which is outside "
            f"the project root '{resolved_root}'. This is not allowed."
        )

    return resolved_target


def is_absolute_pattern(pattern: str) -> bool:
    """True for `/x`, `\\x`, `C:\\x` or `C:x`: anything not anchored at the glob root."""
    return PurePosixPath(pattern).is_absolute() or bool(PureWindowsPath(pattern).anchor)


def expand_globs(root: Path, patterns: Iterable[str]) -> list[Path]:
    """
    Expand glob patterns relative to `root` into a sorted, de-duplicated file list.

    Directories matched by a pattern are expanded to the files beneath them.
    """
    found: set[Path] = set()
    for pattern in patterns:
        if is_absolute_pattern(pattern):
            raise ValueError(f"Glob pattern '{pattern}' must be relative to {root}")
        for match in root.glob(pattern):
            if match.is_dir():
                found.update(p for p in match.rglob("*") if p.is_file())
            elif match.is_file():
                found.add(match)
    return sorted(found)
