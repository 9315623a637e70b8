# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Module assembler: root module + fragment folders -> one .psm1.

The root module carries an inline region that only matters during local
development (typically a loop dot-sourcing every fragment):

    #region inline
    Get-ChildItem $PSScriptRoot/Public/*.ps1 | ForEach-Object { . $_ }
    #endregion inline

Assembly keeps the text before the region as the header, the text after it
as the footer, and puts the fragments where the region was. The output is

    <sorted unique #requires lines>

    <sorted unique using statements>

    <header>

    #region Classes
    <fragment bodies>
    #endregion Classes

    ...

    <footer>

with empty sections left out. Fragment order is fixed (folder order as
configured, then relative path), so the same sources always produce the same
bytes.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

from psforge.assembler.exceptions import AssemblyError
from psforge.assembler.fragments import Fragment, read_fragment
from psforge.logging.logger import get_logger
from psforge.utils.filesystem import atomic_write, safe_read

_logger: logging.Logger = get_logger(__name__)

FRAGMENT_SUFFIX = ".ps1"
SECTION_SEPARATOR = "\n\n"


@dataclass(frozen=True)
class FragmentRegion:
    label: str
    fragments: tuple[Fragment, ...]

    @property
    def has_body(self) -> bool:
        return any(f.body for f in self.fragments)

    def render(self) -> str:
        bodies = SECTION_SEPARATOR.join(f.body for f in self.fragments if f.body)
        return f"#region {self.label}\n{bodies}\n#endregion {self.label}"


@dataclass(frozen=True)
class AssembledModule:
    text: str
    requirements: tuple[str, ...]
    imports: tuple[str, ...]
    regions: tuple[FragmentRegion, ...] = field(default=())

    @property
    def fragment_count(self) -> int:
        return sum(len(region.fragments) for region in self.regions)


def split_root_descriptor(text: str, label: str = "inline", path: Optional[Path] = None) -> tuple[str, str]:
    """
    Split the root module around its `#region <label>` ... `#endregion <label>` pair.

    Without a start marker the whole text is the header. A start marker
    without its end marker is an error: guessing would silently drop code.
    """
    escaped = re.escape(label)
    start = re.search(
        rf"^[ \t]*#region[ \t]+{escaped}\b[^\n]*$", text, re.IGNORECASE | re.MULTILINE
    )
    if start is None:
        return text.strip(), ""

    end = re.compile(
        rf"^[ \t]*#endregion[ \t]+{escaped}\b[^\n]*$", re.IGNORECASE | re.MULTILINE
    ).search(text, start.end())
    if end is None:
        raise AssemblyError(
            f"'#region {label}' has no matching '#endregion {label}'",
            path or Path("<root module>"),
        )

    return text[: start.start()].strip(), text[end.end() :].strip()


def enumerate_fragments(directory: Path) -> list[Path]:
    """All *.ps1 files under `directory` (extension matched case-insensitively), in stable order."""
    if not directory.is_dir():
        return []
    found = [
        path
        for path in directory.rglob("*")
        if path.is_file() and path.suffix.lower() == FRAGMENT_SUFFIX
    ]
    return sorted(found, key=lambda p: p.relative_to(directory).as_posix().casefold())


def _region_label(directory: Path, source_root: Optional[Path]) -> str:
    if source_root is not None and directory.is_relative_to(source_root):
        return directory.relative_to(source_root).as_posix()
    return directory.name


def _unique_sorted(lines: Sequence[str]) -> tuple[str, ...]:
    return tuple(sorted({line.strip() for line in lines if line.strip()}))


def assemble(
    root_descriptor: Path,
    fragment_directories: Sequence[Path],
    source_root: Optional[Path] = None,
    inline_label: str = "inline",
) -> AssembledModule:
    """
    Assemble a root module and its fragment folders into a single module text.

    Args:
        root_descriptor: The development root module (.psm1).
        fragment_directories: Folders to inline, in output order. Missing
            folders contribute nothing.
        source_root: Base for region labels (default: each folder's name).
        inline_label: Label of the region replaced by fragment content.

    Raises:
        FileNotFoundError: The root module doesn't exist.
        AssemblyError: The inline region is opened but never closed.
    """
    header, footer = split_root_descriptor(safe_read(root_descriptor), inline_label, root_descriptor)

    regions: list[FragmentRegion] = []
    requirements: list[str] = []
    imports: list[str] = []

    for directory in fragment_directories:
        paths = enumerate_fragments(directory)
        if not paths:
            _logger.debug("No fragments found", extra={"directory": str(directory)})
            continue
        fragments = tuple(read_fragment(path) for path in paths)
        for fragment in fragments:
            requirements.extend(fragment.requirements)
            imports.extend(fragment.imports)
        regions.append(FragmentRegion(_region_label(directory, source_root), fragments))

    unique_requirements = _unique_sorted(requirements)
    unique_imports = _unique_sorted(imports)

    sections = [
        "\n".join(unique_requirements),
        "\n".join(unique_imports),
        header,
        SECTION_SEPARATOR.join(region.render() for region in regions if region.has_body),
        footer,
    ]
    text = SECTION_SEPARATOR.join(section for section in sections if section).strip()

    module = AssembledModule(
        text=text,
        requirements=unique_requirements,
        imports=unique_imports,
        regions=tuple(regions),
    )
    _logger.info(
        "Assembled module",
        extra={
            "root": str(root_descriptor),
            "fragments": module.fragment_count,
            "requirements": len(unique_requirements),
            "imports": len(unique_imports),
        },
    )
    return module


def write_assembled_module(module: AssembledModule, target: Path) -> Path:
    atomic_write(target, module.text + "\n")
    return target
