# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Surgical manifest rewrites.

Manifests are hand-maintained: comments, alignment, key order, BOMs and CRLF
line endings all matter to the people who edit them. So we never re-serialize
a manifest. A rewrite swaps the characters of one tracked span and writes
every other byte back exactly as it was read.
"""

import logging
from pathlib import Path
from typing import Iterable

from psforge.logging.logger import get_logger
from psforge.manifest.parser import ManifestDocument
from psforge.manifest.version import Version
from psforge.utils.filesystem import atomic_write_bytes

_logger: logging.Logger = get_logger(__name__)


def replace_span(text: str, span: tuple[int, int], replacement: str) -> str:
    start, end = span
    if not 0 <= start <= end <= len(text):
        raise ValueError(f"Span {span} is outside a text of length {len(text)}")
    return text[:start] + replacement + text[end:]


def write_manifest(
    path: Path,
    full_text: str,
    version_span: tuple[int, int],
    current: Version,
    new_version: Version,
) -> bool:
    """
    Replace the version in a manifest file, leaving all other bytes alone.

    Nothing is written unless `new_version` is greater than `current`.

    Returns:
        True if the file was rewritten.
    """
    if not new_version > current:
        _logger.info(
            "Manifest version unchanged",
            extra={"path": str(path), "version": str(current)},
        )
        return False

    updated = replace_span(full_text, version_span, str(new_version))
    atomic_write_bytes(path, updated.encode("utf-8"))
    _logger.info(
        "Manifest version updated",
        extra={"path": str(path), "from": str(current), "to": str(new_version)},
    )
    return True


def update_manifest_version(document: ManifestDocument, new_version: Version) -> bool:
    """`write_manifest` for a document read with `read_manifest`."""
    if document.path is None:
        raise ValueError("Manifest document was not read from a file")
    return write_manifest(
        document.path,
        document.full_text,
        document.version_span,
        document.version,
        new_version,
    )


def render_string_array(values: Iterable[str]) -> str:
    """Render strings as a PowerShell array literal: @('a', 'b')."""
    quoted = ["'" + value.replace("'", "''") + "'" for value in values]
    return "@(" + ", ".join(quoted) + ")"


def set_manifest_value(document: ManifestDocument, key: str, rendered: str) -> str:
    """
    Return the manifest text with `key` set to the already-rendered literal.

    An existing value is replaced across its full extent (quotes and all); a
    missing key is added as a new line just before the closing brace.
    """
    entry = document.table.get(key)
    if entry is not None:
        return replace_span(document.full_text, entry.value.span, rendered)

    newline = "\r\n" if "\r\n" in document.full_text else "\n"
    close = document.table.end - 1
    head = document.full_text[:close].rstrip(" \t")
    if not head.endswith("\n"):
        head += newline
    line = f"    {key} = {rendered}{newline}"
    return head + line + document.full_text[close:]
