# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Fragment prologue parsing.

A fragment may open with three kinds of metadata, in any mix:

    #requires -Modules Foo                 requirement
    using namespace System.Collections     namespace import (also module/assembly)
    [Diagnostics.CodeAnalysis.SuppressMessage('PSAvoidUsingWriteHost', '')]
    param()                                exists only to carry the attribute

The scanner walks the prologue (whitespace and comments allowed in between)
and records where the last metadata region ends. Everything after that point,
trimmed, is the fragment body. Comments before the last region are dropped
with it; a fragment with no metadata keeps its whole text.

Scanning stops at the first token that is not metadata, so a `#requires`
buried halfway down a script is left in place rather than cutting the body.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from psforge.utils.filesystem import safe_read

_REQUIRES_RE = re.compile(r"#requires\b", re.IGNORECASE)
_USING_RE = re.compile(r"using[ \t]+(?:namespace|module|assembly)\b", re.IGNORECASE)
_PARAM_RE = re.compile(r"param\s*\(", re.IGNORECASE)


@dataclass(frozen=True)
class Fragment:
    path: Optional[Path]
    requirements: tuple[str, ...]
    imports: tuple[str, ...]
    has_param_block: bool
    body: str

    @property
    def has_metadata(self) -> bool:
        return bool(self.requirements or self.imports or self.has_param_block)


def _line_end(text: str, pos: int) -> int:
    newline = text.find("\n", pos)
    return len(text) if newline == -1 else newline


def _skip_string(text: str, pos: int) -> int:
    """Return the index just past the quoted string starting at `pos`."""
    quote = text[pos]
    pos += 1
    while pos < len(text):
        char = text[pos]
        if quote == '"' and char == "`":
            pos += 2
            continue
        if char == quote:
            if text[pos + 1 : pos + 2] == quote:
                pos += 2
                continue
            return pos + 1
        pos += 1
    return -1


def _match_brackets(text: str, pos: int) -> int:
    """
    Return the index just past the bracket group opening at `pos`, or -1.

    Strings and comments inside the group are skipped so that a `)` in an
    attribute argument doesn't close the group early.
    """
    pairs = {"(": ")", "[": "]", "{": "}"}
    stack = [pairs[text[pos]]]
    pos += 1
    while pos < len(text) and stack:
        char = text[pos]
        if char in ("'", '"'):
            pos = _skip_string(text, pos)
            if pos == -1:
                return -1
            continue
        if text.startswith("<#", pos):
            close = text.find("#>", pos + 2)
            if close == -1:
                return -1
            pos = close + 2
            continue
        if char == "#":
            pos = _line_end(text, pos)
            continue
        if char in pairs:
            stack.append(pairs[char])
        elif char == stack[-1]:
            stack.pop()
        elif char in ")]}":
            return -1
        pos += 1
    return pos if not stack else -1


def _skip_trivia(text: str, pos: int) -> int:
    """Skip whitespace and comments, but stop on a #requires line."""
    while pos < len(text):
        if text[pos].isspace():
            pos += 1
        elif text.startswith("<#", pos):
            close = text.find("#>", pos + 2)
            if close == -1:
                return len(text)
            pos = close + 2
        elif text[pos] == "#" and not _REQUIRES_RE.match(text, pos):
            pos = _line_end(text, pos)
        else:
            break
    return pos


def _param_block_end(text: str, pos: int) -> int:
    """
    If a script param block (with optional leading attributes) starts at
    `pos`, return the index just past its closing parenthesis, else -1.
    """
    while pos < len(text) and text[pos] == "[":
        pos = _match_brackets(text, pos)
        if pos == -1:
            return -1
        pos = _skip_trivia(text, pos)
    match = _PARAM_RE.match(text, pos)
    if match is None:
        return -1
    return _match_brackets(text, match.end() - 1)


def parse_fragment(text: str, path: Optional[Path] = None) -> Fragment:
    requirements: list[str] = []
    imports: list[str] = []
    has_param_block = False
    metadata_end = 0

    pos = 0
    while True:
        pos = _skip_trivia(text, pos)
        if pos >= len(text):
            break
        if _REQUIRES_RE.match(text, pos):
            end = _line_end(text, pos)
            requirements.append(text[pos:end].strip())
        elif _USING_RE.match(text, pos):
            end = _line_end(text, pos)
            imports.append(text[pos:end].strip())
        else:
            end = _param_block_end(text, pos)
            if end == -1 or has_param_block:
                break
            has_param_block = True
        metadata_end = pos = end

    return Fragment(
        path=path,
        requirements=tuple(requirements),
        imports=tuple(imports),
        has_param_block=has_param_block,
        body=text[metadata_end:].strip(),
    )


def read_fragment(path: Path) -> Fragment:
    return parse_fragment(safe_read(path), path)
