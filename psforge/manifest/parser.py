# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Parser for PowerShell data files (.psd1) that keeps source offsets.

Supported grammar, which covers what module manifests contain in practice:

    document   := '@{' entry* '}'
    entry      := key '=' value-list            separated by newlines or ';'
    key        := identifier | quoted string
    value-list := value (',' value)*
    value      := 'single' | "double" | number | version literal
                | $true | $false | $null | '@(' items ')' | '@{' entry* '}'

`#` line comments and `<# ... #>` block comments are allowed anywhere
whitespace is. Every value records its full extent in the source; string
values also record the extent of their contents without the quotes, which is
what a version bump replaces.

Keys are case-insensitive, as they are in PowerShell.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from psforge.manifest.exceptions import InvalidVersion, ManifestParseError, MissingField
from psforge.manifest.version import Version
from psforge.utils.filesystem import read_exact

ENTRY_POINT_FIELD = "RootModule"
VERSION_FIELD = "ModuleVersion"

_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_.\-]*")
_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)*")
_VARIABLE_RE = re.compile(r"\$(true|false|null)\b", re.IGNORECASE)
_VARIABLES = {"true": True, "false": False, "null": None}
_HERE_STRING_END_RE = {quote: re.compile(r"\r?\n" + quote + "@") for quote in ("'", '"')}


@dataclass(frozen=True)
class ManifestValue:
    """A parsed value and where it sits in the source text."""

    value: Any
    start: int
    end: int
    content_start: int
    content_end: int

    @property
    def span(self) -> tuple[int, int]:
        return (self.start, self.end)

    @property
    def content_span(self) -> tuple[int, int]:
        return (self.content_start, self.content_end)


@dataclass(frozen=True)
class ManifestEntry:
    key: str
    value: ManifestValue


@dataclass(frozen=True)
class ManifestTable:
    """One `@{ ... }` block: its entries by case-folded key, and its extent."""

    entries: dict[str, ManifestEntry]
    start: int
    end: int

    def get(self, key: str) -> Optional[ManifestEntry]:
        return self.entries.get(key.casefold())

    def to_python(self) -> dict[str, Any]:
        return {entry.key: _unwrap(entry.value.value) for entry in self.entries.values()}


def _unwrap(value: Any) -> Any:
    if isinstance(value, ManifestTable):
        return value.to_python()
    if isinstance(value, list):
        return [_unwrap(item.value) for item in value]
    return value


@dataclass(frozen=True)
class ManifestDocument:
    """
    A manifest read from disk.

    `full_text` is the file decoded without newline translation, so
    `version_span` indexes the exact characters of the version string.
    """

    full_text: str
    entry_point: str
    version: Version
    version_span: tuple[int, int]
    table: ManifestTable
    path: Optional[Path] = field(default=None)

    def get(self, key: str) -> Any:
        entry = self.table.get(key)
        return None if entry is None else _unwrap(entry.value.value)


class _Parser:
    def __init__(self, text: str, path: Optional[Path]) -> None:
        self.text = text
        self.pos = 0
        self.path = path

    def error(self, message: str) -> ManifestParseError:
        return ManifestParseError(message, self.pos, self.path)

    def peek(self, length: int = 1) -> str:
        return self.text[self.pos : self.pos + length]

    def expect(self, token: str) -> None:
        if self.peek(len(token)) != token:
            raise self.error(f"expected '{token}'")
        self.pos += len(token)

    def skip_trivia(self, newlines: bool = True) -> None:
        while self.pos < len(self.text):
            char = self.text[self.pos]
            if char in " \t\r\ufeff" or (newlines and char == "\n"):
                self.pos += 1
            elif char == "`" and self.peek(2) in ("`\n", "`\r"):
                self.pos += 2
            elif self.peek(2) == "<#":
                close = self.text.find("#>", self.pos + 2)
                if close == -1:
                    raise self.error("unterminated block comment")
                self.pos = close + 2
            elif char == "#":
                newline = self.text.find("\n", self.pos)
                self.pos = len(self.text) if newline == -1 else newline
            else:
                return

    def parse_document(self) -> ManifestTable:
        self.skip_trivia()
        table = self.parse_table()
        self.skip_trivia()
        if self.pos != len(self.text):
            raise self.error("unexpected content after manifest")
        return table

    def parse_table(self) -> ManifestTable:
        start = self.pos
        self.expect("@{")
        entries: dict[str, ManifestEntry] = {}
        while True:
            self.skip_trivia()
            if self.peek() == ";":
                self.pos += 1
                continue
            if self.peek() == "}":
                self.pos += 1
                return ManifestTable(entries, start, self.pos)
            if self.pos >= len(self.text):
                raise self.error("unterminated '@{'")

            key = self.parse_key()
            self.skip_trivia(newlines=False)
            self.expect("=")
            self.skip_trivia()
            value = self.parse_value_list()
            entries[key.casefold()] = ManifestEntry(key, value)

            self.skip_trivia(newlines=False)
            if self.peek() not in ("\n", ";", "}"):
                raise self.error(f"expected newline, ';' or '}}' after value of '{key}'")

    def parse_key(self) -> str:
        if self.peek() in ("'", '"'):
            return self.parse_string().value
        match = _IDENTIFIER_RE.match(self.text, self.pos)
        if match is None:
            raise self.error("expected a key")
        self.pos = match.end()
        return match.group(0)

    def parse_value_list(self) -> ManifestValue:
        first = self.parse_value()
        items = [first]
        while True:
            checkpoint = self.pos
            self.skip_trivia(newlines=False)
            if self.peek() != ",":
                self.pos = checkpoint
                break
            self.pos += 1
            self.skip_trivia()
            items.append(self.parse_value())
        if len(items) == 1:
            return first
        return ManifestValue(items, first.start, items[-1].end, first.start, items[-1].end)

    def parse_value(self) -> ManifestValue:
        char = self.peek()
        if char in ("'", '"'):
            return self.parse_string()
        if self.peek(2) in ("@'", '@"'):
            return self.parse_here_string()
        if self.peek(2) == "@{":
            table = self.parse_table()
            return ManifestValue(table, table.start, table.end, table.start + 2, table.end - 1)
        if self.peek(2) == "@(":
            return self.parse_array()
        if char == "$":
            match = _VARIABLE_RE.match(self.text, self.pos)
            if match is None:
                raise self.error("only $true, $false and $null are allowed in a data file")
            start, self.pos = self.pos, match.end()
            return ManifestValue(_VARIABLES[match.group(1).lower()], start, self.pos, start, self.pos)
        match = _NUMBER_RE.match(self.text, self.pos)
        if match is not None:
            start, self.pos = self.pos, match.end()
            literal = match.group(0)
            if literal.count(".") > 1:
                value: Any = literal
            elif "." in literal:
                value = float(literal)
            else:
                value = int(literal)
            return ManifestValue(value, start, self.pos, start, self.pos)
        raise self.error("expected a value")

    def parse_string(self) -> ManifestValue:
        start = self.pos
        quote = self.text[self.pos]
        self.pos += 1
        chunks: list[str] = []
        while True:
            if self.pos >= len(self.text):
                raise ManifestParseError("unterminated string", start, self.path)
            char = self.text[self.pos]
            if char == quote:
                if self.peek(2) == quote * 2:
                    chunks.append(quote)
                    self.pos += 2
                    continue
                content_end = self.pos
                self.pos += 1
                return ManifestValue("".join(chunks), start, self.pos, start + 1, content_end)
            if quote == '"' and char == "`" and self.pos + 1 < len(self.text):
                chunks.append(self.text[self.pos + 1])
                self.pos += 2
                continue
            chunks.append(char)
            self.pos += 1

    def parse_here_string(self) -> ManifestValue:
        """
        `@'...'@` or `@"..."@`. The opener ends its line; the closer starts
        one. The value is the lines in between, without the final line break.
        """
        start = self.pos
        quote = self.text[self.pos + 1]
        self.pos += 2
        while self.peek() in (" ", "\t"):
            self.pos += 1
        if self.peek(2) == "\r\n":
            self.pos += 2
        elif self.peek() == "\n":
            self.pos += 1
        else:
            raise self.error("here-string opener must end its line")

        content_start = self.pos
        match = _HERE_STRING_END_RE[quote].search(self.text, content_start - 1)
        if match is None:
            raise ManifestParseError("unterminated here-string", start, self.path)
        if match.start() == content_start - 1:
            # empty here-string: the opener's line break is also the closer's
            content_end = content_start
        else:
            content_end = match.start()
        self.pos = match.end()

        content = self.text[content_start:content_end]
        if quote == '"':
            content = re.sub(r"`(.)", r"\1", content, flags=re.DOTALL)
        return ManifestValue(content, start, self.pos, content_start, content_end)

    def parse_array(self) -> ManifestValue:
        start = self.pos
        self.expect("@(")
        items: list[ManifestValue] = []
        while True:
            self.skip_trivia()
            if self.peek() in (",", ";"):
                self.pos += 1
                continue
            if self.peek() == ")":
                self.pos += 1
                return ManifestValue(items, start, self.pos, start + 2, self.pos - 1)
            if self.pos >= len(self.text):
                raise self.error("unterminated '@('")
            items.append(self.parse_value())


def parse_manifest_table(text: str, path: Optional[Path] = None) -> ManifestTable:
    """Parse data-file text into its top-level table."""
    return _Parser(text, path).parse_document()


def parse_manifest(text: str, path: Optional[Path] = None) -> ManifestDocument:
    """
    Parse manifest text and pull out the entry point and version.

    Raises:
        ManifestParseError: The text is not a well-formed data file.
        MissingField: RootModule or ModuleVersion is absent.
        InvalidVersion: ModuleVersion is not MAJOR.MINOR.PATCH.
    """
    table = parse_manifest_table(text, path)

    entry_point = table.get(ENTRY_POINT_FIELD)
    if entry_point is None or not isinstance(entry_point.value.value, str):
        raise MissingField(ENTRY_POINT_FIELD, path)

    version_entry = table.get(VERSION_FIELD)
    if version_entry is None:
        raise MissingField(VERSION_FIELD, path)
    raw_version = version_entry.value.value
    if not isinstance(raw_version, str):
        raise InvalidVersion(str(raw_version))

    return ManifestDocument(
        full_text=text,
        entry_point=entry_point.value.value,
        version=Version.parse(raw_version),
        version_span=version_entry.value.content_span,
        table=table,
        path=path,
    )


def read_manifest(path: Path) -> ManifestDocument:
    """Read and parse a manifest file, keeping its exact text."""
    return parse_manifest(read_exact(path), path)
