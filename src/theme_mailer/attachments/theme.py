# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Email theme capability and its filesystem implementation.

A theme exposes a property map (``theme.properties``) and readable streams
for its static resources. The ``attachments`` property lists the resources
to attach to every notification, comma separated::

    # theme.properties
    parent=base
    attachments=img/logo.png,docs/terms.pdf

Layout expected by ``DirectoryTheme``::

    mytheme/
        theme.properties
        resources/
            img/logo.png
            docs/terms.pdf
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import BinaryIO, Protocol, runtime_checkable

_BLANKS = " \t\f"
_SEPARATORS = "=:" + _BLANKS
_ESCAPE = re.compile(r"\\(u[0-9a-fA-F]{4}|.)", re.DOTALL)
_ESCAPED_CHARS = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}


def _continues(line: str) -> bool:
    # an odd run of trailing backslashes escapes the line break
    return (len(line) - len(line.rstrip("\\"))) % 2 == 1


def _logical_lines(text: str) -> Iterator[str]:
    lines = iter(text.splitlines())
    for line in lines:
        line = line.lstrip(_BLANKS)
        if not line or line[0] in "#!":
            continue
        while _continues(line):
            line = line[:-1] + next(lines, "").lstrip(_BLANKS)
        yield line


def _unescape(value: str) -> str:
    def replace(match: re.Match) -> str:
        sequence = match.group(1)
        if len(sequence) == 5:
            return chr(int(sequence[1:], 16))
        if sequence == "u":
            raise ValueError("Malformed \\uXXXX escape")
        return _ESCAPED_CHARS.get(sequence, sequence)

    return _ESCAPE.sub(replace, value)


def _split_entry(line: str) -> tuple[str, str]:
    end = 0
    while end < len(line) and line[end] not in _SEPARATORS:
        end += 2 if line[end] == "\\" else 1
    key, rest = line[:end], line[end:].lstrip(_BLANKS)
    if rest[:1] in ("=", ":"):
        rest = rest[1:].lstrip(_BLANKS)
    return _unescape(key), _unescape(rest)


def parse_properties(text: str) -> dict[str, str]:
    """Parse the ``.properties`` format (``key=value``, ``key: value`` or ``key value``).

    Supports ``#``/``!`` comments, backslash line continuations and the
    ``\\t``, ``\\n``, ``\\uXXXX`` style escapes. Later keys override earlier ones.

    Raises:
        ValueError: On a malformed ``\\uXXXX`` escape.
    """
    return dict(_split_entry(line) for line in _logical_lines(text))


@runtime_checkable
class Theme(Protocol):
    """Read access to a theme's properties and resources."""

    def get_resource_as_stream(self, path: str) -> BinaryIO | None:
        """Open a new stream on ``path``, or return None if it does not exist."""
        ...

    def get_properties(self) -> Mapping[str, str]:
        """Return the theme properties. May raise ``OSError``."""
        ...


class DirectoryTheme:
    """Theme stored in a directory, with path traversal protection on resources."""

    def __init__(
        self,
        base_dir: str | Path,
        properties_file: str = "theme.properties",
        resources_dir: str = "resources",
    ):
        self._base_dir = Path(base_dir).resolve()
        self._properties_path = self._base_dir / properties_file
        self._resources_dir = (self._base_dir / resources_dir).resolve()

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def get_properties(self) -> dict[str, str]:
        """Parse ``theme.properties``.

        Raises:
            OSError: If the file cannot be read or is malformed.
        """
        try:
            return parse_properties(self._properties_path.read_text(encoding="utf-8"))
        except ValueError as exc:
            raise OSError(f"Malformed theme properties {self._properties_path}: {exc}") from exc

    def get_resource_as_stream(self, path: str) -> BinaryIO | None:
        """Open ``path`` below the resources directory.

        Returns:
            A new binary stream, or None when the resource does not exist.

        Raises:
            ValueError: If ``path`` resolves outside the resources directory.
        """
        resolved = self._resolve_and_validate(path)
        if not resolved.is_file():
            return None
        return resolved.open("rb")

    def _resolve_and_validate(self, path: str) -> Path:
        if not path:
            raise ValueError("Empty resource path")
        path_obj = Path(path)
        if path_obj.is_absolute():
            resolved = path_obj.resolve()
        else:
            resolved = (self._resources_dir / path_obj).resolve()
        try:
            resolved.relative_to(self._resources_dir)
        except ValueError:
            raise ValueError(
                f"Path traversal detected: '{path}' resolves outside theme resources"
            ) from None
        return resolved


__all__ = ["DirectoryTheme", "Theme", "parse_properties"]
