# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Content type detection for attachment streams.

The leading bytes of the probe stream are matched against well-known file
signatures. Container formats (zip, ole2) defer to the filename extension
when it is known, so ``terms.docx`` is not labelled as a plain zip archive.
"""

from __future__ import annotations

import mimetypes
from typing import BinaryIO

SNIFF_BYTES = 64
DEFAULT_MIME = ("application", "octet-stream")

SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"%PDF-", "application/pdf"),
    (b"PK\x03\x04", "application/zip"),
    (b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1", "application/x-ole-storage"),
    (b"\x1f\x8b", "application/gzip"),
    (b"II*\x00", "image/tiff"),
    (b"MM\x00*", "image/tiff"),
)

CONTAINER_TYPES = frozenset({"application/zip", "application/x-ole-storage"})


def _match_signature(head: bytes) -> str | None:
    for signature, mime in SIGNATURES:
        if head.startswith(signature):
            return mime
    if head[:4] == b"RIFF" and head[8:12] == b"WEBP":
        return "image/webp"
    stripped = head.lstrip().lower()
    if stripped.startswith((b"<!doctype html", b"<html")):
        return "text/html"
    if stripped.startswith(b"<svg") or (stripped.startswith(b"<?xml") and b"<svg" in stripped):
        return "image/svg+xml"
    return None


def guess_mime(filename: str) -> tuple[str, str]:
    """Determine the MIME type for a filename based on its extension."""
    mt, _ = mimetypes.guess_type(filename)
    if not mt:
        return DEFAULT_MIME
    return tuple(mt.split("/", 1))  # type: ignore[return-value]


def sniff_content_type(probe: BinaryIO, filename: str) -> tuple[str, str]:
    """Detect ``(maintype, subtype)`` from the probe stream, falling back to the filename.

    Only the first ``SNIFF_BYTES`` of ``probe`` are read.
    """
    sniffed = _match_signature(probe.read(SNIFF_BYTES) or b"")
    guessed = guess_mime(filename)
    if sniffed and not (sniffed in CONTAINER_TYPES and guessed != DEFAULT_MIME):
        return tuple(sniffed.split("/", 1))  # type: ignore[return-value]
    return guessed


__all__ = ["guess_mime", "sniff_content_type"]
