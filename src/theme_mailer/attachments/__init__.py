# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Theme attachment resolution.

The active email theme declares the static files to attach to every
notification in its ``attachments`` property. ``AttachmentResolver`` turns
that manifest into ready-to-attach parts. A missing property, an unreadable
theme, or a broken file never fails the send: the problem is logged and the
file skipped.

Each file is opened twice through ``AttachmentSource``. One stream is read
for the transmitted bytes, the other only to sniff the content type, so the
two reads never share a stream position.

Example:
    Resolving the attachments of a theme on disk::

        from theme_mailer.attachments import AttachmentResolver, DirectoryTheme

        resolver = AttachmentResolver(DirectoryTheme("/opt/themes/corporate/email"))
        for part in resolver.resolve():
            print(part.filename, part.content_type, len(part.data))
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import BinaryIO

from ..errors import AttachmentUnavailable
from ..logger import get_logger
from .sniff import guess_mime, sniff_content_type
from .theme import DirectoryTheme, Theme

logger = get_logger("AttachmentResolver")

ATTACHMENTS_PROPERTY = "attachments"


@dataclass(frozen=True)
class AttachmentPart:
    """One attachment ready to be added to the message.

    Attributes:
        filename: Last segment of the theme path.
        maintype: MIME main type (e.g. ``image``).
        subtype: MIME subtype (e.g. ``png``).
        data: File content.
    """

    filename: str
    maintype: str
    subtype: str
    data: bytes

    @property
    def content_type(self) -> str:
        return f"{self.maintype}/{self.subtype}"


@dataclass
class AttachmentSource:
    """Two independent streams over the same theme resource.

    ``content`` carries the transmitted bytes; ``probe`` is read only for
    content type detection. Either may be None when the theme cannot
    provide the resource.
    """

    content: BinaryIO | None
    probe: BinaryIO | None

    @classmethod
    def open(cls, theme: Theme, path: str) -> AttachmentSource:
        """Open both streams on ``path``.

        Raises:
            AttachmentUnavailable: If the theme refuses the path or hands out
                the same stream object twice.
        """
        content = probe = None
        try:
            content = theme.get_resource_as_stream(path)
            probe = theme.get_resource_as_stream(path)
        except (OSError, ValueError) as exc:
            cls(content, probe).close()
            raise AttachmentUnavailable(path, str(exc)) from exc
        if content is not None and content is probe:
            content.close()
            raise AttachmentUnavailable(path, "theme returned a shared stream")
        return cls(content, probe)

    @property
    def available(self) -> bool:
        return self.content is not None and self.probe is not None

    def close(self) -> None:
        for stream in (self.content, self.probe):
            if stream is None:
                continue
            try:
                stream.close()
            except OSError as exc:
                logger.debug("Failed to close attachment stream: %s", exc)

    def __enter__(self) -> AttachmentSource:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class AttachmentResolver:
    """Build attachment parts from a theme's ``attachments`` manifest."""

    def __init__(self, theme: Theme, property_name: str = ATTACHMENTS_PROPERTY):
        self._theme = theme
        self._property_name = property_name

    def manifest(self) -> list[str]:
        """Return the declared attachment paths, in declaration order."""
        try:
            properties = self._theme.get_properties()
        except OSError as exc:
            logger.warning("Failed to get theme properties: %s", exc)
            return []

        raw = properties.get(self._property_name)
        if raw is None:
            logger.warning("Property %s not found in theme", self._property_name)
            return []
        return [path.strip() for path in raw.split(",") if path.strip()]

    def resolve(self) -> list[AttachmentPart]:
        """Load every attachment that can be read, skipping the others."""
        parts: list[AttachmentPart] = []
        for path in self.manifest():
            try:
                parts.append(self.load(path))
            except AttachmentUnavailable as exc:
                logger.warning("%s", exc)
            except Exception as exc:
                logger.warning("Failed to attach file: %s", path, exc_info=exc)
        return parts

    def load(self, path: str) -> AttachmentPart:
        """Read one attachment.

        Raises:
            AttachmentUnavailable: If either stream is missing or reading fails.
        """
        filename = PurePosixPath(path).name
        logger.debug("addAttachment filename: %s, path: %s", filename, path)
        with AttachmentSource.open(self._theme, path) as source:
            if not source.available:
                raise AttachmentUnavailable(path, "stream is null")
            try:
                maintype, subtype = sniff_content_type(source.probe, filename)
                data = source.content.read()
            except (OSError, ValueError) as exc:
                raise AttachmentUnavailable(path, str(exc)) from exc
        return AttachmentPart(filename=filename, maintype=maintype, subtype=subtype, data=data)


__all__ = [
    "ATTACHMENTS_PROPERTY",
    "AttachmentPart",
    "AttachmentResolver",
    "AttachmentSource",
    "DirectoryTheme",
    "Theme",
    "guess_mime",
]
