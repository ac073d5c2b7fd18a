# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""MIME message construction.

``MessageBuilder`` produces the structure mail clients expect for a
notification with theme assets::

    multipart/mixed
    ├── multipart/alternative
    │   ├── text/plain; charset="utf-8"   (when a text body is given)
    │   └── text/html; charset="utf-8"    (when an HTML body is given)
    ├── image/png   Content-Disposition: attachment; filename="logo.png"
    └── ...

Clients render the last alternative they support, so HTML always follows
the plain text part.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from email.errors import HeaderParseError
from email.headerregistry import Address
from email.message import EmailMessage, MIMEPart
from email.policy import default as default_policy
from email.utils import format_datetime, make_msgid

from .attachments import AttachmentPart
from .errors import InvalidAddress
from .logger import get_logger

logger = get_logger("MessageBuilder")


def parse_address(email: str | None, display_name: str | None = None) -> Address:
    """Validate ``email`` and pair it with an optional display name.

    A blank display name is ignored. Non-ASCII display names are encoded as
    UTF-8 when the header is serialized.

    Raises:
        InvalidAddress: If ``email`` is None, blank or not a valid addr-spec.
    """
    if email is None or not email.strip():
        raise InvalidAddress("Please provide a valid address", address=email)
    try:
        if display_name is None or not display_name.strip():
            return Address(addr_spec=email.strip())
        return Address(display_name=display_name.strip(), addr_spec=email.strip())
    except (ValueError, HeaderParseError, IndexError) as exc:
        raise InvalidAddress(f"Invalid address: {email}", address=email) from exc


def parse_recipient(value: str | None) -> str:
    """Return the bare addr-spec to deliver to for a recipient value.

    ``value`` is read like a To header, so both ``bob@example.com`` and
    ``Bob <bob@example.com>`` are accepted and yield ``bob@example.com``.

    Raises:
        InvalidAddress: If ``value`` is None, blank, malformed, or holds
            anything other than exactly one mailbox.
    """
    if value is None or not value.strip():
        raise InvalidAddress("Please provide a valid address", address=value)
    try:
        addresses = default_policy.header_factory("To", value.strip()).addresses
    except (ValueError, HeaderParseError, IndexError) as exc:
        raise InvalidAddress(f"Invalid address: {value}", address=value) from exc
    if len(addresses) != 1 or not addresses[0].username or not addresses[0].domain:
        raise InvalidAddress(f"Invalid address: {value}", address=value)
    return addresses[0].addr_spec


@dataclass
class MimeEnvelope:
    """A built message plus the envelope data the transport needs.

    Attributes:
        message: The ``multipart/mixed`` message.
        from_address: Bare From address.
        envelope_from: Explicit bounce address, None when From is used.
        attachment_count: Number of attachment parts after the alternative part.
    """

    message: EmailMessage
    from_address: str
    envelope_from: str | None = None
    attachment_count: int = 0

    @property
    def mail_from(self) -> str:
        """Address used for SMTP ``MAIL FROM``."""
        return self.envelope_from or self.from_address


class MessageBuilder:
    """Assemble notification messages."""

    @staticmethod
    def build_alternative(text_body: str | None, html_body: str | None) -> MIMEPart:
        """Build the ``multipart/alternative`` part, text first then HTML."""
        alternative = MIMEPart()
        alternative.make_alternative()
        if text_body is not None:
            text_part = MIMEPart()
            text_part.set_content(text_body, subtype="plain", charset="utf-8")
            alternative.attach(text_part)
        if html_body is not None:
            html_part = MIMEPart()
            html_part.set_content(html_body, subtype="html", charset="utf-8")
            alternative.attach(html_part)
        return alternative

    @staticmethod
    def build_attachment(attachment: AttachmentPart) -> MIMEPart:
        part = MIMEPart()
        part.set_content(
            attachment.data,
            maintype=attachment.maintype,
            subtype=attachment.subtype,
            disposition="attachment",
            filename=attachment.filename,
        )
        return part

    def build(
        self,
        subject: str,
        text_body: str | None,
        html_body: str | None,
        attachments: Sequence[AttachmentPart],
        from_addr: str | None,
        from_name: str | None = None,
        reply_to_addr: str | None = None,
        reply_to_name: str | None = None,
        envelope_from: str | None = None,
        to_address: str | None = None,
    ) -> MimeEnvelope:
        """Build the full message.

        Args:
            subject: Subject line, UTF-8 encoded when needed.
            text_body: Plain text rendering, or None.
            html_body: HTML rendering, or None.
            attachments: Resolved attachment parts, kept in order.
            from_addr: From address.
            from_name: Optional From display name.
            reply_to_addr: Reply-To address; From is used when empty.
            reply_to_name: Optional Reply-To display name.
            envelope_from: Optional bounce address for ``MAIL FROM``.
            to_address: Value of the To header, set verbatim.

        Returns:
            The built ``MimeEnvelope``.

        Raises:
            InvalidAddress: If From, Reply-To or the To value is blank or malformed.
        """
        sender = parse_address(from_addr, from_name)
        reply_to = sender
        if reply_to_addr:
            reply_to = parse_address(reply_to_addr, reply_to_name)
        if to_address is None or not to_address.strip():
            raise InvalidAddress("Please provide a valid recipient address", address=to_address)

        msg = EmailMessage()
        msg.make_mixed()
        msg.attach(self.build_alternative(text_body, html_body))
        for attachment in attachments:
            msg.attach(self.build_attachment(attachment))

        try:
            msg["From"] = sender
            msg["Reply-To"] = reply_to
            msg["To"] = to_address
        except ValueError as exc:
            raise InvalidAddress(f"Invalid address header: {exc}", address=to_address) from exc
        msg["Subject"] = subject or ""
        msg["Date"] = format_datetime(datetime.now(timezone.utc))
        msg["Message-ID"] = make_msgid(domain=sender.domain or None)
        msg["MIME-Version"] = "1.0"

        logger.debug(
            "Built message for %s with %d attachment(s)", to_address, len(attachments)
        )
        return MimeEnvelope(
            message=msg,
            from_address=sender.addr_spec,
            envelope_from=envelope_from.strip() if envelope_from and envelope_from.strip() else None,
            attachment_count=len(attachments),
        )


__all__ = ["MessageBuilder", "MimeEnvelope", "parse_address", "parse_recipient"]
