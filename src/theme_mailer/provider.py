# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Email sender provider: the single entry point for notifications.

``EmailSenderProvider.send`` validates the SMTP settings, resolves the
recipient, builds the message with the theme's attachments and hands it to
a fresh ``TransportSession``. Whatever goes wrong along the way is logged
once here and re-raised as ``EmailException`` with the original error
chained, so callers handle exactly one exception type.

Example:
    Sending a password reset notification::

        from theme_mailer import DirectoryTheme, EmailSenderProvider, SimpleUser

        provider = EmailSenderProvider(theme=DirectoryTheme("/opt/themes/corporate/email"))
        await provider.send(
            {"host": "smtp.example.com", "port": "465", "ssl": "true",
             "auth": "true", "user": "alice", "password": "secret",
             "from": "no-reply@example.com"},
            SimpleUser("bob@example.com"),
            "Reset",
            "reset your password",
            None,
        )
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, Protocol, runtime_checkable

from .attachments import AttachmentPart, AttachmentResolver, Theme
from .config import TransportConfig
from .errors import EmailException
from .logger import get_logger
from .message import MessageBuilder, parse_recipient
from .smtp import TransportSession
from .trust import TrustConfigurator, TrustProvider


@runtime_checkable
class EmailAddressSource(Protocol):
    """Anything that knows the address to notify (a user model, typically)."""

    email: str | None


@dataclass(frozen=True)
class SimpleUser:
    """Minimal ``EmailAddressSource``."""

    email: str | None


@dataclass(frozen=True)
class SendRequest:
    """Inputs of one send, fixed for its whole duration."""

    config: Mapping[str, str]
    recipient_address: str | None
    subject: str
    text_body: str | None = None
    html_body: str | None = None


@dataclass
class DeliveryResult:
    """Outcome of ``EmailSenderProvider.deliver``.

    Attributes:
        status: ``sent`` or ``error``.
        recipient: Address the message was meant for.
        timestamp: ISO-8601 UTC time of the outcome.
        error: Description of the failure.
        error_code: Code of the failure kind (see ``theme_mailer.errors``).
        smtp_code: SMTP reply code when the server rejected the message.
    """

    status: Literal["sent", "error"]
    recipient: str | None
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    error: str | None = None
    error_code: str | None = None
    smtp_code: int | None = None

    @property
    def ok(self) -> bool:
        return self.status == "sent"

    def as_dict(self) -> dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}


class EmailSenderProvider:
    """Compose and deliver themed notification emails.

    Args:
        theme: Email theme supplying the ``attachments`` manifest. Without a
            theme messages carry no attachments.
        trust_provider: Source of TLS trust settings, consulted only when
            ``ssl`` or ``starttls`` is requested. None means the system trust
            store with strict hostname verification.
        builder: Message builder, replaceable for customization.
        session_factory: Callable returning a new ``TransportSession`` per send.
    """

    def __init__(
        self,
        theme: Theme | None = None,
        trust_provider: TrustProvider | None = None,
        builder: MessageBuilder | None = None,
        session_factory: Callable[[], TransportSession] | None = None,
    ):
        self.theme = theme
        self.trust = TrustConfigurator(trust_provider)
        self.builder = builder or MessageBuilder()
        self._session_factory = session_factory or self._default_session
        self.logger = get_logger("EmailSenderProvider")

    def _default_session(self) -> TransportSession:
        return TransportSession(self.trust)

    def retrieve_email_address(self, user: EmailAddressSource) -> str | None:
        """Return the address to notify; override to read it from elsewhere."""
        return user.email

    def resolve_attachments(self) -> list[AttachmentPart]:
        if self.theme is None:
            return []
        return AttachmentResolver(self.theme).resolve()

    async def send(
        self,
        config: Mapping[str, str],
        user: EmailAddressSource,
        subject: str,
        text_body: str | None = None,
        html_body: str | None = None,
    ) -> None:
        """Send one notification to ``user``.

        Raises:
            EmailException: On any failure; ``cause`` holds the original error.
        """
        recipient_address = self._resolve_recipient(user)
        await self._dispatch(SendRequest(config, recipient_address, subject, text_body, html_body))

    def _resolve_recipient(self, user: EmailAddressSource) -> str | None:
        try:
            return self.retrieve_email_address(user)
        except Exception as exc:
            raise self._failure(exc) from exc

    def _failure(self, exc: Exception) -> EmailException:
        self.logger.error("Failed to send email: %s", exc, exc_info=exc)
        return EmailException(f"Failed to send email: {exc}", cause=exc)

    async def _dispatch(self, request: SendRequest) -> None:
        try:
            await self._send(request)
        except Exception as exc:
            raise self._failure(exc) from exc

    async def _send(self, request: SendRequest) -> None:
        settings = TransportConfig.from_mapping(request.config)
        recipient = parse_recipient(request.recipient_address)
        envelope = self.builder.build(
            subject=request.subject,
            text_body=request.text_body,
            html_body=request.html_body,
            attachments=self.resolve_attachments(),
            from_addr=settings.from_address,
            from_name=settings.from_display_name,
            reply_to_addr=settings.reply_to,
            reply_to_name=settings.reply_to_display_name,
            envelope_from=settings.envelope_from,
            to_address=request.recipient_address,
        )
        session = self._session_factory()
        await session.send(settings, envelope, recipient)
        self.logger.info("Email sent to %s (%d attachment(s))", recipient, envelope.attachment_count)

    async def deliver(
        self,
        config: Mapping[str, str],
        user: EmailAddressSource,
        subject: str,
        text_body: str | None = None,
        html_body: str | None = None,
    ) -> DeliveryResult:
        """Like ``send`` but report the outcome as a ``DeliveryResult`` instead of raising.

        ``recipient`` is the address returned by ``retrieve_email_address``,
        None when the hook itself failed.
        """
        recipient = None
        try:
            recipient = self._resolve_recipient(user)
            await self._dispatch(SendRequest(config, recipient, subject, text_body, html_body))
        except EmailException as exc:
            return DeliveryResult(
                status="error",
                recipient=recipient,
                error=str(exc.cause or exc),
                error_code=exc.code,
                smtp_code=getattr(exc.cause, "smtp_code", None),
            )
        return DeliveryResult(status="sent", recipient=recipient)

    def send_sync(
        self,
        config: Mapping[str, str],
        user: EmailAddressSource,
        subject: str,
        text_body: str | None = None,
        html_body: str | None = None,
    ) -> None:
        """Run ``send`` to completion on the calling thread.

        Must not be called from a running event loop.
        """
        asyncio.run(self.send(config, user, subject, text_body, html_body))

    def close(self) -> None:
        """Nothing is pooled between sends; kept for provider lifecycle symmetry."""


__all__ = [
    "DeliveryResult",
    "EmailAddressSource",
    "EmailSenderProvider",
    "SendRequest",
    "SimpleUser",
]
