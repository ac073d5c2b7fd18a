# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Single-use SMTP transport session.

A ``TransportSession`` carries one message over one connection::

    IDLE -> CONFIGURING -> CONNECTED -> SENT -> CLOSED

``CLOSED`` is reached from every state, failures included: the connection
opened in ``CONNECTED`` is always released before ``send`` returns or raises.

TLS behavior:
- ``ssl`` set: implicit TLS from the first byte (typically port 465)
- ``starttls`` set: plain connect, then STARTTLS is required (typically 587)
- neither: plain SMTP, STARTTLS is never attempted

Each underlying failure is mapped to one error kind: connect/handshake to
``TransportConnectError``, login to ``AuthenticationError``, rejected
envelope or data to ``TransmissionError``.
"""

from __future__ import annotations

import asyncio
import ssl
from dataclasses import dataclass
from enum import Enum

import aiosmtplib

from ..config import TransportConfig
from ..errors import AuthenticationError, TransmissionError, TransportConnectError
from ..logger import get_logger
from ..message import MimeEnvelope, parse_recipient
from ..trust import TrustConfigurator, TrustMaterial

TRUST_ALL_HOSTS = "*"


class SessionState(Enum):
    IDLE = "idle"
    CONFIGURING = "configuring"
    CONNECTED = "connected"
    SENT = "sent"
    CLOSED = "closed"


@dataclass(frozen=True)
class TransportOptions:
    """Protocol options derived from a ``TransportConfig`` and its trust material.

    Attributes:
        host: SMTP server hostname.
        port: SMTP server port, None for the client default.
        auth: Whether login is performed after connecting.
        use_tls: Implicit TLS.
        start_tls: Mandatory STARTTLS upgrade.
        tls_context: SSL context installed on the client, None for the default.
        ssl_trust: ``"*"`` when any host name is accepted, else None.
        connect_timeout: Seconds allowed for connect and handshake.
        timeout: Seconds allowed for each SMTP command.
    """

    host: str
    port: int | None
    auth: bool
    use_tls: bool
    start_tls: bool
    tls_context: ssl.SSLContext | None
    ssl_trust: str | None
    connect_timeout: float
    timeout: float


class TransportSession:
    """Connect, authenticate, send one message and close."""

    def __init__(self, trust: TrustConfigurator | None = None):
        self._trust = trust or TrustConfigurator()
        self.state = SessionState.IDLE
        self.options: TransportOptions | None = None
        self.logger = get_logger("TransportSession")

    def configure(self, config: TransportConfig) -> TransportOptions:
        """Derive the protocol options, resolving trust material when encryption is requested.

        Raises:
            TrustSetupError: If the trust provider cannot build its material.
        """
        self.state = SessionState.CONFIGURING
        material = self._trust.configure() if config.encrypted else TrustMaterial()
        self.options = TransportOptions(
            host=config.host,
            port=config.port,
            auth=config.auth,
            use_tls=config.ssl,
            # aiosmtplib refuses start_tls together with use_tls
            start_tls=config.starttls and not config.ssl,
            tls_context=material.ssl_context,
            ssl_trust=TRUST_ALL_HOSTS if material.hostname_verification_disabled else None,
            connect_timeout=config.connect_timeout,
            timeout=config.timeout,
        )
        return self.options

    def _create_client(self, options: TransportOptions) -> aiosmtplib.SMTP:
        return aiosmtplib.SMTP(
            hostname=options.host,
            port=options.port,
            use_tls=options.use_tls,
            start_tls=options.start_tls,
            tls_context=options.tls_context,
            timeout=options.timeout,
        )

    async def _connect(self, smtp: aiosmtplib.SMTP, options: TransportOptions) -> None:
        try:
            await smtp.connect(timeout=options.connect_timeout)
        except (aiosmtplib.SMTPException, ssl.SSLError, OSError, asyncio.TimeoutError) as exc:
            raise TransportConnectError(
                f"Could not connect to {options.host}:{options.port or 'default'}: {exc}"
            ) from exc
        # connect() keeps its timeout for later commands
        smtp.timeout = options.timeout
        self.state = SessionState.CONNECTED

    async def _login(self, smtp: aiosmtplib.SMTP, config: TransportConfig) -> None:
        if not config.user or not config.password:
            raise AuthenticationError("SMTP auth is enabled but user or password is missing")
        try:
            await smtp.login(config.user, config.password)
        except (aiosmtplib.SMTPException, asyncio.TimeoutError) as exc:
            raise AuthenticationError(f"SMTP authentication failed: {exc}") from exc

    async def _close(self, smtp: aiosmtplib.SMTP) -> None:
        if smtp.is_connected:
            try:
                await smtp.quit()
            except (aiosmtplib.SMTPException, OSError, asyncio.TimeoutError) as exc:
                self.logger.warning("Failed to close transport: %s", exc)
                smtp.close()
        self.state = SessionState.CLOSED

    async def send(self, config: TransportConfig, envelope: MimeEnvelope, recipient_address: str) -> None:
        """Deliver ``envelope`` to exactly one wire recipient.

        The To header inside the message is not consulted: ``recipient_address``
        alone decides where the message goes. A display name in it
        (``Bob <bob@example.com>``) is dropped from the RCPT target.

        Raises:
            InvalidAddress: If ``recipient_address`` is blank or malformed.
            TrustSetupError: If encryption is requested and trust setup fails.
            TransportConnectError: On DNS, connect, timeout or TLS failure.
            AuthenticationError: On missing or rejected credentials.
            TransmissionError: When the server rejects the message.
        """
        recipient = parse_recipient(recipient_address)
        options = self.configure(config)
        smtp = self._create_client(options)
        try:
            await self._connect(smtp, options)
            if options.auth:
                await self._login(smtp, config)
            try:
                await smtp.send_message(
                    envelope.message,
                    sender=envelope.mail_from,
                    recipients=[recipient],
                )
            except aiosmtplib.SMTPRecipientsRefused as exc:
                smtp_code = exc.recipients[0].code if exc.recipients else None
                raise TransmissionError(f"Recipient refused: {exc}", smtp_code=smtp_code) from exc
            except aiosmtplib.SMTPResponseException as exc:
                raise TransmissionError(f"SMTP server rejected message: {exc}", smtp_code=exc.code) from exc
            except (aiosmtplib.SMTPException, OSError, asyncio.TimeoutError) as exc:
                raise TransmissionError(f"Message transmission failed: {exc}") from exc
            self.state = SessionState.SENT
            self.logger.debug("Message sent to %s via %s", recipient, options.host)
        finally:
            await self._close(smtp)


__all__ = [
    "SessionState",
    "TRUST_ALL_HOSTS",
    "TransportOptions",
    "TransportSession",
]
