# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Themed notification email sender.

Composes a ``multipart/mixed`` message (a text/HTML alternative plus the
attachments declared by the active email theme) and delivers it over SMTP,
in clear, with STARTTLS or with implicit TLS under a pluggable trust policy.

Components:
    EmailSenderProvider: Orchestrates one send and raises ``EmailException``.
    MessageBuilder: Builds the MIME structure and headers.
    AttachmentResolver: Loads the theme's attachment manifest.
    TransportSession: One SMTP connection for one message.
    TrustConfigurator: Turns a ``TrustProvider`` into TLS trust material.

Example:
    Sending from synchronous code::

        from theme_mailer import EmailSenderProvider, SimpleUser

        provider = EmailSenderProvider()
        provider.send_sync(
            {"host": "localhost", "port": "25", "from": "no-reply@example.com"},
            SimpleUser("bob@example.com"),
            "Verify your email",
            "Click the link to verify.",
            "<p>Click the link to verify.</p>",
        )
"""

from .attachments import AttachmentPart, AttachmentResolver, DirectoryTheme, Theme
from .config import TransportConfig
from .errors import (
    AttachmentUnavailable,
    AuthenticationError,
    ConfigurationError,
    EmailError,
    EmailException,
    InvalidAddress,
    TransmissionError,
    TransportConnectError,
    TrustSetupError,
)
from .message import MessageBuilder, MimeEnvelope
from .provider import DeliveryResult, EmailAddressSource, EmailSenderProvider, SendRequest, SimpleUser
from .smtp import SessionState, TransportOptions, TransportSession
from .trust import (
    HostnameVerificationPolicy,
    TrustConfigurator,
    TrustMaterial,
    TrustProvider,
    TruststoreProvider,
)

__version__ = "0.1.0"

__all__ = [
    "AttachmentPart",
    "AttachmentResolver",
    "AttachmentUnavailable",
    "AuthenticationError",
    "ConfigurationError",
    "DeliveryResult",
    "DirectoryTheme",
    "EmailAddressSource",
    "EmailError",
    "EmailException",
    "EmailSenderProvider",
    "HostnameVerificationPolicy",
    "InvalidAddress",
    "MessageBuilder",
    "MimeEnvelope",
    "SendRequest",
    "SessionState",
    "SimpleUser",
    "Theme",
    "TransmissionError",
    "TransportConfig",
    "TransportConnectError",
    "TransportOptions",
    "TransportSession",
    "TrustConfigurator",
    "TrustMaterial",
    "TrustProvider",
    "TrustSetupError",
    "TruststoreProvider",
]
