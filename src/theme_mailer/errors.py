# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Error taxonomy for message composition and SMTP delivery.

Every failure kind raised inside the pipeline derives from ``EmailError``
and carries a stable ``code``. The orchestrator converts whatever reaches it
into a single ``EmailException`` so callers only ever handle one type; the
original error stays reachable through ``cause`` and ``__cause__``.
"""

from __future__ import annotations


class EmailError(RuntimeError):
    """Base class for every failure kind of the send pipeline."""

    code = "email_error"

    def __init__(self, message: str):
        super().__init__(message)


class InvalidAddress(EmailError):
    """Raised when a From, Reply-To or recipient address is empty or malformed."""

    code = "invalid_address"

    def __init__(self, message: str = "Please provide a valid address", address: str | None = None):
        super().__init__(message)
        self.address = address


class ConfigurationError(EmailError):
    """Raised when the SMTP configuration map cannot be turned into a TransportConfig."""

    code = "invalid_configuration"


class AttachmentUnavailable(EmailError):
    """A declared theme attachment could not be opened or read.

    Never escapes the attachment resolver: it is logged and the file skipped.
    """

    code = "attachment_unavailable"

    def __init__(self, path: str, reason: str):
        super().__init__(f"Attachment {path} unavailable: {reason}")
        self.path = path
        self.reason = reason


class TrustSetupError(EmailError):
    """Raised when TLS trust material cannot be built."""

    code = "trust_setup_failed"


class TransportConnectError(EmailError):
    """Raised on DNS, connect, timeout or TLS handshake failure."""

    code = "connect_failed"


class AuthenticationError(EmailError):
    """Raised when credentials are missing or rejected by the server."""

    code = "authentication_failed"


class TransmissionError(EmailError):
    """Raised when the server rejects the sender, the recipient or the data."""

    code = "transmission_failed"

    def __init__(self, message: str, smtp_code: int | None = None):
        super().__init__(message)
        self.smtp_code = smtp_code


class EmailException(Exception):
    """The single error type surfaced to callers of ``EmailSenderProvider.send``."""

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause

    @property
    def code(self) -> str:
        """Code of the wrapped failure kind, ``unexpected_error`` for foreign exceptions."""
        if isinstance(self.cause, EmailError):
            return self.cause.code
        return "unexpected_error"


__all__ = [
    "AttachmentUnavailable",
    "AuthenticationError",
    "ConfigurationError",
    "EmailError",
    "EmailException",
    "InvalidAddress",
    "TransmissionError",
    "TransportConnectError",
    "TrustSetupError",
]
