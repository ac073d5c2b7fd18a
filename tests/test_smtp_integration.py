"""Tests with real SMTP server using aiosmtpd."""

from email import message_from_bytes, policy
from typing import Any

import pytest
from aiosmtpd.controller import Controller

from conftest import PNG_BYTES, FakeTheme, get_free_port
from theme_mailer import EmailException, EmailSenderProvider, SimpleUser
from theme_mailer.errors import TransmissionError, TransportConnectError


class CapturingHandler:
    """SMTP handler that captures received messages."""

    def __init__(self):
        self.messages: list[dict[str, Any]] = []
        self.unknown_recipients: set[str] = set()
        self.reject_next = False

    async def handle_RCPT(self, server, session, envelope, address, rcpt_options):
        """Handle RCPT TO command."""
        if address in self.unknown_recipients:
            return "550 Mailbox not found"
        envelope.rcpt_tos.append(address)
        return "250 OK"

    async def handle_DATA(self, server, session, envelope):
        """Handle DATA command - capture the message."""
        if self.reject_next:
            self.reject_next = False
            return "554 Message rejected"

        self.messages.append({
            "from": envelope.mail_from,
            "to": envelope.rcpt_tos,
            "data": envelope.content,
        })
        return "250 Message accepted for delivery"


@pytest.fixture
def smtp_handler():
    """Create a fresh SMTP handler."""
    return CapturingHandler()


@pytest.fixture
def smtp_server(smtp_handler):
    """Start a fake SMTP server on a free port."""
    port = get_free_port()
    controller = Controller(smtp_handler, hostname="127.0.0.1", port=port)
    controller.start()
    yield controller, port
    controller.stop()


def smtp_config(port: int, **extra) -> dict[str, str]:
    config = {"host": "127.0.0.1", "port": str(port), "from": "no-reply@example.com"}
    config.update(extra)
    return config


async def test_send_email_via_real_smtp(smtp_server, smtp_handler):
    """A themed message reaches the server with its attachment."""
    _, port = smtp_server
    theme = FakeTheme(resources={"img/logo.png": PNG_BYTES}, properties={"attachments": "img/logo.png"})
    provider = EmailSenderProvider(theme=theme)

    await provider.send(
        smtp_config(port, fromDisplayName="Accounts", envelopeFrom="bounces@example.com"),
        SimpleUser("bob@example.com"),
        "Verify your email",
        "Click the link.",
        "<p>Click the link.</p>",
    )

    assert len(smtp_handler.messages) == 1
    received = smtp_handler.messages[0]
    assert received["from"] == "bounces@example.com"
    assert received["to"] == ["bob@example.com"]

    msg = message_from_bytes(received["data"], policy=policy.default)
    assert msg["Subject"] == "Verify your email"
    assert msg["From"] == "Accounts <no-reply@example.com>"
    assert msg["Reply-To"] == "Accounts <no-reply@example.com>"
    assert msg.get_content_type() == "multipart/mixed"
    alternative, logo = list(msg.iter_parts())
    assert [p.get_content_type() for p in alternative.iter_parts()] == ["text/plain", "text/html"]
    assert logo.get_filename() == "logo.png"
    assert logo.get_content() == PNG_BYTES


async def test_refused_recipient_fails_send(smtp_server, smtp_handler):
    """A 550 on RCPT surfaces as one EmailException with the SMTP code."""
    _, port = smtp_server
    smtp_handler.unknown_recipients.add("ghost@example.com")

    with pytest.raises(EmailException) as exc_info:
        await EmailSenderProvider().send(smtp_config(port), SimpleUser("ghost@example.com"), "Hi", "text")

    assert isinstance(exc_info.value.cause, TransmissionError)
    assert exc_info.value.cause.smtp_code == 550
    assert smtp_handler.messages == []


async def test_rejected_data_reports_code(smtp_server, smtp_handler):
    _, port = smtp_server
    smtp_handler.reject_next = True

    result = await EmailSenderProvider().deliver(smtp_config(port), SimpleUser("bob@example.com"), "Hi", "text")

    assert result.status == "error"
    assert result.smtp_code == 554


async def test_unreachable_server():
    port = get_free_port()

    with pytest.raises(EmailException) as exc_info:
        await EmailSenderProvider().send(
            smtp_config(port, connectTimeout="2"), SimpleUser("bob@example.com"), "Hi", "text"
        )

    assert isinstance(exc_info.value.cause, TransportConnectError)
