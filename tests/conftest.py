# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Shared fixtures: in-memory themes, a fake aiosmtplib client and a free-port helper."""

from __future__ import annotations

import io
import socket
from typing import Any

import pytest

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
PDF_BYTES = b"%PDF-1.4\n" + b"0" * 32


class FakeTheme:
    """Theme serving resources from a dict and recording every stream it opens."""

    def __init__(self, resources: dict[str, bytes] | None = None, properties: dict[str, str] | None = None):
        self.resources = resources or {}
        self.properties = properties if properties is not None else {}
        self.opened: list[io.BytesIO] = []

    def get_properties(self):
        return self.properties

    def get_resource_as_stream(self, path):
        data = self.resources.get(path)
        if data is None:
            return None
        stream = io.BytesIO(data)
        self.opened.append(stream)
        return stream


class DummySMTP:
    """Stand-in for aiosmtplib.SMTP with switchable failures."""

    def __init__(self, hostname=None, port=None, use_tls=False, start_tls=None, tls_context=None, timeout=None):
        self.hostname = hostname
        self.port = port
        self.use_tls = use_tls
        self.start_tls = start_tls
        self.tls_context = tls_context
        self.timeout = timeout
        self.connect_timeout = None
        self.login_credentials = None
        self.sent: list[dict[str, Any]] = []
        self.is_connected = False
        self.quit_called = False
        self.close_called = False
        self.connect_error: Exception | None = None
        self.login_error: Exception | None = None
        self.send_error: Exception | None = None
        self.quit_error: Exception | None = None

    async def connect(self, timeout=None):
        self.connect_timeout = timeout
        if self.connect_error:
            raise self.connect_error
        self.is_connected = True

    async def login(self, user, password):
        if self.login_error:
            raise self.login_error
        self.login_credentials = (user, password)

    async def send_message(self, message, sender=None, recipients=None):
        if self.send_error:
            raise self.send_error
        self.sent.append({"message": message, "sender": sender, "recipients": recipients})

    async def quit(self):
        self.quit_called = True
        if self.quit_error:
            raise self.quit_error
        self.is_connected = False

    def close(self):
        self.close_called = True
        self.is_connected = False


class SmtpFactory:
    """Records created DummySMTP clients; ``failures`` are preset on every new client."""

    def __init__(self):
        self.created: list[DummySMTP] = []
        self.failures: dict[str, Exception] = {}

    def __call__(self, **kwargs):
        smtp = DummySMTP(**kwargs)
        for name, error in self.failures.items():
            setattr(smtp, name, error)
        self.created.append(smtp)
        return smtp


@pytest.fixture
def fake_smtp(monkeypatch):
    factory = SmtpFactory()
    monkeypatch.setattr("theme_mailer.smtp.session.aiosmtplib.SMTP", factory)
    return factory


@pytest.fixture
def theme_dir(tmp_path):
    """A theme on disk declaring a logo, a PDF and a missing file."""
    base = tmp_path / "email-theme"
    (base / "resources" / "img").mkdir(parents=True)
    (base / "resources" / "docs").mkdir()
    (base / "resources" / "img" / "logo.png").write_bytes(PNG_BYTES)
    (base / "resources" / "docs" / "terms.pdf").write_bytes(PDF_BYTES)
    (base / "theme.properties").write_text(
        "# email theme\n"
        "parent=base\n"
        "attachments=img/logo.png,docs/terms.pdf,img/missing.png\n",
        encoding="utf-8",
    )
    return base


def get_free_port() -> int:
    """Find a free port on localhost."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        s.listen(1)
        port = s.getsockname()[1]
    return port
