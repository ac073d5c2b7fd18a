# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""TLS trust material for encrypted SMTP connections.

The transport never reaches for process-wide trust settings. A
``TrustProvider`` is injected into the provider/session and consulted only
when ``ssl`` or ``starttls`` is requested. ``TrustConfigurator`` turns what
the provider exposes into ``TrustMaterial``: the ``ssl.SSLContext`` to hand
to the SMTP client and whether hostname verification is bypassed.

Warning:
    ``HostnameVerificationPolicy.ANY`` accepts a certificate issued for any
    host name. It exists for servers behind self-signed or internal CAs
    whose certificates do not match the configured host, and makes the
    connection open to interception by anyone holding a trusted
    certificate. The certificate chain is still verified against the
    truststore.
"""

from __future__ import annotations

import ssl
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable

from .errors import TrustSetupError
from .logger import get_logger

logger = get_logger("TrustConfigurator")


class HostnameVerificationPolicy(Enum):
    """How the server certificate's host name is checked."""

    STRICT = "STRICT"
    ANY = "ANY"


@runtime_checkable
class TrustProvider(Protocol):
    """Source of TLS trust settings. Implementations must be safe to share across sends.

    ``get_ssl_context`` must return a new context on every call, or None.
    Under policy ``ANY`` the configurator turns ``check_hostname`` off on
    the returned context, so a context cached by the provider would carry
    that change into later connections.
    """

    @property
    def policy(self) -> HostnameVerificationPolicy: ...

    def get_ssl_context(self) -> ssl.SSLContext | None: ...


@dataclass(frozen=True)
class TrustMaterial:
    """Trust settings resolved for one connection.

    Attributes:
        ssl_context: Context installed on the SMTP client, ``None`` for the
            client's default context.
        hostname_verification_disabled: True when the trust scope is the
            wildcard (any host name accepted).
    """

    ssl_context: ssl.SSLContext | None = None
    hostname_verification_disabled: bool = False


class TruststoreProvider:
    """Trust provider backed by a CA bundle and/or a CA directory.

    Without ``cafile`` and ``capath`` the system trust store is used and
    ``get_ssl_context`` returns ``None``. A fresh context is built on every
    call, so concurrent sends never share a mutable context.
    """

    def __init__(
        self,
        cafile: str | None = None,
        capath: str | None = None,
        policy: HostnameVerificationPolicy = HostnameVerificationPolicy.STRICT,
    ):
        self.cafile = cafile
        self.capath = capath
        self._policy = policy

    @classmethod
    def from_settings(cls, settings) -> TruststoreProvider:
        """Build from a ``config_loader.TrustSettings``."""
        return cls(cafile=settings.cafile, capath=settings.capath, policy=settings.policy)

    @property
    def policy(self) -> HostnameVerificationPolicy:
        return self._policy

    def get_ssl_context(self) -> ssl.SSLContext | None:
        if not self.cafile and not self.capath:
            return None
        return ssl.create_default_context(cafile=self.cafile, capath=self.capath)


class TrustConfigurator:
    """Resolve ``TrustMaterial`` from an injected provider."""

    def __init__(self, provider: TrustProvider | None = None):
        self._provider = provider

    def configure(self) -> TrustMaterial:
        """Build the trust material for one encrypted connection.

        Raises:
            TrustSetupError: If the provider fails to produce its context or
                policy (unreadable CA file, bad PEM data...).
        """
        if self._provider is None:
            return TrustMaterial()

        try:
            context = self._provider.get_ssl_context()
            policy = self._provider.policy
        except Exception as exc:
            raise TrustSetupError(f"Failed to set up truststore: {exc}") from exc

        if policy is not HostnameVerificationPolicy.ANY:
            return TrustMaterial(ssl_context=context)

        logger.debug("Hostname verification disabled by trust policy ANY")
        # the context is owned by this connection, see TrustProvider
        try:
            if context is None:
                context = ssl.create_default_context()
            context.check_hostname = False
        except (ssl.SSLError, ValueError) as exc:
            raise TrustSetupError(f"Failed to relax hostname verification: {exc}") from exc
        return TrustMaterial(ssl_context=context, hostname_verification_disabled=True)


__all__ = [
    "HostnameVerificationPolicy",
    "TrustConfigurator",
    "TrustMaterial",
    "TrustProvider",
    "TruststoreProvider",
]
