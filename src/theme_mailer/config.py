# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Typed SMTP transport configuration.

The caller hands the provider a flat string map (the realm's SMTP settings).
``TransportConfig.from_mapping`` validates it once per send and turns it into
a frozen model with explicit defaults, so the rest of the pipeline never
probes the raw map.

Recognized keys::

    host, port, auth, ssl, starttls, from, fromDisplayName, replyTo,
    replyToDisplayName, envelopeFrom, user, password,
    connectTimeout, timeout

Flags (``auth``, ``ssl``, ``starttls``) are true only for the exact string
``"true"``. Blank values count as absent. Timeouts are in seconds.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigurationError

DEFAULT_HOST = "localhost"
DEFAULT_CONNECT_TIMEOUT = 10.0
DEFAULT_TIMEOUT = 10.0


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class TransportConfig(BaseModel):
    """SMTP settings for a single send.

    Attributes:
        host: SMTP server hostname.
        port: SMTP server port; ``None`` lets the client pick 25, 465 or 587.
        auth: Authenticate with ``user``/``password`` after connecting.
        ssl: Connect with implicit TLS.
        starttls: Upgrade a plain connection with STARTTLS.
        from_address: Visible From address.
        from_display_name: Optional display name for From.
        reply_to: Reply-To address, defaults to From when absent.
        reply_to_display_name: Optional display name for Reply-To.
        envelope_from: Bounce address used for ``MAIL FROM``.
        user: SMTP username.
        password: SMTP password.
        connect_timeout: Seconds allowed for connect and TLS handshake.
        timeout: Seconds allowed for each SMTP command.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    host: Annotated[
        str,
        Field(default=DEFAULT_HOST, min_length=1, max_length=255, description="SMTP server hostname")
    ]
    port: Annotated[
        int | None,
        Field(default=None, ge=1, le=65535, description="SMTP server port")
    ]
    auth: Annotated[bool, Field(default=False, description="Authenticate after connecting")]
    ssl: Annotated[bool, Field(default=False, description="Use implicit TLS")]
    starttls: Annotated[bool, Field(default=False, description="Upgrade with STARTTLS")]
    from_address: Annotated[
        str | None,
        Field(default=None, alias="from", description="Visible From address")
    ]
    from_display_name: Annotated[
        str | None,
        Field(default=None, alias="fromDisplayName", description="From display name")
    ]
    reply_to: Annotated[
        str | None,
        Field(default=None, alias="replyTo", description="Reply-To address")
    ]
    reply_to_display_name: Annotated[
        str | None,
        Field(default=None, alias="replyToDisplayName", description="Reply-To display name")
    ]
    envelope_from: Annotated[
        str | None,
        Field(default=None, alias="envelopeFrom", description="Envelope sender (bounce address)")
    ]
    user: Annotated[str | None, Field(default=None, description="SMTP username")]
    password: Annotated[str | None, Field(default=None, description="SMTP password")]
    connect_timeout: Annotated[
        float,
        Field(default=DEFAULT_CONNECT_TIMEOUT, gt=0, alias="connectTimeout",
              description="Connect timeout in seconds")
    ]
    timeout: Annotated[
        float,
        Field(default=DEFAULT_TIMEOUT, gt=0, description="Per-command timeout in seconds")
    ]

    @field_validator("auth", "ssl", "starttls", mode="before")
    @classmethod
    def _exact_true(cls, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        return value == "true"

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> TransportConfig:
        """Validate a raw SMTP settings map.

        Raises:
            ConfigurationError: If a value has the wrong shape (e.g. a
                non-numeric port).
        """
        present = {key: value for key, value in config.items() if not _is_blank(value)}
        try:
            return cls.model_validate(present)
        except ValidationError as exc:
            details = "; ".join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in exc.errors()
            )
            raise ConfigurationError(f"Invalid SMTP configuration: {details}") from exc

    @property
    def encrypted(self) -> bool:
        """True when either implicit TLS or STARTTLS is requested."""
        return self.ssl or self.starttls

    def masked(self) -> dict[str, Any]:
        """Dump the settings by alias with the password hidden."""
        data = self.model_dump(by_alias=True)
        if data.get("password"):
            data["password"] = "***"
        return data


__all__ = [
    "DEFAULT_CONNECT_TIMEOUT",
    "DEFAULT_HOST",
    "DEFAULT_TIMEOUT",
    "TransportConfig",
]
