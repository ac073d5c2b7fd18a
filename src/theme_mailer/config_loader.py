# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Configuration loader for SMTP and truststore settings.

Settings live in an INI file. The ``[smtp]`` section uses the same keys as
the SMTP configuration map handed to the provider, so the result of
``load_transport_config`` can be passed straight to ``send``. Environment
variables prefixed with ``TM_SMTP_`` override the file.

Example:
    Configuration file format (mailer.ini)::

        [smtp]
        host = smtp.example.com
        port = 465
        ssl = true
        auth = true
        user = alice
        password = secret
        from = no-reply@example.com
        fromDisplayName = Example Accounts

        [truststore]
        cafile = /etc/ssl/internal-ca.pem
        hostname_verification = STRICT

    Loading::

        smtp = load_transport_config("mailer.ini")
        trust = load_trust_settings("mailer.ini")
"""

from __future__ import annotations

import configparser
import os
from dataclasses import dataclass
from pathlib import Path

from .logger import get_logger
from .trust import HostnameVerificationPolicy

logger = get_logger("ConfigLoader")

ENV_OVERRIDES = {
    "TM_SMTP_HOST": "host",
    "TM_SMTP_PORT": "port",
    "TM_SMTP_USER": "user",
    "TM_SMTP_PASSWORD": "password",
    "TM_SMTP_FROM": "from",
}

# configparser lowercases option names; map them back to the provider keys.
_CAMEL_KEYS = {
    "fromdisplayname": "fromDisplayName",
    "replyto": "replyTo",
    "replytodisplayname": "replyToDisplayName",
    "envelopefrom": "envelopeFrom",
    "connecttimeout": "connectTimeout",
}


@dataclass
class TrustSettings:
    """Truststore settings read from the ``[truststore]`` section.

    Attributes:
        cafile: PEM bundle of trusted CA certificates.
        capath: Directory of hashed CA certificates.
        policy: Hostname verification policy.
    """

    cafile: str | None = None
    capath: str | None = None
    policy: HostnameVerificationPolicy = HostnameVerificationPolicy.STRICT


def _read(config_path: str | Path) -> configparser.ConfigParser:
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    parser = configparser.ConfigParser(interpolation=None)
    parser.read(path)
    return parser


def load_transport_config(config_path: str | Path, section: str = "smtp") -> dict[str, str]:
    """Read the SMTP settings map from an INI file.

    Args:
        config_path: Path to the INI file.
        section: Section holding the SMTP keys.

    Returns:
        Dict keyed by the provider's configuration keys.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    parser = _read(config_path)
    settings: dict[str, str] = {}
    if parser.has_section(section):
        for key, value in parser.items(section):
            settings[_CAMEL_KEYS.get(key, key)] = value
    else:
        logger.warning("No [%s] section found in %s", section, config_path)

    for env_name, key in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            settings[key] = value
    return settings


def load_trust_settings(config_path: str | Path, section: str = "truststore") -> TrustSettings:
    """Read truststore settings from an INI file.

    A missing section yields the defaults (system CAs, strict hostname checks).

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If ``hostname_verification`` is not STRICT or ANY.
    """
    parser = _read(config_path)
    if not parser.has_section(section):
        return TrustSettings()

    raw_policy = parser.get(section, "hostname_verification", fallback="STRICT").strip().upper()
    try:
        policy = HostnameVerificationPolicy[raw_policy]
    except KeyError:
        raise ValueError(f"Unknown hostname_verification policy: {raw_policy}") from None

    return TrustSettings(
        cafile=parser.get(section, "cafile", fallback=None) or None,
        capath=parser.get(section, "capath", fallback=None) or None,
        policy=policy,
    )


__all__ = [
    "ENV_OVERRIDES",
    "TrustSettings",
    "load_transport_config",
    "load_trust_settings",
]
