# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""SMTP transport subsystem.

- TransportSession: one connection, one message, always closed
- TransportOptions: protocol options derived from the configuration
- SessionState: lifecycle states of a session
"""

from .session import TRUST_ALL_HOSTS, SessionState, TransportOptions, TransportSession

__all__ = [
    "SessionState",
    "TRUST_ALL_HOSTS",
    "TransportOptions",
    "TransportSession",
]
