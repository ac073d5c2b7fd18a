# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Logging utilities for the theme mailer.

Library modules only ask for named loggers through ``get_logger``; handlers,
levels and formats are the business of the entry point, which calls
``configure_logging`` once.

Example:
    Typical usage in a module::

        from theme_mailer.logger import get_logger

        logger = get_logger("TransportSession")
        logger.debug("Connecting to %s", host)
"""

from __future__ import annotations

import logging
import os

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def get_logger(name: str = "ThemeMailer") -> logging.Logger:
    """Retrieve a logger instance bound to ``name``.

    No handler is attached here, so importing the library never changes the
    host application's logging setup.

    Args:
        name: The logger name. Defaults to "ThemeMailer".

    Returns:
        A ``logging.Logger`` instance bound to the given name.
    """
    return logging.getLogger(name)


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for command-line entry points.

    Args:
        level: Level name (``DEBUG``, ``INFO``...). When omitted the
            ``TM_LOG_LEVEL`` environment variable is used, then ``INFO``.
    """
    level_name = (level or os.getenv("TM_LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
        force=True,
    )
