import logging

import pytest

from theme_mailer.logger import LOG_FORMAT, configure_logging, get_logger


@pytest.fixture
def restore_root_logging():
    root = logging.getLogger()
    level, handlers = root.level, list(root.handlers)
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_get_logger_reuses_existing_logger():
    logger = get_logger("TestLogger")
    handler_count = len(logger.handlers)

    same_logger = get_logger("TestLogger")
    assert logger is same_logger
    assert len(same_logger.handlers) == handler_count


def test_get_logger_does_not_attach_handlers():
    assert get_logger("TransportSessionProbe").handlers == []


def test_configure_logging_uses_env_level(monkeypatch, restore_root_logging):
    monkeypatch.setenv("TM_LOG_LEVEL", "debug")
    configure_logging()

    assert restore_root_logging.level == logging.DEBUG
    assert restore_root_logging.handlers[0].formatter._fmt == LOG_FORMAT


def test_configure_logging_explicit_level_wins(monkeypatch, restore_root_logging):
    monkeypatch.setenv("TM_LOG_LEVEL", "DEBUG")
    configure_logging("warning")

    assert restore_root_logging.level == logging.WARNING


def test_configure_logging_unknown_level_falls_back_to_info(restore_root_logging):
    configure_logging("chatty")

    assert restore_root_logging.level == logging.INFO
