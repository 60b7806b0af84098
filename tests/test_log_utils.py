"""
Tests for logger configuration.
"""

import logging

import pytest
from rich.logging import RichHandler

from releasecache import log_utils

pytestmark = [pytest.mark.unit]


@pytest.fixture(autouse=True)
def _restore_logger():
    level = log_utils.logger.level
    handlers = list(log_utils.logger.handlers)
    yield
    for handler in list(log_utils.logger.handlers):
        if handler not in handlers:
            log_utils.logger.removeHandler(handler)
            handler.close()
    log_utils.logger.setLevel(level)
    for handler in handlers:
        handler.setLevel(level)


def test_console_handler_installed():
    assert any(isinstance(h, RichHandler) for h in log_utils.logger.handlers)
    assert log_utils.logger.propagate is False


def test_set_log_level():
    log_utils.set_log_level("debug")
    assert log_utils.logger.level == logging.DEBUG
    assert all(h.level == logging.DEBUG for h in log_utils.logger.handlers)


def test_set_invalid_log_level_keeps_current():
    before = log_utils.logger.level
    log_utils.set_log_level("chatty")
    assert log_utils.logger.level == before


def test_add_file_logging(tmp_path):
    log_utils.add_file_logging(tmp_path / "logs", "DEBUG")
    log_utils.logger.info("written to file")
    for handler in log_utils.logger.handlers:
        handler.flush()

    content = (tmp_path / "logs" / "releasecache.log").read_text()
    assert "written to file" in content
