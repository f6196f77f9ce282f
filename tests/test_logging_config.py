"""
Tests for logging setup.
"""

import logging

import pytest

from ledger_recon.utils.logging_config import get_logger, setup_logging


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logger = logging.getLogger("ledger_recon")
    for handler in logger.handlers:
        handler.close()
    logger.handlers = []


def test_repeated_setup_does_not_stack_handlers():
    setup_logging()
    logger = setup_logging(logging.DEBUG)

    assert logger.name == "ledger_recon"
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1


def test_log_file(tmp_path):
    log_file = tmp_path / "logs" / "recon.log"

    setup_logging(log_file=log_file)
    get_logger("tests").warning("written to file")
    for handler in logging.getLogger("ledger_recon").handlers:
        handler.flush()

    assert "written to file" in log_file.read_text()


def test_get_logger_is_namespaced():
    assert get_logger("matching").name == "ledger_recon.matching"
