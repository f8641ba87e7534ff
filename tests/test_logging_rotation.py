import logging
from logging.handlers import RotatingFileHandler

import pytest

from tokenstore import logging_setup
from tokenstore.infrastructure import log_utils

LOGGER_TAG = "TEST"


@pytest.fixture
def temp_logger(tmp_path):
    log_path = tmp_path / "tokenstore.log"
    logging_setup.configure_logging(log_path=log_path, force=True)
    adapter = logging_setup.get_logger(LOGGER_TAG)
    base_logger = logging.getLogger(logging_setup.LOGGER_NAME)
    try:
        yield adapter, base_logger, log_path
    finally:
        logging_setup.reset_logging()


def test_rotating_handler_defaults(temp_logger):
    adapter, base_logger, log_path = temp_logger
    rotating_handlers = [h for h in base_logger.handlers if isinstance(h, RotatingFileHandler)]
    assert rotating_handlers, "Expected at least one rotating handler"
    handler = rotating_handlers[0]
    assert handler.maxBytes == logging_setup.DEFAULT_MAX_BYTES
    assert handler.backupCount == logging_setup.DEFAULT_BACKUP_COUNT
    assert handler.baseFilename == str(log_path)


def test_rotating_handler_rollover(tmp_path):
    log_path = tmp_path / "tokenstore.log"
    base_logger = logging.getLogger(logging_setup.LOGGER_NAME)
    logging_setup.configure_logging(
        log_path=log_path,
        force=True,
        max_bytes=512,
        backup_count=2,
    )
    adapter = logging_setup.get_logger(LOGGER_TAG)
    try:
        payload = "x" * 256
        for _ in range(10):
            adapter.info(payload)
        for handler in base_logger.handlers:
            handler.flush()
        assert log_path.exists()
        assert log_path.with_name("tokenstore.log.1").exists()
    finally:
        logging_setup.reset_logging()


def test_log_message_writes_tag_and_level(temp_logger):
    _, base_logger, log_path = temp_logger

    log_utils.log_message("token saved", "WARN", tag="STORE")
    log_utils.log_message("odd level", "LOUD", tag="STORE")
    for handler in base_logger.handlers:
        handler.flush()

    content = log_path.read_text(encoding="utf-8")
    assert "[WARNING] [STORE] token saved" in content
    assert "unknown log level 'LOUD'" in content
    assert "[INFO] [STORE] odd level" in content


def test_log_message_without_tag_uses_default(temp_logger):
    _, base_logger, log_path = temp_logger

    log_utils.log_message("untagged")
    for handler in base_logger.handlers:
        handler.flush()

    assert f"[INFO] [{logging_setup.DEFAULT_TAG}] untagged" in log_path.read_text(encoding="utf-8")


def test_configure_logging_is_idempotent_without_force(temp_logger):
    _, base_logger, _ = temp_logger
    handlers = list(base_logger.handlers)

    logging_setup.configure_logging()

    assert base_logger.handlers == handlers
