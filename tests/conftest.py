import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from tokenstore import logging_setup  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_logging(tmp_path_factory, monkeypatch):
    """Send log output to a per-test file instead of the user's config dir."""
    monkeypatch.setenv("TOKENSTORE_LOG_TO_CONSOLE", "false")
    log_path = tmp_path_factory.mktemp("logs") / "tokenstore.log"
    logging_setup.configure_logging(log_path=log_path, force=True)
    try:
        yield log_path
    finally:
        logging_setup.reset_logging()


@pytest.fixture()
def read_log(isolated_logging):
    def _read() -> str:
        for handler in logging_setup.get_logger("TEST").logger.handlers:
            handler.flush()
        if not isolated_logging.exists():
            return ""
        return isolated_logging.read_text(encoding="utf-8")

    return _read
