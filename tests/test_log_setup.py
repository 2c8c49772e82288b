import io
import logging
from logging.handlers import RotatingFileHandler

import pytest

from scriptcut.log_setup import setup_logging


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    level = root.level
    yield root
    remove_installed_handlers(root)
    root.setLevel(level)


def remove_installed_handlers(root):
    # pytest's capture handlers are subclasses; only the plain ones come from setup_logging
    for handler in root.handlers[:]:
        if type(handler) in (logging.StreamHandler, RotatingFileHandler):
            root.removeHandler(handler)
            handler.close()


def test_console_and_file_handlers(tmp_path, root_logger):
    stream = io.StringIO()
    setup_logging(logging.INFO, log_dir=str(tmp_path / "logs"), log_file="run.log", stream=stream)
    logging.getLogger("scriptcut.test").info("hello")
    for handler in root_logger.handlers:
        handler.flush()
    assert "hello" in stream.getvalue()
    assert "hello" in (tmp_path / "logs" / "run.log").read_text(encoding="utf-8")


def test_reconfiguring_replaces_handlers(tmp_path, root_logger):
    setup_logging(log_dir=str(tmp_path), stream=io.StringIO())
    setup_logging(log_dir=str(tmp_path), stream=io.StringIO())
    assert len(root_logger.handlers) == 2


def test_unusable_log_dir_keeps_console_logging(tmp_path, root_logger):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x", encoding="utf-8")
    stream = io.StringIO()
    setup_logging(log_dir=str(blocker), stream=stream)
    assert len(root_logger.handlers) == 1
    assert "Failed to set up file logging" in stream.getvalue()
