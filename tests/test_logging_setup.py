"""
Tests for logging setup and log archiving.
"""
import logging

import pytest

from blakebot.utils.logging import (
    LOG_FILE,
    CallbackHandler,
    archive_logs,
    next_archive_dir,
    setup_logging,
)


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way it was."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_archive_moves_logs(tmp_path):
    """Logs of the previous run move into BlakeBot-1."""
    (tmp_path / "blakebot.log").write_text("old run", encoding="utf-8")
    (tmp_path / "keep.txt").write_text("not a log", encoding="utf-8")

    target = archive_logs(tmp_path)

    assert target == tmp_path / "archive" / "BlakeBot-1"
    assert (target / "blakebot.log").read_text(encoding="utf-8") == "old run"
    assert not (tmp_path / "blakebot.log").exists()
    assert (tmp_path / "keep.txt").exists()


def test_archive_uses_next_free_number(tmp_path):
    """Archive directories are numbered from the first free one."""
    (tmp_path / "archive" / "BlakeBot-1").mkdir(parents=True)
    (tmp_path / "archive" / "BlakeBot-2").mkdir()

    assert next_archive_dir(tmp_path / "archive") == tmp_path / "archive" / "BlakeBot-3"


def test_archive_nothing_to_do(tmp_path):
    """Without logs nothing is archived."""
    assert archive_logs(tmp_path) is None
    assert archive_logs(tmp_path / "missing") is None
    assert not (tmp_path / "archive").exists()


def test_setup_logging_writes_file(tmp_path, restore_root_logger):
    """Records end up in the log file."""
    log_dir = tmp_path / "logs"

    setup_logging(log_dir, logging.DEBUG)
    logging.getLogger("blakebot.test").info("hello file")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert "hello file" in (log_dir / LOG_FILE).read_text(encoding="utf-8")


def test_setup_logging_archives_previous_run(tmp_path, restore_root_logger):
    """The log of the previous run is archived on setup."""
    log_dir = tmp_path / "logs"
    log_dir.mkdir()
    (log_dir / LOG_FILE).write_text("previous", encoding="utf-8")

    setup_logging(log_dir)

    archived = log_dir / "archive" / "BlakeBot-1" / LOG_FILE
    assert archived.read_text(encoding="utf-8") == "previous"


def test_callback_handler_formats_records():
    """The callback receives formatted records."""
    messages = []
    handler = CallbackHandler(messages.append)
    logger = logging.getLogger("blakebot.test.callback")
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)

    try:
        logger.info("mirrored")
    finally:
        logger.removeHandler(handler)

    assert len(messages) == 1
    assert "blakebot.test.callback - INFO - mirrored" in messages[0]
