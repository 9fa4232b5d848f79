"""Logging configuration and log file archiving."""

import logging
from pathlib import Path
import shutil
import sys
from typing import Callable, Optional

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE = "blakebot.log"
ARCHIVE_DIR = "archive"
ARCHIVE_PREFIX = "BlakeBot-"


def next_archive_dir(archive_root: Path) -> Path:
    """Get the first ``BlakeBot-N`` directory that does not exist yet."""
    n = 1
    while (archive_root / f"{ARCHIVE_PREFIX}{n}").exists():
        n += 1
    return archive_root / f"{ARCHIVE_PREFIX}{n}"


def archive_logs(log_dir: Path) -> Optional[Path]:
    """Move the log files of the previous run into a new archive directory.

    Args:
        log_dir: Directory the logs are written to

    Returns:
        The archive directory, or None if there was nothing to archive
    """
    log_dir = Path(log_dir)
    if not log_dir.is_dir():
        return None

    logs = sorted(log_dir.glob("*.log"))
    if not logs:
        return None

    target = next_archive_dir(log_dir / ARCHIVE_DIR)
    target.mkdir(parents=True)
    for path in logs:
        shutil.move(str(path), str(target / path.name))
    return target


def setup_logging(log_dir: Optional[Path] = None, level: int = logging.INFO) -> None:
    """Configure logging to stdout and, if a directory is given, to a file.

    The logs of the previous run are archived first.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    archived = None
    file_error = None
    if log_dir is not None:
        try:
            archived = archive_logs(log_dir)
            Path(log_dir).mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(Path(log_dir) / LOG_FILE, encoding="utf-8"))
        except OSError as e:
            file_error = e

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)

    if file_error is not None:
        logger.error(f"Could not set up log file in {log_dir}: {file_error}")
    if archived is not None:
        logger.info(f"Archived previous logs to {archived}")


class CallbackHandler(logging.Handler):
    """Forwards formatted log records to a callback.

    Used by the console window to mirror the log in its output pane.
    """

    def __init__(self, callback: Callable[[str], None], level: int = logging.NOTSET):
        super().__init__(level)
        self._callback = callback
        self.setFormatter(logging.Formatter(LOG_FORMAT))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._callback(self.format(record))
        except Exception:
            self.handleError(record)
