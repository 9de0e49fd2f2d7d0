"""Logging utilities."""

import getpass
import json
import logging
import os
import socket
import sys
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional


class JsonLineFormatter(logging.Formatter):
    """Formats a record as one JSON object per line.

    Structured fields are passed as ``extra={"data": {...}}``.
    """

    def __init__(self):
        super().__init__()
        self._machine = socket.gethostname()
        try:
            self._user = getpass.getuser()
        except (KeyError, OSError):
            self._user = ""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "exception": self.formatException(record.exc_info) if record.exc_info else None,
            "data": getattr(record, "data", None),
            "processId": record.process or os.getpid(),
            "threadId": record.thread or threading.get_ident(),
            "machineName": self._machine,
            "userName": self._user,
        }
        return json.dumps(entry, default=str)


def setup_logging(
    level: int = logging.INFO,
    format_str: Optional[str] = None,
    log_dir: Optional[Path] = None,
    console: bool = False,
) -> logging.Logger:
    """
    Setup logging for the integration tool.

    Args:
        level: Logging level for the console (the file always gets DEBUG)
        format_str: Custom console format string
        log_dir: Directory for the daily JSON-lines log file (no file if None)
        console: Mirror log records to stdout

    Returns:
        Configured logger
    """
    if format_str is None:
        format_str = "[%(asctime)s] %(levelname)s - %(message)s"

    logger = logging.getLogger("integration_tool")
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f"logs-{datetime.now():%d%m%Y}.log"
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JsonLineFormatter())
        logger.addHandler(file_handler)

    if console:
        stream_handler = logging.StreamHandler(sys.stdout)
        stream_handler.setLevel(level)
        stream_handler.setFormatter(logging.Formatter(format_str))
        logger.addHandler(stream_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    return logger


def get_logger(name: str = "integration_tool") -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)
