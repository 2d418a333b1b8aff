from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path


LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

ERROR_CONSOLE_TEXT = "\033[31m"
NORMAL_CONSOLE_TEXT = "\033[0m"


class _BelowError(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < logging.ERROR


class ColorFormatter(logging.Formatter):
    def __init__(self, fmt: str, enabled: bool):
        super().__init__(fmt)
        self._enabled = enabled

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        if not self._enabled:
            return text
        return f"{ERROR_CONSOLE_TEXT}{text}{NORMAL_CONSOLE_TEXT}"


def get_logger(name: str, logs_dir: Path | None, level: int = logging.INFO) -> logging.Logger:
    """Progress to stdout, errors to stderr (red on a TTY), everything to a rotating file."""
    logger = logging.getLogger(name)
    logger.setLevel(level)
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.addFilter(_BelowError())
    console.setFormatter(formatter)
    logger.addHandler(console)

    errors = logging.StreamHandler(sys.stderr)
    errors.setLevel(max(level, logging.ERROR))
    errors.setFormatter(ColorFormatter(LOG_FORMAT, enabled=sys.stderr.isatty()))
    logger.addHandler(errors)

    if logs_dir is not None:
        logs_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            logs_dir / f"{name}.log",
            maxBytes=10_485_760,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger
