# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Structured JSON logger for rattopkg.

Every log entry is one JSON object on one line: timestamp, level, source
module, message, plus whatever structured context the caller passed in
`extra` (command lines, paths, exit codes, container ids).

How this works:
  - All loggers are children of the "rattopkg" logger. Only that root logger
    owns handlers; children propagate to it.
  - configure_logging() (re)installs the handlers: always one on stderr,
    optionally one on a file. stdout is left alone on purpose, because the
    CLI prints results there (package filenames, TAP lines) and scripts
    consume them.
  - get_logger() is the only way modules obtain a logger.

The JSON structure looks like:
  {"ts": "2026-...", "level": "INFO", "module": "rattopkg.release.staging", "msg": "Staged binary", ...}
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = "rattopkg"


class JsonFormatter(logging.Formatter):
    """
    Formats log records as single-line JSON objects.

    Each log entry contains four mandatory fields:
      ts      ISO 8601 UTC timestamp
      level   log level name
      module  the logger name (usually the Python module path)
      msg     the formatted message string

    Anything passed via `extra` gets merged in as additional fields.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "ts": datetime.now(tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "msg": record.getMessage(),
        }

        # Skip internal LogRecord attributes so only caller context gets through.
        standard_attrs = {
            "name",
            "msg",
            "args",
            "created",
            "relativeCreated",
            "exc_info",
            "exc_text",
            "stack_info",
            "lineno",
            "funcName",
            "pathname",
            "filename",
            "module",
            "levelno",
            "levelname",
            "processName",
            "process",
            "threadName",
            "thread",
            "message",
            "msecs",
            "taskName",
        }
        for key, value in record.__dict__.items():
            if key not in standard_attrs and not key.startswith("_"):
                entry[key] = value

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _resolve_log_level(level_name: str) -> int:
    """Turn a level name string into the corresponding logging constant."""
    upper = level_name.upper()
    if upper not in _VALID_LOG_LEVELS:
        raise ValueError(
            f"Invalid log level '{level_name}'. Must be one of: {', '.join(sorted(_VALID_LOG_LEVELS))}"
        )
    return getattr(logging, upper)


def configure_logging(
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Install the JSON handlers on the rattopkg root logger.

    Safe to call more than once: existing handlers are closed and replaced,
    which is what the CLI wants after it has read --log-level and the config.

    Args:
        log_level: One of DEBUG, INFO, WARNING, ERROR, CRITICAL.
        log_file: Optional path to a log file. If provided, logs go to both
                  stderr and the file.

    Returns:
        The configured root logger.
    """
    level = _resolve_log_level(log_level)
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    formatter = JsonFormatter()

    stderr_handler = logging.StreamHandler(stream=sys.stderr)
    stderr_handler.setLevel(level)
    stderr_handler.setFormatter(formatter)
    root.addHandler(stderr_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # Don't propagate to the Python root logger; we handle all output ourselves.
    root.propagate = False

    return root


def get_logger(name: str) -> logging.Logger:
    """
    Get a structured JSON logger.

    Every module calls this once at the top with __name__. Names outside the
    rattopkg namespace are re-rooted under it so they share its handlers. If
    nothing has configured logging yet, INFO-level stderr output is set up.

    Args:
        name: Logger name, typically __name__ of the calling module.

    Returns:
        A logging.Logger that emits structured JSON through the rattopkg root.
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not root.handlers:
        configure_logging()

    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
