# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Structured JSON logging for psforge.

A build run prints nothing but JSON lines on stdout:

  {"ts": "2026-...", "level": "INFO", "module": "psforge.tasks.executor", "msg": "Task skipped", "task": "BuildModule"}

Captured pwsh/git/dotnet output, the resolved plan and per-task timings ride
along as extra fields, so a CI log can be filtered with jq instead of grep.

Modules take their logger from `get_logger` at import time, before the config
file has been read. `configure_logging` later pushes the configured level and
log file onto every psforge logger created so far.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

_ROOT_NAME = "psforge"


# Attributes every LogRecord carries. Anything else on a record came in via
# `extra` and belongs in the JSON entry.
_RECORD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime", "taskName"}


class JsonFormatter(logging.Formatter):
    """
    One JSON object per record: ts, level, module, msg, then the extras.

    `module` is the logger name rather than LogRecord.module, so a line from
    the executor reads "psforge.tasks.executor" and not "executor". Extra
    values that json can't encode (paths, versions) are stringified.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "ts": datetime.now(tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "msg": record.getMessage(),
        }
        entry.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        )
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


def _json_handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter())
    return handler


def _attach_file_handler(logger: logging.Logger, log_file: Path, level: int) -> None:
    target = os.path.abspath(log_file)
    if any(getattr(h, "baseFilename", None) == target for h in logger.handlers):
        return
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger.addHandler(_json_handler(logging.FileHandler(str(log_file), encoding="utf-8"), level))


def get_logger(
    name: str,
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Return the JSON logger called `name`, creating its handlers on first use.

    Modules call this once at import time with the defaults. A second call
    for the same name only changes the level; handlers are never stacked.
    With `log_file`, records go to the file as well as stdout.
    """
    logger = logging.getLogger(name)
    level = _resolve_log_level(log_level)
    logger.setLevel(level)
    if logger.handlers:
        return logger

    logger.addHandler(_json_handler(logging.StreamHandler(stream=sys.stdout), level))
    if log_file is not None:
        _attach_file_handler(logger, log_file, level)
    logger.propagate = False
    return logger


def configure_logging(log_level: str, log_file: Optional[Path] = None) -> None:
    """
    Apply a level (and optional log file) to every psforge logger created so far.

    Module-level loggers are created at import time with the default level,
    before the command line has been parsed. The CLI calls this right after
    loading config so the chosen verbosity reaches all of them.
    """
    level = _resolve_log_level(log_level)
    for name in list(logging.Logger.manager.loggerDict):
        if name != _ROOT_NAME and not name.startswith(_ROOT_NAME + "."):
            continue
        logger = logging.getLogger(name)
        if not logger.handlers:
            continue
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)
        if log_file is not None:
            _attach_file_handler(logger, log_file, level)
