"""
logging.py

Responsibility: Logger setup for innerbuilder runs.

- `get_logger`: module loggers under the `innerbuilder` hierarchy
- `class_logger`: the same, with every record prefixed by the Java class being
  edited, so merge decisions for a nested target read `[Outer.Inner] ...`
- `configure_logging`: console sink on stderr plus an optional file sink
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, MutableMapping

ROOT_LOGGER = "innerbuilder"
CONSOLE_FORMAT = "[innerbuilder] %(levelname)s %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class ClassLogAdapter(logging.LoggerAdapter):
    """Prefix messages with the Java class they concern."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        return f"[{self.extra['java_class']}] {msg}", kwargs


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER)


def class_logger(name: str, java_class: str) -> ClassLogAdapter:
    return ClassLogAdapter(get_logger(name), {"java_class": java_class})


def _handler(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def configure_logging(*, verbose: bool = False, log_file: Path | None = None) -> logging.Logger:
    """
    (Re)configure the `innerbuilder` logger: DEBUG with `verbose`, else INFO.

    Handlers from an earlier call are closed first, so running the CLI several
    times in one process neither duplicates output nor leaks file handles.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.propagate = False

    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    logger.addHandler(_handler(logging.StreamHandler(sys.stderr), level, CONSOLE_FORMAT))
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.addHandler(_handler(logging.FileHandler(log_file, encoding="utf-8"), level, FILE_FORMAT))
    return logger


__all__ = ["ClassLogAdapter", "class_logger", "configure_logging", "get_logger"]
