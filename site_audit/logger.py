"""Logging setup for **SiteAudit**.

Highlights
----------
* One project logger, ``SiteAudit``; every module logs through a child of it
  (``SiteAudit.crawler``, ``SiteAudit.checks`` ...) obtained with
  :func:`get_logger`::

      from site_audit.logger import get_logger
      logger = get_logger("crawler")
      logger.info("Crawl started")

* Console output goes to **stderr**: stdout is reserved for the JSON report
  the CLI prints.
* Optional rotating log file next to the console output.
* Re-configurable at runtime via :func:`configure` / :func:`init_logging`.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Optional, TextIO, Union

DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOGGER_NAME: Final[str] = "SiteAudit"

# chatty third-party loggers, capped at WARNING unless the project runs at DEBUG
_NOISY: Final[tuple[str, ...]] = ("aiohttp.access", "aiohttp.client", "asyncio")

_LevelT = Union[int, str]


def _console_handler(fmt: str, stream: Optional[TextIO]) -> logging.StreamHandler:
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _rotating_file(file: Path | str, fmt: str) -> RotatingFileHandler:
    path = Path(file)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(path),
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def configure(
    *,
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
    stream: Optional[TextIO] = None,
    replace_handlers: bool = True,
) -> logging.Logger:
    """(Re)configure the ``SiteAudit`` logger tree.

    Parameters
    ----------
    level
        Numeric or textual logging level (e.g. ``"DEBUG"``).
    log_file
        Path to a rotating logfile (5 MB x 3). *None*: console only.
    log_format
        Format string for :class:`logging.Formatter`.
    stream
        Console stream; *None* means ``sys.stderr`` at call time.
    replace_handlers
        *True*: drop existing handlers first. *False*: add to them.
    """
    root = logging.getLogger(LOGGER_NAME)
    root.setLevel(level)
    if replace_handlers:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()

    root.addHandler(_console_handler(log_format, stream))
    if log_file is not None:
        root.addHandler(_rotating_file(log_file, log_format))
    root.propagate = False

    third_party = logging.DEBUG if root.level <= logging.DEBUG else logging.WARNING
    for name in _NOISY:
        logging.getLogger(name).setLevel(third_party)
    return root


def init_logging(
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Shortcut used by the CLI."""
    return configure(level=level, log_file=log_file, log_format=log_format)


def get_logger(component: str = "") -> logging.Logger:
    """Logger of one SiteAudit component; ``""`` gives the project logger itself."""
    root = logging.getLogger(LOGGER_NAME)
    return root.getChild(component) if component else root


logger: logging.Logger = init_logging()

__all__ = [
    "DEFAULT_FORMAT",
    "LOGGER_NAME",
    "configure",
    "get_logger",
    "init_logging",
    "logger",
]
