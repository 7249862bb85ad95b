"""Logging setup for **site_crawl**.

Every module logs through the ``SiteCrawl`` logger::

    from site_crawl.logger import logger
    logger.info("Crawl started")

Records go to stderr (stdout is reserved for CLI output) and, when asked,
to a size-rotated file. The CLI calls :func:`init_logging` once per run.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Iterable, Union

DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOGGER_NAME: Final[str] = "SiteCrawl"

# aiohttp loggers follow DEBUG, otherwise stay at WARNING
_LIBRARY_LOGGERS: Final[Iterable[str]] = ("aiohttp.client", "aiohttp.internal")
_ROTATE_BYTES: Final[int] = 5 * 1024 * 1024
_ROTATE_BACKUPS: Final[int] = 3

_LevelT = Union[int, str]


def _resolve_level(level: _LevelT) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"unknown log level: {level!r}")
    return value


def _with_format(handler: logging.Handler, fmt: str) -> logging.Handler:
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _rotating_file(path: Path | str) -> RotatingFileHandler:
    target = Path(path).expanduser()
    target.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        filename=str(target),
        maxBytes=_ROTATE_BYTES,
        backupCount=_ROTATE_BACKUPS,
        encoding="utf-8",
    )


def configure(
    *,
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
    replace_handlers: bool = True,
) -> logging.Logger:
    """(Re)configure the ``SiteCrawl`` logger.

    Parameters
    ----------
    level
        Numeric or textual level, case-insensitive (``"debug"`` works).
    log_file
        Optional logfile, rotated at 5 MiB with three backups.
    log_format
        :class:`logging.Formatter` format string for every handler.
    replace_handlers
        Drop previously installed handlers first.
    """
    numeric = _resolve_level(level)
    lg = logging.getLogger(LOGGER_NAME)
    lg.setLevel(numeric)

    if replace_handlers:
        for handler in list(lg.handlers):
            lg.removeHandler(handler)
            handler.close()

    lg.addHandler(_with_format(logging.StreamHandler(sys.stderr), log_format))
    if log_file is not None:
        lg.addHandler(_with_format(_rotating_file(log_file), log_format))
    lg.propagate = False

    for name in _LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if numeric <= logging.DEBUG else logging.WARNING)
    return lg


def init_logging(
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Replace all handlers; what the CLI calls before each command."""
    return configure(level=level, log_file=log_file, log_format=log_format, replace_handlers=True)


logger: logging.Logger = init_logging()

__all__ = ["logger", "configure", "init_logging", "LOGGER_NAME", "DEFAULT_FORMAT"]
