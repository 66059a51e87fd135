"""The ``SiteIndexer`` logger shared by every module of the project.

Modules log through the one instance created at import time::

    from site_indexer.logger import logger
    logger.info("Crawling %s", url)

Records always go to stdout. The CLI may add a size-rotated logfile and a
custom format through :func:`init_logging`. The logger does not propagate to
the root logger, so a host application's handlers never see crawl records
twice.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, List, Union

DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOGGER_NAME: Final[str] = "SiteIndexer"

# rotation: 5 MiB per file, three generations kept
_ROTATE_BYTES: Final[int] = 5 * 1024 * 1024
_ROTATE_BACKUPS: Final[int] = 3

Level = Union[int, str]


def _build_handlers(fmt: str, log_file: str | Path | None) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                path,
                maxBytes=_ROTATE_BYTES,
                backupCount=_ROTATE_BACKUPS,
                encoding="utf-8",
            )
        )
    formatter = logging.Formatter(fmt)
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def configure(
    *,
    level: Level = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
    replace_handlers: bool = True,
) -> logging.Logger:
    """Apply *level*, *log_format* and an optional *log_file* to the crawl logger.

    With ``replace_handlers=False`` the new handlers are added next to the
    existing ones; otherwise the old handlers are closed and dropped first.
    """
    crawl_logger = logging.getLogger(LOGGER_NAME)
    crawl_logger.setLevel(level)
    if replace_handlers:
        for old in list(crawl_logger.handlers):
            crawl_logger.removeHandler(old)
            old.close()
    for handler in _build_handlers(log_format, log_file):
        crawl_logger.addHandler(handler)
    crawl_logger.propagate = False
    return crawl_logger


def init_logging(
    level: Level = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    return configure(level=level, log_file=log_file, log_format=log_format)


logger: logging.Logger = init_logging()

__all__ = ["logger", "configure", "init_logging", "DEFAULT_FORMAT", "LOGGER_NAME"]
