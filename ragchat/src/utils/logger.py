"""
RagChat - Logging
==================
One stdout handler on the ``ragchat`` package logger; every module logger
is a child of it and propagates there, so the format and level are set in
a single place.

Level resolution:
  • ``settings.LOG_LEVEL`` when set (e.g. ``"INFO"``)
  • otherwise ``settings.ENV``: ``"dev"`` → DEBUG, ``"prod"`` → WARNING

Usage:
    from ragchat.src.utils.logger import get_logger
    logger = get_logger(__name__)
    logger.info("[INGEST] Embedded %d chunk(s)", n)
"""

import logging
import sys

from ragchat.config.settings import settings

PACKAGE_LOGGER = "ragchat"

_ENV_LEVELS = {"dev": logging.DEBUG, "prod": logging.WARNING}
_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _resolve_level() -> int:
    if settings.LOG_LEVEL:
        return logging.getLevelName(settings.LOG_LEVEL)
    return _ENV_LEVELS.get(settings.ENV, logging.INFO)


def _package_logger() -> logging.Logger:
    root = logging.getLogger(PACKAGE_LOGGER)
    if not any(getattr(h, "_ragchat", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT))
        handler._ragchat = True  # type: ignore[attr-defined]
        root.addHandler(handler)
        root.setLevel(_resolve_level())
        # Keep the application's records out of uvicorn's / the root handlers.
        root.propagate = False
    return root


def get_logger(name: str, level: int | None = None) -> logging.Logger:
    """
    Return a logger under the ``ragchat`` hierarchy.

    Names outside the package (``"__main__"`` when a module runs as a
    script) are re-parented as ``ragchat.<name>``.  *level* overrides the
    package level for this logger only.
    """
    _package_logger()
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"

    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    return logger
