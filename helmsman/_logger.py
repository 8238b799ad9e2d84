"""
Centralized logging for helmsman.

Usage
    from ._logger import get_logger

    logger = get_logger(__name__)
    logger.debug("resolved %r", cmd)

Environment
- HELMSMAN_LOG_LEVEL: level of every helmsman logger (default: WARNING).
- HELMSMAN_LOG_LEVEL_<MODULE>: per-module override, checked from the most to
  the least specific module path, e.g. HELMSMAN_LOG_LEVEL_REGISTRY=DEBUG.

Handlers
- stderr: rich's RichHandler when stderr is a terminal, a plain timestamped
  formatter otherwise.
- add_file_handler(path): mirrors every record into a log file (the --log-file
  global option of an App).
"""
import logging
import os
import sys

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "helmsman"

_configured = set()
_file_handlers = []
_saved_levels = {}


def _module_level(path, /):
    """
    Look up HELMSMAN_LOG_LEVEL_<PATH> overrides, most specific first.
    """
    parts = path.upper().replace(".", "_").split("_")
    for index in range(len(parts), 0, -1):
        if name := os.getenv(f"HELMSMAN_LOG_LEVEL_{'_'.join(parts[:index])}"):
            if (level := getattr(logging, name.upper(), None)) is not None:
                return level
    return None


def _setup():
    if LOGGER_NAME in _configured:
        return

    root = logging.getLogger(LOGGER_NAME)
    root.setLevel(getattr(logging, os.getenv("HELMSMAN_LOG_LEVEL", "WARNING").upper(), logging.WARNING))
    root.propagate = False

    if not root.handlers:
        if sys.stderr.isatty():
            handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)
            handler.setFormatter(logging.Formatter("%(name)s - %(message)s"))
        else:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            ))
        # the handler accepts everything, loggers filter
        handler.setLevel(logging.NOTSET)
        root.addHandler(handler)

    _configured.add(LOGGER_NAME)


def get_logger(name=None, /):
    """
    Return the helmsman logger for `name` (a module __name__ or a path
    relative to the package), or the package root logger when omitted.
    """
    _setup()

    if name is None:
        return logging.getLogger(LOGGER_NAME)

    qualname = name if name.startswith(LOGGER_NAME) else f"{LOGGER_NAME}.{name}"
    logger = logging.getLogger(qualname)

    if qualname not in _configured:
        if qualname.startswith(LOGGER_NAME + "."):
            if (level := _module_level(qualname[len(LOGGER_NAME) + 1:])) is not None:
                logger.setLevel(level)
        _configured.add(qualname)

    return logger


def add_file_handler(path, /):
    """
    Attach a FileHandler writing `timestamp [LEVEL] message` lines to `path`
    (appending) and return it so the caller can detach it later.

    The root logger is lowered to DEBUG while at least one log file is
    attached: a log file is only requested when the full trace of a session
    is wanted. The handlers already installed keep filtering at the previous
    level.
    """
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
    handler.setLevel(logging.DEBUG)
    root = get_logger()
    if not _file_handlers:
        # remove_handler() puts these back once the last file is detached
        _saved_levels[root] = root.level
        for existing in root.handlers:
            if existing.level == logging.NOTSET:
                _saved_levels[existing] = existing.level
                existing.setLevel(root.getEffectiveLevel())
    _file_handlers.append(handler)
    root.addHandler(handler)
    root.setLevel(logging.DEBUG)
    return handler


def remove_handler(handler, /):
    """
    Detach and close a handler returned by add_file_handler(), restoring the
    levels it changed when no other log file remains attached.
    """
    get_logger().removeHandler(handler)
    handler.close()
    if handler not in _file_handlers:
        return
    _file_handlers.remove(handler)
    if not _file_handlers:
        for target, level in _saved_levels.items():
            target.setLevel(level)
        _saved_levels.clear()


_setup()

logger = get_logger()

__all__ = (
    "LOGGER_NAME",
    "get_logger",
    "add_file_handler",
    "remove_handler",
    "logger",
)
