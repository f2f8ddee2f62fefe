"""Logging configuration for clustermap."""

import logging
import os
import sys

_FORMAT = "%(levelname)s %(asctime)s [%(filename)s:%(lineno)d] %(message)s"
_DATE_FORMAT = "%m-%d %H:%M:%S"

_root_logger = logging.getLogger("clustermap")
_default_handler = None


def _setup_logger() -> None:
    global _default_handler

    level = os.getenv("CLUSTERMAP_LOG_LEVEL", "INFO").upper()
    _root_logger.setLevel(level)

    if _default_handler is None:
        _default_handler = logging.StreamHandler(sys.stdout)
        _default_handler.flush = sys.stdout.flush  # type: ignore
        _default_handler.setLevel(level)
        _root_logger.addHandler(_default_handler)

    _default_handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
    # Keep messages out of the root logger's handlers.
    _root_logger.propagate = False


# The logger is initialized when the module is imported.
# This is thread-safe as the module is only imported once,
# guaranteed by the Python GIL.
_setup_logger()


def init_logger(name: str) -> logging.Logger:
    """Return a logger under the ``clustermap`` hierarchy."""
    return logging.getLogger(name)
