"""
Logging for the matmul kernels, benchmarks and harness.

All loggers hang off the "tiled_matmul" namespace and share one stderr
handler, so stdout stays free for the timing report.
"""

import logging
import os
import sys

ROOT_LOGGER_NAME = "tiled_matmul"
LOG_LEVEL_ENV = "TILED_MATMUL_LOG_LEVEL"

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
    "FATAL": logging.CRITICAL,
}


class MatmulLogFormatter(logging.Formatter):
    """Adds a short file:line location to each record."""

    def format(self, record):
        record.location = f"{os.path.basename(record.pathname)}:{record.lineno}"
        return super().format(record)


def _level_from_env():
    env_level = os.getenv(LOG_LEVEL_ENV, "INFO").upper()
    if env_level in _LEVELS:
        return _LEVELS[env_level]
    print(
        f"Warning: Invalid {LOG_LEVEL_ENV} '{env_level}'. "
        f"Valid levels are: {', '.join(_LEVELS)}. Using INFO as default.",
        file=sys.stderr,
    )
    return logging.INFO


def _configure_root():
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            MatmulLogFormatter(
                "[%(asctime)s] [%(name)s] [%(levelname)s] [%(location)s] %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root.addHandler(handler)
        root.propagate = False
        root.setLevel(_level_from_env())
    return root


def get_logger(name=None):
    root = _configure_root()
    if name is None:
        return root
    return root.getChild(name)


def set_log_level(level):
    """Set the level for every tiled_matmul logger, e.g. "debug"."""
    key = level.upper()
    if key not in _LEVELS:
        raise ValueError(f"unknown log level: {level!r}")
    _configure_root().setLevel(_LEVELS[key])
