"""
Centralized logging configuration for the scoreboard service.

Usage:
- Production (default): concise INFO-level logs.
- Development: DEBUG with file/line detail.
- Tests: WARNING, so only rejected races and rollbacks show up.

Environment variables:
- LOG_LEVEL: DEBUG|INFO|WARNING|ERROR|CRITICAL (read through the Flask config)
"""

from __future__ import annotations

import logging
import sys

_LEVELS = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL,
}

_HANDLER_NAME = 'scoreboard'


def _resolve_level(level) -> int:
    if isinstance(level, int):
        return level
    return _LEVELS.get(str(level or 'INFO').strip().upper(), logging.INFO)


def setup_logging(level='INFO') -> None:
    """Attach a single stdout handler to the ``scoreboard`` logger tree.

    Safe to call once per app factory invocation; the handler is replaced,
    never duplicated.
    """
    numeric_level = _resolve_level(level)
    is_debug = numeric_level <= logging.DEBUG

    fmt_verbose = '%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s'
    fmt_concise = '%(asctime)s %(levelname).1s %(name)s %(message)s'

    logger = logging.getLogger('scoreboard')
    for handler in list(logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(
        fmt=fmt_verbose if is_debug else fmt_concise, datefmt='%H:%M:%S',
    ))
    logger.addHandler(handler)
    logger.setLevel(numeric_level)

    # SQL echo only in full debug
    logging.getLogger('sqlalchemy.engine').setLevel(
        logging.INFO if is_debug else logging.WARNING
    )


def get_logger(name: str) -> logging.Logger:
    """Convenience wrapper to get a module logger."""
    return logging.getLogger(name)
