"""Logging setup for WifiMon.

Cycles run on the worker pool and acquisitions on their own executor
thread, so every record carries the thread name next to the logger name.

Examples:
    # Per-cycle detail (dropped records, skipped ticks, roaming)
    $ WIFIMON_LOG_LEVEL=DEBUG python -m wifimon

    # Only skipped cycles and failures
    $ WIFIMON_LOG_LEVEL=warning python -m wifimon
"""

import logging
import os
import sys

LOG_LEVEL_ENV = "WIFIMON_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(threadName)s] %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"

_LEVEL_NAMES = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def get_log_level(value: int | str) -> int | None:
    """Resolve a level name ("debug", "WARNING") or number (10, "20").

    Returns None when the value names no known level.
    """
    if isinstance(value, int):
        return value
    text = str(value).strip().upper()
    if text.isdigit():
        return int(text)
    if text in _LEVEL_NAMES:
        return getattr(logging, text)
    return None


def configure_logging(level: int | str | None = None) -> int:
    """Send all records to stderr and return the root level in effect.

    An explicit level wins over WIFIMON_LOG_LEVEL; an unrecognised value
    falls back to INFO. Calling again replaces the handler installed by an
    earlier call instead of stacking a second one.
    """
    requested = level if level is not None else os.environ.get(LOG_LEVEL_ENV, "INFO")
    resolved = get_log_level(requested)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))

    root = logging.getLogger()
    for old in root.handlers[:]:
        root.removeHandler(old)
        old.close()
    root.addHandler(handler)
    root.setLevel(logging.INFO if resolved is None else resolved)

    logger = logging.getLogger(__name__)
    if resolved is None:
        logger.warning("Unknown log level %r, using INFO", requested)
    logger.debug("Logging configured: level=%s", logging.getLevelName(root.level))
    return root.level
