"""
Logging utilities for internal use.
Usage:
    from sqltrace.internal.logger import get_logger
    log = get_logger(__name__)

Every logger returned by ``get_logger`` carries a rate limiting filter so that
instrumentation running on a hot path cannot flood the host application's
logs. By default one record is emitted per call site (pathname/lineno) every
60 seconds; the window is configured with ``SQLTRACE_LOGGING_RATE`` (``0``
disables rate limiting). Records dropped by the filter are counted and the
count is reported with the next record that gets through:

    DEBUG sqltrace.normalizers.sql: adapter lookup failed [3 skipped]
"""

import collections
import logging
import os
import time
from typing import DefaultDict
from typing import Tuple


def get_logger(name: str) -> logging.Logger:
    """
    Retrieve or create a ``Logger`` instance with consistent behavior for internal use.

    Configure all loggers with a rate limiter filter to prevent excessive logging.
    """
    logger = logging.getLogger(name)
    # addFilter will only add the filter if it is not already present
    logger.addFilter(log_filter)
    logger.propagate = True
    return logger


# Keeps track of a call site's current time bucket and the number of records skipped in it
class LoggingBucket:
    def __init__(self, bucket: float, skipped: int):
        self.bucket = bucket
        self.skipped = skipped

    def __repr__(self):
        return f"LoggingBucket({self.bucket}, {self.skipped})"

    def is_sampled(self, record: logging.LogRecord, rate: float) -> bool:
        """
        Determine if the log line should be sampled based on the rate limit.
        """
        current = time.monotonic()
        if current - self.bucket >= rate:
            self.bucket = current
            record.skipped = self.skipped
            self.skipped = 0
            return True
        self.skipped += 1
        return False


_MINF = float("-inf")

_buckets: DefaultDict[Tuple[str, int], LoggingBucket] = collections.defaultdict(lambda: LoggingBucket(_MINF, 0))

# DEV: `SQLTRACE_LOGGING_RATE=0` means to disable all rate limiting
_rate_limit = int(os.getenv("SQLTRACE_LOGGING_RATE", default=60))


def log_filter(record: logging.LogRecord) -> bool:
    """
    Function used to determine if a log record should be outputted or not (True = output, False = skip).

    Records are rate limited per pathname/lineno, so each call site gets logged
    at least once per time period.
    """
    logger = logging.getLogger(record.name)
    # If the logger is set to debug, then do not apply any limits to any log
    if not _rate_limit or logger.getEffectiveLevel() == logging.DEBUG:
        return True
    return _buckets[(record.pathname, record.lineno)].is_sampled(record, _rate_limit)


class SQLTraceFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        skipped = getattr(record, "skipped", 0)
        skip_str = f" [{skipped} skipped]" if skipped else ""
        return f"{record.levelname} {super().format(record)}{skip_str}"


# setup the default formatter for all sqltrace loggers
root_logger = logging.getLogger("sqltrace")
if not root_logger.handlers:
    _handler = logging.StreamHandler()
    _handler.setFormatter(SQLTraceFormatter("%(name)s: %(message)s"))
    root_logger.addHandler(_handler)
root_logger.propagate = True
