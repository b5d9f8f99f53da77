import time as builtin_time


class Time:
    """
    References to the standard Python time functions that won't be clobbered by `freezegun`.

    `freezegun`_ scans all loaded modules to check for imported functions from the `time` module, but it does not look
    inside classes or other objects, so these references are safe to use in the tracer.

    .. _freezegun: https://github.com/spulec/freezegun/blob/1.5.3/freezegun/api.py#L817
    """

    time_ns = builtin_time.time_ns
    monotonic_ns = builtin_time.monotonic_ns


def wall_micros() -> int:
    """Wall-clock timestamp in microseconds since the epoch."""
    return Time.time_ns() // 1000


def monotonic_micros() -> int:
    """Monotonic clock reading in microseconds.

    Only differences between two readings are meaningful.
    """
    return Time.monotonic_ns() // 1000
