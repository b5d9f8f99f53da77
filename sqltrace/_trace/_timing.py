from sqltrace.internal.logger import get_logger


log = get_logger(__name__)


class StateError(RuntimeError):
    """A lifecycle method was called out of order, e.g. stopping what was never started."""


class TransactionStateError(StateError):
    pass


def self_time_of(record, duration):
    # type: (...) -> int
    """Time ``record`` spent outside of its children.

    Children reporting more time than the parent window can only come from a
    misbehaving clock source. The result is clamped to zero in that case.
    """
    self_time = duration - record.child_durations.duration
    if self_time < 0:
        log.debug(
            "clamping negative self time of %r (duration=%d, children=%d)",
            record,
            duration,
            record.child_durations.duration,
        )
        return 0
    return self_time
