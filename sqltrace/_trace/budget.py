import threading
from typing import NamedTuple

import attr


class BudgetSnapshot(NamedTuple):
    started: int
    dropped: int


@attr.s
class SpanBudget(object):
    """Bounds the number of spans a single transaction records.

    ``try_admit`` is the only mutator and may be called from any number of
    threads at once. Once ``max_spans`` spans have been admitted every further
    call is rejected and counted as dropped; the caller is expected to carry on
    with the instrumented operation without recording it.
    """

    max_spans = attr.ib(type=int)
    started = attr.ib(type=int, init=False, default=0)
    dropped = attr.ib(type=int, init=False, default=0)
    _lock = attr.ib(type=threading.Lock, init=False, factory=threading.Lock, repr=False, eq=False)

    @max_spans.validator
    def _check_max_spans(self, attribute, value):
        if value < 0:
            raise ValueError("max_spans must be a non-negative integer, got %r" % value)

    def try_admit(self):
        # type: () -> bool
        with self._lock:
            if self.started < self.max_spans:
                self.started += 1
                return True
            self.dropped += 1
            return False

    def snapshot(self):
        # type: () -> BudgetSnapshot
        with self._lock:
            return BudgetSnapshot(self.started, self.dropped)
