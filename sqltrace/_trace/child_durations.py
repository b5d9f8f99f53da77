import threading


class ChildDurations(object):
    """Accumulates the time during which at least one child was running.

    Children that overlap are counted once: the clock only starts when the
    first child starts and only stops when the last running child stops.
    """

    __slots__ = ("_nesting_level", "_start", "_duration", "_lock")

    def __init__(self):
        # type: () -> None
        self._nesting_level = 0
        self._start = 0
        self._duration = 0
        self._lock = threading.Lock()

    def start(self, clock):
        # type: (int) -> None
        with self._lock:
            self._nesting_level += 1
            if self._nesting_level == 1:
                self._start = clock

    def stop(self, clock):
        # type: (int) -> None
        with self._lock:
            if self._nesting_level == 0:
                # unbalanced stop, nothing is running
                return
            self._nesting_level -= 1
            if self._nesting_level == 0:
                self._duration += clock - self._start

    @property
    def duration(self):
        # type: () -> int
        return self._duration


class ChildDurationsMixin(object):
    """Gives a timed record a ``ChildDurations`` aggregator fed by its children.

    Subclasses create ``_child_durations`` in their initializer.
    """

    _child_durations = None  # type: ChildDurations

    @property
    def child_durations(self):
        # type: () -> ChildDurations
        return self._child_durations

    def child_started(self, clock):
        # type: (int) -> None
        self.child_durations.start(clock)

    def child_stopped(self, clock):
        # type: (int) -> None
        self.child_durations.stop(clock)
