from typing import Any
from typing import Dict
from typing import Optional

from sqltrace.constants import DEFAULT_TRANSACTION_TYPE
from sqltrace.internal.utils.time import monotonic_micros
from sqltrace.internal.utils.time import wall_micros
from sqltrace.settings.config import TracingConfig
from sqltrace.settings.config import config as global_config

from ._timing import TransactionStateError
from ._timing import self_time_of
from .budget import SpanBudget
from .child_durations import ChildDurations
from .child_durations import ChildDurationsMixin
from .context import Context
from .context import Response
from .context import TraceContext
from .context import User
from .context import reverse_merge


class Transaction(ChildDurationsMixin):
    """The top-level timed unit of work, e.g. one web request or one job.

    A transaction goes through ``start``, then ``stop`` (or ``done``), exactly
    once each. Clock values are monotonic microseconds; only their difference
    is recorded, as ``duration``. ``self_time`` is the part of that duration
    not covered by child spans.

    Child spans must be admitted with ``inc_started_spans`` before they are
    recorded. Once ``transaction_max_spans`` spans have been admitted further
    spans are only counted in ``dropped_spans``.
    """

    def __init__(
        self,
        name=None,  # type: Optional[str]
        type=None,  # type: Optional[str]
        sampled=True,  # type: bool
        context=None,  # type: Optional[Context]
        config=None,  # type: Optional[TracingConfig]
        trace_context=None,  # type: Optional[TraceContext]
    ):
        # type: (...) -> None
        self.name = name
        self.type = type or DEFAULT_TRANSACTION_TYPE
        self.config = config or global_config
        self.result = None  # type: Optional[str]

        self._sampled = sampled

        self.context = context or Context()
        if self.config.default_labels:
            reverse_merge(self.context.labels, self.config.default_labels)

        self.trace_context = trace_context or TraceContext(recorded=sampled)

        self.timestamp = None  # type: Optional[int]
        self.clock_start = None  # type: Optional[int]
        self.duration = None  # type: Optional[int]
        self.self_time = None  # type: Optional[int]

        self.budget = SpanBudget(self.config.transaction_max_spans)
        self._child_durations = ChildDurations()

    @property
    def id(self):
        # type: () -> str
        return self.trace_context.id

    @property
    def trace_id(self):
        # type: () -> str
        return self.trace_context.trace_id

    @property
    def parent_id(self):
        # type: () -> Optional[str]
        return self.trace_context.parent_id

    def ensure_parent_id(self):
        # type: () -> str
        return self.trace_context.ensure_parent_id()

    @property
    def sampled(self):
        # type: () -> bool
        return self._sampled

    @property
    def started(self):
        # type: () -> bool
        return self.clock_start is not None

    @property
    def stopped(self):
        # type: () -> bool
        return self.duration is not None

    # life cycle

    def start(self, clock_start=None):
        # type: (Optional[int]) -> Transaction
        if self.started:
            raise TransactionStateError("Transaction already started")
        self.timestamp = wall_micros()
        self.clock_start = monotonic_micros() if clock_start is None else clock_start
        return self

    def stop(self, clock_end=None):
        # type: (Optional[int]) -> Transaction
        if not self.started:
            raise TransactionStateError("Transaction not yet started")
        if self.stopped:
            raise TransactionStateError("Transaction already stopped")
        clock_end = monotonic_micros() if clock_end is None else clock_end
        self.duration = clock_end - self.clock_start
        self.self_time = self_time_of(self, self.duration)
        return self

    def done(self, result=None, clock_end=None):
        # type: (Optional[str], Optional[int]) -> Transaction
        self.stop(clock_end)
        if result is not None:
            self.result = result
        return self

    # spans

    def inc_started_spans(self):
        # type: () -> bool
        return self.budget.try_admit()

    @property
    def started_spans(self):
        # type: () -> int
        return self.budget.snapshot().started

    @property
    def dropped_spans(self):
        # type: () -> int
        return self.budget.snapshot().dropped

    # context

    def add_response(self, status_code=None, headers=None, finished=True):
        # type: (Optional[int], Optional[Dict[str, str]], bool) -> None
        self.context.response = Response(status_code=status_code, headers=headers, finished=finished)

    def set_user(self, user):
        # type: (Any) -> None
        self.context.user = User.infer(user)

    def __repr__(self):
        return "<Transaction id:%s name:%r type:%r>" % (self.id, self.name, self.type)
