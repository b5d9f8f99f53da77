from typing import TYPE_CHECKING
from typing import Any
from typing import Dict
from typing import Optional
from typing import Union

import attr

from sqltrace.internal.utils.time import monotonic_micros
from sqltrace.internal.utils.time import wall_micros

from ._timing import StateError
from ._timing import self_time_of
from .child_durations import ChildDurations
from .child_durations import ChildDurationsMixin


if TYPE_CHECKING:  # pragma: no cover
    from .transaction import Transaction


@attr.s(frozen=True)
class DbContext(object):
    statement = attr.ib(type=str)
    type = attr.ib(type=str, default="sql")


@attr.s(frozen=True)
class Destination(object):
    name = attr.ib(type=Optional[str], default=None)
    resource = attr.ib(type=Optional[str], default=None)
    type = attr.ib(type=Optional[str], default=None)


@attr.s(frozen=True)
class SpanContext(object):
    db = attr.ib(type=Optional[DbContext], default=None)
    destination = attr.ib(type=Optional[Destination], default=None)

    def to_dict(self):
        # type: () -> Dict[str, Any]
        return attr.asdict(self, filter=lambda _, value: value is not None)


@attr.s(frozen=True)
class SpanDescriptor(object):
    """What a normalizer knows about an instrumented event before it is recorded."""

    name = attr.ib(type=str)
    type = attr.ib(type=str)
    subtype = attr.ib(type=Optional[str], default=None)
    action = attr.ib(type=Optional[str], default=None)
    context = attr.ib(type=Optional[SpanContext], default=None)

    def to_dict(self):
        # type: () -> Dict[str, Any]
        return attr.asdict(self)


class Span(ChildDurationsMixin):
    """A timed unit of work nested under a transaction or another span."""

    def __init__(
        self,
        name,  # type: str
        transaction,  # type: Transaction
        type=None,  # type: Optional[str]
        subtype=None,  # type: Optional[str]
        action=None,  # type: Optional[str]
        context=None,  # type: Optional[SpanContext]
        parent=None,  # type: Optional[Union[Span, Transaction]]
    ):
        # type: (...) -> None
        self.name = name
        self.type = type or "custom"
        self.subtype = subtype
        self.action = action
        self.context = context
        self.transaction = transaction
        self.parent = parent if parent is not None else transaction
        self.trace_context = self.parent.trace_context.child()

        self.timestamp = None  # type: Optional[int]
        self.clock_start = None  # type: Optional[int]
        self.duration = None  # type: Optional[int]
        self.self_time = None  # type: Optional[int]

        self._child_durations = ChildDurations()

    @classmethod
    def from_descriptor(cls, descriptor, transaction, parent=None):
        # type: (SpanDescriptor, Transaction, Optional[Union[Span, Transaction]]) -> Span
        return cls(
            descriptor.name,
            transaction,
            type=descriptor.type,
            subtype=descriptor.subtype,
            action=descriptor.action,
            context=descriptor.context,
            parent=parent,
        )

    @property
    def id(self):
        # type: () -> str
        return self.trace_context.id

    @property
    def parent_id(self):
        # type: () -> Optional[str]
        return self.trace_context.parent_id

    @property
    def started(self):
        # type: () -> bool
        return self.clock_start is not None

    @property
    def stopped(self):
        # type: () -> bool
        return self.duration is not None

    def start(self, clock_start=None):
        # type: (Optional[int]) -> Span
        if self.started:
            raise StateError("Span %r already started" % self.name)
        self.timestamp = wall_micros()
        self.clock_start = monotonic_micros() if clock_start is None else clock_start
        self.parent.child_started(self.clock_start)
        return self

    def stop(self, clock_end=None):
        # type: (Optional[int]) -> Span
        if not self.started:
            raise StateError("Span %r not yet started" % self.name)
        if self.stopped:
            raise StateError("Span %r already stopped" % self.name)
        clock_end = monotonic_micros() if clock_end is None else clock_end
        self.duration = clock_end - self.clock_start
        self.self_time = self_time_of(self, self.duration)
        self.parent.child_stopped(clock_end)
        return self

    done = stop

    def __repr__(self):
        return "<Span id:%s name:%r type:%r subtype:%r>" % (self.id, self.name, self.type, self.subtype)
