import contextlib
import contextvars
from typing import Any
from typing import Callable
from typing import Iterator
from typing import Mapping
from typing import Optional
from typing import Union

from sqltrace.constants import SKIP
from sqltrace.internal.logger import get_logger
from sqltrace.normalizers import Normalizers
from sqltrace.settings.config import TracingConfig
from sqltrace.settings.config import config as global_config

from .context import TraceContext
from .span import Span
from .span import SpanContext
from .span import SpanDescriptor
from .transaction import Transaction


log = get_logger(__name__)

_CURRENT_TRANSACTION = contextvars.ContextVar(
    "sqltrace_transaction", default=None
)  # type: contextvars.ContextVar[Optional[Transaction]]
_CURRENT_SPAN = contextvars.ContextVar("sqltrace_span", default=None)  # type: contextvars.ContextVar[Optional[Span]]


class Tracer(object):
    """Records transactions and the spans started while they are current.

    The current transaction and span are kept in context variables, so each
    thread and each asyncio task sees its own. Finished transactions are
    handed to ``on_transaction_end`` and finished spans to ``on_span_end``,
    which is where a transport would pick them up.
    """

    def __init__(
        self,
        config=None,  # type: Optional[TracingConfig]
        normalizers=None,  # type: Optional[Normalizers]
        on_transaction_end=None,  # type: Optional[Callable[[Transaction], None]]
        on_span_end=None,  # type: Optional[Callable[[Span], None]]
    ):
        # type: (...) -> None
        self.config = config or global_config
        self.normalizers = normalizers or Normalizers(self.config)
        self.on_transaction_end = on_transaction_end
        self.on_span_end = on_span_end

    @property
    def enabled(self):
        # type: () -> bool
        return self.config.enabled

    def current_transaction(self):
        # type: () -> Optional[Transaction]
        return _CURRENT_TRANSACTION.get()

    def current_span(self):
        # type: () -> Optional[Span]
        return _CURRENT_SPAN.get()

    # transactions

    def start_transaction(
        self,
        name=None,  # type: Optional[str]
        type=None,  # type: Optional[str]
        sampled=True,  # type: bool
        traceparent=None,  # type: Optional[str]
        clock_start=None,  # type: Optional[int]
    ):
        # type: (...) -> Optional[Transaction]
        if not self.enabled:
            return None

        current = self.current_transaction()
        if current is not None and not current.stopped:
            log.debug("transaction %r already in progress, starting %r anyway", current, name)

        trace_context = TraceContext.from_header(traceparent)
        if trace_context is not None:
            sampled = trace_context.recorded
        transaction = Transaction(
            name, type, sampled=sampled, config=self.config, trace_context=trace_context
        ).start(clock_start)
        _CURRENT_TRANSACTION.set(transaction)
        _CURRENT_SPAN.set(None)
        return transaction

    def end_transaction(self, result=None, clock_end=None):
        # type: (Optional[str], Optional[int]) -> Optional[Transaction]
        transaction = self.current_transaction()
        if transaction is None:
            return None

        transaction.done(result, clock_end=clock_end)
        _CURRENT_TRANSACTION.set(None)
        _CURRENT_SPAN.set(None)

        if self.on_transaction_end is not None:
            self.on_transaction_end(transaction)
        return transaction

    # spans

    def start_span(
        self,
        name,  # type: str
        type=None,  # type: Optional[str]
        subtype=None,  # type: Optional[str]
        action=None,  # type: Optional[str]
        context=None,  # type: Optional[SpanContext]
        clock_start=None,  # type: Optional[int]
    ):
        # type: (...) -> Optional[Span]
        """Start a span under the current span or transaction.

        ``None`` is returned when there is nothing to record the span against,
        when the transaction is not sampled or when its span budget is spent.
        """
        transaction = self.current_transaction()
        if transaction is None or transaction.stopped or not transaction.sampled:
            return None

        if not transaction.inc_started_spans():
            return None

        span = Span(
            name,
            transaction,
            type=type,
            subtype=subtype,
            action=action,
            context=context,
            parent=self.current_span(),
        ).start(clock_start)
        _CURRENT_SPAN.set(span)
        return span

    def start_span_from_descriptor(self, descriptor, clock_start=None):
        # type: (SpanDescriptor, Optional[int]) -> Optional[Span]
        return self.start_span(
            descriptor.name,
            type=descriptor.type,
            subtype=descriptor.subtype,
            action=descriptor.action,
            context=descriptor.context,
            clock_start=clock_start,
        )

    def end_span(self, span=None, clock_end=None):
        # type: (Optional[Span], Optional[int]) -> Optional[Span]
        span = span or self.current_span()
        if span is None:
            return None

        span.stop(clock_end)
        if self.current_span() is span:
            parent = span.parent
            _CURRENT_SPAN.set(parent if isinstance(parent, Span) else None)

        if self.on_span_end is not None:
            self.on_span_end(span)
        return span

    def classify(self, event_name, payload):
        # type: (str, Mapping[str, Any]) -> Union[SpanDescriptor, Any]
        return self.normalizers.normalize(self.current_transaction(), event_name, payload)

    def span_from_event(self, event_name, payload, clock_start=None):
        # type: (str, Mapping[str, Any], Optional[int]) -> Optional[Span]
        """Classify an instrumentation event and start a span for it."""
        if self.current_transaction() is None:
            return None
        descriptor = self.classify(event_name, payload)
        if descriptor is SKIP:
            return None
        return self.start_span_from_descriptor(descriptor, clock_start=clock_start)

    @contextlib.contextmanager
    def capture_span(
        self,
        name,  # type: str
        type=None,  # type: Optional[str]
        subtype=None,  # type: Optional[str]
        action=None,  # type: Optional[str]
        context=None,  # type: Optional[SpanContext]
    ):
        # type: (...) -> Iterator[Optional[Span]]
        """Run the block inside a span, or untraced when the span is not admitted.

        The block always runs, and its exceptions propagate unchanged.
        """
        span = self.start_span(name, type=type, subtype=subtype, action=action, context=context)
        try:
            yield span
        finally:
            if span is not None:
                self.end_span(span)

    @contextlib.contextmanager
    def capture_event(self, event_name, payload):
        # type: (str, Mapping[str, Any]) -> Iterator[Optional[Span]]
        """Like ``capture_span`` for an instrumentation event payload."""
        span = self.span_from_event(event_name, payload)
        try:
            yield span
        finally:
            if span is not None:
                self.end_span(span)
