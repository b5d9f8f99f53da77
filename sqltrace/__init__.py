from ._trace.budget import SpanBudget
from ._trace.context import Context
from ._trace.context import TraceContext
from ._trace.span import Span
from ._trace.span import SpanDescriptor
from ._trace.tracer import Tracer
from ._trace.transaction import Transaction
from ._trace._timing import TransactionStateError
from .constants import SKIP
from .settings import config
from .sql import Obfuscator
from .sql import obfuscate_sql


__version__ = "0.1.0"

# a global tracer instance configured from the environment
tracer = Tracer()


__all__ = [
    "Context",
    "Obfuscator",
    "SKIP",
    "Span",
    "SpanBudget",
    "SpanDescriptor",
    "TraceContext",
    "Tracer",
    "Transaction",
    "TransactionStateError",
    "config",
    "obfuscate_sql",
    "tracer",
]
