"""
Normalizers classify instrumentation events into span descriptors.

Each normalizer registers itself for one or more event names::

    @register("sql.dbapi")
    class SqlNormalizer(Normalizer):
        def normalize(self, transaction, event_name, payload):
            ...

and ``Normalizers(config).normalize(transaction, event_name, payload)``
returns either a ``SpanDescriptor`` or ``SKIP``.
"""
from .base import Normalizer
from .base import Normalizers
from .base import register
from .sql import AdapterCache
from .sql import ConnectionRegistry
from .sql import SqlNormalizer
from .sql import connection_registry


__all__ = [
    "AdapterCache",
    "ConnectionRegistry",
    "Normalizer",
    "Normalizers",
    "SqlNormalizer",
    "connection_registry",
    "register",
]
