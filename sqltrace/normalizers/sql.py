import weakref
from typing import Any
from typing import Callable
from typing import Dict
from typing import Hashable
from typing import Mapping
from typing import Optional

from sqltrace.constants import DB_TYPE
from sqltrace.constants import SKIP
from sqltrace.constants import SQL_ACTION
from sqltrace.constants import SQL_CONTEXT_TYPE
from sqltrace.constants import UNKNOWN_ADAPTER
from sqltrace.ext.sql import DBAPI_EVENT
from sqltrace.internal.logger import get_logger
from sqltrace.sql.obfuscator import Obfuscator
from sqltrace.sql.summarizer import summarize

from .._trace.span import DbContext
from .._trace.span import Destination
from .._trace.span import SpanContext
from .._trace.span import SpanDescriptor
from .base import Normalizer
from .base import register


log = get_logger(__name__)

# Framework-internal queries (schema introspection, query cache hits)
SKIP_NAMES = frozenset(("SCHEMA", "CACHE"))

_MISSING = object()


def _lower(adapter_name):
    # type: (str) -> str
    return adapter_name.lower()


class AdapterCache(object):
    """Memoizes the lower-cased form of database adapter names.

    Adapter names are few and stable for the lifetime of a process, so entries
    never expire. The backing dict is shared between threads without a lock:
    two threads racing on the same new key store the same value.
    """

    def __init__(self, normalize=None):
        # type: (Optional[Callable[[str], str]]) -> None
        self._normalize = normalize or _lower
        self._adapters = {}  # type: Dict[Hashable, str]

    def resolve(self, adapter_name):
        # type: (Optional[str]) -> Optional[str]
        if adapter_name is None or adapter_name == "":
            return UNKNOWN_ADAPTER

        try:
            value = self._adapters.get(adapter_name)
            if value is None:
                value = self._adapters[adapter_name] = self._normalize(adapter_name)
            return value
        except Exception:
            log.debug("unable to normalize adapter name %r", adapter_name, exc_info=True)
            return None

    def __len__(self):
        return len(self._adapters)

    def clear(self):
        # type: () -> None
        self._adapters.clear()


class ConnectionRegistry(object):
    """Weakly maps connection ids to live connection objects.

    Instrumentation registers the connections it wraps so that events which
    only carry a ``connection_id`` can still be attributed to an adapter.
    Entries disappear together with the connection.
    """

    def __init__(self):
        # type: () -> None
        self._connections = weakref.WeakValueDictionary()  # type: weakref.WeakValueDictionary

    def register(self, connection, connection_id=None):
        # type: (Any, Optional[Hashable]) -> Hashable
        connection_id = id(connection) if connection_id is None else connection_id
        try:
            self._connections[connection_id] = connection
        except TypeError:
            log.debug("connection %r does not support weak references", type(connection), exc_info=True)
        return connection_id

    def unregister(self, connection_id):
        # type: (Hashable) -> None
        self._connections.pop(connection_id, None)

    def lookup(self, connection_id):
        # type: (Hashable) -> Optional[Any]
        return self._connections.get(connection_id)

    def __len__(self):
        return len(self._connections)


connection_registry = ConnectionRegistry()


def _adapter_name_of(handle):
    # type: (Any) -> Any
    adapter_name = getattr(handle, "adapter_name", _MISSING)
    if callable(adapter_name):
        adapter_name = adapter_name()
    return adapter_name


@register(DBAPI_EVENT)
class SqlNormalizer(Normalizer):
    """Classifies SQL query events into ``db`` spans with an obfuscated statement.

    The span subtype is the database adapter, looked up, in order, on the
    payload's ``connection`` handle, on the connection found through
    ``lookup_connection(payload["connection_id"])`` and finally through
    ``default_adapter()``. Every lookup failure falls through to the next
    strategy and ultimately to ``"unknown"``.
    """

    def __init__(
        self,
        config,
        adapters=None,  # type: Optional[AdapterCache]
        obfuscator=None,  # type: Optional[Obfuscator]
        summarizer=None,  # type: Optional[Callable[[str], Optional[str]]]
        lookup_connection=None,  # type: Optional[Callable[[Hashable], Any]]
        default_adapter=None,  # type: Optional[Callable[[], Optional[str]]]
    ):
        super(SqlNormalizer, self).__init__(config)
        self.adapters = adapters or AdapterCache()
        self.obfuscator = obfuscator or Obfuscator()
        self.summarizer = summarizer or summarize
        self.lookup_connection = lookup_connection or connection_registry.lookup
        self.default_adapter = default_adapter or (lambda: self.config.default_db_adapter)

    def normalize(self, transaction, event_name, payload):
        # type: (Any, str, Mapping[str, Any]) -> Any
        if payload.get("name") in SKIP_NAMES:
            return SKIP

        sql = payload.get("sql") or ""
        name = self.summarizer(sql) or payload.get("name") or "SQL"
        subtype = self.subtype_for(payload)

        context = SpanContext(
            db=DbContext(statement=self.obfuscator.obfuscate(sql), type=SQL_CONTEXT_TYPE),
            destination=Destination(name=subtype, resource=subtype, type=DB_TYPE),
        )
        return SpanDescriptor(name=name, type=DB_TYPE, subtype=subtype, action=SQL_ACTION, context=context)

    def subtype_for(self, payload):
        # type: (Mapping[str, Any]) -> str
        connection = payload.get("connection")
        if connection is not None:
            adapter_name = self._safe_adapter_name(connection)
            if adapter_name is not _MISSING:
                return self.adapters.resolve(adapter_name) or UNKNOWN_ADAPTER

        connection_id = payload.get("connection_id")
        if connection_id is not None:
            try:
                loaded = self.lookup_connection(connection_id)
            except Exception:
                # the connection may have been collected already
                log.debug("connection lookup failed for id %r", connection_id, exc_info=True)
                loaded = None
            if loaded is not None:
                adapter_name = self._safe_adapter_name(loaded)
                if adapter_name is not _MISSING:
                    return self.adapters.resolve(adapter_name) or UNKNOWN_ADAPTER

        try:
            adapter_name = self.default_adapter()
        except Exception:
            log.debug("default adapter lookup failed", exc_info=True)
            adapter_name = None
        return self.adapters.resolve(adapter_name) or UNKNOWN_ADAPTER

    @staticmethod
    def _safe_adapter_name(handle):
        # type: (Any) -> Any
        try:
            return _adapter_name_of(handle)
        except Exception:
            log.debug("unable to read adapter name from %r", type(handle), exc_info=True)
            return _MISSING
