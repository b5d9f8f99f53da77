"""
Generic dbapi tracing code.

Wrap any PEP 249 connection to record one ``db`` span per executed statement
on the current transaction::

    import sqlite3
    from sqltrace.contrib.dbapi import TracedConnection

    conn = TracedConnection(sqlite3.connect(":memory:"))
    conn.cursor().execute("SELECT * FROM users WHERE id = 42")
    # span "SELECT FROM users", subtype "sqlite",
    # statement "SELECT * FROM users WHERE id = ?"
"""
import wrapt

import sqltrace
from sqltrace.ext import sql
from sqltrace.internal.logger import get_logger
from sqltrace.normalizers.sql import connection_registry


log = get_logger(__name__)


class TracedCursor(wrapt.ObjectProxy):
    """TracedCursor wraps a dbapi cursor and traces its queries."""

    def __init__(self, cursor, connection, tracer=None):
        super(TracedCursor, self).__init__(cursor)
        self._self_connection = connection
        self._self_tracer = tracer or sqltrace.tracer
        self._self_query_name = "{}.query".format(connection.adapter_name)

    def _trace_method(self, method, query, *args, **kwargs):
        """
        Internal function to trace the call to the underlying cursor method
        :param method: The callable to be wrapped
        :param query: The sql query, recorded obfuscated on the span
        :param args: The args that will be passed as positional args to the wrapped method
        :param kwargs: The args that will be passed as kwargs to the wrapped method
        :return: The result of the wrapped method invocation
        """
        tracer = self._self_tracer
        if not tracer.enabled:
            return method(*args, **kwargs)

        span = None
        try:
            span = tracer.span_from_event(sql.DBAPI_EVENT, self._payload(query))
        except Exception:
            log.debug("failed to start span for query", exc_info=True)

        try:
            result = method(*args, **kwargs)
        finally:
            if span is not None:
                tracer.end_span(span)

        # keep chained calls such as ``cursor.execute(...).fetchall()`` on the proxy
        if result is self.__wrapped__:
            return self
        return result

    def _payload(self, query):
        if not isinstance(query, (str, bytes)):
            query = str(query)
        return {
            "sql": query,
            "name": self._self_query_name,
            "connection": self._self_connection,
            "connection_id": self._self_connection.connection_id,
        }

    def execute(self, query, *args, **kwargs):
        """Wraps the cursor.execute method"""
        return self._trace_method(self.__wrapped__.execute, query, query, *args, **kwargs)

    def executemany(self, query, *args, **kwargs):
        """Wraps the cursor.executemany method"""
        return self._trace_method(self.__wrapped__.executemany, query, query, *args, **kwargs)

    def callproc(self, proc, *args, **kwargs):
        """Wraps the cursor.callproc method"""
        return self._trace_method(self.__wrapped__.callproc, proc, proc, *args, **kwargs)

    def __enter__(self):
        # previous versions of the dbapi didn't support context managers. let's
        # reference the func that would be called to ensure that errors
        # messages will be the same.
        self.__wrapped__.__enter__

        # and finally, yield the traced cursor.
        return self


class TracedConnection(wrapt.ObjectProxy):
    """TracedConnection wraps a Connection with tracing code."""

    def __init__(self, conn, tracer=None, registry=None):
        super(TracedConnection, self).__init__(conn)
        self._self_adapter_name = _get_vendor(conn)
        self._self_tracer = tracer or sqltrace.tracer
        self._self_connection_id = (registry or connection_registry).register(self)

    @property
    def adapter_name(self):
        return self._self_adapter_name

    @property
    def connection_id(self):
        return self._self_connection_id

    def cursor(self, *args, **kwargs):
        cursor = self.__wrapped__.cursor(*args, **kwargs)
        return TracedCursor(cursor, self, self._self_tracer)

    def execute(self, *args, **kwargs):
        # sqlite3 style shortcut, routed through a traced cursor
        return self.cursor().execute(*args, **kwargs)

    def __enter__(self):
        self.__wrapped__.__enter__()
        return self


def _get_vendor(conn):
    """Return the vendor (e.g postgres, mysql) of the given
    database.
    """
    try:
        name = _get_module_name(conn)
    except Exception:
        log.debug("couldnt parse module name", exc_info=True)
        name = "sql"
    return sql.normalize_vendor(name)


def _get_module_name(conn):
    return conn.__class__.__module__.split(".")[0]
