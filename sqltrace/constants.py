# span classification for database statements
DB_TYPE = "db"
SQL_ACTION = "sql"
SQL_CONTEXT_TYPE = "sql"

UNKNOWN_ADAPTER = "unknown"

DEFAULT_TRANSACTION_TYPE = "custom"

MAX_SQL_LENGTH = 2000
SQL_PLACEHOLDER = "?"
SQL_TOO_LARGE = "SQL query too large to remove sensitive data ..."
SQL_OBFUSCATION_FAILED = "Failed to obfuscate SQL query - quote characters remained after obfuscation"


class _Skip(object):
    """Marker returned by normalizers for events that must not become spans."""

    __slots__ = ()

    def __repr__(self):
        return "SKIP"

    def __bool__(self):
        return False


SKIP = _Skip()
