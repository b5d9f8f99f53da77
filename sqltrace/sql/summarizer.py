"""Short, literal-free span names for SQL statements.

Nothing is memoized: the statements passed in still carry their literal
values and must not outlive the call.
"""
import re
from typing import Optional


# Only the head of a statement is inspected
SUMMARY_SCAN_LENGTH = 1000

_TABLE = r"[\"'`]?([\w.]+)[\"'`]?"

_SIGNATURES = (
    (re.compile(r"^BEGIN", re.IGNORECASE), "BEGIN"),
    (re.compile(r"^COMMIT", re.IGNORECASE), "COMMIT"),
    (re.compile(r"^SELECT .* FROM " + _TABLE, re.IGNORECASE), "SELECT FROM "),
    (re.compile(r"^INSERT INTO " + _TABLE, re.IGNORECASE), "INSERT INTO "),
    (re.compile(r"^UPDATE " + _TABLE, re.IGNORECASE), "UPDATE "),
    (re.compile(r"^DELETE FROM " + _TABLE, re.IGNORECASE), "DELETE FROM "),
)


def summarize(sql):
    # type: (str) -> Optional[str]
    """Return a span name such as ``SELECT FROM users`` for ``sql``.

    ``None`` is returned for statements with no known signature, callers
    should then fall back to a name of their own.
    """
    if not sql:
        return None
    if isinstance(sql, bytes):
        sql = sql[: SUMMARY_SCAN_LENGTH * 4].decode("utf-8", errors="replace")

    head = sql[:SUMMARY_SCAN_LENGTH]
    for regex, signature in _SIGNATURES:
        match = regex.match(head)
        if match is None:
            continue
        table = match.group(1) if match.groups() else None
        return signature + table if table else signature
    return None
