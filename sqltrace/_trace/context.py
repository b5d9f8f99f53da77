import random
import re
from typing import Any
from typing import Dict
from typing import Optional

import attr

from sqltrace.internal.logger import get_logger


log = get_logger(__name__)

TRACEPARENT_VERSION = "00"

_TRACEPARENT_RE = re.compile(r"^([0-9a-f]{2})-([0-9a-f]{32})-([0-9a-f]{16})-([0-9a-f]{2})$")


def _rand_hex(nbytes):
    # type: (int) -> str
    return "%0*x" % (nbytes * 2, random.getrandbits(nbytes * 8))


@attr.s
class TraceContext(object):
    """Identity of a transaction within a distributed trace.

    ``trace_id`` is shared by every transaction of the trace, ``id`` identifies
    this transaction and ``parent_id`` the upstream caller, if any.
    """

    recorded = attr.ib(type=bool, default=True)
    trace_id = attr.ib(type=str, factory=lambda: _rand_hex(16))
    id = attr.ib(type=str, factory=lambda: _rand_hex(8))
    parent_id = attr.ib(type=Optional[str], default=None)
    version = attr.ib(type=str, default=TRACEPARENT_VERSION)

    def ensure_parent_id(self):
        # type: () -> str
        if self.parent_id is None:
            self.parent_id = _rand_hex(8)
        return self.parent_id

    def child(self):
        # type: () -> TraceContext
        """Context for a span started under this one."""
        return TraceContext(recorded=self.recorded, trace_id=self.trace_id, parent_id=self.id, version=self.version)

    def to_header(self):
        # type: () -> str
        return "%s-%s-%s-%02x" % (self.version, self.trace_id, self.id, 1 if self.recorded else 0)

    @classmethod
    def from_header(cls, header):
        # type: (Optional[str]) -> Optional[TraceContext]
        """Continue the trace described by a W3C ``traceparent`` header.

        The upstream span becomes our parent. ``None`` is returned when the
        header is missing or malformed.
        """
        if not header:
            return None
        match = _TRACEPARENT_RE.match(header.strip().lower())
        if match is None:
            log.debug("ignoring malformed traceparent header %r", header)
            return None
        version, trace_id, parent_id, flags = match.groups()
        return cls(recorded=bool(int(flags, 16) & 1), trace_id=trace_id, parent_id=parent_id, version=version)


@attr.s
class Response(object):
    status_code = attr.ib(type=Optional[int], default=None)
    headers = attr.ib(type=Optional[Dict[str, str]], default=None)
    finished = attr.ib(type=bool, default=True)


@attr.s
class User(object):
    id = attr.ib(type=Optional[str], default=None)
    email = attr.ib(type=Optional[str], default=None)
    username = attr.ib(type=Optional[str], default=None)

    @classmethod
    def infer(cls, user):
        # type: (Any) -> User
        if user is None:
            return cls()
        values = {}
        for field in ("id", "email", "username"):
            value = getattr(user, field, None)
            values[field] = None if value is None else str(value)
        return cls(**values)

    def is_empty(self):
        # type: () -> bool
        return self.id is None and self.email is None and self.username is None


@attr.s
class Context(object):
    labels = attr.ib(type=Dict[str, Any], factory=dict)
    custom = attr.ib(type=Dict[str, Any], factory=dict)
    response = attr.ib(type=Optional[Response], default=None)
    user = attr.ib(type=User, factory=User)


def reverse_merge(target, defaults):
    # type: (Dict[str, Any], Dict[str, Any]) -> Dict[str, Any]
    """Add ``defaults`` to ``target`` without overwriting existing keys."""
    for key, value in defaults.items():
        target.setdefault(key, value)
    return target
