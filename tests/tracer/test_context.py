import pytest

from sqltrace._trace.context import Context
from sqltrace._trace.context import TraceContext
from sqltrace._trace.context import reverse_merge


TRACE_ID = "0af7651916cd43dd8448eb211c80319c"
PARENT_ID = "b7ad6b7169203331"


def test_new_trace_context():
    context = TraceContext()
    assert context.recorded
    assert len(context.trace_id) == 32
    assert len(context.id) == 16
    assert context.parent_id is None
    assert context.version == "00"


def test_child_shares_trace():
    parent = TraceContext(recorded=False)
    child = parent.child()
    assert child.trace_id == parent.trace_id
    assert child.parent_id == parent.id
    assert child.id != parent.id
    assert not child.recorded


@pytest.mark.parametrize("flags,recorded", [("01", True), ("00", False), ("03", True)])
def test_from_header(flags, recorded):
    context = TraceContext.from_header("00-%s-%s-%s" % (TRACE_ID, PARENT_ID, flags))
    assert context.trace_id == TRACE_ID
    assert context.parent_id == PARENT_ID
    assert context.recorded is recorded
    assert context.id != PARENT_ID


@pytest.mark.parametrize(
    "header",
    [
        None,
        "",
        "garbage",
        "00-%s-%s" % (TRACE_ID, PARENT_ID),
        "00-%s-%s-01" % (TRACE_ID[:-1], PARENT_ID),
        "00-%s-%s-zz" % (TRACE_ID, PARENT_ID),
    ],
)
def test_from_malformed_header(header):
    assert TraceContext.from_header(header) is None


def test_header_round_trip():
    context = TraceContext(recorded=True)
    header = context.to_header()
    assert header == "00-%s-%s-01" % (context.trace_id, context.id)

    downstream = TraceContext.from_header(header)
    assert downstream.trace_id == context.trace_id
    assert downstream.parent_id == context.id


def test_unrecorded_header():
    assert TraceContext(recorded=False).to_header().endswith("-00")


def test_reverse_merge():
    target = {"a": 1}
    assert reverse_merge(target, {"a": 2, "b": 3}) is target
    assert target == {"a": 1, "b": 3}


def test_context_defaults_are_not_shared():
    first, second = Context(), Context()
    first.labels["a"] = 1
    assert second.labels == {}
    assert second.user.is_empty()
