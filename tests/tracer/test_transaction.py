import mock
import pytest
from hypothesis import given
from hypothesis import strategies as st

from sqltrace import Transaction
from sqltrace import TransactionStateError
from sqltrace._trace._timing import StateError
from sqltrace._trace.context import Context
from sqltrace._trace.span import Span
from tests.utils import make_config


def test_transaction_defaults(config):
    transaction = Transaction("GET /users", config=config)
    assert transaction.name == "GET /users"
    assert transaction.type == "custom"
    assert transaction.sampled
    assert transaction.result is None
    assert not transaction.started
    assert not transaction.stopped
    assert transaction.duration is None
    assert len(transaction.id) == 16
    assert len(transaction.trace_id) == 32
    assert transaction.parent_id is None


def test_transaction_clock(config):
    transaction = Transaction("job", "worker", config=config).start(clock_start=1000)
    assert transaction.started
    assert transaction.clock_start == 1000
    assert transaction.timestamp is not None

    transaction.stop(clock_end=1500)
    assert transaction.stopped
    assert transaction.duration == 500
    assert transaction.self_time == 500


def test_transaction_uses_monotonic_clock_by_default(config):
    with mock.patch("sqltrace._trace.transaction.monotonic_micros", side_effect=[10, 35]):
        transaction = Transaction(config=config).start()
        transaction.stop()
    assert transaction.duration == 25


def test_stop_before_start_raises(config):
    transaction = Transaction(config=config)
    with pytest.raises(TransactionStateError):
        transaction.stop()
    assert not transaction.stopped


def test_stop_twice_raises(config):
    transaction = Transaction(config=config).start(0)
    transaction.stop(10)
    with pytest.raises(TransactionStateError):
        transaction.stop(20)
    assert transaction.duration == 10


def test_done_twice_raises(config):
    transaction = Transaction(config=config).start(0)
    transaction.done("success", clock_end=10)
    with pytest.raises(TransactionStateError):
        transaction.done("failure", clock_end=20)
    assert transaction.result == "success"


def test_start_twice_raises(config):
    transaction = Transaction(config=config).start(0)
    with pytest.raises(TransactionStateError):
        transaction.start(5)
    assert transaction.clock_start == 0


def test_state_error_hierarchy():
    assert issubclass(TransactionStateError, StateError)
    assert issubclass(StateError, RuntimeError)


def test_done_records_result(config):
    transaction = Transaction(config=config).start(0).done("HTTP 2xx", clock_end=3)
    assert transaction.result == "HTTP 2xx"
    assert transaction.duration == 3


def test_self_time_excludes_children(config):
    transaction = Transaction(config=config).start(0)
    Span("a", transaction).start(10).stop(30)
    Span("b", transaction).start(50).stop(60)
    transaction.stop(100)

    assert transaction.child_durations.duration == 30
    assert transaction.self_time == 70


def test_self_time_counts_overlapping_children_once(config):
    transaction = Transaction(config=config).start(0)
    first = Span("a", transaction).start(10)
    second = Span("b", transaction).start(20)
    first.stop(40)
    second.stop(50)
    transaction.stop(100)

    assert transaction.self_time == 60


def test_self_time_is_never_negative(config):
    transaction = Transaction(config=config).start(100)
    # a child reporting times outside the parent window
    Span("a", transaction).start(0).stop(500)
    transaction.stop(200)

    assert transaction.duration == 100
    assert transaction.self_time == 0


def test_default_labels_do_not_override(config):
    config = make_config(default_labels="env:prod,region:eu")
    context = Context(labels={"env": "staging"})
    transaction = Transaction(context=context, config=config)
    assert transaction.context.labels == {"env": "staging", "region": "eu"}


def test_span_budget_from_config():
    transaction = Transaction(config=make_config(transaction_max_spans=2))
    assert [transaction.inc_started_spans() for _ in range(4)] == [True, True, False, False]
    assert transaction.started_spans == 2
    assert transaction.dropped_spans == 2


def test_add_response(config):
    transaction = Transaction(config=config)
    transaction.add_response(200, {"content-type": "text/plain"})
    assert transaction.context.response.status_code == 200
    assert transaction.context.response.headers == {"content-type": "text/plain"}
    assert transaction.context.response.finished


def test_set_user(config):
    user = mock.Mock(id=7, email="a@example.com", username="alice")
    transaction = Transaction(config=config)
    transaction.set_user(user)
    assert transaction.context.user.id == "7"
    assert transaction.context.user.email == "a@example.com"
    assert transaction.context.user.username == "alice"

    transaction.set_user(None)
    assert transaction.context.user.is_empty()


def test_ensure_parent_id_is_stable(config):
    transaction = Transaction(config=config)
    parent_id = transaction.ensure_parent_id()
    assert len(parent_id) == 16
    assert transaction.ensure_parent_id() == parent_id
    assert transaction.parent_id == parent_id


def test_repr(config):
    transaction = Transaction("GET /", "request", config=config)
    assert repr(transaction) == "<Transaction id:%s name:'GET /' type:'request'>" % transaction.id


@given(
    start=st.integers(min_value=0, max_value=2 ** 40),
    elapsed=st.integers(min_value=0, max_value=2 ** 40),
    stops=st.integers(min_value=1, max_value=5),
)
def test_stop_succeeds_exactly_once(start, elapsed, stops):
    transaction = Transaction(config=make_config()).start(start)
    outcomes = []
    for _ in range(stops):
        try:
            transaction.stop(start + elapsed)
            outcomes.append(True)
        except TransactionStateError:
            outcomes.append(False)

    assert outcomes == [True] + [False] * (stops - 1)
    assert transaction.duration == elapsed
    assert 0 <= transaction.self_time <= transaction.duration
