import pytest

from sqltrace import Tracer
from sqltrace._trace import tracer as tracer_module
from tests.utils import make_config


@pytest.fixture(autouse=True)
def _reset_active_trace():
    # context variables outlive a test when it runs on the same thread
    tokens = (tracer_module._CURRENT_TRANSACTION.set(None), tracer_module._CURRENT_SPAN.set(None))
    yield
    tracer_module._CURRENT_SPAN.reset(tokens[1])
    tracer_module._CURRENT_TRANSACTION.reset(tokens[0])


@pytest.fixture
def config():
    return make_config()


class Recorder(object):
    def __init__(self):
        self.transactions = []
        self.spans = []


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def tracer(config, recorder):
    return Tracer(
        config=config,
        on_transaction_end=recorder.transactions.append,
        on_span_end=recorder.spans.append,
    )
