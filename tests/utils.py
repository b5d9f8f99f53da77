from sqltrace.settings.config import TracingConfig


def make_config(**env):
    """Build a ``TracingConfig`` from ``SQLTRACE_*`` values, e.g. ``make_config(transaction_max_spans=3)``."""
    return TracingConfig(source={"SQLTRACE_" + k.upper(): str(v) for k, v in env.items()})


class FakeConnection(object):
    """Stands in for a driver connection that knows its adapter name."""

    def __init__(self, adapter_name):
        self.adapter_name = adapter_name
