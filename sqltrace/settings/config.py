import sys
import typing as t

from envier import En
from envier import validators


class TracingConfig(En):
    __prefix__ = "sqltrace"

    enabled = En.v(
        bool,
        "enabled",
        default=True,
        help_type="Boolean",
        help="Enable recording of transactions and spans",
    )

    transaction_max_spans = En.v(
        int,
        "transaction_max_spans",
        default=500,
        validator=validators.range(0, sys.maxsize),
        help_type="Integer",
        help="Maximum number of spans recorded per transaction. Further spans are counted as dropped",
    )

    default_labels = En.v(
        dict,
        "default_labels",
        default={},
        help_type="Mapping",
        help="Labels merged into the context of every transaction, e.g. ``region:eu,tier:web``",
    )

    default_db_adapter = En.v(
        t.Optional[str],
        "default_db_adapter",
        default=None,
        help_type="String",
        help="Database adapter name used as span subtype when no connection can be resolved for a query",
    )


config = TracingConfig()
