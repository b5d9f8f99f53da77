from typing import TYPE_CHECKING
from typing import Any
from typing import Dict
from typing import List
from typing import Mapping
from typing import Optional
from typing import Type
from typing import Union

from sqltrace.constants import SKIP
from sqltrace.internal.logger import get_logger


if TYPE_CHECKING:  # pragma: no cover
    from sqltrace._trace.span import SpanDescriptor
    from sqltrace._trace.transaction import Transaction
    from sqltrace.settings.config import TracingConfig


log = get_logger(__name__)

_registry = {}  # type: Dict[str, Type[Normalizer]]


def register(*event_names):
    """Class decorator registering a normalizer for the given event names."""

    def _register(cls):
        for event_name in event_names:
            _registry[event_name] = cls
        cls.event_names = tuple(getattr(cls, "event_names", ())) + event_names
        return cls

    return _register


class Normalizer(object):
    """Turns an instrumentation event payload into a span descriptor."""

    event_names = ()  # type: tuple

    def __init__(self, config):
        # type: (TracingConfig) -> None
        self.config = config

    def normalize(self, transaction, event_name, payload):
        # type: (Optional[Transaction], str, Mapping[str, Any]) -> Union[SpanDescriptor, Any]
        return SKIP


class Normalizers(object):
    """Dispatches events to the normalizer registered for their name."""

    def __init__(self, config, registry=None):
        # type: (TracingConfig, Optional[Dict[str, Type[Normalizer]]]) -> None
        registry = _registry if registry is None else registry
        instances = {}  # type: Dict[Type[Normalizer], Normalizer]
        self._normalizers = {}  # type: Dict[str, Normalizer]
        for event_name, cls in registry.items():
            if cls not in instances:
                instances[cls] = cls(config)
            self._normalizers[event_name] = instances[cls]

    def for_event(self, event_name):
        # type: (str) -> Optional[Normalizer]
        return self._normalizers.get(event_name)

    def keys(self):
        # type: () -> List[str]
        return list(self._normalizers)

    def normalize(self, transaction, event_name, payload):
        normalizer = self._normalizers.get(event_name)
        if normalizer is None:
            log.debug("no normalizer registered for event %r", event_name)
            return SKIP
        return normalizer.normalize(transaction, event_name, payload)
