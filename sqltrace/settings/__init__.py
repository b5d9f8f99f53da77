from .config import TracingConfig
from .config import config


__all__ = ["TracingConfig", "config"]
