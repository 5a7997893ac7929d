from .config import RegistryConfig
from .engine import CorridorRegistry
from .logging_setup import configure_logging

__all__ = [
    "CorridorRegistry",
    "RegistryConfig",
    "configure_logging",
]
