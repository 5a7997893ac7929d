from .store import RegistryState, allocate_id

__all__ = [
    "RegistryState",
    "allocate_id",
]
