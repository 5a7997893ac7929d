from .guard import is_corridor_owner, is_registry_admin

__all__ = [
    "is_corridor_owner",
    "is_registry_admin",
]
