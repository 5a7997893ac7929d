from __future__ import annotations

from contracts.schemas import Identity
from state_store import RegistryState


def is_registry_admin(state: RegistryState, caller: Identity) -> bool:
    return caller == state.admin.owner


def is_corridor_owner(state: RegistryState, corridor_id: int, caller: Identity) -> bool:
    # Unknown corridors are "not owned", never an error.
    corridor = state.corridors.get(corridor_id)
    return corridor is not None and corridor.creator == caller
