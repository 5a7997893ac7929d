from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

from contracts.schemas import (
    AdminState,
    Collaborator,
    Corridor,
    Identity,
    ParcelSet,
    StatusHistoryEntry,
    TagSet,
    VersionEntry,
)


@dataclass
class RegistryState:
    """
    Authoritative tables of the registry. Composite keys are plain tuples:
      - versions: (corridor_id, version)
      - collaborators: (corridor_id, identity)
      - status_history: (corridor_id, change_id)
    Only the registry engine writes to these tables.
    """

    admin: AdminState
    corridors: Dict[int, Corridor] = field(default_factory=dict)
    parcels: Dict[int, ParcelSet] = field(default_factory=dict)
    tags: Dict[int, TagSet] = field(default_factory=dict)
    versions: Dict[Tuple[int, int], VersionEntry] = field(default_factory=dict)
    collaborators: Dict[Tuple[int, Identity], Collaborator] = field(default_factory=dict)
    status_history: Dict[Tuple[int, int], StatusHistoryEntry] = field(default_factory=dict)

    @classmethod
    def create(cls, owner: Identity) -> "RegistryState":
        return cls(admin=AdminState(owner=owner))

    def name_taken(self, name: str) -> bool:
        return any(c.name == name for c in self.corridors.values())

    def summary(self) -> dict[str, Any]:
        return {
            "owner": self.admin.owner,
            "paused": self.admin.paused,
            "corridor_count": self.admin.counter,
            "versions": len(self.versions),
            "collaborators": len(self.collaborators),
            "status_changes": len(self.status_history),
        }


def allocate_id(state: RegistryState) -> int:
    state.admin.counter += 1
    return state.admin.counter
