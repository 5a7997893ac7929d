from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence

from contracts.schemas import ALL_STATUSES, REGISTRATION_STATUSES


@dataclass(frozen=True)
class BoundsPolicy:
    """
    Collection limits for corridor records:
      - max_boundaries: boundary sequence must hold 1..max_boundaries tokens
      - max_parcels: a parcel set never grows past this length
      - max_tags: tag set length limit at registration
      - max_permissions: permission entries per collaborator grant
    """

    max_boundaries: int = 100
    max_parcels: int = 50
    max_tags: int = 20
    max_permissions: int = 5

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None = None) -> "BoundsPolicy":
        raw = raw or {}
        defaults = cls()
        return cls(
            max_boundaries=int(raw.get("max_boundaries", defaults.max_boundaries)),
            max_parcels=int(raw.get("max_parcels", defaults.max_parcels)),
            max_tags=int(raw.get("max_tags", defaults.max_tags)),
            max_permissions=int(raw.get("max_permissions", defaults.max_permissions)),
        )


DEFAULT_BOUNDS = BoundsPolicy()


def valid_boundaries(boundaries: Sequence[str], policy: BoundsPolicy = DEFAULT_BOUNDS) -> bool:
    return 0 < len(boundaries) <= policy.max_boundaries


def valid_parcels(parcels: Sequence[Any], policy: BoundsPolicy = DEFAULT_BOUNDS) -> bool:
    return len(parcels) <= policy.max_parcels


def parcel_capacity_left(parcels: Sequence[Any], policy: BoundsPolicy = DEFAULT_BOUNDS) -> bool:
    return len(parcels) < policy.max_parcels


def valid_tags(tags: Sequence[str], policy: BoundsPolicy = DEFAULT_BOUNDS) -> bool:
    return len(tags) <= policy.max_tags


def valid_permissions(permissions: Sequence[str], policy: BoundsPolicy = DEFAULT_BOUNDS) -> bool:
    return len(permissions) <= policy.max_permissions


def has_duplicates(items: Iterable[Any]) -> bool:
    seen: list[Any] = []
    for item in items:
        if item in seen:
            return True
        seen.append(item)
    return False


def status_value(status: Any) -> str:
    return str(status.value if hasattr(status, "value") else status)


def valid_registration_status(status: Any) -> bool:
    return status_value(status) in REGISTRATION_STATUSES


def valid_status(status: Any) -> bool:
    return status_value(status) in ALL_STATUSES
