from .bounds import (
    DEFAULT_BOUNDS,
    BoundsPolicy,
    has_duplicates,
    parcel_capacity_left,
    status_value,
    valid_boundaries,
    valid_parcels,
    valid_permissions,
    valid_registration_status,
    valid_status,
    valid_tags,
)

__all__ = [
    "BoundsPolicy",
    "DEFAULT_BOUNDS",
    "has_duplicates",
    "parcel_capacity_left",
    "status_value",
    "valid_boundaries",
    "valid_parcels",
    "valid_permissions",
    "valid_registration_status",
    "valid_status",
    "valid_tags",
]
