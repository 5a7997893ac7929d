from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Hashable, Tuple

# Identity is opaque to the registry: equality is the only operation used.
Identity = Hashable


class CorridorStatus(str, Enum):
    PROPOSED = "proposed"
    ACTIVE = "active"
    ARCHIVED = "archived"


REGISTRATION_STATUSES = frozenset({CorridorStatus.PROPOSED.value, CorridorStatus.ACTIVE.value})
ALL_STATUSES = frozenset(s.value for s in CorridorStatus)


class ErrorCode(IntEnum):
    CORRIDOR_EXISTS = 1
    NOT_OWNER = 2
    INVALID_BOUNDARIES = 3
    INVALID_ID = 4
    NOT_AUTHORIZED = 5
    MAX_PARCELS_REACHED = 6
    INVALID_STATUS = 7
    VERSION_EXISTS = 8
    INVALID_VERSION = 9  # reserved
    MAX_TAGS = 10
    INVALID_PRINCIPAL = 11
    PAUSED = 12


class Rejection(str, Enum):
    """Internal rejection tags. Several tags share one wire code."""

    PAUSED = "paused"
    NOT_OWNER = "not_owner"
    NOT_AUTHORIZED = "not_authorized"
    INVALID_BOUNDARIES = "invalid_boundaries"
    TOO_MANY_PARCELS = "too_many_parcels"
    TOO_MANY_TAGS = "too_many_tags"
    INVALID_STATUS = "invalid_status"
    UNKNOWN_CORRIDOR = "unknown_corridor"
    DUPLICATE_NAME = "duplicate_name"
    DUPLICATE_PARCEL = "duplicate_parcel"
    DUPLICATE_COLLABORATOR = "duplicate_collaborator"
    DUPLICATE_VERSION = "duplicate_version"
    DUPLICATE_CHANGE_ID = "duplicate_change_id"
    SELF_COLLABORATOR = "self_collaborator"
    TOO_MANY_PERMISSIONS = "too_many_permissions"

    @property
    def code(self) -> ErrorCode:
        return _REJECTION_CODES[self]


_REJECTION_CODES: dict[Rejection, ErrorCode] = {
    Rejection.PAUSED: ErrorCode.PAUSED,
    Rejection.NOT_OWNER: ErrorCode.NOT_OWNER,
    Rejection.NOT_AUTHORIZED: ErrorCode.NOT_AUTHORIZED,
    Rejection.INVALID_BOUNDARIES: ErrorCode.INVALID_BOUNDARIES,
    Rejection.TOO_MANY_PARCELS: ErrorCode.MAX_PARCELS_REACHED,
    Rejection.TOO_MANY_TAGS: ErrorCode.MAX_TAGS,
    Rejection.INVALID_STATUS: ErrorCode.INVALID_STATUS,
    Rejection.UNKNOWN_CORRIDOR: ErrorCode.INVALID_ID,
    Rejection.DUPLICATE_NAME: ErrorCode.CORRIDOR_EXISTS,
    Rejection.DUPLICATE_PARCEL: ErrorCode.CORRIDOR_EXISTS,
    Rejection.DUPLICATE_COLLABORATOR: ErrorCode.CORRIDOR_EXISTS,
    Rejection.DUPLICATE_VERSION: ErrorCode.VERSION_EXISTS,
    Rejection.DUPLICATE_CHANGE_ID: ErrorCode.VERSION_EXISTS,
    Rejection.SELF_COLLABORATOR: ErrorCode.INVALID_PRINCIPAL,
    Rejection.TOO_MANY_PERMISSIONS: ErrorCode.INVALID_PRINCIPAL,
}


@dataclass(frozen=True)
class Corridor:
    """Stored corridor record. Sequence attributes on every record are tuples, whatever the caller passed in."""

    name: str
    description: str
    boundaries: Tuple[str, ...]
    creator: Identity
    created_at: int
    status: str
    visibility: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "boundaries": list(self.boundaries),
            "creator": self.creator,
            "created_at": self.created_at,
            "status": self.status,
            "visibility": self.visibility,
        }


@dataclass(frozen=True)
class ParcelSet:
    parcels: Tuple[Any, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"parcels": list(self.parcels)}


@dataclass(frozen=True)
class TagSet:
    tags: Tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"tags": list(self.tags)}


@dataclass(frozen=True)
class VersionEntry:
    changes: str
    timestamp: int
    updater: Identity

    def to_dict(self) -> dict[str, Any]:
        return {"changes": self.changes, "timestamp": self.timestamp, "updater": self.updater}


@dataclass(frozen=True)
class Collaborator:
    role: str
    permissions: Tuple[str, ...]
    added_at: int

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role, "permissions": list(self.permissions), "added_at": self.added_at}


@dataclass(frozen=True)
class StatusHistoryEntry:
    old_status: str
    new_status: str
    timestamp: int
    changer: Identity

    def to_dict(self) -> dict[str, Any]:
        return {
            "old_status": self.old_status,
            "new_status": self.new_status,
            "timestamp": self.timestamp,
            "changer": self.changer,
        }


@dataclass
class AdminState:
    owner: Identity
    paused: bool = False
    counter: int = 0


@dataclass(frozen=True)
class RegistryResult:
    ok: bool
    value: Any = None
    reason: Rejection | None = field(default=None, compare=False)

    @classmethod
    def success(cls, value: Any) -> "RegistryResult":
        return cls(ok=True, value=value)

    @classmethod
    def reject(cls, reason: Rejection) -> "RegistryResult":
        return cls(ok=False, value=int(reason.code), reason=reason)

    @property
    def code(self) -> ErrorCode | None:
        return None if self.ok else ErrorCode(self.value)

    def to_wire(self) -> dict[str, Any]:
        value = self.value
        if hasattr(value, "to_dict"):
            value = value.to_dict()
        return {"ok": self.ok, "value": value}
