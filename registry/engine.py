from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Any, Iterable, Mapping, Optional, Tuple

from access_control import is_corridor_owner, is_registry_admin
from audit_log import AuditPolicy, build_audit_event, write_audit_event
from contracts.schemas import (
    Collaborator,
    Corridor,
    Identity,
    ParcelSet,
    RegistryResult,
    Rejection,
    StatusHistoryEntry,
    TagSet,
    VersionEntry,
)
from corridor_bounds import (
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
from registry.config import RegistryConfig
from state_store import RegistryState, allocate_id

logger = logging.getLogger(__name__)


def _as_tuple(values: Iterable[Any]) -> Tuple[Any, ...]:
    # A bare string is one element, not a sequence of characters.
    if isinstance(values, (str, bytes)):
        return (values,)
    return tuple(values)


class CorridorRegistry:
    """
    Single state-transition engine over one RegistryState.

    Mutating calls check the pause flag, then authorization, then inputs, and
    write only once every check has passed. A rejected call leaves the state
    untouched. All calls, reads included, run under one lock so concurrent
    callers are serialized and never see a partially applied call.
    """

    def __init__(
        self,
        admin: Identity = "deployer",
        *,
        bounds: BoundsPolicy = DEFAULT_BOUNDS,
        strict_change_ids: bool = True,
        audit_log_path: Optional[str] = None,
        audit_policy: AuditPolicy = AuditPolicy(),
    ) -> None:
        self._state = RegistryState.create(admin)
        self._bounds = bounds
        self._strict_change_ids = bool(strict_change_ids)
        self._audit_log_path = audit_log_path
        self._audit_policy = audit_policy
        self._lock = threading.RLock()

    @classmethod
    def from_config(cls, config: RegistryConfig) -> "CorridorRegistry":
        return cls(
            config.admin,
            bounds=config.bounds,
            strict_change_ids=config.strict_change_ids,
            audit_log_path=config.audit_log_path,
            audit_policy=config.audit,
        )

    # -- bookkeeping -----------------------------------------------------

    def _finish(
        self,
        operation: str,
        caller: Identity,
        result: RegistryResult,
        *,
        corridor_id: Optional[int] = None,
        at: Optional[int] = None,
        args: Mapping[str, Any] | None = None,
    ) -> RegistryResult:
        if result.ok:
            logger.info("%s accepted: caller=%s corridor=%s", operation, caller, corridor_id)
        else:
            logger.debug(
                "%s rejected: caller=%s corridor=%s reason=%s code=%s",
                operation,
                caller,
                corridor_id,
                result.reason.value if result.reason is not None else None,
                result.value,
            )

        if self._audit_log_path:
            event = build_audit_event(
                operation,
                caller,
                result,
                corridor_id=corridor_id,
                logical_time=at,
                args=args,
                policy=self._audit_policy,
            )
            try:
                write_audit_event(self._audit_log_path, event)
            except OSError:
                # The call has already taken effect.
                logger.exception("%s: audit write to %s failed", operation, self._audit_log_path)
        return result

    # -- mutating operations ---------------------------------------------

    def register_corridor(
        self,
        caller: Identity,
        name: str,
        description: str,
        boundaries: Iterable[str],
        initial_parcels: Iterable[Any],
        tags: Iterable[str],
        status: str,
        visibility: bool,
        *,
        at: int,
    ) -> RegistryResult:
        boundaries = _as_tuple(boundaries)
        parcels = _as_tuple(initial_parcels)
        tags = _as_tuple(tags)
        status = status_value(status)
        args = {
            "name": name,
            "description": description,
            "boundaries": boundaries,
            "initial_parcels": parcels,
            "tags": tags,
            "status": status,
            "visibility": visibility,
        }

        with self._lock:
            state = self._state
            if state.admin.paused:
                result = RegistryResult.reject(Rejection.PAUSED)
            elif not valid_boundaries(boundaries, self._bounds):
                result = RegistryResult.reject(Rejection.INVALID_BOUNDARIES)
            elif not valid_parcels(parcels, self._bounds):
                result = RegistryResult.reject(Rejection.TOO_MANY_PARCELS)
            elif not valid_tags(tags, self._bounds):
                result = RegistryResult.reject(Rejection.TOO_MANY_TAGS)
            elif not valid_registration_status(status):
                result = RegistryResult.reject(Rejection.INVALID_STATUS)
            elif state.name_taken(name):
                result = RegistryResult.reject(Rejection.DUPLICATE_NAME)
            elif has_duplicates(parcels):
                result = RegistryResult.reject(Rejection.DUPLICATE_PARCEL)
            else:
                corridor_id = allocate_id(state)
                state.corridors[corridor_id] = Corridor(
                    name=name,
                    description=description,
                    boundaries=boundaries,
                    creator=caller,
                    created_at=at,
                    status=status,
                    visibility=bool(visibility),
                )
                state.parcels[corridor_id] = ParcelSet(parcels=parcels)
                state.tags[corridor_id] = TagSet(tags=tags)
                result = RegistryResult.success(corridor_id)

            return self._finish(
                "register_corridor",
                caller,
                result,
                corridor_id=result.value if result.ok else None,
                at=at,
                args=args,
            )

    def update_corridor_description(
        self,
        caller: Identity,
        corridor_id: int,
        new_description: str,
        version: int,
        changes: str,
        *,
        at: int,
    ) -> RegistryResult:
        args = {"new_description": new_description, "version": version, "changes": changes}

        with self._lock:
            state = self._state
            corridor = state.corridors.get(corridor_id)
            if state.admin.paused:
                result = RegistryResult.reject(Rejection.PAUSED)
            elif not is_corridor_owner(state, corridor_id, caller):
                result = RegistryResult.reject(Rejection.NOT_OWNER)
            elif corridor is None:
                result = RegistryResult.reject(Rejection.UNKNOWN_CORRIDOR)
            elif (corridor_id, version) in state.versions:
                result = RegistryResult.reject(Rejection.DUPLICATE_VERSION)
            else:
                state.corridors[corridor_id] = replace(corridor, description=new_description)
                state.versions[(corridor_id, version)] = VersionEntry(changes=changes, timestamp=at, updater=caller)
                result = RegistryResult.success(True)

            return self._finish(
                "update_corridor_description", caller, result, corridor_id=corridor_id, at=at, args=args
            )

    def add_parcel_to_corridor(self, caller: Identity, corridor_id: int, parcel_id: Any) -> RegistryResult:
        with self._lock:
            state = self._state
            parcel_set = state.parcels.get(corridor_id)
            if state.admin.paused:
                result = RegistryResult.reject(Rejection.PAUSED)
            elif not is_corridor_owner(state, corridor_id, caller):
                result = RegistryResult.reject(Rejection.NOT_OWNER)
            elif parcel_set is None:
                result = RegistryResult.reject(Rejection.UNKNOWN_CORRIDOR)
            elif not parcel_capacity_left(parcel_set.parcels, self._bounds):
                result = RegistryResult.reject(Rejection.TOO_MANY_PARCELS)
            elif parcel_id in parcel_set.parcels:
                result = RegistryResult.reject(Rejection.DUPLICATE_PARCEL)
            else:
                state.parcels[corridor_id] = ParcelSet(parcels=parcel_set.parcels + (parcel_id,))
                result = RegistryResult.success(True)

            return self._finish(
                "add_parcel_to_corridor", caller, result, corridor_id=corridor_id, args={"parcel_id": parcel_id}
            )

    def update_status(
        self,
        caller: Identity,
        corridor_id: int,
        new_status: str,
        change_id: int,
        *,
        at: int,
    ) -> RegistryResult:
        new_status = status_value(new_status)
        args = {"new_status": new_status, "change_id": change_id}

        with self._lock:
            state = self._state
            corridor = state.corridors.get(corridor_id)
            if state.admin.paused:
                result = RegistryResult.reject(Rejection.PAUSED)
            elif not is_corridor_owner(state, corridor_id, caller):
                result = RegistryResult.reject(Rejection.NOT_OWNER)
            elif not valid_status(new_status):
                result = RegistryResult.reject(Rejection.INVALID_STATUS)
            elif corridor is None:
                result = RegistryResult.reject(Rejection.UNKNOWN_CORRIDOR)
            elif self._strict_change_ids and (corridor_id, change_id) in state.status_history:
                result = RegistryResult.reject(Rejection.DUPLICATE_CHANGE_ID)
            else:
                # Any-to-any transitions are accepted; no workflow ordering.
                state.corridors[corridor_id] = replace(corridor, status=new_status)
                state.status_history[(corridor_id, change_id)] = StatusHistoryEntry(
                    old_status=corridor.status,
                    new_status=new_status,
                    timestamp=at,
                    changer=caller,
                )
                result = RegistryResult.success(True)

            return self._finish("update_status", caller, result, corridor_id=corridor_id, at=at, args=args)

    def add_collaborator(
        self,
        caller: Identity,
        corridor_id: int,
        collaborator: Identity,
        role: str,
        permissions: Iterable[str],
        *,
        at: int,
    ) -> RegistryResult:
        permissions = _as_tuple(permissions)
        args = {"collaborator": collaborator, "role": role, "permissions": permissions}

        with self._lock:
            state = self._state
            if state.admin.paused:
                result = RegistryResult.reject(Rejection.PAUSED)
            elif not is_corridor_owner(state, corridor_id, caller):
                result = RegistryResult.reject(Rejection.NOT_OWNER)
            elif collaborator == caller:
                result = RegistryResult.reject(Rejection.SELF_COLLABORATOR)
            elif not valid_permissions(permissions, self._bounds):
                result = RegistryResult.reject(Rejection.TOO_MANY_PERMISSIONS)
            elif corridor_id not in state.corridors:
                result = RegistryResult.reject(Rejection.UNKNOWN_CORRIDOR)
            elif (corridor_id, collaborator) in state.collaborators:
                result = RegistryResult.reject(Rejection.DUPLICATE_COLLABORATOR)
            else:
                state.collaborators[(corridor_id, collaborator)] = Collaborator(
                    role=role, permissions=permissions, added_at=at
                )
                result = RegistryResult.success(True)

            return self._finish("add_collaborator", caller, result, corridor_id=corridor_id, at=at, args=args)

    # -- administrative operations ---------------------------------------

    def _set_paused(self, operation: str, caller: Identity, paused: bool) -> RegistryResult:
        with self._lock:
            if not is_registry_admin(self._state, caller):
                result = RegistryResult.reject(Rejection.NOT_AUTHORIZED)
            else:
                self._state.admin.paused = paused
                result = RegistryResult.success(True)
            return self._finish(operation, caller, result)

    def pause_contract(self, caller: Identity) -> RegistryResult:
        return self._set_paused("pause_contract", caller, True)

    def unpause_contract(self, caller: Identity) -> RegistryResult:
        return self._set_paused("unpause_contract", caller, False)

    def transfer_ownership(self, caller: Identity, new_owner: Identity) -> RegistryResult:
        with self._lock:
            if not is_registry_admin(self._state, caller):
                result = RegistryResult.reject(Rejection.NOT_AUTHORIZED)
            else:
                self._state.admin.owner = new_owner
                result = RegistryResult.success(True)
            return self._finish("transfer_ownership", caller, result, args={"new_owner": new_owner})

    # -- read-only queries -----------------------------------------------

    def get_corridor_details(self, corridor_id: int) -> RegistryResult:
        with self._lock:
            return RegistryResult.success(self._state.corridors.get(corridor_id))

    def get_corridor_parcels(self, corridor_id: int) -> RegistryResult:
        with self._lock:
            return RegistryResult.success(self._state.parcels.get(corridor_id))

    def get_corridor_tags(self, corridor_id: int) -> RegistryResult:
        with self._lock:
            return RegistryResult.success(self._state.tags.get(corridor_id))

    def get_corridor_version(self, corridor_id: int, version: int) -> RegistryResult:
        with self._lock:
            return RegistryResult.success(self._state.versions.get((corridor_id, version)))

    def get_corridor_collaborator(self, corridor_id: int, collaborator: Identity) -> RegistryResult:
        with self._lock:
            return RegistryResult.success(self._state.collaborators.get((corridor_id, collaborator)))

    def get_status_history(self, corridor_id: int, change_id: int) -> RegistryResult:
        with self._lock:
            return RegistryResult.success(self._state.status_history.get((corridor_id, change_id)))

    def get_contract_owner(self) -> RegistryResult:
        with self._lock:
            return RegistryResult.success(self._state.admin.owner)

    def is_paused(self) -> RegistryResult:
        with self._lock:
            return RegistryResult.success(self._state.admin.paused)

    def get_corridor_count(self) -> RegistryResult:
        with self._lock:
            return RegistryResult.success(self._state.admin.counter)

    def summary(self) -> dict[str, Any]:
        with self._lock:
            return self._state.summary()
