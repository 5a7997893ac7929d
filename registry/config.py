from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

from audit_log import AuditPolicy
from corridor_bounds import BoundsPolicy


def _bool_env(name: str, default: bool = False) -> bool:
    v = os.getenv(name, "")
    if v == "":
        return default
    return v.strip().lower() in ("1", "true", "yes", "y", "on")


_BOUNDS_KEYS = ("max_boundaries", "max_parcels", "max_tags", "max_permissions")


@dataclass(frozen=True)
class RegistryConfig:
    admin: str = "deployer"
    bounds: BoundsPolicy = field(default_factory=BoundsPolicy)
    audit: AuditPolicy = AuditPolicy()
    audit_log_path: Optional[str] = None
    strict_change_ids: bool = True
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> "RegistryConfig":
        redact = os.getenv("CORRIDOR_REGISTRY_AUDIT_REDACT", "")
        bounds_raw = {
            key: os.environ[f"CORRIDOR_REGISTRY_{key.upper()}"]
            for key in _BOUNDS_KEYS
            if os.getenv(f"CORRIDOR_REGISTRY_{key.upper()}", "").strip()
        }
        return cls(
            admin=os.getenv("CORRIDOR_REGISTRY_ADMIN", "deployer"),
            bounds=BoundsPolicy.from_mapping(bounds_raw),
            audit=AuditPolicy(
                include_args=_bool_env("CORRIDOR_REGISTRY_AUDIT_ARGS", True),
                redact_arg_keys=tuple(k.strip() for k in redact.split(",") if k.strip()),
            ),
            audit_log_path=os.getenv("CORRIDOR_REGISTRY_AUDIT_LOG_PATH") or None,
            strict_change_ids=_bool_env("CORRIDOR_REGISTRY_STRICT_CHANGE_IDS", True),
            log_level=os.getenv("CORRIDOR_REGISTRY_LOG_LEVEL", "WARNING").strip().upper() or "WARNING",
        )
