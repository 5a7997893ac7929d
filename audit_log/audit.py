from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Tuple

from contracts.schemas import Identity, RegistryResult


def _jsonable(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if hasattr(value, "value"):
        return value.value
    if isinstance(value, (list, tuple, frozenset, set)):
        return [_jsonable(v) for v in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


@dataclass(frozen=True)
class AuditPolicy:
    include_args: bool = True
    redact_arg_keys: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AuditEvent:
    ts_utc: str
    operation: str
    caller: str
    corridor_id: Optional[int]
    logical_time: Optional[int]
    ok: bool
    code: Optional[int]
    reason: Optional[str]
    args_snapshot: dict[str, Any] | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "ts_utc": self.ts_utc,
            "operation": self.operation,
            "caller": self.caller,
            "corridor_id": self.corridor_id,
            "logical_time": self.logical_time,
            "result": {"ok": self.ok, "code": self.code, "reason": self.reason},
            "args_snapshot": self.args_snapshot,
        }


def build_audit_event(
    operation: str,
    caller: Identity,
    result: RegistryResult,
    *,
    corridor_id: Optional[int] = None,
    logical_time: Optional[int] = None,
    args: Mapping[str, Any] | None = None,
    policy: AuditPolicy = AuditPolicy(),
) -> AuditEvent:
    ts = datetime.now(timezone.utc).isoformat()

    args_snapshot: dict[str, Any] | None = None
    if policy.include_args:
        raw = args if isinstance(args, Mapping) else {}
        redactions = {k for k in policy.redact_arg_keys if isinstance(k, str) and k}
        args_snapshot = {str(k): _jsonable(v) for k, v in raw.items() if str(k) not in redactions}

    return AuditEvent(
        ts_utc=ts,
        operation=str(operation),
        caller=str(caller),
        corridor_id=corridor_id,
        logical_time=logical_time,
        ok=bool(result.ok),
        code=None if result.ok else int(result.value),
        reason=result.reason.value if result.reason is not None else None,
        args_snapshot=args_snapshot,
    )


def write_audit_event(path: str, event: AuditEvent) -> None:
    line = json.dumps(event.to_dict(), sort_keys=True)
    with open(path, "a", encoding="utf-8") as f:
        f.write(line + "\n")
