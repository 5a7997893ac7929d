from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, ValidationError, model_validator

from registry.config import RegistryConfig
from registry.engine import CorridorRegistry
from registry.logging_setup import configure_logging

_CALLER_OPS = frozenset(
    {
        "register_corridor",
        "update_corridor_description",
        "add_parcel_to_corridor",
        "update_status",
        "add_collaborator",
        "pause_contract",
        "unpause_contract",
        "transfer_ownership",
    }
)
_TIMED_OPS = frozenset({"register_corridor", "update_corridor_description", "update_status", "add_collaborator"})

Operation = Literal[
    "register_corridor",
    "update_corridor_description",
    "add_parcel_to_corridor",
    "update_status",
    "add_collaborator",
    "pause_contract",
    "unpause_contract",
    "transfer_ownership",
    "get_corridor_details",
    "get_corridor_parcels",
    "get_corridor_tags",
    "get_corridor_version",
    "get_corridor_collaborator",
    "get_status_history",
    "get_contract_owner",
    "is_paused",
    "get_corridor_count",
]


class CallRequest(BaseModel):
    op: Operation
    caller: Optional[str] = None
    at: int = 0
    args: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _caller_required_for_mutations(self) -> "CallRequest":
        if self.op in _CALLER_OPS and not self.caller:
            raise ValueError(f"{self.op} requires a caller")
        return self


class CallScript(BaseModel):
    calls: list[CallRequest] = Field(default_factory=list)


def _load_json(path: str | None) -> Any:
    if path:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    return json.load(sys.stdin)


def _build_config(args: argparse.Namespace) -> RegistryConfig:
    base = RegistryConfig.from_env()
    return RegistryConfig(
        admin=args.admin if args.admin is not None else base.admin,
        bounds=base.bounds,
        audit=base.audit,
        audit_log_path=args.audit_log if args.audit_log is not None else base.audit_log_path,
        strict_change_ids=False if args.lenient_change_ids else base.strict_change_ids,
        log_level=args.log_level if args.log_level is not None else base.log_level,
    )


def _dispatch(registry: CorridorRegistry, call: CallRequest):
    kwargs = dict(call.args)
    if call.op in _CALLER_OPS:
        kwargs["caller"] = call.caller
    if call.op in _TIMED_OPS:
        kwargs["at"] = call.at
    return getattr(registry, call.op)(**kwargs)


def replay(registry: CorridorRegistry, script: CallScript) -> list[dict[str, Any]]:
    results: list[dict[str, Any]] = []
    for call in script.calls:
        wire = _dispatch(registry, call).to_wire()
        results.append({"op": call.op, **wire})
    return results


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Replay a JSON call script against a fresh corridor registry.")
    parser.add_argument("--script")
    parser.add_argument("--admin")
    parser.add_argument("--audit-log")
    parser.add_argument("--log-level")
    parser.add_argument("--lenient-change-ids", action="store_true")
    args = parser.parse_args(argv)

    config = _build_config(args)
    configure_logging(config.log_level)

    try:
        raw = _load_json(args.script)
        if isinstance(raw, list):
            raw = {"calls": raw}
        script = CallScript.model_validate(raw)
        registry = CorridorRegistry.from_config(config)
        results = replay(registry, script)
    except (json.JSONDecodeError, ValidationError, TypeError) as exc:
        print(f"invalid call script: {exc}", file=sys.stderr)
        return 1

    failures = sum(1 for r in results if not r["ok"])
    output = {
        "results": results,
        "failures": failures,
        "state": registry.summary(),
    }
    print(json.dumps(output, sort_keys=True))

    return 3 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
