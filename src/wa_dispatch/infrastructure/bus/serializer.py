"""JSON encoding shared by the status channel and the audit log's JSONB column."""
from __future__ import annotations

import json
from datetime import datetime
from enum import Enum
from typing import Any, Mapping
from uuid import UUID


def _default(o: object) -> Any:
    if isinstance(o, Enum):
        return o.value
    if isinstance(o, UUID):
        return str(o)
    if isinstance(o, datetime):
        return o.isoformat()
    raise TypeError(f"{type(o).__name__} is not JSON serializable")


def dumps(payload: Mapping[str, Any]) -> str:
    return json.dumps(payload, default=_default, separators=(",", ":"))


def encode_message(payload: Mapping[str, Any]) -> str:
    """Wrap a payload as ``{"event": ..., "data": ...}`` for channel subscribers."""
    data = {k: v for k, v in payload.items() if k != "event_type"}
    return dumps({"event": payload.get("event_type", "unknown"), "data": data})


def to_jsonable(payload: Mapping[str, Any]) -> dict[str, Any]:
    return json.loads(dumps(payload))
