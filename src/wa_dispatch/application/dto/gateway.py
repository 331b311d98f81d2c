from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from uuid import UUID


@dataclass(frozen=True, slots=True)
class SendResult:
    provider_message_id: str
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ConnectionCheck:
    credential_id: UUID
    tenant_id: UUID
    instance_id: str
    online: bool
    state: str
    error: str | None = None
