from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from wa_dispatch.domain.value_objects.enums import AuditEvent


@dataclass(frozen=True, slots=True)
class AuditEntry:
    event_type: AuditEvent
    tenant_id: UUID | None
    actor_id: str | None
    description: str
    occurred_at: datetime
    metadata: dict[str, Any] = field(default_factory=dict)
