from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from wa_dispatch.domain.value_objects.enums import MessageStatus


@dataclass(frozen=True, slots=True)
class Message:
    id: UUID
    tenant_id: UUID
    account_id: UUID | None
    status: MessageStatus
    content: dict[str, Any]
    provider_message_id: str | None
    error_message: str | None
    created_at: datetime
    sent_at: datetime | None = None
    read_at: datetime | None = None

    @property
    def storage_path(self) -> str | None:
        return self.content.get("storage_path")
