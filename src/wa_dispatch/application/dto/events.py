from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any
from uuid import UUID

from wa_dispatch.domain.value_objects.enums import MessageStatus

MESSAGE_STATUS_EVENT = "wa.message_status"


@dataclass(frozen=True, slots=True)
class MessageStatusEvent:
    message_id: UUID
    tenant_id: UUID
    status: MessageStatus
    provider_message_id: str | None = None
    error: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return {"event_type": MESSAGE_STATUS_EVENT, **asdict(self)}
