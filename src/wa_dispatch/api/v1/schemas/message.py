from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, model_validator

from wa_dispatch.domain.value_objects.enums import MessageStatus


class MarkReadResponse(BaseModel):
    ok: bool = True
    message_id: UUID
    status: MessageStatus
    read_at: datetime | None


class RefreshMediaRequest(BaseModel):
    message_id: UUID | None = None
    storage_path: str | None = None

    @model_validator(mode="after")
    def _one_target(self) -> RefreshMediaRequest:
        if self.message_id is None and not self.storage_path:
            raise ValueError("message_id or storage_path is required")
        return self


class RefreshMediaResponse(BaseModel):
    ok: bool = True
    media_url: str
    storage_path: str
    expires_in_seconds: int
