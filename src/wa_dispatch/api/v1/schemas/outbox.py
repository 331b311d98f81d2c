from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from wa_dispatch.domain.value_objects.enums import OutboxStatus


class EnqueueRequest(BaseModel):
    tenant_id: UUID
    account_id: UUID | None = None
    message_id: UUID | None = None
    payload: dict[str, Any] = Field(min_length=1)
    max_retries: int | None = Field(default=None, ge=0, le=50)


class OutboxItemResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    account_id: UUID | None
    message_id: UUID | None
    status: OutboxStatus
    retry_count: int
    max_retries: int
    not_before: datetime
    created_at: datetime

    model_config = {"from_attributes": True}


class DispatchRunResponse(BaseModel):
    claimed: int
    sent: int
    requeued: int
    failed: int
    superseded: int
    error: int
    reaped: int
