from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from wa_dispatch.domain.value_objects.enums import OutboxStatus


@dataclass(frozen=True, slots=True)
class OutboxItem:
    """A unit of pending outbound work.

    ``payload`` is opaque to the dispatcher; only the gateway client reads it.
    ``retry_count`` counts requeues and never exceeds ``max_retries``.
    """

    id: UUID
    tenant_id: UUID
    account_id: UUID | None
    message_id: UUID | None
    payload: dict[str, Any]
    status: OutboxStatus
    retry_count: int
    max_retries: int
    not_before: datetime
    created_at: datetime
    last_attempt_at: datetime | None = None
    last_error: str | None = None
    provider_message_id: str | None = None
    claimed_at: datetime | None = None
    claimed_by: str | None = None

    @property
    def has_retry_budget(self) -> bool:
        return self.retry_count < self.max_retries
