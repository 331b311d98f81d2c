from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from wa_dispatch.application.policies.retry import RetryDecision, RetryPolicy
from wa_dispatch.domain.entities.outbox_item import OutboxItem


class OutboxStore(Protocol):
    """Durable queue of outbound work.

    Every method is a single conditional write; callers commit through the
    unit of work. Writes that target a terminal (SENT/FAILED) row never match.
    """

    async def add(self, item: OutboxItem) -> None: ...

    async def get(self, item_id: UUID) -> OutboxItem | None: ...

    async def claim_batch(self, limit: int, *, now: datetime, worker_id: str) -> list[OutboxItem]: ...

    async def mark_sent(self, item_id: UUID, provider_message_id: str, *, now: datetime) -> bool: ...

    async def mark_failed(
        self,
        item_id: UUID,
        error: str,
        *,
        now: datetime,
        claimed_by: str,
    ) -> bool: ...

    async def mark_failed_or_retry(
        self,
        item_id: UUID,
        error: str,
        *,
        now: datetime,
        claimed_by: str,
        policy: RetryPolicy,
    ) -> RetryDecision | None: ...

    async def reap_stale(self, *, claimed_before: datetime, now: datetime) -> list[UUID]: ...
