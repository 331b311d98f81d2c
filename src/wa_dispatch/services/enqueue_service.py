from __future__ import annotations

import uuid
from typing import Any

from wa_dispatch.application.exceptions import ValidationError
from wa_dispatch.application.ports.clock import Clock, SystemClock
from wa_dispatch.application.uow import UnitOfWork
from wa_dispatch.domain.entities.outbox_item import OutboxItem
from wa_dispatch.domain.value_objects.enums import OutboxStatus


async def enqueue(
    uow: UnitOfWork,
    *,
    tenant_id: uuid.UUID,
    payload: dict[str, Any],
    max_retries: int,
    account_id: uuid.UUID | None = None,
    message_id: uuid.UUID | None = None,
    clock: Clock | None = None,
) -> OutboxItem:
    """Insert a QUEUED outbox item, claimable immediately."""
    if max_retries < 0:
        raise ValidationError("max_retries must be >= 0")
    if not payload:
        raise ValidationError("payload must not be empty")

    if message_id is not None:
        message = await uow.messages.get_by_id(message_id)
        if message is None or message.tenant_id != tenant_id:
            raise ValidationError(f"message {message_id} does not belong to tenant {tenant_id}")

    now = (clock or SystemClock()).now()
    item = OutboxItem(
        id=uuid.uuid4(),
        tenant_id=tenant_id,
        account_id=account_id,
        message_id=message_id,
        payload=payload,
        status=OutboxStatus.QUEUED,
        retry_count=0,
        max_retries=max_retries,
        not_before=now,
        created_at=now,
    )
    await uow.outbox.add(item)
    await uow.commit()
    return item
