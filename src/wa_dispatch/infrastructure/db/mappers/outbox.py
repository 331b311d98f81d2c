from __future__ import annotations

from wa_dispatch.domain.entities.outbox_item import OutboxItem
from wa_dispatch.domain.value_objects.enums import OutboxStatus
from wa_dispatch.infrastructure.db.models.outbox import OutboxItemModel


def model_to_entity(model: OutboxItemModel) -> OutboxItem:
    return OutboxItem(
        id=model.id,
        tenant_id=model.tenant_id,
        account_id=model.account_id,
        message_id=model.message_id,
        payload=model.payload,
        status=OutboxStatus(model.status),
        retry_count=model.retry_count,
        max_retries=model.max_retries,
        not_before=model.not_before,
        created_at=model.created_at,
        last_attempt_at=model.last_attempt_at,
        last_error=model.last_error,
        provider_message_id=model.provider_message_id,
        claimed_at=model.claimed_at,
        claimed_by=model.claimed_by,
    )


def entity_to_model(entity: OutboxItem) -> OutboxItemModel:
    return OutboxItemModel(
        id=entity.id,
        tenant_id=entity.tenant_id,
        account_id=entity.account_id,
        message_id=entity.message_id,
        payload=entity.payload,
        status=entity.status.value,
        retry_count=entity.retry_count,
        max_retries=entity.max_retries,
        not_before=entity.not_before,
        created_at=entity.created_at,
        last_attempt_at=entity.last_attempt_at,
        last_error=entity.last_error,
        provider_message_id=entity.provider_message_id,
    )
