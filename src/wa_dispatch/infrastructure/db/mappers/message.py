from __future__ import annotations

from wa_dispatch.domain.entities.message import Message
from wa_dispatch.domain.value_objects.enums import MessageStatus
from wa_dispatch.infrastructure.db.models.message import MessageModel


def model_to_entity(model: MessageModel) -> Message:
    return Message(
        id=model.id,
        tenant_id=model.tenant_id,
        account_id=model.account_id,
        status=MessageStatus(model.status),
        content=model.content or {},
        provider_message_id=model.provider_message_id,
        error_message=model.error_message,
        created_at=model.created_at,
        sent_at=model.sent_at,
        read_at=model.read_at,
    )


def entity_to_model(entity: Message) -> MessageModel:
    return MessageModel(
        id=entity.id,
        tenant_id=entity.tenant_id,
        account_id=entity.account_id,
        status=entity.status.value,
        content=entity.content,
        provider_message_id=entity.provider_message_id,
        error_message=entity.error_message,
        created_at=entity.created_at,
        sent_at=entity.sent_at,
        read_at=entity.read_at,
    )
