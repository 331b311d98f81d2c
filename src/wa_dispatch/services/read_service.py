from __future__ import annotations

import logging
import uuid
from dataclasses import replace

from wa_dispatch.application.dto.events import MessageStatusEvent
from wa_dispatch.application.dto.principal import Principal
from wa_dispatch.application.exceptions import NotFoundError, ValidationError
from wa_dispatch.application.ports.bus import EventPublisher
from wa_dispatch.application.ports.clock import Clock, SystemClock
from wa_dispatch.application.ports.gateway import GatewayClient
from wa_dispatch.application.uow import UnitOfWork
from wa_dispatch.domain.entities.audit_entry import AuditEntry
from wa_dispatch.domain.entities.message import Message
from wa_dispatch.domain.value_objects.enums import AuditEvent, MessageStatus
from wa_dispatch.services.credential_resolver import CredentialResolver
from wa_dispatch.services.status_events import publish_status

logger = logging.getLogger(__name__)


async def mark_read(
    message_id: uuid.UUID,
    principal: Principal,
    uow: UnitOfWork,
    resolver: CredentialResolver,
    gateway: GatewayClient,
    *,
    publisher: EventPublisher | None = None,
    status_channel: str = "wa.message_status",
    clock: Clock | None = None,
) -> Message:
    """Mark a delivered message as read on the gateway, then locally.

    Gateway and credential errors propagate to the caller unchanged; nothing
    is written unless the gateway call succeeds.
    """
    message = await uow.messages.get_by_id(message_id)
    if message is None or message.tenant_id != principal.tenant_id:
        raise NotFoundError("Message not found")
    if message.status == MessageStatus.READ:
        return message
    if not message.provider_message_id:
        raise ValidationError("Message has no provider message id yet")

    credential = await resolver.resolve(message.tenant_id, message.account_id)
    await gateway.mark_read(
        credential,
        message.provider_message_id,
        remote_jid=message.content.get("remote_jid"),
    )

    now = (clock or SystemClock()).now()
    await uow.messages_w.mark_read(message.id, now)
    await uow.audit.append(
        AuditEntry(
            event_type=AuditEvent.MARK_READ,
            tenant_id=message.tenant_id,
            actor_id=principal.subject_id,
            description="Message marked as read",
            occurred_at=now,
            metadata={
                "message_id": message.id,
                "provider_message_id": message.provider_message_id,
                "credential_id": credential.id,
            },
        )
    )
    await uow.commit()
    logger.info("Message %s marked as read", message.id)

    await publish_status(
        publisher,
        status_channel,
        MessageStatusEvent(
            message_id=message.id,
            tenant_id=message.tenant_id,
            status=MessageStatus.READ,
            provider_message_id=message.provider_message_id,
        ),
    )
    return replace(message, status=MessageStatus.READ, read_at=now)
