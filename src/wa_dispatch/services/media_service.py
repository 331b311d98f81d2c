from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from wa_dispatch.application.dto.principal import Principal
from wa_dispatch.application.exceptions import NotFoundError, ValidationError
from wa_dispatch.application.ports.clock import Clock, SystemClock
from wa_dispatch.application.ports.gateway import MediaSigner
from wa_dispatch.application.uow import UnitOfWork
from wa_dispatch.domain.entities.audit_entry import AuditEntry
from wa_dispatch.domain.value_objects.enums import AuditEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RefreshedMediaUrl:
    media_url: str
    storage_path: str
    expires_in_seconds: int


async def refresh_media_url(
    principal: Principal,
    uow: UnitOfWork,
    signer: MediaSigner,
    *,
    ttl_seconds: int,
    message_id: uuid.UUID | None = None,
    storage_path: str | None = None,
    clock: Clock | None = None,
) -> RefreshedMediaUrl:
    if message_id is None and not storage_path:
        raise ValidationError("Missing message_id or storage_path")

    path = storage_path
    if message_id is not None:
        message = await uow.messages.get_by_id(message_id)
        if message is None or message.tenant_id != principal.tenant_id:
            raise NotFoundError("Message not found")
        path = path or message.storage_path
        if not path:
            raise ValidationError("Message has no storage_path in its content")

    assert path is not None
    media_url = await signer.create_signed_url(path, ttl_seconds)

    if message_id is not None:
        await uow.messages_w.set_media_url(message_id, media_url)
    await uow.audit.append(
        AuditEntry(
            event_type=AuditEvent.MEDIA_URL_REFRESHED,
            tenant_id=principal.tenant_id,
            actor_id=principal.subject_id,
            description="Refreshed signed URL for WhatsApp media",
            occurred_at=(clock or SystemClock()).now(),
            metadata={
                "message_id": message_id,
                "storage_path": path,
                "expires_in_seconds": ttl_seconds,
            },
        )
    )
    await uow.commit()
    logger.info("Refreshed media url for %s (message %s)", path, message_id)

    return RefreshedMediaUrl(media_url=media_url, storage_path=path, expires_in_seconds=ttl_seconds)
